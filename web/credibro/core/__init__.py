from .base import BaseRepository, IRepository, BaseService, IService
from .exceptions import (
    BaseError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    BusinessLogicError,
    ExternalServiceError
)
from .config import Settings, get_settings
from .logging_config import setup_logging

__all__ = [
    # Base classes
    "BaseRepository",
    "IRepository",
    "BaseService",
    "IService",

    # Exceptions
    "BaseError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "ConflictError",
    "BusinessLogicError",
    "ExternalServiceError",

    # Config
    "Settings",
    "get_settings",
    "setup_logging",
]
