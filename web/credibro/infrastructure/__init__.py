from .database import engine, AsyncSessionFactory, create_schema, get_session

__all__ = [
    "engine",
    "AsyncSessionFactory",
    "create_schema",
    "get_session",
]
