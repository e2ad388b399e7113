from credibro.core import BaseError


def get_user_id(user: dict) -> str:
    """Extract profile ID from user token"""
    user_id = user.get("sub")
    if not user_id:
        raise BaseError("Invalid user token", status_code=401)
    return str(user_id)
