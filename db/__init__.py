"""Persistence for the users table"""

from .database import Base, create_db_engine, get_db, get_db_engine, init_db
from .models import User
from .users import (
    AuthUser,
    find_or_create_user,
    get_user_by_email,
    get_user_by_id,
    update_display_name,
)

__all__ = [
    "Base",
    "create_db_engine",
    "get_db",
    "get_db_engine",
    "init_db",
    "User",
    "AuthUser",
    "find_or_create_user",
    "get_user_by_email",
    "get_user_by_id",
    "update_display_name",
]
