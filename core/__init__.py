"""Core module for ReportHub."""

from core.database import get_session, init_db, close_db, store_errors
from core.security import (
    verify_password,
    hash_password,
    create_access_token,
    create_refresh_token,
    decode_token,
)

__all__ = [
    "get_session",
    "init_db",
    "close_db",
    "store_errors",
    "verify_password",
    "hash_password",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
]
