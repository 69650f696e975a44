"""Settings, database sessions and credential helpers shared by the API and scripts."""

from app.core.config import Settings, get_settings, settings
from app.core.database import get_db, session_scope
from app.core.security import create_access_token, decode_access_token, hash_password, verify_password

__all__ = [
    "Settings",
    "create_access_token",
    "decode_access_token",
    "get_db",
    "get_settings",
    "hash_password",
    "session_scope",
    "settings",
    "verify_password",
]
