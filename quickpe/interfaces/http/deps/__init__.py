"""Reusable FastAPI dependencies."""

from .container import get_app_settings, get_container, get_dispatcher, get_transfer_service
from .database import get_db_session

__all__ = [
    "get_db_session",
    "get_container",
    "get_app_settings",
    "get_transfer_service",
    "get_dispatcher",
]
