"""Core infrastructure: config, database, logging, middleware, exceptions."""

from app.core.config import Settings, get_settings
from app.core.database import Base, get_db, is_connectivity_failure
from app.core.logging import get_logger, request_id_ctx

__all__ = [
    "Base",
    "Settings",
    "get_db",
    "get_logger",
    "get_settings",
    "is_connectivity_failure",
    "request_id_ctx",
]
