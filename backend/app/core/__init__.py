"""Core infrastructure module.

This module exports core utilities used across features.
Never imports from features - only from external libraries.
"""

from .config import AuthMode, Settings, get_settings, get_global_settings
from .database import get_db, db_manager
from .exceptions import (
    ServiceException,
    AuthError,
    ValidationError,
    NotFoundError,
    DependencyError,
    DatabaseError,
)
from .enums import (
    EventType,
    ConnectionKind,
    AltGroupStatus,
    AltDecision,
    MemberRole,
    Severity,
    LagKind,
)
from .models import Base, utc_now

__all__ = [
    # Config
    "AuthMode",
    "Settings",
    "get_settings",
    "get_global_settings",
    # Database
    "get_db",
    "db_manager",
    # Exceptions
    "ServiceException",
    "AuthError",
    "ValidationError",
    "NotFoundError",
    "DependencyError",
    "DatabaseError",
    # Enums
    "EventType",
    "ConnectionKind",
    "AltGroupStatus",
    "AltDecision",
    "MemberRole",
    "Severity",
    "LagKind",
    # Models
    "Base",
    "utc_now",
]
