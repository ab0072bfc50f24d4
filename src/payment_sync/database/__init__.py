"""Persistence for the notification log."""

from .models import (
    Base,
    NotificationHistory,
    NotificationStatus,
    NotificationType,
)
from .session import (
    get_db,
    get_database_url,
    init_db,
    close_db,
    create_async_engine,
    create_tables,
    get_async_session_factory,
    session_scope,
)
from .repository import (
    NotificationRepository,
    NotificationLog,
)

__all__ = [
    # Models
    "Base",
    "NotificationHistory",
    "NotificationStatus",
    "NotificationType",
    # Session management
    "get_db",
    "get_database_url",
    "init_db",
    "close_db",
    "create_async_engine",
    "create_tables",
    "get_async_session_factory",
    "session_scope",
    # Repositories
    "NotificationRepository",
    "NotificationLog",
]
