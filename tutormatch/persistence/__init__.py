"""Persistence layer for course-match notifications.

Provides:
- Database initialization and session management
- NotificationModel ORM mapping
- NotificationRepository with idempotent bulk insert and action updates
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    PersistenceError,
    PersistFailure,
    RecordNotFoundError,
)
from .repositories import BulkCreateResult, NotificationRepository
from .schema import Base, NotificationModel, create_schema

__all__ = [
    "init_database",
    "get_session",
    "get_engine",
    "close_database",
    "Base",
    "NotificationModel",
    "create_schema",
    "NotificationRepository",
    "BulkCreateResult",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "PersistFailure",
]
