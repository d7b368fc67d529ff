"""ORM models and schema creation."""

import json

from sqlalchemy import Boolean, Column, Index, Integer, String, Text, UniqueConstraint, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from ..domain.models import ActionStatus, NotificationRecord
from ..logging import get_logger
from ..utils.timestamps import format_timestamp, parse_timestamp

logger = get_logger(__name__, component="database")

Base = declarative_base()


class NotificationModel(Base):
    """ORM model for the notifications table.

    One course-match notification per (kind, candidate, target).
    """

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_id = Column(String(255), nullable=False)
    kind = Column(String(50), nullable=False)
    candidate_id = Column(String(255), nullable=False)
    target_id = Column(String(255), nullable=False)
    title = Column(Text, nullable=False)
    message = Column(Text, nullable=False)
    payload = Column(Text, nullable=False, default="{}")
    action_status = Column(String(20), nullable=False, default=ActionStatus.NONE.value)
    is_read = Column(Boolean, nullable=False, default=False)

    # ISO 8601 UTC strings
    created_at = Column(String(50), nullable=False)
    updated_at = Column(String(50), nullable=False)

    __table_args__ = (
        UniqueConstraint("kind", "candidate_id", "target_id", name="uq_notifications_pair"),
        Index("idx_notifications_recipient_status", "recipient_id", "action_status"),
    )

    def to_domain(self) -> NotificationRecord:
        return NotificationRecord(
            id=self.id,
            recipient_id=self.recipient_id,
            kind=self.kind,
            candidate_id=self.candidate_id,
            target_id=self.target_id,
            title=self.title,
            message=self.message,
            payload=json.loads(self.payload or "{}"),
            action_status=ActionStatus(self.action_status),
            is_read=bool(self.is_read),
            created_at=parse_timestamp(self.created_at),
            updated_at=parse_timestamp(self.updated_at),
        )

    @classmethod
    def from_domain(cls, record: NotificationRecord) -> "NotificationModel":
        return cls(
            recipient_id=record.recipient_id,
            kind=record.kind,
            candidate_id=record.candidate_id,
            target_id=record.target_id,
            title=record.title,
            message=record.message,
            payload=json.dumps(record.payload, sort_keys=True),
            action_status=ActionStatus(record.action_status).value,
            is_read=record.is_read,
            created_at=format_timestamp(record.created_at),
            updated_at=format_timestamp(record.updated_at),
        )


def create_schema(engine: Engine) -> None:
    """Create missing tables and indexes (idempotent)."""
    Base.metadata.create_all(engine, checkfirst=True)
    tables = inspect(engine).get_table_names()
    logger.info(
        f"Database schema ready. Tables: {', '.join(tables)}",
        extra={"event": "database.schema.ready"},
    )
