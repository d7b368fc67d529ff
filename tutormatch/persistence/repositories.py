"""Repository for course-match notifications.

Repositories take a session from ``get_session()`` and return domain models;
transaction boundaries belong to the caller.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.models import ActionStatus, NotificationRecord
from ..logging import get_logger
from ..utils.timestamps import format_timestamp, utc_now
from .exceptions import PersistenceError, PersistFailure, RecordNotFoundError
from .schema import NotificationModel

logger = get_logger(__name__, component="database")

PairKey = Tuple[str, str, str]


def _pair_key(record: NotificationRecord) -> PairKey:
    return (record.kind, record.candidate_id, record.target_id)


@dataclass
class BulkCreateResult:
    """Outcome of an idempotent bulk insert.

    Attributes:
        created: Newly stored records, with ids assigned
        duplicates: Input records whose pair was already stored (or repeated
            within the batch); nothing was written for them
    """

    created: List[NotificationRecord] = field(default_factory=list)
    duplicates: List[NotificationRecord] = field(default_factory=list)


class NotificationRepository:
    """Data access for the notifications table."""

    def __init__(self, session: Session):
        self.session = session

    def bulk_create(self, records: Sequence[NotificationRecord]) -> BulkCreateResult:
        """Store a batch of notifications, skipping pairs already recorded.

        Idempotent on (kind, candidate_id, target_id). The batch is flushed
        as one unit; any database error fails the whole batch.

        Args:
            records: Notifications to store

        Returns:
            BulkCreateResult listing created and duplicate records

        Raises:
            PersistFailure: If the batch could not be written
        """
        result = BulkCreateResult()
        if not records:
            return result

        try:
            existing = self._existing_keys([_pair_key(r) for r in records])

            models = []
            seen: Set[PairKey] = set(existing)
            for record in records:
                key = _pair_key(record)
                if key in seen:
                    result.duplicates.append(record)
                    continue
                seen.add(key)
                models.append(NotificationModel.from_domain(record))

            self.session.add_all(models)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(
                f"Bulk notification insert failed: {e}",
                exc_info=True,
                extra={"event": "persistence.bulk_create.failed", "batch_size": len(records)},
            )
            raise PersistFailure(f"Failed to store {len(records)} notifications: {e}") from e

        result.created = [model.to_domain() for model in models]
        logger.debug(
            "Notifications stored",
            extra={
                "event": "persistence.bulk_create.completed",
                "created_count": len(result.created),
                "duplicate_count": len(result.duplicates),
            },
        )
        return result

    def _existing_keys(self, keys: List[PairKey]) -> Set[PairKey]:
        if not keys:
            return set()
        wanted = set(keys)
        stmt = select(
            NotificationModel.kind, NotificationModel.candidate_id, NotificationModel.target_id
        ).where(
            NotificationModel.kind.in_(sorted({k[0] for k in wanted})),
            NotificationModel.candidate_id.in_(sorted({k[1] for k in wanted})),
            NotificationModel.target_id.in_(sorted({k[2] for k in wanted})),
        )
        return {tuple(row) for row in self.session.execute(stmt).all()} & wanted

    def get(self, notification_id: int) -> Optional[NotificationRecord]:
        """Fetch one notification by id, or None."""
        try:
            model = self.session.get(NotificationModel, notification_id)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve notification: {e}") from e
        return model.to_domain() if model is not None else None

    def list_for_recipient(
        self, recipient_id: str, pending_only: bool = False
    ) -> List[NotificationRecord]:
        """Notifications owned by a recipient, newest first.

        Args:
            recipient_id: Owning user id
            pending_only: Only return records still awaiting an action

        Returns:
            List of NotificationRecord (possibly empty)
        """
        try:
            stmt = select(NotificationModel).where(NotificationModel.recipient_id == recipient_id)
            if pending_only:
                stmt = stmt.where(NotificationModel.action_status == ActionStatus.NONE.value)
            stmt = stmt.order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            models = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            logger.error(
                f"Error listing notifications for {recipient_id}: {e}", exc_info=True
            )
            raise PersistenceError(f"Failed to list notifications: {e}") from e

        return [model.to_domain() for model in models]

    def mark_read(self, notification_id: int) -> NotificationRecord:
        """Flag a notification as read.

        Raises:
            RecordNotFoundError: If the id is unknown
        """
        model = self._require(notification_id)
        try:
            model.is_read = True
            model.updated_at = format_timestamp(utc_now())
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Error marking notification {notification_id} read: {e}", exc_info=True)
            raise PersistenceError(f"Failed to mark notification read: {e}") from e
        return model.to_domain()

    def update_action_status(
        self, notification_id: int, new_status: ActionStatus
    ) -> NotificationRecord:
        """Apply an action to a notification.

        A successful move also marks the notification read.

        Raises:
            RecordNotFoundError: If the id is unknown
            InvalidTransitionError: If the move is not allowed from the
                current status
        """
        model = self._require(notification_id)
        updated = model.to_domain().with_action(new_status)

        try:
            model.action_status = updated.action_status.value
            model.is_read = updated.is_read
            model.updated_at = format_timestamp(updated.updated_at)
            self.session.flush()
        except SQLAlchemyError as e:
            logger.error(
                f"Error updating action status of notification {notification_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to update action status: {e}") from e

        logger.info(
            f"Notification {notification_id} moved to {updated.action_status.value}",
            extra={
                "event": "notification.action.updated",
                "notification_id": notification_id,
                "action_status": updated.action_status.value,
            },
        )
        return model.to_domain()

    def _require(self, notification_id: int) -> NotificationModel:
        try:
            model = self.session.get(NotificationModel, notification_id)
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve notification: {e}") from e
        if model is None:
            raise RecordNotFoundError(f"Notification {notification_id} not found")
        return model
