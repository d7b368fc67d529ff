"""Fan-out of a new course to every qualifying tutor.

Order of operations for one course:
1. Drop matches whose tutor has no owning account (no recipient)
2. Persist all in-app notifications in one idempotent bulk write
3. Email the tutors whose notification was newly created and who have a
   valid address, on a bounded worker pool

A failed bulk write aborts the fan-out before any email is sent. Email
failures are per recipient and never undo the stored notification.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, ContextManager, Dict, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..domain.models import CandidateProfile, TargetItem
from ..logging import get_logger, submit_with_context
from ..matching.models import CandidateMatch
from ..persistence.database import get_session
from ..persistence.exceptions import PersistenceError, PersistFailure
from ..persistence.repositories import NotificationRepository
from .models import EMAIL_FAILED, EMAIL_SENT, DispatchAttempt, FanOutResult, NotificationError
from .payloads import build_course_match_record
from .service import NotificationService
from .smtp_client import normalize_recipient

logger = get_logger(__name__, component="fanout")


class FanOutDispatcher:
    """Persist and email course-match notifications for one course at a time.

    Args:
        notification_service: Email renderer/sender (owns the rate limiter)
        session_scope: Factory of transactional session scopes
        max_workers: Concurrent email workers
    """

    def __init__(
        self,
        notification_service: NotificationService,
        session_scope: Callable[[], ContextManager[Session]] = get_session,
        max_workers: int = 4,
    ):
        self.notification_service = notification_service
        self.session_scope = session_scope
        self.max_workers = max_workers

    def dispatch(self, target: TargetItem, matches: Sequence[CandidateMatch]) -> FanOutResult:
        """Fan out one course to its qualifying tutors.

        Args:
            target: The new course
            matches: Qualifying tutors with their scores

        Returns:
            FanOutResult with created notifications and per-recipient attempts

        Raises:
            PersistFailure: If the bulk write failed (no email sent)
        """
        result = FanOutResult()
        eligible: List[CandidateMatch] = []

        for match in matches:
            if match.candidate.recipient_id is None:
                result.skipped_no_recipient += 1
                logger.info(
                    f"Tutor {match.candidate.candidate_id} has no linked account, skipping",
                    extra={
                        "event": "fanout.skipped.no_recipient",
                        "candidate_id": match.candidate.candidate_id,
                    },
                )
                continue
            eligible.append(match)

        if not eligible:
            return result

        records = [build_course_match_record(target, m.candidate, m.score) for m in eligible]
        bulk = self._persist(records)

        result.created = bulk.created
        result.duplicate_count = len(bulk.duplicates)

        logger.info(
            f"Stored {len(bulk.created)} notifications for course {target.target_id} "
            f"({len(bulk.duplicates)} already present)",
            extra={
                "event": "fanout.persisted",
                "created_count": len(bulk.created),
                "duplicate_count": len(bulk.duplicates),
            },
        )

        candidates: Dict[str, CandidateProfile] = {m.candidate.candidate_id: m.candidate for m in eligible}
        for duplicate in bulk.duplicates:
            result.attempts.append(
                DispatchAttempt(
                    candidate_id=duplicate.candidate_id,
                    recipient_id=duplicate.recipient_id,
                    notification_persisted=False,
                )
            )

        result.attempts.extend(self._send_emails(target, bulk.created, candidates))
        return result

    def _persist(self, records):
        try:
            with self.session_scope() as session:
                return NotificationRepository(session).bulk_create(records)
        except PersistFailure:
            raise
        except (PersistenceError, SQLAlchemyError) as e:
            logger.error(
                f"Notification batch could not be committed: {e}",
                exc_info=True,
                extra={"event": "fanout.persist.failed"},
            )
            raise PersistFailure(f"Failed to commit notification batch: {e}") from e

    def _send_emails(self, target, created, candidates) -> List[DispatchAttempt]:
        attempts: List[DispatchAttempt] = []
        pending = []

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="fanout-email") as pool:
            for record in created:
                candidate = candidates[record.candidate_id]
                address = normalize_recipient(candidate.email)
                if address is None:
                    logger.info(
                        f"Tutor {candidate.candidate_id} has no valid email, notification only",
                        extra={"event": "fanout.email.skipped", "candidate_id": candidate.candidate_id},
                    )
                    attempts.append(
                        DispatchAttempt(
                            candidate_id=record.candidate_id,
                            recipient_id=record.recipient_id,
                            notification_persisted=True,
                        )
                    )
                    continue

                future = submit_with_context(pool, self._deliver, target, candidate, address, record.recipient_id)
                pending.append(future)

            attempts.extend(future.result() for future in pending)

        return attempts

    def _deliver(self, target, candidate, address, recipient_id) -> DispatchAttempt:
        attempt = DispatchAttempt(
            candidate_id=candidate.candidate_id,
            recipient_id=recipient_id,
            notification_persisted=True,
        )
        try:
            attempt.attempts = self.notification_service.send_course_match(target, candidate, address)
            attempt.email_status = EMAIL_SENT
        except NotificationError as e:
            attempt.email_status = EMAIL_FAILED
            attempt.attempts = getattr(e, "attempts", 0)
            attempt.error = str(e)
            logger.error(
                f"Course-match email to tutor {candidate.candidate_id} failed: {e}",
                extra={
                    "event": "fanout.email.failed",
                    "candidate_id": candidate.candidate_id,
                    "error_type": type(e).__name__,
                },
            )
        return attempt
