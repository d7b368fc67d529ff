"""Matching entry points: CV -> courses (pull) and course -> tutors (push).

Both flows embed their anchor once, score every item on a bounded worker
pool, and rank the buffered results in one pass so the outcome does not
depend on completion order. Per-item failures drop the item; failures on
the anchor abort the run.
"""

import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar
from uuid import uuid4

from ..catalog.base import CatalogSource
from ..config.environment import EnvironmentConfig
from ..config.models import AppConfig
from ..domain.models import CandidateDocument, CandidateProfile, Expertise, TargetItem
from ..embeddings.cache import MemoizedEmbedder
from ..embeddings.client import EmbeddingClient
from ..embeddings.exceptions import EmbeddingFailure
from ..extraction.exceptions import ExtractionFailure
from ..extraction.expertise import ExpertiseExtractor
from ..extraction.text import TextExtractor, infer_media_type
from ..logging import get_logger, log_context, submit_with_context
from ..matching.engine import RankingEngine
from ..matching.models import CandidateMatch, MatchScore
from ..matching.scoring import score_pair
from ..notifications.dispatcher import FanOutDispatcher
from ..notifications.service import NotificationService
from ..providers.factory import build_openai_client
from .models import PullResult, PushRunResult

logger = get_logger(__name__, component="matching")

T = TypeVar("T")

PULL_CANDIDATE_ID = "cv"

EXPECTED_ITEM_FAILURES = (EmbeddingFailure, ExtractionFailure, ValueError)


class MatchingService:
    """Run the pull and push matching flows.

    Args:
        app_config: Application configuration
        catalog: Source of courses and tutors
        embedding_client: Embedding provider wrapper
        expertise_extractor: CV expertise extractor
        dispatcher: Fan-out used by the push flow
        text_extractor: CV text extractor
    """

    def __init__(
        self,
        app_config: AppConfig,
        catalog: CatalogSource,
        embedding_client: EmbeddingClient,
        expertise_extractor: ExpertiseExtractor,
        dispatcher: FanOutDispatcher,
        text_extractor: Optional[TextExtractor] = None,
    ):
        self.app_config = app_config
        self.catalog = catalog
        self.embedding_client = embedding_client
        self.expertise_extractor = expertise_extractor
        self.dispatcher = dispatcher
        self.text_extractor = text_extractor or TextExtractor()
        self.push_engine = RankingEngine(app_config.matching.push)
        self.pull_engine = RankingEngine(app_config.matching.pull)
        # One background push run at a time
        self._background = ThreadPoolExecutor(max_workers=1, thread_name_prefix="push-run")

    # ------------------------------------------------------------------ pull

    def rank_targets_for_candidate_document(
        self, document: CandidateDocument, timeout: Optional[float] = None
    ) -> PullResult:
        """Recommend courses for an uploaded CV.

        Returns a result with ``candidate_unreadable=True`` and no ranking
        when no text can be extracted; no service is called in that case.
        """
        text = self.text_extractor.extract(
            document.content,
            document.media_type or infer_media_type(document.filename),
            document.filename,
        )
        return self.rank_targets_for_candidate_text(text, timeout=timeout)

    def rank_targets_for_candidate_text(
        self, candidate_text: str, timeout: Optional[float] = None
    ) -> PullResult:
        """Recommend courses for CV text.

        Args:
            candidate_text: Extracted CV text
            timeout: Run budget in seconds (defaults to configuration)

        Returns:
            PullResult with the ranked courses

        Raises:
            EmbeddingFailure: If the CV itself cannot be embedded
        """
        deadline = self._deadline(timeout)

        with log_context(run_id=uuid4().hex, flow="pull"):
            if not candidate_text or not candidate_text.strip():
                logger.info(
                    "CV has no extractable text",
                    extra={"event": "match.pull.unreadable"},
                )
                return PullResult(candidate_unreadable=True)

            started = time.monotonic()
            memo = MemoizedEmbedder(self.embedding_client)

            expertise = self.expertise_extractor.extract(candidate_text)
            candidate_vector = memo.embed(candidate_text)

            targets = self.catalog.list_targets()
            logger.info(
                f"Ranking {len(targets)} courses for CV",
                extra={"event": "match.pull.started", "target_count": len(targets)},
            )

            def score_target(target: TargetItem) -> MatchScore:
                with log_context(target_id=target.target_id):
                    target_vector = target.embedding or memo.embed(target.composed_text)
                    return score_pair(PULL_CANDIDATE_ID, candidate_vector, expertise, target, target_vector)

            scores, excluded, partial = self._score_all(
                targets, score_target, deadline, label=lambda t: t.target_id
            )
            ranked = self.pull_engine.rank(scores)

            logger.info(
                f"Pull ranking complete: {len(ranked)} courses returned",
                extra={
                    "event": "match.pull.completed",
                    "returned_count": len(ranked),
                    "qualified_count": ranked.qualified_count,
                    "excluded_count": excluded,
                    "fallback_used": ranked.fallback_used,
                    "partial": partial,
                    "embedding_calls": memo.calls,
                    "duration_seconds": round(time.monotonic() - started, 3),
                },
            )
            return PullResult(
                ranked=ranked,
                expertise=expertise,
                partial=partial,
                excluded_count=excluded,
            )

    # ------------------------------------------------------------------ push

    def notify_candidates_for_new_target(
        self, target: TargetItem, timeout: Optional[float] = None
    ) -> PushRunResult:
        """Score every tutor against a new course and fan out to the qualifiers.

        Args:
            target: The new course
            timeout: Run budget in seconds for the scoring phase

        Returns:
            PushRunResult

        Raises:
            EmbeddingFailure: If the course itself cannot be embedded
            PersistFailure: If the notifications could not be stored
        """
        deadline = self._deadline(timeout)

        with log_context(run_id=uuid4().hex, flow="push", target_id=target.target_id):
            started = time.monotonic()
            memo = MemoizedEmbedder(self.embedding_client)
            target_vector = target.embedding or memo.embed(target.composed_text)

            candidates = self.catalog.list_candidates()
            logger.info(
                f"Scoring {len(candidates)} tutors for course {target.target_id}",
                extra={"event": "match.push.started", "candidate_count": len(candidates)},
            )

            by_id: Dict[str, CandidateProfile] = {}
            for candidate in candidates:
                by_id.setdefault(candidate.candidate_id, candidate)

            def score_candidate(candidate: CandidateProfile) -> MatchScore:
                with log_context(candidate_id=candidate.candidate_id):
                    return self._score_candidate(candidate, target, target_vector, memo)

            scores, excluded, partial = self._score_all(
                candidates, score_candidate, deadline, label=lambda c: c.candidate_id
            )
            ranked = self.push_engine.rank(scores)

            matches = [CandidateMatch(by_id[score.candidate_id], score) for score in ranked.items]
            fanout = self.dispatcher.dispatch(target, matches)

            result = PushRunResult(
                target_id=target.target_id,
                notified_count=fanout.notified_count,
                qualified_count=ranked.qualified_count,
                duplicate_count=fanout.duplicate_count,
                excluded_count=excluded,
                skipped_no_recipient=fanout.skipped_no_recipient,
                emails_sent=fanout.emails_sent,
                emails_failed=fanout.emails_failed,
                partial=partial,
                attempts=fanout.attempts,
            )

            logger.info(
                f"Push run complete: {result.notified_count} tutors notified",
                extra={
                    "event": "match.push.completed",
                    "notified_count": result.notified_count,
                    "qualified_count": result.qualified_count,
                    "duplicate_count": result.duplicate_count,
                    "excluded_count": result.excluded_count,
                    "emails_sent": result.emails_sent,
                    "emails_failed": result.emails_failed,
                    "partial": partial,
                    "embedding_calls": memo.calls,
                    "duration_seconds": round(time.monotonic() - started, 3),
                },
            )
            return result

    def submit_new_target(self, target: TargetItem) -> "Future[PushRunResult]":
        """Run the push flow in the background.

        Failures are logged when the run finishes and stay available on the
        returned future.
        """
        future = submit_with_context(self._background, self.notify_candidates_for_new_target, target)
        future.add_done_callback(lambda f: self._log_background_outcome(target, f))
        return future

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting background runs; optionally wait for queued ones."""
        self._background.shutdown(wait=wait)

    # --------------------------------------------------------------- helpers

    def _score_candidate(
        self,
        candidate: CandidateProfile,
        target: TargetItem,
        target_vector: Sequence[float],
        memo: MemoizedEmbedder,
    ) -> MatchScore:
        expertise = candidate.expertise
        vector = candidate.embedding

        if expertise is None or vector is None:
            text = self._candidate_text(candidate)
            if expertise is None:
                expertise = self.expertise_extractor.extract(text)
            if vector is None:
                vector = memo.embed(text)

        return score_pair(candidate.candidate_id, vector, expertise, target, target_vector)

    def _candidate_text(self, candidate: CandidateProfile) -> str:
        text = candidate.text or ""
        if not text.strip() and candidate.document is not None:
            document = candidate.document
            text = self.text_extractor.extract(
                document.content,
                document.media_type or infer_media_type(document.filename),
                document.filename,
            )
        if not text.strip():
            raise ExtractionFailure(
                f"No CV text available for tutor {candidate.candidate_id}",
                candidate_id=candidate.candidate_id,
            )
        return text

    def _score_all(
        self,
        items: Sequence[T],
        worker: Callable[[T], MatchScore],
        deadline: Optional[float],
        label: Callable[[T], str],
    ) -> Tuple[List[MatchScore], int, bool]:
        """Score items concurrently within the run budget.

        Returns:
            (scores in item order, excluded count, partial flag)
        """
        if not items:
            return [], 0, False

        pool = ThreadPoolExecutor(
            max_workers=self.app_config.matching.max_workers, thread_name_prefix="match-worker"
        )
        try:
            futures = [submit_with_context(pool, worker, item) for item in items]
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            done, not_done = wait(futures, timeout=remaining)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        partial = bool(not_done)
        if partial:
            logger.warning(
                f"Run budget exhausted: {len(not_done)} of {len(items)} items abandoned",
                extra={"event": "match.run.partial", "abandoned_count": len(not_done)},
            )

        scores: List[MatchScore] = []
        excluded = 0
        for item, future in zip(items, futures):
            if future not in done:
                continue
            try:
                scores.append(future.result())
            except Exception as e:
                # One item never aborts the batch
                excluded += 1
                logger.warning(
                    f"Item {label(item)} excluded: {e}",
                    exc_info=not isinstance(e, EXPECTED_ITEM_FAILURES),
                    extra={
                        "event": "match.item.excluded",
                        "item_id": label(item),
                        "error_type": type(e).__name__,
                    },
                )

        return scores, excluded, partial

    def _deadline(self, timeout: Optional[float]) -> Optional[float]:
        budget = timeout if timeout is not None else self.app_config.matching.run_timeout_seconds
        return None if budget is None else time.monotonic() + budget

    @staticmethod
    def _log_background_outcome(target: TargetItem, future: "Future[PushRunResult]") -> None:
        if future.cancelled():
            logger.warning(
                f"Background push run for course {target.target_id} was cancelled",
                extra={"event": "match.push.cancelled", "target_id": target.target_id},
            )
            return

        error = future.exception()
        if error is not None:
            logger.error(
                f"Background push run for course {target.target_id} failed: {error}",
                exc_info=(type(error), error, error.__traceback__),
                extra={
                    "event": "match.push.failed",
                    "target_id": target.target_id,
                    "error_type": type(error).__name__,
                },
            )


def build_matching_service(
    app_config: AppConfig, env_config: EnvironmentConfig, catalog: CatalogSource
) -> MatchingService:
    """Wire a MatchingService from configuration.

    The database must already be initialized for the push flow.
    """
    services = app_config.services
    client = build_openai_client(env_config, services)

    notification_service = NotificationService(env_config, app_config.email)
    dispatcher = FanOutDispatcher(notification_service, max_workers=app_config.email.max_workers)

    return MatchingService(
        app_config=app_config,
        catalog=catalog,
        embedding_client=EmbeddingClient(
            client,
            model=services.embedding_model,
            dimensions=services.embedding_dimensions,
            max_input_chars=services.max_input_chars,
        ),
        expertise_extractor=ExpertiseExtractor(
            client,
            model=services.chat_model,
            temperature=services.expertise_temperature,
            max_input_chars=services.max_input_chars,
        ),
        dispatcher=dispatcher,
    )
