"""Unit tests for the matching service.

Covers both flows end to end against in-process fakes:
- pull: CV -> ranked courses (fallback fill, boosts, unreadable CVs)
- push: new course -> qualifying tutors -> fan-out (exclusions, memo reuse)
- run budget expiry (partial results) and background push runs
"""

import io
import json
import logging
from unittest.mock import Mock

import pytest
from docx import Document

from tutormatch.config.environment import EnvironmentConfig
from tutormatch.config.models import AppConfig
from tutormatch.domain.models import CandidateDocument, Expertise
from tutormatch.embeddings.client import EmbeddingClient
from tutormatch.embeddings.exceptions import EmbeddingFailure
from tutormatch.extraction.expertise import ExpertiseExtractor
from tutormatch.extraction.text import DOCX_MEDIA_TYPE, PDF_MEDIA_TYPE
from tutormatch.matching.boosts import CATEGORY_BOOST
from tutormatch.notifications.dispatcher import FanOutDispatcher
from tutormatch.notifications.models import FanOutResult
from tutormatch.persistence import PersistFailure, close_database, init_database
from tutormatch.pipeline.service import PULL_CANDIDATE_ID, MatchingService, build_matching_service
from tests.helpers import (
    FakeOpenAI,
    InMemoryCatalog,
    RecordingNotificationService,
    make_candidate,
    make_target,
    vector_with_similarity,
)

MATH_REPLY = json.dumps({"primaryField": "mathematics", "relatedFields": ["algebra"], "keywords": []})


@pytest.fixture
def database():
    init_database("sqlite:///:memory:")
    yield
    close_database()


def build_service(fake_openai, catalog, notifier=None, dispatcher=None, matching=None, text_extractor=None):
    app_config = AppConfig(matching=matching or {})
    return MatchingService(
        app_config=app_config,
        catalog=catalog,
        embedding_client=EmbeddingClient(fake_openai),
        expertise_extractor=ExpertiseExtractor(fake_openai),
        dispatcher=dispatcher or FanOutDispatcher(notifier or RecordingNotificationService()),
        text_extractor=text_extractor,
    )


@pytest.fixture
def service_factory():
    """Build services and shut them down after the test."""
    services = []

    def factory(*args, **kwargs):
        service = build_service(*args, **kwargs)
        services.append(service)
        return service

    yield factory
    for service in services:
        service.shutdown(wait=True)


@pytest.fixture
def courses():
    return [
        make_target("c-algebra", title="Algebra I", category_name="Mathematics"),
        make_target("c-geometry", title="Geometry", description="Shapes", category_name="Mathematics"),
        make_target("c-history", title="World History", description="Empires", category_name="Humanities"),
    ]


class TestPullFlow:
    @pytest.fixture
    def fake(self):
        return FakeOpenAI(
            vectors={
                "my cv": [1.0, 0.0],
                "Algebra": vector_with_similarity(0.9),
                "Geometry": vector_with_similarity(0.3),
                "History": vector_with_similarity(0.1),
            },
        )

    def test_fallback_fills_to_minimum(self, fake, courses, service_factory):
        service = service_factory(fake, InMemoryCatalog(targets=courses))

        result = service.rank_targets_for_candidate_text("my cv")

        assert [s.target_id for s in result.ranked] == ["c-algebra", "c-geometry", "c-history"]
        assert result.ranked.qualified_count == 2
        assert result.fallback_used is True
        assert result.partial is False
        assert all(s.candidate_id == PULL_CANDIDATE_ID for s in result.ranked)

    def test_seven_qualified_returned_without_fallback(self, service_factory):
        fake = FakeOpenAI(vectors={"my cv": [1.0, 0.0]}, default_vector=vector_with_similarity(0.8))
        targets = [make_target(f"c{i}", title=f"Course {i}") for i in range(7)]
        service = service_factory(fake, InMemoryCatalog(targets=targets))

        result = service.rank_targets_for_candidate_text("my cv")

        assert len(result.ranked) == 7
        assert result.fallback_used is False
        # Equal scores keep catalog order
        assert [s.target_id for s in result.ranked] == [f"c{i}" for i in range(7)]

    def test_expertise_boosts_category(self, courses, service_factory):
        fake = FakeOpenAI(
            vectors={"my cv": [1.0, 0.0]},
            default_vector=vector_with_similarity(0.5),
            default_reply=MATH_REPLY,
        )
        service = service_factory(fake, InMemoryCatalog(targets=courses))

        result = service.rank_targets_for_candidate_text("my cv")

        scores = {s.target_id: s for s in result.ranked}
        assert result.expertise.primary_field == "mathematics"
        assert scores["c-geometry"].breakdown.category == CATEGORY_BOOST
        assert scores["c-history"].boost == 0.0
        assert result.ranked.items[-1].target_id == "c-history"

    def test_precomputed_course_vectors_are_reused(self, courses, service_factory):
        fake = FakeOpenAI(vectors={"my cv": [1.0, 0.0]})
        for course in courses:
            course.embedding = [1.0, 0.0]
        service = service_factory(fake, InMemoryCatalog(targets=courses))

        result = service.rank_targets_for_candidate_text("my cv")

        assert len(result.ranked) == 3
        assert fake.embeddings.inputs == ["my cv"]

    def test_unscorable_course_is_excluded(self, courses, service_factory):
        fake = FakeOpenAI(
            vectors={"my cv": [1.0, 0.0], "Algebra": [1.0, 0.0], "Geometry": [0.0, 1.0]},
            fail_on=["History"],
        )
        service = service_factory(fake, InMemoryCatalog(targets=courses))

        result = service.rank_targets_for_candidate_text("my cv")

        assert result.excluded_count == 1
        assert "c-history" not in [s.target_id for s in result.ranked]

    def test_cv_embedding_failure_aborts(self, fake, courses, service_factory):
        fake.embeddings.fail_on.add("my cv")
        service = service_factory(fake, InMemoryCatalog(targets=courses))

        with pytest.raises(EmbeddingFailure):
            service.rank_targets_for_candidate_text("my cv")

    def test_unreadable_document_calls_no_service(self, fake, courses, service_factory):
        service = service_factory(fake, InMemoryCatalog(targets=courses))

        result = service.rank_targets_for_candidate_document(
            CandidateDocument(content=b"\xff\xfe\xfa", media_type="text/plain", filename="cv.txt")
        )

        assert result.candidate_unreadable is True
        assert len(result.ranked) == 0
        assert fake.embeddings.inputs == []
        assert fake.chat.completions.requests == []

    def test_docx_document(self, fake, courses, service_factory):
        document = Document()
        document.add_paragraph("my cv: algebra teacher")
        buffer = io.BytesIO()
        document.save(buffer)
        service = service_factory(fake, InMemoryCatalog(targets=courses))

        result = service.rank_targets_for_candidate_document(
            CandidateDocument(content=buffer.getvalue(), media_type=DOCX_MEDIA_TYPE, filename="cv.docx")
        )

        assert result.candidate_unreadable is False
        assert result.ranked.items[0].target_id == "c-algebra"

    def test_run_budget_returns_partial_result(self, service_factory):
        fake = FakeOpenAI(
            vectors={"my cv": [1.0, 0.0], "Algebra": [1.0, 0.0]},
            default_vector=[0.0, 1.0],
            block_on=["Slow"],
        )
        targets = [make_target("c-algebra", title="Algebra I"), make_target("c-slow", title="Slow Course")]
        service = service_factory(fake, InMemoryCatalog(targets=targets))

        try:
            result = service.rank_targets_for_candidate_text("my cv", timeout=0.3)
        finally:
            fake.embeddings.release.set()

        assert result.partial is True
        assert [s.target_id for s in result.ranked] == ["c-algebra"]
        assert result.excluded_count == 0

    def test_empty_catalog(self, fake, service_factory):
        result = service_factory(fake, InMemoryCatalog()).rank_targets_for_candidate_text("my cv")
        assert len(result.ranked) == 0
        assert result.fallback_used is False


class TestPushFlow:
    @pytest.fixture
    def fake(self):
        return FakeOpenAI(
            vectors={
                "Algebra": [1.0, 0.0],
                "cv-a": vector_with_similarity(0.9),
                "cv-b": vector_with_similarity(0.5),
                "cv-c": vector_with_similarity(0.2),
                "shared": vector_with_similarity(0.8),
            },
            fail_on=["cv-broken"],
        )

    @pytest.fixture
    def target(self):
        return make_target("course-1", title="Algebra I")

    def test_notifies_qualifying_tutors(self, database, fake, target, service_factory):
        notifier = RecordingNotificationService()
        candidates = [make_candidate("a"), make_candidate("b"), make_candidate("c")]
        service = service_factory(fake, InMemoryCatalog(candidates=candidates), notifier=notifier)

        result = service.notify_candidates_for_new_target(target)

        assert result.target_id == "course-1"
        assert result.qualified_count == 2
        assert result.notified_count == 2
        assert result.emails_sent == 2
        assert notifier.recipients == ["a@example.com", "b@example.com"]

    def test_failed_embedding_excluded_from_notifications(self, database, fake, target, service_factory):
        notifier = RecordingNotificationService()
        candidates = [make_candidate("a"), make_candidate("broken"), make_candidate("b")]
        service = service_factory(fake, InMemoryCatalog(candidates=candidates), notifier=notifier)

        result = service.notify_candidates_for_new_target(target)

        assert result.excluded_count == 1
        assert result.notified_count == 2
        assert "broken@example.com" not in notifier.recipients

    @pytest.mark.parametrize(
        "content,media_type,filename",
        [
            (b"%PDF-1.4 garbage", PDF_MEDIA_TYPE, "cv.pdf"),
            (b"not a zip file", DOCX_MEDIA_TYPE, "cv.docx"),
            (b"\xff\xfe\xfa", "text/plain", "cv.txt"),
        ],
    )
    def test_unreadable_document_excludes_only_that_tutor(
        self, database, fake, target, service_factory, content, media_type, filename
    ):
        notifier = RecordingNotificationService()
        unreadable = make_candidate(
            "unreadable",
            text="",
            document=CandidateDocument(content=content, media_type=media_type, filename=filename),
        )
        candidates = [make_candidate("a"), unreadable]
        service = service_factory(fake, InMemoryCatalog(candidates=candidates), notifier=notifier)

        result = service.notify_candidates_for_new_target(target)

        assert result.notified_count == 1
        assert result.excluded_count == 1
        assert notifier.recipients == ["a@example.com"]
        assert len(fake.embeddings.inputs) == 2

    def test_unexpected_worker_error_excludes_item(self, database, fake, target, service_factory, caplog):
        notifier = RecordingNotificationService()
        extractor = Mock()
        extractor.extract.side_effect = RuntimeError("parser crashed")
        document_only = make_candidate(
            "doc", text="", document=CandidateDocument(content=b"%PDF-1.4", media_type=PDF_MEDIA_TYPE)
        )
        service = service_factory(
            fake,
            InMemoryCatalog(candidates=[make_candidate("a"), document_only]),
            notifier=notifier,
            text_extractor=extractor,
        )

        with caplog.at_level(logging.WARNING):
            result = service.notify_candidates_for_new_target(target)

        assert result.notified_count == 1
        assert result.excluded_count == 1
        excluded = [r for r in caplog.records if getattr(r, "event", None) == "match.item.excluded"]
        assert [r.error_type for r in excluded] == ["RuntimeError"]

    def test_tutor_without_text_or_matching_dimension_excluded(self, database, fake, target, service_factory):
        candidates = [
            make_candidate("a"),
            make_candidate("empty", text=""),
            make_candidate("odd", embedding=[1.0, 0.0, 0.0], expertise=Expertise.empty()),
        ]
        service = service_factory(fake, InMemoryCatalog(candidates=candidates))

        result = service.notify_candidates_for_new_target(target)

        assert result.excluded_count == 2
        assert result.notified_count == 1

    def test_course_and_shared_texts_embedded_once(self, database, fake, target, service_factory):
        candidates = [make_candidate(f"t{i}", text="shared cv text") for i in range(5)]
        service = service_factory(fake, InMemoryCatalog(candidates=candidates))

        result = service.notify_candidates_for_new_target(target)

        assert result.notified_count == 5
        assert fake.embeddings.calls_containing("Algebra") == 1
        assert fake.embeddings.calls_containing("shared") == 1

    def test_precomputed_profiles_skip_services(self, database, fake, target, service_factory):
        candidate = make_candidate("a", embedding=[1.0, 0.0], expertise=Expertise(primary_field="mathematics"))
        service = service_factory(fake, InMemoryCatalog(candidates=[candidate]))

        result = service.notify_candidates_for_new_target(target)

        assert result.notified_count == 1
        assert fake.embeddings.calls_containing("cv-a") == 0
        assert fake.chat.completions.requests == []

    def test_matches_handed_over_best_first(self, fake, target, service_factory):
        dispatcher = Mock()
        dispatcher.dispatch.return_value = FanOutResult()
        candidates = [make_candidate("b"), make_candidate("a"), make_candidate("c")]
        service = service_factory(fake, InMemoryCatalog(candidates=candidates), dispatcher=dispatcher)

        service.notify_candidates_for_new_target(target)

        called_target, matches = dispatcher.dispatch.call_args[0]
        assert called_target is target
        assert [m.candidate.candidate_id for m in matches] == ["a", "b"]

    def test_repeated_profile_notified_once(self, fake, target, service_factory):
        dispatcher = Mock()
        dispatcher.dispatch.return_value = FanOutResult()
        candidates = [make_candidate("a"), make_candidate("a")]
        service = service_factory(fake, InMemoryCatalog(candidates=candidates), dispatcher=dispatcher)

        service.notify_candidates_for_new_target(target)

        _, matches = dispatcher.dispatch.call_args[0]
        assert len(matches) == 1

    def test_second_run_reports_duplicates(self, database, fake, target, service_factory):
        notifier = RecordingNotificationService()
        candidates = [make_candidate("a"), make_candidate("b")]
        service = service_factory(fake, InMemoryCatalog(candidates=candidates), notifier=notifier)
        service.notify_candidates_for_new_target(target)

        result = service.notify_candidates_for_new_target(target)

        assert result.notified_count == 0
        assert result.duplicate_count == 2
        assert len(notifier.sent) == 2

    def test_custom_threshold(self, database, fake, target, service_factory):
        candidates = [make_candidate("a"), make_candidate("b"), make_candidate("c")]
        service = service_factory(
            fake, InMemoryCatalog(candidates=candidates), matching={"push": {"threshold": 0.1}}
        )
        assert service.notify_candidates_for_new_target(target).notified_count == 3

    def test_course_embedding_failure_aborts_before_fanout(self, fake, service_factory):
        dispatcher = Mock()
        service = service_factory(fake, InMemoryCatalog(candidates=[make_candidate("a")]), dispatcher=dispatcher)

        with pytest.raises(EmbeddingFailure):
            service.notify_candidates_for_new_target(make_target("course-x", title="cv-broken course"))

        dispatcher.dispatch.assert_not_called()

    def test_persist_failure_propagates(self, fake, target, service_factory):
        dispatcher = Mock()
        dispatcher.dispatch.side_effect = PersistFailure("disk full")
        service = service_factory(fake, InMemoryCatalog(candidates=[make_candidate("a")]), dispatcher=dispatcher)

        with pytest.raises(PersistFailure):
            service.notify_candidates_for_new_target(target)

    def test_run_budget_returns_partial_result(self, database, target, service_factory):
        fake = FakeOpenAI(
            vectors={"Algebra": [1.0, 0.0], "cv-a": [1.0, 0.0]},
            default_vector=[1.0, 0.0],
            block_on=["cv-slow"],
        )
        notifier = RecordingNotificationService()
        candidates = [make_candidate("a"), make_candidate("slow")]
        service = service_factory(fake, InMemoryCatalog(candidates=candidates), notifier=notifier)

        try:
            result = service.notify_candidates_for_new_target(target, timeout=0.3)
        finally:
            fake.embeddings.release.set()

        assert result.partial is True
        assert result.notified_count == 1
        assert notifier.recipients == ["a@example.com"]


class TestBackgroundRuns:
    def test_submit_new_target(self, database, service_factory):
        fake = FakeOpenAI(default_vector=[1.0, 0.0])
        notifier = RecordingNotificationService()
        service = service_factory(fake, InMemoryCatalog(candidates=[make_candidate("a")]), notifier=notifier)

        result = service.submit_new_target(make_target("course-1")).result(timeout=5)

        assert result.notified_count == 1
        assert notifier.recipients == ["a@example.com"]

    def test_background_failure_is_logged(self, caplog):
        fake = FakeOpenAI(fail_on=["Algebra"])
        service = build_service(fake, InMemoryCatalog(candidates=[make_candidate("a")]), dispatcher=Mock())

        with caplog.at_level(logging.ERROR):
            future = service.submit_new_target(make_target("course-1"))
            service.shutdown(wait=True)

        assert isinstance(future.exception(), EmbeddingFailure)
        assert any(getattr(r, "event", None) == "match.push.failed" for r in caplog.records)


class TestBuildMatchingService:
    def test_wires_configured_models(self):
        app_config = AppConfig(
            services={"chat_model": "gpt-4o", "embedding_model": "text-embedding-3-large", "embedding_dimensions": 3072},
            matching={"push": {"threshold": 0.5}},
        )
        env_config = EnvironmentConfig(
            openai_api_key="sk-test",
            smtp_host="smtp.example.com",
            smtp_port=587,
            smtp_user=None,
            smtp_pass=None,
            sender_address="courses@example.com",
        )

        service = build_matching_service(app_config, env_config, InMemoryCatalog())
        try:
            assert service.embedding_client.model == "text-embedding-3-large"
            assert service.embedding_client.dimensions == 3072
            assert service.expertise_extractor.model == "gpt-4o"
            assert service.push_engine.policy.threshold == 0.5
        finally:
            service.shutdown()
