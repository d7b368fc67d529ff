"""Tests for the YAML-backed course/tutor catalog."""

from pathlib import Path

import pytest

from tutormatch.catalog import CatalogError, YAMLCatalog
from tutormatch.extraction.text import PDF_MEDIA_TYPE

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def catalog():
    return YAMLCatalog(FIXTURES_DIR / "catalog.yaml")


class TestYAMLCatalog:
    """Test catalog loading and conversion to domain models."""

    def test_lists_courses(self, catalog):
        targets = catalog.list_targets()

        assert [t.target_id for t in targets] == ["101", "course-algebra"]
        assert targets[0].category_name == "Pharmacy"
        assert targets[0].level == "Beginner"
        assert targets[1].level is None

    def test_numeric_ids_become_strings(self, catalog):
        dana = catalog.list_candidates()[0]

        assert dana.candidate_id == "7"
        assert dana.recipient_id == "42"

    def test_cv_path_resolved_relative_to_catalog(self, catalog):
        dana = catalog.list_candidates()[0]

        assert dana.document is not None
        assert dana.document.filename == "dana.txt"
        assert dana.document.content.startswith(b"Dana Doe")

    def test_inline_text_and_expertise_kept(self, catalog):
        sam = catalog.list_candidates()[1]

        assert sam.document is None
        assert "algebra" in sam.text
        assert sam.expertise.primary_field == "mathematics"
        assert sam.expertise.related_fields == ["algebra"]
        assert sam.expertise.keywords == ["equations"]

    def test_unreadable_cv_still_listed(self, catalog):
        lee = catalog.list_candidates()[2]

        assert lee.candidate_id == "tutor-missing-cv"
        assert lee.document is None
        assert lee.recipient_id is None

    def test_get_target(self, catalog):
        assert catalog.get_target("course-algebra").title == "Algebra I"
        assert catalog.get_target("101").title == "Intro to Pharmacology"
        assert catalog.get_target("nope") is None

    def test_list_targets_returns_copy(self, catalog):
        catalog.list_targets().clear()
        assert len(catalog.list_targets()) == 2

    def test_absolute_pdf_path(self, tmp_path):
        cv = tmp_path / "cv.pdf"
        cv.write_bytes(b"%PDF-1.4")
        path = tmp_path / "catalog.yaml"
        path.write_text(f"tutors:\n  - id: t1\n    cv_path: {cv}\n")

        candidate = YAMLCatalog(path).list_candidates()[0]

        assert candidate.document.media_type == PDF_MEDIA_TYPE

    def test_empty_file(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("")

        catalog = YAMLCatalog(path)

        assert catalog.list_targets() == []
        assert catalog.list_candidates() == []


class TestCatalogErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(CatalogError, match="Cannot read catalog"):
            YAMLCatalog(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("courses: [\n  - id: 1\n")

        with pytest.raises(CatalogError, match="not valid YAML"):
            YAMLCatalog(path)

    def test_malformed_entries(self, tmp_path):
        path = tmp_path / "catalog.yaml"
        path.write_text("courses:\n  - description: no id or title\n")

        with pytest.raises(CatalogError, match="malformed"):
            YAMLCatalog(path)
