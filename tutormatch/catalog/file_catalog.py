"""YAML file-backed catalog of courses and tutors.

Layout::

    courses:
      - id: course-1
        title: Intro to Pharmacology
        description: Drug classes and interactions
        category: Pharmacy
        level: Beginner
    tutors:
      - id: tutor-1
        user_id: user-1
        name: Dana
        email: dana@example.com
        cv_path: cvs/dana.pdf      # relative to the catalog file

Tutors whose CV file cannot be read are still listed, without a document;
the matching run excludes them.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from ..domain.models import CandidateDocument, CandidateProfile, Expertise, TargetItem
from ..extraction.text import infer_media_type
from ..logging import get_logger
from .base import CatalogError, CatalogSource

logger = get_logger(__name__, component="catalog")


class CourseEntry(BaseModel):
    model_config = {"coerce_numbers_to_str": True}

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    category: str = ""
    level: Optional[str] = None

    def to_target(self) -> TargetItem:
        return TargetItem(
            target_id=self.id,
            title=self.title,
            description=self.description,
            category_name=self.category,
            level=self.level,
        )


class TutorEntry(BaseModel):
    model_config = {"coerce_numbers_to_str": True}

    id: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    cv_path: Optional[str] = None
    cv_text: Optional[str] = None
    expertise: Optional[Expertise] = None


class CatalogFile(BaseModel):
    courses: List[CourseEntry] = Field(default_factory=list)
    tutors: List[TutorEntry] = Field(default_factory=list)


class YAMLCatalog(CatalogSource):
    """Catalog read once from a YAML file.

    Args:
        path: Catalog file; relative ``cv_path`` values resolve against its
            directory

    Raises:
        CatalogError: If the file is missing, not YAML, or malformed
    """

    def __init__(self, path):
        self.path = Path(path)
        self._data = self._load()
        self._targets = [course.to_target() for course in self._data.courses]

    def _load(self) -> CatalogFile:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except OSError as e:
            raise CatalogError(f"Cannot read catalog {self.path}: {e}") from e
        except yaml.YAMLError as e:
            raise CatalogError(f"Catalog {self.path} is not valid YAML: {e}") from e

        try:
            data = CatalogFile.model_validate(raw)
        except ValidationError as e:
            raise CatalogError(f"Catalog {self.path} is malformed: {e}") from e

        logger.info(
            f"Loaded catalog with {len(data.courses)} courses and {len(data.tutors)} tutors",
            extra={
                "event": "catalog.loaded",
                "course_count": len(data.courses),
                "tutor_count": len(data.tutors),
            },
        )
        return data

    def list_targets(self) -> List[TargetItem]:
        return list(self._targets)

    def list_candidates(self) -> List[CandidateProfile]:
        return [self._to_candidate(entry) for entry in self._data.tutors]

    def _to_candidate(self, entry: TutorEntry) -> CandidateProfile:
        return CandidateProfile(
            candidate_id=entry.id,
            recipient_id=entry.user_id,
            display_name=entry.name,
            email=entry.email,
            document=self._read_document(entry),
            text=entry.cv_text,
            expertise=entry.expertise,
        )

    def _read_document(self, entry: TutorEntry) -> Optional[CandidateDocument]:
        if not entry.cv_path:
            return None

        cv_file = Path(entry.cv_path)
        if not cv_file.is_absolute():
            cv_file = self.path.parent / cv_file

        try:
            content = cv_file.read_bytes()
        except OSError as e:
            logger.warning(
                f"CV for tutor {entry.id} unreadable: {e}",
                extra={"event": "catalog.cv.unreadable", "candidate_id": entry.id},
            )
            return None

        return CandidateDocument(
            content=content,
            media_type=infer_media_type(cv_file.name),
            filename=cv_file.name,
        )
