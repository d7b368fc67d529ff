"""CV text and expertise extraction."""

from .exceptions import ExpertiseDegraded, ExtractionError, ExtractionFailure
from .expertise import ExpertiseExtractor, parse_expertise_response
from .text import TextExtractor, infer_media_type

__all__ = [
    "TextExtractor",
    "infer_media_type",
    "ExpertiseExtractor",
    "parse_expertise_response",
    "ExtractionError",
    "ExtractionFailure",
    "ExpertiseDegraded",
]
