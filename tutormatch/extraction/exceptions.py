"""Exceptions raised while turning CVs into text and expertise."""


class ExtractionError(Exception):
    """Base exception for extraction errors."""


class ExtractionFailure(ExtractionError):
    """No usable text could be obtained for a candidate.

    The candidate is excluded from the run; the batch continues.
    """

    def __init__(self, message: str, candidate_id: str = ""):
        self.candidate_id = candidate_id
        super().__init__(message)


class ExpertiseDegraded(ExtractionError):
    """Structured expertise response was missing or malformed.

    Handled inside the expertise extractor, which falls back to empty
    expertise so the candidate still scores on similarity alone.
    """
