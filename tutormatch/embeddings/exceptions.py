"""Exceptions raised by the embedding layer."""


class EmbeddingFailure(Exception):
    """An embedding could not be produced for a text.

    Raised for transport errors, timeouts, empty responses and vectors whose
    dimension differs from the expected one.
    """

    def __init__(self, message: str, cause: Exception = None):
        self.cause = cause
        super().__init__(message)
