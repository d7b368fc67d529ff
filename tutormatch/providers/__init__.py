"""Factories for external service clients."""

from .factory import build_openai_client

__all__ = ["build_openai_client"]
