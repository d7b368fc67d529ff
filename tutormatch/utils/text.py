"""Text helpers shared by the scorer, the service clients and email rendering."""

from typing import Iterable


def clip_for_service(text: str, max_chars: int) -> str:
    """Clip text to the character budget accepted by the external services.

    This is a hard prefix cut (no ellipsis) so the same input always maps to
    the same service payload, which keeps embedding memo keys stable.

    Args:
        text: Text to clip
        max_chars: Maximum number of characters to keep

    Returns:
        The first ``max_chars`` characters of ``text``
    """
    if not text:
        return ""
    return text[:max_chars]


def contains_any(text: str, terms: Iterable[str]) -> bool:
    """Case-insensitive substring check against a list of terms.

    Empty or whitespace-only terms never match.

    Args:
        text: Haystack text
        terms: Candidate substrings

    Returns:
        True if any non-empty term occurs in ``text``

    Example:
        >>> contains_any("Clinical Pharmacy", ["pharmacy", ""])
        True
        >>> contains_any("Physics", [""])
        False
    """
    haystack = (text or "").lower()
    for term in terms:
        needle = (term or "").strip().lower()
        if needle and needle in haystack:
            return True
    return False


def truncate_text(text: str, max_length: int = 500, suffix: str = "...") -> str:
    """Truncate text to maximum length, adding suffix if truncated.

    Tries to break at word boundaries for cleaner truncation.

    Args:
        text: Text to truncate
        max_length: Maximum length (including suffix)
        suffix: Suffix to add if truncated

    Returns:
        Truncated text with suffix if needed

    Example:
        >>> truncate_text("This is a very long text that needs truncating", max_length=30)
        'This is a very long text...'
    """
    if not text or len(text) <= max_length:
        return text

    truncate_at = max_length - len(suffix)
    if truncate_at <= 0:
        return suffix[:max_length]

    truncated = text[:truncate_at]

    last_space = truncated.rfind(" ")
    if last_space > truncate_at * 0.8:
        truncated = truncated[:last_space]

    return truncated.rstrip() + suffix
