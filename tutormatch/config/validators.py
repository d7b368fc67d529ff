"""Soft checks on raw configuration that warn instead of failing."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """Return warnings for legal but suspicious settings.

    Args:
        config_dict: Raw configuration mapping (before pydantic validation)

    Returns:
        List of warning messages
    """
    messages: List[str] = []

    matching = config_dict.get("matching") or {}
    if isinstance(matching, dict):
        push = matching.get("push") or {}
        pull = matching.get("pull") or {}
        push_threshold = push.get("threshold") if isinstance(push, dict) else None
        pull_threshold = pull.get("threshold") if isinstance(pull, dict) else None

        if isinstance(push_threshold, (int, float)) and push_threshold < 0.2:
            messages.append(
                f"Low push threshold ({push_threshold}) may notify most tutors for every course"
            )
        if (
            isinstance(push_threshold, (int, float))
            and isinstance(pull_threshold, (int, float))
            and pull_threshold > push_threshold
        ):
            messages.append(
                f"Pull threshold ({pull_threshold}) is stricter than push threshold "
                f"({push_threshold})"
            )

        if matching.get("run_timeout_seconds") is None and "run_timeout_seconds" in matching:
            messages.append("run_timeout_seconds is null; runs are unbounded")

    email = config_dict.get("email") or {}
    if isinstance(email, dict):
        interval = email.get("min_send_interval_seconds")
        if isinstance(interval, (int, float)) and interval < 0.5:
            messages.append(
                f"Short min_send_interval_seconds ({interval}) may trip SMTP provider rate limits"
            )

    services = config_dict.get("services") or {}
    if isinstance(services, dict):
        max_chars = services.get("max_input_chars")
        if isinstance(max_chars, int) and max_chars > 30000:
            messages.append(
                f"Large max_input_chars ({max_chars}) may exceed model context limits"
            )

    return messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit each message as a UserWarning."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
