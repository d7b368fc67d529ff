"""Structured expertise extraction from CV text via a chat-completion model.

The model is asked for strict JSON of the shape::

    {"primaryField": "...", "relatedFields": ["..."], "keywords": ["..."]}

The response is validated field by field. Any deviation (surrounding prose,
wrong types, missing keys) degrades to empty expertise: the tutor still takes
part in matching, only the keyword boosts are lost.
"""

import json
from typing import Any

import openai

from ..domain.models import Expertise
from ..logging import get_logger
from ..utils.text import clip_for_service
from .exceptions import ExpertiseDegraded

logger = get_logger(__name__, component="extraction")

SYSTEM_PROMPT = "You are an assistant that extracts structured teaching expertise from CV text."

INSTRUCTIONS = """
You will receive the text of a tutor's CV.

1) Infer:
   - the main professional field (e.g. "pharmacy", "mathematics", "computer science", "English language", "physics", "biology").
   - 3-8 related subfields or topics (e.g. "pharmacology", "clinical pharmacy", "organic chemistry").
   - 5-15 important keywords that capture subjects they could teach.

2) Reply ONLY in strict JSON with this shape:
{
  "primaryField": "...",
  "relatedFields": ["...", "..."],
  "keywords": ["...", "..."]
}
Do not add any explanation text.
""".strip()

EXPECTED_KEYS = ("primaryField", "relatedFields", "keywords")


def _string_list(value: Any, field: str) -> list:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ExpertiseDegraded(f"'{field}' must be a list of strings")
    return value


def parse_expertise_response(raw: str) -> Expertise:
    """Validate a raw model reply and convert it to Expertise.

    Args:
        raw: Message content returned by the chat model

    Returns:
        Parsed Expertise

    Raises:
        ExpertiseDegraded: If the reply is not exactly the expected JSON object
    """
    if not raw or not raw.strip():
        raise ExpertiseDegraded("Empty response")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ExpertiseDegraded(f"Response is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ExpertiseDegraded(f"Expected a JSON object, got {type(data).__name__}")

    missing = [key for key in EXPECTED_KEYS if key not in data]
    if missing:
        raise ExpertiseDegraded(f"Missing field(s): {', '.join(missing)}")
    primary = data["primaryField"]
    if not isinstance(primary, str):
        raise ExpertiseDegraded("'primaryField' must be a string")

    return Expertise(
        primary_field=primary,
        related_fields=_string_list(data["relatedFields"], "relatedFields"),
        keywords=_string_list(data["keywords"], "keywords"),
    )


class ExpertiseExtractor:
    """Infer a tutor's teaching expertise from CV text.

    Args:
        client: ``openai.OpenAI`` compatible client
        model: Chat model name
        temperature: Sampling temperature
        max_input_chars: Character budget for the CV text
    """

    def __init__(
        self,
        client,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        max_input_chars: int = 8000,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature
        self.max_input_chars = max_input_chars

    def extract(self, text: str) -> Expertise:
        """Return structured expertise, or empty expertise on any failure."""
        clipped = clip_for_service(text, self.max_input_chars)
        if not clipped.strip():
            return Expertise.empty()

        try:
            raw = self._request(clipped)
            expertise = parse_expertise_response(raw)
        except ExpertiseDegraded as e:
            logger.warning(
                f"Expertise response rejected: {e}",
                extra={"event": "expertise.degraded", "model": self.model},
            )
            return Expertise.empty()
        except openai.OpenAIError as e:
            logger.warning(
                f"Expertise request failed: {e}",
                extra={
                    "event": "expertise.request_failed",
                    "model": self.model,
                    "error_type": type(e).__name__,
                },
            )
            return Expertise.empty()

        logger.debug(
            "Expertise extracted",
            extra={
                "event": "expertise.extracted",
                "primary_field": expertise.primary_field,
                "keyword_count": len(expertise.keyword_set()),
            },
        )
        return expertise

    def _request(self, clipped: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            temperature=self.temperature,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": INSTRUCTIONS},
                {"role": "user", "content": clipped},
            ],
        )
        if not response.choices:
            raise ExpertiseDegraded("Response has no choices")
        return response.choices[0].message.content or ""
