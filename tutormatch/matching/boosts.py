"""Rule-based score boosts derived from a tutor's expertise.

Three independent rules, each a case-insensitive substring test:

- category: the course category mentions the tutor's primary/related field
- title: the course title mentions any expertise keyword
- text: the combined course text mentions any expertise keyword

Boosts add up and are never clamped.
"""

from ..domain.models import Expertise
from ..utils.text import contains_any
from .models import BoostBreakdown

CATEGORY_BOOST = 0.08
TITLE_BOOST = 0.05
TEXT_BOOST = 0.03


def compute_boost(
    category_name: str,
    expertise: Expertise,
    target_title: str,
    combined_text: str,
) -> BoostBreakdown:
    """Evaluate the boost rules for one tutor/course pair.

    Args:
        category_name: Course category display name
        expertise: Tutor expertise (may be empty)
        target_title: Course title
        combined_text: Title, description and category joined

    Returns:
        BoostBreakdown with the component that fired for each rule
    """
    if expertise is None or expertise.is_empty:
        return BoostBreakdown()

    keywords = expertise.keyword_set()
    return BoostBreakdown(
        category=CATEGORY_BOOST if contains_any(category_name, expertise.field_terms()) else 0.0,
        title=TITLE_BOOST if contains_any(target_title, keywords) else 0.0,
        text=TEXT_BOOST if contains_any(combined_text, keywords) else 0.0,
    )
