"""Free-text parsing into item names, and shared name normalization."""

import re

_DOZEN = re.compile(r"\b(?:a\s+)?dozen\s+", re.IGNORECASE)
_COUNTED_CONTAINERS = re.compile(
    r"\b\d+\s+(?:bottles?|cans?|box(?:es)?|bags?|jars?)\s+of\s+", re.IGNORECASE
)
_SINGLE_CONTAINER = re.compile(
    r"\b(?:a|an|the)\s+(?:bottle|can|box|bag|jar)\s+of\s+", re.IGNORECASE
)

_SEPARATOR = re.compile(r"[,\n]|\s+and\s+", re.IGNORECASE)

_LEADING_VERB = re.compile(
    r"^(?:add|get|buy|need|want|purchase|pick up|grab)\s+", re.IGNORECASE
)
_LEADING_REQUEST = re.compile(
    r"^(?:i need|i want|i'm getting|im getting|i'd like|id like|please add|please get)\s+",
    re.IGNORECASE,
)
_LEADING_ARTICLE = re.compile(r"^(?:a|an|the|some)\s+", re.IGNORECASE)

_WHITESPACE = re.compile(r"\s+")


def _strip_quantity_phrases(text: str) -> str:
    """Drop container and dozen phrases across the whole input."""
    text = _DOZEN.sub("", text)
    text = _COUNTED_CONTAINERS.sub("", text)
    return _SINGLE_CONTAINER.sub("", text)


def _clean_segment(segment: str) -> str:
    """Strip conversational lead-ins from one split segment."""
    cleaned = segment.strip()
    cleaned = _LEADING_VERB.sub("", cleaned)
    cleaned = _LEADING_REQUEST.sub("", cleaned)
    cleaned = _LEADING_ARTICLE.sub("", cleaned)
    return cleaned


def parse_items(text: str) -> list[str]:
    """Split typed, pasted or dictated text into item names.

    Handles comma, newline and "and" separated input, and strips phrases such
    as "add", "I need", "some" or "2 bottles of" so that
    "2 bottles of milk, a dozen eggs and bread" yields milk, eggs and bread.

    Args:
        text: Raw input string

    Returns:
        Whitespace-collapsed item names in first-seen order, without duplicates
    """
    if not text.strip():
        return []

    processed = _strip_quantity_phrases(text)

    items: list[str] = []
    seen: set[str] = set()
    for segment in _SEPARATOR.split(processed):
        name = sanitize_item_name(_clean_segment(segment))
        if name and name not in seen:
            seen.add(name)
            items.append(name)

    return items


def sanitize_item_name(name: str) -> str:
    """Trim and collapse runs of whitespace to single spaces."""
    return _WHITESPACE.sub(" ", name.strip())


def normalize_item_name(name: str) -> str:
    """Lowercase and trim a name into its preference/matching key."""
    return name.lower().strip()
