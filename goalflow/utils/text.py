"""Text normalization utilities for drafts and prompts."""
import re
from typing import Iterable, Optional


def trimmed(text: Optional[str]) -> str:
    """
    Strip surrounding whitespace, treating None as empty.

    Examples:
        >>> trimmed("  Drink water \\n")
        'Drink water'
        >>> trimmed(None)
        ''
    """
    return (text or "").strip()


def non_empty(text: Optional[str]) -> Optional[str]:
    """Return the trimmed text, or None when nothing is left."""
    value = trimmed(text)
    return value or None


def dedupe_options(options: Iterable[str]) -> list[str]:
    """
    Remove blank and case-insensitive duplicate options.

    First-seen casing and order are preserved.

    Args:
        options: Raw option strings

    Returns:
        Ordered list of unique options

    Examples:
        >>> dedupe_options(["Good", " good ", "Bad", "", "GOOD"])
        ['Good', 'Bad']
    """
    unique: list[str] = []
    seen: set[str] = set()
    for option in options:
        value = trimmed(option)
        if not value:
            continue
        key = value.casefold()
        if key in seen:
            continue
        seen.add(key)
        unique.append(value)
    return unique


def parse_options(text: str) -> list[str]:
    """
    Parse a comma-separated option list.

    Examples:
        >>> parse_options("Low, Medium,high , low")
        ['Low', 'Medium', 'high']
    """
    return dedupe_options(text.split(","))


def clean_title(text: str, max_length: int = 50) -> str:
    """
    Turn free-form input into a goal title.

    Collapses whitespace, capitalizes the first letter and truncates long
    input with an ellipsis.

    Examples:
        >>> clean_title("  drink   more water ")
        'Drink more water'
        >>> len(clean_title("x" * 80))
        50
    """
    title = re.sub(r"\s+", " ", trimmed(text))
    if title:
        title = title[0].upper() + title[1:]
    if len(title) > max_length:
        title = title[: max_length - 3] + "..."
    return title
