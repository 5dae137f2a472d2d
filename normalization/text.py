"""Text helpers shared by extraction and normalization."""

from typing import Optional


MAX_TITLE_LENGTH = 200


def clean_text(value: Optional[str]) -> str:
    """Collapse whitespace and strip; None becomes the empty string."""
    if value is None:
        return ""
    return " ".join(str(value).split())


def truncate(value: str, limit: int = MAX_TITLE_LENGTH) -> str:
    if len(value) <= limit:
        return value
    return value[:limit].rstrip()
