from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def clean_text(value: str) -> str:
    """Strip surrounding whitespace, the way names and titles are stored."""
    return value.strip()
