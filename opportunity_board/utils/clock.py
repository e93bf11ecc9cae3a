from datetime import datetime, UTC


def utcnow() -> datetime:
    """Naive UTC timestamp, comparable with the TIMESTAMP columns."""
    return datetime.now(UTC).replace(tzinfo=None)
