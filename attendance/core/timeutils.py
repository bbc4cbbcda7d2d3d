from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current UTC time used for every attendance timestamp."""
    return datetime.now(timezone.utc)
