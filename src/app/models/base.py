from datetime import UTC, datetime


def utc_now() -> datetime:
    """Current UTC time as a naive datetime.

    Timestamp columns are stored without time zone; every stored time is UTC.
    Invitation expiry comparisons use this same clock.
    """
    return datetime.now(UTC).replace(tzinfo=None)
