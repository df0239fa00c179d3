from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current date in UTC; payslip periods are validated against it."""
    return utc_now().date()
