from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    # Naive input is read as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def start_of_day(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def month_period(moment: datetime) -> str:
    return f"{moment.year}{moment.month:02d}"


def format_notice_number(prefix: str, period: str, sequence: int) -> str:
    """Build a notice number such as ``NOTICE-202610-007``."""
    return f"{prefix}-{period}-{sequence:03d}"


def full_name(first_name: str | None, last_name: str | None) -> str:
    return " ".join(part for part in (first_name, last_name) if part)
