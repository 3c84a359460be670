from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from enum import StrEnum

EXPIRING_SOON_MONTHS = 3


class ExpiryStatus(StrEnum):
    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"
    VALID = "valid"


EXPIRY_LABELS: dict[ExpiryStatus, str] = {
    ExpiryStatus.EXPIRED: "Expired",
    ExpiryStatus.EXPIRING_SOON: "Expiring Soon",
    ExpiryStatus.VALID: "Valid",
}


def now_utc() -> datetime:
    return datetime.now(UTC)


def add_calendar_months(instant: datetime, months: int) -> datetime:
    """Add ``months`` to the month component, rolling overflow forward.

    Day-of-month overflow spills into the following month, so Jan 31 + 1
    month lands on Mar 3 (or Mar 2 in a leap year) rather than being clamped.
    """
    month_index = instant.month - 1 + months
    year = instant.year + month_index // 12
    month = month_index % 12 + 1
    first_of_month = instant.replace(year=year, month=month, day=1)
    return first_of_month + timedelta(days=instant.day - 1)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def parse_expiry(value: str | date | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    if not isinstance(value, str):
        return None
    raw = value.strip()
    if not raw:
        return None
    try:
        if len(raw) == 10:
            return datetime.combine(date.fromisoformat(raw), time.min, tzinfo=UTC)
        return _as_utc(datetime.fromisoformat(raw))
    except ValueError:
        return None


def classify_expiry(
    expiry: str | date | datetime | None,
    now: datetime | None = None,
) -> ExpiryStatus:
    expires_at = parse_expiry(expiry)
    if expires_at is None:
        return ExpiryStatus.VALID
    reference = _as_utc(now) if now is not None else now_utc()
    if expires_at < reference:
        return ExpiryStatus.EXPIRED
    if expires_at <= add_calendar_months(reference, EXPIRING_SOON_MONTHS):
        return ExpiryStatus.EXPIRING_SOON
    return ExpiryStatus.VALID


def expiry_label(expiry: str | date | datetime | None, now: datetime | None = None) -> str:
    return EXPIRY_LABELS[classify_expiry(expiry, now)]


def display_date(value: str | date | datetime | None) -> str:
    parsed = parse_expiry(value)
    if parsed is None:
        return ""
    return parsed.date().isoformat()
