from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, List, TypeVar

T = TypeVar("T")

RECORD_DATE_FIELDS = {
    "budgets": "start_date",
    "expenses": "date",
    "goals": "due_date",
    "income": "date",
}
REPORT_TYPES = {"weekly", "monthly", "quarterly", "yearly"}
MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


class DateParseError(ValueError):
    """Raised when a record date cannot be interpreted as a calendar date."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Unparseable date value: {value!r}")
        self.value = value


def parse_record_date(value: date | datetime | str) -> date:
    """Return the calendar date for a record field.

    Aware datetimes are normalized to UTC before the date is taken, so month
    and range checks never depend on the host time zone.
    """
    if isinstance(value, datetime):
        return _datetime_to_date(value)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise DateParseError(value)
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise DateParseError(value) from exc
        return _datetime_to_date(parsed)
    raise DateParseError(value)


def filter_by_date_range(
    records: Iterable[T],
    start_date: date | datetime | str,
    end_date: date | datetime | str,
    kind: str,
) -> List[T]:
    normalized_kind = kind.strip().lower()
    try:
        field_name = RECORD_DATE_FIELDS[normalized_kind]
    except KeyError as exc:
        raise ValueError(f"Unknown record kind: {kind}") from exc

    start = parse_record_date(start_date)
    end = parse_record_date(end_date)
    if start > end:
        raise ValueError("start_date must be on or before end_date.")

    return [
        record
        for record in records
        if start <= parse_record_date(getattr(record, field_name)) <= end
    ]


def get_date_range_for_report_type(report_type: str, today: date) -> tuple[date, date]:
    normalized = (report_type or "").strip().lower()
    if normalized == "weekly":
        # Weeks run Sunday through Saturday.
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=6)
    if normalized == "quarterly":
        quarter_start_month = (today.month - 1) // 3 * 3 + 1
        start = date(today.year, quarter_start_month, 1)
        return start, month_end(shift_month(start, 2))
    if normalized == "yearly":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    return month_start(today), month_end(today)


def month_start(value: date) -> date:
    return value.replace(day=1)


def shift_month(value: date, months: int) -> date:
    month_index = (value.year * 12 + value.month - 1) + months
    year = month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1)


def month_end(value: date) -> date:
    last_day = calendar.monthrange(value.year, value.month)[1]
    return value.replace(day=last_day)


def _datetime_to_date(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()
