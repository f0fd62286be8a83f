"""Date windows for the completed-tasks view - no I/O."""

from datetime import date, datetime, timedelta
from enum import Enum

from todoline.errors import InvalidInputError

# API limits on the span of one completed-tasks query
MAX_WEEKS_BY_DUE_DATE = 6
MAX_WEEKS_BY_COMPLETION = 12


class WindowPreset(Enum):
    TODAY = "today"
    YESTERDAY = "yesterday"
    THIS_WEEK = "this-week"
    LAST_WEEK = "last-week"
    THIS_MONTH = "this-month"


def _span(start: date, end: date) -> tuple[str, str]:
    return f"{start.isoformat()}T00:00:00Z", f"{end.isoformat()}T23:59:59Z"


def date_window(
    today: date,
    preset: WindowPreset | None = None,
    since: str | None = None,
    until: str | None = None,
) -> tuple[str, str]:
    """
    Resolve the (since, until) pair sent to the API.

    A preset wins over explicit dates; with neither, the window is today.
    """
    match preset:
        case WindowPreset.TODAY:
            return _span(today, today)
        case WindowPreset.YESTERDAY:
            yesterday = today - timedelta(days=1)
            return _span(yesterday, yesterday)
        case WindowPreset.THIS_WEEK:
            monday = today - timedelta(days=today.weekday())
            return _span(monday, today)
        case WindowPreset.LAST_WEEK:
            last_sunday = today - timedelta(days=today.weekday() + 1)
            return _span(last_sunday - timedelta(days=6), last_sunday)
        case WindowPreset.THIS_MONTH:
            return _span(today.replace(day=1), today)

    if since and until:
        return since, until
    return _span(today, today)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
    except ValueError:
        raise InvalidInputError(f"Invalid date format: '{value}'. Use YYYY-MM-DD or ISO 8601")


def validate_window(since: str, until: str, by_due_date: bool) -> None:
    """Reject reversed windows and spans the API would refuse."""
    since_date = _parse_date(since)
    until_date = _parse_date(until)

    if until_date < since_date:
        raise InvalidInputError("'until' date must be after 'since' date")

    max_weeks = MAX_WEEKS_BY_DUE_DATE if by_due_date else MAX_WEEKS_BY_COMPLETION
    if (until_date - since_date).days // 7 > max_weeks:
        limit = "6 weeks" if by_due_date else "3 months"
        raise InvalidInputError(f"Date range exceeds {limit} maximum (API limitation)")
