from typing import List, Optional, Union
from datetime import date, datetime, timedelta, tzinfo
import pytz

from tutor_match.core.config import settings


def get_local_timezone(tz: Optional[Union[str, tzinfo]] = None) -> tzinfo:
    """Resolve a timezone name, defaulting to the configured local zone"""
    if tz is None:
        tz = settings.LOCAL_TIMEZONE
    if isinstance(tz, str):
        return pytz.timezone(tz)
    return tz


def _local_date(now: Optional[datetime], tz: Optional[Union[str, tzinfo]]) -> date:
    local_tz = get_local_timezone(tz)
    if now is None:
        return datetime.now(pytz.utc).astimezone(local_tz).date()
    if now.tzinfo is None:
        # Naive datetimes are already local
        return now.date()
    return now.astimezone(local_tz).date()


def current_week_monday(
    now: Optional[datetime] = None,
    tz: Optional[Union[str, tzinfo]] = None
) -> date:
    """Monday on or before ``now`` in the local timezone.

    Not cached: every schedule fetch calls this again so that a session
    crossing a week boundary picks up the new week.
    """
    today = _local_date(now, tz)
    return today - timedelta(days=today.weekday())


def week_anchor(
    now: Optional[datetime] = None,
    tz: Optional[Union[str, tzinfo]] = None,
    weeks_ahead: int = 0
) -> date:
    """Monday of the current week, shifted by ``weeks_ahead`` weeks"""
    return current_week_monday(now, tz) + timedelta(weeks=weeks_ahead)


def is_monday(value: date) -> bool:
    return value.weekday() == 0


def week_dates(anchor: date) -> List[date]:
    """The seven dates of the week starting at ``anchor``"""
    if not is_monday(anchor):
        raise ValueError(f"Week anchor must be a Monday: {anchor.isoformat()}")
    return [anchor + timedelta(days=offset) for offset in range(7)]


def format_week_start(anchor: date) -> str:
    """Week start in the form the schedule endpoint expects"""
    return f"{anchor.isoformat()} 00:00:00"
