from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Dict, FrozenSet, List, Optional, Tuple
from dateutil.parser import parse as parse_datetime
import datetime as dt

from tutor_match.core.slots import SLOTS_PER_DAY, TimeBlock
from tutor_match.core.weekdays import DayOfWeek


def to_calendar_date(value):
    """Drop any time-of-day component from a stored date"""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str):
        return parse_datetime(value).date()
    return value


class ScheduleDay(BaseModel):
    """One tutor's availability for one concrete date"""
    model_config = ConfigDict(frozen=True)

    date: dt.date = Field(..., description="Calendar date")
    available_slots: FrozenSet[int] = Field(default_factory=frozenset, description="Open slot indices")

    @field_validator("date", mode="before")
    @classmethod
    def _calendar_date(cls, value):
        return to_calendar_date(value)

    @field_validator("available_slots")
    @classmethod
    def _slots_in_range(cls, value: FrozenSet[int]) -> FrozenSet[int]:
        invalid = sorted(slot for slot in value if not 0 <= slot < SLOTS_PER_DAY)
        if invalid:
            raise ValueError(f"Slot indices out of range: {invalid}")
        return value

    @property
    def has_availability(self) -> bool:
        return bool(self.available_slots)


class ScheduleRecord(BaseModel):
    """A tutor's availability for the seven days starting at ``week_start``.

    Records are never patched: a refetch builds a new record. ``fetch_failed``
    marks a record substituted for a schedule that could not be fetched.
    """
    model_config = ConfigDict(frozen=True)

    tutor_id: str = Field(..., description="Tutor ID")
    week_start: dt.date = Field(..., description="Monday of the week")
    days: Tuple[ScheduleDay, ...] = Field(default=(), description="Per-date availability")
    fetch_failed: bool = Field(False, description="Whether the fetch failed")

    @field_validator("week_start", mode="before")
    @classmethod
    def _week_start_date(cls, value):
        return to_calendar_date(value)

    @field_validator("week_start")
    @classmethod
    def _week_start_is_monday(cls, value: dt.date) -> dt.date:
        if value.weekday() != 0:
            raise ValueError(f"Week start must be a Monday: {value.isoformat()}")
        return value

    @model_validator(mode="after")
    def _days_within_week(self) -> "ScheduleRecord":
        week_end = self.week_start + dt.timedelta(days=6)
        seen = set()
        for day in self.days:
            if not self.week_start <= day.date <= week_end:
                raise ValueError(f"{day.date.isoformat()} is outside the week of {self.week_start.isoformat()}")
            if day.date in seen:
                raise ValueError(f"Duplicate schedule entry for {day.date.isoformat()}")
            seen.add(day.date)
        return self

    @classmethod
    def empty(cls, tutor_id: str, week_start: dt.date, fetch_failed: bool = False) -> "ScheduleRecord":
        return cls(tutor_id=tutor_id, week_start=week_start, fetch_failed=fetch_failed)

    @property
    def is_empty(self) -> bool:
        return not any(day.has_availability for day in self.days)

    def day_for(self, target: dt.date) -> Optional[ScheduleDay]:
        """Get the entry for a calendar date, if any"""
        for day in self.days:
            if day.date == target:
                return day
        return None


class AvailabilityGridRow(BaseModel):
    date: dt.date = Field(..., description="Calendar date")
    day: DayOfWeek = Field(..., description="Weekday ordinal, Monday = 0")
    label: str = Field(..., description="Short weekday label")
    blocks: Dict[TimeBlock, bool] = Field(..., description="Availability per time block")


class AvailabilityGrid(BaseModel):
    tutor_id: str = Field(..., description="Tutor ID")
    week_start: dt.date = Field(..., description="Monday of the week")
    fetch_failed: bool = Field(False, description="Whether the schedule could not be fetched")
    rows: List[AvailabilityGridRow] = Field(..., description="One row per weekday")


class HourRangeGridRow(BaseModel):
    date: dt.date = Field(..., description="Calendar date")
    day: DayOfWeek = Field(..., description="Weekday ordinal, Monday = 0")
    label: str = Field(..., description="Short weekday label")
    columns: Dict[str, bool] = Field(..., description="Availability per hour range, keyed by column label")


class HourRangeGrid(BaseModel):
    tutor_id: str = Field(..., description="Tutor ID")
    week_start: dt.date = Field(..., description="Monday of the week")
    fetch_failed: bool = Field(False, description="Whether the schedule could not be fetched")
    columns: List[str] = Field(..., description="Column labels in display order, e.g. 00:00 - 04:00")
    rows: List[HourRangeGridRow] = Field(..., description="One row per weekday")


class TutorAvailabilityResponse(BaseModel):
    tutor_id: str = Field(..., description="Tutor ID")
    week_start: dt.date = Field(..., description="Monday of the week")
    is_available: bool = Field(..., description="Whether the tutor matches the selection")
    grid: AvailabilityGrid = Field(..., description="Per-day, per-block availability")
    hour_grid: Optional[HourRangeGrid] = Field(None, description="Per-day availability in equal hour ranges, when requested")
