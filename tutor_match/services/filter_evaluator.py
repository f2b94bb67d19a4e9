"""Local day/time availability matching against fetched weekly schedules.

Matching is existential: a tutor matches when any selected day has an open
slot in any selected block. An empty axis places no constraint on that axis.
These functions are pure and do not depend on the tutor directory service.
"""
from typing import Iterable, List, Mapping, Sequence
from datetime import date, timedelta
import logging

from tutor_match.core.slots import ALL_BLOCKS, BLOCK_TO_SLOTS, TimeBlock, hour_range_to_slots
from tutor_match.core.weekdays import ALL_DAYS, DayOfWeek, short_label
from tutor_match.schemas.filters import DayTimeSelection
from tutor_match.schemas.schedule import (
    AvailabilityGrid,
    AvailabilityGridRow,
    HourRangeGrid,
    HourRangeGridRow,
    ScheduleDay,
    ScheduleRecord,
)

logger = logging.getLogger(__name__)


def _day_matches(schedule_day: ScheduleDay, blocks: Iterable[TimeBlock]) -> bool:
    if not schedule_day.has_availability:
        return False
    return any(BLOCK_TO_SLOTS[block] & schedule_day.available_slots for block in blocks)


def matching_days(
    schedule: ScheduleRecord,
    selection: DayTimeSelection,
    week_anchor: date
) -> List[DayOfWeek]:
    """Selected days, in week order, on which the selection is satisfied"""
    days = selection.sorted_days() or list(ALL_DAYS)
    blocks = selection.blocks or ALL_BLOCKS
    matched = []
    for day in days:
        schedule_day = schedule.day_for(week_anchor + timedelta(days=int(day)))
        if schedule_day is not None and _day_matches(schedule_day, blocks):
            matched.append(day)
    return matched


def is_available(
    schedule: ScheduleRecord,
    selection: DayTimeSelection,
    week_anchor: date
) -> bool:
    """Whether the schedule satisfies the selection for the week at ``week_anchor``"""
    if selection.is_unconstrained:
        return True

    if schedule.fetch_failed:
        # Unknown availability never counts as a match
        return False

    days = selection.sorted_days() or list(ALL_DAYS)
    blocks = selection.blocks or ALL_BLOCKS
    for day in days:
        schedule_day = schedule.day_for(week_anchor + timedelta(days=int(day)))
        if schedule_day is None:
            continue
        if _day_matches(schedule_day, blocks):
            return True
    return False


def build_availability_grid(
    schedule: ScheduleRecord,
    week_anchor: date,
    blocks: Sequence[TimeBlock] = ALL_BLOCKS
) -> AvailabilityGrid:
    """Per-day, per-block availability for hover and detail views"""
    rows = []
    for day in ALL_DAYS:
        target = week_anchor + timedelta(days=int(day))
        schedule_day = schedule.day_for(target)
        rows.append(AvailabilityGridRow(
            date=target,
            day=day,
            label=short_label(day),
            blocks={
                block: schedule_day is not None and _day_matches(schedule_day, [block])
                for block in blocks
            },
        ))

    return AvailabilityGrid(
        tutor_id=schedule.tutor_id,
        week_start=week_anchor,
        fetch_failed=schedule.fetch_failed,
        rows=rows,
    )


def build_hour_range_grid(
    schedule: ScheduleRecord,
    week_anchor: date,
    hours_per_column: int = 4
) -> HourRangeGrid:
    """Per-day availability in equal hour ranges, e.g. six 4-hour columns.

    A cell is open when any slot inside its hour range is open.
    """
    if hours_per_column <= 0 or 24 % hours_per_column:
        raise ValueError(f"Hours per column must divide the day evenly: {hours_per_column}")

    ranges = [(start, start + hours_per_column) for start in range(0, 24, hours_per_column)]
    columns = [f"{start:02d}:00 - {end:02d}:00" for start, end in ranges]
    column_slots = [hour_range_to_slots(start, end) for start, end in ranges]

    rows = []
    for day in ALL_DAYS:
        target = week_anchor + timedelta(days=int(day))
        schedule_day = schedule.day_for(target)
        available = schedule_day.available_slots if schedule_day is not None else frozenset()
        rows.append(HourRangeGridRow(
            date=target,
            day=day,
            label=short_label(day),
            columns={label: bool(slots & available) for label, slots in zip(columns, column_slots)},
        ))

    return HourRangeGrid(
        tutor_id=schedule.tutor_id,
        week_start=week_anchor,
        fetch_failed=schedule.fetch_failed,
        columns=columns,
        rows=rows,
    )

def filter_by_availability(
    tutors: Iterable,
    schedules: Mapping[str, ScheduleRecord],
    selection: DayTimeSelection,
    week_anchor: date
) -> list:
    """Client-side half of hybrid filtering.

    Tutors without a schedule in ``schedules`` are treated as unavailable
    under a constrained selection.
    """
    tutors = list(tutors)
    if selection.is_unconstrained:
        return tutors

    kept = []
    for tutor in tutors:
        schedule = schedules.get(tutor.id)
        if schedule is None:
            schedule = ScheduleRecord.empty(tutor.id, week_anchor, fetch_failed=True)
        if is_available(schedule, selection, week_anchor):
            kept.append(tutor)

    logger.debug(f"Availability filter kept {len(kept)} of {len(tutors)} tutors")
    return kept
