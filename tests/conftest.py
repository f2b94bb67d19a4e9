from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional, Union

import pytest

from tutor_match.core.exceptions import ScheduleFetchError, TutorDirectoryError
from tutor_match.schemas.schedule import ScheduleDay, ScheduleRecord
from tutor_match.schemas.tutor import TutorPage, TutorSummary

MONDAY = date(2024, 6, 3)


def make_schedule(
    slots_by_offset: Dict[int, Iterable[int]],
    week_start: date = MONDAY,
    tutor_id: str = "tutor-1",
) -> ScheduleRecord:
    """Schedule with the given open slots per day offset from ``week_start``"""
    days = tuple(
        ScheduleDay(date=week_start + timedelta(days=offset), available_slots=frozenset(slots))
        for offset, slots in sorted(slots_by_offset.items())
    )
    return ScheduleRecord(tutor_id=tutor_id, week_start=week_start, days=days)


def make_tutor(tutor_id: str, price: Optional[float] = None, **extra) -> TutorSummary:
    return TutorSummary(tutorId=tutor_id, fullName=f"Tutor {tutor_id}", price=price, **extra)


class FakeDirectory:
    """In-memory stand-in for the tutor directory client.

    ``schedules`` maps tutor IDs to ``{day_offset: slots}`` or to an
    exception raised on fetch.
    """

    def __init__(
        self,
        tutors: Optional[List[TutorSummary]] = None,
        total_count: Optional[int] = None,
        schedules: Optional[Dict[str, Union[Dict[int, Iterable[int]], Exception]]] = None,
        fail_pages: bool = False,
    ):
        self.tutors = tutors or []
        self.total_count = total_count
        self.schedules = schedules or {}
        self.fail_pages = fail_pages
        self.page_queries = []
        self.schedule_calls = []

    async def fetch_tutor_page(self, query):
        self.page_queries.append(query)
        if self.fail_pages:
            raise TutorDirectoryError("directory unavailable")
        total = len(self.tutors) if self.total_count is None else self.total_count
        return TutorPage(items=list(self.tutors), total_count=total, page=query.page, page_size=query.page_size)

    async def fetch_week_schedule(self, tutor_id, week_start):
        self.schedule_calls.append((tutor_id, week_start))
        spec = self.schedules.get(tutor_id)
        if isinstance(spec, Exception):
            raise spec
        if spec is None:
            raise ScheduleFetchError(f"No weekly schedule data found for tutor {tutor_id}")
        return make_schedule(spec, week_start=week_start, tutor_id=tutor_id)


@pytest.fixture
def fake_directory():
    """Factory for FakeDirectory instances"""
    return FakeDirectory
