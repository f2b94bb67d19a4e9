from typing import Dict, Iterable, Optional, Tuple
from datetime import date, datetime
import asyncio
import logging

from tutor_match.core.config import settings
from tutor_match.core.exceptions import ScheduleFetchError
from tutor_match.core.week import week_anchor
from tutor_match.schemas.schedule import ScheduleRecord
from tutor_match.services.tutor_directory import TutorDirectoryClient

logger = logging.getLogger(__name__)


class ScheduleService:
    """Fetches and caches tutor weekly schedules for the lifetime of a view.

    Records are cached by tutor and week, so a view that outlives a week
    boundary fetches the new week. Failed fetches are not cached: the tutor is
    reported with an empty record marked ``fetch_failed`` and the next access
    retries.
    """

    def __init__(
        self,
        directory: TutorDirectoryClient,
        timeout: Optional[float] = None,
        concurrency: Optional[int] = None,
        weeks_ahead: int = 0
    ):
        self.directory = directory
        self.timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS
        self.weeks_ahead = weeks_ahead
        self._semaphore = asyncio.Semaphore(concurrency or settings.SCHEDULE_FETCH_CONCURRENCY)
        self._cache: Dict[Tuple[str, date], ScheduleRecord] = {}

    def current_anchor(self, now: Optional[datetime] = None) -> date:
        """Week start for schedule requests, recomputed on every call"""
        return week_anchor(now, weeks_ahead=self.weeks_ahead)

    async def get_schedule(self, tutor_id: str, week_start: Optional[date] = None) -> ScheduleRecord:
        """Get a tutor's schedule, fetching it on first use"""
        if week_start is None:
            week_start = self.current_anchor()

        key = (tutor_id, week_start)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            async with self._semaphore:
                record = await asyncio.wait_for(
                    self.directory.fetch_week_schedule(tutor_id, week_start),
                    timeout=self.timeout,
                )
        except asyncio.TimeoutError:
            logger.warning(f"Schedule fetch for tutor {tutor_id} timed out after {self.timeout}s")
            return ScheduleRecord.empty(tutor_id, week_start, fetch_failed=True)
        except ScheduleFetchError as e:
            logger.warning(f"Schedule fetch for tutor {tutor_id} failed: {e}")
            return ScheduleRecord.empty(tutor_id, week_start, fetch_failed=True)

        self._cache[key] = record
        return record

    async def get_schedules(
        self,
        tutor_ids: Iterable[str],
        week_start: Optional[date] = None
    ) -> Dict[str, ScheduleRecord]:
        """Fetch schedules in parallel; one tutor's failure does not affect the others"""
        if week_start is None:
            week_start = self.current_anchor()

        unique_ids = list(dict.fromkeys(tutor_ids))
        records = await asyncio.gather(
            *(self.get_schedule(tutor_id, week_start) for tutor_id in unique_ids)
        )
        return dict(zip(unique_ids, records))

    def invalidate(self, tutor_id: Optional[str] = None):
        """Drop cached schedules for one tutor, or for all tutors"""
        if tutor_id is None:
            self._cache.clear()
            return
        for key in [key for key in self._cache if key[0] == tutor_id]:
            del self._cache[key]
