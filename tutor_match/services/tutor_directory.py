from typing import Any, Dict, List, Optional, Tuple, Type
from datetime import date, timedelta
import logging
import httpx

from tutor_match.core.config import settings
from tutor_match.core.exceptions import (
    ExternalServiceError,
    ScheduleFetchError,
    TutorDirectoryError,
)
from tutor_match.core.slots import SLOTS_PER_DAY
from tutor_match.core.week import format_week_start
from tutor_match.schemas.filters import PageQuery
from tutor_match.schemas.schedule import ScheduleDay, ScheduleRecord, to_calendar_date
from tutor_match.schemas.tutor import TutorPage, TutorSummary
from tutor_match.services.price_filter import is_unconstrained

logger = logging.getLogger(__name__)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def build_page_params(query: PageQuery) -> List[Tuple[str, str]]:
    """Query string for the tutor listing; list filters repeat their key"""
    filters = query.filters
    params: List[Tuple[str, str]] = [
        ("page", str(query.page)),
        ("size", str(query.page_size)),
    ]

    for code in filters.language_codes:
        params.append(("languageCodes", code))

    if filters.primary_language:
        params.append(("primaryLanguageCode", filters.primary_language))

    for day in filters.selection.sorted_days():
        params.append(("daysInWeek", str(int(day))))

    for slot in filters.selection.slot_indexes():
        params.append(("slotIndexes", str(slot)))

    if not is_unconstrained(filters.price_range):
        params.append(("minPrice", _format_number(filters.price_range.min_price)))
        params.append(("maxPrice", _format_number(filters.price_range.max_price)))

    if filters.search_term:
        params.append(("fullName", filters.search_term))

    return params


def parse_week_schedule(tutor_id: str, week_start: date, payload: List[Dict[str, Any]]) -> ScheduleRecord:
    """Build a record from the service's per-date entries.

    Entries outside the week and slot indices outside the canonical grid are
    dropped; repeated dates are merged.
    """
    week_end = week_start + timedelta(days=6)
    slots_by_date: Dict[date, set] = {}

    for entry in payload:
        entry_date = to_calendar_date(entry.get("date"))
        if not isinstance(entry_date, date) or not week_start <= entry_date <= week_end:
            logger.warning(f"Dropping schedule entry for tutor {tutor_id} outside week {week_start}: {entry.get('date')}")
            continue

        raw_slots = entry.get("timeSlotIndex") or []
        if not isinstance(raw_slots, list):
            logger.warning(f"Dropping schedule entry for tutor {tutor_id} on {entry_date} with malformed slots: {raw_slots!r}")
            continue

        slots = slots_by_date.setdefault(entry_date, set())
        for slot in raw_slots:
            if isinstance(slot, int) and not isinstance(slot, bool) and 0 <= slot < SLOTS_PER_DAY:
                slots.add(slot)
            else:
                logger.warning(f"Dropping invalid slot {slot!r} for tutor {tutor_id} on {entry_date}")

    days = tuple(
        ScheduleDay(date=entry_date, available_slots=frozenset(slots))
        for entry_date, slots in sorted(slots_by_date.items())
    )
    return ScheduleRecord(tutor_id=tutor_id, week_start=week_start, days=days)


class TutorDirectoryClient:
    """HTTP client for the tutor directory and schedule endpoints"""

    def __init__(self, http: Optional[httpx.AsyncClient] = None):
        self.base_url = settings.TUTOR_API_BASE_URL
        self.http = http or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(settings.REQUEST_TIMEOUT_SECONDS),
        )

    async def aclose(self):
        await self.http.aclose()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if settings.TUTOR_API_TOKEN:
            headers["Authorization"] = f"Bearer {settings.TUTOR_API_TOKEN}"
        return headers

    async def _get(
        self,
        path: str,
        params: Any,
        error_cls: Type[ExternalServiceError]
    ) -> Dict[str, Any]:
        try:
            response = await self.http.get(path, params=params, headers=self._headers())
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as e:
            raise error_cls(f"Request to {path} timed out: {str(e)}") from e
        except httpx.HTTPStatusError as e:
            raise error_cls(f"Request to {path} failed with status {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            raise error_cls(f"Request to {path} failed: {str(e)}") from e

        if not isinstance(body, dict):
            raise error_cls(f"Unexpected response from {path}")
        return body

    async def fetch_tutor_page(self, query: PageQuery) -> TutorPage:
        """Fetch one page of tutors; language, price, day and slot filters run on the server"""
        body = await self._get("/api/tutor/all", build_page_params(query), TutorDirectoryError)

        data = body.get("data")
        if not isinstance(data, list):
            raise TutorDirectoryError("Response did not contain a tutor list")

        try:
            items = [TutorSummary.model_validate(item) for item in data]
        except ValueError as e:
            raise TutorDirectoryError(f"Failed to parse tutor list: {str(e)}") from e

        total = body.get("totalCount", body.get("total"))
        if total is None:
            # Without a server total, count what is known so far
            total = (query.page - 1) * query.page_size + len(items)

        logger.info(f"Fetched page {query.page} with {len(items)} tutors (total {total})")
        return TutorPage(items=items, total_count=int(total), page=query.page, page_size=query.page_size)

    async def fetch_week_schedule(self, tutor_id: str, week_start: date) -> ScheduleRecord:
        """Fetch a tutor's availability for the week starting at ``week_start``"""
        body = await self._get(
            f"/api/schedule/tutors/{tutor_id}/week",
            {"startDate": format_week_start(week_start)},
            ScheduleFetchError,
        )

        data = body.get("data")
        if not isinstance(data, list):
            raise ScheduleFetchError(f"No weekly schedule data found for tutor {tutor_id}")

        try:
            return parse_week_schedule(tutor_id, week_start, data)
        except (ValueError, TypeError, AttributeError, OverflowError) as e:
            raise ScheduleFetchError(f"Failed to parse schedule for tutor {tutor_id}: {str(e)}") from e
