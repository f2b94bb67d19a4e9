"""Tutor listing state, its reducer, and the paginated fetch loop.

Filter state is immutable and only changes through ``reduce``. Every filter
action sends the listing back to page 1. Responses are applied in request
order: once a newer request has been issued, an older response is discarded
no matter when it arrives.

Language, price, day and slot filters are sent to the directory service.
Day/time availability and price are also checked locally against fetched
schedules and lesson prices, so ``server_total`` counts tutors before that
local step and can be larger than what the pages end up showing.
"""
from typing import FrozenSet, List, Optional, Tuple, Union
from dataclasses import dataclass, field, replace
import logging

from tutor_match.core.config import settings
from tutor_match.core.exceptions import TutorDirectoryError
from tutor_match.core.slots import TimeBlock
from tutor_match.core.weekdays import DayOfWeek
from tutor_match.schemas.filters import PageQuery, PriceRange, QueryFilters
from tutor_match.schemas.tutor import TutorPage, TutorSummary
from tutor_match.services.filter_evaluator import filter_by_availability
from tutor_match.services.price_filter import filter_by_price
from tutor_match.services.schedule_service import ScheduleService
from tutor_match.services.tutor_directory import TutorDirectoryClient

logger = logging.getLogger(__name__)

PAGE_ERROR_MESSAGE = "Failed to load tutors. Please try again later."


@dataclass(frozen=True)
class SetDays:
    days: FrozenSet[DayOfWeek]


@dataclass(frozen=True)
class ToggleDay:
    day: DayOfWeek


@dataclass(frozen=True)
class SetBlocks:
    blocks: FrozenSet[TimeBlock]


@dataclass(frozen=True)
class ToggleBlock:
    block: TimeBlock


@dataclass(frozen=True)
class SetPriceRange:
    min_price: Optional[float] = None
    max_price: Optional[float] = None


@dataclass(frozen=True)
class SetPrimaryLanguage:
    language_code: Optional[str]


@dataclass(frozen=True)
class SetLanguageCodes:
    language_codes: Tuple[str, ...]


@dataclass(frozen=True)
class SetSearchTerm:
    search_term: Optional[str]


@dataclass(frozen=True)
class ClearFilters:
    pass


@dataclass(frozen=True)
class GoToPage:
    page: int


FilterAction = Union[
    SetDays, ToggleDay, SetBlocks, ToggleBlock, SetPriceRange,
    SetPrimaryLanguage, SetLanguageCodes, SetSearchTerm, ClearFilters,
]
Action = Union[FilterAction, GoToPage]


@dataclass(frozen=True)
class QueryState:
    page_size: int = settings.TUTOR_PAGE_SIZE
    page: int = 1
    filters: QueryFilters = field(default_factory=QueryFilters)
    # Unknown until the first response for the current filters
    total_pages: Optional[int] = None


def _reduce_filters(filters: QueryFilters, action: FilterAction) -> QueryFilters:
    selection = filters.selection
    if isinstance(action, SetDays):
        return filters.model_copy(update={"selection": selection.with_days(action.days)})
    if isinstance(action, ToggleDay):
        return filters.model_copy(update={"selection": selection.toggle_day(action.day)})
    if isinstance(action, SetBlocks):
        return filters.model_copy(update={"selection": selection.with_blocks(action.blocks)})
    if isinstance(action, ToggleBlock):
        return filters.model_copy(update={"selection": selection.toggle_block(action.block)})
    if isinstance(action, SetPriceRange):
        price_range = PriceRange(min_price=action.min_price, max_price=action.max_price)
        return filters.model_copy(update={"price_range": price_range})
    if isinstance(action, SetPrimaryLanguage):
        return filters.model_validate({**filters.model_dump(), "primary_language": action.language_code})
    if isinstance(action, SetLanguageCodes):
        return filters.model_copy(update={"language_codes": tuple(action.language_codes)})
    if isinstance(action, SetSearchTerm):
        return filters.model_validate({**filters.model_dump(), "search_term": action.search_term})
    if isinstance(action, ClearFilters):
        return QueryFilters()
    raise TypeError(f"Unsupported action: {action!r}")


def clamp_page(page: int, total_pages: Optional[int]) -> int:
    """Clamp a requested page to [1, total_pages] when the total is known"""
    if total_pages:
        page = min(page, total_pages)
    return max(page, 1)


def reduce(state: QueryState, action: Action) -> QueryState:
    """Apply a user action; any filter change returns to page 1"""
    if isinstance(action, GoToPage):
        return replace(state, page=clamp_page(action.page, state.total_pages))

    filters = _reduce_filters(state.filters, action)
    return replace(state, filters=filters, page=1, total_pages=None)


def build_query(state: QueryState) -> PageQuery:
    return PageQuery(page=state.page, page_size=state.page_size, filters=state.filters)


@dataclass
class ListingView:
    """What the tutor list currently shows"""
    query: PageQuery
    sequence: int
    tutors: List[TutorSummary]
    server_total: int
    total_pages: int
    error: Optional[str] = None


class QueryOrchestrator:
    """Drives the tutor list: filter actions, pagination, and fetches"""

    def __init__(
        self,
        directory: TutorDirectoryClient,
        schedule_service: Optional[ScheduleService] = None,
        page_size: Optional[int] = None
    ):
        self.directory = directory
        self.schedule_service = schedule_service
        self.state = QueryState(page_size=page_size or settings.TUTOR_PAGE_SIZE)
        self.view: Optional[ListingView] = None
        self._issued = 0

    async def dispatch(self, action: Action) -> Optional[ListingView]:
        """Apply an action and fetch the resulting page"""
        self.state = reduce(self.state, action)
        return await self.execute(build_query(self.state))

    async def refresh(self) -> Optional[ListingView]:
        return await self.execute(build_query(self.state))

    async def execute(self, query: PageQuery) -> Optional[ListingView]:
        """Fetch a page and apply it, unless a newer request was issued meanwhile.

        Returns the applied view, or None when the response was stale.
        """
        self._issued += 1
        sequence = self._issued

        error = None
        try:
            page = await self.directory.fetch_tutor_page(query)
        except TutorDirectoryError as e:
            logger.error(f"Error fetching tutor page {query.page}: {e}")
            page = TutorPage(items=[], total_count=0, page=query.page, page_size=query.page_size)
            error = PAGE_ERROR_MESSAGE

        tutors = await self._filter_locally(query, page.items)
        view = self._apply(sequence, query, page, tutors, error)

        if view is not None and error is None and 0 < page.total_pages < query.page:
            if query.filters == self.state.filters:
                logger.info(f"Page {query.page} is past the last page, showing page {page.total_pages}")
                self.state = replace(self.state, page=page.total_pages)
                return await self.execute(build_query(self.state))
        return view

    async def _filter_locally(self, query: PageQuery, tutors: List[TutorSummary]) -> List[TutorSummary]:
        filters = query.filters
        tutors = filter_by_price(tutors, filters.price_range)

        selection = filters.selection
        if self.schedule_service is None or selection.is_unconstrained or not tutors:
            return tutors

        anchor = self.schedule_service.current_anchor()
        schedules = await self.schedule_service.get_schedules([tutor.id for tutor in tutors], anchor)
        return filter_by_availability(tutors, schedules, selection, anchor)

    def _apply(
        self,
        sequence: int,
        query: PageQuery,
        page: TutorPage,
        tutors: List[TutorSummary],
        error: Optional[str]
    ) -> Optional[ListingView]:
        if sequence != self._issued:
            logger.info(f"Discarding stale tutor page response #{sequence} (latest is #{self._issued})")
            return None

        self.view = ListingView(
            query=query,
            sequence=sequence,
            tutors=tutors,
            server_total=page.total_count,
            total_pages=page.total_pages,
            error=error,
        )
        if error is None and query.filters == self.state.filters:
            self.state = replace(self.state, total_pages=page.total_pages)
        return self.view
