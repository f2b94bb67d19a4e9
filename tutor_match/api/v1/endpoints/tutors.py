from fastapi import APIRouter, Depends, HTTPException, status, Query
from typing import List, Optional

from tutor_match.api.deps import get_directory_client
from tutor_match.core.config import settings
from tutor_match.core.exceptions import UnknownFilterLabelError
from tutor_match.schemas.filters import DayTimeSelection, PriceRange, QueryFilters
from tutor_match.schemas.schedule import TutorAvailabilityResponse
from tutor_match.schemas.tutor import TutorListResponse
from tutor_match.services.filter_evaluator import (
    build_availability_grid,
    build_hour_range_grid,
    is_available,
)
from tutor_match.services.query_orchestrator import QueryOrchestrator, QueryState
from tutor_match.services.schedule_service import ScheduleService
from tutor_match.services.tutor_directory import TutorDirectoryClient

router = APIRouter()


def _parse_selection(days: List[str], blocks: List[str]) -> DayTimeSelection:
    try:
        return DayTimeSelection.from_labels(days, blocks)
    except UnknownFilterLabelError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("/tutors", response_model=TutorListResponse)
async def list_tutors(
    days: List[str] = Query([], description="Weekday labels, e.g. Mon or Thứ 2"),
    blocks: List[str] = Query([], description="Time block labels: Morning, Afternoon, Evening"),
    min_price: Optional[float] = Query(None, ge=0, description="Minimum lesson price"),
    max_price: Optional[float] = Query(None, ge=0, description="Maximum lesson price"),
    primary_language: Optional[str] = Query(None, description="Primary language code"),
    search: Optional[str] = Query(None, description="Search by tutor name"),
    page: int = Query(1, ge=1, description="1-based page number"),
    directory: TutorDirectoryClient = Depends(get_directory_client)
):
    """List tutors matching day, time, price and language filters"""
    filters = QueryFilters(
        selection=_parse_selection(days, blocks),
        price_range=PriceRange(min_price=min_price, max_price=max_price),
        primary_language=primary_language,
        search_term=search,
    )

    orchestrator = QueryOrchestrator(directory, schedule_service=ScheduleService(directory))
    orchestrator.state = QueryState(page_size=settings.TUTOR_PAGE_SIZE, page=page, filters=filters)
    view = await orchestrator.refresh()

    if view.error:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=view.error
        )

    return TutorListResponse(
        items=view.tutors,
        total_count=view.server_total,
        page=view.query.page,
        page_size=view.query.page_size,
        total_pages=view.total_pages,
    )


@router.get("/tutors/{tutor_id}/availability", response_model=TutorAvailabilityResponse)
async def get_tutor_availability(
    tutor_id: str,
    weeks_ahead: int = Query(0, ge=0, le=1, description="0 for this week, 1 for next week"),
    days: List[str] = Query([], description="Weekday labels to match"),
    blocks: List[str] = Query([], description="Time block labels to match"),
    hours_per_column: Optional[int] = Query(None, ge=1, le=24, description="Also return an hour-range grid, e.g. 4 for six 4-hour columns"),
    directory: TutorDirectoryClient = Depends(get_directory_client)
):
    """Get a tutor's weekly availability grid"""
    selection = _parse_selection(days, blocks)
    if hours_per_column is not None and 24 % hours_per_column:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"hours_per_column must divide 24: {hours_per_column}"
        )

    schedule_service = ScheduleService(directory, weeks_ahead=weeks_ahead)
    anchor = schedule_service.current_anchor()
    schedule = await schedule_service.get_schedule(tutor_id, anchor)

    return TutorAvailabilityResponse(
        tutor_id=tutor_id,
        week_start=anchor,
        is_available=is_available(schedule, selection, anchor),
        grid=build_availability_grid(schedule, anchor),
        hour_grid=build_hour_range_grid(schedule, anchor, hours_per_column) if hours_per_column else None,
    )
