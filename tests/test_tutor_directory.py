from datetime import date

import httpx
import pytest
import respx

from tutor_match.core.config import settings
from tutor_match.core.exceptions import ScheduleFetchError, TutorDirectoryError
from tutor_match.core.slots import TimeBlock
from tutor_match.core.weekdays import DayOfWeek
from tutor_match.schemas.filters import DayTimeSelection, PageQuery, PriceRange, QueryFilters
from tutor_match.services.schedule_service import ScheduleService
from tutor_match.services.tutor_directory import (
    TutorDirectoryClient,
    build_page_params,
    parse_week_schedule,
)

from conftest import MONDAY

BASE_URL = "https://tutors.test"


@pytest.fixture
def client():
    return TutorDirectoryClient(http=httpx.AsyncClient(base_url=BASE_URL))


def tutor_payload(tutor_id, **extra):
    return {"tutorId": tutor_id, "fullName": f"Tutor {tutor_id}", **extra}


class TestBuildPageParams:
    def test_unfiltered_query_sends_only_paging(self):
        assert build_page_params(PageQuery(page=2, page_size=20)) == [("page", "2"), ("size", "20")]

    def test_filters_are_forwarded(self):
        filters = QueryFilters(
            selection=DayTimeSelection(
                days={DayOfWeek.FRIDAY, DayOfWeek.MONDAY},
                blocks={TimeBlock.AFTERNOON},
            ),
            price_range=PriceRange(min_price=100_000, max_price=250_000.5),
            primary_language="vi",
            search_term="Anna",
            language_codes=("en", "fr"),
        )
        params = build_page_params(PageQuery(page=1, page_size=10, filters=filters))

        assert ("languageCodes", "en") in params
        assert ("languageCodes", "fr") in params
        assert ("primaryLanguageCode", "vi") in params
        assert [value for key, value in params if key == "daysInWeek"] == ["0", "4"]
        assert [value for key, value in params if key == "slotIndexes"] == [str(slot) for slot in range(24, 36)]
        assert ("minPrice", "100000") in params
        assert ("maxPrice", "250000.5") in params
        assert ("fullName", "Anna") in params

    def test_unconstrained_price_is_not_sent(self):
        keys = {key for key, _ in build_page_params(PageQuery(page_size=20))}
        assert "minPrice" not in keys
        assert "maxPrice" not in keys


class TestParseWeekSchedule:
    def test_repeated_dates_are_merged(self):
        record = parse_week_schedule("t-1", MONDAY, [
            {"date": "2024-06-05", "timeSlotIndex": [10]},
            {"date": "2024-06-05T00:00:00", "timeSlotIndex": [11]},
        ])
        assert len(record.days) == 1
        assert record.days[0].available_slots == frozenset({10, 11})

    def test_out_of_week_entries_and_bad_slots_are_dropped(self):
        record = parse_week_schedule("t-1", MONDAY, [
            {"date": "2024-06-10", "timeSlotIndex": [1]},
            {"date": "2024-06-04", "timeSlotIndex": [2, 48, -1, "3", True]},
        ])
        assert [day.date for day in record.days] == [date(2024, 6, 4)]
        assert record.days[0].available_slots == frozenset({2})

    def test_entry_with_malformed_slot_list_is_dropped(self):
        record = parse_week_schedule("t-1", MONDAY, [
            {"date": "2024-06-04", "timeSlotIndex": 10},
            {"date": "2024-06-05", "timeSlotIndex": [12]},
        ])
        assert [day.date for day in record.days] == [date(2024, 6, 5)]


@pytest.mark.asyncio
@respx.mock
async def test_fetch_tutor_page(client):
    route = respx.get(host="tutors.test", path="/api/tutor/all").mock(
        return_value=httpx.Response(200, json={
            "data": [tutor_payload("a", price=150000), tutor_payload("b")],
            "totalCount": 45,
        })
    )

    query = PageQuery(
        page=2,
        page_size=20,
        filters=QueryFilters(selection=DayTimeSelection(days={DayOfWeek.SUNDAY})),
    )
    page = await client.fetch_tutor_page(query)

    assert [tutor.id for tutor in page.items] == ["a", "b"]
    assert page.total_count == 45
    assert page.total_pages == 3
    request = route.calls.last.request
    assert request.url.params["page"] == "2"
    assert request.url.params["size"] == "20"
    assert request.url.params.get_list("daysInWeek") == ["6"]


@pytest.mark.asyncio
@respx.mock
async def test_fetch_tutor_page_without_total(client):
    respx.get(host="tutors.test", path="/api/tutor/all").mock(
        return_value=httpx.Response(200, json={"data": [tutor_payload("a")]})
    )

    page = await client.fetch_tutor_page(PageQuery(page=3, page_size=20))

    assert page.total_count == 41


@pytest.mark.asyncio
@respx.mock
async def test_fetch_tutor_page_server_error(client):
    respx.get(host="tutors.test", path="/api/tutor/all").mock(return_value=httpx.Response(500))

    with pytest.raises(TutorDirectoryError):
        await client.fetch_tutor_page(PageQuery(page_size=20))


@pytest.mark.asyncio
@respx.mock
async def test_fetch_tutor_page_timeout(client):
    respx.get(host="tutors.test", path="/api/tutor/all").mock(side_effect=httpx.ConnectTimeout)

    with pytest.raises(TutorDirectoryError):
        await client.fetch_tutor_page(PageQuery(page_size=20))


@pytest.mark.asyncio
@respx.mock
async def test_fetch_tutor_page_rejects_missing_list(client):
    respx.get(host="tutors.test", path="/api/tutor/all").mock(
        return_value=httpx.Response(200, json={"message": "ok"})
    )

    with pytest.raises(TutorDirectoryError):
        await client.fetch_tutor_page(PageQuery(page_size=20))


@pytest.mark.asyncio
@respx.mock
async def test_fetch_week_schedule(client):
    route = respx.get(host="tutors.test", path="/api/schedule/tutors/t-1/week").mock(
        return_value=httpx.Response(200, json={"data": [
            {"date": "2024-06-05", "timeSlotIndex": [10, 40]},
        ]})
    )

    record = await client.fetch_week_schedule("t-1", MONDAY)

    assert record.tutor_id == "t-1"
    assert record.week_start == MONDAY
    assert record.day_for(date(2024, 6, 5)).available_slots == frozenset({10, 40})
    assert not record.fetch_failed
    assert route.calls.last.request.url.params["startDate"] == "2024-06-03 00:00:00"


@pytest.mark.asyncio
@respx.mock
async def test_fetch_week_schedule_without_data(client):
    respx.get(host="tutors.test", path="/api/schedule/tutors/t-1/week").mock(
        return_value=httpx.Response(200, json={"data": None})
    )

    with pytest.raises(ScheduleFetchError):
        await client.fetch_week_schedule("t-1", MONDAY)


@pytest.mark.asyncio
@respx.mock
async def test_fetch_week_schedule_not_found(client):
    respx.get(host="tutors.test", path="/api/schedule/tutors/t-1/week").mock(return_value=httpx.Response(404))

    with pytest.raises(ScheduleFetchError):
        await client.fetch_week_schedule("t-1", MONDAY)


@pytest.mark.asyncio
@respx.mock
async def test_bearer_token_is_sent_when_configured(client, monkeypatch):
    monkeypatch.setattr(settings, "TUTOR_API_TOKEN", "secret")
    route = respx.get(host="tutors.test", path="/api/tutor/all").mock(
        return_value=httpx.Response(200, json={"data": [], "totalCount": 0})
    )

    await client.fetch_tutor_page(PageQuery(page_size=20))

    assert route.calls.last.request.headers["Authorization"] == "Bearer secret"


@pytest.mark.asyncio
@respx.mock
async def test_malformed_schedule_does_not_fail_the_batch(client):
    respx.get(host="tutors.test", path="/api/schedule/tutors/good/week").mock(
        return_value=httpx.Response(200, json={"data": [{"date": "2024-06-05", "timeSlotIndex": [10]}]})
    )
    respx.get(host="tutors.test", path="/api/schedule/tutors/bad-slots/week").mock(
        return_value=httpx.Response(200, json={"data": [{"date": "2024-06-05", "timeSlotIndex": 10}]})
    )
    respx.get(host="tutors.test", path="/api/schedule/tutors/bad-date/week").mock(
        return_value=httpx.Response(200, json={"data": [{"date": "99999999999999999999999", "timeSlotIndex": [1]}]})
    )
    respx.get(host="tutors.test", path="/api/schedule/tutors/bad-entry/week").mock(
        return_value=httpx.Response(200, json={"data": [10]})
    )

    service = ScheduleService(client)
    records = await service.get_schedules(["good", "bad-slots", "bad-date", "bad-entry"], MONDAY)

    assert records["good"].day_for(date(2024, 6, 5)).available_slots == frozenset({10})
    assert not records["bad-slots"].fetch_failed
    assert records["bad-slots"].is_empty
    assert records["bad-date"].fetch_failed
    assert records["bad-entry"].fetch_failed
