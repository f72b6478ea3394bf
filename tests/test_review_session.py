import asyncio

import httpx

from restaurant_guide.data_collection.fetch_result import FetchErrorKind
from restaurant_guide.data_collection.reference_resolver import ReferenceKind
from restaurant_guide.data_collection.review_session import ReviewSession
from tests.helpers import make_records

RESTAURANTS_PATH = "/v0/appTest/Restaurants"


def test_server_errors_are_retried(settings, airtable):
    airtable.add_page("", make_records("A", 3))
    airtable.fail_next(RESTAURANTS_PATH, httpx.Response(503))
    airtable.fail_next(RESTAURANTS_PATH, httpx.Response(429))

    async def scenario():
        async with ReviewSession(settings, client=airtable.client()) as session:
            result = await session.fetch_page_with_retry(None)
            return result, len(session.restaurants)

    result, loaded = asyncio.run(scenario())

    assert result.ok
    assert loaded == 3
    assert len(airtable.requests) == 3


def test_client_errors_are_not_retried(settings, airtable):
    airtable.fail_next(RESTAURANTS_PATH, httpx.Response(404, json={"error": "NOT_FOUND"}))

    async def scenario():
        async with ReviewSession(settings, client=airtable.client()) as session:
            return await session.fetch_page_with_retry(None)

    result = asyncio.run(scenario())

    assert result.error_kind == FetchErrorKind.HTTP_STATUS
    assert result.status_code == 404
    assert len(airtable.requests) == 1


def test_retries_stop_after_max_attempts(settings, airtable):
    for _ in range(5):
        airtable.fail_next(RESTAURANTS_PATH, httpx.Response(500))

    async def scenario():
        async with ReviewSession(settings, client=airtable.client()) as session:
            return await session.fetch_page_with_retry(None)

    result = asyncio.run(scenario())

    assert result.failed
    assert result.status_code == 500
    assert len(airtable.requests) == settings.max_retries


def test_refresh_with_retry(settings, airtable):
    airtable.add_page("", make_records("A", 2))

    async def scenario():
        async with ReviewSession(settings, client=airtable.client()) as session:
            await session.restaurants.load_initial()
            airtable.fail_next(RESTAURANTS_PATH, httpx.Response(502))
            result = await session.refresh_with_retry()
            return result, len(session.restaurants)

    result, loaded = asyncio.run(scenario())

    assert result.ok
    assert loaded == 2
    assert len(airtable.requests) == 3


def test_resolve_with_retry(settings, airtable):
    airtable.add_reference("Cuisines", "recC1", "Thai")
    airtable.fail_next("/v0/appTest/Cuisines/recC1", httpx.Response(503))

    async def scenario():
        async with ReviewSession(settings, client=airtable.client()) as session:
            return await session.resolve_with_retry(ReferenceKind.CUISINE, "recC1")

    result = asyncio.run(scenario())

    assert result.ok
    assert result.data == "Thai"


def test_close_detaches_listeners_and_is_idempotent(settings, airtable):
    airtable.add_page("", make_records("A", 2), "itr1")
    airtable.add_page("itr1", make_records("B", 2))
    seen = []

    async def scenario():
        session = ReviewSession(settings, client=airtable.client())
        session.restaurants.add_listener(lambda fetcher: seen.append(len(fetcher)))
        await session.restaurants.load_initial()
        await session.close()
        await session.close()
        result = await session.restaurants.fetch_page("itr1")
        return session, result

    session, result = asyncio.run(scenario())

    assert session.closed
    assert seen == [2]
    assert not result.ok
    assert len(airtable.requests) == 1


def test_refresh_retries_stop_after_max_attempts(settings, airtable):
    airtable.add_page("", make_records("A", 2))

    async def scenario():
        async with ReviewSession(settings, client=airtable.client()) as session:
            await session.restaurants.load_initial()
            for _ in range(10):
                airtable.fail_next(RESTAURANTS_PATH, httpx.Response(503))
            return await session.refresh_with_retry()

    result = asyncio.run(scenario())

    assert result.failed
    assert result.status_code == 503
    assert len(airtable.requests) == 1 + settings.max_retries
