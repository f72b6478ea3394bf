import httpx
import pytest
from fastapi.testclient import TestClient

from restaurant_guide.api.main import create_app
from restaurant_guide.processing.rating import STAR
from tests.helpers import make_records


@pytest.fixture
def restaurants():
    records = make_records("R", 10)
    records[0]["fields"].update(
        {
            "Cost": "$$",
            "My Rating": "1 - Amazing",
            "District": ["recD1"],
            "Cuisine": ["recC1"],
            "Pictures": [{"url": "https://dl.airtable.com/full.jpg"}],
            "Menu": [{"url": "https://dl.airtable.com/menu.pdf"}],
        }
    )
    return records


@pytest.fixture
def api(settings, airtable, restaurants):
    airtable.add_page("", restaurants, "itr1")
    airtable.add_page("itr1", make_records("S", 5))
    airtable.add_reference("City Districts", "recD1", "Mission")
    airtable.add_reference("Cuisines", "recC1", "Thai")

    app = create_app(settings, http_client=airtable.client())
    with TestClient(app) as client:
        yield client


def test_health_after_startup(api):
    response = api.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["records_loaded"] == 10
    assert body["has_more"] is True


def test_list_window(api):
    response = api.get("/restaurants", params={"start": 0, "count": 2})
    assert response.status_code == 200
    body = response.json()
    assert [row["name"] for row in body["rows"]] == ["R 000", "R 001"]
    assert body["rows"][0]["subtitle"] == f"{STAR * 4} • $$"
    assert body["total_loaded"] == 10


def test_reading_near_the_end_loads_next_page(api, airtable):
    response = api.get("/restaurants", params={"start": 5, "count": 5, "wait": True})
    body = response.json()
    assert body["total_loaded"] == 15
    assert body["has_more"] is False
    assert len(airtable.requests_to("Restaurants")) == 2


def test_row_out_of_range_is_404(api):
    assert api.get("/restaurants/50").status_code == 404


def test_details_wait_for_names(api):
    response = api.get("/restaurants/0/details", params={"wait": True})
    assert response.status_code == 200
    body = response.json()
    assert body["district"] == "Mission"
    assert body["cuisine"] == "Thai"
    assert body["tabs"] == ["Details", "Photos", "Menu"]


def test_details_without_wait_show_placeholder(api):
    body = api.get("/restaurants/0/details").json()
    assert body["district"] == "Loading..."
    assert body["notes"] == "None."


def test_photos_and_menu(api):
    assert api.get("/restaurants/0/photos").json()["thumbnails"] == ["https://dl.airtable.com/full.jpg"]
    assert api.get("/restaurants/0/photos/0").json()["url"] == "https://dl.airtable.com/full.jpg"
    assert api.get("/restaurants/0/photos/3").status_code == 404
    assert api.get("/restaurants/0/menu").json()["url"] == "https://dl.airtable.com/menu.pdf"
    assert api.get("/restaurants/1/photos").status_code == 404
    assert api.get("/restaurants/1/menu").status_code == 404


def test_refresh(api, airtable):
    airtable.add_page("", make_records("N", 3))
    response = api.post("/restaurants/refresh")
    assert response.status_code == 200
    assert response.json() == {"total_loaded": 3, "has_more": False}


def test_refresh_failure_is_502(api, airtable):
    airtable.fail_next("/v0/appTest/Restaurants", httpx.Response(403, json={"error": "NOT_AUTHORIZED"}))
    response = api.post("/restaurants/refresh")
    assert response.status_code == 502
    assert response.json()["detail"]["error_kind"] == "http_status"


def test_failed_startup_leaves_list_empty(settings, airtable):
    for _ in range(settings.max_retries):
        airtable.fail_next("/v0/appTest/Restaurants", httpx.Response(500))

    with TestClient(create_app(settings, http_client=airtable.client())) as client:
        body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["records_loaded"] == 0
