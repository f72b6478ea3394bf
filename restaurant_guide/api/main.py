"""
FastAPI application serving restaurant lists and detail views from Airtable.
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from restaurant_guide import __version__
from restaurant_guide.data_collection.fetch_result import FetchResult
from restaurant_guide.data_collection.record_fetcher import RecordIndexError
from restaurant_guide.data_collection.review_session import ReviewSession
from restaurant_guide.processing.record_presenter import (
    DetailView,
    ListRow,
    RecordPresenter,
    menu_url,
    photo_thumbnails,
    photo_url,
)
from restaurant_guide.utils.config import Settings
from restaurant_guide.utils.logger import app_logger


# Pydantic models
class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    records_loaded: int
    has_more: bool
    loading: bool
    reference_cache: Dict[str, Any]


class RestaurantListResponse(BaseModel):
    total_loaded: int
    has_more: bool
    rows: List[ListRow]


class RefreshResponse(BaseModel):
    total_loaded: int
    has_more: bool


class PhotosResponse(BaseModel):
    record_id: str
    thumbnails: List[str]


class LinkResponse(BaseModel):
    record_id: str
    url: str


def _failure_detail(result: FetchResult) -> Dict[str, Any]:
    return {
        "error_kind": result.error_kind.value if result.error_kind else None,
        "status_code": result.status_code,
        "error": result.error,
    }


def create_app(settings: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None) -> FastAPI:
    """Build the application. Settings are read when the app starts, not at import."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_logger.info("Starting Restaurant Guide API...")
        session = ReviewSession(settings, client=http_client)
        app.state.session = session
        app.state.presenter = RecordPresenter(session.references)

        result = await session.fetch_page_with_retry(None)
        if result.failed:
            # The list stays empty; clients can POST /restaurants/refresh
            app_logger.error(f"Initial restaurant load failed: {result.error_kind.value} - {result.error}")
        else:
            app_logger.info(f"API startup completed with {len(session.restaurants)} restaurants")

        yield

        await session.close()
        app_logger.info("API shutdown completed")

    app = FastAPI(
        title="Restaurant Guide API",
        description="Restaurant reviews served from an Airtable base",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def get_session(request: Request) -> ReviewSession:
        return request.app.state.session

    def get_presenter(request: Request) -> RecordPresenter:
        return request.app.state.presenter

    def get_record(session: ReviewSession, index: int) -> Dict[str, Any]:
        try:
            return session.restaurants.record_at(index)
        except RecordIndexError as e:
            raise HTTPException(status_code=404, detail=str(e))

    @app.get("/health", response_model=HealthResponse)
    async def health_check(session: ReviewSession = Depends(get_session)):
        """Health check endpoint."""
        restaurants = session.restaurants
        return HealthResponse(
            status="healthy" if restaurants.loaded else "degraded",
            timestamp=datetime.now().isoformat(),
            version=__version__,
            records_loaded=len(restaurants),
            has_more=restaurants.has_more,
            loading=restaurants.is_loading,
            reference_cache=session.references.cache.get_stats(),
        )

    @app.get("/restaurants", response_model=RestaurantListResponse)
    async def list_restaurants(
        start: int = Query(0, ge=0),
        count: int = Query(20, ge=1, le=100),
        wait: bool = Query(False, description="Wait for any triggered page load before responding"),
        session: ReviewSession = Depends(get_session),
        presenter: RecordPresenter = Depends(get_presenter),
    ):
        """List rows for a window of loaded restaurants; reading near the end loads the next page."""
        restaurants = session.restaurants
        end = min(start + count, len(restaurants))
        rows = [presenter.list_row(index, restaurants.record_at(index)) for index in range(start, end)]
        if start >= end:
            restaurants.maybe_read_ahead(start)

        if wait:
            await restaurants.wait_idle()

        return RestaurantListResponse(
            total_loaded=len(restaurants),
            has_more=restaurants.has_more,
            rows=rows,
        )

    @app.post("/restaurants/refresh", response_model=RefreshResponse)
    async def refresh_restaurants(session: ReviewSession = Depends(get_session)):
        """Reload the list from the first page."""
        result = await session.refresh_with_retry()
        if result.failed:
            raise HTTPException(status_code=502, detail=_failure_detail(result))
        return RefreshResponse(total_loaded=len(session.restaurants), has_more=session.restaurants.has_more)

    @app.get("/restaurants/{index}", response_model=ListRow)
    async def get_restaurant_row(
        index: int,
        session: ReviewSession = Depends(get_session),
        presenter: RecordPresenter = Depends(get_presenter),
    ):
        return presenter.list_row(index, get_record(session, index))

    @app.get("/restaurants/{index}/details", response_model=DetailView)
    async def get_restaurant_details(
        index: int,
        wait: bool = Query(False, description="Resolve district and cuisine before responding"),
        session: ReviewSession = Depends(get_session),
        presenter: RecordPresenter = Depends(get_presenter),
    ):
        """Detail view; unresolved district or cuisine names read "Loading..." unless `wait` is set."""
        record = get_record(session, index)
        if wait:
            await presenter.resolve_references(record)
        return presenter.detail_view(record)

    @app.get("/restaurants/{index}/photos", response_model=PhotosResponse)
    async def get_restaurant_photos(index: int, session: ReviewSession = Depends(get_session)):
        record = get_record(session, index)
        thumbnails = photo_thumbnails(record.get("fields") or {})
        if not thumbnails:
            raise HTTPException(status_code=404, detail="Restaurant has no pictures")
        return PhotosResponse(record_id=record["id"], thumbnails=thumbnails)

    @app.get("/restaurants/{index}/photos/{position}", response_model=LinkResponse)
    async def get_restaurant_photo(index: int, position: int, session: ReviewSession = Depends(get_session)):
        record = get_record(session, index)
        try:
            url = photo_url(record.get("fields") or {}, position)
        except IndexError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return LinkResponse(record_id=record["id"], url=url)

    @app.get("/restaurants/{index}/menu", response_model=LinkResponse)
    async def get_restaurant_menu(index: int, session: ReviewSession = Depends(get_session)):
        record = get_record(session, index)
        url = menu_url(record.get("fields") or {})
        if not url:
            raise HTTPException(status_code=404, detail="Restaurant has no menu")
        return LinkResponse(record_id=record["id"], url=url)

    return app


# Application used by uvicorn; settings are loaded from the environment at startup
app = create_app()
