"""Pytest configuration and fixtures."""

import pytest

from restaurant_guide.utils.config import Settings
from tests.helpers import FakeAirtable


@pytest.fixture
def settings():
    """Settings pointing at the fake base, with no backoff between retries."""
    return Settings(
        airtable_api_key="keyTest",
        airtable_base_id="appTest",
        retry_delay=0,
        max_retries=3,
    )


@pytest.fixture
def airtable():
    return FakeAirtable()
