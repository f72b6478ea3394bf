"""
Data collection package: Airtable client, paginated record fetcher and reference resolver.
"""
from .airtable_client import AirtableClient, RecordPage
from .fetch_result import FetchErrorKind, FetchResult, FetchStatus
from .record_fetcher import RecordFetcher, RecordIndexError
from .reference_resolver import (
    LOADING_PLACEHOLDER,
    NOT_AVAILABLE,
    ReferenceKind,
    ReferenceResolver,
    first_reference_id,
)
from .review_session import ReviewSession

__all__ = [
    'AirtableClient',
    'RecordPage',
    'FetchErrorKind',
    'FetchResult',
    'FetchStatus',
    'RecordFetcher',
    'RecordIndexError',
    'LOADING_PLACEHOLDER',
    'NOT_AVAILABLE',
    'ReferenceKind',
    'ReferenceResolver',
    'first_reference_id',
    'ReviewSession'
]
