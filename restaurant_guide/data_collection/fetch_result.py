"""
Typed outcomes for calls made against the Airtable API.

Every request returns a FetchResult instead of raising, so callers decide
what a failure means for them (retry, placeholder, error response).
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class FetchStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    SKIPPED = "SKIPPED"


class FetchErrorKind(str, Enum):
    """Why a request did not produce usable data."""
    TRANSPORT = "transport"      # network unreachable, timeout, malformed URL
    HTTP_STATUS = "http_status"  # anything other than 200 OK
    SHAPE = "shape"              # body is not the JSON structure we expect
    EMPTY_BODY = "empty_body"    # 200 OK with no content


RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class FetchResult:
    status: FetchStatus
    data: Any = None
    error_kind: Optional[FetchErrorKind] = None
    status_code: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, data: Any, status_code: Optional[int] = 200) -> "FetchResult":
        return cls(status=FetchStatus.SUCCESS, data=data, status_code=status_code)

    @classmethod
    def failure(
        cls,
        kind: FetchErrorKind,
        error: str,
        status_code: Optional[int] = None,
    ) -> "FetchResult":
        return cls(status=FetchStatus.FAILURE, error_kind=kind, error=error, status_code=status_code)

    @classmethod
    def skipped(cls, reason: str) -> "FetchResult":
        """A call that was deliberately not made (or whose result was discarded)."""
        return cls(status=FetchStatus.SKIPPED, error=reason)

    @property
    def ok(self) -> bool:
        return self.status == FetchStatus.SUCCESS

    @property
    def failed(self) -> bool:
        return self.status == FetchStatus.FAILURE

    @property
    def retryable(self) -> bool:
        """Transport errors, rate limiting and server errors are worth another attempt."""
        if self.error_kind == FetchErrorKind.TRANSPORT:
            return True
        if self.error_kind == FetchErrorKind.HTTP_STATUS:
            return self.status_code in RETRYABLE_STATUS_CODES
        return False
