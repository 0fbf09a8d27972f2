"""Mapping of HTTP call outcomes onto canonical trace status."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Dict, Optional

import requests

from tracehop.tracer.status import STATUS_OK, CanonicalCode, Status

_HTTP_STATUS_TO_CODE: Dict[int, CanonicalCode] = {
    400: CanonicalCode.INVALID_ARGUMENT,
    401: CanonicalCode.UNAUTHENTICATED,
    403: CanonicalCode.PERMISSION_DENIED,
    404: CanonicalCode.NOT_FOUND,
    409: CanonicalCode.ALREADY_EXISTS,
    412: CanonicalCode.FAILED_PRECONDITION,
    429: CanonicalCode.RESOURCE_EXHAUSTED,
    499: CanonicalCode.CANCELLED,
    500: CanonicalCode.INTERNAL,
    501: CanonicalCode.UNIMPLEMENTED,
    502: CanonicalCode.UNAVAILABLE,
    503: CanonicalCode.UNAVAILABLE,
    504: CanonicalCode.DEADLINE_EXCEEDED,
}


def _error_message(error: Optional[BaseException]) -> Optional[str]:
    if error is None:
        return None
    return str(error) or type(error).__name__


def _reason_phrase(status_code: int) -> Optional[str]:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return None


def parse_response_status(status_code: int, error: Optional[BaseException] = None) -> Status:
    """
    Map an HTTP status code and optional transport error to a canonical Status.

    `status_code` is 0 when no response was obtained. Pure and total: every
    input maps to exactly one status.
    """
    message = _error_message(error)

    if status_code == 0:
        if error is None:
            return Status(CanonicalCode.UNKNOWN)
        if isinstance(error, (TimeoutError, requests.Timeout)):
            return Status(CanonicalCode.DEADLINE_EXCEEDED, message)
        return Status(CanonicalCode.UNAVAILABLE, message)

    if 200 <= status_code < 400:
        return STATUS_OK

    code = _HTTP_STATUS_TO_CODE.get(status_code)
    if code is None:
        return Status(CanonicalCode.UNKNOWN, message or _reason_phrase(status_code))
    return Status(code, message)


@dataclass(frozen=True)
class CallOutcome:
    """Result of one outbound call: a response, a transport error, or neither (interrupted)."""

    response: Optional[requests.Response] = None
    error: Optional[BaseException] = None

    @property
    def status_code(self) -> int:
        if self.response is None:
            return 0
        return self.response.status_code

    def status(self) -> Status:
        return parse_response_status(self.status_code, self.error)
