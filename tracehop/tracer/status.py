"""Span status values: the coarse OpenTelemetry status and canonical codes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from opentelemetry.trace import Status as OTelStatus, StatusCode as OTelStatusCode


class SpanStatus(Enum):
    UNSET = 0
    OK = 1
    ERROR = 2


class CanonicalCode(Enum):
    """Canonical trace status codes, numbered as in the gRPC code space."""

    OK = 0
    CANCELLED = 1
    UNKNOWN = 2
    INVALID_ARGUMENT = 3
    DEADLINE_EXCEEDED = 4
    NOT_FOUND = 5
    ALREADY_EXISTS = 6
    PERMISSION_DENIED = 7
    RESOURCE_EXHAUSTED = 8
    FAILED_PRECONDITION = 9
    ABORTED = 10
    OUT_OF_RANGE = 11
    UNIMPLEMENTED = 12
    INTERNAL = 13
    UNAVAILABLE = 14
    DATA_LOSS = 15
    UNAUTHENTICATED = 16


@dataclass(frozen=True)
class Status:
    canonical_code: CanonicalCode
    description: Optional[str] = None

    @property
    def is_ok(self) -> bool:
        return self.canonical_code is CanonicalCode.OK

    @property
    def span_status(self) -> SpanStatus:
        return SpanStatus.OK if self.is_ok else SpanStatus.ERROR

    def with_description(self, description: Optional[str]) -> "Status":
        return Status(self.canonical_code, description)

    def to_otel(self) -> OTelStatus:
        """OpenTelemetry only knows OK/ERROR; the canonical name leads the description."""
        if self.is_ok:
            return OTelStatus(status_code=OTelStatusCode.OK)
        description = self.canonical_code.name
        if self.description:
            description = f"{description}: {self.description}"
        return OTelStatus(status_code=OTelStatusCode.ERROR, description=description)


STATUS_OK = Status(CanonicalCode.OK)
STATUS_UNKNOWN = Status(CanonicalCode.UNKNOWN)
