"""Helper functions for OpenTelemetry id conversion and attribute values."""

from __future__ import annotations

import re
from typing import Any, Sequence, Tuple

# W3C tracestate list-member grammar, the same rules OpenTelemetry's TraceState enforces.
_TRACESTATE_KEY = re.compile(
    r"[a-z][_0-9a-z\-\*\/]{0,255}|[a-z0-9][_0-9a-z\-\*\/]{0,240}@[a-z][_0-9a-z\-\*\/]{0,13}"
)
_TRACESTATE_VALUE = re.compile(r"[\x20-\x2b\x2d-\x3c\x3e-\x7e]{0,255}[\x21-\x2b\x2d-\x3c\x3e-\x7e]")
MAX_TRACESTATE_ENTRIES = 32


def format_trace_id(trace_id: int) -> str:
    """
    Format OTel trace_id (128-bit int) to hex string.

    Args:
        trace_id: OTel trace_id as int

    Returns:
        32-character lowercase hex string
    """
    return format(trace_id, '032x')


def format_span_id(span_id: int) -> str:
    """
    Format OTel span_id (64-bit int) to hex string.

    Args:
        span_id: OTel span_id as int

    Returns:
        16-character lowercase hex string
    """
    return format(span_id, '016x')


def parse_trace_id(hex_string: str) -> int:
    """
    Parse hex string trace_id to OTel int.

    Args:
        hex_string: 32-character hex string

    Returns:
        OTel trace_id as int (0 when empty)
    """
    if not hex_string:
        return 0
    return int(hex_string, 16)


def parse_span_id(hex_string: str) -> int:
    """
    Parse hex string span_id to OTel int.

    Args:
        hex_string: 16-character hex string

    Returns:
        OTel span_id as int (0 when empty)
    """
    if not hex_string:
        return 0
    return int(hex_string, 16)


def is_hex_id(value: str, length: int) -> bool:
    """True for a lowercase hex string of the given length that is not all zeros."""
    if not isinstance(value, str) or len(value) != length:
        return False
    if any(ch not in "0123456789abcdef" for ch in value):
        return False
    return value != "0" * length


def truncate_attribute(value: Any, limit: int) -> Any:
    """Truncate string attribute values to `limit` characters; other types pass through."""
    if isinstance(value, str) and limit and len(value) > limit:
        return value[:limit]
    return value


def is_valid_trace_state(entries: Sequence[Tuple[str, str]]) -> bool:
    """
    True when every (key, value) pair is a legal W3C tracestate member.

    Keys must be unique and there may be at most 32 entries; anything else
    would be dropped on the wire.
    """
    if len(entries) > MAX_TRACESTATE_ENTRIES:
        return False
    seen = set()
    for entry in entries:
        if not isinstance(entry, tuple) or len(entry) != 2:
            return False
        key, value = entry
        if not isinstance(key, str) or not isinstance(value, str):
            return False
        if key in seen or not _TRACESTATE_KEY.fullmatch(key) or not _TRACESTATE_VALUE.fullmatch(value):
            return False
        seen.add(key)
    return True
