"""Utility functions for tracehop."""

from tracehop.utils.helpers import (
    format_trace_id,
    format_span_id,
    parse_trace_id,
    parse_span_id,
    is_hex_id,
    is_valid_trace_state,
    truncate_attribute,
)

__all__ = [
    "format_trace_id",
    "format_span_id",
    "parse_trace_id",
    "parse_span_id",
    "is_hex_id",
    "is_valid_trace_state",
    "truncate_attribute",
]
