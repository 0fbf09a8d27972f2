"""Span processors and supporting utilities."""

from tracehop.processors.sampler import (
    AlwaysOffSampler,
    AlwaysOnSampler,
    RootSamplerAdapter,
    Sampler,
    SamplingResult,
)
from tracehop.processors.logging_processor import LoggingSpanProcessor

__all__ = [
    "Sampler",
    "SamplingResult",
    "AlwaysOnSampler",
    "AlwaysOffSampler",
    "RootSamplerAdapter",
    "LoggingSpanProcessor",
]
