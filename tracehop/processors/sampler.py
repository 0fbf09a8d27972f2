"""Sampling decisions for traces."""

import random
from dataclasses import dataclass
from typing import Optional, Sequence

from opentelemetry.context import Context
from opentelemetry.sdk.trace.sampling import (
    Decision,
    ParentBased,
    Sampler as OTelSampler,
    SamplingResult as OTelSamplingResult,
)
from opentelemetry.trace import Link, SpanKind
from opentelemetry.trace.span import TraceState
from opentelemetry.util.types import Attributes


@dataclass
class SamplingResult:
    sampled: bool


class Sampler:
    """Head-based sampler using a fixed probability."""

    def __init__(self, sample_rate: float = 1.0) -> None:
        if not 0.0 <= sample_rate <= 1.0:
            raise ValueError("sample_rate must be between 0.0 and 1.0")
        self.sample_rate = sample_rate

    def should_sample(self) -> SamplingResult:
        return SamplingResult(sampled=random.random() < self.sample_rate)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(sample_rate={self.sample_rate})"


class AlwaysOnSampler(Sampler):
    def __init__(self) -> None:
        super().__init__(1.0)

    def should_sample(self) -> SamplingResult:
        return SamplingResult(sampled=True)


class AlwaysOffSampler(Sampler):
    def __init__(self) -> None:
        super().__init__(0.0)

    def should_sample(self) -> SamplingResult:
        return SamplingResult(sampled=False)


class RootSamplerAdapter(OTelSampler):
    """
    Exposes a tracehop sampler through the OpenTelemetry sampler interface.

    Only consulted for root spans once wrapped with `parent_based()`. The
    delegate may be swapped at runtime.
    """

    def __init__(self, delegate: Sampler) -> None:
        self.delegate = delegate

    def should_sample(
        self,
        parent_context: Optional[Context],
        trace_id: int,
        name: str,
        kind: Optional[SpanKind] = None,
        attributes: Attributes = None,
        links: Optional[Sequence[Link]] = None,
        trace_state: Optional[TraceState] = None,
    ) -> OTelSamplingResult:
        sampled = bool(self.delegate.should_sample().sampled)
        decision = Decision.RECORD_AND_SAMPLE if sampled else Decision.DROP
        return OTelSamplingResult(decision, attributes if sampled else None, trace_state)

    def get_description(self) -> str:
        return f"RootSamplerAdapter{{{self.delegate!r}}}"

    def parent_based(self) -> ParentBased:
        return ParentBased(root=self)
