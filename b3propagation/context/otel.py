"""B3 propagation for OpenTelemetry.

Exposes the B3 codec as an OpenTelemetry ``TextMapPropagator`` so it can be
installed globally or composed with other propagators, and converts between
B3 TraceContext and OpenTelemetry SpanContext.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Set

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.textmap import (
    CarrierT,
    Getter as OTelGetter,
    Setter as OTelSetter,
    TextMapPropagator,
    default_getter,
    default_setter,
)
from opentelemetry.trace import NonRecordingSpan
from opentelemetry.trace import SpanContext as OTelSpanContext, TraceFlags

from b3propagation.context.propagation import LOWER_CASE_KEYS, Getter, KeyFactory, Setter
from b3propagation.context.propagators import FACTORY
from b3propagation.context.trace_context import ExtractionKind, TraceContext
from b3propagation.utils.hex_codec import UINT64_MASK

logger = logging.getLogger(__name__)


class _OTelGetterAdapter(Getter[Any, str]):
    """Reads the first value an OpenTelemetry getter returns."""

    def __init__(self, getter: OTelGetter) -> None:
        self._getter = getter

    def get(self, carrier: Any, key: str) -> Optional[str]:
        values = self._getter.get(carrier, key)
        if not values:
            return None
        return values[0]


class _OTelSetterAdapter(Setter[Any, str]):
    def __init__(self, setter: OTelSetter) -> None:
        self._setter = setter

    def put(self, carrier: Any, key: str, value: str) -> None:
        self._setter.set(carrier, key, value)


class B3TextMapPropagator(TextMapPropagator):
    """
    OpenTelemetry propagator backed by B3Propagation.

    Only full trace contexts are handed to OpenTelemetry; a carrier holding
    just a sampling decision leaves the context unchanged, since
    OpenTelemetry has no span-less sampling state. Debug maps to sampled.
    """

    def __init__(self, key_factory: KeyFactory[str] = LOWER_CASE_KEYS) -> None:
        self._propagation = FACTORY.create(key_factory)

    def extract(
        self,
        carrier: CarrierT,
        context: Optional[Context] = None,
        getter: OTelGetter = default_getter,
    ) -> Context:
        if context is None:
            context = Context()
        extracted = self._propagation.extractor(_OTelGetterAdapter(getter)).extract(carrier)
        if extracted.kind is not ExtractionKind.TRACE_CONTEXT:
            return context
        span = NonRecordingSpan(to_otel_span_context(extracted.context))
        return trace.set_span_in_context(span, context)

    def inject(
        self,
        carrier: CarrierT,
        context: Optional[Context] = None,
        setter: OTelSetter = default_setter,
    ) -> None:
        span_context = trace.get_current_span(context).get_span_context()
        if not span_context.is_valid:
            return
        injector = self._propagation.injector(_OTelSetterAdapter(setter))
        injector.inject(from_otel_span_context(span_context), carrier)

    @property
    def fields(self) -> Set[str]:
        return set(self._propagation.keys())


def to_otel_span_context(context: TraceContext, is_remote: bool = True) -> OTelSpanContext:
    """Convert a B3 TraceContext to an OpenTelemetry SpanContext."""
    # debug implies sampled, even on a context built without the builder
    sampled = context.sampled or context.debug
    trace_flags = TraceFlags(TraceFlags.SAMPLED if sampled else TraceFlags.DEFAULT)
    return OTelSpanContext(
        trace_id=(context.trace_id_high << 64) | context.trace_id,
        span_id=context.span_id,
        is_remote=is_remote,
        trace_flags=trace_flags,
    )


def from_otel_span_context(span_context: OTelSpanContext, parent_id: int = 0) -> TraceContext:
    """
    Convert an OpenTelemetry SpanContext to a B3 TraceContext.

    Args:
        span_context: OpenTelemetry span context
        parent_id: Parent span ID, if known (OpenTelemetry does not carry it)

    Returns:
        TraceContext with the 128-bit trace ID split into high and low halves
    """
    return (
        TraceContext.new_builder()
        .set_trace_id_high(span_context.trace_id >> 64)
        .set_trace_id(span_context.trace_id & UINT64_MASK)
        .set_span_id(span_context.span_id)
        .set_parent_id(parent_id)
        .set_sampled(span_context.trace_flags.sampled)
        .build()
    )


def install_global_propagator(key_factory: KeyFactory[str] = LOWER_CASE_KEYS) -> B3TextMapPropagator:
    """Install B3 as OpenTelemetry's global text map propagator."""
    propagator = B3TextMapPropagator(key_factory)
    set_global_textmap(propagator)
    logger.info("Installed B3 as the global OpenTelemetry propagator")
    return propagator
