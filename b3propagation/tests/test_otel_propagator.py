"""Tests for the OpenTelemetry propagator backed by B3."""

import pytest
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.trace import NonRecordingSpan, SpanContext, TraceFlags

from b3propagation.context.otel import (
    B3TextMapPropagator,
    from_otel_span_context,
    to_otel_span_context,
)
from b3propagation.context.propagation import STRING_KEYS
from b3propagation.context.trace_context import TraceContext

TRACE_ID_128 = "463ac35c9f6413ad48485a3953bb6124"
SPAN_ID = "a2fb4a1d1a96d312"


@pytest.fixture
def propagator():
    return B3TextMapPropagator()


def _context_with(span_context):
    return trace.set_span_in_context(NonRecordingSpan(span_context))


class TestConversions:
    def test_to_otel_joins_trace_id_halves(self):
        context = (
            TraceContext.new_builder()
            .set_trace_id_high(0x463AC35C9F6413AD)
            .set_trace_id(0x48485A3953BB6124)
            .set_span_id(0xA2FB4A1D1A96D312)
            .set_sampled(True)
            .build()
        )
        span_context = to_otel_span_context(context)

        assert span_context.trace_id == int(TRACE_ID_128, 16)
        assert span_context.span_id == int(SPAN_ID, 16)
        assert span_context.is_remote
        assert span_context.trace_flags.sampled

    def test_debug_maps_to_sampled(self):
        context = TraceContext.new_builder().set_trace_id(1).set_span_id(2).set_debug(True).build()
        assert to_otel_span_context(context).trace_flags.sampled

    def test_debug_without_builder_maps_to_sampled(self):
        context = TraceContext(trace_id=1, span_id=2, debug=True)
        assert context.sampled is None
        assert to_otel_span_context(context).trace_flags.sampled

    def test_unknown_sampling_maps_to_not_sampled(self):
        context = TraceContext.new_builder().set_trace_id(1).set_span_id(2).build()
        assert not to_otel_span_context(context).trace_flags.sampled

    def test_from_otel_splits_trace_id(self):
        span_context = SpanContext(
            trace_id=int(TRACE_ID_128, 16),
            span_id=int(SPAN_ID, 16),
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )
        context = from_otel_span_context(span_context, parent_id=5)

        assert context.trace_id_string == TRACE_ID_128
        assert context.span_id_string == SPAN_ID
        assert context.parent_id == 5
        assert context.sampled is True


class TestExtract:
    def test_multi_header(self, propagator):
        ctx = propagator.extract(
            {"x-b3-traceid": TRACE_ID_128, "x-b3-spanid": SPAN_ID, "x-b3-sampled": "1"}
        )
        span_context = trace.get_current_span(ctx).get_span_context()

        assert span_context.is_valid
        assert span_context.is_remote
        assert format(span_context.trace_id, "032x") == TRACE_ID_128
        assert format(span_context.span_id, "016x") == SPAN_ID
        assert span_context.trace_flags.sampled

    def test_single_header(self, propagator):
        ctx = propagator.extract({"b3": f"{TRACE_ID_128}-{SPAN_ID}-0"})
        span_context = trace.get_current_span(ctx).get_span_context()

        assert format(span_context.span_id, "016x") == SPAN_ID
        assert not span_context.trace_flags.sampled

    def test_flags_only_leaves_context_unchanged(self, propagator):
        original = Context()
        assert propagator.extract({"x-b3-sampled": "1"}, context=original) is original

    def test_malformed_leaves_context_unchanged(self, propagator):
        ctx = propagator.extract({"x-b3-traceid": "nope", "x-b3-spanid": SPAN_ID})
        assert not trace.get_current_span(ctx).get_span_context().is_valid

    def test_string_keys(self):
        propagator = B3TextMapPropagator(STRING_KEYS)
        ctx = propagator.extract({"X-B3-TraceId": TRACE_ID_128, "X-B3-SpanId": SPAN_ID})
        assert trace.get_current_span(ctx).get_span_context().is_valid


class TestInject:
    def test_current_span(self, propagator):
        tracer = TracerProvider().get_tracer("test")
        carrier = {}
        with tracer.start_as_current_span("client") as span:
            propagator.inject(carrier)
            span_context = span.get_span_context()

        assert carrier["x-b3-traceid"] == format(span_context.trace_id, "032x")
        assert carrier["x-b3-spanid"] == format(span_context.span_id, "016x")
        assert carrier["x-b3-sampled"] == "1"
        assert "b3" not in carrier

    def test_explicit_context(self, propagator):
        span_context = SpanContext(
            trace_id=0x1234,
            span_id=int(SPAN_ID, 16),
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.DEFAULT),
        )
        carrier = {}
        propagator.inject(carrier, context=_context_with(span_context))

        assert carrier == {
            "x-b3-traceid": "0000000000001234",
            "x-b3-spanid": SPAN_ID,
            "x-b3-sampled": "0",
        }

    def test_invalid_span_writes_nothing(self, propagator):
        carrier = {}
        propagator.inject(carrier, context=Context())
        assert carrier == {}

    def test_round_trip(self, propagator):
        span_context = SpanContext(
            trace_id=int(TRACE_ID_128, 16),
            span_id=int(SPAN_ID, 16),
            is_remote=False,
            trace_flags=TraceFlags(TraceFlags.SAMPLED),
        )
        carrier = {}
        propagator.inject(carrier, context=_context_with(span_context))
        extracted = trace.get_current_span(propagator.extract(carrier)).get_span_context()

        assert extracted.trace_id == span_context.trace_id
        assert extracted.span_id == span_context.span_id
        assert extracted.trace_flags.sampled


def test_fields(propagator):
    assert propagator.fields == {
        "b3",
        "x-b3-traceid",
        "x-b3-spanid",
        "x-b3-parentspanid",
        "x-b3-sampled",
        "x-b3-flags",
    }
