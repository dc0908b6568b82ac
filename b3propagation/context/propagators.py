"""B3 propagation: reads and writes trace identity in ``X-B3-*`` and ``b3`` fields.

Implements https://github.com/openzipkin/b3-propagation. Injection writes the
multi-header form. Extraction accepts both forms, preferring ``b3``.
"""

from __future__ import annotations

from typing import Generic, Optional, Tuple

from b3propagation.context.b3_single_format import parse_b3_single_format
from b3propagation.context.propagation import (
    C,
    Getter,
    K,
    KeyFactory,
    Propagation,
    PropagationFactory,
    Setter,
)
from b3propagation.context.sampling_flags import SamplingFlags
from b3propagation.context.trace_context import TraceContext, TraceContextOrSamplingFlags
from b3propagation.errors import ValidationError
from b3propagation.utils.hex_codec import to_lower_hex

B3_NAME = "b3"
# 128 or 64-bit trace ID lower-hex encoded into 32 or 16 characters (required)
TRACE_ID_NAME = "X-B3-TraceId"
# 64-bit span ID lower-hex encoded into 16 characters (required)
SPAN_ID_NAME = "X-B3-SpanId"
# 64-bit parent span ID lower-hex encoded into 16 characters (absent on root span)
PARENT_SPAN_ID_NAME = "X-B3-ParentSpanId"
# "1" means report this span, "0" means do not; absent defers to the receiver
SAMPLED_NAME = "X-B3-Sampled"
# "1" implies sampled and overrides collection-tier sampling policy
FLAGS_NAME = "X-B3-Flags"


class B3Propagation(Propagation[K]):
    """
    B3 propagation bound to keys made by one KeyFactory.

    Keys are created once here and shared by every injector and extractor.
    """

    def __init__(self, key_factory: KeyFactory[K]) -> None:
        if key_factory is None:
            raise ValidationError("key_factory")
        self.b3_key = key_factory.create(B3_NAME)
        self.trace_id_key = key_factory.create(TRACE_ID_NAME)
        self.span_id_key = key_factory.create(SPAN_ID_NAME)
        self.parent_span_id_key = key_factory.create(PARENT_SPAN_ID_NAME)
        self.sampled_key = key_factory.create(SAMPLED_NAME)
        self.debug_key = key_factory.create(FLAGS_NAME)
        self._keys: Tuple[K, ...] = (
            self.b3_key,
            self.trace_id_key,
            self.span_id_key,
            self.parent_span_id_key,
            self.sampled_key,
            self.debug_key,
        )

    def keys(self) -> Tuple[K, ...]:
        return self._keys

    def injector(self, setter: Setter[C, K]) -> B3Injector[C, K]:
        if setter is None:
            raise ValidationError("setter")
        return B3Injector(self, setter)

    def extractor(self, getter: Getter[C, K]) -> B3Extractor[C, K]:
        if getter is None:
            raise ValidationError("getter")
        return B3Extractor(self, getter)


class B3Injector(Generic[C, K]):
    """Writes a TraceContext into a carrier as multiple ``X-B3-*`` fields."""

    def __init__(self, propagation: B3Propagation[K], setter: Setter[C, K]) -> None:
        self.propagation = propagation
        self.setter = setter

    def inject(self, context: TraceContext, carrier: C) -> None:
        """
        Inject ``context`` into ``carrier``.

        Trace and span IDs are always written; the parent ID only for child
        spans. Debug is written instead of the sampling decision, which it
        implies, and an unknown decision writes neither.
        """
        propagation = self.propagation
        self.setter.put(carrier, propagation.trace_id_key, context.trace_id_string)
        self.setter.put(carrier, propagation.span_id_key, to_lower_hex(context.span_id))
        if context.parent_id != 0:
            self.setter.put(carrier, propagation.parent_span_id_key, to_lower_hex(context.parent_id))
        if context.debug:
            self.setter.put(carrier, propagation.debug_key, "1")
        elif context.sampled is not None:
            self.setter.put(carrier, propagation.sampled_key, "1" if context.sampled else "0")


class B3Extractor(Generic[C, K]):
    """Reads a trace context, or sampling flags, from a carrier."""

    def __init__(self, propagation: B3Propagation[K], getter: Getter[C, K]) -> None:
        self.propagation = propagation
        self.getter = getter
        self.b3_key = propagation.b3_key

    def extract(self, carrier: C) -> TraceContextOrSamplingFlags:
        """
        Extract from ``carrier``.

        A non-empty ``b3`` field takes precedence over the multi-header
        fields. If it is malformed the result is empty; there is no fallback.
        Malformed multi-header IDs also yield empty, even when a sampling
        decision could be read.

        Raises:
            ValidationError: If carrier is None
        """
        if carrier is None:
            raise ValidationError("carrier")

        b3_string = self.getter.get(carrier, self.b3_key)
        if b3_string:
            extracted = parse_b3_single_format(b3_string)
            return extracted if extracted is not None else TraceContextOrSamplingFlags.EMPTY

        propagation = self.propagation
        # Official sampled value is 1, though some old instrumentation send true
        sampled_string = self.getter.get(carrier, propagation.sampled_key)
        sampled: Optional[bool] = None
        if sampled_string is not None:
            sampled = sampled_string == "1" or sampled_string.lower() == "true"
        debug = self.getter.get(carrier, propagation.debug_key) == "1"

        trace_id_string = self.getter.get(carrier, propagation.trace_id_key)
        # no trace ID is fine when only the sampling decision is propagated
        if trace_id_string is None:
            return TraceContextOrSamplingFlags.create(SamplingFlags.from_values(sampled, debug))

        builder = TraceContext.new_builder()
        if (
            builder.parse_trace_id(trace_id_string, propagation.trace_id_key)
            and builder.parse_span_id(self.getter, carrier, propagation.span_id_key)
            and builder.parse_parent_id(self.getter, carrier, propagation.parent_span_id_key)
        ):
            if sampled is not None:
                builder.set_sampled(sampled)
            if debug:
                builder.set_debug(True)
            return TraceContextOrSamplingFlags.create(builder.build())
        return TraceContextOrSamplingFlags.EMPTY


class B3PropagationFactory(PropagationFactory):
    def create(self, key_factory: KeyFactory[K]) -> B3Propagation[K]:
        return B3Propagation(key_factory)

    @property
    def supports_join(self) -> bool:
        return True

    def __str__(self) -> str:
        return "B3PropagationFactory"


FACTORY = B3PropagationFactory()
