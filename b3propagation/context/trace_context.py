"""Immutable trace identity and the builder that parses it from carriers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, List, Optional, Sequence, Tuple, Union

from b3propagation.context.propagation import Getter
from b3propagation.context.sampling_flags import SamplingFlags
from b3propagation.utils.hex_codec import (
    lenient_lower_hex_to_unsigned_long,
    lower_hex_to_unsigned_long,
    to_lower_hex,
    to_lower_hex_128,
)


def ensure_immutable(values: Sequence[Any]) -> Tuple[Any, ...]:
    """
    Freeze a working list so it can be attached to an immutable context.

    Tuples are returned as-is, including the shared empty tuple. Lists are
    copied, so the result does not follow later changes to the source.
    """
    if isinstance(values, tuple):
        return values
    if not values:
        return ()
    return tuple(values)


@dataclass(frozen=True)
class TraceContext:
    """
    Trace and span identity plus sampling state.

    Equality and hashing only consider ``trace_id_high``, ``trace_id`` and
    ``span_id``: two contexts with the same identity are the same context
    whatever parent or sampling metadata was recorded alongside them.
    """

    trace_id_high: int = 0
    trace_id: int = 0
    span_id: int = 0
    parent_id: int = field(default=0, compare=False)
    sampled: Optional[bool] = field(default=None, compare=False)
    debug: bool = field(default=False, compare=False)
    extra: Tuple[Any, ...] = field(default=(), compare=False, repr=False)

    @staticmethod
    def new_builder() -> Builder:
        return Builder()

    def to_builder(self) -> Builder:
        """Return a builder seeded with this context's fields."""
        builder = Builder()
        builder.trace_id_high = self.trace_id_high
        builder.trace_id = self.trace_id
        builder.span_id = self.span_id
        builder.parent_id = self.parent_id
        builder.sampled = self.sampled
        builder.debug = self.debug
        builder.extra = list(self.extra)
        return builder

    @property
    def trace_id_string(self) -> str:
        """Lower-hex trace ID: 32 characters when 128-bit, else 16."""
        if self.trace_id_high != 0:
            return to_lower_hex_128(self.trace_id_high, self.trace_id)
        return to_lower_hex(self.trace_id)

    @property
    def span_id_string(self) -> str:
        return to_lower_hex(self.span_id)

    @property
    def parent_id_string(self) -> Optional[str]:
        """Lower-hex parent ID, or None for a root span."""
        return to_lower_hex(self.parent_id) if self.parent_id != 0 else None

    @property
    def sampling_flags(self) -> SamplingFlags:
        return SamplingFlags.from_values(self.sampled, self.debug)

    def __str__(self) -> str:
        return f"{self.trace_id_string}/{self.span_id_string}"


class Builder:
    """
    Mutable scratch state for a TraceContext.

    Not thread-safe: confine a builder to the call that created it. The
    ``parse_*`` methods return False on malformed input instead of raising,
    leaving the affected fields untouched.
    """

    def __init__(self) -> None:
        self.trace_id_high = 0
        self.trace_id = 0
        self.span_id = 0
        self.parent_id = 0
        self.sampled: Optional[bool] = None
        self.debug = False
        self.extra: List[Any] = []

    def set_trace_id_high(self, trace_id_high: int) -> Builder:
        self.trace_id_high = trace_id_high
        return self

    def set_trace_id(self, trace_id: int) -> Builder:
        self.trace_id = trace_id
        return self

    def set_span_id(self, span_id: int) -> Builder:
        self.span_id = span_id
        return self

    def set_parent_id(self, parent_id: Optional[int]) -> Builder:
        """Set the parent span ID; None means root and is stored as zero."""
        self.parent_id = parent_id or 0
        return self

    def set_sampled(self, sampled: Optional[bool]) -> Builder:
        self.sampled = sampled
        return self

    def set_debug(self, debug: bool) -> Builder:
        self.debug = bool(debug)
        return self

    def set_extra(self, extra: Sequence[Any]) -> Builder:
        self.extra = list(extra)
        return self

    def add_extra(self, value: Any) -> Builder:
        self.extra.append(value)
        return self

    def parse_trace_id(self, trace_id_string: Optional[str], key: Any) -> bool:
        """
        Parse a 1 to 32 character lower-hex trace ID.

        Left-most characters beyond the last 16 are the high bits. Shorter
        strings are read as if left-padded with zeros.

        Args:
            trace_id_string: Raw carrier value
            key: Carrier key the value was read from

        Returns:
            True when ``trace_id_high`` and ``trace_id`` were set
        """
        parsed = lenient_lower_hex_to_unsigned_long(trace_id_string)
        if parsed is None:
            return False
        high, low = parsed
        # a zero high half is a padded 64-bit ID, a zero low half is invalid
        if low == 0:
            return False
        self.trace_id_high = high
        self.trace_id = low
        return True

    def parse_span_id(self, getter: Getter, carrier: Any, key: Any) -> bool:
        """Read and parse a required 1 to 16 character lower-hex span ID."""
        span_id = _parse_id(getter.get(carrier, key))
        if span_id is None:
            return False
        self.span_id = span_id
        return True

    def parse_parent_id(self, getter: Getter, carrier: Any, key: Any) -> bool:
        """Read and parse an optional parent ID; absent means root."""
        parent_id_string = getter.get(carrier, key)
        if parent_id_string is None:
            return True
        parent_id = _parse_id(parent_id_string)
        if parent_id is None:
            return False
        self.parent_id = parent_id
        return True

    def build(self) -> TraceContext:
        return TraceContext(
            trace_id_high=self.trace_id_high,
            trace_id=self.trace_id,
            span_id=self.span_id,
            parent_id=self.parent_id,
            sampled=True if self.debug else self.sampled,
            debug=self.debug,
            extra=ensure_immutable(self.extra),
        )


def _parse_id(id_string: Optional[str]) -> Optional[int]:
    value = lower_hex_to_unsigned_long(id_string)
    if not value:
        return None
    return value


class ExtractionKind(Enum):
    EMPTY = 0
    SAMPLING_FLAGS = 1
    TRACE_CONTEXT = 2


@dataclass(frozen=True)
class TraceContextOrSamplingFlags:
    """
    Result of extracting from a carrier.

    Exactly one of: a full ``context``, sampling flags only, or empty.
    Switch on ``kind`` to handle each case.
    """

    kind: ExtractionKind
    context: Optional[TraceContext] = None
    sampling_flags: SamplingFlags = SamplingFlags.EMPTY

    EMPTY: ClassVar[TraceContextOrSamplingFlags]

    @classmethod
    def create(cls, value: Union[TraceContext, SamplingFlags]) -> TraceContextOrSamplingFlags:
        if isinstance(value, TraceContext):
            return cls(
                kind=ExtractionKind.TRACE_CONTEXT,
                context=value,
                sampling_flags=value.sampling_flags,
            )
        flags = SamplingFlags.from_values(value.sampled, value.debug)
        if flags is SamplingFlags.EMPTY:
            return cls.EMPTY
        return cls(kind=ExtractionKind.SAMPLING_FLAGS, sampling_flags=flags)

    @property
    def sampled(self) -> Optional[bool]:
        return self.sampling_flags.sampled

    @property
    def debug(self) -> bool:
        return self.sampling_flags.debug


TraceContextOrSamplingFlags.EMPTY = TraceContextOrSamplingFlags(kind=ExtractionKind.EMPTY)
