"""Compact single-header B3 encoding.

The ``b3`` header packs the identity and sampling state into one value::

    b3: {TraceId}-{SpanId}-{SamplingState}-{ParentSpanId}

TraceId is 16 or 32 lower-hex characters, SpanId and ParentSpanId are 16.
SamplingState is ``1`` (sampled), ``0`` (not sampled) or ``d`` (debug).
Both trailing segments are optional, and a header may carry the sampling
state alone, e.g. ``b3: 0``.

See https://github.com/openzipkin/b3-propagation#single-header
"""

from __future__ import annotations

from typing import Optional

from b3propagation.context.sampling_flags import SamplingFlags
from b3propagation.context.trace_context import TraceContext, TraceContextOrSamplingFlags
from b3propagation.utils.hex_codec import lower_hex_to_unsigned_long, to_lower_hex

# 128-bit trace ID, span ID, sampling state and parent ID, with hyphens
FORMAT_MAX_LENGTH = 32 + 1 + 16 + 2 + 17

_SAMPLING_FLAGS = {
    "1": SamplingFlags.SAMPLED,
    "0": SamplingFlags.NOT_SAMPLED,
    "d": SamplingFlags.DEBUG,
}


def parse_b3_single_format(
    b3: Optional[str], begin: int = 0, end: Optional[int] = None
) -> Optional[TraceContextOrSamplingFlags]:
    """
    Parse a ``b3`` header value, or the ``[begin, end)`` window of it.

    Returns:
        A trace context result, a sampling-flags result when the value is a
        bare sampling state, or None when the value is malformed
    """
    if b3 is None:
        return None
    if end is None:
        end = len(b3)
    if begin < 0 or end > len(b3):
        return None
    length = end - begin
    if length <= 0:
        return None
    if length == 1:
        flags = _SAMPLING_FLAGS.get(b3[begin])
        return TraceContextOrSamplingFlags.create(flags) if flags else None
    if length > FORMAT_MAX_LENGTH or length < 16 + 1 + 16:
        return None

    pos = begin
    if b3[begin + 32] == "-":
        trace_id_high = lower_hex_to_unsigned_long(b3, pos, 16)
        trace_id = lower_hex_to_unsigned_long(b3, pos + 16, 16)
        pos += 32
    else:
        trace_id_high = 0
        trace_id = lower_hex_to_unsigned_long(b3, pos, 16)
        pos += 16
    if trace_id_high is None or not trace_id:
        return None

    if b3[pos] != "-" or end - pos < 17:
        return None
    pos += 1
    span_id = lower_hex_to_unsigned_long(b3, pos, 16)
    if not span_id:
        return None
    pos += 16

    flags = SamplingFlags.EMPTY
    parent_id = 0
    if end > pos:
        if b3[pos] != "-":
            return None
        pos += 1
        if end == pos:
            return None
        # a one character segment is the sampling state
        if end == pos + 1 or b3[pos + 1] == "-":
            flags = _SAMPLING_FLAGS.get(b3[pos])
            if flags is None:
                return None
            pos += 1
            if end > pos:
                if b3[pos] != "-" or end != pos + 17:
                    return None
                pos += 1
        if end > pos:
            if end != pos + 16:
                return None
            parent_id = lower_hex_to_unsigned_long(b3, pos, 16)
            if not parent_id:
                return None

    context = TraceContext(
        trace_id_high=trace_id_high,
        trace_id=trace_id,
        span_id=span_id,
        parent_id=parent_id,
        sampled=flags.sampled,
        debug=flags.debug,
    )
    return TraceContextOrSamplingFlags.create(context)


def write_b3_single_format(context: TraceContext) -> str:
    """Format ``context`` as a ``b3`` header value, parent ID included."""
    return _write(context, include_parent_id=True)


def write_b3_single_format_without_parent_id(context: TraceContext) -> str:
    """
    Format ``context`` without its parent ID.

    Use this when the receiver creates a child span, since only the span ID
    becomes its parent.
    """
    return _write(context, include_parent_id=False)


def _write(context: TraceContext, include_parent_id: bool) -> str:
    parts = [context.trace_id_string, context.span_id_string]
    if context.debug:
        parts.append("d")
    elif context.sampled is not None:
        parts.append("1" if context.sampled else "0")
    if include_parent_id and context.parent_id != 0:
        parts.append(to_lower_hex(context.parent_id))
    return "-".join(parts)
