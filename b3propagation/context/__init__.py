"""Trace context value types and B3 propagation."""

from b3propagation.context.b3_single_format import (
    parse_b3_single_format,
    write_b3_single_format,
    write_b3_single_format_without_parent_id,
)
from b3propagation.context.propagation import (
    LOWER_CASE_KEYS,
    STRING_KEYS,
    Getter,
    KeyFactory,
    LowerCaseKeyFactory,
    MappingGetter,
    MappingSetter,
    Propagation,
    PropagationFactory,
    Setter,
    StringKeyFactory,
)
from b3propagation.context.propagators import (
    FACTORY,
    B3Extractor,
    B3Injector,
    B3Propagation,
    B3PropagationFactory,
)
from b3propagation.context.sampling_flags import SamplingFlags
from b3propagation.context.trace_context import (
    Builder,
    ExtractionKind,
    TraceContext,
    TraceContextOrSamplingFlags,
    ensure_immutable,
)

__all__ = [
    "TraceContext",
    "Builder",
    "ensure_immutable",
    "SamplingFlags",
    "ExtractionKind",
    "TraceContextOrSamplingFlags",
    "Getter",
    "Setter",
    "KeyFactory",
    "StringKeyFactory",
    "LowerCaseKeyFactory",
    "STRING_KEYS",
    "LOWER_CASE_KEYS",
    "MappingGetter",
    "MappingSetter",
    "Propagation",
    "PropagationFactory",
    "B3Propagation",
    "B3PropagationFactory",
    "B3Injector",
    "B3Extractor",
    "FACTORY",
    "parse_b3_single_format",
    "write_b3_single_format",
    "write_b3_single_format_without_parent_id",
]
