"""B3 trace context propagation.

Encodes and decodes trace identity in ``X-B3-*`` and ``b3`` carrier fields.

    import b3propagation
    from b3propagation import MappingGetter, MappingSetter

    propagation = b3propagation.init()
    extracted = propagation.extractor(MappingGetter()).extract(request_headers)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from b3propagation import config
from b3propagation.context import (
    FACTORY,
    LOWER_CASE_KEYS,
    STRING_KEYS,
    B3Propagation,
    ExtractionKind,
    Getter,
    KeyFactory,
    MappingGetter,
    MappingSetter,
    SamplingFlags,
    Setter,
    TraceContext,
    TraceContextOrSamplingFlags,
    parse_b3_single_format,
    write_b3_single_format,
)
from b3propagation.context.otel import B3TextMapPropagator, install_global_propagator
from b3propagation.errors import B3Error, ConfigError, ValidationError

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def init(config_file: Optional[str] = None, **overrides: Any) -> B3Propagation[str]:
    """
    Configure logging and create a B3Propagation from configuration.

    Args:
        config_file: TOML config path; discovered when omitted
        **overrides: ``lowercase_keys``, ``log_level`` or
            ``install_otel_propagator``, taking priority over file and env

    Returns:
        B3Propagation with string keys

    Raises:
        ConfigError: If the configuration is invalid
    """
    cfg = config.load_config(config_file, overrides)
    logger.setLevel(cfg.logging.level)

    key_factory = LOWER_CASE_KEYS if cfg.propagation.lowercase_keys else STRING_KEYS
    propagation = FACTORY.create(key_factory)
    if cfg.otel.install_global_propagator:
        install_global_propagator(key_factory)

    logger.info(
        f"B3 propagation initialized (lowercase_keys={cfg.propagation.lowercase_keys}, "
        f"otel_propagator={cfg.otel.install_global_propagator})"
    )
    return propagation


__all__ = [
    "__version__",
    "init",
    "config",
    "TraceContext",
    "SamplingFlags",
    "ExtractionKind",
    "TraceContextOrSamplingFlags",
    "Getter",
    "Setter",
    "KeyFactory",
    "STRING_KEYS",
    "LOWER_CASE_KEYS",
    "MappingGetter",
    "MappingSetter",
    "B3Propagation",
    "FACTORY",
    "B3TextMapPropagator",
    "install_global_propagator",
    "parse_b3_single_format",
    "write_b3_single_format",
    "B3Error",
    "ConfigError",
    "ValidationError",
]
