"""Sampling state carried with, or without, a trace identity."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional


@dataclass(frozen=True)
class SamplingFlags:
    """
    Sampling decision and debug flag.

    ``sampled`` is tri-state: None defers the decision to the receiver.
    ``debug`` implies ``sampled=True`` and asks the collection tier to keep
    the trace regardless of its own sampling policy.
    """

    sampled: Optional[bool] = None
    debug: bool = False

    EMPTY: ClassVar[SamplingFlags]
    SAMPLED: ClassVar[SamplingFlags]
    NOT_SAMPLED: ClassVar[SamplingFlags]
    DEBUG: ClassVar[SamplingFlags]

    def __post_init__(self) -> None:
        if self.debug and self.sampled is not True:
            object.__setattr__(self, "sampled", True)

    @staticmethod
    def from_values(sampled: Optional[bool], debug: bool) -> SamplingFlags:
        """Return the shared constant for the given state."""
        if debug:
            return SamplingFlags.DEBUG
        if sampled is None:
            return SamplingFlags.EMPTY
        return SamplingFlags.SAMPLED if sampled else SamplingFlags.NOT_SAMPLED


SamplingFlags.EMPTY = SamplingFlags()
SamplingFlags.SAMPLED = SamplingFlags(sampled=True)
SamplingFlags.NOT_SAMPLED = SamplingFlags(sampled=False)
SamplingFlags.DEBUG = SamplingFlags(sampled=True, debug=True)
