"""Utility functions for b3propagation."""

from b3propagation.utils.hex_codec import (
    lenient_lower_hex_to_unsigned_long,
    lower_hex_to_unsigned_long,
    to_lower_hex,
    to_lower_hex_128,
)

__all__ = [
    "to_lower_hex",
    "to_lower_hex_128",
    "lower_hex_to_unsigned_long",
    "lenient_lower_hex_to_unsigned_long",
]
