"""Lower-hex encoding and decoding of unsigned 64-bit identifiers.

Decoders never raise on malformed input: they return ``None`` so callers on
the extraction path can reject bad headers without exception handling.
Characters are validated in place before any substring is taken.
"""

from __future__ import annotations

from typing import Optional, Tuple

UINT64_MASK = 0xFFFFFFFFFFFFFFFF


def to_lower_hex(value: int) -> str:
    """
    Encode a 64-bit identifier as 16 lower-hex characters.

    Args:
        value: Identifier. Negative values are encoded as two's complement.

    Returns:
        16-character, zero-padded lower-hex string
    """
    return format(value & UINT64_MASK, "016x")


def to_lower_hex_128(high: int, low: int) -> str:
    """Encode a 128-bit identifier given as two 64-bit halves (32 chars)."""
    return to_lower_hex(high) + to_lower_hex(low)


def _digit(char: str) -> int:
    code = ord(char)
    if 48 <= code <= 57:  # 0-9
        return code - 48
    if 97 <= code <= 102:  # a-f
        return code - 87
    return -1


def _decode(sequence: str, begin: int, end: int) -> Optional[int]:
    result = 0
    for i in range(begin, end):
        digit = _digit(sequence[i])
        if digit < 0:
            return None
        result = (result << 4) | digit
    return result


def lower_hex_to_unsigned_long(
    sequence: Optional[str], begin: int = 0, length: Optional[int] = None
) -> Optional[int]:
    """
    Strictly decode a window of 1 to 16 lower-hex characters.

    Args:
        sequence: Text holding the identifier
        begin: Index of the first character of the window
        length: Window length, defaults to the rest of ``sequence``

    Returns:
        The unsigned value, or None if the window is out of bounds, empty,
        longer than 16 characters or holds anything but ``0-9a-f``
    """
    if sequence is None or begin < 0:
        return None
    if length is None:
        length = len(sequence) - begin
    if length < 1 or length > 16 or begin + length > len(sequence):
        return None
    return _decode(sequence, begin, begin + length)


def lenient_lower_hex_to_unsigned_long(sequence: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    Decode a 1 to 32 character lower-hex trace ID into ``(high, low)``.

    The right-most (up to) 16 characters are the low half; anything to their
    left is the high half. Leading zeros may be omitted, so ``"6124"`` yields
    ``(0, 0x6124)`` and a 30 character string yields a 14 digit high half.

    Returns:
        Tuple of the two unsigned halves, or None when the input is None,
        empty, longer than 32 characters or not lower-hex
    """
    if sequence is None:
        return None
    length = len(sequence)
    if length < 1 or length > 32:
        return None

    low_begin = max(0, length - 16)
    high = 0
    if low_begin > 0:
        high = _decode(sequence, 0, low_begin)
        if high is None:
            return None
    low = _decode(sequence, low_begin, length)
    if low is None:
        return None
    return high, low
