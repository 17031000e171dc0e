"""
Base-32 codec for hash key segments.

The alphabet drops E, I, O and 0 so keys cannot spell words or be
misread. Each character carries five bits, most significant first, and
an encoded k-bit value is always ceil(k / 5) characters long.
"""

from typing import Union

ALPHABET = 'ABCDFGHJKLMNPQRSTUVWXYZ123456789'

SUPPORTED_WIDTHS = (15, 20, 25, 30, 35, 40, 45, 50, 55, 60)

_INDEX = {ch: i for i, ch in enumerate(ALPHABET)}


def encoded_length(bits: int) -> int:
    return (bits + 4) // 5


def unrank(value: int, bits: int) -> str:
    """
    Encode the low ``bits`` bits of ``value``.

    Args:
        value: Non-negative integer
        bits: Width in bits (one of SUPPORTED_WIDTHS)

    Returns:
        ceil(bits / 5) characters, padded with 'A' on the left
    """
    if bits not in SUPPORTED_WIDTHS:
        raise ValueError(f"Unsupported width {bits}; expected one of {SUPPORTED_WIDTHS}")
    value &= (1 << bits) - 1
    chars = []
    for _ in range(encoded_length(bits)):
        chars.append(ALPHABET[value & 0x1F])
        value >>= 5
    return ''.join(reversed(chars))


def rank(text: str) -> int:
    """Decode ``text`` back to its integer, or -1 if it has a character outside the alphabet."""
    value = 0
    for ch in text:
        digit = _INDEX.get(ch)
        if digit is None:
            return -1
        value = (value << 5) | digit
    return value


def encode(data: Union[bytes, bytearray], bits: int) -> str:
    """
    Encode the first ``bits`` bits of a digest.

    Bytes are read little-endian, so the first byte supplies the lowest
    bits of the value.

    Raises:
        ValueError: If ``data`` is too short for the width
    """
    needed = (bits + 7) // 8
    if len(data) < needed:
        raise ValueError(f"{bits}-bit encoding needs {needed} bytes, got {len(data)}")
    return unrank(int.from_bytes(bytes(data[:needed]), 'little'), bits)
