# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Various internal functionality used by the model module.
"""

from __future__ import annotations

import enum
import re
from typing import Optional, Union

from typing_extensions import Self

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")

# Largest value representable in a 32-bit register or address.
U32_MAX = 0xFFFF_FFFF


class CaseInsensitiveStrEnum(enum.Enum):
    """String enum class that can be constructed from a case-insensitive string."""

    @classmethod
    def _missing_(cls, value: object) -> Optional[Self]:
        """Handler for string values with mismatched case."""
        if not isinstance(value, str):
            return None

        value_lower = value.lower()
        for member in cls:
            if member.value.lower() == value_lower:
                return member

        return None


def to_int(number: Union[str, int]) -> int:
    """
    Convert a string representation of an integer as used in documentation records to its
    corresponding integer representation.

    :param number: String representation of the integer, or an integer.

    :return: Decoded integer.
    """
    if isinstance(number, int):
        return number

    number = number.strip()
    if number.lower().startswith("0x"):
        return int(number, base=16)
    if number.startswith("#"):
        return int(number[1:], base=2)
    return int(number)


def parse_hex(text: str) -> Optional[int]:
    """
    Parse a bare hexadecimal literal as found in header files, with any number of leading "0x"
    prefixes removed.

    :param text: Literal text.

    :return: The decoded value, or None if the text is not a hexadecimal literal.
    """
    while text.startswith("0x"):
        text = text[2:]

    if not _HEX_DIGITS.fullmatch(text):
        return None

    return int(text, base=16)


def fits_u32(value: int) -> bool:
    """Check that a value fits in an unsigned 32-bit integer."""
    return 0 <= value <= U32_MAX
