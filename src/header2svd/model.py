# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Python representation of the peripherals, registers and bit fields recovered from the
header files. Instances of these classes make up the peripheral registry that is built up
during extraction and later turned into SVD descriptors by the assembly module.
"""

from __future__ import annotations

import dataclasses as dc
import enum
from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from typing_extensions import Self

from ._model import CaseInsensitiveStrEnum

# Highest bit index in a 32-bit register.
MAX_BIT = 31


@enum.unique
class Access(CaseInsensitiveStrEnum):
    """
    Access rights for a given bit field.
    The values correspond to "accessType" in the SVD schema.
    """

    # Read access is permitted. Write operations have an undefined result.
    READ_ONLY = "read-only"
    # Write access is permitted. Read operations have an undefined result.
    WRITE_ONLY = "write-only"
    # Read and write accesses are permitted.
    READ_WRITE = "read-write"

    @classmethod
    def _missing_(cls, value: object) -> Optional[Self]:
        """Handler for mismatched case and the shorthands used in reference manual tables."""
        member = super()._missing_(value)
        if member is not None or not isinstance(value, str):
            return member

        return _ACCESS_SHORTHANDS.get(value.strip().upper())


_ACCESS_SHORTHANDS: Dict[str, Access] = {
    "RO": Access.READ_ONLY,
    "R/O": Access.READ_ONLY,
    "RW": Access.READ_WRITE,
    "R/W": Access.READ_WRITE,
    "WO": Access.WRITE_ONLY,
    "W/O": Access.WRITE_ONLY,
}


@enum.unique
class Endian(CaseInsensitiveStrEnum):
    """
    Processor endianness.
    See "endianType" in the SVD schema.
    """

    LITTLE = "little"
    BIG = "big"
    SELECTABLE = "selectable"
    OTHER = "other"


@dataclass(frozen=True)
class SingleBit:
    """Bit field occupying exactly one bit."""

    index: int

    def __post_init__(self) -> None:
        if not 0 <= self.index <= MAX_BIT:
            raise ValueError(f"Bit index {self.index} is outside of 0-{MAX_BIT}")


@dataclass(frozen=True)
class BitSpan:
    """Bit field occupying the inclusive bit range [start, end]."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if not 0 <= self.start <= self.end <= MAX_BIT:
            raise ValueError(
                f"Bit range [{self.start}, {self.end}] is not an ordered range within 0-{MAX_BIT}"
            )


# Position of a bit field within its register
Bits = Union[SingleBit, BitSpan]


@dataclass
class BitField:
    """Named sub-range of bits within a register."""

    name: str
    bits: Bits = SingleBit(0)
    access: Access = Access.READ_WRITE
    reset_value: int = 0
    description: str = ""


@dataclass
class Register:
    """A register of a peripheral, located at an offset from the peripheral base address."""

    # Register name
    name: str

    # Address offset relative to the peripheral base address
    address: int

    # Short description
    description: str = ""

    # Width in bits
    width: int = 32

    reset_value: int = 0

    detailed_description: Optional[str] = None

    bit_fields: List[BitField] = dc.field(default_factory=list)


@dataclass
class Peripheral:
    """A memory-mapped peripheral with a base address and a list of registers."""

    description: str
    address: int
    registers: List[Register] = dc.field(default_factory=list)


@dataclass(frozen=True)
class Interrupt:
    """Interrupt source constant found in the principal header."""

    name: str
    value: int
    description: Optional[str] = None


# Peripheral registry, keyed by peripheral name
Registry = Dict[str, Peripheral]
