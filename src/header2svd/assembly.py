# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Assembly of the peripheral registry into SVD device descriptors.

The descriptors are immutable and fully normalized: bit positions are expressed as offset/width
pairs, every register has an explicit size, and peripherals are ordered by name so that the same
registry always yields the same document.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

from ._model import CaseInsensitiveStrEnum
from .model import Access, BitField, Bits, BitSpan, Endian, Register, Registry, SingleBit

# Size of every register in the output, in bits
REGISTER_SIZE = 32


@enum.unique
class AddressBlockUsage(CaseInsensitiveStrEnum):
    """
    Defined usage type of a peripheral address block.
    See "addressBlockType" in the SVD schema.
    """

    REGISTER = "registers"
    BUFFER = "buffer"
    RESERVED = "reserved"


class BitRange(NamedTuple):
    """Bit range of a field."""

    # Bit offset of the field.
    offset: int

    # Bit width of the field.
    width: int


@dataclass(frozen=True)
class AddressBlock:
    """Address range mapped to a peripheral."""

    # Start of the address block, relative to the peripheral base address.
    offset: int

    # Size of the address block.
    size: int

    usage: AddressBlockUsage = AddressBlockUsage.REGISTER


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    description: Optional[str]
    bit_range: BitRange
    access: Access


@dataclass(frozen=True)
class RegisterDescriptor:
    name: str
    description: Optional[str]
    offset: int
    size: int
    reset_value: int
    fields: Tuple[FieldDescriptor, ...]


@dataclass(frozen=True)
class PeripheralDescriptor:
    name: str
    description: Optional[str]
    base_address: int
    address_block: AddressBlock
    registers: Tuple[RegisterDescriptor, ...]


@dataclass(frozen=True)
class CpuInfo:
    """Description of the device processor."""

    name: str = "Xtensa LX106"

    revision: str = "1"

    endian: Endian = Endian.LITTLE

    # True if the CPU has a memory protection unit (MPU).
    has_mpu: bool = False

    # True if the CPU has a floating point unit (FPU).
    has_fpu: bool = True

    # Bit width of interrupt priority levels. The LX106 has 7 levels.
    num_nvic_priority_bits: int = 3

    # True if the CPU has a vendor-specific SysTick Timer.
    has_vendor_systick: bool = False


@dataclass(frozen=True)
class DeviceInfo:
    """Device level metadata written to the SVD document."""

    name: str = "Espressif"
    version: str = "1.0"

    # Width of the maximum data transfer supported by the device.
    width: int = 32

    cpu: CpuInfo = CpuInfo()


@dataclass(frozen=True)
class DeviceDescriptor:
    name: str
    version: str
    width: int
    cpu: CpuInfo
    peripherals: Tuple[PeripheralDescriptor, ...]


def to_bit_range(bits: Bits) -> BitRange:
    """Convert a bit position to an offset/width pair."""
    if isinstance(bits, SingleBit):
        return BitRange(offset=bits.index, width=1)
    if isinstance(bits, BitSpan):
        return BitRange(offset=bits.start, width=bits.end - bits.start + 1)
    raise TypeError(f"Invalid bit position: {bits!r}")


def assemble_field(field: BitField) -> FieldDescriptor:
    description = field.description if field.description.strip() else None
    return FieldDescriptor(
        name=field.name,
        description=description,
        bit_range=to_bit_range(field.bits),
        access=field.access,
    )


def assemble_register(register: Register) -> RegisterDescriptor:
    return RegisterDescriptor(
        name=register.name,
        description=register.description,
        offset=register.address,
        size=REGISTER_SIZE,
        reset_value=register.reset_value & 0xFFFF_FFFF,
        fields=tuple(assemble_field(f) for f in register.bit_fields),
    )


def assemble(registry: Registry, device_info: DeviceInfo = DeviceInfo()) -> DeviceDescriptor:
    """
    Convert the peripheral registry to a device descriptor.

    The address block of each peripheral starts at offset 0 and has a size equal to the sum of the
    sizes of its registers. Gaps between registers are not taken into account.

    :param registry: Final peripheral registry, with any documentation overrides applied.
    :param device_info: Device metadata.

    :return: Device descriptor with the peripherals sorted by name.
    """
    peripherals = []

    for name, peripheral in sorted(registry.items(), key=lambda kv: kv[0]):
        registers = tuple(assemble_register(r) for r in peripheral.registers)
        block_size = sum(r.size for r in registers)

        peripherals.append(
            PeripheralDescriptor(
                name=name,
                description=peripheral.description or None,
                base_address=peripheral.address,
                address_block=AddressBlock(offset=0, size=block_size),
                registers=registers,
            )
        )

    return DeviceDescriptor(
        name=device_info.name,
        version=device_info.version,
        width=device_info.width,
        cpu=device_info.cpu,
        peripherals=tuple(peripherals),
    )
