# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Peripheral definitions taken from reference manual tables.

Where the reference manual describes a peripheral in more detail than the SDK headers do, a
structured record of that peripheral can be supplied. Records replace the register list of the
peripheral extracted from the headers as a whole; individual registers are never merged.
"""

from __future__ import annotations

import copy
import importlib.util
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple, Union

from ._model import fits_u32, to_int
from .errors import DocumentationError
from .model import Access, BitField, Bits, BitSpan, Peripheral, Register, Registry, SingleBit

HAS_TOMLKIT = importlib.util.find_spec("tomlkit") is not None


def load_peripheral(path: Union[str, Path]) -> Tuple[str, Peripheral]:
    """
    Load a peripheral record from a JSON file, or from a TOML file if tomlkit is installed.

    :param path: Path to the record file.

    :raises FileNotFoundError: If the file does not exist.
    :raises DocumentationError: If the record is invalid.

    :return: Tuple of the peripheral name and the peripheral.
    """
    record_file = Path(path)

    if not record_file.is_file():
        raise FileNotFoundError(f"No such file: {record_file.absolute()}")

    is_toml = record_file.suffix.lower() == ".toml"
    if is_toml and not HAS_TOMLKIT:
        raise DocumentationError(record_file, "reading TOML records requires tomlkit")

    try:
        with open(record_file, "r", encoding="utf-8") as f:
            if is_toml:
                import tomlkit

                data = tomlkit.load(f).unwrap()
            else:
                data = json.load(f)
    except (OSError, ValueError) as e:
        raise DocumentationError(record_file, str(e)) from e

    return peripheral_from_dict(data, source=record_file)


def peripheral_from_dict(
    data: Mapping[str, Any], source: Union[str, Path] = "<dict>"
) -> Tuple[str, Peripheral]:
    """
    Build a peripheral from its dictionary representation.

    :param data: Peripheral record.
    :param source: Name of the record origin, used in error messages.

    :raises DocumentationError: If the record is invalid.

    :return: Tuple of the peripheral name and the peripheral.
    """
    try:
        name = str(data["name"])
        address = to_int(data.get("address", 0))
        if not fits_u32(address):
            raise ValueError(f"base address 0x{address:x} does not fit in 32 bits")

        peripheral = Peripheral(
            description=str(data.get("description", name)),
            address=address,
            registers=[_register_from_dict(r) for r in data.get("registers", [])],
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise DocumentationError(source, f"{type(e).__name__}: {e}") from e

    return name, peripheral


def _register_from_dict(data: Mapping[str, Any]) -> Register:
    name = str(data["name"])
    offset = to_int(data["offset"])
    if not fits_u32(offset):
        raise ValueError(f"offset 0x{offset:x} of register {name} does not fit in 32 bits")

    return Register(
        name=name,
        address=offset,
        description=str(data.get("description", name)),
        reset_value=to_int(data.get("reset_value", 0)),
        detailed_description=data.get("detailed_description"),
        bit_fields=[_field_from_dict(f) for f in data.get("fields", [])],
    )


def _field_from_dict(data: Mapping[str, Any]) -> BitField:
    return BitField(
        name=str(data["name"]),
        bits=_parse_bits(data["bits"]),
        access=Access(data.get("access", Access.READ_WRITE.value)),
        reset_value=to_int(data.get("reset_value", 0)),
        description=str(data.get("description", "")),
    )


def _parse_bits(value: Union[int, str]) -> Bits:
    """Parse a bit position given either as a bit index or as "msb:lsb" / "[msb:lsb]"."""
    if isinstance(value, int):
        return SingleBit(value)

    text = value.strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]

    if ":" not in text:
        return SingleBit(to_int(text))

    msb_string, lsb_string = text.split(":")
    msb, lsb = to_int(msb_string), to_int(lsb_string)
    if msb == lsb:
        return SingleBit(lsb)
    return BitSpan(lsb, msb)


def apply_overrides(registry: Registry, overrides: Mapping[str, Peripheral]) -> None:
    """
    Replace the register list of each peripheral in the registry that has an override.
    The base address and description of the peripheral are kept.

    :param registry: Peripheral registry to update.
    :param overrides: Mapping from peripheral name to the peripheral whose registers replace
        those of the registry entry with that name. Names not in the registry are ignored.
    """
    for name, peripheral in registry.items():
        if name in overrides:
            peripheral.registers = copy.deepcopy(overrides[name].registers)


def add_clones(
    registry: Registry, source: Peripheral, placements: Mapping[str, int]
) -> None:
    """
    Add copies of a peripheral to the registry under new names and base addresses.
    Existing entries with the same names are replaced.

    :param registry: Peripheral registry to update.
    :param source: Peripheral to copy.
    :param placements: Mapping from the name of each copy to its base address.
    """
    for name, address in placements.items():
        clone = copy.deepcopy(source)
        clone.address = address
        registry[name] = clone


def load_overrides(paths: Mapping[str, Union[str, Path]]) -> Dict[str, Peripheral]:
    """
    Load the peripheral records used as overrides.

    :param paths: Mapping from peripheral name to record file.

    :return: Mapping from peripheral name to the loaded peripheral.
    """
    return {name: load_peripheral(path)[1] for name, path in paths.items()}
