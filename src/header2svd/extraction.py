# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Extraction of peripherals, registers, bit fields and interrupts from the text of SDK header files.

The headers are not written against any grammar. Register layouts are recovered by a line based
state machine that recognizes the handful of macro idioms used by the SDK authors:

* plain registers relative to a peripheral base, ``#define FOO_REG (PERIPHS_FOO_BASEADDR + 0x10)``
* registers given as a bare offset, ``#define FOO_CONF_ADDRESS 0x10``
* mask/shift pairs, ``#define FOO_LEN 0x7`` followed by ``#define FOO_LEN_S 8``
* single bit fields, ``#define FOO_FLAG BIT(3)``

Registers for which no bit layout can be found are assumed to consist of one field covering the
whole register. Nothing found in a header is fatal, except address literals that cannot be
represented; everything else is collected in an `ExtractionReport`.
"""

from __future__ import annotations

import dataclasses as dc
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple, Union

import header2svd

from . import patterns
from ._model import fits_u32, parse_hex
from .errors import HeaderParseError
from .model import (
    MAX_BIT,
    BitField,
    Bits,
    BitSpan,
    Interrupt,
    Peripheral,
    Register,
    Registry,
    SingleBit,
)


# Name of the field synthesized for registers without a discoverable bit layout
FULL_REGISTER_FIELD = "Register"


@dataclass
class ExtractionReport:
    """Diagnostics accumulated while extracting a set of header files."""

    # Files from which nothing could be extracted
    empty_files: List[str] = dc.field(default_factory=list)

    # Peripheral names referenced by a register but never given a base address
    unresolved_peripherals: List[str] = dc.field(default_factory=list)

    # Register definitions that were recognized but cannot be represented
    rejected_registers: List[str] = dc.field(default_factory=list)

    # Bit field definitions that do not fit in a 32-bit register, as "REGISTER.FIELD"
    rejected_bit_fields: List[str] = dc.field(default_factory=list)

    # Interrupt sources found in the principal header
    interrupts: List[Interrupt] = dc.field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """True if no diagnostics were recorded."""
        return not (
            self.empty_files
            or self.unresolved_peripherals
            or self.rejected_registers
            or self.rejected_bit_fields
        )

    def log_summary(self) -> None:
        """Output the collected diagnostics as warnings."""
        if self.empty_files:
            header2svd.log.warning(
                "The following files contained no parsable information: "
                + ", ".join(self.empty_files)
            )
        if self.unresolved_peripherals:
            header2svd.log.warning(
                "The following peripherals have no base address: "
                + ", ".join(self.unresolved_peripherals)
            )
        if self.rejected_registers:
            header2svd.log.warning(
                "The following registers failed to parse: "
                + ", ".join(self.rejected_registers)
            )
        if self.rejected_bit_fields:
            header2svd.log.warning(
                "The following bit fields failed to parse: "
                + ", ".join(self.rejected_bit_fields)
            )


def seed_base_addresses(text: str, registry: Registry, source: str = "<text>") -> None:
    """
    Add a peripheral to the registry for every base address definition in the text.
    A peripheral that is already in the registry keeps the address it was first given.

    :param text: Header file contents.
    :param registry: Peripheral registry to update.
    :param source: Name of the text origin, used in error messages.

    :raises HeaderParseError: If a base address does not fit in 32 bits.
    """
    for match in patterns.REG_BASE.finditer(text):
        name, address_text = match.group(1), match.group(2)
        address = int(address_text, base=16)

        if not fits_u32(address):
            raise HeaderParseError(
                source, f"base address 0x{address_text} of {name} does not fit in 32 bits"
            )

        if name not in registry:
            registry[name] = Peripheral(description=name, address=address)


def extract_interrupts(text: str) -> List[Interrupt]:
    """
    Find all interrupt source constants in the text.

    :param text: Header file contents.

    :return: Interrupts in the order they are defined.
    """
    return [
        Interrupt(
            name=match.group(1),
            value=int(match.group(2)),
            description=match.group(3).strip(),
        )
        for match in patterns.INTERRUPTS.finditer(text)
    ]


@dataclass(frozen=True)
class FindReg:
    """Looking for the next register definition."""


@dataclass(frozen=True)
class FindBitFieldMask:
    """Looking for a mask or single bit definition of the next field in the register."""

    peripheral: str
    register: Register


@dataclass(frozen=True)
class FindBitFieldShift:
    """Looking for the shift constant that goes with a mask."""

    peripheral: str
    register: Register
    mask: int


@dataclass(frozen=True)
class FindBitFieldSkipShift:
    """A single bit field was found; a redundant shift constant may follow."""

    peripheral: str
    register: Register


@dataclass(frozen=True)
class CheckEnd:
    """A field was completed; looking for either the next field or the end of the register."""

    peripheral: str
    register: Register


@dataclass(frozen=True)
class AssumeFullRegister:
    """The register has no recognizable bit layout; it is treated as a single field."""

    peripheral: str
    register: Register


@dataclass(frozen=True)
class End:
    """The register is complete."""

    peripheral: str
    register: Register


State = Union[
    FindReg,
    FindBitFieldMask,
    FindBitFieldShift,
    FindBitFieldSkipShift,
    CheckEnd,
    AssumeFullRegister,
    End,
]


class RegisterExtractor:
    """
    State machine that recovers registers and bit fields from header files, one line at a time.

    Completed registers are appended to their peripheral in the registry. The register being
    built is owned by the current state, and handed over to the next state on each transition.
    """

    def __init__(self, registry: Registry, report: ExtractionReport) -> None:
        """
        :param registry: Peripheral registry that completed registers are added to.
        :param report: Report that diagnostics are recorded in.
        """
        self._registry: Registry = registry
        self._report: ExtractionReport = report
        self._source: str = "<text>"
        self._line_number: int = 0
        self._something_found: bool = False

    @property
    def registry(self) -> Registry:
        return self._registry

    @property
    def report(self) -> ExtractionReport:
        return self._report

    def extract(self, text: str, source: Union[str, Path] = "<text>") -> None:
        """
        Extract all registers from the (normalized) contents of one header file.

        :param text: Header file contents.
        :param source: Name of the text origin, used in diagnostics.
        """
        self._source = str(source)
        self._something_found = False
        state: State = FindReg()

        for line_number, line in enumerate(_iter_lines(text), start=1):
            self._line_number = line_number

            # Only the directive line itself is skipped, conditional bodies are still scanned
            if patterns.is_directive(line):
                continue

            consumed = False
            while not consumed:
                state, consumed = self.step(state, line)

        self.finish(state)

        if not self._something_found:
            self._report.empty_files.append(self._source)

    def finish(self, state: State) -> None:
        """Complete the register in flight, if any, when the end of the text is reached."""
        if isinstance(state, FindReg):
            return

        if isinstance(state, (FindBitFieldMask, FindBitFieldShift)) and not (
            state.register.bit_fields
        ):
            self.step(AssumeFullRegister(state.peripheral, state.register), "")
        else:
            self._add_register(state.peripheral, state.register)

    def step(self, state: State, line: str) -> Tuple[State, bool]:
        """
        Advance the state machine by examining one line.

        :param state: Current state.
        :param line: Current line.

        :return: Tuple of the next state and whether the line was consumed.
            A line that is not consumed must be passed to `step` again together with the
            returned state.
        """
        match state:
            case FindReg():
                return self._find_register(line), True

            case FindBitFieldMask(peripheral, register):
                return self._find_mask(peripheral, register, line)

            case FindBitFieldShift(peripheral, register, mask):
                return self._find_shift(peripheral, register, mask, line)

            case FindBitFieldSkipShift(peripheral, register):
                consumed = patterns.REG_DEFINE_SHIFT.search(line) is not None
                return CheckEnd(peripheral, register), consumed

            case CheckEnd(peripheral, register):
                if not line:
                    return End(peripheral, register), True
                if patterns.REG_DEFINE_MASK.search(line):
                    # Next field in the same register
                    return FindBitFieldMask(peripheral, register), False
                return state, True

            case AssumeFullRegister(peripheral, register):
                self._something_found = True
                register.bit_fields.append(
                    BitField(name=FULL_REGISTER_FIELD, bits=BitSpan(0, MAX_BIT))
                )
                self._add_register(peripheral, register)
                return FindReg(), False

            case End(peripheral, register):
                self._add_register(peripheral, register)
                return FindReg(), False

        raise ValueError(f"Invalid state {state!r}")

    def _find_register(self, line: str) -> State:
        if match := patterns.REG_DEF_INDEX.search(line):
            self._report.rejected_registers.append(match.group(1))
            return FindReg()

        if match := patterns.REG_DEF.search(line):
            name, peripheral, offset_text = match.groups()
            offset = parse_hex(offset_text)
            if offset is None:
                self._report.rejected_registers.append(name)
                return FindReg()
            return FindBitFieldMask(peripheral, self._new_register(name, offset))

        if match := patterns.REG_DEF_OFFSET.search(line):
            name, offset_text = match.groups()
            peripheral = name.split("_")[0]
            offset = int(offset_text, base=16)
            return FindBitFieldMask(peripheral, self._new_register(name, offset))

        return FindReg()

    def _find_mask(
        self, peripheral: str, register: Register, line: str
    ) -> Tuple[State, bool]:
        if patterns.REG_DEFINE_SKIP.search(line):
            return FindBitFieldMask(peripheral, register), True

        if patterns.REG_DEF_OFFSET.search(line):
            # The next register starts before any field of this one was found
            return AssumeFullRegister(peripheral, register), False

        match = patterns.REG_DEFINE_MASK.search(line)
        if match is None:
            if not register.bit_fields:
                return AssumeFullRegister(peripheral, register), False
            header2svd.log.warning(f"Failed to match register mask at {self._location}")
            return End(peripheral, register), True

        self._something_found = True
        field_name, value = match.group(1), match.group(2)
        while value.startswith("0x"):
            value = value[2:]

        if bit_match := patterns.SINGLE_BIT.search(value):
            self._add_field(register, field_name, lambda: SingleBit(int(bit_match.group(1))))
            return FindBitFieldSkipShift(peripheral, register), True

        mask = parse_hex(value)
        if mask is not None and fits_u32(mask):
            return FindBitFieldShift(peripheral, register, mask), True

        return FindBitFieldMask(peripheral, register), True

    def _find_shift(
        self, peripheral: str, register: Register, mask: int, line: str
    ) -> Tuple[State, bool]:
        if patterns.REG_DEFINE_SKIP.search(line):
            return FindBitFieldShift(peripheral, register, mask), True

        match = patterns.REG_DEFINE_SHIFT.search(line)
        if match is None:
            if not register.bit_fields:
                return AssumeFullRegister(peripheral, register), False
            header2svd.log.warning(
                f"Failed to match register shift at {self._location} ('{line}')"
            )
            return End(peripheral, register), True

        field_name, value = match.group(1), match.group(2)
        if not value.isdigit():
            return FindBitFieldShift(peripheral, register, mask), True

        shift = int(value)
        self._add_field(register, field_name, lambda: _mask_bits(shift, mask))
        return CheckEnd(peripheral, register), True

    def _add_field(
        self, register: Register, name: str, make_bits: Callable[[], Bits]
    ) -> None:
        try:
            bits: Bits = make_bits()
        except ValueError as e:
            header2svd.log.warning(f"Ignoring bit field {name} at {self._location}: {e}")
            self._report.rejected_bit_fields.append(f"{register.name}.{name}")
            return

        register.bit_fields.append(BitField(name=name, bits=bits))

    def _add_register(self, peripheral: str, register: Register) -> None:
        try:
            self._registry[peripheral].registers.append(register)
        except KeyError:
            header2svd.log.debug(
                f"No peripheral called {peripheral} for register {register.name}"
            )
            self._report.unresolved_peripherals.append(peripheral)

    def _new_register(self, name: str, offset: int) -> Register:
        if not fits_u32(offset):
            raise HeaderParseError(
                self._source,
                f"offset 0x{offset:x} of register {name} does not fit in 32 bits",
                self._line_number,
            )
        return Register(name=name, description=name, address=offset)

    @property
    def _location(self) -> str:
        return f"{self._source}:{self._line_number}"


def _mask_bits(shift: int, mask: int) -> Bits:
    """Bit position of a field given its shift and (unshifted) mask."""
    width = bin(mask).count("1")
    if width == 1:
        return SingleBit(shift)
    if width == 0:
        raise ValueError(f"mask 0x{mask:x} has no bits set")
    return BitSpan(shift, shift + width - 1)


def _iter_lines(text: str) -> Iterator[str]:
    """
    Iterate over the lines of a text, splitting on line feeds only.
    A trailing carriage return is removed from each line, and a final empty line is omitted.
    """
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()

    for line in lines:
        yield line[:-1] if line.endswith("\r") else line


def extract_registers(
    text: str,
    registry: Registry,
    report: Optional[ExtractionReport] = None,
    source: Union[str, Path] = "<text>",
) -> ExtractionReport:
    """
    Convenience function that seeds base addresses from a single text and extracts its registers.

    :param text: Normalized header file contents.
    :param registry: Peripheral registry to update.
    :param report: Report to record diagnostics in. A new report is created if not given.
    :param source: Name of the text origin, used in diagnostics.

    :return: The report.
    """
    if report is None:
        report = ExtractionReport()

    seed_base_addresses(text, registry, source=str(source))
    RegisterExtractor(registry, report).extract(text, source)

    return report
