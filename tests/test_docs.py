# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import json
from pathlib import Path

import pytest

from header2svd import (
    Access,
    BitField,
    BitSpan,
    DocumentationError,
    Peripheral,
    Register,
    SingleBit,
    add_clones,
    apply_overrides,
    load_overrides,
    load_peripheral,
    peripheral_from_dict,
)

UART_RECORD = {
    "name": "UART",
    "description": "Universal asynchronous receiver-transmitter",
    "address": "0x60000000",
    "registers": [
        {
            "name": "UART_FIFO",
            "offset": "0x0",
            "description": "FIFO data",
            "detailed_description": "Reading pops one byte from the receive FIFO.",
            "fields": [
                {
                    "name": "RXFIFO_RD_BYTE",
                    "bits": "[7:0]",
                    "access": "RO",
                    "description": "Received byte",
                }
            ],
        },
        {
            "name": "UART_CONF0",
            "offset": 32,
            "reset_value": "0x1c",
            "fields": [
                {"name": "PARITY", "bits": 0, "access": "R/W"},
                {"name": "BIT_NUM", "bits": "3:2", "access": "rw", "reset_value": "0x3"},
                {"name": "TXFIFO_RST", "bits": "18:18", "access": "W/O"},
            ],
        },
    ],
}


@pytest.fixture
def uart_record_file(tmp_path: Path) -> Path:
    record_file = tmp_path / "uart.json"
    record_file.write_text(json.dumps(UART_RECORD), encoding="utf-8")
    return record_file


def test_peripheral_from_dict():
    name, uart = peripheral_from_dict(UART_RECORD)

    assert name == "UART"
    assert uart.address == 0x60000000
    assert uart.description == "Universal asynchronous receiver-transmitter"

    fifo, conf0 = uart.registers
    assert fifo.address == 0x0
    assert fifo.detailed_description == "Reading pops one byte from the receive FIFO."
    assert fifo.bit_fields == [
        BitField(
            name="RXFIFO_RD_BYTE",
            bits=BitSpan(0, 7),
            access=Access.READ_ONLY,
            description="Received byte",
        )
    ]

    assert conf0.address == 0x20
    assert conf0.description == "UART_CONF0"
    assert conf0.reset_value == 0x1C
    assert [(f.name, f.bits, f.access, f.reset_value) for f in conf0.bit_fields] == [
        ("PARITY", SingleBit(0), Access.READ_WRITE, 0),
        ("BIT_NUM", BitSpan(2, 3), Access.READ_WRITE, 3),
        ("TXFIFO_RST", SingleBit(18), Access.WRITE_ONLY, 0),
    ]


@pytest.mark.parametrize(
    "access, expected",
    [
        ("read-only", Access.READ_ONLY),
        ("Read-Write", Access.READ_WRITE),
        ("RO", Access.READ_ONLY),
        ("r/o", Access.READ_ONLY),
        ("WO", Access.WRITE_ONLY),
        (" R/W ", Access.READ_WRITE),
    ],
)
def test_access_spellings(access, expected):
    assert Access(access) is expected


@pytest.mark.parametrize(
    "record",
    [
        {"description": "no name"},
        {"name": "FOO", "registers": [{"name": "FOO_REG"}]},
        {"name": "FOO", "registers": [{"name": "FOO_REG", "offset": "zero"}]},
        {
            "name": "FOO",
            "registers": [
                {"name": "FOO_REG", "offset": 0, "fields": [{"name": "A", "bits": 0, "access": "RX"}]}
            ],
        },
        {
            "name": "FOO",
            "registers": [{"name": "FOO_REG", "offset": 0, "fields": [{"name": "A", "bits": "40"}]}],
        },
        {
            "name": "FOO",
            "registers": [{"name": "FOO_REG", "offset": 0, "fields": [{"name": "A", "bits": "2:7"}]}],
        },
        {"name": "FOO", "address": "0x100000000"},
    ],
)
def test_invalid_records(record):
    with pytest.raises(DocumentationError):
        peripheral_from_dict(record, source="foo.json")


def test_load_peripheral(uart_record_file: Path):
    name, uart = load_peripheral(uart_record_file)

    assert name == "UART"
    assert len(uart.registers) == 2


def test_load_peripheral_missing_file(tmp_path: Path):
    with pytest.raises(FileNotFoundError):
        load_peripheral(tmp_path / "missing.json")


def test_load_peripheral_malformed_json(tmp_path: Path):
    record_file = tmp_path / "broken.json"
    record_file.write_text("{ not json", encoding="utf-8")

    with pytest.raises(DocumentationError) as exc_info:
        load_peripheral(record_file)

    assert "broken.json" in str(exc_info.value)


def test_load_peripheral_toml(tmp_path: Path):
    pytest.importorskip("tomlkit")

    record_file = tmp_path / "timer.toml"
    record_file.write_text(
        """\
name = "TIMER"
address = "0x60000600"

[[registers]]
name = "FRC1_LOAD"
offset = "0x0"

[[registers.fields]]
name = "FRC1_LOAD_VALUE"
bits = "[22:0]"
access = "RW"
""",
        encoding="utf-8",
    )

    name, timer = load_peripheral(record_file)

    assert name == "TIMER"
    assert timer.address == 0x60000600
    (register,) = timer.registers
    assert register.bit_fields[0].bits == BitSpan(0, 22)


def test_apply_overrides_replaces_registers_only():
    registry = {
        "UART": Peripheral(
            description="UART",
            address=0x60000000,
            registers=[Register(name="UART_FIFO_ADDRESS", address=0x0)],
        ),
        "GPIO": Peripheral(description="GPIO", address=0x60000300),
    }
    _, documented = peripheral_from_dict(UART_RECORD)
    documented.address = 0x12345678

    apply_overrides(registry, {"UART": documented, "TIMER": documented})

    uart = registry["UART"]
    assert uart.address == 0x60000000
    assert uart.description == "UART"
    assert [r.name for r in uart.registers] == ["UART_FIFO", "UART_CONF0"]
    assert uart.registers is not documented.registers
    assert set(registry) == {"UART", "GPIO"}
    assert registry["GPIO"].registers == []


def test_add_clones_are_independent():
    _, uart = peripheral_from_dict(UART_RECORD)
    registry = {}

    add_clones(registry, uart, {"UART0": 0x60000000, "UART1": 0x60000F00})

    assert registry["UART0"].address == 0x60000000
    assert registry["UART1"].address == 0x60000F00
    assert registry["UART0"].registers == registry["UART1"].registers

    registry["UART0"].registers[0].bit_fields.clear()
    assert registry["UART1"].registers[0].bit_fields
    assert uart.registers[0].bit_fields
    assert uart.address == 0x60000000


def test_load_overrides(uart_record_file: Path):
    overrides = load_overrides({"UART": uart_record_file})

    assert list(overrides) == ["UART"]
    assert overrides["UART"].registers[1].name == "UART_CONF0"
