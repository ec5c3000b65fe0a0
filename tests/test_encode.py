# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import io
from pathlib import Path

import lxml.etree as ET

from header2svd import (
    Access,
    BitField,
    BitSpan,
    Peripheral,
    Register,
    SingleBit,
    assemble,
    encode_device,
    write_device,
)


def make_device():
    registry = {
        "GPIO": Peripheral(
            description="GPIO",
            address=0x3FF00000,
            registers=[
                Register(
                    name="GPIO_OUT_REG",
                    address=0x4,
                    description="GPIO_OUT_REG",
                    bit_fields=[BitField(name="Register", bits=BitSpan(0, 31))],
                ),
                Register(
                    name="GPIO_ENABLE_REG",
                    address=0xC,
                    description="GPIO_ENABLE_REG",
                    reset_value=0x1,
                    bit_fields=[
                        BitField(
                            name="GPIO_SDIO_SEL",
                            bits=SingleBit(16),
                            access=Access.READ_ONLY,
                            description="SDIO select",
                        )
                    ],
                ),
            ],
        )
    }
    return assemble(registry)


def test_encode_device_metadata():
    root = encode_device(make_device())

    assert root.tag == "device"
    assert root.get("schemaVersion") == "1.0"
    assert root.findtext("name") == "Espressif"
    assert root.findtext("version") == "1.0"
    assert root.findtext("width") == "32"

    cpu = root.find("cpu")
    assert cpu.findtext("name") == "Xtensa LX106"
    assert cpu.findtext("endian") == "little"
    assert cpu.findtext("mpuPresent") == "false"
    assert cpu.findtext("fpuPresent") == "true"
    assert cpu.findtext("nvicPrioBits") == "3"
    assert cpu.findtext("vendorSystickConfig") == "false"


def test_encode_peripheral_tree():
    root = encode_device(make_device())

    (peripheral,) = root.find("peripherals")
    assert peripheral.findtext("name") == "GPIO"
    assert peripheral.findtext("baseAddress") == "0x3ff00000"
    assert peripheral.findtext("addressBlock/offset") == "0x0"
    assert peripheral.findtext("addressBlock/size") == "0x40"
    assert peripheral.findtext("addressBlock/usage") == "registers"

    out_reg, enable_reg = peripheral.find("registers")
    assert out_reg.findtext("name") == "GPIO_OUT_REG"
    assert out_reg.findtext("addressOffset") == "0x4"
    assert out_reg.findtext("size") == "0x20"
    assert out_reg.findtext("resetValue") == "0x0"

    (full,) = out_reg.find("fields")
    assert full.findtext("name") == "Register"
    assert full.find("description") is None
    assert full.findtext("bitOffset") == "0"
    assert full.findtext("bitWidth") == "32"
    assert full.findtext("access") == "read-write"

    assert enable_reg.findtext("resetValue") == "0x1"
    (sel,) = enable_reg.find("fields")
    assert sel.findtext("description") == "SDIO select"
    assert sel.findtext("bitOffset") == "16"
    assert sel.findtext("bitWidth") == "1"
    assert sel.findtext("access") == "read-only"


def test_write_device_to_path(tmp_path: Path):
    out_file = tmp_path / "esp8266.svd"

    write_device(make_device(), out_file)

    content = out_file.read_bytes()
    assert content.startswith(b"<?xml")
    parsed = ET.parse(str(out_file)).getroot()
    assert parsed.tag == "device"
    assert [r.findtext("name") for r in parsed.iter("register")] == [
        "GPIO_OUT_REG",
        "GPIO_ENABLE_REG",
    ]


def test_write_device_to_stream():
    stream = io.BytesIO()

    write_device(make_device(), stream)

    root = ET.fromstring(stream.getvalue())
    assert [p.findtext("name") for p in root.find("peripherals")] == ["GPIO"]


def test_register_with_all_fields_rejected_has_no_fields_element(extract):
    registry, report = extract(
        "#define FOO_A_REG (PERIPHS_FOO_BASEADDR + 0x0)\n"
        "#define FOO_Z 0x0\n"
        "#define FOO_Z_S 3\n"
        "\n"
    )
    assert report.rejected_bit_fields == ["FOO_A_REG.FOO_Z"]

    root = encode_device(assemble(registry))

    (register,) = root.iter("register")
    assert register.findtext("name") == "FOO_A_REG"
    assert register.find("fields") is None
    assert all(len(fields) > 0 for fields in root.iter("fields"))
