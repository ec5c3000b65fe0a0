# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Serialization of device descriptors to CMSIS-SVD XML documents.
"""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Union

import lxml.etree as ET

from .assembly import (
    CpuInfo,
    DeviceDescriptor,
    FieldDescriptor,
    PeripheralDescriptor,
    RegisterDescriptor,
)

SCHEMA_VERSION = "1.0"

_XS_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"


def encode_device(device: DeviceDescriptor) -> ET._Element:
    """
    Build the SVD XML tree of a device.

    :param device: Assembled device descriptor.

    :return: The root "device" element.
    """
    root = ET.Element(
        "device",
        attrib={
            "schemaVersion": SCHEMA_VERSION,
            f"{{{_XS_NAMESPACE}}}noNamespaceSchemaLocation": "CMSIS-SVD.xsd",
        },
        nsmap={"xs": _XS_NAMESPACE},
    )

    _text_element(root, "name", device.name)
    _text_element(root, "version", device.version)
    _text_element(root, "width", device.width)
    root.append(_encode_cpu(device.cpu))

    peripherals = ET.SubElement(root, "peripherals")
    for peripheral in device.peripherals:
        peripherals.append(_encode_peripheral(peripheral))

    return root


def write_device(device: DeviceDescriptor, file: Union[str, Path, BinaryIO]) -> None:
    """
    Write the SVD document of a device.

    :param device: Assembled device descriptor.
    :param file: Path or binary file object to write the document to.
    """
    tree = ET.ElementTree(encode_device(device))
    if isinstance(file, (str, Path)):
        file = str(file)
    tree.write(file, pretty_print=True, xml_declaration=True, encoding="utf-8")


def _encode_cpu(cpu: CpuInfo) -> ET._Element:
    element = ET.Element("cpu")
    _text_element(element, "name", cpu.name)
    _text_element(element, "revision", cpu.revision)
    _text_element(element, "endian", cpu.endian.value)
    _text_element(element, "mpuPresent", cpu.has_mpu)
    _text_element(element, "fpuPresent", cpu.has_fpu)
    _text_element(element, "nvicPrioBits", cpu.num_nvic_priority_bits)
    _text_element(element, "vendorSystickConfig", cpu.has_vendor_systick)
    return element


def _encode_peripheral(peripheral: PeripheralDescriptor) -> ET._Element:
    element = ET.Element("peripheral")
    _text_element(element, "name", peripheral.name)
    if peripheral.description is not None:
        _text_element(element, "description", peripheral.description)
    _text_element(element, "baseAddress", _hex(peripheral.base_address))

    block = ET.SubElement(element, "addressBlock")
    _text_element(block, "offset", _hex(peripheral.address_block.offset))
    _text_element(block, "size", _hex(peripheral.address_block.size))
    _text_element(block, "usage", peripheral.address_block.usage.value)

    registers = ET.SubElement(element, "registers")
    for register in peripheral.registers:
        registers.append(_encode_register(register))

    return element


def _encode_register(register: RegisterDescriptor) -> ET._Element:
    element = ET.Element("register")
    _text_element(element, "name", register.name)
    if register.description is not None:
        _text_element(element, "description", register.description)
    _text_element(element, "addressOffset", _hex(register.offset))
    _text_element(element, "size", _hex(register.size))
    _text_element(element, "resetValue", _hex(register.reset_value))

    # The schema requires at least one field in a fields element
    if register.fields:
        fields = ET.SubElement(element, "fields")
        for field in register.fields:
            fields.append(_encode_field(field))

    return element


def _encode_field(field: FieldDescriptor) -> ET._Element:
    element = ET.Element("field")
    _text_element(element, "name", field.name)
    if field.description is not None:
        _text_element(element, "description", field.description)
    _text_element(element, "bitOffset", field.bit_range.offset)
    _text_element(element, "bitWidth", field.bit_range.width)
    _text_element(element, "access", field.access.value)
    return element


def _text_element(parent: ET._Element, tag: str, value: object) -> ET._Element:
    element = ET.SubElement(parent, tag)
    if isinstance(value, bool):
        element.text = "true" if value else "false"
    else:
        element.text = str(value)
    return element


def _hex(value: int) -> str:
    return f"0x{value:x}"
