# Copyright (c) 2022 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from .model import (
    Access,
    Endian,
    BitField,
    BitSpan,
    Bits,
    Interrupt,
    Peripheral,
    Register,
    Registry,
    SingleBit,
)
from .errors import (
    H2sError,
    HeaderParseError,
    DocumentationError,
)
from .patterns import (
    REPLACEMENTS,
    normalize,
)
from .extraction import (
    ExtractionReport,
    RegisterExtractor,
    extract_interrupts,
    extract_registers,
    seed_base_addresses,
)
from .parsing import (
    parse,
    Options,
    ParseResult,
)
from .assembly import (
    AddressBlock,
    AddressBlockUsage,
    BitRange,
    CpuInfo,
    DeviceDescriptor,
    DeviceInfo,
    FieldDescriptor,
    PeripheralDescriptor,
    RegisterDescriptor,
    assemble,
)
from .docs import (
    add_clones,
    apply_overrides,
    load_overrides,
    load_peripheral,
    peripheral_from_dict,
)
from .encode import (
    encode_device,
    write_device,
)

import importlib.metadata
import logging

__version__ = importlib.metadata.version("header2svd")


def _init_logger() -> logging.Logger:
    formatter = logging.Formatter("{message}", style="{")
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logger = logging.getLogger("header2svd")
    logger.setLevel(logging.ERROR)
    logger.addHandler(handler)

    return logger


# logging.Logger instance used for log output from header2svd
log = _init_logger()

__all__ = [
    # from model
    "Access",
    "Endian",
    "BitField",
    "BitSpan",
    "Bits",
    "Interrupt",
    "Peripheral",
    "Register",
    "Registry",
    "SingleBit",
    # from errors
    "H2sError",
    "HeaderParseError",
    "DocumentationError",
    # from patterns
    "REPLACEMENTS",
    "normalize",
    # from extraction
    "ExtractionReport",
    "RegisterExtractor",
    "extract_interrupts",
    "extract_registers",
    "seed_base_addresses",
    # from parsing
    "parse",
    "Options",
    "ParseResult",
    # from assembly
    "AddressBlock",
    "AddressBlockUsage",
    "BitRange",
    "CpuInfo",
    "DeviceDescriptor",
    "DeviceInfo",
    "FieldDescriptor",
    "PeripheralDescriptor",
    "RegisterDescriptor",
    "assemble",
    # from docs
    "add_clones",
    "apply_overrides",
    "load_overrides",
    "load_peripheral",
    "peripheral_from_dict",
    # from encode
    "encode_device",
    "write_device",
    # other
    "log",
    "__version__",
]
