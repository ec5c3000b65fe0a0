# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Textual conventions recognized in the SDK header files, and the normalization applied to the
header text before any of them are matched.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import List, Pattern, Sequence, Tuple

# Literal substitutions that align inconsistently spelled macros to one canonical form.
# Applied in order.
REPLACEMENTS: Tuple[Tuple[str, str], ...] = (
    ("PERIPHS_IO_MUX ", "PERIPHS_IO_MUX_BASE "),
    ("SLC_CONF0", "SLC_CONF0_REG"),
    ("SLC_INT_RAW", "SLC_INT_RAW_REG"),
    ("SLC_INT_STATUS", "SLC_INT_STATUS_REG"),
    ("SLC_INT_ENA", "SLC_INT_ENA_REG"),
    ("SLC_INT_CLR", "SLC_INT_CLR_REG"),
    ("SLC_RX_STATUS", "SLC_RX_STATUS_REG"),
    ("SLC_RX_FIFO_PUSH", "SLC_RX_FIFO_PUSH_REG"),
    ("SLC_TX_STATUS", "SLC_TX_STATUS_REG"),
    ("SLC_TX_FIFO_POP", "SLC_TX_FIFO_POP_REG"),
    ("SLC_RX_LINK", "SLC_RX_LINK_REG"),
    ("RTC_STORE0", "RTC_STORE0_REG"),
    ("RTC_STATE1", "RTC_STATE1_REG"),
    ("RTC_STATE2", "RTC_STATE2_REG"),
)

# Peripheral base address: "#define PERIPHS_GPIO_BASEADDR 0x60000300"
REG_BASE = re.compile(
    r"#define[\s*]+(?:DR_REG|REG|PERIPHS)_(.*)_BASE(?:A?DDR)?[\s*]+0x([0-9a-fA-F]+)"
)

# Register relative to a base address: "#define GPIO_OUT_REG (PERIPHS_GPIO_BASEADDR + 0x00)"
REG_DEF = re.compile(
    r"#define[\s*]+(?:PERIPHS_)?([^\s*]+_(?:REG|ADDRESS|U))[\s*]+"
    r"\((?:DR_REG|REG|PERIPHS)_(.*)_BASE(?:A?DDR)? \+ (.*)\)"
)

# Register given as a bare offset: "#define UART_FIFO_ADDRESS 0x00"
REG_DEF_OFFSET = re.compile(
    r"#define[\s*]+(?:PERIPHS_)?([^\s*]+_(?:ADDRESS|U))[\s*]+(?:0x)?([0-9a-fA-F]+)"
)

# Indexed register: "#define SPI_CMD_REG(i) (REG_SPI_BASE(i) + 0x0)"
REG_DEF_INDEX = re.compile(
    r"#define[\s*]+(?:PERIPHS_)?([^\s*(]+_(?:REG|ADDRESS|U))\(i\)"
)

# Field mask or single bit: "#define UART_RXFIFO_CNT 0x000000FF", "#define SLC_RX_DONE BIT(1)"
REG_DEFINE_MASK = re.compile(
    r"#define[\s*]+(?:PERIPHS_)?([^\s*]+)[\s*]+\(?(0x[0-9a-fA-F]+|[0-9]+|\(?BIT\(?[0-9]+\)?)\)?\)?"
)

# Field shift: "#define UART_RXFIFO_CNT_S 0"
REG_DEFINE_SHIFT = re.compile(
    r"#define[\s*]+(?:PERIPHS_)?([^\s*]+)_(?:S|s)[\s*]+\(?(0x[0-9a-fA-F]+|[0-9]+)\)?"
)

# Mask/value companions that carry no new information: "#define FOO_V 0x3", "#define FOO_M (...)"
REG_DEFINE_SKIP = re.compile(r"#define[\s*]+(?:PERIPHS_)?([^\s*]+)_(?:M|V)[\s*]+(\(|0x)")

SINGLE_BIT = re.compile(r"BIT\(?([0-9]+)\)?")

# Interrupt source: "#define ETS_SLC_SOURCE 1/**< interrupt of SLC*/"
INTERRUPTS = re.compile(
    r"#define[\s]ETS_([0-9A-Za-z_/]+)_SOURCE[\s]+([0-9]+)/\*\*<\s([0-9A-Za-z_/\s,]+)\*/"
)

REG_IFDEF = re.compile(r"#ifn?def.*")
REG_ENDIF = re.compile(r"#endif")


def is_directive(line: str) -> bool:
    """Check if a line is a conditional preprocessor directive that should be skipped."""
    return REG_IFDEF.search(line) is not None or REG_ENDIF.search(line) is not None


def normalize(text: str, replacements: Sequence[Tuple[str, str]] = REPLACEMENTS) -> str:
    """
    Apply the given literal substitutions to the text, in order.

    A replacement that extends its own pattern, like "SLC_CONF0" -> "SLC_CONF0_REG", is not
    applied to occurrences that already carry the extension. This makes the normalization
    idempotent.

    :param text: Header file contents.
    :param replacements: Ordered sequence of (pattern, replacement) string pairs.

    :return: The normalized text.
    """
    for pattern, replacement in _compile_replacements(tuple(map(tuple, replacements))):
        text = pattern.sub(lambda _: replacement, text)
    return text


@lru_cache(maxsize=None)
def _compile_replacements(
    replacements: Tuple[Tuple[str, str], ...]
) -> List[Tuple[Pattern[str], str]]:
    compiled = []

    for search, replace in replacements:
        expression = re.escape(search)
        if replace.startswith(search) and len(replace) > len(search):
            expression += f"(?!{re.escape(replace[len(search):])})"
        compiled.append((re.compile(expression), replace))

    return compiled
