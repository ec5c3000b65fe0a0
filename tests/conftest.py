# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from pathlib import Path

import pytest

import header2svd
from header2svd import ExtractionReport, Peripheral, RegisterExtractor

EAGLE_SOC_H = """\
#ifndef _EAGLE_SOC_H_
#define _EAGLE_SOC_H_

#define ETS_SLC_SOURCE 1/**< interrupt of SLC*/
#define ETS_SPI_SOURCE 2/**< interrupt of SPI*/

#define PERIPHS_GPIO_BASEADDR 0x3FF00000
#define PERIPHS_UART_BASEADDR 0x60000000
#define PERIPHS_IO_MUX 0x60000800

#endif
"""

GPIO_REGISTER_H = """\
#define GPIO_OUT_REG (PERIPHS_GPIO_BASEADDR + 0x4)

"""

IO_MUX_REGISTER_H = """\
#define PERIPHS_IO_MUX_CONF_U (PERIPHS_IO_MUX + 0x00)
#define SPI0_CLK_EQU_SYS_CLK BIT(8)
#define SPI0_CLK_EQU_SYS_CLK_S 8

"""


@pytest.fixture
def foo_registry():
    return {"FOO": Peripheral(description="FOO", address=0x60000200)}


@pytest.fixture
def extract(foo_registry):
    """Run the register extractor over a text, returning the registry and the report."""

    def _extract(text, registry=None):
        registry = foo_registry if registry is None else registry
        report = ExtractionReport()
        RegisterExtractor(registry, report).extract(text, source="foo_register.h")
        return registry, report

    return _extract


@pytest.fixture
def header_dir(tmp_path: Path) -> Path:
    (tmp_path / "eagle_soc.h").write_text(EAGLE_SOC_H, encoding="utf-8")
    (tmp_path / "gpio_register.h").write_text(GPIO_REGISTER_H, encoding="utf-8")
    (tmp_path / "io_mux_register.h").write_text(IO_MUX_REGISTER_H, encoding="utf-8")
    (tmp_path / "notes.txt").write_text("#define NOTES_ADDRESS 0x10\n", encoding="utf-8")
    return tmp_path


@pytest.fixture(autouse=True)
def _reset_log_level():
    level = header2svd.log.level
    yield
    header2svd.log.setLevel(level)
