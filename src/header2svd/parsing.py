# Copyright (c) 2022 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from time import perf_counter_ns
from typing import List, Sequence, Tuple, Union

import header2svd

from . import patterns
from .errors import HeaderParseError
from .extraction import (
    ExtractionReport,
    RegisterExtractor,
    extract_interrupts,
    seed_base_addresses,
)
from .model import Registry


@dataclass(frozen=True)
class Options:
    """Options to configure which files are parsed and how their text is prepared."""

    # Header that supplies base addresses and interrupt sources. Relative to the input directory.
    principal_header: str = "eagle_soc.h"

    # Files in the input directory with names ending with this suffix are scanned for registers,
    # in addition to the principal header.
    register_file_suffix: str = "_register.h"

    # Ordered (pattern, replacement) literal substitutions applied to the text of every scanned
    # file before matching. See patterns.normalize().
    replacements: Sequence[Tuple[str, str]] = patterns.REPLACEMENTS


@dataclass
class ParseResult:
    """Outcome of parsing a directory of header files."""

    # Peripheral registry, keyed by peripheral name.
    peripherals: Registry

    # Diagnostics collected during parsing.
    report: ExtractionReport

    # Time spent parsing, in milliseconds.
    time_parse: float = 0.0


def parse(root: Union[str, Path], options: Options = Options()) -> ParseResult:
    """
    Parse the peripherals described by a directory of header files.

    :param root: Path to the directory containing the header files.
    :param options: Parsing options.

    :raises FileNotFoundError: If the directory or the principal header does not exist.
    :raises HeaderParseError: If a header could not be read, or contains an address that
        cannot be represented.

    :return: The peripheral registry along with the diagnostics collected while building it.
    """

    t_parse_start = perf_counter_ns()

    root_dir = Path(root)

    if not root_dir.is_dir():
        raise FileNotFoundError(f"No such directory: {root_dir.absolute()}")

    principal_file = root_dir / options.principal_header

    if not principal_file.is_file():
        raise FileNotFoundError(f"No such file: {principal_file.absolute()}")

    peripherals: Registry = {}
    report = ExtractionReport()

    principal_text = read_header(principal_file)
    report.interrupts.extend(extract_interrupts(principal_text))
    seed_base_addresses(principal_text, peripherals, source=str(principal_file))

    extractor = RegisterExtractor(peripherals, report)

    for header_file in select_headers(root_dir, options):
        header2svd.log.info(f"Searching {header_file}")

        text = patterns.normalize(read_header(header_file), options.replacements)
        seed_base_addresses(text, peripherals, source=str(header_file))
        extractor.extract(text, source=header_file)

    time_parse = (perf_counter_ns() - t_parse_start) / 1_000_000

    header2svd.log.info(
        f"Parsed {len(peripherals)} peripherals from {root_dir} in {time_parse:.1f} ms"
    )
    for interrupt in report.interrupts:
        header2svd.log.debug(
            f"Interrupt {interrupt.name} = {interrupt.value} ({interrupt.description})"
        )
    report.log_summary()

    return ParseResult(peripherals=peripherals, report=report, time_parse=time_parse)


def select_headers(root: Path, options: Options = Options()) -> List[Path]:
    """
    Get the header files in a directory that are scanned for registers.

    :param root: Directory to search.
    :param options: Parsing options.

    :return: Paths of the selected files, sorted by name.
    """
    try:
        entries = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise HeaderParseError(root, "the directory cannot be listed") from e

    return [
        p
        for p in entries
        if p.is_file()
        and (
            p.name.endswith(options.register_file_suffix)
            or p.name == options.principal_header
        )
    ]


def read_header(path: Path) -> str:
    """
    Read the full contents of a header file as UTF-8.

    :raises HeaderParseError: If the file cannot be read or is not valid UTF-8.
    """
    try:
        # Decoded from bytes so that line endings reach the extractor untranslated
        return path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise HeaderParseError(path, str(e)) from e
