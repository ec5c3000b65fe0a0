# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from textwrap import dedent
from typing import Dict, List, Optional, Sequence, Tuple

import header2svd


def cli(argv: Optional[Sequence[str]] = None) -> None:
    top = argparse.ArgumentParser(
        description=dedent(
            """\
            Generate a System View Description (SVD) file from the peripheral register
            definitions in a directory of SDK header files.
            """
        ),
        allow_abbrev=False,
    )
    top.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help=(
            "Output verbose logs. Can be given multiple times to increase the verbosity. "
            "By default only critical messages are output."
        ),
    )

    hdr_in = top.add_argument_group("header options")
    hdr_in.add_argument(
        "root",
        type=Path,
        help="Directory containing the SDK header files.",
    )
    hdr_in.add_argument(
        "--parse-options",
        type=json.loads,
        help=(
            "JSON object used to override fields in the Options object to customize header "
            "parsing, for example the name of the principal header."
        ),
    )

    doc_in = top.add_argument_group("documentation options")
    doc_in.add_argument(
        "--override",
        metavar="NAME=FILE",
        dest="overrides",
        action="append",
        type=name_value,
        default=[],
        help=(
            "Replace the registers of peripheral NAME with those of the peripheral record in "
            "FILE. May be given multiple times."
        ),
    )
    doc_in.add_argument(
        "--clone",
        metavar="ARG",
        dest="clones",
        action="append",
        nargs="+",
        default=[],
        help=(
            "Add copies of the peripheral record in the first argument, given as "
            "'FILE NAME=ADDRESS [NAME=ADDRESS ...]'. May be given multiple times."
        ),
    )

    out = top.add_argument_group("output options")
    out.add_argument(
        "-o",
        "--output-file",
        type=Path,
        help="File to write the SVD document to. If not given, output is written to stdout.",
    )

    args = top.parse_args(argv)

    log_level = {
        0: logging.CRITICAL,
        1: logging.WARNING,
        2: logging.INFO,
        3: logging.DEBUG,
    }.get(args.verbose, logging.DEBUG)
    header2svd.log.setLevel(log_level)

    try:
        clones = [parse_clone(c) for c in args.clones]
    except ValueError as e:
        top.error(str(e))

    cmd_generate(args, clones)

    sys.exit(0)


def integer(val: str) -> int:
    return int(val, 0)


def name_value(val: str) -> Tuple[str, str]:
    name, sep, value = val.partition("=")
    if not sep or not name or not value:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{val}'")
    return name, value


def parse_clone(args: List[str]) -> Tuple[Path, Dict[str, int]]:
    if len(args) < 2:
        raise ValueError("--clone requires a FILE followed by at least one NAME=ADDRESS")

    placements = {}
    for arg in args[1:]:
        try:
            name, address = name_value(arg)
            placements[name] = integer(address)
        except (argparse.ArgumentTypeError, ValueError) as e:
            raise ValueError(f"invalid --clone placement '{arg}': {e}") from e

    return Path(args[0]), placements


def cmd_generate(
    args: argparse.Namespace, clones: List[Tuple[Path, Dict[str, int]]]
) -> None:
    options = header2svd.Options()
    if args.parse_options:
        options = dataclasses.replace(options, **args.parse_options)

    result = header2svd.parse(args.root, options=options)
    peripherals = result.peripherals

    # where available, the reference manual provides more detailed info
    overrides = header2svd.load_overrides(dict(args.overrides))
    header2svd.apply_overrides(peripherals, overrides)

    for record_file, placements in clones:
        _, source = header2svd.load_peripheral(record_file)
        header2svd.add_clones(peripherals, source, placements)

    device = header2svd.assemble(peripherals)
    header2svd.log.info(f"Writing {len(device.peripherals)} peripherals")

    if args.output_file is not None:
        header2svd.write_device(device, args.output_file)
    else:
        header2svd.write_device(device, sys.stdout.buffer)


# Entry point when running with python -m header2svd
if __name__ == "__main__":
    cli()
