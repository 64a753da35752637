# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from textwrap import dedent
from typing import List, Optional

import svd2swift
from svd2swift import AccessLevel, DirectoryOutput, ExportOptions


def cli(argv: Optional[List[str]] = None) -> None:
    top = argparse.ArgumentParser(
        prog="svd2swift",
        description=dedent(
            """\
            Generate Swift MMIO register interfaces from a System View Description (SVD) file.
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
            "By default only errors are output."
        ),
    )

    top_in = top.add_argument_group("input options")
    top_in.add_argument(
        "-i",
        "--input",
        required=True,
        type=Path,
        help="Path to the device SVD file.",
    )
    top_in.add_argument(
        "--no-validate-derivations",
        action="store_true",
        help="Don't check that 'derivedFrom' attributes reference existing elements.",
    )

    top_sel = top.add_argument_group("selection options")
    top_sel.add_argument(
        "-p",
        "--peripheral",
        metavar="NAME",
        dest="peripherals",
        action="append",
        help="Limit output to the given peripheral. May be given multiple times.",
    )

    top_out = top.add_argument_group("output options")
    top_out.add_argument(
        "-o",
        "--output",
        required=True,
        type=Path,
        help="Directory to write the generated Swift files to.",
    )
    indentation = top_out.add_mutually_exclusive_group()
    indentation.add_argument(
        "--indent-width",
        type=int,
        default=2,
        metavar="N",
        help="Indent with N spaces (default: 2).",
    )
    indentation.add_argument(
        "--indent-tabs",
        action="store_true",
        help="Indent with tabs.",
    )
    top_out.add_argument(
        "--access-level",
        choices=[a.value for a in AccessLevel],
        help="Access level applied to all generated declarations.",
    )
    top_out.add_argument(
        "--namespace-under-device",
        action="store_true",
        help="Declare the peripheral instances inside a type named after the device.",
    )
    top_out.add_argument(
        "--instance-member-peripherals",
        action="store_true",
        help=(
            "Declare the peripheral instances as instance members instead of static members. "
            "Only has an effect together with --namespace-under-device."
        ),
    )
    top_out.add_argument(
        "--device-name",
        help="Name to use for the device instead of the name in the SVD file.",
    )

    args = top.parse_args(argv)

    log_level = {
        0: logging.ERROR,
        1: logging.WARNING,
        2: logging.INFO,
        3: logging.DEBUG,
    }.get(args.verbose, logging.DEBUG)
    svd2swift.log.setLevel(log_level)

    if args.indent_width < 0:
        top.error("--indent-width must not be negative")

    options = ExportOptions(
        indentation="\t" if args.indent_tabs else " " * args.indent_width,
        access_level=AccessLevel(args.access_level) if args.access_level else None,
        selected_peripherals=tuple(args.peripherals or ()),
        namespace_under_device=args.namespace_under_device,
        instance_member_peripherals=args.instance_member_peripherals,
        device_name=args.device_name,
        validate_derivations=not args.no_validate_derivations,
    )

    try:
        device = svd2swift.parse(args.input)
        svd2swift.export(device, options, DirectoryOutput(args.output))
    except (FileNotFoundError, svd2swift.Svd2SwiftError) as e:
        svd2swift.log.error(f"error: {e}")
        sys.exit(1)

    sys.exit(0)


# Entry point when running with python -m svd2swift
if __name__ == "__main__":
    cli()
