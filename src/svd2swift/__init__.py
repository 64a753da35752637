# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from .errors import (
    Svd2SwiftError,
    SvdParseError,
    SvdDecodeError,
    SvdDefinitionError,
    SvdConfigurationError,
    SvdUnknownPeripheralError,
    SvdAddressOverflowError,
    SvdOutputError,
)
from .model import (
    Access,
    Protection,
    RegisterProperties,
    WriteAsRead,
    UseEnumeratedValues,
    RangeWriteConstraint,
    WriteConstraint,
    Dimension,
    BitRange,
    Field,
    Register,
    Cluster,
    Peripheral,
    Device,
)
from .parsing import (
    parse,
    parse_bytes,
)
from .export import (
    AccessLevel,
    ExportOptions,
    export,
    select_peripherals,
)
from .writer import (
    DirectoryOutput,
    InMemoryOutput,
    OutputWriter,
)

import importlib.metadata
import logging

__version__ = importlib.metadata.version("svd2swift")


def _init_logger() -> logging.Logger:
    formatter = logging.Formatter("{message}", style="{")
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logger = logging.getLogger("svd2swift")
    logger.setLevel(logging.ERROR)
    logger.addHandler(handler)

    return logger


# logging.Logger instance used for log output from svd2swift
log = _init_logger()

__all__ = [
    # from errors
    "Svd2SwiftError",
    "SvdParseError",
    "SvdDecodeError",
    "SvdDefinitionError",
    "SvdConfigurationError",
    "SvdUnknownPeripheralError",
    "SvdAddressOverflowError",
    "SvdOutputError",
    # from model
    "Access",
    "Protection",
    "RegisterProperties",
    "WriteAsRead",
    "UseEnumeratedValues",
    "RangeWriteConstraint",
    "WriteConstraint",
    "Dimension",
    "BitRange",
    "Field",
    "Register",
    "Cluster",
    "Peripheral",
    "Device",
    # from parsing
    "parse",
    "parse_bytes",
    # from export
    "AccessLevel",
    "ExportOptions",
    "export",
    "select_peripherals",
    # from writer
    "DirectoryOutput",
    "InMemoryOutput",
    "OutputWriter",
    # other
    "log",
    "__version__",
]
