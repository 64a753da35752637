# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from typing import Any, Iterable, Sequence


class Svd2SwiftError(Exception):
    """Base class for errors raised by the library."""

    ...


class SvdParseError(Svd2SwiftError):
    """Raised when the SVD document could not be read."""

    ...


class SvdDecodeError(SvdParseError):
    """Raised when an SVD element does not have the shape required to build a model value."""

    def __init__(self, location: str, expected_shape: str, explanation: str = "") -> None:
        self.location = location
        self.expected_shape = expected_shape

        formatted_explanation = "" if not explanation else f": {explanation}"
        super().__init__(
            f"Unable to decode {expected_shape} from {location}{formatted_explanation}"
        )


class SvdDefinitionError(Svd2SwiftError, ValueError):
    """Raised when unrecoverable errors occur due to an invalid definition in the SVD file."""

    def __init__(self, elements: Iterable[Any], explanation: str):
        elements_str = "\n".join(f"  * {e}" for e in elements)
        super().__init__(f"Invalid SVD file element(s):\n{elements_str}\n{explanation}")


class SvdConfigurationError(Svd2SwiftError):
    """Raised when the export options do not match the device."""

    ...


class SvdUnknownPeripheralError(SvdConfigurationError, KeyError):
    """Raised when a selected peripheral does not exist in the device."""

    def __init__(self, name: str, valid_names: Sequence[str]) -> None:
        self.name = name
        self.valid_names = list(valid_names)

        super().__init__(
            f"Unknown peripheral '{name}', valid peripherals are: "
            + ", ".join(self.valid_names)
        )

    def __str__(self) -> str:
        # KeyError quotes its argument otherwise
        return str(self.args[0])


class SvdAddressOverflowError(Svd2SwiftError, OverflowError):
    """Raised when address or bit arithmetic leaves the unsigned 64-bit range."""

    ...


class SvdOutputError(Svd2SwiftError):
    """Raised when the output writer is used in an inconsistent way."""

    ...
