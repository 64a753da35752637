# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Immutable representation of the part of an SVD device that drives code generation.

The model is built once by the parsing module and never modified afterwards. Values that depend
on the position of an element in the tree (effective register properties, replicas, identifiers)
are computed during export and are not stored here.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, fields
from typing import ClassVar, NamedTuple, Optional, Tuple, Union

from ._bindings import CaseInsensitiveStrEnum


@enum.unique
class Access(CaseInsensitiveStrEnum):
    """
    Access rights for a given register or field.
    See "accessType" in the SVD schema.
    """

    # Read access is permitted. Write operations have an undefined result.
    READ_ONLY = "read-only"
    # Write access is permitted. Read operations have an undefined result.
    WRITE_ONLY = "write-only"
    # Read and write accesses are permitted.
    READ_WRITE = "read-write"
    # Only the first write after reset has an effect. Read operations have an undefined results.
    WRITE_ONCE = "writeOnce"
    # Only the first write after reset has an effect. Read access is permitted.
    READ_WRITE_ONCE = "read-writeOnce"


@enum.unique
class Protection(CaseInsensitiveStrEnum):
    """
    Security privilege required to access an address region.
    See "protectionStringType" in the SVD schema.
    """

    # Secure permission required for access
    SECURE = "s"
    # Non-secure or secure permission required for access
    NON_SECURE = "n"
    # Privileged permission required for access
    PRIVILEGED = "p"


@dataclass(frozen=True)
class RegisterProperties:
    """
    Inheritable register defaults ("registerPropertiesGroup" in the SVD schema).
    Every property is optional; an absent property is inherited from the enclosing element.
    """

    NONE: ClassVar[RegisterProperties]

    # Size of the register in bits.
    size: Optional[int] = None

    # Access rights of the register.
    access: Optional[Access] = None

    # Protection level of the register.
    protection: Optional[Protection] = None

    # Reset value of the register.
    reset_value: Optional[int] = None

    # Reset mask of the register.
    reset_mask: Optional[int] = None

    def merged(self, parent: RegisterProperties) -> RegisterProperties:
        """
        Combine these properties with the ones inherited from a parent element.
        Properties defined here take precedence; absent ones are taken from the parent.

        :param parent: Properties of the enclosing element.
        :return: The merged properties.
        """
        return RegisterProperties(
            **{
                f.name: (
                    getattr(self, f.name)
                    if getattr(self, f.name) is not None
                    else getattr(parent, f.name)
                )
                for f in fields(self)
            }
        )


RegisterProperties.NONE = RegisterProperties()


@dataclass(frozen=True)
class WriteAsRead:
    """Only the last read value can be written."""

    value: bool


@dataclass(frozen=True)
class UseEnumeratedValues:
    """Only the enumerated values of the field can be written."""

    value: bool


@dataclass(frozen=True)
class RangeWriteConstraint:
    """Only values within an inclusive range can be written."""

    minimum: int
    maximum: int


# Constraint on the values that can be written to a register or field.
# Exactly one of the three shapes is present on a writeConstraint element.
WriteConstraint = Union[WriteAsRead, UseEnumeratedValues, RangeWriteConstraint]


@dataclass(frozen=True)
class Dimension:
    """Replication of an element ("dimElementGroup" in the SVD schema)."""

    # Number of times the element is repeated, or None if the element is not repeated.
    count: Optional[int] = None

    # Address (or bit) increment between two replicas, if given explicitly.
    stride: Optional[int] = None

    @property
    def is_array(self) -> bool:
        return self.count is not None


class BitRange(NamedTuple):
    """Inclusive bit range of a field."""

    # Least significant bit.
    lsb: int

    # Most significant bit.
    msb: int

    @property
    def width(self) -> int:
        return self.msb - self.lsb + 1

    def shifted(self, offset: int) -> BitRange:
        """The same range moved ``offset`` bits up."""
        return BitRange(lsb=self.lsb + offset, msb=self.msb + offset)


@dataclass(frozen=True)
class Field:
    """SVD field."""

    name: str
    bit_range: BitRange
    description: Optional[str] = None

    # Access override, the register access is used if None.
    access: Optional[Access] = None

    dimension: Optional[Dimension] = None
    write_constraint: Optional[WriteConstraint] = None


@dataclass(frozen=True)
class Register:
    """SVD register."""

    name: str

    # Offset relative to the enclosing peripheral or cluster.
    address_offset: int

    description: Optional[str] = None
    dimension: Optional[Dimension] = None
    properties: RegisterProperties = RegisterProperties.NONE
    write_constraint: Optional[WriteConstraint] = None

    # Fields of the register, None if the register has no fields element.
    fields: Optional[Tuple[Field, ...]] = None


@dataclass(frozen=True)
class Cluster:
    """SVD cluster, a named group of registers and clusters."""

    name: str

    # Offset relative to the enclosing peripheral or cluster.
    address_offset: int

    description: Optional[str] = None

    # Name (or dotted path) of the cluster that this cluster is an alias of.
    derived_from: Optional[str] = None

    dimension: Optional[Dimension] = None
    properties: RegisterProperties = RegisterProperties.NONE
    registers: Optional[Tuple[Register, ...]] = None
    clusters: Optional[Tuple[Cluster, ...]] = None


@dataclass(frozen=True)
class Peripheral:
    """SVD peripheral."""

    name: str
    base_address: int
    description: Optional[str] = None

    # Name of the peripheral that this peripheral is an alias of.
    derived_from: Optional[str] = None

    dimension: Optional[Dimension] = None
    properties: RegisterProperties = RegisterProperties.NONE

    # Registers and clusters of the peripheral. Both are None if the peripheral has no
    # registers element, which is permitted for derived peripherals.
    registers: Optional[Tuple[Register, ...]] = None
    clusters: Optional[Tuple[Cluster, ...]] = None


@dataclass(frozen=True)
class Device:
    """SVD device."""

    name: str
    description: Optional[str] = None

    # Default register properties of the device.
    properties: RegisterProperties = RegisterProperties.NONE

    # Peripherals in document order.
    peripherals: Tuple[Peripheral, ...] = ()

    def peripheral_names(self) -> Tuple[str, ...]:
        return tuple(p.name for p in self.peripherals)


# Elements that are exported as a type and an accessor.
Exportable = Union[Peripheral, Cluster, Register]
