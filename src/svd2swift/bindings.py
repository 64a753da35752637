# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Read-only ``lxml.objectify`` bindings for the device, peripheral, cluster, register and field
elements of the SVD format. Each binding class maps properties to the XML children/attributes
of the element; other children (interrupts, CPU description, enumerated values, ...) are left
untouched.

Based on CMSIS-SVD schema v1.3.9.
"""

from __future__ import annotations

import typing
from typing import Iterator, Optional

from lxml import objectify
from lxml.objectify import BoolElement, StringElement

from ._bindings import (
    SELF_CLASS,
    Attr,
    BindingRegistry,
    Elem,
    SvdElement,
    SvdIntElement,
    get_binding_elem_props,
    iter_element_children,
    make_enum_wrapper,
    to_int,
    to_name,
)
from .errors import SvdDecodeError
from .model import (
    Access,
    BitRange,
    Dimension,
    Protection,
    RangeWriteConstraint,
    RegisterProperties,
    UseEnumeratedValues,
    WriteAsRead,
    WriteConstraint,
)

# Binding classes, consumed by the tag lookup of the parsing module.
BINDING_REGISTRY = BindingRegistry()

# Class decorator registering a binding.
binding = BINDING_REGISTRY.add

# Re-exported for the parsing module
get_binding_elem_props = get_binding_elem_props

AccessElement = make_enum_wrapper(Access)

ProtectionElement = make_enum_wrapper(Protection)


@binding
class RangeWriteConstraintElement(SvdElement):
    """Inclusive range of writable values."""

    TAG: str = "range"

    # Minimum permitted value
    minimum: Elem[int] = Elem("minimum", SvdIntElement)

    # Maximum permitted value
    maximum: Elem[int] = Elem("maximum", SvdIntElement)


@binding
class WriteConstraintElement(SvdElement):
    """writeConstraint element, holding exactly one of three constraint shapes."""

    TAG: str = "writeConstraint"

    def decode(self) -> WriteConstraint:
        """
        Decode the constraint by trying each of the mutually exclusive shapes in turn.

        :raises SvdDecodeError: If none of the shapes is present.
        """
        for build in (self._decode_write_as_read, self._decode_use_enumerated_values):
            try:
                return build()
            except (AttributeError, ValueError):
                continue

        value_range = self._value_range
        if value_range is not None:
            return RangeWriteConstraint(
                minimum=value_range.minimum, maximum=value_range.maximum
            )

        raise SvdDecodeError(
            self.location,
            "WriteConstraint",
            "expected one of writeAsRead, useEnumeratedValues or range",
        )

    def _decode_write_as_read(self) -> WriteAsRead:
        return WriteAsRead(self._write_as_read)

    def _decode_use_enumerated_values(self) -> UseEnumeratedValues:
        return UseEnumeratedValues(self._use_enumerated_values)

    # (internal) writeAsRead shape.
    _write_as_read: Elem[bool] = Elem("writeAsRead", BoolElement)

    # (internal) useEnumeratedValues shape.
    _use_enumerated_values: Elem[bool] = Elem("useEnumeratedValues", BoolElement)

    # (internal) Value range constraint.
    _value_range: Elem[Optional[RangeWriteConstraintElement]] = Elem(
        "range", RangeWriteConstraintElement, default=None
    )


class DerivedMixin(objectify.ObjectifiedElement):
    """Elements that may carry a derivedFrom attribute."""

    # Element this one is an alias of.
    derived_from: Attr[Optional[str]] = Attr("derivedFrom", converter=to_name, default=None)


class RegisterPropertiesGroupMixin(objectify.ObjectifiedElement):
    """Elements that may set default register properties."""

    @property
    def register_properties(self) -> RegisterProperties:
        """Properties set directly on the element, not inherited ones."""
        return RegisterProperties(
            size=self._size,
            access=self._access,
            protection=self._protection,
            reset_value=self._reset_value,
            reset_mask=self._reset_mask,
        )

    _size: Elem[Optional[int]] = Elem("size", SvdIntElement, default=None)
    _access: Elem[Optional[Access]] = Elem("access", AccessElement, default=None)
    _protection: Elem[Optional[Protection]] = Elem(
        "protection", ProtectionElement, default=None
    )
    _reset_value: Elem[Optional[int]] = Elem("resetValue", SvdIntElement, default=None)
    _reset_mask: Elem[Optional[int]] = Elem("resetMask", SvdIntElement, default=None)


class DimElementGroupMixin(objectify.ObjectifiedElement):
    """Elements that may be replicated with dim/dimIncrement."""

    @property
    def dimension(self) -> Optional[Dimension]:
        """Dimension of the element, or None if the element has no dim element."""
        if self._dim is None:
            return None

        return Dimension(count=self._dim, stride=self._dim_increment)

    _dim: Elem[Optional[int]] = Elem("dim", SvdIntElement, default=None)
    _dim_increment: Elem[Optional[int]] = Elem(
        "dimIncrement", SvdIntElement, default=None
    )


class _NamedElementMixin(SvdElement):
    def get_name(self) -> Optional[str]:
        """Name of the element without decoding, for use in diagnostics."""
        name_element = self.find("name")
        return None if name_element is None else name_element.text

    def __repr__(self) -> str:
        props = {"name": self.get_name()}
        if (derived_from := self.get("derivedFrom")) is not None:
            props["derived_from"] = derived_from
        return super()._repr(props=props)


@binding
class FieldElement(_NamedElementMixin, DimElementGroupMixin):
    """SVD field element."""

    TAG: str = "field"

    # Name of the field.
    name: Elem[str] = Elem("name", StringElement)

    # Description of the field.
    description: Elem[Optional[str]] = Elem("description", StringElement, default=None)

    # Access override of the field.
    access: Elem[Optional[Access]] = Elem("access", AccessElement, default=None)

    # Values that may be written to the field.
    write_constraint: Elem[Optional[WriteConstraintElement]] = Elem(
        "writeConstraint", WriteConstraintElement, default=None
    )

    @property
    def bit_range(self) -> BitRange:
        """
        Bit range of the field, from whichever of the three SVD representations is used.

        :raises AttributeError: If the field has no bit range.
        :raises ValueError: If the bit range is malformed.
        """
        if self._lsb is not None and self._msb is not None:
            lsb, msb = self._lsb, self._msb

        elif self._bit_offset is not None:
            width = self._bit_width if self._bit_width is not None else 1
            lsb, msb = self._bit_offset, self._bit_offset + width - 1

        elif self._bit_range is not None:
            text = self._bit_range.strip()
            if not (text.startswith("[") and text.endswith("]")) or ":" not in text:
                raise ValueError(f"Malformed bitRange {text!r}, expected '[msb:lsb]'")
            msb_string, lsb_string = text[1:-1].split(":", 1)
            lsb, msb = to_int(lsb_string), to_int(msb_string)

        else:
            raise AttributeError(
                "Field has none of lsb/msb, bitOffset/bitWidth or bitRange"
            )

        if msb < lsb:
            raise ValueError(f"Most significant bit {msb} is below least significant bit {lsb}")

        return BitRange(lsb=lsb, msb=msb)

    # (internal) lsb of the lsb/msb form.
    _lsb: Elem[Optional[int]] = Elem("lsb", SvdIntElement, default=None)

    # (internal) msb of the lsb/msb form.
    _msb: Elem[Optional[int]] = Elem("msb", SvdIntElement, default=None)

    # (internal) bitOffset, first bit of the offset/width form.
    _bit_offset: Elem[Optional[int]] = Elem("bitOffset", SvdIntElement, default=None)

    # (internal) bitWidth, defaults to a single bit.
    _bit_width: Elem[Optional[int]] = Elem("bitWidth", SvdIntElement, default=None)

    # (internal) bitRange, the "[msb:lsb]" form.
    _bit_range: Elem[Optional[str]] = Elem("bitRange", StringElement, default=None)


@binding
class FieldsElement(SvdElement):
    """The fields element of a register."""

    TAG: str = "fields"

    # Field elements.
    field: Elem[FieldElement] = Elem("field", FieldElement)


@binding
class RegisterElement(
    _NamedElementMixin,
    DimElementGroupMixin,
    RegisterPropertiesGroupMixin,
):
    """SVD register element."""

    TAG: str = "register"

    # Name of the register.
    name: Elem[str] = Elem("name", StringElement)

    # Description of the register.
    description: Elem[Optional[str]] = Elem("description", StringElement, default=None)

    # Offset from the enclosing peripheral or cluster.
    offset: Elem[int] = Elem("addressOffset", SvdIntElement)

    # Values that may be written to the register.
    write_constraint: Elem[Optional[WriteConstraintElement]] = Elem(
        "writeConstraint", WriteConstraintElement, default=None
    )

    @property
    def has_fields(self) -> bool:
        return self._fields is not None

    @property
    def fields(self) -> Iterator[FieldElement]:
        """Fields of the register in document order."""
        it = iter_element_children(self._fields, FieldElement.TAG)
        return typing.cast(Iterator[FieldElement], it)

    # (internal) The fields container, absent for registers without fields.
    _fields: Elem[Optional[FieldsElement]] = Elem("fields", FieldsElement, default=None)


@binding
class ClusterElement(
    _NamedElementMixin,
    DimElementGroupMixin,
    RegisterPropertiesGroupMixin,
    DerivedMixin,
):
    """SVD cluster element."""

    TAG: str = "cluster"

    # Name of the cluster.
    name: Elem[str] = Elem("name", StringElement)

    # Description of the cluster.
    description: Elem[Optional[str]] = Elem("description", StringElement, default=None)

    # Offset from the enclosing peripheral or cluster.
    offset: Elem[int] = Elem("addressOffset", SvdIntElement)

    @property
    def registers(self) -> Iterator[RegisterElement]:
        """Iterator over the registers that are direct children of this cluster."""
        it = iter_element_children(self, RegisterElement.TAG)
        return typing.cast(Iterator[RegisterElement], it)

    @property
    def clusters(self) -> Iterator[ClusterElement]:
        """Iterator over the clusters that are direct children of this cluster."""
        it = iter_element_children(self, ClusterElement.TAG)
        return typing.cast(Iterator[ClusterElement], it)

    # (internal) Registers, only used for the tag lookup.
    _register: Elem[Optional[RegisterElement]] = Elem(
        "register", RegisterElement, default=None
    )

    # (internal) Nested clusters, only used for the tag lookup.
    _cluster: Elem[Optional[ClusterElement]] = Elem("cluster", SELF_CLASS, default=None)


@binding
class RegistersElement(SvdElement):
    """The registers element of a peripheral, holding registers and clusters."""

    TAG: str = "registers"

    # Clusters, only used for the tag lookup.
    cluster: Elem[Optional[ClusterElement]] = Elem(
        "cluster", ClusterElement, default=None
    )

    # Registers, only used for the tag lookup.
    register: Elem[Optional[RegisterElement]] = Elem(
        "register", RegisterElement, default=None
    )


@binding
class PeripheralElement(
    _NamedElementMixin,
    DimElementGroupMixin,
    RegisterPropertiesGroupMixin,
    DerivedMixin,
):
    """SVD peripheral element."""

    TAG: str = "peripheral"

    # Name of the peripheral.
    name: Elem[str] = Elem("name", StringElement)

    # Description of the peripheral.
    description: Elem[Optional[str]] = Elem("description", StringElement, default=None)

    # Absolute address of the peripheral.
    base_address: Elem[int] = Elem("baseAddress", SvdIntElement)

    @property
    def has_registers(self) -> bool:
        """True if the peripheral has a registers element, which derived peripherals may omit."""
        return self._registers is not None

    @property
    def registers(self) -> Iterator[RegisterElement]:
        """Iterator over the registers that are direct children of this peripheral."""
        it = iter_element_children(self._registers, RegisterElement.TAG)
        return typing.cast(Iterator[RegisterElement], it)

    @property
    def clusters(self) -> Iterator[ClusterElement]:
        """Iterator over the clusters that are direct children of this peripheral."""
        it = iter_element_children(self._registers, ClusterElement.TAG)
        return typing.cast(Iterator[ClusterElement], it)

    # (internal) The registers container, optional for derived peripherals.
    _registers: Elem[Optional[RegistersElement]] = Elem(
        "registers", RegistersElement, default=None
    )


@binding
class PeripheralsElement(SvdElement):
    """The peripherals element of a device."""

    TAG: str = "peripherals"

    # Peripherals, only used for the tag lookup.
    peripheral: Elem[Optional[PeripheralElement]] = Elem(
        "peripheral", PeripheralElement, default=None
    )


@binding
class DeviceElement(_NamedElementMixin, RegisterPropertiesGroupMixin):
    """SVD device element."""

    TAG: str = "device"

    # Name of the device.
    name: Elem[str] = Elem("name", StringElement)

    # Description of the device.
    description: Elem[Optional[str]] = Elem("description", StringElement, default=None)

    @property
    def peripherals(self) -> Iterator[PeripheralElement]:
        """Peripherals of the device in document order."""
        it = iter_element_children(self._peripherals, PeripheralElement.TAG)
        return typing.cast(Iterator[PeripheralElement], it)

    # (internal) The peripherals container.
    _peripherals: Elem[Optional[PeripheralsElement]] = Elem(
        "peripherals", PeripheralsElement, default=None
    )


# Registered binding classes.
BINDINGS = BINDING_REGISTRY.bindings
