# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Export of a device model as Swift MMIO source.

The device is written as one compilation unit holding the peripheral instances, followed by one
compilation unit per peripheral. A peripheral unit is produced by a breadth-first walk over the
peripheral: each step of the walk declares the types of a set of sibling elements inside an
extension of their parent type, and queues the children of those elements for a later step.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import (
    Callable,
    Dict,
    List,
    NamedTuple,
    Optional,
    Sequence,
    Tuple,
    Type,
)

import svd2swift

from . import declarations
from .declarations import access_macro, checked_add, hex_literal
from .dimension import expand
from .errors import SvdUnknownPeripheralError
from .model import (
    Cluster,
    Device,
    Exportable,
    Field,
    Peripheral,
    Register,
    RegisterProperties,
)
from .naming import FieldNamer, swift_name
from .resolve import (
    EmissionMode,
    alias_target,
    effective_properties,
    resolve_derived_from,
    validate_derivations,
)
from .writer import Output, OutputWriter

FILE_HEADER = "// Generated by svd2swift.\n\nimport MMIO\n\n"

DEVICE_UNIT_NAME = "Device.swift"


class AccessLevel(str, enum.Enum):
    """Swift access level applied to every generated declaration."""

    PUBLIC = "public"
    PACKAGE = "package"
    INTERNAL = "internal"
    FILEPRIVATE = "fileprivate"
    PRIVATE = "private"


@dataclass(frozen=True)
class ExportOptions:
    """Options to configure the generated source."""

    # Text of one level of indentation.
    indentation: str = "  "

    # Access level prefixed to every declaration. No prefix is used if None.
    access_level: Optional[AccessLevel] = None

    # Names of the peripherals to export. All peripherals are exported if empty.
    selected_peripherals: Sequence[str] = ()

    # Declare the peripheral instances inside a block named after the device.
    namespace_under_device: bool = False

    # Make the peripheral instances instance members of the device block instead of static
    # members. Only has an effect together with namespace_under_device.
    instance_member_peripherals: bool = False

    # Name used for the device block instead of the device name.
    device_name: Optional[str] = None

    # Check that all 'derivedFrom' attributes reference existing elements before exporting.
    # If set to False, aliases to missing elements are generated as-is.
    validate_derivations: bool = True


@dataclass
class ExportContext:
    """State threaded through the export of a device."""

    writer: OutputWriter
    options: ExportOptions

    @property
    def access(self) -> str:
        """Access level prefix of declarations, including the trailing space."""
        level = self.options.access_level
        return "" if level is None else f"{AccessLevel(level).value} "

    @property
    def accessor_modifier(self) -> str:
        """Modifier of the peripheral instance declarations."""
        options = self.options
        if options.namespace_under_device and not options.instance_member_peripherals:
            return "static "
        return ""


class _ExportItem(NamedTuple):
    """One step of the breadth-first walk over a peripheral."""

    # Sibling elements whose types are declared in this step.
    elements: Tuple[Exportable, ...]

    # Names of the enclosing types, outermost first.
    parent_types: Tuple[str, ...]

    # Effective register properties of the parent element.
    register_properties: RegisterProperties

    # Absolute address of the parent element.
    address: int


class _TypeExport(NamedTuple):
    """Result of declaring the type of an element."""

    # Children whose types are declared in a later step.
    children: Tuple[Exportable, ...]

    # Effective register properties of the element.
    register_properties: RegisterProperties

    # Absolute address of the element.
    address: int


class _Behavior(NamedTuple):
    """Export functions of one kind of element."""

    export_type: Callable[
        [ExportContext, Exportable, RegisterProperties, int], _TypeExport
    ]
    export_accessor: Callable[[ExportContext, Exportable, RegisterProperties], List[str]]


def export(device: Device, options: ExportOptions, output: Output) -> None:
    """
    Generate Swift MMIO source for a device.

    :param device: The device to export.
    :param options: Export options.
    :param output: Destination of the generated compilation units.

    :raises SvdDefinitionError: If a 'derivedFrom' attribute is invalid.
    :raises SvdUnknownPeripheralError: If a selected peripheral does not exist.
    :raises SvdAddressOverflowError: If an address does not fit in 64 bits.
    """
    if options.validate_derivations:
        validate_derivations(device)

    peripherals = select_peripherals(device, options.selected_peripherals)
    _warn_unselected_bases(peripherals)

    context = ExportContext(
        writer=OutputWriter(output, indentation=options.indentation),
        options=options,
    )
    device_name = options.device_name or swift_name(device.name)

    exported = _export_device_unit(context, device, peripherals, device_name)

    parent_types = (device_name,) if options.namespace_under_device else ()
    for peripheral in exported:
        _export_peripheral_unit(context, device, peripheral, parent_types)


def select_peripherals(device: Device, selected: Sequence[str]) -> List[Peripheral]:
    """
    Peripherals to export, sorted by name.

    :param device: The device.
    :param selected: Names of the peripherals to export, or empty to export all of them.
    :raises SvdUnknownPeripheralError: If a selected name is not a peripheral of the device.
    """
    if not selected:
        peripherals = list(device.peripherals)
    else:
        by_name = {p.name: p for p in device.peripherals}
        peripherals = []
        for name in dict.fromkeys(selected):
            try:
                peripherals.append(by_name[name])
            except KeyError:
                raise SvdUnknownPeripheralError(name, device.peripheral_names()) from None

    return sorted(peripherals, key=lambda p: p.name)


def _warn_unselected_bases(peripherals: Sequence[Peripheral]) -> None:
    names = {p.name for p in peripherals}
    for peripheral in peripherals:
        if peripheral.derived_from is not None and peripheral.derived_from not in names:
            svd2swift.log.warning(
                f"{peripheral.name} is exported as an alias of {peripheral.derived_from}, "
                "which is not exported"
            )


def _write_declarations(writer: OutputWriter, decls: Sequence[str]) -> None:
    for index, declaration in enumerate(decls):
        if index > 0:
            writer.append("\n")
        writer.append(f"{declaration}\n")


def _export_device_unit(
    context: ExportContext,
    device: Device,
    peripherals: Sequence[Peripheral],
    device_name: str,
) -> List[Peripheral]:
    """
    Write the device unit and return the peripherals that got an accessor. A peripheral
    skipped by the dimension expander gets no unit of its own either.
    """
    writer = context.writer
    options = context.options

    writer.append(FILE_HEADER)

    if options.namespace_under_device:
        header = declarations.namespace_header(
            device.description,
            device_name,
            is_struct=options.instance_member_peripherals,
            access=context.access,
        )
        writer.append(f"{header}\n")
        writer.indent()

    exported: List[Peripheral] = []
    accessors: List[str] = []
    for peripheral in peripherals:
        peripheral_accessors = _export_peripheral_accessor(
            context, peripheral, device.properties
        )
        if peripheral_accessors:
            exported.append(peripheral)
            accessors.extend(peripheral_accessors)
    _write_declarations(writer, accessors)

    if options.namespace_under_device:
        writer.outdent()
        writer.append("}\n")

    writer.flush(DEVICE_UNIT_NAME)

    return exported


def _export_peripheral_unit(
    context: ExportContext,
    device: Device,
    peripheral: Peripheral,
    parent_types: Tuple[str, ...],
) -> None:
    writer = context.writer
    writer.append(FILE_HEADER)

    queue = [_ExportItem((peripheral,), parent_types, device.properties, 0)]

    # Advance an index instead of popping the front of the queue.
    index = 0
    while index < len(queue):
        item = queue[index]
        if index > 0:
            writer.append("\n")

        if item.parent_types:
            writer.append(f"{declarations.extension_header(list(item.parent_types))}\n")
            writer.indent()

        for element_index, element in enumerate(item.elements):
            if element_index > 0:
                writer.append("\n")
            behavior = _BEHAVIORS[type(element)]
            result = behavior.export_type(
                context, element, item.register_properties, item.address
            )
            if result.children:
                queue.append(
                    _ExportItem(
                        result.children,
                        (*item.parent_types, swift_name(element.name)),
                        result.register_properties,
                        result.address,
                    )
                )

        if item.parent_types:
            writer.outdent()
            writer.append("}\n")

        index += 1

    writer.flush(f"{swift_name(peripheral.name)}.swift")


def _export_alias(context: ExportContext, type_name: str, derived_from: str) -> None:
    alias = declarations.typealias(type_name, alias_target(derived_from), context.access)
    context.writer.append(f"{alias}\n")


def _export_members(
    context: ExportContext,
    registers: Sequence[Register],
    clusters: Sequence[Cluster],
    properties: RegisterProperties,
) -> Tuple[Exportable, ...]:
    """Declare the register and cluster members of a block and return the exported ones."""
    exported: List[Exportable] = []
    member_declarations: List[str] = []

    for element in (*registers, *clusters):
        element_declarations = _BEHAVIORS[type(element)].export_accessor(
            context, element, properties
        )
        if element_declarations:
            exported.append(element)
            member_declarations.extend(element_declarations)

    _write_declarations(context.writer, member_declarations)

    return tuple(exported)


def _export_block_type(
    context: ExportContext,
    element: Exportable,
    registers: Optional[Sequence[Register]],
    clusters: Optional[Sequence[Cluster]],
    properties: RegisterProperties,
) -> Tuple[Exportable, ...]:
    writer = context.writer
    type_name = swift_name(element.name)

    header = declarations.register_block_header(
        element.description, type_name, context.access
    )
    writer.append(f"{header}\n")
    writer.indent()
    children = _export_members(context, registers or (), clusters or (), properties)
    writer.outdent()
    writer.append("}\n")

    return children


def _export_peripheral_type(
    context: ExportContext,
    peripheral: Peripheral,
    inherited: RegisterProperties,
    address: int,
) -> _TypeExport:
    properties = effective_properties(peripheral, inherited)
    peripheral_address = checked_add(address, peripheral.base_address)

    if resolve_derived_from(peripheral) is EmissionMode.ALIAS:
        assert peripheral.derived_from is not None
        _export_alias(context, swift_name(peripheral.name), peripheral.derived_from)
        return _TypeExport((), properties, peripheral_address)

    children = _export_block_type(
        context, peripheral, peripheral.registers, peripheral.clusters, properties
    )
    return _TypeExport(children, properties, peripheral_address)


def _export_peripheral_accessor(
    context: ExportContext,
    peripheral: Peripheral,
    inherited: RegisterProperties,
) -> List[str]:
    properties = effective_properties(peripheral, inherited)
    expansion = expand(peripheral, properties)
    if expansion is None:
        return []

    return declarations.peripheral_accessors(
        peripheral.description,
        swift_name(peripheral.name),
        peripheral.base_address,
        expansion,
        access=f"{context.access}{context.accessor_modifier}",
    )


def _export_cluster_type(
    context: ExportContext,
    cluster: Cluster,
    inherited: RegisterProperties,
    address: int,
) -> _TypeExport:
    properties = effective_properties(cluster, inherited)
    cluster_address = checked_add(address, cluster.address_offset)

    if resolve_derived_from(cluster) is EmissionMode.ALIAS:
        assert cluster.derived_from is not None
        _export_alias(context, swift_name(cluster.name), cluster.derived_from)
        return _TypeExport((), properties, cluster_address)

    children = _export_block_type(
        context, cluster, cluster.registers, cluster.clusters, properties
    )
    return _TypeExport(children, properties, cluster_address)


def _export_cluster_accessor(
    context: ExportContext,
    cluster: Cluster,
    inherited: RegisterProperties,
) -> List[str]:
    properties = effective_properties(cluster, inherited)
    expansion = expand(cluster, properties)
    if expansion is None:
        return []

    return declarations.cluster_accessors(
        cluster.description,
        swift_name(cluster.name),
        cluster.address_offset,
        expansion,
        access=context.access,
    )


def _export_register_type(
    context: ExportContext,
    register: Register,
    inherited: RegisterProperties,
    address: int,
) -> _TypeExport:
    writer = context.writer
    properties = effective_properties(register, inherited)
    type_name = swift_name(register.name)
    register_address = checked_add(address, register.address_offset)

    svd2swift.log.debug(f"Register {type_name} at {hex_literal(register_address)}")

    header = declarations.register_header(
        register.description, type_name, properties.size, context.access
    )
    writer.append(f"{header}\n")
    writer.indent()

    namer = FieldNamer(type_name)
    field_declarations: List[str] = []
    for field in register.fields or ():
        field_declarations.extend(
            _export_field_accessor(context, field, namer, properties)
        )
    _write_declarations(writer, field_declarations)

    writer.outdent()
    writer.append("}\n")

    return _TypeExport((), properties, register_address)


def _export_register_accessor(
    context: ExportContext,
    register: Register,
    inherited: RegisterProperties,
) -> List[str]:
    properties = effective_properties(register, inherited)
    type_name = swift_name(register.name)

    if properties.size is None:
        svd2swift.log.warning(f"skipped exporting {type_name}: unknown register size")
        return []

    expansion = expand(register, properties)
    if expansion is None:
        return []

    return declarations.register_accessors(
        register.description,
        type_name,
        register.address_offset,
        expansion,
        access=context.access,
    )


def _export_field_accessor(
    context: ExportContext,
    field: Field,
    namer: FieldNamer,
    register_properties: RegisterProperties,
) -> List[str]:
    expansion = expand(field, register_properties)
    if expansion is None:
        return []

    indices = range(expansion.count) if expansion.is_array else None
    type_name = namer.reserve(field.name, indices)
    access = field.access if field.access is not None else register_properties.access

    return declarations.field_accessors(
        field.description,
        type_name,
        field.bit_range,
        access_macro(access),
        expansion,
        access=context.access,
    )


# Export functions of each kind of element exported as a type.
_BEHAVIORS: Dict[Type, _Behavior] = {
    Peripheral: _Behavior(_export_peripheral_type, _export_peripheral_accessor),  # type: ignore
    Cluster: _Behavior(_export_cluster_type, _export_cluster_accessor),  # type: ignore
    Register: _Behavior(_export_register_type, _export_register_accessor),  # type: ignore
}
