# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from pathlib import Path
from time import perf_counter_ns
from typing import Dict, Iterator, List, Optional, Set, Type, Union

import lxml.etree as ET
from lxml import objectify

import svd2swift

from . import bindings
from ._bindings import SvdElement
from .errors import SvdDecodeError, SvdParseError
from .model import (
    Cluster,
    Device,
    Field,
    Peripheral,
    Register,
    WriteConstraint,
)


def parse(svd_path: Union[str, Path]) -> Device:
    """
    Parse a device described by a SVD file.

    :param svd_path: Path to the SVD file.

    :raises FileNotFoundError: If the SVD file does not exist.
    :raises SvdParseError: If the file is not well-formed XML.
    :raises SvdDecodeError: If an element does not have the expected shape.

    :return: Parsed `Device` representation of the SVD file.
    """
    svd_file = Path(svd_path)

    if not svd_file.is_file():
        raise FileNotFoundError(f"No such file: {svd_file.absolute()}")

    with open(svd_file, "rb") as f:
        content = f.read()

    return parse_bytes(content, source=str(svd_file))


def parse_bytes(content: bytes, source: str = "<bytes>") -> Device:
    """
    Parse a device from an in-memory SVD document.

    :param content: The SVD document.
    :param source: Name of the document used in log and error messages.

    :raises SvdParseError: If the document is not well-formed XML.
    :raises SvdDecodeError: If an element does not have the expected shape.

    :return: Parsed `Device` representation of the document.
    """
    t_parse_start = perf_counter_ns()

    # Note: remove comments as otherwise these are present as nodes in the returned XML tree
    xml_parser = objectify.makeparser(remove_comments=True)
    xml_parser.set_element_class_lookup(_TagLookup(bindings.BINDINGS))

    try:
        root = objectify.fromstring(content, parser=xml_parser)
    except ET.XMLSyntaxError as e:
        raise SvdParseError(f"Error parsing SVD document {source}") from e

    if not isinstance(root, bindings.DeviceElement):
        raise SvdDecodeError(
            f"line {root.sourceline}: [{root.tag}]",
            "Device",
            "the root element must be 'device'",
        )

    device = decode_device(root)

    t_parse = (perf_counter_ns() - t_parse_start) / 1_000_000
    svd2swift.log.debug(
        f"Decoded {source}: {len(device.peripherals)} peripherals in {t_parse:.1f} ms"
    )

    return device


class _TagLookup(ET.ElementNamespaceClassLookup):
    """
    XML element class lookup mapping a tag to a binding class.

    Within the part of the schema covered by the bindings every tag maps to exactly one class,
    so a single level of tag lookup is sufficient. Tags that are not covered fall back to the
    regular objectify classes.
    """

    def __init__(self, element_classes: List[Type[SvdElement]]):
        """
        :param element_classes: Binding classes to add to the lookup table.
        """
        super().__init__(objectify.ObjectifyElementClassLookup())

        tag_classes: Dict[str, Set[type]] = defaultdict(set)

        for element_class in element_classes:
            tag_classes[element_class.TAG].add(element_class)
            for prop in bindings.get_binding_elem_props(element_class).values():
                tag_classes[prop.name].add(prop.element_class)

        namespace = self.get_namespace(None)  # None is the empty namespace

        for tag, classes in tag_classes.items():
            if len(classes) != 1:
                raise RuntimeError(
                    f"Multiple classes for tag '{tag}': {classes}. "
                    "Each tag must be bound to a single element class."
                )
            # namespace is a decorator, so the syntax here is a little odd
            namespace(tag)(classes.pop())


@contextmanager
def _decoding(element: SvdElement, expected_shape: str) -> Iterator[None]:
    """Turn descriptor errors raised while building a model value into SvdDecodeError."""
    try:
        yield
    except SvdDecodeError:
        raise
    except (AttributeError, ValueError) as e:
        raise SvdDecodeError(element.location, expected_shape, str(e)) from e


def _name(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValueError("Name must not be empty")
    return name


def _description(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _write_constraint(
    element: Optional[bindings.WriteConstraintElement],
) -> Optional[WriteConstraint]:
    return None if element is None else element.decode()


def decode_field(element: bindings.FieldElement) -> Field:
    with _decoding(element, "Field"):
        return Field(
            name=_name(element.name),
            description=_description(element.description),
            bit_range=element.bit_range,
            access=element.access,
            dimension=element.dimension,
            write_constraint=_write_constraint(element.write_constraint),
        )


def decode_register(element: bindings.RegisterElement) -> Register:
    with _decoding(element, "Register"):
        fields = (
            tuple(decode_field(f) for f in element.fields)
            if element.has_fields
            else None
        )
        return Register(
            name=_name(element.name),
            description=_description(element.description),
            address_offset=element.offset,
            dimension=element.dimension,
            properties=element.register_properties,
            write_constraint=_write_constraint(element.write_constraint),
            fields=fields,
        )


def decode_cluster(element: bindings.ClusterElement) -> Cluster:
    with _decoding(element, "Cluster"):
        registers = tuple(decode_register(r) for r in element.registers)
        clusters = tuple(decode_cluster(c) for c in element.clusters)
        return Cluster(
            name=_name(element.name),
            description=_description(element.description),
            address_offset=element.offset,
            derived_from=element.derived_from,
            dimension=element.dimension,
            properties=element.register_properties,
            registers=registers or None,
            clusters=clusters or None,
        )


def decode_peripheral(element: bindings.PeripheralElement) -> Peripheral:
    with _decoding(element, "Peripheral"):
        if element.has_registers:
            registers: Optional[tuple] = tuple(
                decode_register(r) for r in element.registers
            )
            clusters: Optional[tuple] = tuple(
                decode_cluster(c) for c in element.clusters
            )
        else:
            registers = clusters = None

        return Peripheral(
            name=_name(element.name),
            description=_description(element.description),
            base_address=element.base_address,
            derived_from=element.derived_from,
            dimension=element.dimension,
            properties=element.register_properties,
            registers=registers,
            clusters=clusters,
        )


def decode_device(element: bindings.DeviceElement) -> Device:
    """
    Build the model of a device from its objectified XML element.

    :raises SvdDecodeError: If any element of the device does not have the expected shape.
    """
    with _decoding(element, "Device"):
        return Device(
            name=_name(element.name),
            description=_description(element.description),
            properties=element.register_properties,
            peripherals=tuple(decode_peripheral(p) for p in element.peripherals),
        )
