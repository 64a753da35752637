# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Resolution of inherited register properties and 'derivedFrom' references.
"""

from __future__ import annotations

import enum
from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .errors import SvdDefinitionError
from .model import Cluster, Device, Exportable, Peripheral, RegisterProperties
from .naming import swift_name


@enum.unique
class EmissionMode(enum.Enum):
    """How an element is exported."""

    # A type alias to the element named by 'derivedFrom'; children are not exported.
    ALIAS = enum.auto()
    # A full type declaration including the children of the element.
    DEFINE = enum.auto()


def effective_properties(
    element: Exportable, inherited: RegisterProperties
) -> RegisterProperties:
    """
    Register properties of an element after inheriting from its ancestors.

    :param element: The element.
    :param inherited: Effective properties of the parent element.
    """
    return element.properties.merged(inherited)


def resolve_derived_from(element: Exportable) -> EmissionMode:
    if getattr(element, "derived_from", None) is not None:
        return EmissionMode.ALIAS
    return EmissionMode.DEFINE


def alias_target(derived_from: str) -> str:
    """Swift name of the element referenced by a 'derivedFrom' attribute."""
    return ".".join(swift_name(part) for part in derived_from.split("."))


def topo_sort_derived_peripherals(peripherals: Iterable[Peripheral]) -> List[Peripheral]:
    """
    Topologically sort the peripherals based on 'derivedFrom' attributes using Kahn's algorithm.
    The returned list has the property that the peripheral at index i does not derive from
    any of the peripherals at indices i + 1 and up.

    :param peripherals: Peripherals to sort.
    :raises SvdDefinitionError: If the 'derivedFrom' attributes form a cycle or reference a
                                nonexistent peripheral.
    :return: The topologically sorted peripherals.
    """
    sorted_peripherals: List[Peripheral] = []
    no_dep_peripherals: List[Peripheral] = []
    dep_graph: Dict[str, List[Peripheral]] = defaultdict(list)

    for peripheral in peripherals:
        if peripheral.derived_from is not None:
            dep_graph[peripheral.derived_from].append(peripheral)
        else:
            no_dep_peripherals.append(peripheral)

    while no_dep_peripherals:
        peripheral = no_dep_peripherals.pop()
        sorted_peripherals.append(peripheral)
        # A peripheral derives from at most one other peripheral, so it has no remaining
        # dependencies once its base has been sorted.
        no_dep_peripherals.extend(dep_graph.pop(peripheral.name, ()))

    if dep_graph:
        unresolved = [p.name for deps in dep_graph.values() for p in deps]
        raise SvdDefinitionError(
            unresolved,
            "Unable to determine order in which peripherals are derived. "
            "The 'derivedFrom' attributes form a cycle or point to a nonexistent peripheral.",
        )

    return sorted_peripherals


def _iter_clusters(
    clusters: Iterable[Cluster], path: Tuple[str, ...]
) -> Iterator[Tuple[Tuple[str, ...], Cluster]]:
    for cluster in clusters:
        cluster_path = (*path, cluster.name)
        yield cluster_path, cluster
        yield from _iter_clusters(cluster.clusters or (), cluster_path)


def validate_derivations(device: Device) -> None:
    """
    Check that every 'derivedFrom' attribute in the device references an existing element.

    A peripheral must derive from another peripheral of the device. A cluster must derive from
    another cluster. The reference is looked up the way Swift resolves the alias: relative to
    the enclosing cluster first, then to each outer scope up to the peripheral. A cluster of
    another peripheral is therefore only found through its full path ("PERIPH.CLUSTER").

    :raises SvdDefinitionError: If a reference is dangling or the peripherals derive in a cycle.
    """
    peripheral_names = set(device.peripheral_names())
    dangling: List[str] = []

    for peripheral in device.peripherals:
        target = peripheral.derived_from
        if target is not None and (target not in peripheral_names or target == peripheral.name):
            dangling.append(f"peripheral {peripheral.name} (derivedFrom={target})")

    cluster_types = {
        _type_path(path)
        for peripheral in device.peripherals
        for path, _ in _iter_clusters(peripheral.clusters or (), (peripheral.name,))
    }

    for peripheral in device.peripherals:
        for path, cluster in _iter_clusters(peripheral.clusters or (), (peripheral.name,)):
            target = cluster.derived_from
            if target is None:
                continue
            scope = _type_path(path[:-1])
            resolved = _lookup_cluster(cluster_types, scope, target)
            if resolved is None or resolved == _type_path(path):
                dangling.append(f"cluster {'.'.join(path)} (derivedFrom={target})")

    if dangling:
        raise SvdDefinitionError(
            dangling, "'derivedFrom' does not reference another element of the device"
        )

    topo_sort_derived_peripherals(device.peripherals)


def _type_path(path: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(swift_name(name) for name in path)


def _lookup_cluster(
    cluster_types: Set[Tuple[str, ...]], scope: Tuple[str, ...], target: str
) -> Optional[Tuple[str, ...]]:
    """Type path a cluster reference resolves to from within ``scope``, innermost scope first."""
    target_path = _type_path(tuple(target.split(".")))
    for depth in range(len(scope), -1, -1):
        candidate = scope[:depth] + target_path
        if candidate in cluster_types:
            return candidate
    return None
