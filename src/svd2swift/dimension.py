# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Expansion of dimensioned ("dim") elements into replicas.
"""

from __future__ import annotations

from typing import Iterator, NamedTuple, Optional, Union

import svd2swift

from .declarations import checked_add
from .model import Exportable, Field, RegisterProperties


class Replica(NamedTuple):
    """One instance of an element."""

    # Index of the replica, None for an element that is not dimensioned.
    index: Optional[int]

    # Address (or bit) offset of the replica relative to the first one.
    offset: int


class Expansion(NamedTuple):
    """Replication of an element, resolved against its effective properties."""

    # Number of replicas, None for an element that is not dimensioned.
    count: Optional[int]

    # Increment between two replicas.
    stride: int

    @property
    def is_array(self) -> bool:
        return self.count is not None

    def replicas(self) -> Iterator[Replica]:
        """
        Iterate over the replicas of the element.

        :raises SvdAddressOverflowError: If an offset does not fit in 64 bits.
        """
        if not self.is_array:
            yield Replica(index=None, offset=0)
            return

        for index in range(self.count):
            yield Replica(index=index, offset=checked_add(index * self.stride))


SCALAR = Expansion(count=None, stride=0)


def default_stride(
    element: Union[Exportable, Field], properties: RegisterProperties
) -> Optional[int]:
    """
    Stride used when a dimensioned element has no dimIncrement: the register size for
    peripherals, clusters and registers, and the width of the bit range for fields.
    """
    if isinstance(element, Field):
        return element.bit_range.width
    return properties.size


def expand(
    element: Union[Exportable, Field], properties: RegisterProperties
) -> Optional[Expansion]:
    """
    Resolve how many times an element is replicated and at which stride.

    :param element: The element to expand.
    :param properties: Effective register properties of the element (of the containing register
                       for a field).
    :return: The expansion, or None if the element is dimensioned but no stride could be
             determined. The element must then be skipped.
    """
    dimension = element.dimension
    if dimension is None or not dimension.is_array:
        return SCALAR

    stride = dimension.stride
    if stride is None:
        stride = default_stride(element, properties)

    if dimension.count == 0:
        return Expansion(count=0, stride=stride or 0)

    if stride is None:
        svd2swift.log.warning(f"skipped exporting {element.name}: unknown stride")
        return None

    return Expansion(count=dimension.count, stride=stride)
