# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import logging

import pytest

from svd2swift import (
    BitRange,
    Cluster,
    Dimension,
    Field,
    Peripheral,
    Register,
    RegisterProperties,
    SvdAddressOverflowError,
)
from svd2swift.dimension import SCALAR, Expansion, Replica, default_stride, expand

SIZE_32 = RegisterProperties(size=32)


def test_scalar():
    register = Register(name="R", address_offset=0)

    expansion = expand(register, SIZE_32)

    assert expansion == SCALAR
    assert not expansion.is_array
    assert list(expansion.replicas()) == [Replica(index=None, offset=0)]


def test_explicit_stride():
    cluster = Cluster(name="CH[%s]", address_offset=0x100, dimension=Dimension(4, 0x20))

    expansion = expand(cluster, SIZE_32)

    assert expansion == Expansion(count=4, stride=0x20)
    assert [r.offset for r in expansion.replicas()] == [0, 0x20, 0x40, 0x60]
    assert [r.index for r in expansion.replicas()] == [0, 1, 2, 3]


def test_default_stride_is_register_size():
    register = Register(name="R%s", address_offset=0, dimension=Dimension(count=3))

    expansion = expand(register, RegisterProperties(size=8))

    assert expansion == Expansion(count=3, stride=8)


def test_default_stride_of_field_is_width():
    field = Field(
        name="PIN%s", bit_range=BitRange(lsb=0, msb=1), dimension=Dimension(count=4)
    )

    assert default_stride(field, SIZE_32) == 2
    assert [r.offset for r in expand(field, SIZE_32).replicas()] == [0, 2, 4, 6]


def test_zero_count(caplog):
    caplog.set_level(logging.DEBUG, logger="svd2swift")
    peripheral = Peripheral(
        name="P%s", base_address=0x1000, dimension=Dimension(count=0)
    )

    expansion = expand(peripheral, RegisterProperties.NONE)

    assert expansion is not None
    assert list(expansion.replicas()) == []
    assert not caplog.records


def test_unknown_stride(caplog):
    caplog.set_level(logging.WARNING, logger="svd2swift")
    cluster = Cluster(name="C%s", address_offset=0, dimension=Dimension(count=2))

    assert expand(cluster, RegisterProperties.NONE) is None
    assert "skipped exporting C%s: unknown stride" in caplog.text


def test_replica_offset_overflow():
    expansion = Expansion(count=3, stride=1 << 63)

    with pytest.raises(SvdAddressOverflowError):
        list(expansion.replicas())
