# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import pytest

from svd2swift import (
    Access,
    Cluster,
    Device,
    Peripheral,
    Register,
    RegisterProperties,
    SvdDefinitionError,
)
from svd2swift.resolve import (
    EmissionMode,
    alias_target,
    effective_properties,
    resolve_derived_from,
    topo_sort_derived_peripherals,
    validate_derivations,
)


def _peripheral(name, derived_from=None, clusters=None):
    return Peripheral(
        name=name,
        base_address=0,
        derived_from=derived_from,
        registers=() if clusters is not None else None,
        clusters=clusters,
    )


def test_effective_properties_chain():
    device_props = RegisterProperties(size=32, access=Access.READ_WRITE, reset_value=0)
    peripheral = Peripheral(
        name="P", base_address=0, properties=RegisterProperties(size=16)
    )
    cluster = Cluster(
        name="C",
        address_offset=0,
        properties=RegisterProperties(access=Access.READ_ONLY),
    )
    register = Register(
        name="R", address_offset=0, properties=RegisterProperties(reset_value=1)
    )

    p_props = effective_properties(peripheral, device_props)
    c_props = effective_properties(cluster, p_props)
    r_props = effective_properties(register, c_props)

    assert r_props == RegisterProperties(size=16, access=Access.READ_ONLY, reset_value=1)


def test_resolve_derived_from():
    assert resolve_derived_from(_peripheral("A")) is EmissionMode.DEFINE
    assert resolve_derived_from(_peripheral("B", derived_from="A")) is EmissionMode.ALIAS
    assert resolve_derived_from(Cluster(name="C", address_offset=0)) is EmissionMode.DEFINE
    assert (
        resolve_derived_from(Cluster(name="D", address_offset=0, derived_from="C"))
        is EmissionMode.ALIAS
    )
    assert resolve_derived_from(Register(name="R", address_offset=0)) is EmissionMode.DEFINE


@pytest.mark.parametrize(
    "derived_from, expected",
    [
        ("UART0", "UART0"),
        ("TIMER.CC[%s]", "TIMER.CC"),
        ("GPIO.PIN_CNF-X", "GPIO.PIN_CNF_X"),
    ],
)
def test_alias_target(derived_from, expected):
    assert alias_target(derived_from) == expected


def test_topo_sort_places_bases_first():
    peripherals = [
        _peripheral("C", derived_from="B"),
        _peripheral("B", derived_from="A"),
        _peripheral("A"),
        _peripheral("D"),
    ]

    names = [p.name for p in topo_sort_derived_peripherals(peripherals)]

    assert sorted(names) == ["A", "B", "C", "D"]
    assert names.index("A") < names.index("B") < names.index("C")


def test_topo_sort_cycle():
    peripherals = [_peripheral("A", derived_from="B"), _peripheral("B", derived_from="A")]

    with pytest.raises(SvdDefinitionError):
        topo_sort_derived_peripherals(peripherals)


def test_validate_accepts_valid_references():
    device = Device(
        name="D",
        peripherals=(
            _peripheral(
                "P",
                clusters=(
                    Cluster(
                        name="C",
                        address_offset=0,
                        clusters=(Cluster(name="SUB", address_offset=0),),
                    ),
                    Cluster(name="C1", address_offset=0x10, derived_from="C"),
                    Cluster(name="C2", address_offset=0x20, derived_from="P.C"),
                    Cluster(name="C3", address_offset=0x30, derived_from="C.SUB"),
                ),
            ),
            _peripheral("Q", derived_from="P"),
        ),
    )

    validate_derivations(device)


def test_validate_reports_all_dangling_references():
    device = Device(
        name="D",
        peripherals=(
            _peripheral(
                "P",
                clusters=(Cluster(name="C1", address_offset=0, derived_from="MISSING"),),
            ),
            _peripheral("Q", derived_from="NOPE"),
        ),
    )

    with pytest.raises(SvdDefinitionError) as exc_info:
        validate_derivations(device)

    message = str(exc_info.value)
    assert "P.C1 (derivedFrom=MISSING)" in message
    assert "Q (derivedFrom=NOPE)" in message


@pytest.mark.parametrize(
    "device",
    [
        Device(name="D", peripherals=(_peripheral("P", derived_from="P"),)),
        Device(
            name="D",
            peripherals=(
                _peripheral(
                    "P", clusters=(Cluster(name="C", address_offset=0, derived_from="C"),)
                ),
            ),
        ),
    ],
    ids=["peripheral", "cluster"],
)
def test_validate_rejects_self_reference(device):
    with pytest.raises(SvdDefinitionError):
        validate_derivations(device)


def _two_peripherals(derived_from):
    return Device(
        name="D",
        peripherals=(
            _peripheral("P1", clusters=(Cluster(name="CH[%s]", address_offset=0),)),
            _peripheral(
                "P2",
                clusters=(Cluster(name="X", address_offset=0, derived_from=derived_from),),
            ),
        ),
    )


def test_validate_cluster_of_other_peripheral_needs_full_path():
    with pytest.raises(SvdDefinitionError, match=r"P2\.X \(derivedFrom=CH\)"):
        validate_derivations(_two_peripherals("CH"))

    validate_derivations(_two_peripherals("P1.CH"))


def test_validate_resolves_innermost_scope_first():
    device = Device(
        name="D",
        peripherals=(
            _peripheral(
                "P",
                clusters=(
                    Cluster(
                        name="A",
                        address_offset=0,
                        clusters=(
                            Cluster(name="B", address_offset=0),
                            Cluster(name="A", address_offset=0x10, derived_from="A"),
                        ),
                    ),
                ),
            ),
        ),
    )

    with pytest.raises(SvdDefinitionError, match=r"P\.A\.A \(derivedFrom=A\)"):
        validate_derivations(device)


def test_validate_rejects_cycle():
    device = Device(
        name="D",
        peripherals=(
            _peripheral("A", derived_from="B"),
            _peripheral("B", derived_from="A"),
        ),
    )

    with pytest.raises(SvdDefinitionError):
        validate_derivations(device)
