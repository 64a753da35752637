# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

import logging

import pytest

from svd2swift import (
    AccessLevel,
    InMemoryOutput,
    SvdAddressOverflowError,
    SvdDefinitionError,
    SvdUnknownPeripheralError,
    export,
    select_peripherals,
)
from svd2swift.export import FILE_HEADER, ExportOptions

from .conftest import SIMPLE_PERIPHERAL

THREE_PERIPHERALS = """
<peripheral><name>A</name><baseAddress>0x1000</baseAddress><registers/></peripheral>
<peripheral><name>B</name><baseAddress>0x2000</baseAddress><registers/></peripheral>
<peripheral><name>C</name><baseAddress>0x3000</baseAddress><registers/></peripheral>
"""

NESTED_PERIPHERAL = """
<peripheral>
  <name>P</name>
  <baseAddress>0x1000</baseAddress>
  <registers>
    <register><name>R</name><addressOffset>0</addressOffset></register>
    <cluster>
      <name>C</name>
      <addressOffset>0x10</addressOffset>
      <register><name>Y</name><addressOffset>0</addressOffset></register>
      <cluster>
        <name>D</name>
        <addressOffset>0x4</addressOffset>
        <register><name>X</name><addressOffset>0</addressOffset></register>
      </cluster>
    </cluster>
  </registers>
</peripheral>
"""


def _assert_balanced(output: InMemoryOutput) -> None:
    for unit_name in output:
        text = output[unit_name]
        assert text.startswith(FILE_HEADER)
        assert text.count("{") == text.count("}"), unit_name


def _assert_ordered(text: str, *fragments: str) -> None:
    positions = [text.index(fragment) for fragment in fragments]
    assert positions == sorted(positions)


def test_simple_device(make_device, generate, caplog):
    caplog.set_level(logging.DEBUG, logger="svd2swift")

    output = generate(make_device(SIMPLE_PERIPHERAL))

    assert list(output) == ["Device.swift", "P.swift"]
    assert output["Device.swift"] == FILE_HEADER + "let p = P(unsafeAddress: 0x1000)\n"
    assert output["P.swift"] == FILE_HEADER + (
        "@RegisterBlock\n"
        "struct P {\n"
        "  @RegisterBlock(offset: 0x0004)\n"
        "  var r: Register<R>\n"
        "}\n"
        "\n"
        "extension P {\n"
        "  @Register(bitWidth: 32)\n"
        "  struct R {\n"
        "    @ReadWrite(bits: 0..<1)\n"
        "    var en: EN\n"
        "  }\n"
        "}\n"
    )
    assert "Register R at 0x1004" in caplog.text


def test_descriptions(make_device, generate):
    device = make_device(
        """
        <peripheral>
          <name>P</name>
          <description>Peripheral P</description>
          <baseAddress>0x1000</baseAddress>
          <registers>
            <register>
              <name>R</name>
              <description>Register R
                with two lines</description>
              <addressOffset>0</addressOffset>
            </register>
          </registers>
        </peripheral>
        """
    )

    output = generate(device)

    assert "/// Peripheral P\nlet p = P(unsafeAddress: 0x1000)" in output["Device.swift"]
    text = output["P.swift"]
    assert "/// Peripheral P\n@RegisterBlock\nstruct P {" in text
    assert "  /// Register R\n  /// with two lines\n  @RegisterBlock(offset: 0x0000)" in text
    assert "  /// Register R\n  /// with two lines\n  @Register(bitWidth: 32)" in text


def test_breadth_first_order(make_device, generate, caplog):
    caplog.set_level(logging.DEBUG, logger="svd2swift")

    output = generate(make_device(NESTED_PERIPHERAL))
    text = output["P.swift"]

    _assert_ordered(
        text,
        "struct P {",
        "extension P {",
        "struct R {",
        "struct C {",
        "extension P.C {",
        "struct Y {",
        "struct D {",
        "extension P.C.D {",
        "struct X {",
    )
    assert "  @RegisterBlock(offset: 0x0010)\n  var c: C\n" in text
    assert "    @RegisterBlock(offset: 0x0004)\n    var d: D\n" in text
    assert "Register X at 0x1014" in caplog.text
    _assert_balanced(output)


def test_inherited_properties(make_device, generate):
    device = make_device(
        """
        <peripheral>
          <name>P</name>
          <baseAddress>0</baseAddress>
          <access>read-only</access>
          <registers>
            <cluster>
              <name>C</name>
              <addressOffset>0</addressOffset>
              <size>16</size>
              <register>
                <name>R</name>
                <addressOffset>0</addressOffset>
                <fields>
                  <field><name>A</name><bitOffset>0</bitOffset></field>
                  <field><name>B</name><bitOffset>1</bitOffset><access>write-only</access></field>
                  <field><name>C</name><bitOffset>2</bitOffset><access>writeOnce</access></field>
                </fields>
              </register>
            </cluster>
            <register>
              <name>S</name>
              <addressOffset>0x10</addressOffset>
              <size>8</size>
            </register>
          </registers>
        </peripheral>
        """
    )

    text = generate(device)["P.swift"]

    assert "extension P.C {\n  @Register(bitWidth: 16)\n  struct R {" in text
    assert "@Register(bitWidth: 8)\n  struct S {" in text
    assert "@ReadOnly(bits: 0..<1)\n    var a: A" in text
    assert "@WriteOnly(bits: 1..<2)\n    var b: B" in text
    assert "@WriteOnly(bits: 2..<3)\n    var c: C" in text


def test_field_without_access_is_reserved(make_device, generate):
    device = make_device(SIMPLE_PERIPHERAL, properties="<size>32</size>")

    text = generate(device)["P.swift"]

    assert "@Reserved(bits: 0..<1)\n    var en: EN" in text


def test_field_names(make_device, generate):
    device = make_device(
        """
        <peripheral>
          <name>P</name>
          <baseAddress>0</baseAddress>
          <registers>
            <register>
              <name>CTRL</name>
              <addressOffset>0</addressOffset>
              <fields>
                <field><name>CTRL</name><bitOffset>0</bitOffset></field>
                <field><name>enable</name><bitOffset>1</bitOffset></field>
                <field><name>Enable</name><bitOffset>2</bitOffset></field>
              </fields>
            </register>
          </registers>
        </peripheral>
        """
    )

    text = generate(device)["P.swift"]

    assert "var ctrl_field: CTRL_FIELD" in text
    assert "var enable: ENABLE" in text
    assert "var enable_2: Enable_2" in text


def test_dimensioned_elements(make_device, generate):
    device = make_device(
        """
        <peripheral>
          <name>UART%s</name>
          <dim>2</dim>
          <dimIncrement>0x1000</dimIncrement>
          <baseAddress>0x40000000</baseAddress>
          <registers>
            <cluster>
              <name>CH[%s]</name>
              <dim>2</dim>
              <dimIncrement>0x10</dimIncrement>
              <addressOffset>0x100</addressOffset>
              <register><name>CFG</name><addressOffset>0</addressOffset></register>
            </cluster>
            <register>
              <name>DATA[%s]</name>
              <dim>4</dim>
              <dimIncrement>4</dimIncrement>
              <addressOffset>0x20</addressOffset>
              <fields>
                <field>
                  <name>PIN%s</name>
                  <dim>3</dim>
                  <bitOffset>0</bitOffset>
                  <bitWidth>2</bitWidth>
                </field>
              </fields>
            </register>
          </registers>
        </peripheral>
        """
    )

    output = generate(device)

    assert list(output) == ["Device.swift", "UART.swift"]
    assert output["Device.swift"] == FILE_HEADER + (
        "let uart0 = UART(unsafeAddress: 0x4000_0000)\n"
        "\n"
        "let uart1 = UART(unsafeAddress: 0x4000_1000)\n"
    )

    text = output["UART.swift"]
    assert (
        "@RegisterBlock(offset: 0x0020, stride: 0x0004, count: 4)\n"
        "  var data: RegisterArray<DATA>"
    ) in text
    assert "@RegisterBlock(offset: 0x0100)\n  var ch0: CH\n" in text
    assert "@RegisterBlock(offset: 0x0110)\n  var ch1: CH\n" in text
    assert "@ReadWrite(bits: 0..<2)\n    var pin0: PIN0" in text
    assert "@ReadWrite(bits: 2..<4)\n    var pin1: PIN1" in text
    assert "@ReadWrite(bits: 4..<6)\n    var pin2: PIN2" in text
    assert "extension UART.CH {" in text
    _assert_balanced(output)


def test_zero_count_elements_are_not_exported(make_device, generate):
    device = make_device(
        """
        <peripheral>
          <name>P</name>
          <baseAddress>0</baseAddress>
          <registers>
            <cluster>
              <name>C%s</name>
              <dim>0</dim>
              <addressOffset>0</addressOffset>
              <register><name>X</name><addressOffset>0</addressOffset></register>
            </cluster>
            <register>
              <name>R%s</name>
              <dim>0</dim>
              <addressOffset>0</addressOffset>
            </register>
          </registers>
        </peripheral>
        """
    )

    text = generate(device)["P.swift"]

    assert text == FILE_HEADER + "@RegisterBlock\nstruct P {\n}\n"


def test_unknown_stride_is_skipped(make_device, generate, caplog):
    caplog.set_level(logging.WARNING, logger="svd2swift")
    device = make_device(
        """
        <peripheral>
          <name>P</name>
          <baseAddress>0</baseAddress>
          <registers>
            <cluster>
              <name>C%s</name>
              <dim>2</dim>
              <addressOffset>0</addressOffset>
              <register>
                <name>X</name><addressOffset>0</addressOffset><size>32</size>
              </register>
            </cluster>
            <register>
              <name>R</name><addressOffset>0x10</addressOffset><size>32</size>
            </register>
          </registers>
        </peripheral>
        """,
        properties="",
    )

    text = generate(device)["P.swift"]

    assert "unknown stride" in caplog.text
    assert "var c0" not in text
    assert "struct C {" not in text
    assert "var r: Register<R>" in text


def test_unknown_register_size_is_skipped(make_device, generate, caplog):
    caplog.set_level(logging.WARNING, logger="svd2swift")
    device = make_device(SIMPLE_PERIPHERAL, properties="")

    text = generate(device)["P.swift"]

    assert "skipped exporting R: unknown register size" in caplog.text
    assert text == FILE_HEADER + "@RegisterBlock\nstruct P {\n}\n"


def test_derived_peripheral_is_alias(make_device, generate):
    device = make_device(
        SIMPLE_PERIPHERAL
        + """
        <peripheral derivedFrom="P">
          <name>Q</name>
          <baseAddress>0x2000</baseAddress>
        </peripheral>
        """
    )

    output = generate(device)

    assert list(output) == ["Device.swift", "P.swift", "Q.swift"]
    assert output["Q.swift"] == FILE_HEADER + "typealias Q = P\n"
    assert output["Device.swift"].endswith(
        "let p = P(unsafeAddress: 0x1000)\n\nlet q = Q(unsafeAddress: 0x2000)\n"
    )


def test_derived_cluster_is_alias(make_device, generate):
    device = make_device(
        """
        <peripheral>
          <name>P</name>
          <baseAddress>0</baseAddress>
          <registers>
            <cluster>
              <name>C0</name>
              <addressOffset>0</addressOffset>
              <register><name>X</name><addressOffset>0</addressOffset></register>
            </cluster>
            <cluster derivedFrom="C0">
              <name>C1</name>
              <addressOffset>0x20</addressOffset>
            </cluster>
          </registers>
        </peripheral>
        """
    )

    text = generate(device)["P.swift"]

    assert "var c0: C0" in text
    assert "@RegisterBlock(offset: 0x0020)\n  var c1: C1" in text
    assert "  typealias C1 = C0\n" in text
    assert "extension P.C0 {" in text
    assert "extension P.C1" not in text


def test_selection_is_sorted(make_device, generate):
    device = make_device(THREE_PERIPHERALS)

    output = generate(device, selected_peripherals=["B", "A"])

    assert list(output) == ["Device.swift", "A.swift", "B.swift"]
    _assert_ordered(output["Device.swift"], "let a = A", "let b = B")
    assert "let c" not in output["Device.swift"]


def test_selection_sorts_document_order(make_device):
    device = make_device(
        """
        <peripheral><name>C</name><baseAddress>0x3000</baseAddress></peripheral>
        <peripheral><name>A</name><baseAddress>0x1000</baseAddress></peripheral>
        <peripheral><name>B</name><baseAddress>0x2000</baseAddress></peripheral>
        """
    )

    assert [p.name for p in select_peripherals(device, ())] == ["A", "B", "C"]
    assert [p.name for p in select_peripherals(device, ["C", "A", "C"])] == ["A", "C"]


def test_unknown_peripheral(make_device):
    device = make_device(THREE_PERIPHERALS)
    output = InMemoryOutput()

    with pytest.raises(SvdUnknownPeripheralError) as exc_info:
        export(device, ExportOptions(selected_peripherals=["D"]), output)

    error = exc_info.value
    assert error.name == "D"
    assert error.valid_names == ["A", "B", "C"]
    assert str(error) == "Unknown peripheral 'D', valid peripherals are: A, B, C"
    assert len(output) == 0


def test_unselected_base_warning(make_device, generate, caplog):
    caplog.set_level(logging.WARNING, logger="svd2swift")
    device = make_device(
        SIMPLE_PERIPHERAL
        + """
        <peripheral derivedFrom="P">
          <name>Q</name>
          <baseAddress>0x2000</baseAddress>
        </peripheral>
        """
    )

    output = generate(device, selected_peripherals=["Q"])

    assert list(output) == ["Device.swift", "Q.swift"]
    assert "Q is exported as an alias of P" in caplog.text


def test_namespace_under_device(make_device, generate):
    output = generate(make_device(SIMPLE_PERIPHERAL), namespace_under_device=True)

    assert output["Device.swift"] == FILE_HEADER + (
        "/// Test device\n"
        "enum TestDevice {\n"
        "  static let p = P(unsafeAddress: 0x1000)\n"
        "}\n"
    )
    text = output["P.swift"]
    assert text.startswith(FILE_HEADER + "extension TestDevice {\n  @RegisterBlock\n  struct P {")
    assert "extension TestDevice.P {" in text
    _assert_balanced(output)


def test_instance_member_peripherals(make_device, generate):
    output = generate(
        make_device(SIMPLE_PERIPHERAL),
        namespace_under_device=True,
        instance_member_peripherals=True,
        device_name="Chip",
    )

    assert output["Device.swift"] == FILE_HEADER + (
        "/// Test device\n"
        "struct Chip {\n"
        "  let p = P(unsafeAddress: 0x1000)\n"
        "}\n"
    )
    assert "extension Chip.P {" in output["P.swift"]


def test_access_level(make_device, generate):
    output = generate(
        make_device(SIMPLE_PERIPHERAL),
        access_level=AccessLevel.PUBLIC,
        namespace_under_device=True,
    )

    assert "public enum TestDevice {" in output["Device.swift"]
    assert "  public static let p = P(unsafeAddress: 0x1000)" in output["Device.swift"]
    text = output["P.swift"]
    assert "public struct P {" in text
    assert "public var r: Register<R>" in text
    assert "public struct R {" in text
    assert "public var en: EN" in text


def test_indentation_option(make_device, generate):
    text = generate(make_device(SIMPLE_PERIPHERAL), indentation="\t")["P.swift"]

    assert "\n\t\t@ReadWrite(bits: 0..<1)\n\t\tvar en: EN\n" in text


def test_dangling_derivation_is_rejected(make_device, generate):
    device = make_device(
        """
        <peripheral derivedFrom="MISSING">
          <name>Q</name>
          <baseAddress>0x2000</baseAddress>
        </peripheral>
        """
    )

    with pytest.raises(SvdDefinitionError):
        generate(device)

    output = generate(device, validate_derivations=False)
    assert output["Q.swift"] == FILE_HEADER + "typealias Q = MISSING\n"


def test_address_overflow(make_device, generate):
    device = make_device(
        """
        <peripheral>
          <name>P%s</name>
          <dim>2</dim>
          <dimIncrement>0x10</dimIncrement>
          <baseAddress>0xFFFFFFFFFFFFFFF0</baseAddress>
        </peripheral>
        """
    )

    with pytest.raises(SvdAddressOverflowError):
        generate(device)


@pytest.mark.parametrize(
    "dimension_xml",
    ["<dim>2</dim>", "<dim>0</dim><dimIncrement>0x100</dimIncrement>"],
    ids=["unknown-stride", "zero-count"],
)
def test_skipped_peripheral_has_no_unit(make_device, generate, dimension_xml):
    device = make_device(
        f"""
        <peripheral>
          <name>T%s</name>
          {dimension_xml}
          <baseAddress>0x1000</baseAddress>
          <registers>
            <register>
              <name>R</name><addressOffset>0</addressOffset><size>32</size>
            </register>
          </registers>
        </peripheral>
        """,
        properties="",
    )

    output = generate(device)

    assert list(output) == ["Device.swift"]
    assert output["Device.swift"] == FILE_HEADER
