# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and shared fixtures for the svd2swift test suite.
"""

from typing import Callable

import pytest

from svd2swift import Device, ExportOptions, InMemoryOutput, export, parse_bytes

DEVICE_TEMPLATE = """\
<?xml version="1.0" encoding="utf-8"?>
<device schemaVersion="1.3" xmlns:xs="http://www.w3.org/2001/XMLSchema-instance">
  <name>TestDevice</name>
  <version>1.0</version>
  <description>Test device</description>
  <addressUnitBits>8</addressUnitBits>
  <width>32</width>
  {properties}
  <peripherals>
    {peripherals}
  </peripherals>
</device>
"""

DEFAULT_PROPERTIES = "<size>32</size><access>read-write</access>"


def svd_document(peripherals: str, properties: str = DEFAULT_PROPERTIES) -> bytes:
    """An SVD document for a device with the given peripheral elements."""
    return DEVICE_TEMPLATE.format(
        properties=properties, peripherals=peripherals
    ).encode()


@pytest.fixture
def make_device() -> Callable[..., Device]:
    """
    Fixture that decodes a device from peripheral XML.

    Returns:
        Callable taking the peripheral elements and optionally the device register properties.
    """

    def _make(peripherals: str, properties: str = DEFAULT_PROPERTIES) -> Device:
        return parse_bytes(svd_document(peripherals, properties))

    return _make


@pytest.fixture
def generate() -> Callable[..., InMemoryOutput]:
    """
    Fixture that exports a device into memory.

    Returns:
        Callable taking the device and ExportOptions keyword arguments.
    """

    def _generate(device: Device, **options) -> InMemoryOutput:
        output = InMemoryOutput()
        export(device, ExportOptions(**options), output)
        return output

    return _generate


SIMPLE_PERIPHERAL = """
<peripheral>
  <name>P</name>
  <baseAddress>0x1000</baseAddress>
  <registers>
    <register>
      <name>R</name>
      <addressOffset>0x4</addressOffset>
      <fields>
        <field>
          <name>EN</name>
          <bitOffset>0</bitOffset>
          <bitWidth>1</bitWidth>
        </field>
      </fields>
    </register>
  </registers>
</peripheral>
"""
