# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Text of the Swift MMIO declarations generated for each element.

Every function here returns complete declarations (one string per declaration, lines separated
by newlines, no trailing newline). Indentation and the grouping of declarations into blocks are
left to the output writer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

import svd2swift

from ._bindings import UINT64_MAX
from .errors import SvdAddressOverflowError
from .model import Access, BitRange
from .naming import identifier, instance_name

if TYPE_CHECKING:
    from .dimension import Expansion

# Swift MMIO macro used for each access kind. The "once" variants cannot be expressed and are
# narrowed to the closest plain access.
ACCESS_MACROS = {
    Access.READ_ONLY: "ReadOnly",
    Access.WRITE_ONLY: "WriteOnly",
    Access.READ_WRITE: "ReadWrite",
    Access.WRITE_ONCE: "WriteOnly",
    Access.READ_WRITE_ONCE: "ReadWrite",
}

# Macro used for fields with no known access.
RESERVED_MACRO = "Reserved"


def access_macro(access: Optional[Access]) -> str:
    """Swift MMIO macro name for the effective access of a field."""
    if access is None:
        return RESERVED_MACRO
    return ACCESS_MACROS[access]


def checked_add(*values: int) -> int:
    """
    Add addresses, offsets or bit positions.

    :raises SvdAddressOverflowError: If the result is not an unsigned 64-bit integer.
    """
    result = sum(values)
    if not 0 <= result <= UINT64_MAX:
        raise SvdAddressOverflowError(
            f"{' + '.join(hex(v) for v in values)} overflows 64 bits"
        )
    return result


def hex_literal(value: int) -> str:
    """Swift hexadecimal literal grouped in nibbles of four, e.g. 0x4000_1000."""
    digits = f"{value:x}"
    digits = digits.zfill(-(-len(digits) // 4) * 4)
    return "0x" + "_".join(digits[i : i + 4] for i in range(0, len(digits), 4))


def doc_comment(description: Optional[str]) -> List[str]:
    """Documentation comment lines for an SVD description."""
    if description is None:
        return []
    return [f"/// {line.strip()}" for line in description.splitlines() if line.strip()]


def _lines(*parts: object) -> str:
    lines: List[str] = []
    for part in parts:
        if isinstance(part, list):
            lines.extend(part)
        else:
            lines.append(str(part))
    return "\n".join(lines)


def typealias(type_name: str, target: str, access: str = "") -> str:
    return f"{access}typealias {identifier(type_name)} = {target}"


def namespace_header(
    description: Optional[str], name: str, is_struct: bool, access: str = ""
) -> str:
    """Opening line of the device-level block, without the closing brace."""
    kind = "struct" if is_struct else "enum"
    return _lines(doc_comment(description), f"{access}{kind} {identifier(name)} {{")


def extension_header(parent_types: List[str]) -> str:
    return f"extension {'.'.join(identifier(t) for t in parent_types)} {{"


def register_block_header(
    description: Optional[str], type_name: str, access: str = ""
) -> str:
    """Opening lines of a peripheral or cluster type."""
    return _lines(
        doc_comment(description),
        "@RegisterBlock",
        f"{access}struct {identifier(type_name)} {{",
    )


def register_header(
    description: Optional[str], type_name: str, bit_width: int, access: str = ""
) -> str:
    """Opening lines of a register type."""
    return _lines(
        doc_comment(description),
        f"@Register(bitWidth: {bit_width})",
        f"{access}struct {identifier(type_name)} {{",
    )


def peripheral_accessors(
    description: Optional[str],
    type_name: str,
    base_address: int,
    expansion: Expansion,
    access: str = "",
) -> List[str]:
    """Instance declarations of a peripheral, one per replica."""
    name = instance_name(type_name)
    declarations = []

    for replica in expansion.replicas():
        suffix = "" if replica.index is None else str(replica.index)
        address = checked_add(base_address, replica.offset)
        declarations.append(
            _lines(
                doc_comment(description),
                f"{access}let {identifier(name + suffix)} = "
                f"{identifier(type_name)}(unsafeAddress: {hex_literal(address)})",
            )
        )

    return declarations


def cluster_accessors(
    description: Optional[str],
    type_name: str,
    address_offset: int,
    expansion: Expansion,
    access: str = "",
) -> List[str]:
    """Member declarations of a cluster in its parent block, one per replica."""
    name = instance_name(type_name)
    declarations = []

    for replica in expansion.replicas():
        suffix = "" if replica.index is None else str(replica.index)
        offset = checked_add(address_offset, replica.offset)
        declarations.append(
            _lines(
                doc_comment(description),
                f"@RegisterBlock(offset: {hex_literal(offset)})",
                f"{access}var {identifier(name + suffix)}: {identifier(type_name)}",
            )
        )

    return declarations


def register_accessors(
    description: Optional[str],
    type_name: str,
    address_offset: int,
    expansion: Expansion,
    access: str = "",
) -> List[str]:
    """
    Member declaration of a register in its parent block. A dimensioned register is declared
    once as a register array; an empty array is not declared at all.
    """
    name = identifier(instance_name(type_name))

    if not expansion.is_array:
        return [
            _lines(
                doc_comment(description),
                f"@RegisterBlock(offset: {hex_literal(address_offset)})",
                f"{access}var {name}: Register<{identifier(type_name)}>",
            )
        ]

    if expansion.count == 0:
        return []

    # The last element must still be addressable.
    checked_add(address_offset, (expansion.count - 1) * expansion.stride)

    return [
        _lines(
            doc_comment(description),
            f"@RegisterBlock(offset: {hex_literal(address_offset)}, "
            f"stride: {hex_literal(expansion.stride)}, count: {expansion.count})",
            f"{access}var {name}: RegisterArray<{identifier(type_name)}>",
        )
    ]


def field_accessors(
    description: Optional[str],
    type_name: str,
    bit_range: BitRange,
    macro: str,
    expansion: Expansion,
    access: str = "",
) -> List[str]:
    """Declarations of a field in its register type, one per replica."""
    declarations = []

    for replica in expansion.replicas():
        suffix = "" if replica.index is None else str(replica.index)
        bits = bit_range.shifted(replica.offset)
        upper = checked_add(bits.msb, 1)
        replica_type = f"{type_name}{suffix}"
        declarations.append(
            _lines(
                doc_comment(description),
                f"@{macro}(bits: {bits.lsb}..<{upper})",
                f"{access}var {identifier(instance_name(replica_type))}: "
                f"{identifier(replica_type)}",
            )
        )

    if macro == RESERVED_MACRO:
        svd2swift.log.debug(f"{type_name} has no defined access, exported as reserved")

    return declarations
