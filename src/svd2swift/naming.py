# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Conversion of SVD element names to Swift identifiers.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Set

# Placeholders used by dimensioned SVD elements, e.g. "CH[%s]" or "CH%s".
_DIM_PLACEHOLDER = re.compile(r"\[%s\]|%s")

_ILLEGAL_CHARACTERS = re.compile(r"[^A-Za-z0-9_]")

SWIFT_KEYWORDS = frozenset(
    {
        "Any",
        "Self",
        "as",
        "associatedtype",
        "await",
        "break",
        "case",
        "catch",
        "class",
        "continue",
        "default",
        "defer",
        "deinit",
        "do",
        "else",
        "enum",
        "extension",
        "fallthrough",
        "false",
        "fileprivate",
        "for",
        "func",
        "guard",
        "if",
        "import",
        "in",
        "init",
        "inout",
        "internal",
        "is",
        "let",
        "nil",
        "open",
        "operator",
        "precedencegroup",
        "private",
        "protocol",
        "public",
        "repeat",
        "rethrows",
        "return",
        "self",
        "static",
        "struct",
        "subscript",
        "super",
        "switch",
        "throw",
        "throws",
        "true",
        "try",
        "typealias",
        "var",
        "where",
        "while",
    }
)


def swift_name(name: str) -> str:
    """
    Convert an SVD name to a valid Swift identifier, preserving case.

    Dimension placeholders are dropped, characters that are not allowed in an identifier are
    replaced with underscores and a leading digit is prefixed with an underscore.
    """
    result = _ILLEGAL_CHARACTERS.sub("_", _DIM_PLACEHOLDER.sub("", name.strip()))

    if not result:
        return "_"
    if result[0].isdigit():
        return f"_{result}"
    return result


def identifier(name: str) -> str:
    """Escape a Swift identifier with backticks if it is a keyword."""
    return f"`{name}`" if name in SWIFT_KEYWORDS else name


def instance_name(type_name: str) -> str:
    """Name of the property holding an instance of the given type."""
    return type_name.lower()


class FieldNamer:
    """
    Symbol table for the fields of one register.

    Type names of fields are derived from the field names. A field named like its register gets
    a "_FIELD" suffix and an all-lowercase name is uppercased since it would otherwise be equal
    to the name of its property. Any collision left after that, compared without regard to case
    since properties use the lowercased type name, is resolved with a numeric suffix.
    """

    COLLISION_SUFFIX = "_FIELD"

    def __init__(self, register_type_name: str) -> None:
        """
        :param register_type_name: Swift type name of the register containing the fields.
        """
        self._register_type_name = register_type_name
        self._taken: Set[str] = set()

    def type_name(self, field_name: str) -> str:
        """
        Type name for a field, before collisions with sibling fields are taken into account.
        """
        name = swift_name(field_name)

        if name == self._register_type_name:
            name += self.COLLISION_SUFFIX

        if name == name.lower():
            name = name.upper()

        return name

    def reserve(self, field_name: str, indices: Optional[Iterable[int]] = None) -> str:
        """
        Reserve a unique type name for a field.

        :param field_name: SVD name of the field.
        :param indices: Replica indices of a dimensioned field. The names of the replicas are the
                        returned name followed by each index.
        :return: The type name of the field, or the base name of the replicas.
        """
        base = self.type_name(field_name)
        suffixes = [""] if indices is None else [str(i) for i in indices]

        candidate = base
        counter = 1
        while any(f"{candidate}{s}".lower() in self._taken for s in suffixes):
            counter += 1
            candidate = f"{base}_{counter}"

        self._taken.update(f"{candidate}{s}".lower() for s in suffixes)

        return candidate
