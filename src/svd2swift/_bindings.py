# Copyright (c) 2024 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Descriptor machinery used by the bindings module to read values out of the objectified XML tree.

An ``Elem`` reads a child element and an ``Attr`` reads an attribute. Both raise AttributeError
when a required value is absent and ValueError when the value is malformed; the parsing module
turns those into SvdDecodeError.
"""

from __future__ import annotations

import enum
import inspect
import typing
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    List,
    Literal,
    Mapping,
    Optional,
    Type,
    TypeVar,
    Union,
    overload,
)

from lxml import objectify
from typing_extensions import Self

# Largest value representable by the unsigned 64-bit integers used for addresses and masks.
UINT64_MAX = (1 << 64) - 1


class CaseInsensitiveStrEnum(enum.Enum):
    """String enum class that can be constructed from a case-insensitive string."""

    @classmethod
    def _missing_(cls, value: object) -> Optional[Self]:
        if not isinstance(value, str):
            return None

        value_lower = value.lower()
        for member in cls:
            if member.value.lower() == value_lower:
                return member

        return None


def to_int(number: str) -> int:
    """
    Convert an SVD scaled non-negative integer to an int.

    Decimal, hexadecimal (``0x``/``0X``) and binary (``#``) notations are accepted.

    :param number: String representation of the integer.
    :raises ValueError: If the string is not a valid unsigned 64-bit integer.
    :return: Decoded integer.
    """
    text = number.strip()

    if text[:2] in ("0x", "0X"):
        value = int(text[2:], base=16)
    elif text.startswith("#"):
        value = int(text[1:], base=2)
    else:
        value = int(text, base=10)

    if not 0 <= value <= UINT64_MAX:
        raise ValueError(f"Integer {number} is outside the unsigned 64-bit range")

    return value


def to_name(text: str) -> str:
    """Convert an attribute naming another element, rejecting a blank name."""
    name = text.strip()
    if not name:
        raise ValueError("Empty element name")
    return name


class SvdElement(objectify.ObjectifiedElement):
    """Base class for all the SVD element classes."""

    TAG: str

    def __repr__(self) -> str:
        return self._repr()

    def _repr(self, props: Mapping[Any, Any] = MappingProxyType({})) -> str:
        """Element chain from this element up to the root, e.g. ``[field(0)] in [fields(0)]``."""
        parent = self.getparent()
        child_index: Optional[int] = None

        if parent is not None:
            ancestors_str = f" in {parent!r}"
            try:
                child_index = parent.index(self)
            except ValueError:
                child_index = None
        else:
            ancestors_str = ""

        child_index_str = f"({child_index})" if child_index is not None else ""
        props_str = f" {dict(props)}" if props else ""

        return f"[{self.tag}{child_index_str}{props_str}]{ancestors_str}"

    @property
    def location(self) -> str:
        """Human readable location of the element in the source document."""
        if self.sourceline is None:
            return repr(self)
        return f"line {self.sourceline}: {self!r}"


class SvdIntElement(objectify.IntElement):
    """Element containing an SVD integer value, parsed with ``to_int``."""

    def _init(self) -> None:
        self._setValueParser(to_int)


class _Self:
    ...


# Placeholder element class for elements that nest an element of their own class.
SELF_CLASS = _Self()


class _Missing:
    ...


# Marks a descriptor as having no default value.
MISSING = _Missing()


O = TypeVar("O", bound=objectify.ObjectifiedElement)
T = TypeVar("T")


class _Descriptor(Generic[T]):
    """Common default value handling for ``Elem`` and ``Attr``."""

    def __init__(self, name: str, default: Union[T, _Missing]) -> None:
        self.name: str = name
        self.default: Union[T, _Missing] = default

    def _missing_value(self, kind: str) -> T:
        if not isinstance(self.default, _Missing):
            return self.default
        raise AttributeError(f"Required {kind} '{self.name}' was not found")


class Elem(_Descriptor[T]):
    """Data descriptor that decodes the value of a child element."""

    def __init__(
        self,
        name: str,
        element_class: Union[Type[objectify.ObjectifiedElement], _Self],
        /,
        *,
        default: Union[T, _Missing] = MISSING,
    ) -> None:
        """
        :param name: Tag of the child element.
        :param element_class: Class the child element is looked up as.
        :param default: Value returned if the child is absent.
        """
        super().__init__(name, default)
        self.element_class: Type[objectify.ObjectifiedElement] = element_class  # type: ignore

    @overload
    def __get__(self, node: Literal[None], owner: Optional[Type] = None) -> Self:
        ...

    @overload
    def __get__(self, node: O, owner: Optional[Type] = None) -> T:
        ...

    def __get__(self, node: Optional[O], owner: Any = None) -> Union[T, Self]:
        if node is None:
            return self

        try:
            child = node.__getattr__(self.name)
        except AttributeError:
            return self._missing_value("element")

        if issubclass(self.element_class, objectify.ObjectifiedDataElement):
            try:
                return child.pyval  # type: ignore
            except ValueError as e:
                raise ValueError(
                    f"Malformed value {child.text!r} in element '{self.name}'"
                ) from e

        return child  # type: ignore


class Attr(_Descriptor[T]):
    """Data descriptor that decodes the value of an attribute."""

    def __init__(
        self,
        name: str,
        /,
        *,
        converter: Optional[Callable[[str], T]] = None,
        default: Union[T, _Missing] = MISSING,
    ) -> None:
        """
        :param name: Name of the attribute.
        :param converter: Optional callable converting the attribute string.
        :param default: Value returned if the attribute is absent.
        """
        super().__init__(name, default)
        self.converter: Optional[Callable[[str], T]] = converter

    @overload
    def __get__(self, node: Literal[None], owner: Optional[Type] = None) -> Self:
        ...

    @overload
    def __get__(self, node: O, owner: Optional[Type] = None) -> T:
        ...

    def __get__(self, node: Optional[O], owner: Any = None) -> Union[T, Self]:
        if node is None:
            return self

        value = node.get(self.name)
        if value is None:
            return self._missing_value("attribute")

        if self.converter is None:
            return value  # type: ignore

        try:
            return self.converter(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Malformed value {value!r} in attribute '{self.name}'") from e


C = TypeVar("C", bound=SvdElement)


class BindingRegistry:
    """Container for the XML binding classes, filled in by the ``add`` class decorator."""

    def __init__(self) -> None:
        self._element_classes: List[Type[SvdElement]] = []

    def add(self, element_class: Type[C], /) -> Type[C]:
        elem_props: Dict[str, Elem] = {}

        for name, prop in inspect.getmembers(element_class):
            if isinstance(prop, Elem):
                if prop.element_class is SELF_CLASS:
                    prop.element_class = element_class
                elem_props[name] = prop

        setattr(element_class, "_xml_elem_props", elem_props)
        self._element_classes.append(element_class)

        return element_class

    @property
    def bindings(self) -> List[Type[SvdElement]]:
        """The registered binding classes, in registration order."""
        return list(self._element_classes)


def get_binding_elem_props(klass: Type[objectify.ObjectifiedElement]) -> Mapping[str, Elem]:
    """Get the child element descriptors of a binding class."""
    try:
        return klass._xml_elem_props  # type: ignore
    except AttributeError as e:
        raise ValueError(f"Class {klass} is not a binding") from e


def make_enum_wrapper(enum_cls: Type[CaseInsensitiveStrEnum]) -> Type[SvdElement]:
    """Create an objectify data element class whose ``pyval`` is a member of ``enum_cls``."""

    class EnumWrapper(SvdElement, objectify.ObjectifiedDataElement):
        @property
        def pyval(self) -> CaseInsensitiveStrEnum:
            return enum_cls((self.text or "").strip())

        def __repr__(self) -> str:
            return super()._repr(props={"text": self.text})

    EnumWrapper.__name__ = f"{enum_cls.__name__}Element"
    EnumWrapper.__qualname__ = EnumWrapper.__name__

    return EnumWrapper


def iter_element_children(
    element: Optional[objectify.ObjectifiedElement], *tags: str
) -> Iterable[objectify.ObjectifiedElement]:
    """
    Iterate over the children of an element, optionally filtered by tag.
    If the element is None, an empty iterator is returned.
    """
    if element is None:
        return iter(())

    child_iter = element.iterchildren(*tags)  # type: ignore
    return typing.cast(Iterable[objectify.ObjectifiedElement], child_iter)
