"""Selector paths relative to an instance, e.g. ``self.employees[0].name``."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar, Self

from atomviz._errors import CyclicIndirection, UnresolvedSelector

from ._describe import describe as default_describe
from ._kinds import Associative, Composite, Indirection, Option, Ordered, Shape, Variant

logger = logging.getLogger(__name__)


class PartBase:
    pass


@dataclass(slots=True, frozen=True)
class AttributePart(PartBase):
    name: str


@dataclass(slots=True, frozen=True)
class ItemPart(PartBase):
    key: str


@dataclass(slots=True, frozen=True)
class Selector:
    parts: tuple[PartBase, ...] = ()

    ROOT: ClassVar[str] = "self"

    def __str__(self) -> str:
        result = self.ROOT
        for part in self.parts:
            match part:
                case AttributePart(name):
                    result += f".{name}"
                case ItemPart(key):
                    result += f"[{key}]"
                case _:
                    msg = f"Unknown part type: {type(part)}"
                    raise TypeError(msg)
        return result

    @classmethod
    def parse(cls, selector: str) -> Self:
        """Parse a dotted selector.

        The leading ``self`` is optional: ``field.sub`` and ``self.field.sub``
        denote the same path.

        Raises:
            ValueError: If the selector is malformed.

        """
        s = selector.strip()
        if not s:
            msg = "Selector must not be empty"
            raise ValueError(msg)
        if s == cls.ROOT:
            return cls()
        if s.startswith(cls.ROOT) and s[len(cls.ROOT)] in ".[":
            s = s[len(cls.ROOT) :]
        elif s[0] not in ".[":
            s = "." + s

        parts: list[PartBase] = []
        i = 0
        while i < len(s):
            if s[i] == ".":  # Attribute access
                i += 1
                start = i
                while i < len(s) and s[i] not in ".[":
                    i += 1
                name = s[start:i]
                if not name:
                    msg = f"Empty attribute name in selector '{selector}'"
                    raise ValueError(msg)
                parts.append(AttributePart(name=name))
            elif s[i] == "[":  # Item access
                i += 1
                start = i
                while i < len(s) and s[i] != "]":
                    i += 1
                if i >= len(s):
                    msg = f"Unclosed '[' in selector '{selector}'"
                    raise ValueError(msg)
                parts.append(ItemPart(key=s[start:i].strip()))
                i += 1  # Skip the closing ']'
            else:
                msg = f"Unexpected character at position {i}: {s[i]}"
                raise ValueError(msg)

        return cls(parts=tuple(parts))


def unwrap_shape(value: Any, describe: Callable[[Any], Shape] = default_describe) -> Shape:
    """Describe ``value``, stepping through present options and indirections.

    Raises:
        CyclicIndirection: If the chain of wrappers loops back on itself.

    """
    shape = describe(value)
    seen: set[int] = set()
    while True:
        match shape:
            case Option(present=True, value=inner):
                shape = describe(inner)
            case Indirection(target):
                if id(target) in seen:
                    msg = f"Indirection chain starting at {type(value).__name__} never reaches a value"
                    raise CyclicIndirection(msg)
                seen.add(id(target))
                shape = describe(target)
            case _:
                return shape


def _field(fields: tuple[tuple[str, Any], ...], name: str) -> tuple[bool, Any]:
    for field_name, field_value in fields:
        if field_name == name:
            return True, field_value
    return False, None


def _entry(entries: tuple[tuple[Any, Any], ...], key: str) -> tuple[bool, Any]:
    for entry_key, entry_value in entries:
        if str(entry_key) == key:
            return True, entry_value
    return False, None


def _position(elements: tuple[Any, ...], key: str) -> tuple[bool, Any]:
    if not key.isdecimal() or int(key) >= len(elements):
        return False, None
    return True, elements[int(key)]


def resolve_selector(
    instance: Any,
    selector: str,
    *,
    describe: Callable[[Any], Shape] = default_describe,
) -> Any:
    """Resolve ``selector`` against ``instance`` and return the selected value.

    Attribute parts match field names (of composites and struct-like variants)
    or map keys by their string form. Item parts match sequence positions or
    map keys.

    Raises:
        UnresolvedSelector: If any part of the path does not exist.

    """
    try:
        parsed = Selector.parse(selector)
    except ValueError as e:
        raise UnresolvedSelector(selector, str(e)) from e

    current = instance
    for part in parsed.parts:
        shape = unwrap_shape(current, describe)
        match part, shape:
            case AttributePart(name), Composite(fields=fields) | Variant(fields=tuple() as fields):
                found, current = _field(fields, name)
            case AttributePart(name) | ItemPart(name), Associative(entries):
                found, current = _entry(entries, name)
            case ItemPart(key), Ordered(elements) | Variant(elements=tuple() as elements):
                found, current = _position(elements, key)
            case _:
                found = False
        if not found:
            reason = f"no part '{part}' in {type(shape).__name__.lower()} shape"
            logger.debug(f"Selector '{selector}' failed at {part}")
            raise UnresolvedSelector(selector, reason)
    return current
