"""Shape descriptors: the closed set of ways a value can decompose."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

    from atomviz._layout import DecoratorSet

    type DecoratorSource = Callable[[], DecoratorSet]


class OrderedKind(StrEnum):
    """Atom type used for an ordered container."""

    SEQUENCE = auto()
    TUPLE = auto()


@dataclass(frozen=True, slots=True)
class Primitive:
    """A leaf value with no children.

    Attributes:
        kind: The primitive kind, used as the atom type (e.g. "int", "str").
        value: The value itself. Its ``str()`` becomes the atom label.

    """

    kind: str
    value: Any

    @property
    def label(self) -> str:
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Composite:
    """A struct-like value with named fields.

    A composite without fields carries no data and is exported as a shared
    singleton atom.
    """

    type_name: str
    fields: tuple[tuple[str, Any], ...] = ()
    decorator_source: DecoratorSource | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Ordered:
    """A list, array or tuple-like value.

    Positional structs set ``type_name``; the container atom is then labeled
    with that name instead of its element count.
    """

    elements: tuple[Any, ...]
    kind: OrderedKind = OrderedKind.SEQUENCE
    type_name: str | None = None
    decorator_source: DecoratorSource | None = field(default=None, compare=False)


@dataclass(frozen=True, slots=True)
class Associative:
    """A key to value mapping. Keys are exported as ordinary values."""

    entries: tuple[tuple[Any, Any], ...]


@dataclass(frozen=True, slots=True)
class Option:
    """An optional value. Transparent when present."""

    value: Any = None
    present: bool = False

    @classmethod
    def some(cls, value: Any) -> Option:
        return cls(value=value, present=True)

    @classmethod
    def none(cls) -> Option:
        return cls()


@dataclass(frozen=True, slots=True)
class Indirection:
    """A pointer-like wrapper. Transparent; the referent is tracked by identity."""

    target: Any


@dataclass(frozen=True, slots=True)
class Variant:
    """The active variant of a tagged union.

    Exactly one of ``fields`` (struct-like variant) or ``elements`` (tuple-like
    variant) may be set. With neither, the variant is a unit marker.
    """

    type_name: str
    variant: str
    fields: tuple[tuple[str, Any], ...] | None = None
    elements: tuple[Any, ...] | None = None
    decorator_source: DecoratorSource | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.fields is not None and self.elements is not None:
            msg = f"Variant '{self.type_name}::{self.variant}' cannot have both fields and elements"
            raise ValueError(msg)

    @property
    def is_unit(self) -> bool:
        return self.fields is None and self.elements is None


type Shape = Primitive | Composite | Ordered | Associative | Option | Indirection | Variant
