"""Layout decorators: constraints and directives attached to selectors.

Each decorator serializes to a single-key mapping ``{tag: params}`` using the
camelCase parameter names of the layout language, e.g.::

    {"orientation": {"selector": "self.left", "directions": ["left"]}}
    {"flag": "hideDisconnected"}

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from atomviz._errors import InvalidDecorator

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping


class DecoratorCategory(StrEnum):
    CONSTRAINT = auto()
    DIRECTIVE = auto()


class Decorator(BaseModel):
    """Base class of all layout decorators."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    TAG: ClassVar[str]
    CATEGORY: ClassVar[DecoratorCategory]

    def params(self) -> Any:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_document(self) -> dict[str, Any]:
        return {self.TAG: self.params()}


class Constraint(Decorator):
    CATEGORY = DecoratorCategory.CONSTRAINT


class Directive(Decorator):
    CATEGORY = DecoratorCategory.DIRECTIVE


# =============================================================================
# Constraints
# =============================================================================


class Orientation(Constraint):
    TAG = "orientation"

    selector: str
    directions: tuple[str, ...]


class Cyclic(Constraint):
    TAG = "cyclic"

    selector: str
    direction: str


class GroupByField(Constraint):
    TAG = "group"

    field: str
    group_on: int = Field(alias="groupOn", ge=0)
    add_to_group: int = Field(alias="addToGroup", ge=0)
    selector: str | None = None


class GroupBySelector(Constraint):
    TAG = "group"

    selector: str
    name: str


# =============================================================================
# Directives
# =============================================================================


class AtomColor(Directive):
    TAG = "atomColor"

    selector: str
    value: str


class Size(Directive):
    TAG = "size"

    selector: str
    height: int = Field(ge=0)
    width: int = Field(ge=0)


class Icon(Directive):
    TAG = "icon"

    selector: str
    path: str
    show_labels: bool = Field(alias="showLabels")


class EdgeColor(Directive):
    TAG = "edgeColor"

    field: str
    value: str
    selector: str | None = None


class Projection(Directive):
    TAG = "projection"

    sig: str


class Attribute(Directive):
    TAG = "attribute"

    field: str
    selector: str | None = None


class HideField(Directive):
    TAG = "hideField"

    field: str
    selector: str | None = None


class HideAtom(Directive):
    TAG = "hideAtom"

    selector: str


class InferredEdge(Directive):
    TAG = "inferredEdge"

    name: str
    selector: str


class Flag(Directive):
    TAG = "flag"

    name: str

    def params(self) -> Any:
        return self.name


# Variants sharing a tag are tried in order; the first that validates wins.
DECORATOR_TYPES: dict[str, tuple[type[Decorator], ...]] = {}
for _cls in (
    Orientation,
    Cyclic,
    GroupByField,
    GroupBySelector,
    AtomColor,
    Size,
    Icon,
    EdgeColor,
    Projection,
    Attribute,
    HideField,
    HideAtom,
    InferredEdge,
    Flag,
):
    DECORATOR_TYPES[_cls.TAG] = (*DECORATOR_TYPES.get(_cls.TAG, ()), _cls)
del _cls


def parse_decorator(tag: str, params: Any) -> Decorator:
    """Build a decorator from its document tag and parameters.

    Args:
        tag: Document tag, e.g. "orientation" or "atomColor".
        params: Parameter mapping. A ``flag`` also accepts its bare name.

    Raises:
        InvalidDecorator: If the tag is unknown, or no variant of the tag
            accepts the parameters (missing or unknown parameters included).

    """
    candidates = DECORATOR_TYPES.get(tag)
    if candidates is None:
        msg = f"Unknown decorator '{tag}'. Expected one of: {', '.join(DECORATOR_TYPES)}"
        raise InvalidDecorator(msg)
    if tag == Flag.TAG and isinstance(params, str):
        params = {"name": params}

    errors: list[ValidationError] = []
    for cls in candidates:
        try:
            return cls.model_validate(params)
        except ValidationError as e:
            errors.append(e)

    details = "; ".join(
        f"{cls.__name__}: {err['loc'][0] if err['loc'] else '<params>'} {err['msg'].lower()}"
        for cls, e in zip(candidates, errors, strict=True)
        for err in e.errors()
    )
    msg = f"Invalid parameters for '{tag}': {details}"
    raise InvalidDecorator(msg) from errors[0]


@dataclass(frozen=True, slots=True)
class DecoratorSet:
    """An ordered, immutable collection of decorators.

    Constraints and directives share one arrival order. The document form
    splits them into two lists, each keeping that order.
    """

    decorators: tuple[Decorator, ...] = ()

    def __post_init__(self) -> None:
        for decorator in self.decorators:
            if not isinstance(decorator, Decorator):
                msg = f"DecoratorSet items must be Decorator instances, got {type(decorator).__name__}"
                raise TypeError(msg)

    @classmethod
    def of(cls, *decorators: Decorator) -> DecoratorSet:
        return cls(decorators=decorators)

    @classmethod
    def coerce(cls, value: DecoratorSet | Iterable[Decorator]) -> DecoratorSet:
        if isinstance(value, DecoratorSet):
            return value
        return cls(decorators=tuple(value))

    @property
    def constraints(self) -> tuple[Decorator, ...]:
        return tuple(d for d in self.decorators if d.CATEGORY is DecoratorCategory.CONSTRAINT)

    @property
    def directives(self) -> tuple[Decorator, ...]:
        return tuple(d for d in self.decorators if d.CATEGORY is DecoratorCategory.DIRECTIVE)

    def __add__(self, other: DecoratorSet) -> DecoratorSet:
        if not isinstance(other, DecoratorSet):
            return NotImplemented
        return DecoratorSet(decorators=self.decorators + other.decorators)

    def __iter__(self) -> Iterator[Decorator]:
        return iter(self.decorators)

    def __len__(self) -> int:
        return len(self.decorators)

    def to_document(self) -> dict[str, list[Any]]:
        return {
            "constraints": [d.to_document() for d in self.constraints],
            "directives": [d.to_document() for d in self.directives],
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> DecoratorSet:
        """Rebuild a set from the output of ``to_document``.

        Raises:
            InvalidDecorator: If an entry is malformed.

        """
        decorators: list[Decorator] = []
        for section in ("constraints", "directives"):
            for entry in document.get(section) or ():
                if not isinstance(entry, dict) or len(entry) != 1:
                    msg = f"Each {section} entry must be a single-key mapping, got: {entry!r}"
                    raise InvalidDecorator(msg)
                ((tag, params),) = entry.items()
                decorator = parse_decorator(tag, params)
                if decorator.CATEGORY != section.removesuffix("s"):
                    msg = f"'{tag}' is not allowed under '{section}'"
                    raise InvalidDecorator(msg)
                decorators.append(decorator)
        return cls(decorators=tuple(decorators))
