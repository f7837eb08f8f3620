"""Default shape descriptors for Python values.

``describe`` is a single-dispatch function: register a descriptor for your
own types with ``describe.register(MyType)``, or give the class a
``__shape__()`` method returning one of the shapes in ``_kinds``.
Values nothing describes raise ``UnsupportedShape``.
"""

import dataclasses
import logging
from collections import deque
from decimal import Decimal
from enum import Enum
from functools import singledispatch
from typing import Any

from pydantic import BaseModel

from atomviz._errors import UnsupportedShape

from ._kinds import Associative, Composite, Option, Ordered, OrderedKind, Primitive, Shape, Variant

logger = logging.getLogger(__name__)

# Class attribute holding the type decorator source installed by ``decorate``.
DECORATOR_SOURCE_ATTR = "__atomviz_decorators__"


def decorator_source_of(cls: type) -> Any:
    """Return the type decorator source attached to ``cls``, if any.

    Only the class's own attribute counts: a subclass does not inherit the
    decorators of its base under a different type name.
    """
    return cls.__dict__.get(DECORATOR_SOURCE_ATTR)


def _custom_shape(value: object) -> Shape | None:
    shape_method = getattr(type(value), "__shape__", None)
    if shape_method is None:
        return None
    return shape_method(value)


@singledispatch
def describe(value: object) -> Shape:
    """Return the shape descriptor of ``value``.

    Raises:
        UnsupportedShape: If no descriptor is available for the value's type.

    """
    if (shape := _custom_shape(value)) is not None:
        return shape
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        cls = type(value)
        return Composite(
            type_name=cls.__name__,
            fields=tuple((f.name, getattr(value, f.name)) for f in dataclasses.fields(value)),
            decorator_source=decorator_source_of(cls),
        )
    raise UnsupportedShape(value)


@describe.register(type(None))
def _describe_none(value: None) -> Shape:
    return Option.none()


@describe.register
def _describe_enum(value: Enum) -> Shape:
    if (shape := _custom_shape(value)) is not None:
        return shape
    cls = type(value)
    return Variant(type_name=cls.__name__, variant=value.name, decorator_source=decorator_source_of(cls))


def _register_primitive(cls: type, kind: str) -> None:
    def _describe_primitive(value: Any) -> Shape:
        # IntEnum/StrEnum members dispatch here before Enum in the MRO.
        if isinstance(value, Enum):
            return _describe_enum(value)
        return Primitive(kind=kind, value=value)

    describe.register(cls, _describe_primitive)


for _cls, _kind in (
    (bool, "bool"),
    (int, "int"),
    (float, "float"),
    (complex, "complex"),
    (str, "str"),
    (bytes, "bytes"),
    (Decimal, "decimal"),
):
    _register_primitive(_cls, _kind)
del _cls, _kind


@describe.register(list)
@describe.register(deque)
def _describe_list(value: list[Any] | deque[Any]) -> Shape:
    return Ordered(elements=tuple(value))


@describe.register(set)
@describe.register(frozenset)
def _describe_set(value: set[Any] | frozenset[Any]) -> Shape:
    # Iteration order of a set is not stable across runs.
    return Ordered(elements=tuple(sorted(value, key=repr)))


@describe.register
def _describe_tuple(value: tuple) -> Shape:
    if (shape := _custom_shape(value)) is not None:
        return shape
    field_names = getattr(type(value), "_fields", None)
    if field_names is not None:
        cls = type(value)
        return Composite(
            type_name=cls.__name__,
            fields=tuple(zip(field_names, value, strict=True)),
            decorator_source=decorator_source_of(cls),
        )
    return Ordered(elements=value, kind=OrderedKind.TUPLE)


@describe.register
def _describe_dict(value: dict) -> Shape:
    return Associative(entries=tuple(value.items()))


@describe.register
def _describe_model(value: BaseModel) -> Shape:
    if (shape := _custom_shape(value)) is not None:
        return shape
    cls = type(value)
    logger.debug(f"Describing pydantic model '{cls.__name__}' with fields {list(cls.model_fields)}")
    return Composite(
        type_name=cls.__name__,
        fields=tuple((field_name, getattr(value, field_name)) for field_name in cls.model_fields),
        decorator_source=decorator_source_of(cls),
    )
