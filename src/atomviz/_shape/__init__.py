"""Shape descriptors and selector resolution.

Key types:
- Shape: Closed union of Primitive, Composite, Ordered, Associative, Option,
  Indirection and Variant
- describe: Single-dispatch function producing a Shape for a value
- Selector / resolve_selector: Dotted paths relative to an instance
"""

from ._describe import DECORATOR_SOURCE_ATTR, decorator_source_of, describe
from ._kinds import (
    Associative,
    Composite,
    Indirection,
    Option,
    Ordered,
    OrderedKind,
    Primitive,
    Shape,
    Variant,
)
from ._selector import AttributePart, ItemPart, Selector, resolve_selector, unwrap_shape

__all__ = [
    "DECORATOR_SOURCE_ATTR",
    "Associative",
    "AttributePart",
    "Composite",
    "Indirection",
    "ItemPart",
    "Option",
    "Ordered",
    "OrderedKind",
    "Primitive",
    "Selector",
    "Shape",
    "Variant",
    "decorator_source_of",
    "describe",
    "resolve_selector",
    "unwrap_shape",
]
