"""Merging type-level decorators with instance annotations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from atomviz._shape import Composite, Ordered, Variant, resolve_selector, unwrap_shape
from atomviz._shape import describe as default_describe

from ._annotations import default_annotations
from ._models import DecoratorSet
from ._registry import default_registry

if TYPE_CHECKING:
    from collections.abc import Callable

    from atomviz._shape import Shape

    from ._annotations import AnnotationStore
    from ._registry import DecoratorRegistry

logger = logging.getLogger(__name__)


def named_type(shape: Shape) -> tuple[str, Callable[[], DecoratorSet] | None] | None:
    """Return ``(type_name, decorator_source)`` for shapes backed by a named type."""
    match shape:
        case Composite(type_name=type_name, decorator_source=source):
            return type_name, source
        case Variant(type_name=type_name, decorator_source=source):
            return type_name, source
        case Ordered(type_name=str() as type_name, decorator_source=source):
            return type_name, source
        case _:
            return None


def type_decorators(
    type_name: str,
    source: Callable[[], DecoratorSet] | None,
    registry: DecoratorRegistry,
) -> DecoratorSet:
    """Registry set for ``type_name``, registering it from ``source`` on first use."""
    decorator_set = registry.register(type_name, source) if source is not None else registry.lookup(type_name)
    return decorator_set if decorator_set is not None else DecoratorSet()


def instance_decorators(
    instance: Any,
    annotations: AnnotationStore,
    *,
    describe: Callable[[Any], Shape] = default_describe,
) -> DecoratorSet:
    """The annotation log of ``instance`` as a decorator set.

    Raises:
        UnresolvedSelector: If an annotation's selector does not resolve
            against the instance.

    """
    log = annotations.annotations(instance)
    for entry in log:
        resolve_selector(instance, entry.selector, describe=describe)
    return DecoratorSet(decorators=tuple(entry.annotation for entry in log))


def combined_decorators(
    instance: Any,
    *,
    registry: DecoratorRegistry | None = None,
    annotations: AnnotationStore | None = None,
    describe: Callable[[Any], Shape] = default_describe,
) -> DecoratorSet:
    """Type-level decorators of ``instance`` followed by its own annotations.

    The type-level set comes from the registry entry of the instance's named
    type (registered on the spot if the type carries a decorator source).
    Values without a named type contribute only their annotations.
    """
    registry = default_registry if registry is None else registry
    annotations = default_annotations if annotations is None else annotations

    named = named_type(unwrap_shape(instance, describe))
    type_set = type_decorators(*named, registry) if named is not None else DecoratorSet()
    combined = type_set + instance_decorators(instance, annotations, describe=describe)
    logger.debug(f"Merged {len(type_set)} type-level and {len(combined) - len(type_set)} instance-level decorator(s)")
    return combined
