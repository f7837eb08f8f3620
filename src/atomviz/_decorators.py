from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._layout import Decorator, DecoratorSet, default_registry
from ._shape import DECORATOR_SOURCE_ATTR, decorator_source_of

if TYPE_CHECKING:
    from collections.abc import Callable

    from ._layout import DecoratorRegistry

logger = logging.getLogger(__name__)


def decorate[T: type](*decorators: Decorator) -> Callable[[T], T]:
    """Class decorator attaching type-level layout decorators.

    The decorators are not registered immediately: the class gets a type
    decorator source that the registry invokes the first time an export or
    merge meets the type.

    Args:
        *decorators: Constraints and directives for every instance of the class.

    Example:
        @decorate(Orientation(selector="employees", directions=("below",)), Flag(name="hideDisconnected"))
        @dataclass
        class Company:
            name: str
            employees: list[Person]

    Stacked ``decorate`` calls keep their top-to-bottom order.

    """
    for item in decorators:
        if not isinstance(item, Decorator):
            msg = f"decorate() expects Decorator instances, got {type(item).__name__}"
            raise TypeError(msg)

    def decorator(cls: T) -> T:
        inner = decorator_source_of(cls)

        def source() -> DecoratorSet:
            own = DecoratorSet(decorators=decorators)
            return own + DecoratorSet.coerce(inner()) if inner is not None else own

        # HACK: Storing the source on the class keeps shape adapters free of
        # any registry lookup; an explicit type table would be cleaner.
        setattr(cls, DECORATOR_SOURCE_ATTR, source)
        return cls

    return decorator


def ensure_registered(*types: type, registry: DecoratorRegistry | None = None) -> None:
    """Register the decorators of ``types`` ahead of any export.

    Classes without ``decorate`` decorators are skipped.
    """
    registry = default_registry if registry is None else registry
    for cls in types:
        source = decorator_source_of(cls)
        if source is None:
            logger.debug(f"Type '{cls.__name__}' has no decorators; not registering")
            continue
        registry.register(cls.__name__, source)
