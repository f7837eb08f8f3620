"""Process-wide registry of type-level decorator sets."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ._models import DecoratorSet

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from ._models import Decorator

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TypeDecoratorEntry:
    """Registry slot for one type name.

    The entry moves from unregistered to registered exactly once; after that
    ``decorator_set`` never changes.
    """

    type_name: str
    decorator_set: DecoratorSet | None = None
    registered: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class DecoratorRegistry:
    """Cache mapping a type name to its decorator set.

    Registration is idempotent: the build function given for a type name runs
    at most once, even when several threads race on the first registration,
    and every caller gets the same stored set. Lookups do not lock; entries
    are immutable once registered.

    Example:
        >>> registry = DecoratorRegistry()
        >>> registry.register("Company", lambda: DecoratorSet.of(Flag(name="hideDisconnected")))
        DecoratorSet(decorators=(Flag(name='hideDisconnected'),))
        >>> registry.lookup("Company") is registry.lookup("Company")
        True

    """

    def __init__(self) -> None:
        self._entries: dict[str, TypeDecoratorEntry] = {}
        # Guards creation of entries only; builds lock per entry.
        self._lock = threading.Lock()

    def _entry_for(self, type_name: str) -> TypeDecoratorEntry:
        entry = self._entries.get(type_name)
        if entry is not None:
            return entry
        with self._lock:
            return self._entries.setdefault(type_name, TypeDecoratorEntry(type_name=type_name))

    def register(
        self,
        type_name: str,
        build_fn: Callable[[], DecoratorSet | Iterable[Decorator]],
    ) -> DecoratorSet:
        """Register the decorators of ``type_name`` and return the stored set.

        ``build_fn`` is only called if the type is not registered yet. If it
        raises, the entry stays unregistered and the exception propagates.
        """
        entry = self._entry_for(type_name)
        if not entry.registered:
            with entry._lock:  # noqa: SLF001
                if not entry.registered:
                    entry.decorator_set = DecoratorSet.coerce(build_fn())
                    entry.registered = True
                    logger.debug(f"Registered {len(entry.decorator_set)} decorator(s) for type '{type_name}'")
        assert entry.decorator_set is not None
        return entry.decorator_set

    def lookup(self, type_name: str) -> DecoratorSet | None:
        """Return the registered set of ``type_name``, or None if unregistered."""
        entry = self._entries.get(type_name)
        if entry is None or not entry.registered:
            return None
        return entry.decorator_set

    def entry(self, type_name: str) -> TypeDecoratorEntry | None:
        return self._entries.get(type_name)

    def type_names(self) -> list[str]:
        """Registered type names, in registration-request order."""
        return [name for name, entry in list(self._entries.items()) if entry.registered]

    def clear(self) -> None:
        """Forget all entries. Intended for test isolation only."""
        with self._lock:
            self._entries = {}

    def __contains__(self, type_name: object) -> bool:
        return isinstance(type_name, str) and self.lookup(type_name) is not None

    def __len__(self) -> int:
        return len(self.type_names())


# Constructed once at import and shared by every export session in the process.
default_registry = DecoratorRegistry()
