"""Per-instance annotation overlay.

Annotations are keyed by object identity, never by type: two equal instances
have independent logs. Attaching is lazy and unchecked; selectors are only
validated when the log is merged.
"""

from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any

from ._models import Decorator

logger = logging.getLogger(__name__)

# Immutable values the interpreter may share between equal instances, so an
# annotation keyed by their identity could land on unrelated occurrences.
_SHARED_IDENTITY_TYPES = (type(None), bool, int, float, complex, str, bytes, Decimal)


@dataclass(frozen=True, slots=True)
class InstanceAnnotation:
    selector: str
    annotation: Decorator


@dataclass(slots=True)
class _Log:
    entries: list[InstanceAnnotation] = field(default_factory=list)
    # Either a weakref.finalize that drops the log with the instance, or a
    # strong reference for objects that cannot be weakly referenced.
    anchor: Any = None


class AnnotationStore:
    """Append-only annotation logs, one per annotated instance.

    Logs live as long as their instance. Objects that do not support weak
    references (lists, dicts, ...) are kept alive by the store until
    ``detach`` or ``clear`` is called, so their identity cannot be reused.

    Primitive values (numbers, strings, bytes, ``None``) cannot be annotated:
    equal primitives may be one shared object, e.g. small ints and interned
    strings. Enum members are singletons and may be annotated.
    """

    def __init__(self) -> None:
        self._logs: dict[int, _Log] = {}
        # Re-entrant: a finalizer may fire during a locked section.
        self._lock = threading.RLock()

    def attach(self, instance: object, selector: str, annotation: Decorator) -> None:
        """Append ``annotation`` at ``selector`` to the log of ``instance``."""
        if not isinstance(annotation, Decorator):
            msg = f"Annotation must be a Decorator instance, got {type(annotation).__name__}"
            raise TypeError(msg)
        if isinstance(instance, _SHARED_IDENTITY_TYPES) and not isinstance(instance, Enum):
            msg = f"Cannot annotate a {type(instance).__name__} value: equal primitives may share one identity"
            raise TypeError(msg)
        key = id(instance)
        with self._lock:
            log = self._logs.get(key)
            if log is None:
                log = self._logs[key] = _Log()
                try:
                    log.anchor = weakref.finalize(instance, self._discard, key)
                except TypeError:
                    log.anchor = instance
            log.entries.append(InstanceAnnotation(selector=selector, annotation=annotation))
        logger.debug(f"Attached {annotation.TAG} at '{selector}' to {type(instance).__name__} instance {key:#x}")

    def annotate(self, instance: object, decorator: Decorator) -> None:
        """Attach ``decorator`` at its own selector (``self`` if it has none)."""
        selector = getattr(decorator, "selector", None) or "self"
        self.attach(instance, selector, decorator)

    def annotations(self, instance: object) -> tuple[InstanceAnnotation, ...]:
        """The log of ``instance`` in arrival order (empty if never annotated)."""
        log = self._logs.get(id(instance))
        if log is None:
            return ()
        with self._lock:
            return tuple(log.entries)

    def detach(self, instance: object) -> None:
        """Drop the whole log of ``instance``."""
        self._discard(id(instance))

    def clear(self) -> None:
        with self._lock:
            for key in list(self._logs):
                self._discard(key)

    def _discard(self, key: int) -> None:
        with self._lock:
            log = self._logs.pop(key, None)
        if log is not None and isinstance(log.anchor, weakref.finalize):
            log.anchor.detach()

    def __contains__(self, instance: object) -> bool:
        return id(instance) in self._logs

    def __len__(self) -> int:
        return len(self._logs)


default_annotations = AnnotationStore()


def attach(instance: object, selector: str, annotation: Decorator) -> None:
    """Attach an annotation to ``instance`` in the process-wide store."""
    default_annotations.attach(instance, selector, annotation)


def annotate(instance: object, decorator: Decorator) -> None:
    """Attach ``decorator`` at its own selector in the process-wide store."""
    default_annotations.annotate(instance, decorator)
