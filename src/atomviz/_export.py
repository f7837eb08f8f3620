"""Structural export: walk a value and build its atom/relation graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ._config import ExportConfig
from ._errors import CyclicIndirection, UnsupportedShape
from ._graph import (
    IDX_RELATION,
    INDEX_TYPE,
    MAP_ENTRY_RELATION,
    MAP_TYPE,
    OPTION_TYPE,
    GraphBuilder,
    GraphBundle,
)
from ._layout import (
    DecoratorSet,
    default_annotations,
    default_registry,
    instance_decorators,
    type_decorators,
)
from ._shape import Associative, Composite, Indirection, Option, Ordered, Primitive, Variant
from ._shape import describe as default_describe

if TYPE_CHECKING:
    from collections.abc import Callable, Generator

    from ._layout import AnnotationStore, DecoratorRegistry
    from ._shape import Shape

logger = logging.getLogger(__name__)

# Yields child values, receives the atom id each child maps to.
type Children = Generator[Any, str, None]


@dataclass(slots=True)
class _Frame:
    """A container whose atom is emitted and whose children are pending."""

    value: Any
    atom_id: str
    children: Children


class ValueWalker:
    """Drives one export session.

    Each shape variant has one handler. Container handlers emit the container
    atom first and hand back a generator over the children; ``visit`` runs
    those generators from an explicit stack, so nesting depth is not bounded
    by the interpreter's recursion limit.

    Object identity is tracked in two places:

    - A value reached again while its own children are still being exported
      (a back-reference such as a parent pointer) maps to the atom it already
      has.
    - Referents reached through an ``Indirection`` keep their atom for the
      whole session.

    Anything else follows value semantics: an object appearing twice side by
    side is exported twice.
    """

    def __init__(
        self,
        *,
        registry: DecoratorRegistry,
        annotations: AnnotationStore,
        config: ExportConfig,
        describe: Callable[[Any], Shape],
    ) -> None:
        self._registry = registry
        self._annotations = annotations
        self._config = config
        self._describe = describe
        self._builder = GraphBuilder(strict_relation_types=config.strict_relation_types)
        # Type-level sets in first-encounter order.
        self._type_sets: dict[str, DecoratorSet] = {}
        # Annotated instances in visit order, keyed by identity.
        self._annotated: dict[int, Any] = {}
        # Indirection referents by identity; None while the referent has no atom yet.
        self._referents: dict[int, str | None] = {}
        # Keeps referents alive so their ids stay unique for the session.
        self._pinned: list[Any] = []
        # Containers on the current path, by identity. Their frames keep them alive.
        self._active: dict[int, str] = {}

    def run(self, value: Any) -> GraphBundle:
        root_id = self.visit(value)
        return self._builder.finalize(decorators=self._collect_decorators(), root_id=root_id)

    def visit(self, value: Any) -> str:
        """Export ``value`` and return the id of the atom it maps to."""
        entered = self._enter(value)
        if isinstance(entered, str):
            return entered

        stack = [entered]
        child_id: str | None = None
        while stack:
            frame = stack[-1]
            try:
                child = frame.children.send(child_id)
            except StopIteration:
                stack.pop()
                del self._active[id(frame.value)]
                child_id = frame.atom_id
                continue
            entered = self._enter(child)
            if isinstance(entered, str):
                child_id = entered
            else:
                stack.append(entered)
                child_id = None
        assert child_id is not None
        return child_id

    def _enter(self, value: Any) -> str | _Frame:
        """Emit the atom of ``value``; return a frame if it has children to export."""
        # Indirection keys waiting for the atom this value resolves to.
        referents: list[int] = []
        while True:
            if (atom_id := self._active.get(id(value))) is not None:
                return self._claim(referents, atom_id)
            shape = self._describe(value)
            if self._config.include_instance_annotations and value in self._annotations:
                self._annotated.setdefault(id(value), value)
            match shape:
                case Option(present=True, value=inner):
                    value = inner
                case Indirection(target):
                    key = id(target)
                    if key in self._referents:
                        atom_id = self._referents[key]
                        if atom_id is None:
                            msg = f"Indirection cycle through {type(target).__name__} never reaches an atom"
                            raise CyclicIndirection(msg)
                        return self._claim(referents, atom_id)
                    self._referents[key] = None
                    self._pinned.append(target)
                    referents.append(key)
                    value = target
                case _:
                    break

        match shape:
            case Primitive(kind=kind):
                return self._claim(referents, self._builder.new_atom(kind, shape.label))
            case Option():
                return self._claim(referents, self._builder.singleton_atom(OPTION_TYPE, "None"))
            case Composite():
                return self._enter_composite(value, shape, referents)
            case Ordered():
                return self._enter_ordered(value, shape, referents)
            case Associative():
                return self._enter_associative(value, shape, referents)
            case Variant():
                return self._enter_variant(value, shape, referents)
            case _:
                raise UnsupportedShape(value)

    def _claim(self, referents: list[int], atom_id: str) -> str:
        for key in referents:
            self._referents[key] = atom_id
        return atom_id

    def _frame(self, value: Any, atom_id: str, children: Children) -> _Frame:
        self._active[id(value)] = atom_id
        return _Frame(value=value, atom_id=atom_id, children=children)

    def _enter_composite(self, value: Any, shape: Composite, referents: list[int]) -> str | _Frame:
        self._collect_type(shape.type_name, shape.decorator_source)
        if not shape.fields:
            return self._claim(referents, self._builder.singleton_atom(shape.type_name, shape.type_name))
        atom_id = self._claim(referents, self._builder.new_atom(shape.type_name, shape.type_name))
        return self._frame(value, atom_id, self._fields(atom_id, shape.type_name, shape.fields))

    def _enter_ordered(self, value: Any, shape: Ordered, referents: list[int]) -> _Frame:
        if shape.type_name is not None:
            self._collect_type(shape.type_name, shape.decorator_source)
            label = shape.type_name
        else:
            label = f"{shape.kind}[{len(shape.elements)}]"
        atom_id = self._claim(referents, self._builder.new_atom(str(shape.kind), label))
        return self._frame(value, atom_id, self._positions(atom_id, str(shape.kind), shape.elements))

    def _enter_associative(self, value: Any, shape: Associative, referents: list[int]) -> _Frame:
        atom_id = self._claim(referents, self._builder.new_atom(MAP_TYPE, f"{MAP_TYPE}[{len(shape.entries)}]"))
        return self._frame(value, atom_id, self._entries(atom_id, shape.entries))

    def _enter_variant(self, value: Any, shape: Variant, referents: list[int]) -> str | _Frame:
        self._collect_type(shape.type_name, shape.decorator_source)
        if shape.is_unit:
            return self._claim(referents, self._builder.singleton_atom(shape.type_name, shape.variant))
        atom_id = self._claim(referents, self._builder.new_atom(shape.type_name, shape.variant))
        if shape.fields is not None:
            children = self._fields(atom_id, shape.type_name, shape.fields)
        else:
            children = self._positions(atom_id, shape.type_name, shape.elements or ())
        return self._frame(value, atom_id, children)

    def _fields(self, container_id: str, container_type: str, fields: tuple[tuple[str, Any], ...]) -> Children:
        for field_name, field_value in fields:
            child_id = yield field_value
            self._builder.add_relation_tuple(
                field_name,
                (container_type, self._type_of(child_id)),
                (container_id, child_id),
            )

    def _positions(self, container_id: str, container_type: str, elements: tuple[Any, ...]) -> Children:
        for position, element in enumerate(elements):
            child_id = yield element
            self._builder.add_relation_tuple(
                IDX_RELATION,
                (container_type, INDEX_TYPE, self._type_of(child_id)),
                (container_id, position, child_id),
            )

    def _entries(self, container_id: str, entries: tuple[tuple[Any, Any], ...]) -> Children:
        for key, value in entries:
            key_id = yield key
            value_id = yield value
            self._builder.add_relation_tuple(
                MAP_ENTRY_RELATION,
                (MAP_TYPE, self._type_of(key_id), self._type_of(value_id)),
                (container_id, key_id, value_id),
            )

    def _type_of(self, atom_id: str) -> str:
        return self._builder.atom(atom_id).type_name

    def _collect_type(self, type_name: str, source: Callable[[], DecoratorSet] | None) -> None:
        if not self._config.collect_decorators or type_name in self._type_sets:
            return
        self._type_sets[type_name] = type_decorators(type_name, source, self._registry)

    def _collect_decorators(self) -> DecoratorSet:
        collected = DecoratorSet()
        for decorator_set in self._type_sets.values():
            collected += decorator_set
        for instance in self._annotated.values():
            collected += instance_decorators(instance, self._annotations, describe=self._describe)
        return collected


def export(
    value: Any,
    *,
    registry: DecoratorRegistry | None = None,
    annotations: AnnotationStore | None = None,
    config: ExportConfig | None = None,
    describe: Callable[[Any], Shape] | None = None,
) -> GraphBundle:
    """Export ``value`` as an atom/relation graph with its decorators.

    Args:
        value: The value to export.
        registry: Decorator registry. Defaults to the process-wide registry.
        annotations: Annotation store. Defaults to the process-wide store.
        config: Session options. Defaults to ``ExportConfig()``.
        describe: Shape descriptor function. Defaults to ``atomviz.describe``.

    Returns:
        The frozen GraphBundle of the session.

    Raises:
        UnsupportedShape: If some value in the tree has no shape descriptor.
        RelationSignatureConflict: If two emissions of one relation disagree
            on its signature.
        UnresolvedSelector: If an annotation of a visited instance is stale.
        CyclicIndirection: If indirections loop without reaching an atom.

    Example:
        >>> bundle = export({"name": "Alice", "age": 30})
        >>> [atom.type_name for atom in bundle.atoms]
        ['map', 'str', 'str', 'str', 'int']

    """
    walker = ValueWalker(
        registry=default_registry if registry is None else registry,
        annotations=default_annotations if annotations is None else annotations,
        config=ExportConfig() if config is None else config,
        describe=default_describe if describe is None else describe,
    )
    logger.debug(f"Exporting value of type '{type(value).__name__}'")
    bundle = walker.run(value)
    logger.debug(f"Exported {len(bundle.atoms)} atoms, {len(bundle.relations)} relations, {len(bundle.decorators)} decorators")
    return bundle
