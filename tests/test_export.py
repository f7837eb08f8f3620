"""Tests for structural export of values into atom/relation graphs."""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import pytest

from atomviz import (
    AnnotationStore,
    AtomColor,
    CyclicIndirection,
    DecoratorRegistry,
    DecoratorSet,
    ExportConfig,
    ExportError,
    Flag,
    GraphBundle,
    Indirection,
    Ordered,
    OrderedKind,
    Orientation,
    RelationSignatureConflict,
    UnresolvedSelector,
    UnsupportedShape,
    Variant,
    decorate,
    export,
)
from atomviz._graph import RelationTuple

ORIENT = Orientation(selector="employees", directions=("below",))
HIDE = Flag(name="hideDisconnected")


@dataclass
class Person:
    name: str
    age: int


@decorate(ORIENT, HIDE)
@dataclass
class Company:
    name: str
    employees: list[Person] = field(default_factory=list)


@dataclass
class Marker:
    pass


@dataclass
class Pair:
    left: int | None
    right: int | None


class Color(Enum):
    RED = 1
    GREEN = 2


class Ref:
    """Pointer-like wrapper."""

    def __init__(self, target: Any) -> None:
        self.target = target

    def __shape__(self) -> Indirection:
        return Indirection(self.target)


@dataclass(eq=False)
class Node:
    value: int
    next: Any = None


class Message:
    """A tagged union value with unit, struct-like and tuple-like variants."""

    def __init__(self, variant: str, fields: Any = None, elements: Any = None) -> None:
        self.variant = variant
        self.fields = fields
        self.elements = elements

    def __shape__(self) -> Variant:
        return Variant(type_name="Message", variant=self.variant, fields=self.fields, elements=self.elements)


class Point:
    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y

    def __shape__(self) -> Ordered:
        return Ordered(elements=(self.x, self.y), kind=OrderedKind.TUPLE, type_name="Point")


@pytest.fixture
def registry() -> DecoratorRegistry:
    return DecoratorRegistry()


@pytest.fixture
def store() -> AnnotationStore:
    return AnnotationStore()


@pytest.fixture
def run(registry: DecoratorRegistry, store: AnnotationStore) -> Any:
    """Export with an isolated registry and annotation store."""

    def _run(value: Any, **kwargs: Any) -> GraphBundle:
        return export(value, registry=registry, annotations=store, **kwargs)

    return _run


def tuples_of(bundle: GraphBundle, name: str) -> list[tuple[str, ...]]:
    return [t.atoms for t in bundle.get_relation(name).tuples]


# =============================================================================
# Structs and primitives
# =============================================================================


class TestComposite:
    def test_struct_with_two_fields(self, run: Any) -> None:
        bundle = run(Person("Alice", 30))

        assert [(a.id, a.type_name, a.label) for a in bundle.atoms] == [
            ("atom0", "Person", "Person"),
            ("atom1", "str", "Alice"),
            ("atom2", "int", "30"),
        ]
        assert [r.name for r in bundle.relations] == ["name", "age"]
        assert bundle.get_relation("name").participant_types == ("Person", "str")
        assert tuples_of(bundle, "name") == [("atom0", "atom1")]
        assert tuples_of(bundle, "age") == [("atom0", "atom2")]
        assert bundle.root_id == "atom0"

    def test_primitive_root(self, run: Any) -> None:
        bundle = run(42)
        assert [(a.type_name, a.label) for a in bundle.atoms] == [("int", "42")]
        assert bundle.relations == ()

    def test_equal_primitives_get_distinct_atoms(self, run: Any) -> None:
        bundle = run(Pair(1, 1))
        assert len(bundle.get_atoms_by_type("int")) == 2

    def test_booleans_are_fresh_atoms(self, run: Any) -> None:
        bundle = run([True, True])
        assert len(bundle.get_atoms_by_type("bool")) == 2

    def test_equal_structs_get_distinct_atoms(self, run: Any) -> None:
        bundle = run([Person("Alice", 30), Person("Alice", 30)])
        assert len(bundle.get_atoms_by_type("Person")) == 2

    def test_fieldless_struct_is_singleton(self, run: Any) -> None:
        bundle = run([Marker(), Marker()])

        markers = bundle.get_atoms_by_type("Marker")
        assert len(markers) == 1
        assert tuples_of(bundle, "idx") == [("atom0", "0", markers[0].id), ("atom0", "1", markers[0].id)]


# =============================================================================
# Containers
# =============================================================================


class TestOrdered:
    def test_sequence_of_structs(self, run: Any) -> None:
        bundle = run([Person("Alice", 30), Person("Bob", 25)])

        root = bundle.root
        assert root is not None
        assert (root.type_name, root.label) == ("sequence", "sequence[2]")
        assert bundle.get_relation("idx").participant_types == ("sequence", "index", "Person")
        assert tuples_of(bundle, "idx") == [("atom0", "0", "atom1"), ("atom0", "1", "atom4")]
        assert tuples_of(bundle, "name") == [("atom1", "atom2"), ("atom4", "atom5")]

    def test_empty_sequence(self, run: Any) -> None:
        bundle = run([])
        assert [(a.type_name, a.label) for a in bundle.atoms] == [("sequence", "sequence[0]")]
        assert bundle.relations == ()

    def test_tuple(self, run: Any) -> None:
        bundle = run((1, 2))
        assert bundle.atoms[0].label == "tuple[2]"
        assert bundle.get_relation("idx").participant_types == ("tuple", "index", "int")

    def test_heterogeneous_sequence_widens(self, run: Any) -> None:
        bundle = run([1, "x"])

        relation = bundle.get_relation("idx")
        assert relation.participant_types == ("sequence", "index", "atom")
        assert relation.tuples == (
            RelationTuple(atoms=("atom0", "0", "atom1"), types=("sequence", "index", "int")),
            RelationTuple(atoms=("atom0", "1", "atom2"), types=("sequence", "index", "str")),
        )

    def test_heterogeneous_sequence_strict(self, run: Any) -> None:
        with pytest.raises(RelationSignatureConflict, match="'idx'"):
            run([1, "x"], config=ExportConfig(strict_relation_types=True))

    def test_positional_struct(self, run: Any) -> None:
        bundle = run(Point(3, 4))

        root = bundle.root
        assert root is not None
        assert (root.type_name, root.label) == ("tuple", "Point")
        assert tuples_of(bundle, "idx") == [("atom0", "0", "atom1"), ("atom0", "1", "atom2")]

    def test_set_order_is_stable(self, run: Any) -> None:
        bundle = run({3, 1, 2})
        assert [a.label for a in bundle.get_atoms_by_type("int")] == ["1", "2", "3"]


class TestAssociative:
    def test_map_entries(self, run: Any) -> None:
        bundle = run({"a": 1, "b": 2})

        root = bundle.root
        assert root is not None
        assert (root.type_name, root.label) == ("map", "map[2]")
        relation = bundle.get_relation("map_entry")
        assert relation.participant_types == ("map", "str", "int")
        assert [t.atoms for t in relation.tuples] == [("atom0", "atom1", "atom2"), ("atom0", "atom3", "atom4")]

    def test_struct_keys(self, run: Any) -> None:
        bundle = run({Color.RED: Person("Alice", 30)})
        assert bundle.get_relation("map_entry").participant_types == ("map", "Color", "Person")


# =============================================================================
# Options, variants and indirection
# =============================================================================


class TestOption:
    def test_absent_option_is_shared(self, run: Any) -> None:
        bundle = run(Pair(None, None))

        assert [(a.type_name, a.label) for a in bundle.atoms] == [("Pair", "Pair"), ("option", "None")]
        assert tuples_of(bundle, "left") == [("atom0", "atom1")]
        assert tuples_of(bundle, "right") == [("atom0", "atom1")]

    def test_present_option_is_transparent(self, run: Any) -> None:
        bundle = run(Pair(7, None))

        assert bundle.get_relation("left").participant_types == ("Pair", "int")
        assert bundle.get_atom(tuples_of(bundle, "left")[0][1]).label == "7"


class TestVariant:
    def test_unit_variants_are_shared(self, run: Any) -> None:
        bundle = run([Color.RED, Color.RED, Color.GREEN])

        assert [(a.type_name, a.label) for a in bundle.atoms] == [
            ("sequence", "sequence[3]"),
            ("Color", "RED"),
            ("Color", "GREEN"),
        ]
        assert tuples_of(bundle, "idx") == [("atom0", "0", "atom1"), ("atom0", "1", "atom1"), ("atom0", "2", "atom2")]

    def test_unit_variant_of_custom_union(self, run: Any) -> None:
        bundle = run([Message("Quit"), Message("Quit")])
        assert len(bundle.get_atoms_by_type("Message")) == 1

    def test_struct_like_variant(self, run: Any) -> None:
        bundle = run(Message("Move", fields=(("x", 1), ("y", 2))))

        assert (bundle.atoms[0].type_name, bundle.atoms[0].label) == ("Message", "Move")
        assert bundle.get_relation("x").participant_types == ("Message", "int")
        assert tuples_of(bundle, "y") == [("atom0", "atom2")]

    def test_tuple_like_variant(self, run: Any) -> None:
        bundle = run(Message("Write", elements=("hi",)))

        assert bundle.get_relation("idx").participant_types == ("Message", "index", "str")
        assert tuples_of(bundle, "idx") == [("atom0", "0", "atom1")]

    def test_data_variants_are_fresh(self, run: Any) -> None:
        bundle = run([Message("Write", elements=("hi",)), Message("Write", elements=("hi",))])
        assert len(bundle.get_atoms_by_type("Message")) == 2


class TestIndirection:
    def test_transparent(self, run: Any) -> None:
        bundle = run(Ref(5))
        assert [(a.type_name, a.label) for a in bundle.atoms] == [("int", "5")]

    def test_shared_referent_has_one_atom(self, run: Any) -> None:
        alice = Person("Alice", 30)
        bundle = run([Ref(alice), Ref(alice)])

        assert len(bundle.get_atoms_by_type("Person")) == 1
        assert tuples_of(bundle, "idx") == [("atom0", "0", "atom1"), ("atom0", "1", "atom1")]

    def test_shared_value_without_indirection_is_copied(self, run: Any) -> None:
        alice = Person("Alice", 30)
        bundle = run([alice, alice])
        assert len(bundle.get_atoms_by_type("Person")) == 2

    def test_self_reference(self, run: Any) -> None:
        node = Node(1)
        node.next = Ref(node)

        bundle = run(Ref(node))

        assert [(a.type_name, a.label) for a in bundle.atoms] == [("Node", "Node"), ("int", "1")]
        assert tuples_of(bundle, "next") == [("atom0", "atom0")]
        assert bundle.get_relation("next").participant_types == ("Node", "Node")

    def test_two_node_cycle(self, run: Any) -> None:
        first = Node(1)
        second = Node(2, Ref(first))
        first.next = Ref(second)

        bundle = run(Ref(first))

        assert len(bundle.get_atoms_by_type("Node")) == 2
        assert set(tuples_of(bundle, "next")) == {("atom0", "atom2"), ("atom2", "atom0")}

    def test_pure_indirection_cycle(self, run: Any) -> None:
        a = Ref(None)
        b = Ref(a)
        a.target = b

        with pytest.raises(CyclicIndirection):
            run(a)


# =============================================================================
# Back-references and depth
# =============================================================================


@dataclass(eq=False)
class TreeNode:
    name: str
    parent: Any = None
    children: list[Any] = field(default_factory=list)


class TestBackReferences:
    def test_plain_self_reference(self, run: Any) -> None:
        node = Node(1)
        node.next = node

        bundle = run(node)

        assert [(a.type_name, a.label) for a in bundle.atoms] == [("Node", "Node"), ("int", "1")]
        assert tuples_of(bundle, "next") == [("atom0", "atom0")]

    def test_plain_two_node_cycle(self, run: Any) -> None:
        first = Node(1)
        second = Node(2, first)
        first.next = second

        bundle = run(first)

        assert len(bundle.get_atoms_by_type("Node")) == 2
        assert set(tuples_of(bundle, "next")) == {("atom0", "atom2"), ("atom2", "atom0")}

    def test_parent_pointer(self, run: Any) -> None:
        root = TreeNode("root")
        leaf = TreeNode("leaf", parent=root)
        root.children.append(leaf)

        bundle = run(root)

        nodes = bundle.get_atoms_by_type("TreeNode")
        assert [a.id for a in nodes] == ["atom0", "atom4"]
        assert ("atom4", "atom0") in tuples_of(bundle, "parent")
        assert bundle.get_relation("parent").participant_types == ("TreeNode", "atom")

    def test_list_containing_itself(self, run: Any) -> None:
        values: list[Any] = []
        values.append(values)

        bundle = run(values)

        assert len(bundle.atoms) == 1
        assert tuples_of(bundle, "idx") == [("atom0", "0", "atom0")]

    def test_map_containing_itself(self, run: Any) -> None:
        table: dict[str, Any] = {}
        table["self"] = table

        bundle = run(table)

        assert tuples_of(bundle, "map_entry") == [("atom0", "atom1", "atom0")]

    def test_back_reference_through_indirection(self, run: Any) -> None:
        node = Node(1)
        node.next = Ref(node)

        bundle = run(node)

        assert len(bundle.atoms) == 2
        assert tuples_of(bundle, "next") == [("atom0", "atom0")]


class TestDeepValues:
    def test_deeply_nested_lists(self, run: Any) -> None:
        depth = 5000
        value: Any = 0
        for _ in range(depth):
            value = [value]

        bundle = run(value)

        assert len(bundle.get_atoms_by_type("sequence")) == depth
        assert len(bundle.get_relation("idx").tuples) == depth
        assert bundle.root_id == "atom0"

    def test_long_linked_list(self, run: Any) -> None:
        length = 3000
        head = None
        for i in range(length):
            head = Node(i, head)

        bundle = run(head)

        assert len(bundle.get_atoms_by_type("Node")) == length
        assert len(bundle.get_relation("next").tuples) == length
        assert bundle.get_atoms_by_type("option") != []


# =============================================================================
# Errors
# =============================================================================


class TestErrors:
    def test_unsupported_value(self, run: Any) -> None:
        with pytest.raises(UnsupportedShape, match="'object'"):
            run([1, object()])

    def test_errors_share_base(self, run: Any) -> None:
        with pytest.raises(ExportError):
            run(object())

    def test_field_named_like_builtin_relation(self, run: Any) -> None:
        @dataclass
        class Weird:
            idx: int

        with pytest.raises(RelationSignatureConflict, match="'idx'"):
            run([Weird(1)])

    def test_shared_field_name_widens(self, run: Any) -> None:
        @dataclass
        class Team:
            name: str
            members: list[Person]

        bundle = run(Team("Core", [Person("Alice", 30)]))

        assert bundle.get_relation("name").participant_types == ("atom", "str")


# =============================================================================
# Decorators
# =============================================================================


class TestDecoratorCollection:
    def test_type_decorators_collected(self, run: Any, registry: DecoratorRegistry) -> None:
        bundle = run(Company("Acme", [Person("Alice", 30)]))

        assert bundle.decorators == DecoratorSet.of(ORIENT, HIDE)
        assert registry.lookup("Company") == DecoratorSet.of(ORIENT, HIDE)

    def test_type_decorators_collected_once(self, run: Any) -> None:
        bundle = run([Company("Acme"), Company("Globex")])
        assert list(bundle.decorators) == [ORIENT, HIDE]

    def test_instance_annotations_follow_type_decorators(self, run: Any, store: AnnotationStore) -> None:
        acme = Company("Acme", [Person("Alice", 30)])
        globex = Company("Globex")
        alice = acme.employees[0]
        red = AtomColor(selector="self.employees[0]", value="red")
        blue = AtomColor(selector="self.name", value="blue")
        store.annotate(globex, AtomColor(selector="self.name", value="red"))
        store.annotate(acme, red)
        store.annotate(alice, blue)

        bundle = run([acme, globex])

        assert list(bundle.decorators) == [
            ORIENT,
            HIDE,
            red,
            blue,
            AtomColor(selector="self.name", value="red"),
        ]

    def test_unvisited_annotations_are_ignored(self, run: Any, store: AnnotationStore) -> None:
        store.annotate(Person("Bob", 25), Flag(name="x"))
        bundle = run(Person("Alice", 30))
        assert bundle.decorators == DecoratorSet()

    def test_stale_annotation_fails_export(self, run: Any, store: AnnotationStore) -> None:
        acme = Company("Acme")
        store.annotate(acme, AtomColor(selector="self.employees[0]", value="red"))

        with pytest.raises(UnresolvedSelector):
            run(acme)

    def test_collection_disabled(self, run: Any, store: AnnotationStore, registry: DecoratorRegistry) -> None:
        acme = Company("Acme")
        store.annotate(acme, Flag(name="x"))

        bundle = run(acme, config=ExportConfig(collect_decorators=False, include_instance_annotations=False))

        assert bundle.decorators == DecoratorSet()
        assert registry.lookup("Company") is None

    def test_source_runs_once_across_sessions(self, run: Any) -> None:
        calls = 0

        def source() -> DecoratorSet:
            nonlocal calls
            calls += 1
            return DecoratorSet.of(HIDE)

        class Counted:
            def __shape__(self) -> Variant:
                return Variant(type_name="Counted", variant="Only", decorator_source=source)

        for _ in range(3):
            assert run(Counted()).decorators == DecoratorSet.of(HIDE)
        assert calls == 1


def test_concurrent_sessions(registry: DecoratorRegistry, store: AnnotationStore) -> None:
    n_threads = 6
    barrier = threading.Barrier(n_threads)
    bundles: list[GraphBundle] = []
    lock = threading.Lock()

    def worker(i: int) -> None:
        barrier.wait()
        bundle = export(Company(f"C{i}", [Person("Alice", i)]), registry=registry, annotations=store)
        with lock:
            bundles.append(bundle)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n_threads)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(bundles) == n_threads
    assert all(bundle.decorators == DecoratorSet.of(ORIENT, HIDE) for bundle in bundles)
    assert all([a.id for a in bundle.atoms] == [f"atom{n}" for n in range(6)] for bundle in bundles)


def test_default_registry_and_store() -> None:
    bundle = export({"name": "Alice", "age": 30})
    assert [atom.type_name for atom in bundle.atoms] == ["map", "str", "str", "str", "int"]
