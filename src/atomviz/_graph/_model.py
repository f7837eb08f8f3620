"""Atoms, relations and the exported graph bundle."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from atomviz._layout import DecoratorSet

# Participant type that every other type widens to.
ATOM_TYPE = "atom"
# Participant type of positional slots; these hold a position, not an atom id.
INDEX_TYPE = "index"

OPTION_TYPE = "option"
MAP_TYPE = "map"
IDX_RELATION = "idx"
MAP_ENTRY_RELATION = "map_entry"


@dataclass(frozen=True, slots=True)
class Atom:
    """A graph node.

    Attributes:
        id: Session-unique identifier ("atom0", "atom1", ...).
        type_name: Producing type, shape category or primitive kind.
        label: Display string.

    """

    id: str
    type_name: str
    label: str

    def to_document(self) -> dict[str, str]:
        return {"id": self.id, "type": self.type_name, "label": self.label}


@dataclass(frozen=True, slots=True)
class RelationTuple:
    """One tuple of a relation, with the concrete types of its participants."""

    atoms: tuple[str, ...]
    types: tuple[str, ...]

    def to_document(self) -> dict[str, list[str]]:
        return {"atoms": list(self.atoms), "types": list(self.types)}


@dataclass(frozen=True, slots=True)
class Relation:
    """A named set of tuples sharing one participant-type signature."""

    name: str
    participant_types: tuple[str, ...]
    tuples: tuple[RelationTuple, ...] = ()

    @property
    def arity(self) -> int:
        return len(self.participant_types)

    def to_document(self) -> dict[str, Any]:
        return {
            "id": self.name,
            "name": self.name,
            "types": list(self.participant_types),
            "tuples": [t.to_document() for t in self.tuples],
        }


@dataclass(frozen=True, slots=True)
class GraphBundle:
    """Immutable result of one export session.

    Attributes:
        atoms: Atoms in emission order.
        relations: Relations in order of first use.
        decorators: Type-level decorators (first-encounter order) followed by
            the annotations of visited instances (visit order).
        root_id: Id of the atom the exported value itself maps to.

    """

    atoms: tuple[Atom, ...] = ()
    relations: tuple[Relation, ...] = ()
    decorators: DecoratorSet = field(default_factory=DecoratorSet)
    root_id: str | None = None

    def get_atom(self, atom_id: str) -> Atom:
        """Get an atom by id.

        Raises:
            KeyError: If no atom has the given id.

        """
        for atom in self.atoms:
            if atom.id == atom_id:
                return atom
        raise KeyError(atom_id)

    def get_relation(self, name: str) -> Relation:
        """Get a relation by name.

        Raises:
            KeyError: If no relation has the given name.

        """
        for relation in self.relations:
            if relation.name == name:
                return relation
        raise KeyError(name)

    def get_atoms_by_type(self, type_name: str) -> list[Atom]:
        return [atom for atom in self.atoms if atom.type_name == type_name]

    @property
    def root(self) -> Atom | None:
        return self.get_atom(self.root_id) if self.root_id is not None else None

    def to_document(self) -> dict[str, Any]:
        """Plain-data form of the bundle, ready for a structured-text writer."""
        return {
            "atoms": [atom.to_document() for atom in self.atoms],
            "relations": [relation.to_document() for relation in self.relations],
            "decorators": self.decorators.to_document(),
        }

    def __contains__(self, atom_id: object) -> bool:
        return any(atom.id == atom_id for atom in self.atoms)
