"""Session-scoped storage for atoms and relations."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from atomviz._errors import RelationSignatureConflict, UnknownAtom
from atomviz._layout import DecoratorSet

from ._model import ATOM_TYPE, INDEX_TYPE, Atom, GraphBundle, Relation, RelationTuple

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _RelationState:
    participant_types: tuple[str, ...]
    # Insertion-ordered set of tuples, keyed by their atoms.
    tuples: dict[tuple[str, ...], RelationTuple] = field(default_factory=dict)


class GraphBuilder:
    """Builds the atom/relation graph of one export session.

    Atom ids are assigned from a monotonic counter starting at 0. Nothing is
    ever removed. Relations sharing a name must agree on their arity; in
    strict mode they must agree on every participant type, otherwise
    disagreeing positions are widened to ``"atom"``.
    """

    def __init__(self, *, strict_relation_types: bool = False) -> None:
        self._strict = strict_relation_types
        self._counter = 0
        self._atoms: dict[str, Atom] = {}
        self._singletons: dict[tuple[str, str], str] = {}
        self._relations: dict[str, _RelationState] = {}

    def new_atom(self, type_name: str, label: str) -> str:
        atom_id = f"atom{self._counter}"
        self._counter += 1
        self._atoms[atom_id] = Atom(id=atom_id, type_name=type_name, label=label)
        return atom_id

    def singleton_atom(self, type_name: str, label: str) -> str:
        """Return the shared atom for a zero-footprint ``(type_name, label)``."""
        key = (type_name, label)
        atom_id = self._singletons.get(key)
        if atom_id is None:
            atom_id = self._singletons[key] = self.new_atom(type_name, label)
        return atom_id

    def atom(self, atom_id: str) -> Atom:
        """Get an emitted atom.

        Raises:
            UnknownAtom: If the id was never emitted in this session.

        """
        try:
            return self._atoms[atom_id]
        except KeyError:
            msg = f"Atom '{atom_id}' was not emitted in this session"
            raise UnknownAtom(msg) from None

    def _check_tuple(self, name: str, types: tuple[str, ...], atoms: tuple[str, ...]) -> None:
        if len(types) != len(atoms):
            msg = f"Relation '{name}' tuple {list(atoms)} does not match participant types {list(types)}"
            raise ValueError(msg)
        for participant_type, atom_id in zip(types, atoms, strict=True):
            if participant_type == INDEX_TYPE:
                if not atom_id.isdecimal():
                    msg = f"Relation '{name}' index slot holds '{atom_id}', expected a position"
                    raise ValueError(msg)
            elif atom_id not in self._atoms:
                msg = f"Relation '{name}' references atom '{atom_id}' which was not emitted in this session"
                raise UnknownAtom(msg)

    def _merge_signature(self, name: str, existing: tuple[str, ...], incoming: tuple[str, ...]) -> tuple[str, ...]:
        if existing == incoming:
            return existing
        if self._strict or len(existing) != len(incoming):
            raise RelationSignatureConflict(name, existing, incoming)
        merged: list[str] = []
        for current, new in zip(existing, incoming, strict=True):
            if current == new:
                merged.append(current)
            elif INDEX_TYPE in (current, new):
                raise RelationSignatureConflict(name, existing, incoming)
            else:
                merged.append(ATOM_TYPE)
        widened = tuple(merged)
        if widened != existing:
            logger.debug(f"Widened relation '{name}' from {list(existing)} to {list(widened)}")
        return widened

    def add_relation_tuple(
        self,
        name: str,
        participant_types: Iterable[str],
        atoms: Iterable[str | int],
    ) -> None:
        """Add a tuple to relation ``name``, creating the relation on first use.

        Positions in ``"index"`` slots may be given as integers.

        Raises:
            RelationSignatureConflict: If the signature is incompatible with
                earlier tuples of the same relation.
            UnknownAtom: If the tuple references an atom never emitted.

        """
        types = tuple(participant_types)
        atom_ids = tuple(str(a) for a in atoms)
        self._check_tuple(name, types, atom_ids)

        state = self._relations.get(name)
        if state is None:
            state = self._relations[name] = _RelationState(participant_types=types)
        else:
            state.participant_types = self._merge_signature(name, state.participant_types, types)
        state.tuples.setdefault(atom_ids, RelationTuple(atoms=atom_ids, types=types))

    def finalize(self, *, decorators: DecoratorSet | None = None, root_id: str | None = None) -> GraphBundle:
        """Snapshot the graph. Later changes to the builder do not affect it."""
        return GraphBundle(
            atoms=tuple(self._atoms.values()),
            relations=tuple(
                Relation(name=name, participant_types=state.participant_types, tuples=tuple(state.tuples.values()))
                for name, state in self._relations.items()
            ),
            decorators=decorators if decorators is not None else DecoratorSet(),
            root_id=root_id,
        )

    def __len__(self) -> int:
        return len(self._atoms)
