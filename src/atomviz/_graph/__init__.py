"""Graph module: atoms, relations and the session graph builder.

This module contains:
- Atom, Relation, RelationTuple, GraphBundle: Immutable export results
- GraphBuilder: Session-scoped builder with identity and dedup rules
"""

from ._builder import GraphBuilder
from ._model import (
    ATOM_TYPE,
    IDX_RELATION,
    INDEX_TYPE,
    MAP_ENTRY_RELATION,
    MAP_TYPE,
    OPTION_TYPE,
    Atom,
    GraphBundle,
    Relation,
    RelationTuple,
)

__all__ = [
    "ATOM_TYPE",
    "IDX_RELATION",
    "INDEX_TYPE",
    "MAP_ENTRY_RELATION",
    "MAP_TYPE",
    "OPTION_TYPE",
    "Atom",
    "GraphBuilder",
    "GraphBundle",
    "Relation",
    "RelationTuple",
]
