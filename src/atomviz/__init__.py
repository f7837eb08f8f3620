"""Export nested Python values as atom/relation graphs with layout decorators."""

__all__ = [
    "Associative",
    "Atom",
    "AtomColor",
    "Attribute",
    "AnnotationStore",
    "Composite",
    "ConfigError",
    "Constraint",
    "Cyclic",
    "CyclicIndirection",
    "Decorator",
    "DecoratorRegistry",
    "DecoratorSet",
    "Directive",
    "EdgeColor",
    "ExportConfig",
    "ExportError",
    "Flag",
    "GraphBuilder",
    "GraphBundle",
    "GroupByField",
    "GroupBySelector",
    "HideAtom",
    "HideField",
    "Icon",
    "Indirection",
    "InferredEdge",
    "InstanceAnnotation",
    "InvalidDecorator",
    "Option",
    "Ordered",
    "OrderedKind",
    "Orientation",
    "Primitive",
    "Projection",
    "Relation",
    "RelationSignatureConflict",
    "RelationTuple",
    "Selector",
    "Shape",
    "Size",
    "TypeDecoratorEntry",
    "UnknownAtom",
    "UnresolvedSelector",
    "UnsupportedShape",
    "ValueWalker",
    "Variant",
    "annotate",
    "attach",
    "combined_decorators",
    "configure_logging",
    "decorate",
    "default_annotations",
    "default_registry",
    "describe",
    "ensure_registered",
    "export",
    "get_config",
    "load_config",
    "parse_decorator",
    "resolve_selector",
]

from ._config import ExportConfig, get_config, load_config
from ._decorators import decorate, ensure_registered
from ._errors import (
    ConfigError,
    CyclicIndirection,
    ExportError,
    InvalidDecorator,
    RelationSignatureConflict,
    UnknownAtom,
    UnresolvedSelector,
    UnsupportedShape,
)
from ._export import ValueWalker, export
from ._graph import Atom, GraphBuilder, GraphBundle, Relation, RelationTuple
from ._layout import (
    AnnotationStore,
    AtomColor,
    Attribute,
    Constraint,
    Cyclic,
    Decorator,
    DecoratorRegistry,
    DecoratorSet,
    Directive,
    EdgeColor,
    Flag,
    GroupByField,
    GroupBySelector,
    HideAtom,
    HideField,
    Icon,
    InferredEdge,
    InstanceAnnotation,
    Orientation,
    Projection,
    Size,
    TypeDecoratorEntry,
    annotate,
    attach,
    combined_decorators,
    default_annotations,
    default_registry,
    parse_decorator,
)
from ._logging import configure_logging
from ._shape import (
    Associative,
    Composite,
    Indirection,
    Option,
    Ordered,
    OrderedKind,
    Primitive,
    Selector,
    Shape,
    Variant,
    describe,
    resolve_selector,
)
