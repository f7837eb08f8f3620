"""Layout decorators and their collection.

This module contains:
- Decorator models (constraints and directives) and DecoratorSet
- DecoratorRegistry: process-wide, idempotent type-level registry
- AnnotationStore: per-instance annotation overlay
- combined_decorators: deterministic merge of both
"""

from ._annotations import AnnotationStore, InstanceAnnotation, annotate, attach, default_annotations
from ._merge import combined_decorators, instance_decorators, named_type, type_decorators
from ._models import (
    DECORATOR_TYPES,
    AtomColor,
    Attribute,
    Constraint,
    Cyclic,
    Decorator,
    DecoratorCategory,
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
    Orientation,
    Projection,
    Size,
    parse_decorator,
)
from ._registry import DecoratorRegistry, TypeDecoratorEntry, default_registry

__all__ = [
    "DECORATOR_TYPES",
    "AnnotationStore",
    "AtomColor",
    "Attribute",
    "Constraint",
    "Cyclic",
    "Decorator",
    "DecoratorCategory",
    "DecoratorRegistry",
    "DecoratorSet",
    "Directive",
    "EdgeColor",
    "Flag",
    "GroupByField",
    "GroupBySelector",
    "HideAtom",
    "HideField",
    "Icon",
    "InferredEdge",
    "InstanceAnnotation",
    "Orientation",
    "Projection",
    "Size",
    "TypeDecoratorEntry",
    "annotate",
    "attach",
    "combined_decorators",
    "default_annotations",
    "default_registry",
    "instance_decorators",
    "named_type",
    "parse_decorator",
    "type_decorators",
]
