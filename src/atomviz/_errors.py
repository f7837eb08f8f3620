"""Exception hierarchy for atomviz.

Every error raised by the export engine or the decorator subsystem derives
from ExportError, so callers can catch one type at the session boundary.
"""


class ExportError(Exception):
    """Base class for all atomviz errors."""


class UnsupportedShape(ExportError, TypeError):  # noqa: N818
    """A value has no shape descriptor."""

    def __init__(self, value: object) -> None:
        self.value_type = type(value)
        msg = f"No shape descriptor for value of type '{self.value_type.__qualname__}'"
        super().__init__(msg)


class RelationSignatureConflict(ExportError):  # noqa: N818
    """Two emissions disagree on the participant types of a relation."""

    def __init__(self, name: str, existing: tuple[str, ...], incoming: tuple[str, ...]) -> None:
        self.name = name
        self.existing = existing
        self.incoming = incoming
        msg = f"Relation '{name}' has signature {list(existing)}, cannot add tuple typed {list(incoming)}"
        super().__init__(msg)


class UnresolvedSelector(ExportError, LookupError):  # noqa: N818
    """An instance annotation's selector does not resolve against the instance."""

    def __init__(self, selector: str, reason: str) -> None:
        self.selector = selector
        self.reason = reason
        msg = f"Selector '{selector}' does not resolve: {reason}"
        super().__init__(msg)


class UnknownAtom(ExportError, LookupError):  # noqa: N818
    """A relation tuple references an atom id that was never emitted."""


class CyclicIndirection(ExportError):  # noqa: N818
    """An indirection cycle never reaches an atom-producing value."""


class InvalidDecorator(ExportError, ValueError):  # noqa: N818
    """A decorator could not be built from the given parameters."""


class ConfigError(ExportError):
    """Error in atomviz configuration."""
