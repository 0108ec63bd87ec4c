"""
Error types raised by the world logic compiler.

Every error here is a content-author or programmer error in the source
data; none of them is recoverable at compile time.
"""

from typing import List, Optional


class WorldcError(Exception):
    """Base class for all compiler errors."""
    pass


class LoadError(WorldcError):
    """Malformed input file (YAML syntax or schema mismatch)."""

    def __init__(self, message: str, filename: str = "<input>",
                 line: Optional[int] = None, column: Optional[int] = None):
        self.filename = filename
        self.line = line
        self.column = column
        if line is not None:
            location = f"{filename}:{line}:{column or 1}"
        else:
            location = filename
        super().__init__(f"{location}: {message}")


class RequirementError(WorldcError):
    """Base class for errors in a requirement expression."""

    def __init__(self, message: str, text: str = "", area: Optional[str] = None):
        self.text = text
        self.area = area
        where = f" in area {area}" if area else ""
        if text:
            message = f"{message}{where} (requirement: {text!r})"
        elif where:
            message = f"{message}{where}"
        super().__init__(message)


class ParseError(RequirementError):
    """Requirement text does not match the grammar."""

    def __init__(self, message: str, text: str = "", offset: int = 0,
                 area: Optional[str] = None):
        self.offset = offset
        super().__init__(f"{message} at column {offset + 1}", text, area)


class UnknownReferenceError(RequirementError):
    """A name in a requirement could not be resolved."""

    def __init__(self, kind: str, name: str, text: str = "", area: Optional[str] = None):
        self.kind = kind
        self.name = name
        super().__init__(f"Unknown {kind} '{name}'", text, area)


class UnknownItemError(UnknownReferenceError):
    def __init__(self, name: str, text: str = "", area: Optional[str] = None):
        super().__init__("item", name, text, area)


class UnknownMacroError(UnknownReferenceError):
    def __init__(self, name: str, text: str = "", area: Optional[str] = None):
        super().__init__("macro", name, text, area)


class UnknownAreaError(UnknownReferenceError):
    def __init__(self, name: str, text: str = "", area: Optional[str] = None):
        super().__init__("area", name, text, area)


class MacroCycleError(RequirementError):
    """Macros reference each other in a cycle."""

    def __init__(self, chain: List[str], area: Optional[str] = None):
        self.chain = list(chain)
        super().__init__(f"Macro cycle: {' -> '.join(self.chain)}", area=area)


class InvalidCountError(RequirementError):
    """Item count out of range or applied to a flag item."""
    pass


class GraphError(WorldcError):
    """Base class for world graph consistency errors."""
    pass


class DanglingReferenceError(GraphError):
    """An exit names a stage/area that does not exist."""

    def __init__(self, key: str, origin: str, message: str = ""):
        self.key = key
        self.origin = origin
        detail = f": {message}" if message else ""
        super().__init__(f"Exit '{key}' in {origin} points to a missing area{detail}")


class MalformedExitError(GraphError):
    """A map exit key does not have the form 'Stage - Area (Disambiguation)'."""

    def __init__(self, key: str, origin: str):
        self.key = key
        self.origin = origin
        super().__init__(f"Invalid map exit '{key}' in {origin}")


class InvalidAreaError(GraphError):
    """An area definition violates an area invariant."""
    pass


class InvalidDoorTableError(GraphError):
    """Entrance table entries for a connection are inconsistent."""
    pass


class NameCollisionError(WorldcError):
    """Two distinct keys map to the same identifier."""

    def __init__(self, namespace: str, identifier: str, first: str, second: str):
        self.namespace = namespace
        self.identifier = identifier
        self.first = first
        self.second = second
        super().__init__(
            f"{namespace} identifier '{identifier}' is used by both '{first}' and '{second}'"
        )


class InvalidNameError(WorldcError):
    """A source key cannot be turned into an identifier."""

    def __init__(self, name: str, reason: str = "has no identifier characters"):
        self.name = name
        super().__init__(f"Name {name!r} {reason}")


class DuplicateItemError(WorldcError):
    """The item catalog names the same item twice."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Duplicate item name '{name}'")


class CompletenessError(WorldcError):
    """A requirement references something that has no definition, or vice versa."""
    pass


class CompilationError(WorldcError):
    """Aggregate of every error found in one pass."""

    def __init__(self, errors: List[Exception]):
        self.errors = list(errors)
        lines = [f"{len(self.errors)} error(s):"]
        lines.extend(f"  {error}" for error in self.errors)
        super().__init__("\n".join(lines))
