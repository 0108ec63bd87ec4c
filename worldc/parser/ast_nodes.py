"""
Requirement expression tree.

The parser produces these nodes; NameRef nodes are bare names that the macro
expander resolves into macros, items or events. A fully compiled tree
contains no NameRef.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Set, Tuple

from ..runtime.timeofday import TimeOfDay


class Expression:
    """Base class for all requirement nodes."""

    def children(self) -> Tuple['Expression', ...]:
        return ()

    def walk(self) -> Iterator['Expression']:
        """Yield this node and all of its descendants, depth first."""
        yield self
        for child in self.children():
            yield from child.walk()


@dataclass(frozen=True)
class Fixed(Expression):
    """Constant true (Nothing) or false (Impossible)."""
    value: bool

    def __str__(self):
        return 'Nothing' if self.value else 'Impossible'


@dataclass(frozen=True)
class ItemCount(Expression):
    """At least `count` of `item` are owned."""
    item: Any
    count: int = 1

    def __str__(self):
        if self.count == 1:
            return f"Item {_name(self.item)}"
        return f"Item {_name(self.item)} x{self.count}"


@dataclass(frozen=True)
class AreaReachable(Expression):
    """`area` is reachable at the given time of day."""
    area: Any
    tod: TimeOfDay = TimeOfDay.BOTH

    def __str__(self):
        return f"Area {_name(self.area)} ({self.tod.display_name.lower()})"


@dataclass(frozen=True)
class EventRef(Expression):
    """`event` has been achieved."""
    event: Any

    def __str__(self):
        return f"Event {_name(self.event)}"


@dataclass(frozen=True)
class OptionRef(Expression):
    """A randomizer option or trick is enabled."""
    name: str

    def __str__(self):
        return f"Option {self.name!r}"


@dataclass(frozen=True)
class NameRef(Expression):
    """Unresolved bare name: a macro, an item, or an event."""
    name: str
    count: int = 0
    offset: int = field(default=0, compare=False)

    def __str__(self):
        if self.count:
            return f"{self.name} x{self.count}"
        return self.name


@dataclass(frozen=True)
class Not(Expression):
    child: Expression

    def children(self):
        return (self.child,)

    def __str__(self):
        return f"!{_wrap(self.child)}"


@dataclass(frozen=True)
class And(Expression):
    items: Tuple[Expression, ...]

    def children(self):
        return self.items

    def __str__(self):
        return ' & '.join(_wrap(item) for item in self.items)


@dataclass(frozen=True)
class Or(Expression):
    items: Tuple[Expression, ...]

    def children(self):
        return self.items

    def __str__(self):
        return ' | '.join(_wrap(item) for item in self.items)


def _name(value: Any) -> str:
    return getattr(value, 'name', None) or str(value)


def _wrap(node: Expression) -> str:
    if isinstance(node, (And, Or)):
        return f"({node})"
    return str(node)


def collect_references(expression: Expression) -> Set[Tuple[str, Any]]:
    """
    Collect every base reference in an expression.

    Returns:
        Set of (kind, value) pairs where kind is 'item', 'area', 'event',
        'option' or 'name' (the last only for unresolved trees).
    """
    references = set()
    for node in expression.walk():
        if isinstance(node, ItemCount):
            references.add(('item', node.item))
        elif isinstance(node, AreaReachable):
            references.add(('area', node.area))
        elif isinstance(node, EventRef):
            references.add(('event', node.event))
        elif isinstance(node, OptionRef):
            references.add(('option', node.name))
        elif isinstance(node, NameRef):
            references.add(('name', node.name))
    return references


def is_resolved(expression: Expression) -> bool:
    """True if no NameRef remains in the tree."""
    return not any(isinstance(node, NameRef) for node in expression.walk())
