"""
Macro expansion and name resolution for requirement expressions.

Bare names left by the parser are resolved against, in order: the literal
names, the macro scopes (innermost first), the item catalog, trick/option
names and the known events. Macro bodies are compiled lazily the first time
they are used and cached on their scope, so every macro is parsed once no
matter how many requirements reference it.
"""

from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..errors import (
    InvalidCountError, MacroCycleError, RequirementError,
    UnknownAreaError, UnknownItemError, UnknownMacroError,
)
from ..model.items import ItemRegistry
from ..model.world import AreaKey
from ..naming import to_identifier
from ..runtime.inventory import MAX_ITEM_COUNT
from ..runtime.timeofday import TimeOfDay
from .ast_nodes import *
from .parser import parse_requirement

LITERALS = {
    'Nothing': Fixed(True),
    'true': Fixed(True),
    'Impossible': Fixed(False),
    'false': Fixed(False),
}

TIME_LITERALS = {
    'Daytime': TimeOfDay.DAY,
    'Nighttime': TimeOfDay.NIGHT,
}


class MacroScope:
    """
    One level of macro definitions.

    The global scope has no area; an area's local scope carries the area so
    that its macro bodies resolve Daytime and stage-relative area names.
    """

    def __init__(self, name: str, macros: Dict[str, str], area: Optional[AreaKey] = None):
        self.name = name
        self.macros = dict(macros)
        self.area = area
        self.compiled: Dict[str, Expression] = {}
        self.used: Set[str] = set()

    def __contains__(self, name: str) -> bool:
        return name in self.macros

    def unused(self) -> List[str]:
        """Macro names never referenced, in definition order."""
        return [name for name in self.macros if name not in self.used]

    def __repr__(self):
        return f"MacroScope({self.name!r}, {len(self.macros)} macros)"


class MacroExpander:
    """Resolves a parsed requirement into a tree with no NameRef left."""

    def __init__(self, scopes: List[MacroScope], items: ItemRegistry,
                 areas: Optional[Iterable[AreaKey]] = None,
                 events: Optional[Iterable[str]] = None,
                 current_area: Optional[AreaKey] = None):
        """
        Args:
            scopes: Macro scopes, global first
            items: Item catalog
            areas: Every known area; None accepts any area name
            events: Every defined event name; None treats unknown names as events
            current_area: Area owning the requirement being compiled
        """
        self.scopes = scopes
        self.items = items
        self.areas = areas if areas is None or isinstance(areas, (set, frozenset)) else set(areas)
        self.events = events if events is None or isinstance(events, (set, frozenset)) else set(events)
        self.current_area = current_area
        # (scope index, macro name) pairs whose bodies are being compiled,
        # in expansion order
        self.expanding: List[Tuple[int, str]] = []
        # expanding pairs whose body skipped an outer expanding definition;
        # their result depends on the expansion stack and is not cached
        self.context_bound: Set[Tuple[int, str]] = set()

    def compile(self, text: str) -> Expression:
        """Parse and fully resolve requirement text in the innermost scope."""
        return self._compile_at(text, len(self.scopes) - 1, self.current_area)

    def _compile_at(self, text: str, depth: int, area: Optional[AreaKey]) -> Expression:
        display = area.display_name if area else None
        tree = parse_requirement(text, display)
        return self.resolve(tree, depth, area, text)

    def resolve(self, node: Expression, depth: int, area: Optional[AreaKey],
                text: str = "") -> Expression:
        """Resolve every reference in a parsed tree."""
        if isinstance(node, NameRef):
            return self.resolve_name(node, depth, area, text)
        if isinstance(node, ItemCount):
            return self.resolve_item(node.item, node.count, area, text)
        if isinstance(node, AreaReachable):
            return AreaReachable(self.resolve_area(node.area, area, text), node.tod)
        if isinstance(node, EventRef):
            return EventRef(to_identifier(node.event))
        if isinstance(node, Not):
            return Not(self.resolve(node.child, depth, area, text))
        if isinstance(node, And):
            return And(tuple(self.resolve(item, depth, area, text) for item in node.items))
        if isinstance(node, Or):
            return Or(tuple(self.resolve(item, depth, area, text) for item in node.items))
        return node

    def resolve_name(self, node: NameRef, depth: int, area: Optional[AreaKey],
                     text: str) -> Expression:
        name = node.name
        display = area.display_name if area else None

        if not node.count:
            if name in LITERALS:
                return LITERALS[name]
            if name in TIME_LITERALS:
                if area is None:
                    raise RequirementError(f"'{name}' used outside of an area", text)
                return AreaReachable(area.identifier, TIME_LITERALS[name])
            macro = self.expand_macro(name, depth, text, display)
            if macro is not None:
                return macro

        if name in self.items:
            return self.resolve_item(name, node.count or 1, area, text)
        if node.count:
            raise UnknownItemError(name, text, display)

        if 'Trick' in name or 'Option' in name:
            return OptionRef(name)

        if self.events is None or name in self.events:
            return EventRef(to_identifier(name))

        raise UnknownMacroError(name, text, display)

    def expand_macro(self, name: str, depth: int, text: str,
                     display: Optional[str]) -> Optional[Expression]:
        """
        Look a macro up from `depth` outwards and return its compiled body.

        A macro that is currently being expanded is skipped so that a local
        macro can build on the global macro it shadows. If the only
        definitions left are all being expanded, the references form a cycle.
        Bodies compiled while such a skip was in effect are not cached.

        Returns:
            The compiled body, or None if no scope defines `name`
        """
        found = False
        for index in range(depth, -1, -1):
            scope = self.scopes[index]
            if name not in scope:
                continue
            found = True
            key = (index, name)
            if key in self.expanding:
                self.context_bound.update(self.expanding[self.expanding.index(key) + 1:])
                continue
            scope.used.add(name)
            if name in scope.compiled:
                return scope.compiled[name]
            self.expanding.append(key)
            try:
                body = self._compile_at(scope.macros[name], index, scope.area)
            finally:
                self.expanding.pop()
                bound = key in self.context_bound
                self.context_bound.discard(key)
            if not bound:
                scope.compiled[name] = body
            return body

        if found:
            chain = [macro for _, macro in self.expanding] + [name]
            start = chain.index(name)
            raise MacroCycleError(chain[start:], display)
        return None

    def resolve_item(self, name: str, count: int, area: Optional[AreaKey],
                     text: str) -> ItemCount:
        display = area.display_name if area else None
        info = self.items.lookup(name)
        if info is None:
            raise UnknownItemError(name, text, display)
        if not 1 <= count <= MAX_ITEM_COUNT:
            raise InvalidCountError(
                f"Count {count} for item '{name}' is outside 1..{MAX_ITEM_COUNT}", text, display)
        if info.is_flag and count > 1:
            raise InvalidCountError(
                f"Item '{name}' can only be owned once, cannot require x{count}", text, display)
        return ItemCount(info.identifier, count)

    def resolve_area(self, name: str, area: Optional[AreaKey], text: str) -> str:
        """Resolve 'Stage - Area', or a bare area name in the current stage."""
        display = area.display_name if area else None
        if ' - ' in name:
            stage, area_name = name.split(' - ', 1)
            key = AreaKey(stage.strip(), area_name.strip())
        elif area is not None:
            key = AreaKey(area.stage, name)
        else:
            raise UnknownAreaError(name, text, display)
        if self.areas is not None and key not in self.areas:
            raise UnknownAreaError(key.display_name, text, display)
        return key.identifier


def compile_requirement(text: str, current_area: Optional[AreaKey],
                        macro_scopes: List[MacroScope], items: ItemRegistry,
                        areas: Optional[Iterable[AreaKey]] = None,
                        events: Optional[Iterable[str]] = None) -> Expression:
    """
    Compile requirement text into a resolved expression tree.

    Raises:
        ParseError: Text does not match the grammar
        UnknownMacroError: A bare name matches nothing
        UnknownItemError: An item reference names no catalog item
        UnknownAreaError: An area reference names no known area
        MacroCycleError: Macros reference each other in a cycle
        InvalidCountError: Item count out of range or on a flag item
    """
    expander = MacroExpander(macro_scopes, items, areas, events, current_area)
    return expander.compile(text)
