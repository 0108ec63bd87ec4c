"""
Code generator - converts the world graph into Python source.

Produces a small package:
    items.py         Item enumeration and inventory layout
    logic.py         Closed enumerations and ordinal-indexed static tables
    requirements.py  Requirement key -> expression tree
    __init__.py      Re-exports

Everything is emitted in graph order, so identical input gives
byte-identical output.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from ..graph.model import WorldGraph
from ..model.items import ItemRegistry
from ..parser.ast_nodes import *
from ..runtime.connection import PairedConnection
from ..runtime.timeofday import TimeOfDay

HEADER = '"""{doc}\n\nGenerated by worldc. Do not edit.\n"""\n'

TOD_NAMES = {
    TimeOfDay.DAY: 'TimeOfDay.DAY',
    TimeOfDay.NIGHT: 'TimeOfDay.NIGHT',
    TimeOfDay.BOTH: 'TimeOfDay.BOTH',
}


def python_tuple(items: Sequence[str]) -> str:
    if not items:
        return '()'
    if len(items) == 1:
        return f"({items[0]},)"
    return f"({', '.join(items)})"


class CodeGenerator:
    """Generates Python modules from a WorldGraph."""

    def __init__(self, graph: WorldGraph, items: ItemRegistry, package: str = 'worldc'):
        """
        Args:
            graph: Resolved world graph
            items: Item catalog
            package: Import path of the package providing runtime and ast_nodes
        """
        self.graph = graph
        self.items = items
        self.package = package
        self.defined_events = {event.identifier for event in graph.events}
        self.lines: List[str] = []

    def generate(self) -> Dict[str, str]:
        """Generate every module. Returns filename -> source text."""
        return {
            '__init__.py': self.generate_init(),
            'items.py': self.generate_items(),
            'logic.py': self.generate_logic(),
            'requirements.py': self.generate_requirements(),
        }

    # ------------------------------------------------------------------
    # Emission helpers

    def emit(self, line: str = ""):
        self.lines.append(line)

    def start(self, doc: str):
        self.lines = [HEADER.format(doc=doc).rstrip('\n')]

    def finish(self) -> str:
        source = '\n'.join(self.lines).rstrip('\n') + '\n'
        self.lines = []
        return source

    def emit_enum(self, name: str, members: Iterable[str]):
        self.emit()
        self.emit()
        self.emit(f"class {name}(IntEnum):")
        count = 0
        for ordinal, member in enumerate(members):
            self.emit(f"    {member} = {ordinal}")
            count += 1
        if count == 0:
            self.emit("    pass")

    def emit_table(self, name: str, rows: Iterable[Any], render: Callable[[Any], str],
                   labels: Optional[Sequence[str]] = None):
        """Emit a tuple indexed by ordinal, one row per line."""
        self.emit()
        self.emit(f"{name} = (")
        for index, row in enumerate(rows):
            line = f"    {render(row)},"
            if labels is not None:
                line += f"  # {labels[index]}"
            self.emit(line)
        self.emit(")")

    # ------------------------------------------------------------------
    # Modules

    def generate_init(self) -> str:
        self.start("Compiled world logic.")
        self.emit()
        self.emit("from .items import *")
        self.emit("from .logic import *")
        self.emit("from .requirements import REQUIREMENTS")
        return self.finish()

    def generate_items(self) -> str:
        items = self.items.all_items()
        self.start("Item enumeration and inventory layout.")
        self.emit()
        self.emit("from enum import IntEnum")
        self.emit()
        self.emit(f"from {self.package}.runtime import ItemCollection")
        self.emit()
        self.emit("__all__ = ['Item', 'ITEM_NAMES', 'FLAG_ITEM_COUNT', 'COUNTED_ITEM_COUNT',")
        self.emit("           'new_item_collection']")

        self.emit_enum('Item', (item.identifier for item in items))
        self.emit()
        self.emit_table('ITEM_NAMES', items, lambda item: repr(item.name))
        self.emit()
        self.emit(f"FLAG_ITEM_COUNT = {self.items.flag_count}")
        self.emit(f"COUNTED_ITEM_COUNT = {self.items.counted_count}")
        self.emit()
        self.emit()
        self.emit("def new_item_collection() -> ItemCollection:")
        self.emit("    return ItemCollection(FLAG_ITEM_COUNT, COUNTED_ITEM_COUNT)")
        return self.finish()

    def generate_logic(self) -> str:
        g = self.graph
        regions = [r.identifier for r in g.regions]
        stages = [s.identifier for s in g.stages]
        areas = [a.identifier for a in g.areas]
        locations = [loc.identifier for loc in g.locations]
        events = [e.identifier for e in g.events]
        exits = [e.identifier for e in g.exits]
        entrances = [e.identifier for e in g.entrances]

        def ref(enum: str, names: List[str]) -> Callable[[Optional[int]], str]:
            def render(index: Optional[int]) -> str:
                if index is None:
                    return 'None'
                return f"{enum}.{names[index]}"
            return render

        region_ref = ref('Region', regions)
        stage_ref = ref('Stage', stages)
        area_ref = ref('Area', areas)
        location_ref = ref('Location', locations)
        exit_ref = ref('Exit', exits)
        entrance_ref = ref('Entrance', entrances)

        def refs(render: Callable[[int], str]) -> Callable[[List[int]], str]:
            return lambda indices: python_tuple([render(i) for i in indices])

        def logic_refs(pairs) -> str:
            return python_tuple([f"({area_ref(area)}, RequirementKey.{key})" for area, key in pairs])

        def door(connection: PairedConnection, render: Callable[[int], str]) -> str:
            if connection.is_none():
                return "PairedConnection.none()"
            return f"PairedConnection.{connection.side.value}({render(connection.partner)})"

        self.start("World enumerations and static tables.")
        self.emit()
        self.emit("from enum import IntEnum")
        self.emit()
        self.emit(f"from {self.package}.runtime import PairedConnection, TimeOfDay")

        self.emit_enum('Region', regions)
        self.emit_enum('Stage', stages)
        self.emit_enum('Area', areas)
        self.emit_enum('Location', locations)
        self.emit_enum('Event', events)
        self.emit_enum('Exit', exits)
        self.emit_enum('Entrance', entrances)
        self.emit_enum('RequirementKey', g.requirement_keys())

        self.emit()
        self.emit_table('REGION_NAMES', g.regions, lambda r: repr(r.name))
        self.emit_table('REGION_STAGES', g.regions, lambda r: refs(stage_ref)(r.stages), regions)

        self.emit_table('STAGE_NAMES', g.stages, lambda s: repr(s.name))
        self.emit_table('STAGE_REGION', g.stages, lambda s: region_ref(s.region), stages)
        self.emit_table('STAGE_AREAS', g.stages, lambda s: refs(area_ref)(s.areas), stages)

        self.emit_table('AREA_NAMES', g.areas, lambda a: repr(a.name))
        self.emit_table('AREA_STAGE', g.areas, lambda a: stage_ref(a.stage), areas)
        self.emit_table('AREA_POSSIBLE_TOD', g.areas, lambda a: TOD_NAMES[a.possible_tod], areas)
        self.emit_table('AREA_CAN_SLEEP', g.areas, lambda a: repr(a.can_sleep), areas)
        self.emit_table('AREA_LOCATIONS', g.areas, lambda a: refs(location_ref)(a.locations), areas)
        self.emit_table('AREA_EXITS', g.areas, lambda a: refs(exit_ref)(a.exits), areas)
        self.emit_table('AREA_ENTRANCES', g.areas, lambda a: refs(entrance_ref)(a.entrances), areas)
        self.emit_table('AREA_LOGIC_EXITS', g.areas, lambda a: logic_refs(a.logic_exits), areas)
        self.emit_table('AREA_LOGIC_ENTRANCES', g.areas,
                        lambda a: logic_refs(a.logic_entrances), areas)

        self.emit_table('LOCATION_NAMES', g.locations, lambda loc: repr(loc.name))
        self.emit_table('LOCATION_AREA', g.locations, lambda loc: area_ref(loc.area), locations)
        self.emit_table('LOCATION_REQUIREMENT', g.locations,
                        lambda loc: f"RequirementKey.{loc.requirement}", locations)

        self.emit_table('EVENT_NAMES', g.events, lambda e: repr(e.name))
        self.emit_table('EVENT_SOURCES', g.events, lambda e: refs(area_ref)(e.sources), events)
        self.emit_table('EVENT_REQUIREMENT', g.events,
                        lambda e: f"RequirementKey.{e.requirement}", events)

        self.emit_table('EXIT_NAMES', g.exits, lambda e: repr(e.name))
        self.emit_table('EXIT_AREA', g.exits, lambda e: area_ref(e.area), exits)
        self.emit_table('EXIT_TO', g.exits, lambda e: area_ref(e.to), exits)
        self.emit_table('EXIT_REQUIREMENT', g.exits,
                        lambda e: f"RequirementKey.{e.requirement}", exits)
        self.emit_table('EXIT_VANILLA_ENTRANCE', g.exits,
                        lambda e: entrance_ref(e.vanilla_entrance), exits)
        self.emit_table('EXIT_COUPLED_ENTRANCE', g.exits,
                        lambda e: entrance_ref(e.coupled_entrance), exits)
        self.emit_table('EXIT_DISAMBIGUATION', g.exits, lambda e: repr(e.disambiguation), exits)
        self.emit_table('EXIT_DOOR_CONNECTION', g.exits, lambda e: door(e.door, exit_ref), exits)
        self.emit_table('EXIT_SHUFFLEABLE', g.exits, lambda e: repr(e.shuffleable), exits)
        self.emit_table('EXIT_PATCH_INFO', g.exits, lambda e: repr(e.patch_info), exits)

        self.emit_table('ENTRANCE_NAMES', g.entrances, lambda e: repr(e.name))
        self.emit_table('ENTRANCE_AREA', g.entrances, lambda e: area_ref(e.area), entrances)
        self.emit_table('ENTRANCE_EXITS', g.entrances, lambda e: refs(exit_ref)(e.exits), entrances)
        self.emit_table('ENTRANCE_COUPLED_EXIT', g.entrances,
                        lambda e: exit_ref(e.coupled_exit), entrances)
        self.emit_table('ENTRANCE_DOOR_CONNECTION', g.entrances,
                        lambda e: door(e.door, entrance_ref), entrances)
        self.emit_table('ENTRANCE_PATCH_INFO', g.entrances, lambda e: repr(e.patch_info), entrances)
        return self.finish()

    def generate_requirements(self) -> str:
        self.start("Compiled requirement expressions.")
        self.emit()
        self.emit(f"from {self.package}.parser.ast_nodes import (")
        self.emit("    And, AreaReachable, EventRef, Fixed, ItemCount, Not, OptionRef, Or,")
        self.emit(")")
        self.emit(f"from {self.package}.runtime import TimeOfDay")
        self.emit()
        self.emit("from .items import Item")
        self.emit("from .logic import Area, Event, RequirementKey")
        self.emit()
        self.emit("REQUIREMENTS = {")
        for key, expression in self.graph.requirements.items():
            self.emit(f"    RequirementKey.{key}: {self.render(expression)},")
        self.emit("}")
        return self.finish()

    def render(self, node: Expression) -> str:
        """Render an expression tree as a Python constructor expression."""
        if isinstance(node, Fixed):
            return f"Fixed({node.value!r})"
        if isinstance(node, ItemCount):
            return f"ItemCount(Item.{node.item}, {node.count})"
        if isinstance(node, AreaReachable):
            return f"AreaReachable(Area.{node.area}, {TOD_NAMES[node.tod]})"
        if isinstance(node, EventRef):
            if node.event not in self.defined_events:
                # an event nothing grants can never be achieved
                return "Fixed(False)"
            return f"EventRef(Event.{node.event})"
        if isinstance(node, OptionRef):
            return f"OptionRef({node.name!r})"
        if isinstance(node, Not):
            return f"Not({self.render(node.child)})"
        if isinstance(node, (And, Or)):
            children = python_tuple([self.render(item) for item in node.items])
            return f"{type(node).__name__}({children})"
        raise TypeError(f"Cannot emit unresolved expression node: {node!r}")


def generate_code(graph: WorldGraph, items: ItemRegistry, package: str = 'worldc') -> Dict[str, str]:
    """Convenience function to generate every module."""
    return CodeGenerator(graph, items, package).generate()
