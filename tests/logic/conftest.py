"""
Test fixtures and helpers for world logic compiler tests.

The key abstractions are:

- WorldBuilder: Builds an in-memory World without going through YAML
- AssertRequirement: Fluent API for compiling one requirement string
- AssertWorld: Fluent API for building a whole world graph and compiling it
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional, Type

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from worldc.compiler import LogicCompiler
from worldc.errors import CompilationError, WorldcError
from worldc.graph.builder import GraphBuilder
from worldc.graph.model import WorldGraph
from worldc.model.items import ItemKind, ItemRegistry
from worldc.model.world import (
    AreaDef, AreaKey, EntranceTableEntry, ItemEntry, RegionDef, StageDef, World,
)
from worldc.naming import Namer
from worldc.parser.ast_nodes import Expression, collect_references
from worldc.parser.macro_expander import MacroScope, compile_requirement
from worldc.runtime.connection import DoorSide
from worldc.runtime.timeofday import TimeOfDay


def make_items(flags: List[str] = (), counted: List[str] = ()) -> ItemRegistry:
    """Item registry with the given flag items followed by counted items."""
    entries = [(name, ItemKind.FLAG) for name in flags]
    entries += [(name, ItemKind.COUNTED) for name in counted]
    return ItemRegistry.from_entries(entries)


class WorldBuilder:
    """
    Builds a World for tests.

    Usage:
        world = WorldBuilder() \\
            .area("Cave", "Entrance", map_exits={"Forest - Clearing": "Nothing"}) \\
            .area("Forest", "Clearing") \\
            .item("Torch") \\
            .build()
    """

    def __init__(self):
        self.world = World()

    def area(self, stage: str, name: str, region: str = "Overworld",
             **fields) -> 'WorldBuilder':
        """Add an area; keyword arguments are AreaDef fields."""
        region_def = self.world.regions.setdefault(region, RegionDef(region))
        stage_def = region_def.stages.setdefault(stage, StageDef(stage))
        stage_def.areas[name] = AreaDef(name, **fields)
        return self

    def force_stage_tod(self, stage: str, tod: TimeOfDay, region: str = "Overworld") -> 'WorldBuilder':
        self.world.regions[region].stages[stage].force_tod = tod
        return self

    def macro(self, name: str, text: str) -> 'WorldBuilder':
        self.world.macros[name] = text
        return self

    def item(self, name: str, kind: ItemKind = ItemKind.FLAG) -> 'WorldBuilder':
        self.world.items.append(ItemEntry(name, kind))
        return self

    def counted_item(self, name: str) -> 'WorldBuilder':
        return self.item(name, ItemKind.COUNTED)

    def door(self, stage: str, to_stage: str, side: DoorSide = DoorSide.NONE,
             disambiguation: Optional[str] = None, **fields) -> 'WorldBuilder':
        self.world.entrances.append(
            EntranceTableEntry(stage, to_stage, disambiguation, side, **fields))
        return self

    def build(self) -> World:
        return self.world


class AssertRequirement:
    """
    Fluent assertion helper for compiling a single requirement.

    Usage:
        AssertRequirement("hasAxe & Area Grove (any)") \\
            .in_area("Woods", "Grove") \\
            .with_local_macro("hasAxe", "Item Axe") \\
            .with_item("Axe") \\
            .compiles_to(And((ItemCount("Axe"), AreaReachable("Woods_Grove", TimeOfDay.BOTH))))
    """

    def __init__(self, text: str):
        self.text = text
        self.area: Optional[AreaKey] = None
        self.global_macros: Dict[str, str] = {}
        self.local_macros: Dict[str, str] = {}
        self.flags: List[str] = []
        self.counted: List[str] = []
        self.events: Optional[List[str]] = None
        self.areas: Optional[List[AreaKey]] = None

    def in_area(self, stage: str, area: str) -> 'AssertRequirement':
        self.area = AreaKey(stage, area)
        return self

    def with_macro(self, name: str, text: str) -> 'AssertRequirement':
        self.global_macros[name] = text
        return self

    def with_local_macro(self, name: str, text: str) -> 'AssertRequirement':
        self.local_macros[name] = text
        return self

    def with_item(self, *names: str) -> 'AssertRequirement':
        self.flags.extend(names)
        return self

    def with_counted_item(self, *names: str) -> 'AssertRequirement':
        self.counted.extend(names)
        return self

    def with_event(self, *names: str) -> 'AssertRequirement':
        self.events = (self.events or []) + list(names)
        return self

    def with_areas(self, *names: str) -> 'AssertRequirement':
        """Restrict known areas; names are 'Stage - Area'."""
        self.areas = [AreaKey(*name.split(' - ', 1)) for name in names]
        return self

    def _compile(self) -> Expression:
        scopes = [MacroScope('global', self.global_macros)]
        if self.area is not None or self.local_macros:
            scopes.append(MacroScope('local', self.local_macros, self.area))
        events = self.events if self.events is not None else []
        return compile_requirement(self.text, self.area, scopes,
                                   make_items(self.flags, self.counted),
                                   areas=self.areas, events=events)

    def compiles(self) -> Expression:
        """Assert that the requirement compiles; returns the tree."""
        try:
            return self._compile()
        except WorldcError as e:
            pytest.fail(f"Expected requirement to compile, but got: {e}")

    def compiles_to(self, expected: Expression) -> Expression:
        actual = self.compiles()
        assert actual == expected, f"Expected {expected}, got {actual}"
        return actual

    def references(self, *expected) -> None:
        """Assert the exact set of (kind, value) references in the tree."""
        actual = collect_references(self.compiles())
        assert actual == set(expected), f"Expected references {set(expected)}, got {actual}"

    def does_not_compile(self, error_class: Type[Exception] = WorldcError) -> Exception:
        with pytest.raises(error_class) as info:
            self._compile()
        return info.value


class AssertWorld:
    """
    Fluent assertion helper for whole worlds.

    Usage:
        graph = AssertWorld(builder).builds()
        AssertWorld(builder).does_not_build(DanglingReferenceError)
        AssertWorld(builder).with_undefined_events().compiles().with_warnings("WLD0201")
    """

    def __init__(self, world):
        if isinstance(world, WorldBuilder):
            world = world.build()
        self.world = world
        self.allow_undefined_events = False
        self.simplify = True
        self.compiler: Optional[LogicCompiler] = None
        self.files: Dict[str, str] = {}

    def with_undefined_events(self) -> 'AssertWorld':
        self.allow_undefined_events = True
        return self

    def without_simplify(self) -> 'AssertWorld':
        self.simplify = False
        return self

    def builds(self) -> WorldGraph:
        """Assert that the graph builds; returns it."""
        namer = Namer()
        items = ItemRegistry.from_entries(self.world.items, namer)
        try:
            return GraphBuilder(self.world, items, namer,
                                resolve_events=not self.allow_undefined_events).build()
        except CompilationError as e:
            pytest.fail(f"Expected world to build, but got: {e}")

    def does_not_build(self, *error_classes: Type[Exception]) -> List[Exception]:
        """Assert that building fails with (at least) the given error classes."""
        namer = Namer()
        items = ItemRegistry.from_entries(self.world.items, namer)
        with pytest.raises(CompilationError) as info:
            GraphBuilder(self.world, items, namer,
                         resolve_events=not self.allow_undefined_events).build()
        errors = info.value.errors
        for error_class in error_classes:
            assert any(isinstance(error, error_class) for error in errors), \
                f"Expected a {error_class.__name__}, got {[type(e).__name__ for e in errors]}"
        return errors

    def compiles(self) -> 'AssertWorld':
        """Assert that the full compile succeeds."""
        self.compiler = LogicCompiler(allow_undefined_events=self.allow_undefined_events,
                                      simplify=self.simplify)
        try:
            self.files = self.compiler.compile_world(self.world)
        except WorldcError as e:
            pytest.fail(f"Expected world to compile, but got: {e}")
        return self

    def does_not_compile(self, error_class: Type[Exception] = WorldcError) -> Exception:
        compiler = LogicCompiler(allow_undefined_events=self.allow_undefined_events,
                                 simplify=self.simplify)
        with pytest.raises(error_class) as info:
            compiler.compile_world(self.world)
        return info.value

    def with_warnings(self, *codes: str) -> 'AssertWorld':
        warnings = self.compiler.get_warnings()
        for code in codes:
            assert any(w.startswith(code) for w in warnings), \
                f"Expected warning {code}, got {warnings}"
        return self

    def without_warnings(self, *codes: str) -> 'AssertWorld':
        warnings = self.compiler.get_warnings()
        for code in codes:
            assert not any(w.startswith(code) for w in warnings), \
                f"Unexpected warning {code} in {warnings}"
        return self

    def load_generated(self, tmp_path, package: str = 'generated_world'):
        """Write the generated package under tmp_path and import it."""
        import importlib

        target = tmp_path / package
        target.mkdir()
        for filename, source in self.files.items():
            (target / filename).write_text(source, encoding='utf-8')
        sys.path.insert(0, str(tmp_path))
        try:
            for name in list(sys.modules):
                if name == package or name.startswith(package + '.'):
                    del sys.modules[name]
            return importlib.import_module(package)
        finally:
            sys.path.remove(str(tmp_path))


@pytest.fixture
def world():
    return WorldBuilder()
