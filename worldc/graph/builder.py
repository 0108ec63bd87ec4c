"""
World graph builder.

Cross-references the loaded world description: assigns every region, stage,
area, location, event, exit and entrance its ordinal and identifier,
synthesizes the entrance for every map exit, pairs double doors, couples
each exit with its way back, and compiles every requirement.

Errors are collected while building and raised together at the end so that
one run reports every problem in the data.
"""

import re
import sys
from typing import Dict, List, Optional, Tuple

from ..errors import (
    CompilationError, DanglingReferenceError, InvalidAreaError,
    InvalidDoorTableError, MalformedExitError, WorldcError,
)
from ..model.items import ItemRegistry
from ..model.world import AreaDef, AreaKey, EntranceTableEntry, RegionDef, StageDef, World
from ..naming import (
    Namer, entrance_display_name, entrance_identifier, exit_display_name,
    exit_identifier, location_identifier, logic_exit_identifier,
)
from ..parser.ast_nodes import And, AreaReachable, Expression, Or
from ..parser.macro_expander import MacroExpander, MacroScope
from ..runtime.connection import DoorSide, PairedConnection
from ..runtime.timeofday import TimeOfDay
from .model import Area, Entrance, Event, Exit, Location, LogicEdge, Region, Stage, WorldGraph

# "Stage - Area" or "Stage - Area (Disambiguation)"
EXIT_KEY_RE = re.compile(r'^(?P<stage>.+?) - (?P<area>.+?)(?: \((?P<dis>[^()]+)\))?$')

DOOR_WORDS = {
    DoorSide.NONE: None,
    DoorSide.NEAR: 'Near',
    DoorSide.FAR: 'Far',
}


class GraphBuilder:
    """Builds a WorldGraph from a World and an item catalog."""

    def __init__(self, world: World, items: ItemRegistry, namer: Optional[Namer] = None,
                 global_scope: Optional[MacroScope] = None,
                 resolve_events: bool = True, verbose: bool = False):
        """
        Args:
            world: Loaded world description
            items: Item catalog
            namer: Identifier registry shared with the rest of the compile
            global_scope: Global macros; built from world.macros if not given
            resolve_events: If False, unknown bare names become event
                            references instead of errors
            verbose: Print progress to stderr
        """
        self.world = world
        self.items = items
        self.namer = namer or Namer()
        self.global_scope = global_scope or MacroScope('global', world.macros)
        self.resolve_events = resolve_events
        self.verbose = verbose

        self.graph = WorldGraph()
        self.errors: List[Exception] = []
        self.area_index: Dict[AreaKey, int] = {}
        self.event_names = frozenset(world.event_names())
        self.known_areas: frozenset = frozenset()
        self.entrance_by_identifier: Dict[str, Entrance] = {}
        # event name -> [(area index, requirement)]
        self.event_sources: Dict[str, List[Tuple[int, Expression]]] = {}

    def log(self, message: str):
        if self.verbose:
            print(f"[graph] {message}", file=sys.stderr)

    def build(self) -> WorldGraph:
        """
        Build the graph.

        Raises:
            CompilationError: With every error found
        """
        self.build_hierarchy()

        for region, stage, area_def in self.world.iter_areas():
            area = self.graph.areas[self.area_index[AreaKey(stage.name, area_def.name)]]
            self.build_area(region, stage, area_def, area)

        self.build_events()
        self.couple_exits()

        self.log(f"{len(self.graph.areas)} areas, {len(self.graph.locations)} locations, "
                 f"{len(self.graph.events)} events, {len(self.graph.exits)} exits, "
                 f"{len(self.graph.entrances)} entrances, "
                 f"{len(self.graph.logic_edges)} logic edges")

        if self.errors:
            raise CompilationError(self.errors)
        return self.graph

    def _guard(self, action, *args):
        """Run one build step, recording a compile error instead of aborting."""
        try:
            return action(*args)
        except WorldcError as e:
            self.errors.append(e)
            return None

    # ------------------------------------------------------------------
    # Regions, stages, areas

    def build_hierarchy(self):
        graph = self.graph
        for region_def in self.world.iter_regions():
            identifier = self._guard(self.namer.register, 'region', region_def.name)
            region = Region(len(graph.regions), region_def.name, identifier or region_def.name)
            graph.regions.append(region)

            for stage_name in sorted(region_def.stages):
                stage_def = region_def.stages[stage_name]
                identifier = self._guard(self.namer.register, 'stage', stage_name)
                stage = Stage(len(graph.stages), stage_name, identifier or stage_name, region.index)
                graph.stages.append(stage)
                region.stages.append(stage.index)

                for area_name in sorted(stage_def.areas):
                    area_def = stage_def.areas[area_name]
                    key = AreaKey(stage_name, area_name)
                    identifier = self._guard(self.register_area, key)
                    area = Area(len(graph.areas), key, identifier or key.display_name, stage.index)
                    area.possible_tod = self.effective_tod(region_def, stage_def, area_def)
                    area.can_sleep = area_def.can_sleep
                    if area.can_sleep and area.possible_tod != TimeOfDay.BOTH:
                        self.errors.append(InvalidAreaError(
                            f"Area '{key}' can sleep but is forced to "
                            f"{area.possible_tod.display_name}"))
                    graph.areas.append(area)
                    stage.areas.append(area.index)
                    self.area_index[key] = area.index

        self.known_areas = frozenset(self.area_index)

    def register_area(self, key: AreaKey) -> str:
        return self.namer.register('area', key.display_name, key.identifier)

    @staticmethod
    def effective_tod(region: RegionDef, stage: StageDef, area: AreaDef) -> TimeOfDay:
        """The most specific forced time of day, else Both."""
        for forced in (area.force_tod, stage.force_tod, region.force_tod):
            if forced is not None:
                return forced
        return TimeOfDay.BOTH

    # ------------------------------------------------------------------
    # Per-area contents

    def build_area(self, region: RegionDef, stage: StageDef, area_def: AreaDef, area: Area):
        scope = MacroScope(area.name, area_def.macros, area.key)
        expander = MacroExpander(
            [self.global_scope, scope],
            self.items,
            areas=self.known_areas,
            events=self.event_names if self.resolve_events else None,
            current_area=area.key,
        )

        for name in sorted(area_def.locations):
            self._guard(self.add_location, region, area, name,
                        area_def.locations[name], expander)

        for name in sorted(area_def.events):
            requirement = self._guard(self.compile, expander, area, area_def.events[name])
            if requirement is not None:
                self.event_sources.setdefault(name, []).append((area.index, requirement))

        for key in sorted(area_def.map_exits):
            self._guard(self.add_map_exit, stage, area, key, area_def.map_exits[key], expander)

        for target in sorted(area_def.logic_exits):
            self._guard(self.add_logic_exit, stage, area, target,
                        area_def.logic_exits[target], expander)

    def compile(self, expander: MacroExpander, area: Area, text: str) -> Expression:
        """Compile requirement text with the implicit owner-reachable precondition."""
        body = expander.compile(text)
        return And((AreaReachable(area.identifier, TimeOfDay.BOTH), body))

    def add_requirement(self, kind: str, index: int, identifier: str, expression: Expression):
        self.namer.register('requirement', f"{kind}:{identifier}", identifier)
        self.graph.requirements[identifier] = expression
        self.graph.requirement_owners[identifier] = (kind, index)

    def add_location(self, region: RegionDef, area: Area, name: str, text: str,
                     expander: MacroExpander):
        identifier = self.namer.register('location', f"{area.name}: {name}",
                                         location_identifier(region.name, name))
        requirement = self.compile(expander, area, text)
        location = Location(len(self.graph.locations), name, identifier, area.index)
        self.add_requirement('location', location.index, identifier, requirement)
        self.graph.locations.append(location)
        area.locations.append(location.index)

    def add_logic_exit(self, stage: StageDef, area: Area, target: str, text: str,
                       expander: MacroExpander):
        target_key = AreaKey(stage.name, target)
        if target_key not in self.area_index:
            raise DanglingReferenceError(target, area.name, f"no area '{target}' in stage '{stage.name}'")
        to_area = self.graph.areas[self.area_index[target_key]]
        identifier = logic_exit_identifier(area.identifier, target)
        requirement = self.compile(expander, area, text)

        edge = LogicEdge(len(self.graph.logic_edges), identifier, area.index, to_area.index)
        self.add_requirement('logic', edge.index, identifier, requirement)
        self.graph.logic_edges.append(edge)
        area.logic_exits.append((to_area.index, identifier))
        to_area.logic_entrances.append((area.index, identifier))

    # ------------------------------------------------------------------
    # Map exits and entrances

    def add_map_exit(self, stage: StageDef, area: Area, key: str, text: str,
                     expander: MacroExpander):
        match = EXIT_KEY_RE.match(key)
        if not match:
            raise MalformedExitError(key, area.name)
        destination = AreaKey(match.group('stage'), match.group('area'))
        if destination not in self.area_index:
            raise DanglingReferenceError(key, area.name)
        to_area = self.graph.areas[self.area_index[destination]]
        disambiguation = match.group('dis')

        definitions = self.door_definitions(stage.name, destination.stage, disambiguation)
        requirement = self.compile(expander, area, text)

        if not definitions:
            self.create_connection(stage, area, to_area, key, disambiguation, None, requirement)
            return

        if len(definitions) == 1:
            if definitions[0].door is not DoorSide.NONE:
                raise InvalidDoorTableError(
                    f"Exit '{key}' in {area.name} has a single entrance table entry "
                    f"with door '{definitions[0].door.value}'")
            self.create_connection(stage, area, to_area, key, disambiguation,
                                   definitions[0], requirement)
            return

        sides = sorted(definition.door.value for definition in definitions)
        if len(definitions) != 2 or sides != ['far', 'near']:
            raise InvalidDoorTableError(
                f"Exit '{key}' in {area.name} needs exactly one Near and one Far "
                f"entrance table entry, found: {', '.join(sides)}")

        near_def, far_def = sorted(definitions, key=lambda d: d.door is not DoorSide.NEAR)
        near_exit, near_entrance = self.create_connection(
            stage, area, to_area, key, disambiguation, near_def, requirement)
        far_exit, far_entrance = self.create_connection(
            stage, area, to_area, key, disambiguation, far_def, requirement)
        near_exit.door = PairedConnection.near(far_exit.index)
        far_exit.door = PairedConnection.far(near_exit.index)
        near_entrance.door = PairedConnection.near(far_entrance.index)
        far_entrance.door = PairedConnection.far(near_entrance.index)

    def door_definitions(self, stage: str, to_stage: str,
                         disambiguation: Optional[str]) -> List[EntranceTableEntry]:
        return [entry for entry in self.world.entrances
                if entry.stage == stage and entry.to_stage == to_stage
                and entry.disambiguation == disambiguation]

    def create_connection(self, stage: StageDef, area: Area, to_area: Area, key: str,
                          disambiguation: Optional[str],
                          definition: Optional[EntranceTableEntry],
                          requirement: Expression) -> Tuple[Exit, Entrance]:
        """Create one exit and its vanilla entrance (reused if it already exists)."""
        side = definition.door if definition else DoorSide.NONE
        door = DOOR_WORDS[side]
        to_stage = to_area.key.stage

        exit_id = exit_identifier(stage.name, area.key.area, to_stage, disambiguation, door)
        self.namer.register('exit', f"{area.name}: {key} {door or ''}".rstrip(), exit_id)

        entrance_id = entrance_identifier(to_stage, stage.name, disambiguation, door)
        # the same identifier at another area raises a collision here
        self.namer.register('entrance', f"{to_area.name}: {entrance_id}", entrance_id)
        entrance = self.entrance_by_identifier.get(entrance_id)
        if entrance is None:
            entrance = Entrance(
                index=len(self.graph.entrances),
                name=entrance_display_name(to_stage, stage.name, disambiguation, door),
                identifier=entrance_id,
                area=to_area.index,
                disambiguation=disambiguation,
                side=side,
                patch_info=dict(definition.orig) if definition else {},
            )
            self.graph.entrances.append(entrance)
            self.entrance_by_identifier[entrance_id] = entrance
            to_area.entrances.append(entrance.index)

        map_exit = Exit(
            index=len(self.graph.exits),
            name=exit_display_name(stage.name, area.key.area, to_stage, disambiguation, door),
            identifier=exit_id,
            area=area.index,
            to=to_area.index,
            vanilla_entrance=entrance.index,
            disambiguation=disambiguation,
            side=side,
            shuffleable=definition is not None,
            patch_info=list(definition.scens) if definition else [],
            key=key,
        )
        self.add_requirement('exit', map_exit.index, exit_id, requirement)
        self.graph.exits.append(map_exit)
        area.exits.append(map_exit.index)
        entrance.exits.append(map_exit.index)
        return map_exit, entrance

    def couple_exits(self):
        """
        Link each exit with the entrance that leads back.

        The coupled entrance sits in the exit's own area, has the mirrored
        name (stages swapped, same disambiguation, opposite door side) and is
        entered from the exit's destination area.
        """
        graph = self.graph
        for map_exit in graph.exits:
            origin = graph.areas[map_exit.area]
            destination = graph.areas[map_exit.to]
            mirrored = entrance_identifier(origin.key.stage, destination.key.stage,
                                           map_exit.disambiguation,
                                           DOOR_WORDS[map_exit.side.opposite()])
            entrance = self.entrance_by_identifier.get(mirrored)
            if entrance is None or entrance.area != map_exit.area:
                continue
            if not any(graph.exits[other].area == map_exit.to for other in entrance.exits):
                continue
            map_exit.coupled_entrance = entrance.index
            entrance.coupled_exit = map_exit.index


    # ------------------------------------------------------------------
    # Events

    def build_events(self):
        """One Event per name; its requirement is the Or over every defining area."""
        for name in sorted(self.event_names):
            sources = self.event_sources.get(name)
            if not sources:
                # every definition failed to compile; the errors are recorded
                continue
            identifier = self._guard(self.namer.register, 'event', name)
            if identifier is None:
                continue
            event = Event(len(self.graph.events), name, identifier,
                          [area for area, _ in sources])
            if len(sources) == 1:
                requirement = sources[0][1]
            else:
                requirement = Or(tuple(expression for _, expression in sources))
            self._guard(self.add_requirement, 'event', event.index, identifier, requirement)
            self.graph.events.append(event)


def build_graph(world: World, items: ItemRegistry, namer: Optional[Namer] = None,
                resolve_events: bool = True) -> WorldGraph:
    """Convenience function to build a graph with a fresh global macro scope."""
    return GraphBuilder(world, items, namer, resolve_events=resolve_events).build()
