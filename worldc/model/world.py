"""
World description data structures.

Plain containers filled by the loader. They hold the raw strings from the
source files; nothing here is resolved or validated beyond its shape.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Tuple

from ..naming import area_identifier
from ..runtime.connection import DoorSide
from ..runtime.timeofday import TimeOfDay
from .items import ItemKind


class AreaKey(NamedTuple):
    """Stage-qualified area name."""
    stage: str
    area: str

    @property
    def identifier(self) -> str:
        return area_identifier(self.stage, self.area)

    @property
    def display_name(self) -> str:
        return f"{self.stage} - {self.area}"

    def __str__(self):
        return self.display_name


@dataclass
class AreaDef:
    name: str
    force_tod: Optional[TimeOfDay] = None
    can_sleep: bool = False
    locations: Dict[str, str] = field(default_factory=dict)
    events: Dict[str, str] = field(default_factory=dict)
    map_exits: Dict[str, str] = field(default_factory=dict)
    logic_exits: Dict[str, str] = field(default_factory=dict)
    macros: Dict[str, str] = field(default_factory=dict)
    source: str = ""  # "file:line" of the definition


@dataclass
class StageDef:
    name: str
    force_tod: Optional[TimeOfDay] = None
    areas: Dict[str, AreaDef] = field(default_factory=dict)
    source: str = ""


@dataclass
class RegionDef:
    name: str
    force_tod: Optional[TimeOfDay] = None
    stages: Dict[str, StageDef] = field(default_factory=dict)
    source: str = ""


@dataclass
class ItemEntry:
    name: str
    kind: ItemKind
    id: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class EntranceTableEntry:
    """One physical entrance; only stage, to_stage, disambiguation and door matter here."""
    stage: str
    to_stage: str
    disambiguation: Optional[str] = None
    door: DoorSide = DoorSide.NONE
    orig: Dict[str, Any] = field(default_factory=dict)
    scens: List[Dict[str, Any]] = field(default_factory=list)
    source: str = ""


@dataclass
class World:
    """Everything the loader read, ready for the graph builder."""
    regions: Dict[str, RegionDef] = field(default_factory=dict)
    macros: Dict[str, str] = field(default_factory=dict)
    items: List[ItemEntry] = field(default_factory=list)
    entrances: List[EntranceTableEntry] = field(default_factory=list)

    def iter_regions(self) -> Iterator[RegionDef]:
        for name in sorted(self.regions):
            yield self.regions[name]

    def iter_stages(self) -> Iterator[Tuple[RegionDef, StageDef]]:
        for region in self.iter_regions():
            for name in sorted(region.stages):
                yield region, region.stages[name]

    def iter_areas(self) -> Iterator[Tuple[RegionDef, StageDef, AreaDef]]:
        """Every area in name-sorted region/stage/area order."""
        for region, stage in self.iter_stages():
            for name in sorted(stage.areas):
                yield region, stage, stage.areas[name]

    def area_keys(self) -> List[AreaKey]:
        return [AreaKey(stage.name, area.name) for _, stage, area in self.iter_areas()]

    def event_names(self) -> List[str]:
        names = set()
        for _, _, area in self.iter_areas():
            names.update(area.events)
        return sorted(names)
