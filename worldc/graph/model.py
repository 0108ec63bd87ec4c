"""
Resolved world graph.

Every entity lives in a dense list on WorldGraph and refers to other
entities by list index; the index is the entity's ordinal in the generated
enumerations.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..model.world import AreaKey
from ..parser.ast_nodes import Expression
from ..runtime.connection import DoorSide, PairedConnection
from ..runtime.timeofday import TimeOfDay


@dataclass
class Region:
    index: int
    name: str
    identifier: str
    stages: List[int] = field(default_factory=list)


@dataclass
class Stage:
    index: int
    name: str
    identifier: str
    region: int
    areas: List[int] = field(default_factory=list)


@dataclass
class Area:
    index: int
    key: AreaKey
    identifier: str
    stage: int
    possible_tod: TimeOfDay = TimeOfDay.BOTH
    can_sleep: bool = False
    locations: List[int] = field(default_factory=list)
    exits: List[int] = field(default_factory=list)
    entrances: List[int] = field(default_factory=list)
    # (other area, requirement key)
    logic_exits: List[Tuple[int, str]] = field(default_factory=list)
    logic_entrances: List[Tuple[int, str]] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.key.display_name


@dataclass
class Location:
    index: int
    name: str
    identifier: str
    area: int

    @property
    def requirement(self) -> str:
        return self.identifier


@dataclass
class Event:
    index: int
    name: str
    identifier: str
    sources: List[int] = field(default_factory=list)

    @property
    def requirement(self) -> str:
        return self.identifier


@dataclass
class Exit:
    index: int
    name: str
    identifier: str
    area: int
    to: int
    vanilla_entrance: int
    disambiguation: Optional[str] = None
    side: DoorSide = DoorSide.NONE
    door: PairedConnection = field(default_factory=PairedConnection.none)
    coupled_entrance: Optional[int] = None
    shuffleable: bool = False
    patch_info: List[Dict[str, Any]] = field(default_factory=list)
    key: str = ""  # map-exit key as written in the source

    @property
    def requirement(self) -> str:
        return self.identifier


@dataclass
class Entrance:
    index: int
    name: str
    identifier: str
    area: int
    disambiguation: Optional[str] = None
    side: DoorSide = DoorSide.NONE
    door: PairedConnection = field(default_factory=PairedConnection.none)
    exits: List[int] = field(default_factory=list)
    coupled_exit: Optional[int] = None
    patch_info: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LogicEdge:
    index: int
    identifier: str
    from_area: int
    to_area: int

    @property
    def requirement(self) -> str:
        return self.identifier


@dataclass
class WorldGraph:
    regions: List[Region] = field(default_factory=list)
    stages: List[Stage] = field(default_factory=list)
    areas: List[Area] = field(default_factory=list)
    locations: List[Location] = field(default_factory=list)
    events: List[Event] = field(default_factory=list)
    exits: List[Exit] = field(default_factory=list)
    entrances: List[Entrance] = field(default_factory=list)
    logic_edges: List[LogicEdge] = field(default_factory=list)
    # requirement key -> compiled expression, in emission order
    requirements: Dict[str, Expression] = field(default_factory=dict)
    # requirement key -> ('location' | 'exit' | 'event' | 'logic', index)
    requirement_owners: Dict[str, Tuple[str, int]] = field(default_factory=dict)

    def event_by_name(self, name: str) -> Optional[Event]:
        for event in self.events:
            if event.name == name:
                return event
        return None

    def coupled_exit_of(self, exit: Exit) -> Optional[Exit]:
        """The exit coupled back from this exit's coupled entrance."""
        if exit.coupled_entrance is None:
            return None
        coupled = self.entrances[exit.coupled_entrance].coupled_exit
        if coupled is None:
            return None
        return self.exits[coupled]

    def requirement_keys(self) -> List[str]:
        return list(self.requirements)
