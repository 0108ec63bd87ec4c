"""World graph: resolved entities and the builder that produces them."""

from .model import Area, Entrance, Event, Exit, Location, LogicEdge, Region, Stage, WorldGraph
from .builder import GraphBuilder, build_graph

__all__ = [
    'Area', 'Entrance', 'Event', 'Exit', 'Location', 'LogicEdge', 'Region', 'Stage',
    'WorldGraph', 'GraphBuilder', 'build_graph',
]
