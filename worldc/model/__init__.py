"""World description model: item catalog, world tree and loader."""

from .items import ItemInfo, ItemKind, ItemRegistry
from .world import (
    AreaDef, AreaKey, EntranceTableEntry, ItemEntry, RegionDef, StageDef, World,
)
from .loader import Loader, load_world

__all__ = [
    'ItemInfo', 'ItemKind', 'ItemRegistry',
    'AreaDef', 'AreaKey', 'EntranceTableEntry', 'ItemEntry', 'RegionDef', 'StageDef', 'World',
    'Loader', 'load_world',
]
