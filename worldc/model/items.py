"""
Item catalog.

Every item is either a flag item (owned or not) or a counted item (owned
0..255 times). Each kind gets its own dense ordinals in catalog order; the
global ordinal places all flag items first, then all counted items.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional

from ..errors import DuplicateItemError
from ..naming import Namer, to_identifier


class ItemKind(Enum):
    FLAG = 'flag'
    COUNTED = 'counted'

    @classmethod
    def from_catalog_type(cls, text: str) -> 'ItemKind':
        """Catalog types: Single is a flag, Counted and Consumable are counted."""
        value = str(text).strip().lower()
        if value == 'single':
            return cls.FLAG
        if value in ('counted', 'consumable'):
            return cls.COUNTED
        raise ValueError(f"Invalid item type: {text!r}")


@dataclass(frozen=True)
class ItemInfo:
    name: str
    kind: ItemKind
    ordinal: int
    global_ordinal: int
    identifier: str

    @property
    def is_flag(self) -> bool:
        return self.kind is ItemKind.FLAG


class ItemRegistry:
    """Name-indexed catalog of items."""

    def __init__(self, items: List[ItemInfo]):
        self.items = sorted(items, key=lambda item: item.global_ordinal)
        self.by_name: Dict[str, ItemInfo] = {item.name: item for item in self.items}
        self.by_identifier: Dict[str, ItemInfo] = {item.identifier: item for item in self.items}

    @classmethod
    def from_entries(cls, entries: Iterable, namer: Optional[Namer] = None) -> 'ItemRegistry':
        """
        Build the registry from catalog entries.

        Args:
            entries: Objects with `name` and `kind` (ItemEntry) or
                     (name, kind) pairs, in catalog order
            namer: Registry used to detect identifier collisions

        Raises:
            DuplicateItemError: If a name appears twice
            NameCollisionError: If two names sanitize to one identifier
        """
        namer = namer or Namer()
        seen = set()
        flags = []
        counted = []
        for entry in entries:
            if isinstance(entry, tuple):
                name, kind = entry
            else:
                name, kind = entry.name, entry.kind
            if not isinstance(kind, ItemKind):
                kind = ItemKind.from_catalog_type(kind)
            if name in seen:
                raise DuplicateItemError(name)
            seen.add(name)
            identifier = namer.register('item', name, to_identifier(name))
            if kind is ItemKind.FLAG:
                flags.append((name, identifier))
            else:
                counted.append((name, identifier))

        items = []
        for ordinal, (name, identifier) in enumerate(flags):
            items.append(ItemInfo(name, ItemKind.FLAG, ordinal, ordinal, identifier))
        for ordinal, (name, identifier) in enumerate(counted):
            items.append(ItemInfo(name, ItemKind.COUNTED, ordinal,
                                  len(flags) + ordinal, identifier))
        return cls(items)

    def lookup(self, name: str) -> Optional[ItemInfo]:
        return self.by_name.get(name)

    def lookup_identifier(self, identifier: str) -> Optional[ItemInfo]:
        return self.by_identifier.get(identifier)

    def __contains__(self, name) -> bool:
        return name in self.by_name

    def __iter__(self) -> Iterator[ItemInfo]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def names(self) -> List[str]:
        return [item.name for item in self.items]

    def all_items(self) -> List[ItemInfo]:
        """All items in global ordinal order."""
        return list(self.items)

    def flag_items(self) -> List[ItemInfo]:
        return [item for item in self.items if item.kind is ItemKind.FLAG]

    def counted_items(self) -> List[ItemInfo]:
        return [item for item in self.items if item.kind is ItemKind.COUNTED]

    @property
    def flag_count(self) -> int:
        return len(self.flag_items())

    @property
    def counted_count(self) -> int:
        return len(self.counted_items())
