"""
Mixed bit/counter item inventory.

Items are addressed by their global ordinal: flag items come first and each
takes one bit; counted items follow and each takes a saturating byte.
"""

from typing import List

MAX_ITEM_COUNT = 255


class ItemCollection:
    """Inventory over a fixed item layout."""

    def __init__(self, flag_count: int, counted_count: int):
        self.flag_count = flag_count
        self.counted_count = counted_count
        self.flags = 0
        self.counted: List[int] = [0] * counted_count

    @classmethod
    def new_filled(cls, flag_count: int, counted_count: int) -> 'ItemCollection':
        collection = cls(flag_count, counted_count)
        collection.flags = (1 << flag_count) - 1
        collection.counted = [MAX_ITEM_COUNT] * counted_count
        return collection

    def _slot(self, item: int) -> int:
        num = int(item)
        if not 0 <= num < self.flag_count + self.counted_count:
            raise IndexError(f"Item ordinal {num} out of range")
        return num

    def collect(self, item: int):
        self.collect_multiple(item, 1)

    def collect_multiple(self, item: int, count: int):
        num = self._slot(item)
        if count <= 0:
            return
        if num < self.flag_count:
            # flags don't care about the count
            self.flags |= 1 << num
        else:
            index = num - self.flag_count
            self.counted[index] = min(MAX_ITEM_COUNT, self.counted[index] + count)

    def remove(self, item: int):
        """Remove one of an item; does nothing if none is owned."""
        num = self._slot(item)
        if num < self.flag_count:
            self.flags &= ~(1 << num)
        else:
            index = num - self.flag_count
            if self.counted[index] > 0:
                self.counted[index] -= 1

    def check(self, item: int) -> int:
        """Owned count: 0 or 1 for flags, 0..255 for counted items."""
        num = self._slot(item)
        if num < self.flag_count:
            return self.flags >> num & 1
        return self.counted[num - self.flag_count]

    def has(self, item: int, count: int = 1) -> bool:
        return self.check(item) >= count

    def copy(self) -> 'ItemCollection':
        collection = ItemCollection(self.flag_count, self.counted_count)
        collection.flags = self.flags
        collection.counted = list(self.counted)
        return collection

    def __eq__(self, other) -> bool:
        if not isinstance(other, ItemCollection):
            return NotImplemented
        return (self.flag_count == other.flag_count
                and self.counted_count == other.counted_count
                and self.flags == other.flags
                and self.counted == other.counted)

    def __repr__(self):
        return (f"ItemCollection(flags={self.flags:#x}, "
                f"counted={self.counted})")
