"""Runtime support library used by generated logic modules."""

from .timeofday import TimeOfDay
from .bitset import BitSet
from .inventory import ItemCollection, MAX_ITEM_COUNT
from .connection import DoorSide, PairedConnection

__all__ = [
    'TimeOfDay',
    'BitSet',
    'ItemCollection', 'MAX_ITEM_COUNT',
    'DoorSide', 'PairedConnection',
]
