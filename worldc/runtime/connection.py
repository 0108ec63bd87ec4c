"""
Paired connections for double doors.

Two exits that are the two halves of one doorway point at each other: one is
the near side, the other the far side. Exits without a partner are NONE.
"""

from enum import Enum
from typing import Any, Optional


class DoorSide(Enum):
    NONE = 'none'
    NEAR = 'near'
    FAR = 'far'

    @classmethod
    def parse(cls, text: Optional[str]) -> 'DoorSide':
        """Parse a door column value. Left/Right are accepted as Near/Far."""
        if text is None:
            return cls.NONE
        value = str(text).strip().lower()
        if value in ('near', 'left'):
            return cls.NEAR
        if value in ('far', 'right'):
            return cls.FAR
        if value in ('no', 'none', ''):
            return cls.NONE
        raise ValueError(f"Invalid door side: {text!r}")

    def opposite(self) -> 'DoorSide':
        if self is DoorSide.NEAR:
            return DoorSide.FAR
        if self is DoorSide.FAR:
            return DoorSide.NEAR
        return DoorSide.NONE


class PairedConnection:
    """Door pairing of one exit or entrance."""

    __slots__ = ('side', 'partner')

    def __init__(self, side: DoorSide = DoorSide.NONE, partner: Any = None):
        if (side is DoorSide.NONE) != (partner is None):
            raise ValueError("A paired connection needs a partner exactly when it has a side")
        self.side = side
        self.partner = partner

    @classmethod
    def none(cls) -> 'PairedConnection':
        return cls()

    @classmethod
    def near(cls, partner: Any) -> 'PairedConnection':
        """This is the near side; partner is the far side."""
        return cls(DoorSide.NEAR, partner)

    @classmethod
    def far(cls, partner: Any) -> 'PairedConnection':
        """This is the far side; partner is the near side."""
        return cls(DoorSide.FAR, partner)

    def is_none(self) -> bool:
        return self.side is DoorSide.NONE

    def is_near(self) -> bool:
        return self.side is DoorSide.NEAR

    def is_far(self) -> bool:
        return self.side is DoorSide.FAR

    def is_opposite(self, other: 'PairedConnection') -> bool:
        return self.side.opposite() is other.side

    def is_same(self, other: 'PairedConnection') -> bool:
        return self.side is other.side

    def __eq__(self, other) -> bool:
        if not isinstance(other, PairedConnection):
            return NotImplemented
        return self.side is other.side and self.partner == other.partner

    def __hash__(self):
        return hash((self.side, self.partner))

    def __repr__(self):
        if self.is_none():
            return "PairedConnection.none()"
        return f"PairedConnection.{self.side.value}({self.partner!r})"
