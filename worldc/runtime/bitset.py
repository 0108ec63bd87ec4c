"""
Fixed-capacity membership sets over closed enumerations.

Any densely numbered IntEnum (ordinals 0..N-1) can be stored. Generated
logic modules define their Region/Stage/Area/Location/Event enums this way.
"""

from typing import Iterator, Type, Generic, TypeVar
from enum import IntEnum

T = TypeVar('T', bound=IntEnum)


class BitSet(Generic[T]):
    """Set of members of one IntEnum, stored as a bit mask."""

    def __init__(self, enum_type: Type[T]):
        self.enum_type = enum_type
        self.capacity = len(enum_type)
        self._bits = 0

    @classmethod
    def new_all_set(cls, enum_type: Type[T]) -> 'BitSet[T]':
        bitset = cls(enum_type)
        bitset._bits = (1 << bitset.capacity) - 1
        return bitset

    def _bit(self, member: T) -> int:
        if not isinstance(member, self.enum_type):
            raise TypeError(f"{member!r} is not a {self.enum_type.__name__}")
        num = int(member)
        if not 0 <= num < self.capacity:
            raise ValueError(f"{member!r} is outside 0..{self.capacity - 1}")
        return 1 << num

    def insert(self, member: T):
        self._bits |= self._bit(member)

    def remove(self, member: T):
        self._bits &= ~self._bit(member)

    def has(self, member: T) -> bool:
        return self._bits & self._bit(member) != 0

    def __contains__(self, member: T) -> bool:
        return self.has(member)

    def get_all_set(self) -> Iterator[T]:
        return (member for member in self.enum_type if self._bits >> int(member) & 1)

    def get_all_unset(self) -> Iterator[T]:
        return (member for member in self.enum_type if not self._bits >> int(member) & 1)

    def __iter__(self) -> Iterator[T]:
        return self.get_all_set()

    def __len__(self) -> int:
        return bin(self._bits).count('1')

    def _check_same(self, other: 'BitSet[T]'):
        if other.enum_type is not self.enum_type:
            raise TypeError(
                f"Cannot combine BitSet[{self.enum_type.__name__}] "
                f"with BitSet[{other.enum_type.__name__}]"
            )

    def union(self, other: 'BitSet[T]') -> 'BitSet[T]':
        self._check_same(other)
        result = BitSet(self.enum_type)
        result._bits = self._bits | other._bits
        return result

    def intersection(self, other: 'BitSet[T]') -> 'BitSet[T]':
        self._check_same(other)
        result = BitSet(self.enum_type)
        result._bits = self._bits & other._bits
        return result

    def copy(self) -> 'BitSet[T]':
        result = BitSet(self.enum_type)
        result._bits = self._bits
        return result

    def __eq__(self, other) -> bool:
        if not isinstance(other, BitSet):
            return NotImplemented
        return self.enum_type is other.enum_type and self._bits == other._bits

    def __repr__(self):
        members = ', '.join(member.name for member in self.get_all_set())
        return f"BitSet[{self.enum_type.__name__}]({members})"
