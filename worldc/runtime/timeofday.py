"""Time-of-day flag set."""

from enum import IntFlag


class TimeOfDay(IntFlag):
    """Day, Night, or Both. Used for area states and area requirements."""
    DAY = 1
    NIGHT = 2
    BOTH = 3
    ANY = 3

    @classmethod
    def parse(cls, text: str) -> 'TimeOfDay':
        """Parse 'day', 'night', 'both' or 'any' (case-insensitive)."""
        value = text.strip().lower()
        if value == 'day':
            return cls.DAY
        if value == 'night':
            return cls.NIGHT
        if value in ('both', 'any'):
            return cls.BOTH
        raise ValueError(f"Invalid time of day: {text!r}")

    @property
    def display_name(self) -> str:
        if self == TimeOfDay.DAY:
            return 'Day'
        if self == TimeOfDay.NIGHT:
            return 'Night'
        return 'Both'
