import re
from dataclasses import dataclass, field
from datetime import datetime, time
from enum import Enum
from typing import List, Set

from .errors import FormatError, InvalidRange


class Weekday(Enum):
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @classmethod
    def parse(cls, text: str) -> "Weekday":
        key = (text or "").strip().upper()
        if key in _WEEKDAY_ALIASES:
            return _WEEKDAY_ALIASES[key]
        try:
            return cls[key]
        except KeyError:
            raise FormatError(f"Bad day of week: {text}") from None

    def __str__(self) -> str:
        return self.name


_WEEKDAY_ALIASES = {
    "MON": Weekday.MONDAY,
    "TUE": Weekday.TUESDAY,
    "TUES": Weekday.TUESDAY,
    "WED": Weekday.WEDNESDAY,
    "THU": Weekday.THURSDAY,
    "THUR": Weekday.THURSDAY,
    "THURS": Weekday.THURSDAY,
    "FRI": Weekday.FRIDAY,
    "SAT": Weekday.SATURDAY,
    "SUN": Weekday.SUNDAY,
}


_HH_MM = re.compile(r"\d{2}:\d{2}")


def parse_time(text: str) -> time:
    """Parse a zero-padded 24-hour ``HH:MM`` time of day."""
    text = (text or "").strip()
    if _HH_MM.fullmatch(text):
        try:
            return datetime.strptime(text, "%H:%M").time()
        except ValueError:
            pass
    raise FormatError(f"Bad time (expected HH:MM): {text}")


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


@dataclass(frozen=True)
class TimeSlot:
    weekday: Weekday
    start: time
    end: time

    def __post_init__(self) -> None:
        if self.end <= self.start:
            raise InvalidRange(
                f"End time {format_time(self.end)} must be after start time {format_time(self.start)}"
            )

    def overlaps(self, other: "TimeSlot") -> bool:
        # Touching endpoints count as an overlap.
        if self.weekday != other.weekday:
            return False
        return self.start <= other.end and other.start <= self.end

    @classmethod
    def parse(cls, text: str) -> "TimeSlot":
        """Parse ``"<DOW> <HH:MM>-<HH:MM>"``, e.g. ``"TUE 15:00-16:00"``."""
        parts = (text or "").split()
        if len(parts) != 2:
            raise FormatError("Slot format: DOW HH:MM-HH:MM")
        times = parts[1].split("-")
        if len(times) != 2:
            raise FormatError("Slot format: DOW HH:MM-HH:MM")
        return cls(Weekday.parse(parts[0]), parse_time(times[0]), parse_time(times[1]))

    def __str__(self) -> str:
        return f"{self.weekday} {format_time(self.start)}-{format_time(self.end)}"


def overlaps_any(a: List[TimeSlot], b: List[TimeSlot]) -> bool:
    return any(x.overlaps(y) for x in a for y in b)


class SessionStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    DECLINED = "DECLINED"

    @classmethod
    def parse(cls, text: str) -> "SessionStatus":
        try:
            return cls[(text or "").strip()]
        except KeyError:
            raise FormatError(f"Bad session status: {text}") from None

    def __str__(self) -> str:
        return self.value


@dataclass
class Student:
    id: str
    name: str
    email: str
    courses: Set[str] = field(default_factory=set)
    availability: List[TimeSlot] = field(default_factory=list)

    def sorted_courses(self) -> List[str]:
        return sorted(self.courses)


@dataclass
class StudySession:
    id: str
    course_code: str
    slot: TimeSlot
    inviter_id: str
    participants: Set[str] = field(default_factory=set)
    status: SessionStatus = SessionStatus.PENDING

    def sorted_participants(self) -> List[str]:
        return sorted(self.participants)
