"""Data models and broadcast-day time helpers for the timetable."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field


# Broadcast day runs 20:00 -> 29:00 (05:00 next calendar day)
DAY_START_HOUR = 20
DAY_END_HOUR = 29

PIXELS_PER_MINUTE = 2  # 120px per hour
COLUMN_WIDTH = 140  # width of a single lane (px)
MIN_BLOCK_HEIGHT = 20

# Weekdays as stored in programs.day_of_the_week (1 = Monday ... 7 = Sunday)
DAYS = [
    {"id": 1, "label": "Mon", "en": "Monday"},
    {"id": 2, "label": "Tue", "en": "Tuesday"},
    {"id": 3, "label": "Wed", "en": "Wednesday"},
    {"id": 4, "label": "Thu", "en": "Thursday"},
    {"id": 5, "label": "Fri", "en": "Friday"},
    {"id": 6, "label": "Sat", "en": "Saturday"},
    {"id": 7, "label": "Sun", "en": "Sunday"},
]

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class InvalidTimeFormat(ValueError):
    """Raised when a wall-clock string is not a valid HH:MM[:SS] time."""

    def __init__(self, value):
        super().__init__(f"invalid time value: {value!r}")
        self.value = value


class InvertedInterval(ValueError):
    """Raised when a program ends before (or when) it starts."""

    def __init__(self, start_time: str, end_time: str):
        super().__init__(f"end time {end_time} is not after start time {start_time}")
        self.start_time = start_time
        self.end_time = end_time


@dataclass(frozen=True)
class LayoutConfig:
    """Constants shared by the normalizer, the assembler and the formatters."""

    day_start_hour: int = DAY_START_HOUR
    day_end_hour: int = DAY_END_HOUR
    pixels_per_minute: int = PIXELS_PER_MINUTE
    column_width: int = COLUMN_WIDTH
    min_block_height: int = MIN_BLOCK_HEIGHT
    # Bridge end times that fall before the start by adding 24h.
    # When False, such programs are rejected instead.
    extend_inverted: bool = True

    @property
    def visible_minutes(self) -> int:
        return (self.day_end_hour - self.day_start_hour) * 60

    @property
    def grid_height(self) -> int:
        return self.visible_minutes * self.pixels_per_minute

    @classmethod
    def from_env(cls) -> LayoutConfig:
        """Build a config, overriding defaults with TIMETABLE_* env vars."""
        return cls(
            day_start_hour=_env_int("TIMETABLE_DAY_START_HOUR", DAY_START_HOUR),
            day_end_hour=_env_int("TIMETABLE_DAY_END_HOUR", DAY_END_HOUR),
            pixels_per_minute=_env_int("TIMETABLE_PIXELS_PER_MINUTE", PIXELS_PER_MINUTE),
            column_width=_env_int("TIMETABLE_COLUMN_WIDTH", COLUMN_WIDTH),
            min_block_height=_env_int("TIMETABLE_MIN_BLOCK_HEIGHT", MIN_BLOCK_HEIGHT),
            extend_inverted=_env_bool("TIMETABLE_EXTEND_INVERTED", True),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {raw!r}")


@dataclass(frozen=True)
class ProgramRecord:
    """One broadcast slot, already joined with its work, channel and area."""

    id: int
    name: str
    start_time: str  # "HH:MM:SS", e.g. "23:00:00" or "01:30:00"
    end_time: str
    channel_id: int
    channel_name: str
    channel_order: int
    area_id: int
    area_name: str
    area_order: int
    color: int | None = None  # palette index, 1-based
    work_id: int | None = None
    start_date: str | None = None  # "YYYY-MM-DD"
    day_of_week: int | None = None  # 1 = Monday ... 7 = Sunday
    version: str | None = None
    note: str | None = None
    website_url: str | None = None
    annict_url: str | None = None
    wikipedia_url: str | None = None
    tags: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> ProgramRecord:
        """Build a record from a flat dict, ignoring unknown keys.

        The backend column name ``day_of_the_week`` is accepted for ``day_of_week``.
        """
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "day_of_week" not in known and "day_of_the_week" in data:
            known["day_of_week"] = data["day_of_the_week"]
        if "tags" in known:
            known["tags"] = tuple(known["tags"] or ())
        return cls(**known)


@dataclass(frozen=True)
class NormalizedInterval:
    """A program's span in minutes from the broadcast-day start."""

    start_minute: int
    end_minute: int
    crosses_midnight: bool = False

    @property
    def duration(self) -> int:
        return self.end_minute - self.start_minute


@dataclass
class PositionedProgram:
    """A program with its pixel geometry inside its group column."""

    program: ProgramRecord
    top: int
    left: int
    height: int
    lane_index: int
    crosses_midnight: bool
    start_minute: int
    end_minute: int


@dataclass
class LayoutGroup:
    """One channel (or area) column-set in the grid."""

    key: int
    label: str
    order_rank: tuple[int, ...]
    lane_count: int
    width: int
    programs: list[PositionedProgram] = field(default_factory=list)


@dataclass
class RejectedProgram:
    """A record excluded from layout, with the reason."""

    program: ProgramRecord
    reason: str


@dataclass
class LayoutResult:
    groups: list[LayoutGroup] = field(default_factory=list)
    rejected: list[RejectedProgram] = field(default_factory=list)


@dataclass
class Season:
    id: int
    name: str


@dataclass
class WorkBroadcast:
    """One program entry listed on a work page."""

    id: int
    start_time: str
    end_time: str
    channel_name: str
    day_of_week: int | None = None
    start_date: str | None = None
    color: int | None = None
    version: str | None = None
    note: str | None = None
    order: int = 0
    seasons: list[Season] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


@dataclass
class Work:
    """A title together with every broadcast that airs it."""

    id: int
    name: str
    website_url: str | None = None
    annict_url: str | None = None
    wikipedia_url: str | None = None
    programs: list[WorkBroadcast] = field(default_factory=list)


@dataclass
class DayTimetable:
    """Layout for one broadcast day in one grouping mode."""

    day_id: int
    day_label: str
    groups: list[LayoutGroup] = field(default_factory=list)


@dataclass
class Timetable:
    """Complete timetable page: every day of a season in one mode."""

    title: str
    season_name: str
    mode: str
    days: list[DayTimetable]
    generated_at: str
    config: LayoutConfig = field(default_factory=LayoutConfig)


def day_label(day_id: int | None) -> str:
    for day in DAYS:
        if day["id"] == day_id:
            return day["label"]
    return "?"


def parse_clock(time_str: str) -> tuple[int, int]:
    """Parse 'HH:MM[:SS]' into (hour, minute)."""
    if not isinstance(time_str, str):
        raise InvalidTimeFormat(time_str)
    match = _CLOCK_RE.match(time_str.strip())
    if not match:
        raise InvalidTimeFormat(time_str)
    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        raise InvalidTimeFormat(time_str)
    return hour, minute


def normalize_time(time_str: str, day_start_hour: int = DAY_START_HOUR) -> tuple[int, bool]:
    """Convert 'HH:MM[:SS]' to minutes since the broadcast-day start.

    Hours before ``day_start_hour`` belong to the next calendar day and are
    shifted by 24h, so with the default anchor "00:30:00" becomes 270
    (24:30 - 20:00). Returns ``(minutes, crosses_midnight)``.
    """
    hour, minute = parse_clock(time_str)
    crosses_midnight = False
    if hour < day_start_hour:
        hour += 24
        crosses_midnight = True
    return (hour - day_start_hour) * 60 + minute, crosses_midnight


def format_time30(time_str: str | None, day_start_hour: int = DAY_START_HOUR) -> str:
    """Render 'HH:MM:SS' in 30-hour notation: '01:30:00' -> '25:30'."""
    if not time_str:
        return ""
    hour, minute = parse_clock(time_str)
    if hour < day_start_hour:
        hour += 24
    return f"{hour}:{minute:02d}"


def format_time_range(start: str | None, end: str | None, day_start_hour: int = DAY_START_HOUR) -> str:
    return f"{format_time30(start, day_start_hour)}～{format_time30(end, day_start_hour)}"


def hour_marks(config: LayoutConfig | None = None) -> list[tuple[int, int]]:
    """(hour label, top px) for each hour line on the time axis."""
    config = config or LayoutConfig()
    hour_height = 60 * config.pixels_per_minute
    return [
        (config.day_start_hour + i, i * hour_height)
        for i in range(config.day_end_hour - config.day_start_hour)
    ]
