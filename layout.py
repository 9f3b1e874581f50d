"""Lane allocation and pixel layout for the broadcast timetable.

Pipeline: normalize every record's times (rejecting bad ones), group by
channel or area, sort each group by start minute, assign lanes with a
leftmost-fit greedy pass, then convert minutes and lanes to pixels.

Leftmost-fit over start-sorted intervals is optimal: a new lane is only
opened when every existing lane is still busy at the new program's start,
so the lane count equals the deepest overlap in the group.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from grouping import ProgramGroup, channel_rank, classify
from models import (
    InvalidTimeFormat,
    InvertedInterval,
    LayoutConfig,
    LayoutGroup,
    LayoutResult,
    NormalizedInterval,
    PositionedProgram,
    ProgramRecord,
    RejectedProgram,
    normalize_time,
)

MINUTES_PER_DAY = 24 * 60


def normalize_interval(program: ProgramRecord, config: LayoutConfig | None = None) -> NormalizedInterval:
    """Map a program's start/end clock times onto the broadcast-day axis.

    Raises InvalidTimeFormat for unparseable times. An end time at or before
    the start is pushed forward by whole days when ``config.extend_inverted``
    is set, otherwise InvertedInterval is raised.
    """
    config = config or LayoutConfig()
    start, crosses_midnight = normalize_time(program.start_time, config.day_start_hour)
    end, _ = normalize_time(program.end_time, config.day_start_hour)

    if end <= start:
        if not config.extend_inverted:
            raise InvertedInterval(program.start_time, program.end_time)
        while end <= start:
            end += MINUTES_PER_DAY

    return NormalizedInterval(start_minute=start, end_minute=end, crosses_midnight=crosses_midnight)


def lane_sort_key(program: ProgramRecord, interval: NormalizedInterval) -> tuple:
    """Processing order within a group.

    Start minute first; simultaneous starts go in channel display order.
    The trailing fields only make the order total so the same set of
    records always lays out the same way.
    """
    return (
        interval.start_minute,
        *channel_rank(program),
        program.channel_id,
        interval.end_minute,
        program.id,
        program.name,
    )


def allocate_lanes(intervals: Sequence[NormalizedInterval]) -> tuple[list[int], int]:
    """Assign each interval (in the given order) to the leftmost free lane.

    Returns (lane index per interval, lane count).
    """
    lanes: list[int] = []  # end minute of the last program placed in each lane
    assignment: list[int] = []

    for interval in intervals:
        lane_index = -1
        for i, lane_end in enumerate(lanes):
            if lane_end <= interval.start_minute:
                lane_index = i
                break

        if lane_index == -1:
            lane_index = len(lanes)
            lanes.append(interval.end_minute)
        else:
            lanes[lane_index] = interval.end_minute
        assignment.append(lane_index)

    return assignment, len(lanes)


def position_program(
    program: ProgramRecord,
    interval: NormalizedInterval,
    lane_index: int,
    config: LayoutConfig,
) -> PositionedProgram:
    height = max(interval.duration * config.pixels_per_minute, config.min_block_height)
    return PositionedProgram(
        program=program,
        top=interval.start_minute * config.pixels_per_minute,
        left=lane_index * config.column_width,
        height=height,
        lane_index=lane_index,
        crosses_midnight=interval.crosses_midnight,
        start_minute=interval.start_minute,
        end_minute=interval.end_minute,
    )


def assemble_group(
    group: ProgramGroup,
    intervals: Mapping[ProgramRecord, NormalizedInterval] | None = None,
    config: LayoutConfig | None = None,
) -> LayoutGroup:
    """Sort, allocate lanes and position every program in one group.

    ``intervals`` maps records to their already normalized spans, as built by
    compute_layout. Records missing from it are normalized here.
    """
    config = config or LayoutConfig()
    intervals = intervals or {}
    timed = [
        (program, intervals.get(program) or normalize_interval(program, config))
        for program in group.programs
    ]
    timed.sort(key=lambda item: lane_sort_key(*item))

    lane_indices, lane_count = allocate_lanes([interval for _, interval in timed])
    positioned = [
        position_program(program, interval, lane_index, config)
        for (program, interval), lane_index in zip(timed, lane_indices)
    ]

    # An empty group still reserves one lane
    lane_count = max(lane_count, 1)
    return LayoutGroup(
        key=group.key,
        label=group.label,
        order_rank=group.order_rank,
        lane_count=lane_count,
        width=lane_count * config.column_width,
        programs=positioned,
    )


def order_groups(groups: Iterable[LayoutGroup]) -> list[LayoutGroup]:
    """Sort groups left-to-right by rank; equal ranks keep their order."""
    return sorted(groups, key=lambda g: g.order_rank)


def compute_layout(
    programs: Iterable[ProgramRecord],
    mode: str = "channel",
    config: LayoutConfig | None = None,
) -> LayoutResult:
    """Lay out a day's programs, returning groups and rejected records."""
    config = config or LayoutConfig()

    accepted: list[ProgramRecord] = []
    intervals: dict[ProgramRecord, NormalizedInterval] = {}
    rejected: list[RejectedProgram] = []
    for program in programs:
        try:
            interval = normalize_interval(program, config)
        except (InvalidTimeFormat, InvertedInterval) as e:
            rejected.append(RejectedProgram(program=program, reason=str(e)))
            continue
        accepted.append(program)
        intervals[program] = interval

    groups = classify(accepted, mode)
    layout_groups = [assemble_group(group, intervals, config) for group in groups.values()]
    return LayoutResult(groups=order_groups(layout_groups), rejected=rejected)


def calculate_layout(
    programs: Iterable[ProgramRecord],
    mode: str = "channel",
    config: LayoutConfig | None = None,
) -> list[LayoutGroup]:
    """Lay out a day's programs, printing a warning for each rejected record."""
    result = compute_layout(programs, mode, config)
    for item in result.rejected:
        print(f"Warning: skipping program {item.program.id} ({item.program.name}): {item.reason}")
    return result.groups
