"""Partition program records into channel or area groups.

Each group carries the label and display rank of the first record seen for
its key. Ranks are tuples compared lexicographically, so in channel mode a
channel sorts by its area's order first and its own order second.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from models import ProgramRecord

LAYOUT_MODES = ("channel", "area")


@dataclass
class ProgramGroup:
    """Records sharing one channel (or area), before lane allocation."""

    key: int
    label: str
    order_rank: tuple[int, ...]
    programs: list[ProgramRecord] = field(default_factory=list)


def _check_mode(mode: str) -> None:
    if mode not in LAYOUT_MODES:
        raise ValueError(f"unknown layout mode {mode!r} (expected one of {', '.join(LAYOUT_MODES)})")


def channel_rank(program: ProgramRecord) -> tuple[int, int]:
    """Display rank of the program's channel: area order, then channel order."""
    return (program.area_order, program.channel_order)


def group_key(program: ProgramRecord, mode: str) -> int:
    _check_mode(mode)
    return program.channel_id if mode == "channel" else program.area_id


def group_label(program: ProgramRecord, mode: str) -> str:
    _check_mode(mode)
    return program.channel_name if mode == "channel" else program.area_name


def order_rank(program: ProgramRecord, mode: str) -> tuple[int, ...]:
    _check_mode(mode)
    if mode == "channel":
        return channel_rank(program)
    return (program.area_order,)


def classify(programs: Iterable[ProgramRecord], mode: str) -> dict[int, ProgramGroup]:
    """Group records by channel_id ("channel") or area_id ("area").

    The returned dict keeps first-seen key order.
    """
    _check_mode(mode)
    programs = list(programs)

    # 1. Fix label and rank per key from the first record carrying it
    groups: dict[int, ProgramGroup] = {}
    for program in programs:
        key = group_key(program, mode)
        if key not in groups:
            groups[key] = ProgramGroup(
                key=key,
                label=group_label(program, mode),
                order_rank=order_rank(program, mode),
            )

    # 2. Bucket records
    for program in programs:
        groups[group_key(program, mode)].programs.append(program)

    return groups
