"""
Shared pytest configuration and record factories for the timetable tests.
"""

import sys
from pathlib import Path

import pytest

# Make the flat top-level modules importable without installing the project.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from models import ProgramRecord


def build_program(**overrides) -> ProgramRecord:
    """A valid ProgramRecord on channel 1 / area 1, overridable per field."""
    fields = {
        "id": 1,
        "name": "Program",
        "start_time": "22:00:00",
        "end_time": "22:30:00",
        "channel_id": 1,
        "channel_name": "Channel 1",
        "channel_order": 1,
        "area_id": 1,
        "area_name": "Kanto",
        "area_order": 1,
    }
    fields.update(overrides)
    return ProgramRecord(**fields)


@pytest.fixture
def make_program():
    return build_program
