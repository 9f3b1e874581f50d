"""
Tests for the static HTML timetable and work pages.
"""

from __future__ import annotations

from generator import (
    PROGRAM_COLORS,
    generate_html,
    generate_work_html,
    program_color,
    save_html,
)
from layout import calculate_layout
from models import DayTimetable, LayoutConfig, Season, Timetable, Work, WorkBroadcast


def _timetable(groups, mode="channel", config=None):
    return Timetable(
        title="Timetable",
        season_name="2025 Winter",
        mode=mode,
        days=[
            DayTimetable(day_id=1, day_label="Mon", groups=groups),
            DayTimetable(day_id=2, day_label="Tue", groups=[]),
        ],
        generated_at="2025-01-01 00:00",
        config=config or LayoutConfig(),
    )


class TestProgramColor:
    """Tests for palette lookup."""

    def test_valid_codes(self):
        assert program_color(1) == PROGRAM_COLORS[0]
        assert program_color(3) == PROGRAM_COLORS[2]
        assert program_color(9) == PROGRAM_COLORS[8]

    def test_fallback(self):
        for code in (None, 0, 10, -1, "2"):
            assert program_color(code) == PROGRAM_COLORS[0]


class TestGenerateHtml:
    """Tests for generate_html()."""

    def test_blocks_positioned_from_layout(self, make_program):
        programs = [
            make_program(id=1, name="A", start_time="20:00:00", end_time="21:00:00", color=3),
            make_program(id=2, name="B", start_time="20:30:00", end_time="21:30:00"),
        ]
        config = LayoutConfig(pixels_per_minute=4, column_width=160)
        html = generate_html(_timetable(calculate_layout(programs, "channel", config), config=config))

        assert "top:0px;left:2px;width:156px;height:238px;" in html
        assert "top:120px;left:162px;width:156px;height:238px;" in html
        assert f"--program-bg:{PROGRAM_COLORS[2]['bg']}" in html
        assert 'class="group-header" style="width:320px"' in html
        assert "20:00～21:00" in html

    def test_tabs_and_empty_day(self, make_program):
        html = generate_html(_timetable(calculate_layout([make_program()])))
        assert 'data-day="1">Mon</button>' in html
        assert 'data-day="2">Tue</button>' in html
        assert 'id="day-2"' in html
        assert "No broadcasts scheduled." in html

    def test_time_axis_labels(self, make_program):
        html = generate_html(_timetable(calculate_layout([make_program()])))
        assert '<div class="hour-label" style="top:0px;height:120px">20</div>' in html
        assert '<div class="hour-label" style="top:960px;height:120px">28</div>' in html

    def test_after_midnight_block(self, make_program):
        program = make_program(start_time="01:30:00", end_time="02:00:00", start_date="2025-01-09")
        html = generate_html(_timetable(calculate_layout([program])))
        assert "program-block next-day" in html
        assert "25:30～26:00" in html
        assert "Jan 9 start" in html

    def test_text_is_escaped(self, make_program):
        program = make_program(name='<b>"Show" & co</b>', note="line <1>")
        html = generate_html(_timetable(calculate_layout([program])))
        assert "<b>\"Show\"" not in html
        assert "&lt;b&gt;&quot;Show&quot; &amp; co&lt;/b&gt;" in html

    def test_popup_contains_details(self, make_program):
        program = make_program(
            version="Uncut",
            tags=("new",),
            wikipedia_url="https://wiki.example/show",
        )
        html = generate_html(_timetable(calculate_layout([program])))
        assert "data-popup=" in html
        assert "popup-version" in html
        assert "Uncut" in html
        assert "https://wiki.example/show" in html

    def test_view_switch_link(self, make_program):
        html = generate_html(_timetable(calculate_layout([make_program()])), alt_view_href="area.html")
        assert '<a class="view-switch" href="area.html">By area</a>' in html


class TestGenerateWorkHtml:
    """Tests for generate_work_html()."""

    def test_lists_broadcasts(self):
        work = Work(
            id=55,
            name="Night Show",
            annict_url="https://annict.example/works/55",
            programs=[
                WorkBroadcast(
                    id=1, start_time="00:30:00", end_time="01:00:00", channel_name="TV Seven",
                    day_of_week=4, start_date="2025-01-09", color=2,
                    seasons=[Season(12, "2025 Winter")], tags=["new"], version="Uncut",
                ),
            ],
        )
        html = generate_work_html(work)
        assert "<h2>Night Show</h2>" in html
        assert "TV Seven" in html
        assert "2025/01/09 start | Thu 24:30～25:00" in html
        assert "2025 Winter" in html
        assert "https://annict.example/works/55" in html
        assert f"--program-bg:{PROGRAM_COLORS[1]['bg']}" in html

    def test_without_broadcasts(self):
        html = generate_work_html(Work(id=1, name="Quiet"))
        assert "No broadcasts registered." in html


class TestSaveHtml:
    """Tests for save_html()."""

    def test_creates_parent_dirs(self, tmp_path):
        path = save_html("<html></html>", tmp_path / "works" / "1.html")
        assert path.read_text(encoding="utf-8") == "<html></html>"
