"""
End-to-end tests for the CLI using a local JSON dump.
"""

from __future__ import annotations

import json
import sys

import pytest

import main

ROWS = [
    {
        "id": 1, "name": "Early", "start_time": "21:00:00", "end_time": "21:30:00",
        "channel_id": 1, "channel_name": "TV One", "channel_order": 1,
        "area_id": 1, "area_name": "Kanto", "area_order": 1, "day_of_week": 1,
    },
    {
        "id": 2, "name": "Late", "start_time": "01:00:00", "end_time": "01:30:00",
        "channel_id": 2, "channel_name": "TV Two", "channel_order": 1,
        "area_id": 2, "area_name": "Kansai", "area_order": 2, "day_of_week": 2,
    },
    {
        "id": 3, "name": "Broken", "start_time": "99:00:00", "end_time": "21:30:00",
        "channel_id": 1, "channel_name": "TV One", "channel_order": 1,
        "area_id": 1, "area_name": "Kanto", "area_order": 1, "day_of_week": 1,
    },
]


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["main.py", *argv])
    main.main()


class TestMain:
    """Tests for main.main()."""

    def test_builds_both_views_from_file(self, tmp_path, monkeypatch, capsys):
        input_path = tmp_path / "programs.json"
        input_path.write_text(json.dumps(ROWS), encoding="utf-8")
        out_dir = tmp_path / "site"

        _run(monkeypatch, "--input", str(input_path), "--output-dir", str(out_dir))

        channel_page = (out_dir / "index.html").read_text(encoding="utf-8")
        area_page = (out_dir / "area.html").read_text(encoding="utf-8")
        assert "TV One" in channel_page
        assert "Kansai" in area_page
        assert 'href="area.html"' in channel_page
        assert 'href="index.html"' in area_page

        out = capsys.readouterr().out
        assert "Warning: skipping program 3 (Broken)" in out
        assert "Monday [channel]: 1 programs in 1 groups, 1 lanes" in out

    def test_single_day(self, tmp_path, monkeypatch, capsys):
        input_path = tmp_path / "programs.json"
        input_path.write_text(json.dumps(ROWS), encoding="utf-8")

        _run(monkeypatch, "--input", str(input_path), "--day", "2", "--output-dir", str(tmp_path))

        page = (tmp_path / "index.html").read_text(encoding="utf-8")
        assert 'data-day="2"' in page
        assert 'data-day="1"' not in page
        assert "Late" in page

    def test_backend_weekday_column_filters_days(self, tmp_path, monkeypatch, capsys):
        rows = [
            {("day_of_the_week" if k == "day_of_week" else k): v for k, v in row.items()}
            for row in ROWS
        ]
        input_path = tmp_path / "programs.json"
        input_path.write_text(json.dumps(rows), encoding="utf-8")

        _run(monkeypatch, "--input", str(input_path), "--day", "2", "--output-dir", str(tmp_path))

        page = (tmp_path / "index.html").read_text(encoding="utf-8")
        assert "TV Two" in page
        assert "TV One" not in page

    def test_missing_input_file(self, tmp_path, monkeypatch, capsys):
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, "--input", str(tmp_path / "nope.json"))
        assert exc_info.value.code == 1
        assert "Error: File not found" in capsys.readouterr().err

    def test_missing_backend_settings(self, monkeypatch, capsys):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_KEY", raising=False)
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch)
        assert exc_info.value.code == 1
        assert "SUPABASE_URL" in capsys.readouterr().err
