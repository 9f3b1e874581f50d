"""Broadcast timetable builder: CLI entrypoint.

Fetches a season's programs from the Supabase backend (or a local JSON
dump), lays them out on the 20:00-29:00 broadcast-day grid, and writes
static HTML pages grouped by channel and by area.

Usage:
    python main.py                          # Latest season, all days, from the backend
    python main.py --season 12 --day 3      # One season, Wednesday only
    python main.py --input programs.json    # Offline build from a JSON dump
    python main.py --work 42                # Also write docs/works/42.html

Environment variables:
    SUPABASE_URL / SUPABASE_KEY  - backend project URL and anon key
    TIMETABLE_*                  - layout overrides (see models.LayoutConfig.from_env)
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

import httpx
from dotenv import load_dotenv

load_dotenv()

from models import DAYS, DayTimetable, LayoutConfig, ProgramRecord, Timetable
from layout import compute_layout
from generator import generate_html, generate_work_html, save_html
from fetcher import (
    create_client,
    fetch_schedule_by_day,
    fetch_seasons,
    fetch_work,
    latest_season_id,
    load_programs_file,
)

PAGE_TITLE = "Late-night Broadcast Timetable"
MODE_PAGES = {"channel": "index.html", "area": "area.html"}


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _build_days(
    programs_by_day: dict[int, list[ProgramRecord]],
    mode: str,
    config: LayoutConfig,
) -> list[DayTimetable]:
    days = []
    for day in DAYS:
        if day["id"] not in programs_by_day:
            continue
        result = compute_layout(programs_by_day[day["id"]], mode, config)
        for item in result.rejected:
            print(
                f"  Warning: skipping program {item.program.id} "
                f"({item.program.name}): {item.reason}"
            )
        lanes = sum(g.lane_count for g in result.groups)
        placed = sum(len(g.programs) for g in result.groups)
        print(f"  {day['en']} [{mode}]: {placed} programs in {len(result.groups)} groups, {lanes} lanes")
        days.append(DayTimetable(day_id=day["id"], day_label=day["label"], groups=result.groups))
    return days


def main():
    argparser = argparse.ArgumentParser(
        description="Broadcast schedule -> static timetable pages"
    )
    argparser.add_argument(
        "--input",
        type=str,
        help="Path to a local JSON dump of program rows (skip the backend)",
    )
    argparser.add_argument(
        "--season",
        type=int,
        help="Season id to build (default: latest season)",
    )
    argparser.add_argument(
        "--day",
        type=int,
        choices=[d["id"] for d in DAYS],
        help="Only build one weekday (1 = Monday ... 7 = Sunday)",
    )
    argparser.add_argument(
        "--work",
        type=int,
        help="Also generate the detail page for this work id",
    )
    argparser.add_argument(
        "--reject-inverted",
        action="store_true",
        help="Reject programs whose end time is not after their start time "
             "instead of extending them past midnight",
    )
    argparser.add_argument(
        "--output-dir",
        type=str,
        default="docs",
        help="Output directory (default: docs)",
    )
    args = argparser.parse_args()

    try:
        config = LayoutConfig.from_env()
    except ValueError as e:
        _fail(str(e))
    if args.reject_inverted:
        config = replace(config, extend_inverted=False)

    day_ids = [args.day] if args.day else [d["id"] for d in DAYS]
    programs_by_day: dict[int, list[ProgramRecord]] = {}
    season_name = "Local data"
    client = None

    # Step 1: Load programs
    if args.input:
        input_path = Path(args.input)
        if not input_path.exists():
            _fail(f"File not found: {input_path}")
        print(f"Loading programs from: {input_path}")
        try:
            programs = load_programs_file(input_path)
        except (ValueError, KeyError, TypeError) as e:
            _fail(f"Could not read {input_path}: {e}")
        for day_id in day_ids:
            # Rows without a weekday are shown on every day being built
            programs_by_day[day_id] = [
                p for p in programs if p.day_of_week in (None, day_id)
            ]
        print(f"Loaded {len(programs)} programs")
    else:
        try:
            client = create_client()
        except ValueError as e:
            _fail(str(e))

        print("Fetching seasons...")
        try:
            seasons = fetch_seasons(client)
            season_id = args.season or latest_season_id(seasons)
            season_name = next(
                (s.name for s in seasons if s.id == season_id), f"Season {season_id}"
            )
            print(f"Using season: {season_name} (id={season_id})")

            for day_id in day_ids:
                programs_by_day[day_id] = fetch_schedule_by_day(client, day_id, season_id)
                print(f"  Day {day_id}: {len(programs_by_day[day_id])} programs")
        except httpx.HTTPError as e:
            _fail(f"Fetching schedule failed: {e}")

    # Step 2: Lay out and render both views
    print("\nComputing layout...")
    output_dir = Path(args.output_dir)
    generated_at = datetime.now().strftime("%Y-%m-%d %H:%M")
    for mode, page in MODE_PAGES.items():
        timetable = Timetable(
            title=PAGE_TITLE,
            season_name=season_name,
            mode=mode,
            days=_build_days(programs_by_day, mode, config),
            generated_at=generated_at,
            config=config,
        )
        other_page = MODE_PAGES["area" if mode == "channel" else "channel"]
        save_html(generate_html(timetable, alt_view_href=other_page), output_dir / page)

    # Step 3: Optional work page
    if args.work is not None:
        if client is None:
            try:
                client = create_client()
            except ValueError as e:
                _fail(f"--work needs the backend: {e}")
        print(f"\nFetching work {args.work}...")
        try:
            work = fetch_work(client, args.work)
        except httpx.HTTPError as e:
            _fail(f"Fetching work failed: {e}")
        if work is None:
            print(f"Warning: work {args.work} not found, skipping its page")
        else:
            save_html(generate_work_html(work, config), output_dir / "works" / f"{work.id}.html")

    if client is not None:
        client.close()

    print(f"\nDone! Open {output_dir / MODE_PAGES['channel']} in a browser to view the timetable.")


if __name__ == "__main__":
    main()
