"""Fetch schedule data from the Supabase (PostgREST) backend.

Rows come back nested (program -> work, channel -> area, tags); they are
flattened into ProgramRecord with placeholder labels for missing metadata
so the layout engine never sees holes.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path

import httpx

from models import ProgramRecord, Season, Work, WorkBroadcast

UNTITLED_WORK = "TBA"
UNKNOWN_CHANNEL = "Unknown channel"
UNKNOWN_AREA = "Unknown area"

SCHEDULE_SELECT = (
    "id,start_date,start_time,end_time,color,day_of_the_week,version,note,"
    "works(id,name,website_url,annict_url,wikipedia_url),"
    "channels(id,name,order,areas(id,name,order)),"
    "programs_seasons!inner(season_id),"
    "programs_tags(tags(name))"
)

WORK_SELECT = (
    "*,programs(*,channels(name),"
    "programs_seasons(seasons(id,name)),"
    "programs_tags(tags(id,name)))"
)


def current_day(now: datetime | None = None) -> int:
    """Today's weekday as stored in the backend (1-7)."""
    now = now or datetime.now()
    return now.isoweekday()


def create_client(
    url: str | None = None,
    key: str | None = None,
    timeout: float = 30,
) -> httpx.Client:
    """Build an httpx client for the REST endpoint of the Supabase project.

    Falls back to SUPABASE_URL / SUPABASE_KEY from the environment.
    """
    url = url or os.getenv("SUPABASE_URL")
    key = key or os.getenv("SUPABASE_KEY")
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set")

    return httpx.Client(
        base_url=f"{url.rstrip('/')}/rest/v1",
        headers={"apikey": key, "Authorization": f"Bearer {key}"},
        timeout=timeout,
        follow_redirects=True,
    )


def _get_rows(client: httpx.Client, table: str, params: dict) -> list[dict]:
    resp = client.get(f"/{table}", params=params)
    resp.raise_for_status()
    return resp.json() or []


def flatten_program_row(row: dict) -> ProgramRecord:
    """Flatten one nested `programs` row into a ProgramRecord."""
    work = row.get("works") or {}
    channel = row.get("channels") or {}
    area = channel.get("areas") or {}

    tags = []
    for pt in row.get("programs_tags") or []:
        name = (pt.get("tags") or {}).get("name")
        if name:
            tags.append(name)

    return ProgramRecord(
        id=row["id"],
        name=work.get("name") or UNTITLED_WORK,
        start_time=row.get("start_time"),
        end_time=row.get("end_time"),
        channel_id=channel.get("id") or 0,
        channel_name=channel.get("name") or UNKNOWN_CHANNEL,
        channel_order=channel.get("order") or 0,
        area_id=area.get("id") or 0,
        area_name=area.get("name") or UNKNOWN_AREA,
        area_order=area.get("order") or 0,
        color=row.get("color"),
        work_id=work.get("id"),
        start_date=row.get("start_date"),
        day_of_week=row.get("day_of_the_week"),
        version=row.get("version"),
        note=row.get("note"),
        website_url=work.get("website_url"),
        annict_url=work.get("annict_url"),
        wikipedia_url=work.get("wikipedia_url"),
        tags=tuple(tags),
    )


def fetch_schedule_by_day(client: httpx.Client, day: int, season_id: int) -> list[ProgramRecord]:
    """All programs airing on `day` (1-7) in the given season."""
    rows = _get_rows(
        client,
        "programs",
        {
            "select": SCHEDULE_SELECT,
            "day_of_the_week": f"eq.{day}",
            "programs_seasons.season_id": f"eq.{season_id}",
            "order": "start_time.asc",
        },
    )
    return [flatten_program_row(row) for row in rows]


def fetch_seasons(client: httpx.Client) -> list[Season]:
    """All seasons, newest first."""
    rows = _get_rows(client, "seasons", {"select": "id,name", "order": "id.desc"})
    return [Season(id=row["id"], name=row["name"]) for row in rows]


def latest_season_id(seasons: list[Season]) -> int:
    return seasons[0].id if seasons else 0


def _work_broadcast_from_row(row: dict) -> WorkBroadcast:
    channel = row.get("channels") or {}
    seasons = [
        Season(id=ps["seasons"]["id"], name=ps["seasons"]["name"])
        for ps in row.get("programs_seasons") or []
        if ps.get("seasons")
    ]
    tags = [
        pt["tags"]["name"]
        for pt in row.get("programs_tags") or []
        if pt.get("tags") and pt["tags"].get("name")
    ]
    return WorkBroadcast(
        id=row["id"],
        start_time=row.get("start_time"),
        end_time=row.get("end_time"),
        channel_name=channel.get("name") or UNTITLED_WORK,
        day_of_week=row.get("day_of_the_week"),
        start_date=row.get("start_date"),
        color=row.get("color"),
        version=row.get("version"),
        note=row.get("note"),
        order=row.get("order") or 0,
        seasons=seasons,
        tags=tags,
    )


def fetch_work(client: httpx.Client, work_id: int) -> Work | None:
    """A work with every broadcast of it, or None if it does not exist."""
    rows = _get_rows(client, "works", {"select": WORK_SELECT, "id": f"eq.{work_id}"})
    if not rows:
        return None

    row = rows[0]
    programs = [_work_broadcast_from_row(p) for p in row.get("programs") or []]
    programs.sort(key=lambda p: p.order)
    return Work(
        id=row["id"],
        name=row.get("name") or UNTITLED_WORK,
        website_url=row.get("website_url"),
        annict_url=row.get("annict_url"),
        wikipedia_url=row.get("wikipedia_url"),
        programs=programs,
    )


def load_programs_file(path: str | Path) -> list[ProgramRecord]:
    """Read a local JSON dump of program rows (nested or already flat)."""
    path = Path(path)
    rows = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(rows, list):
        raise ValueError(f"{path}: expected a JSON list of program rows")

    programs = []
    for row in rows:
        if "channels" in row or "works" in row:
            programs.append(flatten_program_row(row))
        else:
            programs.append(ProgramRecord.from_dict(row))
    return programs
