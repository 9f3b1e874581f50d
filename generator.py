"""Generate static HTML pages for the broadcast timetable."""

from __future__ import annotations

from datetime import date
from pathlib import Path

from models import (
    LayoutConfig,
    LayoutGroup,
    PositionedProgram,
    Timetable,
    Work,
    day_label,
    format_time_range,
    hour_marks,
)

# Palette selected by ProgramRecord.color (1-based); index 0 doubles as fallback
PROGRAM_COLORS = [
    {"bg": "#F3F4F6", "border": "#E5E7EB", "text": "#1F2937"},  # Gray
    {"bg": "#FEE2E2", "border": "#FECACA", "text": "#7F1D1D"},  # Red
    {"bg": "#DBEAFE", "border": "#BFDBFE", "text": "#1E3A8A"},  # Blue
    {"bg": "#DCFCE7", "border": "#BBF7D0", "text": "#14532D"},  # Green
    {"bg": "#FEF9C3", "border": "#FEF08A", "text": "#713F12"},  # Yellow
    {"bg": "#F3E8FF", "border": "#E9D5FF", "text": "#581C87"},  # Purple
    {"bg": "#FCE7F3", "border": "#FBCFE8", "text": "#831843"},  # Pink
    {"bg": "#FFEDD5", "border": "#FED7AA", "text": "#7C2D12"},  # Orange
    {"bg": "#CCFBF1", "border": "#99F6E4", "text": "#134E4A"},  # Teal
]

TIME_COL_WIDTH = 35
HEADER_HEIGHT = 40

MODE_TITLES = {"channel": "By channel", "area": "By area"}

EXTERNAL_LINKS = (
    ("website_url", "Official site"),
    ("annict_url", "Annict"),
    ("wikipedia_url", "Wikipedia"),
)


def program_color(color: int | None) -> dict:
    """Palette entry for a color code, falling back to gray."""
    if isinstance(color, int) and 1 <= color <= len(PROGRAM_COLORS):
        return PROGRAM_COLORS[color - 1]
    return PROGRAM_COLORS[0]


def _generate_css(config: LayoutConfig) -> str:
    """Generate the CSS for the timetable pages."""
    root = f"""
:root {{
    --time-col-width: {TIME_COL_WIDTH}px;
    --header-height: {HEADER_HEIGHT}px;
    --grid-height: {config.grid_height}px;
    --grid-line: #F3F4F6;
    --text: #1F2937;
    --text-muted: #6B7280;
    --border: #E5E7EB;
    --shadow: 0 1px 3px rgba(0,0,0,0.1);
}}
"""
    return root + """
* { margin: 0; padding: 0; box-sizing: border-box; }

body {
    font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
    background: #F9FAFB;
    color: var(--text);
    line-height: 1.4;
}

.container {
    margin: 0 auto;
    padding: 16px;
}

header {
    display: flex;
    align-items: baseline;
    justify-content: space-between;
    flex-wrap: wrap;
    gap: 8px;
    margin-bottom: 12px;
}

header h1 {
    font-size: 20px;
    font-weight: 700;
}

header .meta {
    font-size: 12px;
    color: var(--text-muted);
}

.view-switch {
    font-size: 13px;
    color: #2563EB;
}

/* Tabs */
.tabs {
    display: flex;
    gap: 4px;
    margin-bottom: 12px;
    border-bottom: 2px solid var(--border);
    flex-wrap: wrap;
}

.tab {
    padding: 8px 20px;
    border: none;
    background: transparent;
    color: var(--text-muted);
    font-size: 14px;
    font-weight: 500;
    cursor: pointer;
    border-bottom: 2px solid transparent;
    margin-bottom: -2px;
    border-radius: 6px 6px 0 0;
}

.tab:hover {
    background: #F3F4F6;
    color: var(--text);
}

.tab.active {
    color: #2563EB;
    border-bottom-color: #2563EB;
    font-weight: 600;
}

.day-panel { display: none; }
.day-panel.active { display: block; }

.empty-day {
    padding: 32px;
    text-align: center;
    color: var(--text-muted);
}

/* Timetable */
.grid-wrapper {
    background: white;
    border-radius: 8px;
    box-shadow: var(--shadow);
    overflow: auto;
    max-height: calc(100vh - 140px);
}

.timetable {
    position: relative;
    min-width: 100%;
}

.header-row {
    display: flex;
    position: sticky;
    top: 0;
    z-index: 30;
    background: white;
    border-bottom: 1px solid var(--border);
    height: var(--header-height);
}

.corner {
    position: sticky;
    left: 0;
    z-index: 31;
    width: var(--time-col-width);
    flex-shrink: 0;
    background: #F9FAFB;
    border-right: 1px solid var(--border);
}

.group-header {
    display: flex;
    align-items: center;
    justify-content: center;
    flex-shrink: 0;
    font-size: 13px;
    font-weight: 700;
    color: #374151;
    border-right: 1px solid var(--border);
    padding: 0 8px;
    white-space: nowrap;
    overflow: hidden;
    text-overflow: ellipsis;
}

.grid-body {
    display: flex;
    position: relative;
}

.time-axis {
    position: sticky;
    left: 0;
    z-index: 20;
    width: var(--time-col-width);
    height: var(--grid-height);
    flex-shrink: 0;
    background: #F9FAFB;
    border-right: 1px solid var(--border);
    font-family: monospace;
    font-size: 12px;
    color: var(--text-muted);
}

.hour-label {
    position: absolute;
    width: 100%;
    display: flex;
    justify-content: center;
    padding-top: 4px;
    border-bottom: 1px solid var(--border);
}

.group-column {
    position: relative;
    flex-shrink: 0;
    height: var(--grid-height);
    border-right: 1px solid var(--grid-line);
}

.hour-line {
    position: absolute;
    width: 100%;
    border-bottom: 1px solid var(--grid-line);
    pointer-events: none;
}

/* Program blocks */
.program-block {
    position: absolute;
    padding: 4px;
    border-radius: 4px;
    border: 1px solid var(--program-border);
    background: var(--program-bg);
    color: var(--program-text);
    overflow: hidden;
    cursor: pointer;
    display: flex;
    flex-direction: column;
    z-index: 10;
    transition: box-shadow 0.15s;
}

.program-block:hover {
    box-shadow: 0 4px 16px rgba(0,0,0,0.25);
    z-index: 15;
}

.program-start-date {
    font-size: 11px;
    color: #4B5563;
    flex-shrink: 0;
}

.program-time {
    font-family: monospace;
    font-size: 11px;
    opacity: 0.7;
    line-height: 1;
    margin-bottom: 2px;
    flex-shrink: 0;
}

.program-name {
    font-weight: 700;
    font-size: 13px;
    line-height: 1.2;
    overflow: hidden;
    display: -webkit-box;
    -webkit-line-clamp: 2;
    -webkit-box-orient: vertical;
}

/* Click-to-show popup */
.popup-backdrop {
    display: none;
    position: fixed;
    inset: 0;
    z-index: 90;
}

.popup-backdrop.active { display: block; }

.popup-floating {
    display: none;
    position: fixed;
    background: white;
    color: var(--text);
    padding: 14px 16px;
    border-radius: 8px;
    font-size: 12px;
    z-index: 200;
    box-shadow: 0 4px 16px rgba(0,0,0,0.25);
    line-height: 1.6;
    width: 320px;
}

.popup-floating.show { display: block; }

.popup-floating .popup-close {
    position: absolute;
    top: 4px;
    right: 8px;
    cursor: pointer;
    font-size: 14px;
    color: #9CA3AF;
    background: none;
    border: none;
    line-height: 1;
}

.popup-meta {
    display: flex;
    justify-content: space-between;
    color: var(--text-muted);
    font-size: 11px;
}

.popup-title { font-size: 14px; font-weight: 700; margin: 4px 0; }
.popup-version { color: #2563EB; font-weight: 500; }
.popup-note { color: var(--text-muted); white-space: pre-wrap; }

.tag {
    display: inline-block;
    padding: 1px 6px;
    margin: 2px 2px 0 0;
    background: #F3F4F6;
    border-radius: 3px;
    font-size: 10px;
}

.links {
    display: flex;
    gap: 8px;
    margin-top: 6px;
    padding-top: 6px;
    border-top: 1px solid var(--border);
}

.links a {
    font-size: 12px;
    padding: 2px 8px;
    background: #F3F4F6;
    border-radius: 4px;
    color: #374151;
    text-decoration: none;
}

/* Work page */
.work {
    max-width: 896px;
    margin: 0 auto;
    padding: 24px 16px;
}

.work h2 { font-size: 26px; margin: 16px 0; }
.work h3 { font-size: 20px; margin: 24px 0 12px; }

.broadcasts {
    border: 1px solid var(--border);
    border-radius: 16px;
    overflow: hidden;
}

.broadcast {
    padding: 16px;
    background: var(--program-bg);
    color: var(--program-text);
    border-bottom: 1px solid rgba(0,0,0,0.1);
}

.broadcast:last-child { border-bottom: none; }

.broadcast-head {
    display: flex;
    justify-content: space-between;
    flex-wrap: wrap;
    gap: 8px;
}

.broadcast-channel { font-weight: 700; font-size: 16px; }
.broadcast-when { font-family: monospace; font-size: 13px; }

@media (max-width: 768px) {
    .container { padding: 8px; }
    header h1 { font-size: 16px; }
    .tab { padding: 6px 14px; font-size: 13px; }
}
"""


def _generate_js() -> str:
    """Generate the JavaScript for tab switching and program popups."""
    return """
document.addEventListener('DOMContentLoaded', function() {
    const STATE_KEY = 'timetable_active_day';

    // Tab switching
    const tabs = document.querySelectorAll('.tab');
    const panels = document.querySelectorAll('.day-panel');

    tabs.forEach(tab => {
        tab.addEventListener('click', function() {
            tabs.forEach(t => t.classList.remove('active'));
            panels.forEach(p => p.classList.remove('active'));
            this.classList.add('active');
            const panel = document.getElementById('day-' + this.dataset.day);
            if (panel) panel.classList.add('active');
            try {
                sessionStorage.setItem(STATE_KEY, this.dataset.day);
            } catch (e) {
                // sessionStorage may be unavailable
            }
        });
    });

    // Restore the last tab, else today's weekday (1 = Monday ... 7 = Sunday)
    let initialDay = null;
    try {
        initialDay = sessionStorage.getItem(STATE_KEY);
    } catch (e) {
        initialDay = null;
    }
    if (!initialDay) {
        const jsDay = new Date().getDay();
        initialDay = String(jsDay === 0 ? 7 : jsDay);
    }
    const initialTab = document.querySelector('.tab[data-day="' + initialDay + '"]')
        || document.querySelector('.tab');
    if (initialTab) initialTab.click();

    // Click-to-show popup on program blocks (shared floating popup)
    const backdrop = document.getElementById('popup-backdrop');
    const popupEl = document.getElementById('popup-floating');
    const popupContent = document.getElementById('popup-content');
    const popupCloseBtn = document.getElementById('popup-close-btn');

    function closePopup() {
        popupEl.classList.remove('show');
        backdrop.classList.remove('active');
    }

    document.querySelectorAll('.program-block').forEach(block => {
        block.addEventListener('click', function(e) {
            e.stopPropagation();
            const html = this.getAttribute('data-popup');
            if (!html) return;
            const wasOpen = popupEl.classList.contains('show');
            closePopup();
            if (!wasOpen || popupContent.innerHTML !== html) {
                popupContent.innerHTML = html;
                const blockRect = this.getBoundingClientRect();
                popupEl.classList.add('show');
                backdrop.classList.add('active');
                let left = blockRect.right + 4;
                let top = blockRect.top;
                const pRect = popupEl.getBoundingClientRect();
                if (left + pRect.width > window.innerWidth - 8) {
                    left = blockRect.left - pRect.width - 4;
                }
                if (left < 8) left = 8;
                if (top + pRect.height > window.innerHeight - 8) {
                    top = window.innerHeight - pRect.height - 8;
                }
                if (top < 8) top = 8;
                popupEl.style.left = left + 'px';
                popupEl.style.top = top + 'px';
            }
        });
    });

    backdrop.addEventListener('click', closePopup);
    popupCloseBtn.addEventListener('click', function(e) {
        e.stopPropagation();
        closePopup();
    });
});
"""


def _parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _format_start_date(start_date: str | None) -> str:
    """'2025-01-09' -> 'Jan 9 start'; unparseable dates are shown as-is."""
    if not start_date:
        return ""
    parsed = _parse_date(start_date)
    if parsed is None:
        return start_date
    return f"{parsed:%b} {parsed.day} start"


def _short_date(start_date: str) -> str:
    """'2025-01-09' -> '1/9'."""
    parsed = _parse_date(start_date)
    if parsed is None:
        return start_date
    return f"{parsed.month}/{parsed.day}"


def _links_html(source) -> str:
    links = []
    for attr, label in EXTERNAL_LINKS:
        href = getattr(source, attr, None)
        if href:
            links.append(
                f'<a href="{_esc(href)}" target="_blank" rel="noopener noreferrer">{_esc(label)} &#8599;</a>'
            )
    if not links:
        return ""
    return f'<div class="links">{"".join(links)}</div>'


def _tags_html(tags) -> str:
    return "".join(f'<span class="tag">{_esc(tag)}</span>' for tag in tags)


def _popup_html(item: PositionedProgram, config: LayoutConfig) -> str:
    """Detail card shown when a program block is clicked."""
    program = item.program
    time_range = format_time_range(program.start_time, program.end_time, config.day_start_hour)
    when = time_range
    if program.start_date:
        when = f"{_short_date(program.start_date)} {time_range}"

    parts = [
        '<div class="popup-meta">'
        f"<span>{_esc(program.channel_name)}</span>"
        f"<span>{_esc(when)}</span>"
        "</div>",
        f'<div class="popup-title">{_esc(program.name)}</div>',
    ]
    if program.version:
        parts.append(f'<div class="popup-version">{_esc(program.version)}</div>')
    if program.note:
        parts.append(f'<div class="popup-note">{_esc(program.note)}</div>')
    if program.tags:
        parts.append(f"<div>{_tags_html(program.tags)}</div>")
    parts.append(_links_html(program))
    return "".join(parts)


def _program_block_html(item: PositionedProgram, config: LayoutConfig) -> str:
    program = item.program
    colors = program_color(program.color)
    style = (
        f"top:{item.top}px;"
        f"left:{item.left + 2}px;"
        f"width:{config.column_width - 4}px;"
        f"height:{item.height - 2}px;"
        f"--program-bg:{colors['bg']};"
        f"--program-border:{colors['border']};"
        f"--program-text:{colors['text']}"
    )

    start_date_html = ""
    if program.start_date:
        start_date_html = f'<span class="program-start-date">{_esc(_format_start_date(program.start_date))}</span>'
    time_range = format_time_range(program.start_time, program.end_time, config.day_start_hour)

    popup_attr = _attr(_popup_html(item, config))
    classes = "program-block next-day" if item.crosses_midnight else "program-block"
    return (
        f'                    <div class="{classes}" style="{style}"'
        f' data-lane="{item.lane_index}"'
        f' data-popup="{popup_attr}">'
        f"{start_date_html}"
        f'<span class="program-time">{_esc(time_range)}</span>'
        f'<span class="program-name">{_esc(program.name)}</span>'
        "</div>\n"
    )


def _day_grid_html(groups: list[LayoutGroup], config: LayoutConfig) -> str:
    """Header row, time axis and group columns for one day."""
    marks = hour_marks(config)
    hour_height = 60 * config.pixels_per_minute
    total_width = sum(g.width for g in groups) + TIME_COL_WIDTH

    parts = [
        '        <div class="grid-wrapper">\n'
        f'            <div class="timetable" style="width:{total_width}px">\n'
        '                <div class="header-row">\n'
        '                    <div class="corner"></div>\n'
    ]
    for group in groups:
        parts.append(
            f'                    <div class="group-header" style="width:{group.width}px">'
            f"{_esc(group.label)}</div>\n"
        )
    parts.append("                </div>\n")

    parts.append('                <div class="grid-body">\n')
    parts.append('                    <div class="time-axis">\n')
    for hour, top in marks:
        parts.append(
            f'                        <div class="hour-label" style="top:{top}px;height:{hour_height}px">{hour}</div>\n'
        )
    parts.append("                    </div>\n")

    for group in groups:
        parts.append(
            f'                <div class="group-column" data-key="{group.key}" style="width:{group.width}px">\n'
        )
        for _, top in marks:
            parts.append(f'                    <div class="hour-line" style="top:{top}px"></div>\n')
        for item in group.programs:
            parts.append(_program_block_html(item, config))
        parts.append("                </div>\n")

    parts.append(
        "                </div>\n"
        "            </div>\n"
        "        </div>\n"
    )
    return "".join(parts)


def generate_html(timetable: Timetable, alt_view_href: str | None = None) -> str:
    """Generate the complete timetable page (one tab per broadcast day)."""
    config = timetable.config
    mode_title = MODE_TITLES.get(timetable.mode, timetable.mode)

    switch_html = ""
    if alt_view_href:
        other = "area" if timetable.mode == "channel" else "channel"
        switch_html = f'<a class="view-switch" href="{_esc(alt_view_href)}">{_esc(MODE_TITLES[other])}</a>'

    html_parts = [f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{_esc(timetable.title)} - {_esc(timetable.season_name)}</title>
    <style>{_generate_css(config)}</style>
</head>
<body>
<div class="container">
    <header>
        <h1>{_esc(timetable.title)}</h1>
        <p class="meta">{_esc(timetable.season_name)} &nbsp;|&nbsp; {_esc(mode_title)} &nbsp;|&nbsp; Generated: {_esc(timetable.generated_at)}</p>
        {switch_html}
    </header>
"""]

    # Day tabs
    html_parts.append('    <div class="tabs">\n')
    for day in timetable.days:
        html_parts.append(f'        <button class="tab" data-day="{day.day_id}">{_esc(day.day_label)}</button>\n')
    html_parts.append("    </div>\n")

    # Day panels
    for day in timetable.days:
        html_parts.append(f'    <div class="day-panel" id="day-{day.day_id}">\n')
        if day.groups:
            html_parts.append(_day_grid_html(day.groups, config))
        else:
            html_parts.append('        <div class="empty-day">No broadcasts scheduled.</div>\n')
        html_parts.append("    </div>\n")

    html_parts.append('    <div class="popup-backdrop" id="popup-backdrop"></div>\n')
    html_parts.append(
        '    <div class="popup-floating" id="popup-floating"><div id="popup-content"></div>'
        '<button class="popup-close" id="popup-close-btn">&times;</button></div>\n'
    )
    html_parts.append(f"""</div>
<script>{_generate_js()}</script>
</body>
</html>""")

    return "".join(html_parts)


def generate_work_html(work: Work, config: LayoutConfig | None = None) -> str:
    """Generate the detail page for one work and all of its broadcasts."""
    config = config or LayoutConfig()

    rows = []
    for broadcast in work.programs:
        colors = program_color(broadcast.color)
        style = (
            f"--program-bg:{colors['bg']};"
            f"--program-border:{colors['border']};"
            f"--program-text:{colors['text']}"
        )
        start = broadcast.start_date.replace("-", "/") if broadcast.start_date else "Date TBA"
        time_range = format_time_range(broadcast.start_time, broadcast.end_time, config.day_start_hour)
        seasons = _tags_html(s.name for s in broadcast.seasons)
        details = []
        if broadcast.version:
            details.append(f'<span class="popup-version">{_esc(broadcast.version)}</span> ')
        if broadcast.tags:
            details.append(_tags_html(broadcast.tags))
        if broadcast.note:
            details.append(f'<p class="popup-note">{_esc(broadcast.note)}</p>')

        rows.append(
            f'            <div class="broadcast" style="{style}">\n'
            '                <div class="broadcast-head">\n'
            f'                    <div><span class="broadcast-channel">{_esc(broadcast.channel_name)}</span> {seasons}</div>\n'
            f'                    <div class="broadcast-when">{_esc(start)} start | '
            f"{_esc(day_label(broadcast.day_of_week))} {_esc(time_range)}</div>\n"
            "                </div>\n"
            f"                <div>{''.join(details)}</div>\n"
            "            </div>\n"
        )

    if rows:
        broadcasts_html = '        <div class="broadcasts">\n' + "".join(rows) + "        </div>\n"
    else:
        broadcasts_html = '        <p class="empty-day">No broadcasts registered.</p>\n'

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{_esc(work.name)}</title>
    <style>{_generate_css(config)}</style>
</head>
<body>
<div class="work">
    <h2>{_esc(work.name)}</h2>
    {_links_html(work)}
    <h3>Broadcast schedule</h3>
{broadcasts_html}</div>
</body>
</html>"""


def save_html(html: str, output_path: str | Path = "docs/index.html") -> Path:
    """Write a generated page, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(html, encoding="utf-8")
    print(f"HTML saved to: {output_path}")
    return output_path


def _esc(text) -> str:
    """HTML-escape a string."""
    if text is None:
        return ""
    return (
        str(text).replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _attr(html: str) -> str:
    """Escape already-built HTML for use inside a double-quoted attribute."""
    return html.replace("&", "&amp;").replace('"', "&quot;").replace("'", "&#39;")
