"""
HTML rendering for the dashboard pages.

Plain f-string templates; every value interpolated into markup goes
through esc(). Charts are CSS bars sized as a percentage of the largest
value in the series.
"""

import html
from typing import Any, Iterable, Optional
from urllib.parse import urlencode

from iplstats.models import Innings, Match, Player, Standing, Team
from iplstats.stats.service import (
    BattingLeader,
    BowlingLeader,
    TeamPerformance,
    TournamentSummary,
)

NAV_ITEMS = [
    ("/dashboard", "Dashboard"),
    ("/dashboard/teams", "Teams"),
    ("/dashboard/players", "Players"),
    ("/dashboard/matches", "Matches"),
]

ROLE_OPTIONS = [("", "All roles"), ("bat", "Batsman"), ("bowl", "Bowler"), ("all", "All-rounder"), ("wk", "Wicket-keeper")]

STYLE = """
    * { margin: 0; padding: 0; box-sizing: border-box; }
    body {
        font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
        background: #0f172a;
        color: #e2e8f0;
        min-height: 100vh;
    }
    nav { display: flex; gap: 24px; padding: 16px 32px; background: #1e293b; border-bottom: 1px solid #334155; }
    nav .brand { font-weight: 700; color: #f59e0b; margin-right: 24px; }
    nav a { color: #94a3b8; text-decoration: none; }
    nav a.active { color: #fff; font-weight: 600; }
    main { padding: 32px; max-width: 1200px; margin: 0 auto; }
    h1 { font-size: 26px; margin-bottom: 24px; }
    h3 { font-size: 16px; margin-bottom: 12px; color: #cbd5e1; }
    .grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(180px, 1fr)); gap: 16px; margin-bottom: 24px; }
    .two-col { display: grid; grid-template-columns: repeat(auto-fit, minmax(420px, 1fr)); gap: 24px; margin-bottom: 24px; }
    .card { background: #1e293b; border: 1px solid #334155; border-radius: 12px; padding: 20px; }
    .stat-value { font-size: 28px; font-weight: 700; color: #fff; }
    .stat-label { font-size: 13px; color: #94a3b8; margin-top: 4px; }
    table { width: 100%; border-collapse: collapse; font-size: 14px; }
    th, td { padding: 8px 10px; text-align: left; border-bottom: 1px solid #334155; }
    th { color: #94a3b8; font-weight: 500; }
    td.num, th.num { text-align: right; }
    .bar-row { display: flex; align-items: center; gap: 12px; margin-bottom: 8px; font-size: 13px; }
    .bar-label { width: 160px; overflow: hidden; text-overflow: ellipsis; white-space: nowrap; }
    .bar-track { flex: 1; background: #0f172a; border-radius: 4px; height: 14px; }
    .bar { background: #f59e0b; height: 14px; border-radius: 4px; }
    .bar-value { width: 48px; text-align: right; }
    .empty-state, .error-state { text-align: center; padding: 48px 16px; color: #94a3b8; }
    .error-state h3 { color: #f87171; }
    .pager { display: flex; gap: 16px; align-items: center; margin-top: 16px; font-size: 14px; }
    .pager a { color: #f59e0b; }
    form.filters { display: flex; gap: 12px; margin-bottom: 16px; }
    form.filters input, form.filters select, form.filters button {
        background: #0f172a; color: #e2e8f0; border: 1px solid #334155; border-radius: 6px; padding: 6px 10px;
    }
    .muted { color: #94a3b8; font-size: 13px; }
    a { color: #fbbf24; }
"""


def esc(value: Any, default: str = "-") -> str:
    if value is None or value == "":
        return default
    return html.escape(str(value))


def fmt_rate(value: Optional[float]) -> str:
    """Rates render as two decimals; None (not computed) renders as '-'."""
    return "-" if value is None else f"{value:.2f}"


def layout(title: str, body: str, active: str = "/dashboard") -> str:
    links = "".join(
        f'<a href="{href}" class="{"active" if href == active else ""}">{label}</a>'
        for href, label in NAV_ITEMS
    )
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{esc(title)} | IPL 2022</title>
    <style>{STYLE}</style>
</head>
<body>
    <nav><span class="brand">IPL 2022 Stats</span>{links}</nav>
    <main>
        <h1>{esc(title)}</h1>
        {body}
    </main>
</body>
</html>"""


def empty_state(title: str = "No data found", description: str = "There are no items to display at the moment.") -> str:
    return f'<div class="empty-state"><h3>{esc(title)}</h3><p>{esc(description)}</p></div>'


DEFAULT_ERROR_MESSAGE = "An error occurred while loading the data. Please try again."


def error_state(message: str = DEFAULT_ERROR_MESSAGE) -> str:
    return f'<div class="error-state"><h3>Something went wrong</h3><p>{esc(message)}</p></div>'


def render_error_page(title: str, message: str = DEFAULT_ERROR_MESSAGE, active: str = "/dashboard") -> str:
    return layout(title, error_state(message), active)


def stat_card(label: str, value: Any) -> str:
    return f'<div class="card"><div class="stat-value">{esc(value, "0")}</div><div class="stat-label">{esc(label)}</div></div>'


def bar_chart(series: list[tuple[str, float]]) -> str:
    """Horizontal bars scaled to the largest value."""
    if not series:
        return empty_state("No data yet", "Seed the database to see this chart.")
    top = max(value for _, value in series) or 1
    rows = []
    for label, value in series:
        width = max(0.0, min(100.0, value / top * 100))
        rows.append(
            f'<div class="bar-row"><span class="bar-label">{esc(label)}</span>'
            f'<span class="bar-track"><span class="bar" style="display:block;width:{width:.1f}%"></span></span>'
            f'<span class="bar-value">{esc(value, "0")}</span></div>'
        )
    return "".join(rows)


def table(headers: list[str], rows: Iterable[list[str]], numeric_from: int = 99) -> str:
    """Cells are pre-escaped HTML; columns from `numeric_from` on are right-aligned."""
    head = "".join(
        f'<th class="{"num" if i >= numeric_from else ""}">{esc(h)}</th>' for i, h in enumerate(headers)
    )
    body = "".join(
        "<tr>" + "".join(
            f'<td class="{"num" if i >= numeric_from else ""}">{cell}</td>' for i, cell in enumerate(row)
        ) + "</tr>"
        for row in rows
    )
    return f"<table><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>"


def pager(base: str, page: int, pages: int, params: Optional[dict] = None) -> str:
    if pages <= 1:
        return ""
    params = {k: v for k, v in (params or {}).items() if v}

    def link(target: int, label: str) -> str:
        query = urlencode({**params, "page": target})
        return f'<a href="{base}?{esc(query)}">{label}</a>'

    prev_link = link(page - 1, "&larr; Previous") if page > 1 else ""
    next_link = link(page + 1, "Next &rarr;") if page < pages else ""
    return f'<div class="pager">{prev_link}<span>Page {page} of {pages}</span>{next_link}</div>'


# ---------------------------------------------------------------------------
# Shared tables
# ---------------------------------------------------------------------------

def _team_name(team: Optional[Team]) -> str:
    return esc(team.title if team else None, "TBD")


def standings_table(standings: list[Standing]) -> str:
    if not standings:
        return empty_state("No standings", "The points table has not been loaded.")
    rows = [
        [
            esc(s.position),
            _team_name(s.team),
            esc(s.played, "0"),
            esc(s.wins, "0"),
            esc(s.losses, "0"),
            esc(s.no_result, "0"),
            fmt_rate(s.net_run_rate),
            esc(s.points, "0"),
        ]
        for s in standings
    ]
    return table(["#", "Team", "P", "W", "L", "NR", "NRR", "Pts"], rows, numeric_from=2)


def _leader_name(player: Optional[Player]) -> str:
    if player is None:
        return "-"
    return esc(player.title)


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

def render_overview(
    summary: TournamentSummary,
    batsmen: list[BattingLeader],
    performance: list[TeamPerformance],
    standings: list[Standing],
) -> str:
    if summary.total_matches == 0 and summary.total_teams == 0:
        return layout("Tournament Overview", empty_state(
            "No data loaded", "Run scripts/seed_database.py to load the IPL fixtures.",
        ))

    cards = "".join([
        stat_card("Matches", summary.total_matches),
        stat_card("Teams", summary.total_teams),
        stat_card("Players", summary.total_players),
        stat_card("Runs", summary.total_runs),
        stat_card("Wickets", summary.total_wickets),
    ])

    def record_card(title: str, record, unit: str) -> str:
        if record is None:
            return f'<div class="card"><h3>{title}</h3><p class="muted">No records yet</p></div>'
        return (
            f'<div class="card"><h3>{title}</h3>'
            f'<div class="stat-value">{esc(record.value)} {unit}</div>'
            f'<div class="stat-label">{esc(record.player)} &middot; {esc(record.match)}</div></div>'
        )

    records = (
        record_card("Highest Individual Score", summary.highest_individual_score, "runs")
        + record_card("Best Bowling Figures", summary.best_bowling_figures, "wickets")
    )

    run_series = [
        (leader.player.title if leader.player else "Unknown", leader.stats.runs) for leader in batsmen
    ]
    win_series = [(p.team.abbreviation or p.team.title, p.matches_won) for p in performance]

    body = f"""
        <div class="grid">{cards}</div>
        <div class="two-col">{records}</div>
        <div class="two-col">
            <div class="card"><h3>Top Run Scorers</h3>{bar_chart(run_series)}</div>
            <div class="card"><h3>Team Wins Distribution</h3>{bar_chart(win_series)}</div>
        </div>
        <div class="card"><h3>Points Table</h3>{standings_table(standings)}</div>
    """
    return layout("Tournament Overview", body)


def render_teams(teams: list[Team], standings: list[Standing], page: int, pages: int) -> str:
    if not teams:
        return layout("Teams", empty_state("No teams found"), "/dashboard/teams")

    rows = [
        [esc(t.abbreviation), esc(t.title), esc(t.country)]
        for t in teams
    ]
    body = f"""
        <div class="card">{table(["Abbr", "Team", "Country"], rows)}{pager("/dashboard/teams", page, pages)}</div>
        <br>
        <div class="card"><h3>Points Table</h3>{standings_table(standings)}</div>
    """
    return layout("Teams", body, "/dashboard/teams")


def render_players(
    players: list[Player],
    page: int,
    pages: int,
    total: int,
    search: Optional[str],
    role: Optional[str],
    batsmen: list[BattingLeader],
    bowlers: list[BowlingLeader],
) -> str:
    options = "".join(
        f'<option value="{value}"{" selected" if value == (role or "") else ""}>{label}</option>'
        for value, label in ROLE_OPTIONS
    )
    filters = f"""
        <form class="filters" method="get" action="/dashboard/players">
            <input type="text" name="search" placeholder="Search players..." value="{esc(search, "")}">
            <select name="role">{options}</select>
            <button type="submit">Filter</button>
        </form>
    """

    if players:
        rows = [
            [esc(p.title), esc(p.playing_role), esc(p.country), esc(p.batting_style), esc(p.bowling_style)]
            for p in players
        ]
        listing = (
            f'<p class="muted">{total} players</p>'
            + table(["Player", "Role", "Country", "Batting", "Bowling"], rows)
            + pager("/dashboard/players", page, pages, {"search": search, "role": role})
        )
    else:
        listing = empty_state("No players found", "Try a different search or role filter.")

    orange = table(
        ["Player", "Runs", "SR", "Avg"],
        [[_leader_name(b.player), esc(b.stats.runs), fmt_rate(b.stats.strike_rate), fmt_rate(b.stats.average)] for b in batsmen],
        numeric_from=1,
    ) if batsmen else empty_state("No batting data")
    purple = table(
        ["Player", "Wkts", "Econ", "Avg"],
        [[_leader_name(b.player), esc(b.stats.wickets), fmt_rate(b.stats.economy), fmt_rate(b.stats.average)] for b in bowlers],
        numeric_from=1,
    ) if bowlers else empty_state("No bowling data")

    body = f"""
        <div class="card">{filters}{listing}</div>
        <br>
        <div class="two-col">
            <div class="card"><h3>Orange Cap Contenders</h3>{orange}</div>
            <div class="card"><h3>Purple Cap Contenders</h3>{purple}</div>
        </div>
    """
    return layout("Players", body, "/dashboard/players")


def _match_date(match: Match) -> str:
    return esc(match.date_start.strftime("%d %b %Y") if match.date_start else None)


def render_matches(matches: list[Match], page: int, pages: int) -> str:
    if not matches:
        return layout("Matches", empty_state("No matches found"), "/dashboard/matches")

    rows = [
        [
            _match_date(m),
            f'<a href="/dashboard/matches/{m.id}">{esc(m.short_title or m.title)}</a>',
            esc(m.venue.name if m.venue else None),
            esc(m.status_note or m.result),
        ]
        for m in matches
    ]
    body = f'<div class="card">{table(["Date", "Match", "Venue", "Result"], rows)}{pager("/dashboard/matches", page, pages)}</div>'
    return layout("Matches", body, "/dashboard/matches")


def _innings_card(innings: Innings) -> str:
    batting = table(
        ["Batter", "Dismissal", "R", "B", "4s", "6s", "SR"],
        [
            [esc(b.player.title if b.player else None), esc(b.how_out), esc(b.runs), esc(b.balls_faced),
             esc(b.fours), esc(b.sixes), fmt_rate(b.strike_rate)]
            for b in innings.batting_performances
        ],
        numeric_from=2,
    )
    bowling = table(
        ["Bowler", "O", "M", "R", "W", "Econ"],
        [
            [esc(b.player.title if b.player else None), esc(b.overs), esc(b.maidens), esc(b.runs_conceded),
             esc(b.wickets), fmt_rate(b.economy)]
            for b in innings.bowling_performances
        ],
        numeric_from=1,
    )
    extras = (
        f"Extras {innings.extras_total} (b {innings.extras_byes}, lb {innings.extras_leg_byes}, "
        f"w {innings.extras_wides}, nb {innings.extras_no_balls})"
    )
    return f"""
        <div class="card">
            <h3>{esc(innings.name) if innings.name else _team_name(innings.batting_team)}:
                {innings.total_runs}/{innings.total_wickets} ({esc(innings.total_overs)} ov)</h3>
            {batting}
            <p class="muted">{esc(extras)} &middot; RR {fmt_rate(innings.run_rate)}</p>
            <br>
            {bowling}
        </div>
        <br>
    """


def render_match(match: Match) -> str:
    facts = [
        ("Date", _match_date(match)),
        ("Venue", esc(match.venue.name if match.venue else None)),
        ("Toss", esc(match.toss_text)),
        ("Result", esc(match.status_note or match.result)),
        ("Player of the match", esc(match.man_of_the_match.title if match.man_of_the_match else None)),
        ("Umpires", esc(match.umpires)),
        ("Referee", esc(match.referee)),
    ]
    info = table(["", ""], [[esc(k), v] for k, v in facts])
    if match.innings:
        scorecard = "".join(_innings_card(i) for i in match.innings)
    else:
        scorecard = empty_state("No scorecard", "This match has no innings data.")

    body = f'<div class="card">{info}</div><br>{scorecard}'
    title = f"{match.team_a.title if match.team_a else 'TBD'} vs {match.team_b.title if match.team_b else 'TBD'}"
    return layout(title, body, "/dashboard/matches")
