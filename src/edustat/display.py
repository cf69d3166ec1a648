"""Rich terminal display for edustat."""

from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

console = Console()

# Pastel palette per platform: (inactive, active)
_PLATFORM_COLORS: dict[str, tuple[str, str]] = {
    "github": ("grey23", "green3"),
    "leetcode": ("grey23", "dark_orange"),
}

_COUNT_LABELS: dict[str, str] = {
    "github": "contributions",
    "leetcode": "submissions",
}

_WEEKDAY_NAMES = {
    "sunday": ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"),
    "monday": ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"),
}


def _platform_colors(platform: str) -> tuple[str, str]:
    return _PLATFORM_COLORS.get(platform, _PLATFORM_COLORS["github"])


def format_number(n: int) -> str:
    """Format large numbers: 421543 -> '421.5K', 1200 -> '1,200', 1234567 -> '1.2M'."""
    if n >= 1_000_000:
        value = n / 1_000_000
        if value >= 100:
            return f"{value:.0f}M"
        return f"{value:.1f}M"
    if n >= 10_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:,}"


def _bar(current: int, total: int, width: int = 20) -> str:
    """Render a progress bar as text: [████████░░░░░░░░░░░░]."""
    if total <= 0:
        return "[" + "░" * width + "]"
    ratio = min(current / total, 1.0)
    filled = int(ratio * width)
    empty = width - filled
    return "[" + "█" * filled + "░" * empty + "]"


def print_streak(data: dict) -> None:
    """Print a streak summary panel for one student on one platform."""
    platform = data.get("platform", "")
    _, active = _platform_colors(platform)
    label = _COUNT_LABELS.get(platform, "activity")

    lines: list[str] = []
    lines.append("")
    lines.append(f"  [bold]{data.get('name', data.get('subject', ''))}[/] on {platform or 'unknown'}")
    lines.append("")
    lines.append(
        f"  \U0001f525 Current streak: [bold {active}]{data.get('currentStreak', 0)}[/] days"
        + ("  (active today)" if data.get("activeToday") else "")
    )
    lines.append(f"  \U0001f3c6 Longest streak: {data.get('longestStreak', 0)} days")
    lines.append(
        f"  \U0001f4ca {format_number(data.get('totalActivity', 0))} {label} "
        f"in the last {data.get('windowDays', 0)} days"
    )
    last_active = data.get("lastActiveDate")
    lines.append(f"  Last active: {last_active or 'never'}")
    if data.get("skippedKeys"):
        lines.append(f"  [yellow]Skipped {data['skippedKeys']} unreadable calendar keys[/]")
    if data.get("error"):
        lines.append(f"  [red]Data error: {data['error']}[/]")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]STREAK[/]",
        box=box.ROUNDED,
        border_style=active,
        width=60,
    )
    console.print(panel)


def print_calendar_grid(data: dict, week_start: str = "sunday") -> None:
    """Print a contribution graph: weekdays are rows, weeks are columns.

    data is a report dict with 'grid', 'monthLabels', 'platform' and 'totalActivity'.
    """
    platform = data.get("platform", "")
    inactive, active = _platform_colors(platform)
    grid = data.get("grid", [])
    labels = data.get("monthLabels", [])
    names = _WEEKDAY_NAMES.get(week_start, _WEEKDAY_NAMES["sunday"])

    month_row = "    "
    for label in labels:
        month_row += label[:1] if label else " "
    lines = [month_row]
    for row in range(7):
        cells: list[str] = []
        for week in grid:
            cell = week[row] if row < len(week) else None
            if cell is None:
                cells.append(" ")
            elif cell.get("level", 0) > 0:
                cells.append(f"[{active}]■[/]")
            else:
                cells.append(f"[{inactive}]■[/]")
        lines.append(f"{names[row]} " + "".join(cells))

    label = _COUNT_LABELS.get(platform, "activity")
    title = f"[bold]{format_number(data.get('totalActivity', 0))} {label} in the last year[/]"
    console.print(Panel("\n".join(lines), title=title, box=box.ROUNDED, border_style=active))


def print_timeline(data: dict) -> None:
    """Print weekly sums as horizontal bars, oldest week first."""
    platform = data.get("platform", "")
    _, active = _platform_colors(platform)
    weekly = data.get("weekly", [])
    peak = max((w.get("total", 0) for w in weekly), default=0)

    table = Table(
        title="Weekly Activity",
        box=box.ROUNDED,
        border_style=active,
        show_header=True,
        header_style="bold",
    )
    table.add_column("Week of", style="bold")
    table.add_column("Activity", min_width=22)
    table.add_column("Total", justify="right")

    for week in weekly:
        label = week.get("label", "")
        if week.get("days", 7) < 7:
            label = f"{label} ({week['days']}d)"
        total = week.get("total", 0)
        table.add_row(label, f"[{active}]{_bar(total, peak)}[/]", format_number(total))

    console.print(table)


def print_leaderboard(entries: list[dict], highlight_usn: str | None = None) -> None:
    """Print the ranked student leaderboard."""
    if not entries:
        console.print("[dim]No students found in the roster.[/]")
        return

    table = Table(
        title="Leaderboard",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold",
    )
    table.add_column("#", justify="right", width=4)
    table.add_column("Student", min_width=16)
    table.add_column("USN")
    table.add_column("Score", justify="right")
    table.add_column("Solved", justify="right")
    table.add_column("LC Streak", justify="right")
    table.add_column("GH Streak", justify="right")
    table.add_column("Badges")

    for entry in entries:
        usn = entry.get("usn", "")
        is_you = highlight_usn is not None and usn.lower() == highlight_usn.lower()
        style = "bold cyan" if is_you else ""
        streaks = entry.get("streaks", {})
        lc = streaks.get("leetcode", {})
        gh = streaks.get("github", {})
        table.add_row(
            str(entry.get("rank", "")),
            entry.get("name", ""),
            usn,
            format_number(entry.get("performance_score", 0)),
            format_number(entry.get("total_solved", 0)),
            f"{lc.get('currentStreak', 0)}/{lc.get('longestStreak', 0)}",
            f"{gh.get('currentStreak', 0)}/{gh.get('longestStreak', 0)}",
            ", ".join(entry.get("badges", [])),
            style=style,
        )

    console.print(table)


def print_sync_result(result: dict) -> None:
    """Print sync results summary."""
    lines: list[str] = []
    lines.append("")
    lines.append(f"  Students:        {result.get('students', 0)}")
    lines.append(f"  Recomputed:      {result.get('recomputed', 0)}")
    lines.append(f"  Fresh (skipped): {result.get('fresh', 0)}")
    failures = result.get("failures", {})
    lines.append(f"  Zeroed:          {len(failures)}")
    if failures:
        lines.append("")
        lines.append("  [bold]Data errors:[/]")
        for subject, error in sorted(failures.items()):
            lines.append(f"  [red]✗[/] {subject}: {error}")
    lines.append("")

    panel = Panel(
        "\n".join(lines),
        title="[bold]Sync Complete[/]",
        box=box.ROUNDED,
        border_style="yellow" if failures else "green",
        width=70,
    )
    console.print(panel)


def print_setup_result(result: dict) -> None:
    """Print config changes made by setup."""
    lines = [""]
    for key, value in result.get("settings", {}).items():
        lines.append(f"  {key}: [bold]{value}[/]")
    lines.append("")
    console.print(
        Panel("\n".join(lines), title="[bold]Settings Saved[/]", box=box.ROUNDED, border_style="green", width=60)
    )


def print_no_data_message(detail: str = "") -> None:
    """Print message when no roster data is available."""
    message = detail or "No roster found. Run [bold]edustat setup --roster <file>[/] first."
    panel = Panel(
        f"\n  {message}\n",
        title="[bold]EDUSTAT[/]",
        box=box.ROUNDED,
        border_style="grey50",
        width=60,
    )
    console.print(panel)
