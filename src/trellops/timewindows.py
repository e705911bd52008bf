"""Time window catalogue and resolution to [since, before) bounds."""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


@dataclass(frozen=True)
class WindowDef:
    """Static definition of a selectable time window."""

    label: str
    title_suffix: str
    kind: str  # "all", "relative" or "calendar"
    minutes: int = 0


@dataclass(frozen=True)
class Window:
    """Resolved bounds. ``since`` is inclusive, ``before`` exclusive; None means open."""

    since: datetime | None = None
    before: datetime | None = None

    @property
    def unbounded(self) -> bool:
        return self.since is None and self.before is None

    def contains(self, moment: datetime | None) -> bool:
        """Check if moment lies in the window. A missing moment only fits an unbounded window."""
        if self.unbounded:
            return True
        if moment is None:
            return False
        if self.since is not None and moment < self.since:
            return False
        if self.before is not None and moment >= self.before:
            return False
        return True


TIME_WINDOWS: dict[str, WindowDef] = {
    "all": WindowDef("All Time", "All Time", "all"),
    "24h": WindowDef("Last 24h", "Last 24h", "relative", 60 * 24),
    "48h": WindowDef("Last 48h", "Last 48h", "relative", 60 * 48),
    "72h": WindowDef("Last 72h", "Last 72h", "relative", 60 * 72),
    "7d": WindowDef("Last 7 days", "Last 7 Days", "relative", 60 * 24 * 7),
    "this_week": WindowDef("This week (Mon-Sun)", "This Week", "calendar"),
    "last_week": WindowDef("Last week (Mon-Sun)", "Last Week", "calendar"),
    "last_30d": WindowDef("Last 30 days", "Last 30 Days", "relative", 60 * 24 * 30),
    "this_month": WindowDef("This month", "This Month", "calendar"),
    "last_month": WindowDef("Last month", "Last Month", "calendar"),
    "last_3m": WindowDef("Last 3 Months", "Last 3 Months", "calendar"),
    "ytd": WindowDef("Year to Date", "YTD", "calendar"),
    "last_year": WindowDef("Last Year", "Last Year", "calendar"),
}


def now_local() -> datetime:
    """Current time as an aware datetime in the local timezone."""
    return datetime.now().astimezone()


def _midnight(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _month_start(year: int, month: int, tzinfo) -> datetime:
    return datetime(year, month, 1, tzinfo=tzinfo)


def months_ago(moment: datetime, months: int) -> datetime:
    """Shift moment back by whole months, clamping the day to the target month.

    2024-05-31 minus 3 months -> 2024-02-29
    """
    index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def resolve_window(key: str, now: datetime | None = None) -> Window:
    """Resolve a window key to concrete bounds relative to now.

    Raises KeyError for unknown keys.
    """
    definition = TIME_WINDOWS[key]
    now = now or now_local()
    tz = now.tzinfo

    if definition.kind == "all":
        return Window()
    if definition.kind == "relative":
        return Window(since=now - timedelta(minutes=definition.minutes))

    monday = _midnight(now) - timedelta(days=now.weekday())
    if key == "this_week":
        return Window(since=monday)
    if key == "last_week":
        return Window(since=monday - timedelta(days=7), before=monday)
    this_month = _month_start(now.year, now.month, tz)
    if key == "this_month":
        return Window(since=this_month)
    if key == "last_month":
        return Window(since=months_ago(this_month, 1), before=this_month)
    if key == "last_3m":
        return Window(since=_midnight(months_ago(now, 3)))
    if key == "ytd":
        return Window(since=datetime(now.year, 1, 1, tzinfo=tz))
    if key == "last_year":
        return Window(since=datetime(now.year - 1, 1, 1, tzinfo=tz), before=datetime(now.year, 1, 1, tzinfo=tz))
    raise KeyError(key)


def window_title(key: str, now: datetime | None = None) -> str:
    """Title suffix for headers, naming the month where the window is a calendar month."""
    definition = TIME_WINDOWS[key]
    if key in ("this_month", "last_month"):
        since = resolve_window(key, now).since
        return f"{MONTH_NAMES[since.month - 1]} {since.year}"
    return definition.title_suffix


def next_window(key: str) -> str:
    """The key after key in catalogue order, wrapping around."""
    keys = list(TIME_WINDOWS)
    return keys[(keys.index(key) + 1) % len(keys)]


def format_countdown(total_seconds: int) -> str:
    """Format a countdown for display.

    45 -> "45s", 90 -> "2 min", 3600 -> "1 hr", 5400 -> "1h 30m"
    """
    if total_seconds < 60:
        return f"{total_seconds}s"
    if total_seconds < 3600:
        return f"{-(-total_seconds // 60)} min"
    hours = total_seconds // 3600
    minutes = -(-(total_seconds % 3600) // 60)
    if minutes == 0:
        return f"{hours} hr"
    return f"{hours}h {minutes}m"
