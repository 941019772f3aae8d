from datetime import date, datetime, timezone
import calendar
import re
from utils.constants import DATE_FORMAT, MONTH_FORMAT

# ── Display date format options ───────────────────────────────────────────────

DATE_FORMAT_OPTIONS = ["DD.MM.YYYY", "DD/MM/YYYY", "MM/DD/YYYY", "YYYY-MM-DD"]

_TIME_SUFFIX = re.compile(r"\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?")

_STRFTIME_MAP = {
    "DD.MM.YYYY": "%d.%m.%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "MM/DD/YYYY": "%m/%d/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
}


def today() -> date:
    return date.today()


def today_str() -> str:
    return date.today().strftime(DATE_FORMAT)


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def current_month_str() -> str:
    return date.today().strftime(MONTH_FORMAT)


def parse_date(date_str: str) -> date | None:
    """Parse a date string in YYYY-MM-DD format, returning None on failure.

    Timestamps ('2024-01-15 10:30:00' or ISO 'T' form) are cut to their date part.
    Anything else after the date makes the whole string invalid.
    """
    if not date_str:
        return None
    date_part, sep, time_part = str(date_str).strip().replace("T", " ", 1).partition(" ")
    if sep and not _TIME_SUFFIX.fullmatch(time_part):
        return None
    for fmt in ("%Y-%m-%d", "%Y/%m/%d", "%Y.%m.%d"):
        try:
            return datetime.strptime(date_part, fmt).date()
        except ValueError:
            continue
    return None


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def parse_month(month_str: str) -> date | None:
    """Return the first day of the given YYYY-MM month string."""
    if not month_str:
        return None
    try:
        return datetime.strptime(month_str, MONTH_FORMAT).date()
    except ValueError:
        return None


def month_range(month_str: str) -> tuple[str, str]:
    """Return (first_day_str, last_day_str) for a YYYY-MM month."""
    d = parse_month(month_str)
    if d is None:
        raise ValueError(f"Invalid month: {month_str}")
    last_day = calendar.monthrange(d.year, d.month)[1]
    return (
        format_date(d),
        format_date(d.replace(day=last_day)),
    )


def shift_month(year: int, month: int, n: int) -> tuple[int, int]:
    """Return (year, month) moved n months forward (or back for negative n)."""
    index = month - 1 + n
    return year + index // 12, index % 12 + 1


def prev_month(month_str: str) -> str:
    d = parse_month(month_str)
    if d is None:
        raise ValueError(f"Invalid month: {month_str}")
    y, m = shift_month(d.year, d.month, -1)
    return f"{y:04d}-{m:02d}"


def next_month(month_str: str) -> str:
    d = parse_month(month_str)
    if d is None:
        raise ValueError(f"Invalid month: {month_str}")
    y, m = shift_month(d.year, d.month, 1)
    return f"{y:04d}-{m:02d}"


def friendly_month(month_str: str) -> str:
    """Convert YYYY-MM to e.g. 'February 2026'."""
    d = parse_month(month_str)
    if d is None:
        return month_str
    return d.strftime("%B %Y")


def format_display_date(date_str: str, fmt_key: str = "DD.MM.YYYY") -> str:
    """Convert a YYYY-MM-DD storage string to the user-facing display format."""
    if not date_str:
        return date_str
    d = parse_date(date_str)
    if d is None:
        return date_str
    return d.strftime(_STRFTIME_MAP.get(fmt_key, "%d.%m.%Y"))


def parse_display_date(display_str: str, fmt_key: str) -> date | None:
    """Parse a date in the given display format. Returns None on failure.

    Falls back to ISO 8601 parse if the display format doesn't match.
    """
    if not display_str:
        return None
    fmt = _STRFTIME_MAP.get(fmt_key, "%d.%m.%Y")
    try:
        return datetime.strptime(display_str.strip(), fmt).date()
    except ValueError:
        return parse_date(display_str)
