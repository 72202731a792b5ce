"""Duration tokens, label truncation and fixed-column station lines."""

from datetime import timedelta

from rich.cells import cell_len
from rich.text import Text

from .config import DEFAULT_THEME, DELAY_COL, SYMBOL_COL, TIME_COL, Theme

ELLIPSIS = "..."


class MalformedDuration(ValueError):
    """Raised when a duration token is not shaped like `00d01:15:00`."""


def parse_duration(token: str) -> timedelta:
    """
    Parse a wire duration token `<DDd>HH:MM[:SS]` into a timedelta.

    The day prefix is optional; when present everything after the `d` in
    the first segment is the hour count.
    """
    parts = token.split(":") if token else []
    if len(parts) < 2:
        raise MalformedDuration(token)

    head = parts[0]
    days = "0"
    if "d" in head:
        days, head = head.split("d", 1)
        days = days or "0"

    fields = [days, head, parts[1], parts[2] if len(parts) > 2 else "0"]
    if not all(f.isdecimal() for f in fields):
        raise MalformedDuration(token)

    d, h, m, s = (int(f) for f in fields)
    return timedelta(days=d, hours=h, minutes=m, seconds=s)


def format_duration(token: str) -> str:
    """
    Render a duration token for display: `1h 15m`, or `45min` under an hour.

    Days fold into the hour count (`01d02:00:00` -> `26h 0m`). Malformed
    tokens are returned unchanged.
    """
    try:
        duration = parse_duration(token)
    except MalformedDuration:
        return token

    total_minutes = int(duration.total_seconds()) // 60
    hours, minutes = divmod(total_minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}min"


def truncate_string(s: str, max_len: int) -> str:
    """Fit s into max_len characters, ending in `...` when it had to be cut."""
    if max_len <= 0:
        return ""
    if max_len <= len(ELLIPSIS):
        return s[:max_len]
    if len(s) <= max_len:
        return s
    return s[:max_len - len(ELLIPSIS)] + ELLIPSIS


def format_delay(delay: int, theme: Theme = DEFAULT_THEME) -> Text:
    """Delay suffix such as ` +3`; empty when on time."""
    if delay > 0:
        return Text(f" +{delay}", style=theme.delay)
    return Text("")


def station_name_width(width: int, platform_width: int = 0) -> int:
    """Columns left for the station name once the fixed columns are placed."""
    fixed = TIME_COL + DELAY_COL + SYMBOL_COL + platform_width
    return max(width - fixed - 1, 5)


def format_station_line(
    time_str: str,
    delay: int,
    symbol: str,
    station: str,
    platform: str,
    width: int,
    theme: Theme = DEFAULT_THEME,
    bold: bool = False,
) -> Text:
    """
    Lay out one station row of the detail card:

        HH:MM +DD  ●  Station name ......        Pl. 7

    The platform, when present, is pushed to the right edge; the station
    name is truncated to whatever the other columns leave over.
    """
    text_style = "bold" if bold else ""

    line = Text()
    line.append(time_str.ljust(TIME_COL), style=text_style)

    if delay > 0:
        line.append(f"+{delay}".rjust(DELAY_COL), style=theme.delay)
    else:
        line.append(" " * DELAY_COL)

    line.append(f"  {symbol}  ")

    platform_part = f"{theme.icons.platform} {platform}" if platform else ""
    available = station_name_width(width, cell_len(platform_part))

    station_part = truncate_string(station, available)
    line.append(station_part, style=text_style)

    if platform_part:
        padding = max(available - len(station_part), 1)
        line.append(" " * padding)
        line.append(platform_part, style=text_style)

    return line
