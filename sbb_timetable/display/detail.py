"""Detailed, leg-by-leg view of the selected connection."""

from rich import box
from rich.panel import Panel
from rich.text import Text

from ..config import (
    BORDER_SIZE, DEFAULT_THEME, DELAY_COL, DETAIL_PADDING_H, DETAIL_PADDING_V,
    TIME_COL, Theme,
)
from ..formatting import format_station_line
from ..models import Connection, VehicleLeg, WalkLeg, format_time, walk_minutes
from .results import vehicle_badge

INDENT = " " * (TIME_COL + DELAY_COL)


def vehicle_leg_lines(
    leg: VehicleLeg,
    width: int,
    theme: Theme = DEFAULT_THEME,
    is_first: bool = False,
    is_last: bool = False,
) -> list[Text]:
    """Departure row, vehicle badge, heading, arrival row."""
    icons = theme.icons

    dep_symbol = icons.filled_dot if is_first else icons.hollow_dot
    arr_symbol = icons.filled_dot if is_last else icons.vert_line

    spacing = Text(f"{INDENT}  {icons.vert_line}")

    vehicle = Text(f"{INDENT}  {icons.vert_line}  ")
    vehicle.append_text(vehicle_badge(leg, theme))

    return [
        format_station_line(
            format_time(leg.departure.time), leg.departure.delay, dep_symbol,
            leg.departure.station, leg.departure.platform, width, theme, bold=True,
        ),
        spacing,
        vehicle,
        Text(f"{INDENT}  {icons.vert_line}   → {leg.destination}"),
        spacing.copy(),
        format_station_line(
            format_time(leg.arrival.time), leg.arrival.delay, arr_symbol,
            leg.arrival.station, leg.arrival.platform, width, theme,
        ),
    ]


def walk_leg_lines(leg: WalkLeg, theme: Theme = DEFAULT_THEME) -> list[Text]:
    minutes = walk_minutes(leg)
    label = f"{minutes} min" if minutes is not None else ""
    return [Text(f"{INDENT}   {theme.icons.walk} {label}".rstrip())]


def build_connection_detail(
    connection: Connection,
    width: int,
    height: int | None = None,
    theme: Theme = DEFAULT_THEME,
) -> Panel:
    """Build the detail card: every leg in order, two blank lines between legs."""
    inner_width = width - BORDER_SIZE - DETAIL_PADDING_H * 2
    lines: list[Text] = []

    for i, leg in enumerate(connection.legs):
        is_first = i == 0
        is_last = i == len(connection.legs) - 1

        if isinstance(leg, VehicleLeg):
            lines.extend(vehicle_leg_lines(leg, inner_width, theme, is_first, is_last))
        elif isinstance(leg, WalkLeg):
            lines.extend(walk_leg_lines(leg, theme))
        else:
            raise TypeError(f"Unknown leg type: {type(leg).__name__}")

        if not is_last:
            lines.extend([Text(""), Text("")])

    return Panel(
        Text("\n").join(lines),
        box=box.ROUNDED,
        border_style=theme.accent,
        padding=(DETAIL_PADDING_V, DETAIL_PADDING_H),
        width=width,
        height=height or None,
    )
