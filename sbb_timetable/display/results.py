"""Compact connection cards for the results list."""

from rich import box
from rich.cells import cell_len
from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from ..config import CARD_HEIGHT, DEFAULT_THEME, STOPS_LINE_MIN_WIDTH, Icons, Theme
from ..formatting import format_delay, format_duration
from ..models import Connection, VehicleLeg, WalkLeg, format_time, walk_minutes
from ..state import UIState
from ..timeline import render_stops_line, vehicle_leg_seconds
from .messages import build_status_message


def vehicle_badge(leg: VehicleLeg, theme: Theme = DEFAULT_THEME) -> Text:
    """`[icon] IC 8 SBB` badge shared by the card and the detail view."""
    badge = Text()
    badge.append(f" {theme.icons.vehicle} ", style=theme.vehicle_badge)
    badge.append(" ")
    badge.append(f"{leg.category} {leg.number}", style=theme.category)
    badge.append(" ")
    badge.append(leg.operator, style=theme.operator)
    return badge


def platform_or_walk(connection: Connection, icons: Icons) -> str:
    """Departure platform, or the initial walk when the trip starts on foot."""
    if connection.origin.platform:
        return f"{icons.platform} {connection.origin.platform}"
    if connection.legs and isinstance(connection.legs[0], WalkLeg):
        minutes = walk_minutes(connection.legs[0])
        if minutes is not None:
            return f"{icons.walk} {minutes}m"
    return ""


def build_connection_card(
    connection: Connection,
    width: int,
    theme: Theme = DEFAULT_THEME,
    selected: bool = False,
) -> Panel:
    """
    One result row:

        [icon] IC 8 SBB  Brig

        10:02 +3  ●──────○───●  11:15

        Pl. 7                  1h 13m
    """
    icons = theme.icons
    inner_width = width - 4  # borders + horizontal padding
    leg = connection.first_vehicle_leg

    title = Text("  ")
    if leg is not None:
        title.append_text(vehicle_badge(leg, theme))
        title.append(f"  {leg.destination}")
        dep_delay = format_delay(leg.departure.delay, theme)
        arr_delay = format_delay(connection.vehicle_legs[-1].arrival.delay, theme)
    else:
        title.append(f" {icons.walk} ", style=theme.vehicle_badge)
        title.append("  Walk")
        dep_delay = format_delay(connection.origin.delay, theme)
        arr_delay = Text("")

    departure = format_time(connection.origin.time)
    arrival = format_time(connection.destination.time)
    markers = len(vehicle_leg_seconds(connection.legs)) + 1
    fixed = 2 + len(departure) + dep_delay.cell_len + 2 + 2 + len(arrival) + arr_delay.cell_len
    stops_width = max(inner_width - fixed - markers, STOPS_LINE_MIN_WIDTH)

    times = Text("  ")
    times.append(departure, style="bold")
    times.append_text(dep_delay)
    times.append("  ")
    times.append(render_stops_line(connection, stops_width, icons), style="bold")
    times.append("  ")
    times.append(arrival, style="bold")
    times.append_text(arr_delay)

    footer_left = platform_or_walk(connection, icons)
    duration = format_duration(connection.duration)
    padding = max(inner_width - 2 - cell_len(footer_left) - cell_len(duration) - 2, 1)
    footer = Text(f"  {footer_left}{' ' * padding}{duration}")

    content = Text("\n").join([Text(""), title, Text(""), times, Text(""), footer])

    return Panel(
        content,
        box=box.ROUNDED,
        border_style=theme.focused_border if selected else theme.blurred_border,
        padding=(0, 1),
        width=width,
        height=CARD_HEIGHT,
    )


def build_connection_cards(
    connections: list[Connection],
    width: int,
    theme: Theme = DEFAULT_THEME,
    selected: int | None = None,
) -> Group:
    return Group(*[
        build_connection_card(c, width, theme, selected=(i == selected))
        for i, c in enumerate(connections)
    ])


def build_results_list(state: UIState, theme: Theme = DEFAULT_THEME):
    """Left column: status message, cards, or both when an error sits over old results."""
    message = build_status_message(state, theme)
    if not state.connections or state.loading:
        return message or Text("")

    count = state.max_visible_connections()
    start = max(0, state.selected - count + 1)
    visible = state.connections[start:start + count]
    cards = build_connection_cards(
        visible, state.result_box_width, theme, selected=state.selected - start
    )
    if message is not None:
        return Group(message, cards)
    return cards
