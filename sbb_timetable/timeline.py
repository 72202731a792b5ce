"""Proportional stops line for a connection: ●────○──────●."""

from .config import DEFAULT_ICONS, Icons
from .models import Connection, Leg, VehicleLeg


def vehicle_leg_seconds(legs: tuple[Leg, ...] | list[Leg]) -> list[float]:
    """Ride time of every vehicle leg whose departure and arrival are both known."""
    durations = []
    for leg in legs:
        if isinstance(leg, VehicleLeg):
            dep, arr = leg.departure.time, leg.arrival.time
            if dep and arr:
                durations.append(max((arr - dep).total_seconds(), 0.0))
    return durations


def proportional_widths(weights: list[float], width: int) -> list[int]:
    """
    Split width into len(weights) integer runs proportional to weights.

    Runs are rounded half up and never shorter than 1. Earlier runs are
    capped so every later run still gets its 1 character, and the last run
    takes the remainder, so the runs sum to exactly width when
    width >= len(weights).
    """
    total = sum(weights)
    widths = []
    used = 0
    for i, weight in enumerate(weights):
        remaining = len(weights) - i - 1
        if remaining == 0:
            chars = width - used
        else:
            chars = int(width * weight / total + 0.5)
            chars = min(chars, width - used - remaining)
        chars = max(chars, 1)
        widths.append(chars)
        used += chars
    return widths


def render_stops_line(connection: Connection, width: int, icons: Icons = DEFAULT_ICONS) -> str:
    """
    Draw the connection's vehicle legs as filler runs proportional to their
    ride times, with a hollow stop at each change of vehicle and filled
    stops at the origin and destination. Walking legs take no space.

    Without usable timestamps every change gets an equal two-character gap.
    """
    durations = vehicle_leg_seconds(connection.legs)
    if not durations or sum(durations) <= 0:
        gap = icons.horz_line * 2
        return (
            icons.filled_dot
            + (gap + icons.hollow_dot) * connection.transfers
            + gap
            + icons.filled_dot
        )

    runs = [icons.horz_line * n for n in proportional_widths(durations, max(width, 1))]
    return icons.filled_dot + icons.hollow_dot.join(runs) + icons.filled_dot
