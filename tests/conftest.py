"""Shared test fixtures and helpers for sbb-timetable tests."""

import json
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock

from rich.console import Console

from sbb_timetable.models import Connection, Stop, VehicleLeg, WalkLeg
from sbb_timetable.state import UIState


# =============================================================================
# Constants
# =============================================================================


# A fixed "now" for deterministic time-based tests
FIXED_NOW = datetime(2025, 3, 15, 14, 30, 0)


# =============================================================================
# Test data helpers
# =============================================================================


def make_stop(station="Zürich HB", time=None, delay=0, platform=""):
    """Build a Stop; time is minutes after FIXED_NOW, or None for unknown."""
    when = FIXED_NOW + timedelta(minutes=time) if time is not None else None
    return Stop(station=station, time=when, delay=delay, platform=platform)


def make_vehicle_leg(
    dep_station="Zürich HB",
    arr_station="Bern",
    dep_time=2,
    arr_time=58,
    category="IC",
    number="8",
    operator="SBB",
    destination="Brig",
    dep_delay=0,
    arr_delay=0,
    dep_platform="",
    arr_platform="",
):
    """Build a VehicleLeg; times are minutes after FIXED_NOW."""
    return VehicleLeg(
        category=category,
        number=number,
        operator=operator,
        destination=destination,
        departure=make_stop(dep_station, dep_time, dep_delay, dep_platform),
        arrival=make_stop(arr_station, arr_time, arr_delay, arr_platform),
    )


def make_walk_leg(seconds=0, dep_time=None, arr_time=None):
    """Build a WalkLeg; times are minutes after FIXED_NOW."""
    return WalkLeg(
        duration_seconds=seconds,
        departure=FIXED_NOW + timedelta(minutes=dep_time) if dep_time is not None else None,
        arrival=FIXED_NOW + timedelta(minutes=arr_time) if arr_time is not None else None,
    )


def make_connection(legs=None, transfers=None, duration="00d00:56:00", platform=""):
    """Build a Connection whose origin/destination follow its first and last vehicle leg."""
    legs = tuple(legs if legs is not None else [make_vehicle_leg()])
    rides = [leg for leg in legs if isinstance(leg, VehicleLeg)]
    if rides:
        origin = Stop(rides[0].departure.station, rides[0].departure.time,
                      rides[0].departure.delay, platform)
        destination = Stop(rides[-1].arrival.station, rides[-1].arrival.time)
    else:
        origin, destination = Stop(platform=platform), Stop()
    if transfers is None:
        transfers = max(len(rides) - 1, 0)
    return Connection(
        origin=origin,
        destination=destination,
        duration=duration,
        transfers=transfers,
        legs=legs,
    )


def sample_transfer_connection():
    """Zürich HB -> Olten (30 min), walk, Olten -> Bern (27 min)."""
    return make_connection(
        legs=[
            make_vehicle_leg("Zürich HB", "Olten", 0, 30, category="IR", number="37",
                             destination="Basel SBB", dep_platform="31", arr_platform="7"),
            make_walk_leg(seconds=240),
            make_vehicle_leg("Olten", "Bern", 35, 62, category="IC", number="6",
                             destination="Brig", dep_platform="10", arr_platform="5",
                             arr_delay=3),
        ],
        duration="00d01:02:00",
        platform="31",
    )


def make_state(width=120, height=40, **kwargs):
    """A UIState with deterministic placeholders."""
    return UIState(width, height, now=FIXED_NOW, **kwargs)


def render_to_text(renderable, width=120, height=50) -> str:
    """Capture a Rich renderable as plain text for assertion."""
    console = Console(record=True, width=width, height=height, force_terminal=False)
    console.print(renderable)
    return console.export_text()


def load_fixture(name: str):
    """Load a JSON fixture file from tests/fixtures/."""
    fixture_path = Path(__file__).parent / "fixtures" / name
    with open(fixture_path, encoding="utf-8") as f:
        return json.load(f)


def make_mock_httpx_client(json_response):
    """Create a mock httpx.Client that returns the given JSON from .get()."""
    mock_response = MagicMock()
    mock_response.json.return_value = json_response
    mock_response.raise_for_status.return_value = None
    mock_client = MagicMock()
    mock_client.__enter__ = MagicMock(return_value=mock_client)
    mock_client.__exit__ = MagicMock(return_value=False)
    mock_client.get.return_value = mock_response
    return mock_client
