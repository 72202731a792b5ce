"""Connection data model and decoding of the transport.opendata.ch payload."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Union

from .formatting import MalformedDuration, parse_duration


@dataclass(frozen=True)
class Stop:
    """A station call: when, how late, where and on which platform."""
    station: str = ""
    time: datetime | None = None
    delay: int = 0
    platform: str = ""


@dataclass(frozen=True)
class VehicleLeg:
    category: str
    number: str
    operator: str
    destination: str
    departure: Stop
    arrival: Stop


@dataclass(frozen=True)
class WalkLeg:
    duration_seconds: int = 0  # 0 means derive from the timestamps
    departure: datetime | None = None
    arrival: datetime | None = None


Leg = Union[VehicleLeg, WalkLeg]


@dataclass(frozen=True)
class Connection:
    """One journey offer, immutable once decoded."""
    origin: Stop
    destination: Stop
    duration: str
    transfers: int = 0
    legs: tuple[Leg, ...] = field(default_factory=tuple)

    @property
    def vehicle_legs(self) -> list[VehicleLeg]:
        return [leg for leg in self.legs if isinstance(leg, VehicleLeg)]

    @property
    def first_vehicle_leg(self) -> VehicleLeg | None:
        for leg in self.legs:
            if isinstance(leg, VehicleLeg):
                return leg
        return None


@dataclass(frozen=True)
class SearchCriteria:
    """Snapshot of the header inputs taken at submit time."""
    station_from: str
    station_to: str
    date: str = ""
    time: str = ""
    is_arrival_time: bool = False


def parse_time(time_val: str | int | None) -> datetime | None:
    """Parse an API timestamp (ISO 8601 with +HHMM offset, or unix seconds)."""
    if time_val is None or isinstance(time_val, bool):
        return None

    if isinstance(time_val, (int, float)):
        try:
            return datetime.fromtimestamp(time_val).astimezone()
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(time_val, str) or not time_val:
        return None

    try:
        return datetime.fromisoformat(time_val.replace("Z", "+00:00"))
    except ValueError:
        pass
    try:
        return datetime.strptime(time_val, "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        return None


def format_time(dt: datetime | None) -> str:
    """Format a timestamp as local HH:MM."""
    if not dt:
        return "--:--"
    if dt.tzinfo is not None:
        dt = dt.astimezone()
    return dt.strftime("%H:%M")


def minutes_between(start: datetime | None, end: datetime | None) -> int | None:
    """Whole minutes from start to end, or None if either is unknown."""
    if not start or not end:
        return None
    return int((end - start).total_seconds() // 60)


def walk_minutes(leg: WalkLeg) -> int | None:
    """Walking time in minutes, from the explicit duration or the timestamps."""
    if leg.duration_seconds > 0:
        return leg.duration_seconds // 60
    return minutes_between(leg.departure, leg.arrival)


def _station_name(data: dict | None) -> str:
    if not data:
        return ""
    station = data.get("station") or {}
    return station.get("name") or ""


def _delay(value: Any) -> int:
    if value is None:
        return 0
    return max(int(value), 0)


def _seconds(value: Any) -> int:
    """Walk durations arrive as seconds, digit strings, or duration tokens."""
    if value is None or value == "":
        return 0
    if isinstance(value, (int, float)):
        return max(int(value), 0)
    if isinstance(value, str) and value.isdecimal():
        return int(value)
    try:
        return int(parse_duration(value).total_seconds())
    except MalformedDuration:
        return 0


def parse_stop(data: dict | None, time_key: str) -> Stop:
    """Decode a checkpoint object; time_key is 'departure' or 'arrival'."""
    if not data:
        return Stop()
    return Stop(
        station=_station_name(data),
        time=parse_time(data.get(time_key)) or parse_time(data.get(f"{time_key}Timestamp")),
        delay=_delay(data.get("delay")),
        platform=data.get("platform") or "",
    )


def parse_leg(section: dict) -> Leg:
    """Decode one section into exactly one leg variant."""
    journey = section.get("journey")
    if journey:
        return VehicleLeg(
            category=journey.get("category") or "",
            number=str(journey.get("number") or ""),
            operator=journey.get("operator") or "",
            destination=journey.get("to") or "",
            departure=parse_stop(section.get("departure"), "departure"),
            arrival=parse_stop(section.get("arrival"), "arrival"),
        )

    walk = section.get("walk") or {}
    return WalkLeg(
        duration_seconds=_seconds(walk.get("duration")),
        departure=parse_stop(section.get("departure"), "departure").time,
        arrival=parse_stop(section.get("arrival"), "arrival").time,
    )


def parse_connection(data: dict) -> Connection:
    """Decode one element of the API's `connections` array."""
    return Connection(
        origin=parse_stop(data.get("from"), "departure"),
        destination=parse_stop(data.get("to"), "arrival"),
        duration=data.get("duration") or "",
        transfers=int(data.get("transfers") or 0),
        legs=tuple(parse_leg(s) for s in data.get("sections") or []),
    )
