"""API communication and retry logic for the transport.opendata.ch connections endpoint."""

import logging
from time import sleep
from typing import Any

import httpx

from .config import API_BASE, DEFAULT_LIMIT, MAX_RETRIES, REQUEST_TIMEOUT, RETRY_DELAY
from .models import Connection, SearchCriteria, parse_connection

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """Network or decoding failure while fetching connections."""


def build_query(criteria: SearchCriteria, limit: int = DEFAULT_LIMIT) -> dict[str, Any]:
    """Query parameters for /connections; empty date/time are left out."""
    params: dict[str, Any] = {
        "from": criteria.station_from,
        "to": criteria.station_to,
    }
    if criteria.date:
        params["date"] = criteria.date
    if criteria.time:
        params["time"] = criteria.time
    params["isArrivalTime"] = int(criteria.is_arrival_time)
    params["limit"] = limit
    return params


def decode_connections(data: Any) -> list[Connection]:
    """Turn the decoded JSON body into Connection objects."""
    try:
        return [parse_connection(c) for c in data.get("connections") or []]
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise FetchError(f"Unexpected response shape: {e}") from e


def fetch_connections(criteria: SearchCriteria, limit: int = DEFAULT_LIMIT) -> list[Connection]:
    """Fetch connections with retry logic. Raises FetchError once retries run out."""
    params = build_query(criteria, limit)
    last_error: Exception | None = None

    for attempt in range(MAX_RETRIES):
        try:
            logger.debug("GET /connections %s (attempt %d)", params, attempt + 1)
            with httpx.Client(timeout=REQUEST_TIMEOUT) as client:
                response = client.get(f"{API_BASE}/connections", params=params)
                response.raise_for_status()
                data = response.json()
            connections = decode_connections(data)
            logger.info(
                "Fetched %d connection(s) %s -> %s",
                len(connections), criteria.station_from, criteria.station_to,
            )
            return connections

        except httpx.HTTPStatusError as e:
            last_error = e
            logger.warning("HTTP %s from connections endpoint", e.response.status_code)
            if e.response.status_code < 500:
                # Client errors will not change on retry
                break

        except httpx.HTTPError as e:
            last_error = e
            logger.warning("Request failed: %s", e)

        except ValueError as e:
            # Body was not JSON
            raise FetchError(f"Invalid JSON response: {e}") from e

        if attempt < MAX_RETRIES - 1:
            sleep(RETRY_DELAY * (attempt + 1))

    if isinstance(last_error, httpx.HTTPStatusError):
        message = f"HTTP {last_error.response.status_code}"
    else:
        message = str(last_error)
    logger.error("Giving up on connections fetch: %s", message)
    raise FetchError(message) from last_error
