"""Feed client for the presidential schedule JSON feed."""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)


DEFAULT_FEED_URL = "https://where-is-the-president.miles-gilbert.workers.dev/"


class FeedUnavailableError(Exception):
    """Raised when the feed cannot be fetched or yields no events."""


@dataclass
class FeedPayload:
    """Raw events and metadata extracted from one feed response."""
    events: List[Dict[str, Any]]
    last_updated: Optional[str] = None


def extract_raw_events(data: Any) -> List[Dict[str, Any]]:
    """
    Extract event-like records from a feed payload.

    Accepted shapes, first match wins: a top-level array, an object with a
    ``data`` array, or an object whose array values hold mappings that carry
    a ``title`` or ``date``.

    Args:
        data: Decoded JSON payload

    Returns:
        List of raw event records (possibly empty)
    """
    if isinstance(data, list):
        return list(data)

    if not isinstance(data, dict):
        return []

    if isinstance(data.get('data'), list):
        return list(data['data'])

    events = []
    for value in data.values():
        if not isinstance(value, list):
            continue
        for item in value:
            if isinstance(item, dict) and (item.get('title') or item.get('date')):
                events.append(item)
    return events


def extract_last_updated(data: Any) -> Optional[str]:
    """Return ``meta.last_updated`` from a payload when present."""
    if not isinstance(data, dict):
        return None
    meta = data.get('meta')
    if isinstance(meta, dict) and meta.get('last_updated'):
        return str(meta['last_updated'])
    return None


class ScheduleFeedClient:
    """Client for the presidential schedule feed."""

    def __init__(self, url: str = DEFAULT_FEED_URL, timeout: int = 30):
        """
        Initialize the feed client.

        Args:
            url: Feed URL returning JSON
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.url = url
        self.timeout = timeout

    def fetch(self) -> FeedPayload:
        """
        Fetch the feed and extract its events.

        A single attempt is made; callers fall back to a backup on failure.

        Returns:
            FeedPayload with raw events and the optional last-updated stamp

        Raises:
            requests.RequestException: On transport errors or non-2xx status
            FeedUnavailableError: If the body is not JSON or holds no events
        """
        data = self._fetch_json()

        events = extract_raw_events(data)
        if not events:
            raise FeedUnavailableError("No events found in the data")

        logger.info(f"Successfully fetched {len(events)} raw events")
        return FeedPayload(events=events, last_updated=extract_last_updated(data))

    def _fetch_json(self) -> Any:
        """
        Fetch and decode the feed body.

        Returns:
            Decoded JSON payload

        Raises:
            requests.RequestException: If the request fails
            FeedUnavailableError: If the body is not valid JSON
        """
        logger.info(f"Fetching schedule feed from {self.url}")
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning(f"Failed to fetch data: {e}")
            raise

        try:
            return response.json()
        except ValueError as e:
            raise FeedUnavailableError(f"Failed to parse JSON: {e}") from e
