"""Unit tests for ScheduleFeedClient."""
import pytest
import responses
from requests.exceptions import RequestException, Timeout

from feed.schedule_feed import (
    FeedUnavailableError,
    ScheduleFeedClient,
    extract_last_updated,
    extract_raw_events,
)

FEED_URL = "https://feed.example.com/schedule"


class TestScheduleFeedClient:
    """Test cases for ScheduleFeedClient class."""

    @responses.activate
    def test_fetch_data_wrapper(self):
        """Test fetching a payload with a data array and meta stamp."""
        responses.add(
            responses.GET,
            FEED_URL,
            json={
                'data': [
                    {'date': '2025-01-15', 'title': 'Departs White House'},
                    {'date': '2025-01-16', 'title': 'Arrives Mar-a-Lago'}
                ],
                'meta': {'last_updated': '2025-01-16T20:00:00Z'}
            },
            status=200
        )

        client = ScheduleFeedClient(url=FEED_URL, timeout=10)
        payload = client.fetch()

        assert len(payload.events) == 2
        assert payload.events[0]['title'] == 'Departs White House'
        assert payload.last_updated == '2025-01-16T20:00:00Z'
        assert len(responses.calls) == 1

    @responses.activate
    def test_fetch_non_success_status_is_not_retried(self):
        """Test that a server error raises after a single attempt."""
        responses.add(responses.GET, FEED_URL, body="Server Error", status=500)

        client = ScheduleFeedClient(url=FEED_URL)

        with pytest.raises(RequestException):
            client.fetch()

        assert len(responses.calls) == 1

    @responses.activate
    def test_fetch_timeout(self):
        """Test timeout handling."""
        responses.add(responses.GET, FEED_URL, body=Timeout("Request timed out"))

        client = ScheduleFeedClient(url=FEED_URL)

        with pytest.raises(Timeout):
            client.fetch()

    @responses.activate
    def test_fetch_invalid_json(self):
        """Test that a non-JSON body is reported as feed unavailable."""
        responses.add(responses.GET, FEED_URL, body="<html>oops</html>", status=200)

        client = ScheduleFeedClient(url=FEED_URL)

        with pytest.raises(FeedUnavailableError):
            client.fetch()

    @responses.activate
    def test_fetch_empty_payload(self):
        """Test that a payload without events is reported as feed unavailable."""
        responses.add(responses.GET, FEED_URL, json={'status': 'ok'}, status=200)

        client = ScheduleFeedClient(url=FEED_URL)

        with pytest.raises(FeedUnavailableError, match="No events found"):
            client.fetch()


class TestPayloadExtraction:
    """Test cases for feed payload shape handling."""

    def test_top_level_array(self):
        """Test that a top-level array is used as-is."""
        data = [{'date': '2025-01-15'}, {'title': 'No date'}]

        assert extract_raw_events(data) == data

    def test_object_with_array_values(self):
        """Test collecting event-like records from array values."""
        data = {
            'schedule': [{'date': '2025-01-15'}, {'foo': 'bar'}, 'junk'],
            'briefings': [{'title': 'Press briefing'}],
            'count': 3
        }

        assert extract_raw_events(data) == [
            {'date': '2025-01-15'},
            {'title': 'Press briefing'}
        ]

    def test_data_array_wins_over_other_arrays(self):
        """Test that the data array shape takes precedence."""
        data = {'data': [{'date': '2025-01-15'}], 'other': [{'date': '2025-01-16'}]}

        assert extract_raw_events(data) == [{'date': '2025-01-15'}]

    def test_unrecognized_shape(self):
        """Test that scalars yield no events."""
        assert extract_raw_events("nope") == []
        assert extract_raw_events(None) == []

    def test_extract_last_updated(self):
        """Test reading the optional meta stamp."""
        assert extract_last_updated({'meta': {'last_updated': '2025-01-01T00:00:00Z'}}) \
            == '2025-01-01T00:00:00Z'
        assert extract_last_updated({'meta': {}}) is None
        assert extract_last_updated([]) is None
