"""Event normalizer for mapping raw feed records onto the canonical schema."""
import logging
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from processor.models import Event

logger = logging.getLogger(__name__)


class EventNormalizer:
    """Normalizer for heterogeneous schedule event records."""

    # Ordered candidate keys per canonical field; first non-empty value wins
    FIELD_CANDIDATES = {
        'date': ('date', 'startDate', 'start'),
        'time_start': ('timeStart', 'time', 'startTime'),
        'time_end': ('timeEnd', 'endTime'),
        'title': ('title', 'summary', 'name'),
        'location': ('location', 'venue'),
        'description': ('description', 'details'),
        'type': ('type', 'source', 'category'),
        'url': ('url', 'link'),
    }

    DEFAULT_TITLE = 'Untitled Event'
    MIDDAY_SUFFIX = 'T12:00:00'

    # Tried against the original string when ISO parsing fails
    DATE_FORMATS = [
        '%m/%d/%Y',
        '%m-%d-%Y',
        '%B %d, %Y',
        '%b %d, %Y',
        '%Y/%m/%d',
    ]

    TIME_FORMATS = [
        '%H:%M',
        '%H:%M:%S',
        '%I:%M %p',
        '%I:%M%p',
        '%I:%M:%S %p',
    ]

    def normalize_events(self, raw_items: Iterable[Any]) -> List[Event]:
        """
        Normalize raw feed records into canonical events.

        Records without any date-bearing field are dropped silently.

        Args:
            raw_items: Raw event mappings from the feed or a backup

        Returns:
            List of Event objects sorted newest date first
        """
        raw_items = list(raw_items)
        events = []
        skipped = 0

        for item in raw_items:
            if not isinstance(item, Mapping):
                logger.warning(f"Skipping non-mapping feed item: {item!r}")
                skipped += 1
                continue

            event = self.normalize_event(item)
            if event is None:
                skipped += 1
                continue
            events.append(event)

        events.sort(key=lambda event: event.date, reverse=True)

        logger.info(
            f"Normalized {len(events)} events out of {len(raw_items)} "
            f"raw items ({skipped} skipped)"
        )
        return events

    def normalize_event(self, item: Mapping[str, Any]) -> Optional[Event]:
        """
        Normalize a single raw record.

        Args:
            item: Raw event mapping

        Returns:
            Event object or None if the record has no date
        """
        raw_date = self._first_value(item, 'date')
        if raw_date is None:
            return None

        time_start = self._first_value(item, 'time_start')
        time_end = self._first_value(item, 'time_end')

        return Event(
            date=self.normalize_date(raw_date),
            time_start=self.normalize_time(time_start) if time_start else None,
            time_end=self.normalize_time(time_end) if time_end else None,
            title=self._first_value(item, 'title') or self.DEFAULT_TITLE,
            location=self._first_value(item, 'location') or '',
            description=self._first_value(item, 'description') or '',
            type=self._first_value(item, 'type') or '',
            url=self._first_value(item, 'url') or ''
        )

    def normalize_date(self, date_str: str) -> str:
        """
        Canonicalize a date string to YYYY-MM-DD.

        A midday time is appended to bare dates so the calendar day never
        shifts across timezones. Unparseable input is returned unchanged.

        Args:
            date_str: Date string in ISO or a common human format

        Returns:
            Zero-padded YYYY-MM-DD string, or the original string
        """
        parsed = self.parse_date(date_str)
        if parsed is None:
            logger.warning(f"Error processing date: {date_str}")
            return date_str
        return f"{parsed.year:04d}-{parsed.month:02d}-{parsed.day:02d}"

    def parse_date(self, date_str: str) -> Optional[datetime]:
        """
        Parse a date string into a datetime.

        Args:
            date_str: Date string

        Returns:
            datetime object or None if parsing fails
        """
        value = date_str.strip()
        iso_value = value if 'T' in value else f"{value}{self.MIDDAY_SUFFIX}"
        if iso_value.endswith('Z'):
            iso_value = f"{iso_value[:-1]}+00:00"

        try:
            return datetime.fromisoformat(iso_value)
        except ValueError:
            pass

        for fmt in self.DATE_FORMATS:
            try:
                return datetime.strptime(value, fmt)
            except ValueError:
                continue

        return None

    def normalize_time(self, time_str: str) -> str:
        """
        Normalize a time to 24-hour HH:MM when it parses, else keep it.

        Args:
            time_str: Time string in various formats

        Returns:
            HH:MM string, or the original string if no format matched
        """
        value = time_str.strip()

        for fmt in self.TIME_FORMATS:
            try:
                return datetime.strptime(value, fmt).strftime('%H:%M')
            except ValueError:
                continue

        return time_str

    def _first_value(self, item: Mapping[str, Any], field_name: str) -> Optional[str]:
        """Return the first non-empty candidate value for a canonical field."""
        candidates: Tuple[str, ...] = self.FIELD_CANDIDATES[field_name]
        for key in candidates:
            value = item.get(key)
            if value is None or value == '' or value is False:
                continue
            return str(value)
        return None
