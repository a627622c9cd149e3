"""Aggregation of matching events into qualifying days and trips."""
import logging
from datetime import date, datetime
from typing import Callable, Iterable, List, Optional, Set

from processor.models import Event

logger = logging.getLogger(__name__)


FEDERAL_HOLIDAYS = frozenset([
    '2024-01-01',  # New Year's Day
    '2024-01-15',  # Martin Luther King Jr. Day
    '2024-02-19',  # Presidents Day
    '2024-05-27',  # Memorial Day
    '2024-06-19',  # Juneteenth
    '2024-07-04',  # Independence Day
    '2024-09-02',  # Labor Day
    '2024-10-14',  # Columbus Day
    '2024-11-11',  # Veterans Day
    '2024-11-28',  # Thanksgiving Day
    '2024-12-25',  # Christmas Day
    '2025-01-01',  # New Year's Day
    '2025-01-20',  # Martin Luther King Jr. Day
    '2025-02-17',  # Presidents Day
    '2025-05-26',  # Memorial Day
    '2025-06-19',  # Juneteenth
    '2025-07-04',  # Independence Day
])


def day_key(date_str: str) -> str:
    """Return the calendar-day part of a date string."""
    return date_str.split('T')[0]


def parse_day(date_str: str) -> Optional[date]:
    """Parse a YYYY-MM-DD day key, returning None for malformed input."""
    try:
        return datetime.strptime(day_key(date_str), '%Y-%m-%d').date()
    except ValueError:
        return None


class TripAggregator:
    """Aggregator for distinct qualifying days and trip counts."""

    def __init__(self, holidays: Iterable[str] = FEDERAL_HOLIDAYS):
        """
        Initialize the aggregator.

        Args:
            holidays: YYYY-MM-DD dates excluded by weekday-only categories
        """
        self.holidays = frozenset(holidays)

    def is_weekend(self, date_str: str) -> bool:
        parsed = parse_day(date_str)
        return parsed is not None and parsed.weekday() >= 5

    def is_holiday(self, date_str: str) -> bool:
        return day_key(date_str) in self.holidays

    def qualifies(self, event: Event, predicate: Callable[[Event], bool],
                  weekday_only: bool = False) -> bool:
        """
        Test whether an event counts toward a category.

        Args:
            event: Canonical event
            predicate: Keyword predicate for the category
            weekday_only: Also require a non-weekend, non-holiday date

        Returns:
            True if the event qualifies
        """
        if not predicate(event):
            return False
        if weekday_only:
            if parse_day(event.date) is None:
                return False
            if self.is_weekend(event.date) or self.is_holiday(event.date):
                return False
        return True

    def qualifying_days(self, events: Iterable[Event],
                        predicate: Callable[[Event], bool],
                        weekday_only: bool = False) -> Set[str]:
        """
        Collect the distinct days with at least one qualifying event.

        Args:
            events: Canonical events
            predicate: Keyword predicate for the category
            weekday_only: Apply the weekend/holiday gate

        Returns:
            Set of day keys
        """
        return {
            day_key(event.date) for event in events
            if self.qualifies(event, predicate, weekday_only)
        }

    def count_trips(self, events: Iterable[Event],
                    predicate: Callable[[Event], bool],
                    weekday_only: bool = False) -> int:
        """
        Count trips over the qualifying events.

        Matching days are walked in ascending order. The first match counts
        one departure, every gap of more than one calendar day counts
        another, and a final return leg is added when anything matched. A
        single isolated day therefore counts as 2.

        Args:
            events: Canonical events
            predicate: Keyword predicate for the category
            weekday_only: Apply the weekend/holiday gate

        Returns:
            Trip count
        """
        matching_days: List[date] = []
        for event in events:
            if not self.qualifies(event, predicate, weekday_only):
                continue
            parsed = parse_day(event.date)
            if parsed is None:
                logger.warning(
                    f"Skipping event with malformed date in trip count: {event.date}"
                )
                continue
            matching_days.append(parsed)

        if not matching_days:
            return 0

        matching_days.sort()

        trips = 1
        for previous, current in zip(matching_days, matching_days[1:]):
            if (current - previous).days > 1:
                trips += 1

        # Return leg of the final trip
        return trips + 1
