"""Lid time calculator."""
import logging
import re
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple

from processor.models import Event, LidDay, LidStatistics
from processor.trip_aggregator import day_key

logger = logging.getLogger(__name__)

LID_MARKER = 'full lid called'
MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r'^\s*(\d{1,2}):(\d{2})')


def parse_clock_time(time_str: Optional[str]) -> Optional[Tuple[int, int]]:
    """Parse the HH:MM prefix of a time string into (hours, minutes)."""
    if not time_str:
        return None
    match = _TIME_PATTERN.match(time_str)
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours, minutes


def hours_to_midnight(hours: int, minutes: int) -> float:
    return (MINUTES_PER_DAY - (hours * 60 + minutes)) / 60


class LidTimeCalculator:
    """Calculator for time remaining after a full lid is called."""

    def __init__(self, marker: str = LID_MARKER):
        self.marker = marker.lower()

    def calculate(self, events: Iterable[Event]) -> LidStatistics:
        """
        Compute lid statistics over an event sequence.

        For each day the last event (in sequence order) whose description
        contains the lid marker is used. Days where that event has no
        parseable start time are not counted.

        Args:
            events: Canonical events

        Returns:
            LidStatistics with totals, average and per-day lid times
        """
        events_by_date: Dict[str, List[Event]] = OrderedDict()
        for event in events:
            if not event.date:
                continue
            events_by_date.setdefault(day_key(event.date), []).append(event)

        lid_times_by_date = {}
        total_lid_hours = 0.0

        for date_key, day_events in events_by_date.items():
            lid_event = self._last_lid_event(day_events)
            if lid_event is None:
                continue

            clock = parse_clock_time(lid_event.time_start)
            if clock is None:
                logger.debug(
                    f"Lid event on {date_key} has no usable start time: "
                    f"{lid_event.time_start!r}"
                )
                continue

            hours, minutes = clock
            lid_hours = hours_to_midnight(hours, minutes)
            lid_times_by_date[date_key] = LidDay(
                hours_to_midnight=lid_hours,
                lid_call_time=f"{hours}:{minutes:02d}"
            )
            total_lid_hours += lid_hours

        total_days = len(lid_times_by_date)
        average = total_lid_hours / total_days if total_days else 0.0

        return LidStatistics(
            total_days_with_lid=total_days,
            total_lid_hours=total_lid_hours,
            average_lid_hours=average,
            lid_times_by_date=lid_times_by_date
        )

    def _last_lid_event(self, day_events: List[Event]) -> Optional[Event]:
        lid_event = None
        for event in day_events:
            if self.marker in (event.description or '').lower():
                lid_event = event
        return lid_event
