"""Statistics facade combining classification, aggregation and lid times."""
import logging
import math
from datetime import date
from typing import Iterable, Optional, Tuple

from processor.keyword_classifier import KeywordClassifier
from processor.lid_calculator import LidTimeCalculator
from processor.models import CategoryStatistics, Event, StatisticsBundle
from processor.trip_aggregator import TripAggregator

logger = logging.getLogger(__name__)


INAUGURATION_DATE = date(2025, 1, 20)
DEFAULT_TRIP_COST = 3_400_000


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def split_hours(hours: float) -> Tuple[int, int]:
    """
    Split fractional hours into whole hours and rounded minutes.

    A remainder that rounds to 60 minutes carries into the hour.

    Args:
        hours: Fractional hours

    Returns:
        Tuple of (hours, minutes)
    """
    whole_hours = int(math.floor(hours))
    minutes = round_half_up((hours - whole_hours) * 60)
    if minutes == 60:
        whole_hours += 1
        minutes = 0
    return whole_hours, minutes


class StatisticsFacade:
    """Facade producing the display statistics bundle."""

    def __init__(self, classifier: KeywordClassifier = None,
                 aggregator: TripAggregator = None,
                 lid_calculator: LidTimeCalculator = None,
                 trip_cost: int = DEFAULT_TRIP_COST,
                 reference_date: date = INAUGURATION_DATE):
        """
        Initialize the facade.

        Args:
            classifier: Keyword classifier (default categories if omitted)
            aggregator: Trip/day aggregator
            lid_calculator: Lid time calculator
            trip_cost: Estimated cost per trip in USD
            reference_date: Start date for the days-in-office count
        """
        self.classifier = classifier or KeywordClassifier()
        self.aggregator = aggregator or TripAggregator()
        self.lid_calculator = lid_calculator or LidTimeCalculator()
        self.trip_cost = trip_cost
        self.reference_date = reference_date

    def build(self, events: Iterable[Event],
              today: Optional[date] = None) -> StatisticsBundle:
        """
        Build the statistics bundle for an event sequence.

        Args:
            events: Canonical events
            today: Date used for the days-in-office count (default: today)

        Returns:
            StatisticsBundle
        """
        events = tuple(events)
        today = today or date.today()

        categories = {}
        for name, category in self.classifier.categories.items():
            predicate = self.classifier.predicate(name)
            days = self.aggregator.qualifying_days(
                events, predicate, category.weekday_only
            )
            trips = self.aggregator.count_trips(
                events, predicate, category.weekday_only
            )
            categories[name] = CategoryStatistics(
                name=name,
                days=len(days),
                trips=trips,
                estimated_cost=trips * self.trip_cost
            )

        lid = self.lid_calculator.calculate(events)
        avg_hours, avg_minutes = split_hours(lid.average_lid_hours)

        bundle = StatisticsBundle(
            event_count=len(events),
            categories=categories,
            lid=lid,
            total_lid_hours_display=round_half_up(lid.total_lid_hours),
            average_lid_hours_part=avg_hours,
            average_lid_minutes_part=avg_minutes,
            average_lid_display=f"{avg_hours}h {avg_minutes}m",
            days_in_office=self.days_since(today)
        )

        logger.info(
            f"Computed statistics for {len(events)} events: "
            + ", ".join(f"{name}={stats.days}d/{stats.trips}t"
                        for name, stats in categories.items())
            + f", lid_days={lid.total_days_with_lid}"
        )
        return bundle

    def days_since(self, today: date) -> int:
        """Whole days elapsed from the reference date to today."""
        return (today - self.reference_date).days
