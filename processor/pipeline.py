"""Calendar load pipeline: fetch or fall back, normalize, derive statistics."""
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable, List, Optional

import requests

from feed.schedule_feed import FeedUnavailableError, ScheduleFeedClient
from processor.event_normalizer import EventNormalizer
from processor.keyword_classifier import KeywordClassifier
from processor.models import AppState, Event
from processor.statistics import StatisticsFacade
from storage.backup_store import BackupStore

logger = logging.getLogger(__name__)


BACKUP_NOTICE = (
    'Using locally saved data. Connect to the internet for the latest '
    'information.'
)
BACKUP_SAVED = 'Data saved successfully'
BACKUP_FAILED = 'Failed to save data'


class CalendarLoadError(Exception):
    """Raised when neither the feed nor a backup yields events."""


def property_view_filter(classifier: KeywordClassifier,
                         category_name: str) -> Callable[[Event], bool]:
    """Pre-filter restricting the pipeline to one property's events."""
    return classifier.predicate(category_name)


def _load_raw_events(feed: ScheduleFeedClient, store: Optional[BackupStore]):
    """
    Fetch raw events, falling back to the stored backup.

    Args:
        feed: Feed client
        store: Backup store, or None when persistence is not configured

    Returns:
        Tuple of (raw events, last_updated, using_backup)

    Raises:
        CalendarLoadError: If the feed fails and no usable backup exists
    """
    try:
        payload = feed.fetch()
        return payload.events, payload.last_updated, False
    except (requests.RequestException, FeedUnavailableError) as fetch_error:
        logger.warning(
            f"Failed to fetch online data, trying backup: {fetch_error}"
        )

        record = store.load_backup() if store is not None else None
        if record is None or not record.events:
            raise CalendarLoadError(str(fetch_error)) from fetch_error

        logger.info(f"Using backup data from: {record.last_updated}")
        return record.events, record.last_updated, True


def load_calendar(feed: ScheduleFeedClient,
                  store: Optional[BackupStore] = None,
                  normalizer: EventNormalizer = None,
                  facade: StatisticsFacade = None,
                  pre_filter: Optional[Callable[[Event], bool]] = None,
                  now: Optional[datetime] = None) -> AppState:
    """
    Run one calendar load and return the resulting application state.

    Failures never propagate: a load that yields no events from either the
    feed or the backup returns a state with ``has_error`` set.

    Args:
        feed: Feed client
        store: Backup store for fallback and auto backup (optional)
        normalizer: Event normalizer
        facade: Statistics facade
        pre_filter: Optional predicate applied after normalization, used by
            property-specific views
        now: Current time (default: now, UTC)

    Returns:
        New AppState
    """
    normalizer = normalizer or EventNormalizer()
    facade = facade or StatisticsFacade()
    now = now or datetime.now(timezone.utc)

    auto_backup_enabled = False
    try:
        if store is not None:
            auto_backup_enabled = store.is_auto_backup_enabled()

        raw_events, last_updated, using_backup = _load_raw_events(feed, store)

        all_events: List[Event] = normalizer.normalize_events(raw_events)
        events = all_events
        if pre_filter is not None:
            events = [event for event in all_events if pre_filter(event)]
            logger.info(f"Pre-filter kept {len(events)} events")

        statistics = facade.build(events, today=now.date())

        backup_status = BACKUP_NOTICE if using_backup else None
        # Loads served from the backup are not re-saved, so lastUpdated keeps
        # the time of the last successful feed load
        if auto_backup_enabled and all_events and not using_backup:
            saved = store.save_backup(all_events)
            backup_status = None if saved else BACKUP_FAILED

        return AppState(
            events=tuple(events),
            all_events=tuple(all_events),
            statistics=statistics,
            event_types=tuple(sorted({event.type for event in events if event.type})),
            last_updated=last_updated or now.isoformat(),
            using_backup=using_backup,
            auto_backup_enabled=auto_backup_enabled,
            backup_status=backup_status
        )

    except CalendarLoadError as e:
        logger.error(f"Error fetching calendar data: {e}")
        return AppState(
            has_error=True,
            error_message=str(e) or 'An error occurred while loading events.',
            auto_backup_enabled=auto_backup_enabled
        )
    except Exception as e:
        logger.error(f"Unexpected error loading calendar: {e}", exc_info=True)
        return AppState(
            has_error=True,
            error_message='An error occurred while loading events.',
            auto_backup_enabled=auto_backup_enabled
        )


def backup_state(state: AppState, store: BackupStore) -> AppState:
    """
    Save the events of a loaded state and report the outcome.

    The unfiltered sequence is saved so a property view never replaces the
    general calendar backup with its subset.

    Args:
        state: Loaded application state
        store: Backup store

    Returns:
        New AppState with backup_status set
    """
    events = state.all_events or state.events
    saved = bool(events) and store.save_backup(events)
    return replace(state, backup_status=BACKUP_SAVED if saved else BACKUP_FAILED)
