"""AWS Lambda handler for the presidential schedule statistics service."""
import json
import logging
import os
import time
from dataclasses import replace
from typing import Any, Dict

from feed.schedule_feed import DEFAULT_FEED_URL, ScheduleFeedClient
from processor.keyword_classifier import KeywordClassifier
from processor.models import AppState
from processor.pipeline import (
    BACKUP_FAILED,
    backup_state,
    load_calendar,
    property_view_filter,
)
from processor.statistics import DEFAULT_TRIP_COST, StatisticsFacade
from storage.backup_store import BackupStore, BackupStoreError


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def state_to_body(state: AppState) -> Dict[str, Any]:
    """Convert a loaded AppState into the JSON response body."""
    return {
        'message': 'Calendar loaded successfully',
        'lastUpdated': state.last_updated,
        'usingBackup': state.using_backup,
        'autoBackupEnabled': state.auto_backup_enabled,
        'backupStatus': state.backup_status,
        'eventTypes': list(state.event_types),
        'events': [event.to_dict() for event in state.events],
        'statistics': state.statistics.to_dict() if state.statistics else None
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    The invocation payload may carry an ``action``: ``load`` (default),
    ``backup`` to save the loaded events, or ``toggle_auto_backup``.

    Args:
        event: Invocation payload
        context: Lambda context object

    Returns:
        Response dict with statusCode and JSON body
    """
    # Read configuration from environment variables
    feed_url = os.environ.get('FEED_URL', DEFAULT_FEED_URL)
    table_name = os.environ.get('TABLE_NAME', 'president-calendar-backup')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
    trip_cost = int(os.environ.get('TRIP_COST_USD', str(DEFAULT_TRIP_COST)))
    keywords_path = os.environ.get('KEYWORDS_PATH')
    view = os.environ.get('VIEW', 'calendar')
    property_category = os.environ.get('PROPERTY_CATEGORY', 'mar_a_lago')
    endpoint_url = os.environ.get('DYNAMODB_ENDPOINT_URL') or None
    backup_enabled = os.environ.get('BACKUP_ENABLED', 'true').lower() == 'true'

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    action = (event or {}).get('action', 'load')

    start_time = time.time()
    logger.info(
        f"Lambda execution started (action={action}, view={view})",
        extra={
            'feed_url': feed_url,
            'table_name': table_name,
            'timeout_seconds': timeout_seconds
        }
    )

    try:
        store = BackupStore(table_name=table_name, endpoint_url=endpoint_url) \
            if backup_enabled else None

        if action == 'toggle_auto_backup':
            if store is None:
                return {
                    'statusCode': 400,
                    'body': json.dumps({'message': 'Backup storage is disabled'})
                }
            try:
                enabled = store.toggle_auto_backup()
            except BackupStoreError as e:
                logger.error(f"Failed to toggle auto backup: {e}")
                return {
                    'statusCode': 503,
                    'body': json.dumps({
                        'message': 'Failed to toggle auto backup',
                        'error': str(e),
                        'backupStatus': BACKUP_FAILED,
                        'autoBackupEnabled': store.is_auto_backup_enabled()
                    })
                }
            return {
                'statusCode': 200,
                'body': json.dumps({
                    'message': f"Auto backup {'enabled' if enabled else 'disabled'}",
                    'autoBackupEnabled': enabled
                })
            }

        if keywords_path:
            classifier = KeywordClassifier.from_json_file(keywords_path)
        else:
            classifier = KeywordClassifier()

        pre_filter = None
        if view == 'property':
            pre_filter = property_view_filter(classifier, property_category)

        feed = ScheduleFeedClient(url=feed_url, timeout=timeout_seconds)
        facade = StatisticsFacade(classifier=classifier, trip_cost=trip_cost)

        state = load_calendar(
            feed, store=store, facade=facade, pre_filter=pre_filter
        )
        duration = time.time() - start_time

        if state.has_error:
            logger.error(
                f"Could not load calendar events: {state.error_message}",
                extra={'duration_seconds': round(duration, 2)}
            )
            return {
                'statusCode': 503,
                'body': json.dumps({
                    'message': 'Could not load calendar events',
                    'error': state.error_message,
                    'duration_seconds': round(duration, 2)
                })
            }

        if action == 'backup':
            if store is None:
                state = replace(state, backup_status='Backup storage is disabled')
            else:
                state = backup_state(state, store)

        logger.info(
            "Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events_loaded': len(state.events),
                'using_backup': state.using_backup
            }
        )

        body = state_to_body(state)
        body['duration_seconds'] = round(duration, 2)
        return {
            'statusCode': 200,
            'body': json.dumps(body)
        }

    except Exception as e:
        duration = time.time() - start_time

        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )

        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Calendar load failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }
