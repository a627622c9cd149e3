"""DynamoDB-backed key-value store for the calendar backup record."""
import json
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from processor.models import BackupRecord, Event

logger = logging.getLogger(__name__)


class BackupStoreError(Exception):
    """Raised when a store write the caller depends on fails."""


class BackupStore:
    """Store holding one Backup Record and the auto-backup flag."""

    KEY_ATTRIBUTE = 'storage_key'
    BACKUP_KEY = 'presidentCalendarBackup'
    AUTO_BACKUP_KEY = 'autoBackupEnabled'
    BACKUP_VERSION = '1.0'

    def __init__(self, table_name: str, endpoint_url: Optional[str] = None,
                 region_name: Optional[str] = None):
        """
        Initialize DynamoDB resource and table reference.

        Args:
            table_name: Name of the DynamoDB table
            endpoint_url: Optional endpoint, e.g. DynamoDB Local
            region_name: Optional AWS region
        """
        self.table_name = table_name
        self.dynamodb = boto3.resource(
            'dynamodb', endpoint_url=endpoint_url, region_name=region_name
        )
        self.table = self.dynamodb.Table(table_name)
        logger.info(f"Initialized BackupStore for table: {table_name}")

    def save_backup(self, events: Iterable[Event]) -> bool:
        """
        Replace the stored backup with the given events.

        Args:
            events: Canonical events to persist

        Returns:
            True if the backup was written, False otherwise
        """
        record = BackupRecord(
            events=[event.to_dict() for event in events],
            last_updated=datetime.now(timezone.utc).isoformat(),
            version=self.BACKUP_VERSION
        )

        try:
            payload = json.dumps(record.to_dict())
            self.table.put_item(Item={
                self.KEY_ATTRIBUTE: self.BACKUP_KEY,
                'payload': payload
            })
        except (ClientError, BotoCoreError, TypeError, ValueError) as e:
            logger.error(f"Error saving backup data: {e}")
            return False

        logger.info(f"Saved backup with {len(record.events)} events")
        return True

    def load_backup(self) -> Optional[BackupRecord]:
        """
        Read the stored backup.

        Returns:
            BackupRecord or None if absent or unreadable
        """
        try:
            response = self.table.get_item(
                Key={self.KEY_ATTRIBUTE: self.BACKUP_KEY}
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error loading backup data: {e}")
            return None

        item = response.get('Item')
        if not item or not item.get('payload'):
            return None

        try:
            data = json.loads(item['payload'])
            return BackupRecord(
                events=list(data.get('events') or []),
                last_updated=data.get('lastUpdated', ''),
                version=data.get('version', self.BACKUP_VERSION)
            )
        except (ValueError, TypeError, AttributeError) as e:
            logger.error(f"Error decoding backup data: {e}")
            return None

    def is_auto_backup_enabled(self) -> bool:
        """Return the auto-backup flag, False when unset or unreadable."""
        try:
            response = self.table.get_item(
                Key={self.KEY_ATTRIBUTE: self.AUTO_BACKUP_KEY}
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error reading auto backup flag: {e}")
            return False
        return bool(response.get('Item', {}).get('enabled', False))

    def set_auto_backup(self, enabled: bool) -> bool:
        """
        Persist the auto-backup flag.

        Args:
            enabled: New flag value

        Returns:
            True if the flag was written, False otherwise
        """
        try:
            self.table.put_item(Item={
                self.KEY_ATTRIBUTE: self.AUTO_BACKUP_KEY,
                'enabled': enabled
            })
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error writing auto backup flag: {e}")
            return False
        logger.info(f"Auto backup {'enabled' if enabled else 'disabled'}")
        return True

    def toggle_auto_backup(self) -> bool:
        """
        Flip the auto-backup flag.

        Returns:
            The new flag value

        Raises:
            BackupStoreError: If the new value could not be written
        """
        enabled = not self.is_auto_backup_enabled()
        if not self.set_auto_backup(enabled):
            raise BackupStoreError(
                f"Could not {'enable' if enabled else 'disable'} auto backup"
            )
        return enabled
