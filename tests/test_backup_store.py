"""Unit tests for BackupStore."""
import json
from unittest.mock import patch

import boto3
import pytest
from botocore.exceptions import ClientError
from moto import mock_aws

from processor.models import Event
from storage.backup_store import BackupStore, BackupStoreError


@pytest.fixture
def backup_table():
    """Create a mock DynamoDB key-value table for testing."""
    with mock_aws():
        dynamodb = boto3.resource('dynamodb', region_name='us-east-1')

        table = dynamodb.create_table(
            TableName='test-calendar-backup',
            KeySchema=[
                {'AttributeName': 'storage_key', 'KeyType': 'HASH'}
            ],
            AttributeDefinitions=[
                {'AttributeName': 'storage_key', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )

        yield table


@pytest.fixture
def backup_store(backup_table):
    """Create BackupStore instance with mock table."""
    return BackupStore('test-calendar-backup')


@pytest.fixture
def sample_events():
    """Create sample canonical events."""
    return [
        Event(date='2025-01-16', time_start='17:30', title='Full lid',
              description='Full lid called', type='pool report'),
        Event(date='2025-01-15', title='Arrives', location='Mar-a-Lago',
              url='https://example.com/1')
    ]


class TestBackupStore:
    """Test cases for BackupStore class."""

    def test_load_backup_when_absent(self, backup_store):
        """Test that a missing backup returns None."""
        assert backup_store.load_backup() is None

    def test_save_and_load_backup(self, backup_store, sample_events):
        """Test saving events and reading the record back."""
        assert backup_store.save_backup(sample_events) is True

        record = backup_store.load_backup()

        assert record is not None
        assert record.version == '1.0'
        assert record.last_updated
        assert record.events == [event.to_dict() for event in sample_events]
        assert record.events[0]['timeStart'] == '17:30'

    def test_save_backup_replaces_previous_record(self, backup_store, sample_events):
        """Test that a save fully replaces the previous record."""
        backup_store.save_backup(sample_events)
        backup_store.save_backup(sample_events[:1])

        record = backup_store.load_backup()

        assert len(record.events) == 1

    def test_stored_item_layout(self, backup_store, backup_table, sample_events):
        """Test the raw item written under the fixed key."""
        backup_store.save_backup(sample_events)

        item = backup_table.get_item(
            Key={'storage_key': 'presidentCalendarBackup'}
        )['Item']
        payload = json.loads(item['payload'])

        assert set(payload) == {'events', 'lastUpdated', 'version'}

    def test_load_backup_corrupt_payload(self, backup_store, backup_table):
        """Test that an unreadable payload returns None."""
        backup_table.put_item(Item={
            'storage_key': 'presidentCalendarBackup',
            'payload': '{not json'
        })

        assert backup_store.load_backup() is None

    def test_save_backup_client_error(self, sample_events):
        """Test that a missing table is reported as a failed save."""
        with mock_aws():
            store = BackupStore('missing-table')

            assert store.save_backup(sample_events) is False
            assert store.load_backup() is None

    def test_auto_backup_flag_defaults_off(self, backup_store):
        """Test that the auto-backup flag is off when unset."""
        assert backup_store.is_auto_backup_enabled() is False

    def test_toggle_auto_backup(self, backup_store):
        """Test flipping the auto-backup flag."""
        assert backup_store.toggle_auto_backup() is True
        assert backup_store.is_auto_backup_enabled() is True

        assert backup_store.toggle_auto_backup() is False
        assert backup_store.is_auto_backup_enabled() is False

    def test_set_auto_backup(self, backup_store):
        """Test writing the auto-backup flag explicitly."""
        assert backup_store.set_auto_backup(True) is True
        assert backup_store.is_auto_backup_enabled() is True

    def test_toggle_auto_backup_write_failure(self, backup_store):
        """Test that a failed flag write raises and leaves the flag unchanged."""
        error = ClientError(
            {'Error': {'Code': 'ProvisionedThroughputExceededException',
                       'Message': 'Throughput exceeded'}},
            'PutItem'
        )

        with patch.object(backup_store.table, 'put_item', side_effect=error):
            with pytest.raises(BackupStoreError):
                backup_store.toggle_auto_backup()

        assert backup_store.is_auto_backup_enabled() is False
