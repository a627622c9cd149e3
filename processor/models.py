"""Data models for schedule event processing."""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple


DEFAULT_TEXT_FIELDS = ('title', 'location', 'description')


@dataclass(frozen=True)
class Event:
    """Canonical schedule event."""
    date: str
    time_start: Optional[str] = None
    time_end: Optional[str] = None
    title: str = ''
    location: str = ''
    description: str = ''
    type: str = ''
    url: str = ''

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire form used by the feed and backups."""
        return {
            'date': self.date,
            'timeStart': self.time_start,
            'timeEnd': self.time_end,
            'title': self.title,
            'location': self.location,
            'description': self.description,
            'type': self.type,
            'url': self.url
        }


@dataclass(frozen=True)
class KeywordCategory:
    """Named list of phrases matched against event text fields."""
    name: str
    keywords: Tuple[str, ...]
    weekday_only: bool = False
    fields: Tuple[str, ...] = DEFAULT_TEXT_FIELDS


@dataclass
class CategoryStatistics:
    """Day and trip counts for one keyword category."""
    name: str
    days: int
    trips: int
    estimated_cost: int


@dataclass
class LidDay:
    """Lid call for a single day."""
    hours_to_midnight: float
    lid_call_time: str


@dataclass
class LidStatistics:
    """Aggregated lid times across all days."""
    total_days_with_lid: int
    total_lid_hours: float
    average_lid_hours: float
    lid_times_by_date: Dict[str, LidDay] = field(default_factory=dict)


@dataclass
class StatisticsBundle:
    """Display-ready statistics derived from one event sequence."""
    event_count: int
    categories: Dict[str, CategoryStatistics]
    lid: LidStatistics
    total_lid_hours_display: int
    average_lid_hours_part: int
    average_lid_minutes_part: int
    average_lid_display: str
    days_in_office: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BackupRecord:
    """Serialized snapshot of the last loaded events."""
    events: List[Dict[str, Any]]
    last_updated: str
    version: str = '1.0'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'events': self.events,
            'lastUpdated': self.last_updated,
            'version': self.version
        }


@dataclass(frozen=True)
class AppState:
    """Result of one calendar load. A new instance is produced per load."""
    events: Tuple[Event, ...] = ()
    # Normalized events before any view pre-filter; this is what gets backed up
    all_events: Tuple[Event, ...] = ()
    statistics: Optional[StatisticsBundle] = None
    event_types: Tuple[str, ...] = ()
    last_updated: Optional[str] = None
    using_backup: bool = False
    has_error: bool = False
    error_message: str = ''
    auto_backup_enabled: bool = False
    backup_status: Optional[str] = None
