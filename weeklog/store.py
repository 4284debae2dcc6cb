import logging
import time
import uuid
from typing import Callable, Iterable, List, Optional

from .errors import NotFound, ValidationError
from .models import LogEntry, coerce_date, parse_hours, require_project_code

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('date', 'project_code', 'description', 'hours')


def _now_ms() -> int:
    return int(time.time() * 1000)


class LogStore:
    """In-memory collection of log entries; the only owner of entry ids and timestamps.

    New entries are prepended. Every successful mutation notifies the
    subscribed listeners (the persistence layer writes through on it).
    """

    def __init__(self, entries: Optional[Iterable[LogEntry]] = None, clock: Callable[[], int] = _now_ms):
        self._entries: List[LogEntry] = []
        self._listeners: List[Callable[['LogStore'], None]] = []
        self._clock = clock
        self._last_created_at = 0

        seen = set()
        for entry in entries or []:
            if entry.id in seen:
                raise ValidationError(f"Duplicate log entry id {entry.id}")
            seen.add(entry.id)
            self._entries.append(entry)
            self._last_created_at = max(self._last_created_at, entry.created_at)

    def subscribe(self, listener: Callable[['LogStore'], None]):
        """Register a callable invoked with the store after every mutation."""
        self._listeners.append(listener)

    def _changed(self):
        for listener in self._listeners:
            listener(self)

    def _next_created_at(self) -> int:
        # strictly increasing so created_at is a total order for same-day entries
        created_at = max(self._clock(), self._last_created_at + 1)
        self._last_created_at = created_at
        return created_at

    def create(self, date, project_code: str, description: Optional[str], hours) -> LogEntry:
        """Validate and insert a new entry at the front of the collection."""
        log_date = coerce_date(date)
        project_code = require_project_code(project_code)
        hours = parse_hours(hours)

        entry = LogEntry(
            id=uuid.uuid4().hex,
            created_at=self._next_created_at(),
            date=log_date,
            project_code=project_code,
            description=description,
            hours=hours,
        )
        self._entries.insert(0, entry)
        logger.info(f"Created log entry {entry.id} ({project_code} on {log_date}, {hours}h)")
        self._changed()
        return entry

    def get(self, entry_id: str) -> LogEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise NotFound(entry_id)

    def update(self, entry_id: str, **fields) -> LogEntry:
        """Merge the given fields into an existing entry; id and created_at never change."""
        entry = self.get(entry_id)

        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown log entry fields: {', '.join(sorted(unknown))}")

        # validate everything before touching the entry
        changes = {}
        if 'date' in fields:
            changes['date'] = coerce_date(fields['date'])
        if 'project_code' in fields:
            changes['project_code'] = require_project_code(fields['project_code'])
        if 'description' in fields:
            changes['description'] = fields['description'] or ''
        if 'hours' in fields:
            changes['hours'] = parse_hours(fields['hours'])

        for name, value in changes.items():
            setattr(entry, name, value)

        logger.info(f"Updated log entry {entry_id}: {', '.join(sorted(changes)) or 'no changes'}")
        self._changed()
        return entry

    def delete(self, entry_id: str) -> bool:
        """Remove an entry. Deleting a missing id is a no-op and returns False."""
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                del self._entries[index]
                logger.info(f"Deleted log entry {entry_id}")
                self._changed()
                return True

        logger.debug(f"Delete ignored, log entry {entry_id} not present")
        return False

    def list(self):
        """Current entries, newest created first. Callers must not mutate them."""
        return tuple(self._entries)

    def project_codes(self):
        return sorted({entry.project_code for entry in self._entries})

    def __len__(self):
        return len(self._entries)
