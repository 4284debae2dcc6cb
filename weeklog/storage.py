import json
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional

from .errors import PersistenceReadError, PersistenceWriteError, ValidationError
from .models import LogEntry
from .store import LogStore

logger = logging.getLogger(__name__)

LOGS_KEY = 'work_logs_v1'
SETTINGS_KEY = 'settings'
DATA_FILE = 'worklog.json'


def default_data_dir() -> Path:
    """Data directory, overridable with WEEKLOG_HOME."""
    home = os.environ.get('WEEKLOG_HOME')
    return Path(home) if home else Path.home() / '.weeklog'


class Storage:
    """JSON blob holding the serialized log entries and user settings."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else default_data_dir() / DATA_FILE
        self.last_error: Optional[PersistenceWriteError] = None

    def _read_blob(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                blob = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceReadError(f"Cannot read {self.path}: {e}")
        if not isinstance(blob, dict):
            raise PersistenceReadError(f"Unexpected data in {self.path}")
        return blob

    def _write_blob(self, blob: dict):
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix='.worklog-', suffix='.tmp')
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(blob, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise PersistenceWriteError(f"Cannot write {self.path}: {e}")

    def read_entries(self) -> List[LogEntry]:
        """Parse stored entries, raising PersistenceReadError on anything malformed."""
        records = self._read_blob().get(LOGS_KEY, [])
        if not isinstance(records, list):
            raise PersistenceReadError(f"'{LOGS_KEY}' in {self.path} is not a list")

        entries = []
        seen = set()
        for record in records:
            try:
                entry = LogEntry.from_dict(record)
            except ValidationError as e:
                raise PersistenceReadError(f"Invalid log record in {self.path}: {e}")
            if entry.id in seen:
                raise PersistenceReadError(f"Duplicate log entry id {entry.id} in {self.path}")
            seen.add(entry.id)
            entries.append(entry)
        return entries

    def load_entries(self) -> List[LogEntry]:
        """Stored entries, or an empty list when the stored data is unusable."""
        try:
            entries = self.read_entries()
        except PersistenceReadError as e:
            logger.warning(f"Ignoring stored logs: {e}")
            return []
        logger.info(f"Loaded {len(entries)} log entries from {self.path}")
        return entries

    def write_entries(self, entries):
        try:
            blob = self._read_blob()
        except PersistenceReadError:
            blob = {}
        blob[LOGS_KEY] = [entry.to_dict() for entry in entries]
        self._write_blob(blob)
        logger.debug(f"Wrote {len(entries)} log entries to {self.path}")

    def attach(self, store: LogStore):
        """Write the store through to disk after every change."""
        store.subscribe(self._write_through)

    def _write_through(self, store: LogStore):
        try:
            self.write_entries(store.list())
            self.last_error = None
        except PersistenceWriteError as e:
            # the in-memory store stays authoritative for this session
            logger.warning(f"Changes may not survive this session: {e}")
            self.last_error = e

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        try:
            settings = self._read_blob().get(SETTINGS_KEY) or {}
        except PersistenceReadError as e:
            logger.warning(f"Ignoring stored settings: {e}")
            return default
        if not isinstance(settings, dict):
            return default
        return settings.get(key, default)

    def set_setting(self, key: str, value: str):
        try:
            blob = self._read_blob()
        except PersistenceReadError:
            blob = {}
        settings = blob.get(SETTINGS_KEY)
        if not isinstance(settings, dict):
            settings = {}
        settings[key] = value
        blob[SETTINGS_KEY] = settings
        self._write_blob(blob)


def open_store(storage: Storage) -> LogStore:
    """Build a store from stored entries and keep it written through."""
    store = LogStore(storage.load_entries())
    storage.attach(store)
    return store
