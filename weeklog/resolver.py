from datetime import date
from typing import Iterable, Optional

from .models import LogEntry, coerce_date


def find_conflict(entries: Iterable[LogEntry], date: date, project_code: str,
                  exclude_id: Optional[str] = None) -> Optional[LogEntry]:
    """Return the first entry already logged for this exact date and project code.

    Matching is exact, no case folding or trimming. The entry with id
    ``exclude_id`` is skipped so an entry being edited never conflicts
    with itself.
    """
    date = coerce_date(date)
    for entry in entries:
        if exclude_id is not None and entry.id == exclude_id:
            continue
        if entry.date == date and entry.project_code == project_code:
            return entry
    return None
