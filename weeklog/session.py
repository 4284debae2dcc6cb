import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

from .aggregator import DayGroup, WeekDescriptor, WeeklyAggregator
from .models import DATE_FORMAT, LogEntry, coerce_date
from .resolver import find_conflict
from .store import LogStore
from .suggest import suggest

logger = logging.getLogger(__name__)


class WeekSelection:
    """Tracks which week the review view shows."""

    def __init__(self):
        self.selected: Optional[date] = None

    def sync(self, weeks: List[WeekDescriptor]) -> Optional[date]:
        """Keep the current week if it still exists, otherwise fall back to the most recent one."""
        if not weeks:
            self.selected = None
        elif self.selected is None or self.selected not in {week.key for week in weeks}:
            self.selected = weeks[0].key
        return self.selected

    def focus(self, day: date) -> date:
        """Jump to the week containing ``day``, whatever was selected before."""
        self.selected = WeeklyAggregator.week_of(day)
        return self.selected


@dataclass(frozen=True)
class WeekView:
    weeks: Tuple[WeekDescriptor, ...]
    selected: Optional[WeekDescriptor]
    days: Tuple[DayGroup, ...]
    total: Decimal
    projects: Tuple[Tuple[str, Decimal], ...]

    def to_dict(self):
        return {
            'weeks': [week.to_dict() for week in self.weeks],
            'selected': self.selected.to_dict() if self.selected else None,
            'days': [day.to_dict() for day in self.days],
            'total': float(self.total),
            'projects': [{'projectCode': code, 'hours': float(hours)} for code, hours in self.projects],
        }


class LogSession:
    """Entry composition and review workflow for a single user.

    While composing a new entry, committing a date or project code that
    is already logged switches the session into edit mode on that entry
    (the values being typed are dropped, not merged). Saving focuses the
    review on the week of the saved entry.
    """

    def __init__(self, store: LogStore):
        self.store = store
        self.selection = WeekSelection()
        self.editing: Optional[LogEntry] = None

    @property
    def is_editing(self) -> bool:
        return self.editing is not None

    def start_editing(self, entry_id: str) -> LogEntry:
        self.editing = self.store.get(entry_id)
        logger.debug(f"Editing log entry {entry_id}")
        return self.editing

    def cancel_editing(self):
        self.editing = None

    def check_duplicate(self, day, project_code: Optional[str]) -> Optional[LogEntry]:
        """Switch to editing an existing entry for (day, project_code), if there is one."""
        if self.is_editing or not day or not project_code:
            return None

        conflict = find_conflict(self.store.list(), coerce_date(day), project_code)
        if conflict is not None:
            logger.info(f"{project_code} already logged on {conflict.date}, switching to edit {conflict.id}")
            self.editing = conflict
        return conflict

    def suggest_hours(self, day) -> Optional[Decimal]:
        """Default hours for a new entry; editing shows the stored hours instead."""
        if self.is_editing or not day:
            return None
        return suggest(coerce_date(day), self.store.list())

    def save(self, day, project_code: str, description: Optional[str], hours) -> LogEntry:
        if self.is_editing:
            entry = self.store.update(self.editing.id, date=day, project_code=project_code,
                                      description=description, hours=hours)
        else:
            entry = self.store.create(day, project_code, description, hours)

        self.editing = None
        self.selection.focus(entry.date)
        return entry

    def update(self, entry_id: str, **fields) -> LogEntry:
        entry = self.store.update(entry_id, **fields)
        self.selection.focus(entry.date)
        return entry

    def delete(self, entry_id: str) -> bool:
        deleted = self.store.delete(entry_id)
        if self.editing is not None and self.editing.id == entry_id:
            self.editing = None
        return deleted

    def select_week(self, week) -> date:
        week_key = WeeklyAggregator.week_of(coerce_date(week))
        self.selection.selected = week_key
        return week_key

    def review(self, week=None) -> WeekView:
        """Build the review view for the selected (or given) week."""
        entries = self.store.list()
        weeks = WeeklyAggregator.list_weeks(entries)

        if week is not None:
            self.select_week(week)
        selected_key = self.selection.sync(weeks)

        if selected_key is None:
            return WeekView(weeks=(), selected=None, days=(), total=Decimal(0), projects=())

        week_entries = WeeklyAggregator.select_week(entries, selected_key)
        logger.debug(f"Review of week {selected_key.strftime(DATE_FORMAT)}: {len(week_entries)} entries")
        return WeekView(
            weeks=tuple(weeks),
            selected=WeeklyAggregator.describe_week(selected_key),
            days=tuple(WeeklyAggregator.group_by_day(week_entries)),
            total=WeeklyAggregator.weekly_total(week_entries),
            projects=tuple(WeeklyAggregator.project_summary(week_entries)),
        )
