from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import DATE_FORMAT, LogEntry, coerce_date, format_hours, from_quarters


@dataclass(frozen=True)
class WeekDescriptor:
    """A Monday to Sunday week; ``start`` is also the week key."""
    start: date
    end: date

    @property
    def key(self) -> date:
        return self.start

    @property
    def label(self) -> str:
        return f"{self.start.strftime('%Y/%m/%d')} - {self.end.strftime('%Y/%m/%d')}"

    def to_dict(self):
        return {
            'value': self.start.strftime(DATE_FORMAT),
            'start': self.start.strftime(DATE_FORMAT),
            'end': self.end.strftime(DATE_FORMAT),
            'label': self.label,
        }


@dataclass(frozen=True)
class DayGroup:
    date: date
    entries: Tuple[LogEntry, ...]
    daily_total: Decimal

    def to_dict(self):
        return {
            'date': self.date.strftime(DATE_FORMAT),
            'entries': [entry.to_dict() for entry in self.entries],
            'dailyTotal': float(self.daily_total),
        }


class WeeklyAggregator:
    """Derive weekly review views from a flat list of log entries.

    Everything here is a pure function of the entries passed in; nothing
    is cached. Hour sums are accumulated in quarter-hour units.
    """

    TEMPLATES = {
        'classic': {
            'date_format': '%m/%d (%a)',
            'day_header': '{date}  [{total}h]',
            'text_item': '  * {project_code:<12} {hours:>6}h  {description}',
        },
        'compact': {
            'date_format': '%m/%d',
            'day_header': '{date} {total}h',
            'text_item': '  - {project_code} {hours}h {description}',
        },
    }

    @staticmethod
    def week_of(day: date) -> date:
        """Monday that starts the week containing ``day``."""
        return day - timedelta(days=day.weekday())

    @staticmethod
    def describe_week(week_key: date) -> WeekDescriptor:
        start = WeeklyAggregator.week_of(coerce_date(week_key))
        # the last week of the calendar is cut short at date.max
        return WeekDescriptor(start=start, end=start + timedelta(days=min(6, (date.max - start).days)))

    @staticmethod
    def list_weeks(entries: Iterable[LogEntry]) -> List[WeekDescriptor]:
        """Distinct weeks that have entries, most recent first."""
        starts = {WeeklyAggregator.week_of(entry.date) for entry in entries}
        return [WeeklyAggregator.describe_week(start) for start in sorted(starts, reverse=True)]

    @staticmethod
    def select_week(entries: Iterable[LogEntry], week_key: date) -> List[LogEntry]:
        week_key = WeeklyAggregator.week_of(coerce_date(week_key))
        return [entry for entry in entries if WeeklyAggregator.week_of(entry.date) == week_key]

    @staticmethod
    def group_by_day(week_entries: Iterable[LogEntry]) -> List[DayGroup]:
        """Entries per day, most recent day first, each day in creation order."""
        grouped = defaultdict(list)
        for entry in week_entries:
            grouped[entry.date].append(entry)

        groups = []
        for day in sorted(grouped, reverse=True):
            day_entries = sorted(grouped[day], key=lambda x: x.created_at)
            groups.append(DayGroup(
                date=day,
                entries=tuple(day_entries),
                daily_total=from_quarters(sum(entry.quarters for entry in day_entries)),
            ))
        return groups

    @staticmethod
    def weekly_total(week_entries: Iterable[LogEntry]) -> Decimal:
        return from_quarters(sum(entry.quarters for entry in week_entries))

    @staticmethod
    def project_summary(week_entries: Iterable[LogEntry]) -> List[Tuple[str, Decimal]]:
        """Hours per project code, largest first; ties keep first-seen order."""
        quarters = {}
        for entry in week_entries:
            quarters[entry.project_code] = quarters.get(entry.project_code, 0) + entry.quarters

        # sorted() is stable and dicts keep insertion order
        ranked = sorted(quarters.items(), key=lambda item: item[1], reverse=True)
        return [(code, from_quarters(total)) for code, total in ranked]

    @staticmethod
    def format_report(entries: Sequence[LogEntry], week_key: Optional[date] = None,
                      template_name: str = 'classic') -> str:
        """Format one week of logs into a readable plain-text report."""
        weeks = WeeklyAggregator.list_weeks(entries)
        if not weeks:
            return "No logs found."

        week = WeeklyAggregator.describe_week(week_key) if week_key else weeks[0]
        week_entries = WeeklyAggregator.select_week(entries, week.key)
        template = WeeklyAggregator.TEMPLATES.get(template_name, WeeklyAggregator.TEMPLATES['classic'])

        report_lines = [f"Week: {week.label}", "=" * 60, ""]

        if not week_entries:
            report_lines.append("No logs found for this week.")
            return "\n".join(report_lines)

        for group in WeeklyAggregator.group_by_day(week_entries):
            report_lines.append(template['day_header'].format(
                date=group.date.strftime(template['date_format']),
                total=format_hours(group.daily_total)))
            for entry in group.entries:
                report_lines.append(template['text_item'].format(
                    project_code=entry.project_code,
                    hours=format_hours(entry.hours),
                    description=entry.description or '-').rstrip())
            report_lines.append("")

        report_lines.append("Projects")
        report_lines.append("-" * 60)
        for code, total in WeeklyAggregator.project_summary(week_entries):
            report_lines.append(f"  {code:<20} {format_hours(total):>8}h")
        report_lines.append("-" * 60)
        report_lines.append(f"  {'Total':<20} {format_hours(WeeklyAggregator.weekly_total(week_entries)):>8}h")

        return "\n".join(report_lines)
