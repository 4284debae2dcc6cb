from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

from .errors import ValidationError

DATE_FORMAT = '%Y-%m-%d'
QUARTERS_PER_HOUR = 4
QUARTER_HOUR = Decimal('0.25')
# One entry covers at most a whole day
MAX_ENTRY_HOURS = Decimal('24')


def parse_hours(value) -> Decimal:
    """Parse an hours value, rejecting anything that is not a positive multiple of 0.25."""
    if value is None or isinstance(value, bool):
        raise ValidationError('Hours are required')

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValidationError('Hours are required')

    try:
        # floats go through str() so 0.1 stays 0.1 instead of its binary expansion
        hours = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Hours must be a number, got {value!r}")

    if not hours.is_finite():
        raise ValidationError(f"Hours must be a number, got {value!r}")
    if hours <= 0:
        raise ValidationError('Hours must be greater than zero')
    if hours > MAX_ENTRY_HOURS:
        raise ValidationError(f"Hours must be at most {MAX_ENTRY_HOURS} per entry")
    if hours % QUARTER_HOUR != 0:
        raise ValidationError('Hours must be entered in steps of 0.25 (e.g. 1.0, 1.25, 1.5)')

    return hours


def to_quarters(hours: Decimal) -> int:
    return int(hours * QUARTERS_PER_HOUR)


def from_quarters(quarters: int) -> Decimal:
    return Decimal(quarters) / QUARTERS_PER_HOUR


def format_hours(hours: Decimal) -> str:
    return f"{hours:.2f}"


def coerce_date(value) -> date:
    """Accept a date, a datetime or a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.strptime(value.strip(), DATE_FORMAT).date()
        except ValueError:
            raise ValidationError(f"Date must be in YYYY-MM-DD format, got {value!r}")
    raise ValidationError('Date is required')


def require_project_code(value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('Project code is required')
    return value


class LogEntry:
    """Represents a work log entry: hours spent on a project on a given day."""

    def __init__(self, id: str, created_at: int, date: date, project_code: str,
                 description: Optional[str], hours: Decimal):
        self.id = id
        self.created_at = created_at
        self.date = date
        self.project_code = project_code
        self.description = description or ''
        self.hours = hours

    @property
    def quarters(self) -> int:
        return to_quarters(self.hours)

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': self.created_at,
            'date': self.date.strftime(DATE_FORMAT),
            'projectCode': self.project_code,
            'description': self.description,
            'hours': float(self.hours),
        }

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ValidationError(f"Log record must be an object, got {type(data).__name__}")

        entry_id = data.get('id')
        if not isinstance(entry_id, str) or not entry_id:
            raise ValidationError('Log record has no id')

        created_at = data.get('timestamp', data.get('createdAt'))
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            raise ValidationError(f"Log record {entry_id} has no timestamp")

        description = data.get('description') or ''
        if not isinstance(description, str):
            raise ValidationError(f"Log record {entry_id} has an invalid description")

        return cls(
            id=entry_id,
            created_at=int(created_at),
            date=coerce_date(data.get('date')),
            project_code=require_project_code(data.get('projectCode')),
            description=description,
            hours=parse_hours(data.get('hours')),
        )

    def __eq__(self, other):
        if not isinstance(other, LogEntry):
            return NotImplemented
        return (self.id, self.created_at, self.date, self.project_code, self.description, self.hours) == \
            (other.id, other.created_at, other.date, other.project_code, other.description, other.hours)

    __hash__ = None

    def __repr__(self):
        return (f"LogEntry(project_code='{self.project_code}', date='{self.date.strftime(DATE_FORMAT)}', "
                f"hours={format_hours(self.hours)}, description='{self.description[:30]}...')")
