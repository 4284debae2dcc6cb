import click
from datetime import date
from .aggregator import WeeklyAggregator
from .app import setup_logging
from .errors import NotFound, ValidationError
from .models import coerce_date, format_hours
from .resolver import find_conflict
from .storage import Storage, open_store
from .suggest import suggest


def _parse_date(value):
    if not value:
        return date.today()
    try:
        return coerce_date(value)
    except ValidationError as e:
        raise click.BadParameter(str(e))


def _fail(message):
    click.echo(f"Error: {message}", err=True)
    raise SystemExit(1)


@click.group()
@click.option('--verbose', '-v', count=True, help='Enable verbose output (-v for info, -vv for full debug)')
@click.pass_context
def cli(ctx, verbose):
    """Weeklog - Record what you worked on and review it by week."""
    if verbose:
        setup_logging(verbose)
    ctx.obj = Storage()


@cli.command()
@click.option('--project', '-p', required=True, help='Project code')
@click.option('--hours', '-h', 'hours', default=None, help='Hours spent, in steps of 0.25 (defaults to what is left of the day)')
@click.option('--description', '-d', default='', help='Work description')
@click.option('--date', '-dt', default=None, help='Date (YYYY-MM-DD), defaults to today')
@click.pass_obj
def log(storage, project, hours, description, date):
    """Add a new work log entry."""
    store = open_store(storage)
    log_date = _parse_date(date)

    existing = find_conflict(store.list(), log_date, project)
    if existing:
        click.echo(f"{project} is already logged on {log_date} ({format_hours(existing.hours)}h).", err=True)
        click.echo(f"Edit it instead: weeklog edit --id {existing.id}", err=True)
        raise SystemExit(1)

    if hours is None:
        hours = suggest(log_date, store.list())
        if hours is None:
            _fail(f"{log_date} already has a full day logged; pass --hours explicitly")

    try:
        entry = store.create(log_date, project, description, hours)
    except ValidationError as e:
        _fail(e)

    click.echo(f"✓ Log entry added successfully (ID: {entry.id})")
    click.echo(f"  Project: {entry.project_code}")
    click.echo(f"  Date: {entry.date}")
    click.echo(f"  Hours: {format_hours(entry.hours)}")
    if entry.description:
        click.echo(f"  Description: {entry.description}")


@cli.command()
@click.option('--id', '-i', 'entry_id', required=True, help='Log entry ID to edit')
@click.option('--project', '-p', default=None, help='New project code')
@click.option('--hours', '-h', 'hours', default=None, help='New hours')
@click.option('--description', '-d', default=None, help='New description')
@click.option('--date', '-dt', default=None, help='New date (YYYY-MM-DD)')
@click.pass_obj
def edit(storage, entry_id, project, hours, description, date):
    """Change fields of an existing log entry."""
    store = open_store(storage)

    fields = {}
    if date is not None:
        fields['date'] = date
    if project is not None:
        fields['project_code'] = project
    if description is not None:
        fields['description'] = description
    if hours is not None:
        fields['hours'] = hours

    try:
        entry = store.update(entry_id, **fields)
    except (NotFound, ValidationError) as e:
        _fail(e)

    click.echo(f"✓ Log entry {entry.id} updated.")
    click.echo(f"  {entry.date}  {entry.project_code}  {format_hours(entry.hours)}h  {entry.description}")


@cli.command()
@click.option('--id', '-i', 'entry_id', required=True, help='Log entry ID to delete')
@click.option('--confirm', '-y', is_flag=True, help='Skip confirmation prompt')
@click.pass_obj
def delete(storage, entry_id, confirm):
    """Delete a log entry by ID."""
    store = open_store(storage)

    if not confirm:
        if not click.confirm(f'Are you sure you want to delete log entry {entry_id}?'):
            click.echo('Deletion cancelled.')
            return

    if store.delete(entry_id):
        click.echo(f'✓ Log entry {entry_id} deleted successfully.')
    else:
        click.echo(f'Log entry {entry_id} was already gone.')


@cli.command(name='list')
@click.option('--limit', '-n', type=int, default=None, help='Number of entries to show')
@click.pass_obj
def list_logs(storage, limit):
    """List the most recently created log entries."""
    store = open_store(storage)
    logs = store.list()

    if not logs:
        click.echo("No log entries found.")
        return

    if limit is None:
        try:
            limit = int(storage.get_setting('recent_logs_limit', '20'))
        except ValueError:
            limit = 20

    click.echo(f"\n{'ID':<34} {'Date':<12} {'Project':<14} {'Hours':>6}  {'Description'}")
    click.echo("-" * 100)

    for log in logs[:limit]:
        desc = log.description[:30] + "..." if len(log.description) > 30 else log.description
        click.echo(f"{log.id:<34} {log.date.isoformat():<12} {log.project_code:<14} {format_hours(log.hours):>6}  {desc}")

    click.echo(f"\nTotal entries: {len(logs)}")


@cli.command()
@click.pass_obj
def weeks(storage):
    """List the weeks that have entries, most recent first."""
    store = open_store(storage)
    entries = store.list()
    week_list = WeeklyAggregator.list_weeks(entries)

    if not week_list:
        click.echo("No log entries found.")
        return

    for week in week_list:
        total = WeeklyAggregator.weekly_total(WeeklyAggregator.select_week(entries, week.key))
        click.echo(f"  {week.label}   {format_hours(total):>7}h")


@cli.command()
@click.option('--week', '-w', default=None, help='Any date in the week (YYYY-MM-DD), defaults to the most recent week')
@click.option('--template', '-t', type=click.Choice(sorted(WeeklyAggregator.TEMPLATES)), default='classic',
              help='Report layout')
@click.pass_obj
def view(storage, week, template):
    """Show a week of logs grouped by day with per-project totals."""
    store = open_store(storage)
    week_key = WeeklyAggregator.week_of(_parse_date(week)) if week else None
    click.echo(WeeklyAggregator.format_report(store.list(), week_key, template))


@cli.command(name='suggest')
@click.option('--date', '-dt', default=None, help='Date (YYYY-MM-DD), defaults to today')
@click.pass_obj
def suggest_hours(storage, date):
    """Show the hours left to log for a day."""
    store = open_store(storage)
    log_date = _parse_date(date)
    hours = suggest(log_date, store.list())

    if hours is None:
        click.echo(f"{log_date} is fully logged.")
    else:
        click.echo(f"{format_hours(hours)}h left to log on {log_date}.")


@cli.command()
@click.pass_obj
def projects(storage):
    """List all project codes."""
    store = open_store(storage)
    codes = store.project_codes()

    if not codes:
        click.echo("No projects found.")
        return

    click.echo("\nProjects:")
    click.echo("-" * 40)
    for code in codes:
        click.echo(f"  • {code}")
    click.echo(f"\nTotal projects: {len(codes)}")


if __name__ == '__main__':
    cli()
