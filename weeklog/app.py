from flask import Flask, request, jsonify
import click
import logging
from logging.handlers import RotatingFileHandler
from .errors import NotFound, ValidationError
from .models import format_hours
from .session import LogSession
from .storage import Storage, default_data_dir, open_store

_installed_handlers = []


def setup_logging(verbosity=0):
    """Configure logging with rotating file handler."""
    log_dir = default_data_dir() / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / 'weeklog.log'

    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    file_handler = RotatingFileHandler(log_file, maxBytes=5*1024*1024, backupCount=3)
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    # handlers from an earlier call are swapped out
    for handler in _installed_handlers:
        root_logger.removeHandler(handler)
        handler.close()
    _installed_handlers[:] = [file_handler, console_handler]

    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    if verbosity < 2:
        logging.getLogger('werkzeug').setLevel(logging.ERROR)


def create_app(verbosity=0, storage=None):
    """Create and configure Flask application."""
    app = Flask(__name__)
    app.config['VERBOSITY'] = verbosity

    storage = storage or Storage()
    store = open_store(storage)
    session = LogSession(store)
    app.extensions['weeklog'] = session

    def entry_fields():
        data = request.get_json(silent=True) or request.form
        return {
            'day': data.get('date'),
            'project_code': data.get('projectCode'),
            'description': data.get('description'),
            'hours': data.get('hours'),
        }

    def saved_response(entry, message, status=200):
        body = {
            'success': True,
            'entry': entry.to_dict(),
            'week': session.selection.selected.isoformat(),
            'message': message,
        }
        if storage.last_error is not None:
            body['warning'] = str(storage.last_error)
        return jsonify(body), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({'success': False, 'error': str(e)}), 400

    @app.errorhandler(NotFound)
    def handle_not_found(e):
        return jsonify({'success': False, 'error': str(e)}), 404

    @app.route('/api/logs', methods=['GET'])
    def get_logs():
        """Most recently created logs, limited by the recent_logs_limit setting."""
        logs = store.list()
        try:
            limit = int(storage.get_setting('recent_logs_limit', '20'))
        except ValueError:
            limit = 20
        return jsonify({
            'logs': [log.to_dict() for log in logs[:limit]],
            'total_logs': len(logs),
        })

    @app.route('/api/logs', methods=['POST'])
    def save_log():
        """Create a new entry, or update the one being edited."""
        was_editing = session.is_editing
        entry = session.save(**entry_fields())
        if was_editing:
            return saved_response(entry, 'Log entry updated')
        return saved_response(entry, 'Log entry added successfully', 201)

    @app.route('/api/logs/<entry_id>', methods=['POST'])
    def update_log(entry_id):
        data = request.get_json(silent=True) or request.form
        fields = {}
        for key, name in (('date', 'date'), ('projectCode', 'project_code'),
                          ('description', 'description'), ('hours', 'hours')):
            if key in data:
                fields[name] = data[key]
        entry = session.update(entry_id, **fields)
        return saved_response(entry, 'Log entry updated')

    @app.route('/api/logs/<entry_id>/delete', methods=['POST'])
    def delete_log(entry_id):
        """Delete a log entry; deleting a missing entry is not an error."""
        deleted = session.delete(entry_id)
        return jsonify({'success': True, 'deleted': deleted})

    @app.route('/api/edit/<entry_id>', methods=['POST'])
    def edit_log(entry_id):
        entry = session.start_editing(entry_id)
        return jsonify({'success': True, 'editing': entry.to_dict()})

    @app.route('/api/cancel_edit', methods=['POST'])
    def cancel_edit():
        session.cancel_editing()
        return jsonify({'success': True})

    @app.route('/api/check_duplicate')
    def check_duplicate():
        """Switch to edit mode when the date and project code are already logged."""
        conflict = session.check_duplicate(request.args.get('date'), request.args.get('projectCode'))
        return jsonify({
            'conflict': conflict.to_dict() if conflict else None,
            'editing': session.editing.to_dict() if session.editing else None,
        })

    @app.route('/api/suggest')
    def suggest_hours():
        hours = session.suggest_hours(request.args.get('date'))
        return jsonify({'hours': format_hours(hours) if hours is not None else ''})

    @app.route('/api/projects')
    def get_projects():
        return jsonify(store.project_codes())

    @app.route('/api/review')
    def review():
        """Selected week grouped by day with totals and a per-project summary."""
        view = session.review(request.args.get('week') or None)
        return jsonify(view.to_dict())

    @app.route('/api/settings', methods=['GET'])
    def get_settings():
        try:
            limit = int(storage.get_setting('recent_logs_limit', '20'))
        except ValueError:
            limit = 20
        return jsonify({'recent_logs_limit': limit})

    @app.route('/api/settings', methods=['POST'])
    def update_settings():
        data = request.get_json(silent=True) or {}
        if 'recent_logs_limit' in data:
            try:
                limit = int(data['recent_logs_limit'])
            except (TypeError, ValueError):
                raise ValidationError('recent_logs_limit must be a number')
            storage.set_setting('recent_logs_limit', str(limit))
        return jsonify({'success': True})

    return app


@click.command()
@click.option('--port', '-p', default=5000, help='Port to run the server on')
@click.option('--verbose', '-v', count=True, help='Enable verbose output (-v for info, -vv for full debug)')
def main(port, verbose):
    """Main entry point for weeklog-ui command."""
    setup_logging(verbose)
    app = create_app(verbose)

    print("=" * 60)
    print("Weeklog API Starting...")
    if verbose > 0:
        print(f"[VERBOSE] Verbosity level: {verbose}")
    print("=" * 60)
    print(f"\nAPI available at: http://127.0.0.1:{port}/api/review")
    print("\nPress CTRL+C to stop the server\n")
    print("=" * 60)

    app.run(debug=False, port=port, host='127.0.0.1')


if __name__ == '__main__':
    main()
