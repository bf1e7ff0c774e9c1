from flask import Blueprint, jsonify, request

from ..context import get_services
from ..errors import ValidationError
from ..services import LOG_READ_LIMIT

logs_bp = Blueprint('logs', __name__)


@logs_bp.route('/logs', methods=['GET'])
def get_recent_logs():
    """Most recent activity first, capped at 200 entries."""
    try:
        limit = int(request.args.get('limit', LOG_READ_LIMIT))
    except ValueError:
        raise ValidationError("limit must be an integer")
    entries = get_services().activity.recent(limit)
    return jsonify([entry.to_dict() for entry in entries])


@logs_bp.route('/export', methods=['GET'])
def export_state():
    """Read-only snapshot of every client, reminder and log entry."""
    services = get_services()
    return jsonify({
        "clients": [client.to_dict() for client in services.directory.list_clients()],
        "reminders": [reminder.to_dict() for reminder in services.reminders.list_reminders()],
        "logs": [entry.to_dict() for entry in services.activity.all()],
    })
