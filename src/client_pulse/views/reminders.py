from flask import Blueprint, jsonify, request

from ..context import get_services
from ..schemas import ReminderCreate, RunNowRequest, parse_body

reminders_bp = Blueprint('reminders', __name__)


@reminders_bp.route('/', methods=['GET'])
def get_reminders():
    reminders = get_services().reminders.list_reminders()
    return jsonify([reminder.to_dict() for reminder in reminders])


@reminders_bp.route('/', methods=['POST'])
def add_reminder():
    """Schedules a reminder for an existing client."""
    body = parse_body(ReminderCreate, request.get_json(silent=True))
    reminder = get_services().reminders.add_reminder(
        client_id=body.client_id,
        fire_time=body.fire_time,
        message=body.message,
        repeat=body.repeat,
    )
    return jsonify(reminder.to_dict()), 201


@reminders_bp.route('/run-now', methods=['POST'])
def run_now():
    """
    Sends a reminder right away, regardless of its fire time or status.
    A failed send answers 500 with the reminder, which is now marked failed.
    """
    body = parse_body(RunNowRequest, request.get_json(silent=True))
    reminder = get_services().scheduler.run_now(body.reminder_id)
    return jsonify({"ok": True, "reminder": reminder.to_dict()})
