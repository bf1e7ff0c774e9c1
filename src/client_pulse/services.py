import logging
import re
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import func

from .errors import NotFoundError, ValidationError
from .extensions import db
from .models import Client, LogEntry, Reminder
from .models.reminder import REPEAT_NONE, REPEAT_POLICIES, STATUS_SCHEDULED

RE_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

LOG_READ_LIMIT = 200
PAST_TOLERANCE_SECONDS = 60

activity_logger = logging.getLogger('client_pulse.activity')


@contextmanager
def store_transaction(lock):
    """Holds the store lock for one unit of work and always ends the session's transaction."""
    with lock:
        try:
            yield db.session
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise


def _coerce_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _next_record_id():
    """Clients and reminders draw from one id sequence."""
    highest_client = db.session.query(func.max(Client.id)).scalar() or 0
    highest_reminder = db.session.query(func.max(Reminder.id)).scalar() or 0
    return max(highest_client, highest_reminder) + 1


def parse_fire_time(value, tz):
    """
    Turns an ISO-8601 string (or datetime) into a naive UTC instant.

    Times without an offset are read as wall-clock time in `tz`.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            text = value.strip()
            if text.endswith(("Z", "z")):
                text = text[:-1] + "+00:00"
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError("Invalid date")
    else:
        raise ValidationError("Invalid date")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


class ActivityLog:
    def __init__(self, clock, lock):
        self.clock = clock
        self.lock = lock

    def append(self, category, detail):
        """Records one event. Newest entries are read first."""
        with store_transaction(self.lock) as session:
            entry = LogEntry(timestamp=self.clock.now(), category=category, detail=detail)
            session.add(entry)
            activity_logger.info(f"[{category}] {detail}")
            return entry

    def recent(self, limit=LOG_READ_LIMIT):
        limit = max(0, min(int(limit), LOG_READ_LIMIT))
        with store_transaction(self.lock):
            return LogEntry.query.order_by(LogEntry.id.desc()).limit(limit).all()

    def all(self):
        with store_transaction(self.lock):
            return LogEntry.query.order_by(LogEntry.id.desc()).all()


class ClientDirectory:
    def __init__(self, activity, clock, lock):
        self.activity = activity
        self.clock = clock
        self.lock = lock

    def add_client(self, name, email, phone=None, notes=None):
        name = (name or '').strip()
        email = (email or '').strip()
        if not name or not email:
            raise ValidationError("Name and email required")
        if not RE_EMAIL.match(email):
            raise ValidationError("Invalid email format")

        with store_transaction(self.lock) as session:
            client = Client(
                id=_next_record_id(),
                name=name,
                email=email,
                phone=phone or '',
                notes=notes or '',
                created_at=self.clock.now(),
            )
            session.add(client)
            self.activity.append('Client', f"Added client {client.name} ({client.email})")
            return client

    def list_clients(self):
        with store_transaction(self.lock):
            return Client.query.order_by(Client.id.desc()).all()

    def find_client(self, client_id):
        client_id = _coerce_id(client_id)
        if client_id is None:
            return None
        with store_transaction(self.lock) as session:
            return session.get(Client, client_id)

    def get_client(self, client_id):
        client = self.find_client(client_id)
        if client is None:
            raise NotFoundError("Client not found")
        return client


class ReminderStore:
    def __init__(self, directory, activity, clock, lock, tz=timezone.utc):
        self.directory = directory
        self.activity = activity
        self.clock = clock
        self.lock = lock
        self.tz = tz

    def add_reminder(self, client_id, fire_time, message, repeat=None):
        message = message.strip() if isinstance(message, str) else message
        if not client_id or not fire_time or not message:
            raise ValidationError("clientId, fireTime and message required")

        client = self.directory.get_client(client_id)
        fire_at = parse_fire_time(fire_time, self.tz)
        if (self.clock.now() - fire_at).total_seconds() > PAST_TOLERANCE_SECONDS:
            raise ValidationError("Reminder must be in the future")

        with store_transaction(self.lock) as session:
            reminder = Reminder(
                id=_next_record_id(),
                client_id=client.id,
                fire_time=fire_at,
                message=str(message),
                repeat=repeat if repeat in REPEAT_POLICIES else REPEAT_NONE,
                status=STATUS_SCHEDULED,
                created_at=self.clock.now(),
                last_sent_at=None,
            )
            session.add(reminder)
            self.activity.append('Reminder', f"Scheduled for {client.name} at {reminder.to_dict()['fireTime']}")
            return reminder

    def list_reminders(self):
        with store_transaction(self.lock):
            return Reminder.query.order_by(Reminder.id.desc()).all()

    def find_reminder(self, reminder_id, refresh=False):
        reminder_id = _coerce_id(reminder_id)
        if reminder_id is None:
            return None
        with store_transaction(self.lock) as session:
            return session.get(Reminder, reminder_id, populate_existing=refresh)

    def get_reminder(self, reminder_id, refresh=False):
        reminder = self.find_reminder(reminder_id, refresh=refresh)
        if reminder is None:
            raise NotFoundError("Reminder not found")
        return reminder

    def scheduled_due_by(self, horizon):
        """Scheduled reminders whose fire time is at or before `horizon`, earliest first."""
        with store_transaction(self.lock):
            return (
                Reminder.query
                .filter(Reminder.status == STATUS_SCHEDULED, Reminder.fire_time <= horizon)
                .order_by(Reminder.fire_time.asc(), Reminder.id.asc())
                .all()
            )

    def save(self, reminder):
        with store_transaction(self.lock) as session:
            session.add(reminder)
            return reminder
