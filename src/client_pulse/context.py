"""Per-app service container; stores and collaborators are built once in create_app()."""
import threading
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from flask import current_app

from .clock import SystemClock
from .extensions import SERVICES_KEY
from .mailer import MailDispatcher, MailSettings
from .scheduler import ReminderScheduler
from .services import ActivityLog, ClientDirectory, ReminderStore


@dataclass
class Services:
    clock: object
    lock: object
    activity: ActivityLog
    directory: ClientDirectory
    reminders: ReminderStore
    dispatcher: object
    scheduler: ReminderScheduler

    def shutdown(self):
        self.scheduler.stop()


def build_services(config, clock=None, dispatcher=None):
    """
    Wires the collaborators together. `clock` and `dispatcher` can be injected
    (tests use a FixedClock and stub dispatchers).
    """
    clock = clock or SystemClock()
    lock = threading.RLock()
    tz = ZoneInfo(config.get('REMINDER_TIMEZONE') or 'UTC')

    activity = ActivityLog(clock, lock)
    directory = ClientDirectory(activity, clock, lock)
    reminders = ReminderStore(directory, activity, clock, lock, tz=tz)
    if dispatcher is None:
        dispatcher = MailDispatcher(MailSettings.from_config(config), activity)
    scheduler = ReminderScheduler(
        directory, reminders, activity, dispatcher, clock, lock,
        tz=tz, interval=config.get('SCHEDULER_INTERVAL_SECONDS', 30),
    )
    return Services(clock, lock, activity, directory, reminders, dispatcher, scheduler)


def get_services(app=None) -> Services:
    app = app or current_app
    return app.extensions[SERVICES_KEY]
