import logging
import threading
import time
import weakref
from dataclasses import dataclass, field
from datetime import timedelta, timezone
from typing import List

from .errors import DispatchFailure, SchedulerTickError
from .extensions import db
from .models.reminder import (
    REPEAT_DAILY,
    REPEAT_WEEKLY,
    STATUS_FAILED,
    STATUS_SCHEDULED,
    STATUS_SENT,
)
from .services import store_transaction

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 30
DUE_HORIZON_SECONDS = 30
MAX_HORIZON_SECONDS = 60

REPEAT_STEPS = {
    REPEAT_DAILY: timedelta(days=1),
    REPEAT_WEEKLY: timedelta(days=7),
}


def advance_fire_time(fire_time, repeat, tz=timezone.utc):
    """
    Next occurrence of a recurring reminder.

    The step is taken on the local calendar of `tz`, so the wall-clock time is kept
    across DST changes (a day is not always 24 hours). `fire_time` is naive UTC.
    """
    step = REPEAT_STEPS[repeat]
    local = fire_time.replace(tzinfo=timezone.utc).astimezone(tz)
    # Aware arithmetic keeps the wall-clock fields; the UTC offset is recomputed afterwards.
    following = (local + step).replace(fold=0)
    return following.astimezone(timezone.utc).replace(tzinfo=None)


def compose_message(client, reminder):
    subject = f"Follow-up: {' '.join(client.name.split())}"
    body = f"Hi {client.name},\n\n{reminder.message}\n\n-- Sent by ClientPulse"
    return subject, body


@dataclass
class TickReport:
    checked: List[int] = field(default_factory=list)
    sent: List[int] = field(default_factory=list)
    rescheduled: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    skipped: bool = False


@dataclass
class SendOutcome:
    reminder: object
    ok: bool
    error: str = None
    client_missing: bool = False


class ReminderScheduler:
    def __init__(self, directory, reminders, activity, dispatcher, clock, lock,
                 tz=timezone.utc, interval=POLL_INTERVAL_SECONDS):
        self.directory = directory
        self.reminders = reminders
        self.activity = activity
        self.dispatcher = dispatcher
        self.clock = clock
        self.lock = lock
        self.tz = tz
        self.interval = interval

        self._tick_guard = threading.Lock()
        self._reminder_locks = weakref.WeakValueDictionary()
        self._reminder_locks_guard = threading.Lock()

        self._stop = threading.Event()
        self._poll_thread = None

    # ---- Due selection ----

    @staticmethod
    def is_due(reminder, now):
        """True when the reminder would come due before (or right at) the next tick."""
        if reminder.status != STATUS_SCHEDULED:
            return False
        due = reminder.fire_time
        return due <= now + timedelta(seconds=DUE_HORIZON_SECONDS) and \
            due <= now + timedelta(seconds=MAX_HORIZON_SECONDS)

    def due_reminders(self, now):
        horizon = now + timedelta(seconds=DUE_HORIZON_SECONDS)
        return [r for r in self.reminders.scheduled_due_by(horizon) if self.is_due(r, now)]

    # ---- Polling tick ----

    def tick(self):
        """
        Runs one polling pass and returns a TickReport.

        Needs an app context. Returns a report with skipped=True when another tick
        is still in progress.
        """
        if not self._tick_guard.acquire(blocking=False):
            logger.debug("Previous tick still running; skipping this one")
            return TickReport(skipped=True)
        try:
            return self._tick()
        finally:
            self._tick_guard.release()

    def _tick(self):
        report = TickReport()
        now = self.clock.now()
        due_ids = [r.id for r in self.due_reminders(now)]
        report.checked.extend(due_ids)

        for reminder_id in due_ids:
            try:
                with self._reminder_lock(reminder_id):
                    # run_now may have handled it while we waited for the lock
                    reminder = self.reminders.find_reminder(reminder_id, refresh=True)
                    if reminder is None or not self.is_due(reminder, now):
                        continue
                    outcome = self._send_one(reminder)
            except Exception as e:
                raise SchedulerTickError(f"reminder {reminder_id}: {e}") from e

            if not outcome.ok:
                report.failed.append(reminder_id)
            elif outcome.reminder.status == STATUS_SCHEDULED:
                report.rescheduled.append(reminder_id)
            else:
                report.sent.append(reminder_id)
        return report

    def run_tick(self):
        """Tick boundary: nothing raised inside a tick may stop the polling loop."""
        try:
            return self.tick()
        except Exception as e:
            logger.error(f"Scheduler tick failed: {e}", exc_info=True)
            with self.lock:
                db.session.rollback()
            self.activity.append('Scheduler', f"Scheduler loop error: {e}")
            return None

    # ---- On-demand send ----

    def run_now(self, reminder_id):
        """
        Sends a reminder immediately, whatever its fire time or status.

        Raises NotFoundError when the reminder or its client is gone, and
        DispatchFailure after marking the reminder failed if the send fails.
        """
        reminder = self.reminders.get_reminder(reminder_id)
        with self._reminder_lock(reminder.id):
            reminder = self.reminders.get_reminder(reminder.id, refresh=True)
            self.directory.get_client(reminder.client_id)
            outcome = self._send_one(reminder, manual=True)

        if not outcome.ok:
            raise DispatchFailure(outcome.error or 'send failed', reminder=outcome.reminder)
        return outcome.reminder

    # ---- Send one reminder ----

    def _send_one(self, reminder, manual=False):
        client = self.directory.find_client(reminder.client_id)
        if client is None:
            reminder.status = STATUS_FAILED
            self.reminders.save(reminder)
            self.activity.append('Scheduler', f"Client missing for reminder {reminder.id}")
            return SendOutcome(reminder, ok=False, error='Client not found', client_missing=True)

        email = client.email
        subject, body = compose_message(client, reminder)

        # The store lock is not held here; delivery may block on network I/O.
        try:
            result = self.dispatcher.send(email, subject, body)
            ok, error = result.ok, result.error
        except Exception as e:
            logger.error(f"Dispatcher raised while sending reminder {reminder.id}: {e}", exc_info=True)
            ok, error = False, str(e) or e.__class__.__name__

        with store_transaction(self.lock):
            reminder = self.reminders.get_reminder(reminder.id, refresh=True)
            if not ok:
                reminder.status = STATUS_FAILED
                self.reminders.save(reminder)
                self.activity.append(
                    'Send', f"Failed to send reminder {reminder.id} to {email}: {error or 'unknown'}"
                )
                return SendOutcome(reminder, ok=False, error=error or 'send failed')

            reminder.last_sent_at = self.clock.now()
            if manual:
                self.activity.append('Send', f"Reminder sent to {email} (id {reminder.id})")
            else:
                self.activity.append('Send', f"Sent reminder {reminder.id} to {email}")
            self._apply_repeat(reminder)
            self.reminders.save(reminder)
            return SendOutcome(reminder, ok=True)

    def _apply_repeat(self, reminder):
        if reminder.repeat in REPEAT_STEPS:
            try:
                next_fire = advance_fire_time(reminder.fire_time, reminder.repeat, self.tz)
            except OverflowError:
                reminder.status = STATUS_SENT
                self.activity.append(
                    'Scheduler', f"No next occurrence for {reminder.repeat} reminder {reminder.id}; marked sent"
                )
                return
            reminder.fire_time = next_fire
            reminder.status = STATUS_SCHEDULED
            self.activity.append(
                'Scheduler',
                f"Rescheduled {reminder.repeat} reminder {reminder.id} to {reminder.to_dict()['fireTime']}",
            )
        else:
            reminder.status = STATUS_SENT

    def _reminder_lock(self, reminder_id):
        # Entries live only while some caller still holds the returned lock.
        with self._reminder_locks_guard:
            lock = self._reminder_locks.get(reminder_id)
            if lock is None:
                lock = self._reminder_locks[reminder_id] = threading.Lock()
            return lock

    # ---- Background thread ----

    @property
    def running(self):
        return self._poll_thread is not None and self._poll_thread.is_alive()

    def start(self, app):
        if self.running:
            return
        self._stop.clear()
        self._poll_thread = threading.Thread(
            target=self._poll_loop, args=(app,), daemon=True, name="reminder-poll"
        )
        self._poll_thread.start()
        self.activity.append('System', f"ClientPulse scheduler started (every {self.interval:g}s)")

    def stop(self, timeout=10):
        self._stop.set()
        if self._poll_thread:
            self._poll_thread.join(timeout=timeout)
            self._poll_thread = None
        logger.info("Reminder scheduler stopped")

    def _poll_loop(self, app):
        """Fixed-rate loop: the next tick is due `interval` after the previous one was due."""
        next_run = time.monotonic() + self.interval
        while not self._stop.wait(max(0.0, next_run - time.monotonic())):
            with app.app_context():
                self.run_tick()
            next_run += self.interval
            # If a tick overran by whole intervals, skip the missed ones.
            now = time.monotonic()
            if next_run < now:
                missed = int((now - next_run) // self.interval) + 1
                next_run += missed * self.interval
