from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from client_pulse.errors import NotFoundError, ValidationError
from client_pulse.services import parse_fire_time
from conftest import START


def test_new_reminder_starts_scheduled(services, client_record, clock):
    reminder = services.reminders.add_reminder(client_record.id, clock.now() + timedelta(minutes=5), "  Call back  ")

    assert reminder.id == client_record.id + 1
    assert reminder.status == "scheduled"
    assert reminder.repeat == "none"
    assert reminder.message == "Call back"
    assert reminder.last_sent_at is None
    assert reminder.fire_time == START + timedelta(minutes=5)


def test_reminder_accepts_fire_time_exactly_now(services, client_record, clock):
    reminder = services.reminders.add_reminder(client_record.id, clock.now(), "Hi")
    assert reminder.fire_time == clock.now()


def test_reminder_tolerates_small_clock_skew(services, client_record, clock):
    reminder = services.reminders.add_reminder(client_record.id, clock.now() - timedelta(seconds=60), "Hi")
    assert reminder.status == "scheduled"


def test_reminder_rejects_clearly_past_fire_time(services, client_record, clock):
    with pytest.raises(ValidationError, match="future"):
        services.reminders.add_reminder(client_record.id, clock.now() - timedelta(seconds=61), "Hi")
    assert services.reminders.list_reminders() == []


def test_reminder_for_unknown_client(services, clock):
    with pytest.raises(NotFoundError):
        services.reminders.add_reminder(7, clock.now(), "Hi")
    assert services.reminders.list_reminders() == []


@pytest.mark.parametrize("client_id,fire_time,message", [
    (None, "2024-05-01T12:05:00Z", "Hi"),
    (1, None, "Hi"),
    (1, "2024-05-01T12:05:00Z", None),
    (1, "2024-05-01T12:05:00Z", "   "),
])
def test_reminder_requires_fields(services, client_record, client_id, fire_time, message):
    with pytest.raises(ValidationError):
        services.reminders.add_reminder(client_id, fire_time, message)


def test_reminder_rejects_unparseable_fire_time(services, client_record):
    with pytest.raises(ValidationError, match="Invalid date"):
        services.reminders.add_reminder(client_record.id, "next tuesday", "Hi")


@pytest.mark.parametrize("repeat,expected", [
    ("daily", "daily"),
    ("weekly", "weekly"),
    ("none", "none"),
    (None, "none"),
    ("hourly", "none"),
])
def test_repeat_policy_defaults_to_none(services, client_record, clock, repeat, expected):
    reminder = services.reminders.add_reminder(client_record.id, clock.now(), "Hi", repeat=repeat)
    assert reminder.repeat == expected


def test_list_reminders_newest_first(services, client_record, clock):
    first = services.reminders.add_reminder(client_record.id, clock.now(), "one")
    second = services.reminders.add_reminder(client_record.id, clock.now(), "two")
    assert [r.id for r in services.reminders.list_reminders()] == [second.id, first.id]


def test_reminder_creation_is_logged(services, client_record, clock):
    services.reminders.add_reminder(client_record.id, "2024-05-01T12:30:00Z", "Hi")
    entry = services.activity.recent(1)[0]
    assert entry.category == "Reminder"
    assert entry.detail == "Scheduled for Ada Lovelace at 2024-05-01T12:30:00.000Z"


def test_parse_fire_time_normalises_to_utc():
    assert parse_fire_time("2024-05-01T14:00:00+02:00", ZoneInfo("UTC")) == datetime(2024, 5, 1, 12, 0)
    assert parse_fire_time("2024-05-01T12:00:00Z", ZoneInfo("UTC")) == datetime(2024, 5, 1, 12, 0)
    # naive input is wall-clock time in the configured zone
    assert parse_fire_time("2024-05-01T08:00:00", ZoneInfo("America/New_York")) == datetime(2024, 5, 1, 12, 0)


def test_post_reminder_endpoint(http, client_record):
    response = http.post("/api/reminders", json={
        "clientId": client_record.id,
        "datetimeISO": "2024-05-01T12:10:00.000Z",
        "message": "Renewal is due",
        "repeat": "weekly",
    })
    assert response.status_code == 201
    body = response.get_json()
    assert body["clientId"] == client_record.id
    assert body["fireTime"] == "2024-05-01T12:10:00.000Z"
    assert body["repeat"] == "weekly"
    assert body["status"] == "scheduled"
    assert body["lastSentAt"] is None

    listing = http.get("/api/reminders").get_json()
    assert [r["id"] for r in listing] == [body["id"]]


def test_post_reminder_errors(http, client_record):
    response = http.post("/api/reminders", json={"clientId": client_record.id, "message": "Hi"})
    assert response.status_code == 400

    response = http.post("/api/reminders", json={
        "clientId": 999, "fireTime": "2024-05-01T12:10:00Z", "message": "Hi",
    })
    assert response.status_code == 404

    response = http.post("/api/reminders", json={
        "clientId": client_record.id, "fireTime": "2024-04-30T12:10:00Z", "message": "Hi",
    })
    assert response.status_code == 400
    assert response.get_json()["error"] == "Reminder must be in the future"
