import threading
from datetime import datetime

import pytest

from client_pulse.app import create_app
from client_pulse.clock import FixedClock
from client_pulse.config import TestConfig
from client_pulse.context import get_services
from client_pulse.extensions import db
from client_pulse.mailer import SendResult

START = datetime(2024, 5, 1, 12, 0, 0)


class RecordingDispatcher:
    """Stands in for the Mail Dispatcher and remembers what it was asked to send."""

    def __init__(self):
        self.sent = []
        self.fail_with = None
        self.raise_with = None
        self.delivered = threading.Event()

    def verify(self):
        return False

    def send(self, to_address, subject, body):
        self.sent.append((to_address, subject, body))
        self.delivered.set()
        if self.raise_with is not None:
            raise self.raise_with
        if self.fail_with is not None:
            return SendResult(ok=False, error=self.fail_with)
        return SendResult(ok=True, simulated=True)


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def app(clock, dispatcher):
    app = create_app(TestConfig, clock=clock, dispatcher=dispatcher)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
    get_services(app).shutdown()


@pytest.fixture
def services(app):
    return get_services(app)


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def client_record(services):
    return services.directory.add_client("Ada Lovelace", "ada@example.com")
