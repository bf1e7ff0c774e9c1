"""ClientPulse: client follow-up reminders with a polling scheduler."""

__version__ = "0.1.0"
