from .activity import LogEntry
from .client import Client
from .reminder import Reminder

__all__ = ["Client", "LogEntry", "Reminder"]
