from ..clock import to_iso
from ..extensions import db


class LogEntry(db.Model):
    __tablename__ = 'activity_log'

    id = db.Column(db.Integer, primary_key=True)
    timestamp = db.Column(db.DateTime, nullable=False)
    category = db.Column(db.String(50), nullable=False)  # Client, Reminder, Send, Scheduler, System, Email
    detail = db.Column(db.Text, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'time': to_iso(self.timestamp),
            'type': self.category,
            'detail': self.detail,
        }
