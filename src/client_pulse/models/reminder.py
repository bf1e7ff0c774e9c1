from ..clock import to_iso, utc_now
from ..extensions import db

STATUS_SCHEDULED = 'scheduled'
STATUS_SENT = 'sent'
STATUS_FAILED = 'failed'

REPEAT_NONE = 'none'
REPEAT_DAILY = 'daily'
REPEAT_WEEKLY = 'weekly'
REPEAT_POLICIES = (REPEAT_NONE, REPEAT_DAILY, REPEAT_WEEKLY)


class Reminder(db.Model):
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    # Not a foreign key: a reminder may outlive its client and must fail cleanly when it does.
    client_id = db.Column(db.Integer, nullable=False, index=True)
    fire_time = db.Column(db.DateTime, nullable=False, index=True)
    message = db.Column(db.Text, nullable=False)
    repeat = db.Column(db.String(10), nullable=False, default=REPEAT_NONE)
    status = db.Column(db.String(20), nullable=False, default=STATUS_SCHEDULED, index=True)  # scheduled, sent, failed
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    last_sent_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'clientId': self.client_id,
            'fireTime': to_iso(self.fire_time),
            'message': self.message,
            'repeat': self.repeat,
            'status': self.status,
            'createdAt': to_iso(self.created_at),
            'lastSentAt': to_iso(self.last_sent_at),
        }

    def __repr__(self):
        return f"<Reminder {self.id} {self.status} at {self.fire_time}>"
