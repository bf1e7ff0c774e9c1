from ..clock import to_iso, utc_now
from ..extensions import db


class Client(db.Model):
    # ids are assigned by ClientDirectory from the sequence shared with reminders
    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(150), nullable=False)
    email = db.Column(db.String(150), nullable=False)
    phone = db.Column(db.String(50), nullable=False, default='')
    notes = db.Column(db.Text, nullable=False, default='')
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'notes': self.notes,
            'createdAt': to_iso(self.created_at),
        }

    def __repr__(self):
        return f"<Client {self.id} {self.email}>"
