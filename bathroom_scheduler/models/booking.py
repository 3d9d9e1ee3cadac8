from bathroom_scheduler.extensions import db
from bathroom_scheduler.utils.timeutils import utcnow, isoformat_utc

class Booking(db.Model):
    __tablename__ = 'bookings'

    id = db.Column(db.Integer, primary_key=True)
    # Opaque identity string supplied by the identity layer; never reassigned.
    user_id = db.Column(db.String(64), nullable=False, index=True)

    # Naive UTC
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False, index=True)

    purpose = db.Column(db.String(32), nullable=False, default='other')
    reminder_sent = db.Column(db.Boolean, nullable=False, default=False, index=True)

    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.CheckConstraint('start_time < end_time', name='check_booking_interval'),
    )

    def __repr__(self):
        return f"<Booking {self.id} {self.user_id} {self.start_time}-{self.end_time}>"

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'start_time': isoformat_utc(self.start_time),
            'end_time': isoformat_utc(self.end_time),
            'purpose': self.purpose,
            'reminder_sent': self.reminder_sent,
            'created_at': isoformat_utc(self.created_at) if self.created_at else None
        }
