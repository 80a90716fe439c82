"""Participant model."""
from datetime import datetime
from ellarises.extensions import db


class Participant(db.Model):
    __tablename__ = 'participants'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    date_of_birth = db.Column(db.Date)
    phone = db.Column(db.String(40))
    city = db.Column(db.String(100))
    state = db.Column(db.String(50))
    zip_code = db.Column(db.String(20))
    school_or_employer = db.Column(db.String(200))
    field_of_interest = db.Column(db.String(100))  # e.g. Arts, STEM, Both
    participant_role = db.Column(db.String(50))  # participant, volunteer, alumni
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()
