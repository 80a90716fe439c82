"""Event template, occurrence and registration models."""
from datetime import datetime
from ellarises.extensions import db

EVENT_TYPES = ['Workshop', 'Summit', 'Enrichment', 'Mentoring', 'Social']
ATTENDANCE_STATUSES = ['registered', 'attended', 'no_show', 'cancelled']


class EventTemplate(db.Model):
    """A recurring program definition."""
    __tablename__ = 'event_templates'
    __table_args__ = (
        db.CheckConstraint('default_capacity IS NULL OR default_capacity >= 0',
                           name='ck_event_templates_capacity'),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    event_type = db.Column(db.String(50), nullable=False)
    description = db.Column(db.Text)
    recurrence_pattern = db.Column(db.String(100))  # e.g. Weekly, Monthly, Annually
    default_capacity = db.Column(db.Integer)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)


class EventOccurrence(db.Model):
    """One scheduled instance of an event template."""
    __tablename__ = 'event_occurrences'
    __table_args__ = (
        db.CheckConstraint('capacity IS NULL OR capacity >= 0', name='ck_event_occurrences_capacity'),
    )

    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.Integer, db.ForeignKey('event_templates.id'), nullable=False)
    starts_at = db.Column(db.DateTime, nullable=False)
    ends_at = db.Column(db.DateTime)
    location = db.Column(db.String(200))
    capacity = db.Column(db.Integer)
    registration_deadline = db.Column(db.DateTime)

    template = db.relationship('EventTemplate')


class Registration(db.Model):
    __tablename__ = 'registrations'
    __table_args__ = (
        db.UniqueConstraint('participant_id', 'occurrence_id', name='uq_registrations_participant_occurrence'),
    )

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participants.id'), nullable=False)
    occurrence_id = db.Column(db.Integer, db.ForeignKey('event_occurrences.id'), nullable=False)
    attendance_status = db.Column(db.String(20), nullable=False, default='registered')
    registered_at = db.Column(db.DateTime, default=datetime.utcnow)

    participant = db.relationship('Participant')
    occurrence = db.relationship('EventOccurrence')
