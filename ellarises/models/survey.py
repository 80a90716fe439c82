"""Post-event survey model."""
from datetime import date
from ellarises.extensions import db

SCORE_FIELDS = [
    'satisfaction_score',
    'usefulness_score',
    'instructor_score',
    'recommendation_score',
    'overall_score',
]


class Survey(db.Model):
    __tablename__ = 'surveys'

    id = db.Column(db.Integer, primary_key=True)
    registration_id = db.Column(db.Integer, db.ForeignKey('registrations.id'), unique=True, nullable=False)
    # Scores are on a 1-5 scale
    satisfaction_score = db.Column(db.Integer)
    usefulness_score = db.Column(db.Integer)
    instructor_score = db.Column(db.Integer)
    recommendation_score = db.Column(db.Integer)
    overall_score = db.Column(db.Integer)
    comments = db.Column(db.Text)
    submitted_at = db.Column(db.Date, default=date.today)

    registration = db.relationship('Registration')
