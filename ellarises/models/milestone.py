"""Milestone and milestone type models."""
from datetime import date
from ellarises.extensions import db


class MilestoneType(db.Model):
    __tablename__ = 'milestone_types'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), unique=True, nullable=False)
    category = db.Column(db.String(100))


class Milestone(db.Model):
    __tablename__ = 'milestones'

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participants.id'), nullable=False)
    milestone_type_id = db.Column(db.Integer, db.ForeignKey('milestone_types.id'), nullable=False)
    achieved_on = db.Column(db.Date, default=date.today)
    notes = db.Column(db.Text)

    participant = db.relationship('Participant')
    milestone_type = db.relationship('MilestoneType')
