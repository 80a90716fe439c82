"""Donation model."""
from datetime import date
from ellarises.extensions import db

DONATION_TYPES = ['general', 'program', 'scholarship', 'in_memory']


class Donation(db.Model):
    __tablename__ = 'donations'
    __table_args__ = (
        db.CheckConstraint('amount >= 0', name='ck_donations_amount_non_negative'),
    )

    id = db.Column(db.Integer, primary_key=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('participants.id', ondelete='SET NULL'), nullable=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    donation_date = db.Column(db.Date, default=date.today)
    donor_name = db.Column(db.String(200))
    donor_email = db.Column(db.String(120))
    donor_phone = db.Column(db.String(40))
    donation_type = db.Column(db.String(30), default='general')

    participant = db.relationship('Participant')
