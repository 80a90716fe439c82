"""Dashboard routes - aggregate figures for managers and admins."""
from decimal import Decimal

from flask import Blueprint, render_template
from sqlalchemy import func, select

from ellarises.models import (
    db, Participant, EventTemplate, Survey, Milestone, Donation, Registration, EventOccurrence
)
from ellarises.routes.auth import manager_required

dashboard_bp = Blueprint('dashboard', __name__)

RECENT_LIMIT = 10


def count(model):
    return db.session.scalar(select(func.count()).select_from(model))


@dashboard_bp.route('/dashboard')
@manager_required
def index(viewer):
    metrics = {
        'participants': count(Participant),
        'events': count(EventTemplate),
        'surveys': count(Survey),
        'milestones': count(Milestone),
        'total_donations': db.session.scalar(select(func.sum(Donation.amount))) or Decimal('0'),
    }

    donations = (Donation.query.outerjoin(Donation.participant)
                 .order_by(Donation.donation_date.desc(), Donation.id.desc())
                 .limit(RECENT_LIMIT).all())
    surveys = (Survey.query.join(Survey.registration).join(Registration.occurrence)
               .join(EventOccurrence.template)
               .order_by(Survey.submitted_at.desc(), Survey.id.desc())
               .limit(RECENT_LIMIT).all())
    milestones = (Milestone.query
                  .order_by(Milestone.achieved_on.desc(), Milestone.id.desc())
                  .limit(RECENT_LIMIT).all())

    return render_template('dashboard/index.html', metrics=metrics, donations=donations,
                           surveys=surveys, milestones=milestones, viewer=viewer)
