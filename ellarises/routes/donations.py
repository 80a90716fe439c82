"""Donation routes - listing with amount brackets, manager CRUD."""
from decimal import Decimal

from flask import Blueprint, render_template, request, redirect, url_for
from flask_babel import gettext as _
from sqlalchemy import and_
from sqlalchemy.orm import contains_eager

from ellarises.models import db, Donation, Participant, DONATION_TYPES
from ellarises.routes.auth import login_required, manager_required
from ellarises.routes.forms import (
    FormError, read_form, missing, optional, parse_amount, parse_date, parse_int, model_values
)
from ellarises.services.listing import ListQuery, EnumFilter, full_name
from ellarises.services.persistence import commit_or_rollback, delete_or_rollback

donations_bp = Blueprint('donations', __name__)

DONATION_FIELDS = [
    'participant_id', 'amount', 'donation_date', 'donor_name', 'donor_email', 'donor_phone', 'donation_type',
]


def _bracket(low=None, high=None, include_high=False):
    clauses = []
    if low is not None:
        clauses.append(Donation.amount >= Decimal(low))
    if high is not None:
        clauses.append(Donation.amount <= Decimal(high) if include_high else Donation.amount < Decimal(high))
    return clauses[0] if len(clauses) == 1 else and_(*clauses)


# Brackets partition the amounts: each lower bound is inclusive.
AMOUNT_BRACKETS = {
    'under25': _bracket(high=25),
    '25-50': _bracket(25, 50),
    '50-100': _bracket(50, 100),
    '100-250': _bracket(100, 250),
    '250-500': _bracket(250, 500),
    '500-1000': _bracket(500, 1000, include_high=True),
    'over1000': Donation.amount > Decimal(1000),
}

DONATION_LIST = ListQuery(
    Donation,
    joins=[Donation.participant],
    options=[contains_eager(Donation.participant)],
    search_columns=[
        Participant.first_name,
        Participant.last_name,
        full_name(Participant.first_name, Participant.last_name),
        Donation.donor_name,
        Donation.donor_email,
    ],
    filters={'amountFilter': EnumFilter(AMOUNT_BRACKETS)},
    sort_column=Donation.donation_date,
)


def participant_choices():
    return Participant.query.order_by(Participant.last_name, Participant.first_name).all()


def apply_form(donation, values):
    if missing(values, ['amount']):
        raise FormError(_('Amount is required.'))

    donation.amount = parse_amount(values['amount'])
    donation.donation_date = parse_date(values['donation_date'], _('Donation date'))
    participant_id = parse_int(values['participant_id'], _('Participant'))
    if participant_id is not None and db.session.get(Participant, participant_id) is None:
        raise FormError(_('Unknown participant.'))
    donation.participant_id = participant_id
    donation.donor_name = optional(values['donor_name'])
    donation.donor_email = optional(values['donor_email'])
    donation.donor_phone = optional(values['donor_phone'])
    donation.donation_type = values['donation_type'] if values['donation_type'] in DONATION_TYPES else 'general'


def render_form(donation, values, viewer, error=None):
    return render_template('donations/form.html', donation=donation, form=values, error=error,
                           participants=participant_choices(), donation_types=DONATION_TYPES, viewer=viewer)


@donations_bp.route('/donations')
@login_required
def donation_list(viewer):
    params = DONATION_LIST.parse(request.args)
    pagination = DONATION_LIST.paginate(params)
    return render_template('donations/list.html', donations=pagination.items, pagination=pagination,
                           params=params, amount_brackets=list(AMOUNT_BRACKETS), viewer=viewer)


@donations_bp.route('/donations/<int:donation_id>')
@login_required
def donation_detail(donation_id, viewer):
    donation = db.get_or_404(Donation, donation_id)
    return render_template('donations/detail.html', donation=donation, viewer=viewer)


@donations_bp.route('/donations/new')
@manager_required
def donation_create_form(viewer):
    return render_form(None, {}, viewer)


@donations_bp.route('/donations', methods=['POST'])
@manager_required
def donation_create(viewer):
    values = read_form(DONATION_FIELDS)
    donation = Donation()
    try:
        apply_form(donation, values)
    except FormError as exc:
        return render_form(None, values, viewer, error=str(exc))

    db.session.add(donation)
    if not commit_or_rollback('creating donation'):
        return render_form(None, values, viewer, error=_('Unable to save donation.'))

    return redirect(url_for('donations.donation_list', success=_('Donation recorded successfully.')))


@donations_bp.route('/donations/<int:donation_id>/edit')
@manager_required
def donation_edit_form(donation_id, viewer):
    donation = db.get_or_404(Donation, donation_id)
    return render_form(donation, model_values(donation, DONATION_FIELDS), viewer)


@donations_bp.route('/donations/<int:donation_id>', methods=['POST'])
@manager_required
def donation_update(donation_id, viewer):
    donation = db.get_or_404(Donation, donation_id)
    values = read_form(DONATION_FIELDS)
    try:
        apply_form(donation, values)
    except FormError as exc:
        db.session.rollback()
        return render_form(donation, values, viewer, error=str(exc))

    if not commit_or_rollback(f'updating donation {donation_id}'):
        return render_form(donation, values, viewer, error=_('Unable to save donation.'))

    return redirect(url_for('donations.donation_list', success=_('Donation updated successfully.')))


@donations_bp.route('/donations/<int:donation_id>/delete', methods=['POST'])
@manager_required
def donation_delete(donation_id, viewer):
    donation = db.get_or_404(Donation, donation_id)

    if not delete_or_rollback(donation, f'deleting donation {donation_id}'):
        return redirect(url_for('donations.donation_list',
                                error=_('Unable to delete donation: related records exist.')))

    return redirect(url_for('donations.donation_list', success=_('Donation deleted.')))
