"""Participant routes - common users view, managers have full access."""
from flask import Blueprint, render_template, request, redirect, url_for
from flask_babel import gettext as _

from ellarises.models import db, Participant, Milestone, Registration, Donation, EventOccurrence
from ellarises.routes.auth import login_required, manager_required
from ellarises.routes.forms import (
    FormError, read_form, missing, is_valid_email, optional, parse_date, model_values
)
from ellarises.services.listing import ListQuery, full_name
from ellarises.services.persistence import commit_or_rollback, delete_or_rollback

participants_bp = Blueprint('participants', __name__)

PARTICIPANT_FIELDS = [
    'email', 'first_name', 'last_name', 'date_of_birth', 'phone', 'city', 'state',
    'zip_code', 'school_or_employer', 'field_of_interest', 'participant_role',
]
REQUIRED_FIELDS = ['email', 'first_name', 'last_name']

PARTICIPANT_LIST = ListQuery(
    Participant,
    search_columns=[
        Participant.first_name,
        Participant.last_name,
        full_name(Participant.first_name, Participant.last_name),
        Participant.email,
    ],
    sort_column=Participant.created_at,
)


def apply_form(participant, values):
    """Validate ``values`` and copy them onto ``participant``; raise FormError."""
    if missing(values, REQUIRED_FIELDS):
        raise FormError(_('Email, first name and last name are required.'))
    if not is_valid_email(values['email']):
        raise FormError(_('A valid email address is required.'))

    participant.email = values['email']
    participant.first_name = values['first_name']
    participant.last_name = values['last_name']
    participant.date_of_birth = parse_date(values['date_of_birth'], _('Date of birth'))
    for name in ['phone', 'city', 'state', 'zip_code', 'school_or_employer',
                 'field_of_interest', 'participant_role']:
        setattr(participant, name, optional(values[name]))


def email_taken(email, exclude_id=None):
    query = Participant.query.filter(Participant.email == email)
    if exclude_id is not None:
        query = query.filter(Participant.id != exclude_id)
    return query.first() is not None


# ========================================
# LIST AND DETAIL
# ========================================

@participants_bp.route('/participants')
@login_required
def participant_list(viewer):
    params = PARTICIPANT_LIST.parse(request.args)
    pagination = PARTICIPANT_LIST.paginate(params)
    return render_template('participants/list.html', participants=pagination.items,
                           pagination=pagination, params=params, viewer=viewer)


@participants_bp.route('/participants/<int:participant_id>')
@login_required
def participant_detail(participant_id, viewer):
    participant = db.get_or_404(Participant, participant_id)

    milestones = (Milestone.query.filter_by(participant_id=participant.id)
                  .order_by(Milestone.achieved_on.desc()).all())
    registrations = (Registration.query.filter_by(participant_id=participant.id)
                     .join(Registration.occurrence)
                     .order_by(EventOccurrence.starts_at.desc()).all())
    donations = (Donation.query.filter_by(participant_id=participant.id)
                 .order_by(Donation.donation_date.desc()).all())

    return render_template('participants/detail.html', participant=participant, milestones=milestones,
                           registrations=registrations, donations=donations, viewer=viewer)


# ========================================
# CREATE, EDIT, DELETE (managers)
# ========================================

@participants_bp.route('/participants/new')
@manager_required
def participant_create_form(viewer):
    return render_template('participants/form.html', participant=None, form={}, viewer=viewer)


@participants_bp.route('/participants', methods=['POST'])
@manager_required
def participant_create(viewer):
    values = read_form(PARTICIPANT_FIELDS)
    participant = Participant()

    def form_error(message):
        return render_template('participants/form.html', participant=None, form=values,
                               error=message, viewer=viewer)

    try:
        apply_form(participant, values)
    except FormError as exc:
        return form_error(str(exc))

    if email_taken(participant.email):
        return form_error(_('A participant with this email already exists.'))

    db.session.add(participant)
    if not commit_or_rollback('creating participant'):
        return form_error(_('A participant with this email already exists.'))

    return redirect(url_for('participants.participant_list', success=_('Participant added successfully.')))


@participants_bp.route('/participants/<int:participant_id>/edit')
@manager_required
def participant_edit_form(participant_id, viewer):
    participant = db.get_or_404(Participant, participant_id)
    return render_template('participants/form.html', participant=participant,
                           form=model_values(participant, PARTICIPANT_FIELDS), viewer=viewer)


@participants_bp.route('/participants/<int:participant_id>', methods=['POST'])
@manager_required
def participant_update(participant_id, viewer):
    participant = db.get_or_404(Participant, participant_id)
    values = read_form(PARTICIPANT_FIELDS)

    def form_error(message):
        db.session.rollback()
        return render_template('participants/form.html', participant=participant, form=values,
                               error=message, viewer=viewer)

    if email_taken(values['email'], exclude_id=participant.id):
        return form_error(_('A participant with this email already exists.'))
    try:
        apply_form(participant, values)
    except FormError as exc:
        return form_error(str(exc))

    if not commit_or_rollback(f'updating participant {participant_id}'):
        return form_error(_('A participant with this email already exists.'))

    return redirect(url_for('participants.participant_list', success=_('Participant updated successfully.')))


@participants_bp.route('/participants/<int:participant_id>/delete', methods=['POST'])
@manager_required
def participant_delete(participant_id, viewer):
    participant = db.get_or_404(Participant, participant_id)

    if not delete_or_rollback(participant, f'deleting participant {participant_id}'):
        return redirect(url_for('participants.participant_list',
                                error=_('Unable to delete participant: related records exist.')))

    return redirect(url_for('participants.participant_list', success=_('Participant deleted successfully.')))
