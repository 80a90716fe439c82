"""Event routes - templates, their occurrences and registrations."""
from flask import Blueprint, render_template, request, redirect, url_for, abort
from flask_babel import gettext as _

from ellarises.models import (
    db, EventTemplate, EventOccurrence, Registration, Participant, EVENT_TYPES, ATTENDANCE_STATUSES
)
from ellarises.routes.auth import login_required, manager_required
from ellarises.routes.forms import (
    FormError, read_form, missing, optional, parse_int, parse_datetime, model_values
)
from ellarises.services.listing import ListQuery, equality_filter
from ellarises.services.persistence import commit_or_rollback, delete_or_rollback

events_bp = Blueprint('events', __name__)

EVENT_FIELDS = ['name', 'event_type', 'description', 'recurrence_pattern', 'default_capacity']
OCCURRENCE_FIELDS = ['starts_at', 'ends_at', 'location', 'capacity', 'registration_deadline']

EVENT_LIST = ListQuery(
    EventTemplate,
    search_columns=[EventTemplate.name, EventTemplate.description],
    filters={'type': equality_filter(EventTemplate.event_type, EVENT_TYPES)},
    sort_column=EventTemplate.created_at,
)


def apply_event_form(event, values):
    if missing(values, ['name', 'event_type']):
        raise FormError(_('Event name and type are required.'))
    if values['event_type'] not in EVENT_TYPES:
        raise FormError(_('Unknown event type.'))

    event.name = values['name']
    event.event_type = values['event_type']
    event.description = optional(values['description'])
    event.recurrence_pattern = optional(values['recurrence_pattern'])
    event.default_capacity = parse_int(values['default_capacity'], _('Default capacity'), minimum=0)


def event_name_taken(name, exclude_id=None):
    query = EventTemplate.query.filter(EventTemplate.name == name)
    if exclude_id is not None:
        query = query.filter(EventTemplate.id != exclude_id)
    return query.first() is not None


# ========================================
# EVENT TEMPLATES
# ========================================

@events_bp.route('/events')
@login_required
def event_list(viewer):
    params = EVENT_LIST.parse(request.args)
    pagination = EVENT_LIST.paginate(params)
    return render_template('events/list.html', events=pagination.items, pagination=pagination,
                           params=params, event_types=EVENT_TYPES, viewer=viewer)


@events_bp.route('/events/new')
@manager_required
def event_create_form(viewer):
    return render_template('events/form.html', event=None, form={}, event_types=EVENT_TYPES, viewer=viewer)


@events_bp.route('/events', methods=['POST'])
@manager_required
def event_create(viewer):
    values = read_form(EVENT_FIELDS)
    event = EventTemplate()

    def form_error(message):
        return render_template('events/form.html', event=None, form=values, error=message,
                               event_types=EVENT_TYPES, viewer=viewer)

    try:
        apply_event_form(event, values)
    except FormError as exc:
        return form_error(str(exc))

    if event_name_taken(event.name):
        return form_error(_('An event with this name already exists.'))

    db.session.add(event)
    if not commit_or_rollback('creating event'):
        return form_error(_('An event with this name already exists.'))

    return redirect(url_for('events.event_list', success=_('Event created successfully.')))


@events_bp.route('/events/<int:event_id>')
@login_required
def event_detail(event_id, viewer):
    event = db.get_or_404(EventTemplate, event_id)
    occurrences = (EventOccurrence.query.filter_by(template_id=event.id)
                   .order_by(EventOccurrence.starts_at.desc()).all())
    return render_template('events/detail.html', event=event, occurrences=occurrences, viewer=viewer)


@events_bp.route('/events/<int:event_id>/edit')
@manager_required
def event_edit_form(event_id, viewer):
    event = db.get_or_404(EventTemplate, event_id)
    return render_template('events/form.html', event=event, form=model_values(event, EVENT_FIELDS),
                           event_types=EVENT_TYPES, viewer=viewer)


@events_bp.route('/events/<int:event_id>', methods=['POST'])
@manager_required
def event_update(event_id, viewer):
    event = db.get_or_404(EventTemplate, event_id)
    values = read_form(EVENT_FIELDS)

    def form_error(message):
        db.session.rollback()
        return render_template('events/form.html', event=event, form=values, error=message,
                               event_types=EVENT_TYPES, viewer=viewer)

    if event_name_taken(values['name'], exclude_id=event.id):
        return form_error(_('An event with this name already exists.'))
    try:
        apply_event_form(event, values)
    except FormError as exc:
        return form_error(str(exc))

    if not commit_or_rollback(f'updating event {event_id}'):
        return form_error(_('An event with this name already exists.'))

    return redirect(url_for('events.event_list', success=_('Event updated successfully.')))


@events_bp.route('/events/<int:event_id>/delete', methods=['POST'])
@manager_required
def event_delete(event_id, viewer):
    event = db.get_or_404(EventTemplate, event_id)

    if not delete_or_rollback(event, f'deleting event {event_id}'):
        return redirect(url_for('events.event_list',
                                error=_('Unable to delete event: related records exist.')))

    return redirect(url_for('events.event_list', success=_('Event deleted successfully.')))


# ========================================
# OCCURRENCES
# ========================================

def apply_occurrence_form(occurrence, values):
    if missing(values, ['starts_at']):
        raise FormError(_('Start date and time is required.'))

    occurrence.starts_at = parse_datetime(values['starts_at'], _('Start'))
    occurrence.ends_at = parse_datetime(values['ends_at'], _('End'))
    occurrence.registration_deadline = parse_datetime(values['registration_deadline'], _('Registration deadline'))
    occurrence.location = optional(values['location'])
    occurrence.capacity = parse_int(values['capacity'], _('Capacity'), minimum=0)

    if occurrence.ends_at and occurrence.ends_at < occurrence.starts_at:
        raise FormError(_('The event cannot end before it starts.'))


@events_bp.route('/events/<int:event_id>/occurrences/new')
@manager_required
def occurrence_create_form(event_id, viewer):
    event = db.get_or_404(EventTemplate, event_id)
    form = {'capacity': '' if event.default_capacity is None else str(event.default_capacity)}
    return render_template('events/occurrence_form.html', event=event, form=form, viewer=viewer)


@events_bp.route('/events/<int:event_id>/occurrences', methods=['POST'])
@manager_required
def occurrence_create(event_id, viewer):
    event = db.get_or_404(EventTemplate, event_id)
    values = read_form(OCCURRENCE_FIELDS)
    occurrence = EventOccurrence(template_id=event.id)

    try:
        apply_occurrence_form(occurrence, values)
    except FormError as exc:
        return render_template('events/occurrence_form.html', event=event, form=values,
                               error=str(exc), viewer=viewer)

    db.session.add(occurrence)
    db.session.commit()
    return redirect(url_for('events.event_detail', event_id=event.id, success=_('Occurrence scheduled.')))


@events_bp.route('/events/occurrences/<int:occurrence_id>')
@login_required
def occurrence_detail(occurrence_id, viewer):
    occurrence = db.get_or_404(EventOccurrence, occurrence_id)
    registrations = (Registration.query.filter_by(occurrence_id=occurrence.id)
                     .join(Registration.participant)
                     .order_by(Participant.last_name, Participant.first_name).all())
    participants = []
    if viewer.is_elevated:
        participants = Participant.query.order_by(Participant.last_name, Participant.first_name).all()
    return render_template('events/occurrence_detail.html', occurrence=occurrence,
                           registrations=registrations, participants=participants,
                           attendance_statuses=ATTENDANCE_STATUSES, viewer=viewer)


@events_bp.route('/events/occurrences/<int:occurrence_id>/delete', methods=['POST'])
@manager_required
def occurrence_delete(occurrence_id, viewer):
    occurrence = db.get_or_404(EventOccurrence, occurrence_id)
    event_id = occurrence.template_id

    if not delete_or_rollback(occurrence, f'deleting occurrence {occurrence_id}'):
        return redirect(url_for('events.event_detail', event_id=event_id,
                                error=_('Unable to delete occurrence: related records exist.')))

    return redirect(url_for('events.event_detail', event_id=event_id, success=_('Occurrence deleted.')))


# ========================================
# REGISTRATIONS
# ========================================

@events_bp.route('/events/occurrences/<int:occurrence_id>/registrations', methods=['POST'])
@manager_required
def registration_create(occurrence_id, viewer):
    occurrence = db.get_or_404(EventOccurrence, occurrence_id)

    try:
        participant_id = parse_int((request.form.get('participant_id') or '').strip(), _('Participant'))
    except FormError as exc:
        return redirect(url_for('events.occurrence_detail', occurrence_id=occurrence.id, error=str(exc)))
    participant = db.session.get(Participant, participant_id) if participant_id else None
    if participant is None:
        return redirect(url_for('events.occurrence_detail', occurrence_id=occurrence.id,
                                error=_('Please choose a participant.')))

    if Registration.query.filter_by(participant_id=participant.id, occurrence_id=occurrence.id).first():
        return redirect(url_for('events.occurrence_detail', occurrence_id=occurrence.id,
                                error=_('This participant is already registered.')))

    if occurrence.capacity is not None:
        taken = Registration.query.filter(Registration.occurrence_id == occurrence.id,
                                          Registration.attendance_status != 'cancelled').count()
        if taken >= occurrence.capacity:
            return redirect(url_for('events.occurrence_detail', occurrence_id=occurrence.id,
                                    error=_('This occurrence is full.')))

    db.session.add(Registration(participant_id=participant.id, occurrence_id=occurrence.id))
    if not commit_or_rollback(f'registering participant {participant.id}'):
        return redirect(url_for('events.occurrence_detail', occurrence_id=occurrence.id,
                                error=_('This participant is already registered.')))

    return redirect(url_for('events.occurrence_detail', occurrence_id=occurrence.id,
                            success=_('Participant registered.')))


@events_bp.route('/events/registrations/<int:registration_id>', methods=['POST'])
@manager_required
def registration_update(registration_id, viewer):
    registration = db.get_or_404(Registration, registration_id)
    status = (request.form.get('attendance_status') or '').strip()
    if status not in ATTENDANCE_STATUSES:
        abort(400)

    registration.attendance_status = status
    db.session.commit()
    return redirect(url_for('events.occurrence_detail', occurrence_id=registration.occurrence_id,
                            success=_('Attendance updated.')))


@events_bp.route('/events/registrations/<int:registration_id>/delete', methods=['POST'])
@manager_required
def registration_delete(registration_id, viewer):
    registration = db.get_or_404(Registration, registration_id)
    occurrence_id = registration.occurrence_id

    if not delete_or_rollback(registration, f'deleting registration {registration_id}'):
        return redirect(url_for('events.occurrence_detail', occurrence_id=occurrence_id,
                                error=_('Unable to delete registration: related records exist.')))

    return redirect(url_for('events.occurrence_detail', occurrence_id=occurrence_id,
                            success=_('Registration removed.')))
