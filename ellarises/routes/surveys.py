"""Survey routes - post-event surveys linked to registrations."""
from flask import Blueprint, render_template, request, redirect, url_for
from flask_babel import gettext as _
from sqlalchemy import select
from sqlalchemy.orm import contains_eager

from ellarises.models import (
    db, Survey, Registration, Participant, EventOccurrence, EventTemplate, SCORE_FIELDS
)
from ellarises.routes.auth import login_required, manager_required
from ellarises.routes.forms import FormError, read_form, missing, optional, parse_date, parse_int, model_values
from ellarises.services.listing import ListQuery, equality_filter, full_name
from ellarises.services.persistence import commit_or_rollback, delete_or_rollback

surveys_bp = Blueprint('surveys', __name__)

SURVEY_FIELDS = ['registration_id', 'submitted_at', 'comments'] + SCORE_FIELDS
SCORE_LABELS = {
    'satisfaction_score': 'Satisfaction',
    'usefulness_score': 'Usefulness',
    'instructor_score': 'Instructor',
    'recommendation_score': 'Recommendation',
    'overall_score': 'Overall',
}

SURVEY_LIST = ListQuery(
    Survey,
    joins=[Survey.registration, Registration.participant, Registration.occurrence, EventOccurrence.template],
    options=[
        contains_eager(Survey.registration).contains_eager(Registration.participant),
        contains_eager(Survey.registration).contains_eager(Registration.occurrence)
        .contains_eager(EventOccurrence.template),
    ],
    search_columns=[
        Participant.first_name,
        Participant.last_name,
        full_name(Participant.first_name, Participant.last_name),
        EventTemplate.name,
        Survey.comments,
    ],
    filters={'score': equality_filter(Survey.overall_score, range(1, 6))},
    sort_column=Survey.submitted_at,
    page_size=20,
)


def registration_choices(current_id=None):
    """Registrations that do not have a survey yet (plus the one being edited)."""
    taken = select(Survey.registration_id)
    if current_id is not None:
        taken = taken.where(Survey.registration_id != current_id)
    return (Registration.query
            .join(Registration.participant)
            .join(Registration.occurrence)
            .filter(Registration.id.not_in(taken))
            .order_by(EventOccurrence.starts_at.desc(), Participant.last_name)
            .all())


def apply_form(survey, values):
    if missing(values, ['registration_id']):
        raise FormError(_('Please choose the registration this survey belongs to.'))

    registration_id = parse_int(values['registration_id'], _('Registration'))
    if db.session.get(Registration, registration_id) is None:
        raise FormError(_('Unknown registration.'))

    survey.registration_id = registration_id
    survey.submitted_at = parse_date(values['submitted_at'], _('Submission date'))
    survey.comments = optional(values['comments'])
    for name in SCORE_FIELDS:
        setattr(survey, name, parse_int(values[name], _(SCORE_LABELS[name]), minimum=1, maximum=5))


def render_form(survey, values, viewer, error=None):
    return render_template('surveys/form.html', survey=survey, form=values, error=error,
                           registrations=registration_choices(survey.registration_id if survey else None),
                           score_labels=SCORE_LABELS, viewer=viewer)


def registration_has_survey(registration_id, exclude_id=None):
    query = Survey.query.filter(Survey.registration_id == registration_id)
    if exclude_id is not None:
        query = query.filter(Survey.id != exclude_id)
    # the survey being edited may already hold the new value; do not flush it
    with db.session.no_autoflush:
        return query.first() is not None


@surveys_bp.route('/surveys')
@login_required
def survey_list(viewer):
    params = SURVEY_LIST.parse(request.args)
    pagination = SURVEY_LIST.paginate(params)
    return render_template('surveys/list.html', surveys=pagination.items, pagination=pagination,
                           params=params, viewer=viewer)


@surveys_bp.route('/surveys/<int:survey_id>')
@login_required
def survey_detail(survey_id, viewer):
    survey = db.get_or_404(Survey, survey_id)
    return render_template('surveys/detail.html', survey=survey, score_labels=SCORE_LABELS, viewer=viewer)


@surveys_bp.route('/surveys/new')
@manager_required
def survey_create_form(viewer):
    return render_form(None, {}, viewer)


@surveys_bp.route('/surveys', methods=['POST'])
@manager_required
def survey_create(viewer):
    values = read_form(SURVEY_FIELDS)
    survey = Survey()
    try:
        apply_form(survey, values)
    except FormError as exc:
        return render_form(None, values, viewer, error=str(exc))

    if registration_has_survey(survey.registration_id):
        return render_form(None, values, viewer, error=_('A survey already exists for this registration.'))

    db.session.add(survey)
    if not commit_or_rollback('creating survey'):
        return render_form(None, values, viewer, error=_('A survey already exists for this registration.'))

    return redirect(url_for('surveys.survey_list', success=_('Survey saved successfully.')))


@surveys_bp.route('/surveys/<int:survey_id>/edit')
@manager_required
def survey_edit_form(survey_id, viewer):
    survey = db.get_or_404(Survey, survey_id)
    return render_form(survey, model_values(survey, SURVEY_FIELDS), viewer)


@surveys_bp.route('/surveys/<int:survey_id>', methods=['POST'])
@manager_required
def survey_update(survey_id, viewer):
    survey = db.get_or_404(Survey, survey_id)
    values = read_form(SURVEY_FIELDS)

    def form_error(message):
        db.session.rollback()
        return render_form(survey, values, viewer, error=message)

    try:
        apply_form(survey, values)
    except FormError as exc:
        return form_error(str(exc))

    if registration_has_survey(survey.registration_id, exclude_id=survey.id):
        return form_error(_('A survey already exists for this registration.'))

    if not commit_or_rollback(f'updating survey {survey_id}'):
        return form_error(_('A survey already exists for this registration.'))

    return redirect(url_for('surveys.survey_list', success=_('Survey updated successfully.')))


@surveys_bp.route('/surveys/<int:survey_id>/delete', methods=['POST'])
@manager_required
def survey_delete(survey_id, viewer):
    survey = db.get_or_404(Survey, survey_id)

    if not delete_or_rollback(survey, f'deleting survey {survey_id}'):
        return redirect(url_for('surveys.survey_list',
                                error=_('Unable to delete survey: related records exist.')))

    return redirect(url_for('surveys.survey_list', success=_('Survey deleted successfully.')))
