"""Milestone routes - participant milestones and the milestone type lookup table."""
from flask import Blueprint, render_template, request, redirect, url_for
from flask_babel import gettext as _
from sqlalchemy import select
from sqlalchemy.orm import contains_eager

from ellarises.models import db, Milestone, MilestoneType, Participant
from ellarises.routes.auth import login_required, manager_required
from ellarises.routes.forms import FormError, read_form, missing, optional, parse_date, parse_int, model_values
from ellarises.services.listing import ListQuery, equality_filter, full_name
from ellarises.services.persistence import commit_or_rollback, delete_or_rollback

milestones_bp = Blueprint('milestones', __name__)

MILESTONE_FIELDS = ['participant_id', 'milestone_type_id', 'achieved_on', 'notes']
TYPE_FIELDS = ['title', 'category']


def milestone_type_ids():
    return db.session.scalars(select(MilestoneType.id)).all()


MILESTONE_LIST = ListQuery(
    Milestone,
    joins=[Milestone.participant, Milestone.milestone_type],
    options=[contains_eager(Milestone.participant), contains_eager(Milestone.milestone_type)],
    search_columns=[
        Participant.first_name,
        Participant.last_name,
        full_name(Participant.first_name, Participant.last_name),
        MilestoneType.title,
    ],
    filters={'type': equality_filter(Milestone.milestone_type_id, milestone_type_ids)},
    sort_column=Milestone.achieved_on,
)


def milestone_types():
    return MilestoneType.query.order_by(MilestoneType.title).all()


def apply_form(milestone, values):
    if missing(values, ['participant_id', 'milestone_type_id']):
        raise FormError(_('Participant and milestone type are required.'))

    participant_id = parse_int(values['participant_id'], _('Participant'))
    type_id = parse_int(values['milestone_type_id'], _('Milestone type'))
    if db.session.get(Participant, participant_id) is None:
        raise FormError(_('Unknown participant.'))
    if db.session.get(MilestoneType, type_id) is None:
        raise FormError(_('Unknown milestone type.'))

    milestone.participant_id = participant_id
    milestone.milestone_type_id = type_id
    milestone.achieved_on = parse_date(values['achieved_on'], _('Date achieved'))
    milestone.notes = optional(values['notes'])


def render_form(milestone, values, viewer, error=None):
    participants = Participant.query.order_by(Participant.last_name, Participant.first_name).all()
    return render_template('milestones/form.html', milestone=milestone, form=values, error=error,
                           participants=participants, milestone_types=milestone_types(), viewer=viewer)


# ========================================
# MILESTONES
# ========================================

@milestones_bp.route('/milestones')
@login_required
def milestone_list(viewer):
    params = MILESTONE_LIST.parse(request.args)
    pagination = MILESTONE_LIST.paginate(params)
    return render_template('milestones/list.html', milestones=pagination.items, pagination=pagination,
                           params=params, milestone_types=milestone_types(), viewer=viewer)


@milestones_bp.route('/milestones/new')
@manager_required
def milestone_create_form(viewer):
    return render_form(None, {'participant_id': request.args.get('participant_id', '')}, viewer)


@milestones_bp.route('/milestones', methods=['POST'])
@manager_required
def milestone_create(viewer):
    values = read_form(MILESTONE_FIELDS)
    milestone = Milestone()
    try:
        apply_form(milestone, values)
    except FormError as exc:
        return render_form(None, values, viewer, error=str(exc))

    db.session.add(milestone)
    if not commit_or_rollback('creating milestone'):
        return render_form(None, values, viewer, error=_('Unable to save milestone.'))

    return redirect(url_for('milestones.milestone_list', success=_('Milestone added.')))


@milestones_bp.route('/milestones/<int:milestone_id>')
@login_required
def milestone_detail(milestone_id, viewer):
    milestone = db.get_or_404(Milestone, milestone_id)
    return render_template('milestones/detail.html', milestone=milestone, viewer=viewer)


@milestones_bp.route('/milestones/<int:milestone_id>/edit')
@manager_required
def milestone_edit_form(milestone_id, viewer):
    milestone = db.get_or_404(Milestone, milestone_id)
    return render_form(milestone, model_values(milestone, MILESTONE_FIELDS), viewer)


@milestones_bp.route('/milestones/<int:milestone_id>', methods=['POST'])
@manager_required
def milestone_update(milestone_id, viewer):
    milestone = db.get_or_404(Milestone, milestone_id)
    values = read_form(MILESTONE_FIELDS)
    try:
        apply_form(milestone, values)
    except FormError as exc:
        db.session.rollback()
        return render_form(milestone, values, viewer, error=str(exc))

    if not commit_or_rollback(f'updating milestone {milestone_id}'):
        return render_form(milestone, values, viewer, error=_('Unable to save milestone.'))

    return redirect(url_for('milestones.milestone_list', success=_('Milestone updated.')))


@milestones_bp.route('/milestones/<int:milestone_id>/delete', methods=['POST'])
@manager_required
def milestone_delete(milestone_id, viewer):
    milestone = db.get_or_404(Milestone, milestone_id)

    if not delete_or_rollback(milestone, f'deleting milestone {milestone_id}'):
        return redirect(url_for('milestones.milestone_list',
                                error=_('Unable to delete milestone: related records exist.')))

    return redirect(url_for('milestones.milestone_list', success=_('Milestone deleted.')))


# ========================================
# MILESTONE TYPES
# ========================================

@milestones_bp.route('/milestones/types')
@login_required
def type_list(viewer):
    return render_template('milestones/types.html', types=milestone_types(), form={}, viewer=viewer)


@milestones_bp.route('/milestones/types', methods=['POST'])
@manager_required
def type_create(viewer):
    values = read_form(TYPE_FIELDS)

    def form_error(message):
        return render_template('milestones/types.html', types=milestone_types(), form=values,
                               error=message, viewer=viewer)

    if missing(values, ['title']):
        return form_error(_('Title is required.'))
    if MilestoneType.query.filter_by(title=values['title']).first():
        return form_error(_('A milestone type with this title already exists.'))

    db.session.add(MilestoneType(title=values['title'], category=optional(values['category'])))
    if not commit_or_rollback('creating milestone type'):
        return form_error(_('A milestone type with this title already exists.'))

    return redirect(url_for('milestones.type_list', success=_('Milestone type added.')))


@milestones_bp.route('/milestones/types/<int:type_id>/delete', methods=['POST'])
@manager_required
def type_delete(type_id, viewer):
    milestone_type = db.get_or_404(MilestoneType, type_id)

    if not delete_or_rollback(milestone_type, f'deleting milestone type {type_id}'):
        return redirect(url_for('milestones.type_list',
                                error=_('Unable to delete milestone type: related records exist.')))

    return redirect(url_for('milestones.type_list', success=_('Milestone type deleted.')))
