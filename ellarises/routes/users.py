"""User management routes - managers and admins manage login accounts."""
from datetime import datetime

from flask import Blueprint, render_template, request, redirect, url_for, current_app
from flask_babel import gettext as _

from ellarises.models import db, User, ROLES, STATUSES
from ellarises.routes.auth import manager_required, is_strong_password
from ellarises.routes.forms import FormError, read_form, missing, is_valid_email, optional, model_values
from ellarises.services.credentials import hash_password
from ellarises.services.listing import ListQuery, equality_filter, full_name
from ellarises.services.persistence import commit_or_rollback, delete_or_rollback
from ellarises.services.sessions import refresh_session

users_bp = Blueprint('users', __name__)

USER_FIELDS = ['username', 'email', 'first_name', 'last_name', 'role', 'status']

USER_LIST = ListQuery(
    User,
    search_columns=[
        User.username,
        User.email,
        User.first_name,
        User.last_name,
        full_name(User.first_name, User.last_name),
    ],
    filters={'role': equality_filter(User.role, ROLES)},
    sort_column=User.created_at,
    tiebreakers=[User.username],
)


def apply_form(user, values, password, confirm_password, viewer):
    if missing(values, ['username', 'email']):
        raise FormError(_('Username and email are required.'))
    if not is_valid_email(values['email']):
        raise FormError(_('A valid email address is required.'))
    if values['role'] not in ROLES:
        raise FormError(_('Unknown role.'))
    if values['status'] not in STATUSES:
        raise FormError(_('Unknown status.'))

    # New accounts need a password, existing ones keep theirs when left blank
    if password or user.id is None:
        if not password:
            raise FormError(_('Password is required.'))
        if password != confirm_password:
            raise FormError(_('Passwords do not match.'))
        if not is_strong_password(password):
            raise FormError(_('Password must be at least %(length)s characters long.',
                              length=current_app.config['PASSWORD_MIN_LENGTH']))

    if user.id is not None and user.id == viewer.id:
        if values['status'] != 'active':
            raise FormError(_('You cannot deactivate your own account.'))
        if values['role'] not in ('manager', 'admin'):
            raise FormError(_('You cannot remove your own manager access.'))

    user.username = values['username']
    user.email = values['email']
    user.first_name = optional(values['first_name'])
    user.last_name = optional(values['last_name'])
    user.role = values['role']
    user.status = values['status']
    if password:
        user.password_hash = hash_password(password)
        user.last_password_change = datetime.utcnow()


def account_conflict(username, email, exclude_id=None):
    """Return the message for a taken username or email, or None."""
    query = User.query
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    with db.session.no_autoflush:
        if query.filter(User.username == username).first() is not None:
            return _('Username already exists.')
        if query.filter(User.email == email).first() is not None:
            return _('An account with this email already exists.')
    return None


def render_form(user, values, viewer, error=None):
    return render_template('users/form.html', user=user, form=values, error=error,
                           roles=ROLES, statuses=STATUSES, viewer=viewer)


@users_bp.route('/users')
@manager_required
def user_list(viewer):
    params = USER_LIST.parse(request.args)
    pagination = USER_LIST.paginate(params)
    return render_template('users/list.html', users=pagination.items, pagination=pagination,
                           params=params, roles=ROLES, viewer=viewer)


@users_bp.route('/users/new')
@manager_required
def user_create_form(viewer):
    return render_form(None, {'role': 'user', 'status': 'active'}, viewer)


@users_bp.route('/users', methods=['POST'])
@manager_required
def user_create(viewer):
    values = read_form(USER_FIELDS)
    user = User()
    try:
        apply_form(user, values, request.form.get('password') or '',
                   request.form.get('confirm_password') or '', viewer)
    except FormError as exc:
        return render_form(None, values, viewer, error=str(exc))

    conflict = account_conflict(user.username, user.email)
    if conflict:
        return render_form(None, values, viewer, error=conflict)

    db.session.add(user)
    if not commit_or_rollback('creating user'):
        return render_form(None, values, viewer, error=_('Username or email already exists.'))

    current_app.logger.info('%s created account %s with role %s', viewer.username, user.username, user.role)
    return redirect(url_for('users.user_list', success=_('User created successfully.')))


@users_bp.route('/users/<int:user_id>')
@manager_required
def user_detail(user_id, viewer):
    user = db.get_or_404(User, user_id)
    return render_template('users/detail.html', user=user, viewer=viewer)


@users_bp.route('/users/<int:user_id>/edit')
@manager_required
def user_edit_form(user_id, viewer):
    user = db.get_or_404(User, user_id)
    return render_form(user, model_values(user, USER_FIELDS), viewer)


@users_bp.route('/users/<int:user_id>', methods=['POST'])
@manager_required
def user_update(user_id, viewer):
    user = db.get_or_404(User, user_id)
    values = read_form(USER_FIELDS)

    def form_error(message):
        db.session.rollback()
        return render_form(user, values, viewer, error=message)

    conflict = account_conflict(values['username'], values['email'], exclude_id=user.id)
    if conflict:
        return form_error(conflict)
    try:
        apply_form(user, values, request.form.get('password') or '',
                   request.form.get('confirm_password') or '', viewer)
    except FormError as exc:
        return form_error(str(exc))

    if not commit_or_rollback(f'updating user {user_id}'):
        return form_error(_('Username or email already exists.'))

    if user.id == viewer.id:
        refresh_session(user)
    current_app.logger.info('%s updated account %s', viewer.username, user.username)
    return redirect(url_for('users.user_list', success=_('User updated successfully.')))


@users_bp.route('/users/<int:user_id>/delete', methods=['POST'])
@manager_required
def user_delete(user_id, viewer):
    user = db.get_or_404(User, user_id)

    # Prevent managers from deleting themselves
    if user.id == viewer.id:
        return redirect(url_for('users.user_list', error=_('You cannot delete your own account.')))

    username = user.username
    if not delete_or_rollback(user, f'deleting user {user_id}'):
        return redirect(url_for('users.user_list',
                                error=_('Unable to delete user: related records exist.')))

    current_app.logger.info('%s deleted account %s', viewer.username, username)
    return redirect(url_for('users.user_list', success=_('User deleted successfully.')))
