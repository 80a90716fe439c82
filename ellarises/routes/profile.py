"""Profile routes - users view and edit their own account."""
from datetime import datetime

from flask import Blueprint, render_template, request, redirect, url_for, current_app
from flask_babel import gettext as _

from ellarises.models import db, User
from ellarises.routes.auth import login_required, is_strong_password, redirect_to_login
from ellarises.routes.forms import read_form, is_valid_email, optional
from ellarises.services.credentials import hash_password
from ellarises.services.persistence import commit_or_rollback
from ellarises.services.sessions import refresh_session, end_session

profile_bp = Blueprint('profile', __name__)

PROFILE_FIELDS = ['username', 'email', 'first_name', 'last_name']


def load_account(viewer):
    """The account row behind ``viewer``; a deleted or inactive account ends the session."""
    user = db.session.get(User, viewer.id)
    if user is None or not user.is_active:
        end_session()
        return None
    return user


@profile_bp.route('/profile')
@login_required
def index(viewer):
    user = load_account(viewer)
    if user is None:
        return redirect_to_login()
    return render_template('profile/index.html', user=user, form={}, viewer=viewer)


@profile_bp.route('/profile', methods=['POST'])
@login_required
def update(viewer):
    user = load_account(viewer)
    if user is None:
        return redirect_to_login()

    values = read_form(PROFILE_FIELDS)
    password = request.form.get('password') or ''
    confirm_password = request.form.get('confirm_password') or ''

    error = None

    if not values['username']:
        error = _('Username is required.')
    elif not values['email'] or not is_valid_email(values['email']):
        error = _('A valid email address is required.')
    elif confirm_password and not password:
        error = _('Please enter a new password.')
    elif password and password != confirm_password:
        error = _('Passwords do not match.')
    elif password and not is_strong_password(password):
        error = _('Password must be at least %(length)s characters long.',
                  length=current_app.config['PASSWORD_MIN_LENGTH'])
    elif User.query.filter(User.username == values['username'], User.id != user.id).first() is not None:
        error = _('Username is already taken.')
    elif User.query.filter(User.email == values['email'], User.id != user.id).first() is not None:
        error = _('An account with this email already exists.')

    if error is None:
        user.username = values['username']
        user.email = values['email']
        user.first_name = optional(values['first_name'])
        user.last_name = optional(values['last_name'])
        if password:
            user.password_hash = hash_password(password)
            user.last_password_change = datetime.utcnow()

        if commit_or_rollback(f'updating profile of user {user.id}'):
            refresh_session(user)
            return redirect(url_for('profile.index', success=_('Profile updated successfully.')))
        error = _('Username or email already exists.')
        user = db.session.get(User, viewer.id)

    return render_template('profile/index.html', user=user, form=values, error=error, viewer=viewer)
