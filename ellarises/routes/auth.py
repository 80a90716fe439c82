"""Authentication routes and decorators."""
from datetime import datetime
from functools import wraps

from flask import Blueprint, redirect, url_for, request, render_template, abort, current_app
from flask_babel import gettext as _
from sqlalchemy.exc import IntegrityError

from ellarises.models import db, User, ELEVATED_ROLES
from ellarises.routes.forms import read_form, is_valid_email
from ellarises.services.credentials import hash_password, verify_password, needs_rehash
from ellarises.services.sessions import (
    Principal, current_principal, start_session, refresh_session, end_session
)

auth_bp = Blueprint('auth', __name__)

REGISTER_FIELDS = ['username', 'email', 'first_name', 'last_name']


def is_strong_password(password):
    """At least PASSWORD_MIN_LENGTH characters."""
    return len(password or '') >= current_app.config['PASSWORD_MIN_LENGTH']


def landing_url(viewer):
    """Managers and admins land on the dashboard, everyone else on the home page."""
    if viewer.is_elevated:
        return url_for('dashboard.index')
    return url_for('main.index')


def redirect_to_login():
    return redirect(url_for('auth.login', error=_('Please log in to access this page.')))


# ==================== RBAC Decorators (MUST be defined before routes that use them) ====================

def login_required(f):
    """Require a live session; the principal is passed to the view as ``viewer``."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        viewer = current_principal()
        if viewer is None:
            return redirect_to_login()
        kwargs['viewer'] = viewer
        return f(*args, **kwargs)
    return decorated_function


def role_required(roles):
    """
    Require a session whose account currently holds one of ``roles``.

    The account row is re-read so a demoted or deactivated account loses
    access on its next request instead of when the session cookie expires.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            viewer = current_principal()
            if viewer is None:
                return redirect_to_login()

            user = db.session.get(User, viewer.id)
            if user is None or not user.is_active:
                current_app.logger.info('Session for %s no longer maps to an active account', viewer.username)
                end_session()
                return redirect_to_login()
            if user.role != viewer.role:
                current_app.logger.info('Role of %s changed from %s to %s', user.username, viewer.role, user.role)
                refresh_session(user)
                viewer = Principal.from_user(user)

            if viewer.role not in roles:
                abort(403, description=_('You do not have permission to access this page. '
                                         'Manager or admin access required.'))
            kwargs['viewer'] = viewer
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def manager_required(f):
    return role_required(ELEVATED_ROLES)(f)


# ==================== Routes ====================

@auth_bp.route('/auth/register', methods=['GET', 'POST'])
def register():
    if request.method == 'POST':
        values = read_form(REGISTER_FIELDS)
        password = request.form.get('password') or ''
        confirm_password = request.form.get('confirm_password') or ''

        error = None

        # Validations
        if not values['username']:
            error = _('Username is required.')
        elif not values['email'] or not is_valid_email(values['email']):
            error = _('A valid email address is required.')
        elif not password:
            error = _('Password is required.')
        elif password != confirm_password:
            error = _('Passwords do not match.')
        elif not is_strong_password(password):
            error = _('Password must be at least %(length)s characters long.',
                      length=current_app.config['PASSWORD_MIN_LENGTH'])
        elif User.query.filter_by(username=values['username']).first() is not None:
            error = _('Username already exists.')
        elif User.query.filter_by(email=values['email']).first() is not None:
            error = _('An account with this email already exists.')

        if error is None:
            user = User(
                username=values['username'],
                email=values['email'],
                first_name=values['first_name'] or None,
                last_name=values['last_name'] or None,
                password_hash=hash_password(password),
                role='user',
                status='active',
                last_password_change=datetime.utcnow()
            )
            db.session.add(user)
            try:
                db.session.commit()
            except IntegrityError:
                # Lost a race with a concurrent registration
                db.session.rollback()
                current_app.logger.warning('Registration conflict for username %r', values['username'])
                error = _('Username or email already exists.')
            else:
                current_app.logger.info('Registered account %s', user.username)
                return redirect(url_for('auth.login', success=_('Account created successfully. Please log in.')))

        return render_template('auth/register.html', error=error, form=values)

    return render_template('auth/register.html', form={})


@auth_bp.route('/auth/login', methods=['GET', 'POST'])
def login():
    viewer = current_principal()
    if viewer is not None:
        return redirect(landing_url(viewer))

    if request.method == 'POST':
        username = (request.form.get('username') or '').strip()
        password = request.form.get('password') or ''

        user = None
        if username:
            user = User.query.filter_by(username=username, status='active').first()

        allow_plaintext = current_app.config['LEGACY_PLAINTEXT_PASSWORDS']
        if user is None or not verify_password(user.password_hash, password, allow_plaintext):
            # Same message whether the username or the password was wrong
            current_app.logger.info('Failed login for username %r', username)
            return render_template('auth/login.html', error=_('Invalid username or password.'), username=username)

        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(password)
            user.last_password_change = datetime.utcnow()
            current_app.logger.warning('Rehashed legacy plain text password for %s', user.username)
        user.last_login = datetime.utcnow()
        db.session.commit()

        start_session(user)
        current_app.logger.info('Login successful for user %s', user.username)
        return redirect(landing_url(Principal.from_user(user)))

    return render_template('auth/login.html', error=request.args.get('error'))


@auth_bp.route('/auth/logout')
def logout():
    end_session()
    return redirect(url_for('main.index'))
