"""Authenticated principal stored in the Flask session cookie."""
from flask import session

from ellarises.models import ELEVATED_ROLES

SESSION_KEY = 'user'


class Principal:
    """Snapshot of the logged-in account taken at login time."""

    def __init__(self, id, username, role, email=None, display_name=None):
        self.id = id
        self.username = username
        self.role = role
        self.email = email
        self.display_name = display_name or username

    @classmethod
    def from_user(cls, user):
        return cls(user.id, user.username, user.role, user.email, user.display_name)

    @property
    def is_elevated(self):
        return self.role in ELEVATED_ROLES

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role,
            'email': self.email,
            'display_name': self.display_name,
        }

    def __repr__(self):
        return f'<Principal {self.username} ({self.role})>'


def start_session(user):
    """Replace any previous session with one for ``user``.

    The session cookie is written on the very response that carries the
    redirect, so it is in place before the browser follows it.
    """
    session.clear()
    session.permanent = True
    session[SESSION_KEY] = Principal.from_user(user).to_dict()


def refresh_session(user):
    """Update the stored snapshot after the account row changed."""
    if SESSION_KEY in session:
        session[SESSION_KEY] = Principal.from_user(user).to_dict()


def end_session():
    session.clear()


def current_principal():
    data = session.get(SESSION_KEY)
    if not data or 'id' not in data:
        return None
    return Principal(**data)
