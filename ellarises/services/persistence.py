"""Commit helpers that turn constraint violations into ordinary failures."""
import logging

from sqlalchemy.exc import IntegrityError

from ellarises.extensions import db

logger = logging.getLogger(__name__)


def commit_or_rollback(action):
    """
    Commit the session and return True.

    An ``IntegrityError`` (unique or foreign key violation, typically from a
    concurrent writer or a referenced row) rolls the session back and returns
    False; the caller turns that into a message for the user.
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning('Integrity error while %s: %s', action, exc.orig)
        return False
    return True


def delete_or_rollback(obj, action):
    db.session.delete(obj)
    return commit_or_rollback(action)
