"""Password hashing and verification."""
import hmac
import logging

from flask import current_app
from werkzeug.security import generate_password_hash, check_password_hash

logger = logging.getLogger(__name__)

# Werkzeug digests look like "method$salt$hash"
DIGEST_METHODS = ('pbkdf2:', 'scrypt:', 'pbkdf2$', 'scrypt$')


def is_password_digest(value):
    """Return True if ``value`` has the shape of a salted Werkzeug digest."""
    if not value:
        return False
    return value.startswith(DIGEST_METHODS) and value.count('$') == 2


def hash_password(password):
    method = current_app.config.get('PASSWORD_HASH_METHOD', 'scrypt')
    return generate_password_hash(password, method=method)


def verify_password(stored, candidate, allow_plaintext=False):
    """
    Check ``candidate`` against the stored password value.

    Salted digests are verified with ``check_password_hash``. A stored value
    that is not a digest is only compared as plain text when
    ``allow_plaintext`` is set (the legacy migration flag); otherwise the
    account cannot log in until its password is reset.
    """
    if not stored or candidate is None:
        return False

    if is_password_digest(stored):
        return check_password_hash(stored, candidate)

    if not allow_plaintext:
        logger.error('Stored password is not a recognised digest; refusing plain text comparison.')
        return False

    logger.warning('INSECURE: comparing a legacy plain text password. The account will be rehashed on success.')
    return hmac.compare_digest(stored.encode('utf-8'), candidate.encode('utf-8'))


def needs_rehash(stored):
    return not is_password_digest(stored)
