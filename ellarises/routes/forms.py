"""Helpers for reading and validating submitted forms."""
import re
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation

from flask import request
from flask_babel import gettext as _

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
# Numeric(10, 2)
MAX_AMOUNT = Decimal('100000000')
# INTEGER columns
MIN_INT = -2 ** 31
MAX_INT = 2 ** 31 - 1


class FormError(ValueError):
    """A submitted value could not be used; the message is shown to the user."""


def read_form(fields):
    """Return the stripped submitted values for ``fields`` (missing -> '')."""
    return {name: (request.form.get(name) or '').strip() for name in fields}


def missing(values, required):
    return [name for name in required if not values.get(name)]


def is_valid_email(email):
    return bool(email and EMAIL_RE.match(email))


def optional(value):
    return value or None


def parse_int(value, label, minimum=MIN_INT, maximum=MAX_INT):
    if not value:
        return None
    try:
        number = int(value)
    except ValueError:
        raise FormError(_('%(label)s must be a whole number.', label=label))
    if minimum is not None and number < minimum:
        raise FormError(_('%(label)s must be at least %(limit)s.', label=label, limit=minimum))
    if maximum is not None and number > maximum:
        raise FormError(_('%(label)s must be at most %(limit)s.', label=label, limit=maximum))
    return number


def parse_amount(value, label='Amount'):
    """Monetary amount with two decimals; negative values are rejected."""
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError):
        raise FormError(_('%(label)s must be a number.', label=label))
    if not amount.is_finite():
        raise FormError(_('%(label)s must be a number.', label=label))
    if amount < 0:
        raise FormError(_('%(label)s cannot be negative.', label=label))
    if amount >= MAX_AMOUNT:
        raise FormError(_('%(label)s is too large.', label=label))
    return amount.quantize(Decimal('0.01'))


def parse_date(value, label):
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise FormError(_('%(label)s must be a date (YYYY-MM-DD).', label=label))


def parse_datetime(value, label):
    """
    Accept the ``datetime-local`` input format as well as ISO 8601.

    Values with a UTC offset are returned as naive UTC.
    """
    if not value:
        return None
    try:
        moment = datetime.fromisoformat(value)
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    except (ValueError, OverflowError):
        raise FormError(_('%(label)s must be a date and time (YYYY-MM-DDTHH:MM).', label=label))
    return moment


def model_values(obj, fields):
    """Form values for editing ``obj``: dates in ISO format, ``None`` as ''."""
    values = {}
    for name in fields:
        value = getattr(obj, name, None)
        if value is None:
            values[name] = ''
        elif isinstance(value, datetime):
            values[name] = value.strftime('%Y-%m-%dT%H:%M')
        elif isinstance(value, date):
            values[name] = value.isoformat()
        else:
            values[name] = str(value)
    return values
