"""Main routes - Public pages, donations from visitors, language switching."""
from datetime import date

from flask import Blueprint, render_template, request, redirect, make_response, url_for, current_app
from flask_babel import gettext as _

from ellarises.models import db, Donation, Participant, DONATION_TYPES
from ellarises.routes.forms import FormError, read_form, missing, is_valid_email, parse_amount, optional

main_bp = Blueprint('main', __name__)

DONATE_FIELDS = ['donor_name', 'donor_email', 'donor_phone', 'amount', 'donation_type', 'participant_email']


@main_bp.route('/')
def index():
    return render_template('public/landing.html')


@main_bp.route('/about')
def about():
    return render_template('public/about.html')


@main_bp.route('/login')
def login_redirect():
    return redirect(url_for('auth.login'))


@main_bp.route('/donate', methods=['GET'])
def donate_form():
    return render_template('public/donate.html', form={}, donation_types=DONATION_TYPES)


@main_bp.route('/donate', methods=['POST'])
def donate():
    """Record a donation submitted from the public page."""
    values = read_form(DONATE_FIELDS)

    def form_error(message):
        return render_template('public/donate.html', error=message, form=values, donation_types=DONATION_TYPES)

    if missing(values, ['donor_name', 'donor_email', 'amount']):
        return form_error(_('Please fill in all required fields.'))
    if not is_valid_email(values['donor_email']):
        return form_error(_('A valid email address is required.'))
    try:
        amount = parse_amount(values['amount'])
    except FormError as exc:
        return form_error(str(exc))

    participant = None
    if values['participant_email']:
        participant = Participant.query.filter_by(email=values['participant_email']).first()

    donation = Donation(
        participant_id=participant.id if participant else None,
        amount=amount,
        donation_date=date.today(),
        donor_name=values['donor_name'],
        donor_email=values['donor_email'],
        donor_phone=optional(values['donor_phone']),
        donation_type=values['donation_type'] if values['donation_type'] in DONATION_TYPES else 'general'
    )
    db.session.add(donation)
    db.session.commit()
    current_app.logger.info('Public donation of %s recorded (id=%s)', amount, donation.id)

    return redirect(url_for('main.donate_form', success=_('Thank you for your generous donation!')))


@main_bp.route('/set_language/<lang>')
def set_language(lang):
    if lang not in current_app.config['LANGUAGES']:
        lang = current_app.config['BABEL_DEFAULT_LOCALE']
    resp = make_response(redirect(request.referrer or '/'))
    resp.set_cookie('babel_translation', lang)
    return resp
