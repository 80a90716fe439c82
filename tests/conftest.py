from datetime import date, datetime
from decimal import Decimal

import pytest

from ellarises import create_app
from ellarises.models import (
    db, User, Participant, EventTemplate, EventOccurrence, Registration, Survey,
    MilestoneType, Milestone, Donation
)
from ellarises.services.credentials import hash_password

PASSWORD = 'secret123'


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(username, role='user', password=PASSWORD, email=None, status='active', **fields):
        with app.app_context():
            user = User(
                username=username,
                email=email or f'{username}@example.org',
                password_hash=hash_password(password),
                role=role,
                status=status,
                **fields
            )
            db.session.add(user)
            db.session.commit()
            return user.id
    return _make


@pytest.fixture
def login(client):
    def _login(username, password=PASSWORD):
        return client.post('/auth/login', data={'username': username, 'password': password})
    return _login


@pytest.fixture
def as_user(make_user, login):
    user_id = make_user('uma', role='user')
    login('uma')
    return user_id


@pytest.fixture
def as_manager(make_user, login):
    user_id = make_user('manny', role='manager')
    login('manny')
    return user_id


@pytest.fixture
def add(app):
    """Persist model instances and return their ids."""
    def _add(*objects):
        with app.app_context():
            db.session.add_all(objects)
            db.session.commit()
            ids = [obj.id for obj in objects]
        return ids[0] if len(ids) == 1 else ids
    return _add


@pytest.fixture
def participant(add):
    def _participant(first='Ada', last='Lovelace', email=None, **fields):
        return add(Participant(first_name=first, last_name=last,
                               email=email or f'{first}.{last}@example.org'.lower(), **fields))
    return _participant


@pytest.fixture
def occurrence(add):
    def _occurrence(name='Robotics Workshop', event_type='Workshop', starts_at=None, capacity=None):
        template = EventTemplate(name=name, event_type=event_type)
        occurrence = EventOccurrence(template=template, starts_at=starts_at or datetime(2025, 3, 1, 10, 0),
                                     capacity=capacity)
        return add(occurrence)
    return _occurrence


@pytest.fixture
def registration(add):
    def _registration(participant_id, occurrence_id, status='registered'):
        return add(Registration(participant_id=participant_id, occurrence_id=occurrence_id,
                                attendance_status=status))
    return _registration


@pytest.fixture
def milestone_type(add):
    def _milestone_type(title='High School Graduation', category='Education'):
        return add(MilestoneType(title=title, category=category))
    return _milestone_type


@pytest.fixture
def milestone(add):
    def _milestone(participant_id, type_id, achieved_on=None):
        return add(Milestone(participant_id=participant_id, milestone_type_id=type_id,
                             achieved_on=achieved_on or date(2024, 6, 1)))
    return _milestone


@pytest.fixture
def donation(add):
    def _donation(amount, participant_id=None, donor_name=None, donation_date=None):
        return add(Donation(amount=Decimal(str(amount)), participant_id=participant_id, donor_name=donor_name,
                            donation_date=donation_date or date(2024, 1, 1)))
    return _donation


@pytest.fixture
def survey(add):
    def _survey(registration_id, overall=5, comments=None, submitted_at=None):
        return add(Survey(registration_id=registration_id, overall_score=overall, comments=comments,
                          submitted_at=submitted_at or date(2025, 3, 2)))
    return _survey
