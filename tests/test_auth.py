import pytest

from ellarises.models import db, User
from ellarises.services.credentials import hash_password, verify_password, is_password_digest

ELEVATED_ROUTES = [
    ('get', '/dashboard'),
    ('get', '/users'),
    ('get', '/users/new'),
    ('get', '/participants/new'),
    ('post', '/participants'),
    ('get', '/events/new'),
    ('post', '/donations'),
    ('post', '/milestones/types'),
    ('get', '/surveys/new'),
]

AUTHENTICATED_ROUTES = [
    '/participants', '/events', '/donations', '/milestones', '/milestones/types', '/surveys',
    '/profile', '/dashboard', '/users',
]


def register(client, username='alice', email='a@x.com', password='secret1', confirm=None):
    return client.post('/auth/register', data={
        'username': username,
        'email': email,
        'password': password,
        'confirm_password': password if confirm is None else confirm,
    })


def test_register_then_duplicate_username(app, client):
    response = register(client)
    assert response.status_code == 302
    assert '/auth/login' in response.location
    assert 'success=' in response.location

    response = register(client, email='other@x.com')
    assert response.status_code == 200
    assert b'Username already exists.' in response.data

    with app.app_context():
        assert User.query.filter_by(username='alice').count() == 1
        assert User.query.count() == 1
        user = User.query.filter_by(username='alice').one()
        assert user.role == 'user'
        assert is_password_digest(user.password_hash)


def test_register_keeps_form_values_on_error(client):
    response = register(client, password='secret1', confirm='secret2')
    assert response.status_code == 200
    assert b'Passwords do not match.' in response.data
    assert b'value="a@x.com"' in response.data


def test_register_rejects_short_password(client):
    response = register(client, password='abc')
    assert b'Password must be at least 6 characters long.' in response.data


def test_login_redirects_by_role(make_user, login, client):
    make_user('manny', role='manager')
    make_user('uma', role='user')

    response = login('manny')
    assert response.status_code == 302
    assert response.location.endswith('/dashboard')

    client.get('/auth/logout')
    response = login('uma')
    assert response.status_code == 302
    assert response.location.endswith('/')


def test_invalid_credentials_message_is_identical(make_user, login):
    make_user('uma')
    wrong_password = login('uma', 'not-the-password')
    unknown_user = login('nobody', 'not-the-password')

    assert wrong_password.status_code == unknown_user.status_code == 200
    assert b'Invalid username or password.' in wrong_password.data
    assert b'Invalid username or password.' in unknown_user.data


def test_inactive_account_cannot_log_in(make_user, login):
    make_user('gone', status='inactive')
    response = login('gone')
    assert response.status_code == 200
    assert b'Invalid username or password.' in response.data


def test_login_stamps_last_login(app, make_user, login):
    user_id = make_user('uma')
    login('uma')
    with app.app_context():
        assert db.session.get(User, user_id).last_login is not None


@pytest.mark.parametrize('path', AUTHENTICATED_ROUTES)
def test_anonymous_visitor_is_sent_to_login(client, path):
    response = client.get(path)
    assert response.status_code == 302
    assert '/auth/login' in response.location


@pytest.mark.parametrize('method, path', ELEVATED_ROUTES)
def test_common_user_gets_403_on_elevated_routes(client, as_user, method, path):
    response = getattr(client, method)(path)
    assert response.status_code == 403


def test_common_user_can_read_lists(client, as_user):
    assert client.get('/participants').status_code == 200
    assert client.get('/events').status_code == 200


def test_demoted_manager_loses_access_on_next_request(app, client, as_manager):
    assert client.get('/dashboard').status_code == 200

    with app.app_context():
        user = db.session.get(User, as_manager)
        user.role = 'user'
        db.session.commit()

    assert client.get('/dashboard').status_code == 403


def test_deactivated_account_is_logged_out(app, client, as_manager):
    with app.app_context():
        db.session.get(User, as_manager).status = 'inactive'
        db.session.commit()

    response = client.get('/dashboard')
    assert response.status_code == 302
    assert '/auth/login' in response.location


def test_logged_in_visitor_skips_login_page(client, as_manager):
    response = client.get('/auth/login')
    assert response.status_code == 302
    assert response.location.endswith('/dashboard')


def test_logout_clears_session(client, as_user):
    client.get('/auth/logout')
    response = client.get('/participants')
    assert response.status_code == 302


class TestPasswordVerification:

    def test_digest_round_trip(self, app):
        with app.app_context():
            digest = hash_password('secret1')
        assert verify_password(digest, 'secret1')
        assert not verify_password(digest, 'secret2')

    def test_plain_text_refused_without_flag(self):
        assert not verify_password('secret1', 'secret1')

    def test_plain_text_accepted_with_flag(self):
        assert verify_password('secret1', 'secret1', allow_plaintext=True)
        assert not verify_password('secret1', 'secret2', allow_plaintext=True)

    def test_legacy_password_is_rehashed_on_login(self, app, client):
        app.config['LEGACY_PLAINTEXT_PASSWORDS'] = True
        with app.app_context():
            user = User(username='legacy', email='legacy@example.org', password_hash='oldpass1', role='user')
            db.session.add(user)
            db.session.commit()
            user_id = user.id

        response = client.post('/auth/login', data={'username': 'legacy', 'password': 'oldpass1'})
        assert response.status_code == 302

        with app.app_context():
            assert is_password_digest(db.session.get(User, user_id).password_hash)
