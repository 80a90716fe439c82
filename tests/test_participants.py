from ellarises.models import db, Participant, Milestone

NEW_PARTICIPANT = {
    'email': 'grace@example.org',
    'first_name': 'Grace',
    'last_name': 'Hopper',
    'date_of_birth': '2008-12-09',
    'city': 'Provo',
}


def test_manager_creates_participant(app, client, as_manager):
    response = client.post('/participants', data=NEW_PARTICIPANT)
    assert response.status_code == 302
    assert 'success=' in response.location

    with app.app_context():
        participant = Participant.query.filter_by(email='grace@example.org').one()
        assert participant.full_name == 'Grace Hopper'
        assert participant.date_of_birth.year == 2008
        assert participant.phone is None


def test_missing_required_fields_rerender_form(app, client, as_manager):
    response = client.post('/participants', data={'email': 'grace@example.org', 'first_name': 'Grace'})
    assert response.status_code == 200
    assert b'Email, first name and last name are required.' in response.data
    assert b'value="grace@example.org"' in response.data
    with app.app_context():
        assert Participant.query.count() == 0


def test_malformed_date_is_a_validation_error(client, as_manager):
    response = client.post('/participants', data=dict(NEW_PARTICIPANT, date_of_birth='12/09/2008'))
    assert response.status_code == 200
    assert b'Date of birth must be a date' in response.data


def test_duplicate_email_is_rejected(app, client, as_manager, participant):
    participant('Grace', 'Hopper', email='grace@example.org')
    response = client.post('/participants', data=NEW_PARTICIPANT)
    assert response.status_code == 200
    assert b'A participant with this email already exists.' in response.data
    with app.app_context():
        assert Participant.query.count() == 1


def test_update_participant(app, client, as_manager, participant):
    participant_id = participant('Grace', 'Hopper', email='grace@example.org')
    response = client.post(f'/participants/{participant_id}', data=dict(NEW_PARTICIPANT, city='Orem'))
    assert response.status_code == 302
    with app.app_context():
        assert db.session.get(Participant, participant_id).city == 'Orem'


def test_update_to_taken_email_keeps_row(app, client, as_manager, participant):
    participant('Ada', 'Lovelace', email='ada@example.org')
    grace_id = participant('Grace', 'Hopper', email='grace@example.org')
    response = client.post(f'/participants/{grace_id}', data=dict(NEW_PARTICIPANT, email='ada@example.org'))
    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(Participant, grace_id).email == 'grace@example.org'


def test_delete_unreferenced_participant(app, client, as_manager, participant):
    participant_id = participant()
    response = client.post(f'/participants/{participant_id}/delete')
    assert response.status_code == 302
    assert 'success=' in response.location
    with app.app_context():
        assert db.session.get(Participant, participant_id) is None


def test_delete_participant_with_milestone_fails(app, client, as_manager, participant, milestone_type, milestone):
    participant_id = participant()
    milestone_id = milestone(participant_id, milestone_type())

    response = client.post(f'/participants/{participant_id}/delete')
    assert response.status_code == 302
    assert 'error=' in response.location

    with app.app_context():
        assert db.session.get(Participant, participant_id) is not None
        assert db.session.get(Milestone, milestone_id) is not None


def test_detail_lists_related_records(client, as_user, participant, milestone_type, milestone, donation):
    participant_id = participant()
    milestone(participant_id, milestone_type('College Acceptance'))
    donation('40.00', participant_id=participant_id)

    response = client.get(f'/participants/{participant_id}')
    assert response.status_code == 200
    assert b'College Acceptance' in response.data
    assert b'$40.00' in response.data


def test_unknown_participant_is_404(client, as_user):
    assert client.get('/participants/999').status_code == 404


def test_list_search_and_bad_page(client, as_user, participant):
    participant('Ada', 'Lovelace')
    participant('Grace', 'Hopper')

    response = client.get('/participants?search=%20%20grace%20&page=-2')
    assert response.status_code == 200
    assert b'Grace Hopper' in response.data
    assert b'Ada Lovelace' not in response.data
