from datetime import datetime

from ellarises.models import db, EventTemplate, EventOccurrence, Registration


def test_manager_creates_event(app, client, as_manager):
    response = client.post('/events', data={
        'name': 'Coding Summit',
        'event_type': 'Summit',
        'default_capacity': '40',
    })
    assert response.status_code == 302
    with app.app_context():
        event = EventTemplate.query.filter_by(name='Coding Summit').one()
        assert event.default_capacity == 40


def test_unknown_event_type_is_rejected(app, client, as_manager):
    response = client.post('/events', data={'name': 'Party', 'event_type': 'Rave'})
    assert response.status_code == 200
    assert b'Unknown event type.' in response.data


def test_negative_capacity_is_rejected(client, as_manager):
    response = client.post('/events', data={'name': 'Party', 'event_type': 'Social', 'default_capacity': '-1'})
    assert response.status_code == 200
    assert b'Default capacity must be at least 0.' in response.data


def test_duplicate_event_name(client, as_manager, occurrence):
    occurrence('Robotics Workshop')
    response = client.post('/events', data={'name': 'Robotics Workshop', 'event_type': 'Workshop'})
    assert response.status_code == 200
    assert b'An event with this name already exists.' in response.data


def test_list_filters_by_type(client, as_user, occurrence):
    occurrence('Robotics Workshop', 'Workshop')
    occurrence('Spring Social', 'Social')

    response = client.get('/events?type=Social')
    assert b'Spring Social' in response.data
    assert b'Robotics Workshop' not in response.data

    response = client.get('/events?type=Unknown')
    assert b'Spring Social' in response.data
    assert b'Robotics Workshop' in response.data


def test_schedule_occurrence(app, client, as_manager, add):
    event_id = add(EventTemplate(name='Mentor Night', event_type='Mentoring', default_capacity=12))

    form = client.get(f'/events/{event_id}/occurrences/new')
    assert b'value="12"' in form.data

    response = client.post(f'/events/{event_id}/occurrences', data={
        'starts_at': '2025-04-01T18:00',
        'ends_at': '2025-04-01T20:00',
        'capacity': '12',
        'location': 'Library',
    })
    assert response.status_code == 302
    with app.app_context():
        occurrence = EventOccurrence.query.filter_by(template_id=event_id).one()
        assert occurrence.starts_at == datetime(2025, 4, 1, 18, 0)


def test_occurrence_cannot_end_before_it_starts(client, as_manager, add):
    event_id = add(EventTemplate(name='Mentor Night', event_type='Mentoring'))
    response = client.post(f'/events/{event_id}/occurrences', data={
        'starts_at': '2025-04-01T18:00',
        'ends_at': '2025-04-01T17:00',
    })
    assert response.status_code == 200
    assert b'The event cannot end before it starts.' in response.data


def test_register_participant_and_mark_attendance(app, client, as_manager, occurrence, participant):
    occurrence_id = occurrence()
    participant_id = participant()

    response = client.post(f'/events/occurrences/{occurrence_id}/registrations',
                           data={'participant_id': str(participant_id)})
    assert 'success=' in response.location

    response = client.post(f'/events/occurrences/{occurrence_id}/registrations',
                           data={'participant_id': str(participant_id)})
    assert 'error=' in response.location

    with app.app_context():
        registration = Registration.query.one()
        registration_id = registration.id
        assert registration.attendance_status == 'registered'

    client.post(f'/events/registrations/{registration_id}', data={'attendance_status': 'attended'})
    with app.app_context():
        assert db.session.get(Registration, registration_id).attendance_status == 'attended'

    assert client.post(f'/events/registrations/{registration_id}',
                       data={'attendance_status': 'maybe'}).status_code == 400


def test_full_occurrence_refuses_registration(app, client, as_manager, occurrence, participant, registration):
    occurrence_id = occurrence(capacity=1)
    registration(participant('Ada', 'Lovelace'), occurrence_id)
    late = participant('Grace', 'Hopper')

    response = client.post(f'/events/occurrences/{occurrence_id}/registrations',
                           data={'participant_id': str(late)})
    assert 'error=' in response.location
    with app.app_context():
        assert Registration.query.count() == 1


def test_delete_event_with_occurrences_fails(app, client, as_manager, occurrence):
    occurrence_id = occurrence()
    with app.app_context():
        event_id = db.session.get(EventOccurrence, occurrence_id).template_id

    response = client.post(f'/events/{event_id}/delete')
    assert 'error=' in response.location
    with app.app_context():
        assert db.session.get(EventTemplate, event_id) is not None


def test_occurrence_detail_lists_registrations(client, as_user, occurrence, participant, registration):
    occurrence_id = occurrence()
    registration(participant('Ada', 'Lovelace'), occurrence_id)

    response = client.get(f'/events/occurrences/{occurrence_id}')
    assert response.status_code == 200
    assert b'Ada Lovelace' in response.data


def test_oversized_capacity_is_rejected(client, as_manager):
    response = client.post('/events', data={
        'name': 'Party',
        'event_type': 'Social',
        'default_capacity': '99999999999999999999999',
    })
    assert response.status_code == 200
    assert b'Default capacity must be at most 2147483647.' in response.data


def test_start_with_utc_offset_is_stored_as_utc(app, client, as_manager, add):
    event_id = add(EventTemplate(name='Mentor Night', event_type='Mentoring'))
    response = client.post(f'/events/{event_id}/occurrences', data={
        'starts_at': '2025-01-01T10:00+02:00',
        'ends_at': '2025-01-01T11:00',
    })
    assert response.status_code == 302
    with app.app_context():
        occurrence = EventOccurrence.query.filter_by(template_id=event_id).one()
        assert occurrence.starts_at == datetime(2025, 1, 1, 8, 0)
        assert occurrence.ends_at == datetime(2025, 1, 1, 11, 0)


def test_offset_start_after_naive_end_is_rejected(client, as_manager, add):
    event_id = add(EventTemplate(name='Mentor Night', event_type='Mentoring'))
    response = client.post(f'/events/{event_id}/occurrences', data={
        'starts_at': '2025-01-01T10:00-05:00',
        'ends_at': '2025-01-01T11:00',
    })
    assert response.status_code == 200
    assert b'The event cannot end before it starts.' in response.data
