def test_dashboard_shows_totals(client, as_manager, participant, donation, milestone_type, milestone):
    ada = participant('Ada', 'Lovelace')
    participant('Grace', 'Hopper')
    donation('100', participant_id=ada)
    donation('50.25', donor_name='Friendly Donor')
    milestone(ada, milestone_type())

    response = client.get('/dashboard')
    assert response.status_code == 200
    assert b'<td id="metric-participants">2</td>' in response.data
    assert b'<td id="metric-milestones">1</td>' in response.data
    assert b'$150.25' in response.data
    assert b'Friendly Donor' in response.data


def test_empty_dashboard(client, as_manager):
    response = client.get('/dashboard')
    assert response.status_code == 200
    assert b'$0.00' in response.data


def test_admin_reaches_dashboard(client, make_user, login):
    make_user('root', role='admin')
    login('root')
    assert client.get('/dashboard').status_code == 200
