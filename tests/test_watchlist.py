from tests.conftest import auth, register


def test_add_list_and_remove(client):
    token = register(client, 'seeker@example.com')

    resp = client.post('/api/watchlist', json={'blood_type': 'B-', 'location': ' Queens '}, headers=auth(token))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['message'] == 'You will be notified when B- becomes available in Queens.'
    entry_id = body['watchlist']['id']

    client.post('/api/watchlist', json={'blood_type': 'O+'}, headers=auth(token))

    entries = client.get('/api/watchlist', headers=auth(token)).get_json()
    assert [e['blood_type'] for e in entries] == ['O+', 'B-']
    assert entries[0]['location'] == ''

    assert client.delete(f'/api/watchlist/{entry_id}', headers=auth(token)).status_code == 200
    entries = client.get('/api/watchlist', headers=auth(token)).get_json()
    assert [e['blood_type'] for e in entries] == ['O+']


def test_blood_type_required_and_valid(client):
    token = register(client, 'seeker@example.com')
    assert client.post('/api/watchlist', json={'location': 'Queens'}, headers=auth(token)).status_code == 400
    assert client.post('/api/watchlist', json={'blood_type': 'Z+'}, headers=auth(token)).status_code == 400


def test_requires_login(client):
    assert client.post('/api/watchlist', json={'blood_type': 'A+'}).status_code == 401


def test_cannot_remove_someone_elses_entry(client):
    owner = register(client, 'owner@example.com')
    other = register(client, 'other@example.com')
    entry_id = client.post('/api/watchlist', json={'blood_type': 'A+'}, headers=auth(owner)).get_json()['watchlist']['id']

    assert client.delete(f'/api/watchlist/{entry_id}', headers=auth(other)).status_code == 404
    assert len(client.get('/api/watchlist', headers=auth(owner)).get_json()) == 1
