from tests.conftest import auth, make_hospital, register


def watch(client, email, blood_type, location=None):
    token = register(client, email)
    payload = {'blood_type': blood_type}
    if location:
        payload['location'] = location
    client.post('/api/watchlist', json=payload, headers=auth(token))
    return token


def test_hospital_inventory_updates_stock_and_notifies(client):
    seeker = watch(client, 'seeker@example.com', 'O-', location='new york')
    hospital = make_hospital(client)

    resp = client.post('/api/inventory', json={'blood_type': 'O-', 'quantity': 3}, headers=auth(hospital))
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['item']['location'] == '12 Main St, New York'
    assert body['item']['hospital_name'] == 'City General'
    assert body['notifications']['matched'] == 1

    stock = client.get('/api/hospitals/me/inventory', headers=auth(hospital)).get_json()['blood_stock']
    assert stock['O-'] == 3

    notes = client.get('/api/notifications', headers=auth(seeker)).get_json()
    assert notes[0]['title'] == 'Blood Type Match Found!'
    assert 'O- blood is now available in 12 Main St, New York' in notes[0]['message']


def test_admin_can_record_without_hospital(client, admin_token):
    watch(client, 'seeker@example.com', 'A+')
    resp = client.post('/api/inventory', json={'blood_type': 'A+', 'quantity': 1}, headers=auth(admin_token))
    assert resp.status_code == 400

    resp = client.post('/api/inventory', json={'blood_type': 'A+', 'location': 'Queens', 'quantity': '2'},
                       headers=auth(admin_token))
    assert resp.status_code == 201
    assert resp.get_json()['message'] == 'Added 2 unit(s) of A+ in Queens'
    assert resp.get_json()['notifications']['matched'] == 1


def test_admin_unknown_hospital(client, admin_token):
    resp = client.post('/api/inventory', json={'blood_type': 'A+', 'quantity': 1, 'hospital_id': 999},
                       headers=auth(admin_token))
    assert resp.status_code == 404


def test_quantity_must_be_positive(client):
    hospital = make_hospital(client)
    for qty in (0, -2, 'many'):
        resp = client.post('/api/inventory', json={'blood_type': 'A+', 'quantity': qty}, headers=auth(hospital))
        assert resp.status_code == 400


def test_regular_users_cannot_record(client):
    token = register(client, 'user@example.com')
    resp = client.post('/api/inventory', json={'blood_type': 'A+', 'quantity': 1, 'location': 'X'},
                       headers=auth(token))
    assert resp.status_code == 403


def test_list_inventory_newest_first(client, admin_token):
    for bt in ('A+', 'B+'):
        client.post('/api/inventory', json={'blood_type': bt, 'location': 'Queens', 'quantity': 1},
                    headers=auth(admin_token))
    items = client.get('/api/inventory').get_json()
    assert [i['blood_type'] for i in items] == ['B+', 'A+']
    assert [i['blood_type'] for i in client.get('/api/inventory?blood_type=A%2B').get_json()] == ['A+']
