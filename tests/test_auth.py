from tests.conftest import PASSWORD, auth, register, make_hospital, make_organizer


def test_register_user_returns_token_and_dashboard(client):
    resp = client.post('/api/register', json={
        'name': 'Jane Doe',
        'email': 'Jane@Example.com',
        'password': PASSWORD,
        'password_confirm': PASSWORD,
    })
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['role'] == 'user'
    assert body['email'] == 'jane@example.com'
    assert body['redirect'] == '/dashboard'
    assert body['token']


def test_register_rejects_mismatched_passwords(client):
    resp = client.post('/api/register', json={
        'name': 'Jane', 'email': 'jane@example.com',
        'password': PASSWORD, 'password_confirm': 'other',
    })
    assert resp.status_code == 400
    assert resp.get_json()['message'] == 'Passwords do not match'


def test_register_organizer_requires_organization_name(client):
    resp = client.post('/api/register', json={
        'name': 'Org', 'email': 'org@example.com', 'role': 'organizer',
        'password': PASSWORD, 'password_confirm': PASSWORD, 'organization_name': '   ',
    })
    assert resp.status_code == 400
    assert 'organization_name' in resp.get_json()['message']


def test_register_hospital_role_is_redirected(client):
    resp = client.post('/api/register', json={
        'name': 'H', 'email': 'h@example.com', 'role': 'hospital',
        'password': PASSWORD, 'password_confirm': PASSWORD,
    })
    assert resp.status_code == 400
    assert '/api/hospitals/register' in resp.get_json()['message']


def test_register_duplicate_email(client):
    register(client, 'dup@example.com')
    resp = client.post('/api/register', json={
        'name': 'Again', 'email': 'DUP@example.com',
        'password': PASSWORD, 'password_confirm': PASSWORD,
    })
    assert resp.status_code == 409


def test_register_requires_json(client):
    resp = client.post('/api/register', data='not json')
    assert resp.status_code == 400


def test_login_redirects_by_role(client):
    register(client, 'user@example.com')
    make_organizer(client, 'org@example.com')
    make_hospital(client, 'hosp@example.com')

    expected = {
        'user@example.com': '/dashboard',
        'org@example.com': '/organizer',
        'hosp@example.com': '/hospital-dashboard',
    }
    for email, path in expected.items():
        resp = client.post('/api/login', json={'email': email, 'password': PASSWORD})
        assert resp.status_code == 200
        assert resp.get_json()['redirect'] == path


def test_login_bad_credentials(client):
    register(client, 'user@example.com')
    resp = client.post('/api/login', json={'email': 'user@example.com', 'password': 'wrong'})
    assert resp.status_code == 401
    resp = client.post('/api/login', json={'email': 'nobody@example.com', 'password': PASSWORD})
    assert resp.status_code == 401


def test_me_requires_valid_token(client):
    assert client.get('/api/me').status_code == 401
    assert client.get('/api/me', headers=auth('garbage')).status_code == 401

    token = register(client, 'me@example.com', name='Me')
    resp = client.get('/api/me', headers=auth(token))
    assert resp.status_code == 200
    assert resp.get_json()['name'] == 'Me'


def test_role_guard_returns_403(client):
    token = register(client, 'user@example.com')
    resp = client.get('/api/organizer/camps', headers=auth(token))
    assert resp.status_code == 403


def test_empty_bearer_token_is_rejected(client):
    for header in ('Bearer ', 'Bearer', '   '):
        resp = client.get('/api/me', headers={'Authorization': header})
        assert resp.status_code == 401
