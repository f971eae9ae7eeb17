import os

os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['SECRET_KEY'] = 'test-secret'
os.environ['MAIL_SUPPRESS_SEND'] = 'true'
os.environ['FIREBASE_CREDENTIALS'] = ''

from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402

from lifeline.app import app as flask_app, db, seed_admin  # noqa: E402
from lifeline.models import utcnow  # noqa: E402

PASSWORD = 'Secret@123'


@pytest.fixture
def app():
    flask_app.config['TESTING'] = True
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def auth(token):
    return {'Authorization': f'Bearer {token}'}


def future(days=7):
    return (utcnow().date() + timedelta(days=days)).isoformat()


def register(client, email, name='Test User', role='user', **extra):
    payload = {
        'name': name,
        'email': email,
        'password': PASSWORD,
        'password_confirm': PASSWORD,
        'role': role,
    }
    payload.update(extra)
    resp = client.post('/api/register', json=payload)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['token']


def make_donor(client, email, name='Donor', blood_type='O+', city='New York', eligible=True):
    token = register(client, email, name=name)
    answers = {
        'age': 30 if eligible else 16,
        'weight': 70,
        'has_tattoo': False,
        'has_fever': False,
        'on_medication': False,
    }
    assert client.post('/api/donor/eligibility', json=answers, headers=auth(token)).status_code == 200
    resp = client.put('/api/profile', json={'blood_type': blood_type, 'city': city, 'phone': '555-0100'},
                      headers=auth(token))
    assert resp.status_code == 200, resp.get_json()
    return token


def make_hospital(client, email='hospital@example.com', name='City General', address='12 Main St, New York',
                  lat=40.7128, lng=-74.0060):
    resp = client.post('/api/hospitals/register', json={
        'email': email,
        'password': PASSWORD,
        'password_confirm': PASSWORD,
        'hospital_name': name,
        'license_id': 'LIC-001',
        'address': address,
        'location': {'lat': lat, 'lng': lng},
    })
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['token']


def make_organizer(client, email='organizer@example.com'):
    return register(client, email, name='Org Person', role='organizer', organization_name='Red Cross NY')


def make_camp(client, token, date=None, name='City Center Blood Drive'):
    resp = client.post('/api/camps', json={
        'camp_name': name,
        'organizer_name': 'Red Cross NY',
        'contact': '+1 234 567 8900',
        'address': '123 Main St, New York',
        'date': date or future(),
        'start_time': '09:00',
        'end_time': '17:00',
        'location': {'lat': 40.71, 'lng': -74.0},
    }, headers=auth(token))
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['camp']


@pytest.fixture
def admin_token(app, client):
    seed_admin()
    resp = client.post('/api/login', json={
        'email': app.config['ADMIN_EMAIL'],
        'password': app.config['ADMIN_PASSWORD'],
    })
    return resp.get_json()['token']
