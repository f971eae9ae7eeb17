from datetime import datetime, date, timedelta

import pytest

from lifeline.eligibility import evaluate_eligibility, can_donate, award_donation
from lifeline.models import Donor
from tests.conftest import auth, register

OK = dict(age=30, weight=70, has_tattoo=False, has_fever=False, on_medication=False)


def test_eligible_donor_passes():
    assert evaluate_eligibility(**OK) == (True, '')


@pytest.mark.parametrize('change, reason', [
    ({'age': 17}, 'Donors must be between 18 and 65 years old.'),
    ({'age': 66}, 'Donors must be between 18 and 65 years old.'),
    ({'weight': 50}, 'Donors must weigh more than 50kg.'),
    ({'has_tattoo': True}, 'You must wait 6 months after getting a tattoo or piercing.'),
    ({'has_fever': True}, 'You cannot donate while you have a fever or flu symptoms.'),
    ({'on_medication': True}, 'Certain medications may prevent you from donating. Please consult a doctor.'),
])
def test_each_rule_fails_with_its_reason(change, reason):
    eligible, why = evaluate_eligibility(**dict(OK, **change))
    assert not eligible
    assert why == reason


def test_first_failing_rule_wins():
    eligible, why = evaluate_eligibility(age=16, weight=40, has_tattoo=True, has_fever=True, on_medication=True)
    assert not eligible
    assert why.startswith('Donors must be between')


def test_age_bounds_are_inclusive():
    assert evaluate_eligibility(**dict(OK, age=18))[0]
    assert evaluate_eligibility(**dict(OK, age=65))[0]


def test_donation_interval():
    last = datetime(2026, 1, 1, 10, 0)
    assert can_donate(None)
    assert not can_donate(last, date(2026, 2, 25))
    assert can_donate(last, date(2026, 2, 26))


def test_award_donation_grants_badges_once():
    donor = Donor(total_donations=4, points=0, badges='["first_hero"]')
    new = award_donation(donor)
    assert donor.total_donations == 5
    assert donor.points == 100
    assert new == ['bronze_saver']
    assert donor.badge_list() == ['first_hero', 'bronze_saver']


def test_quiz_endpoint_persists_result(client):
    token = register(client, 'quiz@example.com')
    resp = client.post('/api/donor/eligibility', json=dict(OK, has_fever=True), headers=auth(token))
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['result'] == 'failed'
    assert 'fever' in body['reason']

    profile = client.get('/api/profile', headers=auth(token)).get_json()
    assert profile['is_donor'] is True
    assert profile['donor_profile']['is_eligible'] is False

    resp = client.post('/api/donor/eligibility', json=OK, headers=auth(token))
    assert resp.get_json()['eligible'] is True
    profile = client.get('/api/profile', headers=auth(token)).get_json()
    assert profile['donor_profile']['is_eligible'] is True


def test_quiz_requires_all_answers(client):
    token = register(client, 'quiz@example.com')
    resp = client.post('/api/donor/eligibility', json={'age': 30, 'weight': 70}, headers=auth(token))
    assert resp.status_code == 400
    assert 'has_tattoo' in resp.get_json()['message']

    resp = client.post('/api/donor/eligibility', json=dict(OK, has_fever='no'), headers=auth(token))
    assert resp.status_code == 400


@pytest.mark.parametrize('value', ['nan', 'inf', '-inf'])
def test_quiz_rejects_non_finite_numbers(client, value):
    token = register(client, 'quiz@example.com')
    resp = client.post('/api/donor/eligibility', json=dict(OK, age=value), headers=auth(token))
    assert resp.status_code == 400
    assert resp.get_json()['message'] == 'age and weight must be numbers'

    resp = client.post('/api/donor/eligibility', json=dict(OK, weight=value), headers=auth(token))
    assert resp.status_code == 400
