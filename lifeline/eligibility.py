"""
Donor eligibility: the five-question screening quiz, the minimum interval
between donations, and the points/badges awarded per donation.
"""
from datetime import timedelta
import json
import math

from flask import jsonify

from lifeline.app import app, db
from lifeline.models import Donor, utcnow
from lifeline.helpers import ValidationError, token_required, role_required, get_json

MIN_AGE = 18
MAX_AGE = 65
MIN_WEIGHT_KG = 50
DONATION_INTERVAL_DAYS = 56
POINTS_PER_DONATION = 100

QUIZ_FIELDS = ['age', 'weight', 'has_tattoo', 'has_fever', 'on_medication']

BADGES = [
    (1, 'first_hero'),
    (5, 'bronze_saver'),
    (10, 'silver_guardian'),
    (25, 'gold_champion'),
]


def evaluate_eligibility(age, weight, has_tattoo, has_fever, on_medication):
    """Returns (eligible, reason). The first failing rule decides the reason."""
    if age < MIN_AGE or age > MAX_AGE:
        return False, "Donors must be between 18 and 65 years old."
    if weight <= MIN_WEIGHT_KG:
        return False, "Donors must weigh more than 50kg."
    if has_tattoo:
        return False, "You must wait 6 months after getting a tattoo or piercing."
    if has_fever:
        return False, "You cannot donate while you have a fever or flu symptoms."
    if on_medication:
        return False, "Certain medications may prevent you from donating. Please consult a doctor."
    return True, ''


def parse_quiz_answers(data):
    missing = [f for f in QUIZ_FIELDS if data.get(f) is None or data.get(f) == '']
    if missing:
        raise ValidationError(f"Missing answers: {', '.join(missing)}")

    try:
        age = float(data['age'])
        weight = float(data['weight'])
    except (TypeError, ValueError):
        raise ValidationError('age and weight must be numbers')
    if not (math.isfinite(age) and math.isfinite(weight)):
        raise ValidationError('age and weight must be numbers')

    flags = {}
    for key in ('has_tattoo', 'has_fever', 'on_medication'):
        if not isinstance(data[key], bool):
            raise ValidationError(f"{key} must be true or false")
        flags[key] = data[key]

    return dict(age=age, weight=weight, **flags)


def next_eligible_date(last_donation):
    if not last_donation:
        return None
    return (last_donation + timedelta(days=DONATION_INTERVAL_DAYS)).date()


def can_donate(last_donation, on_date=None):
    if not last_donation:
        return True
    on_date = on_date or utcnow().date()
    return on_date >= next_eligible_date(last_donation)


def get_or_create_donor(user):
    donor = user.donor_profile
    if donor is None:
        donor = Donor(user=user, badges='[]', total_donations=0, points=0)
        db.session.add(donor)
    return donor


def award_donation(donor, when=None):
    """Bump totals and points for one completed donation; returns new badges."""
    donor.last_donation = when or utcnow()
    donor.total_donations = (donor.total_donations or 0) + 1
    donor.points = (donor.points or 0) + POINTS_PER_DONATION

    badges = donor.badge_list()
    earned = []
    for threshold, badge in BADGES:
        if donor.total_donations >= threshold and badge not in badges:
            badges.append(badge)
            earned.append(badge)
    donor.badges = json.dumps(badges)
    return earned

# ==================== ELIGIBILITY ROUTES ====================

@app.route('/api/donor/eligibility', methods=['POST'])
@token_required
@role_required('user')
def submit_eligibility_quiz(current_user):
    try:
        answers = parse_quiz_answers(get_json())
        eligible, reason = evaluate_eligibility(**answers)

        donor = get_or_create_donor(current_user)
        donor.is_eligible = eligible
        donor.eligibility_checked_at = utcnow()
        current_user.is_donor = True
        db.session.commit()

        app.logger.info("Eligibility quiz for user %s: %s", current_user.id, 'passed' if eligible else 'failed')
        return jsonify({
            'result': 'passed' if eligible else 'failed',
            'eligible': eligible,
            'reason': reason
        }), 200
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Eligibility quiz error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500
