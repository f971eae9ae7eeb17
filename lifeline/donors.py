import re

from flask import request, jsonify

from lifeline.app import app, db
from lifeline.models import User, Donor, RECEIVE_COMPATIBILITY
from lifeline.eligibility import can_donate, next_eligible_date
from lifeline.helpers import ValidationError, token_required, role_required, get_json, parse_blood_type

RECENT_DONOR_LIMIT = 20

# AB is tried before A and B; spaces are removed first so "a b positive" reads as AB+
BLOOD_GROUP_RE = re.compile(r'(ab|a|b|o)(?:\+|-|plus|positive|minus|negative)', re.IGNORECASE)
LOCATION_RE = re.compile(r'\b(in|at|near|from)\s+(.+)', re.IGNORECASE)
URGENT_RE = re.compile(r'urgent|emergency|critical|accident|help')


def parse_emergency_text(transcript):
    """Pull blood type, location and urgency out of a spoken request."""
    lower_text = transcript.lower()
    blood_type = ''
    location = ''

    match = BLOOD_GROUP_RE.search(re.sub(r'\s+', '', lower_text))
    if match:
        group = match.group(1).upper()
        sign_raw = match.group(0)[len(group):].lower()
        positive = '+' in sign_raw or 'plus' in sign_raw or 'positive' in sign_raw
        blood_type = group + ('+' if positive else '-')

    if not blood_type and 'universal donor' in lower_text:
        blood_type = 'O-'

    loc_match = LOCATION_RE.search(lower_text)
    if loc_match and loc_match.group(2):
        location = re.sub(r'[.,?!]', '', loc_match.group(2)).strip()

    return {
        'blood_type': blood_type,
        'location': location,
        'urgent': bool(URGENT_RE.search(lower_text))
    }


def search_donors(blood_type=None, location=None, compatible=False):
    query = Donor.query.join(User).filter(
        User.is_donor.is_(True),
        Donor.availability_status == 'available',
        Donor.blood_type.isnot(None)
    )

    if blood_type:
        if compatible:
            query = query.filter(Donor.blood_type.in_(RECEIVE_COMPATIBILITY[blood_type]))
        else:
            query = query.filter(Donor.blood_type == blood_type)
    if location:
        query = query.filter(Donor.city.ilike(f"%{location}%"))

    if not blood_type and not location:
        return query.order_by(Donor.created_at.desc()).limit(RECENT_DONOR_LIMIT).all()
    return query.order_by(User.name).all()


def public_donor(donor):
    return {
        'id': donor.id,
        'name': donor.user.name,
        'blood_type': donor.blood_type,
        'city': donor.city,
        'phone': donor.phone,
        'total_donations': donor.total_donations or 0,
        'can_donate_now': can_donate(donor.last_donation)
    }

# ==================== DONOR SEARCH ROUTES ====================

@app.route('/api/donors/search', methods=['GET'])
def search_donors_route():
    try:
        blood_type = request.args.get('blood_type') or None
        if blood_type:
            parse_blood_type(blood_type)
        location = (request.args.get('location') or '').strip() or None
        compatible = request.args.get('compatible', '').lower() in ('1', 'true', 'yes')

        donors = search_donors(blood_type, location, compatible)
        return jsonify({
            'count': len(donors),
            'searched': bool(blood_type or location),
            'donors': [public_donor(d) for d in donors]
        }), 200
    except ValidationError as e:
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Donor search error")
        return jsonify({'message': str(e)}), 500


@app.route('/api/voice/parse', methods=['POST'])
def voice_search():
    try:
        data = get_json()
        transcript = (data.get('transcript') or '').strip()
        if not transcript:
            raise ValidationError('transcript is required')

        parsed = parse_emergency_text(transcript)
        app.logger.info("Voice request parsed: %s", parsed)
        if parsed['urgent']:
            app.logger.warning("Urgent voice request: %s", transcript)

        donors = []
        if parsed['blood_type'] or parsed['location']:
            donors = search_donors(parsed['blood_type'] or None, parsed['location'] or None)

        return jsonify({
            'parsed': parsed,
            'count': len(donors),
            'donors': [public_donor(d) for d in donors]
        }), 200
    except ValidationError as e:
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Voice parse error")
        return jsonify({'message': str(e)}), 500

# ==================== DONOR ROUTES ====================

@app.route('/api/donor/toggle-availability', methods=['POST'])
@token_required
@role_required('user')
def toggle_availability(current_user):
    try:
        donor = current_user.donor_profile
        if not donor:
            return jsonify({'message': 'Donor profile not found'}), 404

        donor.availability_status = 'unavailable' if donor.availability_status == 'available' else 'available'
        db.session.commit()

        return jsonify({
            'message': 'Availability updated',
            'status': donor.availability_status
        }), 200
    except Exception as e:
        app.logger.exception("Availability toggle error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/donor/donations', methods=['GET'])
@token_required
@role_required('user')
def get_my_donations(current_user):
    donor = current_user.donor_profile
    if not donor:
        return jsonify({'donations': [], 'next_eligible_date': None}), 200

    donations = sorted(donor.donations, key=lambda d: d.donated_at, reverse=True)
    next_date = next_eligible_date(donor.last_donation)
    return jsonify({
        'donations': [d.to_dict() for d in donations],
        'next_eligible_date': next_date.isoformat() if next_date else None
    }), 200
