from flask import jsonify

from lifeline.app import app, db
from lifeline.eligibility import get_or_create_donor
from lifeline.helpers import ValidationError, token_required, get_json, parse_blood_type

# ==================== PROFILE ROUTES ====================

@app.route('/api/profile', methods=['GET'])
@token_required
def get_profile(current_user):
    return jsonify(current_user.to_dict()), 200


@app.route('/api/profile', methods=['PUT'])
@token_required
def update_profile(current_user):
    try:
        data = get_json()

        if 'name' in data:
            name = (data.get('name') or '').strip()
            if not name:
                raise ValidationError('Name cannot be empty')
            current_user.name = name

        if current_user.role == 'hospital':
            if 'phone' in data:
                # the hospital record is what the public map reads
                current_user.hospital.phone_number = data.get('phone') or None
        elif current_user.is_donor or data.get('become_donor'):
            donor = get_or_create_donor(current_user)
            current_user.is_donor = True
            if 'phone' in data:
                donor.phone = data.get('phone') or None
            if 'city' in data:
                donor.city = (data.get('city') or '').strip() or None
            if data.get('blood_type'):
                donor.blood_type = parse_blood_type(data['blood_type'])

        db.session.commit()
        return jsonify({'message': 'Profile updated successfully', 'profile': current_user.to_dict()}), 200
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Profile update error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/profile/fcm-token', methods=['PUT'])
@token_required
def register_push_token(current_user):
    try:
        data = get_json()
        current_user.fcm_token = (data.get('token') or '').strip() or None
        db.session.commit()
        return jsonify({
            'message': 'Push token saved' if current_user.fcm_token else 'Push token cleared'
        }), 200
    except ValidationError as e:
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Push token update error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500
