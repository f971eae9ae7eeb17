from flask import request, jsonify

from lifeline.app import app, db
from lifeline.models import DonationCamp, utcnow
from lifeline.helpers import (
    ValidationError, token_required, role_required, get_json, require_fields,
    parse_date, parse_time, parse_location
)

CAMP_FIELDS = ['camp_name', 'organizer_name', 'contact', 'address', 'date', 'start_time', 'end_time']


def upcoming_camps(organizer_id=None):
    query = DonationCamp.query.filter(DonationCamp.date >= utcnow().date())
    if organizer_id is not None:
        query = query.filter_by(organizer_id=organizer_id)
    return query.order_by(DonationCamp.date, DonationCamp.start_time).all()

# ==================== CAMP ROUTES ====================

@app.route('/api/camps', methods=['POST'])
@token_required
@role_required('organizer')
def add_donation_camp(current_user):
    try:
        data = get_json()
        require_fields(data, *CAMP_FIELDS)
        lat, lng = parse_location(data.get('location'))

        start_time = parse_time(data['start_time'], 'start_time')
        end_time = parse_time(data['end_time'], 'end_time')
        if end_time <= start_time:
            raise ValidationError('end_time must be after start_time')

        camp = DonationCamp(
            organizer_id=current_user.id,
            camp_name=data['camp_name'].strip(),
            organizer_name=data['organizer_name'].strip(),
            contact=data['contact'].strip(),
            address=data['address'].strip(),
            date=parse_date(data['date']),
            start_time=start_time,
            end_time=end_time,
            latitude=lat,
            longitude=lng
        )
        db.session.add(camp)
        db.session.commit()
        app.logger.info("Organizer %s published camp %s on %s", current_user.id, camp.camp_name, camp.date)

        return jsonify({'message': 'Donation camp added successfully!', 'camp': camp.to_dict()}), 201
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Camp creation error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/camps', methods=['GET'])
def get_donation_camps():
    return jsonify([c.to_dict() for c in upcoming_camps()]), 200


@app.route('/api/organizer/camps', methods=['GET'])
@token_required
@role_required('organizer')
def get_organizer_camps(current_user):
    if request.args.get('all') in ('1', 'true'):
        camps = DonationCamp.query.filter_by(
            organizer_id=current_user.id
        ).order_by(DonationCamp.date.desc()).all()
    else:
        camps = upcoming_camps(current_user.id)
    return jsonify([c.to_dict() for c in camps]), 200
