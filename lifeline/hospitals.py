from flask import request, jsonify

from lifeline.app import app, db
from lifeline.auth import create_user, auth_response
from lifeline.models import Hospital, BloodStock, BLOOD_TYPES, utcnow
from lifeline.helpers import (
    ValidationError, token_required, role_required, get_json, require_fields,
    parse_blood_type, parse_location, calculate_distance, send_email_alert
)

LOW_STOCK_UNITS = 5
GOOD_TOTAL_UNITS = 10


def stock_level(units):
    if units <= 0:
        return 'out'
    if units < LOW_STOCK_UNITS:
        return 'low'
    return 'ok'


def marker_level(stock):
    return 'good' if sum(stock.values()) >= GOOD_TOTAL_UNITS else 'critical'


def adjust_stock(hospital, blood_type, change):
    """Apply a +/- change to one blood type; stock never goes below zero."""
    row = BloodStock.query.filter_by(hospital_id=hospital.id, blood_type=blood_type).first()
    if row is None:
        row = BloodStock(hospital=hospital, blood_type=blood_type, units=0)
        db.session.add(row)

    new_units = (row.units or 0) + change
    if new_units < 0:
        raise ValidationError(f"Not enough {blood_type} stock: {row.units} unit(s) available")
    row.units = new_units
    row.last_updated = utcnow()
    return row


def map_entry(hospital, origin=None):
    data = hospital.to_dict()
    stock = data['blood_stock']
    data['total_units'] = sum(stock.values())
    data['marker'] = marker_level(stock)
    data['directions_url'] = (
        f"https://www.google.com/maps/dir/?api=1&destination={hospital.latitude},{hospital.longitude}"
    )
    if origin:
        data['distance_km'] = round(calculate_distance(origin[0], origin[1], hospital.latitude, hospital.longitude), 2)
    return data

# ==================== HOSPITAL ROUTES ====================

@app.route('/api/hospitals/register', methods=['POST'])
def register_hospital():
    try:
        data = get_json()
        require_fields(data, 'hospital_name', 'license_id', 'address')
        if not data.get('location'):
            raise ValidationError('Please search or click on the map to set the hospital location.')
        lat, lng = parse_location(data['location'])

        user = create_user(data, 'hospital')
        if user is None:
            return jsonify({'message': 'Email already exists'}), 409
        user.name = data['hospital_name'].strip()

        hospital = Hospital(
            user=user,
            hospital_name=data['hospital_name'].strip(),
            license_id=data['license_id'].strip(),
            address=data['address'].strip(),
            phone_number=data.get('phone') or None,
            latitude=lat,
            longitude=lng
        )
        db.session.add(hospital)
        for bt in BLOOD_TYPES:
            db.session.add(BloodStock(hospital=hospital, blood_type=bt, units=0))

        db.session.commit()
        app.logger.info("Registered hospital %s (%s)", hospital.hospital_name, hospital.license_id)

        send_email_alert(
            user.email,
            "Hospital Registered",
            f"{hospital.hospital_name} is now listed on LifeLine. Keep your inventory up to date from the dashboard."
        )

        return auth_response(user, 201)
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Hospital registration error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/hospitals/me/inventory', methods=['GET'])
@token_required
@role_required('hospital')
def get_hospital_inventory(current_user):
    hospital = current_user.hospital
    if not hospital:
        return jsonify({'message': 'Hospital inventory not found'}), 404

    data = hospital.to_dict()
    data['levels'] = {bt: stock_level(units) for bt, units in data['blood_stock'].items()}
    return jsonify(data), 200


@app.route('/api/hospitals/me/stock', methods=['POST'])
@token_required
@role_required('hospital')
def update_hospital_stock(current_user):
    try:
        hospital = current_user.hospital
        if not hospital:
            return jsonify({'message': 'Hospital inventory not found'}), 404

        data = get_json()
        require_fields(data, 'blood_type', 'change')
        blood_type = parse_blood_type(data['blood_type'])
        change = data['change']
        if not isinstance(change, int) or isinstance(change, bool) or change == 0:
            raise ValidationError('change must be a non-zero integer')

        row = adjust_stock(hospital, blood_type, change)
        db.session.commit()

        return jsonify({
            'blood_type': blood_type,
            'units': row.units,
            'level': stock_level(row.units),
            'last_updated': row.last_updated.isoformat()
        }), 200
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Stock update error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/hospitals', methods=['GET'])
def list_hospitals():
    try:
        origin = None
        radius_km = None
        if request.args.get('lat') is not None or request.args.get('lng') is not None:
            origin = parse_location({'lat': request.args.get('lat'), 'lng': request.args.get('lng')})
            radius_km = request.args.get('radius_km', type=float)

        entries = [map_entry(h, origin) for h in Hospital.query.order_by(Hospital.hospital_name).all()]
        if origin:
            if radius_km is not None:
                entries = [e for e in entries if e['distance_km'] <= radius_km]
            entries.sort(key=lambda e: e['distance_km'])

        return jsonify(entries), 200
    except ValidationError as e:
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Hospital listing error")
        return jsonify({'message': str(e)}), 500
