from flask import request, jsonify

from lifeline.app import app, db
from lifeline.models import Appointment, DonationCamp, Donation, Hospital, Notification, utcnow
from lifeline.eligibility import can_donate, next_eligible_date, get_or_create_donor, award_donation
from lifeline.hospitals import adjust_stock
from lifeline.helpers import (
    ValidationError, token_required, role_required, get_json, require_fields,
    parse_blood_type, parse_date, parse_time, send_email_alert
)

VENUE_TYPES = ['camp', 'hospital']


def get_venue(venue_type, venue_id):
    try:
        venue_id = int(venue_id)
    except (TypeError, ValueError):
        raise ValidationError("venue_id must be an integer")
    if venue_type == 'camp':
        return db.session.get(DonationCamp, venue_id)
    if venue_type == 'hospital':
        return db.session.get(Hospital, venue_id)
    raise ValidationError(f"venue_type must be one of: {', '.join(VENUE_TYPES)}")


def venue_name(venue):
    return venue.camp_name if isinstance(venue, DonationCamp) else venue.hospital_name


def owns_venue(user, appt):
    if appt.venue_type == 'camp' and user.role == 'organizer':
        camp = db.session.get(DonationCamp, appt.venue_id)
        return camp is not None and camp.organizer_id == user.id
    if appt.venue_type == 'hospital' and user.role == 'hospital':
        return user.hospital is not None and user.hospital.id == appt.venue_id
    return False


def venue_appointments(user):
    if user.role == 'organizer':
        camp_ids = [c.id for c in DonationCamp.query.filter_by(organizer_id=user.id).all()]
        if not camp_ids:
            return []
        return Appointment.query.filter(
            Appointment.venue_type == 'camp',
            Appointment.venue_id.in_(camp_ids)
        ).all()
    if user.hospital is None:
        return []
    return Appointment.query.filter_by(venue_type='hospital', venue_id=user.hospital.id).all()


def group_schedule(appointments, view='active', search=''):
    """Split active/past, filter by donor name, group by date ascending."""
    if view == 'active':
        selected = [a for a in appointments if a.status == 'scheduled']
    else:
        selected = [a for a in appointments if a.status != 'scheduled']

    search = (search or '').lower()
    if search:
        selected = [a for a in selected if search in (a.donor_name or '').lower()]

    grouped = {}
    for appt in sorted(selected, key=lambda a: (a.date, a.time or '', a.id)):
        grouped.setdefault(appt.date.isoformat(), []).append(appt.to_dict())
    return [{'date': d, 'appointments': grouped[d]} for d in sorted(grouped)]


def load_owned_scheduled(current_user, appointment_id):
    """Returns (appointment, error_response)."""
    appt = db.session.get(Appointment, appointment_id)
    if not appt or not owns_venue(current_user, appt):
        return None, (jsonify({'message': 'Appointment not found'}), 404)
    if appt.status != 'scheduled':
        return None, (jsonify({'message': f"Appointment is already {appt.status}"}), 409)
    return appt, None

# ==================== APPOINTMENT ROUTES ====================

@app.route('/api/appointments', methods=['POST'])
@token_required
@role_required('user')
def book_appointment(current_user):
    try:
        data = get_json()
        require_fields(data, 'venue_type', 'venue_id')
        venue = get_venue(data['venue_type'], data['venue_id'])
        if venue is None:
            return jsonify({'message': 'Venue not found'}), 404

        if isinstance(venue, DonationCamp):
            date = venue.date
        else:
            require_fields(data, 'date')
            date = parse_date(data['date'])
        if date < utcnow().date():
            raise ValidationError('Cannot book an appointment in the past')

        time = parse_time(data['time']).strftime('%H:%M') if data.get('time') else None

        donor = current_user.donor_profile
        if donor is None or not donor.is_eligible:
            raise ValidationError('Please pass the eligibility quiz before booking')
        if not can_donate(donor.last_donation, date):
            raise ValidationError(
                f"You can donate again from {next_eligible_date(donor.last_donation).isoformat()}"
            )

        existing = Appointment.query.filter_by(
            donor_id=current_user.id,
            venue_type=data['venue_type'],
            venue_id=venue.id,
            date=date,
            status='scheduled'
        ).first()
        if existing:
            return jsonify({'message': 'You already have an appointment at this venue on that date'}), 409

        appt = Appointment(
            donor_id=current_user.id,
            donor_name=current_user.name,
            venue_type=data['venue_type'],
            venue_id=venue.id,
            venue_name=venue_name(venue),
            date=date,
            time=time,
            status='scheduled'
        )
        db.session.add(appt)
        db.session.commit()

        send_email_alert(
            current_user.email,
            "Donation Appointment Confirmed",
            f"Dear {current_user.name}, your donation at {appt.venue_name} on {appt.date.isoformat()} is booked."
        )

        return jsonify({'message': 'Appointment booked', 'appointment': appt.to_dict()}), 201
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Appointment booking error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/appointments/mine', methods=['GET'])
@token_required
@role_required('user')
def get_my_appointments(current_user):
    appts = Appointment.query.filter_by(donor_id=current_user.id).order_by(Appointment.date.desc()).all()
    return jsonify([a.to_dict() for a in appts]), 200


@app.route('/api/venue/appointments', methods=['GET'])
@token_required
@role_required('organizer', 'hospital')
def get_venue_schedule(current_user):
    view = request.args.get('view', 'active')
    if view not in ('active', 'past'):
        return jsonify({'message': 'view must be active or past'}), 400

    schedule = group_schedule(venue_appointments(current_user), view, request.args.get('search', ''))
    return jsonify({'view': view, 'schedule': schedule}), 200


@app.route('/api/appointments/<int:appointment_id>/complete', methods=['POST'])
@token_required
@role_required('organizer', 'hospital')
def complete_appointment(current_user, appointment_id):
    try:
        appt, error = load_owned_scheduled(current_user, appointment_id)
        if error:
            return error

        data = get_json()
        if not data.get('blood_type'):
            raise ValidationError('Please select the collected blood type.')
        blood_type = parse_blood_type(data['blood_type'])

        now = utcnow()
        appt.status = 'completed'
        appt.blood_type = blood_type
        appt.completed_at = now

        donor_user = appt.donor
        donor = get_or_create_donor(donor_user)
        donor_user.is_donor = True
        if not donor.blood_type:
            donor.blood_type = blood_type
        db.session.add(Donation(
            donor=donor,
            appointment_id=appt.id,
            venue_type=appt.venue_type,
            venue_name=appt.venue_name,
            blood_type=blood_type,
            units=1,
            donated_at=now
        ))
        new_badges = award_donation(donor, now)

        if appt.venue_type == 'hospital':
            adjust_stock(current_user.hospital, blood_type, 1)

        db.session.add(Notification(
            user_id=donor_user.id,
            title='Thank You for Your Donation!',
            message=f"Your donation at {appt.venue_name} was recorded. You've earned 100 points!",
            type='donation'
        ))
        db.session.commit()
        app.logger.info("Appointment %s completed (%s)", appt.id, blood_type)

        send_email_alert(
            donor_user.email,
            "Thank You for Your Donation!",
            f"Dear {donor_user.name}, thank you for donating at {appt.venue_name}. "
            f"You now have {donor.total_donations} donation(s)."
        )

        return jsonify({
            'message': 'Donation recorded successfully',
            'appointment': appt.to_dict(),
            'total_donations': donor.total_donations,
            'points': donor.points,
            'new_badges': new_badges
        }), 200
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Appointment completion error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/appointments/<int:appointment_id>/no-show', methods=['POST'])
@token_required
@role_required('organizer', 'hospital')
def mark_appointment_no_show(current_user, appointment_id):
    try:
        appt, error = load_owned_scheduled(current_user, appointment_id)
        if error:
            return error

        appt.status = 'no-show'
        db.session.commit()
        return jsonify({'message': 'Marked as No-Show', 'appointment': appt.to_dict()}), 200
    except Exception as e:
        app.logger.exception("No-show update error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500
