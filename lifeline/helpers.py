from datetime import datetime, timedelta
from functools import wraps
from math import radians, sin, cos, sqrt, atan2

from flask import request, jsonify, current_app
from flask_mail import Message
import jwt

from lifeline.app import db, mail
from lifeline.models import User, BLOOD_TYPES, utcnow


class ValidationError(Exception):
    """Bad client input; routes answer 400 with the message."""


# ==================== AUTH ====================

def create_token(user):
    return jwt.encode({
        'user_id': user.id,
        'role': user.role,
        'exp': utcnow() + timedelta(days=current_app.config['TOKEN_TTL_DAYS'])
    }, current_app.config['SECRET_KEY'], algorithm='HS256')


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        token = request.headers.get('Authorization')
        if not token:
            return jsonify({'message': 'Token missing'}), 401

        try:
            parts = token.split()
            token = parts[-1] if parts else ''
            if not token:
                raise jwt.InvalidTokenError('empty bearer token')
            data = jwt.decode(token, current_app.config['SECRET_KEY'], algorithms=['HS256'])
        except jwt.InvalidTokenError as e:
            current_app.logger.info("Rejected token: %s", e)
            return jsonify({'message': 'Invalid token'}), 401

        current_user = db.session.get(User, data['user_id']) if data.get('user_id') else None
        if not current_user:
            return jsonify({'message': 'User not found'}), 401

        return f(current_user, *args, **kwargs)

    return decorated


def role_required(*roles):
    """Must sit below @token_required."""
    def wrapper(f):
        @wraps(f)
        def decorated(current_user, *args, **kwargs):
            if current_user.role not in roles:
                return jsonify({'message': f"{' or '.join(r.capitalize() for r in roles)} access required"}), 403
            return f(current_user, *args, **kwargs)
        return decorated
    return wrapper


# ==================== INPUT ====================

def get_json():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('JSON body required')
    return data


def require_fields(data, *fields):
    missing = [f for f in fields if data.get(f) in (None, '') or (isinstance(data.get(f), str) and not data[f].strip())]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_blood_type(value):
    if value not in BLOOD_TYPES:
        raise ValidationError(f"Invalid blood type: {value}")
    return value


def parse_date(value, field='date'):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be YYYY-MM-DD")


def parse_time(value, field='time'):
    try:
        return datetime.strptime(value, '%H:%M').time()
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be HH:MM")


def parse_location(value):
    """{'lat': .., 'lng': ..} -> (lat, lng)"""
    if not isinstance(value, dict):
        raise ValidationError('location with lat and lng is required')
    try:
        lat = float(value['lat'])
        lng = float(value['lng'])
    except (KeyError, TypeError, ValueError):
        raise ValidationError('location with lat and lng is required')
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValidationError('location is out of range')
    return lat, lng


def check_passwords(data):
    require_fields(data, 'password', 'password_confirm')
    if data['password'] != data['password_confirm']:
        raise ValidationError('Passwords do not match')


# ==================== ALERTS ====================

def send_email_alert(to_email, subject, body):
    """Send email, or log it when mail is not configured"""
    if current_app.config.get('MAIL_USERNAME') or current_app.config.get('MAIL_SUPPRESS_SEND'):
        try:
            msg = Message(subject, recipients=[to_email])
            msg.body = body
            msg.html = f"<html><body><div style='padding:20px;'><h2>{subject}</h2><p>{body}</p></div></body></html>"
            mail.send(msg)
            current_app.logger.info("Email sent to %s", to_email)
            return True
        except Exception:
            current_app.logger.exception("Email to %s failed", to_email)
            return False

    current_app.logger.info("EMAIL TO: %s | SUBJECT: %s | BODY: %s", to_email, subject, body)
    return True


def calculate_distance(lat1, lon1, lat2, lon2):
    """Haversine formula for distance calculation"""
    R = 6371
    lat1, lon1, lat2, lon2 = map(radians, [lat1, lon1, lat2, lon2])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat/2)**2 + cos(lat1) * cos(lat2) * sin(dlon/2)**2
    c = 2 * atan2(sqrt(a), sqrt(1-a))
    return R * c
