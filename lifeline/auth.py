from flask import jsonify

from lifeline.app import app, db, bcrypt
from lifeline.models import User
from lifeline.helpers import (
    ValidationError, create_token, token_required, get_json, require_fields,
    check_passwords, send_email_alert
)

SELF_SERVICE_ROLES = ['user', 'organizer']


def create_user(data, role):
    """Validate credentials and add a new User to the session (not committed)."""
    require_fields(data, 'email')
    check_passwords(data)
    email = data['email'].strip().lower()

    if User.query.filter_by(email=email).first():
        return None

    user = User(
        name=(data.get('name') or '').strip() or None,
        email=email,
        password=bcrypt.generate_password_hash(data['password']).decode('utf-8'),
        role=role
    )
    db.session.add(user)
    return user


def auth_response(user, status):
    return jsonify({
        'token': create_token(user),
        'user_id': user.id,
        'role': user.role,
        'email': user.email,
        'redirect': user.landing_path()
    }), status

# ==================== AUTH ROUTES ====================

@app.route('/api/register', methods=['POST'])
def register():
    try:
        data = get_json()
        role = data.get('role', 'user')

        if role == 'hospital':
            raise ValidationError('Hospitals must register through /api/hospitals/register')
        if role not in SELF_SERVICE_ROLES:
            raise ValidationError(f"Invalid role: {role}")

        require_fields(data, 'name')
        if role == 'organizer':
            require_fields(data, 'organization_name')

        user = create_user(data, role)
        if user is None:
            return jsonify({'message': 'Email already exists'}), 409

        if role == 'organizer':
            user.organization_name = data['organization_name'].strip()

        db.session.commit()
        app.logger.info("Registered %s account %s", role, user.email)

        send_email_alert(
            user.email,
            "Welcome to LifeLine",
            f"Dear {user.name}, your LifeLine account is ready."
        )

        return auth_response(user, 201)
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Registration error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/login', methods=['POST'])
def login():
    try:
        data = get_json()
        require_fields(data, 'email', 'password')
        user = User.query.filter_by(email=data['email'].strip().lower()).first()

        if not user or not bcrypt.check_password_hash(user.password, data['password']):
            return jsonify({'message': 'Invalid credentials'}), 401

        return auth_response(user, 200)
    except ValidationError as e:
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Login error")
        return jsonify({'message': str(e)}), 500


@app.route('/api/me', methods=['GET'])
@token_required
def get_me(current_user):
    return jsonify(current_user.to_dict()), 200
