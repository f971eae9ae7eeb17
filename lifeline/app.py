"""
LifeLine - blood donor, seeker, hospital and camp organizer platform
JSON API over SQLAlchemy with JWT auth, email alerts and FCM push
"""
from flask import Flask, jsonify
from flask_cors import CORS
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_mail import Mail
from dotenv import load_dotenv
import logging
import os

load_dotenv()

app = Flask(__name__)

# Configuration
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'lifeline-dev-secret-change-me')
app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get('DATABASE_URL', 'sqlite:///lifeline.db')
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['TOKEN_TTL_DAYS'] = int(os.environ.get('TOKEN_TTL_DAYS', 7))
app.config['ADMIN_EMAIL'] = os.environ.get('ADMIN_EMAIL', 'admin@lifeline.local')
app.config['ADMIN_PASSWORD'] = os.environ.get('ADMIN_PASSWORD', 'Admin@123')

# Email Configuration - leave MAIL_USERNAME empty to log emails instead of sending
app.config['MAIL_SERVER'] = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
app.config['MAIL_PORT'] = int(os.environ.get('MAIL_PORT', 587))
app.config['MAIL_USE_TLS'] = os.environ.get('MAIL_USE_TLS', 'true').lower() == 'true'
app.config['MAIL_USERNAME'] = os.environ.get('MAIL_USERNAME', '')
app.config['MAIL_PASSWORD'] = os.environ.get('MAIL_PASSWORD', '')
app.config['MAIL_DEFAULT_SENDER'] = os.environ.get('MAIL_DEFAULT_SENDER', 'noreply@lifeline.local')
app.config['MAIL_SUPPRESS_SEND'] = os.environ.get('MAIL_SUPPRESS_SEND', 'false').lower() == 'true'

# Firebase service account JSON; push notifications are logged only when unset
app.config['FIREBASE_CREDENTIALS'] = os.environ.get('FIREBASE_CREDENTIALS', '')

app.logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())
logging.getLogger('firebase_admin').setLevel(logging.WARNING)

CORS(app, resources={
    r"/api/*": {
        "origins": os.environ.get('CORS_ORIGINS', '*'),
        "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        "allow_headers": ["Content-Type", "Authorization"]
    }
})

db = SQLAlchemy(app)
bcrypt = Bcrypt(app)
mail = Mail(app)

# Route modules register themselves on `app`; imported last to avoid cycles
from lifeline import models  # noqa: E402,F401
from lifeline import auth, eligibility, profile, donors, watchlist, hospitals, inventory, camps, appointments, notifications  # noqa: E402,F401
from lifeline.models import User, utcnow  # noqa: E402

# ==================== INITIALIZATION ====================

def seed_admin():
    if not User.query.filter_by(email=app.config['ADMIN_EMAIL']).first():
        admin = User(
            name='Administrator',
            email=app.config['ADMIN_EMAIL'],
            password=bcrypt.generate_password_hash(app.config['ADMIN_PASSWORD']).decode('utf-8'),
            role='admin'
        )
        db.session.add(admin)
        db.session.commit()
        app.logger.info("Seeded admin account %s", admin.email)


@app.route('/api/init-db', methods=['POST'])
def init_database():
    try:
        db.create_all()
        seed_admin()
        return jsonify({'message': 'Database initialized successfully'}), 200
    except Exception as e:
        db.session.rollback()
        app.logger.exception("Database initialization failed")
        return jsonify({'message': str(e)}), 500


@app.route('/api/health', methods=['GET'])
def health_check():
    return jsonify({
        'status': 'healthy',
        'message': 'Server is running',
        'timestamp': utcnow().isoformat()
    }), 200


def main():
    with app.app_context():
        db.create_all()
        seed_admin()
    app.logger.info("LifeLine API started")
    app.run(debug=os.environ.get('FLASK_DEBUG', '0') == '1', host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))

