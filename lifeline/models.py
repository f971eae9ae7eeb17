from datetime import datetime, timezone
import json

from lifeline.app import db

BLOOD_TYPES = ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-']

ROLES = ['user', 'organizer', 'hospital', 'admin']

# recipient blood type -> donor types it can receive from
RECEIVE_COMPATIBILITY = {
    'A+': ['A+', 'A-', 'O+', 'O-'],
    'A-': ['A-', 'O-'],
    'B+': ['B+', 'B-', 'O+', 'O-'],
    'B-': ['B-', 'O-'],
    'AB+': ['A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-'],
    'AB-': ['A-', 'B-', 'AB-', 'O-'],
    'O+': ['O+', 'O-'],
    'O-': ['O-']
}


def utcnow():
    """Naive UTC timestamp, as stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ==================== DATABASE MODELS ====================

class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100))
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(20), default='user', nullable=False)
    organization_name = db.Column(db.String(200))
    is_donor = db.Column(db.Boolean, default=False)
    fcm_token = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=utcnow)

    def landing_path(self):
        if self.role == 'organizer':
            return '/organizer'
        if self.role == 'hospital':
            return '/hospital-dashboard'
        return '/dashboard'

    def to_dict(self):
        data = {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'is_donor': bool(self.is_donor),
            'has_push_token': bool(self.fcm_token),
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
        if self.role == 'organizer':
            data['organization_name'] = self.organization_name
        if self.donor_profile:
            data['donor_profile'] = self.donor_profile.to_dict()
        if self.hospital:
            data['phone_number'] = self.hospital.phone_number
        return data


class Donor(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), unique=True, nullable=False)
    blood_type = db.Column(db.String(5))
    phone = db.Column(db.String(20))
    city = db.Column(db.String(100))
    is_eligible = db.Column(db.Boolean)
    eligibility_checked_at = db.Column(db.DateTime)
    last_donation = db.Column(db.DateTime)
    total_donations = db.Column(db.Integer, default=0)
    points = db.Column(db.Integer, default=0)
    badges = db.Column(db.Text, default='[]')
    availability_status = db.Column(db.String(20), default='available')
    created_at = db.Column(db.DateTime, default=utcnow)
    user = db.relationship('User', backref=db.backref('donor_profile', uselist=False))

    def badge_list(self):
        return json.loads(self.badges or '[]')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'name': self.user.name if self.user else None,
            'blood_type': self.blood_type,
            'phone': self.phone,
            'city': self.city,
            'is_eligible': self.is_eligible,
            'total_donations': self.total_donations or 0,
            'points': self.points or 0,
            'badges': self.badge_list(),
            'availability_status': self.availability_status,
            'last_donation': self.last_donation.isoformat() if self.last_donation else None
        }


class Hospital(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), unique=True, nullable=False)
    hospital_name = db.Column(db.String(200), nullable=False)
    license_id = db.Column(db.String(100), nullable=False)
    address = db.Column(db.Text)
    phone_number = db.Column(db.String(20))
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    user = db.relationship('User', backref=db.backref('hospital', uselist=False))
    stock = db.relationship('BloodStock', backref='hospital', cascade='all, delete-orphan')

    def stock_map(self):
        stock = {bt: 0 for bt in BLOOD_TYPES}
        for row in self.stock:
            stock[row.blood_type] = row.units
        return stock

    def last_updated(self):
        stamps = [row.last_updated for row in self.stock if row.last_updated]
        return max(stamps) if stamps else self.created_at

    def to_dict(self):
        last_updated = self.last_updated()
        return {
            'id': self.id,
            'hospital_name': self.hospital_name,
            'license_id': self.license_id,
            'address': self.address,
            'phone_number': self.phone_number,
            'location': {'lat': self.latitude, 'lng': self.longitude},
            'blood_stock': self.stock_map(),
            'last_updated': last_updated.isoformat() if last_updated else None
        }


class BloodStock(db.Model):
    __table_args__ = (db.UniqueConstraint('hospital_id', 'blood_type'),)

    id = db.Column(db.Integer, primary_key=True)
    hospital_id = db.Column(db.Integer, db.ForeignKey('hospital.id'), nullable=False)
    blood_type = db.Column(db.String(5), nullable=False)
    units = db.Column(db.Integer, default=0, nullable=False)
    last_updated = db.Column(db.DateTime, default=utcnow)


class InventoryItem(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    hospital_id = db.Column(db.Integer, db.ForeignKey('hospital.id'))
    blood_type = db.Column(db.String(5), nullable=False)
    location = db.Column(db.String(200))
    quantity = db.Column(db.Integer, nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('user.id'))
    created_at = db.Column(db.DateTime, default=utcnow)
    hospital = db.relationship('Hospital')

    def to_dict(self):
        return {
            'id': self.id,
            'hospital_id': self.hospital_id,
            'hospital_name': self.hospital.hospital_name if self.hospital else None,
            'blood_type': self.blood_type,
            'location': self.location,
            'quantity': self.quantity,
            'created_at': self.created_at.isoformat()
        }


class Watchlist(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    blood_type = db.Column(db.String(5), nullable=False)
    location = db.Column(db.String(200))
    status = db.Column(db.String(20), default='active', nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    user = db.relationship('User', backref='watchlists')

    def to_dict(self):
        return {
            'id': self.id,
            'blood_type': self.blood_type,
            'location': self.location or '',
            'status': self.status,
            'created_at': self.created_at.isoformat()
        }


class DonationCamp(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    organizer_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    camp_name = db.Column(db.String(200), nullable=False)
    organizer_name = db.Column(db.String(200), nullable=False)
    contact = db.Column(db.String(50), nullable=False)
    address = db.Column(db.Text, nullable=False)
    date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(20), default='upcoming')
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'organizer_id': self.organizer_id,
            'camp_name': self.camp_name,
            'organizer_name': self.organizer_name,
            'contact': self.contact,
            'address': self.address,
            'date': self.date.isoformat(),
            'start_time': self.start_time.strftime('%H:%M'),
            'end_time': self.end_time.strftime('%H:%M'),
            'location': {'lat': self.latitude, 'lng': self.longitude},
            'status': self.status
        }


class Appointment(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    donor_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    donor_name = db.Column(db.String(100))
    venue_type = db.Column(db.String(20), nullable=False)
    venue_id = db.Column(db.Integer, nullable=False)
    venue_name = db.Column(db.String(200))
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(5))
    status = db.Column(db.String(20), default='scheduled', nullable=False)
    blood_type = db.Column(db.String(5))
    completed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow)
    donor = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'donor_id': self.donor_id,
            'donor_name': self.donor_name,
            'venue_type': self.venue_type,
            'venue_id': self.venue_id,
            'venue_name': self.venue_name,
            'date': self.date.isoformat(),
            'time': self.time,
            'status': self.status,
            'blood_type': self.blood_type
        }


class Donation(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    donor_id = db.Column(db.Integer, db.ForeignKey('donor.id'), nullable=False)
    appointment_id = db.Column(db.Integer, db.ForeignKey('appointment.id'))
    venue_type = db.Column(db.String(20))
    venue_name = db.Column(db.String(200))
    blood_type = db.Column(db.String(5))
    units = db.Column(db.Integer, default=1)
    donated_at = db.Column(db.DateTime, default=utcnow)
    donor = db.relationship('Donor', backref='donations')

    def to_dict(self):
        return {
            'id': self.id,
            'venue_type': self.venue_type,
            'venue_name': self.venue_name,
            'blood_type': self.blood_type,
            'units': self.units,
            'date': self.donated_at.isoformat()
        }


class Notification(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'))
    title = db.Column(db.String(200))
    message = db.Column(db.Text)
    type = db.Column(db.String(50))
    is_read = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'message': self.message,
            'type': self.type,
            'is_read': self.is_read,
            'created_at': self.created_at.isoformat()
        }
