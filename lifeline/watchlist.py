from flask import jsonify

from lifeline.app import app, db
from lifeline.models import Watchlist
from lifeline.helpers import ValidationError, token_required, get_json, require_fields, parse_blood_type

# ==================== WATCHLIST ROUTES ====================

@app.route('/api/watchlist', methods=['POST'])
@token_required
def add_to_watchlist(current_user):
    try:
        data = get_json()
        require_fields(data, 'blood_type')

        entry = Watchlist(
            user_id=current_user.id,
            blood_type=parse_blood_type(data['blood_type']),
            location=(data.get('location') or '').strip() or None,
            status='active'
        )
        db.session.add(entry)
        db.session.commit()

        where = f" in {entry.location}" if entry.location else ''
        return jsonify({
            'message': f"You will be notified when {entry.blood_type} becomes available{where}.",
            'watchlist': entry.to_dict()
        }), 201
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Watchlist add error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/watchlist', methods=['GET'])
@token_required
def get_watchlist(current_user):
    entries = Watchlist.query.filter_by(
        user_id=current_user.id,
        status='active'
    ).order_by(Watchlist.created_at.desc(), Watchlist.id.desc()).all()
    return jsonify([w.to_dict() for w in entries]), 200


@app.route('/api/watchlist/<int:watchlist_id>', methods=['DELETE'])
@token_required
def remove_from_watchlist(current_user, watchlist_id):
    try:
        entry = db.session.get(Watchlist, watchlist_id)
        if not entry or entry.user_id != current_user.id or entry.status != 'active':
            return jsonify({'message': 'Not found'}), 404

        entry.status = 'cancelled'
        db.session.commit()
        return jsonify({'message': 'Removed from watchlist'}), 200
    except Exception as e:
        app.logger.exception("Watchlist remove error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500
