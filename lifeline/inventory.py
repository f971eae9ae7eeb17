from flask import request, jsonify

from lifeline.app import app, db
from lifeline.models import Hospital, InventoryItem
from lifeline.hospitals import adjust_stock
from lifeline.notifications import notify_watchlist
from lifeline.helpers import (
    ValidationError, token_required, role_required, get_json, require_fields, parse_blood_type
)


def record_inventory(blood_type, location, quantity, hospital=None, created_by=None):
    """Persist a new inventory record, add it to hospital stock, then notify watchers."""
    item = InventoryItem(
        hospital=hospital,
        blood_type=blood_type,
        location=location,
        quantity=quantity,
        created_by=created_by
    )
    db.session.add(item)
    if hospital is not None:
        adjust_stock(hospital, blood_type, quantity)
    db.session.commit()

    summary = notify_watchlist(item)
    return item, summary

# ==================== INVENTORY ROUTES ====================

@app.route('/api/inventory', methods=['POST'])
@token_required
@role_required('hospital', 'admin')
def add_inventory_item(current_user):
    try:
        data = get_json()
        require_fields(data, 'blood_type', 'quantity')
        blood_type = parse_blood_type(data['blood_type'])

        try:
            quantity = int(data['quantity'])
        except (TypeError, ValueError):
            raise ValidationError('quantity must be a whole number')
        if quantity < 1:
            raise ValidationError('quantity must be at least 1')

        if current_user.role == 'hospital':
            hospital = current_user.hospital
        elif data.get('hospital_id'):
            hospital = db.session.get(Hospital, data['hospital_id'])
            if not hospital:
                return jsonify({'message': 'Hospital not found'}), 404
        else:
            hospital = None

        location = (data.get('location') or '').strip()
        if not location and hospital is not None:
            location = hospital.address or ''
        if not location:
            raise ValidationError('location is required')

        item, summary = record_inventory(blood_type, location, quantity, hospital, current_user.id)
        return jsonify({
            'message': f"Added {quantity} unit(s) of {blood_type} in {location}",
            'item': item.to_dict(),
            'notifications': summary
        }), 201
    except ValidationError as e:
        db.session.rollback()
        return jsonify({'message': str(e)}), 400
    except Exception as e:
        app.logger.exception("Inventory add error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500


@app.route('/api/inventory', methods=['GET'])
def list_inventory_items():
    query = InventoryItem.query
    if request.args.get('blood_type'):
        query = query.filter_by(blood_type=request.args['blood_type'])
    items = query.order_by(InventoryItem.created_at.desc(), InventoryItem.id.desc()).limit(100).all()
    return jsonify([i.to_dict() for i in items]), 200
