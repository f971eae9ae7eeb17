"""
Notification delivery.

New inventory fans out to every active watchlist entry for the same blood
type whose location (if any) appears in the inventory location. Each
subscriber gets an in-app notification and, when they registered a device
token, an FCM push. Push results are inspected per message so one bad token
never affects the other recipients.
"""
from flask import jsonify, current_app
import firebase_admin
from firebase_admin import credentials, messaging

from lifeline.app import app, db
from lifeline.models import Watchlist, Notification
from lifeline.helpers import token_required

MATCH_TITLE = 'Blood Type Match Found!'
# send_each rejects more than this many messages per call
FCM_BATCH_LIMIT = 500


def _firebase_app():
    """Initialized firebase app, or None when push is not configured."""
    cred_path = current_app.config.get('FIREBASE_CREDENTIALS')
    if not cred_path:
        return None
    try:
        return firebase_admin.get_app()
    except ValueError:
        return firebase_admin.initialize_app(credentials.Certificate(cred_path))


def send_push_batch(messages):
    """Send each message independently. Returns one (ok, detail) per message."""
    if not messages:
        return []

    fb_app = _firebase_app()
    if fb_app is None:
        for m in messages:
            current_app.logger.info("PUSH (disabled) TO: %s | %s", m.token, m.notification.body)
        return [(True, 'logged') for _ in messages]

    results = []
    for start in range(0, len(messages), FCM_BATCH_LIMIT):
        chunk = messages[start:start + FCM_BATCH_LIMIT]
        try:
            batch = messaging.send_each(chunk, app=fb_app)
        except Exception as e:
            current_app.logger.exception("Push batch of %d messages failed", len(chunk))
            results.extend((False, str(e)) for _ in chunk)
            continue

        for m, resp in zip(chunk, batch.responses):
            if resp.success:
                current_app.logger.info("Successfully sent message: %s", resp.message_id)
                results.append((True, resp.message_id))
            else:
                current_app.logger.warning("Error sending message to %s: %s", m.token, resp.exception)
                results.append((False, str(resp.exception)))
    return results


def location_matches(watch_location, inventory_location):
    """An entry without a location matches anywhere; otherwise it must appear in the inventory location."""
    if not watch_location:
        return True
    if not inventory_location:
        return False
    return watch_location.lower() in inventory_location.lower()


def match_message(blood_type, location):
    return f"{blood_type} blood is now available in {location}. Contact the hospital immediately."


def notify_watchlist(item):
    """Fan out a newly recorded InventoryItem to matching watchlist subscribers."""
    summary = {'matched': 0, 'sent': 0, 'failed': 0, 'skipped_no_token': 0}
    current_app.logger.info("New inventory added: %s in %s", item.blood_type, item.location)

    try:
        watchers = Watchlist.query.filter_by(blood_type=item.blood_type, status='active').all()
        if not watchers:
            current_app.logger.info("No matching watchlists found.")
            return summary

        body = match_message(item.blood_type, item.location or '')
        messages = []
        for entry in watchers:
            if not location_matches(entry.location, item.location):
                continue
            summary['matched'] += 1

            db.session.add(Notification(
                user_id=entry.user_id,
                title=MATCH_TITLE,
                message=body,
                type='watchlist_match'
            ))

            token = entry.user.fcm_token if entry.user else None
            if not token:
                summary['skipped_no_token'] += 1
                continue
            messages.append(messaging.Message(
                notification=messaging.Notification(title=MATCH_TITLE, body=body),
                data={'blood_type': item.blood_type, 'inventory_id': str(item.id)},
                token=token
            ))

        db.session.commit()

        try:
            results = send_push_batch(messages)
        except Exception:
            current_app.logger.exception("Push setup for inventory %s failed", item.id)
            results = [(False, 'push unavailable')] * len(messages)
        for ok, _ in results:
            summary['sent' if ok else 'failed'] += 1
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Error processing inventory item %s", item.id)

    current_app.logger.info("Watchlist fan-out for inventory %s: %s", item.id, summary)
    return summary

# ==================== NOTIFICATION ROUTES ====================

@app.route('/api/notifications', methods=['GET'])
@token_required
def get_notifications(current_user):
    notifications = Notification.query.filter_by(
        user_id=current_user.id
    ).order_by(Notification.created_at.desc(), Notification.id.desc()).limit(50).all()
    return jsonify([n.to_dict() for n in notifications]), 200


@app.route('/api/notifications/<int:notification_id>/read', methods=['POST'])
@token_required
def mark_notification_read(current_user, notification_id):
    try:
        notification = db.session.get(Notification, notification_id)
        if notification and notification.user_id == current_user.id:
            notification.is_read = True
            db.session.commit()
            return jsonify({'message': 'Marked as read'}), 200
        return jsonify({'message': 'Not found'}), 404
    except Exception as e:
        app.logger.exception("Notification update error")
        db.session.rollback()
        return jsonify({'message': str(e)}), 500
