"""
Settings routes — monthly conversion goals and notification webhooks.
"""
import logging
from flask import Blueprint, jsonify, request, session

from otr_crm.leads import goals
from otr_crm.services import notifications
from otr_crm.services.notifications import WebhookNotFound

logger = logging.getLogger('routes.settings')

bp = Blueprint('settings', __name__)


# ── Conversion goals ─────────────────────────────────────────────────────────

@bp.route('/api/otr/goals')
def list_goals():
    return jsonify([g.to_dict() for g in goals.list_goals()])


@bp.route('/api/otr/goals', methods=['PUT'])
def save_goal():
    data = request.get_json(silent=True) or {}
    try:
        goal = goals.save_goal(
            month=data.get('month'),
            year=data.get('year'),
            target_leads=data.get('target_leads', 0),
            target_conversions=data.get('target_conversions', 0),
            notes=data.get('notes'),
            created_by=session.get('user_email'),
        )
    except (TypeError, ValueError) as e:
        return jsonify({'error': str(e)}), 400
    except Exception:
        logger.error("Failed to save conversion goal", exc_info=True)
        return jsonify({'error': 'Erro ao salvar meta'}), 500
    return jsonify(goal)


# ── Notification webhooks ────────────────────────────────────────────────────

@bp.route('/api/webhooks')
def list_webhooks():
    return jsonify([w.to_dict() for w in notifications.list_webhooks()])


@bp.route('/api/webhooks', methods=['POST'])
def create_webhook():
    data = request.get_json(silent=True) or {}
    try:
        webhook = notifications.create_webhook(
            name=data.get('name'),
            webhook_url=data.get('webhook_url'),
            webhook_type=data.get('webhook_type') or 'slack',
            events=data.get('events'),
            created_by=session.get('user_email'),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception:
        logger.error("Failed to add webhook", exc_info=True)
        return jsonify({'error': 'Erro ao adicionar webhook'}), 500
    return jsonify(webhook), 201


@bp.route('/api/webhooks/<webhook_id>/active', methods=['POST'])
def toggle_webhook(webhook_id):
    data = request.get_json(silent=True) or {}
    try:
        webhook = notifications.set_webhook_active(webhook_id, bool(data.get('is_active')))
    except WebhookNotFound:
        return jsonify({'error': 'Webhook not found'}), 404
    return jsonify(webhook)


@bp.route('/api/webhooks/<webhook_id>', methods=['DELETE'])
def delete_webhook(webhook_id):
    try:
        notifications.delete_webhook(webhook_id)
    except WebhookNotFound:
        return jsonify({'error': 'Webhook not found'}), 404
    return jsonify({'ok': True})


@bp.route('/api/webhooks/<webhook_id>/test', methods=['POST'])
def test_webhook(webhook_id):
    try:
        notifications.send_test_notification(webhook_id)
    except WebhookNotFound:
        return jsonify({'error': 'Webhook not found'}), 404
    except Exception as e:
        logger.error("Test notification to webhook %s failed", webhook_id, exc_info=True)
        return jsonify({'error': str(e)}), 502
    return jsonify({'ok': True})
