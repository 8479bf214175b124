"""
Notification webhooks — Slack / Teams / Discord endpoints for lead events.

Lead events are fanned out by the hosted send-webhook-notification function;
this module manages the webhook rows and can push a test message straight
to one endpoint so an admin can check the URL.
"""
import logging
from datetime import datetime, timezone

import requests

from otr_crm.config import COMPANY_NAME, WEBHOOK_TYPES, DEFAULT_WEBHOOK_EVENTS
from otr_crm.database import get_session
from otr_crm.models.notification_webhook import NotificationWebhook
from otr_crm.services import changes

logger = logging.getLogger('services.notifications')

EVENT_TITLES = {
    'lead_approved':  '✅ Lead OTR Aprovado',
    'lead_converted': '🎉 Lead OTR Convertido',
    'lead_rejected':  '❌ Lead OTR Rejeitado',
    'lead_new':       '🆕 Novo Lead OTR',
}

EVENT_COLORS = {
    'lead_approved':  '#10b981',
    'lead_converted': '#059669',
    'lead_rejected':  '#ef4444',
    'lead_new':       '#3b82f6',
}

DEFAULT_COLOR = '#3b82f6'


class WebhookNotFound(Exception):
    pass


# ── CRUD ─────────────────────────────────────────────────────────────────────

def list_webhooks():
    session = get_session()
    try:
        return session.query(NotificationWebhook).order_by(NotificationWebhook.created_at.desc()).all()
    finally:
        session.close()


def create_webhook(name, webhook_url, webhook_type='slack', events=None, created_by=None):
    name = (name or '').strip()
    webhook_url = (webhook_url or '').strip()
    if not name:
        raise ValueError('Name is required')
    if not webhook_url.startswith(('https://', 'http://')):
        raise ValueError('Webhook URL must be an http(s) URL')
    if webhook_type not in WEBHOOK_TYPES:
        raise ValueError(f"Unknown webhook type: {webhook_type}")
    if events is None:
        events = list(DEFAULT_WEBHOOK_EVENTS)

    session = get_session()
    try:
        webhook = NotificationWebhook(
            name=name, webhook_url=webhook_url, webhook_type=webhook_type,
            events=list(events), is_active=True, created_by=created_by,
        )
        session.add(webhook)
        session.commit()
        data = webhook.to_dict()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    changes.publish(changes.NOTIFICATION_WEBHOOKS)
    return data


def set_webhook_active(webhook_id, is_active):
    session = get_session()
    try:
        webhook = session.get(NotificationWebhook, webhook_id)
        if webhook is None:
            raise WebhookNotFound(webhook_id)
        webhook.is_active = bool(is_active)
        session.commit()
        data = webhook.to_dict()
    except WebhookNotFound:
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    changes.publish(changes.NOTIFICATION_WEBHOOKS)
    return data


def delete_webhook(webhook_id):
    session = get_session()
    try:
        webhook = session.get(NotificationWebhook, webhook_id)
        if webhook is None:
            raise WebhookNotFound(webhook_id)
        session.delete(webhook)
        session.commit()
    except WebhookNotFound:
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    changes.publish(changes.NOTIFICATION_WEBHOOKS)


# ── Message bodies ───────────────────────────────────────────────────────────

def _fields(payload):
    return [
        ('Indicador', payload.get('leadName') or 'N/A'),
        ('Empresa', payload.get('leadCompany') or 'N/A'),
        ('Fonte OTR', payload.get('sourceCompany') or 'N/A'),
        ('Tipo', payload.get('sourceType') or 'N/A'),
        ('Localização', payload.get('location') or 'N/A'),
        ('Volume', payload.get('volume') or 'N/A'),
    ]


def build_webhook_body(webhook_type, event, payload, now=None):
    """Platform-specific message for a lead event."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime('%d/%m/%Y %H:%M UTC')
    title = EVENT_TITLES.get(event, f"Lead OTR: {event}")
    color = EVENT_COLORS.get(event, DEFAULT_COLOR)

    if webhook_type == 'slack':
        return {
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": title, "emoji": True},
                },
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*{label}:*\n{value}"}
                        for label, value in _fields(payload)
                    ],
                },
                {
                    "type": "context",
                    "elements": [{"type": "mrkdwn", "text": f"📅 {stamp} | {COMPANY_NAME}"}],
                },
            ]
        }

    if webhook_type == 'teams':
        return {
            "@type": "MessageCard",
            "@context": "http://schema.org/extensions",
            "themeColor": color,
            "summary": title,
            "sections": [{
                "activityTitle": title,
                "facts": [{"name": label, "value": value} for label, value in _fields(payload)],
                "markdown": True,
            }],
            "potentialAction": [],
        }

    if webhook_type == 'discord':
        return {
            "embeds": [{
                "title": title,
                "color": int(color.lstrip('#'), 16),
                "fields": [
                    {"name": label, "value": value, "inline": True}
                    for label, value in _fields(payload)
                ],
                "footer": {"text": f"{COMPANY_NAME} • {stamp}"},
            }]
        }

    raise ValueError(f"Unknown webhook type: {webhook_type}")


def send_test_notification(webhook_id):
    """Post a sample 'lead_new' message to one webhook. Raises on HTTP failure."""
    session = get_session()
    try:
        webhook = session.get(NotificationWebhook, webhook_id)
        if webhook is None:
            raise WebhookNotFound(webhook_id)
        url, webhook_type, name = webhook.webhook_url, webhook.webhook_type, webhook.name
    finally:
        session.close()

    body = build_webhook_body(webhook_type, 'lead_new', {
        'leadName': 'Teste',
        'leadCompany': COMPANY_NAME,
        'sourceCompany': 'Mineradora Exemplo',
        'sourceType': 'Mineradora',
        'location': 'Brasil',
        'volume': '1000 t/ano',
    })
    resp = requests.post(url, json=body, timeout=10)
    resp.raise_for_status()
    logger.info("Test notification sent to %s webhook %s", webhook_type, name)
