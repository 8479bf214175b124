"""
Hosted serverless functions — invoked by name over HTTP.

invoke() raises FunctionInvokeError on any failure. Callers that treat a
function as best-effort (confirmation emails, webhook pushes) catch and log it.
No retries.
"""
import logging
import requests

from otr_crm import config

logger = logging.getLogger('services.functions')

SEND_CONTACT_EMAIL = 'send-contact-email'
NOTIFY_OTR_APPROVAL = 'notify-otr-approval'
SEND_WEBHOOK_NOTIFICATION = 'send-webhook-notification'
SEND_REPLY_EMAIL = 'send-reply-email'
SEND_WEEKLY_REPORT = 'send-weekly-report'
SEND_MARKETPLACE_EMAIL = 'send-marketplace-email'


class FunctionInvokeError(Exception):
    """A hosted function could not be reached or returned an error."""

    def __init__(self, name, message, status_code=None):
        super().__init__(f"{name}: {message}")
        self.name = name
        self.status_code = status_code


def function_url(name):
    base = (config.SUPABASE_URL or '').rstrip('/')
    return f"{base}/functions/v1/{name}"


def invoke(name, body=None):
    """POST a JSON body to a hosted function and return its decoded JSON reply."""
    if not config.SUPABASE_URL or not config.SUPABASE_SERVICE_KEY:
        raise FunctionInvokeError(name, 'hosted functions are not configured')

    headers = {
        'Authorization': f"Bearer {config.SUPABASE_SERVICE_KEY}",
        'Content-Type': 'application/json',
    }

    try:
        resp = requests.post(
            function_url(name), json=body or {}, headers=headers,
            timeout=config.FUNCTIONS_TIMEOUT,
        )
    except requests.exceptions.RequestException as e:
        raise FunctionInvokeError(name, str(e)) from e

    if resp.status_code >= 400:
        raise FunctionInvokeError(name, resp.text[:500], status_code=resp.status_code)

    logger.info("Function invoked", extra={'function': name, 'status_code': resp.status_code})
    try:
        return resp.json()
    except ValueError:
        return {}
