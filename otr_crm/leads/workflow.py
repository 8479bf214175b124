"""
Lead status workflow + notes.

update_lead_status() runs a fixed sequence:

  1. overwrite status/updated_at          (primary: failure aborts and raises)
  2. append one 'status_change' note      (best-effort)
  3. notify-otr-approval                  (best-effort, approved + send_notification only)
  4. send-webhook-notification            (best-effort, approved/converted/rejected only)

Nothing after step 1 is rolled back or retried. Any status may follow any
other; the stored status is an open string.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from otr_crm.config import STATUS_LABELS, WEBHOOK_EVENTS, NOTE_TYPES
from otr_crm.database import get_session
from otr_crm.leads.parser import parse_otr_message
from otr_crm.models.contact import Contact
from otr_crm.models.lead_note import LeadNote
from otr_crm.services import changes, functions

logger = logging.getLogger('leads.workflow')


class LeadNotFound(Exception):
    pass


class StatusUpdateError(Exception):
    """The primary status write failed; nothing else was attempted."""


@dataclass
class StatusChange:
    lead_id: str
    previous_status: Optional[str]
    status: str
    note_id: Optional[str] = None
    approval_notified: bool = False
    webhook_event: Optional[str] = None
    webhook_sent: bool = False


def status_label(status):
    """Display label for a status, falling back to the raw value."""
    return STATUS_LABELS.get(status, status)


def webhook_event_for(status):
    return WEBHOOK_EVENTS.get(status)


def status_change_text(status):
    return f"Status alterado para: {status_label(status)}"


def lead_payload(lead, parsed=None):
    """Common lead fields sent to the hosted notification functions."""
    if parsed is None:
        parsed = parse_otr_message(lead.get('message'))
    return {
        'leadId': lead['id'],
        'leadName': lead['name'],
        'leadCompany': lead.get('company'),
        'sourceCompany': parsed.source_company,
        'sourceType': parsed.source_type,
        'location': parsed.location,
        'volume': parsed.volume,
    }


def update_lead_status(lead_id, status, send_notification=False, user_id=None, user_email=None):
    """Set a lead's status and run the audit/notification side effects."""
    session = get_session()
    try:
        contact = session.get(Contact, lead_id)
        if contact is None:
            raise LeadNotFound(lead_id)
        previous = contact.status
        contact.status = status
        contact.updated_at = datetime.now(timezone.utc)
        session.commit()
        lead = contact.to_dict()
    except LeadNotFound:
        raise
    except Exception as e:
        session.rollback()
        logger.error("Status update failed", extra={'lead_id': lead_id, 'status': status}, exc_info=True)
        raise StatusUpdateError(str(e)) from e
    finally:
        session.close()

    result = StatusChange(lead_id=lead_id, previous_status=previous, status=status)
    logger.info("Lead status changed", extra={'lead_id': lead_id, 'previous_status': previous, 'status': status})

    result.note_id = _append_note(lead_id, status_change_text(status), 'status_change', user_id)

    parsed = parse_otr_message(lead['message'])

    if status == 'approved' and send_notification:
        body = lead_payload(lead, parsed)
        body.update({
            'leadEmail': lead['email'],
            'tireSizes': parsed.tire_sizes,
            'details': parsed.details,
            'approvedBy': user_email or 'Admin',
        })
        try:
            functions.invoke(functions.NOTIFY_OTR_APPROVAL, body)
            result.approval_notified = True
        except Exception:
            logger.error("Approval notification failed", exc_info=True,
                         extra={'lead_id': lead_id, 'function': functions.NOTIFY_OTR_APPROVAL})

    event = webhook_event_for(status)
    if event:
        result.webhook_event = event
        body = {'event': event, **lead_payload(lead, parsed), 'status': status}
        try:
            functions.invoke(functions.SEND_WEBHOOK_NOTIFICATION, body)
            result.webhook_sent = True
        except Exception:
            logger.error("Webhook notification failed", exc_info=True,
                         extra={'lead_id': lead_id, 'event': event, 'function': functions.SEND_WEBHOOK_NOTIFICATION})

    changes.publish(changes.OTR_LEADS, changes.ADMIN_CONTACTS, changes.LEAD_NOTES, lead_id=lead_id)
    return result


def _append_note(contact_id, text, note_type, user_id=None):
    """Best-effort note insert. Returns the note id, or None when the write failed."""
    session = get_session()
    try:
        note = LeadNote(contact_id=contact_id, user_id=user_id, note=text, note_type=note_type)
        session.add(note)
        session.commit()
        return note.id
    except Exception:
        session.rollback()
        logger.error("Failed to append note", extra={'lead_id': contact_id, 'note_type': note_type}, exc_info=True)
        return None
    finally:
        session.close()


def add_note(contact_id, note, note_type='note', user_id=None):
    """Add a manual note. Raises ValueError on bad input; store errors propagate."""
    note = (note or '').strip()
    if not note:
        raise ValueError('Note text is required')
    if note_type not in NOTE_TYPES:
        raise ValueError(f"Unknown note type: {note_type}")

    session = get_session()
    try:
        if session.get(Contact, contact_id) is None:
            raise LeadNotFound(contact_id)
        row = LeadNote(contact_id=contact_id, user_id=user_id, note=note, note_type=note_type)
        session.add(row)
        session.commit()
        data = row.to_dict()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    changes.publish(changes.LEAD_NOTES, lead_id=contact_id)
    return data


def delete_note(note_id):
    """Delete one note. Returns False when it does not exist."""
    session = get_session()
    try:
        row = session.get(LeadNote, note_id)
        if row is None:
            return False
        contact_id = row.contact_id
        session.delete(row)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    changes.publish(changes.LEAD_NOTES, lead_id=contact_id)
    return True


def send_reply_email(lead_id, subject, message, user_id=None):
    """
    Email a lead through the send-reply-email function, then log an 'email_sent' note.

    The email is the primary action and FunctionInvokeError propagates; the
    note afterwards is best-effort.
    """
    subject = (subject or '').strip()
    message = (message or '').strip()
    if not subject or not message:
        raise ValueError('Subject and message are required')

    session = get_session()
    try:
        contact = session.get(Contact, lead_id)
        if contact is None:
            raise LeadNotFound(lead_id)
        to, to_name = contact.email, contact.name
    finally:
        session.close()

    functions.invoke(functions.SEND_REPLY_EMAIL, {
        'to': to,
        'toName': to_name,
        'subject': subject,
        'message': message,
        'replyType': 'contact',
    })

    note_id = _append_note(lead_id, f'Email enviado: "{subject}"', 'email_sent', user_id)
    changes.publish(changes.LEAD_NOTES, lead_id=lead_id)
    return note_id
