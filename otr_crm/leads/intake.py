"""
Public form intake: contact forms, OTR source indications and marketplace
pre-registrations.

The insert is the primary write and raises on failure. The confirmation
email afterwards is best-effort: the row is already saved.
"""
import logging
import re

from otr_crm.config import (
    DEFAULT_CHANNEL, DEFAULT_STATUS, OTR_CHANNEL,
    MARKETPLACE_CHANNEL, MARKETPLACE_COMPANY_TYPES, MARKETPLACE_PRODUCTS,
)
from otr_crm.database import get_session
from otr_crm.leads.parser import compose_otr_message, FIELD_NAMES
from otr_crm.models.contact import Contact
from otr_crm.models.marketplace_registration import MarketplaceRegistration
from otr_crm.services import changes, functions

logger = logging.getLogger('leads.intake')

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


class AlreadyRegistered(Exception):
    """A marketplace pre-registration already exists for this email."""


def _clean(value):
    return (value or '').strip() or None


def submit_contact(name, email, message, company=None, subject=None, channel=None):
    """Store a form submission and fire the confirmation email. Returns the new contact dict."""
    name, email, message = _clean(name), _clean(email), _clean(message)
    if not name:
        raise ValueError('Name is required')
    if not email or not EMAIL_RE.match(email):
        raise ValueError('A valid email is required')
    if not message:
        raise ValueError('Message is required')

    channel = _clean(channel) or DEFAULT_CHANNEL
    session = get_session()
    try:
        contact = Contact(
            name=name, email=email, company=_clean(company), subject=_clean(subject),
            message=message, channel=channel, status=DEFAULT_STATUS,
        )
        session.add(contact)
        session.commit()
        data = contact.to_dict()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Contact stored", extra={'lead_id': data['id'], 'channel': channel})

    try:
        functions.invoke(functions.SEND_CONTACT_EMAIL, {
            'name': name,
            'email': email,
            'company': data['company'],
            'subject': data['subject'],
            'message': message,
            'channel': channel,
        })
    except Exception:
        logger.error("Confirmation email failed", exc_info=True,
                     extra={'lead_id': data['id'], 'function': functions.SEND_CONTACT_EMAIL})

    changes.publish(changes.ADMIN_CONTACTS, *([changes.OTR_LEADS] if channel == OTR_CHANNEL else []))
    return data


def submit_otr_indication(values):
    """
    Store an OTR source indication.

    `values` holds the parsed-field names (indicator_name, source_company, ...).
    The indicator becomes the contact; the full record goes into the message.
    """
    values = {k: (values.get(k) or '') for k in FIELD_NAMES}
    if not values['source_company'] and not values['source_name']:
        raise ValueError('The indicated OTR source needs a company or contact name')

    subject = f"Indicação OTR: {values['source_company'] or values['source_name']}"
    return submit_contact(
        name=values['indicator_name'],
        email=values['indicator_email'],
        company=values['indicator_company'],
        subject=subject,
        message=compose_otr_message(values),
        channel=OTR_CHANNEL,
    )


def _marketplace_fields(values):
    products = values.get('products_interest') or []
    if isinstance(products, str):
        products = [products]
    fields = {
        'company_name': _clean(values.get('company_name')),
        'contact_name': _clean(values.get('contact_name')),
        'email': (_clean(values.get('email')) or '').lower(),
        'phone': _clean(values.get('phone')),
        'country': _clean(values.get('country')),
        'company_type': _clean(values.get('company_type')),
        'products_interest': [p.strip() for p in products if p and p.strip()],
        'estimated_volume': _clean(values.get('estimated_volume')),
        'message': _clean(values.get('message')),
    }
    for name in ('company_name', 'contact_name', 'country'):
        if not fields[name]:
            raise ValueError(f"{name} is required")
    if not EMAIL_RE.match(fields['email']):
        raise ValueError('A valid email is required')
    if fields['company_type'] not in MARKETPLACE_COMPANY_TYPES:
        raise ValueError(f"company_type must be one of {', '.join(MARKETPLACE_COMPANY_TYPES)}")
    if not fields['products_interest']:
        raise ValueError('Select at least one product')
    unknown = [p for p in fields['products_interest'] if p not in MARKETPLACE_PRODUCTS]
    if unknown:
        raise ValueError(f"Unknown product: {unknown[0]}")
    return fields


def submit_marketplace_registration(values, language='pt'):
    """
    Store a marketplace pre-registration and send the confirmation email.

    One registration per email: a second one raises AlreadyRegistered and
    nothing is written or sent.
    """
    fields = _marketplace_fields(values)

    session = get_session()
    try:
        existing = session.query(MarketplaceRegistration.id).filter(
            MarketplaceRegistration.email == fields['email'],
        ).first()
        if existing is not None:
            raise AlreadyRegistered(fields['email'])
        registration = MarketplaceRegistration(**fields)
        session.add(registration)
        session.commit()
        data = registration.to_dict()
    except AlreadyRegistered:
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Marketplace registration stored", extra={'lead_id': data['id'], 'channel': MARKETPLACE_CHANNEL})

    try:
        functions.invoke(functions.SEND_MARKETPLACE_EMAIL, {
            'companyName': data['company_name'],
            'contactName': data['contact_name'],
            'email': data['email'],
            'phone': data['phone'],
            'country': data['country'],
            'companyType': data['company_type'],
            'productsInterest': data['products_interest'],
            'estimatedVolume': data['estimated_volume'],
            'message': data['message'],
            'registrationId': data['id'],
            'language': language or 'pt',
        })
    except Exception:
        logger.error("Marketplace confirmation email failed", exc_info=True,
                     extra={'lead_id': data['id'], 'function': functions.SEND_MARKETPLACE_EMAIL})

    changes.publish(changes.MARKETPLACE_REGISTRATIONS)
    return data
