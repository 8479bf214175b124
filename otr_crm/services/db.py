"""
Read helpers for the hosted store: leads, notes and marketplace registrations.

Reads propagate errors to the caller (routes turn them into 500s); there is
no fallback data.
"""
from otr_crm.config import OTR_CHANNEL
from otr_crm.database import get_session
from otr_crm.models.contact import Contact
from otr_crm.models.lead_note import LeadNote
from otr_crm.models.marketplace_registration import MarketplaceRegistration


def list_leads(channel=OTR_CHANNEL, since=None):
    """All contacts for a channel, newest first. channel=None returns every contact."""
    session = get_session()
    try:
        query = session.query(Contact)
        if channel:
            query = query.filter(Contact.channel == channel)
        if since is not None:
            query = query.filter(Contact.created_at >= since)
        return query.order_by(Contact.created_at.desc()).all()
    finally:
        session.close()


def get_lead(lead_id):
    session = get_session()
    try:
        return session.get(Contact, lead_id)
    finally:
        session.close()


def list_notes(contact_id):
    """Notes for one contact, newest first."""
    session = get_session()
    try:
        return session.query(LeadNote).filter(
            LeadNote.contact_id == contact_id,
        ).order_by(LeadNote.created_at.desc()).all()
    finally:
        session.close()



def list_marketplace_registrations():
    """Marketplace pre-registrations, newest first."""
    session = get_session()
    try:
        return session.query(MarketplaceRegistration).order_by(
            MarketplaceRegistration.created_at.desc(),
        ).all()
    finally:
        session.close()
