"""
CRM pipeline — one board over contacts, OTR leads and marketplace registrations.

unify_leads() merges the two tables into PipelineLead records (newest first);
the filters, stage grouping and stats below are pure functions over that list.
update_pipeline_lead() writes the stage / priority / follow-up fields back to
whichever table the lead came from.
"""
import logging
import math
from collections import OrderedDict
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import List, Optional

from otr_crm.config import (
    DEFAULT_PRIORITY, DEFAULT_STAGE, MARKETPLACE_CHANNEL, OTR_CHANNEL,
    PIPELINE_STAGES, PRIORITIES, REMINDER_SOON_DAYS,
)
from otr_crm.database import get_session
from otr_crm.leads.analytics import as_utc
from otr_crm.leads.workflow import LeadNotFound
from otr_crm.models.contact import Contact
from otr_crm.models.marketplace_registration import MarketplaceRegistration
from otr_crm.services import changes

logger = logging.getLogger('leads.pipeline')

EDITABLE_FIELDS = ('lead_level', 'priority', 'next_action', 'next_action_date')


@dataclass
class PipelineLead:
    id: str
    type: str
    name: str
    email: str
    company: Optional[str]
    phone: Optional[str]
    country: Optional[str]
    message: Optional[str]
    status: str
    lead_level: str
    priority: str
    channel: Optional[str]
    created_at: Optional[datetime]
    next_action: Optional[str] = None
    next_action_date: Optional[datetime] = None
    company_type: Optional[str] = None
    products_interest: List[str] = field(default_factory=list)
    estimated_volume: Optional[str] = None

    def to_dict(self, now=None):
        data = asdict(self)
        for key in ('created_at', 'next_action_date'):
            value = as_utc(data[key])
            data[key] = value.isoformat() if value else None
        data['reminder'] = reminder_status(self.next_action_date, now=now)
        data['stage_label'] = PIPELINE_STAGES.get(self.lead_level, self.lead_level)
        return data


def lead_type_of(contact):
    return 'otr' if contact.channel == OTR_CHANNEL else 'contact'


def from_contact(contact):
    lead_type = lead_type_of(contact)
    return PipelineLead(
        id=contact.id,
        type=lead_type,
        name=contact.name or '',
        email=contact.email or '',
        company=contact.company,
        phone=None,
        country=None,
        message=contact.message,
        status=contact.status or ('pending' if lead_type == 'otr' else 'new'),
        lead_level=contact.lead_level or DEFAULT_STAGE,
        priority=contact.priority or DEFAULT_PRIORITY,
        channel=contact.channel,
        created_at=contact.created_at,
        next_action=contact.next_action,
        next_action_date=contact.next_action_date,
    )


def from_registration(reg):
    return PipelineLead(
        id=reg.id,
        type='marketplace',
        name=reg.contact_name or '',
        email=reg.email or '',
        company=reg.company_name,
        phone=reg.phone,
        country=reg.country,
        message=reg.message,
        status=reg.status or 'pending',
        lead_level=reg.lead_level or DEFAULT_STAGE,
        priority=reg.priority or DEFAULT_PRIORITY,
        channel=MARKETPLACE_CHANNEL,
        created_at=reg.created_at,
        next_action=reg.next_action,
        next_action_date=reg.next_action_date,
        company_type=reg.company_type,
        products_interest=list(reg.products_interest or []),
        estimated_volume=reg.estimated_volume,
    )


def _sort_key(lead):
    created = as_utc(lead.created_at)
    return created or datetime.min.replace(tzinfo=timezone.utc)


def unify_leads(contacts, registrations):
    """Every contact (OTR or not) and marketplace registration, newest first."""
    leads = [from_contact(c) for c in contacts]
    leads.extend(from_registration(r) for r in registrations)
    return sorted(leads, key=_sort_key, reverse=True)


# ── Reminders ────────────────────────────────────────────────────────────────

def reminder_status(next_action_date, now=None):
    """
    'overdue', 'today', 'soon' (within REMINDER_SOON_DAYS) or 'scheduled'.

    None when no follow-up is set. The time left is rounded up to whole days,
    so a follow-up less than a day past still reads as 'today'.
    """
    if not next_action_date:
        return None
    now = as_utc(now) if now else datetime.now(timezone.utc)
    days = math.ceil((as_utc(next_action_date) - now).total_seconds() / 86400)
    if days < 0:
        return 'overdue'
    if days == 0:
        return 'today'
    if days <= REMINDER_SOON_DAYS:
        return 'soon'
    return 'scheduled'


def _matches_reminder(lead, reminder, now):
    if not reminder or reminder == 'all':
        return True
    status = reminder_status(lead.next_action_date, now=now)
    if reminder == 'soon':
        return status in ('soon', 'today')
    if reminder == 'none':
        return status is None
    return status == reminder


# ── Filters / grouping ───────────────────────────────────────────────────────

def filter_pipeline(leads, search='', lead_type='all', priority='all', reminder='all', now=None):
    """Search on name/email/company plus type, priority and reminder filters ('all' disables one)."""
    term = (search or '').strip().lower()
    kept = []
    for lead in leads:
        if lead_type and lead_type != 'all' and lead.type != lead_type:
            continue
        if priority and priority != 'all' and lead.priority != priority:
            continue
        if not _matches_reminder(lead, reminder, now):
            continue
        if term:
            haystack = [lead.name, lead.email, lead.company or '']
            if not any(term in value.lower() for value in haystack):
                continue
        kept.append(lead)
    return kept


def group_by_stage(leads):
    """Board columns in stage order. Leads on an unknown stage have no column."""
    columns = OrderedDict((stage, []) for stage in PIPELINE_STAGES)
    for lead in leads:
        if lead.lead_level in columns:
            columns[lead.lead_level].append(lead)
    return columns


def pipeline_stats(leads, now=None):
    """Header counters for the board, over the unfiltered list."""
    leads = list(leads)
    stats = {'total': len(leads)}
    for stage, column in group_by_stage(leads).items():
        stats[stage] = len(column)
    reminders = [reminder_status(l.next_action_date, now=now) for l in leads]
    stats['urgent'] = sum(1 for l in leads if l.priority == 'urgent')
    stats['overdue'] = reminders.count('overdue')
    stats['today'] = reminders.count('today')
    return stats


# ── Writes ───────────────────────────────────────────────────────────────────

def _clean_updates(updates):
    cleaned = {}
    for key in EDITABLE_FIELDS:
        if key not in updates:
            continue
        value = updates[key]
        if isinstance(value, str):
            value = value.strip() or None
        cleaned[key] = value

    if 'lead_level' in cleaned and cleaned['lead_level'] not in PIPELINE_STAGES:
        raise ValueError(f"Unknown stage: {cleaned['lead_level']}")
    if 'priority' in cleaned and cleaned['priority'] not in PRIORITIES:
        raise ValueError(f"Unknown priority: {cleaned['priority']}")
    if cleaned.get('next_action_date'):
        try:
            cleaned['next_action_date'] = as_utc(cleaned['next_action_date'])
        except (AttributeError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid follow-up date: {cleaned['next_action_date']}") from e
    if not cleaned:
        raise ValueError(f"Nothing to update; expected one of {', '.join(EDITABLE_FIELDS)}")
    return cleaned


def update_pipeline_lead(lead_type, lead_id, updates):
    """
    Set stage, priority and/or follow-up on one lead and return it as a PipelineLead.

    lead_type picks the table: 'marketplace' → marketplace_registrations,
    'contact' / 'otr' → contacts.
    """
    model = MarketplaceRegistration if lead_type == 'marketplace' else Contact
    cleaned = _clean_updates(updates)

    session = get_session()
    try:
        row = session.get(model, lead_id)
        if row is None:
            raise LeadNotFound(lead_id)
        for key, value in cleaned.items():
            setattr(row, key, value)
        session.commit()
        lead = from_registration(row) if model is MarketplaceRegistration else from_contact(row)
    except LeadNotFound:
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Pipeline lead updated (%s)", ', '.join(sorted(cleaned)), extra={'lead_id': lead_id})
    if model is MarketplaceRegistration:
        changes.publish(changes.MARKETPLACE_REGISTRATIONS)
    else:
        changes.publish(changes.ADMIN_CONTACTS, changes.OTR_LEADS, lead_id=lead_id)
    return lead
