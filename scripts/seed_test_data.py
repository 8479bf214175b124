#!/usr/bin/env python3
"""
Seed OTR leads for checking the back office locally.

Creates indications spread over the last six months so every status, region
bucket and source type shows up in the analytics and exports:
  1. Leads in every workflow status, with status_change notes
  2. Leads with no location (the "Não informado" bucket)
  3. A plain contact-form message on the general channel
  4. A conversion goal for the current month
  5. A marketplace pre-registration for the CRM pipeline

Usage:
    python scripts/seed_test_data.py              # seed everything
    python scripts/seed_test_data.py --clear      # wipe seeded data first
    python scripts/seed_test_data.py --clear-only

Requires DATABASE_URL (defaults to sqlite:///local.db).
"""
import sys
import os
import uuid
import argparse
from datetime import datetime, timezone, timedelta

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from otr_crm import create_app
from otr_crm.config import OTR_CHANNEL, STATUS_LABELS
from otr_crm.database import get_session, engine, Base
from otr_crm.leads.parser import compose_otr_message
from otr_crm.leads.workflow import status_change_text
from otr_crm.models.contact import Contact
from otr_crm.models.lead_note import LeadNote
from otr_crm.models.conversion_goal import ConversionGoal
from otr_crm.models.marketplace_registration import MarketplaceRegistration


# ── Fake indications ─────────────────────────────────────────────────────────

SOURCES = [
    {'indicator_name': 'Maria Souza',    'source_company': 'Mineração Vale Verde', 'source_type': 'Mineradora',      'location': 'Itabira, MG, Brasil',     'volume': '1200 t/ano', 'status': 'converted',   'days_ago': 150},
    {'indicator_name': 'Paulo Reis',     'source_company': 'Transportes Serra',    'source_type': 'Transportadora',  'location': 'Campinas, SP',            'volume': '300 t/ano',  'status': 'negotiating', 'days_ago': 120},
    {'indicator_name': 'Giulia Bianchi', 'source_company': 'Cave di Carrara',      'source_type': 'Pedreira',        'location': 'Carrara, Italy',          'volume': '450 t/ano',  'status': 'contacted',   'days_ago': 95},
    {'indicator_name': 'Klaus Weber',    'source_company': 'Rheinbau GmbH',        'source_type': 'Construtora',     'location': 'Köln, Germany',           'volume': '200 t/ano',  'status': 'approved',    'days_ago': 70},
    {'indicator_name': 'Inês Duarte',    'source_company': 'Pedreiras do Norte',   'source_type': 'Pedreira',        'location': 'Porto, Portugal, Europe', 'volume': '150 t/ano',  'status': 'rejected',    'days_ago': 45},
    {'indicator_name': 'Diego Rojas',    'source_company': 'Minera Atacama',       'source_type': 'Mineradora',      'location': 'Antofagasta, Chile',      'volume': '2500 t/ano', 'status': 'converted',   'days_ago': 30},
    {'indicator_name': 'Lucía Vargas',   'source_company': 'Cobre Andino',         'source_type': 'Mineradora',      'location': 'Arequipa, Peru',          'volume': '900 t/ano',  'status': 'pending',     'days_ago': 12},
    {'indicator_name': 'Ahmed Nasser',   'source_company': 'Gulf Haulage',         'source_type': 'Transportadora',  'location': 'Dubai',                   'volume': '600 t/ano',  'status': 'pending',     'days_ago': 5},
    {'indicator_name': 'Renata Lopes',   'source_company': 'Agro Cerrado',         'source_type': '',                'location': '',                        'volume': '',           'status': 'pending',     'days_ago': 2},
]

# Prefix for seeded IDs so we can clear them
SEED_PREFIX = 'seed-'


def make_id():
    return SEED_PREFIX + str(uuid.uuid4())


def _email(name):
    return name.split()[0].lower().replace('í', 'i').replace('ê', 'e') + '@example.com'


def seed_leads(session, now):
    """Scenario 1 + 2: one OTR lead per source, notes for every non-pending status."""
    for src in SOURCES:
        created = now - timedelta(days=src['days_ago'])
        values = {
            'indicator_name': src['indicator_name'],
            'indicator_company': 'Parceiro ELP',
            'indicator_email': _email(src['indicator_name']),
            'indicator_phone': '+55 11 4000-0000',
            'source_name': f"Compras {src['source_company']}",
            'source_company': src['source_company'],
            'source_type': src['source_type'],
            'location': src['location'],
            'volume': src['volume'],
            'tire_sizes': '57R63, 40.00R57' if src['source_type'] == 'Mineradora' else '',
            'details': 'Pneus OTR fora de uso acumulados no pátio.',
        }
        lead = Contact(
            id=make_id(),
            name=values['indicator_name'],
            email=values['indicator_email'],
            company=values['indicator_company'],
            subject=f"Indicação OTR: {src['source_company']}",
            message=compose_otr_message(values),
            channel=OTR_CHANNEL,
            status=src['status'],
            created_at=created,
            updated_at=created + timedelta(days=1),
        )
        session.add(lead)

        if src['status'] != 'pending':
            session.add(LeadNote(
                id=make_id(),
                contact_id=lead.id,
                note=status_change_text(src['status']),
                note_type='status_change',
                created_at=created + timedelta(days=1),
            ))

    print(f'  {len(SOURCES)} OTR leads ({", ".join(STATUS_LABELS.values())})')


def seed_general_contact(session, now):
    """Scenario 3: a plain contact form that must stay out of the OTR views."""
    session.add(Contact(
        id=make_id(),
        name='Fernanda Alves',
        email='fernanda@example.com',
        subject='Orçamento de granulado',
        message='Gostaria de um orçamento para 20 t de granulado de borracha.',
        channel='general',
        status='pending',
        created_at=now - timedelta(days=3),
        updated_at=now - timedelta(days=3),
    ))
    print('  1 general contact')


def seed_goal(session, now):
    """Scenario 4: conversion goal for the current month."""
    existing = session.query(ConversionGoal).filter_by(month=now.month, year=now.year).first()
    if existing:
        print('  Goal for this month already exists, skipped.')
        return
    session.add(ConversionGoal(
        id=make_id(),
        month=now.month,
        year=now.year,
        target_leads=10,
        target_conversions=2,
        notes='Meta de teste',
    ))
    print(f'  Goal for {now.month:02d}/{now.year}')


def seed_marketplace(session, now):
    """Scenario 5: a buyer pre-registration, qualified and due for follow-up."""
    session.add(MarketplaceRegistration(
        id=make_id(),
        company_name='Borracha Norte',
        contact_name='Carlos Dias',
        email='carlos@example.com',
        country='Brasil',
        company_type='buyer',
        products_interest=['rcb', 'steel-wire'],
        estimated_volume='500 t/mês',
        lead_level='qualified',
        priority='high',
        next_action='Enviar LOI',
        next_action_date=now + timedelta(days=2),
        created_at=now - timedelta(days=4),
        updated_at=now - timedelta(days=4),
    ))
    print('  1 marketplace registration')


def clear_seeded_data(session):
    """Remove all seeded contacts, notes and goals."""
    deleted_notes = session.query(LeadNote).filter(LeadNote.id.like(f'{SEED_PREFIX}%')).delete(synchronize_session=False)
    deleted_contacts = session.query(Contact).filter(Contact.id.like(f'{SEED_PREFIX}%')).delete(synchronize_session=False)
    deleted_goals = session.query(ConversionGoal).filter(ConversionGoal.id.like(f'{SEED_PREFIX}%')).delete(synchronize_session=False)
    deleted_regs = session.query(MarketplaceRegistration).filter(MarketplaceRegistration.id.like(f'{SEED_PREFIX}%')).delete(synchronize_session=False)
    session.commit()

    if not (deleted_notes or deleted_contacts or deleted_goals or deleted_regs):
        print('No seeded data found.')
        return

    print(f'Cleared {deleted_contacts} contacts, {deleted_notes} notes, {deleted_goals} goals, {deleted_regs} registrations.')


def main():
    parser = argparse.ArgumentParser(description='Seed OTR leads for local verification')
    parser.add_argument('--clear', action='store_true', help='Clear seeded data before (or instead of) seeding')
    parser.add_argument('--clear-only', action='store_true', help='Only clear, do not re-seed')
    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        # Ensure tables exist (for SQLite local dev)
        Base.metadata.create_all(engine)

        session = get_session()
        try:
            if args.clear or args.clear_only:
                clear_seeded_data(session)
                if args.clear_only:
                    return

            print('Seeding test data...')
            now = datetime.now(timezone.utc)
            seed_leads(session, now)
            seed_general_contact(session, now)
            seed_goal(session, now)
            seed_marketplace(session, now)
            session.commit()
            print('\nDone! Visit http://localhost:8080/api/otr/analytics to verify.')

        except Exception as e:
            session.rollback()
            print(f'Error: {e}')
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
