"""Tests for otr_crm.leads.pipeline — the unified CRM board."""
from datetime import datetime, timedelta, timezone

import pytest

from otr_crm.config import OTR_CHANNEL
from otr_crm.leads.pipeline import (
    PipelineLead,
    filter_pipeline,
    group_by_stage,
    pipeline_stats,
    reminder_status,
    unify_leads,
    update_pipeline_lead,
)
from otr_crm.leads.workflow import LeadNotFound
from otr_crm.models.contact import Contact
from otr_crm.models.marketplace_registration import MarketplaceRegistration


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


def _contact(**overrides):
    values = dict(
        id='c-1', name='Ana Lima', email='ana@example.com', company='Acme',
        message='Olá', channel='general', status=None, created_at=_utc(2026, 10, 1),
    )
    values.update(overrides)
    return Contact(**values)


def _registration(**overrides):
    values = dict(
        id='m-1', company_name='Borracha Norte', contact_name='Carlos Dias',
        email='carlos@borrachanorte.com', phone='+55 91 3000-0000', country='Brasil',
        company_type='seller', products_interest=['rcb'], estimated_volume='50 t',
        status=None, created_at=_utc(2026, 10, 5),
    )
    values.update(overrides)
    return MarketplaceRegistration(**values)


def _lead(**overrides):
    values = dict(
        id='x', type='contact', name='Ana', email='ana@example.com', company=None,
        phone=None, country=None, message=None, status='new', lead_level='initial',
        priority='medium', channel='general', created_at=_utc(2026, 10, 1),
    )
    values.update(overrides)
    return PipelineLead(**values)


class TestUnifyLeads:

    def test_types_and_defaults(self):
        leads = unify_leads(
            [_contact(id='c-1'), _contact(id='c-2', channel=OTR_CHANNEL)],
            [_registration()],
        )
        by_id = {l.id: l for l in leads}
        assert by_id['c-1'].type == 'contact' and by_id['c-1'].status == 'new'
        assert by_id['c-2'].type == 'otr' and by_id['c-2'].status == 'pending'
        reg = by_id['m-1']
        assert reg.type == 'marketplace'
        assert reg.channel == 'marketplace'
        assert reg.status == 'pending'
        assert reg.name == 'Carlos Dias'
        assert reg.company == 'Borracha Norte'
        assert reg.products_interest == ['rcb']
        assert all(l.lead_level == 'initial' and l.priority == 'medium' for l in leads)

    def test_stored_stage_and_priority_kept(self):
        lead, = unify_leads([_contact(lead_level='project', priority='urgent')], [])
        assert (lead.lead_level, lead.priority) == ('project', 'urgent')

    def test_newest_first_across_tables(self):
        leads = unify_leads(
            [_contact(id='old', created_at=_utc(2026, 9, 1)),
             _contact(id='new', created_at=datetime(2026, 10, 10))],
            [_registration(id='mid', created_at=_utc(2026, 10, 5))],
        )
        assert [l.id for l in leads] == ['new', 'mid', 'old']

    def test_to_dict(self):
        lead, = unify_leads([], [_registration(next_action_date=_utc(2026, 10, 20, 9))])
        data = lead.to_dict(now=NOW)
        assert data['created_at'] == '2026-10-05T00:00:00+00:00'
        assert data['reminder'] == 'soon'
        assert data['stage_label'] == 'Inicial'
        assert data['company_type'] == 'seller'


class TestReminderStatus:

    @pytest.mark.parametrize('when,expected', [
        (None, None),
        (NOW - timedelta(days=2), 'overdue'),
        (NOW - timedelta(hours=6), 'today'),
        (NOW + timedelta(hours=1), 'soon'),
        (NOW + timedelta(days=3), 'soon'),
        (NOW + timedelta(days=3, hours=1), 'scheduled'),
    ])
    def test_buckets(self, when, expected):
        assert reminder_status(when, now=NOW) == expected

    def test_naive_dates_read_as_utc(self):
        assert reminder_status(datetime(2026, 10, 10), now=NOW) == 'overdue'


class TestFilterPipeline:

    def test_search_name_email_company_case_insensitive(self):
        a = _lead(id='a', name='Ana Lima')
        b = _lead(id='b', email='JOAO@minera.cl')
        c = _lead(id='c', company='Cobre Andino')
        d = _lead(id='d', message='cobre no texto só')
        leads = [a, b, c, d]
        assert filter_pipeline(leads, search='LIMA') == [a]
        assert filter_pipeline(leads, search='minera') == [b]
        assert filter_pipeline(leads, search='cobre') == [c]

    def test_type_and_priority(self):
        otr = _lead(id='o', type='otr', priority='high')
        reg = _lead(id='m', type='marketplace', priority='urgent')
        assert filter_pipeline([otr, reg], lead_type='marketplace') == [reg]
        assert filter_pipeline([otr, reg], priority='high') == [otr]
        assert filter_pipeline([otr, reg], lead_type='all', priority='all') == [otr, reg]

    def test_reminder_filters(self):
        overdue = _lead(id='o', next_action_date=NOW - timedelta(days=3))
        today = _lead(id='t', next_action_date=NOW + timedelta(hours=-2))
        soon = _lead(id='s', next_action_date=NOW + timedelta(days=2))
        none = _lead(id='n')
        leads = [overdue, today, soon, none]
        assert filter_pipeline(leads, reminder='overdue', now=NOW) == [overdue]
        assert filter_pipeline(leads, reminder='today', now=NOW) == [today]
        assert filter_pipeline(leads, reminder='soon', now=NOW) == [today, soon]
        assert filter_pipeline(leads, reminder='none', now=NOW) == [none]


class TestStages:

    def test_group_in_stage_order(self):
        leads = [_lead(id='p', lead_level='project'), _lead(id='i'), _lead(id='q', lead_level='qualified'),
                 _lead(id='z', lead_level='archived')]
        columns = group_by_stage(leads)
        assert list(columns) == ['initial', 'qualified', 'project']
        assert [[l.id for l in col] for col in columns.values()] == [['i'], ['q'], ['p']]

    def test_stats(self):
        leads = [
            _lead(id='a', priority='urgent', next_action_date=NOW - timedelta(days=2)),
            _lead(id='b', lead_level='qualified', next_action_date=NOW),
            _lead(id='c', lead_level='project'),
        ]
        assert pipeline_stats(leads, now=NOW) == {
            'total': 3, 'initial': 1, 'qualified': 1, 'project': 1,
            'urgent': 1, 'overdue': 1, 'today': 1,
        }


class TestUpdatePipelineLead:

    def test_contact_stage_and_priority(self, make_lead, test_sessions, mock_redis):
        lead_id = make_lead().id
        lead = update_pipeline_lead('otr', lead_id, {'lead_level': 'qualified', 'priority': 'high'})
        assert (lead.type, lead.lead_level, lead.priority) == ('otr', 'qualified', 'high')
        session = test_sessions()
        row = session.get(Contact, lead_id)
        assert (row.lead_level, row.priority) == ('qualified', 'high')
        session.close()
        assert 'otr-leads' in mock_redis.publish.call_args.args[1]

    def test_marketplace_follow_up(self, db_session):
        db_session.add(_registration(id='m-9'))
        db_session.commit()
        lead = update_pipeline_lead('marketplace', 'm-9', {
            'next_action': '  Enviar LOI ', 'next_action_date': '2026-10-21T10:00:00Z',
        })
        assert lead.next_action == 'Enviar LOI'
        assert lead.to_dict()['next_action_date'] == '2026-10-21T10:00:00+00:00'

    def test_blank_follow_up_clears_it(self, make_lead):
        lead_id = make_lead(next_action='Ligar', next_action_date=NOW).id
        lead = update_pipeline_lead('contact', lead_id, {'next_action': '', 'next_action_date': ''})
        assert lead.next_action is None
        assert lead.next_action_date is None

    @pytest.mark.parametrize('updates', [
        {'lead_level': 'won'},
        {'priority': 'critical'},
        {'next_action_date': 'amanhã'},
        {'status': 'approved'},
        {},
    ])
    def test_rejects_bad_updates(self, make_lead, updates):
        lead_id = make_lead().id
        with pytest.raises(ValueError):
            update_pipeline_lead('otr', lead_id, updates)

    def test_missing_lead(self):
        with pytest.raises(LeadNotFound):
            update_pipeline_lead('marketplace', 'missing', {'priority': 'low'})
