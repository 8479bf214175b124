"""Tests for otr_crm.leads.intake — public contact and OTR indication forms."""
from unittest.mock import patch

import pytest

from otr_crm.config import OTR_CHANNEL
from otr_crm.leads.intake import (
    AlreadyRegistered, submit_contact, submit_marketplace_registration, submit_otr_indication,
)
from otr_crm.leads.parser import parse_otr_message
from otr_crm.models.contact import Contact
from otr_crm.models.marketplace_registration import MarketplaceRegistration
from otr_crm.services.functions import FunctionInvokeError


class TestSubmitContact:

    def test_stores_pending_contact(self, mock_invoke, test_sessions):
        data = submit_contact('Ana', 'ana@example.com', 'Olá', company='Acme')
        session = test_sessions()
        row = session.get(Contact, data['id'])
        assert row.status == 'pending'
        assert row.channel == 'general'
        assert row.company == 'Acme'
        session.close()

    def test_sends_confirmation_email(self, mock_invoke):
        submit_contact('Ana', 'ana@example.com', 'Olá')
        name, body = mock_invoke.call_args.args
        assert name == 'send-contact-email'
        assert body['email'] == 'ana@example.com'
        assert body['channel'] == 'general'

    def test_email_failure_keeps_contact(self, test_sessions):
        with patch('otr_crm.services.functions.invoke', side_effect=FunctionInvokeError('x', 'down')):
            data = submit_contact('Ana', 'ana@example.com', 'Olá')
        session = test_sessions()
        assert session.get(Contact, data['id']) is not None
        session.close()

    @pytest.mark.parametrize('name,email,message', [
        ('', 'ana@example.com', 'Olá'),
        ('Ana', 'not-an-email', 'Olá'),
        ('Ana', 'ana@example.com', '   '),
    ])
    def test_validation(self, name, email, message, mock_invoke):
        with pytest.raises(ValueError):
            submit_contact(name, email, message)
        mock_invoke.assert_not_called()


class TestSubmitOTRIndication:

    def test_stores_parseable_message(self, otr_values, mock_invoke, test_sessions):
        data = submit_otr_indication(otr_values)
        assert data['channel'] == OTR_CHANNEL
        assert data['subject'] == 'Indicação OTR: Mineração Vale Verde'
        assert data['name'] == 'Maria Souza'
        assert parse_otr_message(data['message']).to_dict() == otr_values

    def test_publishes_lead_and_contact_keys(self, otr_values, mock_invoke, mock_redis):
        submit_otr_indication(otr_values)
        message = mock_redis.publish.call_args.args[1]
        assert 'otr-leads' in message
        assert 'admin-contacts' in message

    def test_subject_falls_back_to_source_name(self, otr_values, mock_invoke):
        otr_values['source_company'] = ''
        data = submit_otr_indication(otr_values)
        assert data['subject'] == 'Indicação OTR: João Lima'

    def test_requires_source_company_or_name(self, otr_values, mock_invoke):
        otr_values['source_company'] = ''
        otr_values['source_name'] = ''
        with pytest.raises(ValueError):
            submit_otr_indication(otr_values)


@pytest.fixture
def registration_values():
    return {
        'company_name': 'Borracha Norte',
        'contact_name': 'Carlos Dias',
        'email': '  Carlos@BorrachaNorte.com ',
        'phone': '',
        'country': 'Brasil',
        'company_type': 'buyer',
        'products_interest': ['rcb', 'steel-wire'],
        'estimated_volume': '500 t/mês',
        'message': '',
    }


class TestSubmitMarketplaceRegistration:

    def test_stores_normalized_registration(self, registration_values, mock_invoke, test_sessions):
        data = submit_marketplace_registration(registration_values)
        session = test_sessions()
        row = session.get(MarketplaceRegistration, data['id'])
        assert row.email == 'carlos@borrachanorte.com'
        assert row.phone is None
        assert row.message is None
        assert row.products_interest == ['rcb', 'steel-wire']
        assert row.status == 'pending'
        session.close()

    def test_sends_confirmation_email(self, registration_values, mock_invoke):
        data = submit_marketplace_registration(registration_values, language='es')
        name, body = mock_invoke.call_args.args
        assert name == 'send-marketplace-email'
        assert body['registrationId'] == data['id']
        assert body['companyType'] == 'buyer'
        assert body['productsInterest'] == ['rcb', 'steel-wire']
        assert body['language'] == 'es'

    def test_duplicate_email_rejected_before_any_write(self, registration_values, mock_invoke, test_sessions):
        submit_marketplace_registration(registration_values)
        mock_invoke.reset_mock()
        registration_values['email'] = 'CARLOS@borrachanorte.com'
        with pytest.raises(AlreadyRegistered):
            submit_marketplace_registration(registration_values)
        mock_invoke.assert_not_called()
        session = test_sessions()
        assert session.query(MarketplaceRegistration).count() == 1
        session.close()

    def test_email_failure_keeps_registration(self, registration_values, test_sessions):
        with patch('otr_crm.services.functions.invoke', side_effect=FunctionInvokeError('x', 'down')):
            data = submit_marketplace_registration(registration_values)
        session = test_sessions()
        assert session.get(MarketplaceRegistration, data['id']) is not None
        session.close()

    def test_publishes_registration_key(self, registration_values, mock_invoke, mock_redis):
        submit_marketplace_registration(registration_values)
        assert 'marketplace-registrations' in mock_redis.publish.call_args.args[1]

    @pytest.mark.parametrize('field,value', [
        ('company_name', ''),
        ('contact_name', '  '),
        ('country', None),
        ('email', 'carlos'),
        ('company_type', 'broker'),
        ('products_interest', []),
        ('products_interest', ['tires']),
    ])
    def test_validation(self, registration_values, field, value, mock_invoke):
        registration_values[field] = value
        with pytest.raises(ValueError):
            submit_marketplace_registration(registration_values)
        mock_invoke.assert_not_called()
