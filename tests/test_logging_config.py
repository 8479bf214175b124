"""Tests for logging setup and lead context fields."""
import json
import logging
import os
import sys
from unittest.mock import patch, MagicMock

import pytest

from otr_crm.logging_config import (
    configure_logging, context_of, ContextTextFormatter, JSONFormatter,
)


@pytest.fixture(autouse=True)
def _reset_root_logger():
    root = logging.getLogger()
    original_level = root.level
    original_handlers = root.handlers[:]
    yield
    root.setLevel(original_level)
    root.handlers = original_handlers


def _record(msg='hello', args=(), level=logging.INFO, **extra):
    record = logging.LogRecord(
        name='leads.workflow', level=level, pathname='', lineno=0,
        msg=msg, args=args, exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestConfigureLogging:

    def test_level_from_env(self):
        with patch.dict(os.environ, {'LOG_LEVEL': 'debug'}):
            configure_logging()
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_level_falls_back_to_info(self):
        with patch.dict(os.environ, {'LOG_LEVEL': 'NONSENSE'}):
            configure_logging()
        assert logging.getLogger().level == logging.INFO

    @pytest.mark.parametrize('log_format,formatter_class', [
        ('json', JSONFormatter),
        ('text', ContextTextFormatter),
        ('', ContextTextFormatter),
    ])
    def test_format_selects_formatter(self, log_format, formatter_class):
        with patch.dict(os.environ, {'LOG_FORMAT': log_format}):
            configure_logging()
        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert type(handlers[0].formatter) is formatter_class

    def test_repeated_calls_keep_one_handler(self):
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_third_party_loggers_quieted(self):
        configure_logging()
        for name in ['urllib3', 'botocore', 'PIL', 'sqlalchemy.engine']:
            assert logging.getLogger(name).level == logging.WARNING

    def test_json_line_carries_lead_id(self, capsys):
        with patch.dict(os.environ, {'LOG_FORMAT': 'json'}):
            configure_logging()
        logging.getLogger('leads.workflow').info(
            "Lead status changed", extra={'lead_id': 'c0ffee00-1111', 'status': 'approved'})
        parsed = json.loads(capsys.readouterr().err.strip())
        assert parsed['message'] == 'Lead status changed'
        assert parsed['lead_id'] == 'c0ffee00-1111'
        assert parsed['status'] == 'approved'


class TestContextFields:

    def test_only_known_fields_are_lifted(self):
        record = _record(lead_id='abc', event='lead_approved', user_password='x')
        assert context_of(record) == {'lead_id': 'abc', 'event': 'lead_approved'}

    def test_none_values_skipped(self):
        assert context_of(_record(lead_id=None, status='pending')) == {'status': 'pending'}


class TestJSONFormatter:

    def test_message_and_context(self):
        record = _record('Indicação %s', ('Mineração',), function='send-reply-email', status_code=200)
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed['message'] == 'Indicação Mineração'
        assert parsed['function'] == 'send-reply-email'
        assert parsed['status_code'] == 200
        assert 'lead_id' not in parsed

    def test_non_serializable_context_rendered_as_text(self):
        class Stage:
            def __str__(self):
                return "weird"

        record = _record(status=Stage())
        assert json.loads(JSONFormatter().format(record))['status'] == 'weird'

    def test_exception_included(self):
        try:
            raise ValueError('smtp down')
        except ValueError:
            record = _record(level=logging.ERROR, lead_id='abc')
            record.exc_info = sys.exc_info()
        parsed = json.loads(JSONFormatter().format(record))
        assert 'ValueError: smtp down' in parsed['exception']
        assert parsed['lead_id'] == 'abc'


class TestContextTextFormatter:

    def test_appends_pairs_in_field_order(self):
        record = _record('Webhook notification failed', event='lead_rejected', lead_id='abc')
        line = ContextTextFormatter().format(record)
        assert line.endswith('leads.workflow: Webhook notification failed [lead_id=abc event=lead_rejected]')

    def test_plain_line_without_context(self):
        line = ContextTextFormatter().format(_record('Weekly report sent'))
        assert line.endswith('INFO leads.workflow: Weekly report sent')


class TestCallersLogContext:

    def test_status_update_logs_lead_id(self, make_lead, mock_invoke, caplog):
        from otr_crm.leads.workflow import update_lead_status
        lead_id = make_lead().id

        with caplog.at_level(logging.INFO, logger='leads.workflow'):
            update_lead_status(lead_id, 'contacted')

        changed = [r for r in caplog.records if r.getMessage() == 'Lead status changed']
        assert len(changed) == 1
        assert changed[0].lead_id == lead_id
        assert changed[0].previous_status == 'pending'
        assert changed[0].status == 'contacted'

    def test_failed_webhook_logs_event_and_function(self, make_lead, mock_invoke, caplog):
        from otr_crm.leads.workflow import update_lead_status
        from otr_crm.services.functions import FunctionInvokeError
        lead_id = make_lead().id
        mock_invoke.side_effect = FunctionInvokeError('send-webhook-notification', 'boom', 502)

        with caplog.at_level(logging.ERROR, logger='leads.workflow'):
            update_lead_status(lead_id, 'rejected')

        failed = [r for r in caplog.records if r.getMessage() == 'Webhook notification failed']
        assert len(failed) == 1
        assert failed[0].lead_id == lead_id
        assert failed[0].event == 'lead_rejected'
        assert failed[0].function == 'send-webhook-notification'

    def test_invoke_logs_function_name(self, caplog):
        from otr_crm.services import functions
        resp = MagicMock(status_code=200)
        resp.json.return_value = {}
        with patch('otr_crm.config.SUPABASE_URL', 'https://proj.supabase.co'), \
             patch('otr_crm.config.SUPABASE_SERVICE_KEY', 'key'), \
             patch('otr_crm.services.functions.requests.post', return_value=resp), \
             caplog.at_level(logging.INFO, logger='services.functions'):
            functions.invoke(functions.SEND_WEEKLY_REPORT)

        record = caplog.records[-1]
        assert record.function == 'send-weekly-report'
        assert record.status_code == 200
