"""Shared test fixtures."""
from datetime import datetime, timezone

import pytest
from unittest.mock import patch, MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from otr_crm.database import Base
from otr_crm.leads.parser import compose_otr_message


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created, shared across connections."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    import otr_crm.models.contact
    import otr_crm.models.lead_note
    import otr_crm.models.conversion_goal
    import otr_crm.models.notification_webhook
    import otr_crm.models.newsletter_subscriber
    import otr_crm.models.marketplace_registration
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(autouse=True)
def test_sessions(db_engine):
    """
    Route every get_session() call to the in-memory engine.

    get_session() looks up SessionLocal at call time, so patching the factory
    covers modules that imported get_session directly. Each call still gets
    its own session, so close() in production code is harmless. Session
    options match SessionLocal, so rows expire on commit here too.
    """
    TestSession = sessionmaker(bind=db_engine)
    with patch('otr_crm.database.SessionLocal', TestSession):
        yield TestSession


@pytest.fixture
def db_session(test_sessions):
    """Session for arranging and inspecting rows directly."""
    session = test_sessions()
    yield session
    session.close()


@pytest.fixture(autouse=True)
def mock_redis():
    """Mock Redis client so change events never need a server."""
    mock = MagicMock()
    mock.publish.return_value = 0
    with patch('otr_crm.extensions.redis_client', mock):
        yield mock


@pytest.fixture
def mock_invoke():
    """Mock the hosted-function client as seen by every caller."""
    with patch('otr_crm.services.functions.invoke', return_value={}) as mock:
        yield mock


@pytest.fixture
def app():
    """Flask test app with dashboard auth disabled."""
    with patch('otr_crm.config.DASHBOARD_PASSWORD', None):
        from otr_crm import create_app
        app = create_app()
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def otr_values():
    """Field values for a typical OTR indication."""
    return {
        'indicator_name': 'Maria Souza',
        'indicator_company': 'Recicla Sul',
        'indicator_email': 'maria@reciclasul.com.br',
        'indicator_phone': '+55 11 4000-1000',
        'indicator_whatsapp': '+55 11 99999-0000',
        'source_name': 'João Lima',
        'source_company': 'Mineração Vale Verde',
        'source_type': 'Mineradora',
        'location': 'Itabira, MG, Brasil',
        'volume': '1200 t/ano',
        'tire_sizes': '57R63, 40.00R57',
        'details': 'Pneus acumulados no pátio desde 2021.',
    }


@pytest.fixture
def make_lead(db_session, otr_values):
    """Factory fixture: inserts an OTR contact row and returns it."""
    from otr_crm.config import OTR_CHANNEL
    from otr_crm.models.contact import Contact

    def _make(**overrides):
        values = dict(otr_values)
        values.update(overrides.pop('fields', {}))
        defaults = dict(
            name=values['indicator_name'],
            email=values['indicator_email'],
            company=values['indicator_company'],
            subject=f"Indicação OTR: {values['source_company']}",
            message=compose_otr_message(values),
            channel=OTR_CHANNEL,
            status='pending',
            created_at=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
        )
        defaults.update(overrides)
        lead = Contact(**defaults)
        db_session.add(lead)
        db_session.commit()
        return lead
    return _make


@pytest.fixture
def fake_lead():
    """Factory fixture: a Contact-like MagicMock for the pure functions."""
    def _make(**overrides):
        defaults = dict(
            id='lead-0001-aaaa-bbbb',
            name='Maria Souza',
            email='maria@example.com',
            company='Recicla Sul',
            message='',
            status='pending',
            channel='otr-source-indication',
            created_at=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
        )
        defaults.update(overrides)
        lead = MagicMock()
        for k, v in defaults.items():
            setattr(lead, k, v)
        return lead
    return _make
