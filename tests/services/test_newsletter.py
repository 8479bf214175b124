"""Tests for otr_crm.services.newsletter."""
import pytest

from otr_crm.models.newsletter_subscriber import NewsletterSubscriber
from otr_crm.services.newsletter import AlreadySubscribed, subscribe_newsletter


class TestSubscribeNewsletter:

    def test_stores_normalized_email(self, test_sessions):
        subscribe_newsletter('  Ana@Example.COM ', name='Ana', interests=['otr'])
        session = test_sessions()
        row = session.query(NewsletterSubscriber).one()
        assert row.email == 'ana@example.com'
        assert row.language == 'pt'
        assert row.interests == ['otr']
        session.close()

    def test_duplicate_email(self):
        subscribe_newsletter('ana@example.com')
        with pytest.raises(AlreadySubscribed):
            subscribe_newsletter('ANA@example.com')

    def test_invalid_email(self):
        with pytest.raises(ValueError):
            subscribe_newsletter('nope')
