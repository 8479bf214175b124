"""
Newsletter signups.
"""
import logging

from sqlalchemy.exc import IntegrityError

from otr_crm.database import get_session
from otr_crm.models.newsletter_subscriber import NewsletterSubscriber
from otr_crm.services import changes

logger = logging.getLogger('services.newsletter')


class AlreadySubscribed(Exception):
    pass


def subscribe_newsletter(email, name=None, language='pt', interests=None):
    email = (email or '').strip().lower()
    if '@' not in email:
        raise ValueError('A valid email is required')

    session = get_session()
    try:
        session.add(NewsletterSubscriber(
            email=email,
            name=(name or '').strip() or None,
            language=language or 'pt',
            interests=list(interests or []),
        ))
        session.commit()
    except IntegrityError as e:
        session.rollback()
        raise AlreadySubscribed(email) from e
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Newsletter subscription added (%s)", language or 'pt')
    changes.publish(changes.NEWSLETTER_SUBSCRIBERS)
