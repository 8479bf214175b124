"""
NewsletterSubscriber model — unique by email.
"""
from sqlalchemy import Column, Text, DateTime, JSON

from otr_crm.database import Base
from otr_crm.models.contact import _new_id, _utcnow


class NewsletterSubscriber(Base):
    __tablename__ = 'newsletter_subscribers'

    id = Column(Text, primary_key=True, default=_new_id)
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=True)
    language = Column(Text, nullable=False, default='pt')
    interests = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
