"""
NotificationWebhook model — Slack / Teams / Discord endpoints subscribed to lead events.
"""
from sqlalchemy import Column, Text, Boolean, DateTime, JSON

from otr_crm.database import Base
from otr_crm.models.contact import _new_id, _utcnow


class NotificationWebhook(Base):
    __tablename__ = 'notification_webhooks'

    id = Column(Text, primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    webhook_url = Column(Text, nullable=False)
    webhook_type = Column(Text, nullable=False, default='slack')  # slack / teams / discord
    is_active = Column(Boolean, nullable=False, default=True)
    events = Column(JSON, nullable=False, default=list)
    created_by = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'webhook_url': self.webhook_url,
            'webhook_type': self.webhook_type,
            'is_active': self.is_active,
            'events': list(self.events or []),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
