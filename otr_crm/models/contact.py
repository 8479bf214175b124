"""
Contact model — one row per form submission (leads live here too, tagged by channel).
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Text, DateTime, Index

from otr_crm.database import Base


def _new_id():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.now(timezone.utc)


class Contact(Base):
    __tablename__ = 'contacts'

    id = Column(Text, primary_key=True, default=_new_id)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    company = Column(Text, nullable=True)
    subject = Column(Text, nullable=True)
    message = Column(Text, nullable=False, default='')
    channel = Column(Text, nullable=True, default='general')
    # Open string; the known labels live in config.STATUS_LABELS
    status = Column(Text, nullable=True, default='pending')
    # CRM pipeline fields; None reads as the default stage / priority
    lead_level = Column(Text, nullable=True)
    priority = Column(Text, nullable=True)
    next_action = Column(Text, nullable=True)
    next_action_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index('ix_contacts_channel_created_at', 'channel', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'company': self.company,
            'subject': self.subject,
            'message': self.message,
            'channel': self.channel,
            'status': self.status,
            'lead_level': self.lead_level,
            'priority': self.priority,
            'next_action': self.next_action,
            'next_action_date': self.next_action_date.isoformat() if self.next_action_date else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
