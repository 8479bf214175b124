"""
MarketplaceRegistration model — pre-registrations from the marketplace form.

Kept apart from contacts; the CRM pipeline merges both. Emails are stored
lowercased and trimmed, which is what the duplicate check compares against.
"""
from sqlalchemy import Column, Text, DateTime, JSON, Index

from otr_crm.database import Base
from otr_crm.models.contact import _new_id, _utcnow


class MarketplaceRegistration(Base):
    __tablename__ = 'marketplace_registrations'

    id = Column(Text, primary_key=True, default=_new_id)
    company_name = Column(Text, nullable=False)
    contact_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=True)
    country = Column(Text, nullable=False)
    company_type = Column(Text, nullable=False)  # buyer / seller / both
    products_interest = Column(JSON, nullable=False, default=list)
    estimated_volume = Column(Text, nullable=True)
    message = Column(Text, nullable=True)
    status = Column(Text, nullable=True, default='pending')
    lead_level = Column(Text, nullable=True)
    priority = Column(Text, nullable=True)
    next_action = Column(Text, nullable=True)
    next_action_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        Index('ix_marketplace_registrations_email', 'email'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'company_name': self.company_name,
            'contact_name': self.contact_name,
            'email': self.email,
            'phone': self.phone,
            'country': self.country,
            'company_type': self.company_type,
            'products_interest': list(self.products_interest or []),
            'estimated_volume': self.estimated_volume,
            'message': self.message,
            'status': self.status,
            'lead_level': self.lead_level,
            'priority': self.priority,
            'next_action': self.next_action,
            'next_action_date': self.next_action_date.isoformat() if self.next_action_date else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
