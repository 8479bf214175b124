"""
LeadNote model — append-only audit trail attached to a contact.
"""
from sqlalchemy import Column, Text, DateTime, Index

from otr_crm.database import Base
from otr_crm.models.contact import _new_id, _utcnow


class LeadNote(Base):
    __tablename__ = 'lead_notes'

    id = Column(Text, primary_key=True, default=_new_id)
    contact_id = Column(Text, nullable=False)  # back-reference only, no FK ownership
    user_id = Column(Text, nullable=True)
    note = Column(Text, nullable=False)
    note_type = Column(Text, nullable=False, default='note')
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index('ix_lead_notes_contact_id', 'contact_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'contact_id': self.contact_id,
            'user_id': self.user_id,
            'note': self.note,
            'note_type': self.note_type,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
