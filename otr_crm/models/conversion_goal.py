"""
ConversionGoal model — monthly OTR lead/conversion targets, one row per (month, year).
"""
from sqlalchemy import Column, Integer, Text, DateTime, UniqueConstraint

from otr_crm.database import Base
from otr_crm.models.contact import _new_id, _utcnow


class ConversionGoal(Base):
    __tablename__ = 'otr_conversion_goals'

    id = Column(Text, primary_key=True, default=_new_id)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    target_leads = Column(Integer, nullable=False, default=0)
    target_conversions = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_by = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('month', 'year', name='uq_otr_conversion_goals_month_year'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'month': self.month,
            'year': self.year,
            'target_leads': self.target_leads,
            'target_conversions': self.target_conversions,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
