"""
Monthly OTR conversion goals — upsert keyed by (month, year).
"""
import logging
from datetime import datetime, timezone

from otr_crm.database import get_session
from otr_crm.models.conversion_goal import ConversionGoal
from otr_crm.services import changes

logger = logging.getLogger('leads.goals')


def _validate(month, year, target_leads, target_conversions):
    if not 1 <= month <= 12:
        raise ValueError('month must be between 1 and 12')
    if year < 2000:
        raise ValueError('year is out of range')
    if target_leads < 0 or target_conversions < 0:
        raise ValueError('targets must not be negative')


def save_goal(month, year, target_leads, target_conversions, notes=None, created_by=None):
    """Insert or overwrite the goal for (month, year). Returns the stored goal as a dict."""
    month, year = int(month), int(year)
    target_leads, target_conversions = int(target_leads), int(target_conversions)
    _validate(month, year, target_leads, target_conversions)

    session = get_session()
    try:
        goal = session.query(ConversionGoal).filter_by(month=month, year=year).first()
        if goal is None:
            goal = ConversionGoal(month=month, year=year, created_by=created_by)
            session.add(goal)
        goal.target_leads = target_leads
        goal.target_conversions = target_conversions
        goal.notes = (notes or '').strip() or None
        goal.updated_at = datetime.now(timezone.utc)
        session.commit()
        data = goal.to_dict()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Saved conversion goal %02d/%d", month, year)
    changes.publish(changes.CONVERSION_GOALS)
    return data


def list_goals():
    """All goals, newest month first."""
    session = get_session()
    try:
        return session.query(ConversionGoal).order_by(
            ConversionGoal.year.desc(), ConversionGoal.month.desc(),
        ).all()
    finally:
        session.close()


def current_goal(today=None):
    today = today or datetime.now(timezone.utc).date()
    session = get_session()
    try:
        return session.query(ConversionGoal).filter_by(month=today.month, year=today.year).first()
    finally:
        session.close()
