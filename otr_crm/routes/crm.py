"""
CRM pipeline routes — the unified board and per-lead stage / priority / follow-up edits.
"""
import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request

from otr_crm.config import LEAD_TYPES, PIPELINE_STAGES
from otr_crm.leads import pipeline
from otr_crm.leads.workflow import LeadNotFound
from otr_crm.services import db

logger = logging.getLogger('routes.crm')

bp = Blueprint('crm', __name__)


@bp.route('/api/crm/pipeline')
def get_pipeline():
    now = datetime.now(timezone.utc)
    leads = pipeline.unify_leads(db.list_leads(channel=None), db.list_marketplace_registrations())
    filtered = pipeline.filter_pipeline(
        leads,
        search=request.args.get('search', ''),
        lead_type=request.args.get('type', 'all'),
        priority=request.args.get('priority', 'all'),
        reminder=request.args.get('reminder', 'all'),
        now=now,
    )
    columns = pipeline.group_by_stage(filtered)
    return jsonify({
        'leads': [l.to_dict(now=now) for l in filtered],
        'count': len(filtered),
        'stages': [
            {'stage': stage, 'label': PIPELINE_STAGES[stage], 'count': len(column),
             'lead_ids': [l.id for l in column]}
            for stage, column in columns.items()
        ],
        'stats': pipeline.pipeline_stats(leads, now=now),
    })


@bp.route('/api/crm/leads/<lead_type>/<lead_id>', methods=['PATCH'])
def update_pipeline_lead(lead_type, lead_id):
    if lead_type not in LEAD_TYPES:
        return jsonify({'error': f"Unknown lead type: {lead_type}"}), 400
    data = request.get_json(silent=True) or {}
    try:
        lead = pipeline.update_pipeline_lead(lead_type, lead_id, data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except LeadNotFound:
        return jsonify({'error': 'Lead not found'}), 404
    except Exception:
        logger.error("Pipeline update failed", exc_info=True, extra={'lead_id': lead_id})
        return jsonify({'error': 'Erro ao atualizar lead'}), 500
    return jsonify(lead.to_dict())
