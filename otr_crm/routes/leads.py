"""
OTR lead management routes — list, status workflow, notes, email, analytics, exports.

All routes sit behind the dashboard login.
"""
import logging
from dataclasses import asdict
from datetime import datetime, timezone

from flask import Blueprint, Response, jsonify, request, session

from otr_crm.config import STATUS_LABELS
from otr_crm.leads import analytics, export, goals
from otr_crm.leads.parser import parse_otr_message
from otr_crm.leads.workflow import (
    LeadNotFound, StatusUpdateError,
    update_lead_status, add_note, delete_note, send_reply_email, status_label,
)
from otr_crm.services import db, functions, storage
from otr_crm.services.functions import FunctionInvokeError

logger = logging.getLogger('routes.leads')

bp = Blueprint('leads', __name__)


def _actor():
    return session.get('user_email')


def _lead_json(lead):
    data = lead.to_dict()
    data['status_label'] = status_label(lead.status)
    data['parsed'] = parse_otr_message(lead.message).to_dict()
    return data


def _date_range():
    return request.args.get('start') or None, request.args.get('end') or None


def _dated_leads():
    """OTR leads inside the ?start=&end= range."""
    start, end = _date_range()
    return analytics.filter_by_date(db.list_leads(), start, end)


def _filtered_leads():
    """_dated_leads() further narrowed by ?search=&status=."""
    leads = _dated_leads()
    return analytics.filter_leads(
        leads,
        search=request.args.get('search', ''),
        status=request.args.get('status', 'all'),
    )


def _download(body, filename, mimetype):
    resp = Response(body, mimetype=mimetype)
    resp.headers['Content-Disposition'] = f'attachment; filename="{filename}"'
    if request.args.get('archive') in ('1', 'true'):
        try:
            url = storage.archive_report(filename, body)
            if url:
                resp.headers['X-Report-Url'] = url
        except Exception:
            logger.error("Failed to archive %s", filename, exc_info=True)
    return resp


# ── Leads ────────────────────────────────────────────────────────────────────

@bp.route('/api/otr/leads')
def list_otr_leads():
    try:
        leads = _filtered_leads()
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify({
        'leads': [_lead_json(l) for l in leads],
        'count': len(leads),
    })


@bp.route('/api/otr/leads/<lead_id>')
def get_otr_lead(lead_id):
    lead = db.get_lead(lead_id)
    if lead is None:
        return jsonify({'error': 'Lead not found'}), 404
    data = _lead_json(lead)
    data['notes'] = [n.to_dict() for n in db.list_notes(lead_id)]
    return jsonify(data)


@bp.route('/api/otr/leads/<lead_id>/status', methods=['POST'])
def change_status(lead_id):
    data = request.get_json(silent=True) or {}
    status = (data.get('status') or '').strip()
    if status not in STATUS_LABELS:
        return jsonify({'error': f"Unknown status: {status or '(empty)'}"}), 400

    try:
        result = update_lead_status(
            lead_id, status,
            send_notification=bool(data.get('send_notification')),
            user_email=_actor(),
        )
    except LeadNotFound:
        return jsonify({'error': 'Lead not found'}), 404
    except StatusUpdateError:
        return jsonify({'error': 'Erro ao atualizar status'}), 500

    if status == 'approved':
        message = 'Notificação enviada à equipe comercial'
    else:
        message = f"Lead marcado como {status_label(status)}"
    return jsonify({'ok': True, 'message': message, **asdict(result)})


# ── Notes ────────────────────────────────────────────────────────────────────

@bp.route('/api/otr/leads/<lead_id>/notes')
def list_lead_notes(lead_id):
    return jsonify([n.to_dict() for n in db.list_notes(lead_id)])


@bp.route('/api/otr/leads/<lead_id>/notes', methods=['POST'])
def create_lead_note(lead_id):
    data = request.get_json(silent=True) or {}
    try:
        note = add_note(lead_id, data.get('note'), data.get('note_type') or 'note')
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except LeadNotFound:
        return jsonify({'error': 'Lead not found'}), 404
    except Exception:
        logger.error("Failed to add note to lead %s", lead_id, exc_info=True)
        return jsonify({'error': 'Erro ao adicionar nota'}), 500
    return jsonify(note), 201


@bp.route('/api/otr/notes/<note_id>', methods=['DELETE'])
def remove_lead_note(note_id):
    if not delete_note(note_id):
        return jsonify({'error': 'Note not found'}), 404
    return jsonify({'ok': True})


@bp.route('/api/otr/leads/<lead_id>/email', methods=['POST'])
def email_lead(lead_id):
    data = request.get_json(silent=True) or {}
    try:
        note_id = send_reply_email(lead_id, data.get('subject'), data.get('message'))
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except LeadNotFound:
        return jsonify({'error': 'Lead not found'}), 404
    except FunctionInvokeError:
        logger.error("Reply email to lead %s failed", lead_id, exc_info=True)
        return jsonify({'error': 'Erro ao enviar email'}), 502
    return jsonify({'ok': True, 'note_id': note_id})


# ── Analytics ────────────────────────────────────────────────────────────────

@bp.route('/api/otr/analytics')
def otr_analytics():
    start, end = _date_range()
    try:
        leads = _dated_leads()
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    today = datetime.now(timezone.utc).date()
    data = asdict(analytics.summarize(leads, today=today, start=start, end=end))

    goal = goals.current_goal(today)
    data['goal'] = analytics.goal_progress(goal, leads) if goal else None
    return jsonify(data)


@bp.route('/api/otr/weekly-summary')
def weekly_summary():
    return jsonify(analytics.weekly_stats(db.list_leads()))


@bp.route('/api/otr/weekly-report', methods=['POST'])
def send_weekly_report():
    try:
        functions.invoke(functions.SEND_WEEKLY_REPORT)
    except FunctionInvokeError:
        logger.error("Weekly report failed", exc_info=True)
        return jsonify({'error': 'Erro ao enviar relatório'}), 502
    return jsonify({'ok': True, 'message': 'Email enviado para os administradores'})


# ── Exports ──────────────────────────────────────────────────────────────────

@bp.route('/api/otr/export.csv')
def export_csv():
    try:
        leads = _filtered_leads()
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return _download(
        export.leads_to_csv(leads),
        export.export_filename('otr-leads', 'csv'),
        'text/csv; charset=utf-8',
    )


@bp.route('/api/otr/report.pdf')
def export_report_pdf():
    # The table filters (search/status) do not apply to the analytics report
    start, end = _date_range()
    try:
        leads = _dated_leads()
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return _download(
        export.analytics_report_pdf(leads, start=start, end=end),
        export.export_filename('relatorio-otr', 'pdf'),
        'application/pdf',
    )


@bp.route('/api/otr/leads/<lead_id>/report.pdf')
def export_lead_pdf(lead_id):
    lead = db.get_lead(lead_id)
    if lead is None:
        return jsonify({'error': 'Lead not found'}), 404
    return _download(
        export.lead_report_pdf(lead),
        export.lead_report_filename(lead),
        'application/pdf',
    )
