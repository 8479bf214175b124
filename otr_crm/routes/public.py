"""
Public routes — health check, contact / OTR indication / marketplace forms, newsletter signup.
"""
import logging
from flask import Blueprint, request, jsonify

from otr_crm.leads.intake import (
    AlreadyRegistered, submit_contact, submit_marketplace_registration, submit_otr_indication,
)
from otr_crm.services.newsletter import subscribe_newsletter, AlreadySubscribed

logger = logging.getLogger('routes.public')

bp = Blueprint('public', __name__)


@bp.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({"status": "healthy"}), 200


@bp.route('/api/contact', methods=['POST'])
def create_contact():
    data = request.get_json(silent=True) or {}
    try:
        contact = submit_contact(
            name=data.get('name'),
            email=data.get('email'),
            message=data.get('message'),
            company=data.get('company'),
            subject=data.get('subject'),
            channel=data.get('channel'),
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception:
        logger.error("Contact submission failed", exc_info=True)
        return jsonify({'error': 'Could not save your message, please try again'}), 500
    return jsonify({'success': True, 'id': contact['id']}), 201


@bp.route('/api/otr/indications', methods=['POST'])
def create_otr_indication():
    data = request.get_json(silent=True) or {}
    try:
        contact = submit_otr_indication(data)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except Exception:
        logger.error("OTR indication submission failed", exc_info=True)
        return jsonify({'error': 'Could not save the indication, please try again'}), 500
    return jsonify({'success': True, 'id': contact['id']}), 201


@bp.route('/api/newsletter', methods=['POST'])
def newsletter_signup():
    data = request.get_json(silent=True) or {}
    try:
        subscribe_newsletter(
            email=data.get('email'),
            name=data.get('name'),
            language=data.get('language') or 'pt',
            interests=data.get('interests') or [],
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except AlreadySubscribed:
        return jsonify({'error': 'Este email já está inscrito na newsletter.'}), 409
    except Exception:
        logger.error("Newsletter signup failed", exc_info=True)
        return jsonify({'error': 'Could not subscribe, please try again'}), 500
    return jsonify({'success': True}), 201


@bp.route('/api/marketplace', methods=['POST'])
def marketplace_registration():
    data = request.get_json(silent=True) or {}
    try:
        registration = submit_marketplace_registration(data, language=data.get('language') or 'pt')
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except AlreadyRegistered:
        return jsonify({
            'error': 'Este email já possui um pré-registro. Nossa equipe entrará em contato em breve.',
        }), 409
    except Exception:
        logger.error("Marketplace registration failed", exc_info=True)
        return jsonify({'error': 'Could not save the registration, please try again'}), 500
    return jsonify({'success': True, 'id': registration['id']}), 201
