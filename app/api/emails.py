"""
Email Classification Routes Blueprint

- POST /api/emails/classify        : classify one email (nothing stored)
- POST /api/emails/classify/batch  : classify a list of emails (nothing stored)
- POST /api/emails                 : classify and store emails (database only)
- GET  /api/emails                 : list stored emails (?category=, ?limit=)
- GET  /api/emails/summary         : stored email count per category
- POST /api/emails/reclassify      : re-run classification over stored emails
"""

import logging
from flask import Blueprint, request, jsonify, current_app

from services.category_service import CategoryService
from services.email_classifier import CategoryRule, get_default_rules, summarize
from services.email_service import EmailService
from validators import validate_email_payload, validate_patterns

logger = logging.getLogger(__name__)

# Create blueprint
emails_bp = Blueprint('emails_bp', __name__, url_prefix='/api/emails')


def get_classifier():
    """Get the email classifier built by the app factory"""
    return current_app.extensions['email_classifier']


def database_enabled():
    return current_app.config.get('STORAGE_MODE') == 'database'


def database_unavailable():
    return jsonify({
        'success': False,
        'error': 'Service Unavailable',
        'message': 'Email storage requires a configured database'
    }), 503


def _stored_rules(session):
    """Active stored rules, or None when no category has been stored at all"""
    service = CategoryService(session)
    if not service.has_categories():
        return None
    return service.get_rules_for_classification()


def get_rules(session=None):
    """
    Active category rules in definition order.

    Stored categories are used when a database is configured, even if none
    of them is active. The built-in rules are the fallback only when the
    categories table is empty (or no database exists) and
    CLASSIFIER_USE_DEFAULT_RULES is on.
    """
    rules = None
    if session is not None:
        rules = _stored_rules(session)
    elif database_enabled():
        from database.connection import get_db_session
        with get_db_session() as db:
            rules = _stored_rules(db)

    if rules is None:
        rules = get_default_rules() if current_app.config.get('CLASSIFIER_USE_DEFAULT_RULES', True) else []

    return rules


def rules_from_request(data):
    """Inline rules sent with the request, or None to use the configured ones"""
    rules = data.get('rules')
    if rules is None:
        return None, None

    if not isinstance(rules, list) or not all(isinstance(r, dict) and r.get('name') for r in rules):
        return None, 'rules must be a list of objects with a name'

    for rule in rules:
        is_valid, error = validate_patterns(rule.get('patterns') or [])
        if not is_valid:
            return None, f"Rule '{rule['name']}': {error}"

    return [CategoryRule.from_dict(r) for r in rules], None


def bad_request(message):
    return jsonify({'success': False, 'error': 'Invalid request', 'message': message}), 400


def classification_payload(result):
    payload = result.to_dict()
    payload['label'] = get_classifier().get_category_label(result.category)
    return payload


@emails_bp.route('/classify', methods=['POST'])
def classify_email():
    """
    Classify a single email.

    Body is either the email itself or {"email": {...}, "rules": [...]}.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return bad_request('Request body must be a JSON object')

    email = data['email'] if 'email' in data else data
    is_valid, error = validate_email_payload(email)
    if not is_valid:
        return bad_request(error)

    rules, error = rules_from_request(data)
    if error:
        return bad_request(error)

    try:
        result = get_classifier().classify(email, rules if rules is not None else get_rules())
        return jsonify({
            'success': True,
            'data': classification_payload(result),
            'message': 'Email classified successfully'
        })
    except Exception as e:
        logger.error(f"Error classifying email: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to classify email', 'message': str(e)}), 500


@emails_bp.route('/classify/batch', methods=['POST'])
def classify_batch():
    """Classify {"emails": [...], "rules": [...]?}; results keep input order"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get('emails'), list):
        return bad_request('emails must be a list')

    emails = data['emails']
    limit = current_app.config.get('CLASSIFY_BATCH_LIMIT', 500)
    if len(emails) > limit:
        return bad_request(f"At most {limit} emails can be classified per request")

    for index, email in enumerate(emails):
        is_valid, error = validate_email_payload(email)
        if not is_valid:
            return bad_request(f"Email {index}: {error}")

    rules, error = rules_from_request(data)
    if error:
        return bad_request(error)

    try:
        results = get_classifier().classify_many(emails, rules if rules is not None else get_rules())
        return jsonify({
            'success': True,
            'data': {
                'results': [classification_payload(r) for r in results],
                'summary': summarize(results)
            },
            'message': f"Classified {len(results)} emails"
        })
    except Exception as e:
        logger.error(f"Error classifying emails: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to classify emails', 'message': str(e)}), 500


@emails_bp.route('', methods=['POST'])
def ingest_emails():
    """Classify and store one email or {"emails": [...]}"""
    if not database_enabled():
        return database_unavailable()

    data = request.get_json(silent=True)
    if isinstance(data, dict) and 'emails' in data:
        emails = data['emails']
    else:
        emails = [data]

    if not isinstance(emails, list):
        return bad_request('emails must be a list')

    for index, email in enumerate(emails):
        is_valid, error = validate_email_payload(email)
        if not is_valid:
            return bad_request(f"Email {index}: {error}")

    try:
        from database.connection import get_db_session
        with get_db_session() as session:
            service = EmailService(session, get_classifier())
            stored = service.ingest_emails(emails, get_rules(session))

        return jsonify({
            'success': True,
            'data': stored,
            'message': f"Stored {len(stored)} emails"
        }), 201
    except Exception as e:
        logger.error(f"Error storing emails: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to store emails', 'message': str(e)}), 500


@emails_bp.route('', methods=['GET'])
def list_emails():
    """List stored emails, newest first"""
    if not database_enabled():
        return database_unavailable()

    try:
        limit = min(int(request.args.get('limit', 50)), 500)
    except ValueError:
        return bad_request('limit must be an integer')
    if limit < 1:
        return bad_request('limit must be at least 1')

    try:
        from database.connection import get_db_session
        with get_db_session() as session:
            emails = EmailService(session).list_emails(
                category=request.args.get('category'),
                limit=limit
            )

        return jsonify({
            'success': True,
            'data': emails,
            'message': 'Emails retrieved successfully'
        })
    except Exception as e:
        logger.error(f"Error retrieving emails: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to retrieve emails', 'message': str(e)}), 500


@emails_bp.route('/summary', methods=['GET'])
def email_summary():
    """Stored email count per category"""
    if not database_enabled():
        return database_unavailable()

    try:
        from database.connection import get_db_session
        with get_db_session() as session:
            summary = EmailService(session).get_category_summary()

        return jsonify({
            'success': True,
            'data': summary,
            'message': 'Summary retrieved successfully'
        })
    except Exception as e:
        logger.error(f"Error building email summary: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to build summary', 'message': str(e)}), 500


@emails_bp.route('/reclassify', methods=['POST'])
def reclassify_emails():
    """Re-run classification over every stored email"""
    if not database_enabled():
        return database_unavailable()

    try:
        from database.connection import get_db_session
        with get_db_session() as session:
            service = EmailService(session, get_classifier())
            changed = service.reclassify_all(get_rules(session))

        return jsonify({
            'success': True,
            'data': {'changed': changed},
            'message': f"{changed} emails changed category"
        })
    except Exception as e:
        logger.error(f"Error reclassifying emails: {e}", exc_info=True)
        return jsonify({'success': False, 'error': 'Failed to reclassify emails', 'message': str(e)}), 500
