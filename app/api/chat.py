"""
Chat Routes Blueprint

Session management and message processing for the chat assistant:
- POST   /api/chat/sessions                      : create session
- GET    /api/chat/sessions                      : list sessions (most recent first)
- GET    /api/chat/sessions/<id>                 : get session
- POST   /api/chat/sessions/<id>/messages        : send a message
- PUT    /api/chat/sessions/<id>/status          : update status
- DELETE /api/chat/sessions/<id>                 : archive session
- GET    /api/chat/health                        : chat service health
"""

import logging
from datetime import datetime
from flask import Blueprint, request, jsonify, current_app

from services.chat_engine import SessionNotFoundError
from validators import validate_chat_message_request, validate_session_status

logger = logging.getLogger(__name__)

# Create blueprint
chat_bp = Blueprint('chat_bp', __name__, url_prefix='/api/chat')


def get_chat_engine():
    """Get the conversation engine built by the app factory"""
    return current_app.extensions['chat_engine']


def session_not_found(session_id):
    return jsonify({
        'success': False,
        'error': 'Session not found',
        'message': f"Chat session {session_id} does not exist"
    }), 404


def server_error(error, message):
    return jsonify({
        'success': False,
        'error': error,
        'message': message
    }), 500


@chat_bp.route('/sessions', methods=['POST'])
def create_session():
    """Create a new chat session"""
    try:
        session = get_chat_engine().create_session()
        return jsonify({
            'success': True,
            'data': session.to_dict(),
            'message': 'Chat session created successfully'
        }), 201
    except Exception as e:
        logger.error(f"Error creating chat session: {e}", exc_info=True)
        return server_error('Failed to create chat session', str(e))


@chat_bp.route('/sessions', methods=['GET'])
def list_sessions():
    """List all chat sessions"""
    try:
        sessions = get_chat_engine().list_sessions()
        return jsonify({
            'success': True,
            'data': [s.to_dict() for s in sessions],
            'message': 'Sessions retrieved successfully'
        })
    except Exception as e:
        logger.error(f"Error retrieving chat sessions: {e}", exc_info=True)
        return server_error('Failed to retrieve chat sessions', str(e))


@chat_bp.route('/sessions/<session_id>', methods=['GET'])
def get_session(session_id):
    """Get a chat session by id"""
    try:
        session = get_chat_engine().get_session(session_id)
        if not session:
            return session_not_found(session_id)

        return jsonify({
            'success': True,
            'data': session.to_dict(),
            'message': 'Session retrieved successfully'
        })
    except Exception as e:
        logger.error(f"Error retrieving chat session: {e}", exc_info=True)
        return server_error('Failed to retrieve chat session', str(e))


@chat_bp.route('/sessions/<session_id>/messages', methods=['POST'])
def send_message(session_id):
    """Send a message to the chat session"""
    data = request.get_json(silent=True) or {}

    is_valid, error = validate_chat_message_request(
        data, current_app.config.get('CHAT_MAX_MESSAGE_LENGTH', 4000)
    )
    if not is_valid:
        return jsonify({'success': False, 'error': 'Invalid message', 'message': error}), 400

    message = data['message'].strip()
    try:
        response = get_chat_engine().process_message(session_id, message)
    except SessionNotFoundError:
        return session_not_found(session_id)
    except Exception as e:
        logger.error(f"Error processing chat message: {e}", exc_info=True)
        return server_error('Failed to process message', str(e))

    logger.info(f"Processed message in session {session_id}: {message[:50]}...")
    return jsonify({
        'success': True,
        'data': response,
        'message': 'Message processed successfully'
    })


@chat_bp.route('/sessions/<session_id>/status', methods=['PUT'])
def update_session_status(session_id):
    """Update session status (active, completed, archived)"""
    data = request.get_json(silent=True) or {}
    status = data.get('status')

    is_valid, error = validate_session_status(status)
    if not is_valid:
        return jsonify({'success': False, 'error': 'Invalid status', 'message': error}), 400

    try:
        session = get_chat_engine().update_status(session_id, status)
    except SessionNotFoundError:
        return session_not_found(session_id)
    except Exception as e:
        logger.error(f"Error updating session status: {e}", exc_info=True)
        return server_error('Failed to update session status', str(e))

    return jsonify({
        'success': True,
        'data': session.to_dict(),
        'message': f"Session status updated to {status}"
    })


@chat_bp.route('/sessions/<session_id>', methods=['DELETE'])
def archive_session(session_id):
    """Archive a chat session; sessions are never deleted"""
    try:
        get_chat_engine().archive_session(session_id)
    except SessionNotFoundError:
        return session_not_found(session_id)
    except Exception as e:
        logger.error(f"Error archiving chat session: {e}", exc_info=True)
        return server_error('Failed to archive session', str(e))

    logger.info(f"Archived chat session: {session_id}")
    return jsonify({
        'success': True,
        'data': {'session_id': session_id, 'status': 'archived'},
        'message': 'Session archived successfully'
    })


@chat_bp.route('/health', methods=['GET'])
def chat_health():
    """Health check endpoint for the chat service"""
    engine = get_chat_engine()
    return jsonify({
        'success': True,
        'data': {
            'service': 'ConversationEngine',
            'version': '2.0.0',
            'status': 'healthy',
            'backend': type(engine.repository).__name__,
            'timestamp': datetime.utcnow().isoformat()
        },
        'message': 'Chat service is healthy'
    })
