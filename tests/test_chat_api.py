"""
Tests for the chat API endpoints
"""
import pytest


def create_session(client):
    response = client.post('/api/chat/sessions')
    assert response.status_code == 201
    return response.get_json()['data']['id']


def send(client, session_id, message):
    return client.post(f'/api/chat/sessions/{session_id}/messages', json={'message': message})


@pytest.mark.integration
class TestSessionEndpoints:
    """Tests for session management routes"""

    def test_create_session(self, client):
        """Test POST /api/chat/sessions returns the new session"""
        response = client.post('/api/chat/sessions')
        data = response.get_json()

        assert response.status_code == 201
        assert data['success'] is True
        assert data['data']['status'] == 'active'
        assert data['data']['messages'] == []

    def test_list_sessions(self, client):
        """Test GET /api/chat/sessions lists created sessions"""
        first = create_session(client)
        second = create_session(client)

        data = client.get('/api/chat/sessions').get_json()
        ids = [s['id'] for s in data['data']]
        assert set(ids) == {first, second}

    def test_get_session(self, client):
        """Test GET /api/chat/sessions/<id>"""
        session_id = create_session(client)
        response = client.get(f'/api/chat/sessions/{session_id}')
        assert response.status_code == 200
        assert response.get_json()['data']['id'] == session_id

    def test_get_unknown_session(self, client):
        """Test unknown sessions return 404"""
        response = client.get('/api/chat/sessions/does-not-exist')
        data = response.get_json()
        assert response.status_code == 404
        assert data['success'] is False

    def test_update_status(self, client):
        """Test PUT /api/chat/sessions/<id>/status"""
        session_id = create_session(client)
        response = client.put(f'/api/chat/sessions/{session_id}/status', json={'status': 'completed'})
        assert response.status_code == 200
        assert response.get_json()['data']['status'] == 'completed'

    def test_update_status_invalid(self, client):
        """Test unknown statuses are rejected with 400"""
        session_id = create_session(client)
        response = client.put(f'/api/chat/sessions/{session_id}/status', json={'status': 'gone'})
        assert response.status_code == 400

    def test_update_status_unknown_session(self, client):
        """Test status updates on unknown sessions return 404"""
        response = client.put('/api/chat/sessions/missing/status', json={'status': 'archived'})
        assert response.status_code == 404

    def test_archive_session(self, client):
        """Test DELETE archives instead of removing"""
        session_id = create_session(client)
        response = client.delete(f'/api/chat/sessions/{session_id}')
        assert response.status_code == 200

        stored = client.get(f'/api/chat/sessions/{session_id}').get_json()['data']
        assert stored['status'] == 'archived'

    def test_chat_health(self, client):
        """Test GET /api/chat/health"""
        data = client.get('/api/chat/health').get_json()
        assert data['success'] is True
        assert data['data']['backend'] == 'InMemorySessionRepository'


@pytest.mark.integration
class TestMessageEndpoint:
    """Tests for POST /api/chat/sessions/<id>/messages"""

    def test_greeting(self, client):
        """Test a greeting gets a reply with metadata"""
        session_id = create_session(client)
        response = send(client, session_id, 'Hello')
        data = response.get_json()

        assert response.status_code == 200
        assert data['data']['session_id'] == session_id
        assert data['data']['metadata']['action'] == 'greeting'

    def test_empty_message_rejected(self, client):
        """Test blank messages return 400"""
        session_id = create_session(client)
        assert send(client, session_id, '   ').status_code == 400
        assert client.post(f'/api/chat/sessions/{session_id}/messages', json={}).status_code == 400

    def test_non_string_message_rejected(self, client):
        """Test non-string messages return 400"""
        session_id = create_session(client)
        response = client.post(f'/api/chat/sessions/{session_id}/messages', json={'message': 42})
        assert response.status_code == 400

    def test_too_long_message_rejected(self, client, app):
        """Test messages over CHAT_MAX_MESSAGE_LENGTH return 400"""
        session_id = create_session(client)
        too_long = 'a' * (app.config['CHAT_MAX_MESSAGE_LENGTH'] + 1)
        assert send(client, session_id, too_long).status_code == 400

    def test_unknown_session(self, client):
        """Test messages to unknown sessions return 404"""
        assert send(client, 'missing', 'Hello').status_code == 404

    def test_full_client_registration(self, client):
        """Test a client registration conversation over HTTP"""
        session_id = create_session(client)
        for message in ['register client', 'Maria Silva', 'maria@example.com', '555-123-4567', 'Rua A, 10']:
            assert send(client, session_id, message).status_code == 200

        data = send(client, session_id, 'yes').get_json()['data']
        assert data['metadata']['action'] == 'client_completed'
        assert data['metadata']['data']['id'].startswith('CLI-')

        session = client.get(f'/api/chat/sessions/{session_id}').get_json()['data']
        assert session['title'] == 'Client Registration'
        assert session['context'] == {}
        assert len(session['messages']) == 12

    def test_message_is_trimmed(self, client):
        """Test surrounding whitespace is stripped before processing"""
        session_id = create_session(client)
        send(client, session_id, '  I need a quote  ')
        send(client, session_id, '  John Smith  ')

        session = client.get(f'/api/chat/sessions/{session_id}').get_json()['data']
        assert session['context']['collecting_data']['data']['clientName'] == 'John Smith'
