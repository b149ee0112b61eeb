"""
Conversation Engine - Scripted chat assistant for the back office.

Guides the user through creating quotations, registering services and
registering clients:

- Idle sessions run intent detection on every message. Greeting, help and
  general inquiries get a canned reply; the three resource intents start a
  flow at step 0.
- Sessions that are collecting data skip intent detection. The message is
  validated against the current step, stored, and the next question asked.
- After the last step the resource is created and the session goes idle.

Flows are plain data (FLOWS); adding a resource type means adding a step
list, an intent and an id prefix.
"""

import re
import copy
import random
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

from services.chat_store import (
    ChatMessage, ChatSession, InMemorySessionRepository, SessionRepository
)
from services.resource_service import ResourceCreator
from validators import validate_session_status, validate_step_input

logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """Raised when a session id is not in the repository."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class FlowStep(NamedTuple):
    field: str
    question: str
    validation: str
    label: str


# =============================================================================
# FLOW DEFINITIONS
# =============================================================================

FLOWS: Dict[str, List[FlowStep]] = {
    'quotation': [
        FlowStep('clientName', "What's the client's name?", 'required', 'Client'),
        FlowStep('clientEmail', "What's their email address?", 'email', 'Email'),
        FlowStep('services', 'What services do they need? You can mention multiple services.', 'required', 'Services'),
        FlowStep('urgency', 'How urgent is this project? (low, medium, high)', 'optional', 'Urgency'),
        FlowStep('confirmation', "Here's the quotation summary. Would you like me to create it?", 'confirmation', 'Confirmation'),
    ],
    'service': [
        FlowStep('name', "What's the name of the service?", 'required', 'Name'),
        FlowStep('category', 'Which category does this service belong to? (electrical, plumbing, painting, etc.)', 'required', 'Category'),
        FlowStep('description', 'Please provide a brief description of the service.', 'required', 'Description'),
        FlowStep('price', "What's the default price for this service?", 'number', 'Price'),
        FlowStep('unit', "What's the unit of measurement? (hour, day, square meter, etc.)", 'required', 'Unit'),
        FlowStep('confirmation', "Here's the service details. Should I create it?", 'confirmation', 'Confirmation'),
    ],
    'client': [
        FlowStep('name', "What's the client's full name?", 'required', 'Name'),
        FlowStep('email', "What's their email address?", 'email', 'Email'),
        FlowStep('phone', "What's their phone number? (optional)", 'optional', 'Phone'),
        FlowStep('address', "What's their address? (optional)", 'optional', 'Address'),
        FlowStep('confirmation', "Here's the client information. Should I register them?", 'confirmation', 'Confirmation'),
    ],
}

# intent -> flow type
FLOW_INTENTS = {
    'create_quotation': 'quotation',
    'register_service': 'service',
    'register_client': 'client',
}

COMPLETION_MESSAGES = {
    'quotation': ("Perfect! I've created the quotation successfully.", 'Quotation ID',
                  "The quotation has been saved and is ready to be sent. Is there anything else I can help you with?"),
    'service': ("Excellent! I've registered the new service successfully.", 'Service ID',
                "The service is now available in your catalog. What else can I help you with?"),
    'client': ("Great! I've registered the new client successfully.", 'Client ID',
               "The client is now in your system. How else can I assist you?"),
}

# =============================================================================
# INTENTS
# =============================================================================

# Checked in order, first match wins
INTENT_PATTERNS = [
    ('greeting', [re.compile(r'\b(hello|hi|hey|oi|olá|good morning|good afternoon)\b', re.IGNORECASE)]),
    ('create_quotation', [re.compile(r'\b(quote|quotation|estimate|price|cost|budget|orçamento|preço)', re.IGNORECASE)]),
    ('register_service', [re.compile(r'\b(add service|new service|register service|service|serviço|adicionar serviço)', re.IGNORECASE)]),
    ('register_client', [re.compile(r'\b(add client|new client|register client|client|customer|cliente|adicionar cliente)', re.IGNORECASE)]),
    ('help', [re.compile(r'\b(help|ajuda|what can you do|o que você pode fazer|commands|comandos)\b', re.IGNORECASE)]),
]

MATCHED_INTENT_CONFIDENCE = 0.85
GENERAL_INQUIRY_CONFIDENCE = 0.5

ENTITY_EMAIL_PATTERN = re.compile(r'[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}')
ENTITY_PHONE_PATTERN = re.compile(r'\d{3}-?\d{3}-?\d{4}')
ENTITY_MONEY_PATTERN = re.compile(r'\$?\d+(?:\.\d{2})?')

SESSION_TITLES = {
    'create_quotation': 'New Quotation Request',
    'register_service': 'Service Registration',
    'register_client': 'Client Registration',
    'general_inquiry': 'General Inquiry',
}
DEFAULT_SESSION_TITLE = 'Chat Session'

RESPONSES = {
    'greeting': [
        "Hello! I'm your AI assistant. I can help you create quotations, register services, manage clients, or answer questions about your business. What would you like to do today?",
        "Hi there! How can I assist you today? I can help with quotations, services, clients, or any other questions you might have.",
        "Welcome! I'm here to help you manage your handyman business. Feel free to ask me about creating quotes, adding services, or anything else!",
    ],
    'create_quotation': [
        "I'd be happy to help you create a quotation! To get started, I'll need some information about the client and the services they need.",
        "Great! Let's create a new quotation.",
        "Perfect! I'll help you generate a professional quotation.",
    ],
    'register_service': [
        "I'll help you register a new service.",
        "Great! Let's add a new service to your catalog.",
        "Perfect! I can help you register a new service.",
    ],
    'register_client': [
        "I'll help you register a new client.",
        "Great! Let's add a new client to your system.",
        "Perfect! To register a new client, I'll need their basic information.",
    ],
    'help': [
        "I can help you with several tasks:\n\n"
        "• **Create Quotations** - Generate professional quotes for your clients\n"
        "• **Register Services** - Add new services to your catalog\n"
        "• **Manage Clients** - Register and update client information\n"
        "• **General Questions** - Ask about your business, schedules, or services\n\n"
        "Just tell me what you'd like to do!",
        "Here's what I can help you with:\n\n"
        "✅ Creating detailed quotations\n"
        "✅ Adding new services\n"
        "✅ Registering clients\n"
        "✅ Answering business questions\n\n"
        "What would you like to start with?",
    ],
    'error': [
        "I'm sorry, I didn't quite understand that. Could you please rephrase your request or try asking in a different way?",
        "I apologize, but I'm not sure how to help with that. Could you provide more details or try asking about quotations, services, or clients?",
    ],
}

SUGGESTED_ACTIONS = [
    {'type': 'create_quotation', 'label': 'Create Quotation'},
    {'type': 'register_service', 'label': 'Register Service'},
    {'type': 'register_client', 'label': 'Register Client'},
]


def detect_intent(message: str) -> Dict[str, Any]:
    """
    Detect the intent of a free-text message.

    Returns:
        {'type': intent, 'confidence': float, 'entities': dict}
    """
    for intent_type, patterns in INTENT_PATTERNS:
        for pattern in patterns:
            if pattern.search(message):
                return {
                    'type': intent_type,
                    'confidence': MATCHED_INTENT_CONFIDENCE,
                    'entities': extract_entities(message),
                }

    return {'type': 'general_inquiry', 'confidence': GENERAL_INQUIRY_CONFIDENCE, 'entities': {}}


def extract_entities(message: str) -> Dict[str, Any]:
    """Pull the first email, phone number and money amount out of a message."""
    entities: Dict[str, Any] = {}

    email_match = ENTITY_EMAIL_PATTERN.search(message)
    if email_match:
        entities['email'] = email_match.group(0)

    phone_match = ENTITY_PHONE_PATTERN.search(message)
    if phone_match:
        entities['phone'] = phone_match.group(0)

    money_match = ENTITY_MONEY_PATTERN.search(message)
    if money_match:
        entities['amount'] = float(money_match.group(0).replace('$', ''))

    return entities


class ConversationEngine:
    """
    Drives chat sessions through intent detection and slot-filling flows.

    Args:
        repository: session storage (in-memory by default)
        resource_creator: called when a flow completes
        random_source: picks canned replies; pass random.Random(seed) for
            reproducible output
        clock: returns the current datetime for message timestamps
    """

    def __init__(self, repository: Optional[SessionRepository] = None,
                 resource_creator: Optional[ResourceCreator] = None,
                 random_source: Optional[random.Random] = None,
                 clock: Optional[Callable[[], datetime]] = None,
                 flows: Optional[Dict[str, List[FlowStep]]] = None):
        self.repository = repository if repository is not None else InMemorySessionRepository()
        self.random_source = random_source if random_source is not None else random.Random()
        self.resource_creator = (resource_creator if resource_creator is not None
                                 else ResourceCreator(self.random_source))
        self.clock = clock if clock is not None else datetime.utcnow
        self.flows = flows if flows is not None else FLOWS

    # =========================================================================
    # SESSIONS
    # =========================================================================

    def create_session(self) -> ChatSession:
        now = self.clock()
        session = ChatSession(created_at=now, updated_at=now)
        self.repository.put(session)
        logger.info(f"Created new chat session: {session.id}")
        return session

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        return self.repository.get(session_id)

    def list_sessions(self) -> List[ChatSession]:
        return self.repository.list()

    def update_status(self, session_id: str, status: str) -> ChatSession:
        is_valid, error = validate_session_status(status)
        if not is_valid:
            raise ValueError(error)

        with self.repository.lock(session_id):
            session = self.repository.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            session.status = status
            session.updated_at = self.clock()
            self.repository.put(session)

        logger.info(f"Updated session {session_id} status to: {status}")
        return session

    def archive_session(self, session_id: str) -> ChatSession:
        return self.update_status(session_id, 'archived')

    # =========================================================================
    # MESSAGES
    # =========================================================================

    def process_message(self, session_id: str, text: str) -> Dict[str, Any]:
        """
        Handle one user turn.

        Appends the user message and the assistant reply to the transcript.

        Returns:
            {'message': str, 'session_id': str, 'metadata': dict}

        Raises:
            SessionNotFoundError: unknown session id
        """
        with self.repository.lock(session_id):
            session = self.repository.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            context_before = copy.deepcopy(session.context)
            session.add_message(ChatMessage(session_id, 'user', text, timestamp=self.clock()))

            intent = None
            try:
                response, intent = self._generate_response(session, text)
            except Exception as e:
                logger.error(f"Error processing message in session {session_id}: {e}", exc_info=True)
                session.context = context_before
                response = self._reply(session, self._pick('error'), {'action': 'error'})

            assistant_message = ChatMessage(
                session_id, 'assistant', response['message'],
                timestamp=self.clock(), metadata=response.get('metadata')
            )
            session.add_message(assistant_message)
            session.updated_at = assistant_message.timestamp

            if len(session.messages) == 2 and intent and intent['type'] != 'greeting':
                session.title = SESSION_TITLES.get(intent['type'], DEFAULT_SESSION_TITLE)

            try:
                self.repository.put(session)
            except Exception as e:
                # Nothing from this turn is stored; the session stays at its previous step
                logger.error(f"Failed to store session {session_id}: {e}", exc_info=True)
                return self._reply(session, self._pick('error'), {'action': 'error'})
            return response

    def _generate_response(self, session: ChatSession, text: str) -> Tuple[Dict[str, Any], Optional[Dict]]:
        if session.is_collecting:
            return self._continue_flow(session, text), None

        intent = detect_intent(text)
        logger.info(f"Detected intent: {intent['type']} (confidence: {intent['confidence']})")

        intent_type = intent['type']
        if intent_type in FLOW_INTENTS:
            return self._start_flow(session, intent_type, intent['confidence']), intent

        pool = intent_type if intent_type in ('greeting', 'help') else 'error'
        metadata = {'action': intent_type, 'confidence': intent['confidence']}
        if intent_type != 'greeting':
            metadata['suggested_actions'] = list(SUGGESTED_ACTIONS)
        return self._reply(session, self._pick(pool), metadata), intent

    def _start_flow(self, session: ChatSession, intent_type: str, confidence: float) -> Dict[str, Any]:
        flow_type = FLOW_INTENTS[intent_type]
        first_step = self.flows[flow_type][0]

        session.context['current_action'] = intent_type
        session.context['collecting_data'] = {'type': flow_type, 'step': 0, 'data': {}}
        session.context['pending_resource_id'] = self.resource_creator.reserve_id(flow_type)

        return self._reply(
            session,
            f"{self._pick(intent_type)}\n\n{first_step.question}",
            {'action': intent_type, 'next_step': first_step.field, 'confidence': confidence}
        )

    def _continue_flow(self, session: ChatSession, text: str) -> Dict[str, Any]:
        collecting = session.collecting_data
        flow = self.flows[collecting['type']]
        step = flow[collecting['step']]

        if not validate_step_input(text, step.validation):
            return self._reply(
                session,
                f"I'm sorry, that doesn't seem to be a valid {step.field}. {step.question}",
                {'action': collecting['type'], 'next_step': step.field}
            )

        collecting['data'][step.field] = text
        collecting['step'] += 1

        if collecting['step'] >= len(flow):
            return self._complete_flow(session)

        next_step = flow[collecting['step']]
        question = next_step.question
        if next_step.validation == 'confirmation':
            question = f"{self._summary(flow, collecting['data'])}\n\n{question}"

        return self._reply(
            session,
            f"Great! {question}",
            {'action': collecting['type'], 'next_step': next_step.field}
        )

    def _complete_flow(self, session: ChatSession) -> Dict[str, Any]:
        collecting = session.collecting_data
        flow_type = collecting['type']
        data = dict(collecting['data'])

        resource_id = self.resource_creator.create(
            flow_type, data, resource_id=session.context.get('pending_resource_id')
        )

        session.context.pop('collecting_data', None)
        session.context.pop('current_action', None)
        session.context.pop('pending_resource_id', None)

        headline, id_label, closing = COMPLETION_MESSAGES.get(
            flow_type, ("Done! I've created the resource.", 'ID', 'What else can I help you with?')
        )
        message = (
            f"{headline}\n\n**{id_label}:** {resource_id}\n"
            f"{self._summary(self.flows[flow_type], data)}\n\n{closing}"
        )

        return self._reply(
            session,
            message,
            {'action': f"{flow_type}_completed", 'data': {'id': resource_id, **data}}
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _summary(flow: List[FlowStep], data: Dict[str, str]) -> str:
        lines = [
            f"**{step.label}:** {data[step.field]}"
            for step in flow
            if step.validation != 'confirmation' and data.get(step.field)
        ]
        return "\n".join(lines)

    @staticmethod
    def _reply(session: ChatSession, message: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        return {'message': message, 'session_id': session.id, 'metadata': metadata}

    def _pick(self, pool: str) -> str:
        responses = RESPONSES.get(pool, RESPONSES['error'])
        return self.random_source.choice(responses)
