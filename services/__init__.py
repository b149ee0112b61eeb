"""
Services package for the Handyman Office back end.
Email classification, category management and the chat conversation engine.
"""

from services.email_classifier import EmailClassifier, CategoryRule, ClassificationResult
from services.chat_engine import ConversationEngine, SessionNotFoundError
from services.chat_store import (
    ChatMessage,
    ChatSession,
    SessionRepository,
    InMemorySessionRepository,
    SQLAlchemySessionRepository
)
from services.resource_service import ResourceCreator, DatabaseResourceCreator

__all__ = [
    'EmailClassifier',
    'CategoryRule',
    'ClassificationResult',
    'ConversationEngine',
    'SessionNotFoundError',
    'ChatMessage',
    'ChatSession',
    'SessionRepository',
    'InMemorySessionRepository',
    'SQLAlchemySessionRepository',
    'ResourceCreator',
    'DatabaseResourceCreator'
]
