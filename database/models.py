"""
SQLAlchemy models for the Handyman Office back end.
Defines the tables for email categorization, chat sessions and the
resources created from chat conversations.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Integer, Float, Boolean, DateTime,
    ForeignKey, JSON, Index
)
from sqlalchemy.orm import relationship
from database.connection import Base


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


# =============================================================================
# EMAIL CATEGORIZATION
# =============================================================================

class EmailCategory(Base):
    """Category rule used by the email classifier."""
    __tablename__ = 'categories'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=False, default='')
    keywords = Column(JSON, default=list)
    patterns = Column(JSON, default=list)
    domains = Column(JSON, default=list)
    color = Column(String(7), default='#3B82F6')
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('ix_categories_active', 'active'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'keywords': self.keywords or [],
            'patterns': self.patterns or [],
            'domains': self.domains or [],
            'color': self.color,
            'active': self.active,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class Email(Base):
    """Inbound email with its classification."""
    __tablename__ = 'emails'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    message_id = Column(String(255), unique=True)
    subject = Column(Text, default='')
    sender = Column(String(255), default='')
    body = Column(Text, default='')
    snippet = Column(Text, default='')
    received_at = Column(DateTime, default=datetime.utcnow)
    category = Column(String(100), nullable=False, default='uncategorized')
    confidence = Column(Float, default=0)
    scores = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('ix_emails_category', 'category'),
        Index('ix_emails_received_at', 'received_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'message_id': self.message_id,
            'subject': self.subject,
            'from': self.sender,
            'body': self.body,
            'snippet': self.snippet,
            'received_at': _iso(self.received_at),
            'category': self.category,
            'confidence': self.confidence,
            'scores': self.scores or {},
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# CHAT
# =============================================================================

class ChatSessionRecord(Base):
    """Stored chat session; context holds the slot-filling state as JSON."""
    __tablename__ = 'chat_sessions'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    client_id = Column(String(36))
    title = Column(String(255), default='New Chat Session')
    status = Column(String(20), default='active')  # active, completed, archived
    context = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

    messages = relationship(
        "ChatMessageRecord",
        back_populates="session",
        order_by="ChatMessageRecord.position",
        cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index('ix_chat_sessions_updated_at', 'updated_at'),
        Index('ix_chat_sessions_status', 'status'),
    )


class ChatMessageRecord(Base):
    """One transcript entry of a chat session."""
    __tablename__ = 'chat_messages'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    session_id = Column(String(36), ForeignKey('chat_sessions.id'), nullable=False)
    position = Column(Integer, nullable=False)
    role = Column(String(20), nullable=False)  # user, assistant, system
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)
    extra_data = Column(JSON)

    session = relationship("ChatSessionRecord", back_populates="messages")

    __table_args__ = (
        Index('ix_chat_messages_session', 'session_id', 'position'),
    )


# =============================================================================
# RESOURCES CREATED FROM CHAT
# =============================================================================

class Quotation(Base):
    """Quotation request captured by the chat assistant."""
    __tablename__ = 'quotations'

    id = Column(String(20), primary_key=True)  # QUO-XXXXXXXX
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255))
    services = Column(Text)
    urgency = Column(String(20))
    status = Column(String(50), default='draft')
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'client_name': self.client_name,
            'client_email': self.client_email,
            'services': self.services,
            'urgency': self.urgency,
            'status': self.status,
            'created_at': _iso(self.created_at)
        }


class ServiceOffering(Base):
    """Service in the catalog."""
    __tablename__ = 'services'

    id = Column(String(20), primary_key=True)  # SRV-XXXXXXXX
    name = Column(String(255), nullable=False)
    category = Column(String(100))
    description = Column(Text)
    price = Column(Float)
    unit = Column(String(50))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'category': self.category,
            'description': self.description,
            'price': self.price,
            'unit': self.unit,
            'is_active': self.is_active,
            'created_at': _iso(self.created_at)
        }


class Client(Base):
    """Client record."""
    __tablename__ = 'clients'

    id = Column(String(20), primary_key=True)  # CLI-XXXXXXXX
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'created_at': _iso(self.created_at)
        }


# =============================================================================
# EVENT LOG
# =============================================================================

class EventLog(Base):
    """Audit trail of changes made through the repositories."""
    __tablename__ = 'event_log'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    entity_type = Column(String(50), nullable=False)  # category, email, ...
    entity_id = Column(String(64), nullable=False)
    event_type = Column(String(100), nullable=False)  # CREATED, UPDATED, DELETED, RECLASSIFIED
    description = Column(Text)
    extra_data = Column(JSON, default=dict)

    __table_args__ = (
        Index('ix_event_log_entity', 'entity_type', 'entity_id'),
        Index('ix_event_log_timestamp', 'timestamp'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': _iso(self.timestamp),
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'event_type': self.event_type,
            'description': self.description,
            'metadata': self.extra_data or {}
        }
