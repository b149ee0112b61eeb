"""
Database package for the Handyman Office back end.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import (
    Base,
    init_engine,
    get_engine,
    get_session_factory,
    get_db_session,
    init_db,
    check_db_connection
)

from database.models import (
    EmailCategory,
    Email,
    ChatSessionRecord,
    ChatMessageRecord,
    Quotation,
    ServiceOffering,
    Client,
    EventLog
)

__all__ = [
    # Connection
    'Base',
    'init_engine',
    'get_engine',
    'get_session_factory',
    'get_db_session',
    'init_db',
    'check_db_connection',
    # Models
    'EmailCategory',
    'Email',
    'ChatSessionRecord',
    'ChatMessageRecord',
    'Quotation',
    'ServiceOffering',
    'Client',
    'EventLog'
]
