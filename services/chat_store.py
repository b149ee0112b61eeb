"""
Chat session storage.

ChatSession / ChatMessage are the in-process representation of a
conversation. SessionRepository is the storage seam used by the
conversation engine:

- InMemorySessionRepository: process-local dict, lost on restart
- SQLAlchemySessionRepository: chat_sessions / chat_messages tables

Both hand out copies; changes are only stored by put().
"""

import copy
import uuid
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

MESSAGE_ROLES = ('user', 'assistant', 'system')
DEFAULT_SESSION_TITLE = 'New Chat Session'


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


class ChatMessage:
    """One transcript entry. Never modified after it is appended."""

    def __init__(self, session_id: str, role: str, content: str,
                 timestamp: Optional[datetime] = None, metadata: Optional[Dict] = None,
                 id: Optional[str] = None):
        if role not in MESSAGE_ROLES:
            raise ValueError(f"Invalid message role: {role}")
        self.id = id or str(uuid.uuid4())
        self.session_id = session_id
        self.role = role
        self.content = content
        self.timestamp = timestamp or datetime.utcnow()
        self.metadata = metadata

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'session_id': self.session_id,
            'role': self.role,
            'content': self.content,
            'timestamp': _iso(self.timestamp),
        }
        if self.metadata:
            data['metadata'] = self.metadata
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChatMessage':
        return cls(
            id=data['id'],
            session_id=data['session_id'],
            role=data['role'],
            content=data['content'],
            timestamp=_parse_dt(data.get('timestamp')),
            metadata=data.get('metadata'),
        )


class ChatSession:
    """
    A conversation with its transcript and slot-filling context.

    context keys:
        current_action   - top-level action in progress (e.g. 'create_quotation')
        collecting_data  - {'type': flow type, 'step': index, 'data': {field: value}}
        pending_resource_id - id reserved for the resource the flow will create
    All are absent while the session is idle.
    """

    def __init__(self, id: Optional[str] = None, title: str = DEFAULT_SESSION_TITLE,
                 status: str = 'active', messages: Optional[List[ChatMessage]] = None,
                 context: Optional[Dict[str, Any]] = None, client_id: Optional[str] = None,
                 created_at: Optional[datetime] = None, updated_at: Optional[datetime] = None):
        now = datetime.utcnow()
        self.id = id or str(uuid.uuid4())
        self.title = title
        self.status = status
        self.messages = messages or []
        self.context = context or {}
        self.client_id = client_id
        self.created_at = created_at or now
        self.updated_at = updated_at or self.created_at

    @property
    def collecting_data(self) -> Optional[Dict[str, Any]]:
        return self.context.get('collecting_data')

    @property
    def is_collecting(self) -> bool:
        return self.collecting_data is not None

    def add_message(self, message: ChatMessage):
        self.messages.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'status': self.status,
            'client_id': self.client_id,
            'messages': [m.to_dict() for m in self.messages],
            'context': copy.deepcopy(self.context),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChatSession':
        return cls(
            id=data['id'],
            title=data.get('title', DEFAULT_SESSION_TITLE),
            status=data.get('status', 'active'),
            messages=[ChatMessage.from_dict(m) for m in data.get('messages', [])],
            context=copy.deepcopy(data.get('context') or {}),
            client_id=data.get('client_id'),
            created_at=_parse_dt(data.get('created_at')),
            updated_at=_parse_dt(data.get('updated_at')),
        )

    def __repr__(self):
        return f"ChatSession({self.id!r}, status={self.status!r}, messages={len(self.messages)})"


# =============================================================================
# REPOSITORY INTERFACE
# =============================================================================

class SessionRepository(ABC):
    """Storage for chat sessions with per-session locking."""

    def __init__(self):
        # session id -> [lock, holders and waiters]
        self._locks: Dict[str, list] = {}
        self._locks_guard = threading.Lock()

    @abstractmethod
    def get(self, session_id: str) -> Optional[ChatSession]:
        """Return a copy of the stored session, or None."""

    @abstractmethod
    def put(self, session: ChatSession) -> None:
        """Insert or replace a session."""

    @abstractmethod
    def list(self) -> List[ChatSession]:
        """Return all sessions, most recently updated first."""

    @contextmanager
    def lock(self, session_id: str):
        """
        Serialize read-modify-write cycles on one session.

        Locks are reference counted and dropped once no caller holds or
        waits on them.
        """
        with self._locks_guard:
            entry = self._locks.get(session_id)
            if entry is None:
                entry = self._locks[session_id] = [threading.RLock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[session_id]


class InMemorySessionRepository(SessionRepository):
    """Process-local store. Sessions do not survive a restart."""

    def __init__(self):
        super().__init__()
        self._sessions: Dict[str, ChatSession] = {}
        self._guard = threading.Lock()

    def get(self, session_id: str) -> Optional[ChatSession]:
        with self._guard:
            session = self._sessions.get(session_id)
            return copy.deepcopy(session) if session else None

    def put(self, session: ChatSession) -> None:
        with self._guard:
            self._sessions[session.id] = copy.deepcopy(session)

    def list(self) -> List[ChatSession]:
        with self._guard:
            sessions = [copy.deepcopy(s) for s in self._sessions.values()]
        return sorted(sessions, key=lambda s: s.updated_at, reverse=True)

    def __len__(self):
        return len(self._sessions)


class SQLAlchemySessionRepository(SessionRepository):
    """
    Sessions stored in chat_sessions / chat_messages.

    Messages are append-only, so put() only inserts messages whose ids are
    not yet stored. Locking is per process; run a single writer per session.
    """

    def __init__(self, session_factory):
        super().__init__()
        self.session_factory = session_factory

    @contextmanager
    def _db(self):
        db = self.session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get(self, session_id: str) -> Optional[ChatSession]:
        from database.models import ChatSessionRecord

        with self._db() as db:
            record = db.get(ChatSessionRecord, session_id)
            return self._to_domain(record) if record else None

    def put(self, session: ChatSession) -> None:
        from database.models import ChatSessionRecord, ChatMessageRecord

        with self._db() as db:
            record = db.get(ChatSessionRecord, session.id)
            if record is None:
                record = ChatSessionRecord(id=session.id, created_at=session.created_at)
                db.add(record)
                stored_ids = set()
            else:
                stored_ids = {m.id for m in record.messages}

            record.title = session.title
            record.status = session.status
            record.client_id = session.client_id
            record.context = copy.deepcopy(session.context)
            record.updated_at = session.updated_at

            for position, message in enumerate(session.messages):
                if message.id in stored_ids:
                    continue
                record.messages.append(ChatMessageRecord(
                    id=message.id,
                    session_id=session.id,
                    position=position,
                    role=message.role,
                    content=message.content,
                    timestamp=message.timestamp,
                    extra_data=message.metadata,
                ))

    def list(self) -> List[ChatSession]:
        from database.models import ChatSessionRecord

        with self._db() as db:
            records = db.query(ChatSessionRecord).order_by(ChatSessionRecord.updated_at.desc()).all()
            return [self._to_domain(r) for r in records]

    @staticmethod
    def _to_domain(record) -> ChatSession:
        return ChatSession(
            id=record.id,
            title=record.title,
            status=record.status,
            client_id=record.client_id,
            context=copy.deepcopy(record.context or {}),
            created_at=record.created_at,
            updated_at=record.updated_at,
            messages=[
                ChatMessage(
                    id=m.id,
                    session_id=m.session_id,
                    role=m.role,
                    content=m.content,
                    timestamp=m.timestamp,
                    metadata=m.extra_data,
                )
                for m in record.messages
            ],
        )
