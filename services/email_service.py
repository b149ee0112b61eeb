"""
Email Service - Intake and storage of classified emails.

Emails are classified on arrival and stored with category, confidence and
the full score map. reclassify_all() re-runs the classifier after rule
changes.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from database.models import Email, EventLog
from services.email_classifier import EmailClassifier

logger = logging.getLogger(__name__)


def _parse_received_at(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace('Z', '+00:00')).replace(tzinfo=None)
        except ValueError:
            logger.warning(f"Ignoring unparseable received_at: {value}")
    return None


class EmailService:
    """Stores inbound emails together with their classification."""

    def __init__(self, session: Session, classifier: Optional[EmailClassifier] = None):
        self.session = session
        self.classifier = classifier or EmailClassifier()

    def _log_event(self, email: Email, event_type: str, description: str, metadata: Dict = None):
        self.session.add(EventLog(
            timestamp=datetime.utcnow(),
            entity_type='email',
            entity_id=str(email.id),
            event_type=event_type,
            description=description,
            extra_data=metadata or {}
        ))

    def ingest_email(self, data: Dict[str, Any], rules: List[Any]) -> Dict:
        result = self.classifier.classify(data, rules)

        message_id = data.get('message_id') or data.get('id')
        email = None
        if message_id:
            email = self.session.query(Email).filter(Email.message_id == message_id).first()
        is_new = email is None
        if is_new:
            email = Email(message_id=message_id)
            self.session.add(email)

        email.subject = data.get('subject') or ''
        email.sender = data.get('from') or data.get('sender') or ''
        email.body = data.get('body') or ''
        email.snippet = data.get('snippet') or ''
        email.received_at = _parse_received_at(data.get('received_at')) or datetime.utcnow()
        email.category = result.category
        email.confidence = result.confidence
        email.scores = dict(result.scores)
        self.session.flush()

        self._log_event(
            email,
            'CREATED' if is_new else 'UPDATED',
            f"Email classified as '{result.category}'",
            {'category': result.category, 'confidence': result.confidence}
        )
        return email.to_dict()

    def ingest_emails(self, emails: Iterable[Dict[str, Any]], rules: List[Any]) -> List[Dict]:
        stored = [self.ingest_email(data, rules) for data in emails]
        logger.info(f"Ingested {len(stored)} emails")
        return stored

    def list_emails(self, category: Optional[str] = None, limit: int = 50) -> List[Dict]:
        query = self.session.query(Email)
        if category:
            query = query.filter(Email.category == category)
        emails = query.order_by(Email.received_at.desc()).limit(limit).all()
        return [e.to_dict() for e in emails]

    def get_category_summary(self) -> Dict[str, int]:
        rows = self.session.query(Email.category, func.count(Email.id)).group_by(Email.category).all()
        return {category: count for category, count in rows}

    def reclassify_all(self, rules: List[Any]) -> int:
        """Re-run classification over every stored email. Returns how many changed category."""
        changed = 0
        for email in self.session.query(Email).all():
            result = self.classifier.classify(
                {'subject': email.subject, 'from': email.sender, 'body': email.body, 'snippet': email.snippet},
                rules
            )
            if result.category != email.category:
                self._log_event(
                    email, 'RECLASSIFIED',
                    f"Email moved from '{email.category}' to '{result.category}'",
                    {'old': email.category, 'new': result.category}
                )
                changed += 1
            email.category = result.category
            email.confidence = result.confidence
            email.scores = dict(result.scores)

        self.session.flush()
        logger.info(f"Reclassified stored emails, {changed} changed category")
        return changed
