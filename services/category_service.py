"""
Category Service - Management of email category rules.

Validates and stores the keyword/pattern/domain rules used by the email
classifier, and turns the active ones into CategoryRule objects in
definition order. Changes are written to the event_log table.
"""

import re
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from database.models import EmailCategory, Email, EventLog
from services.email_classifier import CategoryRule
from validators import ValidationError, validate_category_request, validate_category_name

logger = logging.getLogger(__name__)

DEFAULT_COLOR = '#3B82F6'
UPDATABLE_FIELDS = ('name', 'description', 'keywords', 'patterns', 'domains', 'color', 'active')


class CategoryConflictError(Exception):
    """A category with the same name already exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Category with name '{name}' already exists")


class CategoryService:
    """Repository + validation for email categories."""

    def __init__(self, session: Session):
        self.session = session

    def _log_event(self, entity_id: Any, event_type: str, description: str = None,
                   metadata: Dict = None):
        """Log a category change to the event_log table."""
        try:
            self.session.add(EventLog(
                timestamp=datetime.utcnow(),
                entity_type='category',
                entity_id=str(entity_id),
                event_type=event_type,
                description=description,
                extra_data=metadata or {}
            ))
        except Exception as e:
            logger.warning(f"Failed to log event: {e}")

    def _query(self):
        return self.session.query(EmailCategory)

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_category(self, data: Dict[str, Any]) -> Dict:
        is_valid, error = validate_category_request(data)
        if not is_valid:
            raise ValidationError(error)

        if self.get_category_by_name(data['name']):
            raise CategoryConflictError(data['name'])

        category = EmailCategory(
            name=data['name'],
            description=data['description'],
            keywords=list(data.get('keywords', [])),
            patterns=list(data.get('patterns', [])),
            domains=list(data.get('domains', [])),
            color=data.get('color') or DEFAULT_COLOR,
            active=data.get('active', True)
        )
        self.session.add(category)
        self.session.flush()

        self._log_event(category.id, 'CREATED', f"Category '{category.name}' was created")
        logger.info(f"Category created successfully with ID: {category.id}")
        return category.to_dict()

    def list_categories(self, active: Optional[bool] = None, search: Optional[str] = None,
                        page: int = 1, limit: int = 50) -> Dict[str, Any]:
        query = self._query()
        if active is not None:
            query = query.filter(EmailCategory.active == active)
        if search:
            like = f"%{search}%"
            query = query.filter(or_(EmailCategory.name.ilike(like), EmailCategory.description.ilike(like)))

        total = query.count()
        page = max(page, 1)
        categories = query.order_by(EmailCategory.id).offset((page - 1) * limit).limit(limit).all()

        logger.info(f"Retrieved {len(categories)} categories out of {total} total")
        return {'categories': [c.to_dict() for c in categories], 'total': total}

    def get_category(self, category_id: int) -> Optional[Dict]:
        if not category_id or category_id <= 0:
            raise ValidationError('Invalid category ID', 'id')

        category = self.session.get(EmailCategory, category_id)
        if not category:
            logger.warning(f"Category with ID {category_id} not found")
            return None
        return category.to_dict()

    def get_category_by_name(self, name: str) -> Optional[Dict]:
        category = self._query().filter(EmailCategory.name == name).first()
        return category.to_dict() if category else None

    def update_category(self, category_id: int, data: Dict[str, Any]) -> Optional[Dict]:
        if not category_id or category_id <= 0:
            raise ValidationError('Invalid category ID', 'id')

        category = self.session.get(EmailCategory, category_id)
        if not category:
            logger.warning(f"Category with ID {category_id} not found for update")
            return None

        is_valid, error = validate_category_request(data, partial=True)
        if not is_valid:
            raise ValidationError(error)

        if data.get('name') and data['name'] != category.name and self.get_category_by_name(data['name']):
            raise CategoryConflictError(data['name'])

        changes = {}
        for key in UPDATABLE_FIELDS:
            if key in data and getattr(category, key) != data[key]:
                changes[key] = {'old': getattr(category, key), 'new': data[key]}
                setattr(category, key, data[key])

        if not changes:
            logger.warning('No fields to update for category')
            return category.to_dict()

        category.updated_at = datetime.utcnow()
        self.session.flush()

        self._log_event(category_id, 'UPDATED', f"Category '{category.name}' was updated",
                        {'changes': changes})
        logger.info(f"Category updated successfully: {category.name}")
        return category.to_dict()

    def delete_category(self, category_id: int) -> bool:
        if not category_id or category_id <= 0:
            raise ValidationError('Invalid category ID', 'id')

        category = self.session.get(EmailCategory, category_id)
        if not category:
            logger.warning(f"Category with ID {category_id} not found for deletion")
            return False

        name = category.name
        self.session.delete(category)
        self.session.flush()

        self._log_event(category_id, 'DELETED', f"Category '{name}' was deleted")
        logger.info(f"Category deleted successfully: {name}")
        return True

    # =========================================================================
    # QUERIES
    # =========================================================================

    def has_categories(self) -> bool:
        """True if any category is stored, active or not."""
        return self._query().first() is not None

    def get_active_categories(self) -> List[Dict]:
        categories = self._query().filter(EmailCategory.active == True).order_by(EmailCategory.id).all()  # noqa: E712
        logger.info(f"Retrieved {len(categories)} active categories")
        return [c.to_dict() for c in categories]

    def get_category_stats(self) -> List[Dict]:
        counts = dict(
            self.session.query(Email.category, func.count(Email.id)).group_by(Email.category).all()
        )
        categories = self._query().order_by(EmailCategory.id).all()
        return [
            {'category_id': c.id, 'category_name': c.name, 'email_count': counts.get(c.name, 0)}
            for c in categories
        ]

    def validate_category_name(self, name: str) -> Dict[str, Any]:
        is_valid, error = validate_category_name(name)
        if not is_valid:
            return {'valid': False, 'message': error}

        if self.get_category_by_name(name):
            return {'valid': False, 'message': f"Category with name '{name}' already exists"}

        return {'valid': True}

    def get_rules_for_classification(self) -> List[CategoryRule]:
        """Active categories as classifier rules, in definition order."""
        rules = []
        for category in self._query().filter(EmailCategory.active == True).order_by(EmailCategory.id).all():  # noqa: E712
            patterns = []
            for pattern in category.patterns or []:
                try:
                    patterns.append(re.compile(pattern, re.IGNORECASE))
                except re.error as e:
                    logger.warning(f"Skipping invalid pattern '{pattern}' in category {category.name}: {e}")

            rules.append(CategoryRule(
                name=category.name,
                keywords=category.keywords or [],
                patterns=patterns,
                domains=category.domains or [],
                color=category.color,
                active=True,
                description=category.description
            ))

        logger.debug(f"Prepared {len(rules)} categories for categorization")
        return rules
