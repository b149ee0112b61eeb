"""
Database seeding for the Handyman Office back end.
Loads the built-in email category rules if the categories table is empty.
"""

import logging
from database.connection import get_db_session
from database.models import EmailCategory
from services.email_classifier import DEFAULT_CATEGORY_RULES

logger = logging.getLogger(__name__)


def seed_default_categories(session):
    """Insert the default category rules when no category exists yet."""
    existing = session.query(EmailCategory).count()
    if existing:
        logger.info(f"Categories already exist: {existing}")
        return 0

    for rule in DEFAULT_CATEGORY_RULES:
        session.add(EmailCategory(
            name=rule['name'],
            description=rule['description'],
            keywords=list(rule['keywords']),
            patterns=list(rule['patterns']),
            domains=list(rule['domains']),
            color=rule['color'],
            active=True
        ))
    session.flush()
    logger.info(f"Created {len(DEFAULT_CATEGORY_RULES)} default categories")
    return len(DEFAULT_CATEGORY_RULES)


def seed_database():
    """
    Seed the database with default data if empty.
    Call this at application startup.
    """
    try:
        with get_db_session() as session:
            seed_default_categories(session)
        logger.info("Database seeding completed successfully")
        return True
    except Exception as e:
        logger.error(f"Database seeding failed: {e}")
        return False
