"""
Pytest configuration and shared fixtures
"""
import os
import sys
import random
import pytest
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def app_config():
    """Fixture providing test configuration"""
    from config import TestingConfig
    return TestingConfig


@pytest.fixture
def test_env_vars():
    """Fixture providing test environment variables"""
    original_env = os.environ.copy()

    # Set test environment variables
    os.environ['FLASK_ENV'] = 'testing'
    os.environ.pop('DATABASE_URL', None)

    yield

    # Restore original environment
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def app():
    """Flask app with in-memory chat sessions and the built-in category rules"""
    from app_init import create_app
    flask_app = create_app('testing', random_source=random.Random(42))
    return flask_app


@pytest.fixture
def client(app):
    """Test client for the in-memory app"""
    return app.test_client()


@pytest.fixture
def db_app():
    """Flask app backed by an in-memory SQLite database, seeded with the default categories"""
    from app_init import create_app
    from database.connection import Base, get_engine

    flask_app = create_app('testing', random_source=random.Random(7), database_url='sqlite://')
    yield flask_app
    Base.metadata.drop_all(bind=get_engine())


@pytest.fixture
def db_client(db_app):
    """Test client for the database-backed app"""
    return db_app.test_client()


@pytest.fixture
def db_session():
    """SQLAlchemy session on a fresh in-memory SQLite database"""
    from database.connection import Base, init_engine, init_db, get_engine

    session_factory = init_engine('sqlite://')
    init_db()
    session = session_factory(autoflush=True)

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=get_engine())


@pytest.fixture
def rng():
    """Seeded random source for reproducible replies and ids"""
    return random.Random(1234)


@pytest.fixture
def fixed_clock():
    """Clock that advances one second per call"""
    state = {'now': datetime(2025, 1, 15, 9, 0, 0)}

    def clock():
        state['now'] += timedelta(seconds=1)
        return state['now']

    return clock


@pytest.fixture
def engine(rng, fixed_clock):
    """Conversation engine with in-memory sessions"""
    from services.chat_engine import ConversationEngine
    from services.chat_store import InMemorySessionRepository
    return ConversationEngine(
        repository=InMemorySessionRepository(),
        random_source=rng,
        clock=fixed_clock
    )


@pytest.fixture
def sample_rules():
    """Two small category rules in definition order"""
    return [
        {
            'name': 'quote',
            'keywords': ['orçamento'],
            'patterns': [r'\borçamento\b'],
            'domains': [],
        },
        {
            'name': 'support',
            'keywords': ['ajuda'],
            'patterns': [],
            'domains': ['helpdesk.com'],
        },
    ]


@pytest.fixture
def sample_email():
    """Email asking for a quotation"""
    return {
        'subject': 'Orçamento',
        'from': 'joao@cliente.com',
        'body': 'Preciso de um orçamento',
        'snippet': '',
    }


@pytest.fixture
def sample_category_data():
    """Valid category create payload"""
    return {
        'name': 'invoices',
        'description': 'Invoices and payment notices',
        'keywords': ['invoice', 'payment'],
        'patterns': [r'\binvoice\s+#?\d+'],
        'domains': ['billing.example.com'],
        'color': '#10B981',
    }
