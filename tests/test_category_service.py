"""
Tests for category management, seeding and email storage services
"""
import pytest
from database.models import EmailCategory, EventLog
from database.seed import seed_default_categories
from services.category_service import CategoryService, CategoryConflictError
from services.email_classifier import EmailClassifier
from services.email_service import EmailService
from validators import ValidationError


@pytest.mark.integration
class TestCategoryService:
    """Tests for CategoryService"""

    def test_create_category(self, db_session, sample_category_data):
        """Test a valid category is stored with an event"""
        category = CategoryService(db_session).create_category(sample_category_data)

        assert category['id'] > 0
        assert category['name'] == 'invoices'
        assert category['active'] is True
        events = db_session.query(EventLog).filter(EventLog.entity_type == 'category').all()
        assert [e.event_type for e in events] == ['CREATED']

    def test_create_uses_default_color(self, db_session):
        """Test color defaults when omitted"""
        category = CategoryService(db_session).create_category({'name': 'misc', 'description': 'Misc'})
        assert category['color'] == '#3B82F6'

    def test_create_requires_description(self, db_session):
        """Test name and description are required"""
        with pytest.raises(ValidationError):
            CategoryService(db_session).create_category({'name': 'misc'})

    def test_create_duplicate_name(self, db_session, sample_category_data):
        """Test names are unique"""
        service = CategoryService(db_session)
        service.create_category(sample_category_data)
        with pytest.raises(CategoryConflictError):
            service.create_category(sample_category_data)

    def test_get_category_invalid_id(self, db_session):
        """Test non-positive ids are rejected"""
        with pytest.raises(ValidationError):
            CategoryService(db_session).get_category(0)

    def test_get_missing_category(self, db_session):
        """Test unknown ids return None"""
        assert CategoryService(db_session).get_category(42) is None

    def test_update_records_changes(self, db_session, sample_category_data):
        """Test updates change only supplied fields and log the diff"""
        service = CategoryService(db_session)
        created = service.create_category(sample_category_data)

        updated = service.update_category(created['id'], {'keywords': ['fatura']})
        assert updated['keywords'] == ['fatura']
        assert updated['description'] == sample_category_data['description']

        event = db_session.query(EventLog).filter(EventLog.event_type == 'UPDATED').one()
        assert event.extra_data['changes']['keywords']['new'] == ['fatura']

    def test_update_rename_conflict(self, db_session, sample_category_data):
        """Test renaming onto an existing name is a conflict"""
        service = CategoryService(db_session)
        service.create_category({'name': 'misc', 'description': 'Misc'})
        created = service.create_category(sample_category_data)
        with pytest.raises(CategoryConflictError):
            service.update_category(created['id'], {'name': 'misc'})

    def test_delete_category(self, db_session, sample_category_data):
        """Test deletion and missing deletes"""
        service = CategoryService(db_session)
        created = service.create_category(sample_category_data)
        assert service.delete_category(created['id']) is True
        assert service.delete_category(created['id']) is False

    def test_list_filters(self, db_session):
        """Test active and search filters with pagination"""
        seed_default_categories(db_session)
        service = CategoryService(db_session)
        service.update_category(1, {'active': False})

        assert service.list_categories(active=True)['total'] == 4
        assert [c['name'] for c in service.list_categories(search='quot')['categories']] == ['quote']
        page = service.list_categories(page=2, limit=2)
        assert [c['name'] for c in page['categories']] == ['product_info', 'support']
        assert page['total'] == 5

    def test_validate_category_name(self, db_session):
        """Test name format and availability"""
        seed_default_categories(db_session)
        service = CategoryService(db_session)
        assert service.validate_category_name('invoices') == {'valid': True}
        assert service.validate_category_name('quote')['valid'] is False
        assert service.validate_category_name('Has Spaces')['valid'] is False

    def test_rules_for_classification_keep_order(self, db_session):
        """Test active categories become rules in definition order"""
        seed_default_categories(db_session)
        service = CategoryService(db_session)
        service.update_category(3, {'active': False})

        names = [rule.name for rule in service.get_rules_for_classification()]
        assert names == ['complaint', 'quote', 'support', 'sales']

    def test_rules_skip_invalid_stored_patterns(self, db_session):
        """Test a broken stored regex is skipped, not fatal"""
        db_session.add(EmailCategory(name='legacy', description='x', patterns=['(unclosed', r'\bok\b']))
        db_session.flush()

        rules = CategoryService(db_session).get_rules_for_classification()
        assert [p.pattern for p in rules[0].patterns] == [r'\bok\b']


@pytest.mark.integration
class TestSeeding:
    """Tests for default category seeding"""

    def test_seed_inserts_defaults_once(self, db_session):
        """Test seeding only runs on an empty table"""
        assert seed_default_categories(db_session) == 5
        assert seed_default_categories(db_session) == 0
        assert db_session.query(EmailCategory).count() == 5


@pytest.mark.integration
class TestEmailService:
    """Tests for EmailService"""

    def test_ingest_classifies_and_stores(self, db_session, sample_email):
        """Test ingested emails keep category, confidence and scores"""
        seed_default_categories(db_session)
        rules = CategoryService(db_session).get_rules_for_classification()

        stored = EmailService(db_session, EmailClassifier()).ingest_email(
            dict(sample_email, received_at='2025-01-15T09:30:00Z'), rules
        )
        assert stored['category'] == 'quote'
        assert stored['confidence'] == pytest.approx(0.5)
        assert stored['from'] == 'joao@cliente.com'
        assert stored['received_at'] == '2025-01-15T09:30:00'

    def test_ingest_logs_created_then_updated(self, db_session):
        """Test ingest writes an email event, UPDATED when the message_id repeats"""
        service = EmailService(db_session)
        stored = service.ingest_email({'message_id': 'a', 'subject': 'Fatura 10'}, [])
        service.ingest_email({'message_id': 'a', 'subject': 'Fatura 11'}, [])

        events = (db_session.query(EventLog)
                  .filter(EventLog.entity_type == 'email', EventLog.entity_id == str(stored['id']))
                  .all())
        assert sorted(e.event_type for e in events) == ['CREATED', 'UPDATED']
        assert events[0].extra_data['category'] == 'uncategorized'

    def test_list_emails_newest_first(self, db_session):
        """Test listing order and limit"""
        service = EmailService(db_session)
        service.ingest_emails([
            {'message_id': 'a', 'subject': 'first', 'received_at': '2025-01-01T10:00:00'},
            {'message_id': 'b', 'subject': 'second', 'received_at': '2025-01-02T10:00:00'},
        ], [])
        emails = service.list_emails(limit=1)
        assert [e['message_id'] for e in emails] == ['b']

    def test_reclassify_logs_moves(self, db_session):
        """Test reclassification counts and logs changed emails"""
        service = EmailService(db_session)
        service.ingest_email({'message_id': 'a', 'subject': 'Fatura 10'}, [])

        changed = service.reclassify_all([{'name': 'invoices', 'keywords': ['fatura']}])
        assert changed == 1
        assert service.get_category_summary() == {'invoices': 1}
        event = db_session.query(EventLog).filter(EventLog.event_type == 'RECLASSIFIED').one()
        assert event.extra_data == {'old': 'uncategorized', 'new': 'invoices'}

        assert service.reclassify_all([{'name': 'invoices', 'keywords': ['fatura']}]) == 0
