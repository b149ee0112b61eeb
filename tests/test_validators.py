"""
Tests for input validation utilities
"""
import pytest
from validators import (
    validate_required_fields,
    validate_email,
    validate_string_length,
    validate_number,
    validate_confirmation,
    validate_step_input,
    sanitize_string,
    validate_category_name,
    validate_color,
    validate_patterns,
    validate_category_request,
    validate_chat_message_request,
    validate_session_status,
    validate_email_payload,
    format_validation_error,
    ValidationError
)


@pytest.mark.unit
class TestRequiredFields:
    """Tests for required fields validation"""

    def test_validate_all_fields_present(self):
        """Test validation passes when all fields present"""
        data = {'name': 'John', 'email': 'john@example.com'}
        is_valid, error = validate_required_fields(data, ['name', 'email'])
        assert is_valid is True
        assert error is None

    def test_validate_missing_field(self):
        """Test validation fails when field missing"""
        is_valid, error = validate_required_fields({'name': 'John'}, ['name', 'email'])
        assert is_valid is False
        assert 'email' in error


@pytest.mark.unit
class TestEmailValidation:
    """Tests for email validation"""

    @pytest.mark.parametrize('email', ['john@example.com', 'a.b+c@sub.domain.org'])
    def test_valid_emails(self, email):
        """Test well-formed addresses"""
        assert validate_email(email)[0] is True

    @pytest.mark.parametrize('email', ['', 'not-an-email', 'a@b', '@example.com', 'a b@example.com'])
    def test_invalid_emails(self, email):
        """Test malformed addresses"""
        assert validate_email(email)[0] is False


@pytest.mark.unit
class TestStepInput:
    """Tests for chat step validation tags"""

    def test_required(self):
        """Test required rejects blank answers"""
        assert validate_step_input('John', 'required') is True
        assert validate_step_input('', 'required') is False
        assert validate_step_input('   ', 'required') is False

    def test_email(self):
        """Test the email tag"""
        assert validate_step_input('john@example.com', 'email') is True
        assert validate_step_input('john at example', 'email') is False

    @pytest.mark.parametrize('value,expected', [
        ('45', True),
        ('45.50', True),
        ('-3', True),
        ('1e3', True),
        ('abc', False),
        ('12abc', False),
        ('', False),
        ('nan', False),
        ('inf', False),
    ])
    def test_number(self, value, expected):
        """Test numbers must parse completely and be finite"""
        assert validate_step_input(value, 'number') is expected

    def test_optional_accepts_anything(self):
        """Test optional accepts empty answers"""
        assert validate_step_input('', 'optional') is True

    @pytest.mark.parametrize('value', ['yes', 'Y', 'ok', 'Okay', 'sim', 's', 'confirm', 'Confirmed!', ' yes please'])
    def test_confirmation_accepts(self, value):
        """Test affirmative answers"""
        assert validate_step_input(value, 'confirmation') is True

    @pytest.mark.parametrize('value', ['no', 'nope', 'maybe yes', 'system', 'cancel', ''])
    def test_confirmation_rejects(self, value):
        """Test anything that doesn't start with an affirmative word"""
        assert validate_step_input(value, 'confirmation') is False

    def test_number_and_confirmation_helpers(self):
        """Test the tuple-returning helpers"""
        assert validate_number('3.5') == (True, None)
        assert validate_confirmation('no')[0] is False


@pytest.mark.unit
class TestStringValidation:
    """Tests for string length and sanitizing"""

    def test_string_length_bounds(self):
        """Test min and max length"""
        assert validate_string_length('abc', min_length=1, max_length=3)[0] is True
        assert validate_string_length('abcd', max_length=3)[0] is False
        assert validate_string_length('', min_length=1)[0] is False

    def test_sanitize_string_trims_and_truncates(self):
        """Test whitespace trimming and length limit"""
        assert sanitize_string('  hello  ') == 'hello'
        assert len(sanitize_string('x' * 50, max_length=10)) == 10


@pytest.mark.unit
class TestCategoryValidation:
    """Tests for category payload validation"""

    def test_category_name(self):
        """Test lowercase letters, digits and underscores only"""
        assert validate_category_name('product_info')[0] is True
        assert validate_category_name('Product Info')[0] is False
        assert validate_category_name('')[0] is False

    def test_color(self):
        """Test hex colors"""
        assert validate_color('#3B82F6')[0] is True
        assert validate_color('blue')[0] is False

    def test_patterns(self):
        """Test every pattern must compile"""
        assert validate_patterns([r'\bok\b'])[0] is True
        is_valid, error = validate_patterns(['(unclosed'])
        assert is_valid is False
        assert '(unclosed' in error

    def test_full_request(self, sample_category_data):
        """Test a complete valid payload"""
        assert validate_category_request(sample_category_data) == (True, None)

    def test_missing_description(self):
        """Test create requires a description"""
        assert validate_category_request({'name': 'misc'})[0] is False

    def test_partial_update(self):
        """Test updates only validate supplied fields"""
        assert validate_category_request({'active': False}, partial=True) == (True, None)
        assert validate_category_request({'keywords': 'fatura'}, partial=True)[0] is False
        assert validate_category_request({'active': 'yes'}, partial=True)[0] is False

    def test_non_object(self):
        """Test non-dict payloads"""
        assert validate_category_request(None)[0] is False


@pytest.mark.unit
class TestRequestValidation:
    """Tests for chat and email request validation"""

    def test_chat_message(self):
        """Test message presence, type and length"""
        assert validate_chat_message_request({'message': 'hi'}) == (True, None)
        assert validate_chat_message_request({'message': ''})[0] is False
        assert validate_chat_message_request({'message': 3})[0] is False
        assert validate_chat_message_request({})[0] is False
        assert validate_chat_message_request({'message': 'x' * 11}, max_length=10)[0] is False

    def test_session_status(self):
        """Test allowed statuses"""
        for status in ('active', 'completed', 'archived'):
            assert validate_session_status(status)[0] is True
        assert validate_session_status('deleted')[0] is False

    def test_email_payload(self):
        """Test email fields must be strings when present"""
        assert validate_email_payload({'subject': 'x', 'from': 'a@b.com'})[0] is True
        assert validate_email_payload({})[0] is True
        assert validate_email_payload({'body': ['x']})[0] is False
        assert validate_email_payload('text')[0] is False


@pytest.mark.unit
class TestErrorFormatting:
    """Tests for error helpers"""

    def test_format_validation_error(self):
        """Test the error envelope"""
        error = format_validation_error('name', 'Name is required')
        assert error['success'] is False
        assert error['field'] == 'name'

    def test_validation_error_carries_field(self):
        """Test ValidationError keeps message and field"""
        error = ValidationError('bad id', 'id')
        assert str(error) == 'bad id'
        assert error.field == 'id'
