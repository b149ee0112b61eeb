"""
Input Validation & Sanitization Utilities
Provides validation for API requests, category rules and chat step input
"""
import re
import math
from typing import Dict, Any, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

# Regex patterns
EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')
CATEGORY_NAME_PATTERN = re.compile(r'^[a-z0-9_]+$')
HEX_COLOR_PATTERN = re.compile(r'^#[0-9A-Fa-f]{6}$')
CONFIRMATION_PATTERN = re.compile(
    r'^\s*(yes|y|sim|s|ok|okay|confirm|confirma|confirmar|confirmed)\b',
    re.IGNORECASE
)

SESSION_STATUSES = ('active', 'completed', 'archived')


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(self.message)


def validate_required_fields(data: Dict[str, Any], required_fields: List[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate that all required fields are present in the data

    Args:
        data: Dictionary of input data
        required_fields: List of required field names

    Returns:
        Tuple of (is_valid, error_message)
    """
    missing_fields = [field for field in required_fields if field not in data or data[field] is None or data[field] == '']

    if missing_fields:
        return False, f"Missing required fields: {', '.join(missing_fields)}"

    return True, None


def validate_email(email: str) -> Tuple[bool, Optional[str]]:
    """
    Validate email format

    Args:
        email: Email address to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str):
        return False, "Email must be a non-empty string"

    if not EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    if len(email) > 254:  # RFC 5321
        return False, "Email address too long"

    return True, None


def validate_string_length(value: str, min_length: int = 0, max_length: int = 1000) -> Tuple[bool, Optional[str]]:
    """
    Validate string length is within acceptable range

    Args:
        value: String to validate
        min_length: Minimum allowed length
        max_length: Maximum allowed length

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(value, str):
        return False, "Value must be a string"

    if len(value) < min_length:
        return False, f"Value too short (minimum {min_length} characters)"

    if len(value) > max_length:
        return False, f"Value too long (maximum {max_length} characters)"

    return True, None


def validate_number(value: str) -> Tuple[bool, Optional[str]]:
    """Validate that a string parses to a finite float"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False, "Value must be a number"

    if not math.isfinite(number):
        return False, "Value must be a finite number"

    return True, None


def validate_confirmation(value: str) -> Tuple[bool, Optional[str]]:
    """Validate an affirmative answer (yes/y/ok/confirm/sim...)"""
    if not isinstance(value, str) or not CONFIRMATION_PATTERN.match(value):
        return False, "Please answer yes to confirm"

    return True, None


def validate_step_input(value: str, rule: str) -> bool:
    """
    Check one chat answer against a conversation step's validation tag

    Args:
        value: Raw user message
        rule: One of required, email, number, optional, confirmation

    Returns:
        True if the answer is acceptable for the step
    """
    if rule == 'required':
        return isinstance(value, str) and len(value.strip()) > 0
    if rule == 'email':
        return validate_email(value)[0]
    if rule == 'number':
        return validate_number(value)[0]
    if rule == 'confirmation':
        return validate_confirmation(value)[0]
    # optional and unknown tags accept anything
    return True


def sanitize_string(value: str, max_length: int = 1000) -> str:
    """
    Sanitize string input by removing potentially dangerous characters

    Args:
        value: String to sanitize
        max_length: Maximum allowed length

    Returns:
        Sanitized string
    """
    if not isinstance(value, str):
        return str(value)

    # Remove null bytes
    sanitized = value.replace('\x00', '')

    # Trim whitespace
    sanitized = sanitized.strip()

    # Limit length
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized


def validate_category_name(name: str) -> Tuple[bool, Optional[str]]:
    """Category names are lowercase letters, digits and underscores"""
    if not name:
        return False, "Category name is required"

    if not isinstance(name, str) or not CATEGORY_NAME_PATTERN.match(name):
        return False, "Category name must contain only lowercase letters, numbers, and underscores"

    return True, None


def validate_color(color: str) -> Tuple[bool, Optional[str]]:
    if not isinstance(color, str) or not HEX_COLOR_PATTERN.match(color):
        return False, "Color must be a valid hex color (e.g., #3B82F6)"

    return True, None


def validate_string_list(value: Any, field: str) -> Tuple[bool, Optional[str]]:
    if not isinstance(value, list):
        return False, f"{field.capitalize()} must be an array"

    if not all(isinstance(item, str) for item in value):
        return False, f"{field.capitalize()} must contain only strings"

    return True, None


def validate_patterns(patterns: List[str]) -> Tuple[bool, Optional[str]]:
    """Every pattern must compile as a case-insensitive regex"""
    for pattern in patterns:
        try:
            re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            return False, f"Invalid pattern '{pattern}': {e}"

    return True, None


def validate_category_request(data: Dict[str, Any], partial: bool = False) -> Tuple[bool, Optional[str]]:
    """
    Validate a category create/update payload

    Args:
        data: Request data dictionary
        partial: True for updates, where every field is optional

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object"

    if not partial:
        if not data.get('name') or not data.get('description'):
            return False, "Name and description are required"

    if 'name' in data or not partial:
        is_valid, error = validate_category_name(data.get('name'))
        if not is_valid:
            return False, error

    if data.get('color') is not None:
        is_valid, error = validate_color(data['color'])
        if not is_valid:
            return False, error

    for field in ('keywords', 'patterns', 'domains'):
        if field in data:
            is_valid, error = validate_string_list(data[field], field)
            if not is_valid:
                return False, error

    if 'patterns' in data:
        is_valid, error = validate_patterns(data['patterns'])
        if not is_valid:
            return False, error

    if 'active' in data and not isinstance(data['active'], bool):
        return False, "active must be a boolean"

    return True, None


def validate_chat_message_request(data: Dict[str, Any], max_length: int = 4000) -> Tuple[bool, Optional[str]]:
    """
    Validate a chat message request body

    Args:
        data: Request data dictionary
        max_length: Maximum message length

    Returns:
        Tuple of (is_valid, error_message)
    """
    message = (data or {}).get('message')

    if not isinstance(message, str) or not message.strip():
        return False, "Message content is required and must be a non-empty string"

    is_valid, error = validate_string_length(message, min_length=1, max_length=max_length)
    if not is_valid:
        return False, f"Invalid message: {error}"

    return True, None


def validate_session_status(status: Any) -> Tuple[bool, Optional[str]]:
    if status not in SESSION_STATUSES:
        return False, f"Status must be one of: {', '.join(SESSION_STATUSES)}"

    return True, None


def validate_email_payload(data: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate an email submitted for classification

    Fields are optional (missing ones classify as empty text) but must be
    strings when present.
    """
    if not isinstance(data, dict):
        return False, "Email must be a JSON object"

    for field in ('subject', 'from', 'body', 'snippet'):
        if data.get(field) is not None and not isinstance(data[field], str):
            return False, f"{field} must be a string"

    return True, None


def format_validation_error(field: str, message: str) -> Dict[str, Any]:
    """
    Format validation error for consistent API responses

    Args:
        field: Field name that failed validation
        message: Error message

    Returns:
        Error response dictionary
    """
    return {
        'success': False,
        'error': 'Validation Error',
        'field': field,
        'message': message
    }
