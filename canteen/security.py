"""
Security utilities for input validation, sanitization, and login throttling
"""
import re
import time
from decimal import Decimal, InvalidOperation

from django.core.cache import cache


# File upload security
ALLOWED_IMAGE_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.gif', '.webp']
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB

# Login throttling
MAX_LOGIN_ATTEMPTS = 5
LOCKOUT_SECONDS = 300


def validate_file_upload(file, allowed_extensions=None, max_size=None):
    """
    Validate file upload for security

    Args:
        file: Django UploadedFile object
        allowed_extensions: List of allowed file extensions (default: images)
        max_size: Maximum file size in bytes (default: MAX_IMAGE_SIZE)

    Returns:
        tuple: (is_valid, error_message)
    """
    if allowed_extensions is None:
        allowed_extensions = ALLOWED_IMAGE_EXTENSIONS

    if max_size is None:
        max_size = MAX_IMAGE_SIZE

    if file.size > max_size:
        return False, f'File size exceeds maximum allowed size of {max_size / (1024*1024):.1f}MB'

    file_name = file.name.lower()
    file_extension = None
    for ext in allowed_extensions:
        if file_name.endswith(ext.lower()):
            file_extension = ext
            break

    if not file_extension:
        return False, f'Invalid file type. Allowed types: {", ".join(allowed_extensions)}'

    content_type = getattr(file, 'content_type', '') or ''
    if content_type and not content_type.startswith('image/'):
        return False, 'File type mismatch detected'

    return True, None


def sanitize_string(value, max_length=None):
    """
    Normalise free-text input (templates escape on output)

    Args:
        value: String to sanitize
        max_length: Maximum length allowed

    Returns:
        str: Sanitized string
    """
    if value is None:
        return ''

    value = str(value).strip()

    # Remove null bytes (can cause issues)
    value = value.replace('\x00', '')

    if max_length and len(value) > max_length:
        value = value[:max_length]

    return value


def validate_decimal(value, min_value=None, max_value=None, allow_zero=True):
    """
    Safely validate and convert to Decimal

    Returns:
        tuple: (is_valid, decimal_value, error_message)
    """
    if value is None or value == '':
        return False, None, 'Value is required'

    try:
        decimal_value = Decimal(str(value))
    except (ValueError, InvalidOperation):
        return False, None, 'Invalid number format'

    if not decimal_value.is_finite():
        return False, None, 'Invalid number format'

    if not allow_zero and decimal_value == 0:
        return False, None, 'Value cannot be zero'

    if min_value is not None and decimal_value < min_value:
        return False, None, f'Value must be at least {min_value}'

    if max_value is not None and decimal_value > max_value:
        return False, None, f'Value must be at most {max_value}'

    return True, decimal_value, None


def validate_integer(value, min_value=None, max_value=None, allow_zero=True):
    """
    Safely validate and convert to integer

    Returns:
        tuple: (is_valid, integer_value, error_message)
    """
    if value is None or value == '':
        return False, None, 'Value is required'

    try:
        int_value = int(value)
    except (ValueError, TypeError):
        return False, None, 'Invalid integer format'

    if not allow_zero and int_value == 0:
        return False, None, 'Value cannot be zero'

    if min_value is not None and int_value < min_value:
        return False, None, f'Value must be at least {min_value}'

    if max_value is not None and int_value > max_value:
        return False, None, f'Value must be at most {max_value}'

    return True, int_value, None


def validate_email(email):
    """
    Validate email format

    Returns:
        tuple: (is_valid, cleaned_email)
    """
    if not email:
        return False, None

    email = email.strip().lower()

    email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'

    if re.match(email_pattern, email):
        return True, email

    return False, None


def client_ip(request):
    return request.META.get('REMOTE_ADDR', 'unknown')


def _attempts_key(request):
    return f'login_attempts:{client_ip(request)}'


def _recent_attempts(request):
    now = time.time()
    return [t for t in cache.get(_attempts_key(request), []) if now - t < LOCKOUT_SECONDS]


def check_rate_limit(request):
    """False once the IP has used up its failed login attempts"""
    return len(_recent_attempts(request)) < MAX_LOGIN_ATTEMPTS


def record_failed_attempt(request):
    attempts = _recent_attempts(request)
    attempts.append(time.time())
    cache.set(_attempts_key(request), attempts, LOCKOUT_SECONDS)


def clear_failed_attempts(request):
    cache.delete(_attempts_key(request))


def get_lockout_time_remaining(request):
    """Remaining lockout time in seconds"""
    attempts = _recent_attempts(request)
    if len(attempts) < MAX_LOGIN_ATTEMPTS:
        return 0
    remaining = LOCKOUT_SECONDS - (time.time() - min(attempts))
    return max(0, int(remaining))
