from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import RequestFactory

from canteen.security import (
    MAX_LOGIN_ATTEMPTS, check_rate_limit, clear_failed_attempts, get_lockout_time_remaining,
    record_failed_attempt, sanitize_string, validate_decimal, validate_email, validate_file_upload,
    validate_integer,
)


def test_sanitize_string():
    assert sanitize_string('  Veg\x00 Puff  ') == 'Veg Puff'
    assert sanitize_string('abcdef', max_length=3) == 'abc'
    assert sanitize_string(None) == ''


@pytest.mark.parametrize('value, valid', [
    ('12.50', True),
    ('0', True),
    ('-1', False),
    ('abc', False),
    ('NaN', False),
    ('', False),
])
def test_validate_decimal(value, valid):
    assert validate_decimal(value, min_value=Decimal('0'))[0] is valid


def test_validate_integer_bounds():
    assert validate_integer('5', min_value=0, max_value=10) == (True, 5, None)
    assert validate_integer('11', max_value=10)[0] is False
    assert validate_integer('1.5')[0] is False


def test_validate_email():
    assert validate_email(' Asha@College.EDU ') == (True, 'asha@college.edu')
    assert validate_email('21CS042') == (False, None)


def test_validate_file_upload():
    good = SimpleUploadedFile('dosa.png', b'\x89PNG....', content_type='image/png')
    wrong_ext = SimpleUploadedFile('dosa.exe', b'MZ', content_type='image/png')
    wrong_type = SimpleUploadedFile('dosa.jpg', b'<html>', content_type='text/html')
    too_big = SimpleUploadedFile('dosa.jpg', b'x' * 11, content_type='image/jpeg')

    assert validate_file_upload(good) == (True, None)
    assert validate_file_upload(wrong_ext)[0] is False
    assert validate_file_upload(wrong_type) == (False, 'File type mismatch detected')
    assert validate_file_upload(too_big, max_size=10)[0] is False


def test_login_throttle_locks_after_max_attempts():
    request = RequestFactory().post('/admin/login/', REMOTE_ADDR='10.0.0.7')
    other = RequestFactory().post('/admin/login/', REMOTE_ADDR='10.0.0.8')

    for _ in range(MAX_LOGIN_ATTEMPTS):
        assert check_rate_limit(request)
        record_failed_attempt(request)

    assert not check_rate_limit(request)
    assert 0 < get_lockout_time_remaining(request) <= 300
    assert check_rate_limit(other)

    clear_failed_attempts(request)
    assert check_rate_limit(request)
    assert get_lockout_time_remaining(request) == 0
