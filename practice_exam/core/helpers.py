"""
Shared helpers for request parsing and timestamps
"""
import re
from datetime import datetime, timezone

from flask import request

from .errors import ValidationError

DECIMAL_RE = re.compile(r'[0-9]+')
SIGNED_DECIMAL_RE = re.compile(r'-?[0-9]+')


def is_decimal(text, signed=False):
    """ASCII decimal digits only, with an optional leading minus when signed"""
    pattern = SIGNED_DECIMAL_RE if signed else DECIMAL_RE
    return isinstance(text, str) and pattern.fullmatch(text) is not None


def get_json_body(required=True):
    """Return the request JSON object; a missing body becomes {} unless required"""
    data = request.get_json(silent=True)
    if data is None and not required:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def parse_int(value, field_name, minimum=None, maximum=None):
    """Parse an integer (or numeric string) field, enforcing optional bounds"""
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} must be an integer')
    if isinstance(value, str):
        value = value.strip()
        if not is_decimal(value, signed=True):
            raise ValidationError(f'{field_name} must be an integer')
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError(f'{field_name} must be an integer')
    if minimum is not None and value < minimum:
        raise ValidationError(f'{field_name} must be at least {minimum}')
    if maximum is not None and value > maximum:
        raise ValidationError(f'{field_name} must be at most {maximum}')
    return value


def parse_int_list(values, field_name):
    if not isinstance(values, list):
        raise ValidationError(f'{field_name} must be a list of integers')
    return [parse_int(v, field_name) for v in values]


def utc_now_iso(now=None):
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def parse_timestamp(value, field_name='lastUpdated'):
    """Parse an ISO-8601 timestamp; naive values are taken as UTC"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'{field_name} must be an ISO-8601 timestamp')
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(f'{field_name} must be an ISO-8601 timestamp')
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
