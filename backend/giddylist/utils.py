import random
import re
import string
from datetime import date

from flask import request

from giddylist.errors import BadRequest


def slugify(name, max_length=50):
    base = re.sub(r'[^a-z0-9\s-]', '', (name or '').lower())
    base = re.sub(r'\s+', '-', base.strip())
    return re.sub(r'-+', '-', base)[:max_length].strip('-')


def generate_slug(name, max_length=50):
    """URL-safe slug from a name, with a random suffix for uniqueness."""
    base = slugify(name, max_length)
    suffix = ''.join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"{base}-{suffix}" if base else suffix


def clean_text(text):
    """Trim a string, turning blanks into None."""
    if text is None:
        return None
    text = " ".join(str(text).split())
    return text or None


def parse_date(value):
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise BadRequest(f'Invalid date: {value}')


def get_json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise BadRequest('Request body must be a JSON object')
    return data


def get_int_arg(name, default):
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        raise BadRequest(f'{name} must be an integer')
