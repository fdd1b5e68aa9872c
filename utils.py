import json
import re

import requests

from errors import UpstreamHttpError

EXCERPT_LENGTH = 200

_DOTTED_DATE = re.compile(r'^\d{4}\.\d{2}\.\d{2}$')
_DOTTED_PREFIX = re.compile(r'^(\d{4})\.(\d{2})\.(\d{2})(?:\s+)?')
_ISO_DATE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_WHITESPACE = re.compile(r'\s+')


def normalize_registration(registration):
    """'ab12 cde' -> 'AB12CDE'. None and blank input give ''."""
    return _WHITESPACE.sub('', str(registration or '')).upper()


def normalize_date(value):
    """Rewrite DVSA 'YYYY.MM.DD' dates as ISO; anything else comes back unchanged."""
    if value is None:
        return ''
    s = str(value).strip()
    if _DOTTED_DATE.match(s):
        return s.replace('.', '-')
    if _ISO_DATE.match(s):
        return s
    return str(value)


def date_key(value):
    """Sortable form of a DVSA date or date-time.

    '2023.01.01 10:00:00' becomes '2023-01-01T10:00:00' so it orders correctly
    against ISO values such as '2023-06-01T10:00:00.000Z'.
    """
    s = normalize_date(value).strip()
    match = _DOTTED_PREFIX.match(s)
    if match:
        rest = s[match.end():]
        sep = 'T' if rest and not rest.startswith('T') else ''
        s = '-'.join(match.groups()) + sep + rest
    return s


def is_iso_date(value):
    return bool(value) and bool(_ISO_DATE.match(value))


def excerpt(text, limit=EXCERPT_LENGTH):
    return (text or '')[:limit]


def parse_json(text):
    """Decode a response body, or None if it is not JSON."""
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


def generate_mot_access_token(session, client_id, client_secret, token_url, scope, timeout=None):
    """Client-credentials exchange against the MOT history token endpoint.

    Returns the decoded token response; raises UpstreamHttpError on a non-2xx
    status or when the response carries no access_token.
    """
    data = {
        'grant_type': 'client_credentials',
        'client_id': client_id,
        'client_secret': client_secret,
        'scope': scope,
    }
    try:
        response = session.post(token_url, data=data, timeout=timeout)
    except requests.exceptions.Timeout:
        raise UpstreamHttpError("MOT token request timed out", 504)
    except requests.exceptions.RequestException as e:
        raise UpstreamHttpError("MOT token request failed", 502, excerpt(str(e)))

    if not response.ok:
        raise UpstreamHttpError("MOT token request failed", response.status_code)
    payload = parse_json(response.text)
    if not isinstance(payload, dict) or not payload.get('access_token'):
        raise UpstreamHttpError("MOT token response missing access_token", response.status_code)
    return payload


def to_vehicle_form(data):
    """Map a lookup result onto the fields of the app's vehicle form."""
    def value(key):
        v = data.get(key)
        return '' if v is None else v

    return {
        'make': value('make'),
        'model': value('model'),
        'year': value('yearOfManufacture'),
        'color': value('colour'),
        'fuelType': value('fuelType'),
        'motExpiry': value('motExpiryDate'),
        'motExpiryEstimated': bool(data.get('motExpiryEstimated')),
        'taxExpiry': value('taxDueDate'),
        'isSorn': str(data.get('taxStatus') or '').strip().lower() == 'sorn',
    }
