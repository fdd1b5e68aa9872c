import logging
import threading
import time
from urllib.parse import quote

import requests

from config import load_settings
from errors import ConfigurationError, UpstreamHttpError, UpstreamParseError
from utils import date_key, excerpt, generate_mot_access_token, is_iso_date, normalize_date, parse_json

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME = 3600


class TokenCache:
    """Holds one bearer token for the application's client credentials.

    get() hands the token out while now < expires_at - margin. Concurrent
    refreshes may each fetch a token; the last one stored wins.
    """

    def __init__(self, margin=30, clock=time.time):
        self.margin = margin
        self.clock = clock
        self._token = None
        self._expires_at = 0.0
        self._lock = threading.Lock()

    def get(self):
        with self._lock:
            if self._token and self.clock() < self._expires_at - self.margin:
                return self._token
            return None

    def set(self, token, expires_at):
        with self._lock:
            self._token = token
            self._expires_at = expires_at

    def clear(self):
        self.set(None, 0.0)


def unwrap_vehicle(payload):
    """The history endpoint returns either a vehicle or a one-element list of them."""
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    return payload if isinstance(payload, dict) else {}


def select_mot_expiry(mot_tests):
    """Expiry of the most recently completed test that has one, else None.

    completedDate is compared as a string, so it is rewritten to ISO first.
    Input order is irrelevant.
    """
    if not isinstance(mot_tests, list):
        return None

    candidates = []
    for test in mot_tests:
        if not isinstance(test, dict):
            continue
        expiry = normalize_date(test.get('expiryDate'))
        if not is_iso_date(expiry):
            continue
        completed = date_key(test.get('completedDate'))
        candidates.append((completed, expiry))

    if not candidates:
        return None
    candidates.sort(key=lambda c: c[0], reverse=True)
    return candidates[0][1]


class MOTAPIClient:
    def __init__(self, settings=None, session=None, token_cache=None, clock=time.time):
        self._settings = settings
        self.session = session or requests.Session()
        self.clock = clock
        if token_cache is None:
            margin = self.settings.token_expiry_margin
            token_cache = TokenCache(margin=margin, clock=clock)
        self.token_cache = token_cache

    @property
    def settings(self):
        return self._settings or load_settings()

    def get_access_token(self):
        token = self.token_cache.get()
        if token:
            logger.debug("Reusing cached MOT access token")
            return token

        settings = self.settings
        required = {
            'MOT_TOKEN_URL': settings.mot_token_url,
            'MOT_CLIENT_ID': settings.mot_client_id,
            'MOT_CLIENT_SECRET': settings.mot_client_secret,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(missing)

        payload = generate_mot_access_token(
            self.session,
            settings.mot_client_id,
            settings.mot_client_secret,
            settings.mot_token_url,
            settings.mot_scope,
            timeout=settings.timeout,
        )
        expires_in = payload.get('expires_in')
        try:
            lifetime = DEFAULT_TOKEN_LIFETIME if expires_in is None else float(expires_in)
        except (TypeError, ValueError):
            lifetime = DEFAULT_TOKEN_LIFETIME
        self.token_cache.set(payload['access_token'], self.clock() + lifetime)
        logger.info("Fetched new MOT access token (expires in %ds)", lifetime)
        return payload['access_token']

    def get_vehicle_info(self, registration):
        """Raw MOT history payload for a normalized registration."""
        settings = self.settings
        if not settings.mot_api_key:
            raise ConfigurationError(['MOT_API_KEY'])

        headers = {
            'Authorization': f'Bearer {self.get_access_token()}',
            'X-API-Key': settings.mot_api_key,
            'Accept': 'application/json',
        }
        url = f'{settings.mot_api_url}/v1/trade/vehicles/registration/{quote(registration)}'
        try:
            response = self.session.get(url, headers=headers, timeout=settings.timeout)
        except requests.exceptions.Timeout:
            raise UpstreamHttpError("MOT history request timed out", 504)
        except requests.exceptions.RequestException as e:
            raise UpstreamHttpError("MOT history request failed", 502, excerpt(str(e)))

        if not response.ok:
            raise UpstreamHttpError(
                "MOT history request failed", response.status_code, excerpt(response.text)
            )
        data = parse_json(response.text)
        if data is None:
            raise UpstreamParseError(
                "MOT history response was not JSON", details=excerpt(response.text)
            )
        return data

    def get_mot_expiry(self, registration):
        vehicle = unwrap_vehicle(self.get_vehicle_info(registration))
        return select_mot_expiry(vehicle.get('motTests') or [])
