import logging
import os
from typing import NamedTuple, Optional

from dotenv import load_dotenv

load_dotenv()

VES_API_URL = 'https://driver-vehicle-licensing.api.gov.uk/vehicle-enquiry/v1/vehicles'
MOT_API_URL = 'https://history.mot.api.gov.uk'
MOT_SCOPE = 'https://tapi.dvsa.gov.uk/.default'

LOG_FORMAT = '%(asctime)s [%(levelname)-7s] %(name)s: %(message)s'

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


class Settings(NamedTuple):
    ves_api_key: Optional[str]
    ves_api_url: str
    ves_enabled: bool
    demo_mode: bool
    mot_api_key: Optional[str]
    mot_api_url: str
    mot_token_url: Optional[str]
    mot_client_id: Optional[str]
    mot_client_secret: Optional[str]
    mot_scope: str
    timeout: float
    token_expiry_margin: float
    rate_limit_window: int
    rate_limit_max_requests: int
    cors_allow_origin: list
    workers: int
    log_level: str


def _env(*names):
    """First non-blank value among the given variable names."""
    for name in names:
        value = (os.getenv(name) or '').strip()
        if value:
            return value
    return None


def _env_bool(name, default):
    value = _env(name)
    if value is None:
        return default
    return value.lower() in _TRUE_VALUES


def _env_number(name, default, cast=float):
    value = _env(name)
    if value is None:
        return default
    try:
        return cast(value)
    except ValueError:
        logging.getLogger(__name__).warning("Ignoring invalid %s=%r", name, value)
        return default


def load_settings():
    """Read settings from the environment.

    Called per request, so a missing secret only fails the call that needs it.
    """
    origins = _env('CORS_ALLOW_ORIGIN') or '*'
    return Settings(
        ves_api_key=_env('VES_API_KEY', 'DVLA_API_KEY'),
        ves_api_url=_env('VES_API_URL') or VES_API_URL,
        ves_enabled=_env_bool('VES_ENABLED', True),
        demo_mode=_env_bool('LOOKUP_DEMO_MODE', False),
        mot_api_key=_env('MOT_API_KEY', 'DVSA_API_KEY', 'MOT_API_TOKEN'),
        mot_api_url=(_env('MOT_API_URL', 'DVSA_BASE_URL') or MOT_API_URL).rstrip('/'),
        mot_token_url=_env('MOT_TOKEN_URL', 'DVSA_TOKEN_URL'),
        mot_client_id=_env('MOT_CLIENT_ID', 'DVSA_CLIENT_ID'),
        mot_client_secret=_env('MOT_CLIENT_SECRET', 'DVSA_CLIENT_SECRET'),
        mot_scope=_env('MOT_SCOPE', 'DVSA_SCOPE_URL') or MOT_SCOPE,
        timeout=_env_number('UPSTREAM_TIMEOUT', 5.0),
        token_expiry_margin=_env_number('TOKEN_EXPIRY_MARGIN', 30.0),
        rate_limit_window=_env_number('RATE_LIMIT_WINDOW', 60, int),
        rate_limit_max_requests=_env_number('RATE_LIMIT_MAX_REQUESTS', 10, int),
        cors_allow_origin=[o.strip() for o in origins.split(',') if o.strip()],
        workers=_env_number('LOOKUP_WORKERS', 8, int),
        log_level=(_env('LOG_LEVEL') or 'INFO').upper(),
    )


def setup_logging(level=None):
    """Send log records to stderr. Safe to call more than once."""
    level = level or load_settings().log_level
    invalid = isinstance(level, str) and not isinstance(logging.getLevelName(level), int)
    root = logging.getLogger()
    root.setLevel('INFO' if invalid else level)
    # Avoid duplicate handlers on repeated calls
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        root.addHandler(handler)
    if invalid:
        logging.getLogger(__name__).warning("Ignoring invalid LOG_LEVEL=%r", level)
