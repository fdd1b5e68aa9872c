import logging

import requests

from config import load_settings
from errors import ClientInputError, ConfigurationError, UpstreamHttpError
from expiry import resolve_mot_expiry
from mot import MOTAPIClient
from utils import excerpt, normalize_registration, parse_json

logger = logging.getLogger(__name__)

DEMO_VEHICLES = {
    'AB12CDE': {
        'registrationNumber': 'AB12CDE',
        'make': 'BMW',
        'colour': 'Alpine White',
        'fuelType': 'PETROL',
        'yearOfManufacture': 2020,
        'monthOfFirstRegistration': '2020-03',
        'taxStatus': 'Taxed',
        'taxDueDate': '2026-03-01',
    },
    'XY98ZAB': {
        'registrationNumber': 'XY98ZAB',
        'make': 'AUDI',
        'colour': 'Mythos Black',
        'fuelType': 'DIESEL',
        'yearOfManufacture': 2019,
        'monthOfFirstRegistration': '2019-09',
        'taxStatus': 'SORN',
    },
}


def _ves_error_message(status_code):
    if status_code == 404:
        return "Vehicle not found"
    if status_code == 400:
        return "Invalid registration number"
    return "DVLA request failed"


class VESClient:
    """DVLA Vehicle Enquiry Service."""

    def __init__(self, settings=None, session=None):
        self._settings = settings
        self.session = session or requests.Session()

    @property
    def settings(self):
        return self._settings or load_settings()

    def get_vehicle(self, registration):
        settings = self.settings
        if not settings.ves_api_key:
            raise ConfigurationError(['VES_API_KEY'])

        ves_headers = {
            'x-api-key': settings.ves_api_key,
            'Content-Type': 'application/json',
        }
        ves_data = {'registrationNumber': registration}
        try:
            ves_response = self.session.post(
                settings.ves_api_url, headers=ves_headers, json=ves_data, timeout=settings.timeout
            )
        except requests.exceptions.Timeout:
            raise UpstreamHttpError("DVLA request timed out", 504)
        except requests.exceptions.RequestException as e:
            raise UpstreamHttpError("DVLA request failed", 502, excerpt(str(e)))

        data = parse_json(ves_response.text)
        if not ves_response.ok:
            status = ves_response.status_code
            logger.warning("DVLA lookup for %s failed with %s", registration, status)
            if data is None:
                data = {'raw': excerpt(ves_response.text)}
            raise UpstreamHttpError(_ves_error_message(status), status, data)
        if not isinstance(data, dict):
            data = {'raw': ves_response.text}
        return data


class DemoVESClient:
    """Serves DEMO_VEHICLES instead of calling the DVLA."""

    def __init__(self, vehicles=None):
        self.vehicles = DEMO_VEHICLES if vehicles is None else vehicles

    def get_vehicle(self, registration):
        vehicle = self.vehicles.get(registration)
        if vehicle is None:
            raise UpstreamHttpError("Vehicle not found", 404)
        return dict(vehicle)


class VehicleLookup:
    """Combines the enquiry service and MOT history into one vehicle record.

    Only the enquiry service can fail a lookup. MOT history problems end up in
    motHistoryError and at worst leave the expiry estimated or empty.
    """

    def __init__(self, ves_client=None, mot_client=None, settings=None):
        self._settings = settings
        self.ves_client = ves_client
        self.mot_client = mot_client or MOTAPIClient(settings=settings)

    @property
    def settings(self):
        return self._settings or load_settings()

    def _enquiry_client(self, settings):
        if self.ves_client is not None:
            return self.ves_client
        if settings.demo_mode:
            return DemoVESClient()
        return VESClient(settings=self._settings)

    def _mot_expiry(self, registration):
        """(expiry date or None, error message or None)."""
        try:
            return self.mot_client.get_mot_expiry(registration), None
        except Exception as e:
            logger.warning("MOT history unavailable for %s: %s", registration, e)
            return None, str(e)

    def lookup(self, raw_registration):
        registration = normalize_registration(raw_registration)
        if not registration:
            raise ClientInputError("VRM required")

        settings = self.settings
        logger.info("Looking up vehicle %s", registration)
        if settings.ves_enabled:
            vehicle = self._enquiry_client(settings).get_vehicle(registration)
            result = dict(vehicle)
        else:
            vehicle = None
            result = {'registrationNumber': registration}

        # MOT history is only worth asking for once the vehicle is known to exist.
        history_date, mot_history_error = self._mot_expiry(registration)
        expiry = resolve_mot_expiry(history_date, vehicle)
        logger.debug("MOT expiry for %s from %s", registration, expiry.source)

        result.update(expiry.as_fields())
        result['motHistoryError'] = mot_history_error
        return result
