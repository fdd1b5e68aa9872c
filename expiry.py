"""MOT expiry resolution.

Each resolver looks at what the lookup gathered and either returns a
MotExpiry or None to pass. RESOLVERS are tried in order and the first
answer wins, so an estimate is only ever made when neither MOT history
nor the enquiry service gave an exact date.
"""

import calendar
import re
from typing import NamedTuple, Optional

from utils import normalize_date

MOT_HISTORY = 'MOT_HISTORY'
VES = 'VES'
SORN = 'SORN'
CALCULATED_FROM_REGISTRATION = 'CALCULATED_FROM_REGISTRATION'
NO_DATA = 'NO_DATA'

FIRST_MOT_AFTER_MONTHS = 36

_YEAR_MONTH = re.compile(r'^(\d{4})-(\d{2})(?:-\d{2})?$')


class MotExpiry(NamedTuple):
    date: Optional[str]
    estimated: bool
    source: str

    def as_fields(self):
        return {
            'motExpiryDate': self.date,
            'motExpiryEstimated': self.estimated,
            'motExpirySource': self.source,
        }


NO_EXPIRY = MotExpiry(None, False, NO_DATA)


def is_sorn(vehicle):
    return str((vehicle or {}).get('taxStatus') or '').strip().lower() == 'sorn'


def first_mot_due(year_month):
    """Last day of the month 36 months after a 'YYYY-MM' (or ISO date) registration."""
    match = _YEAR_MONTH.match(normalize_date(year_month).strip())
    if not match:
        return None
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12:
        return None
    total = year * 12 + (month - 1) + FIRST_MOT_AFTER_MONTHS
    year, month = divmod(total, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return f'{year:04d}-{month:02d}-{last_day:02d}'


def from_mot_history(history_date, vehicle):
    if history_date:
        return MotExpiry(history_date, False, MOT_HISTORY)
    return None


def from_enquiry(history_date, vehicle):
    date = normalize_date((vehicle or {}).get('motExpiryDate')).strip()
    if date:
        return MotExpiry(date, False, VES)
    return None


def skip_sorn(history_date, vehicle):
    # Off-road vehicles need no live MOT, so nothing is estimated for them.
    if is_sorn(vehicle):
        return MotExpiry(None, False, SORN)
    return None


def from_registration(history_date, vehicle):
    vehicle = vehicle or {}
    for key in ('monthOfFirstRegistration', 'dateOfLastV5CIssued'):
        due = first_mot_due(vehicle.get(key))
        if due:
            return MotExpiry(due, True, CALCULATED_FROM_REGISTRATION)
    return None


RESOLVERS = (
    from_mot_history,
    from_enquiry,
    skip_sorn,
    from_registration,
)


def resolve_mot_expiry(history_date, vehicle, resolvers=RESOLVERS):
    """Pick the reported MOT expiry.

    history_date is the MOT history client's answer (None when it had none or
    failed); vehicle is the enquiry record, or None when there is none.
    """
    for resolver in resolvers:
        result = resolver(history_date, vehicle)
        if result is not None:
            return result
    return NO_EXPIRY
