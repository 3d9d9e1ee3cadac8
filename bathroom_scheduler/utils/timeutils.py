"""
Canonical clock helpers.

Bookings are stored as naive UTC datetimes. Calendar dates (which day a
booking belongs to, the times printed in reminders) are evaluated in the
single zone configured as BOOKING_TIMEZONE, never per request.
"""
from datetime import datetime, date, time, timedelta

import pytz
from flask import current_app


def get_timezone(name=None):
    name = name or current_app.config.get('BOOKING_TIMEZONE', 'UTC')
    return pytz.timezone(name)


def utcnow() -> datetime:
    return datetime.now(pytz.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC. Naive input is taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(pytz.utc).replace(tzinfo=None)


def parse_timestamp(value) -> datetime:
    """Parse an ISO 8601 string (or pass a datetime through) into naive UTC."""
    if isinstance(value, datetime):
        return to_utc_naive(value)
    if not isinstance(value, str):
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    # fromisoformat only accepts a trailing Z from Python 3.11 on
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return to_utc_naive(datetime.fromisoformat(text))


def parse_date(value) -> date:
    if isinstance(value, date):
        return value
    return datetime.strptime(value, "%Y-%m-%d").date()


def day_bounds_utc(day: date, tz=None):
    """Return the [start, end) UTC bounds of a calendar day in the given zone."""
    tz = tz or get_timezone()
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day + timedelta(days=1), time.min))
    return to_utc_naive(start), to_utc_naive(end)


def to_local(value: datetime, tz=None) -> datetime:
    tz = tz or get_timezone()
    return pytz.utc.localize(value).astimezone(tz)


def isoformat_utc(value: datetime) -> str:
    return pytz.utc.localize(value).isoformat()
