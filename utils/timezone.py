from datetime import date, datetime, timedelta

import pytz

from config import HOTEL_TIMEZONE

HOTEL_TZ = pytz.timezone(HOTEL_TIMEZONE)


def get_hotel_now() -> datetime:
    """Returns current time in Hotel Timezone"""
    return datetime.now(HOTEL_TZ)


def to_hotel_time(dt: datetime) -> datetime:
    """Converts a datetime to Hotel Timezone (naive values are taken as UTC)"""
    if dt.tzinfo is None:
        return pytz.utc.localize(dt).astimezone(HOTEL_TZ)
    return dt.astimezone(HOTEL_TZ)


def get_operational_date() -> date:
    """Today's calendar date in Hotel Timezone"""
    return get_hotel_now().date()


def previous_operational_date(day: date) -> date:
    return day - timedelta(days=1)


def utc_now() -> datetime:
    return datetime.utcnow()


def as_naive_utc(dt: datetime) -> datetime:
    """SQLite hands back naive values, PostgreSQL aware ones. Compare everything as naive UTC."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(pytz.utc).replace(tzinfo=None)
