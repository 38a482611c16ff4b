"""
Datetime helper functions for timezone handling
"""
from datetime import datetime, date, timezone, timedelta


# GMT+7 timezone (WIB - Waktu Indonesia Barat)
WIB = timezone(timedelta(hours=7))


def business_timezone():
    """
    Get the configured business timezone.
    Falls back to WIB outside of an application context.
    """
    from flask import current_app, has_app_context
    if has_app_context():
        hours = current_app.config.get('LEDGER_TIMEZONE_OFFSET_HOURS', 7)
        return timezone(timedelta(hours=hours))
    return WIB


def get_wib_now():
    """
    Get current time in the business timezone (WIB by default)
    Returns timezone-aware datetime object
    """
    return datetime.now(business_timezone())


def business_today():
    """Calendar date of 'today' in the business timezone"""
    return get_wib_now().date()


def years_before(day, years):
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28"""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def parse_business_date(value):
    """
    Parse a business date from a request value.
    Accepts date objects, 'YYYY-MM-DD' and ISO datetimes (time part dropped).
    """
    if value is None or isinstance(value, date) and not isinstance(value, datetime):
        return value
    if isinstance(value, datetime):
        return value.date()
    text = str(value).strip()
    if not text:
        return None
    return datetime.strptime(text.split('T')[0], '%Y-%m-%d').date()
