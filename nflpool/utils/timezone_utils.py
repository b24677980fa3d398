"""
Timezone and NFL week helpers
"""

from datetime import date, datetime, timezone

import pytz
from flask import current_app


def get_app_timezone():
    """Get the application's configured timezone"""
    try:
        timezone_name = current_app.config.get("TIMEZONE", "America/New_York")
        return pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        # Fallback to UTC if timezone is invalid
        return pytz.UTC


def get_current_time():
    """Get current time in the application's timezone"""
    app_tz = get_app_timezone()
    return datetime.now(app_tz)


def convert_to_app_timezone(dt):
    """Convert a datetime to the application's timezone"""
    if dt is None:
        return None

    app_tz = get_app_timezone()

    # If datetime is naive, assume it's UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(app_tz)


def parse_season_start(value):
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def week_for_date(day, season_start, max_week=18):
    """NFL week containing a date: week 1 starts on the season opener.

    Dates before the opener map to week 1, dates after the last week map to
    max_week.
    """
    days_since_start = (day - season_start).days
    week = days_since_start // 7 + 1
    return max(1, min(max_week, week))


def get_current_week(now=None):
    """Current NFL week from the configured season start, in the app timezone"""
    now = convert_to_app_timezone(now) if now else get_current_time()
    season_start = parse_season_start(current_app.config["SEASON_START_DATE"])
    return week_for_date(
        now.date(),
        season_start,
        current_app.config.get("REGULAR_SEASON_WEEKS", 18),
    )
