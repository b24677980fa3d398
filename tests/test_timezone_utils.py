from datetime import date, datetime, timezone

from nflpool.utils.timezone_utils import (
    convert_to_app_timezone,
    get_current_week,
    parse_season_start,
    week_for_date,
)

SEASON_START = date(2025, 9, 4)


class TestWeekForDate:
    def test_opening_week(self):
        assert week_for_date(date(2025, 9, 4), SEASON_START) == 1
        assert week_for_date(date(2025, 9, 10), SEASON_START) == 1

    def test_later_weeks(self):
        assert week_for_date(date(2025, 9, 11), SEASON_START) == 2
        assert week_for_date(date(2025, 10, 19), SEASON_START) == 7

    def test_clamped_to_season(self):
        assert week_for_date(date(2025, 8, 1), SEASON_START) == 1
        assert week_for_date(date(2026, 3, 1), SEASON_START) == 18
        assert week_for_date(date(2026, 3, 1), SEASON_START, max_week=17) == 17

    def test_parse_season_start(self):
        assert parse_season_start("2025-09-04") == SEASON_START
        assert parse_season_start(SEASON_START) is SEASON_START


class TestAppTimezone:
    def test_naive_datetime_is_utc(self, app):
        converted = convert_to_app_timezone(datetime(2025, 9, 11, 3, 0))
        # 11pm Eastern on the 10th
        assert converted.day == 10
        assert converted.hour == 23

    def test_current_week_uses_app_timezone(self, app):
        # Thursday 02:00 UTC is still Wednesday evening in New York
        now = datetime(2025, 9, 11, 2, 0, tzinfo=timezone.utc)
        assert get_current_week(now) == 1

        app.config["TIMEZONE"] = "UTC"
        assert get_current_week(now) == 2
