"""Tests for pdc_kernel.domain.clock."""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from pdc_kernel.domain.clock import DeterministicClock, SystemClock


class TestDeterministicClock:

    def test_on_pins_noon_utc(self):
        clock = DeterministicClock.on(date(2026, 3, 16))
        assert clock.now() == datetime(2026, 3, 16, 12, 0, tzinfo=timezone.utc)
        assert clock.today() == date(2026, 3, 16)

    def test_repeated_calls_are_stable(self):
        clock = DeterministicClock.on(date(2026, 3, 16))
        assert clock.now() == clock.now()

    def test_advance_days_crosses_midnight(self):
        clock = DeterministicClock.on(date(2026, 3, 31))
        clock.advance_days(1)
        assert clock.today() == date(2026, 4, 1)

    def test_set_time_resets_advance(self):
        clock = DeterministicClock.on(date(2026, 3, 16))
        clock.advance(3600)
        clock.set_time(datetime(2027, 1, 1, 0, 0, tzinfo=timezone.utc))
        assert clock.now() == datetime(2027, 1, 1, 0, 0, tzinfo=timezone.utc)


class TestSystemClock:

    def test_now_is_timezone_aware(self):
        assert SystemClock().now().tzinfo is not None

    def test_today_is_a_date(self):
        assert isinstance(SystemClock().today(), date)

    def test_defaults_to_utc(self):
        assert SystemClock().now().utcoffset() == timedelta(0)

    def test_now_in_given_zone(self):
        clock = SystemClock(ZoneInfo("Asia/Dubai"))
        assert clock.tz == ZoneInfo("Asia/Dubai")
        assert clock.now().utcoffset() == timedelta(hours=4)
        assert clock.today() == clock.now().date()
