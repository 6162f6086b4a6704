"""Working-day calculator tests — weekday counting, overrides, date parsing."""

from __future__ import annotations

from datetime import date, datetime

import pytest

from leave_portal.leave.calendar import (
    compute_chargeable_days,
    count_working_days,
    parse_calendar_date,
)

# 2024-01-01 is a Monday
MON = date(2024, 1, 1)
FRI = date(2024, 1, 5)
SAT = date(2024, 1, 6)
SUN = date(2024, 1, 7)
NEXT_MON = date(2024, 1, 8)


class TestCountWorkingDays:

    def test_full_week(self):
        assert compute_chargeable_days(MON, FRI) == 5

    def test_weekend_only_counts_zero(self):
        assert compute_chargeable_days(SAT, SUN) == 0

    def test_range_spanning_weekend(self):
        assert compute_chargeable_days(FRI, NEXT_MON) == 2

    def test_single_weekday(self):
        assert compute_chargeable_days(MON, MON) == 1

    def test_two_calendar_weeks(self):
        assert compute_chargeable_days(MON, date(2024, 1, 14)) == 10

    def test_end_before_start_is_zero(self):
        assert compute_chargeable_days(FRI, MON) == 0
        assert count_working_days(FRI, MON) == 0

    def test_leap_day(self):
        # Thu 2024-02-29 .. Fri 2024-03-01
        assert compute_chargeable_days(date(2024, 2, 29), date(2024, 3, 1)) == 2


class TestManualOverride:

    def test_positive_override_wins(self):
        assert compute_chargeable_days(MON, FRI, 2) == 2

    def test_override_applies_even_when_end_before_start(self):
        assert compute_chargeable_days(FRI, MON, 3) == 3

    def test_override_applies_to_weekend_range(self):
        assert compute_chargeable_days(SAT, SUN, 1) == 1

    @pytest.mark.parametrize("override", [0, -2, None])
    def test_non_positive_override_ignored(self, override):
        assert compute_chargeable_days(MON, FRI, override) == 5

    def test_boolean_is_not_an_override(self):
        assert compute_chargeable_days(MON, FRI, True) == 5


class TestDateInputs:

    def test_iso_strings(self):
        assert compute_chargeable_days("2024-01-01", "2024-01-05") == 5

    def test_time_of_day_is_ignored(self):
        assert compute_chargeable_days("2024-01-01T18:30:00", "2024-01-02T00:00:00") == 2
        assert compute_chargeable_days(
            datetime(2024, 1, 1, 23, 59), datetime(2024, 1, 1, 0, 1)
        ) == 1

    def test_utc_suffix(self):
        assert parse_calendar_date("2024-01-03T10:00:00Z") == date(2024, 1, 3)

    @pytest.mark.parametrize("bad", ["not-a-date", "", "2024-13-40", None])
    def test_unparseable_dates_count_zero(self, bad):
        assert compute_chargeable_days(bad, "2024-01-05") == 0
        assert compute_chargeable_days("2024-01-01", bad) == 0

    def test_parse_passthrough(self):
        assert parse_calendar_date(MON) == MON
        assert parse_calendar_date(datetime(2024, 1, 1, 12)) == MON
