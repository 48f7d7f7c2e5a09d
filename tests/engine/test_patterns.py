import pytest
from datetime import date

from taskcycle.engine import patterns
from taskcycle.exceptions import InvalidPatternError
from taskcycle.models import RecurringTemplate, PatternEnum


def make_template(**overrides):
    fields = {
        "id": "tpl_test",
        "title": "Water plants",
        "pattern": PatternEnum.DAILY,
        "interval": 1,
        "start_date": date(2025, 9, 1),
        "end_date": None,
        "active": True,
    }
    fields.update(overrides)
    return RecurringTemplate(**fields)


class TestWeekly:
    """Tue/Thu template starting on a Tuesday."""

    @pytest.fixture
    def template(self):
        return make_template(pattern=PatternEnum.WEEKLY, weekdays=[1, 3], start_date=date(2025, 9, 9))

    @pytest.mark.parametrize("day", [
        date(2025, 9, 9), date(2025, 9, 11), date(2025, 9, 16), date(2025, 9, 18),
    ])
    def test_matches_selected_weekdays(self, template, day):
        assert patterns.matches(template, day) is True

    @pytest.mark.parametrize("day", [
        date(2025, 9, 10), date(2025, 9, 12), date(2025, 9, 13), date(2025, 9, 14), date(2025, 9, 15),
    ])
    def test_rejects_other_weekdays(self, template, day):
        assert patterns.matches(template, day) is False

    def test_every_other_week_counts_monday_weeks(self):
        # starts on a Thursday; Tuesday of that same week is before start
        template = make_template(pattern=PatternEnum.WEEKLY, weekdays=[1, 3], interval=2, start_date=date(2025, 9, 11))
        assert patterns.matches(template, date(2025, 9, 9)) is False
        assert patterns.matches(template, date(2025, 9, 11)) is True
        assert patterns.matches(template, date(2025, 9, 16)) is False
        assert patterns.matches(template, date(2025, 9, 23)) is True
        assert patterns.matches(template, date(2025, 9, 25)) is True


class TestMonthly:

    def test_day_of_month(self):
        template = make_template(pattern=PatternEnum.MONTHLY, day_of_month=15)
        assert patterns.matches(template, date(2025, 9, 14)) is False
        assert patterns.matches(template, date(2025, 9, 15)) is True
        assert patterns.matches(template, date(2025, 9, 16)) is False

    def test_day_31_clamps_to_short_months(self):
        template = make_template(pattern=PatternEnum.MONTHLY, day_of_month=31, start_date=date(2025, 1, 1))
        assert patterns.matches(template, date(2025, 2, 28)) is True
        assert patterns.matches(template, date(2025, 4, 30)) is True
        assert patterns.matches(template, date(2025, 4, 29)) is False
        assert patterns.matches(template, date(2024, 2, 29)) is False  # before start
        assert patterns.matches(template, date(2025, 5, 31)) is True

    def test_interval_counts_months_from_start(self):
        template = make_template(pattern=PatternEnum.MONTHLY, day_of_month=1, interval=3, start_date=date(2025, 1, 1))
        hits = patterns.occurrences_between(template, date(2025, 1, 1), date(2025, 12, 31))
        assert hits == [date(2025, 1, 1), date(2025, 4, 1), date(2025, 7, 1), date(2025, 10, 1)]


class TestDaily:

    def test_interval_two(self):
        template = make_template(interval=2, start_date=date(2025, 9, 10))
        for day in (date(2025, 9, 10), date(2025, 9, 12), date(2025, 9, 14)):
            assert patterns.matches(template, day) is True
        for day in (date(2025, 9, 11), date(2025, 9, 13), date(2025, 9, 15)):
            assert patterns.matches(template, day) is False

    def test_nothing_before_start_or_after_end(self):
        template = make_template(start_date=date(2025, 9, 10), end_date=date(2025, 9, 12))
        assert patterns.occurrences_between(template, date(2025, 9, 8), date(2025, 9, 14)) == [
            date(2025, 9, 10), date(2025, 9, 11), date(2025, 9, 12),
        ]

    def test_inactive_never_matches(self):
        template = make_template(active=False)
        assert patterns.matches(template, date(2025, 9, 10)) is False


class TestYearly:

    def test_same_day_each_year(self):
        template = make_template(pattern=PatternEnum.YEARLY, month_of_year=3, day_of_month=10, start_date=date(2025, 1, 1))
        assert patterns.matches(template, date(2025, 3, 10)) is True
        assert patterns.matches(template, date(2026, 3, 10)) is True
        assert patterns.matches(template, date(2026, 4, 10)) is False

    def test_leap_day_skipped_by_default(self):
        template = make_template(pattern=PatternEnum.YEARLY, month_of_year=2, day_of_month=29, start_date=date(2024, 1, 1))
        assert patterns.matches(template, date(2024, 2, 29), "skip") is True
        assert patterns.matches(template, date(2025, 2, 28), "skip") is False
        assert patterns.occurrences_between(template, date(2025, 1, 1), date(2025, 12, 31), "skip") == []

    def test_leap_day_clamped_when_configured(self):
        template = make_template(pattern=PatternEnum.YEARLY, month_of_year=2, day_of_month=29, start_date=date(2024, 1, 1))
        assert patterns.matches(template, date(2025, 2, 28), "clamp") is True
        assert patterns.matches(template, date(2024, 2, 28), "clamp") is False


def test_next_occurrence_is_strictly_after():
    template = make_template(pattern=PatternEnum.WEEKLY, weekdays=[0], start_date=date(2025, 9, 1))
    assert patterns.next_occurrence(template, date(2025, 9, 1)) == date(2025, 9, 8)


def test_next_occurrence_none_after_end():
    template = make_template(end_date=date(2025, 9, 2))
    assert patterns.next_occurrence(template, date(2025, 9, 2)) is None


@pytest.mark.parametrize("overrides, expected", [
    ({}, "Every day"),
    ({"interval": 3}, "Every 3 days"),
    ({"pattern": PatternEnum.WEEKLY, "weekdays": [3, 1], "interval": 2}, "Every 2 weeks on Tue, Thu"),
    ({"pattern": PatternEnum.MONTHLY, "day_of_month": 15}, "Every month on day 15"),
    ({"pattern": PatternEnum.YEARLY, "month_of_year": 12, "day_of_month": 25}, "Every year on Dec 25"),
])
def test_describe(overrides, expected):
    assert patterns.describe(make_template(**overrides)) == expected


class TestValidateTemplate:

    def test_weekly_requires_weekdays(self):
        with pytest.raises(InvalidPatternError) as exc_info:
            patterns.validate_template({"pattern": "WEEKLY", "weekdays": []})
        assert "weekdays must not be empty" in str(exc_info.value)

    def test_weekly_rejects_out_of_range_and_repeats(self):
        with pytest.raises(InvalidPatternError):
            patterns.validate_template({"pattern": "WEEKLY", "weekdays": [7]})
        with pytest.raises(InvalidPatternError):
            patterns.validate_template({"pattern": "WEEKLY", "weekdays": [1, 1]})

    def test_monthly_requires_day(self):
        with pytest.raises(InvalidPatternError):
            patterns.validate_template({"pattern": "MONTHLY"})

    def test_yearly_day_past_month_end_clamps(self):
        cleaned = patterns.validate_template({"pattern": "YEARLY", "month_of_year": 4, "day_of_month": 31})
        assert cleaned["day_of_month"] == 31

        template = make_template(
            pattern=PatternEnum.YEARLY, month_of_year=4, day_of_month=31, start_date=date(2025, 1, 1)
        )
        assert patterns.matches(template, date(2025, 4, 30)) is True
        assert patterns.matches(template, date(2025, 5, 1)) is False
        assert patterns.matches(template, date(2026, 4, 30)) is True

    def test_yearly_feb_30_lands_on_last_day(self):
        template = make_template(
            pattern=PatternEnum.YEARLY, month_of_year=2, day_of_month=30, start_date=date(2024, 1, 1)
        )
        assert patterns.matches(template, date(2024, 2, 29)) is True
        assert patterns.matches(template, date(2025, 2, 28)) is True
        assert patterns.matches(template, date(2025, 3, 1)) is False

    def test_end_before_start_rejected(self):
        with pytest.raises(InvalidPatternError):
            patterns.validate_template({
                "pattern": "DAILY",
                "start_date": date(2025, 9, 10),
                "end_date": date(2025, 9, 9),
            })

    def test_irrelevant_fields_cleared(self):
        cleaned = patterns.validate_template({
            "pattern": "MONTHLY",
            "day_of_month": 5,
            "weekdays": [1, 2],
            "month_of_year": 6,
        })
        assert cleaned["weekdays"] is None
        assert cleaned["month_of_year"] is None
        assert cleaned["day_of_month"] == 5
        assert cleaned["interval"] == 1

    def test_weekdays_sorted(self):
        cleaned = patterns.validate_template({"pattern": "WEEKLY", "weekdays": [4, 0, 2]})
        assert cleaned["weekdays"] == [0, 2, 4]
