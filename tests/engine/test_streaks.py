from datetime import date, timedelta

from taskcycle.engine import streaks

TODAY = date(2025, 9, 10)


def days_ago(n):
    return TODAY - timedelta(days=n)


def test_three_consecutive_days_ending_today():
    done = [TODAY, days_ago(1), days_ago(2), days_ago(4)]
    assert streaks.current_streak(done, TODAY) == 3


def test_open_today_does_not_break_streak():
    assert streaks.current_streak([days_ago(1), days_ago(2)], TODAY) == 2


def test_gap_yesterday_resets():
    assert streaks.current_streak([days_ago(2), days_ago(3)], TODAY) == 0


def test_empty_ledger():
    stats = streaks.summarize([], TODAY)
    assert stats.current_streak == 0
    assert stats.total_completions == 0
    assert stats.last_completed_date is None
    assert stats.is_completed_today is False


def test_summarize():
    stats = streaks.summarize([days_ago(1), TODAY, days_ago(5)], TODAY)
    assert stats.current_streak == 2
    assert stats.total_completions == 3
    assert stats.last_completed_date == TODAY
    assert stats.is_completed_today is True
    assert stats.completion_dates == [days_ago(5), days_ago(1), TODAY]


def test_longest_streak():
    done = [days_ago(10), days_ago(9), days_ago(8), days_ago(3), days_ago(2)]
    assert streaks.longest_streak(done) == 3
    assert streaks.longest_streak([]) == 0


def test_daily_counts():
    assert streaks.daily_counts([TODAY, TODAY, days_ago(1)]) == {TODAY: 2, days_ago(1): 1}
