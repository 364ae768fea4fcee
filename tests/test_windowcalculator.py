from datetime import datetime, timedelta, timezone

import pytest

from cwexport.getmetricdata.windowcalculator import MetricWindowCalculator, TimeClock


class StubClock:
    def __init__(self, current):
        self.current = current

    def now(self):
        return self.current


UTC = timezone.utc


@pytest.mark.parametrize(
    "period, length, delay, now, expected_start, expected_end",
    [
        (
            timedelta(seconds=120),
            timedelta(seconds=120),
            timedelta(seconds=120),
            datetime(2021, 11, 20, 0, 0, 0, tzinfo=UTC),
            datetime(2021, 11, 19, 23, 56, 0, tzinfo=UTC),
            datetime(2021, 11, 19, 23, 58, 0, tzinfo=UTC),
        ),
        (
            timedelta(0),
            timedelta(seconds=120),
            timedelta(seconds=120),
            datetime(2021, 1, 1, 0, 2, 22, 33, tzinfo=UTC),
            datetime(2020, 12, 31, 23, 58, 22, 33, tzinfo=UTC),
            datetime(2021, 1, 1, 0, 0, 22, 33, tzinfo=UTC),
        ),
        (
            timedelta(seconds=86400),
            timedelta(seconds=172800),
            timedelta(0),
            datetime(2021, 11, 20, 8, 33, 44, tzinfo=UTC),
            datetime(2021, 11, 18, 0, 0, 0, tzinfo=UTC),
            datetime(2021, 11, 20, 0, 0, 0, tzinfo=UTC),
        ),
        (
            timedelta(seconds=300),
            timedelta(seconds=172800),
            timedelta(0),
            datetime(2021, 11, 20, 8, 33, 44, tzinfo=UTC),
            datetime(2021, 11, 18, 8, 30, 0, tzinfo=UTC),
            datetime(2021, 11, 20, 8, 30, 0, tzinfo=UTC),
        ),
    ],
    ids=[
        "back four minutes rounded to two minutes with two minute delay",
        "back four minutes with two minute delay and no rounding",
        "back two days rounded to the day with zero delay",
        "back two days rounded to 5 minutes with zero delay",
    ],
)
def test_metric_window(period, length, delay, now, expected_start, expected_end):
    start, end = MetricWindowCalculator(StubClock(now)).calculate(period, length, delay)
    assert start == expected_start
    assert end == expected_end


def test_window_length_matches_requested_length():
    calculator = MetricWindowCalculator(TimeClock())
    start, end = calculator.calculate(
        timedelta(seconds=60), timedelta(seconds=600), timedelta(seconds=120)
    )
    assert end - start == timedelta(seconds=600)
    assert end.second == 0
    assert end.microsecond == 0
    assert end <= datetime.now(UTC) - timedelta(seconds=90)


def test_default_clock_is_time_clock():
    calculator = MetricWindowCalculator()
    before = datetime.now(UTC)
    start, end = calculator.calculate(timedelta(0), timedelta(seconds=10), timedelta(0))
    after = datetime.now(UTC)
    assert before <= end <= after
    assert end - start == timedelta(seconds=10)