"""Computation of the start and end time of GetMetricData requests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol

TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"

_ZERO_AWARE = datetime(1, 1, 1, tzinfo=timezone.utc)
_ZERO_NAIVE = datetime(1, 1, 1)
_MICROSECOND = timedelta(microseconds=1)


class Clock(Protocol):
    def now(self) -> datetime: ...


class TimeClock:
    """Clock backed by the system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def _round(moment: datetime, step: timedelta) -> datetime:
    """Round to the nearest multiple of ``step`` since year 1; halves round up."""
    zero = _ZERO_NAIVE if moment.tzinfo is None else _ZERO_AWARE
    total = (moment - zero) // _MICROSECOND
    unit = step // _MICROSECOND
    if unit <= 0:
        return moment
    quotient, remainder = divmod(total, unit)
    if remainder + remainder >= unit:
        quotient += 1
    return moment + (quotient * unit - total) * _MICROSECOND


class MetricWindowCalculator:
    """Computes request windows from the wall clock."""

    def __init__(self, clock: Clock | None = None) -> None:
        self.clock = clock if clock is not None else TimeClock()

    def calculate(
        self, period: timedelta, length: timedelta, delay: timedelta
    ) -> tuple[datetime, datetime]:
        """Return (start, end) for the given period, length and delay."""
        now = self.clock.now()
        if period > timedelta(0):
            now = _round(now - period / 2, period)
        return now - (length + delay), now - delay