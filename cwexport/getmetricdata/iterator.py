"""Batching of GetMetricData requests."""

from __future__ import annotations

import math
from typing import Iterator

from cwexport.model import (
    DEFAULT_PERIOD_SECONDS,
    CloudwatchData,
    GetMetricDataProcessingParams,
)

Batch = tuple[list[CloudwatchData] | None, GetMetricDataProcessingParams | None]


class NothingToIterate:
    """An iterator over no batches."""

    def next_batch(self) -> Batch:
        return None, None

    def has_more(self) -> bool:
        return False

    def __iter__(self) -> Iterator[Batch]:
        return iter(())


class SimpleBatchIterator:
    """Slices the data into batches of at most ``metrics_per_query`` entries."""

    def __init__(
        self,
        metrics_per_query: int,
        data: list[CloudwatchData],
        job_metric_length: int,
        job_metric_delay: int,
        job_rounding_period: int | None,
    ) -> None:
        self.size = math.ceil(len(data) / metrics_per_query)
        self.current_batch = 0
        self.data = data
        self.entries_per_batch = metrics_per_query
        self.rounding_period = job_rounding_period
        self.delay = job_metric_delay
        self.length = job_metric_length

    def next_batch(self) -> Batch:
        """Return the next batch and its query parameters, or (None, None)."""
        if self.current_batch >= self.size:
            return None, None

        start = self.current_batch * self.entries_per_batch
        result = self.data[start : start + self.entries_per_batch]
        self.current_batch += 1

        if self.rounding_period is None:
            batch_period = min(
                [DEFAULT_PERIOD_SECONDS]
                + [d.get_metric_data_processing_params.period for d in result]
            )
        else:
            batch_period = self.rounding_period

        params = GetMetricDataProcessingParams(
            length=self.length, delay=self.delay, period=batch_period
        )
        return result, params

    def has_more(self) -> bool:
        return self.current_batch < self.size

    def __iter__(self) -> Iterator[Batch]:
        while self.has_more():
            yield self.next_batch()


class IteratorFactory:
    """Builds the batch iterator suited to a list of requests."""

    def __init__(self, metrics_per_query: int) -> None:
        self.metrics_per_query = metrics_per_query

    def build(
        self,
        data: list[CloudwatchData],
        job_metric_length: int,
        job_metric_delay: int,
        job_rounding_period: int | None,
    ) -> NothingToIterate | SimpleBatchIterator:
        if not data:
            return NothingToIterate()
        return SimpleBatchIterator(
            self.metrics_per_query,
            data,
            job_metric_length,
            job_metric_delay,
            job_rounding_period,
        )