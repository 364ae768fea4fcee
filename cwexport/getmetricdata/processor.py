"""Batched execution of GetMetricData requests and mapping of their results."""

from __future__ import annotations

import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Protocol

from cwexport.getmetricdata.compact import compact
from cwexport.getmetricdata.iterator import (
    IteratorFactory,
    NothingToIterate,
    SimpleBatchIterator,
)
from cwexport.getmetricdata.windowcalculator import (
    TIME_FORMAT,
    MetricWindowCalculator,
    TimeClock,
)
from cwexport.logger import Logger
from cwexport.model import (
    CloudwatchData,
    GetMetricDataProcessingParams,
    GetMetricDataResult,
    MetricDataResult,
)

_QUERY_ID_PREFIX = "id_"
_INTEGER = re.compile(r"[+-]?[0-9]+")


class Client(Protocol):
    def get_metric_data(
        self,
        batch: list[CloudwatchData],
        namespace: str,
        start_time: datetime,
        end_time: datetime,
    ) -> list[MetricDataResult] | None: ...


class _Factory(Protocol):
    def build(
        self,
        data: list[CloudwatchData],
        job_metric_length: int,
        job_metric_delay: int,
        job_rounding_period: int | None,
    ) -> NothingToIterate | SimpleBatchIterator: ...


def index_to_query_id(index: int) -> str:
    """Return the GetMetricData query id for the entry at ``index`` of a batch."""
    return f"{_QUERY_ID_PREFIX}{index}"


def query_id_to_index(query_id: str) -> int:
    """Return the batch index encoded in ``query_id``; raise ValueError if malformed."""
    digits = query_id[len(_QUERY_ID_PREFIX):] if query_id.startswith(_QUERY_ID_PREFIX) else query_id
    if not _INTEGER.fullmatch(digits):
        raise ValueError(f"invalid query id {query_id!r}")
    return int(digits)


def _seconds(value: int) -> timedelta:
    return timedelta(seconds=value)


def _add_query_ids(batch: list[CloudwatchData]) -> None:
    for index, entry in enumerate(batch):
        entry.get_metric_data_processing_params.query_id = index_to_query_id(index)


def _map_results_to_batch(
    logger: Logger, results: list[MetricDataResult], batch: list[CloudwatchData]
) -> None:
    for entry in results:
        try:
            index = query_id_to_index(entry.id)
            if not 0 <= index < len(batch):
                raise ValueError(f"query id {entry.id!r} out of range")
        except ValueError as err:
            logger.warn("GetMetricData returned unknown Query ID", "err", err, "query_id", entry.id)
            continue

        data = batch[index]
        if data.get_metric_data_result is None:
            data.get_metric_data_result = GetMetricDataResult(
                statistic=data.get_metric_data_processing_params.statistic,
                datapoint=entry.datapoint,
                timestamp=entry.timestamp,
            )
            # Processing is done for this entry.
            data.get_metric_data_processing_params = None


class Processor:
    """Runs GetMetricData for a list of requests, in concurrent batches."""

    def __init__(
        self,
        logger: Logger,
        client: Client,
        concurrency: int,
        window_calculator: MetricWindowCalculator,
        factory: _Factory,
    ) -> None:
        self.logger = logger
        self.client = client
        self.concurrency = concurrency
        self.window_calculator = window_calculator
        self.factory = factory

    def _process_batch(
        self,
        namespace: str,
        batch: list[CloudwatchData],
        params: GetMetricDataProcessingParams,
    ) -> None:
        _add_query_ids(batch)
        start_time, end_time = self.window_calculator.calculate(
            _seconds(params.period), _seconds(params.length), _seconds(params.delay)
        )
        if self.logger.is_debug_enabled():
            self.logger.debug(
                "GetMetricData Window",
                "start_time",
                start_time.strftime(TIME_FORMAT),
                "end_time",
                end_time.strftime(TIME_FORMAT),
            )

        data = self.client.get_metric_data(batch, namespace, start_time, end_time)
        if data is not None:
            _map_results_to_batch(self.logger, data, batch)
        else:
            self.logger.warn(
                "GetMetricData partition empty result", "start", start_time, "end", end_time
            )

    def run(
        self,
        namespace: str,
        job_metric_length: int,
        job_metric_delay: int,
        job_rounding_period: int | None,
        requests: list[CloudwatchData],
    ) -> list[CloudwatchData]:
        """Fill in ``get_metric_data_result`` and drop requests that got no result.

        The list is filtered in place and returned.
        """
        if not requests:
            return requests

        iterator = self.factory.build(
            requests, job_metric_length, job_metric_delay, job_rounding_period
        )
        with ThreadPoolExecutor(max_workers=max(1, self.concurrency)) as pool:
            futures = [
                pool.submit(self._process_batch, namespace, batch, params)
                for batch, params in iterator
            ]
            for future in futures:
                exc = future.exception()
                if exc is not None:
                    raise RuntimeError(f"GetMetricData work group error: {exc}") from exc

        return compact(requests, lambda m: m.get_metric_data_result is not None)


def new_default_processor(
    logger: Logger, client: Client, metrics_per_query: int, concurrency: int
) -> Processor:
    """Create a processor using the wall clock and simple batching."""
    return Processor(
        logger,
        client,
        concurrency,
        MetricWindowCalculator(TimeClock()),
        IteratorFactory(metrics_per_query),
    )