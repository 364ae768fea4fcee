"""Static jobs: fetch statistics for metrics with fixed dimensions."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from cwexport.job.discovery import _gather
from cwexport.logger import Logger
from cwexport.model import (
    CloudwatchData,
    Datapoint,
    Dimension,
    GetMetricStatisticsResult,
    MetricConfig,
    MetricMigrationParams,
    StaticJob,
)


class StatisticsClient(Protocol):
    def get_metric_statistics(
        self,
        logger: Logger,
        dimensions: list[Dimension],
        namespace: str,
        metric: MetricConfig,
    ) -> list[Datapoint] | None: ...


def run_static_job(
    logger: Logger, job: StaticJob, cloudwatch_client: StatisticsClient
) -> list[CloudwatchData]:
    """Fetch statistics for every metric of the job; metrics with no data are dropped."""

    def for_metric(metric: MetricConfig) -> list[CloudwatchData]:
        dimensions = create_static_dimensions(job.dimensions)
        datapoints = cloudwatch_client.get_metric_statistics(
            logger, dimensions, job.namespace, metric
        )
        if datapoints is None:
            return []
        return [
            CloudwatchData(
                metric_name=metric.name,
                resource_name=job.name,
                namespace=job.namespace,
                dimensions=dimensions,
                metric_migration_params=MetricMigrationParams(
                    nil_to_zero=metric.nil_to_zero,
                    add_cloudwatch_timestamp=metric.add_cloudwatch_timestamp,
                ),
                tags=None,
                get_metric_statistics_result=GetMetricStatisticsResult(
                    datapoints=datapoints, statistics=metric.statistics
                ),
            )
        ]

    return _gather(job.metrics, for_metric)


def create_static_dimensions(dimensions: Iterable[Dimension]) -> list[Dimension]:
    """Return a fresh list holding copies of the dimensions."""
    return [Dimension(name=d.name, value=d.value) for d in dimensions]