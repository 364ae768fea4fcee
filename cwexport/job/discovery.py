"""Discovery jobs: find tagged resources, list their metrics and fetch the data."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol, TypeVar

from cwexport.job.maxdimassociator import Associator
from cwexport.logger import Logger
from cwexport.model import (
    CloudwatchData,
    DiscoveryJob,
    GetMetricDataProcessingParams,
    Metric,
    MetricConfig,
    MetricMigrationParams,
    TaggedResource,
)

T = TypeVar("T")
R = TypeVar("R")


class ExpectedToFindResourcesError(Exception):
    """Raised by a tagging client when filtering left no resources where some were expected."""


class ResourceAssociator(Protocol):
    def associate_metric_to_resource(
        self, metric: Metric
    ) -> tuple[TaggedResource | None, bool]: ...


class TaggingClient(Protocol):
    def get_resources(self, job: DiscoveryJob, region: str) -> list[TaggedResource]: ...


class CloudwatchClient(Protocol):
    def list_metrics(
        self, namespace: str, metric: MetricConfig, recently_active_only: bool
    ) -> Iterable[list[Metric]]:
        """Yield pages of metrics; raise on failure."""
        ...


class GetMetricDataProcessor(Protocol):
    def run(
        self,
        namespace: str,
        job_metric_length: int,
        job_metric_delay: int,
        job_rounding_period: int | None,
        requests: list[CloudwatchData],
    ) -> list[CloudwatchData]: ...


@dataclass(frozen=True)
class NopAssociator:
    """Associator that gives every metric the same fixed answer.

    By default no resource is matched and no metric is skipped, so every
    metric ends up as a "global" metric.
    """

    resource: TaggedResource | None = None
    skip: bool = False

    def associate_metric_to_resource(
        self, metric: Metric
    ) -> tuple[TaggedResource | None, bool]:
        return self.resource, self.skip


def _gather(items: Sequence[T], work: Callable[[T], list[R]]) -> list[R]:
    """Run ``work`` for every item concurrently and concatenate the results in order."""
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=len(items)) as pool:
        return [entry for chunk in pool.map(work, items) for entry in chunk]


def run_discovery_job(
    logger: Logger,
    job: DiscoveryJob,
    region: str,
    tagging_client: TaggingClient,
    cloudwatch_client: CloudwatchClient,
    processor: GetMetricDataProcessor,
) -> tuple[list[TaggedResource] | None, list[CloudwatchData] | None]:
    """Discover resources and fetch their metric data.

    Returns the resources and the processed metric data; either may be None.
    """
    logger.debug("Get tagged resources")
    try:
        resources = tagging_client.get_resources(job, region)
    except ExpectedToFindResourcesError as err:
        logger.error(err, "No tagged resources made it through filtering")
        return None, None
    except Exception as err:  # noqa: BLE001 - any client failure ends the job
        logger.error(err, "Couldn't describe resources")
        return None, None

    if not resources:
        logger.debug("No tagged resources", "region", region, "namespace", job.type)

    datas = get_metric_data_for_queries(logger, job, cloudwatch_client, resources)
    if not datas:
        logger.info("No metrics data found")
        return resources, None

    job_length = get_largest_length_for_metrics(job.metrics)
    try:
        datas = processor.run(job.type, job_length, job.delay, job.rounding_period, datas)
    except Exception as err:  # noqa: BLE001
        logger.error(err, "Failed to get metric data")
        return None, None

    return resources, datas


def get_largest_length_for_metrics(metrics: Iterable[MetricConfig]) -> int:
    """Return the largest ``length`` among the metrics, 0 when there are none."""
    return max((m.length for m in metrics), default=0) if metrics else 0


def get_metric_data_for_queries(
    logger: Logger,
    job: DiscoveryJob,
    cloudwatch_client: CloudwatchClient,
    resources: list[TaggedResource] | None,
) -> list[CloudwatchData]:
    """List the metrics of every configured metric and build the data requests."""
    associator: ResourceAssociator
    if job.dimensions_regexps and resources:
        associator = Associator(logger, job.dimensions_regexps, resources)
    else:
        # Nothing to associate, but metrics must not be skipped.
        associator = NopAssociator()

    def for_metric(metric_config: MetricConfig) -> list[CloudwatchData]:
        found: list[CloudwatchData] = []
        try:
            for page in cloudwatch_client.list_metrics(
                job.type, metric_config, job.recently_active_only
            ):
                found.extend(
                    get_filtered_metric_datas(
                        logger,
                        job.type,
                        job.exported_tags_on_metrics,
                        page,
                        job.dimension_name_requirements,
                        metric_config,
                        associator,
                    )
                )
        except Exception as err:  # noqa: BLE001
            logger.error(
                err,
                "Failed to get full metric list",
                "metric_name",
                metric_config.name,
                "namespace",
                job.type,
            )
        return found

    return _gather(job.metrics, for_metric)


def get_filtered_metric_datas(
    logger: Logger,
    namespace: str,
    tags_on_metrics: list[str] | None,
    metrics_list: Iterable[Metric],
    dimension_name_list: list[str] | None,
    metric_config: MetricConfig,
    associator: ResourceAssociator,
) -> list[CloudwatchData]:
    """Build one request per statistic for each listed metric that passes the filters."""
    datas: list[CloudwatchData] = []
    for cw_metric in metrics_list:
        if dimension_name_list and not metric_dimensions_match_names(
            cw_metric, dimension_name_list
        ):
            continue

        matched, skip = associator.associate_metric_to_resource(cw_metric)
        if skip:
            if logger.is_debug_enabled():
                dimensions = ",".join(f"{d.name}={d.value}" for d in cw_metric.dimensions)
                logger.debug(
                    "skipping metric unmatched by associator",
                    "metric",
                    metric_config.name,
                    "dimensions",
                    dimensions,
                )
            continue

        resource = matched or TaggedResource(arn="global", namespace=namespace)
        metric_tags = resource.metric_tags(tags_on_metrics or [])
        for stat in metric_config.statistics:
            datas.append(
                CloudwatchData(
                    metric_name=metric_config.name,
                    resource_name=resource.arn,
                    namespace=namespace,
                    dimensions=cw_metric.dimensions,
                    get_metric_data_processing_params=GetMetricDataProcessingParams(
                        period=metric_config.period,
                        length=metric_config.length,
                        delay=metric_config.delay,
                        statistic=stat,
                    ),
                    metric_migration_params=MetricMigrationParams(
                        nil_to_zero=metric_config.nil_to_zero,
                        add_cloudwatch_timestamp=metric_config.add_cloudwatch_timestamp,
                    ),
                    tags=metric_tags,
                )
            )
    return datas


def metric_dimensions_match_names(
    metric: Metric, dimension_name_requirements: list[str]
) -> bool:
    """Return True if the metric has exactly the required dimension names."""
    if len(dimension_name_requirements) != len(metric.dimensions):
        return False
    return all(d.name in dimension_name_requirements for d in metric.dimensions)