"""Custom namespace jobs: scrape every metric of a user-defined namespace."""

from __future__ import annotations

from cwexport.job.discovery import (
    CloudwatchClient,
    GetMetricDataProcessor,
    _gather,
    get_largest_length_for_metrics,
    metric_dimensions_match_names,
)
from cwexport.logger import Logger
from cwexport.model import (
    CloudwatchData,
    CustomNamespaceJob,
    GetMetricDataProcessingParams,
    MetricConfig,
    MetricMigrationParams,
)


def run_custom_namespace_job(
    logger: Logger,
    job: CustomNamespaceJob,
    cloudwatch_client: CloudwatchClient,
    processor: GetMetricDataProcessor,
) -> list[CloudwatchData] | None:
    """List and fetch the metrics of a custom namespace; None when there is nothing."""
    datas = get_metric_data_for_queries_for_custom_namespace(job, cloudwatch_client, logger)
    if not datas:
        logger.debug("No metrics data found")
        return None

    job_length = get_largest_length_for_metrics(job.metrics)
    try:
        return processor.run(
            job.namespace, job_length, job.delay, job.rounding_period, datas
        )
    except Exception as err:  # noqa: BLE001
        logger.error(err, "Failed to get metric data")
        return None


def get_metric_data_for_queries_for_custom_namespace(
    job: CustomNamespaceJob,
    cloudwatch_client: CloudwatchClient,
    logger: Logger,
) -> list[CloudwatchData]:
    """Build one request per statistic for every listed metric of the namespace."""

    def for_metric(metric_config: MetricConfig) -> list[CloudwatchData]:
        found: list[CloudwatchData] = []
        try:
            for page in cloudwatch_client.list_metrics(
                job.namespace, metric_config, job.recently_active_only
            ):
                for cw_metric in page:
                    if job.dimension_name_requirements and not metric_dimensions_match_names(
                        cw_metric, job.dimension_name_requirements
                    ):
                        continue
                    found.extend(
                        CloudwatchData(
                            metric_name=metric_config.name,
                            resource_name=job.name,
                            namespace=job.namespace,
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
                            tags=None,
                        )
                        for stat in metric_config.statistics
                    )
        except Exception as err:  # noqa: BLE001
            logger.error(
                err,
                "Failed to get full metric list",
                "metric_name",
                metric_config.name,
                "namespace",
                job.namespace,
            )
        return found

    return _gather(job.metrics, for_metric)