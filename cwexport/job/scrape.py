"""Running every configured job across its roles and regions."""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Protocol

from cwexport.getmetricdata.processor import new_default_processor
from cwexport.job.custom import run_custom_namespace_job
from cwexport.job.discovery import run_discovery_job
from cwexport.job.static import run_static_job
from cwexport.logger import Logger
from cwexport.model import (
    CloudwatchMetricResult,
    CustomNamespaceJob,
    DiscoveryJob,
    JobsConfig,
    Role,
    ScrapeContext,
    StaticJob,
    TaggedResourceResult,
)


@dataclass(frozen=True)
class ConcurrencyConfig:
    """Limits on concurrent CloudWatch API calls."""

    get_metric_data: int = 1


class AccountClient(Protocol):
    def get_account(self) -> str: ...


class ClientFactory(Protocol):
    def get_account_client(self, region: str, role: Role) -> AccountClient: ...

    def get_cloudwatch_client(
        self, region: str, role: Role, concurrency: ConcurrencyConfig
    ): ...

    def get_tagging_client(self, region: str, role: Role, concurrency: int): ...


class _Collector:
    """Thread-safe accumulation of scrape results."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.info: list[TaggedResourceResult] = []
        self.metrics: list[CloudwatchMetricResult] = []

    def add(
        self,
        metric_result: CloudwatchMetricResult,
        resource_result: TaggedResourceResult | None = None,
    ) -> None:
        with self._lock:
            if resource_result is not None:
                self.info.append(resource_result)
            self.metrics.append(metric_result)


def _account_id(logger: Logger, factory: ClientFactory, region: str, role: Role) -> str | None:
    try:
        return factory.get_account_client(region, role).get_account()
    except Exception as err:  # noqa: BLE001 - a failed lookup only skips this job
        logger.error(err, "Couldn't get account Id")
        return None


def scrape_aws_data(
    logger: Logger,
    jobs_config: JobsConfig,
    factory: ClientFactory,
    metrics_per_query: int,
    cloudwatch_concurrency: ConcurrencyConfig,
    tagging_api_concurrency: int,
    always_return_info_metrics: bool = False,
) -> tuple[list[TaggedResourceResult], list[CloudwatchMetricResult]]:
    """Run all jobs for every role and region; return resource and metric results."""
    collector = _Collector()
    tasks: list[Callable[[], None]] = []

    def discovery_task(job: DiscoveryJob, region: str, role: Role) -> None:
        job_logger = logger.with_("job_type", job.type, "region", region, "arn", role.role_arn)
        account_id = _account_id(job_logger, factory, region, role)
        if account_id is None:
            return
        job_logger = job_logger.with_("account", account_id)

        cloudwatch_client = factory.get_cloudwatch_client(region, role, cloudwatch_concurrency)
        processor = new_default_processor(
            logger, cloudwatch_client, metrics_per_query, cloudwatch_concurrency.get_metric_data
        )
        resources, metrics = run_discovery_job(
            job_logger,
            job,
            region,
            factory.get_tagging_client(region, role, tagging_api_concurrency),
            cloudwatch_client,
            processor,
        )
        add_to_output = bool(metrics)
        if always_return_info_metrics:
            add_to_output = add_to_output or bool(resources)
        if not add_to_output:
            return

        context = ScrapeContext(region=region, account_id=account_id, custom_tags=job.custom_tags)
        collector.add(
            CloudwatchMetricResult(context=context, data=metrics),
            TaggedResourceResult(
                context=context if job.include_context_on_info_metrics else None,
                data=resources,
            ),
        )

    def static_task(job: StaticJob, region: str, role: Role) -> None:
        job_logger = logger.with_(
            "static_job_name", job.name, "region", region, "arn", role.role_arn
        )
        account_id = _account_id(job_logger, factory, region, role)
        if account_id is None:
            return
        job_logger = job_logger.with_("account", account_id)

        metrics = run_static_job(
            job_logger, job, factory.get_cloudwatch_client(region, role, cloudwatch_concurrency)
        )
        collector.add(
            CloudwatchMetricResult(
                context=ScrapeContext(
                    region=region, account_id=account_id, custom_tags=job.custom_tags
                ),
                data=metrics,
            )
        )

    def custom_task(job: CustomNamespaceJob, region: str, role: Role) -> None:
        job_logger = logger.with_(
            "custom_metric_namespace", job.namespace, "region", region, "arn", role.role_arn
        )
        account_id = _account_id(job_logger, factory, region, role)
        if account_id is None:
            return
        job_logger = job_logger.with_("account", account_id)

        cloudwatch_client = factory.get_cloudwatch_client(region, role, cloudwatch_concurrency)
        processor = new_default_processor(
            logger, cloudwatch_client, metrics_per_query, cloudwatch_concurrency.get_metric_data
        )
        metrics = run_custom_namespace_job(job_logger, job, cloudwatch_client, processor)
        collector.add(
            CloudwatchMetricResult(
                context=ScrapeContext(
                    region=region, account_id=account_id, custom_tags=job.custom_tags
                ),
                data=metrics,
            )
        )

    for job_list, task in (
        (jobs_config.discovery_jobs, discovery_task),
        (jobs_config.static_jobs, static_task),
        (jobs_config.custom_namespace_jobs, custom_task),
    ):
        for job in job_list:
            for role in job.roles:
                for region in job.regions:
                    tasks.append(
                        lambda task=task, job=job, region=region, role=role: task(job, region, role)
                    )

    if tasks:
        with ThreadPoolExecutor(max_workers=len(tasks)) as pool:
            for future in [pool.submit(t) for t in tasks]:
                future.result()

    return collector.info, collector.metrics