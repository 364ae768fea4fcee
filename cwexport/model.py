"""Data model shared by the scrape jobs and the metric processing pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime

DEFAULT_PERIOD_SECONDS = 300
DEFAULT_LENGTH_SECONDS = 300


@dataclass(frozen=True)
class Tag:
    """A key/value tag."""

    key: str
    value: str = ""


@dataclass(frozen=True)
class SearchTag:
    """A tag filter whose value is a regular expression."""

    key: str
    value: re.Pattern


@dataclass(frozen=True)
class Dimension:
    """A CloudWatch metric dimension."""

    name: str
    value: str = ""


@dataclass
class Role:
    """An IAM role to assume when talking to AWS."""

    role_arn: str = ""
    external_id: str = ""


@dataclass
class MetricConfig:
    """Configuration of a single metric to scrape."""

    name: str = ""
    statistics: list[str] = field(default_factory=list)
    period: int = 0
    length: int = 0
    delay: int = 0
    nil_to_zero: bool = False
    add_cloudwatch_timestamp: bool = False


@dataclass
class DimensionsRegexp:
    """A regex extracting dimension values from a resource ARN."""

    regexp: re.Pattern
    dimensions_names: list[str] = field(default_factory=list)


@dataclass
class DiscoveryJob:
    """A job discovering resources through the tagging API."""

    regions: list[str] = field(default_factory=list)
    type: str = ""
    roles: list[Role] = field(default_factory=list)
    search_tags: list[SearchTag] = field(default_factory=list)
    custom_tags: list[Tag] = field(default_factory=list)
    dimension_name_requirements: list[str] = field(default_factory=list)
    metrics: list[MetricConfig] = field(default_factory=list)
    rounding_period: int | None = None
    recently_active_only: bool = False
    exported_tags_on_metrics: list[str] = field(default_factory=list)
    include_context_on_info_metrics: bool = False
    dimensions_regexps: list[DimensionsRegexp] = field(default_factory=list)
    statistics: list[str] = field(default_factory=list)
    period: int = 0
    length: int = 0
    delay: int = 0
    nil_to_zero: bool | None = None
    add_cloudwatch_timestamp: bool | None = None


@dataclass
class StaticJob:
    """A job scraping metrics with fixed dimensions."""

    name: str = ""
    regions: list[str] = field(default_factory=list)
    roles: list[Role] = field(default_factory=list)
    namespace: str = ""
    custom_tags: list[Tag] = field(default_factory=list)
    dimensions: list[Dimension] = field(default_factory=list)
    metrics: list[MetricConfig] = field(default_factory=list)


@dataclass
class CustomNamespaceJob:
    """A job scraping all metrics of a custom namespace."""

    regions: list[str] = field(default_factory=list)
    name: str = ""
    namespace: str = ""
    rounding_period: int | None = None
    recently_active_only: bool = False
    roles: list[Role] = field(default_factory=list)
    metrics: list[MetricConfig] = field(default_factory=list)
    custom_tags: list[Tag] = field(default_factory=list)
    dimension_name_requirements: list[str] = field(default_factory=list)
    statistics: list[str] = field(default_factory=list)
    period: int = 0
    length: int = 0
    delay: int = 0
    nil_to_zero: bool | None = None
    add_cloudwatch_timestamp: bool | None = None


@dataclass
class JobsConfig:
    """All configured jobs."""

    sts_region: str = ""
    discovery_jobs: list[DiscoveryJob] = field(default_factory=list)
    static_jobs: list[StaticJob] = field(default_factory=list)
    custom_namespace_jobs: list[CustomNamespaceJob] = field(default_factory=list)


@dataclass
class Metric:
    """A metric as returned by the ListMetrics API."""

    dimensions: list[Dimension] = field(default_factory=list)
    metric_name: str = ""
    namespace: str = ""


@dataclass
class Datapoint:
    """A data point returned by GetMetricStatistics."""

    average: float | None = None
    extended_statistics: dict[str, float | None] = field(default_factory=dict)
    maximum: float | None = None
    minimum: float | None = None
    sample_count: float | None = None
    sum: float | None = None
    timestamp: datetime | None = None


@dataclass
class ScrapeContext:
    """Where a set of results was scraped from."""

    region: str = ""
    account_id: str = ""
    custom_tags: list[Tag] = field(default_factory=list)


@dataclass
class GetMetricStatisticsResult:
    """Result of a GetMetricStatistics call (static jobs)."""

    datapoints: list[Datapoint] | None = None
    statistics: list[str] = field(default_factory=list)


@dataclass
class GetMetricDataProcessingParams:
    """Fields needed to run GetMetricData for one metric."""

    query_id: str = ""
    statistic: str = ""
    period: int = 0
    length: int = 0
    delay: int = 0


@dataclass
class MetricMigrationParams:
    """Options applied when turning results into exported metrics."""

    nil_to_zero: bool = False
    add_cloudwatch_timestamp: bool = False


@dataclass
class GetMetricDataResult:
    """Result of a GetMetricData query mapped back to its request."""

    statistic: str = ""
    datapoint: float | None = None
    timestamp: datetime | None = None


@dataclass
class MetricDataResult:
    """A single entry returned by the GetMetricData API."""

    id: str = ""
    datapoint: float | None = None
    timestamp: datetime | None = None


@dataclass
class CloudwatchData:
    """A CloudWatch metric with its data, metric and resource information.

    ``resource_name`` is the resource ARN (or ``global``) for discovery jobs,
    the job name for static and custom namespace jobs.
    """

    metric_name: str = ""
    resource_name: str = ""
    namespace: str = ""
    tags: list[Tag] | None = None
    dimensions: list[Dimension] = field(default_factory=list)
    get_metric_data_processing_params: GetMetricDataProcessingParams | None = None
    metric_migration_params: MetricMigrationParams = field(
        default_factory=MetricMigrationParams
    )
    get_metric_data_result: GetMetricDataResult | None = None
    get_metric_statistics_result: GetMetricStatisticsResult | None = None


@dataclass
class TaggedResource:
    """An AWS resource with its tags."""

    arn: str = ""
    namespace: str = ""
    region: str = ""
    tags: list[Tag] = field(default_factory=list)

    def filter_through_tags(self, filter_tags: list[SearchTag]) -> bool:
        """Return True if every filter tag matches a tag of the resource."""
        if not filter_tags:
            return True
        matches = 0
        for resource_tag in self.tags:
            for filter_tag in filter_tags:
                if resource_tag.key == filter_tag.key:
                    if not filter_tag.value.search(resource_tag.value):
                        return False
                    matches += 1
        return matches == len(filter_tags)

    def metric_tags(self, exported_tags: list[str]) -> list[Tag]:
        """Build one tag per exported tag name, empty when the resource lacks it."""
        return [
            Tag(
                key=name,
                value=next((t.value for t in self.tags if t.key == name), ""),
            )
            for name in exported_tags or ()
        ]


@dataclass
class CloudwatchMetricResult:
    """Metric data scraped in one context."""

    context: ScrapeContext | None = None
    data: list[CloudwatchData] | None = None


@dataclass
class TaggedResourceResult:
    """Resources discovered in one context."""

    context: ScrapeContext | None = None
    data: list[TaggedResource] | None = None