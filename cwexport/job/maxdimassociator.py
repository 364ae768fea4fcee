"""Best-effort mapping of ListMetrics output to tagged resources.

Dimension values are extracted from resource ARNs with per-namespace regexes;
a metric is associated with the resource whose extracted values match the
metric's dimensions, preferring the mapping with the most dimensions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from cwexport.logger import Logger
from cwexport.model import DimensionsRegexp, Metric, TaggedResource

_AMAZON_MQ_BROKER_SUFFIX = re.compile(r"-[0-9]+\Z")

Signature = tuple[tuple[str, str], ...]


def _signature(labels: dict[str, str]) -> Signature:
    return tuple(sorted(labels.items()))


@dataclass
class _DimensionsRegexpMapping:
    dimensions: list[str]
    dimensions_mapping: dict[Signature, TaggedResource] = field(default_factory=dict)

    def __str__(self) -> str:
        mappings = "".join(
            f"{dict(sign)}={res.arn}," for sign, res in self.dimensions_mapping.items()
        )
        return f"{{dimensions=[{''.join(self.dimensions)}], dimensions_mappings={{{mappings}}}}}"


def _build_labels_map(metric: Metric, mapping: _DimensionsRegexpMapping) -> dict[str, str]:
    labels: dict[str, str] = {}
    for r_dimension in mapping.dimensions:
        for m_dimension in metric.dimensions:
            name = m_dimension.name
            value = m_dimension.value

            # Active/standby ActiveMQ brokers carry a number suffix not in the ARN.
            if metric.namespace == "AWS/AmazonMQ" and name == "Broker":
                value = _AMAZON_MQ_BROKER_SUFFIX.sub("", value)

            # SageMaker endpoint ARNs are lower case.
            if metric.namespace == "AWS/SageMaker" and name == "EndpointName":
                value = value.lower()

            if r_dimension == name:
                labels[name] = value
    return labels


class Associator:
    """Associates metrics to resources using dimension regexes."""

    def __init__(
        self,
        logger: Logger,
        dimensions_regexps: list[DimensionsRegexp],
        resources: list[TaggedResource],
    ) -> None:
        self.logger = logger
        mappings: list[_DimensionsRegexpMapping] = []
        # Each resource is matched against at most one regex.
        mapped: set[int] = set()

        for dr in dimensions_regexps:
            mapping = _DimensionsRegexpMapping(dimensions=list(dr.dimensions_names))
            for idx, resource in enumerate(resources):
                if idx in mapped:
                    continue
                match = dr.regexp.search(resource.arn)
                if match is None:
                    continue
                labels = {
                    name: value or ""
                    for name, value in zip(dr.dimensions_names, match.groups())
                }
                mapping.dimensions_mapping[_signature(labels)] = resource
                mapped.add(idx)

            if mapping.dimensions_mapping:
                mappings.append(mapping)
            elif logger.is_debug_enabled():
                logger.debug("unable to define a regex mapping", "regex", dr.regexp.pattern)

        # Most specific mappings first; sorted() is stable.
        self._mappings = sorted(mappings, key=lambda m: -len(m.dimensions))

        if logger.is_debug_enabled():
            for idx, mapping in enumerate(self._mappings):
                logger.debug("associator mapping", "mapping_idx", idx, "mapping", str(mapping))

    def associate_metric_to_resource(
        self, metric: Metric
    ) -> tuple[TaggedResource | None, bool]:
        """Return the matching resource (or None) and whether to skip the metric."""
        logger = self.logger.with_("metric_name", metric.metric_name)

        if not metric.dimensions:
            logger.debug("metric has no dimensions, don't skip")
            return None, False

        dimensions = [d.name for d in metric.dimensions]
        if logger.is_debug_enabled():
            logger.debug("associate loop start", "dimensions", ",".join(dimensions))

        mapping_found = False
        for idx, mapping in enumerate(self._mappings):
            if not all(name in dimensions for name in mapping.dimensions):
                continue
            if logger.is_debug_enabled():
                logger.debug("found mapping", "mapping_idx", idx, "mapping", str(mapping))

            mapping_found = True
            signature = _signature(_build_labels_map(metric, mapping))
            resource = mapping.dimensions_mapping.get(signature)
            if resource is not None:
                logger.debug("resource matched", "signature", signature)
                return resource, False
            logger.debug("resource not matched", "signature", signature)

        # A mapping applied but nothing matched: skip. No mapping applied: keep as global.
        logger.debug("associate loop end", "skip", mapping_found)
        return None, mapping_found