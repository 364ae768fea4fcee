import pytest

from cwexport.getmetricdata.iterator import (
    IteratorFactory,
    NothingToIterate,
    SimpleBatchIterator,
)
from cwexport.model import (
    CloudwatchData,
    Dimension,
    GetMetricDataProcessingParams,
    MetricMigrationParams,
    Tag,
)


def _params(**kwargs):
    return CloudwatchData(
        get_metric_data_processing_params=GetMetricDataProcessingParams(**kwargs)
    )


def _sample(resource_id):
    return CloudwatchData(
        metric_name="StorageBytes",
        dimensions=[
            Dimension("FileSystemId", "fs-abc123"),
            Dimension("StorageClass", "Standard"),
        ],
        resource_name=resource_id,
        namespace="efs",
        tags=[Tag("Value1", ""), Tag("Value2", "")],
        metric_migration_params=MetricMigrationParams(),
        get_metric_data_processing_params=GetMetricDataProcessingParams(
            period=60, length=60, delay=0, statistic="Average"
        ),
    )


def test_factory_empty_returns_nothing_to_iterate():
    iterator = IteratorFactory(100).build([], 10, 100, 100)
    assert isinstance(iterator, NothingToIterate)
    assert iterator.has_more() is False
    assert iterator.next_batch() == (None, None)


def test_factory_with_data_returns_simple_batching():
    data = [_params(period=10, delay=100) for _ in range(3)]
    iterator = IteratorFactory(100).build(data, 10, 100, 100)
    assert isinstance(iterator, SimpleBatchIterator)
    assert iterator.has_more() is True


def test_sets_length_and_delay():
    data = [_params(period=101, delay=100)]
    iterator = SimpleBatchIterator(1, data, 101, 100, None)
    _, params = iterator.next_batch()
    assert params.length == 101
    assert params.delay == 100


@pytest.mark.parametrize(
    "periods, metrics_per_query, rounding_period, expected",
    [
        ([200, 200, 200], 1, 100, [100, 100, 100]),
        ([200, 200, 200], 1, None, [200, 200, 200]),
        ([10, 100, 1000], 3, None, [10]),
    ],
    ids=[
        "rounding period overrides all",
        "uses metric period when no rounding period is set",
        "smallest period wins",
    ],
)
def test_calculates_period(periods, metrics_per_query, rounding_period, expected):
    data = [_params(period=p) for p in periods]
    iterator = SimpleBatchIterator(metrics_per_query, data, 10, 100, rounding_period)
    got = [params.period for _, params in iterator]
    assert got == expected


@pytest.mark.parametrize(
    "metrics_per_query, length, expected_calls",
    [(1, 10, 10), (5, 100, 20), (5, 94, 19)],
    ids=[
        "1 per batch",
        "divisible batches and requests",
        "indivisible batches and requests",
    ],
)
def test_iterate_flow(metrics_per_query, length, expected_calls):
    data = [_sample(str(i)) for i in range(length)]
    first = data[0].get_metric_data_processing_params
    iterator = SimpleBatchIterator(
        metrics_per_query, data, first.length, first.delay, None
    )
    calls = 0
    seen = []
    while iterator.has_more():
        calls += 1
        batch, _ = iterator.next_batch()
        seen.extend(batch)
    assert calls == expected_calls
    assert [d.resource_name for d in seen] == [str(i) for i in range(length)]
    assert iterator.next_batch() == (None, None)


def test_batches_share_objects_with_input():
    data = [_sample("a"), _sample("b")]
    batch, _ = SimpleBatchIterator(2, data, 60, 0, None).next_batch()
    assert batch[0] is data[0]
    assert batch[1] is data[1]