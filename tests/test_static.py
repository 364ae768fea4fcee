from datetime import datetime, timezone

from cwexport.job.static import create_static_dimensions, run_static_job
from cwexport.logger import new_nop_logger
from cwexport.model import Datapoint, Dimension, MetricConfig, StaticJob


class FakeStatisticsClient:
    def __init__(self, datapoints_by_metric):
        self.datapoints_by_metric = datapoints_by_metric
        self.calls = []

    def get_metric_statistics(self, logger, dimensions, namespace, metric):
        self.calls.append((list(dimensions), namespace, metric.name))
        return self.datapoints_by_metric.get(metric.name)


def _job():
    return StaticJob(
        name="importer",
        namespace="AWS/AutoScaling",
        dimensions=[Dimension("AutoScalingGroupName", "my-group")],
        metrics=[
            MetricConfig(name="GroupInServiceInstances", statistics=["Minimum"], nil_to_zero=True),
            MetricConfig(name="GroupMaxSize", statistics=["Maximum"], add_cloudwatch_timestamp=True),
        ],
    )


def test_create_static_dimensions_copies():
    dims = [Dimension("A", "1"), Dimension("B", "2")]
    copied = create_static_dimensions(dims)
    assert copied == dims
    copied.append(Dimension("C", "3"))
    assert dims == [Dimension("A", "1"), Dimension("B", "2")]


def test_create_static_dimensions_empty():
    assert create_static_dimensions([]) == []


def test_run_static_job_collects_statistics():
    point = Datapoint(minimum=2.0, timestamp=datetime(2023, 6, 7, 1, 9, 8, tzinfo=timezone.utc))
    client = FakeStatisticsClient({"GroupInServiceInstances": [point], "GroupMaxSize": []})
    job = _job()
    datas = run_static_job(new_nop_logger(), job, client)

    assert [d.metric_name for d in datas] == ["GroupInServiceInstances", "GroupMaxSize"]
    first, second = datas
    assert first.resource_name == job.name
    assert first.namespace == job.namespace
    assert first.dimensions == job.dimensions
    assert first.get_metric_statistics_result.datapoints == [point]
    assert first.get_metric_statistics_result.statistics == ["Minimum"]
    assert first.metric_migration_params.nil_to_zero is True
    assert second.metric_migration_params.add_cloudwatch_timestamp is True
    assert second.get_metric_statistics_result.datapoints == []
    assert all(d.tags is None for d in datas)
    assert all(d.get_metric_data_processing_params is None for d in datas)
    assert all(d.get_metric_data_result is None for d in datas)


def test_run_static_job_drops_metrics_without_datapoints():
    client = FakeStatisticsClient({"GroupMaxSize": [Datapoint(maximum=4.0)]})
    datas = run_static_job(new_nop_logger(), _job(), client)
    assert [d.metric_name for d in datas] == ["GroupMaxSize"]


def test_run_static_job_queries_with_job_dimensions():
    client = FakeStatisticsClient({})
    job = _job()
    assert run_static_job(new_nop_logger(), job, client) == []
    assert sorted(client.calls, key=lambda c: c[2]) == [
        (job.dimensions, job.namespace, "GroupInServiceInstances"),
        (job.dimensions, job.namespace, "GroupMaxSize"),
    ]


def test_each_result_gets_its_own_dimensions_list():
    client = FakeStatisticsClient({"GroupInServiceInstances": [], "GroupMaxSize": []})
    job = _job()
    first, second = run_static_job(new_nop_logger(), job, client)
    first.dimensions.append(Dimension("Extra", "x"))
    assert second.dimensions == job.dimensions
    assert job.dimensions == [Dimension("AutoScalingGroupName", "my-group")]