# cwexport

`cwexport` is the scraping core of a CloudWatch metrics exporter. It runs three kinds of job:

- **Discovery jobs** list metrics and match them to tagged resources, then fetch the data with `GetMetricData`.
- **Static jobs** fetch statistics for fixed dimensions with `GetMetricStatistics`.
- **Custom namespace jobs** list every metric of a namespace you name and fetch the data with `GetMetricData`.

You supply the API clients as plain objects. `cwexport` does the rest:

- it batches the `GetMetricData` queries;
- it computes the time window of each batch;
- it maps the results back to their requests;
- it associates metrics with resources.

## Install

```
pip install .
pip install ".[test]"   # to run the tests
```

## Modules

- `cwexport.model` holds the data classes:
  - the jobs: `JobsConfig`, `DiscoveryJob`, `StaticJob`, `CustomNamespaceJob`, `Role`, `MetricConfig`;
  - the metric data: `Metric`, `Dimension`, `CloudwatchData`, `MetricDataResult`, `GetMetricDataResult`, `Datapoint`;
  - the resources: `TaggedResource`, with two methods:
    - `filter_through_tags(filter_tags)` is true when every `SearchTag` matches a tag of the resource;
    - `metric_tags(exported_tags)` returns one `Tag` for each exported name. The value is empty when the resource has no tag of that name.
- `cwexport.logger` holds the loggers:
  - `new_logger(fmt, debug_enabled, *args)` returns a `Logger` that writes logfmt lines to stderr, or JSON lines when `fmt` is `"json"`;
  - `new_nop_logger()` returns a logger that discards everything;
  - `Logger.with_(*args)` returns a logger that adds key/value context to every line.
- `cwexport.getmetricdata` covers the `GetMetricData` requests:
  - `compact.compact(items, keep)` filters a list in place;
  - `iterator.IteratorFactory` and `iterator.SimpleBatchIterator` split the requests into batches of `metrics_per_query`. When no rounding period is given, a batch uses the smallest period it holds, capped at 300 seconds;
  - `windowcalculator.MetricWindowCalculator` rounds the clock to the period and returns the start and end times;
  - `processor.Processor` runs the batches in a thread pool of `concurrency` workers. `processor.new_default_processor(logger, client, metrics_per_query, concurrency)` builds one with the wall clock.
- `cwexport.job` holds the jobs and the resource matching:
  - `maxdimassociator.Associator` maps metric dimensions to resource ARNs through the job's `dimensions_regexps`;
  - `discovery.run_discovery_job`, `custom.run_custom_namespace_job` and `static.run_static_job` each run a single job;
  - `scrape.scrape_aws_data(logger, jobs_config, factory, metrics_per_query, cloudwatch_concurrency, tagging_api_concurrency, always_return_info_metrics=False)` runs every job for every role and region, concurrently. It returns the resource results and the metric results.

## The clients you supply

Each client needs only the methods below:

- **CloudWatch client**
  - `get_metric_data(batch, namespace, start_time, end_time)` returns a list of `MetricDataResult`, or `None`. The `id` of each result is the query id (`id_0`, `id_1`, …) of the request in the batch that it answers.
  - `list_metrics(namespace, metric_config, recently_active_only)` yields pages (lists) of `Metric`.
  - `get_metric_statistics(logger, dimensions, namespace, metric_config)` returns a list of `Datapoint`, or `None`. It is used by static jobs.
- **Tagging client**
  - `get_resources(job, region)` returns a list of `TaggedResource`. It may raise `cwexport.job.discovery.ExpectedToFindResourcesError`.
- **Factory**, for `scrape_aws_data`:
  - `get_account_client(region, role)` returns an object with `get_account()`;
  - `get_cloudwatch_client(region, role, concurrency)` returns a CloudWatch client;
  - `get_tagging_client(region, role, concurrency)` returns a tagging client.

When a client raises an error, the job logs it and drops what it could not fetch.

## Example

```python
from cwexport.getmetricdata.processor import new_default_processor
from cwexport.logger import new_logger
from cwexport.model import CloudwatchData, GetMetricDataProcessingParams

logger = new_logger("logfmt", False)
processor = new_default_processor(logger, my_cloudwatch_client, 500, 5)

requests = [
    CloudwatchData(
        metric_name="CPUUtilization",
        resource_name="global",
        namespace="AWS/EC2",
        get_metric_data_processing_params=GetMetricDataProcessingParams(
            statistic="Average", period=300, length=300, delay=0
        ),
    )
]
results = processor.run("AWS/EC2", 300, 0, None, requests)
```

`run` fills in `get_metric_data_result` on each request. It keeps only the requests that received a result.

## What it does not do

`cwexport` has no command and does not read a configuration file. It does not talk to AWS by itself: there is no built-in API client. It does not serve or format metrics for a monitoring system either. The jobs return `CloudwatchMetricResult` and `TaggedResourceResult` objects, and it is up to your code to export them.