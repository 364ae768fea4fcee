import re

import pytest

from cwexport.model import SearchTag, Tag, TaggedResource


def _resource(tags):
    return TaggedResource(
        arn="aws::arn", namespace="AWS/Service", region="us-east-1", tags=tags
    )


@pytest.mark.parametrize(
    "resource_tags, filter_tags, expected",
    [
        ([Tag("k1", "v1")], [SearchTag("k1", re.compile("v1"))], True),
        ([Tag("k1", "v1")], [SearchTag("k2", re.compile("v2"))], False),
        ([Tag("k1", "v1"), Tag("k2", "v2")], [SearchTag("k1", re.compile("v1"))], True),
        (
            [Tag("k1", "v1")],
            [SearchTag("k1", re.compile("v1")), SearchTag("k2", re.compile("v2"))],
            False,
        ),
        ([Tag("k1", "v1")], [SearchTag("k2", re.compile("v1"))], False),
        ([Tag("k1", "v1")], [SearchTag("k1", re.compile("v2"))], False),
        ([], [SearchTag("k1", re.compile("v2"))], False),
        ([Tag("k1", "v1")], [], True),
        ([Tag("k1", "v1")], [SearchTag("k1", re.compile("v.*"))], True),
    ],
    ids=[
        "exactly matching tags",
        "unmatching tags",
        "resource has more tags",
        "filter has more tags",
        "unmatching tag key",
        "unmatching tag value",
        "resource without tags",
        "empty filter tags",
        "filter with value regex",
    ],
)
def test_filter_through_tags(resource_tags, filter_tags, expected):
    assert _resource(resource_tags).filter_through_tags(filter_tags) is expected


@pytest.mark.parametrize(
    "resource_tags, exported, expected",
    [
        ([Tag("k1", "v1")], [], []),
        ([Tag("k1", "v1")], ["k1"], [Tag("k1", "v1")]),
        ([Tag("k1", "v1")], ["k1", "k2"], [Tag("k1", "v1"), Tag("k2", "")]),
        ([], ["k1"], [Tag("k1", "")]),
    ],
    ids=[
        "empty exported tag",
        "single exported tag",
        "multiple exported tags",
        "resource without tags",
    ],
)
def test_metric_tags(resource_tags, exported, expected):
    assert _resource(resource_tags).metric_tags(exported) == expected


def test_metric_tags_uses_first_matching_resource_tag():
    res = _resource([Tag("k1", "first"), Tag("k1", "second")])
    assert res.metric_tags(["k1"]) == [Tag("k1", "first")]