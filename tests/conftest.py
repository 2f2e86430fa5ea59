from datetime import datetime, timezone

import boto3
import pytest
from botocore.stub import Stubber

from elb_plugin.config import Settings
from elb_plugin.metrics.client import CloudWatchClient


@pytest.fixture
def boto_client():
    return boto3.client(
        "cloudwatch",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def stubber(boto_client):
    with Stubber(boto_client) as stub:
        yield stub
        stub.assert_no_pending_responses()


@pytest.fixture
def cloudwatch(boto_client, stubber):
    """CloudWatchClient backed by a stubbed boto3 client."""
    return CloudWatchClient(boto_client)


@pytest.fixture
def now():
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeCloudWatch:
    """Stands in for CloudWatchClient.fetch_latest.

    ``responses`` maps (metric name, dimension value) to a value, None for
    "no data", or an exception instance to raise.
    """

    def __init__(self, responses=None, default=None):
        self.responses = dict(responses or {})
        self.default = default
        self.calls = []

    def fetch_latest(self, dimension, metric_name, statistic, now=None):
        self.calls.append((dimension, metric_name, statistic))
        result = self.responses.get((metric_name, dimension.value), self.default)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def fake_cloudwatch():
    return FakeCloudWatch


@pytest.fixture(autouse=True)
def clean_plugin_env(monkeypatch):
    for name, info in Settings.model_fields.items():
        alias = info.validation_alias
        env_name = alias if isinstance(alias, str) else f"ELB_PLUGIN_{name.upper()}"
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.delenv("AWS_PROFILE", raising=False)
