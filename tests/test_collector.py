import asyncio

from elb_plugin.errors import CloudWatchError, ConfigurationError
from elb_plugin.metrics.base import Statistic
from elb_plugin.services.collector import MetricCollector, build_snapshot

ZONES = ("us-east-1a", "us-east-1b")


def _collect(client, zones=ZONES, max_concurrency=4):
    return asyncio.run(MetricCollector(client, max_concurrency).collect_once(zones))


def test_missing_zone_data_is_omitted(fake_cloudwatch):
    client = fake_cloudwatch({("HealthyHostCount", "us-east-1a"): 3.0})

    snapshot = _collect(client)

    assert snapshot["HealthyHostCount_us-east-1a"] == 3.0
    assert "HealthyHostCount_us-east-1b" not in snapshot


def test_full_snapshot_keys(fake_cloudwatch):
    client = fake_cloudwatch(default=1.0)

    snapshot = _collect(client)

    assert set(snapshot) == {
        "HealthyHostCount_us-east-1a",
        "UnHealthyHostCount_us-east-1a",
        "HealthyHostCount_us-east-1b",
        "UnHealthyHostCount_us-east-1b",
        "Latency",
        "HTTPCode_Backend_2XX",
        "HTTPCode_Backend_3XX",
        "HTTPCode_Backend_4XX",
        "HTTPCode_Backend_5XX",
    }


def test_zero_is_kept(fake_cloudwatch):
    client = fake_cloudwatch({("HTTPCode_Backend_4XX", "ELB"): 0.0})

    snapshot = _collect(client)

    assert snapshot == {"HTTPCode_Backend_4XX": 0.0}


def test_fetch_errors_are_absorbed(fake_cloudwatch):
    client = fake_cloudwatch(
        {
            ("Latency", "ELB"): CloudWatchError("GetMetricStatistics", "throttled"),
            ("HTTPCode_Backend_5XX", "ELB"): 2.0,
        }
    )

    snapshot = _collect(client)

    assert snapshot == {"HTTPCode_Backend_5XX": 2.0}


def test_credential_errors_on_one_series_are_absorbed(fake_cloudwatch):
    client = fake_cloudwatch(
        {
            ("Latency", "ELB"): ConfigurationError("GetMetricStatistics: AccessDenied"),
            ("HealthyHostCount", "us-east-1a"): ConfigurationError("ExpiredToken"),
            ("HTTPCode_Backend_5XX", "ELB"): 2.0,
        }
    )

    snapshot = _collect(client, zones=("us-east-1a",))

    assert snapshot == {"HTTPCode_Backend_5XX": 2.0}


def test_statistics_requested(fake_cloudwatch):
    client = fake_cloudwatch()

    _collect(client, zones=("us-east-1a",))

    requested = {(metric, statistic) for _, metric, statistic in client.calls}
    assert ("HealthyHostCount", Statistic.AVERAGE) in requested
    assert ("UnHealthyHostCount", Statistic.AVERAGE) in requested
    assert ("Latency", Statistic.AVERAGE) in requested
    assert ("HTTPCode_Backend_2XX", Statistic.SUM) in requested
    assert len(client.calls) == 7


def test_sequential_fetch_gives_same_result(fake_cloudwatch):
    responses = {
        ("HealthyHostCount", "us-east-1a"): 2.0,
        ("UnHealthyHostCount", "us-east-1b"): 1.0,
        ("Latency", "ELB"): 0.25,
    }

    concurrent = _collect(fake_cloudwatch(responses), max_concurrency=8)
    sequential = _collect(fake_cloudwatch(responses), max_concurrency=1)

    assert concurrent == sequential


def test_build_snapshot(fake_cloudwatch):
    client = fake_cloudwatch({("Latency", "ELB"): 0.5})

    assert build_snapshot(client, ("us-east-1a",)) == {"Latency": 0.5}
