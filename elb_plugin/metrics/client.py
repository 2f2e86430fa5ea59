"""CloudWatch access for the classic ELB namespace."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Iterator, List, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from ..errors import CloudWatchError, ConfigurationError
from .base import DataPoint, Dimension, MetricQuery, Statistic

NAMESPACE = "AWS/ELB"

AUTH_ERROR_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "AuthFailure",
        "ExpiredToken",
        "InvalidClientTokenId",
        "SignatureDoesNotMatch",
        "UnrecognizedClientException",
    }
)


def latest_value(datapoints: Iterable[DataPoint], statistic: Statistic) -> Optional[float]:
    """Value of ``statistic`` at the newest data point, or None when empty."""
    newest: Optional[DataPoint] = None
    for point in datapoints:
        if newest is None or point.timestamp > newest.timestamp:
            newest = point
    if newest is None:
        return None
    return newest.value_for(statistic)


@contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (NoCredentialsError, PartialCredentialsError) as exc:
        raise ConfigurationError(str(exc)) from exc
    except ClientError as exc:
        code = exc.response.get("Error", {}).get("Code", "")
        if code in AUTH_ERROR_CODES:
            raise ConfigurationError(f"{operation}: {exc}") from exc
        raise CloudWatchError(operation, str(exc)) from exc
    except BotoCoreError as exc:
        raise CloudWatchError(operation, str(exc)) from exc


class CloudWatchClient:
    """Thin wrapper over the boto3 CloudWatch client.

    Only botocore types are caught here; callers see ``CloudWatchError`` for
    a failed call and ``ConfigurationError`` for credential problems.
    """

    def __init__(self, client: Any, namespace: str = NAMESPACE) -> None:
        self._client = client
        self.namespace = namespace

    @classmethod
    def create(
        cls,
        region: str,
        access_key_id: str = "",
        secret_access_key: str = "",
        connect_timeout: float = 5.0,
        read_timeout: float = 10.0,
    ) -> "CloudWatchClient":
        kwargs: Dict[str, Any] = {
            "region_name": region,
            "config": Config(connect_timeout=connect_timeout, read_timeout=read_timeout),
        }
        if access_key_id:
            kwargs["aws_access_key_id"] = access_key_id
            kwargs["aws_secret_access_key"] = secret_access_key
        try:
            client = boto3.client("cloudwatch", **kwargs)
        except BotoCoreError as exc:
            raise ConfigurationError(str(exc)) from exc
        return cls(client)

    def list_metrics(self, metric_name: str, dimension_name: str) -> Iterator[Dict[str, Any]]:
        """Yield catalog entries for ``metric_name`` having ``dimension_name``."""
        paginator = self._client.get_paginator("list_metrics")
        with _translate_errors("ListMetrics"):
            pages = paginator.paginate(
                Namespace=self.namespace,
                MetricName=metric_name,
                Dimensions=[{"Name": dimension_name}],
            )
            for page in pages:
                yield from page.get("Metrics", [])

    def get_datapoints(self, query: MetricQuery, now: Optional[datetime] = None) -> List[DataPoint]:
        start, end = query.time_range(now or datetime.now(timezone.utc))
        with _translate_errors("GetMetricStatistics"):
            response = self._client.get_metric_statistics(
                Namespace=self.namespace,
                MetricName=query.metric_name,
                Dimensions=[query.dimension.to_api()],
                StartTime=start,
                EndTime=end,
                Period=query.period,
                Statistics=[query.statistic.wire],
            )
        return [DataPoint.from_api(raw) for raw in response.get("Datapoints", [])]

    def fetch_latest(
        self,
        dimension: Dimension,
        metric_name: str,
        statistic: Statistic,
        now: Optional[datetime] = None,
    ) -> Optional[float]:
        """Latest value of one series over the last two minutes.

        Returns None when CloudWatch has no data point in the window.
        """
        query = MetricQuery(dimension, metric_name, statistic)
        return latest_value(self.get_datapoints(query, now), statistic)
