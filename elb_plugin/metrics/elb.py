"""Metric and graph tables for a classic Elastic Load Balancer."""

from types import MappingProxyType
from typing import Dict, List, Mapping, Sequence

from .base import Dimension, GraphDefinition, MetricDefinition, SeriesDefinition, Statistic
from .topology import ZONE_DIMENSION

SERVICE_DIMENSION = Dimension(name="Service", value="ELB")

LATENCY_METRIC = "Latency"
HTTP_BACKEND_METRICS = (
    "HTTPCode_Backend_2XX",
    "HTTPCode_Backend_3XX",
    "HTTPCode_Backend_4XX",
    "HTTPCode_Backend_5XX",
)

# graph id -> (metric name, graph label); members are generated per zone
HOST_COUNT_GRAPHS = (
    ("elb.healthy_host_count", "HealthyHostCount", "ELB Healthy Host Count"),
    ("elb.unhealthy_host_count", "UnHealthyHostCount", "ELB Unhealthy Host Count"),
)

STATIC_GRAPHS: Mapping[str, GraphDefinition] = MappingProxyType(
    {
        "elb.latency": GraphDefinition(
            label="Whole ELB Latency",
            unit="float",
            metrics=(MetricDefinition(name=LATENCY_METRIC, label="Latency"),),
        ),
        "elb.http_backend": GraphDefinition(
            label="Whole ELB HTTP Backend Count",
            unit="integer",
            metrics=tuple(
                MetricDefinition(name=name, label=name.rsplit("_", 1)[-1], stacked=True)
                for name in HTTP_BACKEND_METRICS
            ),
        ),
    }
)


def zone_key(metric_name: str, zone: str) -> str:
    return f"{metric_name}_{zone}"


def series_for(zones: Sequence[str]) -> List[SeriesDefinition]:
    """Every series one polling cycle fetches, keyed as in the snapshot."""
    series: List[SeriesDefinition] = []
    for zone in zones:
        dimension = Dimension(name=ZONE_DIMENSION, value=zone)
        for _, metric_name, _ in HOST_COUNT_GRAPHS:
            series.append(
                SeriesDefinition(
                    key=zone_key(metric_name, zone),
                    dimension=dimension,
                    metric_name=metric_name,
                    statistic=Statistic.AVERAGE,
                )
            )

    series.append(
        SeriesDefinition(
            key=LATENCY_METRIC,
            dimension=SERVICE_DIMENSION,
            metric_name=LATENCY_METRIC,
            statistic=Statistic.AVERAGE,
        )
    )
    for metric_name in HTTP_BACKEND_METRICS:
        series.append(
            SeriesDefinition(
                key=metric_name,
                dimension=SERVICE_DIMENSION,
                metric_name=metric_name,
                statistic=Statistic.SUM,
            )
        )
    return series


def build_schema(zones: Sequence[str]) -> Dict[str, GraphDefinition]:
    """Graph definitions for ``zones``, as a new dict on every call."""
    generated = {
        graph_id: GraphDefinition(
            label=label,
            unit="integer",
            metrics=tuple(
                MetricDefinition(name=zone_key(metric_name, zone), label=zone, stacked=True)
                for zone in zones
            ),
        )
        for graph_id, metric_name, label in HOST_COUNT_GRAPHS
    }
    return {**STATIC_GRAPHS, **generated}
