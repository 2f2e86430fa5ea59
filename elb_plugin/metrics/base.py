from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class Dimension:
    """Name/value pair scoping a metric to a sub-resource."""

    name: str
    value: str

    def to_api(self) -> Dict[str, str]:
        return {"Name": self.name, "Value": self.value}


class Statistic(Enum):
    """Aggregation requested from CloudWatch.

    Each member carries its wire name and the ``DataPoint`` field it reads.
    """

    AVERAGE = ("Average", "average")
    SUM = ("Sum", "sum")

    def __init__(self, wire: str, field: str) -> None:
        self.wire = wire
        self.field = field


@dataclass(frozen=True)
class MetricQuery:
    dimension: Dimension
    metric_name: str
    statistic: Statistic
    window: timedelta = timedelta(seconds=120)  # at least one full period
    period: int = 60

    def time_range(self, now: datetime) -> Tuple[datetime, datetime]:
        return now - self.window, now


@dataclass(frozen=True)
class DataPoint:
    timestamp: datetime
    average: Optional[float] = None
    sum: Optional[float] = None

    @classmethod
    def from_api(cls, raw: Mapping[str, Any]) -> "DataPoint":
        return cls(
            timestamp=raw["Timestamp"],
            average=raw.get("Average"),
            sum=raw.get("Sum"),
        )

    def value_for(self, statistic: Statistic) -> Optional[float]:
        return getattr(self, statistic.field)


@dataclass(frozen=True)
class SeriesDefinition:
    """One snapshot key and the CloudWatch series that feeds it."""

    key: str
    dimension: Dimension
    metric_name: str
    statistic: Statistic


@dataclass(frozen=True)
class MetricDefinition:
    """A graph member as mackerel-agent renders it."""

    name: str
    label: str
    stacked: bool = False
    diff: bool = False


@dataclass(frozen=True)
class GraphDefinition:
    label: str
    unit: str  # float, integer, percentage, bytes, ...
    metrics: Tuple[MetricDefinition, ...] = field(default_factory=tuple)

    def member_names(self) -> Tuple[str, ...]:
        return tuple(metric.name for metric in self.metrics)
