from typing import List, Tuple

from ..errors import CloudWatchError, DiscoveryError
from ..log import get_logger
from .client import CloudWatchClient

ZONE_DIMENSION = "AvailabilityZone"
ZONE_DISCOVERY_METRIC = "HealthyHostCount"

logger = get_logger(__name__)


def discover_zones(client: CloudWatchClient) -> Tuple[str, ...]:
    """List the availability zones reporting host counts for the load balancer.

    Only series dimensioned by the zone alone are kept. Series with no
    dimension or with extra dimensions are aggregates and are skipped.
    """
    zones: List[str] = []
    try:
        for metric in client.list_metrics(ZONE_DISCOVERY_METRIC, ZONE_DIMENSION):
            dimensions = metric.get("Dimensions", [])
            if len(dimensions) != 1 or dimensions[0].get("Name") != ZONE_DIMENSION:
                logger.debug("Skipping non per-zone series: %s", dimensions)
                continue
            zones.append(dimensions[0]["Value"])
    except CloudWatchError as exc:
        raise DiscoveryError(f"Could not list availability zones: {exc}") from exc

    logger.info("Discovered %d availability zone(s): %s", len(zones), ", ".join(zones))
    return tuple(zones)
