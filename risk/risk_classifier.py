import logging
from collections import Counter
from typing import Dict, Iterable, List, Sequence

from config import CLUSTERING_CONFIG, RISK_CONFIG
from src.data.models import Cluster, IncidentEvent, RiskLevel, RiskZone, Severity

logger = logging.getLogger(__name__)


def dominant_type(events: Iterable[IncidentEvent]) -> str:
    """Most frequent incident type; ties go to the first one encountered"""
    counts = Counter(event.type.value for event in events)
    if not counts:
        return "other"
    # Counter keeps insertion order and max() returns the first maximum
    return max(counts, key=counts.get)


class RiskClassifier:
    def __init__(self, config: Dict = None):
        self.config = dict(RISK_CONFIG)
        if config:
            self.config.update(config)

    def risk_level(self, size: int, high_count: int) -> RiskLevel:
        """Discrete risk tier from cluster size and high-severity count"""
        if size >= self.config["high_min_size"] or high_count >= self.config["high_min_high_severity"]:
            return RiskLevel.HIGH
        if size >= self.config["medium_min_size"] or high_count >= self.config["medium_min_high_severity"]:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    def classify(self, cluster: Cluster, events: Sequence[IncidentEvent]) -> RiskZone:
        """Turn a frozen cluster and its member events into a risk zone"""
        high_count = sum(1 for event in events if event.severity is Severity.HIGH)

        # Distinct types in first-seen order
        issues = tuple(dict.fromkeys(event.type.value for event in events))

        return RiskZone(
            centroid=cluster.centroid,
            members=cluster.members,
            size=cluster.size,
            risk_level=self.risk_level(cluster.size, high_count),
            dominant_type=dominant_type(events),
            radius_meters=self.config["zone_radius_meters"],
            high_severity_count=high_count,
            predicted_issues=issues
        )

    def classify_all(self, groups: Iterable) -> List[RiskZone]:
        """Classify (cluster, events) pairs, keeping their order"""
        zones = [self.classify(cluster, events) for cluster, events in groups]

        high = sum(1 for zone in zones if zone.risk_level is RiskLevel.HIGH)
        logger.info(f"Classified {len(zones)} risk zones ({high} high)")
        return zones

    def top_zones(self, zones: Sequence[RiskZone], limit: int = None) -> List[RiskZone]:
        """Densest zones first, capped at limit"""
        if limit is None:
            limit = CLUSTERING_CONFIG["top_zones_limit"]
        ranked = sorted(zones, key=lambda zone: zone.size, reverse=True)
        return ranked[:limit]
