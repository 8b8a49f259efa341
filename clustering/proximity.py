import logging
import numpy as np
from enum import Enum
from typing import Any, Callable, Iterable, List, Sequence, Tuple
from sklearn.metrics import silhouette_score

from config import CLUSTERING_CONFIG
from src.data.exceptions import ClusteringStateError
from src.data.models import Cluster, GeoPoint

from .geo_math import distances_from, pairwise_distances

logger = logging.getLogger(__name__)


class RunState(Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    FROZEN = "frozen"


class ClusteringRun:
    """One pass of online distance-threshold merging.

    Each point joins the nearest existing cluster when that cluster's centroid
    lies within ``threshold_meters``; otherwise it starts a new singleton
    cluster. Centroids are the arithmetic mean of member coordinates.
    """

    def __init__(self, threshold_meters: float):
        self.threshold_meters = threshold_meters
        self.state = RunState.EMPTY
        self._lat_sums: List[float] = []
        self._lng_sums: List[float] = []
        self._centroid_lats: List[float] = []
        self._centroid_lngs: List[float] = []
        self._members: List[List[Any]] = []

    def add(self, point: GeoPoint, payload: Any) -> int:
        """Assign a point to a cluster and return that cluster's index"""
        if self.state is RunState.FROZEN:
            raise ClusteringStateError("Cannot add points to a frozen clustering run")
        self.state = RunState.ACCUMULATING

        if self._members:
            distances = distances_from(point, self._centroid_lats, self._centroid_lngs)
            nearest = int(np.argmin(distances))
            if distances[nearest] <= self.threshold_meters:
                self._join(nearest, point, payload)
                return nearest

        self._lat_sums.append(point.lat)
        self._lng_sums.append(point.lng)
        self._centroid_lats.append(point.lat)
        self._centroid_lngs.append(point.lng)
        self._members.append([payload])
        return len(self._members) - 1

    def _join(self, index: int, point: GeoPoint, payload: Any):
        members = self._members[index]
        members.append(payload)
        self._lat_sums[index] += point.lat
        self._lng_sums[index] += point.lng
        self._centroid_lats[index] = self._lat_sums[index] / len(members)
        self._centroid_lngs[index] = self._lng_sums[index] / len(members)

    def freeze(self, id_of: Callable[[Any], str]) -> List[Tuple[Cluster, List[Any]]]:
        """Finish the run; clusters come back densest first"""
        self.state = RunState.FROZEN

        groups = []
        for lat, lng, members in zip(self._centroid_lats, self._centroid_lngs, self._members):
            cluster = Cluster(
                centroid=GeoPoint(lat, lng),
                members=tuple(id_of(m) for m in members),
                size=len(members)
            )
            groups.append((cluster, list(members)))

        # sorted() is stable, so equal-size clusters keep creation order
        return sorted(groups, key=lambda group: group[0].size, reverse=True)


def _default_location(item: Any) -> GeoPoint:
    return item.location


def _default_id(item: Any) -> str:
    return item.id


class ProximityClusterer:
    def __init__(self, threshold_meters: float = None,
                 location_of: Callable[[Any], GeoPoint] = None,
                 id_of: Callable[[Any], str] = None):
        if threshold_meters is None:
            threshold_meters = CLUSTERING_CONFIG["incident_threshold_meters"]
        if threshold_meters < 0:
            raise ValueError("threshold_meters must be non-negative")

        self.threshold_meters = float(threshold_meters)
        self.location_of = location_of or _default_location
        self.id_of = id_of or _default_id

    def fit_groups(self, items: Iterable[Any]) -> List[Tuple[Cluster, List[Any]]]:
        """Cluster items and keep each cluster's member payloads"""
        run = ClusteringRun(self.threshold_meters)
        for item in items:
            run.add(self.location_of(item), item)

        groups = run.freeze(self.id_of)
        logger.debug(f"Clustered into {len(groups)} clusters at {self.threshold_meters:.0f} m")
        return groups

    def fit(self, items: Iterable[Any]) -> List[Cluster]:
        """Cluster items into frozen clusters, densest first"""
        return [cluster for cluster, _ in self.fit_groups(items)]

    def cluster_quality(self, groups: Sequence[Tuple[Cluster, List[Any]]]) -> float:
        """Silhouette score over haversine distances, 0.0 when undefined"""
        points = []
        labels = []
        for label, (_, members) in enumerate(groups):
            for member in members:
                points.append(self.location_of(member))
                labels.append(label)

        n_labels = len(groups)
        if len(points) < 3 or not 2 <= n_labels <= len(points) - 1:
            return 0.0

        distance_matrix = pairwise_distances(points)
        return float(silhouette_score(distance_matrix, labels, metric="precomputed"))
