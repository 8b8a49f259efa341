"""
Spatial Clustering Module for Civic Hotspot Analytics

Groups geotagged incidents and pollution readings into clusters by online
distance-threshold merging over haversine distances.

Main Components:
- geo_math.py: Haversine distances (scalar, vectorised and pairwise)
- proximity.py: ProximityClusterer and its per-run state machine

Usage:
    from clustering import ProximityClusterer
    clusters = ProximityClusterer(threshold_meters=1000).fit(events)
"""

from .geo_math import (
    distance_meters,
    distances_from,
    pairwise_distances
)

from .proximity import (
    ClusteringRun,
    ProximityClusterer,
    RunState
)

__all__ = [
    # Distances
    "distance_meters",
    "distances_from",
    "pairwise_distances",

    # Clustering
    "ClusteringRun",
    "ProximityClusterer",
    "RunState"
]
