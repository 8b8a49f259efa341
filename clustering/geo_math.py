"""Great-circle distances between coordinates."""

import math
import numpy as np
from typing import Sequence

from config import EARTH_RADIUS_METERS
from src.data.models import GeoPoint


def distance_meters(a: GeoPoint, b: GeoPoint) -> float:
    """Haversine distance in meters between two points"""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    # Rounding can push h just past 1 near antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(h))


def distances_from(point: GeoPoint, lats: np.ndarray, lngs: np.ndarray) -> np.ndarray:
    """Haversine distances in meters from one point to many coordinates"""
    lat1 = np.radians(point.lat)
    lat2 = np.radians(np.asarray(lats, dtype=float))
    dlat = lat2 - lat1
    dlng = np.radians(np.asarray(lngs, dtype=float) - point.lng)

    h = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * np.arcsin(np.sqrt(np.clip(h, 0.0, 1.0)))


def pairwise_distances(points: Sequence[GeoPoint]) -> np.ndarray:
    """Symmetric matrix of haversine distances in meters"""
    lats = np.array([p.lat for p in points], dtype=float)
    lngs = np.array([p.lng for p in points], dtype=float)

    matrix = np.zeros((len(points), len(points)))
    for i, point in enumerate(points):
        matrix[i] = distances_from(point, lats, lngs)

    # Force exact symmetry and a zero diagonal
    matrix = (matrix + matrix.T) / 2
    np.fill_diagonal(matrix, 0.0)
    return matrix
