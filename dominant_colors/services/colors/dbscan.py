"""
Density-Based Clustering (DBSCAN)

Weighted DBSCAN over points in a per-axis scaled Euclidean space. Each
point carries an integer repetition weight and counts as that many
co-located points when neighbors are counted, without being duplicated.

Neighborhood queries use scikit-learn's radius search over a spatial index;
cluster expansion is done here so that seeding order and border-point
attachment are fixed:

- clusters are seeded from core points in input order,
- expansion is breadth-first, visiting neighbors in ascending input order,
- a border point reachable from several clusters joins the one discovered first.
"""

from collections import deque
from typing import List, Optional, Sequence

import numpy as np
from loguru import logger
from sklearn.neighbors import NearestNeighbors

from .errors import InvalidConfiguration

NOISE = -1


class DBSCAN:
    """
    Density-based clusterer.

    Args:
        radius: Points whose scaled distance is <= radius are neighbors
        min_neighbors: A point is core if it has more than this many neighbors
        multipliers: Per-axis scale applied to points before distances are taken

    Raises:
        InvalidConfiguration: If radius <= 0, min_neighbors < 0 or a multiplier <= 0
    """

    def __init__(self, radius: float, min_neighbors: int, multipliers: Optional[Sequence[float]] = None):
        if not radius > 0:
            raise InvalidConfiguration(f"DBSCAN radius must be positive, got {radius}")
        if min_neighbors < 0:
            raise InvalidConfiguration(f"DBSCAN min_neighbors must be >= 0, got {min_neighbors}")
        if multipliers is not None:
            multipliers = np.asarray(multipliers, dtype=np.float64)
            if np.any(multipliers <= 0):
                raise InvalidConfiguration(f"DBSCAN multipliers must be positive, got {multipliers.tolist()}")
        self.radius = float(radius)
        self.min_neighbors = int(min_neighbors)
        self.multipliers = multipliers

    def _scale(self, points: np.ndarray) -> np.ndarray:
        points = np.asarray(points, dtype=np.float64)
        if points.ndim != 2:
            raise ValueError(f"Expected (N, D) points, got shape {points.shape}")
        if self.multipliers is None:
            return points
        if len(self.multipliers) != points.shape[1]:
            raise ValueError(
                f"Got {len(self.multipliers)} multipliers for {points.shape[1]}-dimensional points"
            )
        return points * self.multipliers

    def fit(self, points: np.ndarray, weights: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Label every point with its cluster id.

        Args:
            points: (N, D) coordinates
            weights: (N,) positive integer repetition weights, defaults to ones

        Returns:
            (N,) int array of cluster ids numbered in discovery order, NOISE (-1) for noise
        """
        scaled = self._scale(points)
        n = len(scaled)
        labels = np.full(n, NOISE, dtype=np.int64)
        if n == 0:
            return labels

        if weights is None:
            weights = np.ones(n, dtype=np.int64)
        weights = np.asarray(weights, dtype=np.int64)
        if len(weights) != n:
            raise ValueError(f"Got {len(weights)} weights for {n} points")

        index = NearestNeighbors(radius=self.radius).fit(scaled)
        neighborhoods = [np.sort(nbrs) for nbrs in
                         index.radius_neighbors(scaled, return_distance=False)]

        # Neighborhoods include the point itself; its other copies still count.
        neighbor_counts = np.array([weights[nbrs].sum() for nbrs in neighborhoods]) - 1
        is_core = neighbor_counts > self.min_neighbors

        cluster_id = 0
        for seed in range(n):
            if labels[seed] != NOISE or not is_core[seed]:
                continue
            labels[seed] = cluster_id
            queue = deque([seed])
            while queue:
                point = queue.popleft()
                for neighbor in neighborhoods[point]:
                    if labels[neighbor] != NOISE:
                        continue
                    labels[neighbor] = cluster_id
                    if is_core[neighbor]:
                        queue.append(neighbor)
            cluster_id += 1

        logger.debug(
            f"DBSCAN: {n} points, {int(is_core.sum())} core, {cluster_id} clusters, "
            f"{int((labels == NOISE).sum())} noise"
        )
        return labels

    def clusters(self, points: np.ndarray, weights: Optional[np.ndarray] = None) -> List[np.ndarray]:
        """Index arrays of each cluster's members, in discovery order; noise is excluded."""
        labels = self.fit(points, weights)
        if len(labels) == 0:
            return []
        return [np.flatnonzero(labels == cluster) for cluster in range(int(labels.max()) + 1)]
