"""ClusterEngine: hierarchical clustering of observations via scipy."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from ..core.errors import InsufficientDataError, InvalidInputError
from ..core.table import ObservationTable
from ..utils.logging_utils import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class MergeNode:
    """A single merge in the clustering tree.

    Children follow scipy's numbering: ``0..n-1`` are observations
    (row indices), ``n + i`` is the cluster formed by merge ``i``.
    """

    left: int
    right: int
    # The merge height (linkage distance)
    height: float
    # Row indices of every observation under this merge
    members: tuple[int, ...]


@dataclass(frozen=True)
class ClusterResult:
    """Result of clustering the rows of an ObservationTable."""

    leaf_order: np.ndarray       # row indices in clustered order
    leaf_ids: np.ndarray         # observation IDs in clustered order
    linkage_matrix: np.ndarray   # scipy linkage matrix (n-1, 4)
    merges: tuple[MergeNode, ...]
    ids: np.ndarray              # observation IDs (in input order)
    metric: str = "euclidean"
    method: str = "ward"

    @property
    def n_leaves(self) -> int:
        return len(self.ids)

    def reorder(self, table: ObservationTable) -> ObservationTable:
        """Return ``table`` with its rows in leaf order."""
        if list(table.ids) != list(self.ids):
            raise ValueError(
                "Table IDs do not match the IDs this clustering was computed on."
            )
        return table.take(self.leaf_order)


class ClusterEngine:
    """Agglomerative clustering of table rows with a deterministic leaf order.

    Wraps scipy.cluster.hierarchy to produce:
    1. A leaf ordering for reordering the ObservationTable
    2. The merge tree for the dendrogram layout
    """

    VALID_METHODS = {
        "single", "complete", "average", "weighted",
        "centroid", "median", "ward",
    }
    VALID_METRICS = {
        "euclidean", "correlation", "cosine", "cityblock",
        "chebyshev", "braycurtis", "canberra",
    }
    # Linkages that are only defined on euclidean distances
    EUCLIDEAN_ONLY = {"ward", "centroid", "median"}

    @classmethod
    def cluster(
        cls,
        table: ObservationTable,
        numeric_columns: Sequence[str],
        metric: str = "euclidean",
        method: str = "ward",
        optimal_ordering: bool = False,
    ) -> ClusterResult:
        """Cluster the rows of ``table`` on ``numeric_columns``.

        Parameters
        ----------
        table : ObservationTable
            Observations to cluster. Rows are the items.
        numeric_columns : sequence of str
            Measurement columns used for distances. Must be numeric
            and finite.
        metric : str
            Distance metric (scipy ``pdist`` names).
        method : str
            Linkage method (scipy names).
        optimal_ordering : bool
            If True, use scipy's optimal leaf ordering.

        Returns
        -------
        ClusterResult
        """
        if method not in cls.VALID_METHODS:
            raise InvalidInputError(
                f"Unknown linkage method '{method}'. "
                f"Valid: {sorted(cls.VALID_METHODS)}",
                stage="cluster",
            )
        if metric not in cls.VALID_METRICS:
            raise InvalidInputError(
                f"Unknown distance metric '{metric}'. "
                f"Valid: {sorted(cls.VALID_METRICS)}",
                stage="cluster",
            )

        data = table.numeric_values(numeric_columns, stage="cluster")
        n = data.shape[0]
        if n < 2:
            raise InsufficientDataError(
                f"At least 2 rows are required to cluster, got {n}.",
                stage="cluster",
            )

        # Lazy import scipy (heavy, ~1-2s cold start)
        from scipy.cluster.hierarchy import leaves_list, linkage
        from scipy.spatial.distance import pdist

        if method in cls.EUCLIDEAN_ONLY and metric != "euclidean":
            logger.warning(
                "Linkage '%s' requires euclidean distances; ignoring metric '%s'",
                method, metric,
            )
            metric = "euclidean"

        dist = pdist(data, metric=metric)
        if not np.all(np.isfinite(dist)):
            # e.g. correlation distance on a constant row
            raise InvalidInputError(
                f"Metric '{metric}' produced undefined distances; "
                "check for constant or all-zero rows.",
                stage="cluster",
            )

        Z = linkage(dist, method=method, optimal_ordering=optimal_ordering)
        leaf_order = leaves_list(Z).astype(np.intp)
        ids = table.ids

        logger.info(
            "Clustered %d rows on %d columns (metric=%s, method=%s)",
            n, data.shape[1], metric, method,
        )

        return ClusterResult(
            leaf_order=leaf_order,
            leaf_ids=ids[leaf_order],
            linkage_matrix=Z,
            merges=tuple(cls._build_merges(Z, n)),
            ids=ids,
            metric=metric,
            method=method,
        )

    @staticmethod
    def _build_merges(Z: np.ndarray, n: int) -> list[MergeNode]:
        """Convert a scipy linkage matrix into MergeNode records."""
        # Nodes 0..n-1 are leaves, n..2n-2 are internal
        members: dict[int, tuple[int, ...]] = {i: (i,) for i in range(n)}

        merges = []
        for i in range(len(Z)):
            left = int(Z[i, 0])
            right = int(Z[i, 1])
            members[n + i] = members[left] + members[right]
            merges.append(MergeNode(
                left=left,
                right=right,
                height=float(Z[i, 2]),
                members=members[n + i],
            ))
        return merges


def cluster(
    table: ObservationTable,
    numeric_columns: Sequence[str],
    distance_metric: str = "euclidean",
    linkage_method: str = "ward",
) -> ClusterResult:
    """Functional form of :meth:`ClusterEngine.cluster`."""
    return ClusterEngine.cluster(
        table, numeric_columns, metric=distance_metric, method=linkage_method
    )
