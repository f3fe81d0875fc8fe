"""Agglomerative hierarchical clustering over a precomputed distance matrix.

Clusters are merged bottom-up with Lance-Williams updates until the requested
number of clusters remains. The merged cluster keeps the lower slot index, so
slot ``s`` always contains spike ``s``.

Ward linkage works on squared dissimilarities with their sign kept
(``sign(d) * d**2``). For non-negative input this is the usual Ward update on
Euclidean distances; negative entries (signed similarities with
``absolute=False``) keep ranking as the closest pairs.

Ties: the pair ``(i, j)``, ``i < j``, that comes first in row-major order wins.

Output order: final clusters sorted by the merge step that last formed them
(a spike that was never merged counts as step 0), then by their lowest spike
index. Members inside a cluster are in ascending spike order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

import numpy as np

from spikecluster.config import LinkageCriterion, parse_linkage
from spikecluster.errors import InvalidClusterCount
from spikecluster.progress import ProgressObserver, guarded

logger = logging.getLogger("spikecluster")


@dataclass
class LinkageResult:
    """Dendrogram cut at K clusters."""
    sizes: np.ndarray    # (K,) spikes per cluster, in output order
    order: np.ndarray    # (N,) spike indices, clusters contiguous in ``sizes`` order
    merges: np.ndarray   # (N-K, 4) rows of (slot_i, slot_j, height, new_size)

    @property
    def n_clusters(self) -> int:
        return len(self.sizes)

    def clusters(self) -> List[np.ndarray]:
        """Member spike indices of each cluster, in output order."""
        return np.split(self.order, np.cumsum(self.sizes)[:-1])


def validate_cluster_count(n_clusters, n_spikes: int) -> int:
    """Check ``1 <= n_clusters <= n_spikes`` and return it as an int."""
    if isinstance(n_clusters, bool) or not isinstance(n_clusters, (int, np.integer)):
        raise InvalidClusterCount(f"Number of clusters must be an integer, got {n_clusters!r}")
    if not 1 <= n_clusters <= n_spikes:
        raise InvalidClusterCount(
            f"Number of clusters must be between 1 and the number of spikes ({n_spikes}), got {n_clusters}"
        )
    return int(n_clusters)


def ward_linkage(
    dist: np.ndarray,
    n_clusters: int,
    linkage: Union[str, LinkageCriterion] = LinkageCriterion.WARD,
    absolute: bool = True,
    progress: Optional[ProgressObserver] = None,
) -> LinkageResult:
    """Cluster N items from their N×N distance matrix into ``n_clusters`` groups.

    Args:
        dist: symmetric (N × N) distance matrix.
        n_clusters: number of clusters K to stop at, 1 <= K <= N.
        linkage: 'ward', 'single', 'complete' or 'average'.
        absolute: apply ``abs`` to the distances before any comparison.
        progress: optional observer, notified once per merge.

    Returns:
        LinkageResult with cluster sizes, the grouped spike ordering and the
        merge history.

    Raises:
        UnsupportedLinkage, InvalidClusterCount, ValueError (bad matrix).
    """
    linkage = parse_linkage(linkage)
    D = np.array(dist, dtype=np.float64)
    if D.ndim != 2 or D.shape[0] != D.shape[1]:
        raise ValueError(f"Distance matrix must be square, got shape {D.shape}")
    n = D.shape[0]
    n_clusters = validate_cluster_count(n_clusters, n)
    if not np.all(np.isfinite(D)):
        raise ValueError("Distance matrix contains NaN or infinite values")

    if absolute:
        D = np.abs(D)
    if linkage == LinkageCriterion.WARD:
        D = np.sign(D) * D ** 2

    progress = guarded(progress)
    n_merges = n - n_clusters

    active = np.ones(n, dtype=bool)
    sizes = np.ones(n, dtype=np.int64)
    formed = np.zeros(n, dtype=np.int64)
    members: List[List[int]] = [[s] for s in range(n)]
    merges = np.zeros((n_merges, 4))

    # W holds candidate pairs (upper triangle of active slots), inf elsewhere
    W = np.triu(D, k=1)
    W[np.tril_indices(n)] = np.inf
    row_arg = np.argmin(W, axis=1)
    row_min = W[np.arange(n), row_arg]

    for step in range(n_merges):
        progress.on_progress(step / max(n_merges, 1), f"merging cluster {step + 1}/{n_merges}")

        i = int(np.argmin(row_min))
        j = int(row_arg[i])
        height = D[i, j]
        n_i, n_j = sizes[i], sizes[j]

        active[j] = False
        others = np.flatnonzero(active)
        others = others[others != i]

        new = _lance_williams(linkage, D[i, others], D[j, others], height, n_i, n_j, sizes[others])
        D[i, others] = new
        D[others, i] = new

        W[j, :] = np.inf
        W[:, j] = np.inf
        below = others < i
        W[others[below], i] = new[below]
        W[i, others[~below]] = new[~below]

        sizes[i] = n_i + n_j
        sizes[j] = 0
        formed[i] = step + 1
        members[i].extend(members[j])
        members[j] = []
        merges[step] = (i, j, _height(linkage, height), sizes[i])
        logger.debug(f"merge {step + 1}/{n_merges}: slots {i} + {j} at {merges[step, 2]:.4g} -> size {sizes[i]}")

        _refresh_rows(W, row_min, row_arg, active, i, j, others[below])

    progress.on_complete()

    slots = np.flatnonzero(active)
    slots = sorted(slots, key=lambda s: (formed[s], s))
    order = np.concatenate([np.sort(members[s]) for s in slots]).astype(np.int64)
    return LinkageResult(
        sizes=np.array([sizes[s] for s in slots], dtype=np.int64),
        order=order,
        merges=merges,
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _lance_williams(
    linkage: LinkageCriterion,
    d_ik: np.ndarray,
    d_jk: np.ndarray,
    d_ij: float,
    n_i: int,
    n_j: int,
    n_k: np.ndarray,
) -> np.ndarray:
    """Distance from the merged cluster (i ∪ j) to every remaining cluster k."""
    if linkage == LinkageCriterion.WARD:
        return ((n_i + n_k) * d_ik + (n_j + n_k) * d_jk - n_k * d_ij) / (n_i + n_j + n_k)
    if linkage == LinkageCriterion.SINGLE:
        return np.minimum(d_ik, d_jk)
    if linkage == LinkageCriterion.COMPLETE:
        return np.maximum(d_ik, d_jk)
    return (n_i * d_ik + n_j * d_jk) / (n_i + n_j)


def _height(linkage: LinkageCriterion, value: float) -> float:
    """Merge height in the units of the input distances."""
    if linkage == LinkageCriterion.WARD:
        return float(np.sign(value) * np.sqrt(abs(value)))
    return float(value)


def _refresh_rows(
    W: np.ndarray,
    row_min: np.ndarray,
    row_arg: np.ndarray,
    active: np.ndarray,
    i: int,
    j: int,
    rows_before_i: np.ndarray,
) -> None:
    """Keep each row's first minimum up to date after slots i and j merged."""
    row_min[j] = np.inf

    # rows whose nearest neighbour was i or j must be rescanned
    stale = np.flatnonzero(active & ((row_arg == i) | (row_arg == j)))
    stale = np.union1d(stale, [i])
    for k in stale:
        row_arg[k] = np.argmin(W[k])
        row_min[k] = W[k, row_arg[k]]

    # other rows above i only gained a new value in column i
    rest = np.setdiff1d(rows_before_i, stale, assume_unique=True)
    if len(rest):
        vals = W[rest, i]
        better = (vals < row_min[rest]) | ((vals == row_min[rest]) & (i < row_arg[rest]))
        row_min[rest[better]] = vals[better]
        row_arg[rest[better]] = i
