"""Per-channel spike clustering: linkage path, k-means path and label assembly."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from spikecluster.config import (
    ClusterConfiguration,
    ClusteringMethod,
    KMeansParameters,
    WardParameters,
    _HAS_SKLEARN,
)
from spikecluster.distance import distance_matrix
from spikecluster.errors import UnsupportedMethod
from spikecluster.linkage import validate_cluster_count, ward_linkage
from spikecluster.progress import ProgressObserver, guarded

logger = logging.getLogger("spikecluster")


def cluster_channel(
    waveform: np.ndarray,
    config: ClusterConfiguration,
    progress: Optional[ProgressObserver] = None,
) -> np.ndarray:
    """Cluster the spikes of one channel. Returns a label (1..K) per spike.

    ``waveform`` is (n_samples × n_spikes). A channel without spikes yields an
    empty label vector.
    """
    waveform = np.asarray(waveform, dtype=np.float64)
    if waveform.ndim != 2:
        if waveform.size == 0:
            return np.zeros(0, dtype=np.int64)
        raise ValueError(f"Waveform must be a 2-D (samples × spikes) array, got shape {waveform.shape}")
    if waveform.shape[1] == 0:
        return np.zeros(0, dtype=np.int64)

    method = config.method
    if method == ClusteringMethod.WARD:
        return ward_labels(waveform, config.ward, progress)
    elif method == ClusteringMethod.KMEANS:
        return kmeans_labels(waveform, config.kmeans)
    raise UnsupportedMethod(f"Unsupported clustering method: {method}")


def ward_labels(
    waveform: np.ndarray,
    params: WardParameters,
    progress: Optional[ProgressObserver] = None,
) -> np.ndarray:
    """Distance matrix → hierarchical linkage → label vector."""
    validate_cluster_count(params.n_clusters, waveform.shape[1])
    progress = guarded(progress)

    dist = distance_matrix(waveform, params.distance, progress)
    if params.similarity_to_distance and params.distance.is_similarity:
        dist = 1.0 - dist
        np.fill_diagonal(dist, 0.0)

    result = ward_linkage(
        dist,
        params.n_clusters,
        linkage=params.linkage,
        absolute=params.absolute,
        progress=progress,
    )
    return assemble_labels(result.sizes, result.order)


def assemble_labels(sizes: np.ndarray, order: np.ndarray) -> np.ndarray:
    """Turn cluster sizes plus the grouped spike ordering into 1-based labels.

    Cluster ``c`` owns positions ``[offset, offset + sizes[c])`` of ``order``.
    """
    sizes = np.asarray(sizes, dtype=np.int64)
    order = np.asarray(order, dtype=np.int64)
    labels = np.zeros(len(order), dtype=np.int64)
    offset = 0
    for c, size in enumerate(sizes, start=1):
        labels[order[offset:offset + size]] = c
        offset += size
    return labels


def kmeans_labels(waveform: np.ndarray, params: KMeansParameters) -> np.ndarray:
    """Cluster spikes (columns of ``waveform``) with k-means. Labels are 1-based."""
    n_clusters = validate_cluster_count(params.n_clusters, waveform.shape[1])
    if not _HAS_SKLEARN:
        raise ImportError("scikit-learn is required for k-means clustering")

    from sklearn.cluster import KMeans
    labels = KMeans(
        n_clusters=n_clusters,
        n_init=params.n_init,
        max_iter=params.max_iter,
        random_state=params.random_state,
    ).fit_predict(waveform.T)
    return labels.astype(np.int64) + 1
