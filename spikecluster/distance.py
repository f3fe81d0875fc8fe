"""Pairwise distances between the spike waveforms of one channel."""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np

from spikecluster.config import DistanceMetric, parse_metric
from spikecluster.progress import ProgressObserver, guarded

logger = logging.getLogger("spikecluster")


def distance_matrix(
    waveform: np.ndarray,
    metric: Union[str, DistanceMetric] = DistanceMetric.L2,
    progress: Optional[ProgressObserver] = None,
) -> np.ndarray:
    """Compute the N×N distance matrix between the columns of a waveform matrix.

    Args:
        waveform: (n_samples × n_spikes) array, one spike per column.
        metric: 'L1', 'L2', 'correlation' or 'cosine'.
        progress: optional observer, notified once per row.

    Returns:
        Symmetric (n_spikes × n_spikes) float array with a zero diagonal.

    Note:
        'correlation' and 'cosine' are similarities (1 means identical shape),
        not dissimilarities. They are returned as such.

    Raises:
        UnsupportedMetric: if ``metric`` is not recognised (checked first).
        ValueError: if ``waveform`` is not 2-D.
    """
    metric = parse_metric(metric)
    waveform = np.asarray(waveform, dtype=np.float64)
    if waveform.ndim != 2:
        raise ValueError(f"Waveform must be a 2-D (samples × spikes) array, got shape {waveform.shape}")

    progress = guarded(progress)
    n_spikes = waveform.shape[1]
    dist = np.zeros((n_spikes, n_spikes))

    # rows of X are spikes
    X = _prepare(waveform.T, metric)

    for i in range(n_spikes):
        progress.on_progress(i / n_spikes, f"computing distance for spike {i + 1}/{n_spikes}")
        if i + 1 >= n_spikes:
            continue
        row = _row_distances(X[i], X[i + 1:], metric)
        dist[i, i + 1:] = row
        dist[i + 1:, i] = row

    progress.on_complete()
    return dist


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _prepare(X: np.ndarray, metric: DistanceMetric) -> np.ndarray:
    """Per-spike normalisation shared by all pairs (centring and/or unit norm)."""
    if metric == DistanceMetric.CORRELATION:
        X = X - X.mean(axis=1, keepdims=True)
        return _unit_rows(X, warn=False)
    if metric == DistanceMetric.COSINE:
        return _unit_rows(X, warn=True)
    return X


def _unit_rows(X: np.ndarray, warn: bool) -> np.ndarray:
    """Scale rows to unit Euclidean norm; zero rows stay zero."""
    norms = np.linalg.norm(X, axis=1, keepdims=True)
    zero = norms[:, 0] < 1e-12
    if warn and zero.any():
        logger.warning(f"{int(zero.sum())} waveform(s) with zero norm, their cosine similarity is set to 0")
    norms[zero] = 1.0
    return X / norms


def _row_distances(x: np.ndarray, Y: np.ndarray, metric: DistanceMetric) -> np.ndarray:
    """Distances from one spike ``x`` to every spike (row) in ``Y``."""
    if metric == DistanceMetric.L1:
        return np.sum(np.abs(Y - x), axis=1)
    if metric == DistanceMetric.L2:
        return np.sqrt(np.sum((Y - x) ** 2, axis=1))
    # correlation / cosine: rows already centred and/or unit-norm
    return Y @ x
