"""Exceptions raised while clustering spike waveforms."""

from __future__ import annotations


class ClusteringError(ValueError):
    """Base class for invalid clustering requests."""


class UnsupportedMetric(ClusteringError):
    """Distance metric is not one of L1, L2, correlation, cosine."""


class UnsupportedLinkage(ClusteringError):
    """Linkage criterion is not recognised."""


class InvalidClusterCount(ClusteringError):
    """Requested number of clusters is outside 1..n_spikes."""


class UnsupportedMethod(ClusteringError):
    """Clustering method is neither 'ward' nor 'kmeans'."""
