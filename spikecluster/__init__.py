"""
spikecluster — assign spike waveforms to units, channel by channel.

Public API:
    SpikeSorter            per-channel clustering driver
    ClusterConfiguration   all tunable parameters
    SpikeData              per-channel waveforms, timestamps and unit labels
    distance_matrix        pairwise waveform distances
    ward_linkage           agglomerative clustering cut at K clusters
    assemble_labels        cluster sizes + ordering → label vector
"""

from spikecluster.config import (
    ClusteringMethod,
    DistanceMetric,
    LinkageCriterion,
    FeedbackMode,
    WardParameters,
    KMeansParameters,
    ClusterConfiguration,
)
from spikecluster.errors import (
    ClusteringError,
    UnsupportedMetric,
    UnsupportedLinkage,
    InvalidClusterCount,
    UnsupportedMethod,
)
from spikecluster.progress import (
    ProgressObserver,
    NullProgress,
    LoggingProgress,
    TqdmProgress,
    make_observer,
)
from spikecluster.distance import distance_matrix
from spikecluster.linkage import LinkageResult, ward_linkage
from spikecluster.clustering import assemble_labels, cluster_channel, kmeans_labels
from spikecluster.types import SpikeData
from spikecluster.io import load_spikes, save_spikes
from spikecluster.core import SpikeSorter, channel_selection

__all__ = [
    "SpikeSorter",
    "ClusterConfiguration",
    "WardParameters",
    "KMeansParameters",
    "SpikeData",
    "ClusteringMethod",
    "DistanceMetric",
    "LinkageCriterion",
    "FeedbackMode",
    "ClusteringError",
    "UnsupportedMetric",
    "UnsupportedLinkage",
    "InvalidClusterCount",
    "UnsupportedMethod",
    "ProgressObserver",
    "NullProgress",
    "LoggingProgress",
    "TqdmProgress",
    "make_observer",
    "distance_matrix",
    "LinkageResult",
    "ward_linkage",
    "assemble_labels",
    "cluster_channel",
    "kmeans_labels",
    "load_spikes",
    "save_spikes",
    "channel_selection",
]
