"""Enums and configuration dataclasses for spike clustering."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from spikecluster.errors import (
    UnsupportedLinkage,
    UnsupportedMethod,
    UnsupportedMetric,
)

logger = logging.getLogger("spikecluster")

# ---------------------------------------------------------------------------
# Optional dependency flags
# ---------------------------------------------------------------------------
_HAS_SKLEARN = False

try:
    import sklearn
    _HAS_SKLEARN = True
except ImportError:
    logger.warning("scikit-learn not available - k-means clustering will be unavailable")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ClusteringMethod(str, Enum):
    """Clustering method options."""
    WARD = 'ward'
    KMEANS = 'kmeans'


class DistanceMetric(str, Enum):
    """Pairwise waveform distance options for the linkage path."""
    L1 = 'L1'
    L2 = 'L2'
    CORRELATION = 'correlation'
    COSINE = 'cosine'

    @property
    def is_similarity(self) -> bool:
        """True for metrics where a high value means two waveforms are close."""
        return self in (DistanceMetric.CORRELATION, DistanceMetric.COSINE)


class LinkageCriterion(str, Enum):
    """Agglomerative linkage rules."""
    WARD = 'ward'
    SINGLE = 'single'
    COMPLETE = 'complete'
    AVERAGE = 'average'


class FeedbackMode(str, Enum):
    """How progress is reported while computing distances and linkage."""
    NO = 'no'
    TEXT = 'text'
    TEXTBAR = 'textbar'


E = TypeVar("E", bound=Enum)


def _coerce(value: Union[str, E], enum_cls: Type[E], error: Type[Exception]) -> E:
    """Resolve a string (case-insensitive) or enum member to ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        wanted = value.strip().lower()
        for member in enum_cls:
            if member.value.lower() == wanted:
                return member
    raise error(f"Unsupported {enum_cls.__name__}: {value!r}")


def parse_method(value: Union[str, ClusteringMethod]) -> ClusteringMethod:
    return _coerce(value, ClusteringMethod, UnsupportedMethod)


def parse_metric(value: Union[str, DistanceMetric]) -> DistanceMetric:
    return _coerce(value, DistanceMetric, UnsupportedMetric)


def parse_linkage(value: Union[str, LinkageCriterion]) -> LinkageCriterion:
    return _coerce(value, LinkageCriterion, UnsupportedLinkage)


def parse_feedback(value: Union[str, bool, None, FeedbackMode]) -> FeedbackMode:
    if value is None or value is False:
        return FeedbackMode.NO
    if value is True:
        return FeedbackMode.TEXTBAR
    return _coerce(value, FeedbackMode, ValueError)


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass
class WardParameters:
    """Options for the distance + hierarchical linkage path."""
    distance: DistanceMetric = DistanceMetric.L2
    linkage: LinkageCriterion = LinkageCriterion.WARD
    n_clusters: int = 10                      # Number of units to cut the dendrogram at
    absolute: bool = True                     # Use |d| when comparing merge costs
    similarity_to_distance: bool = False      # Turn correlation/cosine into 1 - similarity

    def __post_init__(self):
        self.distance = parse_metric(self.distance)
        self.linkage = parse_linkage(self.linkage)


@dataclass
class KMeansParameters:
    """Options passed on to sklearn's KMeans."""
    n_clusters: int = 10
    n_init: int = 10
    max_iter: int = 300
    random_state: Optional[int] = 0


@dataclass
class ClusterConfiguration:
    """Complete configuration for a spike clustering run."""
    method: ClusteringMethod = ClusteringMethod.WARD
    channel: Union[str, List[str]] = 'all'    # Labels or shell patterns, '-label' excludes
    feedback: FeedbackMode = FeedbackMode.TEXTBAR
    ward: WardParameters = field(default_factory=WardParameters)
    kmeans: KMeansParameters = field(default_factory=KMeansParameters)

    # Processing settings
    n_jobs: int = 1                           # Channels clustered concurrently

    # Optional file input/output
    inputfile: Optional[str] = None
    outputfile: Optional[str] = None

    def __post_init__(self):
        self.method = parse_method(self.method)
        self.feedback = parse_feedback(self.feedback)
        if isinstance(self.ward, dict):
            self.ward = WardParameters(**self.ward)
        if isinstance(self.kmeans, dict):
            self.kmeans = KMeansParameters(**self.kmeans)
        if self.n_jobs < 1:
            raise ValueError(f"n_jobs must be >= 1, got {self.n_jobs}")

    @property
    def n_clusters(self) -> int:
        """Target cluster count of the selected method."""
        if self.method == ClusteringMethod.KMEANS:
            return self.kmeans.n_clusters
        return self.ward.n_clusters

    def to_dict(self) -> Dict[str, Any]:
        """Plain-value view, enums replaced by their string values."""
        def plain(value):
            if isinstance(value, Enum):
                return value.value
            if isinstance(value, dict):
                return {k: plain(v) for k, v in value.items()}
            if isinstance(value, list):
                return [plain(v) for v in value]
            return value
        return plain(asdict(self))
