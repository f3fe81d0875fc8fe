"""SpikeSorter: assigns the spikes of every selected channel to units."""

from __future__ import annotations

import fnmatch
import getpass
import logging
import platform
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version
from typing import List, Optional, Sequence, Union

import numpy as np

from spikecluster.clustering import cluster_channel
from spikecluster.config import ClusterConfiguration
from spikecluster.io import load_spikes, save_spikes
from spikecluster.progress import ProgressObserver, guarded, make_observer
from spikecluster.types import SpikeData

logger = logging.getLogger("spikecluster")


class SpikeSorter:
    """Runs the clustering over all channels:
    load (optional) → select channels → cluster each channel → record provenance → save (optional).
    """

    def __init__(self, config: Optional[ClusterConfiguration] = None):
        """Initialize with a ClusterConfiguration (uses defaults if None)."""
        self.config = config or ClusterConfiguration()
        self.results: Optional[SpikeData] = None

    def run(
        self,
        spikes: Optional[SpikeData] = None,
        progress: Optional[ProgressObserver] = None,
    ) -> SpikeData:
        """Cluster every selected channel. Returns a new SpikeData with ``unit`` filled.

        Args:
            spikes: input structure; omit it when ``config.inputfile`` is set.
            progress: observer for all channels. By default one is built per
                channel from ``config.feedback``.
        """
        start = time.time()
        calltime = datetime.now()

        # Step 1: Input
        if self.config.inputfile:
            if spikes is not None:
                raise ValueError("config.inputfile should not be used in conjunction with giving input data")
            spikes = load_spikes(self.config.inputfile)
        elif spikes is None:
            raise ValueError("No spike data given and no config.inputfile set")

        # Step 2: Channel selection
        selected = channel_selection(self.config.channel, spikes.label)
        data = spikes.select(selected)
        logger.info(f"Selected {data.n_channels} of {spikes.n_channels} channels")

        # Step 3: Cluster each channel
        def sort_one(c: int) -> np.ndarray:
            label = data.label[c]
            logger.info(f"sorting {data.n_spikes(c)} spikes in channel {label}")
            if data.n_spikes(c) == 0:
                logger.warning(f"Channel {label} has no spikes")
            observer = progress if progress is not None else make_observer(self.config.feedback, f"channel {label}")
            return cluster_channel(data.waveform[c], self.config, guarded(observer))

        if self.config.n_jobs > 1 and data.n_channels > 1:
            with ThreadPoolExecutor(max_workers=self.config.n_jobs) as pool:
                data.unit = list(pool.map(sort_one, range(data.n_channels)))
        else:
            data.unit = [sort_one(c) for c in range(data.n_channels)]

        proctime = time.time() - start

        # Step 4: Provenance
        cfg = self.config.to_dict()
        cfg['version'] = {'name': 'spikecluster', 'id': _package_version()}
        cfg['callinfo'] = {
            'proctime': proctime,
            'calltime': calltime.isoformat(),
            'user': _username(),
            'python': platform.python_version(),
        }
        if spikes.cfg is not None:
            cfg['previous'] = spikes.cfg
        data.cfg = cfg
        logger.info(f"clustering took {proctime:.2f} seconds")

        # Step 5: Output
        if self.config.outputfile:
            save_spikes(data, self.config.outputfile)

        self.results = data
        return data


def channel_selection(desired: Union[str, Sequence[str]], labels: Sequence[str]) -> List[str]:
    """Resolve a channel selection against the available labels.

    ``desired`` is 'all', a label, or a list of labels. Shell-style wildcards
    are allowed and an entry starting with '-' removes matching channels.
    The result keeps the order of ``labels``.
    """
    if isinstance(desired, str):
        desired = [desired]
    desired = list(desired)

    include = [d for d in desired if not d.startswith('-')]
    exclude = [d[1:] for d in desired if d.startswith('-')]
    if not include:
        include = ['all']

    def matches(label: str, patterns: List[str]) -> bool:
        return any(p == 'all' or fnmatch.fnmatchcase(label, p) for p in patterns)

    selected = [lab for lab in labels if matches(lab, include) and not matches(lab, exclude)]
    unknown = [p for p in include if p != 'all' and not any(fnmatch.fnmatchcase(lab, p) for lab in labels)]
    if unknown:
        logger.warning(f"Channel selection did not match any channel: {unknown}")
    return selected


def _package_version() -> str:
    try:
        return version("spikecluster")
    except PackageNotFoundError:
        return "unknown"


def _username() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "unknown"
