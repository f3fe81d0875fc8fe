"""Data container for per-channel spike waveforms and their unit labels."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

logger = logging.getLogger("spikecluster")


@dataclass
class SpikeData:
    """Spikes of several channels.

    ``waveform[c]`` is a (n_samples × n_spikes) matrix for channel
    ``label[c]``, ``timestamp[c]`` holds one timestamp per spike and
    ``unit[c]`` receives one cluster label per spike after sorting.
    """
    label: List[str]
    waveform: List[np.ndarray]
    timestamp: List[np.ndarray] = field(default_factory=list)
    unit: List[np.ndarray] = field(default_factory=list)
    cfg: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        self.label = [str(lab) for lab in self.label]
        self.waveform = [_as_waveform(w) for w in self.waveform]
        if len(self.waveform) != len(self.label):
            raise ValueError(
                f"Got {len(self.waveform)} waveform matrices for {len(self.label)} channel labels"
            )
        if not self.timestamp:
            self.timestamp = [np.arange(w.shape[1]) for w in self.waveform]
        self.timestamp = [np.asarray(t).ravel() for t in self.timestamp]
        if len(self.timestamp) != len(self.label):
            raise ValueError(
                f"Got {len(self.timestamp)} timestamp vectors for {len(self.label)} channel labels"
            )
        for lab, w, t in zip(self.label, self.waveform, self.timestamp):
            if len(t) != w.shape[1]:
                raise ValueError(f"Channel {lab}: {w.shape[1]} waveforms but {len(t)} timestamps")
        self.unit = [np.asarray(u, dtype=np.int64).ravel() for u in self.unit]

    @property
    def n_channels(self) -> int:
        return len(self.label)

    def n_spikes(self, channel: int) -> int:
        return self.waveform[channel].shape[1]

    def select(self, labels: Sequence[str]) -> "SpikeData":
        """Return a copy restricted to ``labels`` (in the order of this structure)."""
        wanted = set(labels)
        idx = [i for i, lab in enumerate(self.label) if lab in wanted]
        return SpikeData(
            label=[self.label[i] for i in idx],
            waveform=[self.waveform[i] for i in idx],
            timestamp=[self.timestamp[i] for i in idx],
            unit=[self.unit[i] for i in idx] if len(self.unit) == self.n_channels else [],
            cfg=copy.deepcopy(self.cfg),
        )

    # ------------------------------------------------------------------
    # Convenience views
    # ------------------------------------------------------------------

    def to_dataframe(self) -> pd.DataFrame:
        """One row per spike with its channel, timestamp and unit (0 if unsorted)."""
        frames = []
        for c, lab in enumerate(self.label):
            n = len(self.timestamp[c])
            unit = self.unit[c] if c < len(self.unit) else np.zeros(n, dtype=np.int64)
            frames.append(pd.DataFrame({
                'channel': [lab] * n,
                'timestamp': self.timestamp[c],
                'unit': unit,
            }))
        if not frames:
            return pd.DataFrame(columns=['channel', 'timestamp', 'unit'])
        return pd.concat(frames, ignore_index=True)

    def summary(self) -> Dict[str, Dict[str, Any]]:
        """Spike count and units found per channel."""
        out: Dict[str, Dict[str, Any]] = {}
        for c, lab in enumerate(self.label):
            unit = self.unit[c] if c < len(self.unit) else np.zeros(0, dtype=np.int64)
            ids, counts = np.unique(unit, return_counts=True)
            out[lab] = {
                'n_spikes': self.n_spikes(c),
                'n_units': len(ids),
                'unit_sizes': dict(zip(ids.tolist(), counts.tolist())),
            }
        return out


def _as_waveform(w) -> np.ndarray:
    """Coerce to a 2-D float matrix; empty input becomes (0 × 0)."""
    w = np.asarray(w, dtype=np.float64)
    if w.size == 0 and w.ndim != 2:
        return np.zeros((0, 0))
    if w.ndim == 1:
        return w.reshape(-1, 1)
    if w.ndim != 2:
        raise ValueError(f"Waveform must be a 2-D (samples × spikes) array, got shape {w.shape}")
    return w
