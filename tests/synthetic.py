"""Synthetic spike waveforms and test observers."""

import numpy as np


class RecordingObserver:
    """Progress observer that remembers every event."""

    def __init__(self):
        self.events = []
        self.completed = 0

    def on_progress(self, fraction, message):
        self.events.append((fraction, message))

    def on_complete(self):
        self.completed += 1


class FailingObserver:
    def __init__(self):
        self.calls = 0

    def on_progress(self, fraction, message):
        self.calls += 1
        raise RuntimeError("sink is broken")

    def on_complete(self):
        self.calls += 1
        raise RuntimeError("sink is broken")


def make_blobs(n_per_unit=10, n_samples=8, n_units=3, noise=0.05, seed=0):
    """Waveform matrix (samples × spikes) with well separated units.

    Returns (waveform, true_unit) where spikes of a unit are interleaved.
    """
    rng = np.random.default_rng(seed)
    t = np.linspace(0, 1, n_samples)
    templates = [(u + 1) * 5.0 * np.sin(2 * np.pi * (u + 1) * t) + 10.0 * u for u in range(n_units)]
    columns, truth = [], []
    for k in range(n_per_unit):
        for u in range(n_units):
            columns.append(templates[u] + noise * rng.standard_normal(n_samples))
            truth.append(u)
    return np.column_stack(columns), np.array(truth)


def same_partition(a, b):
    """True if two label vectors group the spikes identically."""
    def groups(labels):
        return {frozenset(np.flatnonzero(labels == v).tolist()) for v in np.unique(labels)}
    return groups(np.asarray(a)) == groups(np.asarray(b))


