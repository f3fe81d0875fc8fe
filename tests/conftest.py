"""Shared fixtures."""

import numpy as np
import pytest

from spikecluster.types import SpikeData
from tests.synthetic import FailingObserver, RecordingObserver, make_blobs


@pytest.fixture
def square_waveform():
    # spikes at the corners of a 10 × 10 square, one per column
    return np.array([[0.0, 0.0, 10.0, 10.0],
                     [0.0, 10.0, 0.0, 10.0]])


@pytest.fixture
def blobs():
    return make_blobs()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def failing_observer():
    return FailingObserver()


@pytest.fixture
def spike_data():
    wf_a, _ = make_blobs(n_per_unit=6, n_units=2, seed=1)
    wf_b, _ = make_blobs(n_per_unit=5, n_units=3, seed=2)
    return SpikeData(
        label=['elec1', 'elec2', 'sig3'],
        waveform=[wf_a, wf_b, np.zeros((8, 0))],
        timestamp=[np.arange(12) * 100, np.arange(15) * 50, np.zeros(0)],
    )
