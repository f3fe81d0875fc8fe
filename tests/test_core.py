"""Tests of the multi-channel SpikeSorter driver."""

import numpy as np
import pytest

from spikecluster.config import ClusterConfiguration
from spikecluster.core import SpikeSorter, channel_selection
from spikecluster.errors import InvalidClusterCount
from spikecluster.io import save_spikes
from spikecluster.types import SpikeData
from tests.synthetic import make_blobs, same_partition


def _config(**kwargs):
    kwargs.setdefault('feedback', 'no')
    kwargs.setdefault('ward', {'n_clusters': 2})
    return ClusterConfiguration(**kwargs)


def test_run_labels_every_channel(spike_data):
    results = SpikeSorter(_config()).run(spike_data)
    assert results.label == ['elec1', 'elec2', 'sig3']
    assert [len(u) for u in results.unit] == [12, 15, 0]
    for unit in results.unit[:2]:
        assert set(unit) == {1, 2}


def test_units_match_truth():
    waveform, truth = make_blobs(n_per_unit=7, n_units=3, seed=4)
    spikes = SpikeData(label=['A'], waveform=[waveform])
    results = SpikeSorter(_config(ward={'n_clusters': 3})).run(spikes)
    assert same_partition(results.unit[0], truth)


def test_input_is_not_modified(spike_data):
    SpikeSorter(_config()).run(spike_data)
    assert spike_data.unit == []
    assert spike_data.cfg is None


def test_provenance(spike_data):
    spike_data.cfg = {'method': 'previous run'}
    sorter = SpikeSorter(_config())
    results = sorter.run(spike_data)
    assert sorter.results is results
    cfg = results.cfg
    assert cfg['method'] == 'ward'
    assert cfg['version']['name'] == 'spikecluster'
    assert set(cfg['callinfo']) == {'proctime', 'calltime', 'user', 'python'}
    assert cfg['callinfo']['proctime'] >= 0
    assert cfg['previous'] == {'method': 'previous run'}


def test_channel_selection_in_run(spike_data):
    results = SpikeSorter(_config(channel='elec*')).run(spike_data)
    assert results.label == ['elec1', 'elec2']
    results = SpikeSorter(_config(channel=['all', '-elec2'])).run(spike_data)
    assert results.label == ['elec1', 'sig3']


def test_kmeans_run(spike_data):
    config = _config(method='kmeans', kmeans={'n_clusters': 2}, channel=['elec1'])
    results = SpikeSorter(config).run(spike_data)
    assert set(results.unit[0]) == {1, 2}


def test_parallel_matches_serial(spike_data):
    serial = SpikeSorter(_config()).run(spike_data)
    parallel = SpikeSorter(_config(n_jobs=3)).run(spike_data)
    for a, b in zip(serial.unit, parallel.unit):
        np.testing.assert_array_equal(a, b)


def test_errors_surface(spike_data):
    # elec1 has 12 spikes
    with pytest.raises(InvalidClusterCount):
        SpikeSorter(_config(ward={'n_clusters': 13})).run(spike_data)


def test_shared_observer(spike_data, observer):
    SpikeSorter(_config(channel='elec1')).run(spike_data, progress=observer)
    assert observer.completed == 2
    assert len(observer.events) == 12 + 10


def test_requires_data():
    with pytest.raises(ValueError):
        SpikeSorter(_config()).run()


def test_inputfile_and_outputfile(spike_data, tmp_path):
    infile = tmp_path / 'spikes.npz'
    outfile = tmp_path / 'sorted.npz'
    save_spikes(spike_data, infile)

    config = _config(inputfile=str(infile), outputfile=str(outfile))
    results = SpikeSorter(config).run()
    assert outfile.exists()
    assert [len(u) for u in results.unit] == [12, 15, 0]

    with pytest.raises(ValueError):
        SpikeSorter(config).run(spike_data)


@pytest.mark.parametrize('desired, expected', [
    ('all', ['A1', 'A2', 'B1', 'EOG']),
    ('A2', ['A2']),
    (['B1', 'A1'], ['A1', 'B1']),
    ('A*', ['A1', 'A2']),
    (['all', '-EOG'], ['A1', 'A2', 'B1']),
    (['-A*'], ['B1', 'EOG']),
    ('C1', []),
])
def test_channel_selection(desired, expected):
    assert channel_selection(desired, ['A1', 'A2', 'B1', 'EOG']) == expected
