"""Tests of progress observers."""

import io
import logging

from spikecluster.progress import (
    LoggingProgress,
    NullProgress,
    ProgressObserver,
    TqdmProgress,
    guarded,
    make_observer,
)
from tests.synthetic import FailingObserver, RecordingObserver


def test_make_observer():
    assert isinstance(make_observer('no'), NullProgress)
    assert isinstance(make_observer(None), NullProgress)
    assert isinstance(make_observer('text'), LoggingProgress)
    assert isinstance(make_observer('textbar', 'channel A'), TqdmProgress)


def test_observers_satisfy_protocol():
    for obs in (NullProgress(), LoggingProgress(), TqdmProgress(), RecordingObserver()):
        assert isinstance(obs, ProgressObserver)


def test_logging_progress_is_throttled(caplog):
    obs = LoggingProgress('channel A', step=0.25)
    with caplog.at_level(logging.INFO, logger="spikecluster"):
        for i in range(20):
            obs.on_progress(i / 20, f"step {i}")
        obs.on_complete()
    messages = [r.getMessage() for r in caplog.records]
    assert messages == [
        "channel A: step 0 (0%)",
        "channel A: step 5 (25%)",
        "channel A: step 10 (50%)",
        "channel A: step 15 (75%)",
        "channel A: done",
    ]


def test_tqdm_progress_reaches_total():
    out = io.StringIO()
    obs = TqdmProgress('channel A', file=out)
    obs.on_progress(0.0, "start")
    obs.on_progress(0.5, "half")
    bar = obs._bar
    assert bar.n == 500
    obs.on_complete()
    assert bar.n == bar.total
    assert obs._bar is None
    # a second run opens a new bar
    obs.on_progress(0.1, "again")
    assert obs._bar is not None
    obs.on_complete()


def test_guarded_none_is_noop():
    obs = guarded(None)
    obs.on_progress(0.5, "x")
    obs.on_complete()


def test_guarded_forwards_events():
    inner = RecordingObserver()
    obs = guarded(inner)
    obs.on_progress(0.5, "x")
    obs.on_complete()
    assert inner.events == [(0.5, "x")]
    assert inner.completed == 1
    assert guarded(obs) is obs


def test_guarded_detaches_failing_observer(caplog):
    inner = FailingObserver()
    obs = guarded(inner)
    with caplog.at_level(logging.WARNING, logger="spikecluster"):
        for i in range(5):
            obs.on_progress(i / 5, "x")
        obs.on_complete()
    assert inner.calls == 1
    assert "detaching" in caplog.text
