"""Progress reporting for the distance and linkage loops.

Observers receive ``on_progress(fraction, message)`` events and a final
``on_complete()``. They never influence the result: a failing observer is
logged and detached by :func:`guarded`.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Union, runtime_checkable

from tqdm.auto import tqdm

from spikecluster.config import FeedbackMode, parse_feedback

logger = logging.getLogger("spikecluster")


@runtime_checkable
class ProgressObserver(Protocol):
    def on_progress(self, fraction: float, message: str) -> None: ...

    def on_complete(self) -> None: ...


class NullProgress:
    """Observer that ignores every event."""

    def on_progress(self, fraction: float, message: str) -> None:
        pass

    def on_complete(self) -> None:
        pass


class LoggingProgress:
    """Log progress through the package logger, at most once per ``step``."""

    def __init__(self, desc: str = "", step: float = 0.1, level: int = logging.INFO):
        self.desc = desc
        self.step = step
        self.level = level
        self._next = 0.0

    def on_progress(self, fraction: float, message: str) -> None:
        if fraction + 1e-12 < self._next:
            return
        prefix = f"{self.desc}: " if self.desc else ""
        logger.log(self.level, f"{prefix}{message} ({fraction:.0%})")
        self._next = (int(fraction / self.step) + 1) * self.step

    def on_complete(self) -> None:
        prefix = f"{self.desc}: " if self.desc else ""
        logger.log(self.level, f"{prefix}done")
        self._next = 0.0


class TqdmProgress:
    """Drive a tqdm bar from fractional progress events."""

    _TOTAL = 1000

    def __init__(self, desc: str = "", leave: bool = False, **tqdm_kw):
        self.desc = desc
        self.leave = leave
        self.tqdm_kw = dict(smoothing=0, mininterval=1 / 24)
        self.tqdm_kw.update(tqdm_kw)
        self._bar: Optional[tqdm] = None

    def on_progress(self, fraction: float, message: str) -> None:
        if self._bar is None:
            self._bar = tqdm(total=self._TOTAL, desc=self.desc, leave=self.leave, **self.tqdm_kw)
        target = int(round(min(max(fraction, 0.0), 1.0) * self._TOTAL))
        if target > self._bar.n:
            self._bar.update(target - self._bar.n)
        self._bar.set_postfix_str(message, refresh=False)

    def on_complete(self) -> None:
        if self._bar is not None:
            self._bar.update(self._TOTAL - self._bar.n)
            self._bar.close()
            self._bar = None


class _Guarded:
    """Forward events to ``inner`` until it raises, then go quiet."""

    def __init__(self, inner: ProgressObserver):
        self.inner = inner
        self.failed = False

    def on_progress(self, fraction: float, message: str) -> None:
        if not self.failed:
            self._call("on_progress", fraction, message)

    def on_complete(self) -> None:
        if not self.failed:
            self._call("on_complete")

    def _call(self, name: str, *args) -> None:
        try:
            getattr(self.inner, name)(*args)
        except Exception as e:
            logger.warning(f"Progress observer {type(self.inner).__name__} failed, detaching it: {e}")
            self.failed = True


def guarded(observer: Optional[ProgressObserver]) -> ProgressObserver:
    """Return an observer that is safe to call: None becomes a no-op."""
    if observer is None:
        return NullProgress()
    if isinstance(observer, (NullProgress, _Guarded)):
        return observer
    return _Guarded(observer)


def make_observer(mode: Union[str, FeedbackMode, None], desc: str = "") -> ProgressObserver:
    """Build the observer matching a feedback setting ('no', 'text', 'textbar')."""
    mode = parse_feedback(mode)
    if mode == FeedbackMode.TEXT:
        return LoggingProgress(desc)
    if mode == FeedbackMode.TEXTBAR:
        return TqdmProgress(desc)
    return NullProgress()
