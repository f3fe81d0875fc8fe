"""Loading and saving SpikeData structures (.npz and MATLAB .mat files)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
from scipy.io import loadmat, savemat

from spikecluster.types import SpikeData

logger = logging.getLogger("spikecluster")

# MATLAB files hold a single struct under this variable name
MAT_VARIABLE = 'data'


def load_spikes(path: Union[str, Path]) -> SpikeData:
    """Read a SpikeData structure from a .npz or .mat file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Spike file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.npz':
        spikes = _load_npz(path)
    elif suffix == '.mat':
        spikes = _load_mat(path)
    else:
        raise ValueError(f"Unsupported spike file format: {suffix or path.name}")

    logger.info(f"Loaded {spikes.n_channels} channels from {path}")
    return spikes


def save_spikes(spikes: SpikeData, path: Union[str, Path]) -> None:
    """Write a SpikeData structure to a .npz or .mat file."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == '.npz':
        _save_npz(spikes, path)
    elif suffix == '.mat':
        _save_mat(spikes, path)
    else:
        raise ValueError(f"Unsupported spike file format: {suffix or path.name}")
    logger.info(f"Saved {spikes.n_channels} channels to {path}")


# ---------------------------------------------------------------------------
# NumPy archive
# ---------------------------------------------------------------------------

def _save_npz(spikes: SpikeData, path: Path) -> None:
    arrays: Dict[str, Any] = {
        'label': np.array(spikes.label, dtype=str),
        'cfg': np.array(_cfg_to_json(spikes.cfg)),
        'has_unit': np.array(len(spikes.unit) == spikes.n_channels and spikes.n_channels > 0),
    }
    for c in range(spikes.n_channels):
        arrays[f'waveform_{c}'] = spikes.waveform[c]
        arrays[f'timestamp_{c}'] = spikes.timestamp[c]
        if arrays['has_unit']:
            arrays[f'unit_{c}'] = spikes.unit[c]
    np.savez(path, **arrays)


def _load_npz(path: Path) -> SpikeData:
    with np.load(path, allow_pickle=False) as f:
        labels = [str(lab) for lab in f['label']]
        n = len(labels)
        has_unit = bool(f['has_unit']) if 'has_unit' in f.files else False
        return SpikeData(
            label=labels,
            waveform=[f[f'waveform_{c}'] for c in range(n)],
            timestamp=[f[f'timestamp_{c}'] for c in range(n)],
            unit=[f[f'unit_{c}'] for c in range(n)] if has_unit else [],
            cfg=_cfg_from_json(str(f['cfg'])) if 'cfg' in f.files else None,
        )


# ---------------------------------------------------------------------------
# MATLAB
# ---------------------------------------------------------------------------

def _cell(items: List[Any]) -> np.ndarray:
    """1 × n object array, written by savemat as a cell array."""
    cell = np.empty((1, len(items)), dtype=object)
    for i, item in enumerate(items):
        cell[0, i] = item
    return cell


def _save_mat(spikes: SpikeData, path: Path) -> None:
    struct = {
        'label': _cell(list(spikes.label)),
        'waveform': _cell(list(spikes.waveform)),
        'timestamp': _cell([np.asarray(t, dtype=np.float64) for t in spikes.timestamp]),
        'unit': _cell([np.asarray(u, dtype=np.float64) for u in spikes.unit]),
        'cfg': _cfg_to_json(spikes.cfg),
    }
    savemat(str(path), {MAT_VARIABLE: struct}, do_compression=True)


def _load_mat(path: Path) -> SpikeData:
    mat = loadmat(str(path))
    if MAT_VARIABLE not in mat:
        raise ValueError(f"{path} does not contain a variable named '{MAT_VARIABLE}'")
    data = mat[MAT_VARIABLE][0, 0]
    fields = data.dtype.names

    labels = [_mat_string(el) for el in data['label'].ravel()]
    waveforms = [np.asarray(w, dtype=np.float64) for w in data['waveform'].ravel()]
    timestamps = [np.asarray(t).ravel() for t in data['timestamp'].ravel()] if 'timestamp' in fields else []
    units = [np.asarray(u).ravel().astype(np.int64) for u in data['unit'].ravel()] if 'unit' in fields else []
    cfg = _cfg_from_json(_mat_string(data['cfg'])) if 'cfg' in fields else None

    return SpikeData(
        label=labels,
        waveform=[_empty_to_matrix(w, t) for w, t in zip(waveforms, timestamps or [None] * len(waveforms))],
        timestamp=timestamps,
        unit=units if len(units) == len(labels) else [],
        cfg=cfg,
    )


def _mat_string(value) -> str:
    """Unwrap the nested arrays loadmat uses for char data."""
    value = np.asarray(value)
    while value.dtype == object and value.size == 1:
        value = np.asarray(value.ravel()[0])
    if value.size == 0:
        return ''
    return str(value.ravel()[0]) if value.dtype.kind == 'U' and value.ndim else str(value)


def _empty_to_matrix(w: np.ndarray, t: Optional[np.ndarray]) -> np.ndarray:
    """MATLAB stores empty waveforms as 0×0; keep the spike count consistent."""
    if w.size == 0:
        n = 0 if t is None else len(t)
        return np.zeros((w.shape[0] if w.ndim == 2 else 0, n))
    return w


# ---------------------------------------------------------------------------
# Configuration provenance
# ---------------------------------------------------------------------------

def _cfg_to_json(cfg: Optional[Dict[str, Any]]) -> str:
    return json.dumps(cfg if cfg is not None else None, default=_json_default)


def _cfg_from_json(text: str) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    return json.loads(text)


def _json_default(value):
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    return str(value)
