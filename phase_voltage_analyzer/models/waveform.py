from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple, Union

import numpy as np
import pandas as pd


TimeLike = Union[datetime, pd.Timestamp, np.datetime64, str]

# Interval used when the record declares no usable frequency.
DEFAULT_SAMPLE_INTERVAL_S = 1.0


def is_usable_frequency(nominal_frequency: Optional[float]) -> bool:
    if nominal_frequency is None:
        return False
    f = float(nominal_frequency)
    return math.isfinite(f) and f > 0


def resolve_sample_interval(nominal_frequency: Optional[float]) -> float:
    """Return ``1/f`` for a finite positive frequency, else exactly 1 second."""
    if not is_usable_frequency(nominal_frequency):
        return DEFAULT_SAMPLE_INTERVAL_S
    return 1.0 / float(nominal_frequency)


@dataclass(frozen=True)
class TimeBase:
    """Absolute time axis of a record: start timestamp plus a constant step.

    Timestamps are ``start_time + i * step_ns`` where ``step_ns`` is the sample
    interval rounded once to whole nanoseconds (the resolution of
    ``pandas.Timestamp``). The step is exactly constant; for intervals that are
    not a whole number of nanoseconds the drift stays below ``n * 0.5`` ns.
    """

    start_time: pd.Timestamp
    sample_interval_s: float

    def __post_init__(self) -> None:
        if self.start_time is None:
            raise ValueError("TimeBase needs a start time.")
        object.__setattr__(self, "start_time", pd.Timestamp(self.start_time))
        dt = float(self.sample_interval_s)
        if not math.isfinite(dt) or dt <= 0:
            raise ValueError(f"sample_interval_s must be finite and > 0, got {self.sample_interval_s}.")
        object.__setattr__(self, "sample_interval_s", dt)

    @classmethod
    def from_frequency(cls, start_time: TimeLike, nominal_frequency: Optional[float]) -> "TimeBase":
        return cls(start_time=start_time, sample_interval_s=resolve_sample_interval(nominal_frequency))

    @property
    def step_ns(self) -> int:
        return int(round(self.sample_interval_s * 1e9))

    def offsets_ns(self, n: int) -> np.ndarray:
        """Integer nanosecond offsets of the first ``n`` samples from the start."""
        n = int(n)
        if n < 0:
            raise ValueError(f"Sample count must be >= 0, got {n}.")
        if n > 1 and self.step_ns < 1:
            raise ValueError(
                f"sample_interval_s={self.sample_interval_s:.6g} s is below the 1 ns timestamp resolution."
            )
        return np.arange(n, dtype=np.int64) * np.int64(self.step_ns)

    def timestamps(self, n: int) -> pd.DatetimeIndex:
        offsets = pd.to_timedelta(self.offsets_ns(n), unit="ns")
        return pd.DatetimeIndex(self.start_time + offsets, name="time")


def _frozen_array(x: np.ndarray) -> np.ndarray:
    a = np.array(x, dtype=np.float64, copy=True)
    a.setflags(write=False)
    return a


@dataclass(frozen=True)
class Waveform:
    """
    Uniformly time-stamped three-phase voltage waveform.

    Notes
    - 'timestamps' is absolute and strictly increasing with the constant step time_base.step_ns.
    - phase arrays hold the primary (physical-unit) values exactly as supplied upstream;
      they are stored as read-only float64 copies.
    - all four sequences have the same length.
    """
    timestamps: pd.DatetimeIndex
    phase_a: np.ndarray
    phase_b: np.ndarray
    phase_c: np.ndarray
    time_base: TimeBase
    warnings: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for attr in ("phase_a", "phase_b", "phase_c"):
            object.__setattr__(self, attr, _frozen_array(getattr(self, attr)))
        n = len(self.timestamps)
        lengths = (n, self.phase_a.size, self.phase_b.size, self.phase_c.size)
        if len(set(lengths)) != 1:
            raise ValueError(f"Waveform length invariant broken: timestamps/A/B/C lengths = {lengths}")

    @property
    def n_samples(self) -> int:
        return int(len(self.timestamps))

    @property
    def start_time(self) -> pd.Timestamp:
        return self.time_base.start_time

    @property
    def sample_interval_s(self) -> float:
        return self.time_base.sample_interval_s

    def elapsed_seconds(self) -> np.ndarray:
        """Seconds since the record start, one value per sample (plot X-series)."""
        return self.time_base.offsets_ns(self.n_samples) / 1e9

    def to_frame(self) -> pd.DataFrame:
        """Return the waveform as a DataFrame indexed by timestamp (columns Ua, Ub, Uc)."""
        return pd.DataFrame(
            {"Ua": self.phase_a, "Ub": self.phase_b, "Uc": self.phase_c},
            index=self.timestamps,
        )
