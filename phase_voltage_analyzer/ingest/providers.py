"""Adapters between an already-parsed record and the analyzer.

Decoding the on-disk configuration/data pair is done upstream. The analyzer
only needs two collaborators:

- a metadata provider (channel descriptors, channel count, nominal frequency,
  start time), see :class:`MetadataProvider`
- a sample provider: any callable mapping a channel index to its scaled
  ("primary value") samples, see :class:`SampleProvider`

:class:`RecordMetadata`, :class:`ArraySampleProvider` and
:class:`FrameSampleProvider` are in-memory implementations of both.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol, Sequence, Tuple, Union, runtime_checkable

import numpy as np
import pandas as pd

from phase_voltage_analyzer.models.channels import ChannelDescriptor
from phase_voltage_analyzer.models.waveform import TimeLike


@runtime_checkable
class MetadataProvider(Protocol):
    @property
    def channels(self) -> Sequence[ChannelDescriptor]: ...

    @property
    def analog_channel_count(self) -> int: ...

    @property
    def nominal_frequency(self) -> Optional[float]: ...

    @property
    def start_time(self) -> Optional[TimeLike]: ...


class SampleProvider(Protocol):
    def __call__(self, index: int) -> Sequence[float]: ...


@dataclass(frozen=True)
class RecordMetadata:
    """
    In-memory metadata of one parsed record.

    analog_channel_count defaults to len(channels) when not given.
    nominal_frequency may be None or <= 0; the assembler then uses a 1 s step.
    """
    channels: Tuple[ChannelDescriptor, ...]
    start_time: Optional[TimeLike] = None
    nominal_frequency: Optional[float] = None
    analog_channel_count: int = field(default=-1)

    def __post_init__(self) -> None:
        chans = tuple(self.channels)
        object.__setattr__(self, "channels", chans)
        if self.analog_channel_count < 0:
            object.__setattr__(self, "analog_channel_count", len(chans))

    def channel(self, index: int) -> ChannelDescriptor:
        for ch in self.channels:
            if ch.index == index:
                return ch
        raise KeyError(f"No analog channel with index {index}.")


class ArraySampleProvider:
    """Sample provider over a list of 1-D arrays, one per channel index."""

    def __init__(self, samples: Sequence[Sequence[float]]) -> None:
        self._samples = [np.asarray(s, dtype=np.float64) for s in samples]

    def __len__(self) -> int:
        return len(self._samples)

    def __call__(self, index: int) -> np.ndarray:
        i = int(index)
        if i < 0 or i >= len(self._samples):
            raise IndexError(f"Channel index {i} out of range (0..{len(self._samples) - 1}).")
        return self._samples[i]


class FrameSampleProvider:
    """Sample provider over a DataFrame whose i-th column holds channel i."""

    def __init__(self, df: pd.DataFrame) -> None:
        self.df = df

    def __len__(self) -> int:
        return int(self.df.shape[1])

    def __call__(self, index: int) -> np.ndarray:
        i = int(index)
        if i < 0 or i >= self.df.shape[1]:
            raise IndexError(f"Channel index {i} out of range (0..{self.df.shape[1] - 1}).")
        return self.df.iloc[:, i].to_numpy(dtype=np.float64)


def record_from_frame(
    df: pd.DataFrame,
    units: Union[str, Sequence[str]],
    *,
    nominal_frequency: Optional[float] = None,
    start_time: Optional[TimeLike] = None,
) -> Tuple[RecordMetadata, FrameSampleProvider]:
    """Build metadata and sample provider from a DataFrame of channel columns.

    Column names become channel names. ``units`` is either one unit for all
    channels or one unit per column.
    """
    names = [str(c) for c in df.columns]
    if isinstance(units, str):
        unit_list = [units] * len(names)
    else:
        unit_list = [str(u) for u in units]
    if len(unit_list) != len(names):
        raise ValueError(f"Got {len(unit_list)} units for {len(names)} channels.")

    channels = tuple(
        ChannelDescriptor(index=i, name=n, unit=u) for i, (n, u) in enumerate(zip(names, unit_list))
    )
    meta = RecordMetadata(
        channels=channels,
        start_time=start_time,
        nominal_frequency=nominal_frequency,
    )
    return meta, FrameSampleProvider(df)
