from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal, Optional, Tuple

import numpy as np

from phase_voltage_analyzer.errors import AssemblyFailure, MetadataFailure
from phase_voltage_analyzer.ingest.providers import SampleProvider
from phase_voltage_analyzer.models.channels import PHASES, ClassifiedChannelSet
from phase_voltage_analyzer.models.waveform import TimeBase, TimeLike, Waveform, is_usable_frequency


LengthPolicy = Literal["truncate", "pad"]


@dataclass(frozen=True)
class AssemblerConfig:
    """
    length_policy (phases of unequal length):
      - "truncate": cut all phases and the time axis to the shortest phase.
      - "pad": pad shorter phases with NaN up to the longest phase.
    """
    length_policy: LengthPolicy = "truncate"

    def __post_init__(self) -> None:
        if self.length_policy not in ("truncate", "pad"):
            raise ValueError(f"Unknown length_policy {self.length_policy!r}; expected 'truncate' or 'pad'.")


def _fetch_phase(sample_provider: SampleProvider, index: int, label: str) -> np.ndarray:
    try:
        raw = sample_provider(index)
    except (IndexError, KeyError) as e:
        raise AssemblyFailure(
            f"No samples for phase {label} channel {index}: {type(e).__name__}: {e}",
            channel_index=index,
        ) from e
    except Exception as e:
        raise MetadataFailure(f"Sample provider failed for channel {index}: {e}") from e

    try:
        x = np.asarray(raw, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise AssemblyFailure(f"Phase {label} channel {index} is not numeric: {e}", channel_index=index) from e
    if x.ndim != 1:
        raise AssemblyFailure(f"Phase {label} channel {index}: expected 1D samples, got shape {x.shape}", channel_index=index)
    return x


def _apply_length_policy(
    phases: Tuple[np.ndarray, np.ndarray, np.ndarray],
    policy: LengthPolicy,
    warnings: List[str],
) -> Tuple[Tuple[np.ndarray, np.ndarray, np.ndarray], int]:
    lengths = [p.size for p in phases]
    n_min, n_max = min(lengths), max(lengths)
    if n_min == n_max:
        return phases, n_max

    len_txt = ", ".join(f"{ph.value}={n}" for ph, n in zip(PHASES, lengths))
    if policy == "truncate":
        warnings.append(f"WARNING: unequal phase lengths ({len_txt}); truncated to {n_min} samples")
        return tuple(p[:n_min] for p in phases), n_min

    warnings.append(f"WARNING: unequal phase lengths ({len_txt}); padded with NaN to {n_max} samples")
    padded = []
    for p in phases:
        if p.size < n_max:
            p = np.concatenate([p, np.full(n_max - p.size, np.nan, dtype=np.float64)])
        padded.append(p)
    return tuple(padded), n_max


def assemble_waveform(
    classified: ClassifiedChannelSet,
    sample_provider: SampleProvider,
    nominal_frequency: Optional[float],
    start_time: Optional[TimeLike],
    *,
    config: Optional[AssemblerConfig] = None,
    channel_count: Optional[int] = None,
) -> Waveform:
    """Build the time-stamped three-phase waveform for a classified record.

    Parameters
    ----------
    classified:
        Resolved phase channels.
    sample_provider:
        Callable returning the scaled samples of a channel index.
    nominal_frequency:
        Sampling frequency in Hz. ``None``, non-finite or ``<= 0`` gives a 1 s step.
    start_time:
        Absolute timestamp of the first sample.
    config:
        Length policy for phases of unequal length (default: truncate to shortest).
    channel_count:
        When given, classified indices must be below it.

    Returns
    -------
    Waveform
        A new waveform; samples are passed through unchanged.
    """
    cfg = config or AssemblerConfig()
    if start_time is None:
        raise AssemblyFailure("Record start time is missing; cannot build the time axis.")
    try:
        time_base = TimeBase.from_frequency(start_time, nominal_frequency)
        usable = is_usable_frequency(nominal_frequency)
    except (TypeError, ValueError) as e:
        raise AssemblyFailure(
            f"Invalid time base (start_time={start_time!r}, nominal_frequency={nominal_frequency!r}): {e}"
        ) from e

    warnings: List[str] = []
    if not usable:
        warnings.append(f"WARNING: nominal frequency {nominal_frequency!r} unusable; using 1 s sample interval")

    if channel_count is not None:
        for ph in PHASES:
            idx = classified.index_for(ph)
            if idx >= int(channel_count):
                raise AssemblyFailure(
                    f"Phase {ph.value} channel {idx} outside the record's {int(channel_count)} analog channels",
                    channel_index=idx,
                )

    phases = tuple(_fetch_phase(sample_provider, classified.index_for(ph), ph.value) for ph in PHASES)
    phases, n = _apply_length_policy(phases, cfg.length_policy, warnings)

    try:
        timestamps = time_base.timestamps(n)
    except ValueError as e:
        raise AssemblyFailure(str(e)) from e

    warnings.append(f"{n} samples per phase, dt={time_base.sample_interval_s:.6g} s")
    return Waveform(
        timestamps=timestamps,
        phase_a=phases[0],
        phase_b=phases[1],
        phase_c=phases[2],
        time_base=time_base,
        warnings=tuple(warnings),
    )
