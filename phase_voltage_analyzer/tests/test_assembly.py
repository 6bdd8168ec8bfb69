"""Tests for waveform assembly and the record time base."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import numpy as np
import pandas as pd
import pytest

from phase_voltage_analyzer.analysis.assembly import AssemblerConfig, assemble_waveform
from phase_voltage_analyzer.errors import AssemblyFailure, MetadataFailure
from phase_voltage_analyzer.ingest.providers import ArraySampleProvider
from phase_voltage_analyzer.models.channels import ClassifiedChannelSet
from phase_voltage_analyzer.models.waveform import TimeBase, resolve_sample_interval


T0 = datetime(2024, 3, 1, 12, 0, 0)


def _provider(*lengths: int) -> ArraySampleProvider:
    return ArraySampleProvider([np.arange(n, dtype=float) + 100.0 * k for k, n in enumerate(lengths)])


# -----------------------------------------------------------------------
# time base
# -----------------------------------------------------------------------


@pytest.mark.parametrize("f", [None, 0.0, -50.0, float("nan"), float("inf")])
def test_unusable_frequency_gives_one_second(f) -> None:
    assert resolve_sample_interval(f) == 1.0


def test_sample_interval_from_frequency() -> None:
    assert resolve_sample_interval(50.0) == pytest.approx(0.02)
    assert resolve_sample_interval(4000) == pytest.approx(0.00025)


def test_time_base_rejects_sub_nanosecond_step() -> None:
    tb = TimeBase(start_time=T0, sample_interval_s=1e-10)
    assert len(tb.timestamps(1)) == 1
    with pytest.raises(ValueError, match="resolution"):
        tb.timestamps(2)


@pytest.mark.parametrize("f", [3.0, 4800.0, 1200.0, 7.0])
def test_time_step_is_constant_for_non_integer_ns_interval(f: float) -> None:
    ts = TimeBase.from_frequency(T0, f).timestamps(50)
    steps = np.diff(ts.asi8)
    assert (steps == steps[0]).all()
    assert abs(int(steps[0]) - 1e9 / f) <= 0.5


def test_time_base_keeps_timezone() -> None:
    start = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
    ts = TimeBase.from_frequency(start, 50.0).timestamps(3)
    assert str(ts.tz) == "UTC"
    assert ts[2] == start + timedelta(milliseconds=40)


# -----------------------------------------------------------------------
# assembly
# -----------------------------------------------------------------------


def test_timestamps_at_50_hz() -> None:
    wf = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(4, 4, 4), 50.0, T0)
    expected = [T0 + timedelta(milliseconds=ms) for ms in (0, 20, 40, 60)]
    assert list(wf.timestamps) == [pd.Timestamp(t) for t in expected]
    assert wf.n_samples == 4
    np.testing.assert_allclose(wf.elapsed_seconds(), [0.0, 0.02, 0.04, 0.06])


@pytest.mark.parametrize("f", [None, 0.0, -1.0])
def test_unusable_frequency_steps_one_second(f) -> None:
    wf = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(3, 3, 3), f, T0)
    assert wf.sample_interval_s == 1.0
    assert wf.timestamps[2] - wf.timestamps[1] == pd.Timedelta(seconds=1)
    assert any("unusable" in w for w in wf.warnings)


def test_samples_pass_through_unchanged() -> None:
    a = [230.5, -12.25, 1e5]
    b = [0.0, 1.0, 2.0]
    c = [-1.5, -2.5, -3.5]
    prov = ArraySampleProvider([c, a, [9.0, 9.0, 9.0], b])
    wf = assemble_waveform(ClassifiedChannelSet(1, 3, 0), prov, 1000.0, T0)
    np.testing.assert_array_equal(wf.phase_a, a)
    np.testing.assert_array_equal(wf.phase_b, b)
    np.testing.assert_array_equal(wf.phase_c, c)


def test_timestamps_strictly_increasing() -> None:
    wf = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(500, 500, 500), 4800.0, T0)
    assert wf.timestamps.is_monotonic_increasing
    assert wf.timestamps.is_unique


def test_unequal_lengths_truncate_to_shortest() -> None:
    wf = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(3, 4, 5), 50.0, T0)
    assert wf.n_samples == 3
    assert len(wf.timestamps) == len(wf.phase_a) == len(wf.phase_b) == len(wf.phase_c) == 3
    np.testing.assert_array_equal(wf.phase_c, [200.0, 201.0, 202.0])
    assert any("truncated to 3" in w for w in wf.warnings)


def test_unequal_lengths_truncate_is_order_independent() -> None:
    wf1 = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(5, 3, 4), 50.0, T0)
    wf2 = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(4, 5, 3), 50.0, T0)
    assert wf1.n_samples == wf2.n_samples == 3


def test_unequal_lengths_pad_with_nan() -> None:
    cfg = AssemblerConfig(length_policy="pad")
    wf = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(3, 4, 5), 50.0, T0, config=cfg)
    assert wf.n_samples == 5
    assert np.isnan(wf.phase_a[3:]).all()
    assert np.isnan(wf.phase_b[4])
    assert not np.isnan(wf.phase_c).any()
    assert any("padded" in w for w in wf.warnings)


def test_unknown_length_policy_rejected() -> None:
    with pytest.raises(ValueError):
        AssemblerConfig(length_policy="stretch")


def test_empty_phase_gives_empty_waveform() -> None:
    wf = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(0, 4, 4), 50.0, T0)
    assert wf.n_samples == 0


def test_repeated_assembly_is_identical() -> None:
    prov = _provider(6, 6, 6)
    cls = ClassifiedChannelSet(0, 1, 2)
    wf1 = assemble_waveform(cls, prov, 60.0, T0)
    wf2 = assemble_waveform(cls, prov, 60.0, T0)
    assert wf1 is not wf2
    assert wf1.timestamps.equals(wf2.timestamps)
    np.testing.assert_array_equal(wf1.phase_a, wf2.phase_a)
    np.testing.assert_array_equal(wf1.phase_b, wf2.phase_b)
    np.testing.assert_array_equal(wf1.phase_c, wf2.phase_c)


def test_waveform_arrays_are_read_only() -> None:
    wf = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(4, 4, 4), 50.0, T0)
    with pytest.raises(ValueError):
        wf.phase_a[0] = 1.0


def test_to_frame() -> None:
    wf = assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(4, 4, 4), 50.0, T0)
    df = wf.to_frame()
    assert list(df.columns) == ["Ua", "Ub", "Uc"]
    assert df.index[1] == pd.Timestamp(T0 + timedelta(milliseconds=20))
    assert df["Ub"].iloc[0] == 100.0


# -----------------------------------------------------------------------
# failures
# -----------------------------------------------------------------------


def test_index_outside_provider_is_assembly_failure() -> None:
    with pytest.raises(AssemblyFailure) as ei:
        assemble_waveform(ClassifiedChannelSet(0, 1, 7), _provider(4, 4, 4), 50.0, T0)
    assert ei.value.channel_index == 7


def test_index_outside_channel_count_is_assembly_failure() -> None:
    with pytest.raises(AssemblyFailure):
        assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(4, 4, 4), 50.0, T0, channel_count=2)


def test_missing_start_time_is_assembly_failure() -> None:
    with pytest.raises(AssemblyFailure, match="start time"):
        assemble_waveform(ClassifiedChannelSet(0, 1, 2), _provider(4, 4, 4), 50.0, None)


def test_non_1d_samples_rejected() -> None:
    prov = ArraySampleProvider([np.zeros(4), np.zeros(4), np.zeros(4)])

    def two_d(index: int):
        return np.zeros((2, 2)) if index == 2 else prov(index)

    with pytest.raises(AssemblyFailure, match="1D"):
        assemble_waveform(ClassifiedChannelSet(0, 1, 2), two_d, 50.0, T0)


def test_provider_error_is_metadata_failure() -> None:
    def broken(index: int):
        raise OSError("data file vanished")

    with pytest.raises(MetadataFailure) as ei:
        assemble_waveform(ClassifiedChannelSet(0, 1, 2), broken, 50.0, T0)
    assert isinstance(ei.value.__cause__, OSError)
