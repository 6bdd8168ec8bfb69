from __future__ import annotations

from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from phase_voltage_analyzer.ingest.providers import (
    ArraySampleProvider,
    FrameSampleProvider,
    MetadataProvider,
    RecordMetadata,
    record_from_frame,
)
from phase_voltage_analyzer.models.channels import ChannelDescriptor


def test_record_metadata_defaults_channel_count() -> None:
    meta = RecordMetadata(channels=[ChannelDescriptor(0, "VA", "V"), ChannelDescriptor(1, "VB", "V")])
    assert meta.analog_channel_count == 2
    assert isinstance(meta.channels, tuple)
    assert meta.channel(1).name == "VB"
    with pytest.raises(KeyError):
        meta.channel(5)


def test_record_metadata_is_a_metadata_provider() -> None:
    meta = RecordMetadata(channels=(), start_time=datetime(2024, 1, 1), nominal_frequency=50.0)
    assert isinstance(meta, MetadataProvider)


def test_descriptor_normalises_missing_strings() -> None:
    ch = ChannelDescriptor(index=3, name=None, unit=None)
    assert ch.name == "" and ch.unit == ""


def test_array_provider_range() -> None:
    prov = ArraySampleProvider([[1.0, 2.0], [3.0]])
    assert len(prov) == 2
    np.testing.assert_array_equal(prov(1), [3.0])
    with pytest.raises(IndexError):
        prov(2)
    with pytest.raises(IndexError):
        prov(-1)


def test_record_from_frame() -> None:
    df = pd.DataFrame({"IA": [1.0, 2.0], "UA": [10.0, 20.0], "UB": [11.0, 21.0], "UC": [12.0, 22.0]})
    meta, prov = record_from_frame(df, ["A", "kV", "kV", "kV"], nominal_frequency=50.0, start_time="2024-01-01")
    assert isinstance(prov, FrameSampleProvider)
    assert [c.name for c in meta.channels] == ["IA", "UA", "UB", "UC"]
    assert meta.channels[0].unit == "A"
    assert meta.analog_channel_count == 4
    np.testing.assert_array_equal(prov(2), [11.0, 21.0])
    with pytest.raises(IndexError):
        prov(4)


def test_record_from_frame_single_unit() -> None:
    df = pd.DataFrame({"a": [0.0], "b": [0.0]})
    meta, _ = record_from_frame(df, "V")
    assert {c.unit for c in meta.channels} == {"V"}


def test_record_from_frame_unit_count_mismatch() -> None:
    df = pd.DataFrame({"a": [0.0], "b": [0.0]})
    with pytest.raises(ValueError):
        record_from_frame(df, ["V"])
