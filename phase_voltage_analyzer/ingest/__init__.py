"""Ingest package - provider adapters and phase channel detection.

This package handles:
- The metadata/sample provider contracts consumed by the analyzer
- In-memory providers over arrays and DataFrames
- Heuristic identification of the phase voltage channels

Key objects:
- classify_phase_channels: channel descriptors -> ClassifiedChannelSet
- RecordMetadata, ArraySampleProvider, FrameSampleProvider

Design principle:
- Decoding of the on-disk record happens upstream
- Channel detection never returns a partial phase assignment
"""

from .channel_detect import ClassifierConfig, DEFAULT_VOLTAGE_UNITS, classify_phase_channels, match_phase
from .providers import (
    ArraySampleProvider,
    FrameSampleProvider,
    MetadataProvider,
    RecordMetadata,
    SampleProvider,
    record_from_frame,
)

__all__ = [
    "ClassifierConfig",
    "DEFAULT_VOLTAGE_UNITS",
    "classify_phase_channels",
    "match_phase",
    "ArraySampleProvider",
    "FrameSampleProvider",
    "MetadataProvider",
    "RecordMetadata",
    "SampleProvider",
    "record_from_frame",
]
