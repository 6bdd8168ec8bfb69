"""Phase Voltage Analyzer -- three-phase voltage extraction from disturbance records.

Works on oscillographic records (COMTRADE-style) that were already parsed into
channel descriptors and per-channel scaled samples.

This package provides tools for:
- Identifying the phase-A/B/C voltage channels from names and units
- Rebuilding a uniformly time-stamped three-phase waveform
- Holding one record's classification and waveform behind a small facade

Key principles:
- All-or-nothing classification: a complete A/B/C triple or a failure
- Samples are passed through unchanged: no scaling, filtering or resampling
- No global state: each loaded record owns its results

Main subpackages:
- ingest: Provider adapters and phase channel detection
- analysis: Waveform assembly
- models: Data models (ChannelDescriptor, ClassifiedChannelSet, TimeBase, Waveform)
"""

from phase_voltage_analyzer.analyzer import AnalyzerState, PhaseVoltageAnalyzer
from phase_voltage_analyzer.errors import (
    AssemblyFailure,
    ClassificationFailure,
    LoadFailure,
    MetadataFailure,
)

__all__ = [
    "AnalyzerState",
    "PhaseVoltageAnalyzer",
    "AssemblyFailure",
    "ClassificationFailure",
    "LoadFailure",
    "MetadataFailure",
]
