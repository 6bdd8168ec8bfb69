from .channels import (
    ChannelDescriptor,
    ClassifiedChannelSet,
    PhaseCandidate,
    PhaseMapping,
    PhaseTag,
    PHASES,
)
from .waveform import TimeBase, Waveform, is_usable_frequency, resolve_sample_interval

__all__ = [
    "ChannelDescriptor",
    "ClassifiedChannelSet",
    "PhaseCandidate",
    "PhaseMapping",
    "PhaseTag",
    "PHASES",
    "TimeBase",
    "Waveform",
    "is_usable_frequency",
    "resolve_sample_interval",
]
