"""Error taxonomy for loading and analysing a record.

Every failure surfaced by :class:`~phase_voltage_analyzer.analyzer.PhaseVoltageAnalyzer`
derives from :class:`LoadFailure`. Classification and assembly failures are also
``ValueError`` subclasses so callers catching ``ValueError`` keep working.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from phase_voltage_analyzer.models.channels import PhaseTag


class LoadFailure(Exception):
    """Base class for any failure while loading or analysing one record."""


class ClassificationFailure(LoadFailure, ValueError):
    """Not all three phase voltages could be resolved.

    Attributes
    ----------
    found:
        Phases that were resolved before giving up, ``PhaseTag -> channel index``.
    missing:
        Phases that could not be resolved.
    """

    def __init__(
        self,
        message: str,
        *,
        found: Optional[Dict["PhaseTag", int]] = None,
        missing: Tuple["PhaseTag", ...] = (),
    ) -> None:
        super().__init__(message)
        self.found = dict(found or {})
        self.missing = tuple(missing)


class AssemblyFailure(LoadFailure, ValueError):
    """Sample data for a classified channel could not be turned into a waveform."""

    def __init__(self, message: str, *, channel_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.channel_index = channel_index


class MetadataFailure(LoadFailure):
    """An error raised by an external metadata or sample provider.

    The original exception is chained as ``__cause__``; it is neither
    interpreted nor retried.
    """
