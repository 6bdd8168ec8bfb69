"""Analysis subpackage: waveform assembly for classified records."""

from .assembly import AssemblerConfig, assemble_waveform

__all__ = ["AssemblerConfig", "assemble_waveform"]
