"""Facade owning the classification and waveform of one loaded record.

Typical use::

    analyzer = PhaseVoltageAnalyzer.load(metadata, samples)
    print(analyzer.phase_summary())      # "Phase indices: A=1, B=5, C=9"
    wf = analyzer.current_waveform()
    wf = analyzer.reassemble()           # after the sample source was re-read

Classification runs once per instance. ``reassemble`` only repeats the
waveform assembly against the same :class:`ClassifiedChannelSet`. Loading
another record means creating another instance; nothing is shared between
instances.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple

import pandas as pd

from phase_voltage_analyzer.analysis.assembly import AssemblerConfig, assemble_waveform
from phase_voltage_analyzer.errors import LoadFailure, MetadataFailure
from phase_voltage_analyzer.ingest.channel_detect import ClassifierConfig, classify_phase_channels
from phase_voltage_analyzer.ingest.providers import MetadataProvider, SampleProvider
from phase_voltage_analyzer.models.channels import ChannelDescriptor, ClassifiedChannelSet, PhaseMapping
from phase_voltage_analyzer.models.waveform import TimeBase, Waveform


class AnalyzerState(Enum):
    UNCLASSIFIED = "unclassified"
    CLASSIFYING = "classifying"
    CLASSIFIED = "classified"
    CLASSIFICATION_FAILED = "classification_failed"
    ASSEMBLING = "assembling"
    ASSEMBLED = "assembled"
    ASSEMBLY_FAILED = "assembly_failed"


_TERMINAL = (AnalyzerState.CLASSIFICATION_FAILED, AnalyzerState.ASSEMBLY_FAILED)


class PhaseVoltageAnalyzer:
    """
    Three-phase voltage view of one parsed disturbance record.

    State machine:
      UNCLASSIFIED -> CLASSIFYING -> {CLASSIFIED, CLASSIFICATION_FAILED}
      CLASSIFIED/ASSEMBLED -> ASSEMBLING -> {ASSEMBLED, ASSEMBLY_FAILED}
    Failed states are terminal for the instance.
    """

    def __init__(
        self,
        metadata: MetadataProvider,
        samples: SampleProvider,
        *,
        classifier_config: Optional[ClassifierConfig] = None,
        assembler_config: Optional[AssemblerConfig] = None,
        mapping: Optional[PhaseMapping] = None,
    ) -> None:
        self._metadata = metadata
        self._samples = samples
        self._classifier_config = classifier_config or ClassifierConfig()
        self._assembler_config = assembler_config or AssemblerConfig()
        self._mapping = mapping

        self._state = AnalyzerState.UNCLASSIFIED
        self._classified: Optional[ClassifiedChannelSet] = None
        self._waveform: Optional[Waveform] = None
        self._error: Optional[LoadFailure] = None

    @classmethod
    def load(
        cls,
        metadata: MetadataProvider,
        samples: SampleProvider,
        *,
        classifier_config: Optional[ClassifierConfig] = None,
        assembler_config: Optional[AssemblerConfig] = None,
        mapping: Optional[PhaseMapping] = None,
    ) -> "PhaseVoltageAnalyzer":
        """Classify the record's channels and assemble the first waveform.

        Raises a :class:`~phase_voltage_analyzer.errors.LoadFailure` subclass
        when either step fails.
        """
        analyzer = cls(
            metadata,
            samples,
            classifier_config=classifier_config,
            assembler_config=assembler_config,
            mapping=mapping,
        )
        analyzer.classify()
        analyzer.reassemble()
        return analyzer

    # -------------------------
    # State transitions
    # -------------------------
    def classify(self) -> ClassifiedChannelSet:
        if self._state is not AnalyzerState.UNCLASSIFIED:
            raise RuntimeError(f"classify() is only allowed once, from UNCLASSIFIED (state={self._state.name}).")

        self._state = AnalyzerState.CLASSIFYING
        try:
            channels, count = self._read_channel_metadata()
            classified = classify_phase_channels(
                channels,
                config=self._classifier_config,
                mapping=self._mapping,
                channel_count=count,
            )
        except LoadFailure as e:
            self._fail(AnalyzerState.CLASSIFICATION_FAILED, e)
            raise
        except ValueError as e:
            err = MetadataFailure(f"Invalid channel metadata: {e}")
            self._fail(AnalyzerState.CLASSIFICATION_FAILED, err)
            raise err from e
        except Exception as e:
            err = MetadataFailure(f"Unreadable channel metadata: {type(e).__name__}: {e}")
            self._fail(AnalyzerState.CLASSIFICATION_FAILED, err)
            raise err from e

        self._classified = classified
        self._state = AnalyzerState.CLASSIFIED
        return classified

    def reassemble(self) -> Waveform:
        """Rebuild the waveform from the current classification.

        The previous waveform is replaced, never merged.
        """
        if self._state not in (AnalyzerState.CLASSIFIED, AnalyzerState.ASSEMBLED):
            raise RuntimeError(f"Cannot assemble a waveform in state {self._state.name}.")

        self._state = AnalyzerState.ASSEMBLING
        self._waveform = None
        try:
            nominal_frequency, start_time, count = self._read_time_metadata()
            waveform = assemble_waveform(
                self._classified,
                self._samples,
                nominal_frequency,
                start_time,
                config=self._assembler_config,
                channel_count=count,
            )
        except LoadFailure as e:
            self._fail(AnalyzerState.ASSEMBLY_FAILED, e)
            raise
        except Exception as e:
            err = MetadataFailure(f"Unreadable record data: {type(e).__name__}: {e}")
            self._fail(AnalyzerState.ASSEMBLY_FAILED, err)
            raise err from e

        self._waveform = waveform
        self._state = AnalyzerState.ASSEMBLED
        return waveform

    def _fail(self, state: AnalyzerState, error: LoadFailure) -> None:
        self._state = state
        self._error = error

    # -------------------------
    # Metadata access
    # -------------------------
    def _read_channel_metadata(self) -> Tuple[Tuple[ChannelDescriptor, ...], Optional[int]]:
        try:
            channels = tuple(self._metadata.channels)
            count = getattr(self._metadata, "analog_channel_count", None)
        except Exception as e:
            raise MetadataFailure(f"Metadata provider failed while reading channels: {e}") from e
        return channels, (None if count is None else int(count))

    def _read_time_metadata(self) -> Tuple[Optional[float], object, Optional[int]]:
        try:
            nominal_frequency = getattr(self._metadata, "nominal_frequency", None)
            start_time = self._metadata.start_time
            count = getattr(self._metadata, "analog_channel_count", None)
        except Exception as e:
            raise MetadataFailure(f"Metadata provider failed while reading the time base: {e}") from e
        return nominal_frequency, start_time, (None if count is None else int(count))

    # -------------------------
    # Accessors
    # -------------------------
    @property
    def state(self) -> AnalyzerState:
        return self._state

    @property
    def error(self) -> Optional[LoadFailure]:
        """The failure that moved the analyzer into a terminal state, if any."""
        return self._error

    @property
    def classified(self) -> ClassifiedChannelSet:
        if self._classified is None:
            raise RuntimeError(f"No classification available (state={self._state.name}).")
        return self._classified

    def phase_summary(self) -> str:
        c = self.classified
        return f"Phase indices: A={c.index_a}, B={c.index_b}, C={c.index_c}"

    def current_waveform(self) -> Waveform:
        if self._waveform is None:
            raise RuntimeError(f"No waveform available (state={self._state.name}).")
        return self._waveform

    @property
    def time_base(self) -> TimeBase:
        return self.current_waveform().time_base

    @property
    def start_time(self) -> pd.Timestamp:
        """Record start time, for display."""
        return self.time_base.start_time

    def describe(self) -> str:
        """One-line load report: start time (when samples exist) and phase indices."""
        summary = self.phase_summary()
        wf = self._waveform
        if wf is not None and wf.n_samples > 0:
            return f"Start time: {wf.timestamps[0]} | {summary}"
        return summary

    @property
    def diagnostics(self) -> Tuple[str, ...]:
        out = []
        if self._classified is not None:
            out.extend(self._classified.warnings)
        if self._waveform is not None:
            out.extend(self._waveform.warnings)
        if self._error is not None:
            out.append(f"ERROR: {self._error}")
        return tuple(out)
