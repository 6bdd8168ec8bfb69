from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class PhaseTag(Enum):
    A = "A"
    B = "B"
    C = "C"
    UNKNOWN = "Unknown"


PHASES: Tuple[PhaseTag, PhaseTag, PhaseTag] = (PhaseTag.A, PhaseTag.B, PhaseTag.C)


@dataclass(frozen=True)
class ChannelDescriptor:
    """
    Static metadata of one analog channel, as supplied by the record parser.

    index: position of the channel in the record's analog-channel list (0-based).
    name:  channel identifier as written by the recorder vendor (e.g. 'UA', 'BUS1 Va').
    unit:  engineering unit string (e.g. 'V', 'kV', 'A').
    """
    index: int
    name: str = ""
    unit: str = ""

    def __post_init__(self) -> None:
        if int(self.index) < 0:
            raise ValueError(f"Channel index must be >= 0, got {self.index}.")
        object.__setattr__(self, "index", int(self.index))
        object.__setattr__(self, "name", "" if self.name is None else str(self.name))
        object.__setattr__(self, "unit", "" if self.unit is None else str(self.unit))


@dataclass(frozen=True)
class PhaseCandidate:
    """Transient phase hypothesis for one channel.

    ``source`` is ``"name"`` for a name-pattern match and ``"position"`` for the
    positional fallback.
    """

    channel_index: int
    phase: PhaseTag
    channel_name: str
    source: str = "name"

    def __post_init__(self) -> None:
        if self.phase is PhaseTag.UNKNOWN:
            raise ValueError("A phase candidate cannot carry PhaseTag.UNKNOWN.")


def _check_triple(index_a: int, index_b: int, index_c: int) -> None:
    triple = (index_a, index_b, index_c)
    if any(int(i) < 0 for i in triple):
        raise ValueError(f"Phase channel indices must be >= 0, got {triple}.")
    if len(set(triple)) != 3:
        raise ValueError(f"Phase channel indices must be distinct, got {triple}.")


@dataclass(frozen=True)
class ClassifiedChannelSet:
    """
    Resolved phase-A/B/C voltage channels of one record.

    Notes
    - The three indices are always set together; there is no partial result.
    - warnings holds the classification diagnostics (which pass selected what).
    """
    index_a: int
    index_b: int
    index_c: int
    warnings: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        _check_triple(self.index_a, self.index_b, self.index_c)

    def index_for(self, phase: PhaseTag) -> int:
        if phase is PhaseTag.A:
            return self.index_a
        if phase is PhaseTag.B:
            return self.index_b
        if phase is PhaseTag.C:
            return self.index_c
        raise KeyError(f"No channel index for phase {phase}.")

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.index_a, self.index_b, self.index_c)


@dataclass(frozen=True)
class PhaseMapping:
    """Explicit phase channel assignment override.

    Leave all fields ``None`` (the default) to use automatic detection. When
    set, all three indices must be given; the heuristic is then bypassed.
    """

    index_a: Optional[int] = None
    index_b: Optional[int] = None
    index_c: Optional[int] = None

    def __post_init__(self) -> None:
        fields = (self.index_a, self.index_b, self.index_c)
        n_set = sum(f is not None for f in fields)
        if n_set not in (0, 3):
            raise ValueError(
                "PhaseMapping needs all three phase indices or none, "
                f"got A={self.index_a}, B={self.index_b}, C={self.index_c}."
            )
        if n_set == 3:
            _check_triple(int(self.index_a), int(self.index_b), int(self.index_c))

    @property
    def is_explicit(self) -> bool:
        return self.index_a is not None
