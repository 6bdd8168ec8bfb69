"""Phase voltage channel detection for parsed disturbance records.

Identifies the channels carrying phase-A, -B and -C voltage from their
descriptors alone:

1. unit filter: only channels whose unit is in the voltage allow-list qualify
2. name pass: a closed table of per-phase name patterns, earliest index wins
3. positional fallback: only when the name pass found nothing at all, the
   first three voltage channels become A, B, C

The result is all-or-nothing: either a complete :class:`ClassifiedChannelSet`
or :class:`~phase_voltage_analyzer.errors.ClassificationFailure`.

:class:`~phase_voltage_analyzer.models.channels.PhaseMapping` bypasses the
heuristic when the operator knows the record layout.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from phase_voltage_analyzer.errors import ClassificationFailure
from phase_voltage_analyzer.models.channels import (
    PHASES,
    ChannelDescriptor,
    ClassifiedChannelSet,
    PhaseCandidate,
    PhaseMapping,
    PhaseTag,
)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


DEFAULT_VOLTAGE_UNITS: FrozenSet[str] = frozenset(
    {"v", "kv", "mv", "uv", "µv", "μv", "volt", "volts", "kilovolt", "kilovolts"}
)


@dataclass(frozen=True)
class ClassifierConfig:
    """
    voltage_units:
      Lower-case unit tokens accepted as voltage. Compared against the stripped,
      lower-cased unit string (exact match, not substring: 'VAr' is not a voltage).
    positional_fallback:
      - True: when no channel name matches any phase, take the first three voltage
              channels in index order as A, B, C.
      - False: fail instead.
    """
    voltage_units: FrozenSet[str] = DEFAULT_VOLTAGE_UNITS
    positional_fallback: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "voltage_units", frozenset(u.strip().lower() for u in self.voltage_units))


# ---------------------------------------------------------------------------
# Name patterns
# ---------------------------------------------------------------------------


def _phase_pattern(letter: str) -> "re.Pattern[str]":
    # 'UA', 'Va', 'U A', 'V_A', 'Phase A', 'phase_a' ... anywhere in the name
    return re.compile(rf"(?:[UV]|Phase)[_\s]*{letter}", flags=re.IGNORECASE)


# Evaluated in this order; the first match decides the tag of a channel.
PHASE_PATTERNS: Tuple[Tuple[PhaseTag, "re.Pattern[str]"], ...] = tuple(
    (phase, _phase_pattern(phase.value)) for phase in PHASES
)


def match_phase(name: str) -> PhaseTag:
    """Return the phase a channel name denotes, or ``PhaseTag.UNKNOWN``."""
    for phase, pat in PHASE_PATTERNS:
        if pat.search(name or ""):
            return phase
    return PhaseTag.UNKNOWN


def is_voltage_unit(unit: str, *, config: Optional[ClassifierConfig] = None) -> bool:
    cfg = config or ClassifierConfig()
    token = (unit or "").strip().lower()
    return bool(token) and token in cfg.voltage_units


# ---------------------------------------------------------------------------
# Candidate passes
# ---------------------------------------------------------------------------


def _ordered_channels(
    channels: Iterable[ChannelDescriptor],
    channel_count: Optional[int],
) -> List[ChannelDescriptor]:
    ordered = sorted(channels, key=lambda ch: ch.index)
    seen = set()
    for ch in ordered:
        if ch.index in seen:
            raise ValueError(f"Duplicate channel index {ch.index} in channel descriptors.")
        seen.add(ch.index)
    if channel_count is not None:
        ordered = [ch for ch in ordered if ch.index < int(channel_count)]
    return ordered


def find_name_candidates(
    voltage_channels: Sequence[ChannelDescriptor],
    warnings: List[str],
) -> Dict[PhaseTag, PhaseCandidate]:
    """Name-pattern pass over voltage channels sorted by ascending index."""
    found: Dict[PhaseTag, PhaseCandidate] = {}
    for ch in voltage_channels:
        phase = match_phase(ch.name)
        if phase is PhaseTag.UNKNOWN:
            continue
        if phase in found:
            kept = found[phase]
            warnings.append(
                f"WARNING: channel {ch.index} '{ch.name}' also matches phase {phase.value}; "
                f"keeping channel {kept.channel_index} '{kept.channel_name}'"
            )
            continue
        found[phase] = PhaseCandidate(channel_index=ch.index, phase=phase, channel_name=ch.name, source="name")
    return found


def find_positional_candidates(
    voltage_channels: Sequence[ChannelDescriptor],
) -> Dict[PhaseTag, PhaseCandidate]:
    """First three voltage channels in ascending index order become A, B, C."""
    if len(voltage_channels) < 3:
        return {}
    return {
        phase: PhaseCandidate(channel_index=ch.index, phase=phase, channel_name=ch.name, source="position")
        for phase, ch in zip(PHASES, voltage_channels[:3])
    }


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _from_mapping(
    mapping: PhaseMapping,
    ordered: Sequence[ChannelDescriptor],
) -> ClassifiedChannelSet:
    known = {ch.index for ch in ordered}
    triple = (int(mapping.index_a), int(mapping.index_b), int(mapping.index_c))
    found = {p: i for p, i in zip(PHASES, triple) if i in known}
    missing = tuple(p for p, i in zip(PHASES, triple) if i not in known)
    if missing:
        raise ClassificationFailure(
            "Explicit phase mapping refers to unknown channel(s): "
            + ", ".join(f"{p.value}={triple[PHASES.index(p)]}" for p in missing),
            found=found,
            missing=missing,
        )
    return ClassifiedChannelSet(
        index_a=triple[0],
        index_b=triple[1],
        index_c=triple[2],
        warnings=(f"explicit phase mapping: A=ch{triple[0]}, B=ch{triple[1]}, C=ch{triple[2]}",),
    )


def classify_phase_channels(
    channels: Iterable[ChannelDescriptor],
    *,
    config: Optional[ClassifierConfig] = None,
    mapping: Optional[PhaseMapping] = None,
    channel_count: Optional[int] = None,
) -> ClassifiedChannelSet:
    """Resolve the phase-A/B/C voltage channels of one record.

    Parameters
    ----------
    channels : iterable of ChannelDescriptor
        Analog channel descriptors, in any order.
    config : ClassifierConfig, optional
        Unit allow-list and fallback switch.
    mapping : PhaseMapping, optional
        When all three indices are set, they are used directly (no heuristic).
    channel_count : int, optional
        Only descriptors with ``index < channel_count`` are considered.

    Returns
    -------
    ClassifiedChannelSet
        Complete A/B/C triple with diagnostic warnings.

    Raises
    ------
    ClassificationFailure
        When fewer than three phases are resolved. Carries the partial result
        in ``found`` for diagnostics; nothing partial is ever returned.
    """
    cfg = config or ClassifierConfig()
    ordered = _ordered_channels(channels, channel_count)

    if mapping is not None and mapping.is_explicit:
        return _from_mapping(mapping, ordered)

    warnings: List[str] = []
    voltage_channels = [ch for ch in ordered if is_voltage_unit(ch.unit, config=cfg)]
    n_skipped = len(ordered) - len(voltage_channels)
    warnings.append(f"{len(voltage_channels)} voltage channel(s), {n_skipped} non-voltage channel(s) skipped")

    candidates = find_name_candidates(voltage_channels, warnings)

    # Fallback only when the name pass found no phase at all (not one or two).
    if not candidates and cfg.positional_fallback:
        candidates = find_positional_candidates(voltage_channels)
        if candidates:
            warnings.append("WARNING: no channel name matched a phase; assigned A, B, C by channel order")

    missing = tuple(p for p in PHASES if p not in candidates)
    if missing:
        found = {p: c.channel_index for p, c in candidates.items()}
        found_txt = ", ".join(f"{p.value}=ch{i}" for p, i in found.items()) or "none"
        raise ClassificationFailure(
            "Failed to automatically determine the indices of all three phase voltages "
            f"(found: {found_txt}; missing: {', '.join(p.value for p in missing)}). "
            "Specify the phase indices explicitly with PhaseMapping.",
            found=found,
            missing=missing,
        )

    for p in PHASES:
        c = candidates[p]
        warnings.append(f"phase {p.value}: ch{c.channel_index} '{c.channel_name}' (by {c.source})")

    return ClassifiedChannelSet(
        index_a=candidates[PhaseTag.A].channel_index,
        index_b=candidates[PhaseTag.B].channel_index,
        index_c=candidates[PhaseTag.C].channel_index,
        warnings=tuple(warnings),
    )
