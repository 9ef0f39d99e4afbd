"""
Snapshot Builder - Bounded, privacy-safe grounding context for the assistant.

Builds a compact summary of what the user currently sees on the dashboard. No
network calls happen here; this is pure projection of the host's read-only data.

The snapshot includes:
- Active filters and the host's own summary block
- Sample counts per group (normal / tumor / other)
- Total vs filtered metabolite counts
- Top 5 metabolites by p-value
- The currently selected metabolite, if any
"""

import math
import numbers
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from metabolite_assistant.core.dashboard_state import DashboardState, as_records, read_field

__all__ = [
    "DEFAULT_TOP_HITS_LIMIT",
    "RankedEntity",
    "SelectionDetail",
    "GroupSummary",
    "DashboardSnapshot",
    "rank_top_entities",
    "summarize_groups",
    "project_selection",
    "build_snapshot",
    "build_selection_context",
]

DEFAULT_TOP_HITS_LIMIT = 5
UNKNOWN_GROUP = "unknown"


def _is_number(value: Any) -> bool:
    """Real, non-bool, non-NaN number."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return not math.isnan(value)


@dataclass(frozen=True)
class RankedEntity:
    """Projection of a metabolite record keeping only the grounding fields."""

    metabolite: Any
    metabolite_class: Any
    hmdb: Any
    p: float
    log2fc: Any
    fc: Any

    @classmethod
    def from_entity(cls, entity: Any) -> "RankedEntity":
        return cls(
            metabolite=read_field(entity, "metabolite"),
            metabolite_class=read_field(entity, "class"),
            hmdb=read_field(entity, "hmdb"),
            p=read_field(entity, "p"),
            log2fc=read_field(entity, "log2fc"),
            fc=read_field(entity, "fc"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "metabolite": self.metabolite,
            "class": self.metabolite_class,
            "hmdb": self.hmdb,
            "p": self.p,
            "log2fc": self.log2fc,
            "fc": self.fc,
        }


@dataclass(frozen=True)
class SelectionDetail:
    """The user-selected metabolite plus its normal and tumor group means."""

    metabolite: Any
    metabolite_class: Any
    hmdb: Any
    log2fc: Any
    fc: Any
    p: Any
    normal_mean: Any
    tumor_mean: Any

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "metabolite": self.metabolite,
            "class": self.metabolite_class,
            "hmdb": self.hmdb,
            "log2fc": self.log2fc,
            "fc": self.fc,
            "p": self.p,
            "normalMean": self.normal_mean,
            "tumorMean": self.tumor_mean,
        }


@dataclass(frozen=True)
class GroupSummary:
    """Sample counts per group bucket."""

    normal: int = 0
    tumor: int = 0
    other: int = 0

    @property
    def total(self) -> int:
        return self.normal + self.tumor + self.other

    def to_dict(self) -> dict[str, int]:
        return {"normal": self.normal, "tumor": self.tumor, "other": self.other}


@dataclass(frozen=True)
class DashboardSnapshot:
    """Point-in-time summary of dashboard state. Built per request, never persisted."""

    filters: dict[str, Any]
    summary: Any
    sample_summary: GroupSummary
    total_metabolites: int
    filtered_metabolites: int
    top_hits: tuple[RankedEntity, ...]
    selected: SelectionDetail | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format sent as request context."""
        return {
            "filters": dict(self.filters),
            "summary": self.summary,
            "sampleSummary": self.sample_summary.to_dict(),
            "counts": {
                "totalMetabolites": self.total_metabolites,
                "filteredMetabolites": self.filtered_metabolites,
            },
            "topHits": [hit.to_dict() for hit in self.top_hits],
            "selected": self.selected.to_dict() if self.selected else None,
        }


def rank_top_entities(records: Any, limit: int = DEFAULT_TOP_HITS_LIMIT) -> list[RankedEntity]:
    """
    Rank metabolites by p-value (most significant first).

    Args:
        records: Sequence of metabolite records (dicts or objects). Anything that is not
                 list-like yields an empty result.
        limit: Maximum number of entities to return (default: 5)

    Returns:
        Up to ``limit`` RankedEntity projections, ascending by p. Records whose p is
        not a real number are excluded. Ties keep input order.
    """
    rows = as_records(records)
    if not rows:
        return []

    scored = [row for row in rows if _is_number(read_field(row, "p"))]
    scored.sort(key=lambda row: read_field(row, "p"))
    return [RankedEntity.from_entity(row) for row in scored[: max(limit, 0)]]


def summarize_groups(sample_meta: Any) -> GroupSummary:
    """
    Count samples per group using a case-insensitive prefix match on ``group``.

    "normal*" -> normal, "tumor*" -> tumor, everything else (including a missing or
    empty group) -> other. Every sample lands in exactly one bucket.

    Args:
        sample_meta: Sequence of sample records with a ``group`` field

    Returns:
        GroupSummary whose total equals the number of samples
    """
    normal = tumor = other = 0
    for sample in as_records(sample_meta) or []:
        group = read_field(sample, "group")
        group = group.lower() if isinstance(group, str) else ""
        if group.startswith("normal"):
            normal += 1
        elif group.startswith("tumor"):
            tumor += 1
        else:
            other += 1
    return GroupSummary(normal=normal, tumor=tumor, other=other)


def project_selection(entity: Any) -> SelectionDetail | None:
    """Project the selected metabolite, or None if nothing is selected."""
    if not entity:
        return None
    return SelectionDetail(
        metabolite=read_field(entity, "metabolite"),
        metabolite_class=read_field(entity, "class"),
        hmdb=read_field(entity, "hmdb"),
        log2fc=read_field(entity, "log2fc"),
        fc=read_field(entity, "fc"),
        p=read_field(entity, "p"),
        normal_mean=read_field(entity, "normalMean"),
        tumor_mean=read_field(entity, "tumorMean"),
    )


def build_snapshot(
    host_state: "Mapping[str, Any] | DashboardState | None",
    top_hits_limit: int = DEFAULT_TOP_HITS_LIMIT,
) -> DashboardSnapshot:
    """
    Build the grounding snapshot for the current dashboard state.

    Tolerates every host field being absent. Top hits are ranked from the filtered
    list when the host provided one, otherwise from the full metabolite list.

    Args:
        host_state: Host data mapping, DashboardState, or None
        top_hits_limit: Maximum number of top hits (default: 5)

    Returns:
        Immutable DashboardSnapshot
    """
    state = DashboardState.from_mapping(host_state)
    ranked_source = state.filtered if state.filtered is not None else state.metabolites

    return DashboardSnapshot(
        filters=dict(state.filters),
        summary=state.summary,
        sample_summary=summarize_groups(state.sample_meta),
        total_metabolites=len(state.metabolites) if state.metabolites is not None else 0,
        filtered_metabolites=len(state.filtered) if state.filtered is not None else 0,
        top_hits=tuple(rank_top_entities(ranked_source, limit=top_hits_limit)),
        selected=project_selection(state.selected),
    )


def _group_stats(sample_values: Any) -> dict[str, list[float]]:
    """Group finite sample values by lower-cased sample group."""
    stats: dict[str, list[float]] = {}
    for sample_value in as_records(sample_values) or []:
        value = read_field(sample_value, "value")
        if not _is_number(value) or math.isinf(value):
            continue
        group = read_field(sample_value, "group") or UNKNOWN_GROUP
        stats.setdefault(str(group).lower(), []).append(value)
    return stats


def build_selection_context(host_state: "Mapping[str, Any] | DashboardState | None") -> dict[str, Any] | None:
    """
    Build the narrower context used to explain the selected metabolite.

    Args:
        host_state: Host data mapping, DashboardState, or None

    Returns:
        {"selection", "groupStats", "filters"} dict, or None if nothing is selected
    """
    state = DashboardState.from_mapping(host_state)
    selection = project_selection(state.selected)
    if selection is None:
        return None

    return {
        "selection": selection.to_dict(),
        "groupStats": _group_stats(read_field(state.selected, "sampleValues")),
        "filters": dict(state.filters),
    }
