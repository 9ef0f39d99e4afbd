"""
DashboardState - Typed, read-only view of the host dashboard's data model.

The host exposes a loosely-shaped ``metaboliteData`` object that is not guaranteed
to be fully populated when the assistant reads it. This module pins down which
fields are consumed and treats every one of them as optional.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import polars as pl

__all__ = ["DashboardState", "read_field", "as_records"]


def read_field(entity: Any, name: str, default: Any = None) -> Any:
    """
    Read a field from a mapping-like or attribute-style entity.

    Args:
        entity: Mapping (JSON object) or object with attributes
        name: Field name as used by the host (e.g. "class", "normalMean")
        default: Value returned when the field is absent

    Returns:
        Field value or default
    """
    if entity is None:
        return default
    if isinstance(entity, Mapping):
        return entity.get(name, default)
    return getattr(entity, name, default)


def as_records(value: Any) -> list[Any] | None:
    """
    Normalize a host list field into a list of records.

    Accepts lists/tuples and polars DataFrames (converted to row dicts). Anything else,
    including strings and mappings, is treated as absent.

    Returns:
        List of records, or None when the value is not list-like
    """
    if isinstance(value, pl.DataFrame):
        return value.to_dicts()
    if isinstance(value, (str, bytes)) or isinstance(value, Mapping):
        return None
    if isinstance(value, Sequence):
        return list(value)
    return None


@dataclass(frozen=True)
class DashboardState:
    """
    Host dashboard data consumed by the assistant.

    ``metabolites`` and ``filtered`` are None when the host did not provide a list,
    which is distinct from an empty list (filters that exclude everything).
    """

    filters: dict[str, Any] = field(default_factory=dict)
    summary: Any = None
    sample_meta: list[Any] = field(default_factory=list)
    metabolites: list[Any] | None = None
    filtered: list[Any] | None = None
    selected: Any = None

    @classmethod
    def from_mapping(cls, data: "Mapping[str, Any] | DashboardState | None") -> "DashboardState":
        """
        Build a DashboardState from the host's camelCase data object.

        Args:
            data: Host data mapping (keys: filters, summary, sampleMeta, metabolites,
                  filtered, selected), an existing DashboardState, or None

        Returns:
            DashboardState with absent or malformed fields defaulted
        """
        if isinstance(data, DashboardState):
            return data
        if not isinstance(data, Mapping):
            return cls()

        filters = data.get("filters")
        return cls(
            filters=dict(filters) if isinstance(filters, Mapping) else {},
            summary=data.get("summary") or None,
            sample_meta=as_records(data.get("sampleMeta")) or [],
            metabolites=as_records(data.get("metabolites")),
            filtered=as_records(data.get("filtered")),
            selected=data.get("selected") or None,
        )
