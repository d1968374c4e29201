"""Effective environment view: active groups overlaid on the live baseline.

Pure and cheap; the UI recomputes it on every keystroke of the filter box.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from evt.constants import DISPLAY_LIMIT
from evt.domain.merge import MergedGroups
from evt.models import EnvVar


@dataclass
class EffectiveVar:
    key: str
    value: str
    source: str | None = None
    overridden: bool = False

    def matches(self, query: str) -> bool:
        return query.strip().lower() in self.key.lower()


@dataclass
class EffectiveView:
    rows: list[EffectiveVar] = field(default_factory=list)
    sources: dict[str, str] = field(default_factory=dict)
    group_names: list[str] = field(default_factory=list)

    def filtered(self, query: str) -> list[EffectiveVar]:
        """Rows whose key contains *query*, case-insensitively."""
        if not query.strip():
            return list(self.rows)
        return [row for row in self.rows if row.matches(query)]

    def visible(self, query: str = "", limit: int = DISPLAY_LIMIT) -> list[EffectiveVar]:
        """Filtered rows capped at *limit* for rendering."""
        return self.filtered(query)[:limit]

    @property
    def extra_keys(self) -> list[str]:
        return [row.key for row in self.rows if row.source is not None and not row.overridden]


def compute_overlay(baseline: Sequence[EnvVar], merged: MergedGroups) -> EffectiveView:
    """Overlay *merged* on top of *baseline*.

    Baseline keys come first in baseline order, with the overlay value when
    one exists.  Overlay-only keys follow in the order the merge first
    introduced them.  Only overlaid keys carry a source.
    """
    # A repeated baseline key keeps its first position and its last value.
    base: dict[str, str] = {}
    for var in baseline:
        base[var.key] = var.value

    rows: list[EffectiveVar] = []
    for key, value in base.items():
        if key in merged.values:
            rows.append(
                EffectiveVar(
                    key=key,
                    value=merged.values[key],
                    source=merged.sources.get(key),
                    overridden=True,
                )
            )
        else:
            rows.append(EffectiveVar(key=key, value=value))
    for key, value in merged.values.items():
        if key not in base:
            rows.append(EffectiveVar(key=key, value=value, source=merged.sources.get(key)))
    return EffectiveView(
        rows=rows,
        sources=dict(merged.sources),
        group_names=list(merged.group_names),
    )
