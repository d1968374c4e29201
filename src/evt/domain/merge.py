"""Fold active groups into one overlay mapping, last group wins."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from evt.config import EnvGroup
from evt.constants import UNNAMED_GROUP
from evt.domain.dotenv import parse_dotenv


@dataclass
class MergedGroups:
    """Result of folding groups in precedence order.

    ``values`` keeps first-introduction key order across the whole fold;
    ``sources`` maps each key to the display name of the last group that
    assigned it.
    """

    values: dict[str, str] = field(default_factory=dict)
    sources: dict[str, str] = field(default_factory=dict)
    group_names: list[str] = field(default_factory=list)


def group_label(group: EnvGroup) -> str:
    return group.name.strip() or UNNAMED_GROUP


def fold_groups(
    groups: Sequence[EnvGroup],
    drafts: Mapping[str, str] | None = None,
) -> MergedGroups:
    """Merge *groups* (lowest precedence first) into a single mapping.

    A group's unsaved draft in *drafts* is used instead of its persisted
    content, so applying never sees stale text.
    """
    drafts = drafts or {}
    merged = MergedGroups()
    for group in groups:
        label = group_label(group)
        merged.group_names.append(label)
        content = drafts.get(group.id, group.content)
        for key, value in parse_dotenv(content).items():
            merged.values[key] = value
            merged.sources[key] = label
    return merged


def merge_groups(
    groups: Sequence[EnvGroup],
    drafts: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Return only the merged key → value mapping of ``fold_groups``."""
    return fold_groups(groups, drafts).values
