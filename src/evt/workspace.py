"""In-memory editing session over the persisted groups.

``Workspace`` owns the loaded ``Database`` plus a table of unsaved drafts
keyed by group id.  Edits are validated before anything is mutated; every
committed change is handed to the ``persist`` callback (``save_db`` in the
app, nothing in tests).
"""

import logging
from collections.abc import Callable, Sequence

from evt.config import Database, EnvGroup, Settings, new_group_id, now_ms
from evt.constants import CURRENT_GROUP_NAME
from evt.domain.dotenv import is_valid_key, parse_dotenv, parse_vars, render_raw
from evt.domain.editor import delete_var, rename_var, upsert_var
from evt.domain.merge import MergedGroups, fold_groups
from evt.domain.overlay import EffectiveView, compute_overlay
from evt.models import EnvVar, GroupKind

logger = logging.getLogger(__name__)


class WorkspaceError(Exception):
    """Raised when an edit is rejected.  Nothing has been changed."""


class Workspace:
    def __init__(
        self,
        db: Database | None = None,
        persist: Callable[[Database], None] | None = None,
    ) -> None:
        self.db = db if db is not None else Database()
        self.db.reconcile()
        self._persist = persist
        self.drafts: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    @property
    def groups(self) -> list[EnvGroup]:
        return self.db.groups

    @property
    def settings(self) -> Settings:
        return self.db.settings

    @property
    def active_ids(self) -> list[str]:
        return list(self.db.settings.active_group_ids)

    def get(self, group_id: str) -> EnvGroup | None:
        return next((g for g in self.db.groups if g.id == group_id), None)

    def custom_groups(self) -> list[EnvGroup]:
        return [g for g in self.db.groups if g.is_custom]

    def require_custom(self, group_id: str) -> EnvGroup:
        group = self.get(group_id)
        if group is None:
            raise WorkspaceError(f"Unknown group '{group_id}'")
        if not group.is_custom:
            raise WorkspaceError(f"The {group.name} group cannot be edited")
        return group

    def is_active(self, group_id: str) -> bool:
        return group_id in self.db.settings.active_group_ids

    def active_groups(self, active_ids: Sequence[str] | None = None) -> list[EnvGroup]:
        """Custom groups in precedence order (the order of *active_ids*)."""
        ids = self.db.settings.active_group_ids if active_ids is None else active_ids
        by_id = {g.id: g for g in self.custom_groups()}
        return [by_id[gid] for gid in dict.fromkeys(ids) if gid in by_id]

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    def content_of(self, group_id: str) -> str:
        """The draft if one exists, otherwise the persisted content."""
        if group_id in self.drafts:
            return self.drafts[group_id]
        group = self.get(group_id)
        return group.content if group is not None else ""

    def is_dirty(self, group_id: str) -> bool:
        return group_id in self.drafts

    def set_draft(self, group_id: str, text: str) -> None:
        group = self.require_custom(group_id)
        if text == group.content:
            self.drafts.pop(group_id, None)
        else:
            self.drafts[group_id] = text

    def discard_draft(self, group_id: str) -> None:
        self.drafts.pop(group_id, None)

    def save_draft(self, group_id: str) -> None:
        self.save_content(group_id, self.content_of(group_id))

    def save_content(self, group_id: str, content: str) -> None:
        group = self.require_custom(group_id)
        group.content = content
        group.updated_at = now_ms()
        self.drafts.pop(group_id, None)
        self._save()

    # ------------------------------------------------------------------
    # Group lifecycle
    # ------------------------------------------------------------------

    def create_group(self, name: str) -> EnvGroup:
        trimmed = name.strip()
        if not trimmed:
            raise WorkspaceError("Group name cannot be blank")
        if trimmed.lower() == CURRENT_GROUP_NAME.lower():
            raise WorkspaceError(f"'{trimmed}' is reserved")
        group = EnvGroup(id=new_group_id(), name=trimmed, kind=GroupKind.CUSTOM)
        self.db.groups.append(group)
        self._save()
        logger.info("Created group %s", group.id)
        return group

    def rename_group(self, group_id: str, name: str) -> None:
        trimmed = name.strip()
        if not trimmed:
            raise WorkspaceError("Group name cannot be blank")
        group = self.require_custom(group_id)
        group.name = trimmed
        group.updated_at = now_ms()
        self._save()

    def remove_group(self, group_id: str) -> None:
        """Drop a custom group locally, along with its draft and activation."""
        self.require_custom(group_id)
        self.db.groups = [g for g in self.db.groups if g.id != group_id]
        self.drafts.pop(group_id, None)
        self.commit_active([gid for gid in self.active_ids if gid != group_id])
        logger.info("Removed group %s", group_id)

    def commit_active(self, active_ids: Sequence[str]) -> None:
        """Record a new active set and keep every ``enabled`` flag in step."""
        self.db.settings.active_group_ids = list(active_ids)
        self.db.reconcile()
        self._save()

    def set_hide_values(self, hide: bool) -> None:
        self.db.settings.hide_values_by_default = hide
        self._save()

    def set_theme_mode(self, mode: str) -> None:
        if mode == self.db.settings.theme_mode:
            return
        self.db.settings.theme_mode = mode  # type: ignore[assignment]
        self._save()

    # ------------------------------------------------------------------
    # Variable edits
    # ------------------------------------------------------------------

    def group_vars(self, group_id: str, query: str = "") -> list[EnvVar]:
        vars = parse_vars(self.content_of(group_id))
        if not query.strip():
            return vars
        return [v for v in vars if v.matches(query)]

    def set_var(self, group_id: str, previous_key: str | None, key: str, value: str) -> None:
        """Add, edit or rename one variable and persist the group.

        Raises WorkspaceError for an invalid key or a key that already
        belongs to a different entry.
        """
        self.require_custom(group_id)
        new_key = key.strip()
        if not is_valid_key(new_key):
            raise WorkspaceError(f"'{new_key}' is not a valid variable name")
        content = self.content_of(group_id)
        existing = parse_dotenv(content)
        if new_key != previous_key and new_key in existing:
            raise WorkspaceError(f"'{new_key}' already exists")

        if previous_key and previous_key != new_key and previous_key in existing:
            content = rename_var(content, previous_key, new_key, value)
        else:
            content = upsert_var(content, new_key, value)
        self.save_content(group_id, content)

    def delete_var(self, group_id: str, key: str) -> None:
        self.require_custom(group_id)
        self.save_content(group_id, delete_var(self.content_of(group_id), key))

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def merged(self, active_ids: Sequence[str] | None = None) -> MergedGroups:
        return fold_groups(self.active_groups(active_ids), self.drafts)

    def merged_content(self, active_ids: Sequence[str] | None = None) -> str:
        return render_raw(self.merged(active_ids).values)

    def effective_view(self, baseline: Sequence[EnvVar]) -> EffectiveView:
        return compute_overlay(baseline, self.merged())

    def _save(self) -> None:
        if self._persist is not None:
            self._persist(self.db)
