"""Two-phase apply/disable of the active group set.

Every toggle follows the same protocol:

1. compute the merged content for the *next* active set (drafts included);
2. hand it to the backend (or disable, when the next set is empty);
3. only if the backend succeeds, commit the next set to the workspace.

Each backend call takes a ticket from a monotonically increasing counter.
When a call resolves after a newer one has been issued its outcome is
discarded, so a slow early toggle can never overwrite a later one.
"""

import itertools
import logging
from dataclasses import dataclass

from evt.backends import ApplyResponse, BackendError, EnvBackend
from evt.workspace import Workspace

logger = logging.getLogger(__name__)


@dataclass
class ApplyResult:
    committed: bool
    restart_hint: str | None = None
    stale: bool = False


class ApplyCoordinator:
    def __init__(self, workspace: Workspace, backend: EnvBackend) -> None:
        self._workspace = workspace
        self._backend = backend
        self._tickets = itertools.count(1)
        self._latest = 0

    def _issue(self) -> int:
        self._latest = next(self._tickets)
        return self._latest

    def _is_latest(self, ticket: int) -> bool:
        return ticket == self._latest

    def next_active_ids(self, group_id: str, enable: bool) -> list[str]:
        current = self._workspace.active_ids
        if enable:
            return current if group_id in current else [*current, group_id]
        return [gid for gid in current if gid != group_id]

    async def _push(self, ticket: int, next_ids: list[str]) -> ApplyResponse:
        """Send the merged content for *next_ids* to the backend."""
        if next_ids:
            content = self._workspace.merged_content(next_ids)
            logger.info("Applying %d group(s) [ticket %d]", len(next_ids), ticket)
            response = await self._backend.apply_merged_content(content)
        else:
            logger.info("Disabling all groups [ticket %d]", ticket)
            response = await self._backend.disable_all_groups()
        return response

    async def toggle(self, group_id: str, enable: bool) -> ApplyResult:
        """Enable or disable *group_id*, committing only on backend success.

        Raises BackendError (and leaves the workspace as it was) when the
        latest issued call fails.
        """
        self._workspace.require_custom(group_id)
        next_ids = self.next_active_ids(group_id, enable)
        ticket = self._issue()
        try:
            response = await self._push(ticket, next_ids)
        except BackendError:
            if not self._is_latest(ticket):
                logger.info("Discarding failure of superseded call [ticket %d]", ticket)
                return ApplyResult(committed=False, stale=True)
            logger.warning("Backend call failed for group %s [ticket %d]", group_id, ticket)
            raise

        if not self._is_latest(ticket):
            logger.info("Discarding superseded result [ticket %d]", ticket)
            return ApplyResult(committed=False, stale=True)

        self._workspace.commit_active(next_ids)
        return ApplyResult(committed=True, restart_hint=response.restart_hint)

    async def save_and_apply(self, group_id: str) -> ApplyResult:
        """Persist the group's draft, then make sure the group is enabled."""
        self._workspace.save_draft(group_id)
        return await self.toggle(group_id, True)

    async def delete_group(self, group_id: str) -> ApplyResult:
        """Remove a custom group, withdrawing it from the backend first.

        Removal is best-effort: the group is deleted locally even when the
        backend call fails, after which the BackendError is re-raised for
        the caller to report.
        """
        self._workspace.require_custom(group_id)
        if not self._workspace.is_active(group_id):
            self._workspace.remove_group(group_id)
            return ApplyResult(committed=True)

        next_ids = self.next_active_ids(group_id, False)
        try:
            response = await self._push(self._issue(), next_ids)
        except BackendError:
            logger.warning("Backend call failed while deleting group %s", group_id)
            self._workspace.remove_group(group_id)
            raise
        self._workspace.remove_group(group_id)
        return ApplyResult(committed=True, restart_hint=response.restart_hint)
