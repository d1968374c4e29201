"""Environment backend protocol and implementations.

A backend is the privileged side of the app: it reports the live
environment and durably applies (or disables) the merged variables of the
active groups.  Every call may fail with ``BackendError``.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from evt.constants import APPLIED_HINT, DISABLED_HINT, MOCK_BASELINE
from evt.domain.dotenv import parse_dotenv
from evt.models import EnvVar
from evt.shell.integration import DEFAULT_EV_DIR, ShellIntegration, ShellIntegrationError

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when a backend operation fails.  Local state is untouched."""


@dataclass
class ApplyResponse:
    restart_hint: str | None = None


@dataclass
class IntegrationInfo:
    config_dir: str
    ev_dir: str
    source_zsh: str | None = None
    source_bash: str | None = None
    source_fish: str | None = None
    note: str = ""

    @property
    def source_lines(self) -> dict[str, str]:
        """Available ``source`` snippets keyed by shell name."""
        lines = {"zsh": self.source_zsh, "bash": self.source_bash, "fish": self.source_fish}
        return {shell: line for shell, line in lines.items() if line}


class EnvBackend(Protocol):
    """Protocol that all environment backends must satisfy."""

    async def get_current_environment(self) -> list[EnvVar]:
        """Return the live environment in the order the OS reports it."""
        ...

    async def apply_merged_content(self, content: str) -> ApplyResponse:
        """Make the merged dotenv *content* the applied set of variables."""
        ...

    async def disable_all_groups(self) -> ApplyResponse:
        """Withdraw every applied variable."""
        ...

    async def get_integration_info(self) -> IntegrationInfo:
        """Describe how shells pick up applied variables."""
        ...


@dataclass
class MockBackend:
    """In-memory backend seeded from MOCK_BASELINE.

    Records what was applied instead of touching the real environment.  Set
    ``fail_with`` to make every call raise ``BackendError`` with that message.
    """

    baseline: dict[str, str] = field(default_factory=lambda: dict(MOCK_BASELINE))
    fail_with: str | None = None
    applied: str | None = None
    disabled: bool = True
    calls: list[str] = field(default_factory=list)

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if self.fail_with is not None:
            raise BackendError(self.fail_with)

    async def get_current_environment(self) -> list[EnvVar]:
        self._check("get_current_environment")
        return [EnvVar(key=k, value=v) for k, v in self.baseline.items()]

    async def apply_merged_content(self, content: str) -> ApplyResponse:
        self._check("apply_merged_content")
        self.applied = content
        self.disabled = False
        return ApplyResponse(restart_hint=APPLIED_HINT)

    async def disable_all_groups(self) -> ApplyResponse:
        self._check("disable_all_groups")
        self.applied = None
        self.disabled = True
        return ApplyResponse(restart_hint=DISABLED_HINT)

    async def get_integration_info(self) -> IntegrationInfo:
        self._check("get_integration_info")
        return IntegrationInfo(
            config_dir="/home/dev",
            ev_dir="/home/dev/.config/ev",
            source_zsh='source "/home/dev/.config/ev/ev.zsh"',
            source_bash='source "/home/dev/.config/ev/ev.sh"',
            source_fish='source "/home/dev/.config/ev/ev.fish"',
            note="Mock backend: nothing is written to disk.",
        )


class ShellBackend:
    """Backend for macOS/Linux that writes sourceable shell scripts.

    The live environment is this process's ``os.environ``.  File I/O runs in
    a worker thread so the UI stays responsive.
    """

    def __init__(self, ev_dir: Path = DEFAULT_EV_DIR) -> None:
        self._integration = ShellIntegration(ev_dir)

    async def get_current_environment(self) -> list[EnvVar]:
        return [EnvVar(key=k, value=v) for k, v in os.environ.items()]

    async def apply_merged_content(self, content: str) -> ApplyResponse:
        values = parse_dotenv(content)
        try:
            await asyncio.to_thread(self._integration.write, values)
        except ShellIntegrationError as exc:
            raise BackendError(str(exc)) from exc
        logger.info("Applied %d variables to %s", len(values), self._integration.ev_dir)
        return ApplyResponse(restart_hint=APPLIED_HINT)

    async def disable_all_groups(self) -> ApplyResponse:
        try:
            await asyncio.to_thread(self._integration.clear)
        except ShellIntegrationError as exc:
            raise BackendError(str(exc)) from exc
        logger.info("Cleared shell integration in %s", self._integration.ev_dir)
        return ApplyResponse(restart_hint=DISABLED_HINT)

    async def get_integration_info(self) -> IntegrationInfo:
        lines = self._integration.source_lines()
        return IntegrationInfo(
            config_dir=str(Path.home()),
            ev_dir=str(self._integration.ev_dir),
            source_zsh=lines["zsh"],
            source_bash=lines["bash"],
            source_fish=lines["fish"],
            note=self._integration.note,
        )
