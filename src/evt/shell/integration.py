"""Shell integration files that make applied groups visible to new shells.

The merged variables are written as sourceable scripts into one directory
(``~/.config/ev`` by default).  The user adds a single ``source`` line to
their shell rc file; disabling rewrites the scripts as empty stubs so the
``source`` line stays harmless.

Raises ``ShellIntegrationError`` when the files cannot be written.
"""

import shlex
from collections.abc import Mapping
from pathlib import Path

from evt.domain.dotenv import render_raw

DEFAULT_EV_DIR = Path("~/.config/ev").expanduser()

_HEADER = "# Generated by evt. Do not edit; changes are overwritten on apply.\n"

_NOTE = (
    "macOS/Linux uses shell integration files. Add the source line to your shell rc "
    "and reload, or open a new terminal."
)


class ShellIntegrationError(Exception):
    """Raised when the integration files cannot be written or removed."""


def _fish_quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def render_posix(values: Mapping[str, str]) -> str:
    """``export KEY='value'`` lines for sh, bash and zsh."""
    lines = [f"export {key}={shlex.quote(value)}" for key, value in values.items()]
    return _HEADER + "".join(f"{line}\n" for line in lines)


def render_fish(values: Mapping[str, str]) -> str:
    """``set -gx KEY 'value'`` lines for fish."""
    lines = [f"set -gx {key} {_fish_quote(value)}" for key, value in values.items()]
    return _HEADER + "".join(f"{line}\n" for line in lines)


class ShellIntegration:
    """Writes and clears the per-shell scripts inside *ev_dir*.

    Args:
        ev_dir: Directory holding ``ev.sh``, ``ev.zsh``, ``ev.fish`` and
            ``ev.env``.  Created on demand.
    """

    def __init__(self, ev_dir: Path = DEFAULT_EV_DIR) -> None:
        self.ev_dir = ev_dir

    @property
    def scripts(self) -> dict[str, Path]:
        return {
            "bash": self.ev_dir / "ev.sh",
            "zsh": self.ev_dir / "ev.zsh",
            "fish": self.ev_dir / "ev.fish",
        }

    @property
    def env_file(self) -> Path:
        return self.ev_dir / "ev.env"

    def write(self, values: Mapping[str, str]) -> None:
        """Replace every script with exports for *values*."""
        posix = render_posix(values)
        self._write_all(
            {
                self.scripts["bash"]: posix,
                self.scripts["zsh"]: posix,
                self.scripts["fish"]: render_fish(values),
                self.env_file: render_raw(values) + "\n" if values else "",
            }
        )

    def clear(self) -> None:
        """Rewrite every script as an empty stub; remove the dotenv copy."""
        self._write_all({path: _HEADER for path in self.scripts.values()})
        try:
            self.env_file.unlink(missing_ok=True)
        except OSError as exc:
            raise ShellIntegrationError(f"Could not remove {self.env_file}: {exc}") from exc

    def source_lines(self) -> dict[str, str]:
        return {shell: f'source "{path}"' for shell, path in self.scripts.items()}

    @property
    def note(self) -> str:
        return _NOTE

    def _write_all(self, files: dict[Path, str]) -> None:
        try:
            self.ev_dir.mkdir(parents=True, exist_ok=True)
            for path, text in files.items():
                path.write_text(text)
        except OSError as exc:
            raise ShellIntegrationError(f"Could not write to {self.ev_dir}: {exc}") from exc
