"""Read-only overlay screens: keyboard help and shell integration details."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import Label, Static

from evt.backends import IntegrationInfo
from evt.constants import HELP_TEXT


def integration_text(info: IntegrationInfo) -> str:
    """Plain-text body describing where applied variables are written."""
    lines = [f" Files: {info.ev_dir}", ""]
    if info.source_lines:
        lines.append(" Add one line to your shell rc file:")
        lines.extend(f"   {shell:<5} {line}" for shell, line in info.source_lines.items())
        lines.append("")
    lines.append(f" {info.note}")
    return "\n".join(lines)


class InfoScreen(ModalScreen):
    """Modal overlay displaying a block of text; any key or click closes it."""

    BINDINGS = [
        Binding("escape", "dismiss", show=False),
        Binding("?", "dismiss", show=False),
        Binding("q", "dismiss", show=False),
    ]

    def __init__(self, body: str = HELP_TEXT, title: str = "") -> None:
        super().__init__()
        self._body = body
        self._title = title

    def compose(self) -> ComposeResult:
        children = [Label(self._title, id="info-title")] if self._title else []
        yield Container(
            *children,
            Static(self._body, id="info-text", markup=False),
            id="info-container",
        )

    def on_click(self) -> None:
        self.dismiss()
