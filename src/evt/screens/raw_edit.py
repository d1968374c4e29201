"""Raw text editor — edit a group's whole dotenv text as a draft.

The result only becomes a draft in the workspace; nothing is persisted
until the user saves it.  Drafts are picked up immediately by the effective
view and by apply.
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import Label, TextArea


class RawEditScreen(ModalScreen[str | None]):
    """Modal TextArea over a group's dotenv text.

    ``ctrl+s`` keeps the edited text (dismisses with it); Escape discards
    the edit (dismisses with None).
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
        Binding("ctrl+s", "keep", "Keep draft", show=True, priority=True),
    ]

    def __init__(self, group_name: str, text: str) -> None:
        super().__init__()
        self._group_name = group_name
        self._text = text

    def compose(self) -> ComposeResult:
        yield Label(f"  {self._group_name}", id="raw-title", markup=False)
        yield TextArea(self._text, id="raw-text", show_line_numbers=True)
        yield Label("  ctrl+s keep as draft · Escape discard edit", id="raw-hint")

    def on_mount(self) -> None:
        self.query_one("#raw-text", TextArea).focus()

    def action_keep(self) -> None:
        self.dismiss(self.query_one("#raw-text", TextArea).text)

    def action_cancel(self) -> None:
        self.dismiss(None)
