"""Name prompt — modal for naming a new group or renaming an existing one."""

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label

from evt.constants import CURRENT_GROUP_NAME

_HINT = "Enter to save · Escape to cancel"


class NamePromptScreen(ModalScreen[str | None]):
    """Modal asking for a group name.

    Dismisses with the trimmed name on save, or None on cancel or when the
    name is unchanged.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
    ]

    def __init__(self, title: str, current_name: str = "") -> None:
        super().__init__()
        self._title = title
        self._current_name = current_name

    def compose(self) -> ComposeResult:
        with Vertical(id="name-container"):
            yield Label(self._title, id="name-title")
            yield Input(value=self._current_name, placeholder="Group name", id="name-input")
            yield Label(_HINT, id="name-hint")

    def on_mount(self) -> None:
        input_widget = self.query_one("#name-input", Input)
        input_widget.focus()
        input_widget.cursor_position = len(self._current_name)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        name = event.value.strip()

        if not name:
            self._show_error("Name cannot be empty")
            return

        if name == self._current_name:
            self.dismiss(None)
            return

        if name.lower() == CURRENT_GROUP_NAME.lower():
            self._show_error(f"'{name}' is reserved")
            return

        self.dismiss(name)

    def _show_error(self, message: str) -> None:
        hint = self.query_one("#name-hint", Label)
        hint.update(f"[red]{escape(message)}[/]")
        self.set_timer(2.0, lambda: hint.update(_HINT))

    def action_cancel(self) -> None:
        self.dismiss(None)
