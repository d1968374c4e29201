"""Delete confirmation for a variable or a whole group."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label, Static


class DeleteConfirmScreen(ModalScreen[bool]):
    """Asks before deleting *name*, a ``"variable"`` or a ``"group"``.

    *warning* is shown under the question when the deletion has side
    effects, e.g. an applied group being withdrawn from the shell first.
    ``y`` deletes, ``n``/escape keeps; the Keep button has focus.
    """

    BINDINGS = [
        Binding("escape", "keep", show=False),
        Binding("n", "keep", show=False),
        Binding("y", "delete", show=False),
        Binding("left,right", "switch_button", show=False),
    ]

    def __init__(self, kind: str, name: str, warning: str = "") -> None:
        super().__init__()
        self._kind = kind
        self._target = name
        self._warning = warning

    def compose(self) -> ComposeResult:
        with Vertical(id="delete-container"):
            yield Static(f"Delete {self._kind}", id="delete-title")
            yield Label(self._target, id="delete-target", markup=False)
            if self._warning:
                yield Label(self._warning, id="delete-warning", markup=False)
            with Horizontal(id="delete-buttons"):
                yield Button("Delete", variant="error", id="delete-yes")
                yield Button("Keep", variant="primary", id="delete-no")

    def on_mount(self) -> None:
        self.query_one("#delete-no", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "delete-yes")

    def action_switch_button(self) -> None:
        yes = self.query_one("#delete-yes", Button)
        no = self.query_one("#delete-no", Button)
        (no if yes.has_focus else yes).focus()

    def action_delete(self) -> None:
        self.dismiss(True)

    def action_keep(self) -> None:
        self.dismiss(False)
