"""Save-confirm screen — shows a coloured diff of a draft before saving it."""

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, ScrollableContainer, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label

from evt.models import Change, ChangeKind


class SaveConfirmScreen(ModalScreen[bool]):
    """Modal showing the key-level diff between saved content and draft.

    Presents:
      + Added keys in green
      - Removed keys in red
      * Edited keys in blue

    Values are not shown.  A draft that only touches comments or blank lines
    shows "(no variable changes)".  Dismisses True on confirm, False on
    cancel.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
        Binding("n", "cancel", show=False),
        Binding("q", "cancel", show=False),
        Binding("y", "confirm", show=False),
        Binding("h", "focus_yes", show=False),
        Binding("left", "focus_yes", show=False),
        Binding("l", "focus_no", show=False),
        Binding("right", "focus_no", show=False),
    ]

    def __init__(self, group_name: str, changes: list[Change]) -> None:
        super().__init__()
        self._group_name = group_name
        self._changes = changes

    def compose(self) -> ComposeResult:
        with Vertical(id="save-confirm-container"):
            yield Label(f"Save {escape(self._group_name)}?", id="save-confirm-title")
            with ScrollableContainer(id="save-confirm-diff"):
                for line in self.diff_lines():
                    yield Label(line, markup=True)
            with Horizontal(id="save-confirm-buttons"):
                yield Button("Save", variant="success", id="save-confirm-yes")
                yield Button("Cancel", variant="primary", id="save-confirm-no")

    def on_mount(self) -> None:
        self.query_one("#save-confirm-no", Button).focus()

    def diff_lines(self) -> list[str]:
        lines: list[str] = []
        for change in self._changes:
            if change.kind == ChangeKind.ADD:
                lines.append(f"[green]+  {change.key}[/]")
            elif change.kind == ChangeKind.REMOVE:
                lines.append(f"[red]-  {change.key}[/]")
            else:
                lines.append(f"[blue]*  {change.key}[/]")
        return lines or ["[dim](no variable changes)[/]"]

    def has_change(self, key: str) -> bool:
        """Return True if *key* appears in the diff."""
        return any(change.key == key for change in self._changes)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "save-confirm-yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)

    def action_focus_yes(self) -> None:
        self.query_one("#save-confirm-yes", Button).focus()

    def action_focus_no(self) -> None:
        self.query_one("#save-confirm-no", Button).focus()
