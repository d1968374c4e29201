"""Variable form — modal for adding a variable or editing one's key and value."""

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Input, Label

from evt.domain.dotenv import is_valid_key
from evt.models import EnvVar

_HINT = "Tab to switch field · Enter to save · Escape to cancel"


class VarFormScreen(ModalScreen[EnvVar | None]):
    """Modal with a key and a value field.

    Opened empty to add a variable, or prefilled to edit one; changing the
    key renames the variable.  Dismisses with the new EnvVar on save, or
    None on cancel.  Inline validation rejects malformed keys and keys that
    already belong to another variable, before anything is written.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
    ]

    def __init__(
        self,
        existing_keys: set[str],
        var: EnvVar | None = None,
        group_name: str = "",
        focus_key: bool = False,
    ) -> None:
        super().__init__()
        self._existing_keys = existing_keys
        self._var = var
        self._group_name = group_name
        self._focus_key = focus_key

    def compose(self) -> ComposeResult:
        title = f"Edit  {self._var.key}" if self._var else "Add variable"
        if self._group_name:
            title = f"{title}  ·  {self._group_name}"
        with Vertical(id="var-container"):
            yield Label(title, id="var-title", markup=False)
            yield Input(value=self._var.key if self._var else "", placeholder="KEY", id="var-key")
            yield Input(value=self._var.value if self._var else "", placeholder="value", id="var-value")
            yield Label("", id="var-error")
            yield Label(_HINT, id="var-hint")

    def on_mount(self) -> None:
        if self._var is None or self._focus_key:
            key_input = self.query_one("#var-key", Input)
            key_input.focus()
            key_input.cursor_position = len(key_input.value)
            return
        value_input = self.query_one("#var-value", Input)
        value_input.focus()
        value_input.cursor_position = len(self._var.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "var-key":
            self.query_one("#var-value", Input).focus()
            return
        self._try_save()

    def _try_save(self) -> None:
        key = self.query_one("#var-key", Input).value.strip()
        value = self.query_one("#var-value", Input).value
        previous_key = self._var.key if self._var else None

        if not key:
            self._show_error("Key cannot be blank")
            return
        if not is_valid_key(key):
            self._show_error(f"'{key}' is not a valid name (letters, digits, _)")
            return
        if key != previous_key and key in self._existing_keys:
            self._show_error(f"'{key}' already exists")
            return

        self.dismiss(EnvVar(key=key, value=value))

    def _show_error(self, message: str) -> None:
        self.query_one("#var-error", Label).update(f"[red]{escape(message)}[/]")
        self.query_one("#var-key", Input).focus()

    def action_cancel(self) -> None:
        self.dismiss(None)
