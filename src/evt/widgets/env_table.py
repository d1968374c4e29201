"""Environment variable table widget."""

from collections.abc import Sequence

from rich.text import Text
from textual.binding import Binding
from textual.events import Click
from textual.message import Message
from textual.widgets import DataTable

from evt.constants import HIDDEN_VALUE, TABLE_COLUMNS
from evt.domain.overlay import EffectiveVar


class EnvTable(DataTable):
    """Scrollable table of variables with vim-style navigation.

    Rows are keyed by the variable's key name.  Values can be masked; the
    real values are kept aside so copying still works.  Overlaid keys show
    the group that supplied them in the Source column.

    Double-clicking a row posts ``EnvTable.RowDoubleClicked`` so the app
    can open the edit modal without any keyboard interaction.
    """

    class RowDoubleClicked(Message):
        """Posted when the user double-clicks a row."""

    BINDINGS = [
        Binding("j", "cursor_down", show=False),
        Binding("k", "cursor_up", show=False),
        Binding("tab", "app.cycle_group_next", show=False),
    ]

    def __init__(self, *, id: str | None = None) -> None:
        super().__init__(id=id)
        self._values: dict[str, str] = {}

    def action_cursor_down(self) -> None:
        """Move down one row, wrapping from the last row to the first."""
        if self.row_count == 0:
            return
        if self.cursor_row == self.row_count - 1:
            self.move_cursor(row=0)
        else:
            super().action_cursor_down()

    def action_cursor_up(self) -> None:
        """Move up one row, wrapping from the first row to the last."""
        if self.row_count == 0:
            return
        if self.cursor_row == 0:
            self.move_cursor(row=self.row_count - 1)
        else:
            super().action_cursor_up()

    def on_mount(self) -> None:
        self.cursor_type = "row"
        self.zebra_stripes = True
        self.add_columns(*TABLE_COLUMNS)

    def load(self, rows: Sequence[EffectiveVar], hide_values: bool = False) -> None:
        """Replace table contents, keeping the cursor on the same row index."""
        cursor = self.cursor_row
        self.clear()
        self._values = {}
        for i, row in enumerate(rows, start=1):
            self._values[row.key] = row.value
            value_cell = HIDDEN_VALUE if hide_values else row.value
            source_cell: str | Text = ""
            if row.source is not None:
                source_cell = Text(row.source, style="bold cyan" if row.overridden else "cyan")
            self.add_row(str(i), row.key, value_cell, source_cell, key=row.key)
        if self.row_count:
            self.move_cursor(row=min(cursor, self.row_count - 1))

    def selected_key(self) -> str | None:
        """Return the key of the highlighted row, or None for an empty table."""
        if self.row_count == 0:
            return None
        return str(self.get_cell_at(self.cursor_coordinate._replace(column=1)))

    def selected_value(self) -> str | None:
        """Return the real (unmasked) value of the highlighted row."""
        key = self.selected_key()
        if key is None:
            return None
        return self._values.get(key)

    def on_click(self, event: Click) -> None:
        """Post RowDoubleClicked on a double-click (chain == 2)."""
        if event.chain == 2 and self.row_count > 0:
            self.post_message(EnvTable.RowDoubleClicked())
