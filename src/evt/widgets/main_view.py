"""Main view: filter bar, variable table and a two-part status bar."""

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Input, Label, LoadingIndicator

from evt.widgets.env_table import EnvTable


class MainView(Vertical):
    """The selected group's variables with its overlay state underneath.

    The status bar carries the overlay or draft state on the left and a
    ``shown / total`` row count on the right, so a capped or filtered table
    is visible at a glance.
    """

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Filter keys…", id="search")
        yield EnvTable(id="env-table")
        yield LoadingIndicator(id="loading")
        with Horizontal(id="status-bar"):
            yield Label("", id="status", markup=False)
            yield Label("", id="row-count")

    def show_status(self, text: str, shown: int, total: int) -> None:
        self.query_one("#status", Label).update(text)
        noun = "var" if total == 1 else "vars"
        count = f"{total} {noun}" if shown == total else f"{shown} / {total} {noun}"
        self.query_one("#row-count", Label).update(count)
