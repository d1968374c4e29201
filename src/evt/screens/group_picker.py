"""Group picker modal — jump to any group in one step."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import ListItem, ListView, Static

from evt.widgets.group_tabs import ACTIVE_MARK, GroupTab


class GroupPickerScreen(ModalScreen[str | None]):
    """Modal listing the Current view and every custom group.

    Applied groups carry the ``●`` marker.  The selected group is
    pre-highlighted.  Dismisses with the chosen group id on Enter or
    ``None`` on Escape/q.
    """

    BINDINGS = [
        Binding("escape", "cancel", show=False),
        Binding("q", "cancel", show=False),
        Binding("j", "cursor_down", show=False),
        Binding("k", "cursor_up", show=False),
    ]

    DEFAULT_CSS = """
    GroupPickerScreen {
        align: center middle;
    }
    """

    def __init__(self, tabs: list[GroupTab], selected_group: str) -> None:
        super().__init__()
        self._tabs = tabs
        self._selected_group = selected_group

    def compose(self) -> ComposeResult:
        items: list[ListItem] = []
        for tab in self._tabs:
            is_selected = tab.group_id == self._selected_group
            prefix = "  → " if is_selected else "    "
            marker = f"  {ACTIVE_MARK}" if tab.active else ""
            classes = "picker-item picker-item-active" if is_selected else "picker-item"
            items.append(
                ListItem(Static(f"{prefix}{tab.label}{marker}", markup=False), classes=classes)
            )

        yield Static("  Switch group", id="picker-title")
        yield ListView(*items, id="picker-list")
        yield Static("  Enter to select · Esc/q to cancel", id="picker-hint")

    def on_mount(self) -> None:
        list_view = self.query_one("#picker-list", ListView)
        for index, tab in enumerate(self._tabs):
            if tab.group_id == self._selected_group:
                list_view.index = index
                break
        list_view.focus()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        index = event.list_view.index
        if index is None or not 0 <= index < len(self._tabs):
            return
        self.dismiss(self._tabs[index].group_id)

    def action_cursor_down(self) -> None:
        self.query_one("#picker-list", ListView).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#picker-list", ListView).action_cursor_up()

    def action_cancel(self) -> None:
        self.dismiss(None)
