"""Horizontal group bar: the Current view followed by every custom group."""

from dataclasses import dataclass

from textual.app import ComposeResult
from textual.events import Click
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from evt.constants import CURRENT_GROUP_ID

ACTIVE_MARK = "●"


@dataclass(frozen=True)
class GroupTab:
    group_id: str
    label: str
    active: bool = False
    dirty: bool = False

    @property
    def text(self) -> str:
        text = f"{self.label}*" if self.dirty else self.label
        return f"{text} {ACTIVE_MARK}" if self.active else text


class GroupTabs(Widget):
    """A bar showing every group, with the selected one highlighted.

    Renders as:  Current ▸  api ●  [db* ●]  scratch

    ``●`` marks groups that are applied; ``*`` marks an unsaved draft.
    Both ``tabs`` and ``current_group`` are reactives kept in sync by the
    app.  Clicking a tab posts ``GroupTabs.TabClicked``.
    """

    class TabClicked(Message):
        """Posted when the user clicks a group tab."""

        def __init__(self, group_id: str) -> None:
            super().__init__()
            self.group_id = group_id

    can_focus = False

    tabs: reactive[tuple[GroupTab, ...]] = reactive((), init=False)
    current_group: reactive[str] = reactive(CURRENT_GROUP_ID, init=False)

    def _make_tab(self, tab: GroupTab) -> Static:
        classes = "tab active" if tab.group_id == self.current_group else "tab"
        if tab.active:
            classes += " applied"
        widget = Static(tab.text, classes=classes, markup=False)
        widget.data_group = tab.group_id  # type: ignore[attr-defined]
        return widget

    def compose(self) -> ComposeResult:
        yield Static("Groups ▸", id="group-tabs-label", classes="tab-label")

    async def watch_tabs(self, tabs: tuple[GroupTab, ...]) -> None:
        """Rebuild the tab row when groups are added, renamed or toggled."""
        # Await removal so the DOM is clean before mounting new tabs.
        await self.query(".tab").remove()
        await self.mount(*[self._make_tab(tab) for tab in tabs])

    def watch_current_group(self, group_id: str) -> None:
        """Highlight the selected group tab."""
        for tab in self.query(".tab"):
            if getattr(tab, "data_group", None) == group_id:
                tab.add_class("active")
            else:
                tab.remove_class("active")

    def on_click(self, event: Click) -> None:
        widget = event.widget
        if widget is None or not widget.has_class("tab"):
            return
        group_id: str | None = getattr(widget, "data_group", None)
        if group_id is None:
            return
        self.post_message(GroupTabs.TabClicked(group_id))
