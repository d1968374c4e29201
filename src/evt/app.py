"""Main application entry point."""

import logging

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.reactive import reactive
from textual.widgets import DataTable, Footer, Header, Input, LoadingIndicator

from evt.apply import ApplyCoordinator, ApplyResult
from evt.backends import BackendError, EnvBackend, MockBackend
from evt.config import EnvGroup, load_db, save_db
from evt.constants import (
    APP_TITLE,
    APPLIED_HINT,
    CURRENT_GROUP_ID,
    CURRENT_GROUP_NAME,
    DISABLED_HINT,
    SAVED_HINT,
    THEMES,
)
from evt.domain.dotenv import diff_vars, parse_dotenv
from evt.domain.merge import group_label
from evt.domain.overlay import EffectiveVar, EffectiveView
from evt.models import EnvVar
from evt.screens.delete_confirm import DeleteConfirmScreen
from evt.screens.group_picker import GroupPickerScreen
from evt.screens.info import InfoScreen, integration_text
from evt.screens.name_prompt import NamePromptScreen
from evt.screens.raw_edit import RawEditScreen
from evt.screens.save_confirm import SaveConfirmScreen
from evt.screens.var_form import VarFormScreen
from evt.widgets.env_table import EnvTable
from evt.widgets.group_tabs import GroupTab, GroupTabs
from evt.widgets.main_view import MainView
from evt.workspace import Workspace, WorkspaceError

logger = logging.getLogger(__name__)


class EvtApp(App):
    """evt — environment variable groups TUI."""

    CSS_PATH = "app.tcss"
    TITLE = APP_TITLE

    loading: reactive[bool] = reactive(False)
    selected_group: reactive[str] = reactive("")
    hide_values: reactive[bool] = reactive(True, init=False)

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("?", "toggle_help", "Help"),
        Binding("/", "focus_search", "Filter"),
        Binding("escape", "clear_search", show=False),
        Binding("g", "jump_top", show=False),
        Binding("G", "jump_bottom", show=False),
        Binding("y", "copy_value", "Copy"),
        Binding("h", "toggle_values", "Show/Hide"),
        Binding("space", "toggle_apply", "Apply"),
        Binding("A", "save_and_apply", show=False),
        Binding("i", "edit_var", "Edit"),
        Binding("r", "rename_var", show=False),
        Binding("o", "add_var", "Add"),
        Binding("d", "delete_var", "dd Delete"),
        Binding("E", "edit_raw", "Raw"),
        Binding("s", "save_draft", "Save"),
        Binding("z", "discard_draft", show=False),
        Binding("n", "new_group", "New"),
        Binding("R", "rename_group", show=False),
        Binding("X", "delete_group", show=False),
        Binding("p", "pick_group", "Groups"),
        Binding("e", "cycle_group_next", show=False),
        Binding("ctrl+r", "refresh", show=False),
        Binding("I", "show_integration", show=False),
    ]

    def __init__(
        self,
        backend: EnvBackend | None = None,
        workspace: Workspace | None = None,
        _use_store: bool = False,
    ) -> None:
        super().__init__()
        if workspace is None:
            workspace = Workspace(load_db(), persist=save_db) if _use_store else Workspace()
        self._workspace = workspace
        self._backend: EnvBackend = backend or MockBackend()
        self._coordinator = ApplyCoordinator(workspace, self._backend)
        self._baseline: list[EnvVar] = []
        self._filter: str = ""
        self._g_pressed: bool = False
        self._d_pressed: bool = False
        self._theme_ready: bool = False

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    def compose(self) -> ComposeResult:
        yield Header()
        yield GroupTabs(id="group-tabs")
        yield MainView(id="main")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#search", Input).display = False
        self.query_one("#loading", LoadingIndicator).display = False
        mode = self._workspace.settings.theme_mode
        if mode in THEMES:
            self.theme = THEMES[mode]
        self._theme_ready = True
        self.selected_group = CURRENT_GROUP_ID
        self.hide_values = self._workspace.settings.hide_values_by_default
        self._load_baseline()

    @work(exclusive=True, group="baseline")
    async def _load_baseline(self) -> None:
        """Fetch the live environment the overlay is drawn on."""
        self.loading = True
        try:
            self._baseline = await self._backend.get_current_environment()
        except BackendError as exc:
            logger.warning("Could not read the current environment: %s", exc)
            self.notify(f"Could not read the environment: {exc}", severity="error", timeout=8)
            self._baseline = []
        finally:
            self.loading = False
        self._refresh_table()
        self._get_table().focus()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    @property
    def _on_current(self) -> bool:
        return self.selected_group == CURRENT_GROUP_ID

    def _get_table(self) -> EnvTable:
        return self.query_one("#env-table", EnvTable)

    def _group_tabs(self) -> list[GroupTab]:
        tabs = [GroupTab(CURRENT_GROUP_ID, CURRENT_GROUP_NAME)]
        for group in self._workspace.custom_groups():
            tabs.append(
                GroupTab(
                    group.id,
                    group_label(group),
                    active=self._workspace.is_active(group.id),
                    dirty=self._workspace.is_dirty(group.id),
                )
            )
        return tabs

    def _refresh_tabs(self) -> None:
        tabs = self.query_one("#group-tabs", GroupTabs)
        tabs.current_group = self.selected_group
        tabs.tabs = tuple(self._group_tabs())

    def _refresh_table(self) -> None:
        """Repopulate the table for the selected group, applying the filter."""
        if not self.selected_group:
            return
        if self._on_current:
            view = self._workspace.effective_view(self._baseline)
            rows = view.visible(self._filter)
            status, total = self._overlay_status(view), len(view.rows)
        else:
            rows = [
                EffectiveVar(key=v.key, value=v.value)
                for v in self._workspace.group_vars(self.selected_group, self._filter)
            ]
            status = self._group_status(self.selected_group)
            total = len(self._workspace.group_vars(self.selected_group))
        self.query_one(MainView).show_status(status, len(rows), total)
        self._get_table().load(rows, hide_values=self.hide_values)
        self._update_subtitle()

    def _after_change(self) -> None:
        self._refresh_tabs()
        self._refresh_table()

    def _overlay_status(self, view: EffectiveView) -> str:
        if not view.group_names:
            return "No groups applied"
        overridden = sum(1 for row in view.rows if row.overridden)
        return (
            f"Overlay: {' → '.join(view.group_names)}"
            f" · {overridden} overridden · {len(view.extra_keys)} added"
        )

    def _group_status(self, group_id: str) -> str:
        status = "Applied" if self._workspace.is_active(group_id) else "Not applied"
        if self._workspace.is_dirty(group_id):
            status += " · unsaved draft (s save, z discard)"
        return status

    def _update_subtitle(self) -> None:
        group = self._workspace.get(self.selected_group)
        label = group_label(group) if group is not None else CURRENT_GROUP_NAME
        count = len(self._workspace.active_ids)
        noun = "group" if count == 1 else "groups"
        self.sub_title = f"[{label}] · {count} active {noun}"

    # ------------------------------------------------------------------
    # Watchers and events
    # ------------------------------------------------------------------

    def watch_loading(self, loading: bool) -> None:
        """Show or hide the loading overlay."""
        indicator = self.query_one("#loading", LoadingIndicator)
        indicator.display = loading
        self.query_one("#env-table", EnvTable).display = not loading

    def watch_theme(self, theme: str) -> None:
        """Persist light/dark whenever the theme is changed."""
        if not self._theme_ready:
            return
        self._workspace.set_theme_mode("light" if theme.endswith("light") else "dark")

    def watch_hide_values(self, hide: bool) -> None:
        self._refresh_table()

    def watch_selected_group(self, group_id: str) -> None:
        """Switch the table to another group; the filter does not carry over."""
        if not group_id:
            return
        self._filter = ""
        search = self.query_one("#search", Input)
        search.value = ""
        search.display = False
        self._refresh_tabs()
        self._refresh_table()

    def on_group_tabs_tab_clicked(self, event: GroupTabs.TabClicked) -> None:
        event.stop()
        self.selected_group = event.group_id

    def on_env_table_row_double_clicked(self, event: EnvTable.RowDoubleClicked) -> None:
        event.stop()
        self.action_edit_var()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Enter on a row opens the edit form."""
        event.stop()
        self.action_edit_var()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search":
            self._filter = event.value
            self._refresh_table()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search":
            self._get_table().focus()

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _selected_custom(self) -> EnvGroup | None:
        """The selected custom group, or None (with a hint) on the Current view."""
        if self._on_current:
            self.notify("Current is read-only. Pick a group with p or Tab.", timeout=3)
            return None
        return self._workspace.get(self.selected_group)

    def action_cycle_group_next(self) -> None:
        """Advance to the next group (wraps around to Current)."""
        ids = [tab.group_id for tab in self._group_tabs()]
        idx = ids.index(self.selected_group) if self.selected_group in ids else 0
        self.selected_group = ids[(idx + 1) % len(ids)]
        self._get_table().focus()

    def action_pick_group(self) -> None:
        def on_pick(group_id: str | None) -> None:
            if group_id is not None:
                self.selected_group = group_id
            self._get_table().focus()

        self.push_screen(GroupPickerScreen(self._group_tabs(), self.selected_group), on_pick)

    def action_new_group(self) -> None:
        def on_name(name: str | None) -> None:
            if name is not None:
                try:
                    group = self._workspace.create_group(name)
                except WorkspaceError as exc:
                    self.notify(str(exc), severity="error", timeout=4)
                else:
                    self.selected_group = group.id
                    self.notify(f"Created {group.name}", timeout=2)
            self._get_table().focus()

        self.push_screen(NamePromptScreen("New group"), on_name)

    def action_rename_group(self) -> None:
        group = self._selected_custom()
        if group is None:
            return

        def on_name(name: str | None) -> None:
            if name is not None:
                try:
                    self._workspace.rename_group(group.id, name)
                except WorkspaceError as exc:
                    self.notify(str(exc), severity="error", timeout=4)
                else:
                    self._after_change()
            self._get_table().focus()

        self.push_screen(NamePromptScreen("Rename group", group.name), on_name)

    def action_delete_group(self) -> None:
        group = self._selected_custom()
        if group is None:
            return
        detail = ""
        if self._workspace.is_active(group.id):
            detail = "Applied: its variables are withdrawn from the shell first."

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self._delete_group(group.id, group_label(group))
            else:
                self._get_table().focus()

        self.push_screen(
            DeleteConfirmScreen("group", group_label(group), detail),
            on_confirm,
        )

    @work
    async def _delete_group(self, group_id: str, name: str) -> None:
        try:
            result = await self._coordinator.delete_group(group_id)
        except WorkspaceError as exc:
            self.notify(str(exc), severity="error", timeout=4)
            return
        except BackendError as exc:
            self.notify(f"Deleted {name}, but disable failed: {exc}", severity="error", timeout=8)
        else:
            self.notify(result.restart_hint or f"Deleted {name}", timeout=3)
        self.selected_group = CURRENT_GROUP_ID
        self._after_change()
        self._get_table().focus()

    def action_toggle_apply(self) -> None:
        group = self._selected_custom()
        if group is None:
            return
        self._toggle_group(group.id, not self._workspace.is_active(group.id))

    @work
    async def _toggle_group(self, group_id: str, enable: bool) -> None:
        verb = "Apply" if enable else "Disable"
        try:
            result = await self._coordinator.toggle(group_id, enable)
        except (BackendError, WorkspaceError) as exc:
            self.notify(f"{verb} failed: {exc}", severity="error", timeout=8)
            return
        self._report(result, APPLIED_HINT if enable else DISABLED_HINT)

    def action_save_and_apply(self) -> None:
        group = self._selected_custom()
        if group is None:
            return
        self._save_and_apply(group.id)

    @work
    async def _save_and_apply(self, group_id: str) -> None:
        try:
            result = await self._coordinator.save_and_apply(group_id)
        except (BackendError, WorkspaceError) as exc:
            self.notify(f"Apply failed: {exc}", severity="error", timeout=8)
            self._after_change()
            return
        self._report(result, APPLIED_HINT)

    def _report(self, result: ApplyResult, fallback: str) -> None:
        if not result.committed:
            return
        self.notify(result.restart_hint or fallback, timeout=3)
        self._after_change()

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def _open_var_form(self, focus_key: bool = False) -> None:
        group = self._selected_custom()
        if group is None:
            return
        key = self._get_table().selected_key()
        if key is None:
            return
        values = parse_dotenv(self._workspace.content_of(group.id))
        current = values.get(key, "")

        def on_save(var: EnvVar | None) -> None:
            if var is not None and (var.key != key or var.value != current):
                self._apply_set(group.id, key, var)
            self._get_table().focus()

        self.push_screen(
            VarFormScreen(
                set(values), EnvVar(key=key, value=current), group_label(group), focus_key
            ),
            on_save,
        )

    def action_edit_var(self) -> None:
        """Open the form on the selected variable's value."""
        self._open_var_form()

    def action_rename_var(self) -> None:
        """Open the form on the selected variable's key."""
        self._open_var_form(focus_key=True)

    def action_add_var(self) -> None:
        group = self._selected_custom()
        if group is None:
            return
        existing = set(parse_dotenv(self._workspace.content_of(group.id)))

        def on_save(var: EnvVar | None) -> None:
            if var is not None:
                self._apply_set(group.id, None, var)
            self._get_table().focus()

        self.push_screen(VarFormScreen(existing, None, group_label(group)), on_save)

    def _apply_set(self, group_id: str, previous_key: str | None, var: EnvVar) -> None:
        """Write one variable into the group and persist it.

        On rejection nothing changes and an error notification is shown.
        """
        try:
            self._workspace.set_var(group_id, previous_key, var.key, var.value)
        except WorkspaceError as exc:
            self.notify(str(exc), severity="error", timeout=4)
            return
        if previous_key is None:
            self.notify(f"Added {var.key}", timeout=2)
        elif previous_key != var.key:
            self.notify(f"Renamed {previous_key} to {var.key}", timeout=2)
        else:
            self.notify(f"Updated {var.key}", timeout=2)
        self._after_change()

    def action_delete_var(self) -> None:
        """Implement vim-style dd: delete the selected variable on second d press."""
        if not self._d_pressed:
            self._d_pressed = True
            self.set_timer(0.5, self._reset_d)
            return
        self._d_pressed = False
        group = self._selected_custom()
        if group is None:
            return
        key = self._get_table().selected_key()
        if key is None:
            return

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                try:
                    self._workspace.delete_var(group.id, key)
                except WorkspaceError as exc:
                    self.notify(str(exc), severity="error", timeout=4)
                else:
                    self.notify(f"Deleted {key}", timeout=2)
                    self._after_change()
            self._get_table().focus()

        self.push_screen(DeleteConfirmScreen("variable", key), on_confirm)

    def _reset_d(self) -> None:
        self._d_pressed = False

    def action_edit_raw(self) -> None:
        group = self._selected_custom()
        if group is None:
            return

        def on_keep(text: str | None) -> None:
            if text is not None:
                self._workspace.set_draft(group.id, text)
                self._after_change()
            self._get_table().focus()

        self.push_screen(
            RawEditScreen(group_label(group), self._workspace.content_of(group.id)), on_keep
        )

    def action_save_draft(self) -> None:
        group = self._selected_custom()
        if group is None:
            return
        if not self._workspace.is_dirty(group.id):
            self.notify("No unsaved changes", timeout=2)
            return
        changes = diff_vars(
            parse_dotenv(group.content), parse_dotenv(self._workspace.content_of(group.id))
        )

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self._workspace.save_draft(group.id)
                self.notify(SAVED_HINT, timeout=2)
                self._after_change()
            self._get_table().focus()

        self.push_screen(SaveConfirmScreen(group_label(group), changes), on_confirm)

    def action_discard_draft(self) -> None:
        group = self._selected_custom()
        if group is None or not self._workspace.is_dirty(group.id):
            return
        self._workspace.discard_draft(group.id)
        self.notify("Draft discarded", timeout=2)
        self._after_change()

    # ------------------------------------------------------------------
    # General
    # ------------------------------------------------------------------

    def action_toggle_help(self) -> None:
        self.push_screen(InfoScreen())

    def action_show_integration(self) -> None:
        self._show_integration()

    @work
    async def _show_integration(self) -> None:
        try:
            info = await self._backend.get_integration_info()
        except BackendError as exc:
            self.notify(f"Integration info unavailable: {exc}", severity="error", timeout=8)
            return
        self.push_screen(InfoScreen(integration_text(info), title="Shell integration"))

    def action_refresh(self) -> None:
        self._load_baseline()

    def action_toggle_values(self) -> None:
        self.hide_values = not self.hide_values
        self._workspace.set_hide_values(self.hide_values)

    def action_focus_search(self) -> None:
        """Show and focus the filter bar."""
        search = self.query_one("#search", Input)
        search.display = True
        search.focus()

    def action_clear_search(self) -> None:
        """Clear the active filter and hide the filter bar."""
        search = self.query_one("#search", Input)
        if search.value:
            search.value = ""
            self._filter = ""
            self._refresh_table()
        search.display = False
        self._get_table().focus()

    def action_jump_top(self) -> None:
        """Vim-style gg: the first g arms the chord, the second jumps to row 0."""
        if self._g_pressed:
            self._g_pressed = False
            self._get_table().move_cursor(row=0)
        else:
            self._g_pressed = True
            self.set_timer(0.5, self._reset_g)

    def _reset_g(self) -> None:
        self._g_pressed = False

    def action_jump_bottom(self) -> None:
        table = self._get_table()
        table.move_cursor(row=table.row_count - 1)

    def action_copy_value(self) -> None:
        """Copy the selected row's real value, masked or not."""
        value = self._get_table().selected_value()
        if value is None:
            return
        self.copy_to_clipboard(value)
        self.notify("Copied value to clipboard", timeout=2)
