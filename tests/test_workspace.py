"""Unit tests for the editing session: groups, drafts and variable edits."""

import pytest

from evt.config import Database, EnvGroup, Settings, current_group
from evt.constants import CURRENT_GROUP_ID
from evt.models import EnvVar
from evt.workspace import Workspace, WorkspaceError


def _workspace(*groups: EnvGroup, active: list[str] | None = None) -> tuple[Workspace, list]:
    saves: list[Database] = []
    db = Database(
        settings=Settings(active_group_ids=active or []),
        groups=[current_group(), *groups],
    )
    return Workspace(db, persist=saves.append), saves


class TestLookup:
    def test_default_workspace_has_only_current(self):
        ws = Workspace()
        assert [g.id for g in ws.groups] == [CURRENT_GROUP_ID]
        assert ws.custom_groups() == []

    def test_require_custom_rejects_current(self):
        ws, _ = _workspace()
        with pytest.raises(WorkspaceError):
            ws.require_custom(CURRENT_GROUP_ID)

    def test_require_custom_rejects_unknown(self):
        ws, _ = _workspace()
        with pytest.raises(WorkspaceError):
            ws.require_custom("missing")

    def test_active_groups_follow_active_id_order(self):
        """
        Given groups a, b in sidebar order but activated as b then a
        When active_groups is called
        Then they come back in activation (precedence) order
        """
        a, b = EnvGroup(id="a", name="A"), EnvGroup(id="b", name="B")
        ws, _ = _workspace(a, b, active=["b", "a"])
        assert [g.id for g in ws.active_groups()] == ["b", "a"]


class TestGroupLifecycle:
    def test_create_group(self):
        ws, saves = _workspace()

        group = ws.create_group("  api  ")

        assert group.name == "api"
        assert group.is_custom
        assert ws.get(group.id) is group
        assert len(saves) == 1

    @pytest.mark.parametrize("name", ["", "   ", "current", "Current"])
    def test_create_rejects_blank_or_reserved(self, name):
        ws, saves = _workspace()
        with pytest.raises(WorkspaceError):
            ws.create_group(name)
        assert saves == []

    def test_rename_group(self):
        ws, _ = _workspace(EnvGroup(id="a", name="old"))
        ws.rename_group("a", "new")
        assert ws.get("a").name == "new"

    def test_rename_rejects_blank(self):
        ws, _ = _workspace(EnvGroup(id="a", name="old"))
        with pytest.raises(WorkspaceError):
            ws.rename_group("a", " ")
        assert ws.get("a").name == "old"

    def test_remove_group_clears_draft_and_activation(self):
        """
        Given an active group with an unsaved draft
        When remove_group is called
        Then the group, its draft and its active id are gone
        """
        ws, _ = _workspace(EnvGroup(id="a", name="A"), EnvGroup(id="b", name="B"), active=["a", "b"])
        ws.set_draft("a", "X=1")

        ws.remove_group("a")

        assert ws.get("a") is None
        assert not ws.is_dirty("a")
        assert ws.active_ids == ["b"]

    def test_commit_active_syncs_enabled(self):
        ws, saves = _workspace(EnvGroup(id="a", name="A"), EnvGroup(id="b", name="B"))

        ws.commit_active(["b"])

        assert ws.get("a").enabled is False
        assert ws.get("b").enabled is True
        assert saves

    def test_set_hide_values_persists(self):
        ws, saves = _workspace()
        ws.set_hide_values(False)
        assert ws.settings.hide_values_by_default is False
        assert len(saves) == 1

    def test_set_theme_mode_skips_unchanged(self):
        ws, saves = _workspace()
        ws.set_theme_mode("system")
        assert saves == []
        ws.set_theme_mode("dark")
        assert ws.settings.theme_mode == "dark"
        assert len(saves) == 1


class TestDrafts:
    def test_draft_shadows_content(self):
        ws, saves = _workspace(EnvGroup(id="a", name="A", content="X=1"))

        ws.set_draft("a", "X=2")

        assert ws.content_of("a") == "X=2"
        assert ws.get("a").content == "X=1"
        assert ws.is_dirty("a")
        assert saves == []

    def test_draft_equal_to_content_is_dropped(self):
        ws, _ = _workspace(EnvGroup(id="a", name="A", content="X=1"))
        ws.set_draft("a", "X=2")
        ws.set_draft("a", "X=1")
        assert not ws.is_dirty("a")

    def test_save_draft(self):
        ws, saves = _workspace(EnvGroup(id="a", name="A", content="X=1"))
        ws.set_draft("a", "X=2")

        ws.save_draft("a")

        assert ws.get("a").content == "X=2"
        assert not ws.is_dirty("a")
        assert len(saves) == 1

    def test_discard_draft(self):
        ws, _ = _workspace(EnvGroup(id="a", name="A", content="X=1"))
        ws.set_draft("a", "X=2")
        ws.discard_draft("a")
        assert ws.content_of("a") == "X=1"

    def test_current_group_cannot_take_a_draft(self):
        ws, _ = _workspace()
        with pytest.raises(WorkspaceError):
            ws.set_draft(CURRENT_GROUP_ID, "X=1")


class TestVariableEdits:
    def test_add_var(self):
        ws, saves = _workspace(EnvGroup(id="a", name="A", content="# api\nX=1"))

        ws.set_var("a", None, "Y", "two words")

        assert ws.get("a").content == '# api\nX=1\n\nY="two words"'
        assert len(saves) == 1

    def test_edit_value_in_place(self):
        ws, _ = _workspace(EnvGroup(id="a", name="A", content="X=1\nY=2"))
        ws.set_var("a", "X", "X", "9")
        assert ws.get("a").content == "X=9\nY=2"

    def test_rename_key(self):
        ws, _ = _workspace(EnvGroup(id="a", name="A", content="X=1\nY=2"))
        ws.set_var("a", "X", "Z", "1")
        assert ws.group_vars("a") == [EnvVar("Y", "2"), EnvVar("Z", "1")]

    def test_rename_onto_existing_key_is_rejected(self):
        """
        Given a group with X and Y
        When X is renamed to Y
        Then WorkspaceError is raised and the content is unchanged
        """
        ws, saves = _workspace(EnvGroup(id="a", name="A", content="X=1\nY=2"))

        with pytest.raises(WorkspaceError, match="already exists"):
            ws.set_var("a", "X", "Y", "1")

        assert ws.get("a").content == "X=1\nY=2"
        assert saves == []

    def test_add_existing_key_is_rejected(self):
        ws, _ = _workspace(EnvGroup(id="a", name="A", content="X=1"))
        with pytest.raises(WorkspaceError):
            ws.set_var("a", None, "X", "2")

    @pytest.mark.parametrize("key", ["", "1X", "BAD-KEY", "A B"])
    def test_invalid_key_is_rejected(self, key):
        ws, saves = _workspace(EnvGroup(id="a", name="A"))
        with pytest.raises(WorkspaceError):
            ws.set_var("a", None, key, "v")
        assert saves == []

    def test_edit_applies_on_top_of_draft(self):
        """
        Given a group with an unsaved draft
        When a variable is set
        Then the edit is made on the draft text and the result is persisted
        """
        ws, _ = _workspace(EnvGroup(id="a", name="A", content="X=1"))
        ws.set_draft("a", "X=1\nDRAFT=yes")

        ws.set_var("a", None, "NEW", "1")

        assert ws.get("a").content == "X=1\nDRAFT=yes\n\nNEW=1"
        assert not ws.is_dirty("a")

    def test_delete_var(self):
        ws, _ = _workspace(EnvGroup(id="a", name="A", content="# c\nX=1\nY=2\n"))
        ws.delete_var("a", "X")
        assert ws.get("a").content == "# c\nY=2"

    def test_group_vars_filter(self):
        ws, _ = _workspace(EnvGroup(id="a", name="A", content="API_URL=x\nDB_URL=y\nPORT=1"))
        assert [v.key for v in ws.group_vars("a", "url")] == ["API_URL", "DB_URL"]


class TestMerging:
    def test_merged_content_uses_drafts_and_order(self):
        a = EnvGroup(id="a", name="A", content="FOO=1\nBAR=x")
        b = EnvGroup(id="b", name="B", content="FOO=2")
        ws, _ = _workspace(a, b, active=["a", "b"])
        ws.set_draft("a", "FOO=1\nBAR=hello world")

        assert ws.merged_content() == "FOO=2\nBAR=hello world"

    def test_merged_content_for_explicit_ids(self):
        a = EnvGroup(id="a", name="A", content="FOO=1")
        b = EnvGroup(id="b", name="B", content="FOO=2")
        ws, _ = _workspace(a, b, active=["a"])
        assert ws.merged_content(["b", "a"]) == "FOO=1"

    def test_effective_view(self):
        ws, _ = _workspace(EnvGroup(id="a", name="dev", content="HOME=/tmp"), active=["a"])

        view = ws.effective_view([EnvVar("HOME", "/home/me"), EnvVar("USER", "me")])

        assert [(r.key, r.value, r.source) for r in view.rows] == [
            ("HOME", "/tmp", "dev"),
            ("USER", "me", None),
        ]
