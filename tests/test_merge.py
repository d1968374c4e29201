"""Unit tests for folding active groups and overlaying them on the baseline."""

from evt.config import EnvGroup
from evt.constants import DISPLAY_LIMIT, UNNAMED_GROUP
from evt.domain.merge import fold_groups, group_label, merge_groups
from evt.domain.overlay import compute_overlay
from evt.models import EnvVar


def _group(group_id: str, content: str, name: str | None = None) -> EnvGroup:
    return EnvGroup(id=group_id, name=group_id.upper() if name is None else name, content=content)


class TestMergeGroups:
    def test_later_group_wins(self):
        """
        Given group A with FOO=1 followed by group B with FOO=2
        When the groups are merged
        Then FOO is 2, and reversing the order makes it 1
        """
        a, b = _group("a", "FOO=1"), _group("b", "FOO=2")
        assert merge_groups([a, b]) == {"FOO": "2"}
        assert merge_groups([b, a]) == {"FOO": "1"}

    def test_key_order_is_first_introduction(self):
        a = _group("a", "X=1\nY=2")
        b = _group("b", "Z=3\nX=9")
        assert list(merge_groups([a, b]).items()) == [("X", "9"), ("Y", "2"), ("Z", "3")]

    def test_draft_overrides_persisted_content(self):
        """
        Given a group whose persisted content differs from its unsaved draft
        When the groups are merged with the draft table
        Then the draft text is used
        """
        a = _group("a", "FOO=saved")
        assert merge_groups([a], {"a": "FOO=draft"}) == {"FOO": "draft"}

    def test_drafts_of_other_groups_are_ignored(self):
        a = _group("a", "FOO=saved")
        assert merge_groups([a], {"zzz": "FOO=other"}) == {"FOO": "saved"}

    def test_no_groups(self):
        assert merge_groups([]) == {}


class TestFoldGroups:
    def test_sources_name_last_writer(self):
        a = _group("a", "FOO=1\nBAR=1", name="base")
        b = _group("b", "FOO=2", name="local")

        merged = fold_groups([a, b])

        assert merged.sources == {"FOO": "local", "BAR": "base"}
        assert merged.group_names == ["base", "local"]

    def test_blank_name_is_labelled(self):
        assert group_label(_group("a", "", name="  ")) == UNNAMED_GROUP


class TestComputeOverlay:
    def test_baseline_order_then_overlay_only_keys(self):
        """
        Given baseline [A=1, B=2] and an overlay {B: 9, C: 3} from group "dev"
        When the overlay is computed
        Then rows are A=1, B=9, C=3 and only B and C are attributed to dev
        """
        baseline = [EnvVar("A", "1"), EnvVar("B", "2")]
        merged = fold_groups([_group("g", "B=9\nC=3", name="dev")])

        view = compute_overlay(baseline, merged)

        assert [(r.key, r.value) for r in view.rows] == [("A", "1"), ("B", "9"), ("C", "3")]
        assert [r.source for r in view.rows] == [None, "dev", "dev"]
        assert [r.overridden for r in view.rows] == [False, True, False]
        assert view.sources == {"B": "dev", "C": "dev"}
        assert view.extra_keys == ["C"]

    def test_empty_overlay_is_baseline(self):
        baseline = [EnvVar("A", "1"), EnvVar("B", "2")]
        view = compute_overlay(baseline, fold_groups([]))
        assert [(r.key, r.value, r.source) for r in view.rows] == [
            ("A", "1", None),
            ("B", "2", None),
        ]
        assert view.group_names == []

    def test_repeated_baseline_key_appears_once(self):
        baseline = [EnvVar("A", "1"), EnvVar("B", "2"), EnvVar("A", "3")]
        view = compute_overlay(baseline, fold_groups([]))
        assert [(r.key, r.value) for r in view.rows] == [("A", "3"), ("B", "2")]

    def test_filter_is_case_insensitive_on_key(self):
        baseline = [EnvVar("PATH", "/bin"), EnvVar("HOME", "/home")]
        merged = fold_groups([_group("g", "API_PATH=x")])

        view = compute_overlay(baseline, merged)

        assert [r.key for r in view.filtered("path")] == ["PATH", "API_PATH"]
        assert view.sources == {"API_PATH": "G"}

    def test_visible_caps_rendered_rows(self):
        """
        Given a baseline larger than the display limit
        When visible rows are requested
        Then only the first DISPLAY_LIMIT rows are returned while the view keeps all
        """
        baseline = [EnvVar(f"K{i}", str(i)) for i in range(DISPLAY_LIMIT + 20)]

        view = compute_overlay(baseline, fold_groups([]))

        assert len(view.visible()) == DISPLAY_LIMIT
        assert len(view.rows) == DISPLAY_LIMIT + 20
