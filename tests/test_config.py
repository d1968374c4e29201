"""Unit tests for store loading, validation, recovery and persistence."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from evt.config import (
    Database,
    EnvGroup,
    Settings,
    current_group,
    load_db,
    save_db,
)
from evt.constants import CURRENT_GROUP_ID, DEFAULT_MONO_FONT
from evt.models import GroupKind


def _write(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


@pytest.fixture
def store_path(tmp_path: Path, monkeypatch) -> Path:
    path = tmp_path / "evt" / "ev.json"
    monkeypatch.setattr("evt.config.STORE_PATH", path)
    return path


def _custom(group_id: str, content: str = "", name: str | None = None) -> dict:
    return {"id": group_id, "name": name or group_id, "kind": "custom", "content": content}


class TestSettings:
    def test_defaults(self):
        settings = Settings()
        assert settings.language == "en"
        assert settings.hide_values_by_default is True
        assert settings.active_group_ids == []
        assert settings.theme_mode == "system"
        assert settings.mono_font == DEFAULT_MONO_FONT

    def test_reads_camel_case_keys(self):
        settings = Settings.model_validate(
            {"hideValuesByDefault": False, "activeGroupIds": ["a"], "themeMode": "dark"}
        )
        assert settings.hide_values_by_default is False
        assert settings.active_group_ids == ["a"]
        assert settings.theme_mode == "dark"

    def test_legacy_active_group_id_is_migrated(self):
        """
        Given settings with only the legacy singular activeGroupId
        When Settings is validated
        Then it becomes a one-element active_group_ids list
        """
        settings = Settings.model_validate({"activeGroupId": "abc"})
        assert settings.active_group_ids == ["abc"]

    def test_active_group_ids_win_over_legacy(self):
        settings = Settings.model_validate({"activeGroupId": "old", "activeGroupIds": ["new"]})
        assert settings.active_group_ids == ["new"]

    def test_empty_legacy_id_is_ignored(self):
        assert Settings.model_validate({"activeGroupId": ""}).active_group_ids == []

    def test_non_string_ids_are_dropped(self):
        settings = Settings.model_validate({"activeGroupIds": ["a", 3, None, "", "b"]})
        assert settings.active_group_ids == ["a", "b"]

    def test_invalid_fields_fall_back_to_defaults(self):
        """
        Given settings whose fields have the wrong types or unknown values
        When Settings is validated
        Then each bad field takes its default and the valid ones are kept
        """
        settings = Settings.model_validate(
            {
                "language": "klingon",
                "themeMode": "neon",
                "hideValuesByDefault": "maybe",
                "monoFont": "Fira Code",
            }
        )
        assert settings.language == "en"
        assert settings.theme_mode == "system"
        assert settings.hide_values_by_default is True
        assert settings.mono_font == "Fira Code"

    def test_non_dict_input_gives_defaults(self):
        assert Settings.model_validate(["nonsense"]) == Settings()


class TestEnvGroup:
    def test_invalid_optional_fields_fall_back_to_defaults(self):
        """
        Given a group entry whose enabled, format and updatedAt fields are malformed
        When EnvGroup is validated
        Then those fields take their defaults and the content is kept
        """
        group = EnvGroup.model_validate(
            {
                "id": "a",
                "name": "api",
                "kind": "custom",
                "enabled": "maybe",
                "format": "yaml",
                "content": "API=1",
                "updatedAt": "yesterday",
            }
        )
        assert group.content == "API=1"
        assert group.enabled is False
        assert group.format == "dotenv"
        assert isinstance(group.updated_at, int)

    def test_unknown_kind_becomes_custom(self):
        group = EnvGroup.model_validate({"id": "a", "name": "api", "kind": "other"})
        assert group.kind is GroupKind.CUSTOM

    def test_non_string_content_becomes_empty(self):
        assert EnvGroup.model_validate({"id": "a", "name": "api", "content": 7}).content == ""

    def test_unusable_id_still_fails(self):
        with pytest.raises(ValidationError):
            EnvGroup.model_validate({"id": ["a"], "name": "api"})


class TestReconcile:
    def test_missing_current_group_is_inserted_first(self):
        db = Database(groups=[EnvGroup(id="a", name="A")])
        db.reconcile()
        assert [g.id for g in db.groups] == [CURRENT_GROUP_ID, "a"]

    def test_current_group_moved_to_front(self):
        db = Database(groups=[EnvGroup(id="a", name="A"), current_group()])
        db.reconcile()
        assert db.groups[0].kind is GroupKind.CURRENT

    def test_active_ids_limited_to_existing_custom_groups(self):
        """
        Given active ids naming a missing group, the current group and a duplicate
        When reconcile runs
        Then only existing custom ids remain, once each, in their original order
        """
        db = Database(
            settings=Settings(active_group_ids=["b", "ghost", CURRENT_GROUP_ID, "a", "b"]),
            groups=[current_group(), EnvGroup(id="a", name="A"), EnvGroup(id="b", name="B")],
        )
        db.reconcile()
        assert db.settings.active_group_ids == ["b", "a"]

    def test_enabled_flags_follow_active_ids(self):
        db = Database(
            settings=Settings(active_group_ids=["a"]),
            groups=[
                current_group(),
                EnvGroup(id="a", name="A", enabled=False),
                EnvGroup(id="b", name="B", enabled=True),
            ],
        )
        db.reconcile()
        flags = {g.id: g.enabled for g in db.groups}
        assert flags == {CURRENT_GROUP_ID: False, "a": True, "b": False}


class TestLoadDb:
    def test_bootstraps_missing_store(self, store_path: Path):
        """
        Given no store file exists
        When load_db is called
        Then defaults are returned and written to disk
        """
        db = load_db()

        assert [g.id for g in db.groups] == [CURRENT_GROUP_ID]
        assert store_path.exists()
        raw = json.loads(store_path.read_text())
        assert set(raw) == {"settings", "groups"}

    def test_invalid_json_falls_back_to_defaults(self, store_path: Path):
        store_path.parent.mkdir(parents=True)
        store_path.write_text("{ not json")

        db = load_db()

        assert db.settings == Settings()
        assert [g.id for g in db.groups] == [CURRENT_GROUP_ID]

    def test_non_object_root_falls_back_to_defaults(self, store_path: Path):
        _write(store_path, ["a", "b"])
        assert load_db().settings == Settings()

    def test_invalid_group_entries_are_skipped(self, store_path: Path):
        """
        Given a groups list with a valid group, a group missing its id and a non-object
        When load_db is called
        Then only the valid group survives next to the current group
        """
        _write(
            store_path,
            {"settings": {}, "groups": [_custom("a"), {"name": "no id"}, 42]},
        )

        db = load_db()

        assert [g.id for g in db.groups] == [CURRENT_GROUP_ID, "a"]

    def test_group_with_bad_optional_fields_keeps_its_content(self, store_path: Path):
        """
        Given a stored group with a malformed enabled flag and timestamp
        When load_db is called
        Then the group is loaded with its content instead of being skipped
        """
        entry = {**_custom("a", "API=1"), "enabled": "maybe", "updatedAt": "yesterday"}
        _write(store_path, {"settings": {"activeGroupIds": ["a"]}, "groups": [entry]})

        db = load_db()

        assert [g.content for g in db.groups if g.is_custom] == ["API=1"]
        assert db.groups[1].enabled is True

    def test_legacy_store_is_migrated(self, store_path: Path):
        _write(
            store_path,
            {
                "settings": {"activeGroupId": "a"},
                "groups": [_custom("a", "FOO=1"), _custom("b")],
            },
        )

        db = load_db()

        assert db.settings.active_group_ids == ["a"]
        assert db.groups[1].enabled is True
        assert db.groups[2].enabled is False

    def test_groups_not_a_list(self, store_path: Path):
        _write(store_path, {"settings": {}, "groups": "oops"})
        assert [g.id for g in load_db().groups] == [CURRENT_GROUP_ID]


class TestSaveDb:
    def test_writes_camel_case(self, store_path: Path):
        db = Database(
            settings=Settings(active_group_ids=["a"]),
            groups=[current_group(), EnvGroup(id="a", name="api", content="X=1")],
        )

        save_db(db)

        raw = json.loads(store_path.read_text())
        assert raw["settings"]["activeGroupIds"] == ["a"]
        assert raw["settings"]["hideValuesByDefault"] is True
        assert raw["groups"][1]["kind"] == "custom"
        assert "updatedAt" in raw["groups"][1]

    def test_round_trip(self, store_path: Path):
        """
        Given a database with settings and a custom group
        When it is saved and loaded again
        Then the loaded database equals the saved one
        """
        db = Database(
            settings=Settings(active_group_ids=["a"], theme_mode="dark"),
            groups=[current_group(), EnvGroup(id="a", name="api", content="X=1", enabled=True)],
        )

        save_db(db)

        assert load_db() == db
