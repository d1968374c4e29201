"""Persisted state: settings and groups, with validation and recovery.

Schema on disk (~/.config/evt/ev.json):

    {
        "settings": {
            "language": "en",
            "hideValuesByDefault": true,
            "activeGroupIds": ["3f2a..."],
            "themeMode": "system",
            "monoFont": "ui-monospace, ..."
        },
        "groups": [
            {"id": "current", "name": "Current", "kind": "current", "enabled": false,
             "format": "dotenv", "content": "", "updatedAt": 1700000000000},
            {"id": "3f2a...", "name": "api", "kind": "custom", "enabled": true,
             "format": "dotenv", "content": "API_URL=http://localhost", "updatedAt": ...}
        ]
    }

Loading never fails: unreadable files and bad fields fall back to defaults,
and a group entry without a usable id or name is dropped.  Older stores that
kept a single ``activeGroupId`` string are migrated to ``activeGroupIds`` on
load.
"""

import json
import logging
import time
import uuid
from pathlib import Path
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from evt.constants import CURRENT_GROUP_ID, CURRENT_GROUP_NAME, DEFAULT_MONO_FONT
from evt.models import GroupKind

logger = logging.getLogger(__name__)

STORE_PATH = Path("~/.config/evt/ev.json").expanduser()


def now_ms() -> int:
    return int(time.time() * 1000)


def new_group_id() -> str:
    return uuid.uuid4().hex


class _StoreModel(BaseModel):
    """Base for stored records: a bad optional field takes its default.

    Required fields still fail validation so the caller can drop the record.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    @field_validator("*", mode="wrap")
    @classmethod
    def _fallback_to_default(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError:
            field = cls.model_fields[info.field_name]
            if field.is_required():
                raise
            logger.warning(
                "Invalid %s field %r in store, using default", cls.__name__, info.field_name
            )
            return field.get_default(call_default_factory=True)


class Settings(_StoreModel):
    """User preferences and the ordered list of active groups.

    ``active_group_ids`` is in precedence order: lowest first, last wins.
    """

    language: Literal["en", "zh-CN", "zh-TW"] = "en"
    hide_values_by_default: bool = True
    active_group_ids: list[str] = Field(default_factory=list)
    theme_mode: Literal["system", "light", "dark"] = "system"
    mono_font: str = DEFAULT_MONO_FONT

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy_active_group(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return {}
        if "activeGroupIds" in data or "active_group_ids" in data:
            return data
        legacy = data.get("activeGroupId")
        if isinstance(legacy, str) and legacy:
            return {**data, "activeGroupIds": [legacy]}
        return data

    @field_validator("active_group_ids", mode="before")
    @classmethod
    def _keep_string_ids(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [x for x in value if isinstance(x, str) and x]


class EnvGroup(_StoreModel):
    """A named block of dotenv text.  ``content`` is the source of truth."""

    id: str
    name: str
    kind: GroupKind = GroupKind.CUSTOM
    enabled: bool = False
    format: Literal["dotenv"] = "dotenv"
    content: str = ""
    updated_at: int = Field(default_factory=now_ms)

    @property
    def is_custom(self) -> bool:
        return self.kind is GroupKind.CUSTOM


def current_group() -> EnvGroup:
    return EnvGroup(id=CURRENT_GROUP_ID, name=CURRENT_GROUP_NAME, kind=GroupKind.CURRENT)


class Database(BaseModel):
    settings: Settings = Field(default_factory=Settings)
    groups: list[EnvGroup] = Field(default_factory=lambda: [current_group()])

    def reconcile(self) -> None:
        """Enforce the store invariants in place.

        Exactly one current group, listed first; active ids restricted to
        existing custom groups without repeats; every ``enabled`` flag
        matching membership in the active ids.
        """
        current = next((g for g in self.groups if g.kind is GroupKind.CURRENT), None)
        custom = [g for g in self.groups if g.kind is GroupKind.CUSTOM]
        self.groups = [current or current_group(), *custom]

        custom_ids = {g.id for g in custom}
        active = [gid for gid in self.settings.active_group_ids if gid in custom_ids]
        self.settings.active_group_ids = list(dict.fromkeys(active))
        for group in self.groups:
            group.enabled = group.is_custom and group.id in self.settings.active_group_ids


def _parse_groups(raw: Any) -> list[EnvGroup]:
    if not isinstance(raw, list):
        return [current_group()]
    groups: list[EnvGroup] = []
    for entry in raw:
        try:
            groups.append(EnvGroup.model_validate(entry))
        except ValidationError as exc:
            logger.warning("Skipping invalid group entry in store: %s", exc.error_count())
    return groups


def load_db() -> Database:
    """Load the store, bootstrapping an empty one on first run.

    Any corruption degrades to defaults instead of raising.
    """
    if not STORE_PATH.exists():
        db = Database()
        try:
            save_db(db)
        except OSError as exc:
            logger.warning("Could not create store at %s: %s", STORE_PATH, exc)
        return db

    try:
        raw: object = json.loads(STORE_PATH.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Store at %s is unreadable, using defaults: %s", STORE_PATH, exc)
        return Database()

    if not isinstance(raw, dict):
        logger.warning("Store at %s is not a JSON object, using defaults", STORE_PATH)
        return Database()

    db = Database(
        settings=Settings.model_validate(raw.get("settings") or {}),
        groups=_parse_groups(raw.get("groups")),
    )
    db.reconcile()
    return db


def _write_raw(payload: dict[str, Any]) -> None:
    STORE_PATH.parent.mkdir(parents=True, exist_ok=True)
    STORE_PATH.write_text(json.dumps(payload, indent=2, ensure_ascii=False))


def _dump_settings(settings: Settings) -> dict[str, Any]:
    return settings.model_dump(mode="json", by_alias=True)


def _dump_groups(groups: list[EnvGroup]) -> list[dict[str, Any]]:
    return [g.model_dump(mode="json", by_alias=True) for g in groups]


def save_db(db: Database) -> None:
    """Persist settings and groups, creating directories as needed."""
    _write_raw({"settings": _dump_settings(db.settings), "groups": _dump_groups(db.groups)})
