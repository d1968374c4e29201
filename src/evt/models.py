"""Domain models."""

from dataclasses import dataclass
from enum import Enum, auto


@dataclass
class EnvVar:
    key: str
    value: str

    def matches(self, query: str) -> bool:
        """Return True if the key contains the query (case-insensitive)."""
        return query.strip().lower() in self.key.lower()


class GroupKind(str, Enum):
    CURRENT = "current"
    CUSTOM = "custom"


class ChangeKind(Enum):
    ADD = auto()
    REMOVE = auto()
    EDIT = auto()


@dataclass
class Change:
    """A single key-level difference between two parsed dotenv models.

    - ADD: ``key`` is new, ``value`` holds its value.
    - REMOVE: ``key`` disappeared, ``previous_value`` holds what it was.
    - EDIT: ``key`` kept, value went from ``previous_value`` to ``value``.
    """

    kind: ChangeKind
    key: str
    value: str | None = None
    previous_value: str | None = None
