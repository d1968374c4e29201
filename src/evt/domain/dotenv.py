"""Pure functions for reading and writing dotenv-style text.

Only ``KEY=VALUE`` and ``export KEY=VALUE`` lines are understood.  There is
no interpolation, no multi-line values and no inline comments; a value that
is wrapped in one matching pair of single or double quotes has the quotes
removed verbatim (interior characters are not un-escaped).
"""

import re
from collections.abc import Mapping

from evt.models import Change, ChangeKind, EnvVar

LINE_SPLIT_RE = re.compile(r"\r?\n")

_KEY_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_ASSIGNMENT_RE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")
_NEEDS_QUOTES_RE = re.compile(r"[\s#\"'\\]")


def is_valid_key(key: str) -> bool:
    """Return True if *key* is a legal environment variable name."""
    return bool(_KEY_RE.match(key))


def split_lines(text: str) -> list[str]:
    """Split text on ``\\n`` or ``\\r\\n``.  Empty text has no lines."""
    if not text:
        return []
    return LINE_SPLIT_RE.split(text)


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_dotenv(text: str) -> dict[str, str]:
    """Parse dotenv text into an ordered key → value mapping.

    - Blank lines and ``#`` comment lines are skipped.
    - Lines that are not assignments are silently ignored.
    - A repeated key keeps its first position but takes the later value.

    Never raises.
    """
    out: dict[str, str] = {}
    for raw in split_lines(text):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        match = _ASSIGNMENT_RE.match(line)
        if match is None:
            continue
        key, value = match.group(1), match.group(2).strip()
        out[key] = _unquote(value)
    return out


def parse_vars(text: str) -> list[EnvVar]:
    """Parse dotenv text into an ordered list of EnvVar instances."""
    return [EnvVar(key=k, value=v) for k, v in parse_dotenv(text).items()]


def format_assignment(key: str, value: str) -> str:
    """Render one ``KEY=value`` line, quoting only when needed.

    Values containing whitespace, ``#``, a quote or a backslash are wrapped
    in double quotes with ``\\`` and ``"`` escaped.
    """
    if not _NEEDS_QUOTES_RE.search(value):
        return f"{key}={value}"
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'{key}="{escaped}"'


def render_raw(values: Mapping[str, str]) -> str:
    """Render unquoted ``KEY=value`` lines.

    ``parse_dotenv`` reads every value back unchanged unless the value itself
    is wrapped in matching quotes.  Merged content is handed to backends in
    this form.
    """
    return "\n".join(f"{k}={v}" for k, v in values.items())


def diff_vars(before: Mapping[str, str], after: Mapping[str, str]) -> list[Change]:
    """List the key-level changes that turn *before* into *after*.

    Removed keys come first in *before* order, followed by additions and
    edits in *after* order.
    """
    changes = [
        Change(kind=ChangeKind.REMOVE, key=k, previous_value=v)
        for k, v in before.items()
        if k not in after
    ]
    for key, value in after.items():
        if key not in before:
            changes.append(Change(kind=ChangeKind.ADD, key=key, value=value))
        elif before[key] != value:
            changes.append(
                Change(kind=ChangeKind.EDIT, key=key, value=value, previous_value=before[key])
            )
    return changes
