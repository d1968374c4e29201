"""Structure-preserving edits of dotenv text.

Both operations touch only the assignment lines of the target key.  Every
other line (comments, blank lines, unrelated assignments and lines the
parser ignores) is kept byte-for-byte and in its original order.  Trailing
whitespace of the whole result is always trimmed, which makes both
operations idempotent.

Key collisions are the caller's concern: ``upsert_var`` happily overwrites
an existing key.
"""

import re

from evt.domain.dotenv import format_assignment, split_lines


def _key_pattern(key: str) -> re.Pattern[str]:
    return re.compile(rf"^(?:export\s+)?{re.escape(key)}\s*=")


def _assigns(line: str, pattern: re.Pattern[str]) -> bool:
    trimmed = line.strip()
    return bool(trimmed) and not trimmed.startswith("#") and bool(pattern.match(trimmed))


def upsert_var(text: str, key: str, value: str) -> str:
    """Set *key* to *value*, in place if the key is already assigned.

    The first assignment of *key* is rewritten; later assignments of the
    same key are dropped.  A new key is appended at the end, separated from
    a non-blank last line by one blank line.
    """
    pattern = _key_pattern(key)
    out: list[str] = []
    inserted = False
    for line in split_lines(text):
        if _assigns(line, pattern):
            if not inserted:
                out.append(format_assignment(key, value))
                inserted = True
            continue
        out.append(line)
    if not inserted:
        if out and out[-1].strip():
            out.append("")
        out.append(format_assignment(key, value))
    return "\n".join(out).rstrip()


def delete_var(text: str, key: str) -> str:
    """Remove every assignment of *key*.  A no-op if the key is absent."""
    pattern = _key_pattern(key)
    kept = [line for line in split_lines(text) if not _assigns(line, pattern)]
    return "\n".join(kept).rstrip()


def rename_var(text: str, old_key: str, new_key: str, value: str) -> str:
    """Replace *old_key* with *new_key* holding *value*.

    The new assignment is written first and the old one removed afterwards,
    so a renamed key moves to the end unless *new_key* already existed.
    """
    text = upsert_var(text, new_key, value)
    if old_key != new_key:
        text = delete_var(text, old_key)
    return text
