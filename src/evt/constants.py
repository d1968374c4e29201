"""Application-wide constants."""

APP_TITLE = "evt"
APP_SUBTITLE = "Environment variable groups"

CURRENT_GROUP_ID = "current"
CURRENT_GROUP_NAME = "Current"
UNNAMED_GROUP = "Unnamed group"

# Rendering cap for the effective view; the view itself is computed in full.
DISPLAY_LIMIT = 500

HIDDEN_VALUE = "••••••••"

# Settings.theme_mode -> Textual theme; "system" keeps the default.
THEMES: dict[str, str] = {"light": "textual-light", "dark": "textual-dark"}

DEFAULT_MONO_FONT = (
    'ui-monospace, SFMono-Regular, Menlo, Monaco, Consolas, "Liberation Mono", '
    '"Courier New", monospace'
)

APPLIED_HINT = "Applied. Open a new terminal to pick up the changes."
DISABLED_HINT = "Disabled. Open a new terminal to pick up the changes."
SAVED_HINT = "Saved"

# Deterministic stand-in for the live environment (mock backend).
MOCK_BASELINE: dict[str, str] = {
    "HOME": "/home/dev",
    "LANG": "en_US.UTF-8",
    "PATH": "/usr/local/bin:/usr/bin:/bin",
    "SHELL": "/bin/zsh",
    "TERM": "xterm-256color",
    "USER": "dev",
    "EDITOR": "vim",
    "LOG_LEVEL": "info",
}

TABLE_COLUMNS = ("#", "Key", "Value", "Source")

HELP_TEXT = """\
 Groups
 ──────────────────────────────
 Tab / e      Next group
 p            Pick group
 n            New group
 R            Rename group
 X            Delete group
 Space        Toggle apply
 A            Save draft and apply

 Variables
 ──────────────────────────────
 i / Enter    Edit selected value
 r            Rename selected key
 o            Add new variable
 d d          Delete selected variable
 E            Edit raw text (draft)
 s            Save draft
 z            Discard draft

 Navigation
 ──────────────────────────────
 j / ↓        Move down
 k / ↑        Move up
 g g          Jump to top
 G            Jump to bottom

 General
 ──────────────────────────────
 /            Filter keys
 Escape       Clear filter
 h            Show / hide values
 y            Copy value to clipboard
 ctrl+r       Refresh live environment
 I            Shell integration info
 ?            Toggle this help
 q            Quit\
"""
