"""Color theme and styling for the TUI."""

# Urwid palette for the application
# Format: (name, foreground, background)

PALETTE = [
    # Mastery levels
    ("level0", "white", ""),
    ("level1", "light red", ""),
    ("level2", "yellow", ""),
    ("level3", "light cyan", ""),
    ("level4", "light green", ""),

    # UI elements
    ("header", "white", "dark blue"),
    ("footer", "white", "dark gray"),
    ("tab_active", "white,bold", "dark blue"),
    ("tab_inactive", "light gray", "dark gray"),

    # List items
    ("list_item", "white", ""),
    ("list_item_focus", "white,bold", "dark cyan"),

    # Content
    ("content", "white", ""),
    ("content_title", "white,bold", ""),
    ("edit", "white", "dark gray"),

    # Status/info
    ("info", "light cyan", ""),
    ("success", "light green", ""),
    ("warning", "yellow", ""),
    ("error", "light red", ""),

    # Quiz
    ("quiz_word", "white,bold", ""),
    ("quiz_translation", "light green", ""),
    ("quiz_hint", "dark gray", ""),
    ("option", "white", ""),
    ("option_right", "black", "light green"),
    ("option_wrong", "white", "dark red"),

    # Progress bars
    ("bar_done", "white", "dark blue"),
    ("bar_todo", "white", "dark gray"),
]


def get_level_attr(level: int | None) -> str:
    """Get attribute name for a mastery level (None for unseen words)."""
    if level is None:
        return "level0"
    return f"level{max(0, min(level, 4))}"


def get_option_attr(index: int, picked: int | None, correct: int) -> str:
    """Get attribute name for a multiple-choice option."""
    if picked is None:
        return "option"
    if index == correct:
        return "option_right"
    if index == picked:
        return "option_wrong"
    return "option"
