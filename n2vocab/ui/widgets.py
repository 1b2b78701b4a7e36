"""Custom urwid widgets for the vocabulary trainer."""

import urwid

from n2vocab.core.models import ReviewState, WordEntry
from n2vocab.ui.theme import get_level_attr


class WordItem(urwid.WidgetWrap):
    """A selectable dictionary entry showing reading, meaning and SRS state."""

    def __init__(self, entry: WordEntry, state: ReviewState | None, show_kanji: bool = True,
                 on_select=None):
        self.entry = entry
        self.state = state
        self.show_kanji = show_kanji
        self.on_select = on_select
        self._build()

    def _build(self):
        entry = self.entry
        header = entry.title(self.show_kanji)
        if entry.part_of_speech:
            header += f"  [{entry.part_of_speech}]"

        lines = [header, f"  {entry.translation}"]
        if entry.example:
            lines.append(f"  例: {entry.example}")
        if entry.related:
            lines.append(f"  → {entry.related}")
        if self.state:
            lines.append(f"  Lv {self.state.level}  due {self.state.due.isoformat()}")

        level = self.state.level if self.state else None
        self.text_widget = urwid.Text("\n".join(lines))
        self._w = urwid.AttrMap(self.text_widget, get_level_attr(level),
                                focus_map="list_item_focus")

    def selectable(self):
        return True

    def keypress(self, size, key):
        if key == "enter" and self.on_select:
            self.on_select(self.entry)
            return None
        return key

    def mouse_event(self, size, event, button, col, row, focus):
        if event == "mouse press" and button == 1 and self.on_select:
            self.on_select(self.entry)
            return True
        return False


class TabBar(urwid.WidgetWrap):
    """A horizontal tab bar."""

    def __init__(self, tabs: list[str], on_tab_change=None):
        self.tabs = tabs
        self.active_tab = 0
        self.on_tab_change = on_tab_change

        self._build()

    def _build(self):
        """Build the tab bar widget."""
        columns = []
        for i, tab in enumerate(self.tabs):
            attr = "tab_active" if i == self.active_tab else "tab_inactive"
            columns.append(("pack", urwid.AttrMap(urwid.Text(f" {i + 1} {tab} "), attr)))
            columns.append(("pack", urwid.Text(" ")))

        self._w = urwid.AttrMap(urwid.Columns(columns), "header")

    def set_active(self, index: int):
        """Set the active tab."""
        if 0 <= index < len(self.tabs):
            self.active_tab = index
            self._build()
            if self.on_tab_change:
                self.on_tab_change(index)

    def mouse_event(self, size, event, button, col, row, focus):
        if event == "mouse press" and button == 1:
            x = 0
            for i, tab in enumerate(self.tabs):
                tab_width = len(tab) + 4 + 1  # number + text + padding + spacer
                if x <= col < x + tab_width:
                    self.set_active(i)
                    return True
                x += tab_width
        return False


class StatusBar(urwid.WidgetWrap):
    """A status bar showing hints and messages."""

    def __init__(self, text: str = ""):
        self.text_widget = urwid.Text(text)
        super().__init__(urwid.AttrMap(self.text_widget, "footer"))

    def set_text(self, text: str):
        self.text_widget.set_text(text)


class PromptDialog(urwid.WidgetWrap):
    """Single-line input box used for file paths."""

    def __init__(self, title: str, caption: str, on_submit, on_cancel, default: str = ""):
        self.on_submit = on_submit
        self.on_cancel = on_cancel
        self.edit = urwid.Edit(caption, default)

        pile = urwid.Pile([
            urwid.AttrMap(self.edit, "edit"),
            urwid.Divider(),
            urwid.Text("[Enter] confirm  [Esc] cancel", align="center"),
        ])
        box = urwid.LineBox(urwid.Filler(pile, valign="top"), title=title)
        super().__init__(urwid.AttrMap(box, "content"))

    def keypress(self, size, key):
        if key == "enter":
            self.on_submit(self.edit.edit_text.strip())
            return None
        if key == "esc":
            self.on_cancel()
            return None
        return super().keypress(size, key)
