"""Main application entry point."""

import logging
from datetime import date
from pathlib import Path
from typing import Optional

import urwid
from dotenv import load_dotenv

from n2vocab.config import base_path, load_config, setup_logging
from n2vocab.core.errors import PersistenceError, VocabularyImportError
from n2vocab.core.review_store import ReviewStateBackend, ReviewStateStore
from n2vocab.core.vocabulary import VocabularyStore
from n2vocab.storage.database import SqliteBackend
from n2vocab.storage.files import JsonFileBackend
from n2vocab.ui.screens import DictionaryScreen, PracticeScreen, ProgressScreen
from n2vocab.ui.theme import PALETTE
from n2vocab.ui.widgets import PromptDialog, StatusBar, TabBar


logger = logging.getLogger(__name__)


def create_backend(config: dict) -> ReviewStateBackend:
    """Build the review state backend named in the config."""
    data_config = config["data"]
    root = base_path(config)
    if data_config["backend"] == "sqlite":
        return SqliteBackend(root / data_config["database"])
    return JsonFileBackend(root / data_config["progress_file"])


class App:
    """Main application class."""

    TAB_NAMES = ["Dictionary", "Practice", "Progress"]

    HINTS = [
        "[/]search [f]ilter part of speech [k]anji [o]pen file [p]ronounce [q]uit",
        "[F2]mode [F3]size [F5]new session [q]uit",
        "[e]xport [i]mport [R]eset [q]uit",
    ]

    def __init__(self, config_path: Optional[str] = None):
        self.config = load_config(config_path)
        setup_logging(self.config)

        self.reviews = ReviewStateStore(create_backend(self.config))
        self.reviews.load()

        self.vocabulary = VocabularyStore()
        vocabulary_file = self.config["data"].get("vocabulary")
        if vocabulary_file:
            try:
                self.load_vocabulary(vocabulary_file)
            except (VocabularyImportError, PersistenceError) as e:
                logger.warning("Could not load %s: %s", vocabulary_file, e)

        self.loop = None
        self._init_ui()

    def today(self) -> date:
        return date.today()

    def export_dir(self) -> Path:
        return Path(self.config["data"].get("export_dir") or base_path(self.config))

    def load_vocabulary(self, path: str | Path):
        """Replace the word list and start tracking its new words.

        The current list stays active if the new review states cannot be saved.

        Raises:
            VocabularyImportError: If the file cannot be imported
            PersistenceError: If the new review states cannot be saved
        """
        return self.vocabulary.load_file(
            path, before_swap=lambda entries: self.reviews.ensure(entries, self.today())
        )

    def _init_ui(self):
        """Initialize the UI components."""
        self.tab_bar = TabBar(self.TAB_NAMES, on_tab_change=self._on_tab_change)

        self.dictionary_screen = DictionaryScreen(self)
        self.practice_screen = PracticeScreen(self)
        self.progress_screen = ProgressScreen(self)

        self.screens = [
            self.dictionary_screen,
            self.practice_screen,
            self.progress_screen,
        ]

        self.status_bar = StatusBar()
        self.body = urwid.WidgetPlaceholder(self.screens[0])

        self.frame = urwid.Frame(
            header=self.tab_bar,
            body=self.body,
            footer=self.status_bar,
        )

        self._refresh_current_screen()
        self.update_status()

    def _on_tab_change(self, index: int):
        self.body.original_widget = self.screens[index]
        self._refresh_current_screen()
        self.update_status()

    def _refresh_current_screen(self):
        current = self.body.original_widget

        if current == self.dictionary_screen:
            self.dictionary_screen.refresh_list()
        elif current == self.practice_screen:
            self.practice_screen.start_session()
        elif current == self.progress_screen:
            self.progress_screen.refresh()

    def switch_tab(self, index: int):
        self.tab_bar.set_active(index)

    def update_status(self):
        """Show the key hints for the current tab."""
        self.status_bar.set_text(self.HINTS[self.tab_bar.active_tab])

    def show_message(self, message: str):
        """Show a temporary message in the status bar."""
        self.status_bar.set_text(message)

    def _close_overlay(self):
        self.loop.widget = self.frame
        self.loop.unhandled_input = self.handle_input

    def show_prompt(self, title: str, caption: str, on_submit, default: str = ""):
        """Ask for one line of input in an overlay."""
        def submit(value):
            self._close_overlay()
            self.update_status()
            on_submit(value)

        def cancel():
            self._close_overlay()
            self.update_status()

        dialog = PromptDialog(title, caption, submit, cancel, default)
        self.loop.widget = urwid.Overlay(
            dialog,
            self.frame,
            align="center",
            width=("relative", 70),
            valign="middle",
            height=7,
        )

    def handle_input(self, key):
        """Handle global key input."""
        if not isinstance(key, str):
            return

        if key in ("q", "Q"):
            raise urwid.ExitMainLoop()

        if key in "123" and len(key) == 1:
            self.switch_tab(int(key) - 1)
            return

        if key == "tab":
            self.switch_tab((self.tab_bar.active_tab + 1) % len(self.TAB_NAMES))
            return

        if key == "?":
            self._show_help()
            return

    def _show_help(self):
        """Show help overlay."""
        help_text = """
N2 Vocabulary Trainer

Navigation:
  1-3, Tab    Switch between tabs
  ↑/↓         Navigate lists
  q           Quit

Dictionary:
  /           Search (Enter to return to the list)
  f           Cycle part-of-speech filter
  k           Toggle kanji display
  o           Load a vocabulary JSON file
  p/P, Enter  Pronounce (normal/slow)

Practice:
  F2 / F3     Change mode / session size
  F5          New session
  Flashcards: Space reveal, k know it, a again
  Choice:     a-d answer, n next, b redo previous
  Typing:     Enter submit, Ctrl-n next

Progress:
  e / i       Export / import progress
  R           Reset all progress

Press any key to close...
"""
        box = urwid.LineBox(urwid.Filler(urwid.Text(help_text), valign="top"), title="Help")
        overlay = urwid.Overlay(
            box,
            self.frame,
            align="center",
            width=60,
            valign="middle",
            height=32,
        )

        def close_help(key):
            self._close_overlay()
            return True

        self.loop.widget = overlay
        self.loop.unhandled_input = close_help

    def run(self):
        """Run the application."""
        self.loop = urwid.MainLoop(
            self.frame,
            palette=PALETTE,
            unhandled_input=self.handle_input,
            handle_mouse=True,
        )

        try:
            self.loop.run()
        except KeyboardInterrupt:
            pass


def main():
    """Entry point."""
    import argparse

    load_dotenv()

    parser = argparse.ArgumentParser(description="N2 vocabulary trainer with spaced repetition")
    parser.add_argument(
        "-c", "--config",
        help="Path to config file",
        default=None,
    )
    args = parser.parse_args()

    app = App(config_path=args.config)
    app.run()


if __name__ == "__main__":
    main()
