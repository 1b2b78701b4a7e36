"""Screen compositions for different app views."""

import urwid

from n2vocab.core.errors import PersistenceError, VocabularyImportError
from n2vocab.core.models import ReviewResult, WordEntry
from n2vocab.core.progress import summarize
from n2vocab.core.quiz import (
    AnswerStatus,
    FlashcardQuiz,
    MultipleChoiceQuiz,
    QuizMode,
    TypingQuiz,
)
from n2vocab.core.scheduler import INTERVALS, due_entries
from n2vocab.core.session import SESSION_SIZES, build_session
from n2vocab.core.tts import TTSError, get_tts
from n2vocab.core.vocabulary import ALL_PARTS_OF_SPEECH
from n2vocab.storage.files import export_progress, import_progress
from n2vocab.ui.theme import get_option_attr
from n2vocab.ui.widgets import WordItem


OPTION_KEYS = "abcd"


def pronounce(app, entry: WordEntry | None, slow: bool = False):
    """Speak the reading of an entry, reporting problems in the status bar."""
    if entry is None:
        return
    try:
        tts = get_tts(app.config["tts"]["lang"])
        if not tts.is_available():
            app.show_message("TTS not available - install gTTS")
            return
        tts.speak(entry.word, slow=slow)
    except TTSError as e:
        app.show_message(f"TTS error: {e}")


class DictionaryScreen(urwid.WidgetWrap):
    """Searchable word list."""

    def __init__(self, app):
        self.app = app
        self.show_kanji = app.config["display"]["show_kanji"]
        self.part_of_speech = ALL_PARTS_OF_SPEECH

        self.search_edit = urwid.Edit("Search: ")
        urwid.connect_signal(self.search_edit, "postchange", lambda *_: self.refresh_list())
        self.filter_text = urwid.Text("")

        self.walker = urwid.SimpleFocusListWalker([])
        self.listbox = urwid.ListBox(self.walker)
        self.list_box = urwid.LineBox(self.listbox, title="Words")

        self.pile = urwid.Pile([
            ("pack", urwid.AttrMap(self.search_edit, "edit")),
            ("pack", self.filter_text),
            ("weight", 1, self.list_box),
        ])
        self.pile.focus_position = 2

        super().__init__(self.pile)

    def refresh_list(self):
        """Rebuild the list from the current query and filters."""
        vocabulary = self.app.vocabulary
        if self.part_of_speech not in vocabulary.parts_of_speech():
            self.part_of_speech = ALL_PARTS_OF_SPEECH

        entries = vocabulary.search(self.search_edit.edit_text, self.part_of_speech)
        states = self.app.reviews.states

        self.walker.clear()
        for entry in entries:
            self.walker.append(WordItem(entry, states.get(entry.identity), self.show_kanji,
                                        on_select=lambda e: pronounce(self.app, e)))

        kanji = "on" if self.show_kanji else "off"
        self.filter_text.set_text(
            f"Part of speech: {self.part_of_speech} | Kanji: {kanji} | "
            f"{len(entries)} / {len(vocabulary)} words"
        )
        if not entries:
            self.walker.append(urwid.Text("No matching words"))

    def _cycle_part_of_speech(self):
        options = self.app.vocabulary.parts_of_speech()
        idx = options.index(self.part_of_speech) if self.part_of_speech in options else 0
        self.part_of_speech = options[(idx + 1) % len(options)]
        self.refresh_list()

    def _focused_entry(self) -> WordEntry | None:
        widget = self.listbox.focus
        return widget.entry if isinstance(widget, WordItem) else None

    def _load_vocabulary(self, path: str):
        if not path:
            return
        try:
            entries = self.app.load_vocabulary(path)
        except (VocabularyImportError, PersistenceError) as e:
            self.app.show_message(f"Load failed: {e}")
            return
        self.refresh_list()
        self.app.show_message(f"Loaded {len(entries)} words")

    def keypress(self, size, key):
        if self.pile.focus_position == 0:
            if key in ("enter", "esc", "down"):
                self.pile.focus_position = 2
                self.app.update_status()
                return None
            return super().keypress(size, key)

        if key == "/":
            self.pile.focus_position = 0
            self.app.show_message("Type to search, [Enter] back to list")
            return None
        if key == "f":
            self._cycle_part_of_speech()
            return None
        if key == "k":
            self.show_kanji = not self.show_kanji
            self.refresh_list()
            return None
        if key == "o":
            self.app.show_prompt("Load vocabulary", "JSON file: ", self._load_vocabulary)
            return None
        if key == "p":
            pronounce(self.app, self._focused_entry())
            return None
        if key == "P":
            pronounce(self.app, self._focused_entry(), slow=True)
            return None

        return super().keypress(size, key)


class PracticeScreen(urwid.WidgetWrap):
    """Practice session in one of the quiz modes."""

    MODE_NAMES = {
        QuizMode.FLASHCARD: "Flashcards (SRS)",
        QuizMode.MULTIPLE_CHOICE: "Multiple choice",
        QuizMode.TYPING: "Typing",
    }

    def __init__(self, app):
        self.app = app
        practice = app.config["practice"]
        self.mode = QuizMode(practice["mode"])
        self.count = int(practice["count"])
        self.quiz = None

        self.settings_text = urwid.Text("", align="center")
        self.word_text = urwid.Text("", align="center")
        self.detail_text = urwid.Text("", align="center")
        self.hint_text = urwid.Text("", align="center")
        self.progress_text = urwid.Text("", align="center")
        self.options_pile = urwid.Pile([])
        self.answer_edit = urwid.Edit("Answer: ")

        pile = urwid.Pile([
            urwid.AttrMap(self.settings_text, "info"),
            urwid.Divider(),
            urwid.AttrMap(self.word_text, "quiz_word"),
            urwid.Divider(),
            urwid.AttrMap(self.detail_text, "quiz_translation"),
            urwid.Divider(),
            self.options_pile,
            urwid.Divider(),
            urwid.AttrMap(self.hint_text, "quiz_hint"),
            urwid.Divider(),
            self.progress_text,
        ])
        self.box = urwid.LineBox(urwid.Filler(pile, valign="middle"), title="Practice")
        super().__init__(self.box)

    def start_session(self):
        """Build a fresh session from due words, or all words if none are due."""
        entries = self.app.vocabulary.entries
        due = due_entries(entries, self.app.reviews.states, self.app.today())
        items = build_session(due, entries, self.count)

        if self.mode is QuizMode.FLASHCARD:
            self.quiz = FlashcardQuiz(items, self.app.reviews, today=self.app.today)
        elif self.mode is QuizMode.MULTIPLE_CHOICE:
            self.quiz = MultipleChoiceQuiz(items)
        else:
            self.quiz = TypingQuiz(items)

        source = "due" if due else "all"
        self.settings_text.set_text(
            f"{self.MODE_NAMES[self.mode]} | {len(items)} of {self.count} ({source} words)"
        )
        self._show_current()

    def _title(self, entry: WordEntry) -> str:
        return entry.title(self.app.dictionary_screen.show_kanji)

    def _show_current(self):
        quiz = self.quiz
        entry = quiz.current
        self.options_pile.contents.clear()
        self.detail_text.set_text("")

        if entry is None:
            self.options_pile.contents.append((urwid.Text(""), self.options_pile.options()))
            self.word_text.set_text("No words to practice!")
            self.hint_text.set_text("Load a vocabulary file from the Dictionary tab")
            self.progress_text.set_text("")
            return

        self.word_text.set_text(self._title(entry))
        self.progress_text.set_text(f"{quiz.index + 1} / {quiz.total}")

        if isinstance(quiz, FlashcardQuiz):
            self._show_flashcard(quiz, entry)
        elif isinstance(quiz, MultipleChoiceQuiz):
            self._show_choices(quiz)
        else:
            self._show_typing(quiz, entry)

        if quiz.at_end:
            self.hint_text.set_text(self.hint_text.text + "\nLast word - [F5] new session")

    def _show_flashcard(self, quiz: FlashcardQuiz, entry: WordEntry):
        if quiz.revealed:
            detail = entry.translation
            if entry.example:
                detail += f"\n例: {entry.example}"
            self.detail_text.set_text(detail)
            self.hint_text.set_text("[k]now it  [a]gain  [p]ronounce")
        else:
            self.hint_text.set_text("[Space] reveal  [k]now it  [a]gain  [p]ronounce")
        state = self.app.reviews.get(entry.identity)
        level = state.level if state else 0
        self.progress_text.set_text(
            f"{quiz.index + 1} / {quiz.total}  ({quiz.progress}%)  Lv {level}"
        )

    def _show_choices(self, quiz: MultipleChoiceQuiz):
        for i, option in enumerate(quiz.options):
            text = urwid.Text(f"{OPTION_KEYS[i]}) {option.translation}")
            attr = get_option_attr(i, quiz.picked, quiz.correct_index)
            self.options_pile.contents.append(
                (urwid.AttrMap(text, attr), self.options_pile.options())
            )
        if quiz.answered:
            self.detail_text.set_text("Correct!" if quiz.is_correct else "Wrong")
        self.hint_text.set_text("[a-d] answer  [n]ext  [b]ack (redo previous)")

    def _show_typing(self, quiz: TypingQuiz, entry: WordEntry):
        self.options_pile.contents.append(
            (urwid.AttrMap(self.answer_edit, "edit"), self.options_pile.options())
        )
        if quiz.status is AnswerStatus.RIGHT:
            self.detail_text.set_text("Right!")
        elif quiz.status is AnswerStatus.WRONG:
            self.detail_text.set_text(f"Wrong - {entry.translation}")
        self.hint_text.set_text("[Enter] submit  [Ctrl-n] next")

    def _grade(self, outcome: ReviewResult):
        try:
            self.quiz.grade(outcome)
        except PersistenceError as e:
            self.app.show_message(f"Could not save progress: {e}")
        self._show_current()

    def _cycle_mode(self):
        modes = list(QuizMode)
        self.mode = modes[(modes.index(self.mode) + 1) % len(modes)]
        self.start_session()

    def _cycle_count(self):
        sizes = list(SESSION_SIZES)
        idx = sizes.index(self.count) if self.count in sizes else -1
        self.count = sizes[(idx + 1) % len(sizes)]
        self.start_session()

    def keypress(self, size, key):
        if key == "f2":
            self._cycle_mode()
            return None
        if key == "f3":
            self._cycle_count()
            return None
        if key == "f5":
            self.start_session()
            return None

        quiz = self.quiz
        if quiz is None or quiz.current is None:
            return key

        if isinstance(quiz, TypingQuiz):
            return self._typing_keypress(size, quiz, key)

        if key == "p":
            pronounce(self.app, quiz.current)
            return None
        if key == "P":
            pronounce(self.app, quiz.current, slow=True)
            return None

        if isinstance(quiz, FlashcardQuiz):
            if key == " ":
                quiz.reveal()
            elif key == "k":
                self._grade(ReviewResult.PASS)
            elif key == "a":
                self._grade(ReviewResult.FAIL)
            else:
                return key
            self._show_current()
            return None

        if key in OPTION_KEYS:
            quiz.pick(OPTION_KEYS.index(key))
        elif key == "n":
            quiz.next()
        elif key == "b":
            quiz.previous()
        else:
            return key
        self._show_current()
        return None

    def _typing_keypress(self, size, quiz: TypingQuiz, key):
        if key == "enter":
            quiz.submit(self.answer_edit.edit_text)
        elif key == "ctrl n":
            quiz.next()
            self.answer_edit.set_edit_text("")
        else:
            return self.answer_edit.keypress((size[0],), key)
        self._show_current()
        return None


class ProgressScreen(urwid.WidgetWrap):
    """Mastery statistics with reset, export and import."""

    def __init__(self, app):
        self.app = app
        self.summary_text = urwid.Text("")
        self.level_pile = urwid.Pile([])
        self.rate_bar = urwid.ProgressBar("bar_todo", "bar_done")

        pile = urwid.Pile([
            self.summary_text,
            urwid.Divider(),
            urwid.Text("Learned"),
            self.rate_bar,
            urwid.Divider(),
            self.level_pile,
            urwid.Divider(),
            urwid.AttrMap(urwid.Text("[e]xport  [i]mport  [R]eset all progress"), "quiz_hint"),
        ])
        box = urwid.LineBox(urwid.Filler(pile, valign="top"), title="Progress")
        super().__init__(box)

    def refresh(self):
        entries = self.app.vocabulary.entries
        stats = summarize(entries, self.app.reviews.states, self.app.today())

        self.summary_text.set_text(
            f"Words: {stats.total} | Due today: {stats.due} | "
            f"Learned: {stats.learned} ({stats.rate}%)"
        )
        self.rate_bar.set_completion(stats.rate)

        self.level_pile.contents.clear()
        for level, count in enumerate(stats.levels):
            bar = urwid.ProgressBar("bar_todo", "bar_done", current=count,
                                    done=max(1, stats.total))
            label = urwid.Text(f"Lv {level} (+{INTERVALS[level]}d): {count}")
            row = urwid.Columns([(22, label), bar], dividechars=1)
            self.level_pile.contents.append((row, self.level_pile.options()))

    def _export(self):
        directory = self.app.export_dir()
        try:
            path = export_progress(self.app.reviews.states, directory, self.app.today())
        except PersistenceError as e:
            self.app.show_message(str(e))
            return
        self.app.show_message(f"Progress exported to {path}")

    def _import(self, path: str):
        if not path:
            return
        try:
            states = import_progress(path)
            self.app.reviews.replace(states)
        except PersistenceError as e:
            self.app.show_message(str(e))
            return
        self.refresh()
        self.app.show_message(f"Imported progress for {len(states)} words")

    def _reset(self, answer: str):
        if answer.lower() != "yes":
            self.app.show_message("Reset cancelled")
            return
        try:
            self.app.reviews.reset()
        except PersistenceError as e:
            self.app.show_message(str(e))
            return
        self.refresh()
        self.app.show_message("All progress cleared")

    def keypress(self, size, key):
        if key == "e":
            self._export()
            return None
        if key == "i":
            self.app.show_prompt("Import progress", "JSON file: ", self._import)
            return None
        if key == "R":
            self.app.show_prompt("Reset all progress", "Type 'yes' to confirm: ", self._reset)
            return None
        return super().keypress(size, key)
