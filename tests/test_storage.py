"""Tests for vocabulary import, review state storage and configuration."""

import json
import shutil
import tempfile
from datetime import date, timedelta
from pathlib import Path

import pytest

from n2vocab.config import DEFAULTS, load_config
from n2vocab.core.errors import PersistenceError, VocabularyImportError
from n2vocab.core.models import ReviewResult, ReviewState, WordEntry
from n2vocab.core.review_store import ReviewStateStore
from n2vocab.core.scheduler import advance
from n2vocab.core.vocabulary import (
    SAMPLE,
    InvalidRecord,
    VocabularyStore,
    filter_entries,
    normalize_record,
    normalize_records,
    parts_of_speech,
)
from n2vocab.storage.database import SqliteBackend
from n2vocab.storage.files import (
    JsonFileBackend,
    export_filename,
    export_progress,
    import_progress,
    write_json,
)


D = date(2024, 3, 1)


def reviewed_states() -> dict[str, ReviewState]:
    """Build a store the way reviews do."""
    a = advance(None, ReviewResult.PASS, D)
    a = advance(a, ReviewResult.PASS, D + timedelta(days=1))
    b = advance(None, ReviewResult.FAIL, D)
    c = ReviewState.new(D)
    return {"愛情|あいじょう": a, "相槌|あいづち": b, "いざかや|いざかや": c}


class TempDirTest:
    def setup_method(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def teardown_method(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)


class TestNormalizeRecord:
    """Test vocabulary record normalization."""

    def test_primary_fields(self):
        entry = normalize_record({
            "word": " あいじょう ",
            "kanji": "愛情",
            "partOfSpeech": "名",
            "translation": "爱情",
            "example": "母の愛情",
            "related": "愛",
        })
        assert entry == WordEntry(
            word="あいじょう", kanji="愛情", part_of_speech="名",
            translation="爱情", example="母の愛情", related="愛",
        )

    def test_aliases(self):
        entry = normalize_record({
            "kana": "あかじ",
            "kanji_word": "赤字",
            "pos": "名",
            "中文": "亏空",
            "例句": "赤字を出す",
        })
        assert entry.word == "あかじ"
        assert entry.kanji == "赤字"
        assert entry.part_of_speech == "名"
        assert entry.translation == "亏空"
        assert entry.example == "赤字を出す"

    def test_first_non_empty_alias_wins(self):
        entry = normalize_record({
            "word": "  ",
            "reading": "いしき",
            "translation": "",
            "cn": "意识",
            "zh": "知觉",
        })
        assert entry.word == "いしき"
        assert entry.translation == "意识"

    def test_empty_optionals_become_none(self):
        entry = normalize_record({"word": "いしき", "meaning": "意识", "kanji": " ", "pos": ""})
        assert entry.kanji is None
        assert entry.part_of_speech is None
        assert entry.example is None

    def test_values_are_stringified(self):
        entry = normalize_record({"word": 100, "definition": 42})
        assert entry.word == "100"
        assert entry.translation == "42"

    @pytest.mark.parametrize("record", [
        {"word": "いしき"},
        {"translation": "意识"},
        {"word": " ", "translation": "意识"},
        "いしき",
        None,
        ["いしき", "意识"],
    ])
    def test_rejected(self, record):
        with pytest.raises(InvalidRecord):
            normalize_record(record)


class TestNormalizeRecords:
    """Test whole-payload import rules."""

    def test_drops_invalid_records(self):
        entries = normalize_records([
            {"word": "いしき", "translation": "意识"},
            {"word": "broken"},
            42,
            {"kana": "あかじ", "cn": "赤字"},
        ])
        assert [e.word for e in entries] == ["いしき", "あかじ"]

    def test_rejects_non_list(self):
        with pytest.raises(VocabularyImportError):
            normalize_records({"word": "いしき", "translation": "意识"})

    def test_rejects_empty_result(self):
        with pytest.raises(VocabularyImportError):
            normalize_records([{"word": "いしき"}])

    def test_rejects_empty_list(self):
        with pytest.raises(VocabularyImportError):
            normalize_records([])


class TestVocabularySearch:
    """Test dictionary search and filtering."""

    def test_parts_of_speech(self):
        entries = [
            WordEntry(word="a", translation="x", part_of_speech="動"),
            WordEntry(word="b", translation="y", part_of_speech="名"),
            WordEntry(word="c", translation="z"),
            WordEntry(word="d", translation="w", part_of_speech="名"),
        ]
        assert parts_of_speech(entries) == ["all", "動", "名"]

    def test_search_across_fields(self):
        assert [e.word for e in filter_entries(SAMPLE, "居酒屋")] == ["いざかや"]
        assert [e.word for e in filter_entries(SAMPLE, "失去")] == ["いしき"]
        assert [e.word for e in filter_entries(SAMPLE, " あい ")] == ["あいじょう", "あいづち"]

    def test_search_case_insensitive(self):
        entries = [WordEntry(word="らぶ", translation="Love")]
        assert filter_entries(entries, "LOVE") == entries

    def test_filter_part_of_speech(self):
        entries = [
            WordEntry(word="a", translation="x", part_of_speech="動"),
            WordEntry(word="b", translation="y", part_of_speech="名"),
            WordEntry(word="c", translation="z"),
        ]
        assert [e.word for e in filter_entries(entries, "", "名")] == ["b"]
        assert len(filter_entries(entries, "", "all")) == 3

    def test_empty_query_returns_all(self):
        assert filter_entries(SAMPLE) == SAMPLE


class TestVocabularyStore(TempDirTest):
    """Test loading vocabulary files."""

    def write(self, name: str, content: str) -> Path:
        path = self.temp_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    def test_defaults_to_sample(self):
        store = VocabularyStore()
        assert store.entries == SAMPLE
        assert store.parts_of_speech() == ["all", "名"]

    def test_load_file(self):
        path = self.write("n2.json", json.dumps([
            {"word": "いしき", "kanji": "意識", "translation": "意识"},
            {"word": "nothing"},
        ], ensure_ascii=False))
        store = VocabularyStore()
        entries = store.load_file(path)
        assert len(entries) == 1
        assert store.entries == entries

    @pytest.mark.parametrize("content", [
        "not json",
        '{"word": "いしき", "translation": "意识"}',
        '[{"word": "いしき"}]',
    ])
    def test_failed_load_keeps_current_list(self, content):
        path = self.write("bad.json", content)
        store = VocabularyStore()
        with pytest.raises(VocabularyImportError):
            store.load_file(path)
        assert store.entries == SAMPLE

    def test_missing_file(self):
        store = VocabularyStore()
        with pytest.raises(VocabularyImportError):
            store.load_file(self.temp_dir / "missing.json")

    def test_tracks_new_words_before_swap(self):
        path = self.write("n2.json", json.dumps([
            {"word": "いしき", "kanji": "意識", "translation": "意识"},
        ], ensure_ascii=False))
        reviews = ReviewStateStore(JsonFileBackend(self.temp_dir / "progress.json"))
        store = VocabularyStore()
        entries = store.load_file(path, before_swap=lambda new: reviews.ensure(new, D))
        assert store.entries == entries
        assert reviews.get("意識|いしき") == ReviewState.new(D)

    def test_failed_save_keeps_current_list(self):
        path = self.write("n2.json", json.dumps([
            {"word": "いしき", "kanji": "意識", "translation": "意识"},
        ], ensure_ascii=False))
        blocker = self.temp_dir / "blocker"
        blocker.write_text("", encoding="utf-8")
        reviews = ReviewStateStore(JsonFileBackend(blocker / "progress.json"))
        store = VocabularyStore()
        with pytest.raises(PersistenceError):
            store.load_file(path, before_swap=lambda new: reviews.ensure(new, D))
        assert store.entries == SAMPLE


class TestJsonFileBackend(TempDirTest):
    """Test JSON persistence of review state."""

    def test_round_trip(self):
        backend = JsonFileBackend(self.temp_dir / "progress.json")
        states = reviewed_states()
        backend.save(states)
        assert backend.load() == states

    def test_file_format(self):
        path = self.temp_dir / "progress.json"
        JsonFileBackend(path).save({"いざかや|いざかや": ReviewState.new(D)})
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data == {"いざかや|いざかや": {"level": 0, "due": "2024-03-01", "history": []}}

    def test_missing_file_is_empty(self):
        assert JsonFileBackend(self.temp_dir / "none.json").load() == {}

    def test_corrupt_file(self):
        path = self.temp_dir / "progress.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonFileBackend(path).load()

    def test_unwritable_path(self):
        blocker = self.temp_dir / "blocker"
        blocker.write_text("", encoding="utf-8")
        backend = JsonFileBackend(blocker / "progress.json")
        with pytest.raises(PersistenceError):
            backend.save(reviewed_states())

    def test_interrupted_write_keeps_previous_file(self):
        path = self.temp_dir / "progress.json"
        backend = JsonFileBackend(path)
        states = reviewed_states()
        backend.save(states)
        before = path.read_text(encoding="utf-8")

        # Fails partway through serialization
        with pytest.raises(TypeError):
            write_json(path, {"a": 1, "b": object()})

        assert path.read_text(encoding="utf-8") == before
        assert backend.load() == states
        assert [p.name for p in self.temp_dir.iterdir()] == ["progress.json"]


class TestSqliteBackend(TempDirTest):
    """Test SQLite persistence of review state."""

    def setup_method(self):
        super().setup_method()
        self.backend = SqliteBackend(self.temp_dir / "test.db")

    def test_empty(self):
        assert self.backend.load() == {}

    def test_round_trip(self):
        states = reviewed_states()
        self.backend.save(states)
        assert self.backend.load() == states

    def test_save_replaces(self):
        self.backend.save(reviewed_states())
        self.backend.save({"x|x": ReviewState.new(D)})
        assert self.backend.load() == {"x|x": ReviewState.new(D)}

    def test_constructor_does_not_touch_file(self):
        path = self.temp_dir / "later" / "n2vocab.db"
        SqliteBackend(path)
        assert not path.exists()

    def test_corrupt_file(self):
        path = self.temp_dir / "n2vocab.db"
        path.write_bytes(b"\x00junk\xffnot a database" * 64)
        with pytest.raises(PersistenceError):
            SqliteBackend(path).load()

    def test_corrupt_file_cold_start(self):
        path = self.temp_dir / "n2vocab.db"
        path.write_bytes(b"\x00junk\xffnot a database" * 64)
        store = ReviewStateStore(SqliteBackend(path))
        store.load()
        assert len(store) == 0


class TestReviewStateStore(TempDirTest):
    """Test the review state store."""

    def setup_method(self):
        super().setup_method()
        self.path = self.temp_dir / "progress.json"
        self.store = ReviewStateStore(JsonFileBackend(self.path))
        self.store.load()

    def test_record_persists(self):
        entry = SAMPLE[0]
        state = self.store.record(entry, ReviewResult.PASS, D)

        reloaded = ReviewStateStore(JsonFileBackend(self.path))
        reloaded.load()
        assert reloaded.get(entry.identity) == state

    def test_update_is_copy_on_write(self):
        before = self.store.states
        self.store.record(SAMPLE[0], ReviewResult.PASS, D)
        assert len(before) == 0
        assert len(self.store.states) == 1

    def test_states_read_only(self):
        with pytest.raises(TypeError):
            self.store.states["x"] = ReviewState.new(D)

    def test_ensure_only_adds_new(self):
        self.store.record(SAMPLE[0], ReviewResult.PASS, D)
        created = self.store.ensure(SAMPLE, D + timedelta(days=1))
        assert created == len(SAMPLE) - 1
        assert self.store.get(SAMPLE[0].identity).level == 1
        assert self.store.get(SAMPLE[1].identity) == ReviewState.new(D + timedelta(days=1))

    def test_ensure_nothing_new_does_not_write(self):
        assert self.store.ensure([], D) == 0
        assert not self.path.exists()

    def test_reset(self):
        self.store.ensure(SAMPLE, D)
        self.store.reset()
        assert len(self.store) == 0
        assert JsonFileBackend(self.path).load() == {}

    def test_replace(self):
        self.store.ensure(SAMPLE, D)
        states = reviewed_states()
        self.store.replace(states)
        assert dict(self.store.states) == states

    def test_corrupt_file_cold_start(self):
        self.path.write_text("not json", encoding="utf-8")
        store = ReviewStateStore(JsonFileBackend(self.path))
        store.load()
        assert len(store) == 0


class TestExportImport(TempDirTest):
    """Test progress export and import."""

    def test_export_filename(self):
        assert export_filename(D) == "n2_progress_2024-03-01.json"

    def test_round_trip(self):
        states = reviewed_states()
        path = export_progress(states, self.temp_dir, D)
        assert path.name == "n2_progress_2024-03-01.json"
        assert import_progress(path) == states

    def test_payload_has_no_date(self):
        path = export_progress({}, self.temp_dir, D)
        assert json.loads(path.read_text(encoding="utf-8")) == {}

    @pytest.mark.parametrize("content", [
        "[]",
        "not json",
        '{"a|a": {"level": 1}}',
        '{"a|a": {"level": 1, "due": "tomorrow"}}',
        '{"a|a": "level 1"}',
    ])
    def test_import_malformed(self, content):
        path = self.temp_dir / "import.json"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(PersistenceError):
            import_progress(path)

    def test_failed_import_leaves_store(self):
        store = ReviewStateStore(JsonFileBackend(self.temp_dir / "progress.json"))
        store.ensure(SAMPLE, D)
        path = self.temp_dir / "import.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(PersistenceError):
            store.replace(import_progress(path))
        assert len(store) == len(SAMPLE)


class TestConfig(TempDirTest):
    """Test configuration loading."""

    def test_defaults(self, monkeypatch):
        monkeypatch.chdir(self.temp_dir)
        monkeypatch.setenv("HOME", str(self.temp_dir))
        monkeypatch.delenv("N2VOCAB_DATA", raising=False)
        assert load_config() == DEFAULTS

    def test_file_overrides_merge(self, monkeypatch):
        monkeypatch.delenv("N2VOCAB_DATA", raising=False)
        path = self.temp_dir / "config.yaml"
        path.write_text("data:\n  backend: sqlite\npractice:\n  count: 30\n", encoding="utf-8")
        config = load_config(str(path))
        assert config["data"]["backend"] == "sqlite"
        assert config["data"]["progress_file"] == "progress.json"
        assert config["practice"] == {"count": 30, "mode": "flash"}

    def test_empty_file(self, monkeypatch):
        monkeypatch.delenv("N2VOCAB_DATA", raising=False)
        path = self.temp_dir / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(str(path)) == DEFAULTS

    @pytest.mark.parametrize("content", [
        "data: [unclosed\n",
        "- flash\n- mc\n",
        "just text\n",
    ])
    def test_unusable_file_gives_defaults(self, monkeypatch, content):
        monkeypatch.delenv("N2VOCAB_DATA", raising=False)
        path = self.temp_dir / "config.yaml"
        path.write_text(content, encoding="utf-8")
        assert load_config(str(path)) == DEFAULTS

    @pytest.mark.parametrize("content,section,key", [
        ("practice:\n  mode: speed\n", "practice", "mode"),
        ("practice:\n  count: lots\n", "practice", "count"),
        ("practice:\n  count: 0\n", "practice", "count"),
        ("practice:\n  count: true\n", "practice", "count"),
        ("data:\n  backend: redis\n", "data", "backend"),
        ("display:\n  show_kanji: maybe\n", "display", "show_kanji"),
    ])
    def test_invalid_value_falls_back(self, monkeypatch, caplog, content, section, key):
        monkeypatch.delenv("N2VOCAB_DATA", raising=False)
        path = self.temp_dir / "config.yaml"
        path.write_text(content, encoding="utf-8")
        config = load_config(str(path))
        assert config[section][key] == DEFAULTS[section][key]
        assert f"Invalid {section}.{key}" in caplog.text

    def test_invalid_section_falls_back(self, monkeypatch):
        monkeypatch.delenv("N2VOCAB_DATA", raising=False)
        path = self.temp_dir / "config.yaml"
        path.write_text("practice: fast\ndata:\n  backend: sqlite\n", encoding="utf-8")
        config = load_config(str(path))
        assert config["practice"] == DEFAULTS["practice"]
        assert config["data"]["backend"] == "sqlite"

    def test_numeric_string_count(self, monkeypatch):
        monkeypatch.delenv("N2VOCAB_DATA", raising=False)
        path = self.temp_dir / "config.yaml"
        path.write_text("practice:\n  count: '30'\n", encoding="utf-8")
        assert load_config(str(path))["practice"]["count"] == 30

    def test_env_overrides_base_path(self, monkeypatch):
        monkeypatch.setenv("N2VOCAB_DATA", "/tmp/n2")
        path = self.temp_dir / "config.yaml"
        path.write_text("data:\n  base_path: elsewhere\n", encoding="utf-8")
        assert load_config(str(path))["data"]["base_path"] == "/tmp/n2"
