"""JSON file storage for vocabulary and review progress."""

import json
import logging
import tempfile
from datetime import date
from pathlib import Path
from typing import Any, Mapping

from n2vocab.core.errors import PersistenceError
from n2vocab.core.models import ReviewState
from n2vocab.core.review_store import ReviewStateBackend


logger = logging.getLogger(__name__)


def read_json(path: str | Path) -> Any:
    """Read a JSON document.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not valid UTF-8 JSON
    """
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: str | Path, data: Any) -> None:
    """Write a JSON document, creating parent directories.

    The document goes to a temporary file beside `path` that then replaces
    it, so an interrupted write leaves the previous file intact.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    f = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.",
        suffix=".tmp", delete=False,
    )
    tmp_path = Path(f.name)
    try:
        with f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        tmp_path.replace(path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise


def states_to_dict(states: Mapping[str, ReviewState]) -> dict:
    """Serialize review state to the persisted mapping format."""
    return {key: state.to_dict() for key, state in states.items()}


def states_from_dict(data: Any) -> dict[str, ReviewState]:
    """Parse the persisted mapping format.

    Raises:
        PersistenceError: If the data is not a mapping of valid states
    """
    if not isinstance(data, dict):
        raise PersistenceError("Progress data must be a JSON object")
    try:
        return {str(key): ReviewState.from_dict(value) for key, value in data.items()}
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise PersistenceError(f"Invalid progress record: {e}") from e


class JsonFileBackend(ReviewStateBackend):
    """Review state kept in a single JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> dict[str, ReviewState]:
        if not self.path.exists():
            return {}
        try:
            data = read_json(self.path)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Could not read {self.path}: {e}") from e
        return states_from_dict(data)

    def save(self, states: Mapping[str, ReviewState]) -> None:
        try:
            write_json(self.path, states_to_dict(states))
        except OSError as e:
            logger.error("Could not write %s: %s", self.path, e)
            raise PersistenceError(f"Could not write {self.path}: {e}") from e


def export_filename(today: date) -> str:
    """Suggested name for a progress export made on `today`."""
    return f"n2_progress_{today.isoformat()}.json"


def export_progress(
    states: Mapping[str, ReviewState], directory: str | Path, today: date
) -> Path:
    """Write a dated progress export into `directory`.

    Raises:
        PersistenceError: If the file cannot be written
    """
    path = Path(directory) / export_filename(today)
    try:
        write_json(path, states_to_dict(states))
    except OSError as e:
        raise PersistenceError(f"Export failed: {e}") from e
    logger.info("Exported progress for %d words to %s", len(states), path)
    return path


def import_progress(path: str | Path) -> dict[str, ReviewState]:
    """Read a progress export.

    Raises:
        PersistenceError: If the file cannot be read or is malformed
    """
    try:
        data = read_json(path)
    except (OSError, ValueError) as e:
        raise PersistenceError(f"Import failed: {e}") from e
    return states_from_dict(data)
