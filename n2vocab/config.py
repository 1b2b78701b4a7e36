"""Configuration loading."""

import copy
import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from n2vocab.core.quiz import QuizMode


logger = logging.getLogger(__name__)

BACKENDS = ("json", "sqlite")

DEFAULTS = {
    "data": {
        "base_path": "data",
        "backend": "json",
        "progress_file": "progress.json",
        "database": "n2vocab.db",
        "vocabulary": None,
        "export_dir": None,
    },
    "practice": {
        "count": 20,
        "mode": "flash",
    },
    "display": {
        "show_kanji": True,
    },
    "tts": {
        "lang": "ja",
    },
    "logging": {
        "file": None,
        "level": "INFO",
    },
}


def _merge(base: dict, override: dict) -> dict:
    """Recursively merge `override` into a copy of `base`."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_file(path: str) -> dict:
    """Read one YAML config file; unreadable or malformed files count as empty."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Ignoring config file %s: %s", path, e)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring config file %s: top level must be a mapping", path)
        return {}
    return data


def _fallback(config: dict, section: str, key: str, reason: str) -> None:
    default = DEFAULTS[section][key]
    logger.warning("Invalid %s.%s %r (%s), using %r",
                   section, key, config[section][key], reason, default)
    config[section][key] = default


def _validate(config: dict) -> dict:
    """Replace invalid settings with their defaults."""
    for section, defaults in DEFAULTS.items():
        if not isinstance(config.get(section), dict):
            logger.warning("Invalid config section %r, using defaults", section)
            config[section] = copy.deepcopy(defaults)

    practice = config["practice"]
    if practice["mode"] not in [mode.value for mode in QuizMode]:
        _fallback(config, "practice", "mode", "unknown mode")
    count = practice["count"]
    if isinstance(count, bool):
        _fallback(config, "practice", "count", "not a number")
    else:
        try:
            practice["count"] = int(count)
        except (TypeError, ValueError):
            _fallback(config, "practice", "count", "not a number")
        else:
            if practice["count"] <= 0:
                _fallback(config, "practice", "count", "must be positive")

    if config["data"]["backend"] not in BACKENDS:
        _fallback(config, "data", "backend", "unknown backend")
    if not isinstance(config["display"]["show_kanji"], bool):
        _fallback(config, "display", "show_kanji", "not a boolean")
    return config


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from the first YAML file found, over the defaults.

    Looks at `config_path`, ./config.yaml and ~/.config/n2vocab/config.yaml.
    The N2VOCAB_DATA environment variable overrides data.base_path. Invalid
    files and values are logged and replaced by the defaults.
    """
    paths_to_try = [
        config_path,
        "config.yaml",
        os.path.expanduser("~/.config/n2vocab/config.yaml"),
    ]

    config = copy.deepcopy(DEFAULTS)
    for path in paths_to_try:
        if path and os.path.exists(path):
            config = _merge(DEFAULTS, _read_file(path))
            break
    _validate(config)

    data_dir = os.environ.get("N2VOCAB_DATA")
    if data_dir:
        config["data"]["base_path"] = data_dir
    return config


def base_path(config: dict) -> Path:
    return Path(config["data"]["base_path"])


def setup_logging(config: dict) -> None:
    """Send log output to a file; the terminal belongs to the UI."""
    log_config = config.get("logging", {})
    log_file = log_config.get("file") or base_path(config) / "n2vocab.log"
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_file),
        level=getattr(logging, str(log_config.get("level", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
