from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any
from paths import get_data_dir

logger = logging.getLogger(__name__)


def data_path(filename: str | Path) -> Path:
    """
    Resolve a file path inside the app data directory.
    """
    return get_data_dir() / Path(filename)


def _backup_file(path: Path, content: str) -> None:
    backup = path.with_suffix(path.suffix + ".bak")
    try:
        backup.write_text(content, encoding="utf-8")
    except OSError:
        # If backup fails we still continue with a reset
        logger.exception("Could not write backup %s", backup)


def load_json(path: Path | str, default: Any = None) -> Any:
    """
    Load JSON from path with safety:
    - If missing: return default
    - If empty or invalid: write .bak and reset to default
    """
    path = Path(path)
    fallback = {} if default is None else default
    path.parent.mkdir(parents=True, exist_ok=True)

    if not path.exists():
        return fallback

    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError:
        logger.warning("Could not read %s, using defaults", path)
        return fallback

    text = raw_text.strip()
    if not text:
        logger.warning("%s is empty, resetting", path)
        _backup_file(path, raw_text)
        save_json(path, fallback)
        return fallback

    try:
        return json.loads(text)
    except ValueError:
        logger.warning("%s is not valid JSON, backing up and resetting", path)
        _backup_file(path, raw_text)
        save_json(path, fallback)
        return fallback


def save_json(path: Path | str, payload: Any) -> None:
    """
    Atomic JSON write: write to temp file then replace target.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    temp = path.with_suffix(path.suffix + ".tmp")
    temp.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    temp.replace(path)
