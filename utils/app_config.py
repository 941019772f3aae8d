"""Pre-DB bootstrap configuration. Depends on utils.constants only.

Stores user preferences that must be known before opening the DB (e.g. db_folder).
Config lives in ~/.household_ledger/config.json to avoid a bootstrapping problem.
"""
import json
import logging
import os
from pathlib import Path

from utils.constants import DB_FILE, LOG_LEVEL

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".household_ledger"
CONFIG_FILE = CONFIG_DIR / "config.json"


def load_config(config_file: Path | None = None) -> dict:
    """Returns {} on a missing or corrupt file; never raises."""
    path = config_file or CONFIG_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable config {path}: {e}")
        return {}


def save_config(config: dict, config_file: Path | None = None) -> None:
    """Creates the config folder if needed; atomic write via .tmp + os.replace()."""
    path = config_file or CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(".tmp")
    try:
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        os.replace(tmp, path)
    except OSError as e:
        logger.error(f"Could not save config {path}: {e}", exc_info=True)
        tmp.unlink(missing_ok=True)
        raise


def get_db_folder() -> str | None:
    """Return config["db_folder"] or None if not set."""
    return load_config().get("db_folder")


def set_db_folder(path: str | None) -> None:
    """Update db_folder in config and save."""
    config = load_config()
    if path is None:
        config.pop("db_folder", None)
    else:
        config["db_folder"] = path
    save_config(config)


def resolve_db_path(db_folder: str | None = None) -> str:
    """Full path of the ledger DB file; defaults to the config folder."""
    folder = Path(db_folder) if db_folder else CONFIG_DIR
    folder.mkdir(parents=True, exist_ok=True)
    return str(folder / DB_FILE)


def get_log_level() -> int:
    """Get the configured log level."""
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(LOG_LEVEL.upper(), logging.INFO)
