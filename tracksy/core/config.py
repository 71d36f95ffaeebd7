"""Configuration loader for Tracksy.

Handles loading, saving, and default creation of config.json.
Resolves platform-appropriate data directories:
  - macOS:   ~/Library/Application Support/Tracksy
  - Windows: %APPDATA%/Tracksy
  - Other:   ~/.tracksy
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Pipeline constants
TRACKING_INTERVAL_MS = 3000
MERGE_GAP_MS = 15 * 60 * 1000
SEGMENT_GAP_MS = 5000
MAX_ITEMS_PER_REPORT = 7
COMPACTION_BATCH_SIZE = 100


def get_data_directory() -> Path:
    """Return the platform-appropriate data directory for Tracksy."""
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    else:
        base = Path.home()
        return base / ".tracksy"
    return base / "Tracksy"


def get_default_config() -> dict[str, Any]:
    """Return the default configuration dictionary."""
    data_dir = get_data_directory()
    return {
        "tracking_interval_ms": TRACKING_INTERVAL_MS,
        "merge_gap_ms": MERGE_GAP_MS,
        "segment_gap_ms": SEGMENT_GAP_MS,
        "max_items_per_report": MAX_ITEMS_PER_REPORT,
        "compaction_batch_size": COMPACTION_BATCH_SIZE,
        "classification_rules": [
            {
                "id": "default-ide",
                "priority": 10,
                "matchType": "appName",
                "matchStrategy": "regex",
                "pattern": r"^(Code|Visual Studio Code|PyCharm|IntelliJ IDEA|Xcode|Sublime Text)$",
                "rating": 1,
                "categoryId": "development",
            },
            {
                "id": "default-terminal",
                "priority": 10,
                "matchType": "appName",
                "matchStrategy": "contains",
                "pattern": "Terminal",
                "rating": 1,
                "categoryId": "development",
            },
            {
                "id": "default-github",
                "priority": 20,
                "matchType": "domain",
                "matchStrategy": "exact",
                "pattern": "github.com",
                "rating": 1,
                "categoryId": "development",
            },
            {
                "id": "default-docs",
                "priority": 20,
                "matchType": "domain",
                "matchStrategy": "starts_with",
                "pattern": "docs.",
                "rating": 1,
                "categoryId": "learning",
            },
            {
                "id": "default-youtube",
                "priority": 20,
                "matchType": "domain",
                "matchStrategy": "regex",
                "pattern": r"(^|\.)youtube\.com$",
                "rating": 0,
                "categoryId": "entertainment",
            },
            {
                "id": "default-social",
                "priority": 20,
                "matchType": "domain",
                "matchStrategy": "regex",
                "pattern": r"(^|\.)(twitter|x|facebook|instagram|reddit)\.com$",
                "rating": 0,
                "categoryId": "social",
            },
            {
                "id": "default-chat",
                "priority": 5,
                "matchType": "appName",
                "matchStrategy": "regex",
                "pattern": r"^(Slack|Discord|Microsoft Teams|Messages)$",
                "categoryId": "communication",
            },
        ],
        "report": {
            "output_directory": "~/tracksy-reports",
        },
        "web_port": 5555,
        "database_path": str(data_dir / "tracksy.db"),
    }


def get_default_config_path() -> Path:
    """Return the default path for config.json."""
    return get_data_directory() / "config.json"


def pipeline_settings(config: dict[str, Any]) -> dict[str, int]:
    """Return the numeric pipeline settings from *config*, with defaults."""
    return {
        "tracking_interval_ms": int(config.get("tracking_interval_ms", TRACKING_INTERVAL_MS)),
        "merge_gap_ms": int(config.get("merge_gap_ms", MERGE_GAP_MS)),
        "segment_gap_ms": int(config.get("segment_gap_ms", SEGMENT_GAP_MS)),
        "max_items_per_report": int(config.get("max_items_per_report", MAX_ITEMS_PER_REPORT)),
        "compaction_batch_size": int(config.get("compaction_batch_size", COMPACTION_BATCH_SIZE)),
    }


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from a JSON file.

    If *path* is ``None``, the platform default location is used.
    When the file does not exist, a default configuration is created,
    written to disk, and returned.  If the file exists but is invalid
    JSON, the error is logged and defaults are returned.
    """
    config_path = Path(path) if path is not None else get_default_config_path()

    if not config_path.exists():
        logger.info("Config file not found at %s, creating defaults.", config_path)
        defaults = get_default_config()
        save_config(defaults, config_path)
        return defaults

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError("Top-level JSON value must be an object")
        return data
    except (json.JSONDecodeError, ValueError, OSError) as exc:
        logger.error("Failed to load config from %s: %s, using defaults.", config_path, exc)
        return get_default_config()


def save_config(config: dict[str, Any], path: str | Path | None = None) -> None:
    """Write *config* to a JSON file.

    If *path* is ``None``, the platform default location is used.
    Parent directories are created automatically.
    """
    config_path = Path(path) if path is not None else get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)
        fh.write("\n")
