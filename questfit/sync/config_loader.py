"""Load, validate, and hot-reload the per-category field allow-list.

The allow-list lives in ``sync_config.yaml`` alongside this module.  It is
loaded once, validated, and cached; ``reload_sync_config()`` re-reads it from
disk.

Usage::

    from questfit.sync.config_loader import get_sync_config

    config = get_sync_config()
    kept = config.filter("sleep", vendor_payload)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from questfit.errors import QuestFitError
from questfit.polar.models import ALL_CATEGORIES

logger = logging.getLogger("questfit.sync.config")

_CONFIG_PATH = Path(__file__).parent / "sync_config.yaml"


class ConfigValidationError(QuestFitError, ValueError):
    """Raised when sync_config.yaml fails validation."""


@dataclass(frozen=True)
class SyncConfig:
    """Validated allow-list configuration.

    Attributes:
        version:    Config schema version string.
        allowlists: Permitted top-level keys per category.
    """

    version: str
    allowlists: dict[str, frozenset[str]]
    _raw: dict = field(default_factory=dict, repr=False, compare=False)

    def allowed_fields(self, category: str) -> frozenset[str]:
        """Permitted keys for a category; empty when the category is unknown."""
        return self.allowlists.get(category, frozenset())

    def filter(self, category: str, payload: dict[str, Any] | None) -> dict[str, Any]:
        """Drop every top-level key of ``payload`` not on the category's list.

        Args:
            category: Category name (e.g. 'sleep').
            payload:  Vendor JSON object.  None yields an empty dict.

        Returns:
            New dict holding only allow-listed keys.
        """
        if not payload:
            return {}
        allowed = self.allowed_fields(category)
        return {k: v for k, v in payload.items() if k in allowed}


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        raise FileNotFoundError(f"Sync config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def build_sync_config(raw: dict) -> SyncConfig:
    """Validate a parsed config dict and construct a SyncConfig.

    Args:
        raw: Parsed YAML dict.

    Returns:
        Validated SyncConfig.

    Raises:
        ConfigValidationError: On an unknown category, a category that is not
            a list of strings, or a missing ``categories`` section.
    """
    errors: list[str] = []
    categories_raw = raw.get("categories")

    if not isinstance(categories_raw, dict) or not categories_raw:
        raise ConfigValidationError("sync_config.yaml: 'categories' section is missing or empty")

    allowlists: dict[str, frozenset[str]] = {}
    for category, fields in categories_raw.items():
        if category not in ALL_CATEGORIES:
            errors.append(f"Unknown category '{category}'")
            continue
        if not isinstance(fields, list) or not all(isinstance(f, str) for f in fields):
            errors.append(f"categories.{category} must be a list of field names")
            continue
        allowlists[category] = frozenset(fields)

    missing = [c for c in ALL_CATEGORIES if c not in categories_raw]
    if missing:
        logger.warning("No allow-list for %s; all fields will be dropped", ", ".join(missing))

    if errors:
        raise ConfigValidationError(
            f"sync_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  - {e}" for e in errors)
        )

    return SyncConfig(version=str(raw.get("version", "1.0")), allowlists=allowlists, _raw=raw)


def load_sync_config(path: Path | None = None) -> SyncConfig:
    target = path or _CONFIG_PATH
    config = build_sync_config(_load_yaml(target))
    logger.info("Loaded sync config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with reload support
# ---------------------------------------------------------------------------

_config: SyncConfig | None = None
_config_lock = threading.Lock()


def get_sync_config() -> SyncConfig:
    """Return the global SyncConfig, loading it on first call.  Thread-safe."""
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = load_sync_config()
    return _config


def reload_sync_config(path: Path | None = None) -> SyncConfig:
    """Re-read the allow-list and replace the singleton.

    If validation fails the previous config is kept and the error re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_sync_config(path)
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded sync config: %s -> %s", old_version, new_config.version)
    return new_config
