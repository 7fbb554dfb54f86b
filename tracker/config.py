"""Settings, data root and logging setup for tracker."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tracker.errors import ValidationFailed
from tracker.fileio import read_yaml, write_yaml_atomic

VALID_STORES = {"memory", "json"}
CONFIG_FILENAME = "tracker.yaml"


def data_root() -> Path:
    """Directory holding tracker.yaml and the JSON collections."""
    return Path(
        os.environ.get("TRACKER_ROOT", str(Path.home() / ".tracker"))
    ).expanduser().resolve()


def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / CONFIG_FILENAME


@dataclass
class Settings:
    data_root: Path = field(default_factory=data_root)
    store: str = "memory"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, root: Path, d: dict[str, Any]) -> Settings:
        store = str(d.get("store", "memory")).strip().lower()
        if store not in VALID_STORES:
            raise ValidationFailed("store", f"Invalid store: {store}")
        return cls(
            data_root=root,
            store=store,
            log_level=str(d.get("log_level", "INFO")).upper(),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"store": self.store, "log_level": self.log_level}

    def collection_path(self, name: str) -> Path:
        return self.data_root / f"{name}.json"


def load_settings(root: Path | None = None) -> Settings:
    """Defaults overlaid with <root>/tracker.yaml, if present."""
    if root is None:
        root = data_root()
    return Settings.from_dict(root, read_yaml(config_path(root)))


def save_settings(settings: Settings) -> None:
    write_yaml_atomic(config_path(settings.data_root), settings.to_dict())


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("tracker").setLevel(level)
