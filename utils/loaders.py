# utils/loaders.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict

import yaml


# -----------------------------
# Paths
# -----------------------------
@dataclass(frozen=True)
class DataPaths:
    """
    Centralized paths so every module refers to the same folders.
    Expected structure:
      <root>/data/raw/*.csv
      <root>/data/processed/
      <root>/config/*.yaml   (optional)
    """
    root: Path

    @property
    def data_dir(self) -> Path:
        return self.root / "data"

    @property
    def raw_dir(self) -> Path:
        return self.data_dir / "raw"

    @property
    def processed_dir(self) -> Path:
        return self.data_dir / "processed"

    @property
    def config_dir(self) -> Path:
        return self.root / "config"

    def ensure(self) -> "DataPaths":
        self.raw_dir.mkdir(parents=True, exist_ok=True)
        self.processed_dir.mkdir(parents=True, exist_ok=True)
        self.config_dir.mkdir(parents=True, exist_ok=True)
        return self


def default_root() -> Path:
    return Path(__file__).resolve().parents[1]


# -----------------------------
# YAML loaders
# -----------------------------
def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings(root: Path | None = None) -> dict:
    """
    Loads config/settings.yaml
    """
    root = root or default_root()
    return _load_yaml(root / "config" / "settings.yaml")


def load_mappings(root: Path | None = None) -> dict:
    """
    Loads config/mappings.yaml
    """
    root = root or default_root()
    return _load_yaml(root / "config" / "mappings.yaml")


# -----------------------------
# Settings accessors
# -----------------------------
def _data_settings(settings: Dict | None) -> Dict:
    return (settings or {}).get("data") or {}


def ledger_file(paths: DataPaths, settings: Dict | None = None) -> Path:
    return paths.raw_dir / _data_settings(settings).get("ledger_file", "ledger.csv")


def renewals_file(paths: DataPaths, settings: Dict | None = None) -> Path:
    return paths.raw_dir / _data_settings(settings).get("renewals_file", "renewals.csv")


def measure_set_name(settings: Dict | None = None) -> str:
    return str(_data_settings(settings).get("measure_set", "kd"))


def renewal_window_days(settings: Dict | None = None) -> int:
    return int(((settings or {}).get("renewal") or {}).get("window_days", 90))
