import os
from pathlib import Path

import yaml

CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "family_archive.yml"
CONFIG_ENV = "FAMILY_ARCHIVE_CONFIG"

DEFAULTS = {
    "paths": {"logs_dir": "logs"},
    "logging": {"level": "INFO", "file": "family_archive.log", "rotate": False},
    "importer": {"max_generations": 4},
    "cache": {"chunk_size": 200},
    "store": {"backend": "memory", "url": None, "api_key_env": "FAMILY_ARCHIVE_API_KEY", "timeout": 30},
    "debug": False,
}


class ArchiveConfig:
    def __init__(self, data):
        self.paths = {**DEFAULTS["paths"], **(data.get("paths") or {})}
        self.logging = {**DEFAULTS["logging"], **(data.get("logging") or {})}
        self.importer = {**DEFAULTS["importer"], **(data.get("importer") or {})}
        self.cache = {**DEFAULTS["cache"], **(data.get("cache") or {})}
        self.store = {**DEFAULTS["store"], **(data.get("store") or {})}
        self.debug = data.get("debug", False)

    @property
    def max_generations(self) -> int:
        return int(self.importer["max_generations"])

    @property
    def chunk_size(self) -> int:
        return int(self.cache["chunk_size"])


def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV)
    return Path(override) if override else CONFIG_PATH


def load_config() -> 'ArchiveConfig':
    path = config_path()
    if not path.exists():
        # Installed without the repo checkout: run on defaults.
        return ArchiveConfig({})

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    return ArchiveConfig(data)

_config_cache = None

def get_config() -> 'ArchiveConfig':
    global _config_cache
    if _config_cache is None:
        _config_cache = load_config()
    return _config_cache


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads the file."""
    global _config_cache
    _config_cache = None
