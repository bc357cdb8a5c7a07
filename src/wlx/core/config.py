"""Configuration system for the Wayuu lexicon engine.

Layered config loading (lowest to highest priority):
1. config/default.toml (shipped with package)
2. ~/.config/wlx/config.toml (user-level)
3. ./wlx.toml (project-level)
4. Environment variables (WLX_CACHE__MAX_AGE_HOURS, etc.)
5. CLI flags
"""

from __future__ import annotations

import tomllib
from pathlib import Path

from pydantic import BaseModel
from pydantic_settings import BaseSettings, EnvSettingsSource, SettingsConfigDict

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent.parent.parent
_DEFAULT_CONFIG = _PACKAGE_ROOT / "config" / "default.toml"
_USER_CONFIG = Path.home() / ".config" / "wlx" / "config.toml"
_PROJECT_CONFIG = Path("wlx.toml")


class CacheConfig(BaseModel):
    dir: Path = Path("./data")
    max_age_hours: float = 24.0
    refresh_cooldown_seconds: float = 300.0

    @property
    def max_age_seconds(self) -> float:
        return self.max_age_hours * 3600


class FetchConfig(BaseModel):
    base_url: str = "https://datasets-server.huggingface.co/rows"
    page_size: int = 100  # datasets-server maximum
    page_timeout: float = 30.0
    pacing_delay: float = 0.1
    user_agent: str = "WayuuTranslator/1.0"
    max_dictionary_entries: int = 2200
    max_audio_entries: int = 1000
    rate_limit_wait: float = 5.0
    max_rate_limit_retries: int = 3


class AudioConfig(BaseModel):
    # must not be <cache.dir>/audio, which holds the audio dataset cache
    download_dir: Path = Path("./data/audio-files")
    duration_cache_file: Path = Path("./data/audio-duration-cache.json")
    download_concurrency: int = 5
    batch_pause: float = 1.0
    download_timeout: float = 30.0


class SourceSettings(BaseModel):
    """A remote dataset source as written in a config file."""

    id: str
    name: str
    dataset: str
    config: str = "default"
    split: str = "train"
    kind: str = "dictionary"  # "dictionary", "audio" or "mixed"
    is_active: bool = True
    priority: int | None = None
    description: str = ""
    url: str = ""


class WLXConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WLX_",
        env_nested_delimiter="__",
    )

    cache: CacheConfig = CacheConfig()
    fetch: FetchConfig = FetchConfig()
    audio: AudioConfig = AudioConfig()
    sources: list[SourceSettings] = []
def _read_layer(path: Path) -> dict:
    """Parsed TOML layer, or an empty layer when the file is absent."""
    if not path.is_file():
        return {}
    with path.open("rb") as f:
        return tomllib.load(f)


def _deep_merge(base: dict, override: dict) -> dict:
    """Merge override into a copy of base, descending into shared tables."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = _deep_merge(current, value)
        merged[key] = value
    return merged


def _set_dotted(data: dict, key: str, value: object) -> None:
    """Set ``data["cache"]["dir"]`` from the key ``"cache.dir"``."""
    *tables, leaf = key.split(".")
    for table in tables:
        data = data.setdefault(table, {})
    data[leaf] = value


def load_config(**cli_overrides: object) -> WLXConfig:
    """Load configuration from all layers and merge.

    Args:
        **cli_overrides: Direct overrides from CLI flags. Keys can be
            dot-separated (e.g. cache.dir="/tmp/wlx"). None values are skipped.
    """
    # Layers 1-3: TOML files
    layers = [_read_layer(p) for p in (_DEFAULT_CONFIG, _USER_CONFIG, _PROJECT_CONFIG)]
    # Layer 4: env vars
    layers.append(EnvSettingsSource(WLXConfig)())

    config_data: dict = {}
    for layer in layers:
        config_data = _deep_merge(config_data, layer)

    # Layer 5: CLI overrides
    for key, value in cli_overrides.items():
        if value is not None:
            _set_dotted(config_data, key, value)

    return WLXConfig(**config_data)
