from typing import Any, Optional
import json
import os
from pydantic import BaseModel, Field
from loguru import logger
from .events import Signal

# --- Settings Models ---
class GeneralSettings(BaseModel):
    debug_mode: bool = True
    log_dir: Optional[str] = None

class TreeSettings(BaseModel):
    page_size: int = Field(default=50, gt=0)  # Children fetched per provider call
    debounce_ms: int = Field(default=200, ge=0)  # Quiet period before a scrolled range is loaded

class ExampleSettings(BaseModel):
    root_count: int = Field(default=1000, ge=0)
    child_count: int = Field(default=10, ge=0)
    max_delay_ms: int = Field(default=0, ge=0)  # Simulated provider latency upper bound

class AppConfig(BaseModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    tree: TreeSettings = Field(default_factory=TreeSettings)
    example: ExampleSettings = Field(default_factory=ExampleSettings)

# --- Manager ---
class ConfigManager:
    """
    Manages configuration with optional persistence and reactivity.

    Without a ``filepath`` the configuration lives in memory only.
    """
    def __init__(self, filepath: Optional[str] = None):
        self.filepath = filepath
        self._data = AppConfig()
        self.on_changed = Signal("ConfigChanged")
        if self.filepath:
            self._load()

    @property
    def data(self) -> AppConfig:
        return self._data

    def update(self, section: str, key: str, value: Any):
        """Update a setting, validate via Pydantic, autosave, and emit change event."""
        if not hasattr(self._data, section):
            raise ValueError(f"Invalid section: {section}")

        section_obj = getattr(self._data, section)
        if key not in type(section_obj).model_fields:
            raise ValueError(f"Invalid key: {key} in section {section}")

        validated = type(section_obj).model_validate({**section_obj.model_dump(), key: value})
        setattr(self._data, section, validated)
        self._save()
        self.on_changed.emit(section, key, getattr(validated, key))

    def get(self, section: str, key: str) -> Any:
        section_obj = getattr(self._data, section)
        return getattr(section_obj, key)

    def _load(self):
        """Load settings from JSON or TOML file if present; otherwise keep defaults."""
        if os.path.isfile(self.filepath):
            try:
                if self.filepath.endswith('.toml'):
                    import tomllib
                    with open(self.filepath, "rb") as f:
                        raw = tomllib.load(f)
                else:
                    with open(self.filepath, "r", encoding="utf-8") as f:
                        raw = json.load(f)
                self._data = AppConfig.model_validate(raw)
            except Exception as e:
                logger.error(f"Failed to load config from {self.filepath}: {e}")
                self._save()
        else:
            self._save()

    def _save(self):
        """Persist current config to JSON file."""
        if not self.filepath or self.filepath.endswith('.toml'):
            return
        try:
            dirname = os.path.dirname(self.filepath)
            if dirname:
                os.makedirs(dirname, exist_ok=True)
            with open(self.filepath, "w", encoding="utf-8") as f:
                json.dump(self._data.model_dump(), f, indent=4)
        except Exception as e:
            logger.error(f"Failed to save config to {self.filepath}: {e}")
