"""User settings for FamilyTree."""

import json
import logging
import os
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the configuration directory, honouring FAMILYTREE_CONFIG_DIR."""
    override = os.environ.get("FAMILYTREE_CONFIG_DIR")
    config_dir = Path(override) if override else Path.home() / ".config" / "familytree"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_settings_path() -> Path:
    return get_config_dir() / "settings.json"


@dataclass
class EditorSettings:
    """Editor preferences."""
    show_grid: bool = True
    grid_size: int = 30
    button_zoom_step: float = 0.1
    wheel_zoom_step: float = 0.05
    child_offset: float = 100
    export_scale: float = 2.0
    window_width: int = 1400
    window_height: int = 900

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, data: Optional[str]) -> "EditorSettings":
        if not data:
            return cls()
        try:
            d = json.loads(data)
            # Filter to only known fields to handle schema evolution
            known = {f.name for f in cls.__dataclass_fields__.values()}
            return cls(**{k: v for k, v in d.items() if k in known})
        except (json.JSONDecodeError, TypeError, AttributeError):
            logger.warning("Ignoring unreadable settings, using defaults")
            return cls()

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "EditorSettings":
        path = path or get_settings_path()
        if not path.exists():
            return cls()
        return cls.from_json(path.read_text(encoding="utf-8"))

    def save(self, path: Optional[Path] = None):
        path = path or get_settings_path()
        path.write_text(self.to_json(), encoding="utf-8")


def configure_logging(verbose: bool = False):
    """Set up root logging from FAMILYTREE_LOG_LEVEL (or --verbose)."""
    level_name = "DEBUG" if verbose else os.environ.get("FAMILYTREE_LOG_LEVEL", "WARNING")
    level = getattr(logging, level_name.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
