"""Scene Configuration — Project-level .scenerc.yml support.

Loads configuration from .scenerc.yml (or .scenerc.yaml, .scenerc.json,
scenelang.yml) found by walking up from the working directory. Allows
projects to configure:
  - Output format of `scenelang check`
  - Packrat memoization (disable only to debug the parser)
  - Indentation used by `scenelang fmt`
  - Which files directory checks pick up

Example .scenerc.yml:
    format: pretty
    indent: 2
    extension: .scene
    include:
      - "scenes/*"
    exclude:
      - "scenes/broken/*"
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class SceneConfig:
    """Project-level scenelang configuration."""
    # Output: "pretty" or "json"
    format: str = "pretty"
    memoize: bool = True
    indent: int = 4
    # Directory scanning
    extension: str = ".scene"
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    color: bool = True

    def should_include(self, filepath: str) -> bool:
        """Check if a file should be included based on patterns."""
        import fnmatch
        if not self.include:
            return True
        return any(fnmatch.fnmatch(filepath, p) for p in self.include)

    def should_exclude(self, filepath: str) -> bool:
        """Check if a file should be excluded based on patterns."""
        import fnmatch
        if not self.exclude:
            return False
        return any(fnmatch.fnmatch(filepath, p) for p in self.exclude)


# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".scenerc.yml",
    ".scenerc.yaml",
    ".scenerc.json",
    "scenelang.yml",
]


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> SceneConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    If no config file is found, returns defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return SceneConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("cannot read config %s: %s", path, e)
        return SceneConfig()

    try:
        if path.endswith(".json"):
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.warning("ignoring malformed config %s: %s", path, e)
        return SceneConfig()

    if not isinstance(data, dict):
        data = {}
    try:
        config = _dict_to_config(data)
    except (TypeError, ValueError) as e:
        logger.warning("ignoring config %s with invalid value: %s", path, e)
        return SceneConfig()
    logger.debug("loaded config from %s", path)
    return config


_FORMATS = ("pretty", "json")


def _dict_to_config(data: Dict[str, Any]) -> SceneConfig:
    """Convert a parsed dict to SceneConfig."""
    config = SceneConfig()

    known = {f.name for f in fields(SceneConfig)}
    for key in data:
        if key not in known:
            logger.debug("unknown config key %r ignored", key)

    if "format" in data:
        config.format = str(data["format"])
        if config.format not in _FORMATS:
            raise ValueError(f"format must be one of {_FORMATS}, got {config.format!r}")
    if "memoize" in data:
        config.memoize = bool(data["memoize"])
    if "indent" in data:
        config.indent = int(data["indent"])
        if config.indent < 0:
            raise ValueError(f"indent must not be negative, got {config.indent}")
    if "extension" in data:
        ext = str(data["extension"])
        config.extension = ext if ext.startswith(".") else "." + ext
    if "include" in data and isinstance(data["include"], list):
        config.include = [str(p) for p in data["include"]]
    if "exclude" in data and isinstance(data["exclude"], list):
        config.exclude = [str(p) for p in data["exclude"]]
    if "color" in data:
        config.color = bool(data["color"])

    return config
