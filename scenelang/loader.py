"""Scene Loader — reading and discovering .scene files.

Usage:
    from scenelang.loader import load_scene, find_scene_files
    program = load_scene("globes.scene")
    for path in find_scene_files("scenes/"):
        ...
"""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from scenelang.ast_nodes import Program
from scenelang.config import SceneConfig
from scenelang.errors import ParseError, LexicalError, SourceLocation, lexical_error
from scenelang.parser import parse

logger = logging.getLogger(__name__)

# Always skipped while walking a directory.
_IGNORED_DIRS = [
    ".git", "__pycache__", "node_modules", ".venv", "venv",
    ".tox", ".mypy_cache", ".pytest_cache", "dist", "build",
]


def read_source(path: str) -> str:
    """Read a scene file as UTF-8 text with newlines normalized to \\n.

    Undecodable bytes raise LexicalError at the first bad byte.
    """
    with open(path, "rb") as f:
        data = f.read()
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        prefix = data[:e.start].decode("utf-8")
        line = prefix.count("\n") + 1
        column = len(prefix) - (prefix.rfind("\n") + 1) + 1
        raise LexicalError(lexical_error(
            f"Invalid UTF-8 byte 0x{data[e.start]:02x} at byte offset {e.start}",
            SourceLocation(line, column, path, len(prefix)),
        )) from None
    return text.replace("\r\n", "\n").replace("\r", "\n")


def load_scene(path: str, memoize: bool = True) -> Program:
    """Read a scene file and parse it; raises ParseError on invalid input."""
    source = read_source(path)
    logger.info("loading scene %s (%d bytes)", path, len(source))
    return parse(source, filename=path, memoize=memoize)


def _is_ignored_dir(name: str) -> bool:
    if name.startswith("."):
        return True
    return any(fnmatch.fnmatch(name, pattern) for pattern in _IGNORED_DIRS)


def find_scene_files(root: str, config: Optional[SceneConfig] = None) -> List[str]:
    """Discover scene files in a directory tree.

    Include/exclude patterns from the config are matched against the
    path relative to root.
    """
    config = config or SceneConfig()
    files: List[str] = []
    root = os.path.abspath(root)

    for dirpath, dirnames, filenames in os.walk(root):
        # Filter in place to prevent os.walk descent
        dirnames[:] = [d for d in dirnames if not _is_ignored_dir(d)]

        for filename in filenames:
            if os.path.splitext(filename)[1] != config.extension:
                continue
            filepath = os.path.join(dirpath, filename)
            rel = os.path.relpath(filepath, root)
            if not config.should_include(rel) or config.should_exclude(rel):
                logger.debug("skipping %s", rel)
                continue
            files.append(filepath)

    logger.debug("found %d scene files under %s", len(files), root)
    return sorted(files)


@dataclass
class CheckResult:
    """Outcome of syntax-checking one scene file."""
    path: str
    source: str = ""
    program: Optional[Program] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        d: dict = {"file": self.path, "ok": self.ok}
        if self.program is not None:
            d["statements"] = len(self.program.statements)
        if self.error is not None:
            d["error"] = self.error.to_dict()
        return d


def check_file(path: str, config: Optional[SceneConfig] = None) -> CheckResult:
    config = config or SceneConfig()
    try:
        source = read_source(path)
    except OSError as e:
        logger.debug("%s: %s", path, e)
        error = LexicalError(lexical_error(
            f"Cannot read file: {e.strerror or e}", SourceLocation(1, 1, path, 0),
        ))
        return CheckResult(path=path, error=error)
    except ParseError as e:
        logger.debug("%s: %s", path, e)
        return CheckResult(path=path, error=e)
    try:
        program = parse(source, filename=path, memoize=config.memoize)
    except ParseError as e:
        logger.debug("%s: %s", path, e)
        return CheckResult(path=path, source=source, error=e)
    return CheckResult(path=path, source=source, program=program)
