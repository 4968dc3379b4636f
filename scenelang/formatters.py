"""Scene Output Formatters — Human-friendly terminal output.

Provides output modes for parse results:
    pretty   — colored, source line with a caret under the error (default)
    json     — machine-readable
"""

from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional

from scenelang.errors import ParseError
from scenelang.loader import CheckResult


# ── ANSI color helpers ───────────────────────────────────────────────────

_NO_COLOR = os.environ.get("NO_COLOR") is not None or not sys.stdout.isatty()


def set_color(enabled: bool) -> None:
    """Force color output off (or back to the terminal default)."""
    global _NO_COLOR
    _NO_COLOR = (not enabled) or os.environ.get("NO_COLOR") is not None or not sys.stdout.isatty()


def _c(code: str, text: str) -> str:
    if _NO_COLOR:
        return text
    return f"\033[{code}m{text}\033[0m"


def red(t: str) -> str:
    return _c("31", t)


def green(t: str) -> str:
    return _c("32", t)


def cyan(t: str) -> str:
    return _c("36", t)


def bold(t: str) -> str:
    return _c("1", t)


def dim(t: str) -> str:
    return _c("2", t)


ICON_ERROR = "✖"
ICON_OK = "✔"


# ── Parse errors ─────────────────────────────────────────────────────────

def format_parse_error(error: ParseError, source: Optional[str] = None, fmt: str = "pretty") -> str:
    """Render a parse error; pretty mode points at the offending column."""
    if fmt == "json":
        return error.to_json()

    loc = error.location
    lines: List[str] = []
    where = f"{loc}: " if loc else ""
    lines.append(f"{red(ICON_ERROR)} {bold(where + error.kind.value)}: {error.message}")

    if loc is not None and source is not None:
        source_lines = source.splitlines()
        if 0 < loc.line <= len(source_lines):
            text = source_lines[loc.line - 1].replace("\t", " ")
            gutter = f"{loc.line:>4} | "
            lines.append(dim(gutter) + text)
            lines.append(" " * (len(gutter) + loc.column - 1) + red("^"))

    expected = error.error.details.get("expected")
    if expected:
        lines.append(dim(f"  expected: {', '.join(expected)}"))
    return "\n".join(lines)


# ── Check results ────────────────────────────────────────────────────────

def format_check_result(result: CheckResult, fmt: str = "pretty") -> str:
    if fmt == "json":
        return json.dumps(result.to_dict(), indent=2)
    if result.ok:
        count = len(result.program.statements) if result.program else 0
        return f"{green(ICON_OK)} {result.path} {dim(f'({count} statements)')}"
    return format_parse_error(result.error, result.source, fmt="pretty")


def format_check_summary(results: List[CheckResult], fmt: str = "pretty") -> str:
    failed = [r for r in results if not r.ok]
    if fmt == "json":
        summary: Dict[str, Any] = {
            "files": len(results),
            "failed": len(failed),
            "results": [r.to_dict() for r in results],
        }
        return json.dumps(summary, indent=2)

    lines = [format_check_result(r) for r in results]
    status = red(f"{len(failed)} failed") if failed else green("all ok")
    lines.append("")
    lines.append(f"{bold('Checked')} {cyan(str(len(results)))} file(s): {status}")
    return "\n".join(lines)
