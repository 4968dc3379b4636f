"""scenelang CLI — Command-line interface for the scene language front end.

Commands:
  scenelang parse <file.scene>         — Print the AST as JSON
  scenelang check <path>...            — Syntax-check files and directories
  scenelang fmt <file.scene>           — Print (or --write) canonical formatting
  scenelang tokens <file.scene>        — Print the token stream as JSON
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from scenelang import __version__
from scenelang.config import SceneConfig, load_config
from scenelang.errors import ParseError
from scenelang.formatters import (
    format_parse_error, format_check_summary, set_color,
)
from scenelang.lexer import tokenize
from scenelang.loader import CheckResult, check_file, find_scene_files, read_source
from scenelang.parser import parse
from scenelang.printer import format_program

logger = logging.getLogger(__name__)


def _read_input(path: str) -> Optional[str]:
    if path == "-":
        return sys.stdin.read()
    if not os.path.isfile(path):
        print(json.dumps({"error": f"File not found: {path}"}))
        return None
    try:
        return read_source(path)
    except ParseError as e:
        print(e.to_json())
    except OSError as e:
        print(json.dumps({"error": f"Cannot read {path}: {e.strerror or e}"}))
    return None


def _filename(path: str) -> str:
    return "<stdin>" if path == "-" else path


def cmd_parse(args: argparse.Namespace) -> int:
    """Parse a scene file and print its AST as JSON."""
    config: SceneConfig = args.config_obj
    source = _read_input(args.file)
    if source is None:
        return 1

    try:
        program = parse(source, filename=_filename(args.file), memoize=config.memoize)
    except ParseError as e:
        print(format_parse_error(e, source, fmt=config.format))
        return 1

    print(program.to_json(indent=args.indent))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    """Syntax-check scene files; directories are scanned recursively."""
    config: SceneConfig = args.config_obj
    fmt = args.format or config.format

    results: List[CheckResult] = []
    for target in args.paths:
        if os.path.isdir(target):
            paths = find_scene_files(target, config)
        elif os.path.isfile(target):
            paths = [target]
        else:
            print(json.dumps({"error": f"File not found: {target}"}))
            return 1
        for path in paths:
            results.append(check_file(path, config))

    print(format_check_summary(results, fmt=fmt))
    return 0 if all(r.ok for r in results) else 1


def cmd_fmt(args: argparse.Namespace) -> int:
    """Print the canonical formatting of a scene file."""
    config: SceneConfig = args.config_obj
    source = _read_input(args.file)
    if source is None:
        return 1

    try:
        program = parse(source, filename=_filename(args.file), memoize=config.memoize)
    except ParseError as e:
        print(format_parse_error(e, source, fmt=config.format))
        return 1

    indent = args.indent if args.indent is not None else config.indent
    formatted = format_program(program, indent=indent)

    if args.check:
        if formatted != source:
            print(f"would reformat {args.file}")
            return 1
        return 0

    if args.write and args.file != "-":
        if formatted != source:
            with open(args.file, "w", encoding="utf-8") as f:
                f.write(formatted)
            logger.info("reformatted %s", args.file)
        return 0

    sys.stdout.write(formatted)
    return 0


def cmd_tokens(args: argparse.Namespace) -> int:
    """Print the token stream of a scene file as JSON."""
    config: SceneConfig = args.config_obj
    source = _read_input(args.file)
    if source is None:
        return 1

    try:
        tokens = tokenize(source, _filename(args.file))
    except ParseError as e:
        print(format_parse_error(e, source, fmt=config.format))
        return 1

    print(json.dumps([t.to_dict() for t in tokens], indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scenelang",
        description="Scene description language: parser, checker and formatter",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=None, help="Config file (default: nearest .scenerc.yml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # parse
    p_parse = subparsers.add_parser("parse", help="Print the AST of a scene file as JSON")
    p_parse.add_argument("file", help="Scene file (.scene), or - for stdin")
    p_parse.add_argument("--indent", type=int, default=2, help="JSON indentation (default: 2)")
    p_parse.set_defaults(func=cmd_parse)

    # check
    p_check = subparsers.add_parser("check", help="Syntax-check scene files and directories")
    p_check.add_argument("paths", nargs="+", help="Scene files or directories")
    p_check.add_argument("--format", choices=["pretty", "json"], default=None,
                         help="Output format (default: from config, else pretty)")
    p_check.set_defaults(func=cmd_check)

    # fmt
    p_fmt = subparsers.add_parser("fmt", help="Format a scene file canonically")
    p_fmt.add_argument("file", help="Scene file (.scene), or - for stdin")
    p_fmt.add_argument("--indent", type=int, default=None, help="Block indentation (default: from config, else 4)")
    mode = p_fmt.add_mutually_exclusive_group()
    mode.add_argument("--write", action="store_true", help="Rewrite the file in place")
    mode.add_argument("--check", action="store_true", help="Exit 1 if the file is not formatted")
    p_fmt.set_defaults(func=cmd_fmt)

    # tokens
    p_tokens = subparsers.add_parser("tokens", help="Print the token stream as JSON")
    p_tokens.add_argument("file", help="Scene file (.scene), or - for stdin")
    p_tokens.set_defaults(func=cmd_tokens)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    args.config_obj = load_config(args.config)
    if not args.config_obj.color:
        set_color(False)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
