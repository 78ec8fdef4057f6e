import argparse
import json
import logging
import re
import sys
from pathlib import Path

from .generator import generate_ascii_tree
from .ignore import discover_ignore_rules
from .patterns import DEFAULT_OUTPUT_NAME

logger = logging.getLogger(__name__)

EPILOG = """\
pattern examples:
  --include-pattern "\\.js$"            only show JavaScript files
  --include-pattern "\\.(js|ts|json)$"  only show JS, TS and JSON files
  --exclude-pattern "test|spec"        exclude test files and directories

Include patterns only apply to files (directories are kept for structure).
Exclude patterns apply to both files and directories.

Every .gitignore in the project is applied hierarchically: the root file
covers everything, deeper files only their own subtree, and negation (!)
patterns in deeper files can re-include what a parent excluded. Ignore
files inside ignored directories are never read.
"""


def setup_logging(debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _strip_quotes(item: str) -> str:
    return re.sub(r"^[\"']|[\"']$", "", item.strip())


def parse_list(value: str) -> list[str]:
    """
    Normalize a list argument.

    Accepts a JSON array, a bracketed list, a comma-separated list or a
    single value.
    """
    value = value.strip()

    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = None
    if isinstance(parsed, list):
        return [str(item) for item in parsed if str(item).strip()]

    if value.startswith("[") and value.endswith("]"):
        value = value[1:-1]

    items = [_strip_quotes(item) for item in value.split(",")]
    return [item for item in items if item]


def regex(value: str) -> re.Pattern:
    try:
        return re.compile(value)
    except re.error as exc:
        raise argparse.ArgumentTypeError(f"invalid regex {value!r}: {exc}") from exc


def depth(value: str) -> int:
    try:
        result = int(value)
    except ValueError:
        result = -1
    if result < 0:
        raise argparse.ArgumentTypeError("--max-depth requires a non-negative number")
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ascii-project-tree",
        description="Generate an ASCII directory tree that honours .gitignore files.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Root directory of the project (default: current directory)",
    )

    parser.add_argument(
        "--all",
        action="store_true",
        help="Include all files (skip .gitignore files and default ignores)",
    )

    parser.add_argument(
        "--except-dir",
        type=parse_list,
        action="extend",
        default=[],
        metavar="LIST",
        help='Additional directories to ignore, e.g. "build,dist"',
    )

    parser.add_argument(
        "--except-file",
        type=parse_list,
        action="extend",
        default=[],
        metavar="LIST",
        help='Additional files to ignore, e.g. "*.log,*.tmp"',
    )

    parser.add_argument(
        "--max-depth",
        type=depth,
        default=None,
        help="Maximum directory depth to traverse",
    )

    parser.add_argument(
        "--include-pattern",
        type=regex,
        default=None,
        metavar="REGEX",
        help="Only show files matching this regex",
    )

    parser.add_argument(
        "--exclude-pattern",
        type=regex,
        default=None,
        metavar="REGEX",
        help="Exclude files and directories matching this regex",
    )

    parser.add_argument(
        "--output-name",
        default=DEFAULT_OUTPUT_NAME,
        help=f"Output filename (default: {DEFAULT_OUTPUT_NAME})",
    )

    parser.add_argument(
        "--output-path",
        default=".",
        help="Output directory (default: current directory)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the tree instead of writing the output file",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show debug info for pattern matching and .gitignore processing",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.debug)

    root_path = Path(args.path).resolve()
    output_path = Path(args.output_path) / args.output_name

    logger.info("Generating ASCII tree for: %s", root_path.name)
    for label, pattern in (
        ("Include", args.include_pattern),
        ("Exclude", args.exclude_pattern),
    ):
        if pattern is not None:
            logger.info("%s pattern: %s", label, pattern.pattern)

    try:
        rules = discover_ignore_rules(
            root_path,
            include_all=args.all,
            extra_dirs=args.except_dir,
            extra_files=args.except_file,
            output_name=args.output_name,
        )
        text = generate_ascii_tree(
            root_path,
            rules,
            include=args.include_pattern,
            exclude=args.exclude_pattern,
            max_depth=args.max_depth,
        )
    except OSError as exc:
        print(f"Error generating tree: {exc}", file=sys.stderr)
        return 2

    if args.dry_run:
        print("=== DRY RUN ===")
        print("Would generate:")
        print(text)
        print(f"Would save to: {output_path}")
        return 0

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8", newline="\n")
    except OSError as exc:
        print(f"Error writing output file: {exc}", file=sys.stderr)
        return 3

    logger.info("Project structure saved to: %s", output_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
