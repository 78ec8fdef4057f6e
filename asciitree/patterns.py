from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache


DEFAULT_OUTPUT_NAME = "project-ascii-tree.txt"
VCS_DIR = ".git"

# Injected into the root scope only, ahead of the root .gitignore. The
# output file name is appended by always_ignore().
ALWAYS_IGNORE: tuple[str, ...] = (VCS_DIR,)


def always_ignore(output_name: str = DEFAULT_OUTPUT_NAME) -> tuple[str, ...]:
    return (*ALWAYS_IGNORE, output_name)


# Used when no .gitignore is found anywhere in the project.
DEFAULT_IGNORE_PATTERNS: tuple[str, ...] = (
    "node_modules",
    ".git",
    "*.log",
    "dist",
    "build",
    ".vscode",
    ".idea",
    ".DS_Store",
    "Thumbs.db",
    "*.tmp",
    "*.cache",
)

WILDCARDS = ("*", "?")


@dataclass(frozen=True)
class Pattern:
    """
    One ignore rule.

    ``text`` is normalized: no leading ``!``, no leading or trailing ``/``.
    """

    text: str
    is_negation: bool = False

    def __str__(self) -> str:
        return f"!{self.text}" if self.is_negation else self.text


def parse_ignore_text(raw: str) -> list[Pattern]:
    """
    Turn the contents of an ignore file into an ordered list of patterns.

    Rules:
    - Blank lines ignored
    - Lines starting with '#' ignored
    - A leading '!' marks a negation
    - One trailing '/' and one leading '/' are dropped

    The root anchor of a leading '/' is not retained, so ``/build`` behaves
    exactly like ``build``.
    """
    patterns: list[Pattern] = []

    for line in raw.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        is_negation = line.startswith("!")
        if is_negation:
            line = line[1:]

        if line.endswith("/"):
            line = line[:-1]
        if line.startswith("/"):
            line = line[1:]

        if not line:
            continue

        patterns.append(Pattern(line, is_negation))

    return patterns


def as_patterns(names) -> list[Pattern]:
    """Wrap plain names (constant tables, CLI extras) as non-negated patterns."""
    return [Pattern(name) for name in names if name]


def has_wildcard(pattern: str) -> bool:
    return any(char in pattern for char in WILDCARDS)


@lru_cache(maxsize=None)
def compile_wildcard(pattern: str) -> re.Pattern[str]:
    """
    Compile a wildcard pattern to an anchored regex.

    ``*`` becomes ``.*`` and ``?`` becomes ``.``; everything else is literal.
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    return re.compile("".join(parts), re.DOTALL)


def matches(pattern: str, name: str, relative_path: str) -> bool:
    """
    Return True if ``pattern`` matches the candidate.

    ``relative_path`` is the candidate's path relative to the directory of
    the ignore file the pattern came from, using '/' separators.
    """
    segments = relative_path.split("/")

    if has_wildcard(pattern):
        regex = compile_wildcard(pattern)
        if regex.fullmatch(name) or regex.fullmatch(relative_path):
            return True
        # Ancestor-inclusive prefixes: "a", "a/b", "a/b/c", ...
        return any(
            regex.fullmatch("/".join(segments[: index + 1]))
            for index in range(len(segments))
        )

    if pattern == name or pattern == relative_path:
        return True

    if "/" in pattern:
        return relative_path.startswith(pattern + "/")

    return pattern in segments or relative_path.endswith("/" + pattern)
