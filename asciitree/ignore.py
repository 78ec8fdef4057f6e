from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .patterns import (
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_OUTPUT_NAME,
    Pattern,
    always_ignore,
    as_patterns,
    matches,
    parse_ignore_text,
)

logger = logging.getLogger(__name__)

IGNORE_FILENAME = ".gitignore"


@dataclass(frozen=True)
class IgnoreFile:
    """
    Patterns from one ignore file, applied to its directory and everything
    beneath it.

    ``scope`` is the directory relative to the project root with '/'
    separators, ``""`` for the root itself.
    """

    directory: Path
    scope: str
    patterns: tuple[Pattern, ...]

    @property
    def location(self) -> str:
        return self.scope or "root"


def to_posix(path: str) -> str:
    if os.sep != "/":
        path = path.replace(os.sep, "/")
    return path


def parent_scope(relative_path: str) -> str:
    parent = posixpath.dirname(to_posix(relative_path))
    return "" if parent == "." else parent


def in_scope(candidate_dir: str, scope: str) -> bool:
    """
    Return True if an ignore file whose directory is ``scope`` applies to
    entries of ``candidate_dir``. Both are relative to the project root.
    """
    if scope == "":
        return True

    candidate_dir = to_posix(candidate_dir)
    scope = to_posix(scope)
    return candidate_dir == scope or candidate_dir.startswith(scope + "/")


def relative_from(scope: str, relative_path: str) -> str:
    """Express a root-relative path relative to ``scope``."""
    relative_path = to_posix(relative_path)
    if scope == "":
        return relative_path
    return posixpath.relpath(relative_path, to_posix(scope))


def load_ignore_file(directory: Path) -> list[Pattern] | None:
    """
    Load patterns from the .gitignore in ``directory``.

    Returns None for a missing, unreadable or blank file. A file holding
    only comments still counts and yields an empty list.
    """
    ignore_file = directory / IGNORE_FILENAME

    try:
        content = ignore_file.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Could not read %s: %s", ignore_file, exc)
        return None

    if not content.strip():
        return None

    return parse_ignore_text(content)


def check_root(root: Path) -> Path:
    if not root.exists():
        raise FileNotFoundError(f"Project root does not exist: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Project root is not a directory: {root}")
    return root


class IgnoreRules:
    """
    The ordered set of ignore files for one project, and the verdicts they
    produce.

    Discovery and resolution share this object: while the tree is walked,
    each directory is tested against the ignore files found so far before
    it is entered. ``files`` is kept sorted by scope depth, root first.
    """

    def __init__(
        self,
        root: Path,
        *,
        output_name: str = DEFAULT_OUTPUT_NAME,
        extra_ignores: Iterable[str] = (),
    ) -> None:
        self.root = root
        self.always_ignore: tuple[str, ...] = always_ignore(output_name)
        self.extra_ignores: tuple[str, ...] = tuple(extra_ignores)
        self._files: list[IgnoreFile] = []
        self._walking: set[Path] = set()
        self._found = 0

    @property
    def files(self) -> tuple[IgnoreFile, ...]:
        return tuple(self._files)

    def add(self, ignore_file: IgnoreFile) -> None:
        self._files.append(ignore_file)
        # Stable: files of equal depth keep discovery order.
        self._files.sort(key=lambda item: len(item.scope))

    def add_root(self, patterns: Iterable[Pattern] = ()) -> IgnoreFile:
        """
        Add the root-scope ignore file: always-ignore names, then
        ``patterns``, then the caller's extra names. Replaces any earlier
        root-scope file.
        """
        ignore_file = IgnoreFile(
            directory=self.root,
            scope="",
            patterns=(
                *as_patterns(self.always_ignore),
                *patterns,
                *as_patterns(self.extra_ignores),
            ),
        )
        self._files = [item for item in self._files if item.scope != ""]
        self.add(ignore_file)
        return ignore_file

    def is_excluded(
        self,
        name: str,
        relative_path: str,
        is_dir: bool = False,
    ) -> bool:
        """
        Fold every in-scope pattern, root scope first and in file order.

        The last matching pattern decides: a match sets the verdict to
        excluded, or back to included for a negation.
        """
        relative_path = to_posix(relative_path)
        candidate_dir = parent_scope(relative_path)

        applicable = sorted(
            (item for item in self._files if in_scope(candidate_dir, item.scope)),
            key=lambda item: len(item.scope),
        )

        excluded = False
        for ignore_file in applicable:
            scoped_path = relative_from(ignore_file.scope, relative_path)
            for pattern in ignore_file.patterns:
                if matches(pattern.text, name, scoped_path):
                    excluded = not pattern.is_negation
                    logger.debug(
                        "%s %s: %s .gitignore pattern %r -> %s",
                        "DIR" if is_dir else "FILE",
                        relative_path,
                        ignore_file.location,
                        str(pattern),
                        "ignored" if excluded else "unignored",
                    )

        return excluded

    def discover(self) -> IgnoreRules:
        """
        Walk the project once, collecting every .gitignore that is not
        inside an already excluded directory.
        """
        check_root(self.root)
        # Seed the root scope so the extra names prune the walk. A root
        # .gitignore replaces it.
        self.add_root()
        self._walk(self.root, "")

        if not self._found:
            logger.info("No .gitignore files found, using default ignore patterns")
            self.add_root(as_patterns(DEFAULT_IGNORE_PATTERNS))
            return self

        total = sum(len(item.patterns) for item in self._files)
        logger.info(
            "Found %d .gitignore file(s) with %d total patterns",
            len(self._files),
            total,
        )
        for item in self._files:
            logger.info("  - %s: %d patterns", item.location, len(item.patterns))

        return self

    def _walk(self, directory: Path, scope: str) -> None:
        try:
            real = directory.resolve()
        except OSError as exc:
            logger.warning("Could not resolve directory %s: %s", directory, exc)
            return

        if real in self._walking:
            logger.warning("Skipping directory symlink cycle at %s", directory)
            return

        try:
            children = sorted(directory.iterdir(), key=lambda child: child.name)
        except OSError as exc:
            logger.warning("Could not read directory %s: %s", directory, exc)
            return

        self._walking.add(real)
        try:
            if any(child.name == IGNORE_FILENAME for child in children):
                patterns = load_ignore_file(directory)
                if patterns is not None:
                    self._found += 1
                    if scope == "":
                        self.add_root(patterns)
                    else:
                        self.add(IgnoreFile(directory, scope, tuple(patterns)))

            for child in children:
                if child.name in self.always_ignore:
                    continue

                try:
                    if not child.is_dir():
                        continue
                except OSError as exc:
                    logger.warning("Cannot stat %s: %s", child, exc)
                    continue

                child_scope = posixpath.join(scope, child.name) if scope else child.name
                if self.is_excluded(child.name, child_scope, is_dir=True):
                    logger.debug("Skipping ignored directory: %s", child_scope)
                    continue

                self._walk(child, child_scope)
        finally:
            self._walking.discard(real)


def discover_ignore_rules(
    root: Path,
    *,
    include_all: bool = False,
    extra_dirs: Iterable[str] = (),
    extra_files: Iterable[str] = (),
    output_name: str = DEFAULT_OUTPUT_NAME,
) -> IgnoreRules:
    """
    Build the ignore rules for ``root``.

    With ``include_all`` no .gitignore is read; only the always-ignore names
    and the caller's extra names apply.
    """
    rules = IgnoreRules(
        root,
        output_name=output_name,
        extra_ignores=[*extra_dirs, *extra_files],
    )

    if include_all:
        check_root(root)
        logger.info("Using --all: including all files except system files")
        rules.add_root()
        return rules

    return rules.discover()
