from __future__ import annotations

import logging
import re
import stat
from dataclasses import dataclass
from pathlib import Path

from .ignore import IgnoreRules, check_root, to_posix

logger = logging.getLogger(__name__)

BRANCH = "├── "
LAST = "└── "
PIPE = "│   "
SPACE = "    "


@dataclass
class TreeEntry:
    name: str
    path: Path
    relative_path: str
    is_dir: bool
    excluded: bool = False


def passes_filters(
    entry: TreeEntry,
    include: re.Pattern[str] | None,
    exclude: re.Pattern[str] | None,
) -> bool:
    """
    Apply the user regexes to an entry that survived the ignore rules.

    ``exclude`` drops files and directories whose name or relative path
    matches. ``include`` applies to files only; directories are always kept.
    """
    if exclude is not None and (
        exclude.search(entry.name) or exclude.search(entry.relative_path)
    ):
        logger.debug("Excluded by pattern: %s", entry.relative_path)
        return False

    if entry.is_dir or include is None:
        return True

    if include.search(entry.name) or include.search(entry.relative_path):
        return True

    logger.debug("Does not match include pattern: %s", entry.relative_path)
    return False


class TreeRenderer:
    def __init__(
        self,
        root: Path,
        rules: IgnoreRules,
        *,
        include: re.Pattern[str] | None = None,
        exclude: re.Pattern[str] | None = None,
        max_depth: int | None = None,
    ) -> None:
        self.root = root
        self.rules = rules
        self.include = include
        self.exclude = exclude
        self.max_depth = max_depth
        self._walking: set[Path] = set()

    def render(self) -> str:
        check_root(self.root)
        return "".join(self._render(self.root, "", 1))

    def _entries(self, directory: Path) -> list[TreeEntry]:
        try:
            children = list(directory.iterdir())
        except OSError as exc:
            logger.warning("Could not read directory %s: %s", directory, exc)
            return []

        entries: list[TreeEntry] = []
        for child in children:
            try:
                mode = child.stat().st_mode
            except OSError as exc:
                logger.warning("Cannot stat %s: %s", child, exc)
                continue

            relative = to_posix(str(child.relative_to(self.root)))
            entry = TreeEntry(
                name=child.name,
                path=child,
                relative_path=relative,
                is_dir=stat.S_ISDIR(mode),
            )
            entry.excluded = self.rules.is_excluded(
                entry.name, entry.relative_path, entry.is_dir
            )
            if entry.excluded:
                continue
            if not passes_filters(entry, self.include, self.exclude):
                continue
            entries.append(entry)

        entries.sort(key=lambda entry: (not entry.is_dir, entry.name))
        return entries

    def _render(self, directory: Path, prefix: str, depth: int) -> list[str]:
        try:
            real = directory.resolve()
        except OSError as exc:
            logger.warning("Could not resolve directory %s: %s", directory, exc)
            return []

        if real in self._walking:
            logger.warning("Skipping directory symlink cycle at %s", directory)
            return []

        self._walking.add(real)
        try:
            entries = self._entries(directory)
            lines: list[str] = []

            for index, entry in enumerate(entries):
                is_last = index == len(entries) - 1
                lines.append(f"{prefix}{LAST if is_last else BRANCH}{entry.name}\n")

                if entry.is_dir and (self.max_depth is None or depth < self.max_depth):
                    lines.extend(
                        self._render(
                            entry.path,
                            prefix + (SPACE if is_last else PIPE),
                            depth + 1,
                        )
                    )

            return lines
        finally:
            self._walking.discard(real)


def render_tree(
    root: Path,
    rules: IgnoreRules,
    *,
    include: re.Pattern[str] | None = None,
    exclude: re.Pattern[str] | None = None,
    max_depth: int | None = None,
) -> str:
    """
    Render the filtered tree below ``root`` as connector-prefixed lines.

    Directories come first, then files, each group ordered by name.
    The root listing is depth 1, so ``max_depth`` of 1 (or 0) lists only the
    entries directly inside ``root``.
    """
    renderer = TreeRenderer(
        root,
        rules,
        include=include,
        exclude=exclude,
        max_depth=max_depth,
    )
    return renderer.render()


def generate_ascii_tree(
    root: Path,
    rules: IgnoreRules,
    *,
    include: re.Pattern[str] | None = None,
    exclude: re.Pattern[str] | None = None,
    max_depth: int | None = None,
) -> str:
    """
    Generate the complete document: ``<project>/`` followed by the tree.
    """
    root = root.resolve()
    tree = render_tree(
        root,
        rules,
        include=include,
        exclude=exclude,
        max_depth=max_depth,
    )
    return f"{root.name}/\n{tree}"
