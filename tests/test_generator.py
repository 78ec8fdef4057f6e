import logging
import re
from pathlib import Path

import pytest

from asciitree.generator import generate_ascii_tree, render_tree
from asciitree.ignore import IgnoreRules, discover_ignore_rules

from utils import touch


def render(root: Path, **kwargs) -> str:
    return render_tree(root, discover_ignore_rules(root), **kwargs)


def test_hierarchical_ignore_end_to_end(tmp_path: Path):
    touch(tmp_path / ".gitignore", "dist\n*.tmp\n")
    touch(tmp_path / "frontend" / ".gitignore", "!important.tmp\n")
    touch(tmp_path / "dist" / "x.js")
    touch(tmp_path / "a.tmp")
    touch(tmp_path / "frontend" / "b.tmp")
    touch(tmp_path / "frontend" / "important.tmp")

    output = generate_ascii_tree(tmp_path, discover_ignore_rules(tmp_path))

    assert output == (
        f"{tmp_path.name}/\n"
        "├── frontend\n"
        "│   ├── .gitignore\n"
        "│   └── important.tmp\n"
        "└── .gitignore\n"
    )


def test_box_drawing_format_is_exact(tmp_path: Path):
    touch(tmp_path / "a" / "x.txt")
    touch(tmp_path / "a" / "y.txt")
    touch(tmp_path / "b" / "c" / "z.txt")
    touch(tmp_path / "b.txt")

    assert render(tmp_path) == (
        "├── a\n"
        "│   ├── x.txt\n"
        "│   └── y.txt\n"
        "├── b\n"
        "│   └── c\n"
        "│       └── z.txt\n"
        "└── b.txt\n"
    )


def test_empty_project_renders_header_only(tmp_path: Path):
    project = tmp_path / "empty"
    project.mkdir()

    assert generate_ascii_tree(project, discover_ignore_rules(project)) == "empty/\n"


def test_directories_first_then_case_sensitive_names(tmp_path: Path):
    touch(tmp_path / "b.txt")
    touch(tmp_path / "a.txt")
    touch(tmp_path / "A.txt")
    (tmp_path / "zeta").mkdir()

    assert render(tmp_path) == (
        "├── zeta\n"
        "├── A.txt\n"
        "├── a.txt\n"
        "└── b.txt\n"
    )


def test_wildcard_in_root_excludes_at_every_depth(tmp_path: Path):
    touch(tmp_path / ".gitignore", "*.log\n")
    touch(tmp_path / "a.log")
    touch(tmp_path / "src" / "a.log")
    touch(tmp_path / "src" / "deep" / "nested" / "a.log")
    touch(tmp_path / "src" / "deep" / "nested" / "keep.txt")

    assert render(tmp_path) == (
        "├── src\n"
        "│   └── deep\n"
        "│       └── nested\n"
        "│           └── keep.txt\n"
        "└── .gitignore\n"
    )


def test_max_depth_one_lists_root_entries_only(tmp_path: Path):
    touch(tmp_path / "a" / "b" / "c" / "file.txt")
    touch(tmp_path / "top.txt")

    assert render(tmp_path, max_depth=1) == "├── a\n└── top.txt\n"
    assert render(tmp_path, max_depth=0) == "├── a\n└── top.txt\n"


def test_max_depth_counts_levels_below_root(tmp_path: Path):
    touch(tmp_path / "a" / "b" / "c" / "file.txt")

    assert render(tmp_path, max_depth=2) == "└── a\n    └── b\n"
    assert render(tmp_path, max_depth=3) == "└── a\n    └── b\n        └── c\n"


def test_max_depth_never_consults_ignore_rules_below_limit(tmp_path, monkeypatch):
    touch(tmp_path / "a" / "b" / "c" / "file.txt")
    rules = discover_ignore_rules(tmp_path)
    asked: list[str] = []
    original = rules.is_excluded

    def recording(name, relative_path, is_dir=False):
        asked.append(relative_path)
        return original(name, relative_path, is_dir)

    monkeypatch.setattr(rules, "is_excluded", recording)

    render_tree(tmp_path, rules, max_depth=2)

    assert asked == ["a", "a/b"]


def test_include_applies_to_files_only(tmp_path: Path):
    touch(tmp_path / "src" / "a.js")
    touch(tmp_path / "src" / "a.test.js")
    touch(tmp_path / "src" / "a.css")

    output = render(
        tmp_path,
        include=re.compile(r"\.js$"),
        exclude=re.compile("test"),
    )

    assert output == "└── src\n    └── a.js\n"


def test_exclude_removes_directories_entirely(tmp_path: Path):
    touch(tmp_path / "docs" / "index.md")
    touch(tmp_path / "src" / "main.py")

    output = render(tmp_path, exclude=re.compile("^docs$"))

    assert output == "└── src\n    └── main.py\n"


def test_exclude_matches_relative_path(tmp_path: Path):
    touch(tmp_path / "src" / "gen" / "out.py")
    touch(tmp_path / "gen" / "keep.py")

    output = render(tmp_path, exclude=re.compile("^src/gen"))

    assert output == (
        "├── gen\n"
        "│   └── keep.py\n"
        "└── src\n"
    )


def test_include_matches_relative_path(tmp_path: Path):
    touch(tmp_path / "src" / "main.py")
    touch(tmp_path / "setup.py")

    output = render(tmp_path, include=re.compile("^src/"))

    assert output == "└── src\n    └── main.py\n"


def test_output_file_is_not_listed(tmp_path: Path):
    touch(tmp_path / ".gitignore", "dist\n")
    touch(tmp_path / "project-ascii-tree.txt")
    touch(tmp_path / "main.py")

    assert render(tmp_path) == "├── .gitignore\n└── main.py\n"


def test_broken_symlink_is_skipped_with_warning(tmp_path: Path, caplog):
    touch(tmp_path / "real.txt")
    (tmp_path / "dangling").symlink_to(tmp_path / "missing")

    with caplog.at_level(logging.WARNING, logger="asciitree.generator"):
        output = render(tmp_path)

    assert output == "└── real.txt\n"
    assert "Cannot stat" in caplog.text


def test_symlink_cycle_is_rendered_once(tmp_path: Path):
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "loop").symlink_to(tmp_path / "a", target_is_directory=True)

    assert render(tmp_path) == "└── a\n    └── loop\n"


def test_missing_root_is_fatal(tmp_path: Path):
    rules = IgnoreRules(tmp_path)

    with pytest.raises(FileNotFoundError):
        render_tree(tmp_path / "missing", rules)
