from .generator import generate_ascii_tree, render_tree
from .ignore import IgnoreFile, IgnoreRules, discover_ignore_rules
from .patterns import Pattern, matches, parse_ignore_text

__all__ = [
    "IgnoreFile",
    "IgnoreRules",
    "Pattern",
    "discover_ignore_rules",
    "generate_ascii_tree",
    "matches",
    "parse_ignore_text",
    "render_tree",
]
