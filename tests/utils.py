from pathlib import Path


def touch(path: Path, content: str = "") -> None:
    """
    Create a file at the given path, creating parents if needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
