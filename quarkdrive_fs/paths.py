"""
Canonical path helpers.

A canonical path is absolute, '/'-separated, and has no trailing slash except
for the root path itself ("/").
"""

ROOT_PATH = "/"


def normalize_path(path: str) -> str:
    """
    Convert a client supplied path to its canonical form.

    Backslashes become forward slashes, repeated separators and '.' segments
    are dropped, and a leading slash is added.

    Raises:
        ValueError: If the path contains a '..' segment.
    """
    segments = split_segments(path)
    if not segments:
        return ROOT_PATH
    return "/" + "/".join(segments)


def split_segments(path: str) -> list[str]:
    """Split a path into its non-empty segments."""
    segments = []
    for segment in path.replace("\\", "/").split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise ValueError(f"Relative segment '..' not allowed in path: {path}")
        segments.append(segment)
    return segments


def parent_path(path: str) -> str | None:
    """Return the canonical parent of a path, or None for the root."""
    path = normalize_path(path)
    if path == ROOT_PATH:
        return None
    parent = path.rsplit("/", 1)[0]
    return parent or ROOT_PATH


def join_path(parent: str, name: str) -> str:
    """Append a single segment to a canonical directory path."""
    if parent == ROOT_PATH:
        return "/" + name
    return parent + "/" + name


def basename(path: str) -> str:
    """Last segment of a path ("" for the root)."""
    segments = split_segments(path)
    return segments[-1] if segments else ""


def ancestors(path: str) -> list[str]:
    """
    Ancestors of a path, nearest first.

    Example:
        ancestors("/a/b/c") == ["/a/b", "/a", "/"]
    """
    result = []
    current = parent_path(path)
    while current is not None:
        result.append(current)
        current = parent_path(current)
    return result
