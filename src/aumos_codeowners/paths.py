"""Absolute path helpers shared by the declaration and resolution layers.

All paths handled by aumos-codeowners are POSIX-style and absolute,
rooted at the repository root (``/``).
"""
from __future__ import annotations

import posixpath
from collections.abc import Iterator

ROOT: str = "/"


def normalize_path(path: str) -> str:
    """Return *path* as a normalised absolute POSIX path.

    Parameters
    ----------
    path:
        A repository path, with or without a leading slash.

    Returns
    -------
    str
        The normalised path. The repository root is returned as ``"/"``.

    Raises
    ------
    ValueError
        If *path* is empty or escapes the repository root.
    """
    if not path:
        raise ValueError("Path must not be empty.")
    parts: list[str] = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                raise ValueError(f"Path {path!r} escapes the repository root.")
            parts.pop()
            continue
        parts.append(part)
    return ROOT + "/".join(parts)


def parent_directory(path: str) -> str:
    """Return the directory that contains the file at *path*."""
    return posixpath.dirname(normalize_path(path)) or ROOT


def iter_directories(file_path: str) -> Iterator[str]:
    """Yield the directories from the file's own directory up to the root.

    Example
    -------
    >>> list(iter_directories("/foo/bar/baz.txt"))
    ['/foo/bar', '/foo', '/']
    """
    directory = parent_directory(file_path)
    while True:
        yield directory
        if directory == ROOT:
            return
        directory = posixpath.dirname(directory) or ROOT


def resolve_directory(base_directory: str, reference: str) -> str:
    """Resolve *reference* against *base_directory*.

    Absolute references are returned normalised; relative references are
    interpreted relative to the importing directory.
    """
    if reference.startswith("/"):
        return normalize_path(reference)
    return normalize_path(posixpath.join(normalize_path(base_directory), reference))


def relativize(directory: str, path: str) -> str:
    """Return *path* relative to *directory*.

    Raises
    ------
    ValueError
        If *path* is not located below *directory*.
    """
    directory = normalize_path(directory)
    path = normalize_path(path)
    if directory == ROOT:
        return path[1:]
    prefix = directory + "/"
    if not path.startswith(prefix):
        raise ValueError(f"Path {path!r} is not below directory {directory!r}.")
    return path[len(prefix):]
