"""Helpers for materialized category paths.

A path is a dot-separated list of positive integers, one per level, each the
node's 1-based position among its siblings: ``"3"``, ``"3.1"``, ``"3.1.2"``.
Paths must be compared segment by segment as integers. Comparing them as
strings puts ``"2.10"`` before ``"2.9"``.
"""

from typing import Iterable, TypeVar

T = TypeVar("T")

SEPARATOR = "."


def split_path(path: str) -> list[int]:
    return [int(segment) for segment in path.split(SEPARATOR)]


def path_key(path: str) -> tuple[int, ...]:
    """Sort key for a path.

    Tuples compare element by element and a proper prefix sorts first, so
    ``"1" < "1.0.1" < "20.1" < "1000"``.
    """
    return tuple(split_path(path))


def sort_by_path(categories: Iterable[T]) -> list[T]:
    """Return a new list of objects with a ``path`` attribute in numeric path order."""
    return sorted(categories, key=lambda c: path_key(c.path))


def build_path(parent_path: str | None, sort_order: int) -> str:
    if parent_path:
        return f"{parent_path}{SEPARATOR}{sort_order}"
    return str(sort_order)


def level_of(path: str) -> int:
    return path.count(SEPARATOR)


def ancestor_paths(path: str) -> list[str]:
    """All path prefixes from the root down to ``path`` itself.

    >>> ancestor_paths("3.1.2")
    ['3', '3.1', '3.1.2']
    """
    segments = path.split(SEPARATOR)
    return [SEPARATOR.join(segments[: i + 1]) for i in range(len(segments))]


def is_descendant_path(candidate: str, ancestor: str) -> bool:
    return candidate.startswith(ancestor + SEPARATOR)


def rebase_path(path: str, old_prefix: str, new_prefix: str) -> str:
    """Move ``path`` from under ``old_prefix`` to under ``new_prefix``.

    ``path`` must be ``old_prefix`` itself or one of its descendants.
    """
    if path == old_prefix:
        return new_prefix
    if not is_descendant_path(path, old_prefix):
        raise ValueError(f"{path!r} is not under {old_prefix!r}")
    return new_prefix + path[len(old_prefix):]


def category_label(category) -> str:
    """Display label used in pickers and breadcrumbs, e.g. ``"1.4.3 Fantasy"``."""
    if category is None:
        return "-"
    return f"{category.path} {category.name}"
