"""Category tree engine.

Every owner has a forest of categories addressed by materialized paths (see
``category_paths``). All functions take the authenticated owner's id first and
never read or write another owner's rows.

Mutations run inside ``_atomic()``: the session is committed when the block
finishes and rolled back when anything inside it raises, so a refused or failed
create/move/delete never leaves partial changes behind.
"""

import logging
from contextlib import contextmanager
from types import SimpleNamespace
from typing import Iterable

from flask import current_app
from sqlalchemy import func

from shelf.errors import Forbidden, InvalidOperation, NotFound, ValidationError
from shelf.extensions import db
from shelf.models.category import Category
from shelf.models.enums import MediaType
from shelf.models.media import Book, CATEGORIZED_MODELS
from shelf.models.user import User
from shelf.services.category_paths import (
    ancestor_paths,
    build_path,
    category_label,
    level_of,
    rebase_path,
    sort_by_path,
)

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 120

# Bucket key for root categories when grouping by parent id.
_ROOT = "root"


class _Unset:
    def __repr__(self):
        return "UNSET"


# Marks an argument the caller did not pass, as opposed to an explicit None.
UNSET = _Unset()


@contextmanager
def _atomic():
    try:
        yield
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def _clean_name(name: str | None) -> str:
    if name is not None and not isinstance(name, str):
        raise ValidationError(
            "Category name must be text.", {"name": ["Category name must be text."]}
        )
    name = (name or "").strip()
    if not name:
        raise ValidationError(
            "Category name is required.", {"name": ["Category name is required."]}
        )
    if len(name) > NAME_MAX_LENGTH:
        message = f"Category name must be at most {NAME_MAX_LENGTH} characters."
        raise ValidationError(message, {"name": [message]})
    return name


def _media_type_value(media_type: MediaType | str | None) -> str | None:
    if media_type is None or media_type == "":
        return None
    try:
        return MediaType(media_type).value
    except ValueError:
        message = f"Unknown media type: {media_type!r}."
        raise ValidationError(message, {"media_type": [message]}) from None


def _get_owned(
    owner_id: int, category_id: int, *, label: str = "Category", lock: bool = False
) -> Category:
    """Load a category and check it belongs to ``owner_id``.

    Raises ``NotFound`` when no such row exists and ``Forbidden`` when it
    belongs to someone else.
    """
    category = db.session.get(
        Category, category_id, with_for_update=True if lock else None
    )
    if category is None:
        raise NotFound(f"{label} not found.")
    if category.owner_id != owner_id:
        logger.warning(
            "User %s tried to use category %s owned by user %s",
            owner_id,
            category_id,
            category.owner_id,
        )
        raise Forbidden(f"You don't have permission to use this {label.lower()}.")
    return category


def _lock_sibling_set(owner_id: int, parent: Category | None) -> None:
    """Serialise appends to one sibling set.

    Children of a category are guarded by the parent's row, roots by the
    owner's user row. The parent is already locked by ``_get_owned``.
    """
    if parent is not None:
        return
    if db.session.get(User, owner_id, with_for_update=True) is None:
        raise NotFound("Owner not found.")


def _next_sort_order(owner_id: int, parent_id: int | None) -> int:
    current = (
        db.session.query(func.max(Category.sort_order))
        .filter_by(owner_id=owner_id, parent_id=parent_id)
        .scalar()
    )
    return (current or 0) + 1


def _count_dependents(owner_id: int, category_id: int) -> int:
    return sum(
        model.query.filter_by(category_id=category_id, user_id=owner_id).count()
        for model in CATEGORIZED_MODELS
    )


def create_category(
    owner_id: int,
    name: str,
    parent_id: int | None = None,
    *,
    media_type: MediaType | str | None = None,
) -> Category:
    """Append a new category as the last child of ``parent_id`` (or as the last root)."""
    name = _clean_name(name)
    media_type = _media_type_value(media_type)

    with _atomic():
        parent = None
        if parent_id is not None:
            parent = _get_owned(
                owner_id, parent_id, label="Parent category", lock=True
            )
        _lock_sibling_set(owner_id, parent)

        sort_order = _next_sort_order(owner_id, parent_id)
        category = Category(
            name=name,
            path=build_path(parent.path if parent else None, sort_order),
            level=parent.level + 1 if parent else 0,
            sort_order=sort_order,
            parent_id=parent_id,
            owner_id=owner_id,
            media_type=media_type,
        )
        db.session.add(category)
        db.session.flush()

    logger.info(
        "Created category %s %r (id=%s) for user %s",
        category.path,
        category.name,
        category.id,
        owner_id,
    )
    return category


def update_category(
    owner_id: int,
    category_id: int,
    name: str,
    parent_id: int | None | _Unset = UNSET,
    *,
    media_type: MediaType | str | None | _Unset = UNSET,
) -> Category:
    """Rename a category and, when ``parent_id`` is given, move it.

    Leaving ``parent_id`` unset renames in place. Passing a parent id (or
    ``None`` for the root level) appends the category as the last child of
    its new parent and rewrites the paths and levels of its whole subtree.
    """
    name = _clean_name(name)
    if media_type is not UNSET:
        media_type = _media_type_value(media_type)

    with _atomic():
        category = _get_owned(owner_id, category_id)
        category.name = name
        if media_type is not UNSET:
            category.media_type = media_type

        if parent_id is not UNSET:
            _move(owner_id, category, parent_id)

    return category


def _move(owner_id: int, category: Category, parent_id: int | None) -> None:
    if parent_id == category.id:
        raise InvalidOperation("A category cannot be its own parent.")

    parent = None
    if parent_id is not None:
        parent = _get_owned(owner_id, parent_id, label="Parent category", lock=True)
        if category.is_ancestor_of(parent):
            raise InvalidOperation(
                "Cannot move a category into one of its own subcategories."
            )
    _lock_sibling_set(owner_id, parent)

    old_path = category.path
    descendants = (
        Category.query.filter(
            Category.owner_id == owner_id,
            Category.path.startswith(old_path + "."),
        )
        .with_for_update()
        .all()
    )

    sort_order = _next_sort_order(owner_id, parent_id)
    new_path = build_path(parent.path if parent else None, sort_order)
    new_level = parent.level + 1 if parent else 0

    category.parent_id = parent_id
    category.sort_order = sort_order
    category.path = new_path
    category.level = new_level
    for descendant in descendants:
        descendant.path = rebase_path(descendant.path, old_path, new_path)
        descendant.level = level_of(descendant.path)

    logger.info(
        "Moved category %s from %s to %s (%d descendants rebased) for user %s",
        category.id,
        old_path,
        new_path,
        len(descendants),
        owner_id,
    )


def delete_category(owner_id: int, category_id: int) -> Category:
    """Delete a childless category that no book, movie or TV show uses."""
    with _atomic():
        category = _get_owned(owner_id, category_id, lock=True)

        if Category.query.filter_by(owner_id=owner_id, parent_id=category.id).count():
            raise InvalidOperation("Cannot delete a category that has subcategories.")
        if _count_dependents(owner_id, category.id):
            raise InvalidOperation(
                "Cannot delete a category that has items assigned to it."
            )

        db.session.delete(category)

    logger.info(
        "Deleted category %s %r (id=%s) for user %s",
        category.path,
        category.name,
        category.id,
        owner_id,
    )
    return category


def get_category(owner_id: int, category_id: int) -> Category:
    return _get_owned(owner_id, category_id)


def get_category_by_path(owner_id: int, path: str) -> Category:
    category = Category.query.filter_by(owner_id=owner_id, path=path).first()
    if category is None:
        raise NotFound("Category not found.")
    return category


def list_categories(
    owner_id: int, *, media_type: MediaType | str | None = None
) -> list[Category]:
    """Every category of the owner in numeric path order."""
    query = Category.query.filter_by(owner_id=owner_id)
    if media_type:
        query = query.filter_by(media_type=_media_type_value(media_type))
    return sort_by_path(query.all())


def list_children(owner_id: int, parent_id: int | None = None) -> list[Category]:
    """Direct children of ``parent_id``; roots when it is None."""
    return sort_by_path(
        Category.query.filter_by(owner_id=owner_id, parent_id=parent_id).all()
    )


def search_categories(
    owner_id: int,
    query: str | None = None,
    parent_id: int | None | _Unset = UNSET,
    *,
    limit: int | None = None,
) -> list[Category]:
    if limit is None:
        limit = current_app.config.get("CATEGORY_SEARCH_LIMIT", 20)

    q = Category.query.filter_by(owner_id=owner_id)
    if query:
        q = q.filter(Category.name.icontains(query, autoescape=True))
    if parent_id is not UNSET:
        q = q.filter_by(parent_id=parent_id)

    return sort_by_path(q.order_by(Category.level, Category.id).limit(limit).all())


def _item_counts(owner_id: int, model) -> dict[int, int]:
    rows = (
        db.session.query(model.category_id, func.count(model.id))
        .filter(model.user_id == owner_id, model.category_id.is_not(None))
        .group_by(model.category_id)
        .all()
    )
    return {category_id: count for category_id, count in rows}


def count_items(owner_id: int) -> dict[int, dict[str, int]]:
    """Books, movies and TV shows filed directly under each category.

    Keyed by category id, then by table name (``books``, ``movies``,
    ``tv_shows``). Categories with nothing filed under them are absent.
    """
    counts: dict[int, dict[str, int]] = {}
    for model in CATEGORIZED_MODELS:
        for category_id, count in _item_counts(owner_id, model).items():
            per_model = counts.setdefault(
                category_id, {m.__tablename__: 0 for m in CATEGORIZED_MODELS}
            )
            per_model[model.__tablename__] = count
    return counts


def get_tree(owner_id: int) -> list[SimpleNamespace]:
    """Assemble the owner's forest.

    Each node is a SimpleNamespace with ``category``, ``children`` (always a
    list, empty for leaves), ``book_count`` (books filed directly under the
    category) and ``total_book_count`` (including every descendant).

    1. Fetch all categories ordered by level.
    2. Sort each level by numeric path and flatten, still level by level.
    3. Bucket by parent id, roots under a sentinel key.
    4. Build nodes recursively starting from the root bucket.
    """
    categories = (
        Category.query.filter_by(owner_id=owner_id).order_by(Category.level).all()
    )

    by_level: dict[int, list[Category]] = {}
    for category in categories:
        by_level.setdefault(category.level, []).append(category)

    ordered = [
        category
        for level in sorted(by_level)
        for category in sort_by_path(by_level[level])
    ]

    by_parent: dict[int | str, list[Category]] = {_ROOT: []}
    for category in ordered:
        key = category.parent_id if category.parent_id is not None else _ROOT
        by_parent.setdefault(key, []).append(category)

    book_counts = _item_counts(owner_id, Book)

    def build(key: int | str) -> list[SimpleNamespace]:
        nodes = []
        for category in by_parent.get(key, []):
            children = build(category.id)
            book_count = book_counts.get(category.id, 0)
            nodes.append(
                SimpleNamespace(
                    category=category,
                    children=children,
                    book_count=book_count,
                    total_book_count=book_count
                    + sum(child.total_book_count for child in children),
                )
            )
        return nodes

    return build(_ROOT)


def get_path(owner_id: int, category_id: int) -> list[Category]:
    """Categories from the root down to ``category_id``, inclusive.

    Returns an empty list when the category does not exist.
    """
    category = db.session.get(Category, category_id)
    if category is None:
        return []
    if category.owner_id != owner_id:
        raise Forbidden("You don't have permission to use this category.")

    prefixes = ancestor_paths(category.path)
    rows = Category.query.filter(
        Category.owner_id == owner_id, Category.path.in_(prefixes)
    ).all()
    by_path = {row.path: row for row in rows}
    return [by_path[prefix] for prefix in prefixes if prefix in by_path]


def get_paths_for_ids(owner_id: int, ids: Iterable[int]) -> dict[int, Category]:
    ids = list(ids)
    if not ids:
        return {}
    rows = Category.query.filter(
        Category.owner_id == owner_id, Category.id.in_(ids)
    ).all()
    return {row.id: row for row in rows}


def render_tree_text(owner_id: int) -> str:
    """Plain-text outline of the owner's categories, one indented line each."""
    return "\n".join(
        "  " * (category.level * 2) + category_label(category)
        for category in list_categories(owner_id)
    )
