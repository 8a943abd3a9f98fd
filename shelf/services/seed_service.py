import secrets
import sys

from flask import current_app

from shelf.extensions import db
from shelf.models.category import Category
from shelf.models.user import User
from shelf.services import category_service

# Nested name -> subcategories mapping, created in this order.
DEFAULT_CATEGORIES = {
    "Fiction": {
        "Fantasy": {"High Fantasy": {}, "Urban Fantasy": {}},
        "Science Fiction": {},
        "Crime & Mystery": {},
        "Historical Fiction": {},
        "Classics": {},
    },
    "Non-Fiction": {
        "Biography & Memoir": {},
        "History": {"Ancient": {}, "Medieval": {}, "Modern": {}},
        "Science & Nature": {},
        "Philosophy": {},
        "Reference": {"Dictionaries": {}, "Encyclopedias": {}},
    },
    "Film": {
        "Drama": {},
        "Comedy": {},
        "Documentary": {},
        "Animation": {},
    },
    "Television": {
        "Series": {},
        "Miniseries": {},
        "Documentary Series": {},
    },
}


def _count_nodes(tree: dict) -> int:
    return sum(1 + _count_nodes(children) for children in tree.values())


DEFAULT_CATEGORY_COUNT = _count_nodes(DEFAULT_CATEGORIES)


def _seed_level(
    owner_id: int, parent_id: int | None, tree: dict, created: list[Category]
) -> None:
    for name, children in tree.items():
        category = Category.query.filter_by(
            owner_id=owner_id, parent_id=parent_id, name=name
        ).first()
        if not category:
            category = category_service.create_category(owner_id, name, parent_id)
            created.append(category)
        _seed_level(owner_id, category.id, children, created)


def seed_categories(owner_id: int, tree: dict | None = None) -> list[Category]:
    """Seed a category tree for one owner. Existing categories are skipped."""
    created: list[Category] = []
    _seed_level(owner_id, None, DEFAULT_CATEGORIES if tree is None else tree, created)
    return created


def seed_default_user() -> User | None:
    """Seed a default admin user in dev/testing. Skipped if it already exists."""
    if (
        current_app.config.get("TESTING") is False
        and current_app.config.get("DEBUG") is False
    ):
        return None

    existing = User.query.filter_by(username="admin").first()
    if existing:
        return None

    password = secrets.token_urlsafe(12)
    user = User(
        username="admin",
        email="admin@localhost",
        first_name="Admin",
        last_name="User",
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    print(
        f"Seeded default user: username: admin, password: {password}",
        file=sys.stderr,
    )
    return user


def seed_all() -> dict:
    """Seed the default user and its category tree. Returns counts of created items."""
    user = seed_default_user()
    admin = user or User.query.filter_by(username="admin").first()
    categories = seed_categories(admin.id) if admin else []
    return {
        "categories": len(categories),
        "user_created": user is not None,
    }
