# app/services/categories.py
#
# Category Directory
# Reference data for expenses. A category may carry a default_budget_id hint
# that expenses fall back to when they do not name a budget themselves.

import logging
from typing import List

from sqlalchemy.orm import Session

from errors import BudgetNotFound, CategoryNotFound
from models import Category
from app.services.budgets import find_active_budget

logger = logging.getLogger(__name__)


# ---- Defaults ----

DEFAULT_CATEGORIES = {
    "personal": [
        "Groceries",
        "Utilities",
        "Rent",
        "Subscriptions",
        "Dining Out",
        "Transport",
        "Health",
        "Leisure",
    ],
    "business": [
        "Office Supplies",
        "Travel",
        "Meals/Entertainment",
        "Rent",
        "Utilities",
        "Professional Fees",
        "Salaries",
        "Marketing",
        "Miscellaneous",
    ],
}


def seed_default_categories(db: Session, workspace_id: str, workspace_type: str) -> int:
    """
    Add the default categories for a workspace type that are not there yet.
    Does not commit; returns the number of categories added.
    """
    existing = {
        name.lower()
        for (name,) in db.query(Category.name).filter(Category.workspace_id == workspace_id).all()
    }

    added = 0
    for name in DEFAULT_CATEGORIES.get(workspace_type, []):
        if name.lower() in existing:
            continue
        db.add(
            Category(
                workspace_id=workspace_id,
                name=name,
                type=workspace_type,
                is_default=True,
            )
        )
        added += 1

    db.flush()
    return added


# ---- CRUD ----

def create_category(
    db: Session,
    workspace_id: str,
    name: str,
    type: str = "personal",
    default_budget_id: str | None = None,
) -> Category:
    if default_budget_id is not None and find_active_budget(db, workspace_id, default_budget_id) is None:
        raise BudgetNotFound(default_budget_id)

    category = Category(
        workspace_id=workspace_id,
        name=name.strip(),
        type=type,
        is_default=False,
        default_budget_id=default_budget_id,
    )
    db.add(category)
    db.commit()
    db.refresh(category)
    logger.info("[category] created %s %r in workspace %s", category.id, category.name, workspace_id)
    return category


def list_categories(db: Session, workspace_id: str) -> List[Category]:
    return (
        db.query(Category)
        .filter(Category.workspace_id == workspace_id, Category.active.is_(True))
        .order_by(Category.name)
        .all()
    )


def get_category(db: Session, workspace_id: str, category_id: str) -> Category:
    category = (
        db.query(Category)
        .filter(Category.id == category_id, Category.workspace_id == workspace_id)
        .one_or_none()
    )
    if category is None:
        raise CategoryNotFound(category_id)
    return category
