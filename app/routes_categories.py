# routes_categories.py
"""
Category directory routes.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.deps import WorkspaceContext, get_db, get_workspace_context
from app.schemas import CategoryCreate, category_to_dict
from app.services.categories import create_category, list_categories

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("")
def categories_list(
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    return [category_to_dict(c) for c in list_categories(db, ctx.workspace_id)]


@router.post("", status_code=201)
def create_category_route(
    body: CategoryCreate,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    category = create_category(
        db,
        ctx.workspace_id,
        name=body.name,
        type=body.type,
        default_budget_id=body.default_budget_id,
    )
    return category_to_dict(category)
