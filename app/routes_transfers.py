# app/routes_transfers.py
"""
Envelope transfers between two budgets of the current workspace.
"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.deps import WorkspaceContext, get_db, get_workspace_context
from app.schemas import TransferRequest, entry_to_dict
from app.services.transfers import transfer

router = APIRouter(tags=["transfers"])


@router.post("/transfers", status_code=201)
def create_transfer(
    body: TransferRequest,
    response: Response,
    ctx: WorkspaceContext = Depends(get_workspace_context),
    db: Session = Depends(get_db),
):
    result = transfer(
        db,
        ctx.workspace_id,
        body.from_budget_id,
        body.to_budget_id,
        body.amount,
        note=body.note,
        idempotency_key=body.idempotency_key,
    )
    if result.replayed:
        response.status_code = 200
    return {
        "ok": True,
        "transferId": result.transfer_id,
        "amount": result.amount,
        "replayed": result.replayed,
        "legs": [entry_to_dict(result.debit), entry_to_dict(result.credit)],
    }
