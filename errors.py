# errors.py
# Role: Domain error taxonomy shared by models, services and routes.
#       Every error carries a stable "kind" string and an HTTP status so the
#       API layer can render it as {"error": kind, "message": message}.

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error the finance core raises on purpose."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        return f"{self.kind}(message={self.message!r})"


class InvalidAmount(LedgerError):
    """Amount is zero, negative where a positive one is required, or not finite."""


class InvalidBudget(LedgerError):
    """Budget fields (name, target, period) failed validation."""


class InvalidTransfer(LedgerError):
    """Source and destination budget are the same."""


class InvalidRange(LedgerError):
    """A date bound could not be parsed, or the window is inverted."""


class WorkspaceRequired(LedgerError):
    """A tenant-scoped call arrived without a workspace id."""


class IdempotencyConflict(LedgerError):
    """An idempotency key was reused for a request with a different payload."""

    status_code = 409

    def __init__(self, idempotency_key: str, message: str | None = None) -> None:
        super().__init__(
            message or f"Idempotency key {idempotency_key!r} was already used for a different request"
        )
        self.idempotency_key = idempotency_key


class NotFound(LedgerError):
    status_code = 404


class BudgetNotFound(NotFound):
    """
    Budget is missing, belongs to another workspace, or (for writes) is archived.
    """

    def __init__(self, budget_id: str | None = None, message: str | None = None) -> None:
        super().__init__(message or f"Budget {budget_id!r} not found")
        self.budget_id = budget_id


class CategoryNotFound(NotFound):
    def __init__(self, category_id: str) -> None:
        super().__init__(f"Category {category_id!r} not found")
        self.category_id = category_id


class WorkspaceNotFound(NotFound):
    def __init__(self, workspace_id: str) -> None:
        super().__init__(f"Workspace {workspace_id!r} not found")
        self.workspace_id = workspace_id
