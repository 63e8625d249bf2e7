from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, Depends, FastAPI, Query

from .auth import require_user
from .controllers import RecordController, TransactionController
from .schemas import (
    BulkDeleteResult,
    CreateExpenseRequest,
    CreateIncomeRequest,
    CreateTransactionRequest,
    DeleteResult,
    Expense,
    Income,
    Transaction,
    UpdateExpenseRequest,
    UpdateIncomeRequest,
    UpdateTransactionRequest,
)


API_PREFIX = "/api/v1"


class RouteTable:
    """Bindings for one resource, all behind the authentication gate."""

    def __init__(self, prefix: str, tag: str) -> None:
        self.prefix = prefix
        self.router = APIRouter(prefix=prefix, tags=[tag], dependencies=[Depends(require_user)])
        self._bindings: list[tuple[str, str]] = []

    def add(self, method: str, path: str, endpoint: Callable[..., Any], **kwargs: Any) -> None:
        self.router.add_api_route(path, endpoint, methods=[method], **kwargs)
        self._bindings.append((method, path))

    def bindings(self) -> list[str]:
        return [f"{method} {self.prefix}{path}" for method, path in self._bindings]


class RouteRegistry:
    """Everything mounted on the app, reported as ``"METHOD /path"`` strings."""

    def __init__(self) -> None:
        self._routes: list[str] = []

    def mount(self, app: FastAPI, table: RouteTable) -> None:
        app.include_router(table.router)
        self._routes.extend(table.bindings())

    def record(self, method: str, path: str) -> None:
        self._routes.append(f"{method} {path}")

    def routes(self) -> list[str]:
        return list(self._routes)


def income_routes(controller: RecordController) -> RouteTable:
    table = RouteTable(f"{API_PREFIX}/incomes", "Incomes")

    def create_income(payload: CreateIncomeRequest, owner_id: str = Depends(require_user)) -> dict[str, Any]:
        return controller.create(payload.model_dump(exclude_unset=True), owner_id)

    def list_incomes(
        owner_id: str = Depends(require_user),
        from_: str | None = Query(None, alias="from"),
        to: str | None = Query(None),
        source: str | None = Query(None),
        category: str | None = Query(None),
    ) -> list[dict[str, Any]]:
        return controller.list(owner_id, from_=from_, to=to, category=category, source=source)

    def get_income(income_id: str, owner_id: str = Depends(require_user)) -> dict[str, Any]:
        return controller.get(income_id, owner_id)

    def update_income(
        income_id: str,
        payload: UpdateIncomeRequest,
        owner_id: str = Depends(require_user),
    ) -> dict[str, Any]:
        return controller.update(income_id, owner_id, payload.model_dump(exclude_unset=True, by_alias=True))

    def delete_income(income_id: str, owner_id: str = Depends(require_user)) -> dict[str, Any]:
        return controller.remove(income_id, owner_id)

    table.add("POST", "", create_income, response_model=Income, status_code=201)
    table.add("GET", "", list_incomes, response_model=list[Income])
    table.add("GET", "/{income_id}", get_income, response_model=Income)
    table.add("PUT", "/{income_id}", update_income, response_model=Income)
    table.add("DELETE", "/{income_id}", delete_income, response_model=DeleteResult)
    return table


def expense_routes(controller: RecordController) -> RouteTable:
    table = RouteTable(f"{API_PREFIX}/expenses", "Expenses")

    def create_expense(payload: CreateExpenseRequest, owner_id: str = Depends(require_user)) -> dict[str, Any]:
        return controller.create(payload.model_dump(exclude_unset=True), owner_id)

    def list_expenses(
        owner_id: str = Depends(require_user),
        from_: str | None = Query(None, alias="from"),
        to: str | None = Query(None),
        category: str | None = Query(None),
    ) -> list[dict[str, Any]]:
        return controller.list(owner_id, from_=from_, to=to, category=category)

    def get_expense(expense_id: str, owner_id: str = Depends(require_user)) -> dict[str, Any]:
        return controller.get(expense_id, owner_id)

    def update_expense(
        expense_id: str,
        payload: UpdateExpenseRequest,
        owner_id: str = Depends(require_user),
    ) -> dict[str, Any]:
        return controller.update(expense_id, owner_id, payload.model_dump(exclude_unset=True, by_alias=True))

    def delete_expense(expense_id: str, owner_id: str = Depends(require_user)) -> dict[str, Any]:
        return controller.remove(expense_id, owner_id)

    table.add("POST", "", create_expense, response_model=Expense, status_code=201)
    table.add("GET", "", list_expenses, response_model=list[Expense])
    table.add("GET", "/{expense_id}", get_expense, response_model=Expense)
    table.add("PUT", "/{expense_id}", update_expense, response_model=Expense)
    table.add("DELETE", "/{expense_id}", delete_expense, response_model=DeleteResult)
    return table


def transaction_routes(controller: TransactionController) -> RouteTable:
    table = RouteTable(f"{API_PREFIX}/transactions", "Transactions")

    def list_transactions(
        owner_id: str = Depends(require_user),
        from_: str | None = Query(None, alias="from"),
        to: str | None = Query(None),
        source: str | None = Query(None),
        category: str | None = Query(None),
        kind: str | None = Query(None),
    ) -> list[dict[str, Any]]:
        return controller.list(owner_id, from_=from_, to=to, category=category, source=source, kind=kind)

    def get_transaction(transaction_id: str, owner_id: str = Depends(require_user)) -> dict[str, Any]:
        return controller.get(transaction_id, owner_id)

    def create_transaction(
        payload: CreateTransactionRequest,
        owner_id: str = Depends(require_user),
    ) -> dict[str, Any]:
        return controller.create(payload.model_dump(exclude_unset=True), owner_id)

    def update_transaction(
        transaction_id: str,
        payload: UpdateTransactionRequest,
        owner_id: str = Depends(require_user),
    ) -> dict[str, Any]:
        return controller.update(transaction_id, owner_id, payload.model_dump(exclude_unset=True, by_alias=True))

    def delete_all_transactions(owner_id: str = Depends(require_user)) -> dict[str, Any]:
        return controller.remove_all(owner_id)

    def delete_transaction(transaction_id: str, owner_id: str = Depends(require_user)) -> dict[str, Any]:
        return controller.remove(transaction_id, owner_id)

    table.add("GET", "", list_transactions, response_model=list[Transaction])
    table.add("GET", "/{transaction_id}", get_transaction, response_model=Transaction)
    table.add("POST", "", create_transaction, response_model=Transaction, status_code=201)
    table.add("PUT", "/{transaction_id}", update_transaction, response_model=Transaction)
    table.add("DELETE", "", delete_all_transactions, response_model=BulkDeleteResult)
    table.add("DELETE", "/{transaction_id}", delete_transaction, response_model=DeleteResult)
    return table
