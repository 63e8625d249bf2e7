from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# ``str`` is listed first so textual dates reach the normalizer untouched;
# numbers (epoch time) and in-process datetimes validate as ``datetime``.
DateInput = str | datetime


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateIncomeRequest(ApiModel):
    source: str | None = None
    description: str | None = None
    category: str | None = None
    amount: float
    date: DateInput | None = None
    notes: str | None = None


class UpdateIncomeRequest(ApiModel):
    id: str | None = None
    user_id: str | None = None
    source: str | None = None
    description: str | None = None
    category: str | None = None
    amount: float | None = None
    date: DateInput | None = None
    notes: str | None = None


class CreateExpenseRequest(ApiModel):
    description: str
    category: str
    amount: float
    date: DateInput
    notes: str | None = None


class UpdateExpenseRequest(ApiModel):
    id: str | None = None
    user_id: str | None = None
    description: str | None = None
    category: str | None = None
    amount: float | None = None
    date: DateInput | None = None
    notes: str | None = None


class CreateTransactionRequest(ApiModel):
    kind: Literal["income", "expense"]
    source: str | None = None
    description: str | None = None
    category: str | None = None
    amount: float
    date: DateInput | None = None
    notes: str | None = None


class UpdateTransactionRequest(ApiModel):
    id: str | None = None
    user_id: str | None = None
    kind: Literal["income", "expense"] | None = None
    source: str | None = None
    description: str | None = None
    category: str | None = None
    amount: float | None = None
    date: DateInput | None = None
    notes: str | None = None


class Income(ApiModel):
    id: str
    user_id: str
    source: str
    description: str | None = None
    category: str | None = None
    amount: float
    date: str
    notes: str | None = None
    created_at: str
    updated_at: str


class Expense(ApiModel):
    id: str
    user_id: str
    description: str
    category: str
    amount: float
    date: str
    notes: str | None = None
    created_at: str
    updated_at: str


class Transaction(ApiModel):
    id: str
    user_id: str
    kind: Literal["income", "expense"]
    source: str | None = None
    description: str | None = None
    category: str | None = None
    amount: float
    date: str
    notes: str | None = None
    created_at: str
    updated_at: str


class DeleteResult(BaseModel):
    deleted: bool
    id: str


class BulkDeleteResult(BaseModel):
    deleted: bool
    count: int


class HealthStatus(BaseModel):
    status: str
    message: str


class RouteList(BaseModel):
    routes: list[str]
