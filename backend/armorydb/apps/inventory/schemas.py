from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from . import models


class PurchaseRequest(BaseModel):
    asset_id: int
    base_id: int
    quantity: int = Field(..., gt=0)
    user_id: Optional[int] = None


class TransferRequest(BaseModel):
    asset_id: int
    source_base_id: int
    dest_base_id: int
    quantity: int = Field(..., gt=0)
    user_id: Optional[int] = None


class AssignmentRequest(BaseModel):
    asset_id: int
    base_id: int
    quantity: int = Field(..., gt=0)
    type: Literal["ASSIGN", "EXPEND"]
    user_id: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _normalise_type(cls, data):
        if isinstance(data, dict) and isinstance(data.get("type"), str):
            data = {**data, "type": data["type"].strip().upper()}
        return data


class TransactionRead(BaseModel):
    id: int
    kind: models.TransactionKindEnum
    asset_id: int
    source_base_id: Optional[int] = None
    dest_base_id: Optional[int] = None
    quantity: int
    user_id: Optional[int] = None
    status: models.TransactionStatusEnum
    occurred_at: datetime

    class Config:
        from_attributes = True


class OperationResult(BaseModel):
    message: str
    transaction: TransactionRead
    # "<base_id>" -> quantity after the operation, for each base touched
    quantities: Dict[str, int] = Field(default_factory=dict)


class HistoryItem(TransactionRead):
    asset_name: Optional[str] = None
    user_name: Optional[str] = None
    source_base: Optional[str] = None
    dest_base: Optional[str] = None


# ---------------------------------------------------------------------------
# DASHBOARD
# ---------------------------------------------------------------------------


class MovementBreakdown(BaseModel):
    purchased: int = 0
    transfer_in: int = 0
    transfer_out: int = 0
    assigned: int = 0
    expended: int = 0


class ScopedSummary(BaseModel):
    base_id: int
    category: Optional[str] = None
    opening_balance: int
    closing_balance: int
    net_movement: int
    movements: MovementBreakdown


class InventoryBalanceRow(BaseModel):
    asset_id: int
    name: str
    type: str
    current_balance: int


class KindTotal(BaseModel):
    type: models.TransactionKindEnum
    total: int


class GlobalSummary(BaseModel):
    category: Optional[str] = None
    inventory: List[InventoryBalanceRow]
    raw_transactions: List[KindTotal]
