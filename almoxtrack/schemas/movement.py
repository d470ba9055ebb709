from datetime import datetime
from enum import Enum as PyEnum

from pydantic import BaseModel

from almoxtrack.models.movement import MovementType


class ExitKind(str, PyEnum):
    CONSUMPTION = "consumption"  # consumable items handed to a department
    RESPONSIBILITY = "responsibility"  # permanent items under a custody term


class ReturnReason(str, PyEnum):
    UNUSED = "unused"
    EXCESS = "excess"
    DEFECTIVE = "defective"
    OTHER = "other"


class BatchItem(BaseModel):
    product_id: str
    quantity: int


class EntryBatch(BaseModel):
    items: list[BatchItem]
    date: datetime | None = None
    supplier: str = ""
    invoice: str = ""


class ExitBatch(BaseModel):
    items: list[BatchItem]
    date: datetime | None = None
    requester: str = ""
    department: str = ""
    purpose: str = ""
    kind: ExitKind | None = None


class ReturnBatch(BaseModel):
    items: list[BatchItem]
    date: datetime | None = None
    department: str = ""
    reason: ReturnReason | None = None


class MovementOut(BaseModel):
    id: str
    product_id: str
    date: datetime
    type: MovementType
    quantity: int
    responsible: str
    supplier: str = ""
    invoice: str = ""
    department: str = ""
    requester: str = ""
    purpose: str = ""
    reason: str = ""

    model_config = {"from_attributes": True}
