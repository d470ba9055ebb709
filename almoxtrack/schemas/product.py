from datetime import datetime

from pydantic import BaseModel

from almoxtrack.models.product import MaterialType


class ProductCreate(BaseModel):
    name: str
    type: MaterialType = MaterialType.CONSUMABLE
    code: str = ""
    patrimony: str = ""
    unit: str = "und"
    category: str = ""
    image: str = ""
    initial_quantity: int = 0


class ProductUpdate(BaseModel):
    name: str | None = None
    code: str | None = None
    patrimony: str | None = None
    unit: str | None = None
    category: str | None = None
    image: str | None = None


class ProductOut(BaseModel):
    id: str
    name: str
    name_lowercase: str
    code: str
    patrimony: str
    type: MaterialType
    quantity: int
    unit: str
    category: str
    image: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
