import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from almoxtrack.database import Base

PATRIMONY_NOT_APPLICABLE = "N/A"


class MaterialType(str, PyEnum):
    CONSUMABLE = "consumable"
    PERMANENT = "permanent"


class Product(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String, nullable=False)
    # Kept equal to name.lower() by product_service, used for prefix search
    name_lowercase: Mapped[str] = mapped_column(String, index=True, nullable=False)
    code: Mapped[str] = mapped_column(String, index=True, nullable=False)
    patrimony: Mapped[str] = mapped_column(String, default=PATRIMONY_NOT_APPLICABLE)
    type: Mapped[str] = mapped_column(
        Enum(MaterialType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, default=0)
    unit: Mapped[str] = mapped_column(String, default="und")
    category: Mapped[str] = mapped_column(String, default="")
    image: Mapped[str] = mapped_column(String, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
