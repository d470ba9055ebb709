import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from almoxtrack import clock
from almoxtrack.database import Base


class MovementType(str, PyEnum):
    ENTRY = "entry"
    EXIT = "exit"
    RETURN = "return"

    @property
    def sign(self) -> int:
        return -1 if self is MovementType.EXIT else 1


class Movement(Base):
    """Append-only ledger row. quantity is the magnitude, type gives the sign."""

    __tablename__ = "movements"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    # No FK: history can outlive the product (PRODUCT_DELETE_POLICY=retain)
    product_id: Mapped[str] = mapped_column(String, index=True, nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, index=True, nullable=False)
    type: Mapped[str] = mapped_column(
        Enum(MovementType, values_callable=lambda x: [e.value for e in x]),
        index=True,
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    responsible: Mapped[str] = mapped_column(String, nullable=False)

    # entry
    supplier: Mapped[str] = mapped_column(String, default="")
    invoice: Mapped[str] = mapped_column(String, default="")
    # exit / return
    department: Mapped[str] = mapped_column(String, index=True, default="")
    requester: Mapped[str] = mapped_column(String, default="")
    purpose: Mapped[str] = mapped_column(Text, default="")
    reason: Mapped[str] = mapped_column(String, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: clock.now())

    @property
    def signed_quantity(self) -> int:
        return MovementType(self.type).sign * self.quantity
