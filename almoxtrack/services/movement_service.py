"""Stock movement ledger.

Entries, exits and returns are applied in batches. Each finalize call is a
single transaction. Each line changes the product's quantity with a guarded
SQL-side UPDATE and appends one movement. If any line fails the whole batch
is rolled back, so ``product.quantity`` always equals the signed sum of that
product's movements, also when several batches are finalized at once.
"""
import logging
from datetime import date, datetime

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from almoxtrack import clock
from almoxtrack.database import atomic
from almoxtrack.exceptions import InsufficientStockError, InvalidArgumentError, NotFoundError
from almoxtrack.models.movement import Movement, MovementType
from almoxtrack.models.product import MaterialType, Product
from almoxtrack.schemas.movement import BatchItem, EntryBatch, ExitBatch, ExitKind, ReturnBatch

logger = logging.getLogger(__name__)

EXIT_KIND_MATERIAL = {
    ExitKind.CONSUMPTION: MaterialType.CONSUMABLE,
    ExitKind.RESPONSIBILITY: MaterialType.PERMANENT,
}


def _validate_items(items: list[BatchItem]) -> None:
    if not items:
        raise InvalidArgumentError("At least one item is required")
    for item in items:
        if not item.product_id:
            raise InvalidArgumentError("Every item needs a product_id")
        if item.quantity <= 0:
            raise InvalidArgumentError(
                f"Quantity for product {item.product_id} must be positive, got {item.quantity}"
            )


def _require(**fields: str | None) -> None:
    missing = [name for name, value in fields.items() if not value or not str(value).strip()]
    if missing:
        raise InvalidArgumentError(f"Missing required fields: {', '.join(missing)}")


def _movement_date(value: datetime | None) -> datetime:
    return clock.to_utc_naive(value) if value else clock.now()


def _get_product(db: Session, product_id: str) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise NotFoundError("Product", product_id)
    return product


def _adjust_stock(db: Session, product_id: str, delta: int) -> None:
    """Add ``delta`` to a product's quantity in one conditional UPDATE.

    The sufficiency check is part of the statement's WHERE clause, so batches
    finalized at the same time serialize on the row's write lock and each one
    sees the quantity left by the previous commit.
    """
    stmt = (
        update(Product)
        .where(Product.id == product_id)
        .values(quantity=Product.quantity + delta)
        .execution_options(synchronize_session=False)
    )
    if delta < 0:
        stmt = stmt.where(Product.quantity >= -delta)
    if db.execute(stmt).rowcount:
        return

    available = db.query(Product.quantity).filter(Product.id == product_id).scalar()
    if available is None:
        raise NotFoundError("Product", product_id)
    raise InsufficientStockError(product_id, -delta, available)


def _apply(
    db: Session,
    movement_type: MovementType,
    items: list[BatchItem],
    responsible: str,
    fields: dict,
    required_material: MaterialType | None = None,
) -> list[Movement]:
    movements = []
    try:
        with atomic(db):
            for item in items:
                product = _get_product(db, item.product_id)
                if required_material and MaterialType(product.type) != required_material:
                    raise InvalidArgumentError(
                        f"Product {product.id} is {MaterialType(product.type).value}, "
                        f"expected {required_material.value}"
                    )

                _adjust_stock(db, product.id, movement_type.sign * item.quantity)
                movement = Movement(
                    product_id=product.id,
                    type=movement_type,
                    quantity=item.quantity,
                    responsible=responsible,
                    **fields,
                )
                db.add(movement)
                movements.append(movement)
                db.flush()
    except Exception as e:
        logger.warning("%s batch of %d items aborted: %s", movement_type.value, len(items), e)
        raise

    for movement in movements:
        db.refresh(movement)
    logger.info(
        "%s batch committed by %s: %d movements, %d units",
        movement_type.value, responsible, len(movements), sum(m.quantity for m in movements),
    )
    return movements


def finalize_entry(db: Session, data: EntryBatch, responsible: str) -> list[Movement]:
    """Receive items from a supplier. Adds stock, no sufficiency check."""
    _validate_items(data.items)
    _require(supplier=data.supplier, invoice=data.invoice, responsible=responsible)
    fields = {
        "date": _movement_date(data.date),
        "supplier": data.supplier.strip(),
        "invoice": data.invoice.strip(),
    }
    return _apply(db, MovementType.ENTRY, data.items, responsible, fields)


def finalize_exit(db: Session, data: ExitBatch, responsible: str) -> list[Movement]:
    """Issue items to a department.

    The batch is rejected as a whole with InsufficientStockError if any line
    asks for more than is on hand; partial fulfillment is not supported.
    """
    _validate_items(data.items)
    _require(requester=data.requester, department=data.department, responsible=responsible)
    fields = {
        "date": _movement_date(data.date),
        "requester": data.requester.strip(),
        "department": data.department.strip(),
        "purpose": data.purpose.strip(),
    }
    required_material = EXIT_KIND_MATERIAL[ExitKind(data.kind)] if data.kind else None
    return _apply(db, MovementType.EXIT, data.items, responsible, fields, required_material)


def finalize_return(db: Session, data: ReturnBatch, responsible: str) -> list[Movement]:
    """Take items back from a department."""
    _validate_items(data.items)
    reason = data.reason.value if data.reason else ""
    _require(department=data.department, reason=reason, responsible=responsible)
    fields = {
        "date": _movement_date(data.date),
        "department": data.department.strip(),
        "reason": reason,
    }
    return _apply(db, MovementType.RETURN, data.items, responsible, fields)


def list_movements(
    db: Session,
    start: date | datetime | None = None,
    end: date | datetime | None = None,
    movement_type: MovementType | None = None,
    department: str | None = None,
    material_type: MaterialType | None = None,
) -> list[Movement]:
    q = db.query(Movement)
    if start:
        q = q.filter(Movement.date >= clock.start_of_day(start))
    if end:
        q = q.filter(Movement.date <= clock.end_of_day(end))
    if movement_type:
        q = q.filter(Movement.type == MovementType(movement_type))
    if department:
        q = q.filter(Movement.department == department)
    if material_type:
        product_ids = select(Product.id).where(Product.type == MaterialType(material_type))
        q = q.filter(Movement.product_id.in_(product_ids))
    return q.order_by(Movement.date.desc(), Movement.created_at.desc()).all()


def list_movements_for_product(
    db: Session, product_id: str, skip: int = 0, limit: int | None = None
) -> list[Movement]:
    q = (
        db.query(Movement)
        .filter(Movement.product_id == product_id)
        .order_by(Movement.date.desc(), Movement.created_at.desc())
        .offset(skip)
    )
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def list_departments(db: Session) -> list[str]:
    rows = (
        db.query(Movement.department)
        .filter(Movement.department != "")
        .distinct()
        .order_by(Movement.department.asc())
        .all()
    )
    return [r[0] for r in rows]


def ledger_balances(db: Session, product_ids: list[str] | None = None) -> dict[str, int]:
    """Signed sum of movements per product id. A consistent ledger matches ``Product.quantity``."""
    signed = case((Movement.type == MovementType.EXIT, -Movement.quantity), else_=Movement.quantity)
    q = db.query(Movement.product_id, func.sum(signed)).group_by(Movement.product_id)
    if product_ids is not None:
        q = q.filter(Movement.product_id.in_(product_ids))
    return {product_id: int(total) for product_id, total in q.all()}
