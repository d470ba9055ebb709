import logging
import time

from sqlalchemy import delete
from sqlalchemy.orm import Session

from almoxtrack import clock
from almoxtrack.config import settings
from almoxtrack.database import atomic
from almoxtrack.exceptions import InvalidArgumentError, NotFoundError
from almoxtrack.models.movement import Movement, MovementType
from almoxtrack.models.product import PATRIMONY_NOT_APPLICABLE, MaterialType, Product
from almoxtrack.schemas.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

INITIAL_STOCK_SUPPLIER = "Initial stock"


def _generate_code() -> str:
    return f"new-{int(time.time() * 1000)}"


def _patrimony_for(material_type: MaterialType, patrimony: str | None) -> str:
    if material_type == MaterialType.PERMANENT:
        return (patrimony or "").strip()
    return PATRIMONY_NOT_APPLICABLE


def _check_code_available(db: Session, code: str, exclude_id: str | None = None) -> None:
    if not settings.ENFORCE_UNIQUE_CODE:
        return
    q = db.query(Product).filter(Product.code == code)
    if exclude_id:
        q = q.filter(Product.id != exclude_id)
    if q.first():
        raise InvalidArgumentError(f"Product with code {code} already exists")


def create_product(db: Session, data: ProductCreate, responsible: str) -> Product:
    """Insert a product. A nonzero initial quantity is booked as an entry movement
    in the same transaction so the ledger always accounts for the stock."""
    name = data.name.strip()
    if not name:
        raise InvalidArgumentError("Product name is required")
    if data.initial_quantity < 0:
        raise InvalidArgumentError("Initial quantity cannot be negative")

    material_type = MaterialType(data.type)
    code = data.code.strip() or _generate_code()
    _check_code_available(db, code)

    product = Product(
        name=name,
        name_lowercase=name.lower(),
        code=code,
        patrimony=_patrimony_for(material_type, data.patrimony),
        type=material_type,
        quantity=data.initial_quantity,
        unit=data.unit,
        category=data.category,
        image=data.image or settings.DEFAULT_IMAGE_URL,
    )
    with atomic(db):
        db.add(product)
        db.flush()
        if data.initial_quantity > 0:
            db.add(Movement(
                product_id=product.id,
                date=clock.now(),
                type=MovementType.ENTRY,
                quantity=data.initial_quantity,
                responsible=responsible,
                supplier=INITIAL_STOCK_SUPPLIER,
            ))
    db.refresh(product)
    logger.info("Created product %s (%s) with initial quantity %d", product.id, product.name, product.quantity)
    return product


def get_product(db: Session, product_id: str) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product", product_id)
    return product


def get_product_by_code(db: Session, code: str) -> Product | None:
    return db.query(Product).filter(Product.code == code).first()


def list_products(
    db: Session, search_term: str | None = None, material_type: MaterialType | None = None
) -> list[Product]:
    """Prefix search on the name, falling back to an exact code match.

    Only the unfiltered listing is capped at PRODUCT_PAGE_SIZE; searches return every match.
    """
    q = db.query(Product)
    if material_type:
        q = q.filter(Product.type == MaterialType(material_type))

    term = (search_term or "").strip()
    if not term:
        return q.order_by(Product.name.asc()).limit(settings.PRODUCT_PAGE_SIZE).all()

    by_name = (
        q.filter(Product.name_lowercase.startswith(term.lower(), autoescape=True))
        .order_by(Product.name.asc())
        .all()
    )
    if by_name:
        return by_name
    return q.filter(Product.code == term).order_by(Product.name.asc()).all()


def update_product(db: Session, product_id: str, data: ProductUpdate) -> Product:
    product = get_product(db, product_id)
    update_data = data.model_dump(exclude_unset=True, exclude_none=True)

    if "name" in update_data:
        name = update_data["name"].strip()
        if not name:
            raise InvalidArgumentError("Product name is required")
        update_data["name"] = name
        update_data["name_lowercase"] = name.lower()
    if "code" in update_data:
        code = update_data["code"].strip()
        if not code:
            raise InvalidArgumentError("Product code cannot be blank")
        _check_code_available(db, code, exclude_id=product.id)
        update_data["code"] = code
    if "patrimony" in update_data:
        update_data["patrimony"] = _patrimony_for(MaterialType(product.type), update_data["patrimony"])

    with atomic(db):
        for field, value in update_data.items():
            setattr(product, field, value)
    db.refresh(product)
    return product


def delete_product(db: Session, product_id: str) -> None:
    product = get_product(db, product_id)
    name = product.name
    with atomic(db):
        if settings.PRODUCT_DELETE_POLICY == "cascade":
            result = db.execute(delete(Movement).where(Movement.product_id == product.id))
            logger.info("Deleting %d movements of product %s", result.rowcount, product.id)
        db.delete(product)
    logger.info("Deleted product %s (%s)", product_id, name)


def get_low_stock(db: Session, threshold: int | None = None) -> list[Product]:
    if threshold is None:
        threshold = settings.LOW_STOCK_THRESHOLD
    return db.query(Product).filter(Product.quantity <= threshold).order_by(Product.name.asc()).all()
