from collections import Counter, defaultdict
from datetime import date, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from almoxtrack.config import settings
from almoxtrack.models.movement import Movement, MovementType
from almoxtrack.models.product import MaterialType, Product
from almoxtrack.services import movement_service, product_service

UNKNOWN_PRODUCT = "Unknown"
TOP_ITEMS_LIMIT = 10


def dashboard(
    db: Session,
    start: date | datetime | None = None,
    end: date | datetime | None = None,
    movement_type: MovementType | None = None,
    department: str | None = None,
    material_type: MaterialType | None = None,
) -> dict:
    movements = movement_service.list_movements(
        db,
        start=start,
        end=end,
        movement_type=movement_type,
        department=department,
        material_type=material_type,
    )
    names = _product_names(db, {m.product_id for m in movements})

    return {
        "total_movements": len(movements),
        "total_entries": sum(1 for m in movements if m.type == MovementType.ENTRY),
        "total_exits": sum(1 for m in movements if m.type == MovementType.EXIT),
        "most_moved_item": _most_moved_item(movements, names),
        "top_department": _top_department(movements),
        "movements_by_day": _movements_by_day(movements),
        "top_items": _top_items(movements, names),
        "departments": movement_service.list_departments(db),
    }


def _product_names(db: Session, product_ids: set[str]) -> dict[str, str]:
    if not product_ids:
        return {}
    rows = db.query(Product.id, Product.name).filter(Product.id.in_(product_ids)).all()
    return {r.id: r.name for r in rows}


def _most_moved_item(movements: list[Movement], names: dict[str, str]) -> dict:
    counts = Counter(m.product_id for m in movements)
    if not counts:
        return {"name": "N/A", "count": 0}
    product_id, count = counts.most_common(1)[0]
    return {"product_id": product_id, "name": names.get(product_id, UNKNOWN_PRODUCT), "count": count}


def _top_department(movements: list[Movement]) -> dict:
    counts = Counter(m.department for m in movements if m.department)
    if not counts:
        return {"name": "N/A", "count": 0}
    name, count = counts.most_common(1)[0]
    return {"name": name, "count": count}


def _movements_by_day(movements: list[Movement]) -> list[dict]:
    # Returns are neither entries nor exits on the daily chart
    daily: dict[date, dict[str, int]] = defaultdict(lambda: {"entry": 0, "exit": 0})
    for m in movements:
        if m.type == MovementType.ENTRY:
            daily[m.date.date()]["entry"] += m.quantity
        elif m.type == MovementType.EXIT:
            daily[m.date.date()]["exit"] += m.quantity
    return [{"day": day.isoformat(), **values} for day, values in sorted(daily.items())]


def _top_items(movements: list[Movement], names: dict[str, str]) -> list[dict]:
    totals: Counter[str] = Counter()
    for m in movements:
        totals[m.product_id] += m.quantity
    return [
        {"product_id": product_id, "name": names.get(product_id, UNKNOWN_PRODUCT), "total": total}
        for product_id, total in totals.most_common(TOP_ITEMS_LIMIT)
    ]


def inventory_summary(db: Session) -> dict:
    total_products = db.query(func.count(Product.id)).scalar()
    total_units = db.query(func.coalesce(func.sum(Product.quantity), 0)).scalar()
    by_type = dict(db.query(Product.type, func.count(Product.id)).group_by(Product.type).all())
    low_stock = product_service.get_low_stock(db)
    ledger = movement_service.ledger_balances(db)
    mismatches = [
        {"id": pid, "name": name, "quantity": quantity, "ledger": ledger.get(pid, 0)}
        for pid, name, quantity in db.query(Product.id, Product.name, Product.quantity).order_by(Product.name)
        if ledger.get(pid, 0) != quantity
    ]

    return {
        "total_products": int(total_products),
        "total_units_in_stock": int(total_units),
        "by_material_type": {
            t.value: int(by_type.get(t, 0)) for t in MaterialType
        },
        "low_stock_threshold": settings.LOW_STOCK_THRESHOLD,
        "low_stock_count": len(low_stock),
        "low_stock_items": [
            {"id": p.id, "code": p.code, "name": p.name, "quantity": p.quantity} for p in low_stock
        ],
        # Products whose quantity differs from the signed sum of their movements
        "ledger_mismatches": mismatches,
    }
