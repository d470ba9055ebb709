from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from almoxtrack.api.auth import get_current_user, responsible_name
from almoxtrack.database import get_db
from almoxtrack.models.product import MaterialType
from almoxtrack.models.user import User
from almoxtrack.schemas.movement import MovementOut
from almoxtrack.schemas.product import ProductCreate, ProductOut, ProductUpdate
from almoxtrack.services import movement_service, product_service

router = APIRouter(prefix="/products", tags=["Products"], dependencies=[Depends(get_current_user)])


@router.post("", response_model=ProductOut, status_code=201)
def create_product(data: ProductCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return product_service.create_product(db, data, responsible=responsible_name(user))


@router.get("", response_model=list[ProductOut])
def list_products(
    search: str | None = Query(None, description="Name prefix, or exact code"),
    type: MaterialType | None = None,
    db: Session = Depends(get_db),
):
    return product_service.list_products(db, search_term=search, material_type=type)


@router.get("/lookup", response_model=ProductOut)
def lookup_by_code(code: str = Query(...), db: Session = Depends(get_db)):
    product = product_service.get_product_by_code(db, code)
    if not product:
        raise HTTPException(404, f"No product found with code: {code}")
    return product


@router.get("/{product_id}", response_model=ProductOut)
def get_product(product_id: str, db: Session = Depends(get_db)):
    return product_service.get_product(db, product_id)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(product_id: str, data: ProductUpdate, db: Session = Depends(get_db)):
    return product_service.update_product(db, product_id, data)


@router.delete("/{product_id}", status_code=204)
def delete_product(product_id: str, db: Session = Depends(get_db)):
    product_service.delete_product(db, product_id)


@router.get("/{product_id}/movements", response_model=list[MovementOut])
def product_movements(product_id: str, skip: int = 0, limit: int | None = None, db: Session = Depends(get_db)):
    """Movement history of a product, newest first. Works for deleted products too."""
    return movement_service.list_movements_for_product(db, product_id, skip=skip, limit=limit)
