from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from almoxtrack.api.auth import get_current_user, responsible_name
from almoxtrack.database import get_db
from almoxtrack.models.movement import MovementType
from almoxtrack.models.product import MaterialType
from almoxtrack.models.user import User
from almoxtrack.schemas.movement import EntryBatch, ExitBatch, MovementOut, ReturnBatch
from almoxtrack.services import movement_service

router = APIRouter(prefix="/movements", tags=["Movements"], dependencies=[Depends(get_current_user)])


@router.post("/entries", response_model=list[MovementOut], status_code=201)
def finalize_entry(data: EntryBatch, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return movement_service.finalize_entry(db, data, responsible=responsible_name(user))


@router.post("/exits", response_model=list[MovementOut], status_code=201)
def finalize_exit(data: ExitBatch, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return movement_service.finalize_exit(db, data, responsible=responsible_name(user))


@router.post("/returns", response_model=list[MovementOut], status_code=201)
def finalize_return(data: ReturnBatch, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return movement_service.finalize_return(db, data, responsible=responsible_name(user))


@router.get("", response_model=list[MovementOut])
def list_movements(
    start: date | None = None,
    end: date | None = None,
    type: MovementType | None = None,
    department: str | None = None,
    material_type: MaterialType | None = None,
    db: Session = Depends(get_db),
):
    return movement_service.list_movements(
        db, start=start, end=end, movement_type=type, department=department, material_type=material_type
    )


@router.get("/departments")
def list_departments(db: Session = Depends(get_db)) -> list[str]:
    return movement_service.list_departments(db)
