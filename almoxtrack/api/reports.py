from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from almoxtrack.api.auth import get_current_user
from almoxtrack.database import get_db
from almoxtrack.models.movement import MovementType
from almoxtrack.models.product import MaterialType
from almoxtrack.services import report_service

router = APIRouter(prefix="/reports", tags=["Reports"], dependencies=[Depends(get_current_user)])


@router.get("/dashboard")
def dashboard(
    start: date | None = None,
    end: date | None = None,
    type: MovementType | None = None,
    department: str | None = None,
    material_type: MaterialType | None = None,
    db: Session = Depends(get_db),
):
    return report_service.dashboard(
        db, start=start, end=end, movement_type=type, department=department, material_type=material_type
    )


@router.get("/inventory")
def inventory_report(db: Session = Depends(get_db)):
    return report_service.inventory_summary(db)
