# backend/app/routers/closing_days.py
# PATCH = 405, DELETE = ALLOWED (hard)

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.generated import ClosingDays as DBClosingDays
from ..schemas.closing_days import ClosingDayRead, ClosingDaysCreate
from ..services.closing_days import add_closing_days

router = APIRouter(prefix="/closing_days", tags=["closing_days"])


@router.get("/", response_model=list[ClosingDayRead])
def list_closing_days(form_id: int, db: Session = Depends(get_db)):
    return (
        db.query(DBClosingDays)
        .filter(DBClosingDays.form_id == form_id)
        .order_by(DBClosingDays.date_of_closing_day)
        .all()
    )


@router.post(
    "/", response_model=list[ClosingDayRead], status_code=status.HTTP_201_CREATED
)
def create_closing_days(data: ClosingDaysCreate, db: Session = Depends(get_db)):
    """Register closing days. Dates already registered are skipped."""
    return add_closing_days(db, data.form_id, data.dates)


@router.patch("/{id}")
def patch_not_allowed():
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed",
    )


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_closing_day(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBClosingDays, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Not found")
    db.delete(obj)
    db.commit()
