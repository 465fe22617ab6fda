from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from sqlalchemy import extract

from venue_office.db.session import get_db
from venue_office.api.deps import get_current_staff
from venue_office.models.holiday import Holiday
from venue_office.models.people import Staff
from venue_office.schemas.holiday import HolidayCreate, Holiday as HolidaySchema, HolidayCheck

router = APIRouter(prefix="/holidays", tags=["Admin - Holidays"])


@router.post("/", response_model=HolidaySchema, status_code=status.HTTP_201_CREATED)
def create_holiday(
    data: HolidayCreate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    if db.query(Holiday).filter(Holiday.date == data.date).first():
        raise HTTPException(status_code=400, detail="Holiday already registered")
    holiday = Holiday(**data.model_dump())
    db.add(holiday)
    db.commit()
    db.refresh(holiday)
    return holiday


@router.get("/", response_model=List[HolidaySchema])
def list_holidays(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    query = db.query(Holiday)
    if year is not None:
        query = query.filter(extract("year", Holiday.date) == year)
    return query.order_by(Holiday.date).all()


@router.get("/check", response_model=HolidayCheck)
def check_holiday(
    date: date = Query(...),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    is_holiday = db.query(Holiday).filter(Holiday.date == date).first() is not None
    return HolidayCheck(date=date, is_holiday=is_holiday)


@router.delete("/{id}", status_code=status.HTTP_200_OK)
def delete_holiday(
    id: int,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    holiday = db.query(Holiday).filter(Holiday.id == id).first()
    if not holiday:
        raise HTTPException(status_code=404, detail="Holiday not found")
    db.delete(holiday)
    db.commit()
    return {"id": id, "deleted": True}
