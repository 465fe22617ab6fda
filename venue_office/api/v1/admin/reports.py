from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from venue_office.db.session import get_db
from venue_office.api.deps import get_current_staff
from venue_office.models.people import Staff
from venue_office.schemas.revenue import JournalResponse, PeriodRow, RoomSales
from venue_office.utils import revenue

router = APIRouter(prefix="/reports", tags=["Admin - Reports"])


# ---------------------------------------------------------------------------
# Journals
# ---------------------------------------------------------------------------


@router.get("/day-revenue", response_model=JournalResponse)
def day_revenue(
    date: date = Query(..., description="Target date (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    sales = revenue.day_revenue(db, date)
    return JournalResponse(
        period=date.isoformat(),
        rows=revenue.journal_rows(sales["all"], sales["past"], sales["net"]),
    )


@router.get("/monthly-revenue", response_model=JournalResponse)
def monthly_revenue(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    sales = revenue.monthly_revenue(db, year, month)
    return JournalResponse(
        period=f"{year:04d}-{month:02d}",
        rows=revenue.journal_rows(sales["all"], sales["past"], sales["net"]),
        rooms=[RoomSales(**row) for row in sales["rooms"]],
    )


# ---------------------------------------------------------------------------
# Period tables
# ---------------------------------------------------------------------------


@router.get("/revenue-between-months", response_model=List[PeriodRow])
def revenue_between_months(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    return [PeriodRow(**row) for row in revenue.revenue_between_months(db, year, month)]


@router.get("/month-revenue", response_model=List[PeriodRow])
def month_revenue(
    year: int = Query(..., ge=2000, le=2100),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    return [PeriodRow(**row) for row in revenue.month_revenue(db, year)]
