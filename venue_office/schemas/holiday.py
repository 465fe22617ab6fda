from typing import Optional
from pydantic import BaseModel
from datetime import date


class HolidayCreate(BaseModel):
    date: date
    name: Optional[str] = None


class Holiday(HolidayCreate):
    id: int

    class Config:
        from_attributes = True


class HolidayCheck(BaseModel):
    date: date
    is_holiday: bool
