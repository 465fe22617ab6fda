from typing import Optional
from pydantic import BaseModel, EmailStr
from datetime import datetime


# Customer
class CustomerCreate(BaseModel):
    name: str
    tel: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None


class CustomerUpdate(BaseModel):
    name: Optional[str] = None
    tel: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None


class Customer(CustomerCreate):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# Staff
class StaffCreate(BaseModel):
    username: str
    name: str
    password: str


class StaffUpdate(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None
    is_active: Optional[bool] = None


class Staff(BaseModel):
    id: int
    username: str
    name: str
    is_active: bool

    class Config:
        from_attributes = True


# Auth
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
