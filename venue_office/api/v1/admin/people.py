from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from sqlalchemy import func

from venue_office.db.session import get_db
from venue_office.api.deps import get_current_staff
from venue_office.core.security import get_password_hash
from venue_office.models.people import Customer, Staff
from venue_office.schemas.people import (
    CustomerCreate,
    CustomerUpdate,
    Customer as CustomerSchema,
    StaffCreate,
    StaffUpdate,
    Staff as StaffSchema,
)
from venue_office.schemas.common import PaginatedResponse

customer_router = APIRouter(prefix="/customers", tags=["Admin - Customers"])
staff_router = APIRouter(prefix="/staffs", tags=["Admin - Staffs"])


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


@customer_router.post("/", response_model=CustomerSchema, status_code=status.HTTP_201_CREATED)
def create_customer(
    data: CustomerCreate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    customer = Customer(**data.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer


@customer_router.get("/", response_model=PaginatedResponse[CustomerSchema])
def list_customers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    name: str = Query(None),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    query = db.query(Customer)
    if name:
        query = query.filter(Customer.name.ilike(f"%{name}%"))

    total = query.with_entities(func.count(Customer.id)).scalar()
    customers = query.order_by(Customer.id.desc()).offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=[CustomerSchema.model_validate(customer) for customer in customers],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@customer_router.patch("/{id}", response_model=CustomerSchema)
def update_customer(
    id: int,
    data: CustomerUpdate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    customer = db.query(Customer).filter(Customer.id == id).first()
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(customer, field, value)

    db.commit()
    db.refresh(customer)
    return customer


# ---------------------------------------------------------------------------
# Staffs
# ---------------------------------------------------------------------------


@staff_router.post("/", response_model=StaffSchema, status_code=status.HTTP_201_CREATED)
def create_staff(
    data: StaffCreate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    if db.query(Staff).filter(Staff.username == data.username).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already registered",
        )
    staff = Staff(
        username=data.username,
        name=data.name,
        hashed_password=get_password_hash(data.password),
    )
    db.add(staff)
    db.commit()
    db.refresh(staff)
    return staff


@staff_router.patch("/{id}", response_model=StaffSchema)
def update_staff(
    id: int,
    data: StaffUpdate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    staff = db.query(Staff).filter(Staff.id == id).first()
    if not staff:
        raise HTTPException(status_code=404, detail="Staff not found")

    changes = data.model_dump(exclude_unset=True)
    password = changes.pop("password", None)
    if password:
        staff.hashed_password = get_password_hash(password)
    for field, value in changes.items():
        setattr(staff, field, value)

    db.commit()
    db.refresh(staff)
    return staff
