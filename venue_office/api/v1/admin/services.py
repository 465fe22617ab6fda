from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from sqlalchemy import func

from venue_office.db.session import get_db
from venue_office.api.deps import get_current_staff
from venue_office.models.people import Staff
from venue_office.models.service import Service
from venue_office.schemas.service import ServiceCreate, ServiceUpdate, Service as ServiceSchema
from venue_office.schemas.common import PaginatedResponse

router = APIRouter(prefix="/services", tags=["Admin - Services"])


@router.post("/", response_model=ServiceSchema, status_code=status.HTTP_201_CREATED)
def create_service(
    data: ServiceCreate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    service = Service(**data.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


@router.get("/", response_model=PaginatedResponse[ServiceSchema])
def list_services(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    type: Optional[int] = Query(None),
    location_type: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    query = db.query(Service).filter(Service.is_active == True)
    if type is not None:
        query = query.filter(Service.type == type)
    if location_type is not None:
        query = query.filter(Service.location_type == location_type)

    total = query.with_entities(func.count(Service.id)).scalar()
    services = query.order_by(Service.id).offset((page - 1) * limit).limit(limit).all()

    return PaginatedResponse(
        data=[ServiceSchema.model_validate(service) for service in services],
        total=total,
        page=page,
        limit=limit,
        total_pages=-(-total // limit) if total else 0,
    )


@router.patch("/{id}", response_model=ServiceSchema)
def update_service(
    id: int,
    data: ServiceUpdate,
    db: Session = Depends(get_db),
    current_staff: Staff = Depends(get_current_staff),
):
    service = db.query(Service).filter(Service.id == id).first()
    if not service:
        raise HTTPException(status_code=404, detail="Service not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)

    db.commit()
    db.refresh(service)
    return service
