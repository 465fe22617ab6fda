from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from venue_office.db.session import get_db
from venue_office.core.security import create_access_token, verify_password
from venue_office.api.deps import get_current_staff
from venue_office.models.people import Staff
from venue_office.schemas.people import Token, Staff as StaffSchema

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=Token)
def login(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    staff = db.query(Staff).filter(Staff.username == form_data.username).first()
    if not staff or not verify_password(form_data.password, staff.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not staff.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return Token(access_token=create_access_token(subject=str(staff.id)))


@router.get("/me", response_model=StaffSchema)
def me(current_staff: Staff = Depends(get_current_staff)):
    return current_staff
