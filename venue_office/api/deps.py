from functools import lru_cache

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from venue_office.core.config import FacilityConfig, settings
from venue_office.core.security import decode_token
from venue_office.db.session import get_db
from venue_office.models.people import Staff

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_STR}/auth/login")


@lru_cache
def get_facility() -> FacilityConfig:
    return settings.facility()


def get_current_staff(
    token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)
) -> Staff:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    staff_id = decode_token(token)
    if staff_id is None:
        raise credentials_exception
    staff = db.query(Staff).filter(Staff.id == int(staff_id)).first()
    if not staff:
        raise credentials_exception
    if not staff.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive",
        )
    return staff
