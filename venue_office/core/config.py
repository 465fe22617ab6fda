from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class FacilityConfig:
    """Facility rules resolved once at startup and passed into the pricing code."""

    room_set_id: int
    room_in_set_ids: Tuple[int, ...]
    basic_fee_service_id: int
    extension_fee_service_id: int
    all_day_fee_service_id: int
    incurred_fee_service_id: int
    cancel_fee_service_id: int
    default_tax_rate: Decimal = Decimal("10")
    business_start: time = time(9, 0)
    business_end: time = time(21, 0)

    @property
    def room_fee_service_ids(self) -> Tuple[int, ...]:
        return (
            self.basic_fee_service_id,
            self.extension_fee_service_id,
            self.all_day_fee_service_id,
            self.incurred_fee_service_id,
        )

    @property
    def fixed_service_ids(self) -> Tuple[int, ...]:
        return self.room_fee_service_ids + (self.cancel_fee_service_id,)


class Settings(BaseSettings):
    PROJECT_NAME: str = "Venue Office API"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str = "changeme"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "venue_office"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""

    # Facility rules
    ROOM_SET_ID: int = 0
    ROOM_IN_SET_IDS: str = ""
    BASIC_FEE_SERVICE_ID: int = 1
    EXTENSION_FEE_SERVICE_ID: int = 2
    ALL_DAY_FEE_SERVICE_ID: int = 3
    INCURRED_FEE_SERVICE_ID: int = 4
    CANCELLATION_FEE_SERVICE_ID: int = 5
    DEFAULT_TAX_RATE: Decimal = Decimal("10")
    BUSINESS_HOUR_START: time = time(9, 0)
    BUSINESS_HOUR_END: time = time(21, 0)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    def facility(self) -> FacilityConfig:
        room_in_set_ids = tuple(
            int(room_id) for room_id in self.ROOM_IN_SET_IDS.split(",") if room_id.strip()
        )
        return FacilityConfig(
            room_set_id=self.ROOM_SET_ID,
            room_in_set_ids=room_in_set_ids,
            basic_fee_service_id=self.BASIC_FEE_SERVICE_ID,
            extension_fee_service_id=self.EXTENSION_FEE_SERVICE_ID,
            all_day_fee_service_id=self.ALL_DAY_FEE_SERVICE_ID,
            incurred_fee_service_id=self.INCURRED_FEE_SERVICE_ID,
            cancel_fee_service_id=self.CANCELLATION_FEE_SERVICE_ID,
            default_tax_rate=self.DEFAULT_TAX_RATE,
            business_start=self.BUSINESS_HOUR_START,
            business_end=self.BUSINESS_HOUR_END,
        )

settings = Settings()
settings.DATABASE_URL = settings.assemble_db_url()
