import re
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlmodel import SQLModel

from models import IndividualType, RecordMode, UserRole

ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class RegisterRequest(BaseModel):
    name: str = ""
    username: str = ""
    password: str = ""


class LoginRequest(BaseModel):
    username: str
    password: str
    portal: Literal["DRIVER", "ADMIN"] = "DRIVER"


class UserResponse(SQLModel):
    id: str
    username: str
    name: str
    role: UserRole


class PhotoUpload(BaseModel):
    data_url: str
    timestamp: datetime | None = None


class NewRecordForm(BaseModel):
    """Raw new-record form input. Quantities arrive as typed and are coerced later."""

    date: str  # YYYY-MM-DD format
    mode: RecordMode
    id_field: str = ""
    id_field_2: str = ""
    area_id_count: Literal[1, 2] = 1
    qty_parcel: str | int | float | None = None
    qty_collection: str | int | float | None = None
    photos: list[PhotoUpload] = []

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        # Month grouping slices the string, so only zero-padded dates are stored
        if not ISO_DATE.fullmatch(v):
            raise ValueError("date must be YYYY-MM-DD")
        datetime.strptime(v, "%Y-%m-%d")
        return v


class PreviewResponse(BaseModel):
    value: Decimal
    formatted: str


class PhotoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    data_url: str
    timestamp: datetime


class RecordResponseBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    user_name: str
    date: str
    id_field: str
    quantity: int
    calculated_value: Decimal
    photos: list[PhotoResponse] = []
    created_at: datetime


class IndividualRecordResponse(RecordResponseBase):
    mode: Literal[RecordMode.INDIVIDUAL]
    individual_type: IndividualType


class AreaRecordResponse(RecordResponseBase):
    mode: Literal[RecordMode.AREA]
    area_id_count: Literal[1, 2]


WorkRecordResponse = Annotated[
    Union[IndividualRecordResponse, AreaRecordResponse],
    Field(discriminator="mode"),
]


def to_record_response(record) -> IndividualRecordResponse | AreaRecordResponse:
    """Convert a stored WorkRecord into its mode-specific response shape."""
    if RecordMode(record.mode) == RecordMode.INDIVIDUAL:
        return IndividualRecordResponse.model_validate(record)
    return AreaRecordResponse.model_validate(record)


class MonthHistory(BaseModel):
    month: str  # YYYY-MM
    label: str
    total: Decimal
    items: list[WorkRecordResponse]


class HistoryResponse(BaseModel):
    months: list[MonthHistory]


class StatsResponse(BaseModel):
    month: str
    total: Decimal
    average: Decimal
    unique_days: int
