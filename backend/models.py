from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import CheckConstraint
from sqlmodel import Field, Relationship, SQLModel


def generate_id() -> str:
    return uuid4().hex


class UserRole(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class RecordMode(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    AREA = "AREA"


class IndividualType(str, Enum):
    PARCEL = "PARCEL"
    COLLECTION = "COLLECTION"


class User(SQLModel, table=True):
    id: str = Field(default_factory=generate_id, primary_key=True)
    user_key: str = Field(unique=True, index=True)  # Normalized: lower(trim(username))
    username: str  # Display form (preserves casing)
    name: str
    role: UserRole = Field(default=UserRole.USER)
    password: str  # Plaintext, compared as-is on login


class WorkRecord(SQLModel, table=True):
    __tablename__ = "work_record"
    __table_args__ = (
        CheckConstraint(
            "(mode = 'INDIVIDUAL' AND individual_type IS NOT NULL AND area_id_count IS NULL)"
            " OR (mode = 'AREA' AND individual_type IS NULL AND area_id_count IN (1, 2))",
            name="ck_work_record_mode_fields",
        ),
    )

    id: str = Field(default_factory=generate_id, primary_key=True)
    user_id: str = Field(foreign_key="user.id", index=True)
    user_name: str  # Denormalized for admin listings
    date: str = Field(index=True)  # YYYY-MM-DD format
    mode: RecordMode
    individual_type: IndividualType | None = Field(default=None)
    area_id_count: int | None = Field(default=None)
    id_field: str
    quantity: int
    calculated_value: Decimal = Field(max_digits=10, decimal_places=2)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    photos: list["Photo"] = Relationship(
        back_populates="record",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Photo.position"},
    )

    @classmethod
    def individual(cls, individual_type: IndividualType, **fields) -> "WorkRecord":
        """Build an INDIVIDUAL record; area_id_count stays unset."""
        return cls(mode=RecordMode.INDIVIDUAL, individual_type=individual_type, area_id_count=None, **fields)

    @classmethod
    def area(cls, area_id_count: int, **fields) -> "WorkRecord":
        """Build an AREA record; individual_type stays unset."""
        if area_id_count not in (1, 2):
            raise ValueError(f"area_id_count must be 1 or 2, got {area_id_count}")
        return cls(mode=RecordMode.AREA, individual_type=None, area_id_count=area_id_count, **fields)


class Photo(SQLModel, table=True):
    id: str = Field(default_factory=generate_id, primary_key=True)
    record_id: str = Field(foreign_key="work_record.id", index=True)
    position: int = Field(default=0)
    data_url: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    record: WorkRecord | None = Relationship(back_populates="photos")
