"""User model for authentication and authorization."""

from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from taskflow.core.timeutils import utcnow
from taskflow.models.types import UTCDateTime


class UserRole(str, Enum):
    """User roles for RBAC."""

    USER = "user"
    ADMIN = "admin"


class UserStatus(str, Enum):
    """Account status. Inactive accounts cannot authenticate."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class UserBase(SQLModel):
    """Base user fields."""

    name: str
    email: str = Field(unique=True, index=True)
    role: UserRole = Field(default=UserRole.USER)
    status: UserStatus = Field(default=UserStatus.ACTIVE)


class User(UserBase, table=True):
    """User database model."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)
    hashed_password: str | None = Field(default=None)
    firebase_uid: str | None = Field(default=None, unique=True, index=True)
    last_login: datetime | None = Field(default=None, sa_type=UTCDateTime)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
