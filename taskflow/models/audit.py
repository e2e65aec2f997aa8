"""Audit log model for the request audit trail."""

from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from taskflow.core.timeutils import utcnow
from taskflow.models.types import UTCDateTime


class AuditAction(str, Enum):
    """Action derived from the HTTP method."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    READ = "READ"


class AuditLog(SQLModel, table=True):
    """Append-only audit entry.

    ``user_id`` carries no foreign key: entries outlive the users they
    reference.
    """

    __tablename__ = "audit_logs"

    id: int | None = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=utcnow, index=True, sa_type=UTCDateTime)
    user_id: int | None = Field(default=None, index=True)
    action: AuditAction = Field(index=True)
    resource: str = Field(index=True)  # e.g. "Task", "User", "Admin"
    resource_id: str | None = Field(default=None)
    details: str | None = Field(default=None)
    ip_address: str | None = Field(default=None)
    user_agent: str | None = Field(default=None)
