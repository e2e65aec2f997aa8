"""Audit logging service and request-to-entry mapping helpers."""

import json
import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.models import AuditAction, AuditLog

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"
_SENSITIVE_KEYS = frozenset({"password", "token", "tempPassword", "temp_password"})

_METHOD_ACTIONS: dict[str, AuditAction] = {
    "POST": AuditAction.CREATE,
    "PUT": AuditAction.UPDATE,
    "PATCH": AuditAction.UPDATE,
    "DELETE": AuditAction.DELETE,
}

# Checked in order: /api/admin/tasks is a Task, /api/admin/stats is Admin.
_PATH_RESOURCES: tuple[tuple[str, str], ...] = (
    ("/tasks", "Task"),
    ("/users", "User"),
    ("/auth", "Auth"),
    ("/admin", "Admin"),
)


def should_audit(method: str, path: str, health_path: str) -> bool:
    """Mutations are always audited; reads only under the admin API."""
    if path == health_path:
        return False
    if method == "GET" and "/admin/" not in path:
        return False
    return True


def action_from_method(method: str) -> AuditAction:
    """Map an HTTP method to an audit action."""
    return _METHOD_ACTIONS.get(method.upper(), AuditAction.READ)


def resource_from_path(path: str) -> str:
    """Map a request path to a resource name."""
    for fragment, resource in _PATH_RESOURCES:
        if fragment in path:
            return resource
    return "Unknown"


def redact(data: Any) -> Any:
    """Replace values of credential-like keys, recursively."""
    if isinstance(data, dict):
        return {
            key: REDACTED if key in _SENSITIVE_KEYS else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [redact(item) for item in data]
    return data


def parse_body(raw: bytes) -> Any:
    """Decode a JSON request body; non-JSON bodies are kept as text."""
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (ValueError, UnicodeDecodeError):
        return raw.decode("utf-8", errors="replace")


def build_details(body: Any, params: dict[str, Any] | None) -> str:
    """Summarise the request payload and path parameters as text."""
    parts = []
    if body:
        parts.append(f"Data: {json.dumps(redact(body), default=str)}")
    if params:
        parts.append(f"Params: {json.dumps(params, default=str)}")
    return ", ".join(parts)


class AuditService:
    """Service for writing audit entries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        user_id: int,
        action: AuditAction,
        resource: str,
        resource_id: str | None = None,
        details: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuditLog:
        """Append an audit entry.

        Args:
            user_id: ID of user performing the action
            action: Action derived from the HTTP method
            resource: Resource name derived from the path (e.g. "Task")
            resource_id: The ``id`` path parameter, if any
            details: Serialized request body and path parameters
            ip_address: Client IP address
            user_agent: Client User-Agent header

        Returns:
            Created AuditLog entry
        """
        entry = AuditLog(
            user_id=user_id,
            action=action,
            resource=resource,
            resource_id=resource_id,
            details=details or None,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(entry)
        await self.session.commit()
        await self.session.refresh(entry)
        return entry
