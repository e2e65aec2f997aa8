"""Audit trail middleware.

Records one audit entry per qualifying request after the response has been
fully sent, or when an unhandled error escapes the app. The request body is
captured as the app reads it; the authenticated user is whatever the auth
dependency left on ``request.state``.
"""

import logging

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from taskflow.core.config import get_settings
from taskflow.services.audit import (
    AuditService,
    action_from_method,
    build_details,
    parse_body,
    resource_from_path,
    should_audit,
)

logger = logging.getLogger(__name__)


def client_ip(request: Request) -> str | None:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else None


class AuditTrailMiddleware:
    """Pure ASGI middleware that writes audit entries after each response."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app
        self.health_path = f"{get_settings().api_prefix}/health"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        body = bytearray()
        response_sent = False

        async def receive_with_capture() -> Message:
            message = await receive()
            if message["type"] == "http.request":
                body.extend(message.get("body", b""))
            return message

        async def send_with_hook(message: Message) -> None:
            nonlocal response_sent
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                response_sent = True

        try:
            await self.app(scope, receive_with_capture, send_with_hook)
        except Exception:
            # The 500 is sent further out by the server error middleware.
            await self.record(scope, bytes(body))
            raise

        if response_sent:
            await self.record(scope, bytes(body))

    async def record(self, scope: Scope, raw_body: bytes) -> None:
        """Persist the audit entry. Failures are logged, never raised."""
        try:
            state = scope.get("state") or {}
            user_id = state.get("user_id")
            if user_id is None:
                return

            request = Request(scope)
            if not should_audit(request.method, request.url.path, self.health_path):
                return

            params = dict(scope.get("path_params") or {})
            resource_id = params.get("id")
            session_factory = request.app.state.session_factory
            async with session_factory() as session:
                await AuditService(session).log(
                    user_id=user_id,
                    action=action_from_method(request.method),
                    resource=resource_from_path(request.url.path),
                    resource_id=str(resource_id) if resource_id is not None else None,
                    details=build_details(parse_body(raw_body), params),
                    ip_address=client_ip(request),
                    user_agent=request.headers.get("User-Agent"),
                )
        except Exception:
            logger.exception("Audit logging error")
