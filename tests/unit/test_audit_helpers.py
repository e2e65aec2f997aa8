"""Unit tests for request-to-audit-entry mapping."""

import pytest
from starlette.requests import Request

from taskflow.middleware.audit import client_ip
from taskflow.models import AuditAction
from taskflow.services.audit import (
    REDACTED,
    action_from_method,
    build_details,
    parse_body,
    redact,
    resource_from_path,
    should_audit,
)

HEALTH = "/api/health"


class TestShouldAudit:
    """Which requests qualify for an audit entry."""

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_mutations_qualify(self, method):
        assert should_audit(method, "/api/tasks/1", HEALTH) is True

    def test_plain_reads_skipped(self):
        assert should_audit("GET", "/api/tasks", HEALTH) is False

    def test_admin_reads_qualify(self):
        assert should_audit("GET", "/api/admin/users", HEALTH) is True

    def test_health_never_qualifies(self):
        assert should_audit("GET", HEALTH, HEALTH) is False
        assert should_audit("POST", HEALTH, HEALTH) is False


class TestMapping:
    """Method to action and path to resource."""

    @pytest.mark.parametrize(
        "method,action",
        [
            ("POST", AuditAction.CREATE),
            ("PUT", AuditAction.UPDATE),
            ("patch", AuditAction.UPDATE),
            ("DELETE", AuditAction.DELETE),
            ("GET", AuditAction.READ),
            ("OPTIONS", AuditAction.READ),
        ],
    )
    def test_action_from_method(self, method, action):
        assert action_from_method(method) == action

    @pytest.mark.parametrize(
        "path,resource",
        [
            ("/api/tasks/3", "Task"),
            ("/api/admin/tasks", "Task"),
            ("/api/admin/users/7/role", "User"),
            ("/api/auth/google", "Auth"),
            ("/api/admin/stats", "Admin"),
            ("/api/admin/audit-logs", "Admin"),
            ("/api/other", "Unknown"),
        ],
    )
    def test_resource_from_path(self, path, resource):
        assert resource_from_path(path) == resource


class TestDetails:
    """Serialized request snapshot."""

    def test_redacts_nested_credentials(self):
        data = {"email": "a@b.c", "password": "x", "nested": [{"token": "t", "keep": 1}]}

        assert redact(data) == {
            "email": "a@b.c",
            "password": REDACTED,
            "nested": [{"token": REDACTED, "keep": 1}],
        }

    def test_parse_body(self):
        assert parse_body(b"") is None
        assert parse_body(b'{"a": 1}') == {"a": 1}
        assert parse_body(b"plain text") == "plain text"

    def test_build_details(self):
        details = build_details({"title": "x", "password": "p"}, {"id": "4"})

        assert details == 'Data: {"title": "x", "password": "[REDACTED]"}, Params: {"id": "4"}'

    def test_build_details_empty(self):
        assert build_details(None, {}) == ""


class TestClientIp:
    """Client address resolution."""

    def _request(self, headers: dict[str, str]) -> Request:
        scope = {
            "type": "http",
            "method": "GET",
            "path": "/",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
            "client": ("192.168.1.5", 5000),
        }
        return Request(scope)

    def test_first_forwarded_hop(self):
        request = self._request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

        assert client_ip(request) == "203.0.113.9"

    def test_falls_back_to_peer(self):
        assert client_ip(self._request({})) == "192.168.1.5"
