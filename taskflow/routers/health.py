"""Health check endpoint."""

from fastapi import APIRouter

from taskflow.core.config import get_settings
from taskflow.core.database import check_database
from taskflow.core.deps import DbSession
from taskflow.core.timeutils import utcnow

router = APIRouter()


@router.get("/health")
async def health_check(session: DbSession) -> dict:
    """Return service health status. Public and never audited."""
    settings = get_settings()
    database_ok = await check_database(session)
    return {
        "status": "OK",
        "timestamp": utcnow().isoformat().replace("+00:00", "Z"),
        "services": {
            "database": "connected" if database_ok else "unavailable",
            "email": "configured" if settings.email_configured else "not-configured",
        },
    }
