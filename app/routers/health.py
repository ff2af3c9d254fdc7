"""Health check router: database, schema revision and collaborator settings."""

from pathlib import Path
from typing import Optional

from alembic.config import Config
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings, is_configured
from app.db.session import get_db

router = APIRouter()

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _alembic_head() -> Optional[str]:
    cfg_path = PROJECT_ROOT / "alembic.ini"
    script_location = PROJECT_ROOT / "alembic"
    if not cfg_path.exists() or not script_location.exists():
        return None

    config = Config(str(cfg_path))
    config.set_main_option("script_location", str(script_location))
    return ScriptDirectory.from_config(config).get_current_head()


def collaborator_status() -> dict[str, bool]:
    """Which outbound collaborators have real (non-placeholder) settings."""
    return {
        "crawler_configured": is_configured(settings.CRAWLER_SERVICE_URL),
        "model_configured": is_configured(settings.LLM_API_URL) and is_configured(settings.LLM_API_KEY),
        "status_key_configured": is_configured(settings.STATUS_API_KEY),
    }


async def _database_revision(db: AsyncSession) -> tuple[bool, Optional[str]]:
    """(reachable, applied alembic revision or None)."""
    try:
        await db.execute(text("SELECT 1"))
    except Exception:
        return False, None

    try:
        result = await db.execute(text("SELECT version_num FROM alembic_version"))
        return True, result.scalar_one_or_none()
    except Exception:
        # Schema created without alembic (e.g. test databases)
        await db.rollback()
        return True, None


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Readiness summary.

    `ready` requires a reachable database plus configured crawler and model
    endpoints; the job-status key only gates polling and is reported separately.
    """
    db_ok, alembic_current = await _database_revision(db)

    try:
        alembic_head = _alembic_head()
    except Exception:
        alembic_head = None

    collaborators = collaborator_status()
    return {
        "api_ok": True,
        "db_ok": db_ok,
        "alembic_head_ok": bool(alembic_current and alembic_current == alembic_head),
        "alembic_current": alembic_current,
        "alembic_head": alembic_head,
        **collaborators,
        "ready": db_ok and collaborators["crawler_configured"] and collaborators["model_configured"],
    }
