"""Health check endpoints."""

from fastapi import APIRouter, Depends
from typing import Dict

from ..models import HealthStatus
from ..dependencies import get_vault
from ..exceptions import RestorePendingError
from dirvault import BackupVault

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthStatus)
async def health_check(vault: BackupVault = Depends(get_vault)) -> HealthStatus:
    pending = vault.has_pending_restore()
    return HealthStatus(
        status="restore_pending" if pending else "healthy",
        pending_restore=pending,
        scheduler_running=vault.scheduler.is_running(),
    )


@router.get("/ready")
async def readiness_probe(vault: BackupVault = Depends(get_vault)) -> Dict[str, str]:
    """Not ready while a staged restore waits for the next restart."""
    if vault.has_pending_restore():
        raise RestorePendingError()
    return {"status": "ready"}


@router.get("/live")
async def liveness_probe() -> Dict[str, str]:
    """Kubernetes liveness probe."""
    return {"status": "alive"}
