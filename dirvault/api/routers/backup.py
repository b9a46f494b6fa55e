"""Backup and restore API endpoints."""

from fastapi import APIRouter, Depends
from typing import List, Optional

from ..models import (
    BackupCreateRequest,
    BackupResponse,
    CleanupResponse,
    RestoreRequest,
    RestoreResponse,
)
from ..dependencies import get_vault
from ..exceptions import BackupNotFoundError, OperationConflictError, OperationFailedError
from dirvault import BackupVault
from dirvault.backup.models import ArchiveInfo, StatusReport
from dirvault.exceptions import InvalidReferenceError
from dirvault._utils import logger

router = APIRouter(prefix="/backup", tags=["backup"])


@router.post("", response_model=BackupResponse)
async def create_backup(
    body: Optional[BackupCreateRequest] = None,
    vault: BackupVault = Depends(get_vault),
) -> BackupResponse:
    """Create a backup now.

    Runs the pre-backup hook and retention the same way a scheduled
    backup does. Returns 409 while another backup or restore is running.
    """
    label = body.label if body else None
    result = await vault.create_backup(label)

    if result.declined:
        raise OperationConflictError(result.message)
    if not result.success:
        raise OperationFailedError(result.message)

    return BackupResponse(
        success=True,
        message=result.message,
        backup_name=result.archive_path.name if result.archive_path else None,
        duration_ms=result.duration_ms,
    )


@router.get("", response_model=List[ArchiveInfo])
async def list_backups(vault: BackupVault = Depends(get_vault)) -> List[ArchiveInfo]:
    """List all archives, newest first. Entry N is backup number N."""
    return vault.list_backups()


@router.get("/status", response_model=StatusReport)
async def backup_status(vault: BackupVault = Depends(get_vault)) -> StatusReport:
    return vault.status()


@router.post("/restore", response_model=RestoreResponse)
async def restore_backup(
    request: RestoreRequest,
    vault: BackupVault = Depends(get_vault),
) -> RestoreResponse:
    """Stage a restore from a backup number or name.

    The live data directory is replaced at the next controlled restart.
    """
    try:
        result = await vault.restore(request.backup)
    except InvalidReferenceError as e:
        raise BackupNotFoundError(str(e))

    if result.declined:
        raise OperationConflictError(result.message)
    if not result.success:
        raise OperationFailedError(result.message)

    logger.info(f"Restore staged via API: {result.backup_name}")
    return RestoreResponse(success=True, message=result.message, backup_name=result.backup_name)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_backups(vault: BackupVault = Depends(get_vault)) -> CleanupResponse:
    """Apply the retention policy now."""
    return CleanupResponse(deleted=vault.cleanup())


@router.delete("/{reference}")
async def delete_backup(
    reference: str,
    vault: BackupVault = Depends(get_vault),
) -> dict:
    """Delete a backup by number or name."""
    try:
        deleted = vault.delete(reference)
    except InvalidReferenceError as e:
        raise BackupNotFoundError(str(e))

    if not deleted:
        raise OperationFailedError(f"Failed to delete backup: {reference}")

    return {"message": f"Backup deleted: {reference}"}
