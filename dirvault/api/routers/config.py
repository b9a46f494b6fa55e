"""Runtime configuration endpoints."""

from fastapi import APIRouter, Depends
from typing import Dict

from ..models import ConfigUpdate
from ..dependencies import get_vault
from ..exceptions import InvalidSettingsError
from dirvault import BackupVault

router = APIRouter(prefix="/config", tags=["config"])


@router.get("")
async def get_config(vault: BackupVault = Depends(get_vault)) -> Dict:
    """Current storage layout and backup settings."""
    return vault.config.to_dict()


@router.patch("")
async def update_config(
    update: ConfigUpdate,
    vault: BackupVault = Depends(get_vault),
) -> Dict:
    """Change backup settings; the scheduler restarts with the new values."""
    changes = update.model_dump(exclude_none=True)
    try:
        config = vault.update_config(**changes)
    except ValueError as e:
        raise InvalidSettingsError(str(e))
    return config.to_dict()
