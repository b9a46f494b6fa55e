"""Dependency injection for FastAPI."""

from fastapi import Request
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dirvault import BackupVault


async def get_vault(request: Request) -> "BackupVault":
    """Get BackupVault instance from app state."""
    return request.app.state.vault
