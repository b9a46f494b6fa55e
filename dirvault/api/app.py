"""FastAPI application for dirvault."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import asyncio
import dataclasses
import logging
import sys
import os

from dirvault import BackupVault
from dirvault.config import VaultConfig
from dirvault.scheduler import (
    BackupCompleted,
    BackupFailed,
    BackupStarted,
    CleanupCompleted,
    SchedulerEvent,
)
from .config import settings
from .routers import backup, config, health

vault_logger = logging.getLogger("dirvault")
vault_logger.setLevel(logging.INFO)

# App-managed pattern: own handler, no propagation to uvicorn's root logger
vault_logger.propagate = False
vault_logger.handlers.clear()

console_handler = logging.StreamHandler(sys.stdout)
console_handler.setLevel(logging.INFO)
formatter = logging.Formatter(
    '%(asctime)s - [%(name)s] - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
console_handler.setFormatter(formatter)
vault_logger.addHandler(console_handler)

if os.getenv("DISABLE_APP_LOGGING", "false").lower() == "true":
    vault_logger.handlers.clear()
    vault_logger.propagate = True

logger = logging.getLogger(__name__)


def broadcast_event(event: SchedulerEvent) -> None:
    """Announce scheduler activity; the API host has no players, so it logs."""
    if isinstance(event, BackupStarted):
        logger.info(f"[Backup] Creating backup ({event.label})...")
    elif isinstance(event, BackupCompleted):
        logger.info(f"[Backup] {event.result.message}")
    elif isinstance(event, BackupFailed):
        logger.warning(f"[Backup] Backup failed: {event.error}")
    elif isinstance(event, CleanupCompleted):
        logger.info(f"[Backup] Removed {event.deleted_count} old backup(s)")


def build_config() -> VaultConfig:
    """Environment config with the API settings layered over the storage section."""
    config = VaultConfig.from_env()

    storage_overrides = {}
    if settings.working_dir:
        storage_overrides["base_dir"] = settings.working_dir
    if settings.data_dir_name:
        storage_overrides["data_dir_name"] = settings.data_dir_name
    if settings.backup_folder_name:
        storage_overrides["backup_folder_name"] = settings.backup_folder_name

    storage_config = dataclasses.replace(config.storage, **storage_overrides)
    return dataclasses.replace(config, storage=storage_config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage BackupVault lifecycle."""
    logger.info("Initializing dirvault...")
    config = build_config()

    try:
        vault = BackupVault(config, on_event=broadcast_event)
    except Exception as e:
        logger.error(f"Failed to initialize dirvault: {e}")
        raise

    # A staged restore must land before anything touches the data directory
    vault.on_host_starting()
    vault.on_host_started()
    app.state.vault = vault
    logger.info(f"dirvault initialized for {config.storage.data_dir}")

    yield

    logger.info("Shutting down dirvault...")
    await asyncio.to_thread(vault.on_host_stopping, settings.shutdown_timeout)


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(backup.router, prefix=settings.api_prefix)
    app.include_router(config.router, prefix=settings.api_prefix)
    app.include_router(health.router, prefix=settings.api_prefix)

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.api_title,
            "version": settings.api_version,
            "docs": f"{settings.api_prefix}/docs"
        }

    return app


app = create_app()
