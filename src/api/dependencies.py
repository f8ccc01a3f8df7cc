# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get authenticated users and check their permissions
- Get the cascade coordinator and the settings cache

The lifespan stores the session factory, cache and coordinator on
``app.state``; tests may set them there or override these dependencies.

Example:
    @router.get("/sync-status/{entity_id}")
    async def get_status(
        entity_id: str,
        db: AsyncSession = Depends(get_db),
        current_user: CurrentUser = Depends(RequirePermission(SYNC_ADMIN)),
    ):
        ...
"""

import logging
from typing import AsyncGenerator

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.middleware.auth import CurrentUser, get_current_user
from src.domains.program.coordinator import ProgramCascadeCoordinator
from src.domains.recovery.service import ErrorRecoveryService
from src.infrastructure.cache import Cache
from src.infrastructure.database.connection import SessionFactory

logger = logging.getLogger(__name__)

# Permission codes
PROGRAM_MANAGE = "program:manage"
SYNC_ADMIN = "sync:admin"


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Service not initialized: {name}",
        )
    return value


def get_session_factory(request: Request) -> SessionFactory:
    """Get the application's session factory."""
    return _state(request, "session_factory")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get a database session committed when the request succeeds.

    Yields:
        AsyncSession for the application database.
    """
    async with get_session_factory(request)() as session:
        yield session


def get_cache(request: Request) -> Cache | None:
    """Get the settings cache, if one is configured."""
    return getattr(request.app.state, "cache", None)


def get_coordinator(request: Request) -> ProgramCascadeCoordinator:
    """Get the cascade coordinator."""
    return _state(request, "coordinator")


def get_recovery(request: Request) -> ErrorRecoveryService:
    """Get the error recovery service used by the coordinator."""
    return get_coordinator(request).recovery


# =========================================================================
# Authentication Dependencies
# =========================================================================


def require_auth(request: Request) -> CurrentUser:
    """Require authenticated user.

    Raises:
        HTTPException: If not authenticated.
    """
    user = get_current_user(request)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


class RequirePermission:
    """Dependency for requiring specific permissions.

    Example:
        @router.post("/{program_id}/terms")
        async def update_terms(
            user: CurrentUser = Depends(RequirePermission(PROGRAM_MANAGE)),
        ):
            ...
    """

    def __init__(self, *permissions: str, require_all: bool = False) -> None:
        """Initialize permission requirement.

        Args:
            permissions: Required permission codes.
            require_all: If True, require all permissions. If False, any.
        """
        self.permissions = permissions
        self.require_all = require_all

    def __call__(self, request: Request) -> CurrentUser:
        """Check permissions and return user.

        Raises:
            HTTPException: If missing required permissions.
        """
        user = require_auth(request)

        if self.require_all:
            if not user.has_all_permissions(*self.permissions):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Missing permissions: {', '.join(self.permissions)}",
                )
        else:
            if not user.has_any_permission(*self.permissions):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Requires one of: {', '.join(self.permissions)}",
                )

        return user
