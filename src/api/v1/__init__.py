# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

Modules:
    programs: Program configuration cascades (terms, assessments, calendar).
    class_groups: Class group term customisation.
    sync_status: Propagation state and retry reset.
    changes: Change history.
    notifications: In-app notifications.
"""

from fastapi import APIRouter

from src.api.v1 import changes, class_groups, notifications, programs, sync_status

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

router.include_router(programs.router, prefix="/programs", tags=["Programs"])
router.include_router(class_groups.router, prefix="/class-groups", tags=["Class Groups"])
router.include_router(sync_status.router, prefix="/sync-status", tags=["Sync Status"])
router.include_router(changes.router, prefix="/changes", tags=["Changes"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

__all__ = ["router"]
