# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for SchoolSync.

Domains:
    auth: JWT validation.
    change_tracking: Append-only change history.
    sync_status: Per-entity propagation state.
    recovery: Error logging and retry with exponential backoff.
    program: Cascading updates, term customisation and grading.
"""
