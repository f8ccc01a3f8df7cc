"""SchoolSync Backend.

Propagates program configuration (terms, assessments, calendar) to class
groups and classes, with change history, sync tracking, notifications and
automatic retries.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
