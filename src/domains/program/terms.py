# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Term customisation for class groups.

A class group inherits the program's term system through the cascade and
may override individual terms locally (dates and/or assessment periods).
Overrides are stored in ``ClassGroupSettings.custom_settings`` under
``terms`` keyed by term name; the cascade never writes that column.

Effective terms (baseline merged with overrides) are cached per class group.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.cache import Cache
from src.infrastructure.database.models import ClassGroupSettings
from src.models.terms import AcademicTerm, TermOverride

logger = logging.getLogger(__name__)

DEFAULT_TERMS_TTL_SECONDS = 300


def class_group_terms_key(class_group_id: str) -> str:
    """Cache key of a class group's effective terms."""
    return f"class_group:{class_group_id}:terms"


class TermCustomizationError(Exception):
    """Base exception for term customisation errors."""

    pass


class ClassGroupSettingsNotFoundError(TermCustomizationError):
    """Raised when a class group has not received any settings yet."""

    pass


class TermNotFoundError(TermCustomizationError):
    """Raised when overriding a term the baseline does not contain."""

    pass


class InvalidTermOverrideError(TermCustomizationError):
    """Raised when an override produces an invalid term."""

    pass


def merge_term(term: AcademicTerm, override: dict[str, Any] | None) -> AcademicTerm:
    """Apply a stored override to a baseline term.

    Raises:
        ValidationError: If the merged term is invalid.
    """
    if not override:
        return term
    return AcademicTerm.model_validate({**term.model_dump(mode="json"), **override})


class TermCustomizationService:
    """Reads and customises class group terms.

    Attributes:
        db: Async database session.
    """

    def __init__(
        self,
        db: AsyncSession,
        cache: Cache | None = None,
        ttl_seconds: int = DEFAULT_TERMS_TTL_SECONDS,
    ) -> None:
        """Initialize term customisation service.

        Args:
            db: Async database session.
            cache: Cache for effective terms; no caching when None.
            ttl_seconds: Lifetime of cached entries.
        """
        self.db = db
        self._cache = cache
        self._ttl_seconds = ttl_seconds

    async def get_class_group_terms(self, class_group_id: str) -> list[AcademicTerm]:
        """Return the class group's effective terms.

        Raises:
            ClassGroupSettingsNotFoundError: If the group has no settings.
            InvalidTermOverrideError: If a stored override no longer fits
                the baseline term it customises.
        """
        key = class_group_terms_key(class_group_id)
        if self._cache is not None:
            cached = await self._cache.get(key)
            if cached is not None:
                return [AcademicTerm.model_validate(term) for term in cached]

        settings = await self._get_settings(class_group_id)
        overrides = _term_overrides(settings)
        try:
            terms = [
                merge_term(term, overrides.get(term.name)) for term in _baseline_terms(settings)
            ]
        except ValidationError as e:
            raise InvalidTermOverrideError(
                f"Stored override no longer fits the terms of class group {class_group_id}"
            ) from e

        if self._cache is not None:
            await self._cache.put(
                key,
                [term.model_dump(mode="json") for term in terms],
                self._ttl_seconds,
            )
        return terms

    async def customize_class_group_term(
        self,
        class_group_id: str,
        term_name: str,
        overrides: TermOverride,
    ) -> AcademicTerm:
        """Store a local override for one term.

        A new override for the same term replaces the previous one.

        Returns:
            The effective term after the override.

        Raises:
            ClassGroupSettingsNotFoundError: If the group has no settings.
            TermNotFoundError: If the baseline has no term with that name.
            InvalidTermOverrideError: If the merged term is invalid.
        """
        settings = await self._get_settings(class_group_id)

        baseline = {term.name: term for term in _baseline_terms(settings)}
        if term_name not in baseline:
            raise TermNotFoundError(
                f"Term '{term_name}' not found for class group {class_group_id}"
            )

        override = overrides.model_dump(mode="json", exclude_none=True)
        try:
            effective = merge_term(baseline[term_name], override)
        except ValidationError as e:
            raise InvalidTermOverrideError(str(e)) from e

        custom = dict(settings.custom_settings or {})
        term_overrides = dict(custom.get("terms") or {})
        term_overrides[term_name] = override
        custom["terms"] = term_overrides
        # Reassign so the JSON column is flagged dirty
        settings.custom_settings = custom
        await self.db.flush()

        if self._cache is not None:
            await self._cache.delete(class_group_terms_key(class_group_id))

        logger.info("Customised term '%s' for class group %s", term_name, class_group_id)
        return effective

    async def _get_settings(self, class_group_id: str) -> ClassGroupSettings:
        result = await self.db.execute(
            select(ClassGroupSettings).where(
                ClassGroupSettings.class_group_id == class_group_id
            )
        )
        settings = result.scalar_one_or_none()
        if settings is None:
            raise ClassGroupSettingsNotFoundError(
                f"Settings for class group {class_group_id} not found"
            )
        return settings


def _baseline_terms(settings: ClassGroupSettings) -> list[AcademicTerm]:
    term_system = settings.term_settings or {}
    return [AcademicTerm.model_validate(term) for term in term_system.get("terms", [])]


def _term_overrides(settings: ClassGroupSettings) -> dict[str, dict[str, Any]]:
    return (settings.custom_settings or {}).get("terms") or {}
