"""Settings domain service."""

import logging
from dataclasses import fields, replace
from decimal import Decimal, InvalidOperation
from typing import Any

from repairshop.database.base import Database
from repairshop.domain.entities import ShopSettings
from repairshop.domain.errors import ValidationError

logger = logging.getLogger(__name__)

DAY_FIELDS = ("notification_reminder_days", "quote_reminder_days", "quote_reminder_frequency")


class SettingsService:
    """Service exposing the shop settings row as a ShopSettings value."""

    def __init__(self, db: Database):
        """Initialize settings service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_settings(self) -> ShopSettings:
        """Get current settings, falling back to defaults when none are saved.

        Settings are read on every call and never cached.
        """
        settings = self.db.get_settings()
        if settings is None:
            return ShopSettings()
        return settings

    def update_settings(self, **changes: Any) -> ShopSettings:
        """Update one or more settings.

        Args:
            **changes: ShopSettings field names and their new values

        Returns:
            The saved settings

        Raises:
            ValidationError: If a field is unknown or a value is out of range
        """
        known = {f.name for f in fields(ShopSettings)}
        unknown = set(changes) - known
        if unknown:
            raise ValidationError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

        changes = {name: value for name, value in changes.items() if value is not None}
        if "tax_rate" in changes:
            try:
                changes["tax_rate"] = Decimal(str(changes["tax_rate"]))
            except InvalidOperation:
                raise ValidationError(f"Invalid tax rate '{changes['tax_rate']}'")
            if not Decimal(0) <= changes["tax_rate"] <= Decimal(100):
                raise ValidationError("Tax rate must be between 0 and 100")
        limits = {name: 30 for name in DAY_FIELDS}
        limits["quote_max_reminders"] = 10
        for name, upper in limits.items():
            if name not in changes:
                continue
            try:
                changes[name] = int(changes[name])
            except (TypeError, ValueError):
                raise ValidationError(f"{name} must be a whole number, got '{changes[name]}'")
            if not 1 <= changes[name] <= upper:
                raise ValidationError(f"{name} must be between 1 and {upper}")

        settings = replace(self.get_settings(), **changes)
        self.db.save_settings(settings)
        logger.info("Updated settings: %s", ", ".join(sorted(changes)))
        return settings
