"""
Settings screen (owner): gym profile, opening hours, notification
toggles, and password change.
"""

import re
from dataclasses import fields, replace

from core.errors import ValidationError
from core.models import GymSettings
from core.navigation import ROLE_OWNER, ROUTE_SETTINGS
from core.result import Result
from screens.base import REQUEST_ERRORS, Screen

_CLOCK = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class SettingsScreen(Screen):
    route = ROUTE_SETTINGS
    required_role = ROLE_OWNER
    title = "Settings"
    load_error = "Failed to load settings"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.settings = GymSettings()

    async def load(self):
        self.settings = GymSettings.from_dict(await self._request("GET", "/settings"))

    async def save(self, **changes) -> Result:
        """Apply field changes (snake_case GymSettings names) and PUT them."""
        known = {f.name for f in fields(GymSettings)}
        unknown = sorted(set(changes) - known)
        if unknown:
            return self._fail(ValidationError(f"Unknown setting(s): {', '.join(unknown)}"), "Error")

        updated = replace(self.settings, **changes)
        errors = []
        if not updated.gym_name.strip():
            errors.append("Gym name is required.")
        for label, value in (("Opening time", updated.opening_time), ("Closing time", updated.closing_time)):
            if not _CLOCK.match(value):
                errors.append(f"{label} must be HH:MM.")
        if not errors and updated.opening_time >= updated.closing_time:
            errors.append("Closing time must be after opening time.")
        if errors:
            return self._fail(ValidationError(errors), "Error")

        try:
            data = await self._request("PUT", "/settings", updated.to_payload())
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to save settings")
        self.settings = GymSettings.from_dict(data) if data else updated
        return self._ok("Settings Saved", "Your settings have been updated successfully.", self.settings)

    async def change_password(self, current: str, new: str, confirm: str) -> Result:
        try:
            await self._blocking(self.session.change_password, current, new, confirm)
        except ValidationError as e:
            return self._fail(e, "Error")
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to change password")
        return self._ok("Password Changed", "Your password has been updated.")
