"""
GymPro Navigator: route state for the presentation layer.

The browser client moved between pages with a router; here a Navigator
keeps the current route. Anything that needs to
"send the user somewhere" (the 401 handler, the role gate, the login
screen) calls navigator.go(route). The terminal reads navigator.current
to decide which screen to show next.
"""

import logging

logger = logging.getLogger("gympro.navigation")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

ROUTE_HOME = "/"
ROUTE_LOGIN = "/login"
ROUTE_REGISTER = "/register"
ROUTE_FORGOT_PASSWORD = "/forgot-password"
ROUTE_RESET_PASSWORD = "/reset-password"

# Owner area
ROUTE_OWNER_HOME = "/dashboard"
ROUTE_MEMBERS = "/members"
ROUTE_PLANS = "/plans"
ROUTE_PAYMENTS = "/payments"
ROUTE_ATTENDANCE = "/attendance"
ROUTE_STORE = "/store"
ROUTE_REMINDERS = "/reminders"
ROUTE_REPORTS = "/reports"
ROUTE_SETTINGS = "/settings"

# Member area
ROUTE_MEMBER_HOME = "/member"
ROUTE_MEMBER_PROFILE = "/member/profile"
ROUTE_MEMBER_ATTENDANCE = "/member/attendance"
ROUTE_MEMBER_PAYMENTS = "/member/payments"
ROUTE_MEMBER_STORE = "/member/store"

ROLE_OWNER = "owner"
ROLE_MEMBER = "member"


def landing_route_for(role: str | None) -> str:
    """Home route for a role; anyone without a known role goes to login."""
    if role == ROLE_OWNER:
        return ROUTE_OWNER_HOME
    if role == ROLE_MEMBER:
        return ROUTE_MEMBER_HOME
    return ROUTE_LOGIN


# ---------------------------------------------------------------------------
# Navigator
# ---------------------------------------------------------------------------

class Navigator:
    """Holds the current route."""

    def __init__(self, initial: str = ROUTE_HOME):
        self.current = initial

    def go(self, route: str):
        if route == self.current:
            return
        logger.debug("Navigate %s → %s", self.current, route)
        self.current = route
