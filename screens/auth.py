"""
Auth screens: login, owner registration, forgot / reset password.

None of these are role-gated, and none of their requests carry the 401
side effect: a wrong password is a form error, not an expired session.
"""

import logging

from core.errors import TransportError, ValidationError
from core.navigation import (
    ROUTE_FORGOT_PASSWORD,
    ROUTE_LOGIN,
    ROUTE_OWNER_HOME,
    ROUTE_REGISTER,
    ROUTE_RESET_PASSWORD,
)
from core.result import Result
from screens.base import REQUEST_ERRORS, Screen

logger = logging.getLogger("gympro.screens.auth")

INVALID_CREDENTIALS = "Invalid email or password"


class LoginScreen(Screen):
    route = ROUTE_LOGIN
    title = "Login"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.error = ""

    async def open(self) -> Result:
        # Already signed in: straight to the role's home
        if self.session.user is not None:
            self.navigator.go(self.session.landing_route)
            return Result(ok=False, value=self.session.landing_route)
        return await super().open()

    async def submit(self, email: str, password: str) -> Result:
        """Sign in and go to the landing route for the signed-in role.

        Rejected credentials set self.error and leave the route alone.
        """
        self.error = ""
        if not email.strip() or not password:
            self.error = "Email and password are required."
            return self._fail(ValidationError(self.error), "Login Failed")
        try:
            ok = await self._blocking(self.session.login, email.strip(), password)
        except TransportError as e:
            self.error = "Could not reach the server. Please try again."
            return self._fail(e, "Login Failed", self.error)
        except REQUEST_ERRORS as e:
            return self._fail(e, "Login Failed")

        if not ok:
            self.error = INVALID_CREDENTIALS
            return self._fail(ValidationError(INVALID_CREDENTIALS), "Login Failed")

        self.navigator.go(self.session.landing_route)
        return self._ok("Login Successful", "Welcome back to GymPro!", self.session.user)


class RegisterScreen(Screen):
    route = ROUTE_REGISTER
    title = "Register"

    async def submit(self, name: str, email: str, password: str, confirm: str, phone: str = "") -> Result:
        """Create an owner account, sign in, land on the owner dashboard."""
        if password != confirm:
            return self._fail(ValidationError("Passwords do not match"), "Error")
        try:
            user = await self._blocking(self.session.register, name, email, password, phone)
        except ValidationError as e:
            return self._fail(e, "Error")
        except REQUEST_ERRORS as e:
            return self._fail(e, "Registration Failed", "Could not create your account. Please try again.")

        self.navigator.go(ROUTE_OWNER_HOME)
        return self._ok(
            "Registration Successful",
            "Welcome to GymPro! Your owner account has been created.",
            user,
        )


class ForgotPasswordScreen(Screen):
    route = ROUTE_FORGOT_PASSWORD
    title = "Forgot Password"

    def __init__(self, session, notices):
        super().__init__(session, notices)
        self.sent = False

    async def submit(self, email: str) -> Result:
        try:
            await self._blocking(self.session.forgot_password, email)
        except ValidationError as e:
            return self._fail(e, "Error")
        except REQUEST_ERRORS as e:
            return self._fail(e, "Error", "Failed to send reset link")
        self.sent = True
        return self._ok(
            "Reset Link Sent",
            "If your email is registered, you will see a reset token in the backend console.",
        )


class ResetPasswordScreen(Screen):
    route = ROUTE_RESET_PASSWORD
    title = "Reset Password"

    def __init__(self, session, notices, token: str = ""):
        super().__init__(session, notices)
        self.token = token

    async def submit(self, password: str, confirm: str, token: str | None = None) -> Result:
        token = token if token is not None else self.token
        if not token:
            return self._fail(ValidationError("Reset token is missing."), "Error")
        try:
            await self._blocking(self.session.reset_password, token, password, confirm)
        except ValidationError as e:
            return self._fail(e, "Error")
        except REQUEST_ERRORS as e:
            return self._fail(e, "Reset Failed", "Failed to reset password. Token may be invalid or expired.")

        self.navigator.go(ROUTE_LOGIN)
        logger.info("Password reset completed")
        return self._ok("Password Reset Successful", "You can now log in with your new password.")
