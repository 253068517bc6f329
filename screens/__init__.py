"""
GymPro screens: one controller per page.

Every screen takes the SessionContext and NoticeBoard (payment and
report screens also take their flow / exporter), is entered with
open() and left with close(), and answers every action with a Result.
"""

from screens.attendance import AttendanceScreen, MemberAttendanceScreen
from screens.auth import ForgotPasswordScreen, LoginScreen, RegisterScreen, ResetPasswordScreen
from screens.base import Screen, ScreenClosed
from screens.dashboard import MemberDashboardScreen, OwnerDashboardScreen
from screens.members import MembersScreen
from screens.payments import MemberPaymentsScreen, PaymentsScreen
from screens.plans import PlansScreen
from screens.profile import MemberProfileScreen
from screens.reminders import RemindersScreen
from screens.reports import ReportsScreen
from screens.settings import SettingsScreen
from screens.store import MemberStoreScreen, SupplementsScreen

__all__ = [
    "Screen",
    "ScreenClosed",
    "LoginScreen",
    "RegisterScreen",
    "ForgotPasswordScreen",
    "ResetPasswordScreen",
    "OwnerDashboardScreen",
    "MemberDashboardScreen",
    "MembersScreen",
    "PlansScreen",
    "SupplementsScreen",
    "MemberStoreScreen",
    "PaymentsScreen",
    "MemberPaymentsScreen",
    "AttendanceScreen",
    "MemberAttendanceScreen",
    "RemindersScreen",
    "ReportsScreen",
    "SettingsScreen",
    "MemberProfileScreen",
]
