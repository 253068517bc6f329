import asyncio
import threading
from datetime import date

from core.navigation import ROUTE_FORGOT_PASSWORD, ROUTE_LOGIN, ROUTE_MEMBER_HOME, ROUTE_MEMBERS
from payments.flows import MembershipPaymentFlow
from screens import (
    AttendanceScreen,
    ForgotPasswordScreen,
    MemberAttendanceScreen,
    MemberPaymentsScreen,
    MemberProfileScreen,
    MembersScreen,
    MemberStoreScreen,
    OwnerDashboardScreen,
    PaymentsScreen,
    PlansScreen,
    RemindersScreen,
    ScreenClosed,
    SettingsScreen,
)
from screens.plans import validate_plan_form
from tests.conftest import FakeResponse
from tests.test_payments import FakeDriver, _gateway_order, _loader

MEMBERS = [
    {"id": "m1", "name": "Asha Rao", "email": "asha@gym.test", "phone": "1", "plan_id": "p1",
     "status": "active", "expiry_date": "2024-03-20", "due_amount": 0},
    {"id": "m2", "name": "Ben Paul", "email": "ben@gym.test", "phone": "2", "plan_id": "p2",
     "status": "active", "expiry_date": "2024-03-16", "due_amount": 1200},
    {"id": "m3", "name": "Chitra Iyer", "email": "chitra@gym.test", "phone": "3", "plan_id": "p1",
     "status": "expired", "expiry_date": "2024-02-01", "due_amount": 0},
]
PLANS = [{"id": "p1", "name": "Monthly", "duration": 1, "price": 1500, "features": ["Gym floor"]},
         {"id": "p2", "name": "Quarterly", "duration": 3, "price": 4000, "features": []}]


def _route_members(http):
    http.route("GET", "/members", MEMBERS)
    http.route("GET", "/plans", PLANS)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def test_open_loads_and_navigates(http, owner_session, notices, navigator):
    _route_members(http)
    screen = MembersScreen(owner_session, notices)
    result = asyncio.run(screen.open())
    assert result.ok
    assert navigator.current == ROUTE_MEMBERS
    assert [m.name for m in screen.members] == ["Asha Rao", "Ben Paul", "Chitra Iyer"]
    assert screen.plan_name("p2") == "Quarterly"


def test_wrong_role_is_redirected_without_requests(http, member_session, notices, navigator):
    screen = MembersScreen(member_session, notices)
    result = asyncio.run(screen.open())
    assert not result.ok
    assert result.value == ROUTE_MEMBER_HOME
    assert navigator.current == ROUTE_MEMBER_HOME
    assert http.calls == []


def test_signed_out_is_sent_to_login(http, session, notices, navigator):
    result = asyncio.run(OwnerDashboardScreen(session, notices).open())
    assert not result.ok
    assert navigator.current == ROUTE_LOGIN


def test_failed_batch_keeps_no_partial_data(http, owner_session, notices):
    http.route("GET", "/members", MEMBERS)
    http.route("GET", "/plans", FakeResponse(500, {"detail": "database unavailable"}))
    screen = MembersScreen(owner_session, notices)

    result = asyncio.run(screen.open())

    assert not result.ok
    assert screen.members == []
    assert screen.plans == []
    assert notices.latest.title == "Error"
    assert notices.latest.message == "database unavailable"


def test_expired_session_posts_no_notice(http, owner_session, notices, navigator, storage):
    http.route("GET", "/members", FakeResponse(401, {"detail": "expired"}))
    http.route("GET", "/plans", PLANS)

    result = asyncio.run(MembersScreen(owner_session, notices).open())

    assert not result.ok
    assert notices.drain() == []
    assert owner_session.user is None
    assert storage.get_item("gympro_token") is None
    assert navigator.current == ROUTE_LOGIN


def test_close_discards_late_results(http, owner_session, notices):
    release = threading.Event()

    def slow_members(call):
        release.wait(5)
        return MEMBERS

    http.route("GET", "/members", slow_members)
    http.route("GET", "/plans", PLANS)
    screen = MembersScreen(owner_session, notices)

    async def run():
        task = asyncio.create_task(screen.open())
        try:
            while not http.sent("GET", "/members"):
                await asyncio.sleep(0.01)
            assert screen.in_flight > 0
            screen.close()
            return await task
        finally:
            release.set()

    result = asyncio.run(run())

    assert not result.ok
    assert isinstance(result.error, ScreenClosed)
    assert screen.members == []
    assert notices.drain() == []
    assert not screen.active


# ---------------------------------------------------------------------------
# Members / plans
# ---------------------------------------------------------------------------

def test_search_filters_by_name_or_email(http, owner_session, notices):
    _route_members(http)
    screen = MembersScreen(owner_session, notices)
    asyncio.run(screen.open())
    assert [m.id for m in screen.search("ben")] == ["m2"]
    assert [m.id for m in screen.search("CHITRA@")] == ["m3"]
    assert len(screen.search("")) == 3


def test_delete_member_sends_one_delete(http, owner_session, notices):
    _route_members(http)
    http.route("DELETE", "/members/m2", FakeResponse(204))
    screen = MembersScreen(owner_session, notices)
    asyncio.run(screen.open())
    loads = len(http.calls)

    result = asyncio.run(screen.delete("m2", confirm=lambda member: True))

    assert result.ok
    assert [c.method for c in http.calls[loads:]] == ["DELETE"]
    assert [m.id for m in screen.members] == ["m1", "m3"]
    assert notices.latest.title == "Member Deleted"
    assert notices.latest.message == "Ben Paul has been removed."


def test_declined_delete_sends_nothing(http, owner_session, notices):
    _route_members(http)
    screen = MembersScreen(owner_session, notices)
    asyncio.run(screen.open())
    loads = len(http.calls)
    result = asyncio.run(screen.delete("m1", confirm=lambda member: False))
    assert not result.ok
    assert len(http.calls) == loads
    assert len(screen.members) == 3


def test_invalid_member_form_is_not_sent(http, owner_session, notices):
    _route_members(http)
    screen = MembersScreen(owner_session, notices)
    asyncio.run(screen.open())
    loads = len(http.calls)
    result = asyncio.run(screen.save({"name": "", "email": "nope", "phone": "", "planId": ""}))
    assert not result.ok
    assert len(result.error.errors) == 4
    assert len(http.calls) == loads


def test_add_member_posts_and_refreshes(http, owner_session, notices):
    _route_members(http)
    http.route("POST", "/members", {"id": "m4"})
    screen = MembersScreen(owner_session, notices)
    asyncio.run(screen.open())
    form = {"name": " Dev ", "email": "dev@gym.test", "phone": "4", "planId": "p1", "address": ""}

    result = asyncio.run(screen.save(form))

    assert result.ok
    posted = http.sent("POST", "/members")[0].json
    assert posted["name"] == "Dev"
    assert posted["plan_id"] == "p1"
    assert len(http.sent("GET", "/members")) == 2


def test_plan_form_accepts_comma_features():
    payload = validate_plan_form({"name": "Annual", "duration": "12", "price": "12000",
                                  "features": "Gym, Pool , ,Sauna"})
    assert payload["features"] == ["Gym", "Pool", "Sauna"]
    assert payload["price"] == 12000


def test_plans_screen_delete(http, owner_session, notices):
    http.route("GET", "/plans", PLANS)
    http.route("DELETE", "/plans/p2", FakeResponse(204))
    screen = PlansScreen(owner_session, notices)
    asyncio.run(screen.open())
    result = asyncio.run(screen.delete("p2", confirm=lambda plan: True))
    assert result.ok
    assert [p.id for p in screen.plans] == ["p1"]


# ---------------------------------------------------------------------------
# Forgot password
# ---------------------------------------------------------------------------

def test_forgot_password_sends_reset_link(http, session, notices, navigator):
    http.route("POST", "/auth/forgot-password", {"message": "ok"})
    screen = ForgotPasswordScreen(session, notices)
    asyncio.run(screen.open())

    result = asyncio.run(screen.submit(" member@gym.test "))

    assert result.ok
    assert screen.sent
    assert navigator.current == ROUTE_FORGOT_PASSWORD
    assert http.sent("POST", "/auth/forgot-password")[0].json == {"email": "member@gym.test"}
    assert notices.latest.title == "Reset Link Sent"


def test_forgot_password_needs_an_email(http, session, notices):
    screen = ForgotPasswordScreen(session, notices)
    result = asyncio.run(screen.submit("  "))
    assert not result.ok
    assert not screen.sent
    assert http.calls == []
    assert notices.latest.message == "Email is required."


def test_forgot_password_server_error_keeps_form(http, session, notices):
    http.route("POST", "/auth/forgot-password", FakeResponse(500, {}))
    screen = ForgotPasswordScreen(session, notices)
    result = asyncio.run(screen.submit("member@gym.test"))
    assert not result.ok
    assert not screen.sent
    assert notices.latest.is_error


# ---------------------------------------------------------------------------
# Dashboard / attendance
# ---------------------------------------------------------------------------

def test_dashboard_expiring_soon(http, owner_session, notices):
    _route_members(http)
    http.route("GET", "/dashboard/stats", {"total_members": 3, "active_members": 2})
    screen = OwnerDashboardScreen(owner_session, notices)
    asyncio.run(screen.open())
    assert screen.stats.total_members == 3
    soon = screen.expiring_soon(today=date(2024, 3, 14))
    assert [m.id for m in soon] == ["m2", "m1"]


def test_attendance_register(http, owner_session, notices):
    http.route("GET", "/members", MEMBERS)
    http.route("GET", "/attendance", [
        {"id": "a1", "member_id": "m1", "date": "2024-03-14", "check_in": "07:00"},
        {"id": "a0", "member_id": "m2", "date": "2024-03-13", "check_in": "07:00"},
    ])
    screen = AttendanceScreen(owner_session, notices, selected_date=date(2024, 3, 14))
    asyncio.run(screen.open())

    assert http.sent("GET", "/attendance")[0].params == {"date": "2024-03-14"}
    assert [row.member.id for row in screen.rows] == ["m1", "m2"]
    assert screen.present_count == 1
    assert screen.absent_count == 1
    assert screen.presence_rate == 50


def test_attendance_check_in(http, owner_session, notices):
    http.route("GET", "/members", MEMBERS)
    http.route("GET", "/attendance", [])
    http.route("POST", "/attendance/checkin", {"id": "a9"})
    screen = AttendanceScreen(owner_session, notices, selected_date=date(2024, 3, 14))
    asyncio.run(screen.open())

    result = asyncio.run(screen.check_in("m1"))

    assert result.ok
    assert http.sent("POST", "/attendance/checkin")[0].json == {"member_id": "m1"}
    assert notices.latest.message == "Asha Rao has been checked in."


def test_member_attendance_month_view(http, member_session, notices):
    http.route("GET", "/attendance/me", [
        {"id": "a1", "member_id": "u2", "date": "2024-03-02", "check_in": "07:00", "check_out": "08:30"},
        {"id": "a2", "member_id": "u2", "date": "2024-03-05", "check_in": "18:00", "check_out": "18:45"},
        {"id": "a3", "member_id": "u2", "date": "2024-02-27", "check_in": "07:00", "check_out": "08:00"},
    ])
    screen = MemberAttendanceScreen(member_session, notices, month=date(2024, 3, 10))
    asyncio.run(screen.open())

    assert screen.visits_this_month == 2
    assert screen.average_session_minutes == 68     # (90 + 45) / 2 = 67.5
    assert screen.average_session == "1h 8m"
    screen.change_month(-1)
    assert screen.month == date(2024, 2, 1)
    assert screen.visits_this_month == 1


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------

PENDING = [
    {"member_id": "m1", "name": "Asha Rao", "email": "asha@gym.test", "expiry_date": "2024-03-18", "due_amount": 0},
    {"member_id": "m2", "name": "Ben Paul", "email": "ben@gym.test", "expiry_date": "2024-03-10", "due_amount": 1200},
]


def test_reminders_with_no_selection_send_nothing(http, owner_session, notices):
    http.route("GET", "/reminders/pending", PENDING)
    screen = RemindersScreen(owner_session, notices, today=date(2024, 3, 14))
    asyncio.run(screen.open())
    loads = len(http.calls)

    result = asyncio.run(screen.send_email())

    assert not result.ok
    assert len(http.calls) == loads
    assert notices.latest.title == "No Members Selected"


def test_reminders_send_to_selection_and_clear(http, owner_session, notices):
    http.route("GET", "/reminders/pending", PENDING)
    http.route("POST", "/reminders/email", {"sent": 2})
    screen = RemindersScreen(owner_session, notices, today=date(2024, 3, 14))
    asyncio.run(screen.open())
    screen.toggle_all()

    result = asyncio.run(screen.send_email())

    assert result.ok
    assert http.sent("POST", "/reminders/email")[0].json == {"member_ids": ["m1", "m2"]}
    assert screen.selected == []
    assert notices.latest.message == "Sent reminders to 2 member(s)."


def test_reminder_counts(http, owner_session, notices):
    http.route("GET", "/reminders/pending", PENDING)
    screen = RemindersScreen(owner_session, notices, today=date(2024, 3, 14))
    asyncio.run(screen.open())
    assert screen.pending_payment_count == 1
    assert screen.expiring_count == 1
    assert screen.expired_count == 1


def test_toggle_all_twice_clears(http, owner_session, notices):
    http.route("GET", "/reminders/pending", PENDING)
    screen = RemindersScreen(owner_session, notices, today=date(2024, 3, 14))
    asyncio.run(screen.open())
    screen.toggle_all()
    screen.toggle_all()
    assert screen.selected == []


# ---------------------------------------------------------------------------
# Store / settings / profile
# ---------------------------------------------------------------------------

SUPPLEMENTS = [
    {"id": "s1", "name": "Whey Protein", "price": 2500, "stock": 4, "category": "Protein"},
    {"id": "s2", "name": "BCAA", "price": 1200, "stock": 0, "category": "Recovery"},
]


class _UnusedFlow:
    async def pay(self, cart, merchant_name=None):
        raise AssertionError("checkout should not run")


def test_store_cart_and_out_of_stock(http, member_session, notices):
    http.route("GET", "/supplements", SUPPLEMENTS)
    http.route("GET", "/settings", {"gym_name": "Iron Temple"})
    screen = MemberStoreScreen(member_session, notices, _UnusedFlow())
    asyncio.run(screen.open())

    assert screen.categories[0] == "All"
    assert screen.add_to_cart("s1").ok
    assert notices.latest.title == "Added to Cart"
    assert not screen.add_to_cart("s2").ok
    assert notices.latest.title == "Out of Stock"
    assert screen.cart.item_count == 1
    screen.category = "Recovery"
    assert [s.id for s in screen.visible] == ["s2"]


def test_settings_rejects_closing_before_opening(http, owner_session, notices):
    http.route("GET", "/settings", {"gym_name": "Iron Temple", "opening_time": "06:00", "closing_time": "22:00"})
    screen = SettingsScreen(owner_session, notices)
    asyncio.run(screen.open())
    loads = len(http.calls)

    result = asyncio.run(screen.save(opening_time="21:00", closing_time="07:00"))

    assert not result.ok
    assert len(http.calls) == loads


def test_settings_save(http, owner_session, notices):
    http.route("GET", "/settings", {"gym_name": "Iron Temple"})
    http.route("PUT", "/settings", FakeResponse(204))
    screen = SettingsScreen(owner_session, notices)
    asyncio.run(screen.open())

    result = asyncio.run(screen.save(gym_name="Iron Temple Fitness", daily_reports=True))

    assert result.ok
    sent = http.sent("PUT", "/settings")[0].json
    assert sent["gym_name"] == "Iron Temple Fitness"
    assert sent["daily_reports"] is True
    assert screen.settings.gym_name == "Iron Temple Fitness"


def test_profile_save_refreshes_identity(http, member_session, notices, storage):
    me = {"id": "mem-u2", "name": "Manu Member", "email": "member@gym.test", "phone": "9000000000", "plan_id": "p1"}
    http.route("GET", "/members/me", lambda call: me)
    http.route("GET", "/plans", PLANS)

    def update(call):
        me.update(name=call.json["name"], phone=call.json["phone"])
        return me

    http.route("PUT", "/members/me", update)
    screen = MemberProfileScreen(member_session, notices)
    asyncio.run(screen.open())

    result = asyncio.run(screen.save({"name": "Manu M", "phone": "9111111111"}))

    assert result.ok
    assert member_session.user.name == "Manu M"
    assert "Manu M" in storage.get_item("gympro_user")
    assert screen.plan.name == "Monthly"


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

def test_record_counter_payment(http, owner_session, notices):
    _route_members(http)
    http.route("GET", "/payments", [])
    http.route("POST", "/payments", {"id": "pay9"})
    screen = PaymentsScreen(owner_session, notices)
    asyncio.run(screen.open())

    result = asyncio.run(screen.record_payment("m2", 1200, method="upi", today=date(2024, 3, 14)))

    assert result.ok
    assert http.sent("POST", "/payments")[0].json == {
        "member_id": "m2", "amount": 1200, "method": "upi", "plan_id": "p2",
        "date": "2024-03-14", "status": "paid",
    }
    assert len(http.sent("GET", "/payments")) == 2


def test_record_payment_rejects_bad_input(http, owner_session, notices):
    _route_members(http)
    http.route("GET", "/payments", [])
    screen = PaymentsScreen(owner_session, notices)
    asyncio.run(screen.open())
    result = asyncio.run(screen.record_payment("m2", 0, method="cheque"))
    assert not result.ok
    assert len(result.error.errors) == 2
    assert http.sent("POST", "/payments") == []


def _member_payments(http, member_session, notices, driver):
    me = {"id": "m7", "name": "Manu Member", "plan_id": "p1", "due_amount": 1500}
    http.route("GET", "/members/me", lambda call: me)
    http.route("GET", "/payments/me", [])
    http.route("GET", "/plans", PLANS)
    http.route("POST", "/razorpay/create-membership-order", _gateway_order())
    loader, _ = _loader()
    return MemberPaymentsScreen(member_session, notices, MembershipPaymentFlow(member_session.client, loader, driver)), me


def test_pay_dues_success_refreshes(http, member_session, notices):
    screen, me = _member_payments(http, member_session, notices, FakeDriver())

    def verify(call):
        me["due_amount"] = 0
        return {"status": "paid"}

    http.route("POST", "/razorpay/verify-membership-payment", verify)
    asyncio.run(screen.open())
    assert screen.due_amount == 1500

    result = asyncio.run(screen.pay_dues())

    assert result.ok
    assert notices.latest.title == "Payment Successful"
    assert screen.due_amount == 0


def test_pay_dues_dismissed_posts_info(http, member_session, notices):
    screen, _ = _member_payments(http, member_session, notices, FakeDriver(dismiss=True))
    asyncio.run(screen.open())

    result = asyncio.run(screen.pay_dues())

    assert not result.ok
    assert notices.latest.title == "Payment Cancelled"
    assert not notices.latest.is_error
    assert screen.due_amount == 1500
