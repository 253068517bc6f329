"""
GymPro CLI Interactive Terminal

A lightweight REPL over the GymPro backend. Slash commands open the
matching screen, run one action, and print the result plus any notices
the action posted. Rich library for formatted output.

Run with:
    cd ~/gympro
    python interfaces/cli/terminal.py

Or as a module:
    python -m interfaces.cli.terminal
"""

import asyncio
import logging
from datetime import date
from functools import partial

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from core.config import get_config
from core.http_client import ApiClient
from core.models import format_inr
from core.navigation import ROLE_MEMBER, ROLE_OWNER, Navigator
from core.notices import SEVERITY_ERROR, SEVERITY_SUCCESS, NoticeBoard
from core.session import SessionContext
from core.storage import SessionStorage
from interfaces.cli.checkout import BrowserCheckoutDriver
from payments.checkout import CheckoutLoader
from payments.flows import MembershipPaymentFlow, StorePaymentFlow
from reports.aggregator import REPORT_TYPES, ReportAggregator
from reports.pdf_export import ReportExporter
from screens import (
    AttendanceScreen,
    ForgotPasswordScreen,
    LoginScreen,
    MemberAttendanceScreen,
    MemberDashboardScreen,
    MemberPaymentsScreen,
    MemberProfileScreen,
    MembersScreen,
    MemberStoreScreen,
    OwnerDashboardScreen,
    PaymentsScreen,
    PlansScreen,
    RegisterScreen,
    RemindersScreen,
    ReportsScreen,
    ResetPasswordScreen,
    Screen,
    SettingsScreen,
    SupplementsScreen,
)
from screens.payments import COUNTER_METHODS, STATUS_FILTERS
from screens.plans import DELETE_PLAN_WARNING

logger = logging.getLogger("gympro.cli")

_SEVERITY_STYLE = {SEVERITY_SUCCESS: "green", SEVERITY_ERROR: "red"}

MEMBER_FIELDS = [("name", "Name"), ("email", "Email"), ("phone", "Phone"), ("address", "Address"), ("planId", "Plan ID")]
PLAN_FIELDS = [("name", "Plan name"), ("duration", "Duration (months)"), ("price", "Price (Rs.)"),
               ("features", "Features (comma-separated)")]
SUPPLEMENT_FIELDS = [("name", "Name"), ("category", "Category"), ("description", "Description"),
                     ("price", "Price (Rs.)"), ("stock", "Stock")]
PROFILE_FIELDS = [("name", "Name"), ("phone", "Phone"), ("address", "Address")]

_TRUE = ("true", "yes", "on", "1")
_FALSE = ("false", "no", "off", "0")


def _rs(amount) -> str:
    return f"Rs. {format_inr(amount)}"


def _on_off(flag: bool) -> str:
    return "[green]on[/green]" if flag else "[dim]off[/dim]"


def _split_action(arg: str) -> tuple[str, str]:
    """"edit m1" → ("edit", "m1")"""
    parts = arg.split(maxsplit=1)
    action = parts[0].lower() if parts else ""
    return action, parts[1].strip() if len(parts) > 1 else ""


# ---------------------------------------------------------------------------
# GymProTerminal
# ---------------------------------------------------------------------------

class GymProTerminal:
    """Interactive REPL for GymPro.

    Provides a ``gympro>`` prompt. Owners manage members, attendance,
    reminders and reports; members see their own dashboard, buy from the
    store, and pay dues through the gateway.
    """

    def __init__(self, config=None, console: Console | None = None, http=None):
        # ---- Configuration ------------------------------------------------
        self.config = config or get_config()
        self.console = console or Console()

        # ---- Session plumbing ---------------------------------------------
        self.storage = SessionStorage(self.config.storage.path or None)
        self.navigator = Navigator()
        self.notices = NoticeBoard(max_history=self.config.notices.max_history)
        self.client = ApiClient(
            self.config.api.base_url,
            self.storage,
            self.navigator,
            http=http,
            token_key=self.config.storage.token_key,
            user_key=self.config.storage.user_key,
        )
        self.session = SessionContext.start(self.client, self.storage, self.navigator)

        # ---- Payments -----------------------------------------------------
        self.loader = CheckoutLoader(self.config.payments.checkout_script_url)
        self.driver = BrowserCheckoutDriver(self.console)
        flow_args = dict(
            merchant_name=self.config.payments.merchant_name,
            theme_color=self.config.payments.theme_color,
        )
        self.membership_flow = MembershipPaymentFlow(self.client, self.loader, self.driver, **flow_args)
        self.store_flow = StorePaymentFlow(self.client, self.loader, self.driver, **flow_args)

        # ---- Reports ------------------------------------------------------
        self.aggregator = ReportAggregator(
            self.client,
            revenue_months=self.config.reports.revenue_months,
            top_products=self.config.reports.top_products,
        )
        self.exporter = ReportExporter(
            self.aggregator,
            output_dir=self.config.reports.output_dir,
            brand=self.config.reports.brand,
        )

        # ---- Screens: one instance each, so the cart survives navigation --
        self._screens: dict[str, Screen] = {}
        self._current: Screen | None = None
        self._running = True

    # -----------------------------------------------------------------------
    # Entry point
    # -----------------------------------------------------------------------

    async def run(self):
        """Run the REPL, then shut down cleanly."""
        self._print_banner()
        try:
            await self._repl_loop()
        except (SystemExit, KeyboardInterrupt):
            pass
        finally:
            self._shutdown()

    async def _repl_loop(self):
        """Async input loop; reads stdin via executor to stay non-blocking."""
        loop = asyncio.get_running_loop()
        while self._running:
            try:
                line = await loop.run_in_executor(None, partial(input, "gympro> "))
            except KeyboardInterrupt:
                self.console.print("\n[dim]Use /quit to exit.[/dim]")
                continue
            except EOFError:
                break

            line = line.strip()
            if not line:
                continue
            if not line.startswith("/"):
                self.console.print("[dim]Commands start with '/'. Try /help.[/dim]")
                continue
            await self.dispatch(line)

    # -----------------------------------------------------------------------
    # Slash command dispatch
    # -----------------------------------------------------------------------

    async def dispatch(self, line: str):
        """Route a slash command to its handler, then print pending notices."""
        parts = line.split(maxsplit=1)
        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        handlers = {
            "/login": self._cmd_login,
            "/register": self._cmd_register,
            "/forgot": self._cmd_forgot,
            "/reset": self._cmd_reset,
            "/logout": self._cmd_logout,
            "/passwd": self._cmd_passwd,
            "/whoami": self._cmd_whoami,
            "/home": self._cmd_home,
            "/dashboard": self._cmd_home,
            "/members": self._cmd_members,
            "/member": self._cmd_member,
            "/delete-member": self._cmd_delete_member,
            "/plans": self._cmd_plans,
            "/plan": self._cmd_plan,
            "/payments": self._cmd_payments,
            "/payment": self._cmd_payment,
            "/settings": self._cmd_settings,
            "/attendance": self._cmd_attendance,
            "/checkin": self._cmd_checkin,
            "/checkout": self._cmd_checkout,
            "/reminders": self._cmd_reminders,
            "/remind": self._cmd_remind,
            "/export": self._cmd_export,
            "/store": self._cmd_store,
            "/supplement": self._cmd_supplement,
            "/cart": self._cmd_cart,
            "/buy": self._cmd_buy,
            "/pay": self._cmd_pay,
            "/profile": self._cmd_profile,
            "/help": self._cmd_help,
            "/quit": self._cmd_quit,
            "/exit": self._cmd_quit,
        }
        handler = handlers.get(cmd)
        if handler is None:
            self.console.print(f"[red]Unknown command: {cmd}[/red]  (try /help)")
            return
        signed_in = self.session.user is not None
        await handler(arg)
        self._print_notices()
        # A 401 anywhere wipes the session and forces /login
        if signed_in and self.session.user is None and cmd != "/logout":
            self._screens.clear()
            self._current = None
            self.console.print("[yellow]Your session has expired. Please /login again.[/yellow]")

    # -----------------------------------------------------------------------
    # Screen management
    # -----------------------------------------------------------------------

    def _screen(self, key: str) -> Screen:
        if key not in self._screens:
            factories = {
                "login": lambda: LoginScreen(self.session, self.notices),
                "register": lambda: RegisterScreen(self.session, self.notices),
                "forgot": lambda: ForgotPasswordScreen(self.session, self.notices),
                "reset": lambda: ResetPasswordScreen(self.session, self.notices),
                "owner_home": lambda: OwnerDashboardScreen(self.session, self.notices),
                "member_home": lambda: MemberDashboardScreen(self.session, self.notices),
                "members": lambda: MembersScreen(self.session, self.notices),
                "plans": lambda: PlansScreen(self.session, self.notices),
                "attendance": lambda: AttendanceScreen(self.session, self.notices),
                "member_attendance": lambda: MemberAttendanceScreen(self.session, self.notices),
                "payments": lambda: PaymentsScreen(self.session, self.notices),
                "reminders": lambda: RemindersScreen(self.session, self.notices),
                "settings": lambda: SettingsScreen(self.session, self.notices),
                "profile": lambda: MemberProfileScreen(self.session, self.notices),
                "reports": lambda: ReportsScreen(self.session, self.notices, self.exporter),
                "supplements": lambda: SupplementsScreen(self.session, self.notices),
                "member_store": lambda: MemberStoreScreen(self.session, self.notices, self.store_flow),
                "member_payments": lambda: MemberPaymentsScreen(self.session, self.notices, self.membership_flow),
            }
            self._screens[key] = factories[key]()
        return self._screens[key]

    async def _open(self, key: str) -> Screen | None:
        """Leave the current screen (cancelling its requests) and open another."""
        screen = self._screen(key)
        if self._current is not None and self._current is not screen:
            self._current.close()
        self._current = screen
        result = await screen.open()
        if not result.ok:
            return None
        return screen

    def _require(self, role: str | None = None) -> bool:
        if self.session.user is None:
            self.console.print("[red]Please /login first.[/red]")
            return False
        if role and self.session.role != role:
            self.console.print(f"[red]That command is for {role}s only.[/red]")
            return False
        return True

    async def _ask(self, prompt: str, password: bool = False, default: str = "") -> str:
        ask = partial(Prompt.ask, prompt, password=password, default=default, console=self.console)
        return await asyncio.get_running_loop().run_in_executor(None, ask)

    async def _confirm(self, prompt: str) -> bool:
        ask = partial(Confirm.ask, prompt, default=False, console=self.console)
        return await asyncio.get_running_loop().run_in_executor(None, ask)

    async def _form(self, fields: list[tuple[str, str]], current: dict | None = None) -> dict:
        """Prompt for each (key, label) in turn; Enter keeps the current value."""
        current = current or {}
        form = {}
        for key, label in fields:
            value = current.get(key)
            form[key] = await self._ask(label, default="" if value is None else str(value))
        return form

    # -----------------------------------------------------------------------
    # Session commands
    # -----------------------------------------------------------------------

    async def _cmd_login(self, arg: str):
        """/login <email>: Sign in (password is prompted)."""
        if self.session.user is not None:
            self.console.print(f"[dim]Already signed in as {self.session.user.email}. /logout first.[/dim]")
            return
        email = arg or await self._ask("Email")
        password = await self._ask("Password", password=True)
        screen = await self._open("login")
        if screen is None:
            return
        result = await screen.submit(email, password)
        if result.ok:
            await self._cmd_home("")

    async def _cmd_register(self, _arg: str):
        """/register: Create an owner account and sign in."""
        if self.session.user is not None:
            self.console.print("[dim]Already signed in. /logout first.[/dim]")
            return
        name = await self._ask("Full name")
        email = await self._ask("Email")
        phone = await self._ask("Phone", default="")
        password = await self._ask("Password", password=True)
        confirm = await self._ask("Confirm password", password=True)
        screen = await self._open("register")
        if screen is None:
            return
        result = await screen.submit(name, email, password, confirm, phone)
        if result.ok:
            await self._cmd_home("")

    async def _cmd_forgot(self, arg: str):
        """/forgot [email]: Ask the backend for a password reset token."""
        email = arg or await self._ask("Email")
        screen = await self._open("forgot")
        if screen:
            await screen.submit(email)

    async def _cmd_reset(self, arg: str):
        """/reset <token>: Set a new password with a reset token."""
        if not arg:
            self.console.print("[red]Usage: /reset <token>[/red]")
            return
        password = await self._ask("New password", password=True)
        confirm = await self._ask("Confirm password", password=True)
        screen = await self._open("reset")
        if screen:
            await screen.submit(password, confirm, token=arg)

    async def _cmd_logout(self, _arg: str):
        """/logout: End the session."""
        if self._current is not None:
            self._current.close()
            self._current = None
        self._screens.clear()
        await asyncio.to_thread(self.session.logout)
        self.console.print("[dim]Signed out.[/dim]")

    async def _cmd_passwd(self, _arg: str):
        """/passwd: Change the owner account password."""
        if not self._require(ROLE_OWNER):
            return
        current = await self._ask("Current password", password=True)
        new = await self._ask("New password", password=True)
        confirm = await self._ask("Confirm new password", password=True)
        screen = await self._open("settings")
        if screen:
            await screen.change_password(current, new, confirm)

    async def _cmd_whoami(self, _arg: str):
        """/whoami: Show the signed-in identity."""
        user = self.session.user
        if user is None:
            self.console.print("[dim]Not signed in.[/dim]")
            return
        lines = [
            f"[bold]Name:[/bold]   {user.name}",
            f"[bold]Email:[/bold]  {user.email}",
            f"[bold]Role:[/bold]   {user.role}",
        ]
        if user.phone:
            lines.append(f"[bold]Phone:[/bold]  {user.phone}")
        self.console.print(Panel("\n".join(lines), title="Signed in", border_style="cyan"))

    async def _cmd_home(self, _arg: str):
        """/home: Dashboard for the signed-in role."""
        if not self._require():
            return
        if self.session.role == ROLE_OWNER:
            screen = await self._open("owner_home")
            if screen:
                self._print_owner_dashboard(screen)
        else:
            screen = await self._open("member_home")
            if screen:
                self._print_member_dashboard(screen)

    # -----------------------------------------------------------------------
    # Owner commands
    # -----------------------------------------------------------------------

    async def _cmd_members(self, arg: str):
        """/members [query]: List (and search) members."""
        if not self._require(ROLE_OWNER):
            return
        screen = await self._open("members")
        if screen is None:
            return
        rows = screen.search(arg)
        table = Table(title=f"Members ({len(rows)})")
        for col in ("ID", "Name", "Email", "Plan", "Status", "Expiry", "Due"):
            table.add_column(col)
        for m in rows:
            due_style = "red" if m.due_amount > 0 else "green"
            table.add_row(
                m.id, m.name, m.email, screen.plan_name(m.plan_id), m.status,
                m.expiry_date or "-", f"[{due_style}]{_rs(m.due_amount)}[/{due_style}]",
            )
        self.console.print(table)

    async def _cmd_delete_member(self, arg: str):
        """/delete-member <id>: Delete a member (asks for confirmation)."""
        if not self._require(ROLE_OWNER):
            return
        if not arg:
            self.console.print("[red]Usage: /delete-member <id>[/red]")
            return
        screen = await self._open("members")
        if screen is None:
            return
        member = screen.find(arg)
        if member is None:
            self.console.print(f"[red]No member with id {arg}[/red]")
            return
        confirmed = await self._confirm(f"Delete {member.name}? This cannot be undone")
        await screen.delete(arg, confirm=lambda _m: confirmed)

    async def _cmd_plans(self, _arg: str):
        """/plans: List membership plans."""
        if not self._require(ROLE_OWNER):
            return
        screen = await self._open("plans")
        if screen is None:
            return
        table = Table(title="Membership Plans")
        for col in ("ID", "Name", "Months", "Price", "Features"):
            table.add_column(col)
        for p in screen.plans:
            table.add_row(p.id, p.name, str(p.duration), _rs(p.price), ", ".join(p.features) or "-")
        self.console.print(table)

    async def _cmd_member(self, arg: str):
        """/member add | edit <id> | delete <id>"""
        if not self._require(ROLE_OWNER):
            return
        action, target = _split_action(arg)
        if action == "delete":
            await self._cmd_delete_member(target)
            return
        if action not in ("add", "edit") or (action == "edit" and not target):
            self.console.print("[red]Usage: /member add | edit <id> | delete <id>[/red]")
            return
        screen = await self._open("members")
        if screen is None:
            return
        current = {}
        if action == "edit":
            member = screen.find(target)
            if member is None:
                self.console.print(f"[red]No member with id {target}[/red]")
                return
            current = {"name": member.name, "email": member.email, "phone": member.phone,
                       "address": member.address, "planId": member.plan_id}
        self.console.print("[dim]Plans: " + ", ".join(f"{p.id}={p.name}" for p in screen.plans) + "[/dim]")
        form = await self._form(MEMBER_FIELDS, current)
        await screen.save(form, target or None)

    async def _cmd_plan(self, arg: str):
        """/plan add | edit <id> | delete <id>"""
        if not self._require(ROLE_OWNER):
            return
        action, target = _split_action(arg)
        if action not in ("add", "edit", "delete") or (action != "add" and not target):
            self.console.print("[red]Usage: /plan add | edit <id> | delete <id>[/red]")
            return
        screen = await self._open("plans")
        if screen is None:
            return
        plan = screen.find(target) if target else None
        if target and plan is None:
            self.console.print(f"[red]No plan with id {target}[/red]")
            return
        if action == "delete":
            confirmed = await self._confirm(f"{DELETE_PLAN_WARNING}\nDelete {plan.name}?")
            await screen.delete(target, confirm=lambda _p: confirmed)
            return
        current = {}
        if plan is not None:
            current = {"name": plan.name, "duration": plan.duration, "price": plan.price,
                       "features": ", ".join(plan.features)}
        form = await self._form(PLAN_FIELDS, current)
        await screen.save(form, target or None)

    async def _cmd_payments(self, arg: str):
        """/payments [all|paid|pending] [query]: Ledger (owner) or your history (member)."""
        if not self._require():
            return
        if self.session.role == ROLE_MEMBER:
            screen = await self._open("member_payments")
            if screen:
                self._print_member_payments(screen)
            return

        screen = await self._open("payments")
        if screen is None:
            return
        status, query = _split_action(arg)
        if status and status not in STATUS_FILTERS:
            status, query = "all", arg
        screen.set_filter(status or "all")
        screen.query = query
        table = Table(title=f"Member Dues ({screen.status_filter})")
        for col in ("ID", "Name", "Plan", "Status", "Due", "Paid"):
            table.add_column(col)
        plan_names = {p.id: p.name for p in screen.plans}
        for m in screen.visible_members:
            style = "red" if m.payment_status == "pending" else "green"
            table.add_row(
                m.id, m.name, plan_names.get(m.plan_id, "-"),
                f"[{style}]{m.payment_status}[/{style}]", _rs(m.due_amount), _rs(m.paid_amount),
            )
        self.console.print(table)
        self.console.print(
            f"Collected {_rs(screen.total_collected)}  |  Pending {_rs(screen.total_pending)} "
            f"from {screen.pending_count} member(s)"
        )

    async def _cmd_payment(self, arg: str):
        """/payment record <member_id> <amount> [cash|card|upi]"""
        if not self._require(ROLE_OWNER):
            return
        parts = arg.split()
        if len(parts) not in (3, 4) or parts[0].lower() != "record":
            methods = "|".join(COUNTER_METHODS)
            self.console.print(f"[red]Usage: /payment record <member_id> <amount> \\[{methods}][/red]")
            return
        try:
            amount = float(parts[2])
        except ValueError:
            amount = None
        method = parts[3].lower() if len(parts) == 4 else "cash"
        screen = await self._open("payments")
        if screen:
            await screen.record_payment(parts[1], amount, method)

    async def _cmd_settings(self, arg: str):
        """/settings [set <field> <value>]: Show or change gym settings."""
        if not self._require(ROLE_OWNER):
            return
        screen = await self._open("settings")
        if screen is None:
            return
        if not arg:
            self._print_settings(screen)
            return
        parts = arg.split(maxsplit=2)
        if len(parts) != 3 or parts[0].lower() != "set":
            self.console.print("[red]Usage: /settings set <field> <value>[/red]")
            return
        field_name, raw = parts[1], parts[2].strip()
        value = raw
        if isinstance(getattr(screen.settings, field_name, None), bool):
            if raw.lower() not in _TRUE + _FALSE:
                self.console.print(f"[red]{field_name} must be on or off[/red]")
                return
            value = raw.lower() in _TRUE
        result = await screen.save(**{field_name: value})
        if result.ok:
            self._print_settings(screen)

    async def _cmd_attendance(self, arg: str):
        """/attendance [YYYY-MM-DD]: Daily register (owner) or your visits (member)."""
        if not self._require():
            return
        if self.session.role == ROLE_MEMBER:
            screen = await self._open("member_attendance")
            if screen:
                self._print_member_attendance(screen)
            return

        screen = self._screen("attendance")
        if arg:
            try:
                screen.selected_date = date.fromisoformat(arg)
            except ValueError:
                self.console.print("[red]Date must be YYYY-MM-DD[/red]")
                return
        screen = await self._open("attendance")
        if screen is None:
            return
        table = Table(title=f"Attendance {screen.selected_date.isoformat()}")
        for col in ("Member ID", "Name", "Status", "In", "Out", "Record"):
            table.add_column(col)
        for row in screen.rows:
            rec = row.record
            status = "[green]present[/green]" if row.checked_in else "[dim]absent[/dim]"
            table.add_row(
                row.member.id, row.member.name, status,
                rec.check_in if rec else "-", (rec.check_out or "-") if rec else "-",
                rec.id if rec else "-",
            )
        self.console.print(table)
        self.console.print(
            f"Present {screen.present_count}  |  Absent {screen.absent_count}  |  "
            f"Rate {screen.presence_rate}%"
        )

    async def _cmd_checkin(self, arg: str):
        """/checkin [member_id]: Record a check-in (members check themselves in)."""
        if not self._require():
            return
        if self.session.role == ROLE_MEMBER:
            screen = await self._open("member_attendance")
            if screen:
                await screen.check_in()
            return
        if not arg:
            self.console.print("[red]Usage: /checkin <member_id>[/red]")
            return
        screen = await self._open("attendance")
        if screen:
            await screen.check_in(arg)

    async def _cmd_checkout(self, arg: str):
        """/checkout <attendance_id>: Record a check-out."""
        if not self._require(ROLE_OWNER):
            return
        if not arg:
            self.console.print("[red]Usage: /checkout <attendance_id>[/red]")
            return
        screen = await self._open("attendance")
        if screen:
            await screen.check_out(arg)

    async def _cmd_reminders(self, _arg: str):
        """/reminders: Members due a reminder."""
        if not self._require(ROLE_OWNER):
            return
        screen = await self._open("reminders")
        if screen is None:
            return
        table = Table(title="Pending Reminders")
        for col in ("Member ID", "Name", "Email", "Plan", "Status", "Due"):
            table.add_column(col)
        for r in screen.visible:
            table.add_row(r.member_id, r.name, r.email, r.plan_name or "-", r.status_label, _rs(r.due_amount))
        self.console.print(table)
        self.console.print(
            f"Expired {screen.expired_count}  |  Expiring {screen.expiring_count}  |  "
            f"Payment pending {screen.pending_payment_count}"
        )

    async def _cmd_remind(self, arg: str):
        """/remind <id,id,...|all>: Email reminders."""
        if not self._require(ROLE_OWNER):
            return
        screen = await self._open("reminders")
        if screen is None:
            return
        if arg.lower() == "all":
            screen.selected = []
            screen.toggle_all()
            await screen.send_email()
        else:
            ids = [i for i in arg.replace(",", " ").split() if i]
            await screen.send_email(ids)

    async def _cmd_export(self, arg: str):
        """/export <type>: Save an analytics PDF."""
        if not self._require(ROLE_OWNER):
            return
        report_type = arg.lower() or "complete"
        if report_type not in REPORT_TYPES:
            self.console.print(f"[red]Report type must be one of: {', '.join(REPORT_TYPES)}[/red]")
            return
        screen = self._screen("reports")
        if self._current is not None and self._current is not screen:
            self._current.close()
        self._current = screen
        with self.console.status(f"[bold cyan]Exporting {report_type} report...[/bold cyan]"):
            await screen.export(report_type)

    # -----------------------------------------------------------------------
    # Store & payments
    # -----------------------------------------------------------------------

    async def _cmd_store(self, arg: str):
        """/store [query]: Supplement catalogue."""
        if not self._require():
            return
        key = "supplements" if self.session.role == ROLE_OWNER else "member_store"
        screen = await self._open(key)
        if screen is None:
            return
        screen.query = arg
        table = Table(title="Supplements")
        for col in ("ID", "Name", "Category", "Price", "Stock"):
            table.add_column(col)
        for s in screen.visible:
            stock = str(s.stock) if s.in_stock else "[red]out[/red]"
            table.add_row(s.id, s.name, s.category, _rs(s.price), stock)
        self.console.print(table)
        if key == "supplements":
            self.console.print(
                f"Low stock {screen.low_stock_count}  |  Out of stock {screen.out_of_stock_count}"
            )

    async def _cmd_supplement(self, arg: str):
        """/supplement add | edit <id> | delete <id>"""
        if not self._require(ROLE_OWNER):
            return
        action, target = _split_action(arg)
        if action not in ("add", "edit", "delete") or (action != "add" and not target):
            self.console.print("[red]Usage: /supplement add | edit <id> | delete <id>[/red]")
            return
        screen = await self._open("supplements")
        if screen is None:
            return
        supplement = screen.find(target) if target else None
        if target and supplement is None:
            self.console.print(f"[red]No supplement with id {target}[/red]")
            return
        if action == "delete":
            confirmed = await self._confirm(f"Remove {supplement.name} from the store?")
            await screen.delete(target, confirm=lambda _s: confirmed)
            return
        current = {}
        if supplement is not None:
            current = {"name": supplement.name, "category": supplement.category,
                       "description": supplement.description, "price": supplement.price,
                       "stock": supplement.stock}
        form = await self._form(SUPPLEMENT_FIELDS, current)
        await screen.save(form, target or None)

    async def _cmd_cart(self, arg: str):
        """/cart add <id> | remove <id> | show"""
        if not self._require(ROLE_MEMBER):
            return
        screen = self._screen("member_store")
        if not screen.supplements:
            if await self._open("member_store") is None:
                return
        parts = arg.split()
        action = parts[0].lower() if parts else "show"
        if action == "add" and len(parts) == 2:
            screen.add_to_cart(parts[1])
        elif action == "remove" and len(parts) == 2:
            screen.remove_from_cart(parts[1])
        elif action != "show":
            self.console.print("[red]Usage: /cart add <id> | remove <id> | show[/red]")
            return
        self._print_cart(screen)

    async def _cmd_buy(self, _arg: str):
        """/buy: Pay for the cart through the gateway."""
        if not self._require(ROLE_MEMBER):
            return
        screen = self._screen("member_store")
        if screen.cart.is_empty:
            self.console.print("[dim]Your cart is empty.[/dim]")
            return
        await screen.checkout()

    async def _cmd_pay(self, _arg: str):
        """/pay: Pay outstanding membership dues."""
        if not self._require(ROLE_MEMBER):
            return
        screen = await self._open("member_payments")
        if screen is None:
            return
        if screen.due_amount <= 0:
            self.console.print("[green]No pending dues.[/green]")
            return
        self.console.print(f"Outstanding: [bold]{_rs(screen.due_amount)}[/bold]")
        await screen.pay_dues()

    async def _cmd_profile(self, arg: str):
        """/profile [edit]: Show or edit your contact details."""
        if not self._require(ROLE_MEMBER):
            return
        screen = await self._open("profile")
        if screen is None:
            return
        if arg.lower() == "edit":
            m = screen.member
            form = await self._form(PROFILE_FIELDS, {"name": m.name, "phone": m.phone, "address": m.address})
            if not (await screen.save(form)).ok:
                return
        elif arg:
            self.console.print("[red]Usage: /profile \\[edit][/red]")
            return
        self._print_profile(screen)

    # -----------------------------------------------------------------------
    # Misc
    # -----------------------------------------------------------------------

    async def _cmd_help(self, _arg: str):
        """/help: Show all available slash commands."""
        table = Table(title="Commands")
        table.add_column("Command", style="bold cyan")
        table.add_column("Description")
        commands = [
            ("/login <email>", "Sign in (password prompted)"),
            ("/register", "Create an owner account"),
            ("/forgot [email]", "Request a password reset"),
            ("/reset <token>", "Set a new password with a reset token"),
            ("/logout", "Sign out and clear the stored session"),
            ("/passwd", "Change your password (owner)"),
            ("/whoami", "Show the signed-in identity"),
            ("/home, /dashboard", "Dashboard for your role"),
            ("/members [query]", "List or search members (owner)"),
            ("/member add | edit <id> | delete <id>", "Manage a member (owner)"),
            ("/delete-member <id>", "Delete a member (owner)"),
            ("/plans", "List membership plans (owner)"),
            ("/plan add | edit <id> | delete <id>", "Manage a plan (owner)"),
            ("/payments [all|paid|pending] [query]", "Dues ledger (owner) or your history (member)"),
            ("/payment record <id> <amount> [method]", "Record a counter payment (owner)"),
            ("/settings [set <field> <value>]", "Show or change gym settings (owner)"),
            ("/attendance [date]", "Daily register (owner) or your visits (member)"),
            ("/checkin [member_id]", "Record a check-in"),
            ("/checkout <attendance_id>", "Record a check-out (owner)"),
            ("/reminders", "Members due a reminder (owner)"),
            ("/remind <ids|all>", "Send email reminders (owner)"),
            ("/export <type>", f"Save a PDF report: {', '.join(REPORT_TYPES)}"),
            ("/store [query]", "Supplement catalogue"),
            ("/supplement add | edit <id> | delete <id>", "Manage the catalogue (owner)"),
            ("/cart add|remove <id> | show", "Manage your cart (member)"),
            ("/buy", "Pay for your cart (member)"),
            ("/pay", "Pay outstanding dues (member)"),
            ("/profile [edit]", "Show or edit your details (member)"),
            ("/help", "Show this help table"),
            ("/quit, /exit", "Exit the terminal"),
        ]
        for cmd, desc in commands:
            table.add_row(escape(cmd), escape(desc))
        self.console.print(table)

    async def _cmd_quit(self, _arg: str):
        """/quit: Exit the terminal."""
        self._running = False
        raise SystemExit(0)

    # -----------------------------------------------------------------------
    # Display
    # -----------------------------------------------------------------------

    def _print_notices(self):
        for notice in self.notices.drain():
            style = _SEVERITY_STYLE.get(notice.severity, "cyan")
            text = f"[bold {style}]{notice.title}[/bold {style}]"
            if notice.message:
                text += f"  {notice.message}"
            self.console.print(text)

    def _print_owner_dashboard(self, screen: OwnerDashboardScreen):
        s = screen.stats
        lines = [
            f"[bold]Members:[/bold]  {s.total_members} total, {s.active_members} active, {s.expired_members} expired",
            f"[bold]Revenue:[/bold]  {_rs(s.total_revenue)} total, {_rs(s.monthly_revenue)} this month",
            f"[bold]Dues:[/bold]     {_rs(s.pending_dues)} pending",
        ]
        soon = screen.expiring_soon()
        if soon:
            lines.append("")
            lines.append("[bold]Expiring within 7 days:[/bold]")
            for m in soon:
                lines.append(f"  {m.name} ({m.expiry_date})")
        self.console.print(Panel("\n".join(lines), title="Owner Dashboard", border_style="cyan"))

    def _print_member_dashboard(self, screen: MemberDashboardScreen):
        m = screen.member
        plan = screen.plan
        days = screen.days_left()
        lines = [
            f"[bold]Plan:[/bold]     {plan.name if plan else '-'}",
            f"[bold]Expires:[/bold]  {m.expiry_date or '-'}"
            + (f" ({days} day(s))" if days is not None else ""),
            f"[bold]Due:[/bold]      {_rs(m.due_amount)}",
            f"[bold]Visits:[/bold]   {screen.visits_this_month()} this month",
        ]
        for p in screen.recent_payments():
            lines.append(f"  {p.date[:10]}  {_rs(p.amount)}  {p.method or '-'}  {p.status}")
        self.console.print(Panel("\n".join(lines), title=f"Welcome, {m.first_name}", border_style="cyan"))

    def _print_member_attendance(self, screen: MemberAttendanceScreen):
        table = Table(title=f"Visits {screen.month.strftime('%B %Y')}")
        for col in ("Date", "In", "Out"):
            table.add_column(col)
        for r in screen.month_records:
            table.add_row(r.date, r.check_in, r.check_out or "-")
        self.console.print(table)
        self.console.print(
            f"Visits {screen.visits_this_month}  |  Average session {screen.average_session}"
        )

    def _print_member_payments(self, screen: MemberPaymentsScreen):
        table = Table(title="Payment History")
        for col in ("Date", "Amount", "Method", "Status"):
            table.add_column(col)
        for p in screen.payments:
            table.add_row(p.date[:10], _rs(p.amount), p.method or "-", p.status)
        self.console.print(table)
        plan = screen.plan
        self.console.print(
            f"Plan {plan.name if plan else '-'}  |  Due {_rs(screen.due_amount)}"
            + ("  (use /pay)" if screen.due_amount > 0 else "")
        )

    def _print_settings(self, screen: SettingsScreen):
        s = screen.settings
        lines = [
            f"[bold]gym_name:[/bold]            {s.gym_name}",
            f"[bold]owner_name:[/bold]          {s.owner_name or '-'}",
            f"[bold]email:[/bold]               {s.email or '-'}",
            f"[bold]phone:[/bold]               {s.phone or '-'}",
            f"[bold]address:[/bold]             {s.address or '-'}",
            f"[bold]opening_time:[/bold]        {s.opening_time}",
            f"[bold]closing_time:[/bold]        {s.closing_time}",
            f"[bold]email_reminders:[/bold]     {_on_off(s.email_reminders)}",
            f"[bold]whatsapp_reminders:[/bold]  {_on_off(s.whatsapp_reminders)}",
            f"[bold]payment_alerts:[/bold]      {_on_off(s.payment_alerts)}",
            f"[bold]expiry_alerts:[/bold]       {_on_off(s.expiry_alerts)}",
            f"[bold]daily_reports:[/bold]       {_on_off(s.daily_reports)}",
        ]
        self.console.print(Panel("\n".join(lines), title="Settings", border_style="cyan"))

    def _print_profile(self, screen: MemberProfileScreen):
        m = screen.member
        plan = screen.plan
        lines = [
            f"[bold]Name:[/bold]     {m.name}",
            f"[bold]Email:[/bold]    {m.email}",
            f"[bold]Phone:[/bold]    {m.phone or '-'}",
            f"[bold]Address:[/bold]  {m.address or '-'}",
            f"[bold]Plan:[/bold]     {plan.name if plan else '-'}",
            f"[bold]Joined:[/bold]   {m.joining_date or '-'}",
            f"[bold]Expires:[/bold]  {m.expiry_date or '-'}",
        ]
        self.console.print(Panel("\n".join(lines), title="My Profile", border_style="cyan"))

    def _print_cart(self, screen: MemberStoreScreen):
        cart = screen.cart
        if cart.is_empty:
            self.console.print("[dim]Your cart is empty.[/dim]")
            return
        table = Table(title=f"Cart ({cart.item_count} item(s))")
        for col in ("ID", "Item", "Qty", "Price", "Total"):
            table.add_column(col)
        for line in cart.lines:
            s = line.supplement
            table.add_row(s.id, s.name, str(line.quantity), _rs(s.price), _rs(line.line_total))
        self.console.print(table)
        self.console.print(f"[bold]Total: {_rs(cart.total)}[/bold]")

    def _print_banner(self):
        user = self.session.user
        who = f"Signed in as {user.name} ({user.role})" if user else "Not signed in. Use /login <email>."
        lines = [
            "[bold]GymPro - Gym Management[/bold]",
            "",
            f"API: {self.client.base_url}",
            who,
            "",
            "[dim]Type /help for commands.[/dim]",
        ]
        self.console.print(Panel("\n".join(lines), border_style="bright_blue", padding=(1, 2)))

    # -----------------------------------------------------------------------
    # Shutdown
    # -----------------------------------------------------------------------

    def _shutdown(self):
        if self._current is not None:
            self._current.close()
        self.client.close()
        self.console.print("[dim]Goodbye.[/dim]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

async def main():
    """Launch the GymPro CLI terminal."""
    terminal = GymProTerminal()
    await terminal.run()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    asyncio.run(main())
