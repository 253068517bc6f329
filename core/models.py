"""
GymPro data model.

Plain records supplied by the backend. Each from_dict() consumes the
camelCase payload produced by the HTTP layer and fills an explicit
default for every field the server may leave out, so nothing further
down has to guess whether a key is present.

Monetary units: gateway amounts (GatewayOrder.amount) are in paise,
everything else is whole rupees. Nothing converts between the two
implicitly; use paise_to_rupees() where a gateway figure is displayed.
"""

import math
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _number(value: Any, default: float | int = 0) -> float | int:
    """Coerce to int when integral, else float. None / junk → default."""
    if value is None or value == "":
        return default
    try:
        num = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(num):
        return default
    return int(num) if num.is_integer() else num


def _text(value: Any, default: str = "") -> str:
    return default if value is None else str(value)


def _optional_text(value: Any) -> str | None:
    return None if value in (None, "") else str(value)


def parse_date(value: str | None) -> date | None:
    """ISO date or datetime string → date, or None when absent/invalid."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _parse_clock(value: str | None, on: str = "") -> datetime | None:
    """Check-in/out stamps arrive either as ISO datetimes or "HH:MM[:SS]"."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    base = parse_date(on) or date(2000, 1, 1)
    for fmt in ("%H:%M:%S", "%H:%M", "%I:%M %p"):
        try:
            t = datetime.strptime(value.strip(), fmt).time()
        except ValueError:
            continue
        return datetime.combine(base, t)
    return None


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

def paise_to_rupees(paise: int | float) -> float | int:
    return _number(paise) / 100 if paise else 0


def format_inr(amount: Any) -> str:
    """Indian digit grouping: 100000 → "1,00,000", 1234.5 → "1,234.50"."""
    value = float(_number(amount))
    sign = "-" if value < 0 else ""
    whole, paise = divmod(round(abs(value) * 100), 100)
    digits = str(whole)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    if paise:
        return f"{sign}{digits}.{paise:02d}"
    return f"{sign}{digits}"


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

@dataclass
class User:
    """The signed-in identity. role is "owner" or "member"."""
    id: str
    email: str
    name: str
    role: str
    phone: str | None = None
    avatar: str | None = None

    @property
    def is_owner(self) -> bool:
        return self.role == "owner"

    def to_dict(self) -> dict[str, Any]:
        data = {"id": self.id, "email": self.email, "name": self.name, "role": self.role}
        if self.phone:
            data["phone"] = self.phone
        if self.avatar:
            data["avatar"] = self.avatar
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=_text(data.get("id")),
            email=_text(data.get("email")),
            name=_text(data.get("name")),
            role=_text(data.get("role"), "member"),
            phone=_optional_text(data.get("phone")),
            avatar=_optional_text(data.get("avatar")),
        )


# ---------------------------------------------------------------------------
# Members & plans
# ---------------------------------------------------------------------------

MEMBER_STATUSES = ("active", "expired", "pending")


@dataclass
class Member:
    id: str
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    joining_date: str = ""
    expiry_date: str = ""
    plan_id: str = ""
    status: str = "pending"
    due_amount: float = 0
    paid_amount: float = 0
    avatar: str | None = None

    @property
    def payment_status(self) -> str:
        return "pending" if self.due_amount > 0 else "paid"

    @property
    def first_name(self) -> str:
        return self.name.split(" ")[0] if self.name else ""

    def days_until_expiry(self, today: date | None = None) -> int | None:
        """Whole days from today to expiry; negative once expired."""
        expiry = parse_date(self.expiry_date)
        if expiry is None:
            return None
        return (expiry - (today or date.today())).days

    def matches(self, query: str) -> bool:
        q = query.strip().lower()
        return not q or q in self.name.lower() or q in self.email.lower()

    def to_payload(self) -> dict[str, Any]:
        """Editable fields, in client convention, for POST/PUT /members."""
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "planId": self.plan_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Member":
        status = _text(data.get("status"), "pending")
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            email=_text(data.get("email")),
            phone=_text(data.get("phone")),
            address=_text(data.get("address")),
            joining_date=_text(data.get("joiningDate")),
            expiry_date=_text(data.get("expiryDate")),
            plan_id=_text(data.get("planId")),
            status=status if status in MEMBER_STATUSES else "pending",
            due_amount=max(_number(data.get("dueAmount")), 0),
            paid_amount=_number(data.get("paidAmount")),
            avatar=_optional_text(data.get("avatar")),
        )


@dataclass
class MembershipPlan:
    id: str
    name: str
    duration: int = 1          # months
    price: float = 0
    features: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "duration": self.duration,
            "price": self.price,
            "features": list(self.features),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MembershipPlan":
        features = data.get("features") or []
        if isinstance(features, str):
            features = [f.strip() for f in features.split(",") if f.strip()]
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            duration=int(_number(data.get("duration"), 1)),
            price=_number(data.get("price")),
            features=[str(f) for f in features],
        )


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------

PAYMENT_STATUSES = ("paid", "pending", "overdue")


@dataclass
class Payment:
    id: str
    member_id: str
    amount: float
    date: str = ""
    status: str = "pending"
    plan_id: str = ""
    method: str = ""
    invoice_id: str | None = None
    razorpay_order_id: str | None = None
    razorpay_payment_id: str | None = None
    member_name: str | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Payment":
        status = _text(data.get("status"), "pending")
        return cls(
            id=_text(data.get("id")),
            member_id=_text(data.get("memberId")),
            amount=_number(data.get("amount")),
            date=_text(data.get("date")),
            status=status if status in PAYMENT_STATUSES else "pending",
            plan_id=_text(data.get("planId")),
            method=_text(data.get("method")),
            invoice_id=_optional_text(data.get("invoiceId")),
            razorpay_order_id=_optional_text(data.get("razorpayOrderId")),
            razorpay_payment_id=_optional_text(data.get("razorpayPaymentId")),
            member_name=_optional_text(data.get("memberName")),
        )


# ---------------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------------

@dataclass
class Attendance:
    id: str
    member_id: str
    date: str
    check_in: str
    check_out: str | None = None
    member_name: str | None = None

    @property
    def checked_out(self) -> bool:
        return self.check_out is not None

    @property
    def duration_minutes(self) -> int | None:
        """Length of the visit, or None while still checked in."""
        start = _parse_clock(self.check_in, self.date)
        end = _parse_clock(self.check_out, self.date)
        if start is None or end is None:
            return None
        minutes = int((end - start).total_seconds() // 60)
        return minutes if minutes >= 0 else None

    @classmethod
    def from_dict(cls, data: dict) -> "Attendance":
        return cls(
            id=_text(data.get("id")),
            member_id=_text(data.get("memberId")),
            date=_text(data.get("date"))[:10],
            check_in=_text(data.get("checkIn")),
            check_out=_optional_text(data.get("checkOut")),
            member_name=_optional_text(data.get("memberName")),
        )


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

@dataclass
class Supplement:
    id: str
    name: str
    description: str = ""
    price: float = 0
    stock: int = 0
    category: str = ""
    image: str | None = None

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    def matches(self, query: str) -> bool:
        q = query.strip().lower()
        return not q or q in self.name.lower() or q in self.category.lower()

    def to_payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "stock": self.stock,
            "category": self.category,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Supplement":
        return cls(
            id=_text(data.get("id")),
            name=_text(data.get("name")),
            description=_text(data.get("description")),
            price=_number(data.get("price")),
            stock=max(int(_number(data.get("stock"))), 0),
            category=_text(data.get("category")),
            image=_optional_text(data.get("image")),
        )


@dataclass
class OrderItem:
    supplement_id: str
    quantity: int
    price: float

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    def to_payload(self) -> dict[str, Any]:
        return {"supplementId": self.supplement_id, "quantity": self.quantity, "price": self.price}

    @classmethod
    def from_dict(cls, data: dict) -> "OrderItem":
        return cls(
            supplement_id=_text(data.get("supplementId")),
            quantity=int(_number(data.get("quantity"), 1)),
            price=_number(data.get("price")),
        )


@dataclass
class Order:
    id: str
    member_id: str
    items: list[OrderItem] = field(default_factory=list)
    total: float = 0
    date: str = ""
    status: str = "pending"
    payment_status: str = "pending"

    @classmethod
    def from_dict(cls, data: dict) -> "Order":
        return cls(
            id=_text(data.get("id")),
            member_id=_text(data.get("memberId")),
            items=[OrderItem.from_dict(i) for i in data.get("items") or []],
            total=_number(data.get("total")),
            date=_text(data.get("date")),
            status=_text(data.get("status"), "pending"),
            payment_status=_text(data.get("paymentStatus"), "pending"),
        )


# ---------------------------------------------------------------------------
# Dashboard, settings, reminders
# ---------------------------------------------------------------------------

@dataclass
class DashboardStats:
    total_members: int = 0
    active_members: int = 0
    expired_members: int = 0
    total_revenue: float = 0
    pending_dues: float = 0
    monthly_revenue: float = 0

    @classmethod
    def from_dict(cls, data: dict | None) -> "DashboardStats":
        data = data or {}
        return cls(
            total_members=int(_number(data.get("totalMembers"))),
            active_members=int(_number(data.get("activeMembers"))),
            expired_members=int(_number(data.get("expiredMembers"))),
            total_revenue=_number(data.get("totalRevenue")),
            pending_dues=_number(data.get("pendingDues")),
            monthly_revenue=_number(data.get("monthlyRevenue")),
        )


@dataclass
class GymSettings:
    gym_name: str = "GymPro Fitness Center"
    owner_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    opening_time: str = "06:00"
    closing_time: str = "22:00"
    email_reminders: bool = True
    whatsapp_reminders: bool = True
    payment_alerts: bool = True
    expiry_alerts: bool = True
    daily_reports: bool = False

    def to_payload(self) -> dict[str, Any]:
        return {
            "gymName": self.gym_name,
            "ownerName": self.owner_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "openingTime": self.opening_time,
            "closingTime": self.closing_time,
            "emailReminders": self.email_reminders,
            "whatsappReminders": self.whatsapp_reminders,
            "paymentAlerts": self.payment_alerts,
            "expiryAlerts": self.expiry_alerts,
            "dailyReports": self.daily_reports,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "GymSettings":
        data = data or {}
        defaults = cls()
        kwargs = {}
        for key, camel in (
            ("gym_name", "gymName"), ("owner_name", "ownerName"), ("email", "email"),
            ("phone", "phone"), ("address", "address"),
            ("opening_time", "openingTime"), ("closing_time", "closingTime"),
        ):
            kwargs[key] = _text(data.get(camel), getattr(defaults, key))
        for key, camel in (
            ("email_reminders", "emailReminders"), ("whatsapp_reminders", "whatsappReminders"),
            ("payment_alerts", "paymentAlerts"), ("expiry_alerts", "expiryAlerts"),
            ("daily_reports", "dailyReports"),
        ):
            value = data.get(camel)
            kwargs[key] = getattr(defaults, key) if value is None else bool(value)
        return cls(**kwargs)


@dataclass
class PendingReminder:
    """A member who is due a reminder: expiring within a week or owing money."""
    member_id: str
    name: str
    email: str = ""
    phone: str = ""
    plan_name: str = ""
    expiry_date: str = ""
    due_amount: float = 0
    days_until_expiry: int | None = None

    @property
    def payment_status(self) -> str:
        return "pending" if self.due_amount > 0 else "paid"

    @property
    def status_label(self) -> str:
        if self.payment_status == "pending":
            return "Payment Pending"
        if self.days_until_expiry is not None and self.days_until_expiry < 0:
            return "Expired"
        if self.days_until_expiry is not None:
            return f"Expires in {self.days_until_expiry} day(s)"
        return "Reminder Due"

    @classmethod
    def from_dict(cls, data: dict, today: date | None = None) -> "PendingReminder":
        days = data.get("daysUntilExpiry")
        if days is None:
            expiry = parse_date(data.get("expiryDate"))
            days = (expiry - (today or date.today())).days if expiry else None
        return cls(
            member_id=_text(data.get("memberId") or data.get("id")),
            name=_text(data.get("name") or data.get("memberName")),
            email=_text(data.get("email")),
            phone=_text(data.get("phone")),
            plan_name=_text(data.get("planName")),
            expiry_date=_text(data.get("expiryDate")),
            due_amount=_number(data.get("dueAmount")),
            days_until_expiry=None if days is None else int(_number(days)),
        )


# ---------------------------------------------------------------------------
# Report series
# ---------------------------------------------------------------------------

@dataclass
class RevenuePoint:
    month: str
    revenue: float

    @classmethod
    def from_dict(cls, data: dict) -> "RevenuePoint":
        return cls(month=_text(data.get("month")), revenue=_number(data.get("revenue")))


@dataclass
class MembershipSlice:
    name: str
    value: int

    @classmethod
    def from_dict(cls, data: dict) -> "MembershipSlice":
        return cls(name=_text(data.get("name")), value=_number(data.get("value")))


@dataclass
class AttendancePoint:
    day: str
    attendance: int

    @classmethod
    def from_dict(cls, data: dict) -> "AttendancePoint":
        return cls(day=_text(data.get("day")), attendance=_number(data.get("attendance")))


@dataclass
class ProductSales:
    name: str
    sales: int

    @classmethod
    def from_dict(cls, data: dict) -> "ProductSales":
        return cls(name=_text(data.get("name")), sales=_number(data.get("sales")))


# ---------------------------------------------------------------------------
# Payment gateway
# ---------------------------------------------------------------------------

@dataclass
class GatewayOrder:
    """Server-issued payment intent handed to the checkout modal.

    amount is in paise (minor units), exactly as the gateway expects.
    """
    key_id: str
    razorpay_order_id: str
    amount: int
    currency: str = "INR"
    member_name: str | None = None
    member_email: str | None = None
    member_phone: str | None = None

    @property
    def amount_rupees(self) -> float | int:
        return paise_to_rupees(self.amount)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "GatewayOrder":
        return cls(
            key_id=_text(data.get("keyId")),
            razorpay_order_id=_text(data.get("razorpayOrderId") or data.get("orderId")),
            amount=int(_number(data.get("amount"))),
            currency=_text(data.get("currency"), "INR") or "INR",
            member_name=_optional_text(data.get("memberName")),
            member_email=_optional_text(data.get("memberEmail")),
            member_phone=_optional_text(data.get("memberPhone") or data.get("memberContact")),
        )
