"""
Gateway payment flows: membership dues and supplement orders.

Both flows run the same three steps:

  1. POST a create-order endpoint; the server answers with a gateway
     order (key id, order id, amount in paise, prefill details).
  2. Open the checkout modal through the loader + driver.
  3. POST the signed confirmation to the matching verify endpoint.

and end in exactly one PaymentOutcome:

    paid                 verified; dues cleared / order placed
    start_failed         order creation or script load failed, no charge
    dismissed            member closed the modal, no charge
    unconfirmed          checkout returned an unreadable confirmation;
                         the member may have been charged, nothing is
                         verified, support needs the order id
    verification_failed  charged, but the backend did not confirm it;
                         needs support follow-up

Only "paid" changes local state (the store flow empties the cart).
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from core.cart import Cart
from core.errors import (
    ApiError,
    CheckoutDismissed,
    CheckoutStartError,
    ConfirmationUnreadable,
    GymProError,
    ValidationError,
    VerificationError,
)
from core.http_client import ApiClient
from core.models import GatewayOrder, Member, format_inr
from payments.checkout import CheckoutDriver, CheckoutLoader, CheckoutOptions, CheckoutResponse, open_checkout

logger = logging.getLogger("gympro.payments")

OUTCOME_PAID = "paid"
OUTCOME_START_FAILED = "start_failed"
OUTCOME_DISMISSED = "dismissed"
OUTCOME_UNCONFIRMED = "unconfirmed"
OUTCOME_VERIFICATION_FAILED = "verification_failed"

CONTACT_SUPPORT = "Payment received but {what} confirmation failed. Contact support."


@dataclass
class PaymentOutcome:
    status: str
    title: str
    message: str
    order: GatewayOrder | None = None
    response: CheckoutResponse | None = None
    error: GymProError | None = None
    result: Any = None

    @property
    def paid(self) -> bool:
        return self.status == OUTCOME_PAID

    @property
    def charged(self) -> bool:
        """Money moved at the gateway, verified or not."""
        return self.status in (OUTCOME_PAID, OUTCOME_VERIFICATION_FAILED)


class _GatewayFlow:
    """Shared create → checkout → verify sequence.

    Args:
        client:        ApiClient for the create/verify calls.
        loader:        Shared CheckoutLoader.
        driver:        Shows the hosted modal.
        merchant_name: Name shown in the modal header.
        theme_color:   Modal accent colour.
    """

    create_endpoint = ""
    verify_endpoint = ""
    subject = "payment"

    def __init__(
        self,
        client: ApiClient,
        loader: CheckoutLoader,
        driver: CheckoutDriver,
        merchant_name: str = "GymPro",
        theme_color: str = "#E11D48",
    ):
        self.client = client
        self.loader = loader
        self.driver = driver
        self.merchant_name = merchant_name
        self.theme_color = theme_color

    async def _run(self, create_payload: dict, verify_extra: dict, description: str,
                   dismissed_message: str, merchant_name: str | None = None) -> PaymentOutcome:
        order = None
        try:
            raw = await asyncio.to_thread(self.client.post, self.create_endpoint, create_payload)
            order = GatewayOrder.from_dict(raw or {})
            if not order.key_id or not order.razorpay_order_id:
                raise CheckoutStartError("The server did not return a usable payment order.")
            options = CheckoutOptions(
                key_id=order.key_id,
                order_id=order.razorpay_order_id,
                amount=order.amount,
                currency=order.currency,
                name=merchant_name or self.merchant_name,
                description=description,
                prefill_name=order.member_name or "",
                prefill_email=order.member_email or "",
                prefill_contact=order.member_phone or "",
                theme_color=self.theme_color,
            )
            response = await open_checkout(self.loader, self.driver, options)
        except CheckoutDismissed as e:
            logger.info("Checkout dismissed for %s", self.subject)
            return PaymentOutcome(OUTCOME_DISMISSED, "Payment Cancelled", dismissed_message, order=order, error=e)
        except ConfirmationUnreadable as e:
            logger.error("Unreadable checkout confirmation for %s (order %s)", self.subject,
                         order.razorpay_order_id if order else "?")
            return PaymentOutcome(OUTCOME_UNCONFIRMED, "Payment Not Confirmed", e.message, order=order, error=e)
        except (ApiError, CheckoutStartError) as e:
            logger.warning("Checkout could not start for %s: %s", self.subject, e.message)
            return PaymentOutcome(
                OUTCOME_START_FAILED, "Checkout Failed",
                e.message or "Could not initiate checkout. Please try again.",
                order=order, error=e,
            )

        try:
            result = await asyncio.to_thread(
                self.client.post, self.verify_endpoint, {**response.to_payload(), **verify_extra},
            )
        except ApiError as e:
            logger.error(
                "Payment %s captured but verification failed (order %s): %s",
                response.razorpay_payment_id, response.razorpay_order_id, e.message,
            )
            return PaymentOutcome(
                OUTCOME_VERIFICATION_FAILED, f"{self.subject.title()} Verification Failed",
                CONTACT_SUPPORT.format(what=self.subject),
                order=order, response=response, error=VerificationError(e.message),
            )

        logger.info("Payment %s verified for order %s", response.razorpay_payment_id, order.razorpay_order_id)
        return PaymentOutcome(OUTCOME_PAID, "", "", order=order, response=response, result=result)


class MembershipPaymentFlow(_GatewayFlow):
    """Pay a member's outstanding dues through the gateway."""

    create_endpoint = "/razorpay/create-membership-order"
    verify_endpoint = "/razorpay/verify-membership-payment"
    subject = "payment"

    async def pay(self, member: Member) -> PaymentOutcome:
        if member.due_amount <= 0:
            raise ValidationError("There are no pending dues to pay.")
        outcome = await self._run(
            {"memberId": member.id},
            {"memberId": member.id},
            description="Membership Dues",
            dismissed_message="Your dues are unchanged. Complete payment to clear them.",
        )
        if outcome.paid:
            outcome.title = "Payment Successful"
            outcome.message = f"Your payment of Rs. {format_inr(outcome.order.amount_rupees)} was received and confirmed."
        return outcome


class StorePaymentFlow(_GatewayFlow):
    """Buy the cart's contents through the gateway."""

    create_endpoint = "/razorpay/create-store-order"
    verify_endpoint = "/razorpay/verify-store-payment"
    subject = "order"

    async def pay(self, cart: Cart, merchant_name: str | None = None) -> PaymentOutcome:
        if cart.is_empty:
            raise ValidationError("Your cart is empty.")
        # Snapshot: the cart may change while the modal is open
        items = [item.to_payload() for item in cart.to_order_items()]
        total = cart.total
        count = cart.item_count
        outcome = await self._run(
            {"items": items},
            {"items": items, "total": total},
            description=f"Supplement Purchase ({count} item{'' if count == 1 else 's'})",
            dismissed_message="Your cart is still saved. Complete payment to confirm your order.",
            merchant_name=merchant_name,
        )
        if outcome.paid:
            cart.clear()
            outcome.title = "Order Placed Successfully!"
            outcome.message = f"Your order of Rs. {format_inr(total)} was paid and confirmed."
        return outcome
