"""
Razorpay checkout: script loader and modal seam.

The gateway's checkout script is fetched at most once per process.
Concurrent callers share the in-flight fetch instead of starting a
second one; a failed fetch resolves False and may be retried later.

The hosted modal itself is not something a Python process can render,
so it sits behind a CheckoutDriver: anything with an
open(options, script) method that returns the signed CheckoutResponse,
or raises CheckoutDismissed when the member closes it. The terminal
ships a browser-backed driver (interfaces/cli/checkout.py); tests use a
scripted one.

Usage:
    from payments.checkout import CheckoutLoader, CheckoutOptions, open_checkout

    loader = CheckoutLoader("https://checkout.razorpay.com/v1/checkout.js")
    response = await open_checkout(loader, driver, options)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from core.errors import CheckoutStartError

logger = logging.getLogger("gympro.payments.checkout")

DEFAULT_SCRIPT_URL = "https://checkout.razorpay.com/v1/checkout.js"


# ---------------------------------------------------------------------------
# Options / response
# ---------------------------------------------------------------------------

@dataclass
class CheckoutOptions:
    """Everything the hosted modal is opened with. amount is in paise."""
    key_id: str
    order_id: str
    amount: int
    currency: str = "INR"
    name: str = "GymPro"
    description: str = "Payment"
    prefill_name: str = ""
    prefill_email: str = ""
    prefill_contact: str = ""
    theme_color: str = "#E11D48"

    def to_gateway(self) -> dict[str, Any]:
        """Options object in the shape the checkout script expects."""
        return {
            "key": self.key_id,
            "order_id": self.order_id,
            "amount": self.amount,
            "currency": self.currency or "INR",
            "name": self.name,
            "description": self.description,
            "prefill": {
                "name": self.prefill_name,
                "email": self.prefill_email,
                "contact": self.prefill_contact,
            },
            "theme": {"color": self.theme_color},
        }


@dataclass
class CheckoutResponse:
    """Signed confirmation returned by the gateway on success."""
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str

    def to_payload(self) -> dict[str, str]:
        return {
            "razorpayOrderId": self.razorpay_order_id,
            "razorpayPaymentId": self.razorpay_payment_id,
            "razorpaySignature": self.razorpay_signature,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CheckoutResponse":
        return cls(
            razorpay_order_id=str(data.get("razorpay_order_id", "")),
            razorpay_payment_id=str(data.get("razorpay_payment_id", "")),
            razorpay_signature=str(data.get("razorpay_signature", "")),
        )


class CheckoutDriver(Protocol):
    def open(self, options: CheckoutOptions, script: str) -> CheckoutResponse:
        """Show the modal and block until the member pays or closes it.

        Raises:
            CheckoutDismissed:      closed without paying.
            ConfirmationUnreadable: the result could not be read; a charge
                                    may or may not have happened.
        """
        ...


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

class CheckoutLoader:
    """Fetches the checkout script once and shares in-flight loads.

    Args:
        script_url: Where the gateway serves checkout.js.
        http:       requests.Session (or compatible) to fetch through.
    """

    def __init__(self, script_url: str = DEFAULT_SCRIPT_URL, http: requests.Session | None = None):
        self.script_url = script_url
        self._http = http if http is not None else requests.Session()
        self.script: str | None = None
        self._pending: asyncio.Task | None = None

    @property
    def loaded(self) -> bool:
        return self.script is not None

    async def load(self) -> bool:
        """True once the script is available, False if fetching it failed."""
        if self.script is not None:
            return True
        if self._pending is None:
            self._pending = asyncio.create_task(self._fetch())
        # One caller giving up must not cancel the load for the others
        return await asyncio.shield(self._pending)

    async def _fetch(self) -> bool:
        logger.info("Loading checkout script from %s", self.script_url)
        try:
            response = await asyncio.to_thread(self._http.get, self.script_url)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Checkout script failed to load: %s", e)
            return False
        else:
            self.script = response.text
            return True
        finally:
            self._pending = None


async def open_checkout(
    loader: CheckoutLoader,
    driver: CheckoutDriver,
    options: CheckoutOptions,
) -> CheckoutResponse:
    """Make sure the script is loaded, then hand the options to the driver.

    Raises:
        CheckoutStartError: the script could not be loaded.
        CheckoutDismissed:  the member closed the modal.
    """
    if not await loader.load():
        raise CheckoutStartError("Failed to load Razorpay SDK. Check your internet connection.")
    logger.info("Opening checkout for order %s (%d paise)", options.order_id, options.amount)
    return await asyncio.to_thread(driver.open, options, loader.script)
