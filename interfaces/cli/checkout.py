"""
Browser checkout driver for the terminal.

The gateway's modal only runs in a browser, so the terminal writes a
one-page HTML checkout (the loaded checkout script inlined, the options
embedded as JSON), opens it with the system browser, and waits at a
prompt. On success the page shows the signed confirmation as JSON for
the member to paste back; an empty answer means the modal was closed.
Merchant text is HTML-escaped and anything inlined into a <script>
block has its "</" sequences escaped.

Usage:
    from interfaces.cli.checkout import BrowserCheckoutDriver

    driver = BrowserCheckoutDriver(console, page_dir="data/checkout")
    flow = StorePaymentFlow(client, loader, driver)
"""

import html
import json
import logging
import webbrowser
from pathlib import Path

from rich.console import Console
from rich.prompt import Prompt

from core.errors import CheckoutDismissed, CheckoutStartError, ConfirmationUnreadable
from payments.checkout import CheckoutOptions, CheckoutResponse

logger = logging.getLogger("gympro.cli.checkout")

_CONFIRMATION_KEYS = ("razorpay_order_id", "razorpay_payment_id", "razorpay_signature")

_PAGE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>
    body {{ font-family: sans-serif; background: #0f172a; color: #f8fafc; padding: 3rem; }}
    pre {{ background: #1e293b; padding: 1rem; white-space: pre-wrap; word-break: break-all; }}
    button {{ background: {color}; color: #fff; border: 0; padding: .8rem 1.6rem; font-size: 1rem; }}
  </style>
  <script>{script}</script>
</head>
<body>
  <h1>{title}</h1>
  <p>{description}</p>
  <button id="pay">Pay now</button>
  <p id="status"></p>
  <pre id="out"></pre>
  <script>
    var options = {options};
    options.handler = function (response) {{
      document.getElementById("status").textContent =
        "Payment complete. Copy the line below into the terminal.";
      document.getElementById("out").textContent = JSON.stringify(response);
    }};
    options.modal = {{ ondismiss: function () {{
      document.getElementById("status").textContent =
        "Payment cancelled. Return to the terminal and press Enter.";
    }} }};
    document.getElementById("pay").onclick = function () {{ new Razorpay(options).open(); }};
  </script>
</body>
</html>
"""


class BrowserCheckoutDriver:
    """CheckoutDriver that runs the hosted modal in the system browser.

    Args:
        console:  Rich console used for instructions and the prompt.
        page_dir: Where the checkout page is written.
        open_browser: Whether to launch the browser automatically.
    """

    def __init__(self, console: Console | None = None, page_dir: str | Path = "data/checkout",
                 open_browser: bool = True):
        self.console = console or Console()
        self.page_dir = Path(page_dir)
        self.open_browser = open_browser

    def render_page(self, options: CheckoutOptions, script: str) -> str:
        # Merchant name and description come from the backend; nothing may
        # close the surrounding element or the inline <script>
        return _PAGE.format(
            title=html.escape(options.name),
            description=html.escape(options.description),
            color=html.escape(options.theme_color),
            script=_script_safe(script),
            options=_json_for_script(options.to_gateway()),
        )

    def write_page(self, options: CheckoutOptions, script: str) -> Path:
        self.page_dir.mkdir(parents=True, exist_ok=True)
        path = self.page_dir / f"checkout_{options.order_id or 'order'}.html"
        path.write_text(self.render_page(options, script), encoding="utf-8")
        return path

    def open(self, options: CheckoutOptions, script: str) -> CheckoutResponse:
        try:
            page = self.write_page(options, script)
        except OSError as e:
            raise CheckoutStartError(f"Could not prepare the checkout page: {e}") from e

        url = page.resolve().as_uri()
        if self.open_browser:
            webbrowser.open(url)
        self.console.print(f"[bold]Checkout:[/bold] {options.description}")
        self.console.print(f"[dim]Complete the payment in your browser: {url}[/dim]")

        raw = Prompt.ask("Paste the payment confirmation (blank to cancel)", default="", console=self.console)
        return self.parse_confirmation(raw, order_id=options.order_id)

    @staticmethod
    def parse_confirmation(raw: str, order_id: str = "") -> CheckoutResponse:
        """JSON from the checkout page → CheckoutResponse.

        Blank means the member cancelled. Anything else that is not a
        signed confirmation raises ConfirmationUnreadable, since the
        payment may have gone through.
        """
        raw = raw.strip()
        if not raw:
            raise CheckoutDismissed("Checkout closed without payment")
        unreadable = (
            "The payment confirmation could not be read. If you were charged, "
            f"contact support with order {order_id or 'reference'}."
        )
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Unreadable checkout confirmation for order %s: %s", order_id, e)
            raise ConfirmationUnreadable(unreadable) from e
        if not isinstance(data, dict) or not all(data.get(k) for k in _CONFIRMATION_KEYS):
            logger.warning("Incomplete checkout confirmation for order %s", order_id)
            raise ConfirmationUnreadable(unreadable)
        return CheckoutResponse.from_dict(data)


def _script_safe(text: str) -> str:
    """Keep script source inlined in a <script> block from closing it early."""
    return text.replace("</", "<\\/")


_JSON_ESCAPES = {ord("<"): "\\u003c", ord(">"): "\\u003e", ord("&"): "\\u0026"}


def _json_for_script(data: dict) -> str:
    """JSON literal with no markup characters left in it; decodes to the same values."""
    return json.dumps(data).translate(_JSON_ESCAPES)
