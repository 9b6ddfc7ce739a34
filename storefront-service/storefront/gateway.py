"""Payment gateway port and adapters.

The storefront only asks the provider for a hosted checkout session and
sends the customer there. The outcome comes back through the verify
endpoint, never through this module.

- ``FakeGateway`` for development and tests
- ``StripeGateway`` for Stripe Checkout, called over its REST API
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

import httpx

from . import config
from .errors import PaymentGatewayError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckoutSession:
    session_id: str
    redirect_url: str


class PaymentGateway(ABC):
    @abstractmethod
    def create_checkout_session(
        self,
        order_id: int,
        amount: Decimal,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Open a checkout session for ``amount``.

        Raises ``PaymentGatewayError`` when the provider cannot be reached or
        refuses the request.
        """
        ...


class FakeGateway(PaymentGateway):
    """Gateway that never leaves the process; can be told to fail."""

    def __init__(self, checkout_base_url: str = "https://checkout.example.test") -> None:
        self.checkout_base_url = checkout_base_url
        self.should_succeed: bool = True
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool) -> None:
        self.should_succeed = should_succeed

    def create_checkout_session(self, order_id, amount, success_url, cancel_url):
        self.calls.append(
            {
                "order_id": order_id,
                "amount": amount,
                "success_url": success_url,
                "cancel_url": cancel_url,
            }
        )
        if not self.should_succeed:
            raise PaymentGatewayError("Fake gateway configured to fail")

        session_id = f"fake_cs_{uuid4().hex[:16]}"
        return CheckoutSession(session_id, f"{self.checkout_base_url}/pay/{session_id}")


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeGateway(PaymentGateway):
    """Stripe Checkout, one line item per order covering the whole amount."""

    def __init__(
        self,
        secret_key: str,
        api_base: str = "https://api.stripe.com",
        currency: str = "usd",
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.currency = currency
        self.transport = transport

    def create_checkout_session(self, order_id, amount, success_url, cancel_url):
        form = {
            "mode": "payment",
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": str(order_id),
            "metadata[order_id]": str(order_id),
            "line_items[0][quantity]": "1",
            "line_items[0][price_data][currency]": self.currency,
            "line_items[0][price_data][unit_amount]": str(to_minor_units(amount)),
            "line_items[0][price_data][product_data][name]": f"Order #{order_id}",
        }
        headers = {
            "Authorization": f"Bearer {self.secret_key}",
            # one checkout session per order
            "Idempotency-Key": f"order-{order_id}-checkout",
        }

        try:
            with httpx.Client(timeout=10.0, transport=self.transport) as client:
                r = client.post(f"{self.api_base}/v1/checkout/sessions", data=form, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Stripe checkout request for order {order_id} failed: {e}")
            raise PaymentGatewayError() from e

        if r.status_code != 200:
            logger.error(f"Stripe refused checkout for order {order_id}: {r.status_code} {r.text[:200]}")
            raise PaymentGatewayError()

        data = r.json()
        if not data.get("id") or not data.get("url"):
            raise PaymentGatewayError("Payment provider returned an incomplete session")
        return CheckoutSession(data["id"], data["url"])


def build_gateway(name: str | None = None) -> PaymentGateway:
    name = (name or config.PAYMENT_GATEWAY).lower()
    if name == "stripe":
        return StripeGateway(config.STRIPE_SECRET_KEY, config.STRIPE_API_BASE, config.CURRENCY)
    if name == "fake":
        return FakeGateway()
    raise ValueError(f"Unknown payment gateway: {name}")
