"""Stripe Checkout adapter."""

import asyncio
import json
import logging
from dataclasses import dataclass

import stripe

from avatar_elite.domain.errors import PaymentError
from avatar_elite.domain.payments import CreditPack
from avatar_elite.services.payments import CheckoutClient

SIGNATURE_TOLERANCE_SECONDS = 300

_logger = logging.getLogger(__name__)


@dataclass
class StripeCheckoutClient(CheckoutClient):
    """Creates one-time payment Checkout Sessions."""

    secret_key: str
    bot_username: str

    async def create_checkout_session(
        self, telegram_user_id: int, pack: CreditPack
    ) -> str:
        """Create a Checkout Session and return its hosted URL."""
        return_base = f"https://t.me/{self.bot_username}?start="
        try:
            session = await asyncio.to_thread(
                stripe.checkout.Session.create,
                api_key=self.secret_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[
                    {
                        "price_data": {
                            "currency": "usd",
                            "product_data": {"name": pack.name},
                            "unit_amount": pack.amount_cents,
                        },
                        "quantity": 1,
                    }
                ],
                metadata={
                    "telegram_id": str(telegram_user_id),
                    "credits": str(pack.credits),
                },
                success_url=return_base + "payment_success",
                cancel_url=return_base + "payment_cancel",
            )
        except stripe.StripeError as exc:
            _logger.exception("Stripe checkout creation failed")
            raise PaymentError("Could not create a payment link") from exc
        if not session.url:
            raise PaymentError("Stripe returned no checkout URL")
        return session.url


def verify_webhook_signature(
    payload: bytes,
    signature_header: str | None,
    secret: str,
    tolerance: int = SIGNATURE_TOLERANCE_SECONDS,
) -> dict:
    """Verify a ``Stripe-Signature`` header and return the decoded event.

    Raises ValueError when the header is missing, stale or does not match.
    """
    if not signature_header:
        raise ValueError("Missing Stripe-Signature header")
    body = payload.decode("utf-8")
    try:
        stripe.WebhookSignature.verify_header(body, signature_header, secret, tolerance)
    except stripe.SignatureVerificationError as exc:
        raise ValueError(str(exc)) from exc
    return json.loads(body)
