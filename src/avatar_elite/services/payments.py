"""Credit pack checkout and payment fulfilment."""

import logging
from dataclasses import dataclass
from typing import Protocol

from avatar_elite.adapters.telegram_client import TelegramClient
from avatar_elite.domain.errors import PaymentError
from avatar_elite.domain.payments import CreditPack, find_pack
from avatar_elite.services.ledger import CreditLedger

CHECKOUT_COMPLETED = "checkout.session.completed"

_logger = logging.getLogger(__name__)


class CheckoutClient(Protocol):
    """Payment provider interface."""

    async def create_checkout_session(
        self, telegram_user_id: int, pack: CreditPack
    ) -> str:
        """Create a hosted checkout and return its URL."""


@dataclass
class PaymentService:
    """Turns pack selections into checkout links and paid events into credits."""

    ledger: CreditLedger
    telegram_client: TelegramClient
    checkout_client: CheckoutClient | None = None

    async def start_checkout(
        self, telegram_user_id: int, chat_id: int, pack_id: str
    ) -> bool:
        """Send a payment link for the pack; unknown packs are ignored."""
        pack = find_pack(pack_id)
        if pack is None:
            _logger.info("Ignoring unknown pack %s", pack_id)
            return False
        try:
            if self.checkout_client is None:
                raise PaymentError("Payments are not configured.")
            url = await self.checkout_client.create_checkout_session(
                telegram_user_id, pack
            )
        except PaymentError as exc:
            await self.telegram_client.send_message(
                chat_id=chat_id, text=f"❌ Error creating payment: {exc}"
            )
            return False
        await self.telegram_client.send_message(
            chat_id=chat_id,
            text=f"Please pay using this link:\n[Click here to Pay]({url})",
            parse_mode="Markdown",
        )
        return True

    async def handle_event(self, event: dict) -> int | None:
        """Apply a verified provider event and return the credits added."""
        if event.get("type") != CHECKOUT_COMPLETED:
            return None
        session = (event.get("data") or {}).get("object") or {}
        metadata = session.get("metadata") or {}
        raw_user = str(metadata.get("telegram_id") or "")
        raw_credits = str(metadata.get("credits") or "")
        if not raw_user.isdigit() or not raw_credits.isdigit() or int(raw_credits) <= 0:
            _logger.error("Missing metadata in checkout session %s", session.get("id"))
            return None

        telegram_user_id = int(raw_user)
        credits = int(raw_credits)
        _logger.info("Payment completed for %s: %s credits", telegram_user_id, credits)
        balance = await self.ledger.add(telegram_user_id, credits)
        text = f"✅ Payment received! {credits} credits added."
        if balance is not None:
            text += f"\n💎 Balance: {balance} credits."
        try:
            await self.telegram_client.send_message(chat_id=telegram_user_id, text=text)
        except Exception:
            _logger.exception("Failed to notify %s about payment", telegram_user_id)
        return credits
