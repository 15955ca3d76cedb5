"""Generation orchestrator: charge, assemble references, call backend, deliver."""

import logging
from dataclasses import dataclass
from typing import Protocol

from avatar_elite.adapters.telegram_client import TelegramClient
from avatar_elite.domain.errors import (
    BackendFailureError,
    InsufficientCreditsError,
    StoreUnavailableError,
)
from avatar_elite.domain.generation import (
    Delivery,
    DeliveryKind,
    GenerationOutcome,
    GenerationRequest,
    GenerationResult,
)
from avatar_elite.domain.models import Account
from avatar_elite.services.accounts import AccountService
from avatar_elite.services.ledger import CreditLedger, cost_for_quality, is_low_balance
from avatar_elite.services.menus import (
    SessionPrompt,
    insufficient_credits_prompt,
    low_balance_prompt,
    send_prompt,
)
from avatar_elite.services.references import ReferenceAggregator, resolve_aspect_ratio

FIDELITY_SUFFIX = (
    ", maintain high fidelity to the reference image, facial features, and details"
)
_QUALITY_SUFFIXES = {
    "2k": ", 2k resolution, highly detailed",
    "4k": ", 4k resolution, ultra detailed, photorealistic",
}
_LOSSLESS_TIERS = {"2k", "4k"}
DELIVERY_FAILED_TEXT = "Could not deliver the image. Please try again."

_logger = logging.getLogger(__name__)


class ImageBackend(Protocol):
    """Interface shared by every image generation backend."""

    async def generate_from_text(
        self, prompt: str, aspect_ratio: str
    ) -> GenerationResult:
        """Generate an image from a prompt."""

    async def generate_from_images(
        self, images: list[bytes], prompt: str, aspect_ratio: str
    ) -> GenerationResult:
        """Generate an image conditioned on reference images."""


def enhance_prompt(prompt: str, quality: str) -> str:
    """Append the quality tier's resolution instructions."""
    return prompt + _QUALITY_SUFFIXES.get(quality, "")


def plan_delivery(result: GenerationResult, quality: str) -> Delivery:
    """Choose how a result reaches the user.

    Higher tiers go out as documents so Telegram does not recompress them.
    """
    if not result.success:
        return Delivery(kind=DeliveryKind.ERROR, content=f"❌ Error: {result.error}")
    content: bytes | str | None = result.image_bytes or result.image_url
    if content is None:
        return Delivery(
            kind=DeliveryKind.ERROR, content="❌ Error: Backend returned no image"
        )
    if quality in _LOSSLESS_TIERS:
        return Delivery(
            kind=DeliveryKind.DOCUMENT,
            content=content,
            filename=f"generated_image_{quality}.png",
        )
    return Delivery(kind=DeliveryKind.PHOTO, content=content)


@dataclass
class GenerationOrchestrator:
    """Runs one billable generation from charge to delivery."""

    ledger: CreditLedger
    accounts: AccountService
    references: ReferenceAggregator
    backend: ImageBackend
    telegram_client: TelegramClient
    refund_on_backend_failure: bool = False

    async def generate(self, request: GenerationRequest) -> GenerationOutcome:
        """Charge, generate and deliver; never retries the backend call.

        Once the charge succeeds, transport failures are logged and turned
        into a failed outcome instead of propagating.
        """
        cost = cost_for_quality(request.quality)
        try:
            remaining = await self._charge(request.telegram_user_id, cost)
        except InsufficientCreditsError as exc:
            await self._notify(
                request.chat_id,
                insufficient_credits_prompt(exc.cost, exc.remaining, request.quality),
            )
            return GenerationOutcome(charged=False, remaining=exc.remaining, cost=cost)

        if is_low_balance(remaining):
            await self._notify(request.chat_id, low_balance_prompt(remaining))
        if request.progress_text:
            await self._notify(
                request.chat_id,
                SessionPrompt(text=request.progress_text, parse_mode=None),
            )

        try:
            result = await self._call_backend(request)
        except BackendFailureError as exc:
            result = GenerationResult.failure(str(exc))
        delivery = plan_delivery(result, request.quality)
        try:
            await self.deliver(request.chat_id, delivery)
        except Exception:
            _logger.exception("Delivery failed for %s", request.telegram_user_id)
            result = GenerationResult.failure(DELIVERY_FAILED_TEXT)
            await self._notify(
                request.chat_id,
                SessionPrompt(
                    text=f"❌ Error: {DELIVERY_FAILED_TEXT}", parse_mode=None
                ),
            )

        if not result.success:
            _logger.warning(
                "Generation failed for %s: %s", request.telegram_user_id, result.error
            )
            if self.refund_on_backend_failure:
                refunded = await self._refund(request.telegram_user_id, cost)
                if refunded is not None:
                    remaining = refunded
        return GenerationOutcome(
            charged=True,
            remaining=remaining,
            cost=cost,
            result=result,
            delivery=delivery,
        )

    async def deliver(self, chat_id: int, delivery: Delivery) -> None:
        """Send a planned delivery; has no effect on credits."""
        if delivery.kind is DeliveryKind.DOCUMENT:
            await self.telegram_client.send_document(
                chat_id=chat_id, document=delivery.content, filename=delivery.filename
            )
        elif delivery.kind is DeliveryKind.PHOTO:
            await self.telegram_client.send_photo(
                chat_id=chat_id, photo=delivery.content
            )
        else:
            await self.telegram_client.send_message(
                chat_id=chat_id, text=str(delivery.content)
            )

    async def _charge(self, telegram_user_id: int, cost: int) -> int:
        consume = await self.ledger.consume(telegram_user_id, cost)
        if not consume.ok:
            raise InsufficientCreditsError(cost, consume.remaining)
        return consume.remaining

    async def _call_backend(self, request: GenerationRequest) -> GenerationResult:
        prompt = enhance_prompt(request.prompt, request.quality)
        aspect_ratio = resolve_aspect_ratio(
            request.aspect_ratio, request.session_images
        )
        try:
            account = await self._account_for(request)
        except StoreUnavailableError:
            _logger.warning(
                "Generating without avatar for %s; store unavailable",
                request.telegram_user_id,
            )
            account = None
        images = await self.references.build_reference_set(
            request.session_images, account
        )
        if account is not None and account.avatar_enabled and account.avatar_images:
            count = len(account.avatar_images)
            await self._notify(
                request.chat_id,
                SessionPrompt(
                    text=f"👤 Adding {count} avatar reference(s)...", parse_mode=None
                ),
            )
        try:
            if images:
                return await self.backend.generate_from_images(
                    images, prompt + FIDELITY_SUFFIX, aspect_ratio
                )
            return await self.backend.generate_from_text(prompt, aspect_ratio)
        except Exception as exc:
            _logger.exception("Backend call failed for %s", request.telegram_user_id)
            raise BackendFailureError(str(exc) or type(exc).__name__) from exc

    async def _notify(self, chat_id: int, prompt: SessionPrompt) -> None:
        """Send an auxiliary message; a lost notice never cancels the request."""
        try:
            await send_prompt(self.telegram_client, chat_id, prompt)
        except Exception:
            _logger.exception("Failed to send notice to chat %s", chat_id)

    async def _account_for(self, request: GenerationRequest) -> Account | None:
        if not request.include_avatar:
            return None
        return await self.accounts.get_or_create(request.telegram_user_id)

    async def _refund(self, telegram_user_id: int, cost: int) -> int | None:
        try:
            return await self.ledger.add(telegram_user_id, cost)
        except Exception:
            _logger.exception(
                "Refund of %s credits for %s failed", cost, telegram_user_id
            )
            return None
