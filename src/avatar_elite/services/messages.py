"""Handlers for inbound photos and free-text prompts."""

import logging
from dataclasses import dataclass

from avatar_elite.adapters.telegram_client import TelegramClient
from avatar_elite.adapters.telegram_file_client import TelegramFileClient
from avatar_elite.domain.errors import (
    CapacityExceededError,
    StoreUnavailableError,
    TransportDownloadError,
)
from avatar_elite.domain.generation import GenerationOutcome, GenerationRequest
from avatar_elite.domain.models import AVATAR_CAPACITY
from avatar_elite.domain.sessions import (
    MAX_SESSION_REFERENCES,
    ReferenceImage,
    SessionMode,
)
from avatar_elite.services.accounts import AccountService
from avatar_elite.services.generation import GenerationOrchestrator
from avatar_elite.services.menus import (
    edit_actions_menu,
    send_prompt,
    theme_actions_menu,
)
from avatar_elite.services.sessions import PhotoRoute, SessionService

STORE_UNAVAILABLE_TEXT = "⚠️ Service temporarily unavailable. Please try again later."

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhotoUpload:
    """Largest size of an inbound Telegram photo."""

    file_id: str
    width: int
    height: int


@dataclass
class MessageHandler:
    """Interprets photos and text according to the user's session mode."""

    sessions: SessionService
    accounts: AccountService
    orchestrator: GenerationOrchestrator
    telegram_client: TelegramClient
    telegram_file_client: TelegramFileClient

    async def handle_photo(
        self,
        telegram_user_id: int,
        chat_id: int,
        photo: PhotoUpload,
        caption: str | None = None,
    ) -> GenerationOutcome | None:
        """Route a photo; returns the outcome when it triggered a generation."""
        if not await self._ensure_account(telegram_user_id, chat_id):
            return None
        prompt = (caption or "").strip()
        route = self.sessions.route_photo(telegram_user_id, has_caption=bool(prompt))
        if route is PhotoRoute.AVATAR:
            await self._save_avatar_image(telegram_user_id, chat_id, photo.file_id)
            return None

        try:
            image = await self._download(photo)
        except TransportDownloadError:
            await self.telegram_client.send_message(
                chat_id=chat_id, text="❌ Failed to download image."
            )
            return None

        # The mode may have changed while downloading.
        route = self.sessions.route_photo(telegram_user_id, has_caption=bool(prompt))
        if route is PhotoRoute.AVATAR:
            await self._save_avatar_image(telegram_user_id, chat_id, photo.file_id)
            return None
        if route is PhotoRoute.EDIT_SUBJECT:
            mode = self.sessions.set_editing_subject(telegram_user_id, image)
            menu = (
                edit_actions_menu()
                if mode is SessionMode.EDIT_MODE
                else theme_actions_menu()
            )
            await send_prompt(self.telegram_client, chat_id, menu)
            return None
        if route is PhotoRoute.ACCUMULATE:
            await self._add_reference(telegram_user_id, chat_id, image)
            return None
        return await self._generate_from_photo(telegram_user_id, chat_id, image, prompt)

    async def handle_text(
        self, telegram_user_id: int, chat_id: int, text: str
    ) -> GenerationOutcome | None:
        """Treat free text as a billable prompt over the session references."""
        prompt = text.strip()
        if not prompt:
            return None
        if not await self._ensure_account(telegram_user_id, chat_id):
            return None
        session = self.sessions.get(telegram_user_id)
        references = list(session.references)
        if references:
            progress = (
                f"🎨 Generating with {len(references)} reference(s)... please wait."
            )
        else:
            progress = "🎨 Generating your image... please wait."
        outcome = await self.orchestrator.generate(
            GenerationRequest(
                telegram_user_id=telegram_user_id,
                chat_id=chat_id,
                prompt=prompt,
                quality=session.quality,
                aspect_ratio=session.aspect_ratio,
                session_images=references,
                progress_text=progress,
            )
        )
        if outcome.succeeded:
            self.sessions.complete_prompt_generation(telegram_user_id)
        return outcome

    async def _generate_from_photo(
        self,
        telegram_user_id: int,
        chat_id: int,
        image: ReferenceImage,
        prompt: str,
    ) -> GenerationOutcome | None:
        session = self.sessions.get(telegram_user_id)
        if session.mode is SessionMode.AWAITING_REFERENCES:
            if session.references_full:
                await self._reject_full_references(chat_id)
                return None
            session_images = [*session.references, image]
        else:
            session_images = [image]
        outcome = await self.orchestrator.generate(
            GenerationRequest(
                telegram_user_id=telegram_user_id,
                chat_id=chat_id,
                prompt=prompt,
                quality=session.quality,
                aspect_ratio=session.aspect_ratio,
                session_images=session_images,
                progress_text="🎨 Processing your image... please wait.",
            )
        )
        if outcome.succeeded:
            self.sessions.complete_prompt_generation(telegram_user_id)
        return outcome

    async def _add_reference(
        self, telegram_user_id: int, chat_id: int, image: ReferenceImage
    ) -> None:
        awaiting = (
            self.sessions.get(telegram_user_id).mode
            is SessionMode.AWAITING_REFERENCES
        )
        try:
            count = self.sessions.add_reference(telegram_user_id, image)
        except CapacityExceededError:
            await self._reject_full_references(chat_id)
            return
        size = f"[{image.width}x{image.height}]"
        if awaiting:
            text = (
                f"✅ Image added! ({count}/{MAX_SESSION_REFERENCES}) {size}\n"
                "Send more or type your prompt to generate."
            )
        else:
            text = (
                f"✅ Image received {size}. "
                "Type a caption to edit it, or add more images."
            )
        await self.telegram_client.send_message(chat_id=chat_id, text=text)

    async def _reject_full_references(self, chat_id: int) -> None:
        await self.telegram_client.send_message(
            chat_id=chat_id,
            text=(
                f"⚠️ Max {MAX_SESSION_REFERENCES} images allowed. "
                "Use /menu to clear."
            ),
        )

    async def _save_avatar_image(
        self, telegram_user_id: int, chat_id: int, file_id: str
    ) -> None:
        try:
            count = await self.accounts.append_avatar_image(telegram_user_id, file_id)
        except CapacityExceededError:
            text = (
                f"⚠️ Max {AVATAR_CAPACITY} avatar images reached. "
                "Use /menu -> My Avatar -> Clear to reset."
            )
        except StoreUnavailableError:
            text = "❌ Error saving image."
        else:
            text = f"✅ Avatar Image Saved! ({count}/{AVATAR_CAPACITY})"
        await self.telegram_client.send_message(chat_id=chat_id, text=text)

    async def _download(self, photo: PhotoUpload) -> ReferenceImage:
        try:
            data = await self.telegram_file_client.download_file_bytes(photo.file_id)
        except Exception as exc:
            _logger.exception("Failed to download Telegram photo %s", photo.file_id)
            raise TransportDownloadError(photo.file_id) from exc
        return ReferenceImage(data=data, width=photo.width, height=photo.height)

    async def _ensure_account(self, telegram_user_id: int, chat_id: int) -> bool:
        try:
            await self.accounts.get_or_create(telegram_user_id)
        except StoreUnavailableError:
            await self.telegram_client.send_message(
                chat_id=chat_id, text=STORE_UNAVAILABLE_TEXT
            )
            return False
        return True
