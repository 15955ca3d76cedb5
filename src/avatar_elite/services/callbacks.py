"""Inline keyboard callback handling."""

import logging
from dataclasses import dataclass

from avatar_elite.adapters.telegram_client import TelegramClient
from avatar_elite.domain.actions import edit_prompt, theme_prompt
from avatar_elite.domain.errors import StoreUnavailableError
from avatar_elite.domain.generation import GenerationOutcome, GenerationRequest
from avatar_elite.domain.payments import find_pack
from avatar_elite.services.accounts import AccountService
from avatar_elite.services.generation import GenerationOrchestrator
from avatar_elite.services.menus import (
    avatar_menu,
    avatar_upload_prompt,
    buy_menu,
    edit_mode_prompt,
    reference_upload_prompt,
    send_prompt,
    settings_menu,
    trending_prompt,
)
from avatar_elite.services.payments import PaymentService
from avatar_elite.services.sessions import SessionService

EDIT_ACTION_PREFIX = "edit_action_"
THEME_ACTION_PREFIX = "trend_action_"

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallbackContext:
    """Where a callback came from."""

    callback_query_id: str
    telegram_user_id: int
    chat_id: int
    message_id: int | None
    data: str


@dataclass
class CallbackHandler:
    """Dispatches callback data from the bot's inline keyboards.

    Every callback query is answered exactly once.
    """

    sessions: SessionService
    accounts: AccountService
    orchestrator: GenerationOrchestrator
    payments: PaymentService
    telegram_client: TelegramClient

    async def handle(self, context: CallbackContext) -> GenerationOutcome | None:
        """Apply a callback; returns the outcome when it ran a generation."""
        data = context.data
        user_id = context.telegram_user_id
        if data.startswith("buy_"):
            pack_id = data.removeprefix("buy_")
            if find_pack(pack_id) is None:
                _logger.info("Unknown pack %s from %s", pack_id, user_id)
                await self._answer(context, "Unknown pack")
                return None
            await self._answer(context, "Generating payment link...")
            await self.payments.start_checkout(user_id, context.chat_id, pack_id)
            return None
        if data.startswith(EDIT_ACTION_PREFIX) or data.startswith(THEME_ACTION_PREFIX):
            return await self._run_action(context)
        if data.startswith("ratio_"):
            ratio = data.removeprefix("ratio_")
            if self.sessions.set_aspect_ratio(user_id, ratio):
                await self._answer(context, f"Ratio set to {ratio}")
                await self._refresh_menu(context)
            else:
                await self._answer(context)
            return None
        if data.startswith("quality_"):
            quality = data.removeprefix("quality_")
            if self.sessions.set_quality(user_id, quality):
                await self._answer(context, f"Quality set to {quality}")
                await self._refresh_menu(context)
            else:
                await self._answer(context)
            return None
        if data.startswith("avatar_") or data == "menu_avatar":
            await self._handle_avatar(context)
            return None

        if data == "upload_refs":
            self.sessions.start_reference_upload(user_id)
            await self._answer(context, "Send your images now!")
            await send_prompt(
                self.telegram_client, context.chat_id, reference_upload_prompt()
            )
        elif data == "clear_refs":
            self.sessions.clear_references(user_id)
            await self._answer(context, "References cleared")
            await self._refresh_menu(context)
        elif data == "refresh_menu":
            await self._answer(context, "Refreshing...")
            await self._send_settings_menu(context)
        elif data == "menu_back":
            self.sessions.return_to_normal(user_id)
            await self._answer(context)
            await self._send_settings_menu(context)
        elif data == "menu_edit":
            self.sessions.enter_edit_mode(user_id)
            await self._answer(context)
            await send_prompt(self.telegram_client, context.chat_id, edit_mode_prompt())
        elif data == "menu_trending":
            self.sessions.enter_trending_theme(user_id)
            await self._answer(context)
            await send_prompt(self.telegram_client, context.chat_id, trending_prompt())
        elif data == "cmd_buy":
            await self._answer(context)
            await send_prompt(self.telegram_client, context.chat_id, buy_menu())
        else:
            _logger.info("Ignoring unknown callback data %s", data)
            await self._answer(context)
        return None

    async def _run_action(self, context: CallbackContext) -> GenerationOutcome | None:
        session = self.sessions.get(context.telegram_user_id)
        subject = session.editing_subject
        if subject is None:
            await self._answer(context)
            await self.telegram_client.send_message(
                chat_id=context.chat_id,
                text="⚠️ No image found to edit. Please upload one first.",
            )
            return None
        if context.data.startswith(EDIT_ACTION_PREFIX):
            action = context.data.removeprefix(EDIT_ACTION_PREFIX)
            prompt = edit_prompt(action)
        else:
            action = context.data.removeprefix(THEME_ACTION_PREFIX)
            prompt = theme_prompt(action)
        await self._answer(context)
        return await self.orchestrator.generate(
            GenerationRequest(
                telegram_user_id=context.telegram_user_id,
                chat_id=context.chat_id,
                prompt=prompt,
                quality=session.quality,
                aspect_ratio=session.aspect_ratio,
                session_images=[subject],
                include_avatar=False,
                progress_text=(
                    f"🎨 Applying effect: {action.replace('_', ' ')}... please wait."
                ),
            )
        )

    async def _handle_avatar(self, context: CallbackContext) -> None:
        data = context.data
        user_id = context.telegram_user_id
        if data == "avatar_upload":
            self.sessions.start_avatar_upload(user_id)
            await self._answer(context)
            await send_prompt(
                self.telegram_client, context.chat_id, avatar_upload_prompt()
            )
            return
        try:
            if data == "avatar_toggle_on":
                await self.accounts.set_avatar_enabled(user_id, True)
                answer = "Avatar Enabled"
            elif data == "avatar_toggle_off":
                await self.accounts.set_avatar_enabled(user_id, False)
                answer = "Avatar Disabled"
            elif data == "avatar_clear":
                await self.accounts.clear_avatar_images(user_id)
                answer = "Avatar Images Cleared"
            else:
                answer = None
            account = await self.accounts.get_or_create(user_id)
        except StoreUnavailableError as exc:
            await self._answer(context, "Avatar storage unavailable")
            await self.telegram_client.send_message(
                chat_id=context.chat_id, text=f"⚠️ {exc}."
            )
            return
        await self._answer(context, answer)
        await send_prompt(self.telegram_client, context.chat_id, avatar_menu(account))

    async def _send_settings_menu(self, context: CallbackContext) -> None:
        session = self.sessions.get(context.telegram_user_id)
        credits = await self._credits(context.telegram_user_id)
        await send_prompt(
            self.telegram_client, context.chat_id, settings_menu(session, credits)
        )

    async def _refresh_menu(self, context: CallbackContext) -> None:
        """Edit the settings menu in place to show the new values."""
        if context.message_id is None:
            return
        session = self.sessions.get(context.telegram_user_id)
        credits = await self._credits(context.telegram_user_id)
        menu = settings_menu(session, credits)
        try:
            await self.telegram_client.edit_message_text(
                chat_id=context.chat_id,
                message_id=context.message_id,
                text=menu.text,
                reply_markup=menu.reply_markup,
                parse_mode=menu.parse_mode,
            )
        except Exception:
            # Telegram rejects edits that leave the message unchanged.
            _logger.info("Settings menu not updated for %s", context.telegram_user_id)

    async def _credits(self, telegram_user_id: int) -> int:
        try:
            account = await self.accounts.get_or_create(telegram_user_id)
        except StoreUnavailableError:
            return 0
        return account.credits

    async def _answer(self, context: CallbackContext, text: str | None = None) -> None:
        await self.telegram_client.answer_callback_query(
            context.callback_query_id, text=text
        )
