"""Command handlers for Telegram updates."""

import logging
from dataclasses import dataclass

from avatar_elite.adapters.telegram_client import TelegramClient
from avatar_elite.domain.errors import StoreUnavailableError
from avatar_elite.services.accounts import AccountService
from avatar_elite.services.menus import (
    HELP_TEXT,
    PAYMENT_CANCEL_TEXT,
    PAYMENT_SUCCESS_TEXT,
    SessionPrompt,
    buy_menu,
    credits_prompt,
    send_prompt,
    settings_menu,
    welcome_prompt,
)
from avatar_elite.services.messages import STORE_UNAVAILABLE_TEXT
from avatar_elite.services.sessions import SessionService
from avatar_elite.telegram_commands import BotCommand

_logger = logging.getLogger(__name__)


def parse_command(text: str) -> tuple[str, str | None] | None:
    """Split ``/name@bot arg`` into the command name and its argument."""
    if not text.startswith("/"):
        return None
    head, _, rest = text[1:].partition(" ")
    name = head.split("@", maxsplit=1)[0].lower()
    argument = rest.strip() or None
    return name, argument


@dataclass
class CommandHandler:
    """Handle slash commands; none of them is billable."""

    accounts: AccountService
    sessions: SessionService
    telegram_client: TelegramClient

    async def handle(self, telegram_user_id: int, chat_id: int, text: str) -> bool:
        """Run a command; returns False when the text is not a command."""
        parsed = parse_command(text)
        if parsed is None:
            return False
        name, argument = parsed
        try:
            prompt = await self._prompt_for(telegram_user_id, name, argument)
        except StoreUnavailableError:
            prompt = SessionPrompt(text=STORE_UNAVAILABLE_TEXT, parse_mode=None)
        if prompt is None:
            _logger.info("Ignoring unknown command /%s", name)
            return True
        await send_prompt(self.telegram_client, chat_id, prompt)
        return True

    async def _prompt_for(
        self, telegram_user_id: int, name: str, argument: str | None
    ) -> SessionPrompt | None:
        if name == BotCommand.START.value.command:
            account = await self.accounts.get_or_create(telegram_user_id)
            if argument == "payment_success":
                return SessionPrompt(text=PAYMENT_SUCCESS_TEXT)
            if argument == "payment_cancel":
                return SessionPrompt(text=PAYMENT_CANCEL_TEXT)
            return welcome_prompt(account.credits)
        if name == BotCommand.HELP.value.command:
            return SessionPrompt(text=HELP_TEXT)
        if name == BotCommand.CREDITS.value.command:
            account = await self.accounts.get_or_create(telegram_user_id)
            return credits_prompt(account.credits)
        if name == BotCommand.BUY.value.command:
            return buy_menu()
        if name == BotCommand.MENU.value.command:
            account = await self.accounts.get_or_create(telegram_user_id)
            return settings_menu(self.sessions.get(telegram_user_id), account.credits)
        return None
