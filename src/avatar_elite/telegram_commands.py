"""Telegram bot command configuration."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    START = TelegramCommand("start", "Welcome message and credit balance")
    MENU = TelegramCommand("menu", "Aspect ratio, quality, references and avatar")
    CREDITS = TelegramCommand("credits", "Check your credit balance")
    BUY = TelegramCommand("buy", "Buy credit packs")
    HELP = TelegramCommand("help", "How to generate and edit images")


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


CHAT_MENU_BUTTON: dict[str, object] = {"type": "commands"}
