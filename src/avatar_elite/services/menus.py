"""User-facing prompts and inline keyboards."""

from dataclasses import dataclass

from avatar_elite.adapters.telegram_client import TelegramClient
from avatar_elite.domain.actions import EDIT_ACTIONS, THEME_ACTIONS, ImageAction
from avatar_elite.domain.models import AVATAR_CAPACITY, Account
from avatar_elite.domain.payments import CREDIT_PACKS, CreditPack
from avatar_elite.domain.sessions import MAX_SESSION_REFERENCES, Session

MARKDOWN = "Markdown"

HELP_TEXT = (
    "**Help & Instructions**\n\n"
    '- **Generate Image**: Type your prompt (e.g., "A futuristic city").\n'
    "- **Edit Image**: Upload a photo with a caption.\n"
    "- **Settings**: Use /menu to change Ratio (1:1, 16:9, Auto) or Quality.\n"
    '- **Multi-Image**: Use /menu -> "Upload References" to send up to 5 images, '
    "then type your prompt.\n"
    "- **Credits**: /credits to check balance, /buy to purchase more."
)


@dataclass(frozen=True)
class SessionPrompt:
    """Represents the next user-facing prompt."""

    text: str
    reply_markup: dict | None = None
    parse_mode: str | None = MARKDOWN


async def send_prompt(
    telegram_client: TelegramClient, chat_id: int, prompt: SessionPrompt
) -> None:
    """Send a prompt with its keyboard and parse mode."""
    await telegram_client.send_message(
        chat_id=chat_id,
        text=prompt.text,
        reply_markup=prompt.reply_markup,
        parse_mode=prompt.parse_mode,
    )


def _inline_keyboard(rows: list[list[tuple[str, str]]]) -> dict:
    """Build a Telegram inline keyboard payload from rows of (label, data)."""
    return {
        "inline_keyboard": [
            [{"text": label, "callback_data": callback} for label, callback in row]
            for row in rows
        ]
    }


def _pack_button(pack: CreditPack) -> tuple[str, str]:
    return (f"💎 {pack.credits} ({pack.price_label})", f"buy_{pack.id}")


def welcome_prompt(credits: int) -> SessionPrompt:
    return SessionPrompt(
        text=(
            "🍌 **Welcome to AVATAR ELITE BOT** 🍌\n\n"
            "I can generate amazing images for you using the most advanced "
            "AI image model.\n\n"
            f"**💎 Credits: {credits}**\n\n"
            "**Features:**\n"
            "1. **Text-to-Image**: Just type a description.\n"
            "2. **Image-to-Image**: Upload photos to edit or mix styles.\n"
            "3. **Advanced Settings**: Use /menu to set Aspect Ratio & Quality.\n\n"
            "Type /help for more info or /buy to get more credits."
        )
    )


def credits_prompt(credits: int) -> SessionPrompt:
    return SessionPrompt(
        text=f"💎 You have **{credits}** credits remaining.\n\nType /buy to get more."
    )


def settings_menu_text(session: Session, credits: int) -> str:
    return (
        "**⚙️ Settings Menu**\n\n"
        f"**Aspect Ratio:** {session.aspect_ratio}\n"
        f"**Quality:** {session.quality}\n"
        f"**Reference Images:** {len(session.references)}/{MAX_SESSION_REFERENCES}\n"
        f"**💎 Credits:** {credits}\n\n"
        "Select an option to change:"
    )


def settings_menu(session: Session, credits: int) -> SessionPrompt:
    """Build the main settings menu."""
    ref_count = len(session.references)
    refs_label = f"🖼️ Add Refs ({ref_count})" if ref_count else "🖼️ Upload References"
    return SessionPrompt(
        text=settings_menu_text(session, credits),
        reply_markup=_inline_keyboard(
            [
                [
                    ("📐 Auto", "ratio_auto"),
                    ("📐 1:1", "ratio_1:1"),
                    ("📐 16:9", "ratio_16:9"),
                    ("📐 9:16", "ratio_9:16"),
                ],
                [
                    ("💎 Quality 1k", "quality_1k"),
                    ("💎 Quality 2k", "quality_2k"),
                    ("💎 Quality 4k", "quality_4k"),
                ],
                [(refs_label, "upload_refs"), ("🗑️ Clear Refs", "clear_refs")],
                [("🎄 Trending", "menu_trending"), ("🎨 Edit Image", "menu_edit")],
                [("👤 My Avatar", "menu_avatar"), ("🛍️ Buy Credits", "cmd_buy")],
                [("🔄 Refresh Menu", "refresh_menu")],
            ]
        ),
    )


def avatar_menu(account: Account) -> SessionPrompt:
    """Build the avatar settings menu."""
    enabled = account.avatar_enabled
    status = "✅ ENABLED" if enabled else "❌ DISABLED"
    toggle = (
        ("🔴 Disable Avatar", "avatar_toggle_off")
        if enabled
        else ("🟢 Enable Avatar", "avatar_toggle_on")
    )
    return SessionPrompt(
        text=(
            "**👤 My Avatar Settings**\n\n"
            f"**Status:** {status}\n"
            f"**Images Saved:** {len(account.avatar_images)}/{AVATAR_CAPACITY}\n\n"
            "When **Enabled**, your saved avatar images are used *in addition* to "
            "any temporary references for every generation.\n\n"
            "Select an action:"
        ),
        reply_markup=_inline_keyboard(
            [
                [toggle],
                [
                    ("📤 Upload New Images", "avatar_upload"),
                    ("🗑️ Clear All Images", "avatar_clear"),
                ],
                [("🔙 Back to Menu", "menu_back")],
            ]
        ),
    )


def _action_rows(actions: tuple[ImageAction, ...], prefix: str) -> list:
    buttons = [(action.label, f"{prefix}{action.key}") for action in actions]
    rows = [buttons[index : index + 2] for index in range(0, len(buttons), 2)]
    rows.append([("🔙 Back to Menu", "menu_back")])
    return rows


def edit_actions_menu() -> SessionPrompt:
    return SessionPrompt(
        text="✅ **Image Received!**\nSelect an action to apply:",
        reply_markup=_inline_keyboard(_action_rows(EDIT_ACTIONS, "edit_action_")),
    )


def theme_actions_menu() -> SessionPrompt:
    return SessionPrompt(
        text="🎄 **Ho Ho Ho!** Image Received!\nSelect a Christmas Magic effect:",
        reply_markup=_inline_keyboard(_action_rows(THEME_ACTIONS, "trend_action_")),
    )


def buy_menu() -> SessionPrompt:
    """Build the full credit pack keyboard."""
    buttons = [_pack_button(pack) for pack in CREDIT_PACKS]
    return SessionPrompt(
        text="🛍️ **Buy Credits**\nSelect a pack to purchase:",
        reply_markup=_inline_keyboard(
            [buttons[index : index + 2] for index in range(0, len(buttons), 2)]
        ),
    )


def top_up_keyboard() -> dict:
    """Two cheapest packs plus a link to every pack."""
    return _inline_keyboard(
        [
            [_pack_button(pack) for pack in CREDIT_PACKS[:2]],
            [("🛍️ View All Packs", "cmd_buy")],
        ]
    )


def insufficient_credits_prompt(
    cost: int, remaining: int, quality: str
) -> SessionPrompt:
    return SessionPrompt(
        text=(
            "🚫 **Insufficient Credits**\n"
            f"You need {cost} credits to generate a {quality} image.\n"
            f"You have {remaining} credits.\n\n⬇️ **Top Up Now:**"
        ),
        reply_markup=top_up_keyboard(),
    )


def low_balance_prompt(remaining: int) -> SessionPrompt:
    return SessionPrompt(
        text=(
            "⚠️ **Running Low on Credits!**\n"
            f"You only have {remaining} credits left.\n"
            "Top up now to avoid interruption:"
        ),
        reply_markup=top_up_keyboard(),
    )


PAYMENT_SUCCESS_TEXT = (
    "✅ **Payment Successful!**\n"
    "Thank you for your purchase. Your credits have been updated."
)
PAYMENT_CANCEL_TEXT = "❌ Payment was cancelled."


def reference_upload_prompt() -> SessionPrompt:
    return SessionPrompt(
        text=(
            "📤 **Upload Mode Active**\n"
            f"Please send up to {MAX_SESSION_REFERENCES} reference images. "
            "When done, type your prompt."
        )
    )


def avatar_upload_prompt() -> SessionPrompt:
    return SessionPrompt(
        text=(
            "👤 **Upload Avatar Images**\n"
            f"Send up to {AVATAR_CAPACITY} photos of yourself (or your character).\n"
            "When done, tap Back to Menu."
        ),
        reply_markup=_inline_keyboard([[("🔙 Back to Menu", "menu_back")]]),
    )


def edit_mode_prompt() -> SessionPrompt:
    return SessionPrompt(
        text="🎨 **Edit Mode**\nPlease upload an image you want to edit."
    )


def trending_prompt() -> SessionPrompt:
    return SessionPrompt(
        text=(
            "🎄 **Trending Christmas** 🎅\n"
            "Upload a photo to give it a holiday makeover!"
        )
    )
