"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request

from avatar_elite.adapters.stripe_client import verify_webhook_signature
from avatar_elite.api.telegram_models import TelegramUpdate
from avatar_elite.app_logging import configure_logging
from avatar_elite.config import parse_allowed_user_ids
from avatar_elite.containers import AppContainer
from avatar_elite.domain.errors import StoreUnavailableError
from avatar_elite.services.callbacks import CallbackContext
from avatar_elite.services.messages import PhotoUpload
from avatar_elite.telegram_commands import CHAT_MENU_BUTTON, telegram_commands


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    allowed_user_ids = parse_allowed_user_ids(
        container.settings.telegram_allowed_user_ids
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.telegram_client.set_my_commands(
                telegram_commands()
            )
            await app.state.container.telegram_client.set_chat_menu_button(
                CHAT_MENU_BUTTON
            )
        except Exception:
            logger.exception("Failed to sync Telegram bot commands")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/telegram/webhook")
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates; always acknowledges the update."""
        state_container: AppContainer = request.app.state.container
        user_id = update.sender_id
        if user_id is not None and not _is_user_allowed(user_id, allowed_user_ids):
            if update.callback_query:
                await state_container.telegram_client.answer_callback_query(
                    update.callback_query.id,
                    text="Not authorized.",
                )
            elif update.message:
                await state_container.telegram_client.send_message(
                    chat_id=update.message.chat.id,
                    text="This bot is private.",
                )
            return {"status": "ok"}
        if not state_container.recent_updates.accept(update.update_id):
            logger.info("Skipping redelivered update %s", update.update_id)
            return {"status": "ok"}
        try:
            await _dispatch(state_container, update)
        except Exception:
            logger.exception(
                "Failed to handle update", extra={"update_id": update.update_id}
            )
        return {"status": "ok"}

    @app.post("/payments/webhook")
    async def payments_webhook(request: Request) -> dict[str, bool]:
        """Credit a completed checkout after verifying the provider signature."""
        state_container: AppContainer = request.app.state.container
        secret = state_container.settings.stripe_webhook_secret
        if not secret:
            raise HTTPException(status_code=503, detail="Payments are not configured")
        payload = await request.body()
        try:
            event = verify_webhook_signature(
                payload, request.headers.get("stripe-signature"), secret
            )
        except ValueError as exc:
            logger.warning("Webhook signature verification failed: %s", exc)
            raise HTTPException(
                status_code=400, detail=f"Webhook Error: {exc}"
            ) from exc
        try:
            await state_container.payment_service.handle_event(event)
        except StoreUnavailableError as exc:
            raise HTTPException(
                status_code=500, detail="Database Update Failed"
            ) from exc
        return {"received": True}

    return app


async def _dispatch(container: AppContainer, update: TelegramUpdate) -> None:
    callback = update.callback_query
    if callback:
        if not callback.data or callback.message is None:
            await container.telegram_client.answer_callback_query(callback.id)
            return
        await container.callback_handler.handle(
            CallbackContext(
                callback_query_id=callback.id,
                telegram_user_id=callback.from_user.id,
                chat_id=callback.message.chat.id,
                message_id=callback.message.message_id,
                data=callback.data,
            )
        )
        return

    message = update.message
    if message is None:
        return
    photo = message.largest_photo()
    if photo is not None:
        await container.message_handler.handle_photo(
            telegram_user_id=message.from_user.id,
            chat_id=message.chat.id,
            photo=PhotoUpload(
                file_id=photo.file_id, width=photo.width, height=photo.height
            ),
            caption=message.caption,
        )
        return
    if message.text:
        handled = await container.command_handler.handle(
            message.from_user.id, message.chat.id, message.text
        )
        if not handled:
            await container.message_handler.handle_text(
                message.from_user.id, message.chat.id, message.text
            )


def _is_user_allowed(user_id: int, allowed: set[int] | None) -> bool:
    """Return true when the user is allowed to interact with the bot."""
    return allowed is None or user_id in allowed
