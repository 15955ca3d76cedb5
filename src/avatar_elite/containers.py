"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from supabase import create_client

from avatar_elite.adapters.nano_banana_client import NanoBananaClient
from avatar_elite.adapters.seedream_client import SeedreamClient
from avatar_elite.adapters.stripe_client import StripeCheckoutClient
from avatar_elite.adapters.supabase_account_repository import (
    SupabaseAccountRepository,
)
from avatar_elite.adapters.telegram_client import (
    HttpxTelegramClient,
    TelegramClient,
)
from avatar_elite.adapters.telegram_file_client import (
    HttpxTelegramFileClient,
    TelegramFileClient,
)
from avatar_elite.config import Settings
from avatar_elite.services.accounts import AccountService
from avatar_elite.services.callbacks import CallbackHandler
from avatar_elite.services.commands import CommandHandler
from avatar_elite.services.generation import GenerationOrchestrator
from avatar_elite.services.ledger import CreditLedger
from avatar_elite.services.messages import MessageHandler
from avatar_elite.services.mutation_queue import MutationQueue
from avatar_elite.services.payments import PaymentService
from avatar_elite.services.references import ReferenceAggregator
from avatar_elite.services.sessions import InMemorySessionStore, SessionService
from avatar_elite.services.updates import RecentUpdates

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient
    telegram_file_client: TelegramFileClient
    accounts: AccountService
    ledger: CreditLedger
    session_service: SessionService
    orchestrator: GenerationOrchestrator
    payment_service: PaymentService
    command_handler: CommandHandler
    message_handler: MessageHandler
    callback_handler: CallbackHandler
    close_resources: Callable[[], Awaitable[None]]
    recent_updates: RecentUpdates = field(default_factory=RecentUpdates)


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()

    repository = None
    if resolved_settings.store_configured:
        supabase_client = create_client(
            resolved_settings.supabase_url, resolved_settings.supabase_service_key
        )
        repository = SupabaseAccountRepository(supabase_client)
    else:
        _logger.warning("Supabase is not configured; running without account store")

    # Shared by the ledger and avatar edits.
    queue = MutationQueue()
    accounts = AccountService(
        repository, queue=queue, starting_credits=resolved_settings.starting_credits
    )
    ledger = CreditLedger(
        repository, queue=queue, starting_credits=resolved_settings.starting_credits
    )
    session_service = SessionService(
        InMemorySessionStore(
            idle_ttl_seconds=resolved_settings.session_idle_ttl_seconds
        )
    )

    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)
    telegram_file_client = HttpxTelegramFileClient.create(
        resolved_settings.telegram_bot_token
    )
    backend: NanoBananaClient | SeedreamClient
    if resolved_settings.image_backend == "seedream":
        backend = SeedreamClient.create(
            api_key=resolved_settings.seedream_api_key or "",
            base_url=resolved_settings.seedream_base_url,
            model=resolved_settings.seedream_model,
        )
    else:
        backend = NanoBananaClient.create(
            api_key=resolved_settings.nano_banana_api_key or "",
            model=resolved_settings.nano_banana_model,
        )
    checkout_client = None
    if resolved_settings.stripe_secret_key:
        checkout_client = StripeCheckoutClient(
            secret_key=resolved_settings.stripe_secret_key,
            bot_username=resolved_settings.bot_username,
        )

    orchestrator = GenerationOrchestrator(
        ledger=ledger,
        accounts=accounts,
        references=ReferenceAggregator(telegram_file_client),
        backend=backend,
        telegram_client=telegram_client,
        refund_on_backend_failure=resolved_settings.refund_on_backend_failure,
    )
    payment_service = PaymentService(
        ledger=ledger,
        telegram_client=telegram_client,
        checkout_client=checkout_client,
    )

    async def close_resources() -> None:
        await telegram_client.close()
        await telegram_file_client.close()
        await backend.close()

    return AppContainer(
        settings=resolved_settings,
        telegram_client=telegram_client,
        telegram_file_client=telegram_file_client,
        accounts=accounts,
        ledger=ledger,
        session_service=session_service,
        orchestrator=orchestrator,
        payment_service=payment_service,
        command_handler=CommandHandler(accounts, session_service, telegram_client),
        message_handler=MessageHandler(
            sessions=session_service,
            accounts=accounts,
            orchestrator=orchestrator,
            telegram_client=telegram_client,
            telegram_file_client=telegram_file_client,
        ),
        callback_handler=CallbackHandler(
            sessions=session_service,
            accounts=accounts,
            orchestrator=orchestrator,
            payments=payment_service,
            telegram_client=telegram_client,
        ),
        close_resources=close_resources,
    )
