"""Shared test fixtures."""

import time
from dataclasses import dataclass, field

import pytest

from avatar_elite.adapters.telegram_client import TelegramClient
from avatar_elite.config import Settings
from avatar_elite.containers import AppContainer
from avatar_elite.domain.generation import GenerationResult
from avatar_elite.domain.models import Account
from avatar_elite.domain.payments import CreditPack
from avatar_elite.services.accounts import AccountRepository, AccountService
from avatar_elite.services.callbacks import CallbackHandler
from avatar_elite.services.commands import CommandHandler
from avatar_elite.services.generation import GenerationOrchestrator, ImageBackend
from avatar_elite.services.ledger import CreditLedger
from avatar_elite.services.messages import MessageHandler
from avatar_elite.services.mutation_queue import MutationQueue
from avatar_elite.services.payments import CheckoutClient, PaymentService
from avatar_elite.services.references import ReferenceAggregator
from avatar_elite.services.sessions import InMemorySessionStore, SessionService


@dataclass
class InMemoryAccountRepository(AccountRepository):
    """In-memory account repository for tests.

    ``latency`` sleeps inside reads so unserialized callers would interleave.
    """

    rows: dict[int, dict[str, object]] = field(default_factory=dict)
    latency: float = 0.0
    fail_reads: bool = False
    fail_writes: bool = False

    def add_account(
        self,
        telegram_user_id: int,
        credits: int,
        avatar_images: list[str] | None = None,
        avatar_enabled: bool = False,
    ) -> None:
        self.rows[telegram_user_id] = {
            "credits": credits,
            "avatar_images": list(avatar_images or []),
            "avatar_enabled": avatar_enabled,
        }

    def get_or_create(self, telegram_user_id: int, starting_credits: int) -> Account:
        if self.fail_reads:
            raise RuntimeError("store down")
        if telegram_user_id not in self.rows:
            self.add_account(telegram_user_id, starting_credits)
        row = self.rows[telegram_user_id]
        return Account(
            telegram_user_id=telegram_user_id,
            credits=int(row["credits"]),
            avatar_images=list(row["avatar_images"]),
            avatar_enabled=bool(row["avatar_enabled"]),
        )

    def read_credits(self, telegram_user_id: int) -> int | None:
        if self.fail_reads:
            raise RuntimeError("store down")
        row = self.rows.get(telegram_user_id)
        time.sleep(self.latency)
        return None if row is None else int(row["credits"])

    def write_credits(self, telegram_user_id: int, credits: int) -> None:
        self._write(telegram_user_id, "credits", credits)

    def read_avatar_images(self, telegram_user_id: int) -> list[str]:
        if self.fail_reads:
            raise RuntimeError("store down")
        images = list(self.rows[telegram_user_id]["avatar_images"])
        time.sleep(self.latency)
        return images

    def write_avatar_images(self, telegram_user_id: int, images: list[str]) -> None:
        self._write(telegram_user_id, "avatar_images", list(images))

    def write_avatar_enabled(self, telegram_user_id: int, enabled: bool) -> None:
        self._write(telegram_user_id, "avatar_enabled", enabled)

    def credits(self, telegram_user_id: int) -> int:
        return int(self.rows[telegram_user_id]["credits"])

    def _write(self, telegram_user_id: int, column: str, value: object) -> None:
        if self.fail_writes:
            raise RuntimeError("store down")
        self.rows[telegram_user_id][column] = value


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records everything it is asked to send."""

    messages: list[tuple[int, str]] = field(default_factory=list)
    markups: list[dict | None] = field(default_factory=list)
    photos: list[tuple[int, bytes | str]] = field(default_factory=list)
    documents: list[tuple[int, bytes | str, str | None]] = field(default_factory=list)
    edits: list[tuple[int, int, str]] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    commands: list[dict[str, str]] | None = None
    menu_button: dict[str, object] | None = None

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_markup: dict | None = None,
        parse_mode: str | None = None,
    ) -> None:
        self.messages.append((chat_id, text))
        self.markups.append(reply_markup)

    async def send_photo(self, chat_id: int, photo: bytes | str) -> None:
        self.photos.append((chat_id, photo))

    async def send_document(
        self, chat_id: int, document: bytes | str, filename: str | None = None
    ) -> None:
        self.documents.append((chat_id, document, filename))

    async def edit_message_text(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
        parse_mode: str | None = None,
    ) -> None:
        self.edits.append((chat_id, message_id, text))

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        self.callbacks.append((callback_query_id, text))

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_chat_menu_button(
        self, menu_button: dict[str, object] | None = None
    ) -> None:
        self.menu_button = menu_button

    def texts(self) -> list[str]:
        return [text for _, text in self.messages]


@dataclass
class FakeTelegramFileClient:
    """Fake Telegram file client serving bytes by file id."""

    files: dict[str, bytes] = field(default_factory=dict)
    content: bytes = b"fake-image-bytes"
    failing: set[str] = field(default_factory=set)
    downloads: list[str] = field(default_factory=list)

    async def download_file_bytes(self, file_id: str) -> bytes:
        self.downloads.append(file_id)
        if file_id in self.failing:
            raise RuntimeError(f"cannot download {file_id}")
        return self.files.get(file_id, self.content)


@dataclass
class FakeImageBackend(ImageBackend):
    """Fake image backend recording each call."""

    result: GenerationResult = field(
        default_factory=lambda: GenerationResult.from_bytes(b"generated")
    )
    error: Exception | None = None
    calls: list[tuple[str, list[bytes], str, str]] = field(default_factory=list)

    async def generate_from_text(
        self, prompt: str, aspect_ratio: str
    ) -> GenerationResult:
        self.calls.append(("text", [], prompt, aspect_ratio))
        if self.error is not None:
            raise self.error
        return self.result

    async def generate_from_images(
        self, images: list[bytes], prompt: str, aspect_ratio: str
    ) -> GenerationResult:
        self.calls.append(("images", list(images), prompt, aspect_ratio))
        if self.error is not None:
            raise self.error
        return self.result


@dataclass
class FakeCheckoutClient(CheckoutClient):
    """Fake payment provider returning a fixed URL."""

    url: str = "https://checkout.test/session"
    error: Exception | None = None
    calls: list[tuple[int, str]] = field(default_factory=list)

    async def create_checkout_session(
        self, telegram_user_id: int, pack: CreditPack
    ) -> str:
        self.calls.append((telegram_user_id, pack.id))
        if self.error is not None:
            raise self.error
        return self.url


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        nano_banana_api_key="nano-key",
        stripe_secret_key="sk_test",
        stripe_webhook_secret="whsec_test",
    )


@pytest.fixture
def account_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository()


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def file_client() -> FakeTelegramFileClient:
    return FakeTelegramFileClient()


@pytest.fixture
def backend() -> FakeImageBackend:
    return FakeImageBackend()


@pytest.fixture
def checkout_client() -> FakeCheckoutClient:
    return FakeCheckoutClient()


@pytest.fixture
def accounts(account_repository: InMemoryAccountRepository) -> AccountService:
    return AccountService(account_repository, queue=MutationQueue())


@pytest.fixture
def ledger(
    account_repository: InMemoryAccountRepository, accounts: AccountService
) -> CreditLedger:
    return CreditLedger(account_repository, queue=accounts.queue)


@pytest.fixture
def session_service() -> SessionService:
    return SessionService(InMemorySessionStore())


@pytest.fixture
def orchestrator(
    ledger: CreditLedger,
    accounts: AccountService,
    backend: FakeImageBackend,
    file_client: FakeTelegramFileClient,
    telegram_client: FakeTelegramClient,
) -> GenerationOrchestrator:
    return GenerationOrchestrator(
        ledger=ledger,
        accounts=accounts,
        references=ReferenceAggregator(file_client),
        backend=backend,
        telegram_client=telegram_client,
    )


@pytest.fixture
def payment_service(
    ledger: CreditLedger,
    telegram_client: FakeTelegramClient,
    checkout_client: FakeCheckoutClient,
) -> PaymentService:
    return PaymentService(
        ledger=ledger,
        telegram_client=telegram_client,
        checkout_client=checkout_client,
    )


@pytest.fixture
def message_handler(
    session_service: SessionService,
    accounts: AccountService,
    orchestrator: GenerationOrchestrator,
    telegram_client: FakeTelegramClient,
    file_client: FakeTelegramFileClient,
) -> MessageHandler:
    return MessageHandler(
        sessions=session_service,
        accounts=accounts,
        orchestrator=orchestrator,
        telegram_client=telegram_client,
        telegram_file_client=file_client,
    )


@pytest.fixture
def callback_handler(
    session_service: SessionService,
    accounts: AccountService,
    orchestrator: GenerationOrchestrator,
    payment_service: PaymentService,
    telegram_client: FakeTelegramClient,
) -> CallbackHandler:
    return CallbackHandler(
        sessions=session_service,
        accounts=accounts,
        orchestrator=orchestrator,
        payments=payment_service,
        telegram_client=telegram_client,
    )


@pytest.fixture
def command_handler(
    accounts: AccountService,
    session_service: SessionService,
    telegram_client: FakeTelegramClient,
) -> CommandHandler:
    return CommandHandler(accounts, session_service, telegram_client)


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    telegram_client: FakeTelegramClient,
    file_client: FakeTelegramFileClient,
    accounts: AccountService,
    ledger: CreditLedger,
    session_service: SessionService,
    orchestrator: GenerationOrchestrator,
    payment_service: PaymentService,
    command_handler: CommandHandler,
    message_handler: MessageHandler,
    callback_handler: CallbackHandler,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        telegram_file_client=file_client,
        accounts=accounts,
        ledger=ledger,
        session_service=session_service,
        orchestrator=orchestrator,
        payment_service=payment_service,
        command_handler=command_handler,
        message_handler=message_handler,
        callback_handler=callback_handler,
        close_resources=close_resources,
    )
