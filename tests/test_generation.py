"""Tests for the generation orchestrator."""

import asyncio

import httpx
import pytest

from avatar_elite.domain.errors import StoreUnavailableError
from avatar_elite.domain.generation import (
    DeliveryKind,
    GenerationRequest,
    GenerationResult,
)
from avatar_elite.domain.sessions import ReferenceImage
from avatar_elite.services.generation import (
    DELIVERY_FAILED_TEXT,
    FIDELITY_SUFFIX,
    GenerationOrchestrator,
    enhance_prompt,
    plan_delivery,
)
from tests.conftest import (
    FakeImageBackend,
    FakeTelegramClient,
    FakeTelegramFileClient,
    InMemoryAccountRepository,
)

SESSION_IMAGE = ReferenceImage(data=b"s1", width=1920, height=1080)


def _request(**overrides) -> GenerationRequest:  # type: ignore[no-untyped-def]
    values = {
        "telegram_user_id": 1,
        "chat_id": 10,
        "prompt": "a knight",
        "quality": "1k",
        "aspect_ratio": "auto",
    }
    values.update(overrides)
    return GenerationRequest(**values)


@pytest.mark.parametrize(
    ("quality", "expected"),
    [
        ("1k", "a cat"),
        ("2k", "a cat, 2k resolution, highly detailed"),
        ("4k", "a cat, 4k resolution, ultra detailed, photorealistic"),
    ],
)
def test_enhance_prompt(quality: str, expected: str) -> None:
    assert enhance_prompt("a cat", quality) == expected


def test_plan_delivery() -> None:
    image = GenerationResult.from_bytes(b"png")

    assert plan_delivery(image, "1k").kind is DeliveryKind.PHOTO
    document = plan_delivery(image, "2k")
    assert document.kind is DeliveryKind.DOCUMENT
    assert document.filename == "generated_image_2k.png"
    error = plan_delivery(GenerationResult.failure("blocked"), "4k")
    assert error.kind is DeliveryKind.ERROR
    assert error.content == "❌ Error: blocked"


def test_insufficient_credits_skips_backend(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
    telegram_client: FakeTelegramClient,
) -> None:
    account_repository.add_account(1, 4)

    outcome = asyncio.run(orchestrator.generate(_request()))

    assert not outcome.charged
    assert outcome.remaining == 4
    assert backend.calls == []
    assert account_repository.credits(1) == 4
    assert "Insufficient Credits" in telegram_client.messages[-1][1]
    assert telegram_client.markups[-1] is not None


def test_avatar_references_follow_session_images(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
    file_client: FakeTelegramFileClient,
    telegram_client: FakeTelegramClient,
) -> None:
    account_repository.add_account(
        1, 20, avatar_images=["a1", "a2"], avatar_enabled=True
    )
    file_client.files.update({"a1": b"A1", "a2": b"A2"})

    outcome = asyncio.run(
        orchestrator.generate(_request(session_images=[SESSION_IMAGE]))
    )

    kind, images, prompt, ratio = backend.calls[0]
    assert kind == "images"
    assert images == [b"s1", b"A1", b"A2"]
    assert ratio == "1920:1080"
    assert prompt == "a knight" + FIDELITY_SUFFIX
    assert telegram_client.photos == [(10, b"generated")]
    assert outcome.charged
    assert outcome.remaining == 15
    assert account_repository.credits(1) == 15


def test_text_only_path_without_references(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
    telegram_client: FakeTelegramClient,
) -> None:
    account_repository.add_account(1, 20)

    asyncio.run(orchestrator.generate(_request(quality="4k")))

    assert backend.calls == [
        ("text", [], "a knight, 4k resolution, ultra detailed, photorealistic", "1:1")
    ]
    assert telegram_client.documents == [(10, b"generated", "generated_image_4k.png")]
    assert account_repository.credits(1) == 10


def test_edit_actions_skip_avatar_images(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
    file_client: FakeTelegramFileClient,
) -> None:
    account_repository.add_account(1, 20, avatar_images=["a1"], avatar_enabled=True)

    asyncio.run(
        orchestrator.generate(
            _request(session_images=[SESSION_IMAGE], include_avatar=False)
        )
    )

    assert backend.calls[0][1] == [b"s1"]
    assert file_client.downloads == []


def test_low_balance_warning_precedes_result(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    telegram_client: FakeTelegramClient,
) -> None:
    account_repository.add_account(1, 8)

    outcome = asyncio.run(orchestrator.generate(_request(progress_text="Working...")))

    assert outcome.remaining == 3
    texts = telegram_client.texts()
    assert "Running Low on Credits" in texts[0]
    assert texts[1] == "Working..."
    assert telegram_client.photos


def test_backend_failure_is_reported_and_not_refunded(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
    telegram_client: FakeTelegramClient,
) -> None:
    account_repository.add_account(1, 20)
    backend.result = GenerationResult.failure("Image generation blocked: SAFETY")

    outcome = asyncio.run(orchestrator.generate(_request()))

    assert outcome.charged
    assert not outcome.succeeded
    assert telegram_client.messages[-1][1] == (
        "❌ Error: Image generation blocked: SAFETY"
    )
    assert account_repository.credits(1) == 15
    assert len(backend.calls) == 1


def test_backend_exception_becomes_error_message(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
    telegram_client: FakeTelegramClient,
) -> None:
    account_repository.add_account(1, 20)
    backend.error = RuntimeError("timeout")

    outcome = asyncio.run(orchestrator.generate(_request()))

    assert outcome.delivery is not None
    assert outcome.delivery.kind is DeliveryKind.ERROR
    assert telegram_client.messages[-1][1] == "❌ Error: timeout"


def test_refund_on_backend_failure_when_enabled(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
) -> None:
    account_repository.add_account(1, 20)
    backend.result = GenerationResult.failure("boom")
    orchestrator.refund_on_backend_failure = True

    outcome = asyncio.run(orchestrator.generate(_request()))

    assert outcome.remaining == 20
    assert account_repository.credits(1) == 20


def test_redelivery_never_charges_again(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    telegram_client: FakeTelegramClient,
) -> None:
    account_repository.add_account(1, 20)
    outcome = asyncio.run(orchestrator.generate(_request()))
    assert outcome.delivery is not None

    asyncio.run(orchestrator.deliver(10, outcome.delivery))

    assert len(telegram_client.photos) == 2
    assert account_repository.credits(1) == 15


def test_url_results_are_forwarded(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
    telegram_client: FakeTelegramClient,
) -> None:
    account_repository.add_account(1, 20)
    backend.result = GenerationResult.from_url("https://cdn.test/image.png")

    asyncio.run(orchestrator.generate(_request(quality="2k")))

    assert telegram_client.documents == [
        (10, "https://cdn.test/image.png", "generated_image_2k.png")
    ]


def test_failed_low_balance_notice_still_generates(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
    telegram_client: FakeTelegramClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    account_repository.add_account(1, 6)
    orchestrator.refund_on_backend_failure = True
    original = telegram_client.send_message

    async def flaky_send_message(  # type: ignore[no-untyped-def]
        chat_id: int, text: str, **kwargs
    ) -> None:
        if "Running Low" in text:
            raise httpx.ReadTimeout("timed out")
        await original(chat_id, text, **kwargs)

    monkeypatch.setattr(telegram_client, "send_message", flaky_send_message)

    outcome = asyncio.run(orchestrator.generate(_request(progress_text="Working...")))

    assert outcome.succeeded
    assert len(backend.calls) == 1
    assert telegram_client.texts() == ["Working..."]
    assert telegram_client.photos == [(10, b"generated")]
    assert account_repository.credits(1) == 1


def test_failed_delivery_is_reported_and_refunded(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    telegram_client: FakeTelegramClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    account_repository.add_account(1, 20)
    orchestrator.refund_on_backend_failure = True

    async def failing_send_photo(chat_id: int, photo: bytes | str) -> None:
        raise httpx.ReadTimeout("timed out")

    monkeypatch.setattr(telegram_client, "send_photo", failing_send_photo)

    outcome = asyncio.run(orchestrator.generate(_request()))

    assert outcome.charged
    assert not outcome.succeeded
    assert outcome.remaining == 20
    assert account_repository.credits(1) == 20
    assert telegram_client.texts() == [f"❌ Error: {DELIVERY_FAILED_TEXT}"]


def test_failed_delivery_without_refund_keeps_charge(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    telegram_client: FakeTelegramClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    account_repository.add_account(1, 20)

    async def failing(*args, **kwargs) -> None:  # type: ignore[no-untyped-def]
        raise httpx.ConnectError("down")

    monkeypatch.setattr(telegram_client, "send_photo", failing)
    monkeypatch.setattr(telegram_client, "send_message", failing)

    outcome = asyncio.run(orchestrator.generate(_request()))

    assert not outcome.succeeded
    assert outcome.remaining == 15
    assert account_repository.credits(1) == 15


def test_unavailable_store_generates_without_avatar(
    orchestrator: GenerationOrchestrator,
    account_repository: InMemoryAccountRepository,
    backend: FakeImageBackend,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    account_repository.add_account(1, 20, avatar_images=["a1"], avatar_enabled=True)

    async def unavailable(telegram_user_id: int) -> None:
        raise StoreUnavailableError("get_or_create")

    monkeypatch.setattr(orchestrator.accounts, "get_or_create", unavailable)

    outcome = asyncio.run(orchestrator.generate(_request()))

    assert outcome.succeeded
    assert backend.calls[0][0] == "text"
