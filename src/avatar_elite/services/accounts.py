"""Durable account lifecycle and avatar list edits."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from avatar_elite.domain.errors import CapacityExceededError, StoreUnavailableError
from avatar_elite.domain.models import (
    AVATAR_CAPACITY,
    DEFAULT_STARTING_CREDITS,
    Account,
)
from avatar_elite.services.mutation_queue import MutationQueue

_logger = logging.getLogger(__name__)


class AccountRepository(Protocol):
    """Persistence interface for user accounts."""

    def get_or_create(self, telegram_user_id: int, starting_credits: int) -> Account:
        """Return the account, creating it with defaults if absent."""

    def read_credits(self, telegram_user_id: int) -> int | None:
        """Return the stored balance, or None if the account does not exist."""

    def write_credits(self, telegram_user_id: int, credits: int) -> None:
        """Persist a new balance."""

    def read_avatar_images(self, telegram_user_id: int) -> list[str]:
        """Return the stored avatar file ids."""

    def write_avatar_images(self, telegram_user_id: int, images: list[str]) -> None:
        """Persist the avatar file ids."""

    def write_avatar_enabled(self, telegram_user_id: int, enabled: bool) -> None:
        """Persist the avatar toggle."""


@dataclass
class AccountService:
    """Application service for account reads and serialized account edits."""

    repository: AccountRepository | None
    queue: MutationQueue = field(default_factory=MutationQueue)
    starting_credits: int = DEFAULT_STARTING_CREDITS

    async def get_or_create(self, telegram_user_id: int) -> Account:
        """Return the user's account, creating it on first contact."""
        if self.repository is None:
            return Account(
                telegram_user_id=telegram_user_id, credits=self.starting_credits
            )
        try:
            return await asyncio.to_thread(
                self.repository.get_or_create, telegram_user_id, self.starting_credits
            )
        except Exception as exc:
            _logger.exception("Failed to load account %s", telegram_user_id)
            raise StoreUnavailableError("Account store unavailable") from exc

    async def append_avatar_image(self, telegram_user_id: int, file_id: str) -> int:
        """Append an avatar image and return the new count.

        The capacity check runs inside the per-user critical section, so it
        always sees the count left by the previous append.
        """
        repository = self._require_repository()

        async def _append() -> int:
            images = await self._call(repository.read_avatar_images, telegram_user_id)
            if len(images) >= AVATAR_CAPACITY:
                raise CapacityExceededError(AVATAR_CAPACITY)
            updated = [*images, file_id]
            await self._call(repository.write_avatar_images, telegram_user_id, updated)
            _logger.info(
                "Avatar image saved for %s (%s/%s)",
                telegram_user_id,
                len(updated),
                AVATAR_CAPACITY,
            )
            return len(updated)

        return await self.queue.run(telegram_user_id, _append)

    async def clear_avatar_images(self, telegram_user_id: int) -> None:
        """Remove all avatar images."""
        repository = self._require_repository()

        async def _clear() -> None:
            await self._call(repository.write_avatar_images, telegram_user_id, [])

        await self.queue.run(telegram_user_id, _clear)

    async def set_avatar_enabled(self, telegram_user_id: int, enabled: bool) -> None:
        """Toggle whether avatar images join every generation."""
        repository = self._require_repository()

        async def _toggle() -> None:
            await self._call(repository.write_avatar_enabled, telegram_user_id, enabled)

        await self.queue.run(telegram_user_id, _toggle)

    def _require_repository(self) -> AccountRepository:
        if self.repository is None:
            raise StoreUnavailableError("Avatar storage is not configured")
        return self.repository

    async def _call(self, func, *args):  # type: ignore[no-untyped-def]
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as exc:
            _logger.exception("Account store call %s failed", func.__name__)
            raise StoreUnavailableError("Account store unavailable") from exc
