"""Supabase-backed account repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from avatar_elite.domain.models import Account
from avatar_elite.services.accounts import AccountRepository

_TABLE = "users"


@dataclass
class SupabaseAccountRepository(AccountRepository):
    """Supabase implementation for account persistence."""

    client: Client

    def get_or_create(self, telegram_user_id: int, starting_credits: int) -> Account:
        """Return the account row, upserting a default one if absent."""
        response = (
            self.client.table(_TABLE)
            .select("telegram_id, credits, avatar_images, avatar_enabled")
            .eq("telegram_id", str(telegram_user_id))
            .limit(1)
            .execute()
        )
        if response.data:
            return _to_account(response.data[0])

        created = (
            self.client.table(_TABLE)
            .upsert(
                {
                    "telegram_id": str(telegram_user_id),
                    "credits": starting_credits,
                    "avatar_images": [],
                    "avatar_enabled": False,
                },
                on_conflict="telegram_id",
            )
            .execute()
        )
        if not created.data:
            raise RuntimeError("Failed to create user in Supabase")
        return _to_account(created.data[0])

    def read_credits(self, telegram_user_id: int) -> int | None:
        """Return the stored credit balance."""
        row = self._select_one(telegram_user_id, "credits")
        if row is None:
            return None
        return int(row.get("credits") or 0)

    def write_credits(self, telegram_user_id: int, credits: int) -> None:
        """Update the credit balance."""
        self._update(telegram_user_id, {"credits": credits})

    def read_avatar_images(self, telegram_user_id: int) -> list[str]:
        """Return stored avatar file ids, empty if unset."""
        row = self._select_one(telegram_user_id, "avatar_images")
        if row is None:
            raise RuntimeError(f"No user row for {telegram_user_id}")
        return list(row.get("avatar_images") or [])

    def write_avatar_images(self, telegram_user_id: int, images: list[str]) -> None:
        """Replace the avatar file id list."""
        self._update(telegram_user_id, {"avatar_images": images})

    def write_avatar_enabled(self, telegram_user_id: int, enabled: bool) -> None:
        """Update the avatar toggle."""
        self._update(telegram_user_id, {"avatar_enabled": enabled})

    def _select_one(self, telegram_user_id: int, columns: str) -> dict | None:
        response = (
            self.client.table(_TABLE)
            .select(columns)
            .eq("telegram_id", str(telegram_user_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return response.data[0]

    def _update(self, telegram_user_id: int, values: dict[str, object]) -> None:
        payload = {**values, "updated_at": datetime.now(tz=UTC).isoformat()}
        self.client.table(_TABLE).update(payload).eq(
            "telegram_id", str(telegram_user_id)
        ).execute()


def _to_account(row: dict) -> Account:
    return Account(
        telegram_user_id=int(row["telegram_id"]),
        credits=int(row.get("credits") or 0),
        avatar_images=list(row.get("avatar_images") or []),
        avatar_enabled=bool(row.get("avatar_enabled")),
    )
