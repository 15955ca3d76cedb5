"""Domain models for the avatar bot."""

from dataclasses import dataclass, field

AVATAR_CAPACITY = 15
DEFAULT_STARTING_CREDITS = 15


@dataclass(frozen=True)
class Account:
    """Durable per-user record."""

    telegram_user_id: int
    credits: int
    avatar_images: list[str] = field(default_factory=list)
    avatar_enabled: bool = False


@dataclass(frozen=True)
class ConsumeResult:
    """Outcome of a credit consume attempt."""

    ok: bool
    remaining: int
