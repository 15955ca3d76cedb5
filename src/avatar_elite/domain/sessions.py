"""Domain models for in-process chat sessions."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum

MAX_SESSION_REFERENCES = 5
ASPECT_RATIOS = ("auto", "1:1", "16:9", "9:16")
QUALITY_TIERS = ("1k", "2k", "4k")


class SessionMode(str, Enum):
    """How the next photo or text from the user is interpreted."""

    NORMAL = "normal"
    AWAITING_REFERENCES = "awaiting_references"
    AVATAR_UPLOAD = "avatar_upload"
    EDIT_MODE = "edit_mode"
    TRENDING_THEME = "trending_theme"


@dataclass(frozen=True)
class ReferenceImage:
    """Downloaded image used as conditioning input."""

    data: bytes
    width: int
    height: int


@dataclass
class Session:
    """Ephemeral per-user interaction state."""

    mode: SessionMode = SessionMode.NORMAL
    aspect_ratio: str = "auto"
    quality: str = "1k"
    references: list[ReferenceImage] = field(default_factory=list)
    editing_subject: ReferenceImage | None = None
    last_seen_at: datetime = field(default_factory=lambda: datetime.now(tz=UTC))

    @property
    def references_full(self) -> bool:
        return len(self.references) >= MAX_SESSION_REFERENCES
