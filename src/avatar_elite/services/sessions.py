"""Per-user session store and the session state machine."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Protocol

from avatar_elite.domain.errors import CapacityExceededError
from avatar_elite.domain.sessions import (
    ASPECT_RATIOS,
    MAX_SESSION_REFERENCES,
    QUALITY_TIERS,
    ReferenceImage,
    Session,
    SessionMode,
)


class SessionStore(Protocol):
    """Keyed storage for ephemeral sessions."""

    def get(self, telegram_user_id: int) -> Session:
        """Return the user's session, creating it on first access."""


@dataclass
class InMemorySessionStore(SessionStore):
    """Process-local session store with optional idle eviction.

    With a TTL set, ``get`` sweeps idle sessions at most once per
    ``sweep_interval_seconds``.
    """

    idle_ttl_seconds: int | None = None
    sweep_interval_seconds: float = 60
    _sessions: dict[int, Session] = field(default_factory=dict)
    _last_sweep_at: datetime | None = None

    def get(self, telegram_user_id: int) -> Session:
        """Return a live session, replacing one that has been idle too long."""
        now = datetime.now(tz=UTC)
        if self._sweep_due(now):
            self.evict_idle(now)
        session = self._sessions.get(telegram_user_id)
        if session is not None and self._expired(session, now):
            session = None
        if session is None:
            session = Session()
            self._sessions[telegram_user_id] = session
        session.last_seen_at = now
        return session

    def evict_idle(self, now: datetime | None = None) -> int:
        """Drop idle sessions and return how many were removed."""
        now = now or datetime.now(tz=UTC)
        self._last_sweep_at = now
        expired = [
            user_id
            for user_id, session in self._sessions.items()
            if self._expired(session, now)
        ]
        for user_id in expired:
            del self._sessions[user_id]
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    def _sweep_due(self, now: datetime) -> bool:
        if self.idle_ttl_seconds is None:
            return False
        if self._last_sweep_at is None:
            return True
        elapsed = now - self._last_sweep_at
        return elapsed >= timedelta(seconds=self.sweep_interval_seconds)

    def _expired(self, session: Session, now: datetime) -> bool:
        if self.idle_ttl_seconds is None:
            return False
        return now - session.last_seen_at > timedelta(seconds=self.idle_ttl_seconds)


class PhotoRoute(str, Enum):
    """What an inbound photo means in the current mode."""

    AVATAR = "avatar"
    EDIT_SUBJECT = "edit_subject"
    ACCUMULATE = "accumulate"
    GENERATE = "generate"


@dataclass
class SessionService:
    """State machine for how user input is interpreted.

    Mode changes only come from explicit menu selections, except that a
    successful prompt over accumulated references returns to NORMAL.
    """

    store: SessionStore

    def get(self, telegram_user_id: int) -> Session:
        return self.store.get(telegram_user_id)

    def set_aspect_ratio(self, telegram_user_id: int, ratio: str) -> bool:
        """Set the aspect ratio; unknown values are ignored."""
        if ratio not in ASPECT_RATIOS:
            return False
        self.store.get(telegram_user_id).aspect_ratio = ratio
        return True

    def set_quality(self, telegram_user_id: int, quality: str) -> bool:
        """Set the quality tier; unknown values are ignored."""
        if quality not in QUALITY_TIERS:
            return False
        self.store.get(telegram_user_id).quality = quality
        return True

    def start_reference_upload(self, telegram_user_id: int) -> None:
        self.store.get(telegram_user_id).mode = SessionMode.AWAITING_REFERENCES

    def clear_references(self, telegram_user_id: int) -> None:
        session = self.store.get(telegram_user_id)
        session.references = []
        session.mode = SessionMode.NORMAL

    def start_avatar_upload(self, telegram_user_id: int) -> None:
        self.store.get(telegram_user_id).mode = SessionMode.AVATAR_UPLOAD

    def return_to_normal(self, telegram_user_id: int) -> None:
        self.store.get(telegram_user_id).mode = SessionMode.NORMAL

    def enter_edit_mode(self, telegram_user_id: int) -> None:
        session = self.store.get(telegram_user_id)
        session.mode = SessionMode.EDIT_MODE
        session.editing_subject = None

    def enter_trending_theme(self, telegram_user_id: int) -> None:
        session = self.store.get(telegram_user_id)
        session.mode = SessionMode.TRENDING_THEME
        session.editing_subject = None

    def route_photo(self, telegram_user_id: int, has_caption: bool) -> PhotoRoute:
        """Decide how a photo is handled; only a captioned photo is billable."""
        mode = self.store.get(telegram_user_id).mode
        if mode is SessionMode.AVATAR_UPLOAD:
            return PhotoRoute.AVATAR
        if mode in {SessionMode.EDIT_MODE, SessionMode.TRENDING_THEME}:
            return PhotoRoute.EDIT_SUBJECT
        if has_caption:
            return PhotoRoute.GENERATE
        return PhotoRoute.ACCUMULATE

    def add_reference(self, telegram_user_id: int, image: ReferenceImage) -> int:
        """Append a session reference and return the new count."""
        session = self.store.get(telegram_user_id)
        if session.references_full:
            raise CapacityExceededError(MAX_SESSION_REFERENCES)
        session.references.append(image)
        return len(session.references)

    def set_editing_subject(
        self, telegram_user_id: int, image: ReferenceImage
    ) -> SessionMode:
        """Hold the image for an edit or theme action and return the mode."""
        session = self.store.get(telegram_user_id)
        session.editing_subject = image
        return session.mode

    def complete_prompt_generation(self, telegram_user_id: int) -> None:
        """Leave reference upload mode after a successful prompt over references."""
        session = self.store.get(telegram_user_id)
        if session.mode is SessionMode.AWAITING_REFERENCES:
            session.mode = SessionMode.NORMAL
