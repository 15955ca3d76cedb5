"""Domain models for image generation requests and results."""

from dataclasses import dataclass, field
from enum import Enum

from avatar_elite.domain.sessions import ReferenceImage


@dataclass(frozen=True)
class GenerationRequest:
    """A billable request assembled from a user interaction."""

    telegram_user_id: int
    chat_id: int
    prompt: str
    quality: str
    aspect_ratio: str
    session_images: list[ReferenceImage] = field(default_factory=list)
    include_avatar: bool = True
    progress_text: str | None = None


@dataclass(frozen=True)
class GenerationResult:
    """Backend outcome: image bytes or URL on success, error text on failure."""

    success: bool
    image_bytes: bytes | None = None
    image_url: str | None = None
    error: str | None = None

    @classmethod
    def from_bytes(cls, data: bytes) -> "GenerationResult":
        return cls(success=True, image_bytes=data)

    @classmethod
    def from_url(cls, url: str) -> "GenerationResult":
        return cls(success=True, image_url=url)

    @classmethod
    def failure(cls, error: str) -> "GenerationResult":
        return cls(success=False, error=error)


class DeliveryKind(str, Enum):
    """How a generation result is sent back to the user."""

    PHOTO = "photo"
    DOCUMENT = "document"
    ERROR = "error"


@dataclass(frozen=True)
class Delivery:
    """Transport action for a generation result."""

    kind: DeliveryKind
    content: bytes | str
    filename: str | None = None


@dataclass(frozen=True)
class GenerationOutcome:
    """Summary of one orchestrated generation."""

    charged: bool
    remaining: int
    cost: int
    result: GenerationResult | None = None
    delivery: Delivery | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None and self.result.success
