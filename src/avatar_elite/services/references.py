"""Reference image aggregation and aspect ratio resolution."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from avatar_elite.adapters.telegram_file_client import TelegramFileClient
from avatar_elite.domain.models import Account
from avatar_elite.domain.sessions import ReferenceImage

DEFAULT_ASPECT_RATIO = "1:1"

_logger = logging.getLogger(__name__)


def resolve_aspect_ratio(setting: str, session_images: Sequence[ReferenceImage]) -> str:
    """Resolve the output aspect ratio.

    An explicit setting wins. With ``auto`` the first session image decides,
    formatted as ``width:height``; avatar images are never consulted.
    """
    if setting != "auto":
        return setting
    if session_images:
        first = session_images[0]
        return f"{first.width}:{first.height}"
    return DEFAULT_ASPECT_RATIO


@dataclass
class ReferenceAggregator:
    """Builds the ordered reference set sent to the backend."""

    file_client: TelegramFileClient

    async def build_reference_set(
        self,
        session_images: Sequence[ReferenceImage],
        account: Account | None,
    ) -> list[bytes]:
        """Return session image bytes followed by the user's avatar images."""
        references = [image.data for image in session_images]
        references.extend(await self.avatar_images(account))
        return references

    async def avatar_images(self, account: Account | None) -> list[bytes]:
        """Download the enabled avatar set; images that fail are skipped."""
        if account is None or not account.avatar_enabled or not account.avatar_images:
            return []
        images: list[bytes] = []
        for file_id in account.avatar_images:
            try:
                images.append(await self.file_client.download_file_bytes(file_id))
            except Exception:
                _logger.exception("Failed to download avatar image %s", file_id)
        return images
