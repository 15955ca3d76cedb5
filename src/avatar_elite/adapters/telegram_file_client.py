"""Telegram file download client."""

import logging
from dataclasses import dataclass
from typing import Protocol

import httpx

from avatar_elite.domain.errors import TransportDownloadError

_logger = logging.getLogger(__name__)


class TelegramFileClient(Protocol):
    """Interface for downloading Telegram files."""

    async def download_file_bytes(self, file_id: str) -> bytes:
        """Download a Telegram file and return its bytes."""


@dataclass
class HttpxTelegramFileClient(TelegramFileClient):
    """Downloads uploaded photos and stored avatar images by file id."""

    bot_token: str
    http_client: httpx.AsyncClient
    download_timeout: float = 30

    @classmethod
    def create(cls, bot_token: str) -> "HttpxTelegramFileClient":
        """Create a Telegram file client with a managed httpx session."""
        return cls(bot_token=bot_token, http_client=httpx.AsyncClient())

    async def download_file_bytes(self, file_id: str) -> bytes:
        """Resolve the file path with getFile, then fetch the bytes.

        Raises TransportDownloadError when either request fails.
        """
        try:
            file_path = await self._resolve_path(file_id)
            response = await self.http_client.get(
                self._file_url(file_path), timeout=self.download_timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            _logger.warning("Telegram download failed for %s: %s", file_id, exc)
            raise TransportDownloadError(file_id) from exc
        return response.content

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _resolve_path(self, file_id: str) -> str:
        response = await self.http_client.get(
            f"https://api.telegram.org/bot{self.bot_token}/getFile",
            params={"file_id": file_id},
            timeout=10,
        )
        response.raise_for_status()
        payload = response.json()
        file_path = (payload.get("result") or {}).get("file_path")
        if not payload.get("ok") or not file_path:
            raise TransportDownloadError(file_id)
        return file_path

    def _file_url(self, file_path: str) -> str:
        return f"https://api.telegram.org/file/bot{self.bot_token}/{file_path}"
