"""Seedream backend over an OpenAI-style images API."""

import base64
import json
import logging
from dataclasses import dataclass

import httpx

from avatar_elite.domain.generation import GenerationResult
from avatar_elite.services.generation import ImageBackend

_SIZES = {"16:9": "1280x720", "9:16": "720x1280"}
_DEFAULT_SIZE = "1024x1024"

_logger = logging.getLogger(__name__)


def size_for_aspect_ratio(aspect_ratio: str) -> str:
    """Map an aspect ratio to one of the supported size buckets."""
    return _SIZES.get(aspect_ratio, _DEFAULT_SIZE)


@dataclass
class SeedreamClient(ImageBackend):
    """Image backend for Seedream's generations and edits endpoints."""

    api_key: str
    http_client: httpx.AsyncClient
    base_url: str = "https://ark.cn-beijing.volces.com/api/v3"
    model: str = "seedream-4-5-251128"

    @classmethod
    def create(cls, api_key: str, base_url: str, model: str) -> "SeedreamClient":
        """Create a backend with a managed httpx session."""
        return cls(
            api_key=api_key,
            http_client=httpx.AsyncClient(),
            base_url=base_url,
            model=model,
        )

    async def generate_from_text(
        self, prompt: str, aspect_ratio: str
    ) -> GenerationResult:
        """Generate via /images/generations."""
        size = size_for_aspect_ratio(aspect_ratio)
        _logger.info("Seedream text generation [%s]", size)
        try:
            response = await self.http_client.post(
                f"{self.base_url}/images/generations",
                headers=self._headers(),
                json={
                    "model": self.model,
                    "prompt": prompt,
                    "size": size,
                    "response_format": "b64_json",
                    "n": 1,
                },
                timeout=180,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            return _failure_from_exception(exc)
        return parse_images_response(response.json())

    async def generate_from_images(
        self, images: list[bytes], prompt: str, aspect_ratio: str
    ) -> GenerationResult:
        """Generate via /images/edits; the endpoint takes only the first image."""
        if not images:
            return await self.generate_from_text(prompt, aspect_ratio)
        size = size_for_aspect_ratio(aspect_ratio)
        _logger.info(
            "Seedream image edit [%s], using 1 of %s reference(s)", size, len(images)
        )
        try:
            response = await self.http_client.post(
                f"{self.base_url}/images/edits",
                headers=self._headers(),
                data={
                    "model": self.model,
                    "prompt": prompt,
                    "size": size,
                    "response_format": "b64_json",
                    "n": "1",
                },
                files={"image": ("image.png", images[0], "image/png")},
                timeout=90,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            return _failure_from_exception(exc)
        return parse_images_response(response.json())

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}


def parse_images_response(payload: dict) -> GenerationResult:
    """Accept the response shapes the images API has been seen to return."""
    items = payload.get("data") or []
    if items:
        item = items[0]
        if item.get("b64_json"):
            return GenerationResult.from_bytes(base64.b64decode(item["b64_json"]))
        url = item.get("url") or item.get("image_url")
        if url:
            return GenerationResult.from_url(url)
    images = payload.get("images") or []
    if images:
        return GenerationResult.from_url(images[0])
    output = payload.get("output") or {}
    if output.get("url"):
        return GenerationResult.from_url(output["url"])
    _logger.error("No image data in Seedream response")
    return GenerationResult.failure(
        "No image data. Full Response: " + json.dumps(payload)
    )


def _failure_from_exception(exc: httpx.HTTPError) -> GenerationResult:
    _logger.warning("Seedream request failed: %s", exc)
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            body = exc.response.json()
        except ValueError:
            body = None
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return GenerationResult.failure(str(error["message"]))
        return GenerationResult.failure(f"HTTP {exc.response.status_code}")
    return GenerationResult.failure(str(exc) or "Failed to generate image.")
