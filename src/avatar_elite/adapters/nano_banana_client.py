"""Nano Banana (Gemini image model) backend over the generateContent API."""

import base64
import json
import logging
from dataclasses import dataclass

import httpx

from avatar_elite.domain.generation import GenerationResult
from avatar_elite.services.generation import ImageBackend

_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"

_logger = logging.getLogger(__name__)


@dataclass
class NanoBananaClient(ImageBackend):
    """Image backend calling Gemini's generateContent with inline image parts."""

    api_key: str
    http_client: httpx.AsyncClient
    model: str = "nano-banana-pro-preview"
    timeout_seconds: float = 180

    @classmethod
    def create(cls, api_key: str, model: str) -> "NanoBananaClient":
        """Create a backend with a managed httpx session."""
        return cls(api_key=api_key, http_client=httpx.AsyncClient(), model=model)

    async def generate_from_text(
        self, prompt: str, aspect_ratio: str
    ) -> GenerationResult:
        """Generate an image from a prompt alone."""
        return await self._generate(prompt, [], aspect_ratio)

    async def generate_from_images(
        self, images: list[bytes], prompt: str, aspect_ratio: str
    ) -> GenerationResult:
        """Generate an image conditioned on every reference image."""
        if not images:
            return await self.generate_from_text(prompt, aspect_ratio)
        return await self._generate(prompt, images, aspect_ratio)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _generate(
        self, prompt: str, images: list[bytes], aspect_ratio: str
    ) -> GenerationResult:
        # The model ignores generationConfig ratios, so the ratio rides in the prompt.
        text = prompt
        if aspect_ratio and aspect_ratio != "1:1":
            marker = f"aspect ratio {aspect_ratio}"
            if marker not in text:
                text = f"{text}, {marker}"
        parts: list[dict[str, object]] = [{"text": text}]
        for image in images:
            parts.append(
                {
                    "inline_data": {
                        "mime_type": "image/png",
                        "data": base64.b64encode(image).decode("utf-8"),
                    }
                }
            )
        _logger.info(
            "Calling %s with %s reference image(s), ratio %s",
            self.model,
            len(images),
            aspect_ratio,
        )
        try:
            response = await self.http_client.post(
                f"{_API_BASE}/{self.model}:generateContent",
                params={"key": self.api_key},
                json={"contents": [{"parts": parts}]},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            _logger.warning("Nano Banana request failed: %s", exc)
            return GenerationResult.failure(_error_message(exc.response))
        except httpx.HTTPError as exc:
            _logger.warning("Nano Banana request failed: %s", exc)
            return GenerationResult.failure(str(exc) or "Failed to generate image.")
        return parse_generate_content(response.json())


def parse_generate_content(payload: dict) -> GenerationResult:
    """Map a generateContent response to a generation result."""
    feedback = payload.get("promptFeedback") or {}
    block_reason = feedback.get("blockReason")
    if block_reason:
        _logger.warning("Blocked by safety filters: %s", block_reason)
        return GenerationResult.failure(f"Image generation blocked: {block_reason}")

    candidates = payload.get("candidates") or []
    if candidates:
        candidate = candidates[0]
        finish_reason = candidate.get("finishReason")
        if finish_reason and finish_reason != "STOP":
            _logger.warning("Generation stopped with reason: %s", finish_reason)
        parts = (candidate.get("content") or {}).get("parts") or []
        for part in parts:
            inline = part.get("inlineData") or part.get("inline_data") or {}
            if inline.get("data"):
                return GenerationResult.from_bytes(base64.b64decode(inline["data"]))
        if parts and parts[0].get("text"):
            return GenerationResult.failure(f"Model returned text: {parts[0]['text']}")

    snippet = json.dumps(payload)[:200]
    _logger.error("Unexpected generateContent response: %s", snippet)
    return GenerationResult.failure(f"Unexpected API response: {snippet}...")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    return f"HTTP {response.status_code}"
