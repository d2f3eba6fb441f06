"""Remote classification/generation service abstractions and the Gemini adapter."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

import google.generativeai as genai
from google.api_core import exceptions as core_exceptions

from logic.prompts import CLASSIFY_PROMPT, build_try_on_prompt
from tools.observability import instrument_remote_call
from wardrobe_app.config import WardrobeConfig
from wardrobe_app.errors import NotConfiguredError, RateLimitedError, TerminalServiceError

LOGGER = logging.getLogger(__name__)
JSON_GENERATION_CONFIG = {"response_mime_type": "application/json"}


def _extract_json(text: str) -> Dict[str, Any]:
    """Strip markdown code fences if present, then parse JSON."""

    text = text.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1].rsplit("```", 1)[0]
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        raise TerminalServiceError(f"Service returned invalid JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise TerminalServiceError("Service returned JSON that is not an object")
    return parsed


def _image_part(data: bytes, mime_type: str = "image/jpeg") -> Dict[str, Any]:
    return {"mime_type": mime_type, "data": data}


class StylistService(ABC):
    """The three logical calls the stylist client makes.

    Implementations report missing credentials with :class:`NotConfiguredError`
    and quota rejections with :class:`RateLimitedError` (or any error the
    backoff policy recognises as rate limited).
    """

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when credentials are available."""

    @abstractmethod
    async def classify(self, image: bytes) -> Dict[str, Any]:
        """Return the raw classification JSON object for one garment image."""

    @abstractmethod
    async def generate_view(
        self,
        reference: bytes,
        item_images: List[bytes],
        viewpoint_label: str,
        item_descriptions: List[str],
    ) -> bytes:
        """Render the reference person wearing the items from one viewpoint."""

    @abstractmethod
    async def suggest(self, prompt: str) -> Dict[str, Any]:
        """Return the raw outfit suggestion JSON object."""


class GeminiStylistService(StylistService):
    """Gemini-backed service using ``google-generativeai``."""

    def __init__(
        self,
        api_key: str | None = None,
        classify_model: str = "gemini-2.5-flash",
        image_model: str = "gemini-2.5-flash-image",
        timeout_seconds: float = 30.0,
    ) -> None:
        self.api_key = api_key.strip() if api_key else None
        self.classify_model = classify_model
        self.image_model = image_model
        self.timeout_seconds = timeout_seconds
        if self.api_key:
            genai.configure(api_key=self.api_key)
        else:
            LOGGER.warning("Gemini API key is missing; AI features will not work")

    @classmethod
    def from_config(cls, config: WardrobeConfig) -> "GeminiStylistService":
        return cls(
            api_key=config.api_key,
            classify_model=config.classify_model,
            image_model=config.image_model,
            timeout_seconds=config.request_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _model(self, model_name: str) -> genai.GenerativeModel:
        if not self.api_key:
            raise NotConfiguredError()
        return genai.GenerativeModel(model_name)

    async def _generate(self, model_name: str, contents: List[Any], **kwargs: Any) -> Any:
        model = self._model(model_name)
        try:
            return await model.generate_content_async(
                contents, request_options={"timeout": self.timeout_seconds}, **kwargs
            )
        except (core_exceptions.ResourceExhausted, core_exceptions.TooManyRequests) as exc:
            raise RateLimitedError(str(exc)) from exc
        except core_exceptions.GoogleAPIError as exc:
            raise TerminalServiceError(f"Gemini request failed: {exc}") from exc

    @staticmethod
    def _response_text(response: Any) -> str:
        try:
            text = response.text
        except ValueError as exc:
            raise TerminalServiceError(f"Gemini returned no usable text: {exc}") from exc
        if not text:
            raise TerminalServiceError("No response from AI")
        return text

    @instrument_remote_call("gemini.classify")
    async def classify(self, image: bytes) -> Dict[str, Any]:
        response = await self._generate(
            self.classify_model,
            [_image_part(image), CLASSIFY_PROMPT],
            generation_config=JSON_GENERATION_CONFIG,
        )
        return _extract_json(self._response_text(response))

    @instrument_remote_call("gemini.generate_view")
    async def generate_view(
        self,
        reference: bytes,
        item_images: List[bytes],
        viewpoint_label: str,
        item_descriptions: List[str],
    ) -> bytes:
        contents: List[Any] = [_image_part(reference)]
        contents.extend(_image_part(image) for image in item_images)
        contents.append(build_try_on_prompt(viewpoint_label, item_descriptions))
        response = await self._generate(self.image_model, contents)

        for candidate in getattr(response, "candidates", None) or []:
            content = getattr(candidate, "content", None)
            for part in getattr(content, "parts", None) or []:
                inline = getattr(part, "inline_data", None)
                data = getattr(inline, "data", None) if inline is not None else None
                if data:
                    return data
        raise TerminalServiceError(f"No image generated for {viewpoint_label}")

    @instrument_remote_call("gemini.suggest")
    async def suggest(self, prompt: str) -> Dict[str, Any]:
        response = await self._generate(
            self.classify_model, [prompt], generation_config=JSON_GENERATION_CONFIG
        )
        return _extract_json(self._response_text(response))


__all__ = ["GeminiStylistService", "StylistService"]
