"""Async client for the generative styling and image-analysis service."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Sequence

import httpx
from openai import APIError, AsyncOpenAI, NotFoundError
from pydantic import BaseModel, ValidationError, field_validator

from stylestudio.config.settings import Settings
from stylestudio.imggen.prompt_builder import (
    ASPECT_RATIOS,
    AVATAR_FACE_PROMPT,
    CLASSIFICATION_PROMPT,
    ISOLATION_PROMPT,
    GenerationMode,
    LayerInput,
    PromptBuilder,
    image_part,
    text_part,
)
from stylestudio.imgproc.normalize import decode_data_uri
from stylestudio.metrics.prometheus_exporter import classification_fallback_total
from stylestudio.storage.models import (
    DEFAULT_CLASSIFICATION,
    Category,
    Classification,
    EncodedImage,
)

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = (
    "Styling service API key is not configured. "
    "Set STYLESTUDIO_API_KEY (or GEMINI_API_KEY) and restart."
)


class ConfigurationError(RuntimeError):
    """Raised when the service credential is missing."""


class ServiceRequestError(RuntimeError):
    """Raised when the service responds with an error or without a usable result."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class BackgroundIsolationError(ServiceRequestError):
    """Raised when the isolate-subject call fails."""


class ClassificationParseError(ValueError):
    """Raised when the classification body is not the expected JSON object."""


class ClassificationResponse(BaseModel):
    """Structured body returned by the classification model."""

    category: Category
    description: str = ""

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: Any) -> Category:
        if isinstance(value, Category):
            return value
        return Category.parse(str(value))


class StylingServiceClient:
    """Provides classify, isolate, compose and avatar calls."""

    def __init__(
        self,
        settings: Settings,
        *,
        http_client: httpx.AsyncClient | None = None,
        openai_client: AsyncOpenAI | None = None,
    ) -> None:
        self._settings = settings
        self._client = http_client
        self._openai = openai_client
        self._prompt_builder = PromptBuilder()

    def _ensure_clients(self) -> None:
        if not self._settings.api_key:
            raise ConfigurationError(MISSING_KEY_MESSAGE)
        base_url = self._settings.base_url.rstrip("/")
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=base_url,
                timeout=self._settings.request_timeout,
                headers={"Authorization": f"Bearer {self._settings.api_key}"},
            )
        if self._openai is None:
            self._openai = AsyncOpenAI(
                api_key=self._settings.api_key,
                base_url=base_url,
                timeout=self._settings.request_timeout,
            )

    async def close(self) -> None:
        """Close the underlying HTTP clients."""

        if self._client is not None:
            await self._client.aclose()
        if self._openai is not None:
            await self._openai.close()

    async def _request_json(self, method: str, endpoint: str, *, json_body: Mapping[str, Any]) -> Any:
        self._ensure_clients()
        assert self._client is not None
        try:
            response = await self._client.request(method, endpoint, json=json_body)
            response.raise_for_status()
            if not response.content:
                return {}
            return response.json()
        except httpx.TimeoutException as exc:
            raise ServiceRequestError("The styling service did not answer in time.") from exc
        except httpx.HTTPStatusError as exc:
            raise ServiceRequestError(
                f"Styling service returned {exc.response.status_code}: {exc.response.text}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ServiceRequestError(f"Styling service request failed: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise ServiceRequestError("Styling service returned a malformed response.") from exc

    async def classify(self, image: EncodedImage) -> Classification:
        """Suggest a category; malformed answers fall back to the default."""

        self._ensure_clients()
        assert self._openai is not None
        try:
            response = await self._openai.chat.completions.create(
                model=self._settings.chat_model,
                messages=[
                    {
                        "role": "user",
                        "content": [image_part(image), text_part(CLASSIFICATION_PROMPT)],
                    },
                ],
                response_format={"type": "json_object"},
            )
        except APIError as exc:
            raise ServiceRequestError(
                f"Classification request failed: {exc}",
                status_code=getattr(exc, "status_code", None),
            ) from exc

        content = response.choices[0].message.content if response.choices else None
        try:
            return self.parse_classification(content)
        except ClassificationParseError as exc:
            classification_fallback_total.labels(reason="unparseable").inc()
            logger.warning(
                "Classification fallback to %s: %s",
                DEFAULT_CLASSIFICATION.category.value,
                exc,
            )
            return DEFAULT_CLASSIFICATION

    @staticmethod
    def parse_classification(content: str | None) -> Classification:
        """Validate the JSON body of a classification answer."""

        try:
            parsed = json.loads(content or "{}")
        except json.JSONDecodeError as exc:
            raise ClassificationParseError(f"Response is not JSON: {content!r}") from exc
        try:
            validated = ClassificationResponse.model_validate(parsed)
        except ValidationError as exc:
            raise ClassificationParseError(f"Response does not match the schema: {parsed!r}") from exc
        return Classification(category=validated.category, description=validated.description)

    async def isolate_subject(self, image: EncodedImage) -> EncodedImage:
        """Return the garment cut out from its background."""

        self._ensure_clients()
        try:
            data_uri = await self._generate_image([image_part(image), text_part(ISOLATION_PROMPT)], "1:1")
        except ServiceRequestError as exc:
            raise BackgroundIsolationError(str(exc), status_code=exc.status_code) from exc
        # Only inline images can be stored; remote URLs are not fetched.
        if not data_uri.startswith("data:"):
            raise BackgroundIsolationError(f"Isolated image is not inline data: {data_uri[:64]}")
        return decode_data_uri(data_uri)

    async def compose(self, layers: Sequence[LayerInput], mode: GenerationMode) -> str:
        """Send the layered garments and return the styled image as a data URI."""

        parts = self._prompt_builder.build(layers, mode)
        return await self._generate_image(parts, ASPECT_RATIOS[mode])

    async def create_avatar(self, face: EncodedImage) -> str:
        """Turn a selfie into a stylized avatar headshot."""

        return await self._generate_image([image_part(face), text_part(AVATAR_FACE_PROMPT)], "1:1")

    async def _generate_image(self, parts: Sequence[Mapping[str, Any]], aspect_ratio: str) -> str:
        payload = {
            "model": self._settings.image_model,
            "modalities": ["image", "text"],
            "messages": [{"role": "user", "content": list(parts)}],
            "image_config": {"aspect_ratio": aspect_ratio},
        }
        result = await self._request_json("POST", "/chat/completions", json_body=payload)
        data_uri = self.image_payload_to_data_uri(result)
        if not data_uri:
            raise ServiceRequestError("No image generated.")
        return data_uri

    async def model_available(self, model: str) -> bool:
        """Return ``True`` when the service offers ``model``, ``False`` when it answers 404."""

        self._ensure_clients()
        assert self._openai is not None
        try:
            await self._openai.models.retrieve(model)
        except NotFoundError:
            return False
        except APIError as exc:
            raise ServiceRequestError(
                f"Model lookup failed: {exc}",
                status_code=getattr(exc, "status_code", None),
            ) from exc
        return True

    @staticmethod
    def image_payload_to_data_uri(payload: Any) -> str | None:
        """Extract the first image of a chat completions response as a PNG-tagged data URI."""

        if not isinstance(payload, Mapping):
            logger.warning("Image response is not a JSON object: %r", type(payload).__name__)
            return None
        choices = payload.get("choices") or []
        if not isinstance(choices, list) or not choices or not isinstance(choices[0], Mapping):
            logger.warning("Image response has no usable choices: %s", list(payload))
            return None
        message = choices[0].get("message") or {}
        if not isinstance(message, Mapping):
            logger.warning("Image response message is not an object")
            return None
        image_url = None

        images = message.get("images") or []
        if isinstance(images, list) and images:
            image_entry = images[0] or {}
            if isinstance(image_entry, Mapping):
                image_info = image_entry.get("image_url") or {}
                if isinstance(image_info, Mapping):
                    image_url = image_info.get("url")

        content = message.get("content")
        if image_url is None and isinstance(content, str) and content.startswith("data:"):
            image_url = content
        elif image_url is None and isinstance(content, list):
            for part in content:
                if (
                    isinstance(part, Mapping)
                    and part.get("type") == "image_url"
                    and isinstance(part.get("image_url"), Mapping)
                ):
                    image_url = part["image_url"].get("url")
                    if image_url:
                        break

        if not isinstance(image_url, str) or not image_url:
            logger.warning("Image response contains no image: %s", list(message))
            return None
        if image_url.startswith(("data:", "http://", "https://")):
            return image_url
        # Bare payloads are PNG by contract.
        return EncodedImage(payload=image_url, media_type="image/png").to_data_uri()
