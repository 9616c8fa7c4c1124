"""Tests for the styling service client."""

from __future__ import annotations

import json
from types import SimpleNamespace

import httpx
import openai
import pytest
import pytest_mock

from stylestudio.api.styling_client import (
    BackgroundIsolationError,
    ConfigurationError,
    ServiceRequestError,
    StylingServiceClient,
)
from stylestudio.config.settings import Settings
from stylestudio.imggen.prompt_builder import GenerationMode, LayerHint, LayerInput
from stylestudio.storage.models import Category, Classification, EncodedImage

IMAGE = EncodedImage(payload="U0hJUlQ=", media_type="image/jpeg")


def _completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _image_response(url: str) -> dict:
    return {
        "choices": [
            {
                "message": {
                    "role": "assistant",
                    "content": "",
                    "images": [{"type": "image_url", "image_url": {"url": url}}],
                },
            },
        ],
    }


def _openai_returning(mocker: pytest_mock.MockerFixture, **create_kwargs):
    openai_client = mocker.Mock()
    openai_client.chat.completions.create = mocker.AsyncMock(**create_kwargs)
    return openai_client


def _http_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://styling.test")


@pytest.mark.asyncio
async def test_classify_parses_valid_answer(settings: Settings, mocker: pytest_mock.MockerFixture) -> None:
    openai_client = _openai_returning(
        mocker,
        return_value=_completion('{"category": "one piece", "description": "red floral summer dress"}'),
    )
    client = StylingServiceClient(settings, openai_client=openai_client, http_client=_http_client(lambda r: None))

    result = await client.classify(IMAGE)

    assert result == Classification(category=Category.ONE_PIECE, description="red floral summer dress")
    kwargs = openai_client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == settings.chat_model
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"][0]["content"][0]["image_url"]["url"] == "data:image/jpeg;base64,U0hJUlQ="


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["not json", '{"category": "Hat"}', "[]", None])
async def test_classify_malformed_answer_falls_back(
    settings: Settings,
    mocker: pytest_mock.MockerFixture,
    content: str | None,
) -> None:
    openai_client = _openai_returning(mocker, return_value=_completion(content))
    client = StylingServiceClient(settings, openai_client=openai_client, http_client=_http_client(lambda r: None))

    result = await client.classify(IMAGE)

    assert result == Classification(category=Category.ACCESSORY, description="Unknown item")


@pytest.mark.asyncio
async def test_classify_transport_failure_raises(settings: Settings, mocker: pytest_mock.MockerFixture) -> None:
    error = openai.APIConnectionError(request=httpx.Request("POST", "https://styling.test/chat/completions"))
    openai_client = _openai_returning(mocker, side_effect=error)
    client = StylingServiceClient(settings, openai_client=openai_client, http_client=_http_client(lambda r: None))

    with pytest.raises(ServiceRequestError):
        await client.classify(IMAGE)


@pytest.mark.asyncio
async def test_missing_key_fails_fast(mocker: pytest_mock.MockerFixture) -> None:
    openai_client = _openai_returning(mocker, return_value=_completion("{}"))
    client = StylingServiceClient(Settings(api_key=""), openai_client=openai_client)

    with pytest.raises(ConfigurationError, match="STYLESTUDIO_API_KEY"):
        await client.classify(IMAGE)
    with pytest.raises(ConfigurationError):
        await client.isolate_subject(IMAGE)
    with pytest.raises(ConfigurationError):
        await client.compose([LayerInput(IMAGE, LayerHint.BASE)], GenerationMode.AVATAR)

    openai_client.chat.completions.create.assert_not_awaited()


@pytest.mark.asyncio
async def test_isolate_returns_png_image(settings: Settings) -> None:
    requests: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, json=_image_response("data:image/png;base64,Q1VU"))

    client = StylingServiceClient(settings, http_client=_http_client(handler))

    result = await client.isolate_subject(IMAGE)

    assert result == EncodedImage(payload="Q1VU", media_type="image/png")
    assert requests[0]["model"] == settings.image_model
    assert requests[0]["modalities"] == ["image", "text"]
    await client.close()


@pytest.mark.asyncio
async def test_isolate_failure_raises_isolation_error(settings: Settings) -> None:
    client = StylingServiceClient(
        settings,
        http_client=_http_client(lambda request: httpx.Response(500, text="boom")),
    )

    with pytest.raises(BackgroundIsolationError) as exc_info:
        await client.isolate_subject(IMAGE)

    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_compose_sends_layering_notes(settings: Settings) -> None:
    requests: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(json.loads(request.content))
        return httpx.Response(200, json=_image_response("R0VO"))

    client = StylingServiceClient(settings, http_client=_http_client(handler))
    layers = [
        LayerInput(IMAGE, LayerHint.BASE),
        LayerInput(EncodedImage("Q09BVA==", "image/png"), LayerHint.OUTER),
    ]

    result = await client.compose(layers, GenerationMode.FLAT_LAY)

    assert result == "data:image/png;base64,R0VO"
    body = requests[0]
    texts = [part["text"] for part in body["messages"][0]["content"] if part["type"] == "text"]
    assert texts[0] == "Clothing Item 1 (Layering order: Inner/Base)."
    assert texts[1] == "Clothing Item 2 (Layering order: Outer)."
    assert body["image_config"] == {"aspect_ratio": "3:4"}


@pytest.mark.asyncio
async def test_compose_without_image_raises(settings: Settings) -> None:
    client = StylingServiceClient(
        settings,
        http_client=_http_client(
            lambda request: httpx.Response(200, json={"choices": [{"message": {"content": "Sorry"}}]}),
        ),
    )

    with pytest.raises(ServiceRequestError, match="No image generated."):
        await client.compose([LayerInput(IMAGE, LayerHint.BASE)], GenerationMode.AVATAR)


def test_image_payload_from_content_parts() -> None:
    payload = {
        "choices": [
            {
                "message": {
                    "content": [
                        {"type": "text", "text": "Here you go"},
                        {"type": "image_url", "image_url": {"url": "data:image/webp;base64,V0VCUA=="}},
                    ],
                },
            },
        ],
    }

    assert StylingServiceClient.image_payload_to_data_uri(payload) == "data:image/webp;base64,V0VCUA=="
    assert StylingServiceClient.image_payload_to_data_uri({"choices": []}) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"[]", b"null", b'{"choices": ["x"]}', b'{"choices": [{"message": "x"}]}'])
async def test_compose_malformed_body_raises_service_error(settings: Settings, body: bytes) -> None:
    client = StylingServiceClient(
        settings,
        http_client=_http_client(lambda request: httpx.Response(200, content=body)),
    )

    with pytest.raises(ServiceRequestError, match="No image generated."):
        await client.compose([LayerInput(IMAGE, LayerHint.BASE)], GenerationMode.AVATAR)


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [b"[]", b"null"])
async def test_isolate_malformed_body_raises_isolation_error(settings: Settings, body: bytes) -> None:
    client = StylingServiceClient(
        settings,
        http_client=_http_client(lambda request: httpx.Response(200, content=body)),
    )

    with pytest.raises(BackgroundIsolationError):
        await client.isolate_subject(IMAGE)


@pytest.mark.asyncio
async def test_isolate_rejects_remote_url(settings: Settings) -> None:
    client = StylingServiceClient(
        settings,
        http_client=_http_client(
            lambda request: httpx.Response(200, json=_image_response("https://cdn.styling.test/cut.png")),
        ),
    )

    with pytest.raises(BackgroundIsolationError, match="not inline data"):
        await client.isolate_subject(IMAGE)


@pytest.mark.asyncio
async def test_model_available(settings: Settings, mocker: pytest_mock.MockerFixture) -> None:
    openai_client = mocker.Mock()
    missing = openai.NotFoundError(
        "model not found",
        response=httpx.Response(404, request=httpx.Request("GET", "https://styling.test/models/nope")),
        body=None,
    )
    openai_client.models.retrieve = mocker.AsyncMock(
        side_effect=lambda model: SimpleNamespace(id=model) if model == settings.chat_model else _raise(missing),
    )
    client = StylingServiceClient(settings, openai_client=openai_client, http_client=_http_client(lambda r: None))

    assert await client.model_available(settings.chat_model) is True
    assert await client.model_available("nope") is False


def _raise(exc: Exception):
    raise exc
