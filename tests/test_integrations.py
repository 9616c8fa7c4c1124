"""Tests for external integration connectivity helpers."""

from __future__ import annotations

import pytest
import pytest_mock

from stylestudio.api.styling_client import ServiceRequestError
from stylestudio.config.settings import Settings
from stylestudio.integrations.checks import check_credentials, run_all_checks


@pytest.fixture
def client_mock(mocker: pytest_mock.MockerFixture):
    client_cls = mocker.patch("stylestudio.integrations.checks.StylingServiceClient", autospec=True)
    instance = client_cls.return_value
    instance.close = mocker.AsyncMock(return_value=None)
    return client_cls


def test_missing_key_reported_with_remediation() -> None:
    result = check_credentials(Settings(api_key=""))

    assert not result.success
    assert "STYLESTUDIO_API_KEY" in result.message


@pytest.mark.asyncio
async def test_missing_key_skips_service_calls(client_mock) -> None:
    results = await run_all_checks(Settings(api_key=""))

    assert [(result.name, result.success) for result in results] == [("Credentials", False)]
    client_mock.assert_not_called()


@pytest.mark.asyncio
async def test_checks_both_configured_models(settings: Settings, client_mock, mocker: pytest_mock.MockerFixture) -> None:
    instance = client_mock.return_value
    instance.model_available = mocker.AsyncMock(side_effect=lambda model: model == settings.chat_model)

    results = await run_all_checks(settings)

    assert [(result.name, result.success) for result in results] == [
        ("Credentials", True),
        ("Chat model", True),
        ("Image model", False),
    ]
    assert settings.image_model in results[2].message
    checked = {call.args[0] for call in instance.model_available.await_args_list}
    assert checked == {settings.chat_model, settings.image_model}
    instance.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_service_error_is_reported(settings: Settings, client_mock, mocker: pytest_mock.MockerFixture) -> None:
    instance = client_mock.return_value
    instance.model_available = mocker.AsyncMock(side_effect=ServiceRequestError("Model lookup failed: 503"))

    results = await run_all_checks(settings)

    assert [result.message for result in results[1:]] == ["Model lookup failed: 503"] * 2
    assert not any(result.success for result in results[1:])
    instance.close.assert_awaited_once()
