"""Connectivity checks for the external styling service."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from stylestudio.api.styling_client import MISSING_KEY_MESSAGE, ServiceRequestError, StylingServiceClient
from stylestudio.config.settings import Settings, get_settings


@dataclass(slots=True)
class IntegrationCheckResult:
    """Outcome of one check as printed by ``scripts/check_integrations.py``."""

    name: str
    success: bool
    message: str


def check_credentials(settings: Settings) -> IntegrationCheckResult:
    """Report a missing API key without contacting the service."""

    if not settings.api_key:
        return IntegrationCheckResult(name="Credentials", success=False, message=MISSING_KEY_MESSAGE)
    return IntegrationCheckResult(name="Credentials", success=True, message="API key is set.")


async def check_model(client: StylingServiceClient, name: str, model: str) -> IntegrationCheckResult:
    try:
        available = await client.model_available(model)
    except ServiceRequestError as exc:
        return IntegrationCheckResult(name=name, success=False, message=str(exc))
    if available:
        return IntegrationCheckResult(name=name, success=True, message=f"{model} is available.")
    return IntegrationCheckResult(name=name, success=False, message=f"{model} is not offered by the service.")


async def run_all_checks(settings: Settings | None = None) -> list[IntegrationCheckResult]:
    """Check the credential, then the configured chat and image models concurrently."""

    settings = settings or get_settings()
    credentials = check_credentials(settings)
    if not credentials.success:
        return [credentials]

    client = StylingServiceClient(settings)
    try:
        models = await asyncio.gather(
            check_model(client, "Chat model", settings.chat_model),
            check_model(client, "Image model", settings.image_model),
        )
    finally:
        await client.close()
    return [credentials, *models]
