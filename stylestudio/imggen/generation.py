"""Styled image generation from the studio composition."""

from __future__ import annotations

import logging

from stylestudio.api.styling_client import ConfigurationError, ServiceRequestError, StylingServiceClient
from stylestudio.events import Observable
from stylestudio.imggen.prompt_builder import STATUS_MESSAGES, GenerationMode, LayerHint, LayerInput
from stylestudio.imgproc.normalize import decode_data_uri
from stylestudio.metrics.prometheus_exporter import (
    generation_failures_total,
    generation_in_flight,
    generation_requests_total,
)
from stylestudio.storage.models import GarmentRecord
from stylestudio.studio.composer import StudioComposer
from stylestudio.studio.processing import ProcessingTracker

logger = logging.getLogger(__name__)

EMPTY_SELECTION_MESSAGE = "Please select or upload items first."


class EmptySelectionError(ValueError):
    """Raised when generation is requested with an empty studio."""


class GenerationInProgressError(RuntimeError):
    """Raised when a generation (or another service call) is already running."""


class GenerationServiceError(RuntimeError):
    """Raised when the compose call fails."""


def build_layers(records: list[GarmentRecord], reference_image: str | None = None) -> list[LayerInput]:
    """First garment is the base layer, the rest are outer; the reference face goes last."""

    layers = [
        LayerInput(
            image=decode_data_uri(record.image),
            hint=LayerHint.BASE if index == 0 else LayerHint.OUTER,
        )
        for index, record in enumerate(records)
    ]
    if reference_image:
        layers.append(LayerInput(image=decode_data_uri(reference_image), hint=LayerHint.IDENTITY))
    return layers


class GenerationOrchestrator(Observable):
    """Owns the single-flight guard and the result/error state of styling requests."""

    def __init__(
        self,
        client: StylingServiceClient,
        composer: StudioComposer,
        processing: ProcessingTracker,
    ) -> None:
        super().__init__()
        self._client = client
        self._composer = composer
        self._processing = processing
        self._in_flight = False
        self.generated_image: str | None = None
        self.error: str | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def generate(self, mode: GenerationMode | str, reference_image: str | None = None) -> str:
        """
        Compose the studio contents into one styled image.

        A failed call keeps the previous image and records the message in
        ``error``; the processing flag is reset on every exit path.
        """

        mode = GenerationMode(mode)
        records = self._composer.items()
        if not records:
            self._set_error(EMPTY_SELECTION_MESSAGE)
            raise EmptySelectionError(EMPTY_SELECTION_MESSAGE)
        if self._in_flight or self._processing.is_loading:
            raise GenerationInProgressError("Another request is still being processed.")

        layers = build_layers(records, reference_image if mode is GenerationMode.AVATAR else None)
        # Taken before the first suspension point.
        self._in_flight = True
        generation_requests_total.labels(mode=mode.value).inc()
        generation_in_flight.inc()
        self._set_error(None)
        logger.info(
            "Generating %s image from %s garment(s)%s",
            mode.value,
            len(records),
            " with identity reference" if len(layers) > len(records) else "",
        )
        try:
            with self._processing.track(STATUS_MESSAGES[mode]):
                try:
                    result = await self._client.compose(layers, mode)
                except ServiceRequestError as exc:
                    generation_failures_total.labels(mode=mode.value).inc()
                    logger.error("Styling service failed for %s: %s", mode.value, exc)
                    self._set_error(str(exc))
                    raise GenerationServiceError(str(exc)) from exc
                except ConfigurationError as exc:
                    generation_failures_total.labels(mode=mode.value).inc()
                    logger.error("Styling service is not configured: %s", exc)
                    self._set_error(str(exc))
                    raise
        finally:
            self._in_flight = False
            generation_in_flight.dec()

        self.generated_image = result
        self._notify("generation.completed")
        return result

    def reset(self) -> None:
        """Forget the last result and error (entering a fresh studio session)."""

        self.generated_image = None
        self._set_error(None)

    def dismiss_error(self) -> None:
        self._set_error(None)

    def _set_error(self, message: str | None) -> None:
        if self.error == message:
            return
        self.error = message
        self._notify("generation.error")
