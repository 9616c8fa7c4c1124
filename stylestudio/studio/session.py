"""Session facade wiring the studio components together."""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from stylestudio.api.styling_client import ConfigurationError, ServiceRequestError, StylingServiceClient
from stylestudio.config.settings import Settings, get_settings
from stylestudio.events import Listener
from stylestudio.imggen.generation import (
    EmptySelectionError,
    GenerationInProgressError,
    GenerationOrchestrator,
    GenerationServiceError,
)
from stylestudio.imggen.prompt_builder import GenerationMode
from stylestudio.imgproc.normalize import ImageNormalizer, ImageReadError
from stylestudio.storage.models import Category, GarmentRecord, PendingUpload, RawImage
from stylestudio.storage.wardrobe import GarmentStore
from stylestudio.studio.composer import CompositionPolicy, OrderedComposer, StudioComposer, create_composer
from stylestudio.studio.processing import ProcessingTracker
from stylestudio.studio.profile import ProfileService
from stylestudio.studio.queue import CategorizationQueue
from stylestudio.studio.selection import SelectionController
from stylestudio.studio.upload import UploadPipeline, UploadReport, upload_to_studio

logger = logging.getLogger(__name__)


class StyleStudio:
    """
    Explicit store object for one user session.

    Presentation code calls the typed operations below and subscribes for
    change events instead of reaching into module-level state. Errors of
    user-initiated actions become a dismissible ``error`` notice; wardrobe,
    studio and profile state survive any single failure.
    """

    def __init__(
        self,
        client: StylingServiceClient,
        settings: Settings | None = None,
        *,
        composer: StudioComposer | None = None,
        normalizer: ImageNormalizer | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._client = client
        self._normalizer = normalizer or ImageNormalizer()
        self.processing = ProcessingTracker()
        self.wardrobe = GarmentStore()
        self.queue = CategorizationQueue(self.wardrobe)
        self.composer = composer or create_composer(self._settings.composition_policy)
        self.selection = SelectionController(self.wardrobe, self.composer)
        self.orchestrator = GenerationOrchestrator(client, self.composer, self.processing)
        self.profile = ProfileService(client, self.processing, self._normalizer)
        self.pipeline = UploadPipeline(
            client,
            self.queue,
            self.processing,
            normalizer=self._normalizer,
            policy=self._settings.upload_policy,
            isolate_background=self._settings.isolate_background,
            classify=self._settings.classify_uploads,
        )
        self.mode = GenerationMode.AVATAR
        self._notice: str | None = None
        self._listeners: list[Listener] = []
        self._unsubscribers = [
            component.subscribe(self._forward)
            for component in (
                self.processing,
                self.wardrobe,
                self.queue,
                self.composer,
                self.selection,
                self.orchestrator,
                self.profile,
            )
        ]

    # -- observation -------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Receive the name of every state change in this session."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _forward(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)

    @property
    def error(self) -> str | None:
        return self._notice or self.orchestrator.error

    @property
    def generated_image(self) -> str | None:
        return self.orchestrator.generated_image

    def dismiss_error(self) -> None:
        self._notice = None
        self.orchestrator.dismiss_error()
        self._forward("session.error")

    def _surface(self, message: str) -> None:
        self._notice = message
        self._forward("session.error")

    # -- wardrobe ----------------------------------------------------------

    async def upload_garments(self, raws: Sequence[RawImage]) -> UploadReport | None:
        """Run the upload pipeline; unreadable files are reported in the notice."""

        if self.processing.is_loading:
            self._surface("Please wait for the current request to finish.")
            return None
        try:
            report = await self.pipeline.ingest(raws)
        except ConfigurationError as exc:
            self._surface(str(exc))
            return None
        if report.failures:
            names = ", ".join(failure.name for failure in report.failures)
            self._surface(f"Failed to process some items: {names}")
        return report

    @property
    def pending_upload(self) -> PendingUpload | None:
        """Upload that must be categorized next, if any."""

        return self.queue.head

    def confirm_pending(self, category: Category, description: str | None = None) -> GarmentRecord | None:
        return self.queue.confirm(category, description)

    def discard_pending(self) -> PendingUpload | None:
        return self.queue.discard()

    def remove_garment(self, garment_id: str) -> None:
        self.wardrobe.remove(garment_id)
        self.composer.remove(garment_id)

    # -- studio ------------------------------------------------------------

    def enter_studio(self, mode: GenerationMode) -> None:
        """Start a fresh styling session in the given mode."""

        self.mode = GenerationMode(mode)
        self.composer.clear()
        self.orchestrator.reset()

    def toggle_in_studio(self, garment_id: str) -> None:
        """Wardrobe quick pick: add the garment, or take it out if already there."""

        record = self.wardrobe.get(garment_id)
        if record is None:
            return
        if isinstance(self.composer, OrderedComposer):
            self.composer.toggle(record)
        elif self.composer.contains(garment_id):
            self.composer.remove(garment_id)
        else:
            self.composer.add(record)

    async def upload_to_studio(self, raws: Sequence[RawImage]) -> list[GarmentRecord]:
        try:
            return await upload_to_studio(raws, self.composer, self._normalizer)
        except ImageReadError as exc:
            self._surface(str(exc))
            return []

    def commit_selection(self, mode: GenerationMode | None = None) -> bool:
        """Bulk action of selection mode: enter the studio with the selected garments."""

        if not self.selection.active or not self.selection.selected_ids:
            return False
        if mode is not None:
            self.mode = GenerationMode(mode)
        self.orchestrator.reset()
        return self.selection.commit()

    async def generate(self) -> str | None:
        """Generate the styled image for the current mode; failures become the notice."""

        self._notice = None
        try:
            return await self.orchestrator.generate(self.mode, reference_image=self.profile.avatar_image)
        except (EmptySelectionError, GenerationServiceError):
            # The orchestrator already holds the message.
            return None
        except (GenerationInProgressError, ConfigurationError) as exc:
            self._surface(str(exc))
            return None

    # -- profile -----------------------------------------------------------

    async def create_avatar(self, raw: RawImage) -> str | None:
        if self.processing.is_loading:
            self._surface("Please wait for the current request to finish.")
            return None
        try:
            return await self.profile.create_avatar(raw)
        except (ImageReadError, ServiceRequestError, ConfigurationError) as exc:
            logger.error("Avatar creation failed: %s", exc)
            self._surface(str(exc))
            return None

    @property
    def composition_policy(self) -> CompositionPolicy:
        return self.composer.policy

    async def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        await self._client.close()
