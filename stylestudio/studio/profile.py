"""User profile holding the stylized face used as the avatar identity reference."""

from __future__ import annotations

import logging

from stylestudio.api.styling_client import StylingServiceClient
from stylestudio.events import Observable
from stylestudio.imgproc.normalize import ImageNormalizer
from stylestudio.storage.models import RawImage
from stylestudio.studio.processing import ProcessingTracker

logger = logging.getLogger(__name__)


class ProfileService(Observable):
    """Creates and keeps the avatar face; a failed attempt leaves the old one in place."""

    def __init__(
        self,
        client: StylingServiceClient,
        processing: ProcessingTracker,
        normalizer: ImageNormalizer | None = None,
    ) -> None:
        super().__init__()
        self._client = client
        self._processing = processing
        self._normalizer = normalizer or ImageNormalizer()
        self.avatar_image: str | None = None

    async def create_avatar(self, raw: RawImage) -> str:
        with self._processing.track("Generating your 3D avatar face..."):
            face = await self._normalizer.normalize(raw)
            avatar = await self._client.create_avatar(face)
        self.avatar_image = avatar
        logger.info("Profile avatar updated")
        self._notify("profile.avatar")
        return avatar
