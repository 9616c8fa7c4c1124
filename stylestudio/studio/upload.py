"""Upload pipeline: normalization, background isolation and categorization queueing."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence

from stylestudio.api.styling_client import (
    BackgroundIsolationError,
    ConfigurationError,
    ServiceRequestError,
    StylingServiceClient,
)
from stylestudio.imgproc.normalize import ImageNormalizer, ImageReadError
from stylestudio.metrics.prometheus_exporter import (
    classification_fallback_total,
    isolation_fallback_total,
)
from stylestudio.storage.models import (
    DEFAULT_CLASSIFICATION,
    Category,
    Classification,
    EncodedImage,
    GarmentRecord,
    Provenance,
    RawImage,
)
from stylestudio.storage.wardrobe import new_garment_id
from stylestudio.studio.composer import StudioComposer
from stylestudio.studio.processing import ProcessingTracker
from stylestudio.studio.queue import CategorizationQueue

logger = logging.getLogger(__name__)

STUDIO_UPLOAD_DESCRIPTION = "Uploaded for styling"


class UploadPolicy(str, Enum):
    """How a multi-file upload is processed."""

    SEQUENTIAL = "sequential"
    FAN_OUT = "fan_out"


@dataclass(slots=True)
class UploadFailure:
    name: str
    reason: str


@dataclass(slots=True)
class UploadReport:
    """Outcome of one multi-file upload."""

    queued: int = 0
    isolated: int = 0
    failures: list[UploadFailure] = field(default_factory=list)


@dataclass(slots=True)
class _Prepared:
    image: EncodedImage
    suggestion: Classification | None
    isolated: bool


class UploadPipeline:
    """Prepares uploaded garment photos and hands them to the categorization queue."""

    def __init__(
        self,
        client: StylingServiceClient,
        queue: CategorizationQueue,
        processing: ProcessingTracker,
        *,
        normalizer: ImageNormalizer | None = None,
        policy: UploadPolicy | str = UploadPolicy.SEQUENTIAL,
        isolate_background: bool = True,
        classify: bool = True,
    ) -> None:
        self._client = client
        self._queue = queue
        self._processing = processing
        self._normalizer = normalizer or ImageNormalizer()
        self.policy = UploadPolicy(policy)
        self._isolate_background = isolate_background
        self._classify = classify

    async def ingest(self, raws: Sequence[RawImage]) -> UploadReport:
        """Process every file and queue the readable ones in submission order."""

        report = UploadReport()
        if not raws:
            return report
        with self._processing.track("Analyzing and categorizing items..."):
            if self.policy is UploadPolicy.SEQUENTIAL:
                prepared = await self._ingest_sequential(raws, report)
            else:
                prepared = await self._ingest_fan_out(raws, report)

        ready = [item for item in prepared if item is not None]
        self._queue.enqueue(
            [item.image for item in ready],
            [item.suggestion for item in ready],
        )
        report.queued = len(ready)
        report.isolated = sum(1 for item in ready if item.isolated)
        logger.info(
            "Upload finished: %s queued, %s isolated, %s failed",
            report.queued,
            report.isolated,
            len(report.failures),
        )
        return report

    async def _ingest_sequential(self, raws: Sequence[RawImage], report: UploadReport) -> list[_Prepared | None]:
        prepared: list[_Prepared | None] = []
        total = len(raws)
        for index, raw in enumerate(raws, start=1):
            self._processing.update(f"Isolating garment {index}/{total}...")
            try:
                prepared.append(await self._prepare(raw))
            except ImageReadError as exc:
                logger.warning("Skipping unreadable upload %s: %s", raw.name or index, exc)
                report.failures.append(UploadFailure(name=raw.name or f"file {index}", reason=str(exc)))
                prepared.append(None)
        return prepared

    async def _ingest_fan_out(self, raws: Sequence[RawImage], report: UploadReport) -> list[_Prepared | None]:
        results = await asyncio.gather(*(self._prepare(raw) for raw in raws), return_exceptions=True)
        prepared: list[_Prepared | None] = []
        for index, (raw, result) in enumerate(zip(raws, results), start=1):
            if isinstance(result, ConfigurationError):
                raise result
            if isinstance(result, ImageReadError):
                logger.warning("Skipping unreadable upload %s: %s", raw.name or index, result)
                report.failures.append(UploadFailure(name=raw.name or f"file {index}", reason=str(result)))
                prepared.append(None)
                continue
            if isinstance(result, BaseException):
                raise result
            prepared.append(result)
        return prepared

    async def _prepare(self, raw: RawImage) -> _Prepared:
        image = await self._normalizer.normalize(raw)
        isolated = False
        if self._isolate_background:
            try:
                image = await self._client.isolate_subject(image)
                isolated = True
            except BackgroundIsolationError as exc:
                isolation_fallback_total.inc()
                logger.warning("Background isolation failed for %s, keeping original: %s", raw.name, exc)
        suggestion = await self._suggest(image, raw.name) if self._classify else None
        return _Prepared(image=image, suggestion=suggestion, isolated=isolated)

    async def _suggest(self, image: EncodedImage, name: str | None) -> Classification:
        try:
            return await self._client.classify(image)
        except ServiceRequestError as exc:
            classification_fallback_total.labels(reason="request_failed").inc()
            logger.warning("Classification request failed for %s, using default: %s", name, exc)
            return DEFAULT_CLASSIFICATION


async def upload_to_studio(
    raws: Sequence[RawImage],
    composer: StudioComposer,
    normalizer: ImageNormalizer | None = None,
) -> list[GarmentRecord]:
    """Add photos straight to the studio as session-only records, bypassing the wardrobe."""

    normalizer = normalizer or ImageNormalizer()
    images = await asyncio.gather(*(normalizer.normalize(raw) for raw in raws))
    records = [
        GarmentRecord(
            id=new_garment_id(),
            image=image.to_data_uri(),
            category=Category.TOP,
            description=STUDIO_UPLOAD_DESCRIPTION,
            provenance=Provenance.CAPTURED,
        )
        for image in images
    ]
    for record in records:
        composer.add(record)
    return records
