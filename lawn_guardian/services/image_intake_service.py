# Capture intake: quality verdict + upload encoding for a scan photo.

import asyncio
import logging
from typing import Any, Callable, Mapping, Optional, TypeVar

from lawn_guardian.config import Settings
from lawn_guardian.core.byte_utils import estimate_byte_size, format_human_size
from lawn_guardian.core.errors import ImageLoadError
from lawn_guardian.core.image_quality import analyze_image_quality
from lawn_guardian.core.resize import resize_image
from lawn_guardian.domain.models import QualityResult, UploadPayload

logger = logging.getLogger("lawn_guardian.services.intake")

T = TypeVar("T")


class ImageIntakeService:
    """
    Async facade over the intake pipeline. Each call runs in a worker thread
    with its own decode and surfaces, so concurrent calls share nothing.
    No cancellation; an optional timeout turns a hung decode into ImageLoadError.
    """

    def __init__(self, settings: Optional[Settings] = None, timeout: Optional[float] = None):
        self.settings = settings or Settings.from_env()
        self.timeout = timeout if timeout is not None else self.settings.intake_timeout

    async def _run(self, label: str, fn: Callable[..., T], *args) -> T:
        task = asyncio.to_thread(fn, *args)
        if self.timeout is None:
            return await task
        try:
            return await asyncio.wait_for(task, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"{label} did not complete within {self.timeout}s")
            raise ImageLoadError(f"{label} timed out after {self.timeout}s") from e

    async def assess_quality(self, image_data_url: str) -> QualityResult:
        return await self._run("Quality analysis", analyze_image_quality, image_data_url)

    async def resize(self, image_data_url: str, options: Optional[Mapping[str, Any]] = None) -> str:
        opts = options if options is not None else self.settings.upload_options()
        return await self._run("Resize", resize_image, image_data_url, opts)

    async def prepare_upload(self, image_data_url: str, options: Optional[Mapping[str, Any]] = None) -> UploadPayload:
        """Runs the quality check then re-encodes for upload. The verdict does not gate encoding."""
        quality = await self.assess_quality(image_data_url)
        if not quality.is_good_quality:
            logger.info(f"Capture flagged: {[i.value for i in quality.issue_types()]}")

        encoded = await self.resize(image_data_url, options)
        size = estimate_byte_size(encoded)
        logger.info(
            f"Upload prepared: {format_human_size(estimate_byte_size(image_data_url))} -> {format_human_size(size)}"
        )
        return UploadPayload(
            quality=quality,
            image_base64=encoded,
            byte_size=size,
            human_size=format_human_size(size),
        )
