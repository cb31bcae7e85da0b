import asyncio
import time

import pytest

from conftest import data_url_to_image, image_to_data_url, noise_image, solid_image
from lawn_guardian.config import Settings
from lawn_guardian.core.errors import ImageLoadError
from lawn_guardian.domain.models import QualityIssueType
from lawn_guardian.services import image_intake_service
from lawn_guardian.services.image_intake_service import ImageIntakeService


@pytest.fixture
def service():
    return ImageIntakeService(settings=Settings())


def test_assess_quality(service, noise_url):
    result = asyncio.run(service.assess_quality(noise_url))

    assert result.is_good_quality


def test_prepare_upload_encodes_and_reports_verdict(service):
    url = image_to_data_url(noise_image(2048, 1536))
    payload = asyncio.run(service.prepare_upload(url))

    assert payload.quality.is_good_quality
    assert payload.image_base64.startswith("data:image/jpeg;base64,")
    assert data_url_to_image(payload.image_base64).size == (1024, 768)
    assert payload.byte_size > 0
    assert payload.human_size.endswith(("B", "KB", "MB"))


def test_prepare_upload_does_not_gate_on_quality(service):
    url = image_to_data_url(solid_image(300, 300, (0, 0, 0)))
    payload = asyncio.run(service.prepare_upload(url))

    assert not payload.quality.is_good_quality
    assert QualityIssueType.DARK in payload.quality.issue_types()
    assert data_url_to_image(payload.image_base64).size == (300, 300)


def test_resize_uses_configured_upload_bounds(noise_url):
    service = ImageIntakeService(settings=Settings(upload_max_dim=200, upload_quality=0.5))
    out = asyncio.run(service.resize(noise_url))

    assert data_url_to_image(out).size == (200, 150)


def test_concurrent_calls_are_independent(service):
    urls = [image_to_data_url(solid_image(500, 500, (0, 0, 0))), image_to_data_url(noise_image(600, 600))]

    async def run_all():
        return await asyncio.gather(*(service.assess_quality(u) for u in urls))

    dark, good = asyncio.run(run_all())

    assert QualityIssueType.DARK in dark.issue_types()
    assert good.is_good_quality


def test_failures_propagate(service):
    with pytest.raises(ImageLoadError):
        asyncio.run(service.prepare_upload("data:image/png;base64,aGVsbG8="))


def test_timeout_surfaces_as_image_load_error(monkeypatch, noise_url):
    def slow(_url):
        time.sleep(0.3)

    monkeypatch.setattr(image_intake_service, "analyze_image_quality", slow)
    service = ImageIntakeService(settings=Settings(), timeout=0.05)

    with pytest.raises(ImageLoadError):
        asyncio.run(service.assess_quality(noise_url))
