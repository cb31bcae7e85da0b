# Deterministic capture checks run before a scan is uploaded for diagnosis.
# These are usability heuristics on sampled pixels, not lawn analysis.
#
# The blur rule pairs low luminance variance with a small file size. A sharp but
# low-detail photo can trip it; the thresholds are product policy, keep them as is.

import logging
from typing import List

import numpy as np

from lawn_guardian.core.byte_utils import estimate_byte_size
from lawn_guardian.core.errors import SurfaceUnavailableError
from lawn_guardian.core.sampler import sample_image
from lawn_guardian.domain.models import (
    QualityIssue,
    QualityIssueType,
    QualityMetrics,
    QualityResult,
    SampledImage,
)

logger = logging.getLogger("lawn_guardian.core.image_quality")

MIN_DIMENSION = 400
MIN_BRIGHTNESS = 50
BLUR_MAX_VARIANCE = 800
BLUR_MAX_FILE_SIZE = 50_000
TOO_CLOSE_MIN_GREEN_RATIO = 0.85
TOO_CLOSE_MAX_VARIANCE = 1500
TOO_FAR_MAX_GREEN_RATIO = 0.10
TOO_FAR_MIN_VARIANCE = 3000

ISSUE_MESSAGES = {
    QualityIssueType.LOW_RESOLUTION: "Image resolution is too low. Use a higher resolution camera setting.",
    QualityIssueType.DARK: "Image is too dark. Try taking the photo in better lighting.",
    QualityIssueType.BLUR: "Image appears blurry. Hold the camera steady and tap to focus.",
    QualityIssueType.TOO_CLOSE: "Camera is too close. Step back to capture more of the lawn.",
    QualityIssueType.TOO_FAR: "Camera is too far away. Move closer to the affected area.",
}


def _issue(issue_type: QualityIssueType) -> QualityIssue:
    return QualityIssue(type=issue_type, message=ISSUE_MESSAGES[issue_type])


def compute_metrics(sample: SampledImage, image_data_url: str) -> QualityMetrics:
    """Brightness, luminance variance and green coverage over the sampled pixels."""
    pixels = sample.pixels
    if pixels is None or pixels.ndim != 3 or pixels.shape[2] < 3 or pixels.size == 0:
        raise SurfaceUnavailableError("Could not read pixel data from sampling surface")

    rgb = pixels[:, :, :3].reshape(-1, 3).astype(np.float64)
    r, g, b = rgb[:, 0], rgb[:, 1], rgb[:, 2]
    total_pixels = rgb.shape[0]

    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    brightness = float(luminance.mean())
    # Population variance (divide by N)
    variance = float(np.mean((luminance - brightness) ** 2))

    green = (g > 1.1 * r) & (g > 1.1 * b) & (g > 50)
    green_ratio = float(np.count_nonzero(green)) / total_pixels

    return QualityMetrics(
        brightness=brightness,
        variance=variance,
        green_ratio=green_ratio,
        width=sample.width,
        height=sample.height,
        file_size=estimate_byte_size(image_data_url),
    )


def classify_issues(metrics: QualityMetrics) -> List[QualityIssue]:
    """Every rule is evaluated; all matching issues are reported in rule order."""
    issues = []

    # 1. Resolution (true dimensions)
    if metrics.width < MIN_DIMENSION or metrics.height < MIN_DIMENSION:
        issues.append(_issue(QualityIssueType.LOW_RESOLUTION))

    # 2. Exposure
    if metrics.brightness < MIN_BRIGHTNESS:
        issues.append(_issue(QualityIssueType.DARK))

    # 3. Blur
    if metrics.variance < BLUR_MAX_VARIANCE and metrics.file_size < BLUR_MAX_FILE_SIZE:
        issues.append(_issue(QualityIssueType.BLUR))

    # 4. Framing: lawn fills the frame with little detail
    if metrics.green_ratio > TOO_CLOSE_MIN_GREEN_RATIO and metrics.variance < TOO_CLOSE_MAX_VARIANCE:
        issues.append(_issue(QualityIssueType.TOO_CLOSE))

    # 5. Framing: busy scene with little lawn
    if metrics.green_ratio < TOO_FAR_MAX_GREEN_RATIO and metrics.variance > TOO_FAR_MIN_VARIANCE:
        issues.append(_issue(QualityIssueType.TOO_FAR))

    return issues


def compute_quality(sample: SampledImage, image_data_url: str) -> QualityResult:
    metrics = compute_metrics(sample, image_data_url)
    result = QualityResult(issues=classify_issues(metrics), metrics=metrics)
    logger.debug(
        f"Quality verdict good={result.is_good_quality} issues={[i.value for i in result.issue_types()]} "
        f"brightness={metrics.brightness:.1f} variance={metrics.variance:.1f} green={metrics.green_ratio:.2f}"
    )
    return result


def analyze_image_quality(image_data_url: str) -> QualityResult:
    """
    Samples the image and returns a quality verdict.
    Raises ImageLoadError on decode failure, SurfaceUnavailableError when no surface is available.
    """
    sample = sample_image(image_data_url)
    return compute_quality(sample, image_data_url)
