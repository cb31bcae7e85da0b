# config.py

import os
from dataclasses import dataclass, field
from typing import Optional

# -------------------
# Diagnosis Service
# -------------------
DEFAULT_DIAGNOSIS_URL = "http://localhost:54321/functions/v1/analyze-lawn"
DEFAULT_HTTP_TIMEOUT = 60.0
DEFAULT_MAX_RETRIES = 2

# -------------------
# Upload Encoding
# -------------------
DEFAULT_UPLOAD_MAX_DIM = 1024
DEFAULT_UPLOAD_QUALITY = 0.8


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    diagnosis_url: str = DEFAULT_DIAGNOSIS_URL
    api_key: str = ""
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    max_retries: int = DEFAULT_MAX_RETRIES
    intake_timeout: Optional[float] = None
    upload_max_dim: int = DEFAULT_UPLOAD_MAX_DIM
    upload_quality: float = DEFAULT_UPLOAD_QUALITY
    extra_headers: dict = field(default_factory=dict)

    @classmethod
    def from_env(cls, **overrides) -> "Settings":
        """Env > Arg > Default."""
        base = cls(**overrides)
        return cls(
            diagnosis_url=os.getenv("LAWN_GUARDIAN_DIAGNOSIS_URL") or base.diagnosis_url,
            api_key=os.getenv("LAWN_GUARDIAN_API_KEY") or base.api_key,
            http_timeout=_env_float("LAWN_GUARDIAN_HTTP_TIMEOUT", base.http_timeout),
            max_retries=_env_int("LAWN_GUARDIAN_MAX_RETRIES", base.max_retries),
            intake_timeout=_env_float("LAWN_GUARDIAN_INTAKE_TIMEOUT", base.intake_timeout),
            upload_max_dim=_env_int("LAWN_GUARDIAN_UPLOAD_MAX_DIM", base.upload_max_dim),
            upload_quality=_env_float("LAWN_GUARDIAN_UPLOAD_QUALITY", base.upload_quality),
            extra_headers=dict(base.extra_headers),
        )

    def upload_options(self) -> dict:
        return {
            "max_width": self.upload_max_dim,
            "max_height": self.upload_max_dim,
            "quality": self.upload_quality,
        }
