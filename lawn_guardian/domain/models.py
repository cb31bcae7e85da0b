from enum import Enum
from typing import List, Optional, Dict, Any, Mapping
from pydantic import BaseModel, ConfigDict, Field, computed_field
from dataclasses import dataclass
import numpy as np

# --- Enums ---

class QualityIssueType(str, Enum):
    BLUR = "blur"
    DARK = "dark"
    TOO_CLOSE = "too_close"
    TOO_FAR = "too_far"
    LOW_RESOLUTION = "low_resolution"

# --- Pydantic Models (Image Intake) ---

class ResizeOptions(BaseModel):
    """Upload re-encoding bounds. Callers override any subset via `merged`."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    max_width: int = Field(default=1024, gt=0)
    max_height: int = Field(default=1024, gt=0)
    quality: float = Field(default=0.8, ge=0.0, le=1.0)

    @classmethod
    def merged(cls, overrides: Optional[Mapping[str, Any]] = None) -> "ResizeOptions":
        if isinstance(overrides, ResizeOptions):
            return overrides
        return cls.model_validate(dict(overrides or {}))

class QualityMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    brightness: float = Field(ge=0.0)
    variance: float = Field(ge=0.0)
    green_ratio: float = Field(ge=0.0, le=1.0)
    width: int
    height: int
    file_size: int

class QualityIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: QualityIssueType
    message: str

class QualityResult(BaseModel):
    issues: List[QualityIssue] = Field(default_factory=list)
    metrics: QualityMetrics

    @computed_field
    @property
    def is_good_quality(self) -> bool:
        return not self.issues

    def issue_types(self) -> List[QualityIssueType]:
        return [issue.type for issue in self.issues]

class UploadPayload(BaseModel):
    """What the scanner hands to the diagnosis service after intake."""
    quality: QualityResult
    image_base64: str
    byte_size: int
    human_size: str

# --- Pydantic Models (Diagnosis Service Contract) ---

class DiagnosisRequest(BaseModel):
    image_base64: str
    additional_images: List[str] = Field(default_factory=list)
    grass_type: Optional[str] = None
    season: Optional[str] = None
    location: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        return {
            "imageBase64": self.image_base64,
            "additionalImages": self.additional_images,
            "grassType": self.grass_type,
            "season": self.season,
            "location": self.location,
            "multipleAngles": len(self.additional_images) > 0,
        }

class IdentifiedIssue(BaseModel):
    type: str  # disease | insect | weed | nutrient_deficiency | environmental
    name: str
    confidence: str = "medium"
    description: str = ""
    symptoms: List[str] = Field(default_factory=list)
    severity: str = "mild"  # mild | moderate | severe

class Diagnosis(BaseModel):
    identified_issues: List[IdentifiedIssue] = Field(default_factory=list)
    overall_health: str = "fair"
    affected_area_estimate: str = ""

class CulturalPractice(BaseModel):
    action: str
    timing: str
    details: str

class ChemicalTreatment(BaseModel):
    product_type: Optional[str] = None  # fungicide | insecticide | herbicide | fertilizer
    category: Optional[str] = None  # issue category the treatment targets
    active_ingredients: List[str] = Field(default_factory=list)
    application_rate: str = ""
    application_frequency: str = ""
    timing: str = ""
    precautions: List[str] = Field(default_factory=list)

class TreatmentPlan(BaseModel):
    cultural_practices: List[CulturalPractice] = Field(default_factory=list)
    chemical_treatments: List[ChemicalTreatment] = Field(default_factory=list)
    prevention_tips: List[str] = Field(default_factory=list)

class PotentialOutbreak(BaseModel):
    issue: str
    likelihood: str
    conditions: str

class PreventiveMeasure(BaseModel):
    action: str
    timing: str
    reason: str

class Forecast(BaseModel):
    risk_level: str = "low"
    potential_outbreaks: List[PotentialOutbreak] = Field(default_factory=list)
    preventive_measures: List[PreventiveMeasure] = Field(default_factory=list)

class LawnAnalysisResult(BaseModel):
    diagnosis: Diagnosis
    treatment_plan: TreatmentPlan
    forecast: Optional[Forecast] = None

# --- Dataclasses (Sampling) ---

@dataclass
class SampledImage:
    pixels: np.ndarray  # (h, w, 4) uint8 RGBA of the sampled region
    width: int          # original, not sampled
    height: int

    @property
    def sample_size(self):
        return self.pixels.shape[1], self.pixels.shape[0]
