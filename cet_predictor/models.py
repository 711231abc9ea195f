from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .config import (
    ALGORITHM_VERSION,
    ALL_CITIES,
    CANDIDATE_CATEGORIES,
    DEFAULT_UNIVERSITY_TYPE,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Catalog records
# ---------------------------------------------------------------------------

class InstitutionType(str, Enum):
    GOVERNMENT = "Government"
    PRIVATE = "Private"
    AUTONOMOUS = "Autonomous"
    DEEMED = "Deemed"
    UNIVERSITY = "University"


class CategoryCutoffs(CamelModel):
    general: Optional[float] = Field(None, ge=0, le=100)
    obc: Optional[float] = Field(None, ge=0, le=100)
    sc: Optional[float] = Field(None, ge=0, le=100)
    st: Optional[float] = Field(None, ge=0, le=100)
    ews: Optional[float] = Field(None, ge=0, le=100)
    vjnt: Optional[float] = Field(None, ge=0, le=100)
    nt1: Optional[float] = Field(None, ge=0, le=100)
    nt2: Optional[float] = Field(None, ge=0, le=100)
    nt3: Optional[float] = Field(None, ge=0, le=100)
    sebc: Optional[float] = Field(None, ge=0, le=100)

    def value_for(self, key: str) -> Optional[float]:
        if key not in type(self).model_fields:
            return None
        value = getattr(self, key)
        return value if isinstance(value, float) else None


class LadiesCutoff(CategoryCutoffs):
    pass


class Cutoff(CategoryCutoffs):
    """Per-category percentile thresholds for one round; None = no seat recorded."""
    tfws: Optional[float] = Field(None, ge=0, le=100)
    ladies: Optional[LadiesCutoff] = None


class Round(CamelModel):
    number: int = Field(..., ge=1, description="CAP round number")
    cutoff: Optional[Cutoff] = None


class CourseOffering(CamelModel):
    name: str = Field(..., min_length=1)
    duration: str = "4 years"
    seats: Optional[int] = Field(None, ge=0)
    rounds: List[Round] = Field(default_factory=list)
    # Legacy flat cutoff, mirrors the first round
    cutoff: Optional[Cutoff] = None


class Fees(CamelModel):
    annual: float = Field(0, ge=0)
    currency: str = "INR"
    formatted: str = ""


class Package(CamelModel):
    amount: float = Field(0, ge=0)
    formatted: str = ""


class Placements(CamelModel):
    average_package: Package = Field(default_factory=Package)
    highest_package: Package = Field(default_factory=Package)
    placement_rate: float = Field(0, ge=0, le=100)
    top_recruiters: List[str] = Field(default_factory=list)


class Ranking(CamelModel):
    nirf: Optional[int] = None
    overall: Optional[int] = None
    engineering: Optional[int] = None


class Institution(CamelModel):
    name: str = Field(..., min_length=1)
    location: str = ""
    city: str = ""
    state: str = "Maharashtra"
    type: InstitutionType
    established_year: Optional[int] = None
    courses: List[CourseOffering] = Field(default_factory=list)
    cutoff: Optional[Cutoff] = None
    fees: Fees = Field(default_factory=Fees)
    placements: Placements = Field(default_factory=Placements)
    ranking: Ranking = Field(default_factory=Ranking)
    is_active: bool = True
    featured: bool = False


# ---------------------------------------------------------------------------
# Prediction query
# ---------------------------------------------------------------------------

class PredictionInput(CamelModel):
    percentile: float = Field(..., ge=0, le=100, description="MHT-CET percentile")
    category: str = Field(..., description="Category (e.g., OPEN, OBC, SC, Ladies_OBC)")
    courses: List[str] = Field(..., min_length=1, description="Requested course names")
    include_ladies: bool = Field(False, description="Consider ladies quota seats")
    include_tfws: bool = Field(False, alias="includeTFWS", description="Consider TFWS seats")
    university_type: str = Field(DEFAULT_UNIVERSITY_TYPE, description="Advisory only")
    city: str = Field(ALL_CITIES, description="Restrict to one city")

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in CANDIDATE_CATEGORIES:
            raise ValueError(f"Unknown category: {value}")
        return "general" if normalized == "open" else normalized

    @field_validator("courses")
    @classmethod
    def _non_blank_courses(cls, value: List[str]) -> List[str]:
        courses = [course.strip() for course in value]
        if any(not course for course in courses):
            raise ValueError("Course names must not be blank")
        return courses


# ---------------------------------------------------------------------------
# Prediction output
# ---------------------------------------------------------------------------

class RoundCutoff(CamelModel):
    round: int
    cutoff: float
    seat_type: str


class PlacementSummary(CamelModel):
    average_package: str = ""
    highest_package: str = ""
    placement_rate: str = ""


class PredictionRecord(CamelModel):
    college: str
    location: str
    city: str
    type: InstitutionType
    course: str
    course_offered: str
    seat_type: str
    best_matching_round: int
    cutoff_for_category: float
    last_round_cutoff: float
    adjusted_strength: float
    difference: float
    admission_chance: int
    probability: str
    risk_label: str
    ai_confidence: int
    trend: str
    trend_score: float
    volatility: float
    ai_insight: str
    all_rounds: List[RoundCutoff]
    rank: int = 0
    fees: str = ""
    placements: PlacementSummary = Field(default_factory=PlacementSummary)


class CourseBreakdown(CamelModel):
    course: str
    total_colleges: int
    high_chance: int
    medium_chance: int
    low_chance: int


class PredictionMetadata(CamelModel):
    total_colleges: int
    total_courses: int
    high_chance: int
    medium_chance: int
    low_chance: int
    average_chance: float
    course_breakdown: List[CourseBreakdown]
    university_applied: str
    category: str
    algorithm_version: str = ALGORITHM_VERSION


class PredictionResult(CamelModel):
    input_percentile: float
    predictions: List[PredictionRecord]
    course_results: Dict[str, List[PredictionRecord]]
    metadata: PredictionMetadata
