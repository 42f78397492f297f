"""
Pydantic Schemas - Records, Reports and API contracts

All record, report and request/response schemas in one file for simplicity.
Records are frozen: a changed student is a new StudentResult built by the
record merger, never an in-place edit.
"""

import re
from datetime import date, datetime, timezone
from enum import Enum
from typing import Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import (
    BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator
)
from pydantic.alias_generators import to_camel

from placement_portal.core.exceptions import PackageParseError
from placement_portal.services import grade_engine
from placement_portal.services.grade_engine import ResultStatus


# ============================================================
# ENUMS
# ============================================================

class BatchType(str, Enum):
    marks = "marks"
    roster = "roster"
    approval = "approval"


class PlacementStatus(str, Enum):
    placed = "Placed"
    in_process = "In Process"
    applying = "Applying"
    not_placed = "Not Placed"
    unplaced = "Unplaced"


class RequestType(str, Enum):
    profile_update = "Profile Update"
    document_verification = "Document Verification"
    marks_correction = "Marks Correction"
    placement_approval = "Placement Approval"
    other = "Other"


class Urgency(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class RequestStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# ============================================================
# REFERENCE DATA
# ============================================================

class SubjectDefinition(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str = Field(..., min_length=1)
    name: str
    credits: int = Field(..., gt=0)
    max_marks: float = Field(100, gt=0)


class CompanyReference(BaseModel):
    """Company reference data used to annotate analytics (name -> tier)."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    tier: str = "Unknown"


# ============================================================
# PACKAGE (typed money value)
# ============================================================

_PACKAGE_RE = re.compile(
    r"^(?:₹|rs\.?|inr)?"
    r"(?P<number>\d[\d,]*(?:\.\d+)?)"
    r"(?P<unit>l\.?p\.?a\.?|lakhs?|lacs?|l\.?|c\.?p\.?a\.?|crores?|cr\.?)?"
    r"(?:p\.?a\.?|perannum|/(?:yr|year|annum))?$",
    re.IGNORECASE
)
_CRORE_UNITS = {"cr", "crore", "crores", "cpa"}
# Trailing qualifier such as "(CTC)" or "(fixed)"
_QUALIFIER_RE = re.compile(r"\([^()]*\)$")
# Bare numbers this large are rupee amounts, not lakhs
_RUPEE_THRESHOLD = 1000
_RUPEES_PER_LAKH = 100_000


class PackageAmount(BaseModel):
    """
    A compensation package in lakhs per annum.

    Parsed once at ingestion from free-form text such as
    "12 LPA", "₹8.5L", "₹12,00,000" or "1.2 Cr", then carried
    through every aggregate as a number.
    """
    model_config = ConfigDict(frozen=True)

    amount: float = Field(..., ge=0)
    unit: Literal["LPA"] = "LPA"
    raw: str = ""

    @classmethod
    def parse(cls, raw: str) -> "PackageAmount":
        """Raises PackageParseError when the text is not an amount."""
        compact = _QUALIFIER_RE.sub("", re.sub(r"\s+", "", str(raw or "")))
        match = _PACKAGE_RE.match(compact)
        if not match:
            raise PackageParseError(str(raw))

        number = float(match.group("number").replace(",", ""))
        unit = (match.group("unit") or "").lower().replace(".", "")

        if unit in _CRORE_UNITS:
            amount = number * 100
        elif not unit and number >= _RUPEE_THRESHOLD:
            amount = number / _RUPEES_PER_LAKH
        else:
            amount = number

        return cls(amount=round(amount, 4), raw=str(raw).strip())

    @classmethod
    def try_parse(cls, raw) -> Optional["PackageAmount"]:
        """Lenient variant for stored legacy strings: None when unparseable."""
        try:
            return cls.parse(raw)
        except PackageParseError:
            return None


# ============================================================
# RESULT RECORDS
# ============================================================

class SubjectResult(BaseModel):
    """One subject's mark. Grade and status are always derived from the mark."""
    model_config = ConfigDict(frozen=True)

    subject_code: str
    mark: float = Field(..., ge=0)
    max_marks: float = Field(100, gt=0)
    credits: int = Field(1, gt=0)

    @model_validator(mode="after")
    def _mark_within_max(self):
        if self.mark > self.max_marks:
            raise ValueError(f"mark {self.mark} exceeds maximum {self.max_marks}")
        return self

    @classmethod
    def from_definition(cls, subject: SubjectDefinition, mark: float) -> "SubjectResult":
        return cls(
            subject_code=subject.code,
            mark=mark,
            max_marks=subject.max_marks,
            credits=subject.credits
        )

    @computed_field
    @property
    def grade(self) -> str:
        return grade_engine.grade(self.mark, self.max_marks)

    @computed_field
    @property
    def grade_point(self) -> int:
        return grade_engine.grade_point(self.mark, self.max_marks)

    @computed_field
    @property
    def status(self) -> ResultStatus:
        return grade_engine.status(self.mark, self.max_marks)


class StudentResult(BaseModel):
    """
    A student's record, keyed by roll number.

    SGPA and overall status are computed from `results` and cannot be set.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    roll_number: str = Field(..., min_length=1)
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    branch: Optional[str] = None
    semester: Optional[int] = None

    # Academics
    results: Dict[str, SubjectResult] = Field(default_factory=dict)
    cgpa: Optional[float] = None
    attendance: Optional[float] = None

    # Placement
    placement_status: PlacementStatus = PlacementStatus.not_placed
    company: Optional[str] = None
    package: Optional[PackageAmount] = None
    joining_date: Optional[date] = None
    skills: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)
    internships: List[str] = Field(default_factory=list)
    certifications: List[str] = Field(default_factory=list)

    @field_validator("package", mode="before")
    @classmethod
    def _legacy_package_string(cls, v):
        # Older documents store the package as free text
        if isinstance(v, str):
            return PackageAmount.try_parse(v)
        return v

    @computed_field
    @property
    def sgpa(self) -> float:
        return grade_engine.sgpa(
            (r.grade_point, r.credits) for r in self.results.values()
        )

    @computed_field
    @property
    def overall_status(self) -> ResultStatus:
        return grade_engine.overall_status(r.status for r in self.results.values())

    @property
    def is_placed(self) -> bool:
        return self.placement_status == PlacementStatus.placed


class ApprovalRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    request_id: str = Field(default_factory=lambda: uuid4().hex)
    request_type: RequestType
    # Original Type text when it was not a known request type
    type_detail: Optional[str] = None
    student_name: str
    roll_number: str
    email: str
    phone: str
    cgpa: Optional[float] = None
    semester: Optional[int] = None
    description: str
    documents: List[str] = Field(default_factory=list)
    urgency: Urgency = Urgency.medium
    status: RequestStatus = RequestStatus.pending
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    resolved_at: Optional[datetime] = None
    remarks: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.pending

    def dedupe_key(self) -> tuple:
        """Two pending requests with the same key are duplicates."""
        return (self.roll_number, self.request_type, (self.type_detail or "").strip().lower())


class ApprovalDecision(BaseModel):
    """Body of an approve / reject call."""
    remarks: Optional[str] = None


# ============================================================
# INGESTION REPORT
# ============================================================

class IngestionReport(BaseModel):
    """Outcome of one batch. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    success: bool
    processed: int = Field(0, ge=0)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class MarksUpdate(BaseModel):
    """Single-record mark edit: subject code -> new mark."""
    marks: Dict[str, float] = Field(..., min_length=1)


# ============================================================
# ANALYTICS SCHEMAS (camelCase on the wire)
# ============================================================

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BranchStats(CamelModel):
    branch: str
    total: int
    placed: int
    rate: float
    avg_package: float


class CompanyStats(CamelModel):
    company: str
    tier: str
    hires: int
    avg_package: float


class PackageBucket(CamelModel):
    range: str
    count: int


class MonthlyTrend(CamelModel):
    month: str
    placements: int


class AggregateStatistics(CamelModel):
    total_students: int = 0
    placed_students: int = 0
    placement_rate: float = 0.0
    average_package: float = 0.0
    highest_package: float = 0.0
    median_package: float = 0.0
    recent_placements: int = 0
    branch_wise_stats: List[BranchStats] = Field(default_factory=list)
    company_wise_stats: List[CompanyStats] = Field(default_factory=list)
    package_distribution: List[PackageBucket] = Field(default_factory=list)
    monthly_placement_trends: List[MonthlyTrend] = Field(default_factory=list)


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
