"""
Data model for assessment sessions.

Pydantic models are the single schema for collaborator output, service state
and persisted records; the state store validates each persisted entry
against these models on load.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Iterator, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ===== ENUMS =====

class Priority(str, Enum):
    """Requirement priority."""
    MUST_HAVE = "MUST-HAVE"
    NICE_TO_HAVE = "NICE-TO-HAVE"

    @property
    def label(self) -> str:
        """Display form used in formatted criteria ("MUST HAVE")."""
        return self.value.replace("-", " ")


class AlignmentStatus(str, Enum):
    """Judgment of how well a candidate meets one requirement."""
    ALIGNED = "Aligned"
    PARTIALLY_ALIGNED = "Partially Aligned"
    NOT_ALIGNED = "Not Aligned"
    NOT_MENTIONED = "Not Mentioned"


class Recommendation(str, Enum):
    """Recommendation tier for a candidate."""
    STRONGLY_RECOMMENDED = "Strongly Recommended"
    RECOMMENDED_WITH_RESERVATIONS = "Recommended with Reservations"
    NOT_RECOMMENDED = "Not Recommended"


class RequirementCategory(str, Enum):
    """Requirement category keys as stored on AnalyzedJD."""
    EDUCATION = "education"
    EXPERIENCE = "experience"
    TECHNICAL_SKILLS = "technical_skills"
    SOFT_SKILLS = "soft_skills"
    CERTIFICATIONS = "certifications"
    RESPONSIBILITIES = "responsibilities"
    ADDITIONAL_REQUIREMENTS = "additional_requirements"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]

    @property
    def weight(self) -> int:
        return CATEGORY_WEIGHTS[self]


CATEGORY_LABELS = {
    RequirementCategory.EDUCATION: "Education",
    RequirementCategory.EXPERIENCE: "Experience",
    RequirementCategory.TECHNICAL_SKILLS: "Technical Skill",
    RequirementCategory.SOFT_SKILLS: "Soft Skill",
    RequirementCategory.CERTIFICATIONS: "Certification",
    RequirementCategory.RESPONSIBILITIES: "Responsibility",
    RequirementCategory.ADDITIONAL_REQUIREMENTS: "Additional Requirement",
}

# Points for a MUST-HAVE item; NICE-TO-HAVE items get half, rounded up
CATEGORY_WEIGHTS = {
    RequirementCategory.EDUCATION: 20,
    RequirementCategory.EXPERIENCE: 20,
    RequirementCategory.CERTIFICATIONS: 15,
    RequirementCategory.TECHNICAL_SKILLS: 15,
    RequirementCategory.SOFT_SKILLS: 15,
    RequirementCategory.RESPONSIBILITIES: 10,
    RequirementCategory.ADDITIONAL_REQUIREMENTS: 5,
}

VALID_JOB_CODES = ("OCN", "WEX", "SAN")


def score_for(category: RequirementCategory, priority: Priority) -> int:
    """Point weight of a requirement in a category at a given priority."""
    weight = category.weight
    if priority == Priority.MUST_HAVE:
        return weight
    return math.ceil(weight / 2)


def normalize_job_code(code: Optional[str]) -> Optional[str]:
    """Return the upper-cased job code if it is one of VALID_JOB_CODES, else None."""
    if not code:
        return None
    upper = code.strip().upper()
    return upper if upper in VALID_JOB_CODES else None


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


# ===== REQUIREMENTS =====

class Requirement(BaseModel):
    """One expectation extracted from a job description."""
    kind: Literal["requirement"] = "requirement"
    description: str
    priority: Priority = Priority.MUST_HAVE
    score: int = Field(..., ge=0)

    @property
    def effective_priority(self) -> Priority:
        return self.priority

    @property
    def weight(self) -> int:
        return self.score


class RequirementGroup(BaseModel):
    """OR-alternatives; satisfied when any member is."""
    kind: Literal["group"] = "group"
    group_type: Literal["OR"] = "OR"
    requirements: List[Requirement] = Field(..., min_length=1)

    @property
    def effective_priority(self) -> Priority:
        if any(r.priority == Priority.MUST_HAVE for r in self.requirements):
            return Priority.MUST_HAVE
        return Priority.NICE_TO_HAVE

    @property
    def weight(self) -> int:
        return max(r.score for r in self.requirements)

    @property
    def description(self) -> str:
        return " OR ".join(r.description for r in self.requirements)


RequirementItem = Annotated[Union[Requirement, RequirementGroup], Field(discriminator="kind")]


class AnalyzedJD(BaseModel):
    """Structured requirement set for one job description."""
    job_title: str = ""
    position_number: str = ""
    code: Optional[str] = None
    grade: str = ""
    department: str = ""
    education: List[RequirementItem] = Field(default_factory=list)
    experience: List[RequirementItem] = Field(default_factory=list)
    technical_skills: List[RequirementItem] = Field(default_factory=list)
    soft_skills: List[RequirementItem] = Field(default_factory=list)
    certifications: List[RequirementItem] = Field(default_factory=list)
    responsibilities: List[RequirementItem] = Field(default_factory=list)
    additional_requirements: List[RequirementItem] = Field(default_factory=list)

    @field_validator("code", mode="before")
    @classmethod
    def validate_code(cls, v: Optional[str]) -> Optional[str]:
        """Unknown job codes are dropped rather than rejected."""
        return normalize_job_code(v)

    def items(self, category: RequirementCategory) -> List[Union[Requirement, RequirementGroup]]:
        return getattr(self, category.value)

    def iter_items(self) -> Iterator[Tuple[RequirementCategory, Union[Requirement, RequirementGroup]]]:
        """Yield (category, item) for every requirement in declaration order."""
        for category in RequirementCategory:
            for item in self.items(category):
                yield category, item

    def has_must_have_certification(self) -> bool:
        return any(
            item.effective_priority == Priority.MUST_HAVE
            for item in self.certifications
        )

    def formatted_criteria(self) -> str:
        """
        Render the requirement set as ordered text blocks for prompts.

        Certifications are listed right after Experience when any of them is
        MUST-HAVE, otherwise after Soft Skill.
        """
        order = [RequirementCategory.EDUCATION, RequirementCategory.EXPERIENCE]
        if self.has_must_have_certification():
            order.append(RequirementCategory.CERTIFICATIONS)
        order += [RequirementCategory.TECHNICAL_SKILLS, RequirementCategory.SOFT_SKILLS]
        if not self.has_must_have_certification():
            order.append(RequirementCategory.CERTIFICATIONS)
        order += [RequirementCategory.RESPONSIBILITIES, RequirementCategory.ADDITIONAL_REQUIREMENTS]

        lines = []
        for category in order:
            for item in self.items(category):
                lines.append(
                    f"- {category.label} ({item.effective_priority.label}): {item.description}"
                )
        return "\n".join(lines)

    def same_requirements_as(self, other: "AnalyzedJD") -> bool:
        """Deep value equality with another requirement set."""
        return self.model_dump(mode="json") == other.model_dump(mode="json")


# ===== ALIGNMENT =====

class AlignmentDetail(BaseModel):
    """Judgment for one requirement against one candidate."""
    category: str
    requirement: str
    priority: Priority = Priority.NICE_TO_HAVE
    status: AlignmentStatus
    justification: str = ""
    score: float = 0
    max_score: float = 0

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> Any:
        """Accept case and spacing variations ("partially aligned", "Not_Aligned")."""
        if isinstance(v, str):
            wanted = v.strip().lower().replace("_", " ").replace("-", " ")
            for status in AlignmentStatus:
                if status.value.lower() == wanted:
                    return status
        return v

    @field_validator("category", "requirement", "justification", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("score", "max_score", mode="before")
    @classmethod
    def none_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v: Any) -> Any:
        if v is None:
            return Priority.NICE_TO_HAVE
        if isinstance(v, str):
            wanted = v.strip().upper().replace(" ", "-").replace("_", "-")
            for priority in Priority:
                if priority.value == wanted:
                    return priority
        return v


class AlignmentResult(BaseModel):
    """Output of the per-candidate alignment call. Carries no score or recommendation."""
    candidate_name: Optional[str] = None
    email: Optional[str] = None
    alignment_summary: str = ""
    alignment_details: List[AlignmentDetail] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    interview_probes: List[str] = Field(default_factory=list)

    @field_validator("alignment_summary", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("alignment_details", "strengths", "weaknesses", "interview_probes", mode="before")
    @classmethod
    def none_to_list(cls, v: Any) -> Any:
        """None becomes an empty list; null entries are dropped."""
        if v is None:
            return []
        if isinstance(v, list):
            return [item for item in v if item is not None]
        return v


class CandidateAnalysis(BaseModel):
    """Finalized assessment of one candidate against one requirement set."""
    candidate_name: str
    email: Optional[str] = None
    alignment_score: int = Field(..., ge=0, le=100)
    recommendation: Recommendation
    alignment_summary: str = ""
    alignment_details: List[AlignmentDetail] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    interview_probes: List[str] = Field(default_factory=list)
    candidate_score: float = 0
    max_score: float = 0
    total_experience: Optional[str] = None
    processing_time: Optional[float] = None


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class CandidateRecord(BaseModel):
    """A CandidateAnalysis plus session-local bookkeeping."""
    cv_name: str
    cv_content: str
    analysis: CandidateAnalysis
    is_stale: bool = False
    chat_history: List[ChatMessage] = Field(default_factory=list)

    @property
    def key(self) -> str:
        """Candidate identity within a session: email when known, else name."""
        if self.analysis.email:
            return self.analysis.email.strip().lower()
        return self.analysis.candidate_name.strip().lower()


class CandidateSummary(BaseModel):
    """Aggregate report over all candidates of a session."""
    top_tier: List[str] = Field(default_factory=list)
    mid_tier: List[str] = Field(default_factory=list)
    not_suitable: List[str] = Field(default_factory=list)
    common_strengths: List[str] = Field(default_factory=list)
    common_gaps: List[str] = Field(default_factory=list)
    interview_strategy: str = ""


class AssessmentSession(BaseModel):
    """One job description plus every candidate assessed against it."""
    model_config = ConfigDict(validate_assignment=True)

    id: str
    jd_name: str
    analyzed_jd: AnalyzedJD
    original_analyzed_jd: AnalyzedJD
    candidates: List[CandidateRecord] = Field(default_factory=list)
    summary: Optional[CandidateSummary] = None
    created_at: str = Field(default_factory=_utcnow)

    def find_candidate(self, key: str) -> Optional[CandidateRecord]:
        key = key.strip().lower()
        for record in self.candidates:
            if record.key == key:
                return record
        return None

    def sort_candidates(self) -> None:
        """Keep candidates ordered by descending alignment score (stable)."""
        self.candidates = sorted(
            self.candidates, key=lambda c: c.analysis.alignment_score, reverse=True
        )

    def is_dirty(self) -> bool:
        return not self.analyzed_jd.same_requirements_as(self.original_analyzed_jd)


# ===== CV DATABASE =====

class ExperienceEntry(BaseModel):
    job_title: str = ""
    company: str = ""
    dates: str = ""
    description: List[str] = Field(default_factory=list)


class EducationEntry(BaseModel):
    degree: str = ""
    institution: str = ""
    dates: str = ""


class ProjectEntry(BaseModel):
    name: str = ""
    description: str = ""
    technologies: List[str] = Field(default_factory=list)


class StructuredCv(BaseModel):
    summary: str = ""
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)


class ParsedCv(BaseModel):
    """Output of the CV parsing call."""
    name: str
    email: str
    phone: Optional[str] = None
    linkedin: Optional[str] = None
    current_title: Optional[str] = None
    current_company: Optional[str] = None
    total_experience: Optional[str] = None
    structured_content: StructuredCv = Field(default_factory=StructuredCv)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = (v or "").strip()
        if "@" not in v:
            raise ValueError("a valid email is required")
        return v


class CvDatabaseRecord(ParsedCv):
    """A parsed CV keyed by email, independent of any session."""
    job_code: str
    cv_file_name: str
    cv_content: str
    created_at: str = Field(default_factory=_utcnow)

    @field_validator("job_code")
    @classmethod
    def validate_job_code(cls, v: str) -> str:
        code = normalize_job_code(v)
        if code is None:
            raise ValueError(f"job_code must be one of {', '.join(VALID_JOB_CODES)}")
        return code

    @property
    def key(self) -> str:
        return self.email.strip().lower()


class SuitablePosition(BaseModel):
    """Notification: a stored CV looks relevant to an open session."""
    candidate_email: str
    candidate_name: str
    session_id: str
    job_title: str = ""
    justification: str = ""
