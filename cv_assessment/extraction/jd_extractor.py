"""
Requirement Extractor

Turns free-text job descriptions into an AnalyzedJD: job metadata plus
categorized requirements and OR-groups. The LLM only finds and groups the
requirements; priority (nice-to-have keywords) and point weights (per
category) are assigned here.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator
from langchain_core.language_models import BaseChatModel

from cv_assessment.common.error_handling import ExtractionError
from cv_assessment.common.llm_client import LLMClient
from cv_assessment.common.logger import get_logger
from cv_assessment.common.retry import RetryPolicy
from cv_assessment.common.types import (
    AnalyzedJD,
    Priority,
    Requirement,
    RequirementCategory,
    RequirementGroup,
    score_for,
)
from cv_assessment.extraction.prompts import (
    JD_EXTRACTION_SYSTEM_PROMPT,
    JD_EXTRACTION_USER_TEMPLATE,
)

NICE_TO_HAVE_KEYWORDS = (
    "nice to have",
    "preferred",
    "plus",
    "bonus",
    "desirable",
    "advantageous",
    "good to have",
)

# Categories the LLM fills; additional requirements are only added by a human
EXTRACTED_CATEGORIES = (
    RequirementCategory.EDUCATION,
    RequirementCategory.EXPERIENCE,
    RequirementCategory.TECHNICAL_SKILLS,
    RequirementCategory.SOFT_SKILLS,
    RequirementCategory.CERTIFICATIONS,
    RequirementCategory.RESPONSIBILITIES,
)


def priority_for(description: str) -> Priority:
    """NICE-TO-HAVE when the description carries a nice-to-have keyword."""
    lowered = description.lower()
    if any(keyword in lowered for keyword in NICE_TO_HAVE_KEYWORDS):
        return Priority.NICE_TO_HAVE
    return Priority.MUST_HAVE


def build_requirement(description: str, category: RequirementCategory) -> Requirement:
    """Create a requirement with priority and weight derived from its text and category."""
    priority = priority_for(description)
    return Requirement(description=description, priority=priority, score=score_for(category, priority))


# ===== SCHEMA VALIDATION =====

class RawRequirementModel(BaseModel):
    """A single requirement as returned by the LLM."""
    description: str

    @field_validator("description")
    @classmethod
    def strip_description(cls, v: str) -> str:
        return v.strip()


class RawRequirementGroupModel(BaseModel):
    """An OR-group as returned by the LLM."""
    group_type: Literal["OR"] = Field(
        default="OR", validation_alias=AliasChoices("group_type", "groupType")
    )
    requirements: List[RawRequirementModel]


RawItem = Union[RawRequirementModel, RawRequirementGroupModel]


class ExtractedJDModel(BaseModel):
    """Pydantic model for requirement extraction validation."""
    job_title: str = ""
    position_number: str = ""
    code: Optional[str] = None
    grade: str = ""
    department: str = ""
    education: List[RawItem] = Field(default_factory=list)
    experience: List[RawItem] = Field(default_factory=list)
    technical_skills: List[RawItem] = Field(default_factory=list)
    soft_skills: List[RawItem] = Field(default_factory=list)
    certifications: List[RawItem] = Field(default_factory=list)
    responsibilities: List[RawItem] = Field(default_factory=list)

    @field_validator("job_title", "position_number", "grade", "department", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator(
        "education", "experience", "technical_skills", "soft_skills",
        "certifications", "responsibilities",
        mode="before",
    )
    @classmethod
    def coerce_items(cls, v: Any) -> List[Any]:
        """Accept bare strings as single requirements; None as empty."""
        if v is None:
            return []
        return [{"description": item} if isinstance(item, str) else item for item in v]

    def _convert(self, raw: RawItem, category: RequirementCategory) -> Optional[Union[Requirement, RequirementGroup]]:
        match raw:
            case RawRequirementModel(description=description):
                if not description:
                    return None
                return build_requirement(description, category)
            case RawRequirementGroupModel(requirements=members):
                built = [build_requirement(m.description, category) for m in members if m.description]
                if not built:
                    return None
                if len(built) == 1:
                    return built[0]
                return RequirementGroup(requirements=built)
        return None

    def to_analyzed_jd(self) -> AnalyzedJD:
        """Assign priorities and weights and build the AnalyzedJD."""
        categories: Dict[str, list] = {}
        for category in EXTRACTED_CATEGORIES:
            converted = [self._convert(raw, category) for raw in getattr(self, category.value)]
            categories[category.value] = [item for item in converted if item is not None]
        return AnalyzedJD(
            job_title=self.job_title,
            position_number=self.position_number,
            code=self.code,
            grade=self.grade,
            department=self.department,
            **categories,
        )


# ===== REQUIREMENT EXTRACTOR =====

class RequirementExtractor:
    """
    Extracts structured requirements from job descriptions.

    Failures raise ExtractionError; no partial result is ever returned.
    """

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = LLMClient("jd_extraction", llm=llm, retry_policy=retry_policy)

    def _parse_response(self, data: Dict[str, Any]) -> ExtractedJDModel:
        """Validate the parsed LLM response."""
        try:
            return ExtractedJDModel(**data)
        except ValidationError as e:
            error_msgs = [
                f"{' -> '.join(str(x) for x in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            raise ValueError(
                "Schema validation failed:\n" + "\n".join(f"  - {msg}" for msg in error_msgs)
            ) from e

    async def extract(self, job_description: str, session_id: Optional[str] = None) -> AnalyzedJD:
        """
        Extract the requirement set from raw job-description text.

        Raises:
            ExtractionError: empty input, exhausted retries, invalid output
                or no requirements found
        """
        logger = get_logger(__name__, session_id=session_id, stage="extraction")

        if not job_description or not job_description.strip():
            raise ExtractionError("Job description is empty")

        result = await self.client.invoke(
            JD_EXTRACTION_USER_TEMPLATE.format(job_description=job_description),
            system=JD_EXTRACTION_SYSTEM_PROMPT,
        )
        if not result.success:
            raise ExtractionError(f"JD analysis failed: {result.error}") from result.exception

        try:
            extracted = self._parse_response(result.parsed_json or {})
        except ValueError as e:
            raise ExtractionError(f"JD analysis returned unusable output: {e}") from e

        jd = extracted.to_analyzed_jd()
        total = sum(1 for _ in jd.iter_items())
        if total == 0:
            raise ExtractionError("JD analysis found no requirements")

        logger.info(f"Job Title: {jd.job_title or '(none)'}")
        logger.info(f"Position: {jd.position_number or '(none)'} Code: {jd.code or '(none)'}")
        logger.info(f"Requirements: {total} ({result.duration_ms}ms)")
        return jd
