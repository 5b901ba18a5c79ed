"""
Pydantic models for API requests and responses.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from cv_assessment.common.types import AssessmentSession, Priority, RequirementCategory


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    sessions: int
    cv_records: int
    timestamp: datetime


class SuccessResponse(BaseModel):
    """Generic success response."""

    success: bool
    message: str = ""


# === Sessions ===

class CreateSessionRequest(BaseModel):
    """Request to extract a job description into a new session."""

    jd_name: str = Field(..., min_length=1, description="Display name, usually the file name")
    jd_text: str = Field(..., min_length=1, description="Raw job description text")
    replace_existing: bool = Field(
        default=False,
        description="Replace the session with the same position number instead of failing",
    )


class SessionListItem(BaseModel):
    """Compact view of a session for listings."""

    id: str
    jd_name: str
    job_title: str
    position_number: str
    code: Optional[str] = None
    candidate_count: int
    stale_count: int
    has_summary: bool
    is_dirty: bool
    created_at: str

    @classmethod
    def from_session(cls, session: AssessmentSession) -> "SessionListItem":
        jd = session.analyzed_jd
        return cls(
            id=session.id,
            jd_name=session.jd_name,
            job_title=jd.job_title,
            position_number=jd.position_number,
            code=jd.code,
            candidate_count=len(session.candidates),
            stale_count=sum(1 for c in session.candidates if c.is_stale),
            has_summary=session.summary is not None,
            is_dirty=session.is_dirty(),
            created_at=session.created_at,
        )


class PriorityEditRequest(BaseModel):
    category: RequirementCategory
    index: int = Field(..., ge=0)
    priority: Priority
    member_index: Optional[int] = Field(default=None, ge=0)


class AdditionalRequirementRequest(BaseModel):
    description: str = Field(..., min_length=1)
    priority: Priority = Priority.MUST_HAVE


class CvUploadModel(BaseModel):
    """A CV whose text was extracted client-side."""

    file_name: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)


class AddCandidatesRequest(BaseModel):
    cvs: List[CvUploadModel] = Field(..., min_length=1)


class ReassessRequest(BaseModel):
    candidate_keys: Optional[List[str]] = Field(
        default=None,
        description="Candidate emails or names; all candidates when omitted",
    )


class SummaryResponse(BaseModel):
    stored: bool
    summary: Optional[Dict[str, Any]] = None


# === CV database ===

class CvIngestRequest(BaseModel):
    job_code: str = Field(..., description="OCN, WEX or SAN")
    cvs: List[CvUploadModel] = Field(..., min_length=1)
    replace: bool = False


class CvDeleteResponse(BaseModel):
    success: bool
    affected_sessions: int


# === Suitable positions ===

class PositionActionRequest(BaseModel):
    candidate_email: str = Field(..., min_length=3)
    session_id: str = Field(..., min_length=1)


# === Questions ===

class QueryRequest(BaseModel):
    question: str = Field(..., min_length=1)


class QueryResponse(BaseModel):
    answer: str
