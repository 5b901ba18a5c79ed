"""
Assessment session routes.

Create sessions from job descriptions, edit requirements, add and re-assess
candidates and generate the session summary. Domain errors are mapped to
HTTP status codes by the handlers registered in app.py.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ..auth import verify_token
from ..dependencies import ServiceContainer, get_services
from ..models import (
    AddCandidatesRequest,
    AdditionalRequirementRequest,
    CreateSessionRequest,
    PriorityEditRequest,
    QueryRequest,
    QueryResponse,
    ReassessRequest,
    SessionListItem,
    SuccessResponse,
    SummaryResponse,
)
from cv_assessment.services.batch_analysis_service import CvUpload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"], dependencies=[Depends(verify_token)])


def _log_progress(item_id: str, status_: str, message: Optional[str]) -> None:
    logger.info(f"{item_id}: {status_}{f' ({message})' if message else ''}")


@router.get("", response_model=List[SessionListItem])
async def list_sessions(
    q: Optional[str] = Query(default=None, description="Search term"),
    services: ServiceContainer = Depends(get_services),
):
    sessions = services.sessions.search_sessions(q) if q else services.sessions.list_sessions()
    return [SessionListItem.from_session(s) for s in sessions]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_session(
    request: CreateSessionRequest,
    services: ServiceContainer = Depends(get_services),
):
    session = await services.sessions.create_session(
        request.jd_name, request.jd_text, replace_existing=request.replace_existing
    )
    return session.model_dump(mode="json")


@router.get("/{session_id}")
async def get_session(session_id: str, services: ServiceContainer = Depends(get_services)):
    return services.sessions.get_session(session_id).model_dump(mode="json")


@router.get("/{session_id}/criteria")
async def get_formatted_criteria(session_id: str, services: ServiceContainer = Depends(get_services)):
    session = services.sessions.get_session(session_id)
    return {"formatted_criteria": session.analyzed_jd.formatted_criteria()}


@router.delete("/{session_id}", response_model=SuccessResponse)
async def delete_session(session_id: str, services: ServiceContainer = Depends(get_services)):
    services.sessions.delete_session(session_id)
    return SuccessResponse(success=True, message=f"Session {session_id} deleted")


# === Requirements ===

@router.patch("/{session_id}/requirements/priority")
async def edit_requirement_priority(
    session_id: str,
    request: PriorityEditRequest,
    services: ServiceContainer = Depends(get_services),
):
    session = services.sessions.edit_requirement_priority(
        session_id,
        request.category,
        request.index,
        request.priority,
        member_index=request.member_index,
    )
    return session.model_dump(mode="json")


@router.post("/{session_id}/requirements/additional")
async def add_additional_requirement(
    session_id: str,
    request: AdditionalRequirementRequest,
    services: ServiceContainer = Depends(get_services),
):
    session = services.sessions.add_additional_requirement(
        session_id, request.description, priority=request.priority
    )
    return session.model_dump(mode="json")


@router.delete("/{session_id}/requirements/additional/{index}")
async def remove_additional_requirement(
    session_id: str,
    index: int,
    services: ServiceContainer = Depends(get_services),
):
    return services.sessions.remove_additional_requirement(session_id, index).model_dump(mode="json")


# === Candidates ===

@router.post("/{session_id}/candidates")
async def add_candidates(
    session_id: str,
    request: AddCandidatesRequest,
    services: ServiceContainer = Depends(get_services),
):
    uploads = [CvUpload(file_name=cv.file_name, content=cv.content) for cv in request.cvs]
    report = await services.sessions.add_candidates(session_id, uploads, progress=_log_progress)
    return report.to_dict()


@router.delete("/{session_id}/candidates/{candidate_key}")
async def remove_candidate(
    session_id: str,
    candidate_key: str,
    services: ServiceContainer = Depends(get_services),
):
    return services.sessions.remove_candidate(session_id, candidate_key).model_dump(mode="json")


@router.post("/{session_id}/reassess")
async def reassess_candidates(
    session_id: str,
    request: ReassessRequest,
    services: ServiceContainer = Depends(get_services),
):
    report = await services.sessions.reassess_candidates(
        session_id, request.candidate_keys, progress=_log_progress
    )
    return report.to_dict()


@router.post("/{session_id}/summary", response_model=SummaryResponse)
async def generate_summary(session_id: str, services: ServiceContainer = Depends(get_services)):
    summary = await services.sessions.generate_summary(session_id)
    if summary is None:
        return SummaryResponse(stored=False)
    return SummaryResponse(stored=True, summary=summary.model_dump(mode="json"))


# === Questions ===

@router.post("/{session_id}/candidates/{candidate_key}/query", response_model=QueryResponse)
async def query_candidate(
    session_id: str,
    candidate_key: str,
    request: QueryRequest,
    services: ServiceContainer = Depends(get_services),
):
    reply = await services.sessions.query_candidate(session_id, candidate_key, request.question)
    return QueryResponse(answer=reply.content)
