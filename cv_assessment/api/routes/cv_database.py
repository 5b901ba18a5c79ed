"""
CV database routes: ingest, search and delete stored CVs.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..auth import verify_token
from ..dependencies import ServiceContainer, get_services
from ..models import CvDeleteResponse, CvIngestRequest
from cv_assessment.services.batch_analysis_service import CvUpload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cv-database", tags=["cv-database"], dependencies=[Depends(verify_token)])


@router.get("")
async def search_cvs(
    q: Optional[str] = Query(default=None, description="Search term"),
    job_code: Optional[str] = Query(default=None),
    services: ServiceContainer = Depends(get_services),
):
    records = services.cv_database.search(q or "", job_code=job_code)
    return [r.model_dump(mode="json", exclude={"cv_content"}) for r in records]


@router.get("/{email}")
async def get_cv(email: str, services: ServiceContainer = Depends(get_services)):
    return services.cv_database.get_record(email).model_dump(mode="json")


@router.post("")
async def ingest_cvs(request: CvIngestRequest, services: ServiceContainer = Depends(get_services)):
    uploads = [CvUpload(file_name=cv.file_name, content=cv.content) for cv in request.cvs]
    report = await services.cv_database.ingest(uploads, request.job_code, replace=request.replace)
    return report.to_dict()


@router.delete("/{email}", response_model=CvDeleteResponse)
async def delete_cv(email: str, services: ServiceContainer = Depends(get_services)):
    affected = services.cv_database.delete(email)
    return CvDeleteResponse(success=True, affected_sessions=affected)
