"""
Knowledge base routes: questions across every session and the CV database.
"""

from fastapi import APIRouter, Depends

from ..auth import verify_token
from ..dependencies import ServiceContainer, get_services
from ..models import QueryRequest, QueryResponse

router = APIRouter(
    prefix="/knowledge-base",
    tags=["knowledge-base"],
    dependencies=[Depends(verify_token)],
)


@router.post("/query", response_model=QueryResponse)
async def query_knowledge_base(
    request: QueryRequest,
    services: ServiceContainer = Depends(get_services),
):
    answer = await services.knowledge_base.query_knowledge_base(request.question)
    return QueryResponse(answer=answer)
