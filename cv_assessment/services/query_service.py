"""
Questions

Free-form questions answered from stored data: about one candidate (CV plus
the session's criteria) or about the whole knowledge base (every session and
the CV database). Candidate answers are kept as chat history on the
candidate record by SessionService.query_candidate.
"""

import json
from datetime import date
from typing import Any, Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, ValidationError, field_validator

from cv_assessment.common.error_handling import QueryError
from cv_assessment.common.llm_client import LLMClient
from cv_assessment.common.retry import RetryPolicy
from cv_assessment.common.state_store import AppStateStore
from cv_assessment.common.types import AnalyzedJD, AssessmentSession, CvDatabaseRecord
from cv_assessment.services.operation_base import OperationService
from cv_assessment.services.prompts import (
    CANDIDATE_QUERY_SYSTEM_PROMPT,
    CANDIDATE_QUERY_USER_TEMPLATE,
    EXPERIENCE_RULES,
    KNOWLEDGE_BASE_SYSTEM_PROMPT,
    KNOWLEDGE_BASE_USER_TEMPLATE,
)


class QueryAnswer(BaseModel):
    answer: str

    @field_validator("answer")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("answer is empty")
        return v


def _require_question(question: str) -> str:
    question = (question or "").strip()
    if not question:
        raise ValueError("Question must not be empty")
    return question


def _experience_rules(today: Optional[date]) -> str:
    return EXPERIENCE_RULES.format(current_date=(today or date.today()).isoformat())


async def _ask(client: LLMClient, prompt: str, system: str) -> str:
    result = await client.invoke(prompt, system=system)
    if not result.success:
        raise QueryError(f"Question could not be answered: {result.error}") from result.exception
    try:
        return QueryAnswer.model_validate(result.parsed_json or {}).answer
    except ValidationError as e:
        raise QueryError(f"Question answering returned invalid output: {e}") from e


class CandidateQueryAnswerer:
    """Answers a question about one candidate from the CV and the criteria."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = LLMClient("candidate_query", llm=llm, retry_policy=retry_policy)

    async def answer(
        self,
        jd: AnalyzedJD,
        cv_content: str,
        question: str,
        today: Optional[date] = None,
    ) -> str:
        """
        Raises:
            ValueError: blank question
            QueryError: exhausted retries or invalid output
        """
        question = _require_question(question)
        return await _ask(
            self.client,
            CANDIDATE_QUERY_USER_TEMPLATE.format(
                formatted_criteria=jd.formatted_criteria(),
                cv_content=cv_content,
                question=question,
            ),
            CANDIDATE_QUERY_SYSTEM_PROMPT.format(experience_rules=_experience_rules(today)),
        )


def build_knowledge_base(
    sessions: List[AssessmentSession],
    cv_database: List[CvDatabaseRecord],
) -> Dict[str, Any]:
    """Condensed view of every session and stored CV for the knowledge-base prompt."""
    return {
        "assessment_sessions": [
            {
                "session_id": session.id,
                "job_title": session.analyzed_jd.job_title,
                "job_code": session.analyzed_jd.code,
                "department": session.analyzed_jd.department,
                "jd_name": session.jd_name,
                "candidate_count": len(session.candidates),
                "candidates": [
                    {
                        "name": record.analysis.candidate_name,
                        "score": record.analysis.alignment_score,
                        "recommendation": record.analysis.recommendation.value,
                        "strengths": record.analysis.strengths,
                        "weaknesses": record.analysis.weaknesses,
                        "cv_content": record.cv_content,
                    }
                    for record in session.candidates
                ],
            }
            for session in sessions
        ],
        "cv_database": [
            {
                "name": record.name,
                "email": record.email,
                "job_code": record.job_code,
                "current_title": record.current_title,
                "total_experience": record.total_experience,
                "cv_content": record.cv_content,
                "structured_content": record.structured_content.model_dump(mode="json"),
            }
            for record in cv_database
        ],
    }


class KnowledgeBaseAnswerer:
    """Answers a question over the condensed knowledge base."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = LLMClient("knowledge_base_query", llm=llm, retry_policy=retry_policy)

    async def answer(
        self,
        question: str,
        knowledge_base: Dict[str, Any],
        today: Optional[date] = None,
    ) -> str:
        question = _require_question(question)
        return await _ask(
            self.client,
            KNOWLEDGE_BASE_USER_TEMPLATE.format(
                question=question,
                knowledge_base=json.dumps(knowledge_base, indent=2),
            ),
            KNOWLEDGE_BASE_SYSTEM_PROMPT.format(experience_rules=_experience_rules(today)),
        )


class KnowledgeBaseService(OperationService):
    """Questions across every session and the CV database."""

    operation_name = "knowledge_base"

    def __init__(self, store: AppStateStore, answerer: Optional[KnowledgeBaseAnswerer] = None):
        self.store = store
        self.answerer = answerer or KnowledgeBaseAnswerer()

    async def query_knowledge_base(self, question: str) -> str:
        """
        Raises:
            ValueError: blank question
            QueryError: nothing stored yet, exhausted retries or invalid output
        """
        question = _require_question(question)
        if not self.store.sessions and not self.store.cv_database:
            raise QueryError("The knowledge base is empty")

        logger = self.get_logger()
        logger.info(
            f"Knowledge base question over {len(self.store.sessions)} session(s) "
            f"and {len(self.store.cv_database)} CV(s)"
        )
        return await self.answerer.answer(
            question, build_knowledge_base(self.store.sessions, self.store.cv_database)
        )
