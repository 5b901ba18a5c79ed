"""
Summary Generator

Produces the session-level report (tiers, common strengths and gaps,
interview strategy) from the candidates' finalized analyses.
"""

from typing import List, Optional

from langchain_core.language_models import BaseChatModel
from pydantic import ValidationError

from cv_assessment.common.error_handling import SummaryError
from cv_assessment.common.llm_client import LLMClient
from cv_assessment.common.retry import RetryPolicy
from cv_assessment.common.types import AnalyzedJD, CandidateAnalysis, CandidateSummary
from cv_assessment.services.prompts import (
    CANDIDATE_ASSESSMENT_TEMPLATE,
    SUMMARY_SYSTEM_PROMPT,
    SUMMARY_USER_TEMPLATE,
)


def format_assessments(candidates: List[CandidateAnalysis]) -> str:
    """One block per candidate: name, score, recommendation, strengths, weaknesses, interview questions."""
    return "\n".join(
        CANDIDATE_ASSESSMENT_TEMPLATE.format(
            name=c.candidate_name,
            score=c.alignment_score,
            recommendation=c.recommendation.value,
            strengths=", ".join(c.strengths) or "-",
            weaknesses=", ".join(c.weaknesses) or "-",
            probes=", ".join(c.interview_probes) or "-",
        )
        for c in candidates
    )


class SummaryGenerator:
    """Collaborator producing a CandidateSummary."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = LLMClient("summary", llm=llm, retry_policy=retry_policy)

    async def generate(self, jd: AnalyzedJD, candidates: List[CandidateAnalysis]) -> CandidateSummary:
        """
        Raises:
            SummaryError: no candidates, exhausted retries or invalid output
        """
        if not candidates:
            raise SummaryError("No candidates to summarize")

        result = await self.client.invoke(
            SUMMARY_USER_TEMPLATE.format(
                formatted_criteria=jd.formatted_criteria(),
                assessments=format_assessments(candidates),
            ),
            system=SUMMARY_SYSTEM_PROMPT,
        )
        if not result.success:
            raise SummaryError(f"Summary generation failed: {result.error}") from result.exception

        try:
            return CandidateSummary.model_validate(result.parsed_json or {})
        except ValidationError as e:
            raise SummaryError(f"Summary generation returned invalid output: {e}") from e
