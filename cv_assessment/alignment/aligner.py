"""
Per-Requirement Aligner

Runs the alignment call for one candidate against the formatted criteria
and returns the raw judgments (AlignmentResult). Any score or
recommendation the model volunteers is discarded by the schema.
"""

from typing import Optional

from langchain_core.language_models import BaseChatModel
from pydantic import ValidationError

from cv_assessment.alignment.prompts import (
    ALIGNMENT_SYSTEM_PROMPT,
    ALIGNMENT_USER_TEMPLATE,
    PARSED_CV_TEMPLATE,
)
from cv_assessment.common.error_handling import AlignmentError
from cv_assessment.common.llm_client import LLMClient
from cv_assessment.common.retry import RetryPolicy
from cv_assessment.common.types import AlignmentResult, AnalyzedJD, ParsedCv


def format_candidate_data(parsed_cv: Optional[ParsedCv]) -> str:
    if parsed_cv is None:
        return "(not available)"
    return PARSED_CV_TEMPLATE.format(
        name=parsed_cv.name,
        email=parsed_cv.email,
        current_title=parsed_cv.current_title or "unknown",
        current_company=parsed_cv.current_company or "unknown",
        total_experience=parsed_cv.total_experience or "unknown",
    )


class Aligner:
    """Judges one CV against every requirement of a job description."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = LLMClient("alignment", llm=llm, retry_policy=retry_policy)

    async def align(
        self,
        jd: AnalyzedJD,
        cv_text: str,
        parsed_cv: Optional[ParsedCv] = None,
    ) -> AlignmentResult:
        """
        Raises:
            AlignmentError: retries exhausted or the response does not fit the schema
        """
        result = await self.client.invoke(
            ALIGNMENT_USER_TEMPLATE.format(
                formatted_criteria=jd.formatted_criteria(),
                candidate_data=format_candidate_data(parsed_cv),
                cv_text=cv_text,
            ),
            system=ALIGNMENT_SYSTEM_PROMPT,
        )
        if not result.success:
            raise AlignmentError(f"Alignment call failed: {result.error}") from result.exception

        try:
            return AlignmentResult.model_validate(result.parsed_json or {})
        except ValidationError as e:
            raise AlignmentError(f"Alignment call returned invalid output: {e}") from e
