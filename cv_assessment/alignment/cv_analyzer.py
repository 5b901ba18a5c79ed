"""
CV Analyzer

The per-candidate pipeline: alignment call, name fallback if needed, then
score aggregation. Strictly sequential for one candidate; batches run many
of these concurrently (see BatchAnalysisService).
"""

from typing import Optional

from cv_assessment.alignment.aligner import Aligner
from cv_assessment.common.error_handling import AnalysisError
from cv_assessment.common.logger import get_logger
from cv_assessment.common.types import AnalyzedJD, CandidateAnalysis, ParsedCv
from cv_assessment.extraction.name_extractor import NameExtractor, is_usable_name
from cv_assessment.scoring.aggregator import aggregate
from cv_assessment.services.operation_base import OperationTimer


class CVAnalyzer:
    """Produces one CandidateAnalysis per (CV, requirement set)."""

    def __init__(
        self,
        aligner: Optional[Aligner] = None,
        name_extractor: Optional[NameExtractor] = None,
    ):
        self.aligner = aligner or Aligner()
        self.name_extractor = name_extractor or NameExtractor()

    async def analyze(
        self,
        jd: AnalyzedJD,
        cv_text: str,
        parsed_cv: Optional[ParsedCv] = None,
        session_id: Optional[str] = None,
    ) -> CandidateAnalysis:
        """
        Analyze one CV against the current requirement set.

        Raises:
            AlignmentError: alignment call failed, or the candidate name could
                not be resolved even via the name fallback
        """
        logger = get_logger(__name__, session_id=session_id, stage="analysis")

        timer = OperationTimer()
        alignment = await self.aligner.align(jd, cv_text, parsed_cv)
        timer.stop()

        name = alignment.candidate_name if is_usable_name(alignment.candidate_name) else ""
        if not name:
            logger.info("Alignment returned no candidate name, trying name fallback")
            name = await self.name_extractor.extract_name(cv_text)
        if not name:
            raise AnalysisError("candidate name unresolved")

        if not alignment.email and parsed_cv is not None:
            alignment = alignment.model_copy(update={"email": parsed_cv.email})

        analysis = aggregate(
            jd,
            alignment,
            candidate_name=name,
            total_experience=parsed_cv.total_experience if parsed_cv else None,
            processing_time=timer.duration_seconds,
        )
        logger.info(
            f"{analysis.candidate_name}: {analysis.alignment_score}% "
            f"({analysis.recommendation.value}) in {analysis.processing_time}s"
        )
        return analysis
