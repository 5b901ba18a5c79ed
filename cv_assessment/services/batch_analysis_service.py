"""
Batch Dispatcher

Fans out one CV analysis per candidate, concurrently, and collects a
per-item result: either a CandidateAnalysis or an error message keyed by the
caller's file/candidate id. One failure never stops or rejects the batch.

Concurrency is bounded by an asyncio semaphore (MAX_CONCURRENT_ANALYSES).
Completion order is not preserved in any meaningful way; callers that merge
results re-sort by score.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional

from cv_assessment.alignment.cv_analyzer import CVAnalyzer
from cv_assessment.common.config import Config
from cv_assessment.common.error_handling import ConflictError, ErrorCollector
from cv_assessment.common.types import AnalyzedJD, CandidateAnalysis, ParsedCv
from cv_assessment.services.operation_base import OperationService

# Progress statuses
STATUS_PROCESSING = "processing"
STATUS_DONE = "done"
STATUS_ERROR = "error"

ProgressCallback = Callable[[str, str, Optional[str]], None]
PreprocessHook = Callable[["BatchItem"], Awaitable[Optional[ParsedCv]]]


@dataclass
class CvUpload:
    """A CV whose text has already been extracted; file_name keys progress and errors."""

    file_name: str
    content: str
    parsed_cv: Optional[ParsedCv] = None


@dataclass
class BatchItem:
    """One CV to analyze; item_id is the caller's file or candidate identifier."""

    item_id: str
    cv_content: str
    parsed_cv: Optional[ParsedCv] = None


@dataclass
class BatchItemResult:
    """Outcome for one item: exactly one of analysis / error is set."""

    item_id: str
    cv_content: str
    analysis: Optional[CandidateAnalysis] = None
    error: Optional[str] = None
    parsed_cv: Optional[ParsedCv] = None

    @property
    def success(self) -> bool:
        return self.analysis is not None


@dataclass
class BatchReport:
    """Per-item results plus errors and merge conflicts."""

    results: List[BatchItemResult] = field(default_factory=list)
    errors: ErrorCollector = field(default_factory=ErrorCollector)
    conflicts: List[ConflictError] = field(default_factory=list)

    @property
    def succeeded(self) -> List[BatchItemResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> List[BatchItemResult]:
        return [r for r in self.results if not r.success]

    def get(self, item_id: str) -> Optional[BatchItemResult]:
        for result in self.results:
            if result.item_id == item_id:
                return result
        return None

    def to_dict(self) -> dict:
        return {
            "results": [
                {
                    "item_id": r.item_id,
                    "status": STATUS_DONE if r.success else STATUS_ERROR,
                    "candidate_name": r.analysis.candidate_name if r.analysis else None,
                    "alignment_score": r.analysis.alignment_score if r.analysis else None,
                    "error": r.error,
                }
                for r in self.results
            ],
            "errors": self.errors.summary(),
            "conflicts": [str(c) for c in self.conflicts],
        }


class BatchAnalysisService(OperationService):
    """Runs CVAnalyzer over many CVs without aborting on individual failures."""

    operation_name = "batch"

    def __init__(
        self,
        analyzer: Optional[CVAnalyzer] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.analyzer = analyzer or CVAnalyzer()
        self.max_concurrency = max_concurrency or Config.MAX_CONCURRENT_ANALYSES

    def _report_progress(
        self,
        progress: Optional[ProgressCallback],
        item_id: str,
        status: str,
        message: Optional[str] = None,
    ) -> None:
        if progress is None:
            return
        try:
            progress(item_id, status, message)
        except Exception as e:
            self.get_logger().warning(f"Progress callback failed for {item_id}: {e}")

    async def analyze_batch(
        self,
        jd: AnalyzedJD,
        items: List[BatchItem],
        progress: Optional[ProgressCallback] = None,
        session_id: Optional[str] = None,
        preprocess: Optional[PreprocessHook] = None,
    ) -> BatchReport:
        """
        Analyze every item against jd.

        Args:
            jd: Requirement set to analyze against
            items: CVs to analyze
            progress: Called with (item_id, status, message) on each transition
            session_id: Session id for log correlation
            preprocess: Optional async hook run first per item (CV parsing);
                its failures are logged and the analysis proceeds without it

        Returns:
            BatchReport with one result per item, in input order
        """
        logger = self.get_logger(session_id)
        semaphore = asyncio.Semaphore(self.max_concurrency)
        report = BatchReport()

        for item in items:
            self._report_progress(progress, item.item_id, STATUS_PROCESSING)

        async def run_one(item: BatchItem) -> BatchItemResult:
            item_logger = logger.for_item(item.item_id)
            async with semaphore:
                parsed_cv = item.parsed_cv
                try:
                    if parsed_cv is None and preprocess is not None:
                        try:
                            parsed_cv = await preprocess(item)
                        except Exception as e:
                            item_logger.warning(f"Preprocessing skipped: {e}")
                    analysis = await self.analyzer.analyze(
                        jd, item.cv_content, parsed_cv=parsed_cv, session_id=session_id
                    )
                except Exception as e:
                    message = f"Failed to analyze: {e}"
                    item_logger.warning(message)
                    report.errors.add_error(item.item_id, "analysis", message, exception=e)
                    self._report_progress(progress, item.item_id, STATUS_ERROR, message)
                    return BatchItemResult(
                        item_id=item.item_id,
                        cv_content=item.cv_content,
                        error=message,
                        parsed_cv=parsed_cv,
                    )

            self._report_progress(progress, item.item_id, STATUS_DONE, analysis.candidate_name)
            return BatchItemResult(
                item_id=item.item_id,
                cv_content=item.cv_content,
                analysis=analysis,
                parsed_cv=parsed_cv,
            )

        logger.info(f"Analyzing {len(items)} CV(s), concurrency {self.max_concurrency}")
        with self.timed_execution() as timer:
            report.results = list(await asyncio.gather(*(run_one(item) for item in items)))

        logger.info(
            f"Batch finished in {timer.duration_seconds}s: "
            f"{len(report.succeeded)} succeeded, {len(report.failed)} failed"
        )
        return report
