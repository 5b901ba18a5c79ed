"""
Suitable Positions

Notifications that a CV stored in the CV database looks relevant to an open
session with the same job code, in which the candidate has not been assessed
yet. A cheap relevance check decides; a notification can be dismissed or
"quick added", which assesses the stored CV into the session.
"""

import asyncio
import re
from typing import List, Optional, Tuple

from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, ValidationError

from cv_assessment.common.config import Config
from cv_assessment.common.error_handling import AssessmentError, CandidateNotFoundError
from cv_assessment.common.llm_client import LLMClient
from cv_assessment.common.retry import RetryPolicy
from cv_assessment.common.state_store import AppStateStore
from cv_assessment.common.types import (
    AnalyzedJD,
    AssessmentSession,
    CvDatabaseRecord,
    SuitablePosition,
)
from cv_assessment.services.batch_analysis_service import BatchReport, CvUpload
from cv_assessment.services.operation_base import OperationService
from cv_assessment.services.prompts import RELEVANCE_SYSTEM_PROMPT, RELEVANCE_USER_TEMPLATE
from cv_assessment.services.session_service import SessionService


class RelevanceVerdict(BaseModel):
    is_relevant: bool
    justification: str = ""


class RelevanceChecker:
    """Quick yes/no screen of a CV against a brief job description."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = LLMClient("relevance_check", llm=llm, cheap=True, retry_policy=retry_policy)

    async def check(self, jd: AnalyzedJD, cv_content: str) -> RelevanceVerdict:
        result = await self.client.invoke(
            RELEVANCE_USER_TEMPLATE.format(
                job_title=jd.job_title,
                criteria=jd.formatted_criteria(),
                cv_content=cv_content,
            ),
            system=RELEVANCE_SYSTEM_PROMPT,
        )
        if not result.success:
            raise AssessmentError(f"Relevance check failed: {result.error}") from result.exception
        try:
            return RelevanceVerdict.model_validate(result.parsed_json or {})
        except ValidationError as e:
            raise AssessmentError(f"Relevance check returned invalid output: {e}") from e


def already_assessed(email: str, session: AssessmentSession) -> bool:
    """True if the email appears in any candidate's CV text or analysis."""
    pattern = re.compile(re.escape(email.strip()), re.IGNORECASE)
    for record in session.candidates:
        if (record.analysis.email or "").strip().lower() == email.strip().lower():
            return True
        if pattern.search(record.cv_content):
            return True
    return False


class SuitablePositionsService(OperationService):
    """Finds, lists, dismisses and acts on suitable-position notifications."""

    operation_name = "suitable_positions"

    def __init__(
        self,
        store: AppStateStore,
        session_service: SessionService,
        checker: Optional[RelevanceChecker] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.store = store
        self.session_service = session_service
        self.checker = checker or RelevanceChecker()
        self.max_concurrency = max_concurrency or Config.MAX_CONCURRENT_ANALYSES

    def list_positions(self, candidate_email: Optional[str] = None) -> List[SuitablePosition]:
        if not candidate_email:
            return list(self.store.suitable_positions)
        key = candidate_email.strip().lower()
        return [p for p in self.store.suitable_positions if p.candidate_email.strip().lower() == key]

    def _is_known(self, email: str, session_id: str) -> bool:
        key = email.strip().lower()
        return any(
            p.candidate_email.strip().lower() == key and p.session_id == session_id
            for p in self.store.suitable_positions
        )

    def _candidate_pairs(self) -> List[Tuple[CvDatabaseRecord, AssessmentSession]]:
        pairs = []
        for record in self.store.cv_database:
            for session in self.store.sessions:
                if session.analyzed_jd.code != record.job_code:
                    continue
                if already_assessed(record.email, session) or self._is_known(record.email, session.id):
                    continue
                pairs.append((record, session))
        return pairs

    async def refresh(self) -> List[SuitablePosition]:
        """
        Run relevance checks for every unassessed (CV, session) pair sharing a job code.

        Failed checks are logged and skipped.

        Returns:
            Newly added notifications
        """
        logger = self.get_logger()
        pairs = self._candidate_pairs()
        if not pairs:
            logger.info("No new CV/session pairs to check")
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def check_one(record: CvDatabaseRecord, session: AssessmentSession) -> Optional[SuitablePosition]:
            async with semaphore:
                try:
                    verdict = await self.checker.check(session.analyzed_jd, record.cv_content)
                except Exception as e:
                    logger.warning(f"Relevance check for {record.email} / {session.id} skipped: {e}")
                    return None
            if not verdict.is_relevant:
                return None
            return SuitablePosition(
                candidate_email=record.email,
                candidate_name=record.name,
                session_id=session.id,
                job_title=session.analyzed_jd.job_title or session.jd_name,
                justification=verdict.justification,
            )

        logger.info(f"Checking {len(pairs)} CV/session pair(s)")
        results = await asyncio.gather(*(check_one(r, s) for r, s in pairs))

        added = []
        for position in results:
            # A session deleted during the checks takes its notifications with it
            if position is None or self.store.get_session(position.session_id) is None:
                continue
            if self._is_known(position.candidate_email, position.session_id):
                continue
            self.store.suitable_positions.append(position)
            added.append(position)

        if added:
            self.store.save_suitable_positions()
        logger.info(f"Found {len(added)} new suitable position(s)")
        return added

    def dismiss(self, candidate_email: str, session_id: str) -> None:
        key = candidate_email.strip().lower()
        before = len(self.store.suitable_positions)
        self.store.suitable_positions = [
            p for p in self.store.suitable_positions
            if not (p.candidate_email.strip().lower() == key and p.session_id == session_id)
        ]
        if len(self.store.suitable_positions) == before:
            raise CandidateNotFoundError(candidate_email, f"suitable positions for session {session_id}")
        self.store.save_suitable_positions()

    async def quick_add(self, candidate_email: str, session_id: str) -> BatchReport:
        """Assess a stored CV into the session and drop its notification."""
        record = self.store.get_cv_record(candidate_email)
        if record is None:
            raise CandidateNotFoundError(candidate_email, "the CV database")

        report = await self.session_service.add_candidates(
            session_id,
            [CvUpload(file_name=record.cv_file_name, content=record.cv_content, parsed_cv=record)],
        )
        # A failed analysis keeps the notification so it can be retried
        if (report.succeeded or report.conflicts) and self._is_known(candidate_email, session_id):
            self.dismiss(candidate_email, session_id)
        return report
