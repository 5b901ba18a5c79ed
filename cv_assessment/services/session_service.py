"""
Session Reconciler

Keeps each AssessmentSession's current requirement set, its original
snapshot, its candidate list and its summary mutually consistent:

- Any effective requirement edit clears the summary. Candidates go stale
  unless the edit brings the requirement set back to the original snapshot,
  in which case they are all fresh again.
- Adding candidates appends new identities only (duplicates are reported
  as conflicts) and clears the summary.
- Re-assessing replaces successful candidates in place as fresh, keeps
  failed ones untouched, and on a partial selection marks every
  non-selected candidate stale. The summary is cleared.
- A summary is only stored if nothing changed while it was generated, and
  is refused while analyses for the session are in flight.

Candidates are re-sorted by descending score after every list mutation and
every mutation is written through the state store.
"""

import hashlib
import json
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from cv_assessment.common.dedupe import find_duplicate, normalize_email
from cv_assessment.common.error_handling import (
    CandidateNotFoundError,
    ConflictError,
    SessionBusyError,
    SessionNotFoundError,
    SummaryError,
    log_on_exception,
)
from cv_assessment.common.state_store import AppStateStore
from cv_assessment.common.types import (
    AnalyzedJD,
    AssessmentSession,
    CandidateRecord,
    CandidateSummary,
    ChatMessage,
    Priority,
    Requirement,
    RequirementCategory,
    RequirementGroup,
    score_for,
)
from cv_assessment.extraction.jd_extractor import RequirementExtractor
from cv_assessment.services.batch_analysis_service import (
    BatchAnalysisService,
    BatchItem,
    BatchReport,
    CvUpload,
    ProgressCallback,
)
from cv_assessment.services.cv_database_service import CvDatabaseService
from cv_assessment.services.operation_base import OperationService
from cv_assessment.services.query_service import CandidateQueryAnswerer
from cv_assessment.services.summary_service import SummaryGenerator


class SessionService(OperationService):
    """Mutating operations on assessment sessions."""

    operation_name = "session"

    def __init__(
        self,
        store: AppStateStore,
        extractor: Optional[RequirementExtractor] = None,
        batch_service: Optional[BatchAnalysisService] = None,
        summary_generator: Optional[SummaryGenerator] = None,
        cv_database: Optional[CvDatabaseService] = None,
        query_answerer: Optional[CandidateQueryAnswerer] = None,
    ):
        self.store = store
        self.extractor = extractor or RequirementExtractor()
        self.batch_service = batch_service or BatchAnalysisService()
        self.summary_generator = summary_generator or SummaryGenerator()
        self.cv_database = cv_database
        self.query_answerer = query_answerer or CandidateQueryAnswerer()
        self._in_flight: Dict[str, int] = {}

    # ===== LOOKUPS =====

    def list_sessions(self) -> List[AssessmentSession]:
        """Newest first."""
        return sorted(self.store.sessions, key=lambda s: s.created_at, reverse=True)

    def get_session(self, session_id: str) -> AssessmentSession:
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def find_by_position_number(self, position_number: str) -> Optional[AssessmentSession]:
        wanted = (position_number or "").strip().lower()
        if not wanted:
            return None
        for session in self.store.sessions:
            if session.analyzed_jd.position_number.strip().lower() == wanted:
                return session
        return None

    def search_sessions(self, term: str) -> List[AssessmentSession]:
        """Case-insensitive match on name, title, position number, code, grade or department."""
        needle = (term or "").strip().lower()
        if not needle:
            return self.list_sessions()
        matches = []
        for session in self.list_sessions():
            jd = session.analyzed_jd
            haystack = [
                session.jd_name, jd.job_title, jd.position_number,
                jd.code or "", jd.grade, jd.department,
            ]
            if any(needle in value.lower() for value in haystack):
                matches.append(session)
        return matches

    # ===== SESSIONS =====

    async def create_session(
        self,
        jd_name: str,
        jd_text: str,
        replace_existing: bool = False,
    ) -> AssessmentSession:
        """
        Extract requirements and open a session.

        A session with the same position number is a conflict unless
        replace_existing is set; then its requirement set and snapshot are
        replaced, all its candidates go stale and its summary is cleared.

        Raises:
            ExtractionError: extraction failed; nothing is created
            ConflictError: position number already in use
        """
        logger = self.get_logger()
        with log_on_exception(logger, f"Requirement extraction for {jd_name}", level=logging.ERROR):
            jd = await self.extractor.extract(jd_text)

        existing = self.find_by_position_number(jd.position_number)
        if existing is not None:
            if not replace_existing:
                raise ConflictError(
                    jd.position_number,
                    f"session '{existing.jd_name}'",
                    f"A session for position {jd.position_number} already exists ({existing.id})",
                )
            existing.jd_name = jd_name
            existing.analyzed_jd = jd
            existing.original_analyzed_jd = jd.model_copy(deep=True)
            for record in existing.candidates:
                record.is_stale = True
            existing.summary = None
            self.store.save_sessions()
            logger.info(f"Replaced job description of session {existing.id} ({jd.position_number})")
            return existing

        session = AssessmentSession(
            id=self.new_id(),
            jd_name=jd_name,
            analyzed_jd=jd,
            original_analyzed_jd=jd.model_copy(deep=True),
        )
        self.store.sessions.append(session)
        self.store.save_sessions()
        logger.info(f"Created session {session.id} for '{jd.job_title or jd_name}'")
        return session

    def delete_session(self, session_id: str) -> None:
        session = self.get_session(session_id)
        self.store.sessions = [s for s in self.store.sessions if s.id != session.id]
        self.store.save_sessions()

        before = len(self.store.suitable_positions)
        self.store.suitable_positions = [
            p for p in self.store.suitable_positions if p.session_id != session_id
        ]
        if len(self.store.suitable_positions) != before:
            self.store.save_suitable_positions()
        self.get_logger(session_id).info("Session deleted")

    # ===== REQUIREMENT EDITS =====

    def _apply_jd_edit(self, session: AssessmentSession, edited: AnalyzedJD) -> bool:
        """
        Install an edited requirement set and reconcile staleness and summary.

        Returns False (and changes nothing) when the edit is a no-op.
        """
        if edited.same_requirements_as(session.analyzed_jd):
            return False

        session.analyzed_jd = edited
        reverted = edited.same_requirements_as(session.original_analyzed_jd)
        for record in session.candidates:
            record.is_stale = not reverted
        session.summary = None
        self.store.save_sessions()

        logger = self.get_logger(session.id)
        if reverted:
            logger.info("Requirements reverted to original, stale flags cleared")
        else:
            logger.info(f"Requirements changed, {len(session.candidates)} candidate(s) marked stale")
        return True

    def edit_requirement_priority(
        self,
        session_id: str,
        category: RequirementCategory,
        index: int,
        priority: Priority,
        member_index: Optional[int] = None,
    ) -> AssessmentSession:
        """
        Change one requirement's priority; its score follows the category weight.

        For an OR-group, member_index selects one member; without it every
        member gets the new priority.
        """
        session = self.get_session(session_id)
        edited = session.analyzed_jd.model_copy(deep=True)
        items = edited.items(category)
        if not 0 <= index < len(items):
            raise IndexError(f"No requirement {index} in {category.value}")

        match items[index]:
            case Requirement() as requirement:
                if member_index is not None:
                    raise ValueError("member_index only applies to requirement groups")
                targets = [requirement]
            case RequirementGroup(requirements=members):
                if member_index is None:
                    targets = list(members)
                elif 0 <= member_index < len(members):
                    targets = [members[member_index]]
                else:
                    raise IndexError(f"No member {member_index} in group {index} of {category.value}")

        for target in targets:
            target.priority = priority
            target.score = score_for(category, priority)

        self._apply_jd_edit(session, edited)
        return session

    def add_additional_requirement(
        self,
        session_id: str,
        description: str,
        priority: Priority = Priority.MUST_HAVE,
    ) -> AssessmentSession:
        description = (description or "").strip()
        if not description:
            raise ValueError("Requirement description must not be empty")
        session = self.get_session(session_id)
        edited = session.analyzed_jd.model_copy(deep=True)
        edited.additional_requirements.append(
            Requirement(
                description=description,
                priority=priority,
                score=score_for(RequirementCategory.ADDITIONAL_REQUIREMENTS, priority),
            )
        )
        self._apply_jd_edit(session, edited)
        return session

    def remove_additional_requirement(self, session_id: str, index: int) -> AssessmentSession:
        session = self.get_session(session_id)
        edited = session.analyzed_jd.model_copy(deep=True)
        if not 0 <= index < len(edited.additional_requirements):
            raise IndexError(f"No additional requirement {index}")
        del edited.additional_requirements[index]
        self._apply_jd_edit(session, edited)
        return session

    # ===== CANDIDATES =====

    def is_busy(self, session_id: str) -> bool:
        return self._in_flight.get(session_id, 0) > 0

    @contextmanager
    def _analyses_in_flight(self, session_id: str) -> Iterator[None]:
        self._in_flight[session_id] = self._in_flight.get(session_id, 0) + 1
        try:
            yield
        finally:
            self._in_flight[session_id] -= 1
            if self._in_flight[session_id] <= 0:
                del self._in_flight[session_id]

    def _merge_new_candidates(self, session: AssessmentSession, report: BatchReport) -> int:
        """Append successful results that are not already present; returns the count added."""
        logger = self.get_logger(session.id)
        added = 0
        for result in report.succeeded:
            analysis = result.analysis
            duplicate = find_duplicate(analysis, (c.analysis for c in session.candidates))
            if duplicate is not None:
                identity = normalize_email(analysis.email) or analysis.candidate_name
                conflict = ConflictError(identity, f"session '{session.jd_name}'")
                report.conflicts.append(conflict)
                logger.warning(f"Skipped {result.item_id}: {conflict}")
                continue
            session.candidates.append(
                CandidateRecord(
                    cv_name=result.item_id,
                    cv_content=result.cv_content,
                    analysis=analysis,
                )
            )
            added += 1

        if added:
            session.sort_candidates()
            session.summary = None
            self.store.save_sessions()
        return added

    async def add_candidates(
        self,
        session_id: str,
        uploads: List[CvUpload],
        progress: Optional[ProgressCallback] = None,
    ) -> BatchReport:
        """
        Analyze new CVs and merge them into the session.

        When the session has a job code and a CV database is attached, each
        CV is parsed and upserted into the database first; parse failures do
        not stop the assessment.
        """
        session = self.get_session(session_id)
        jd = session.analyzed_jd
        items = [
            BatchItem(item_id=u.file_name, cv_content=u.content, parsed_cv=u.parsed_cv)
            for u in uploads
        ]

        preprocess = None
        if jd.code and self.cv_database is not None:
            job_code = jd.code

            async def preprocess(item: BatchItem):
                record = await self.cv_database.parse_and_upsert(item.item_id, item.cv_content, job_code)
                return record

        with self._analyses_in_flight(session_id):
            report = await self.batch_service.analyze_batch(
                jd, items, progress=progress, session_id=session_id, preprocess=preprocess
            )

        session = self.store.get_session(session_id)
        if session is None:
            self.get_logger(session_id).warning("Session deleted during analysis, results dropped")
            return report

        added = self._merge_new_candidates(session, report)
        self.get_logger(session_id).info(
            f"Added {added} candidate(s); {len(report.failed)} failed, {len(report.conflicts)} skipped"
        )
        return report

    async def reassess_candidates(
        self,
        session_id: str,
        candidate_keys: Optional[List[str]] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> BatchReport:
        """
        Re-run analysis for the selected candidates (all when none given).

        Results are keyed by candidate key. Successes replace the record in
        place and are fresh; failures keep the previous record. On a strict
        subset every other candidate is marked stale.
        """
        session = self.get_session(session_id)
        if not session.candidates:
            raise ValueError("There are no candidates in this session to re-assess")

        if candidate_keys:
            wanted = {k.strip().lower() for k in candidate_keys}
            selected = [c for c in session.candidates if c.key in wanted]
            missing = wanted - {c.key for c in selected}
            if missing:
                raise CandidateNotFoundError(", ".join(sorted(missing)), f"session '{session.jd_name}'")
        else:
            selected = list(session.candidates)
        partial = len(selected) < len(session.candidates)

        items = []
        for record in selected:
            stored = self.store.get_cv_record(record.analysis.email) if record.analysis.email else None
            items.append(BatchItem(item_id=record.key, cv_content=record.cv_content, parsed_cv=stored))

        with self._analyses_in_flight(session_id):
            report = await self.batch_service.analyze_batch(
                session.analyzed_jd, items, progress=progress, session_id=session_id
            )

        session = self.store.get_session(session_id)
        if session is None:
            self.get_logger(session_id).warning("Session deleted during re-assessment, results dropped")
            return report

        selected_keys = {record.key for record in selected}
        updated: List[CandidateRecord] = []
        for record in session.candidates:
            if record.key in selected_keys:
                result = report.get(record.key)
                if result is not None and result.success:
                    record = record.model_copy(update={"analysis": result.analysis, "is_stale": False})
            elif partial:
                record.is_stale = True
            updated.append(record)

        session.candidates = updated
        session.sort_candidates()
        session.summary = None
        self.store.save_sessions()
        self.get_logger(session_id).info(
            f"Re-assessed {len(report.succeeded)}/{len(selected)} candidate(s)"
            f"{' (partial)' if partial else ''}"
        )
        return report

    def remove_candidate(self, session_id: str, key: str) -> AssessmentSession:
        session = self.get_session(session_id)
        record = session.find_candidate(key)
        if record is None:
            raise CandidateNotFoundError(key, f"session '{session.jd_name}'")
        session.candidates = [c for c in session.candidates if c is not record]
        session.summary = None
        self.store.save_sessions()
        return session

    # ===== SUMMARY =====

    @staticmethod
    def _fingerprint(session: AssessmentSession) -> str:
        payload = {
            "jd": session.analyzed_jd.model_dump(mode="json"),
            "candidates": [c.analysis.model_dump(mode="json") for c in session.candidates],
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()

    async def generate_summary(self, session_id: str) -> Optional[CandidateSummary]:
        """
        Generate and store the session summary.

        Returns:
            The stored summary, or None when the session changed while the
            summary was being generated (the result is discarded)

        Raises:
            SessionBusyError: analyses for this session are in flight
            SummaryError: no candidates or the collaborator failed
        """
        session = self.get_session(session_id)
        if self.is_busy(session_id):
            raise SessionBusyError(f"Session {session_id} has analyses in progress")
        if not session.candidates:
            raise SummaryError("No candidates to summarize")

        fingerprint = self._fingerprint(session)
        summary = await self.summary_generator.generate(
            session.analyzed_jd, [c.analysis for c in session.candidates]
        )

        session = self.store.get_session(session_id)
        logger = self.get_logger(session_id)
        if session is None or self._fingerprint(session) != fingerprint:
            logger.warning("Session changed while the summary was generated, summary discarded")
            return None

        session.summary = summary
        self.store.save_sessions()
        logger.info("Summary stored")
        return summary

    # ===== QUESTIONS =====

    async def query_candidate(self, session_id: str, key: str, question: str) -> ChatMessage:
        """
        Answer a question about one candidate and keep the exchange.

        The user message and the answer are appended to the candidate's chat
        history together, only once the answer is available. Chat history is
        not part of the analysis, so the summary and staleness are untouched.

        Raises:
            SessionNotFoundError / CandidateNotFoundError: unknown session or candidate
            ValueError: blank question
            QueryError: the collaborator failed
        """
        session = self.get_session(session_id)
        record = session.find_candidate(key)
        if record is None:
            raise CandidateNotFoundError(key, f"session '{session.jd_name}'")

        answer = await self.query_answerer.answer(session.analyzed_jd, record.cv_content, question)
        reply = ChatMessage(role="assistant", content=answer)

        session = self.store.get_session(session_id)
        if session is None or not any(c is record for c in session.candidates):
            self.get_logger(session_id).warning(
                f"Candidate {key} was removed while the question was answered, answer not kept"
            )
            return reply

        record.chat_history.extend([ChatMessage(role="user", content=question.strip()), reply])
        self.store.save_sessions()
        return reply
