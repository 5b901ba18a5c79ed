"""
CV Database Service

Parsed CVs stored independently of any session, keyed by email and tagged
with a job code (OCN, WEX or SAN). Records arrive through bulk ingestion or
as a side effect of adding candidates to a session whose job description
carries a job code.

Deleting a record cascades: every session candidate with that email is
removed (clearing that session's summary) together with any suitable
position notifications for the email.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional

from cv_assessment.common.config import Config
from cv_assessment.common.error_handling import (
    CandidateNotFoundError,
    ConflictError,
    ErrorCollector,
)
from cv_assessment.common.state_store import AppStateStore
from cv_assessment.common.types import CvDatabaseRecord, normalize_job_code, VALID_JOB_CODES
from cv_assessment.extraction.cv_parser import CvParser
from cv_assessment.services.batch_analysis_service import CvUpload
from cv_assessment.services.operation_base import OperationService


@dataclass
class IngestReport:
    """Outcome of a bulk ingest: stored records, per-file errors and conflicts."""

    records: List[CvDatabaseRecord] = field(default_factory=list)
    errors: ErrorCollector = field(default_factory=ErrorCollector)
    conflicts: List[ConflictError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stored": [r.email for r in self.records],
            "errors": [e.to_dict() for e in self.errors.errors],
            "conflicts": [str(c) for c in self.conflicts],
        }


class CvDatabaseService(OperationService):
    """Ingest, search and delete stored CVs."""

    operation_name = "cv_database"

    def __init__(
        self,
        store: AppStateStore,
        parser: Optional[CvParser] = None,
        max_concurrency: Optional[int] = None,
    ):
        self.store = store
        self.parser = parser or CvParser()
        self.max_concurrency = max_concurrency or Config.MAX_CONCURRENT_ANALYSES

    @staticmethod
    def _require_job_code(job_code: str) -> str:
        code = normalize_job_code(job_code)
        if code is None:
            raise ValueError(f"job_code must be one of {', '.join(VALID_JOB_CODES)}")
        return code

    # ===== LOOKUPS =====

    def list_records(self) -> List[CvDatabaseRecord]:
        """Newest first."""
        return sorted(self.store.cv_database, key=lambda r: r.created_at, reverse=True)

    def get_record(self, email: str) -> CvDatabaseRecord:
        record = self.store.get_cv_record(email)
        if record is None:
            raise CandidateNotFoundError(email, "the CV database")
        return record

    def search(self, term: str, job_code: Optional[str] = None) -> List[CvDatabaseRecord]:
        """Case-insensitive match on name, email, title, company, job code and skills."""
        needle = (term or "").strip().lower()
        code = normalize_job_code(job_code) if job_code else None
        matches = []
        for record in self.list_records():
            if code and record.job_code != code:
                continue
            if not needle:
                matches.append(record)
                continue
            haystack = [
                record.name, record.email, record.current_title or "",
                record.current_company or "", record.job_code, *record.structured_content.skills,
            ]
            if any(needle in value.lower() for value in haystack):
                matches.append(record)
        return matches

    # ===== WRITES =====

    def upsert(self, record: CvDatabaseRecord) -> CvDatabaseRecord:
        """Insert or replace by email; the original created_at is kept on replace."""
        for index, existing in enumerate(self.store.cv_database):
            if existing.key == record.key:
                record = record.model_copy(update={"created_at": existing.created_at})
                self.store.cv_database[index] = record
                break
        else:
            self.store.cv_database.append(record)
        self.store.save_cv_database()
        return record

    async def _parse(self, file_name: str, content: str, job_code: str) -> CvDatabaseRecord:
        parsed = await self.parser.parse(content, file_name=file_name)
        return CvDatabaseRecord(
            **parsed.model_dump(),
            job_code=job_code,
            cv_file_name=file_name,
            cv_content=content,
        )

    async def parse_and_upsert(self, file_name: str, content: str, job_code: str) -> CvDatabaseRecord:
        """Parse one CV and store it, replacing any record with the same email."""
        record = await self._parse(file_name, content, self._require_job_code(job_code))
        stored = self.upsert(record)
        self.get_logger().info(f"Stored CV {file_name} as {stored.email} ({stored.job_code})")
        return stored

    async def ingest(
        self,
        uploads: List[CvUpload],
        job_code: str,
        replace: bool = False,
    ) -> IngestReport:
        """
        Parse and store many CVs.

        An email already in the database is a conflict unless replace is set.
        Parse failures are recorded per file and never stop the batch.
        """
        code = self._require_job_code(job_code)
        logger = self.get_logger()
        semaphore = asyncio.Semaphore(self.max_concurrency)
        report = IngestReport()

        async def parse_one(upload: CvUpload) -> Optional[CvDatabaseRecord]:
            async with semaphore:
                try:
                    return await self._parse(upload.file_name, upload.content, code)
                except Exception as e:
                    logger.warning(f"{upload.file_name}: {e}")
                    report.errors.add_error(upload.file_name, "cv_parse", str(e), exception=e)
                    return None

        parsed = await asyncio.gather(*(parse_one(u) for u in uploads))

        seen = set()
        for upload, record in zip(uploads, parsed):
            if record is None:
                continue
            exists = record.key in seen or self.store.get_cv_record(record.email) is not None
            if exists and not replace:
                conflict = ConflictError(record.email, "the CV database")
                report.conflicts.append(conflict)
                logger.info(f"Skipped {upload.file_name}: {conflict}")
                continue
            seen.add(record.key)
            report.records.append(self.upsert(record))

        logger.info(
            f"Ingested {len(report.records)}/{len(uploads)} CV(s); "
            f"{len(report.errors.errors)} failed, {len(report.conflicts)} skipped"
        )
        return report

    def delete(self, email: str) -> int:
        """
        Delete a record and cascade to sessions and suitable positions.

        Returns:
            Number of sessions that lost a candidate
        """
        record = self.get_record(email)
        key = record.key
        self.store.cv_database = [r for r in self.store.cv_database if r.key != key]
        self.store.save_cv_database()

        affected = 0
        for session in self.store.sessions:
            kept = [c for c in session.candidates if (c.analysis.email or "").strip().lower() != key]
            if len(kept) != len(session.candidates):
                session.candidates = kept
                session.summary = None
                affected += 1
        if affected:
            self.store.save_sessions()

        before = len(self.store.suitable_positions)
        self.store.suitable_positions = [
            p for p in self.store.suitable_positions if p.candidate_email.strip().lower() != key
        ]
        if len(self.store.suitable_positions) != before:
            self.store.save_suitable_positions()

        self.get_logger().info(f"Deleted CV {key}; removed from {affected} session(s)")
        return affected
