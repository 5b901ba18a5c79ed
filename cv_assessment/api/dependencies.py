"""
Service wiring for the API.

One AppStateStore per process, loaded on first use, shared by every service.
Tests replace get_services through app.dependency_overrides.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

from cv_assessment.common.state_store import AppStateStore
from cv_assessment.services.batch_analysis_service import BatchAnalysisService
from cv_assessment.services.cv_database_service import CvDatabaseService
from cv_assessment.services.query_service import KnowledgeBaseService
from cv_assessment.services.session_service import SessionService
from cv_assessment.services.suitable_positions_service import SuitablePositionsService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    store: AppStateStore
    sessions: SessionService
    cv_database: CvDatabaseService
    suitable_positions: SuitablePositionsService
    knowledge_base: KnowledgeBaseService


def build_services(store: AppStateStore) -> ServiceContainer:
    """Wire the services around a (loaded) store."""
    cv_database = CvDatabaseService(store)
    sessions = SessionService(
        store,
        batch_service=BatchAnalysisService(),
        cv_database=cv_database,
    )
    return ServiceContainer(
        store=store,
        sessions=sessions,
        cv_database=cv_database,
        suitable_positions=SuitablePositionsService(store, sessions),
        knowledge_base=KnowledgeBaseService(store),
    )


@lru_cache()
def get_services() -> ServiceContainer:
    store = AppStateStore().load()
    if store.load_errors:
        logger.warning(f"{len(store.load_errors)} persisted record(s) were invalid and dropped")
    return build_services(store)
