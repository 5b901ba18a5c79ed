"""
API route modules.

Each module handles one area: sessions, the CV database, suitable
position notifications and knowledge-base questions.
"""

from .cv_database import router as cv_database_router
from .knowledge_base import router as knowledge_base_router
from .sessions import router as sessions_router
from .suitable_positions import router as suitable_positions_router

__all__ = [
    "sessions_router",
    "cv_database_router",
    "suitable_positions_router",
    "knowledge_base_router",
]
