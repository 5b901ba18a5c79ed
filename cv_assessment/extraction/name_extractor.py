"""
Name Fallback Resolver

Used only when the alignment call returns no usable candidate name.
Best effort: any failure yields an empty string and the caller decides.
"""

import logging
from typing import Optional

from langchain_core.language_models import BaseChatModel

from cv_assessment.common.llm_client import LLMClient
from cv_assessment.common.retry import RetryPolicy
from cv_assessment.extraction.prompts import (
    NAME_EXTRACTION_SYSTEM_PROMPT,
    NAME_EXTRACTION_USER_TEMPLATE,
)

logger = logging.getLogger(__name__)

_PLACEHOLDER_NAMES = {"", "n/a", "na", "unknown", "none", "null", "candidate", "not found"}


def is_usable_name(name: Optional[str]) -> bool:
    """False for empty strings and placeholder values the LLM uses for 'no name'."""
    if not name:
        return False
    return name.strip().lower() not in _PLACEHOLDER_NAMES


class NameExtractor:
    """Extracts a candidate's full name from raw CV text."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = LLMClient("name_extraction", llm=llm, cheap=True, retry_policy=retry_policy)

    async def extract_name(self, cv_text: str) -> str:
        """Return the best-effort full name, or "" when none can be found."""
        if not cv_text or not cv_text.strip():
            return ""

        result = await self.client.invoke(
            NAME_EXTRACTION_USER_TEMPLATE.format(cv_text=cv_text),
            system=NAME_EXTRACTION_SYSTEM_PROMPT,
        )
        if not result.success:
            logger.warning(f"Name extraction failed: {result.error}")
            return ""

        name = (result.parsed_json or {}).get("candidate_name")
        if not isinstance(name, str) or not is_usable_name(name):
            return ""
        return name.strip()
