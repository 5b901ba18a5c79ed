"""
CV Parser

Extracts contact details, total experience and a structured view of a CV.
Parsed CVs feed the CV database and give the alignment call an
authoritative total-experience figure.
"""

from datetime import date
from typing import Optional

from langchain_core.language_models import BaseChatModel
from pydantic import ValidationError

from cv_assessment.common.error_handling import ParseError
from cv_assessment.common.llm_client import LLMClient
from cv_assessment.common.logger import get_logger
from cv_assessment.common.retry import RetryPolicy
from cv_assessment.common.types import ParsedCv
from cv_assessment.extraction.prompts import CV_PARSE_SYSTEM_PROMPT, CV_PARSE_USER_TEMPLATE


class CvParser:
    """Parses raw CV text into a ParsedCv."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.client = LLMClient("cv_parse", llm=llm, retry_policy=retry_policy)

    async def parse(self, cv_text: str, file_name: Optional[str] = None) -> ParsedCv:
        """
        Parse one CV.

        Raises:
            ParseError: exhausted retries, invalid output or no email found
        """
        logger = get_logger(__name__, stage="cv_parse")

        if not cv_text or not cv_text.strip():
            raise ParseError(f"{file_name or 'CV'} is empty")

        result = await self.client.invoke(
            CV_PARSE_USER_TEMPLATE.format(cv_text=cv_text, current_date=date.today().isoformat()),
            system=CV_PARSE_SYSTEM_PROMPT,
        )
        if not result.success:
            raise ParseError(f"CV parsing failed: {result.error}") from result.exception

        try:
            parsed = ParsedCv.model_validate(result.parsed_json or {})
        except ValidationError as e:
            fields = ", ".join(".".join(str(x) for x in err["loc"]) for err in e.errors())
            raise ParseError(f"Could not extract required fields ({fields})") from e

        logger.info(f"Parsed {file_name or 'CV'}: {parsed.name} <{parsed.email}>")
        return parsed
