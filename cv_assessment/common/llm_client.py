"""
Thin LLM invocation layer shared by all collaborators.

Builds LangChain messages, runs the call under the retry policy, parses JSON
when requested and reports the outcome as an LLMResult. A JSON parse failure
counts as a failed attempt, so a malformed response is retried like a
transport error.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from cv_assessment.common.json_utils import parse_llm_json
from cv_assessment.common.llm_factory import create_cheap_llm, create_llm
from cv_assessment.common.retry import RetryPolicy
from cv_assessment.services.operation_base import OperationTimer

logger = logging.getLogger(__name__)


@dataclass
class LLMResult:
    """
    Result of one collaborator invocation (after retries).

    Attributes:
        content: Raw response text of the last attempt ("" on failure)
        step: Collaborator step name (e.g. "alignment")
        duration_ms: Wall clock across all attempts
        success: Whether the invocation succeeded
        parsed_json: Parsed JSON object when JSON was requested
        error: Error message if the invocation failed
        exception: The exception of the last attempt, kept for chaining
    """

    content: str
    step: str
    duration_ms: int
    success: bool
    parsed_json: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    exception: Optional[BaseException] = None

    @property
    def duration_seconds(self) -> float:
        return round(self.duration_ms / 1000.0, 2)


class LLMClient:
    """Invokes one chat model for one collaborator step."""

    def __init__(
        self,
        step_name: str,
        llm: Optional[BaseChatModel] = None,
        cheap: bool = False,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """
        Args:
            step_name: Collaborator step name, used in logs
            llm: Chat model to use; created from Config on first use when omitted
            cheap: Use the cheap model when creating the default LLM
            retry_policy: Retry policy (defaults to RetryPolicy.from_config())
        """
        self.step_name = step_name
        self._llm = llm
        self._cheap = cheap
        self.retry_policy = retry_policy or RetryPolicy.from_config()

    @property
    def llm(self) -> BaseChatModel:
        if self._llm is None:
            factory = create_cheap_llm if self._cheap else create_llm
            self._llm = factory(step=self.step_name)
        return self._llm

    async def _attempt(self, messages: list, validate_json: bool) -> tuple:
        response = await self.llm.ainvoke(messages)
        content = response.content if hasattr(response, "content") else str(response)
        if not isinstance(content, str):
            content = str(content)
        parsed = parse_llm_json(content) if validate_json else None
        return content, parsed

    async def invoke(
        self,
        prompt: str,
        system: Optional[str] = None,
        validate_json: bool = True,
    ) -> LLMResult:
        """
        Invoke the model with retries.

        Args:
            prompt: User prompt
            system: Optional system prompt
            validate_json: Parse the response as a JSON object

        Returns:
            LLMResult; success=False once every attempt has failed
        """
        messages = []
        if system:
            messages.append(SystemMessage(content=system))
        messages.append(HumanMessage(content=prompt))

        timer = OperationTimer()
        try:
            content, parsed = await self.retry_policy.call(self._attempt, messages, validate_json)
        except Exception as e:
            duration_ms = timer.stop()
            logger.warning(
                f"[{self.step_name}] LLM call failed after "
                f"{self.retry_policy.max_attempts} attempt(s): {e}"
            )
            return LLMResult(
                content="",
                step=self.step_name,
                duration_ms=duration_ms,
                success=False,
                error=str(e),
                exception=e,
            )

        duration_ms = timer.stop()
        logger.debug(f"[{self.step_name}] LLM call succeeded in {duration_ms}ms")
        return LLMResult(
            content=content,
            step=self.step_name,
            duration_ms=duration_ms,
            success=True,
            parsed_json=parsed,
        )
